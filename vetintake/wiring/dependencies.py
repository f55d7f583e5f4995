from functools import lru_cache
import logging
from zoneinfo import ZoneInfo

from vetintake.core.config import settings
from vetintake.application.ports.availability import AvailabilityPort
from vetintake.application.ports.directory import DirectoryPort
from vetintake.application.ports.geo import GeoPort
from vetintake.application.ports.submission import SubmissionPort
from vetintake.application.use_cases.enrichment import EnrichmentCoordinator
from vetintake.application.use_cases.intake_workflow import IntakeWorkflow
from vetintake.application.use_cases.slot_recommendation import SlotRecommendationEngine
from vetintake.infrastructure.practice_api.availability_client import PublicAvailability, RoutingAvailability
from vetintake.infrastructure.practice_api.directory_client import PracticeDirectory
from vetintake.infrastructure.practice_api.geo_client import PracticeGeo
from vetintake.infrastructure.practice_api.http_client import PracticeHttpClient
from vetintake.infrastructure.practice_api.mock_practice import (
    MockAvailability,
    MockPracticeDirectory,
    MockPracticeGeo,
    MockSubmission,
)
from vetintake.infrastructure.practice_api.submission_client import PracticeSubmission
from vetintake.infrastructure.store.memory_store import MemorySessionStore

logger = logging.getLogger(__name__)

_workflow: IntakeWorkflow | None = None


def use_mock_practice() -> bool:
    return not settings.PRACTICE_API_BASE_URL or settings.ENV.lower() in {"local", "test"}


@lru_cache
def get_practice_client() -> PracticeHttpClient:
    return PracticeHttpClient(
        base_url=settings.PRACTICE_API_BASE_URL,
        token=settings.PRACTICE_API_TOKEN,
        timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
    )


@lru_cache
def get_session_store() -> MemorySessionStore:
    return MemorySessionStore()


@lru_cache
def get_directory() -> DirectoryPort:
    if use_mock_practice():
        return MockPracticeDirectory()
    return PracticeDirectory(client=get_practice_client())


@lru_cache
def get_geo() -> GeoPort:
    if use_mock_practice():
        return MockPracticeGeo()
    return PracticeGeo(client=get_practice_client())


@lru_cache
def get_routing_availability() -> AvailabilityPort:
    if use_mock_practice():
        return MockAvailability()
    return RoutingAvailability(client=get_practice_client())


@lru_cache
def get_public_availability() -> AvailabilityPort:
    if use_mock_practice():
        return MockAvailability()
    return PublicAvailability(client=get_practice_client())


@lru_cache
def get_submission() -> SubmissionPort:
    if use_mock_practice():
        return MockSubmission()
    return PracticeSubmission(client=get_practice_client())


def get_practice_timezone() -> ZoneInfo:
    try:
        return ZoneInfo(settings.PRACTICE_TIMEZONE)
    except (ValueError, KeyError) as e:
        logger.warning("Unknown practice timezone, using UTC", extra={"error": str(e)})
        return ZoneInfo("UTC")


def get_slot_engine() -> SlotRecommendationEngine:
    return SlotRecommendationEngine(
        routing=get_routing_availability(),
        public=get_public_availability(),
        geo=get_geo(),
        practice_id=settings.PRACTICE_ID,
        timezone=get_practice_timezone(),
    )


def get_enrichment() -> EnrichmentCoordinator:
    return EnrichmentCoordinator(
        directory=get_directory(),
        geo=get_geo(),
        practice_id=settings.PRACTICE_ID,
        debounce_seconds=settings.ENRICHMENT_DEBOUNCE_MS / 1000,
    )


def get_intake_workflow() -> IntakeWorkflow:
    global _workflow
    if _workflow is None:
        logger.info("Building intake workflow (mock practice=%s)", use_mock_practice())
        _workflow = IntakeWorkflow(
            store=get_session_store(),
            directory=get_directory(),
            enrichment=get_enrichment(),
            engine=get_slot_engine(),
            submission=get_submission(),
            practice_id=settings.PRACTICE_ID,
        )
    return _workflow
