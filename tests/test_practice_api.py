"""
Practice API adapters against an in-process httpx transport.
"""

from __future__ import annotations

import json
from datetime import date

import httpx
import pytest

from vetintake.application.dto.availability import ExplicitSlots, RankedCandidates
from vetintake.application.exceptions import EnrichmentFailure, PracticeApiError, SubmissionFailure, ZoneNotServicedError
from vetintake.application.ports.availability import AvailabilityQuery
from vetintake.domain.entities.client_profile import Zone
from vetintake.domain.entities.provider import Provider
from vetintake.infrastructure.practice_api.availability_client import PublicAvailability, RoutingAvailability
from vetintake.infrastructure.practice_api.directory_client import PracticeDirectory
from vetintake.infrastructure.practice_api.geo_client import PracticeGeo
from vetintake.infrastructure.practice_api.http_client import PracticeHttpClient
from vetintake.infrastructure.practice_api.submission_client import PracticeSubmission

QUERY = AvailabilityQuery(
    practice_id=1,
    doctor_id="101",
    start_date=date(2024, 6, 2),
    num_days=7,
    service_minutes=60,
    address="12 Harbor Rd, Portland, ME, 04101",
    lat=43.6591,
    lon=-70.2568,
)


class Recorder:
    """Serves canned responses by path and keeps every request."""

    def __init__(self, responses):
        self.responses = responses
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body = self.responses.get(request.url.path, (404, {"message": "not found"}))
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    def client(self) -> PracticeHttpClient:
        return PracticeHttpClient(
            base_url="https://practice.test/api",
            token="secret-token",
            timeout_seconds=5,
            transport=httpx.MockTransport(self),
        )


def sent_json(request: httpx.Request):
    return json.loads(request.content)


async def test_public_veterinarians_are_mapped_to_providers():
    recorder = Recorder(
        {
            "/api/public/appointments/veterinarians": (
                200,
                {
                    "veterinarians": [
                        {
                            "id": 7,
                            "pimsId": "101",
                            "firstName": "Jane",
                            "lastName": "Smith",
                            "appointmentTypes": [{"name": "Wellness"}, "Sick"],
                        },
                        {"name": "No Id"},
                    ]
                },
            )
        }
    )
    directory = PracticeDirectory(recorder.client())

    providers = await directory.fetch_public_veterinarians(1)

    assert providers == [
        Provider(id="7", name="Jane Smith", pims_id="101", accepted_appointment_type_names=frozenset({"Wellness", "Sick"}))
    ]
    request = recorder.requests[0]
    assert request.headers["Authorization"] == "Bearer secret-token"
    # unset params are not sent
    assert dict(request.url.params) == {"practiceId": "1"}


async def test_directory_failures_become_enrichment_failures():
    recorder = Recorder({"/api/employees/providers": (500, {"message": "Directory offline"})})
    directory = PracticeDirectory(recorder.client())

    with pytest.raises(EnrichmentFailure) as excinfo:
        await directory.fetch_employee_veterinarians("12 Harbor Rd")

    assert excinfo.value.status_code == 500
    assert "Directory offline" in str(excinfo.value)


async def test_appointment_types_skip_malformed_rows():
    recorder = Recorder(
        {
            "/api/public/appointment-types": (
                200,
                [
                    {"name": "Wellness", "prettyName": "Wellness Exam", "newPatientAllowed": True},
                    {"prettyName": "Nameless"},
                    {"name": "Recheck", "newPatientAllowed": False},
                ],
            )
        }
    )
    directory = PracticeDirectory(recorder.client())

    types = await directory.fetch_appointment_types(1)

    assert [(t.name, t.pretty_name, t.new_patient_allowed) for t in types] == [
        ("Wellness", "Wellness Exam", True),
        ("Recheck", "Recheck", False),
    ]


async def test_email_check():
    recorder = Recorder({"/api/public/appointments/check-email": (200, {"exists": True, "hasAccount": False})})
    check = await PracticeDirectory(recorder.client()).check_email(" Sam@Example.com ", 1)
    assert (check.exists, check.has_account) == (True, False)
    assert recorder.requests[0].url.params["email"] == "sam@example.com"


async def test_client_pets_profile_and_alerts():
    recorder = Recorder(
        {
            "/api/patients/client/mine": (
                200,
                {"rows": [{"id": 55, "pimsId": "p-1", "name": "Rex", "primaryProviderName": "Jane Smith"}]},
            ),
            "/api/appointments/client": (
                200,
                {
                    "appointments": [
                        {
                            "client": {"firstName": "Pat", "lastName": "Doe", "phone1": "207-555-0199"},
                            "address1": "12 Harbor Rd",
                            "city": "Portland",
                            "state": "ME",
                            "zip": 4101,
                        }
                    ]
                },
            ),
            "/api/patients/pims/p-1": (200, {"patient": {"alerts": "Muzzle required"}}),
        }
    )
    directory = PracticeDirectory(recorder.client())

    (pet,) = await directory.fetch_client_pets()
    profile = await directory.fetch_client_profile()
    alerts = await directory.fetch_patient_alerts("p-1")

    assert (pet.id, pet.db_id, pet.primary_provider_name) == ("p-1", "55", "Jane Smith")
    assert profile.first_name == "Pat"
    assert profile.phone == "207-555-0199"
    assert profile.address.one_line() == "12 Harbor Rd, Portland, ME, 4101"
    assert alerts == "Muzzle required"


async def test_zone_lookup():
    recorder = Recorder({"/api/find-zone-by-address": (200, {"zone": {"id": 3, "name": "Greater Portland"}})})
    assert await PracticeGeo(recorder.client()).find_zone("12 Harbor Rd") == Zone(id="3", name="Greater Portland")


async def test_zone_404_means_not_serviced():
    recorder = Recorder({})
    with pytest.raises(ZoneNotServicedError):
        await PracticeGeo(recorder.client()).find_zone("1 Summit Rd")


@pytest.mark.parametrize(
    "status, body, ok, reason",
    [
        (200, {"matchLevel": "street", "lat": "43.65", "lon": "-70.25", "formattedAddress": "12 Harbor Rd"}, True, None),
        (200, {"matchLevel": "city"}, False, "too_vague"),
        (200, {"matchLevel": "partial"}, False, "too_vague"),
        (404, {"message": "nothing"}, False, "not_found"),
        (502, None, False, "error"),
    ],
)
async def test_forward_geocode(status, body, ok, reason):
    recorder = Recorder({"/api/geo/forward": (status, body)})

    result = await PracticeGeo(recorder.client()).validate_address("12 Harbor Rd")

    assert result.ok is ok
    assert result.reason == reason
    if ok:
        assert (result.lat, result.lon) == (43.65, -70.25)
    params = recorder.requests[0].url.params
    assert (params["country"], params["adminArea"]) == ("US", "ME")


async def test_public_availability_request_and_ranked_answer():
    recorder = Recorder(
        {
            "/api/public/appointments/availability": (
                200,
                {"winner": {"iso": "2024-06-03T09:00:00-04:00", "score": 12}, "alternates": []},
            )
        }
    )

    answer = await PublicAvailability(recorder.client()).fetch_candidates(QUERY)

    assert isinstance(answer, RankedCandidates)
    assert answer.winner.score == 12
    assert sent_json(recorder.requests[0]) == {
        "practiceId": 1,
        "startDate": "2024-06-02",
        "numDays": 7,
        "serviceMinutes": 60,
        "address": "12 Harbor Rd, Portland, ME, 04101",
        "allowOtherDoctors": False,
        "doctorId": 101,
    }


async def test_routing_request_and_explicit_slots():
    recorder = Recorder({"/api/routing/v2": (200, {"slots": [{"date": "2024-06-03", "time": "09:00"}]})})

    answer = await RoutingAvailability(recorder.client()).fetch_candidates(QUERY)

    assert isinstance(answer, ExplicitSlots)
    assert sent_json(recorder.requests[0]) == {
        "doctorId": "101",
        "startDate": "2024-06-02",
        "numDays": 7,
        "newAppt": {
            "serviceMinutes": 60,
            "lat": 43.6591,
            "lon": -70.2568,
            "address": "12 Harbor Rd, Portland, ME, 04101",
        },
    }


async def test_unreadable_availability_is_an_api_error():
    recorder = Recorder({"/api/routing/v2": (200, {"slots": "tomorrow"})})
    with pytest.raises(PracticeApiError):
        await RoutingAvailability(recorder.client()).fetch_candidates(QUERY)


async def test_submission_surfaces_upstream_message_only():
    recorder = Recorder({"/api/public/appointments/form": (422, {"message": "Phone number is invalid"})})
    with pytest.raises(SubmissionFailure) as excinfo:
        await PracticeSubmission(recorder.client()).submit({"clientType": "new"})
    assert str(excinfo.value) == "Phone number is invalid"
    assert excinfo.value.status_code == 422

    recorder.responses["/api/public/appointments/form"] = (500, None)
    with pytest.raises(SubmissionFailure) as excinfo:
        await PracticeSubmission(recorder.client()).submit({"clientType": "new"})
    assert str(excinfo.value) == ""


async def test_submission_success_posts_payload():
    recorder = Recorder({"/api/public/appointments/form": (201, {"ok": True})})
    await PracticeSubmission(recorder.client()).submit({"clientType": "new", "email": "sam@example.com"})
    assert sent_json(recorder.requests[0]) == {"clientType": "new", "email": "sam@example.com"}


async def test_network_errors_become_api_errors():
    def unreachable(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = PracticeHttpClient(base_url="https://practice.test", transport=httpx.MockTransport(unreachable))
    with pytest.raises(PracticeApiError) as excinfo:
        await client.get_json("/public/species-breeds")
    assert excinfo.value.status_code is None
    await client.aclose()


def test_base_url_is_required(monkeypatch):
    from vetintake.core.config import settings

    monkeypatch.setattr(settings, "PRACTICE_API_BASE_URL", None)
    with pytest.raises(ValueError):
        PracticeHttpClient(base_url=None)
