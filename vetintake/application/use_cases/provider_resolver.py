from __future__ import annotations

from typing import Sequence

from vetintake.domain.entities.pages import NO_PREFERENCE
from vetintake.domain.entities.provider import Provider

DOCTOR_PREFIX = "Dr. "


def resolve(free_text: str | None, providers: Sequence[Provider]) -> Provider | None:
    """
    Match a "preferred doctor" answer to a provider.
    Exact name first, then case-insensitive containment either way.
    """
    if not free_text or free_text.strip().rstrip(".") == NO_PREFERENCE:
        return None

    bare_name = _strip_prefix(free_text.strip())
    if not bare_name:
        return None

    for provider in providers:
        if provider.name == bare_name or f"{DOCTOR_PREFIX}{provider.name}" == free_text:
            return provider

    needle = bare_name.lower()
    for provider in providers:
        name = provider.name.lower()
        if name and (needle in name or name in needle):
            return provider
    return None


def preferred_label(provider: Provider) -> str:
    return f"{DOCTOR_PREFIX}{provider.name}"


def _strip_prefix(text: str) -> str:
    if text.startswith(DOCTOR_PREFIX):
        text = text[len(DOCTOR_PREFIX):]
    return text.strip()
