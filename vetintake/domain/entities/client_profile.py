from __future__ import annotations

from dataclasses import dataclass

from vetintake.domain.entities.address import Address


@dataclass(frozen=True)
class ClientProfile:
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    address: Address | None = None


@dataclass(frozen=True)
class EmailCheck:
    exists: bool
    has_account: bool


@dataclass(frozen=True)
class GeocodeResult:
    ok: bool
    lat: float | None = None
    lon: float | None = None
    address: str | None = None
    match_level: str | None = None  # "street", "partial", "city"
    reason: str | None = None  # "not_found", "too_vague", "error"
    message: str | None = None


@dataclass(frozen=True)
class Zone:
    id: str
    name: str
