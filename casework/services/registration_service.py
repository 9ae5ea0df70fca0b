"""Professional registration checks (NMC/GMC) for readers and case managers.

The registers themselves are third-party services; the verifier interface
keeps the lookup replaceable. StaticRegistrationVerifier serves fixtures and
deployments without register access.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Protocol

from casework.core.exceptions import DependencyError, ValidationError

logger = logging.getLogger(__name__)


class RegistrationBody(str, Enum):
    NMC = "NMC"
    GMC = "GMC"
    OTHER = "Other"


@dataclass(frozen=True)
class RegistrationRecord:
    name: str
    status: str


@dataclass(frozen=True)
class RegistrationCheck:
    body: RegistrationBody
    number: str
    verified: bool
    name: str | None = None
    status: str | None = None


class RegistrationVerifier(Protocol):
    def lookup(self, body: RegistrationBody, number: str) -> RegistrationRecord | None: ...


class StaticRegistrationVerifier:
    """Register entries keyed by (body, number)."""

    def __init__(self, records: Mapping[tuple[RegistrationBody, str], RegistrationRecord] | None = None):
        self._records = dict(records or {})

    def lookup(self, body: RegistrationBody, number: str) -> RegistrationRecord | None:
        return self._records.get((body, number))


def verify_registration(
    verifier: RegistrationVerifier,
    body: RegistrationBody | str,
    number: str,
) -> RegistrationCheck:
    """Only registrations with status "Registered" count as verified."""
    try:
        parsed_body = RegistrationBody(body)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown registration body '{body}'", code="invalid_registration_body"
        ) from exc
    number = (number or "").strip().upper()
    if not number:
        raise ValidationError("Registration number required", code="missing_fields")

    try:
        record = verifier.lookup(parsed_body, number)
    except Exception as exc:
        logger.exception("Registration lookup failed for %s", parsed_body.value)
        raise DependencyError("Registration register is unavailable") from exc

    if record is None:
        logger.info("No %s registration found", parsed_body.value)
        return RegistrationCheck(body=parsed_body, number=number, verified=False)

    return RegistrationCheck(
        body=parsed_body,
        number=number,
        verified=record.status == "Registered",
        name=record.name,
        status=record.status,
    )
