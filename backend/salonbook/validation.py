from __future__ import annotations

from dataclasses import dataclass
from typing import Any


class ValidationError(ValueError):
    """400-level input problem."""


class SettlementWarning(Exception):
    """
    A settlement side effect could not be applied.

    Internal only: raised inside the package/ledger/no-show components and
    caught at their boundary, where it is logged and turned into a no-op.
    Never surfaced to API callers.
    """


class PackageInfoError(SettlementWarning):
    """Appointment.package_info is present but cannot be decoded."""


# Marks "field absent" where None is a meaningful value
UNSET = object()


@dataclass(frozen=True)
class StatusUpdate:
    """Normalized body of a status-change request."""
    status: str | None
    notes: Any = UNSET


def parse_status_update(payload: Any) -> StatusUpdate:
    """
    Validate the JSON body of a status PATCH: {"status": str, "notes"?: str|null}.

    Status membership in the allowed set is NOT checked here; the state
    machine owns that rule. This only rejects structurally bad input.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    status = payload.get("status")
    if status is not None and not isinstance(status, str):
        raise ValidationError("status must be a string")
    if "notes" not in payload:
        return StatusUpdate(status=status)

    notes = payload["notes"]
    if notes is not None and not isinstance(notes, str):
        raise ValidationError("notes must be a string")
    return StatusUpdate(status=status, notes=notes)


def require_phone(payload: Any) -> str:
    """Extract a non-blank phone string from a JSON body."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    phone = payload.get("phone")
    if not isinstance(phone, str) or not phone.strip():
        raise ValidationError("phone is required")
    return phone.strip()
