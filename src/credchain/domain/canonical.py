"""
Canonical credential form - the exact string a ledger data hash commits to.

When a credential is issued, its descriptive fields are serialized into a
compact JSON object and the keccak-256 hash of that string is stored
on-chain. Verification must rebuild the identical string, so key order,
defaulting and timestamp formatting here are part of the ledger contract:

    {"skillName", "skillLevel", "description", "expiryDate", "notes",
     "issuedBy", "issuedAt", "certificateUrl"}

- ``expiryDate`` and ``notes`` fall back to ``""`` when falsy
- ``certificateUrl`` falls back to ``null`` when falsy
- ``issuedAt`` is the UTC ISO-8601 form of ``issuedDate`` with
  millisecond precision and a ``Z`` suffix
- ``skillName``, ``skillLevel``, ``description`` and ``issuedBy`` are
  copied as-is; when the source field is absent altogether the key is
  left out (an explicit null is kept as ``null``)
"""

import json
from collections.abc import Mapping
from datetime import UTC, date, datetime
from typing import Any

from eth_utils import keccak

from .clock import format_iso, from_millis
from .exceptions import ValidationError

_ABSENT = object()


def canonical_form(fields: Mapping[str, Any]) -> str:
    """
    Build the canonical string for a credential's descriptive fields.

    Args:
        fields: Credential fields as sent by clients (camelCase keys)

    Returns:
        Compact JSON string, byte-identical across calls for equal input

    Raises:
        ValidationError: issuedDate missing or unparsable
    """
    return serialize(canonical_payload(fields))


def serialize(payload: Mapping[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def canonical_payload(fields: Mapping[str, Any]) -> dict[str, Any]:
    """The ordered, defaulted values that ``canonical_form`` serializes."""
    payload: dict[str, Any] = {}
    _copy(payload, "skillName", fields.get("credentialName", _ABSENT))
    _copy(payload, "skillLevel", fields.get("skillLevel", _ABSENT))
    _copy(payload, "description", fields.get("description", _ABSENT))
    payload["expiryDate"] = _normalize(fields.get("expiryDate")) or ""
    payload["notes"] = _normalize(fields.get("additionalNotes")) or ""
    _copy(payload, "issuedBy", fields.get("organizationName", _ABSENT))
    payload["issuedAt"] = issued_at_timestamp(fields.get("issuedDate"))
    payload["certificateUrl"] = _normalize(fields.get("certificateUrl")) or None
    return payload


def data_hash(canonical: str) -> str:
    """keccak-256 of the canonical string, 0x-prefixed hex."""
    return "0x" + keccak(text=canonical).hex()


def issued_at_timestamp(value: Any) -> str:
    """
    Normalize an issue date to the canonical timestamp string.

    Accepts aware or naive datetimes, dates, ISO-8601 strings (date-only
    strings and strings without an offset are read as UTC) and epoch
    milliseconds.
    """
    if isinstance(value, bool) or value is None or value == "":
        raise ValidationError("issuedDate is required", code="INVALID_ISSUED_DATE")

    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day, tzinfo=UTC)
    elif isinstance(value, int | float):
        try:
            moment = from_millis(value)
        except (OverflowError, OSError, ValueError) as exc:
            raise ValidationError(
                f"Invalid issuedDate: {value!r}", code="INVALID_ISSUED_DATE"
            ) from exc
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError as exc:
            raise ValidationError(
                f"Invalid issuedDate: {value!r}", code="INVALID_ISSUED_DATE"
            ) from exc
    else:
        raise ValidationError(f"Invalid issuedDate: {value!r}", code="INVALID_ISSUED_DATE")

    return format_iso(moment)


def _copy(payload: dict[str, Any], key: str, value: Any) -> None:
    if value is not _ABSENT:
        payload[key] = _normalize(value)


def _normalize(value: Any) -> Any:
    # Integral floats serialize without a fractional part (3.0 -> 3)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value
