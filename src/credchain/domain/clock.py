"""Time helpers shared by services and the API layer."""

from datetime import UTC, datetime


def utcnow() -> datetime:
    return datetime.now(UTC)


def to_millis(moment: datetime) -> int:
    """Epoch milliseconds of an aware datetime."""
    return int(moment.timestamp() * 1000)


def from_millis(millis: int | float) -> datetime:
    return datetime.fromtimestamp(millis / 1000, tz=UTC)


def format_iso(moment: datetime | None) -> str | None:
    """
    Render as ``YYYY-MM-DDTHH:MM:SS.sssZ`` in UTC.

    Millisecond precision with a literal Z suffix; this is the timestamp
    form the ledger's stored hashes were computed with.
    """
    if moment is None:
        return None
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=UTC)
    moment = moment.astimezone(UTC)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"
