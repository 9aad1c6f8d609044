"""Timestamp normalization.

Sources disagree on representation: the history log stores epoch
milliseconds, transcripts and indexes store ISO-8601 strings with either a
``Z`` suffix or an offset.  Everything is normalized at ingestion to one
canonical UTC string, ``YYYY-MM-DDTHH:MM:SS.mmmZ``, which sorts lexically in
chronological order.
"""

from __future__ import annotations

from datetime import UTC, datetime

CANONICAL_FORMAT = "%Y-%m-%dT%H:%M:%S"


def parse_timestamp(value: object) -> datetime | None:
    """Parse epoch-millis or an ISO-8601 string into an aware UTC datetime.

    Naive ISO strings are read as UTC.  Booleans, empty strings and anything
    unparseable return None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=UTC)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=UTC)
        return parsed.astimezone(UTC)
    return None


def format_timestamp(moment: datetime) -> str:
    """Render an aware datetime in the canonical millisecond UTC form."""
    moment = moment.astimezone(UTC)
    return f"{moment.strftime(CANONICAL_FORMAT)}.{moment.microsecond // 1000:03d}Z"


def normalize_timestamp(value: object) -> str | None:
    """Parse ``value`` and return its canonical string, or None."""
    parsed = parse_timestamp(value)
    return format_timestamp(parsed) if parsed is not None else None


def minutes_between(start: object, end: object) -> int | None:
    """Whole minutes from ``start`` to ``end``, rounded half up.

    Either bound may be epoch-millis, an ISO string or a datetime.  Returns
    None when either bound is missing or unparseable.
    """
    first = start if isinstance(start, datetime) else parse_timestamp(start)
    last = end if isinstance(end, datetime) else parse_timestamp(end)
    if first is None or last is None:
        return None
    seconds = (last - first).total_seconds()
    return _round_half_up(seconds / 60)


def _round_half_up(value: float) -> int:
    # Math.round semantics: halves round toward +infinity
    whole = int(value // 1)
    return whole + 1 if value - whole >= 0.5 else whole
