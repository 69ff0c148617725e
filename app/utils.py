"""Timestamp helpers."""

import re
from datetime import datetime, timezone
from typing import Any

from app.exceptions import UnparseableTimestampError

# Alertmanager emits nanosecond precision; datetime only keeps microseconds.
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO 8601 timestamp into an aware UTC datetime.

    Naive values are assumed to be UTC. Raises UnparseableTimestampError.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        if not isinstance(value, str) or not value.strip():
            raise UnparseableTimestampError(value)

        ts_str = value.strip()
        if ts_str.endswith(("Z", "z")):
            ts_str = ts_str[:-1] + "+00:00"
        ts_str = _EXCESS_FRACTION.sub(r"\1", ts_str)

        try:
            parsed = datetime.fromisoformat(ts_str)
        except ValueError as e:
            raise UnparseableTimestampError(value) from e

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
