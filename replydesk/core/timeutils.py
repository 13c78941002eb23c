"""Timestamp helpers. Everything stored is UTC."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Optional

_DIGITS = re.compile(r"^\d+$")
_MS_THRESHOLD = 1_000_000_000_000


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (as read back from the DB); convert aware ones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _from_epoch(number: float) -> datetime:
    seconds = number / 1000 if number > _MS_THRESHOLD else number
    return datetime.fromtimestamp(seconds, tz=timezone.utc)


def parse_provider_timestamp(value: Any) -> datetime:
    """
    Parse channel timestamps: epoch seconds or milliseconds (number or digit
    string) or ISO-8601. Anything unparseable becomes now.
    """
    if isinstance(value, bool):
        return utcnow()
    if isinstance(value, (int, float)):
        try:
            return _from_epoch(float(value))
        except (OverflowError, OSError, ValueError):
            return utcnow()
    if isinstance(value, str):
        text = value.strip()
        if _DIGITS.match(text):
            try:
                number = int(text)
                if len(text) > 10:
                    return datetime.fromtimestamp(number / 1000, tz=timezone.utc)
                return datetime.fromtimestamp(number, tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                return utcnow()
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return utcnow()
        return ensure_utc(parsed)
    return utcnow()
