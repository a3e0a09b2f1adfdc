"""
Sequence key generation.

A sequence key is the current UTC time formatted with microseconds at a
fixed width (see SEQUENCE_KEY_CONFIG), so plain string comparison orders
keys chronologically.

Within one channel (or direct conversation) keys are strictly increasing
in write order: when the clock has not moved past the last key, or went
backwards, the new key is the last key plus one microsecond. Callers must
serialize appends per channel for this to hold.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from chat.constants import SEQUENCE_KEY_CONFIG

ONE_MICROSECOND = timedelta(microseconds=1)


def format_sequence_key(moment: datetime) -> str:
    """Format an aware or UTC-naive datetime as a sequence key."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(SEQUENCE_KEY_CONFIG.FORMAT)


def parse_sequence_key(key: str) -> datetime:
    """Parse a sequence key back into an aware UTC datetime."""
    return datetime.strptime(key, SEQUENCE_KEY_CONFIG.FORMAT).replace(
        tzinfo=timezone.utc
    )


def next_sequence_key(last_key: str | None, now: datetime | None = None) -> str:
    """
    Return the key for a new append.

    Args:
        last_key: Greatest key already stored for the channel, if any
        now: Clock reading to use (defaults to the current UTC time)
    """
    now = now or datetime.now(timezone.utc)
    candidate = format_sequence_key(now)
    if last_key is None or candidate > last_key:
        return candidate
    return format_sequence_key(parse_sequence_key(last_key) + ONE_MICROSECOND)
