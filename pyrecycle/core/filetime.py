from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Optional

# FILETIME: 100ns ticks since 1601-01-01 UTC
FILETIME_EPOCH = datetime(1601, 1, 1)
EPOCH_AS_FILETIME = 116444736000000000
TICKS_PER_SECOND = 10_000_000


def join_size(high: int, low: int) -> int:
    """Assemble a 64-bit value from its two u32 halves."""
    return ((high & 0xFFFFFFFF) << 32) + (low & 0xFFFFFFFF)


def ns_to_filetime(ns: int) -> int:
    return ns // 100 + EPOCH_AS_FILETIME


def filetime_to_datetime(ticks: int) -> Optional[datetime]:
    try:
        return FILETIME_EPOCH + timedelta(microseconds=ticks // 10)
    except OverflowError:
        return None


def datetime_to_filetime(dt: datetime) -> int:
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    delta = dt - FILETIME_EPOCH
    return ((delta.days * 86400 + delta.seconds) * 1_000_000 + delta.microseconds) * 10


def format_filetime(ticks: int) -> str:
    dt = filetime_to_datetime(ticks)
    if dt is None:
        return ""
    return dt.strftime("%Y-%m-%d %H:%M:%S")
