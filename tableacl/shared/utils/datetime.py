"""
UTC datetime utilities for consistent timezone handling.

All timestamps written to the resource store are epoch milliseconds
taken from these helpers; never call time.time() or datetime.now() directly.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Return the current UTC datetime with timezone info.

    Returns:
        Timezone-aware datetime in UTC
    """
    return datetime.now(UTC)


def utc_now_ms() -> int:
    """
    Return the current time as a Unix timestamp in milliseconds.

    Used as the write timestamp for every resource put.

    Returns:
        Milliseconds since epoch
    """
    return int(utc_now().timestamp() * 1000)
