"""Time utilities with timezone-aware defaults."""

from __future__ import annotations

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return current UTC time with tzinfo."""

    return datetime.now(timezone.utc)


def utc_now_naive() -> datetime:
    """Current UTC time without tzinfo, matching the naive DateTime columns."""

    return utc_now().replace(tzinfo=None)


__all__ = ["utc_now", "utc_now_naive"]
