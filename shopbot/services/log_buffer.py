"""In-process log store fed from structlog events."""

from __future__ import annotations

import itertools
from collections import deque
from typing import Any, Iterable, MutableMapping

from shopbot.domain.models import LogEntry
from shopbot.utils.datetime import utc_now

DEFAULT_RETENTION = 5000

# A filter level admits itself and everything more severe.
LEVEL_FILTERS: dict[str, tuple[str, ...]] = {
    "error": ("error",),
    "warn": ("error", "warn"),
    "info": ("error", "warn", "info"),
    "debug": ("error", "warn", "info", "debug"),
    "verbose": ("error", "warn", "info", "debug", "verbose"),
}

_METHOD_LEVELS = {
    "critical": "error",
    "exception": "error",
    "error": "error",
    "warning": "warn",
    "warn": "warn",
    "info": "info",
    "debug": "debug",
}

# Keys that are rendered elsewhere or are not worth keeping as metadata.
_RESERVED_KEYS = {"event", "level", "timestamp", "user_id", "exc_info", "stack_info"}


class LogBuffer:
    """Append-only ring of ``LogEntry`` records.

    Once ``max_entries`` is exceeded the oldest entries are evicted.
    """

    def __init__(self, max_entries: int = DEFAULT_RETENTION, *, detailed: bool = True) -> None:
        self.detailed = detailed
        self._entries: deque[LogEntry] = deque(maxlen=max_entries)
        self._ids = itertools.count(1)

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen or DEFAULT_RETENTION

    def __len__(self) -> int:
        return len(self._entries)

    def append(
        self,
        level: str,
        message: str,
        *,
        user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> LogEntry:
        entry = LogEntry(
            id=next(self._ids),
            level=_METHOD_LEVELS.get(level, level),
            message=message,
            user_id=user_id,
            metadata=metadata if self.detailed and metadata else None,
            timestamp=utc_now(),
        )
        self._entries.append(entry)
        return entry

    def list(self, level: str | None = None, limit: int | None = None) -> list[LogEntry]:
        """Return entries newest first, optionally filtered by severity."""

        entries: Iterable[LogEntry] = reversed(self._entries)
        if level:
            allowed = LEVEL_FILTERS.get(level, LEVEL_FILTERS["info"])
            entries = (entry for entry in entries if entry.level in allowed)
        result = list(entries)
        if limit is not None and limit >= 0:
            result = result[:limit]
        return result

    def clear(self) -> None:
        self._entries.clear()

    def resize(self, max_entries: int) -> None:
        self._entries = deque(self._entries, maxlen=max_entries)


class LogBufferProcessor:
    """structlog processor mirroring each event into a ``LogBuffer``."""

    def __init__(self, buffer: LogBuffer) -> None:
        self.buffer = buffer

    def __call__(
        self, logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        level = event_dict.get("level", method_name)
        user_id = event_dict.get("user_id")
        metadata = {
            key: _jsonable(value)
            for key, value in event_dict.items()
            if key not in _RESERVED_KEYS
        }
        self.buffer.append(
            str(level),
            str(event_dict.get("event", "")),
            user_id=str(user_id) if user_id is not None else None,
            metadata=metadata,
        )
        return event_dict


def _jsonable(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, dict):
        return {str(key): _jsonable(item) for key, item in value.items()}
    return str(value)


_default_buffer = LogBuffer()


def get_log_buffer() -> LogBuffer:
    return _default_buffer


__all__ = ["LEVEL_FILTERS", "LogBuffer", "LogBufferProcessor", "get_log_buffer"]
