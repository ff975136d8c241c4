"""Process-local key-value store, used by tests and the ``memory`` backend."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class _Entry:
    value: str
    expires_at: datetime | None = None

    def expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at <= now


class InMemoryKeyValueStore:
    def __init__(self, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _live(self, key: str) -> _Entry | None:
        entry = self._entries.get(key)
        if entry is not None and entry.expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> str | None:
        with self._lock:
            entry = self._live(key)
            return entry.value if entry else None

    def put(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None:
        expires_at = self._clock() + timedelta(seconds=ttl_seconds) if ttl_seconds else None
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=expires_at)

    def compare_and_set(self, key: str, value: str, *, expected: str | None) -> bool:
        with self._lock:
            entry = self._live(key)
            current = entry.value if entry else None
            if current != expected:
                return False
            self._entries[key] = _Entry(value=value)
            return True

    def list(self, prefix: str) -> list[str]:
        with self._lock:
            keys = [key for key in self._entries if key.startswith(prefix)]
            return sorted(key for key in keys if self._live(key) is not None)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
