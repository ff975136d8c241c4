"""Ports for the external key-value store."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal string key-value store with per-key atomic writes.

    ``compare_and_set`` writes ``value`` only when the stored value still equals
    ``expected`` (``None`` meaning "absent") and reports whether it did; ledger
    updates build an optimistic read-modify-write loop on top of it.
    """

    def get(self, key: str) -> str | None: ...

    def put(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None: ...

    def compare_and_set(self, key: str, value: str, *, expected: str | None) -> bool: ...

    def list(self, prefix: str) -> Sequence[str]: ...

    def delete(self, key: str) -> None: ...
