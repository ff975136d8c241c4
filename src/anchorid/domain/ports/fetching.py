"""Ports for retrieving proof material from the outside world."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True, slots=True)
class FetchedDocument:
    """Body of a successfully fetched (2xx) proof document."""

    url: str
    status_code: int
    text: str


@dataclass(frozen=True, slots=True)
class TxtRecord:
    """One TXT resource record, still split into its character-strings."""

    segments: tuple[str, ...]
    ttl: int | None = None


@dataclass(frozen=True, slots=True)
class TxtRecordSet:
    qname: str
    records: tuple[TxtRecord, ...] = field(default_factory=tuple)

    @property
    def min_ttl(self) -> int | None:
        ttls = [record.ttl for record in self.records if record.ttl and record.ttl > 0]
        return min(ttls) if ttls else None


@runtime_checkable
class GuardedFetcher(Protocol):
    """Fetch an HTTPS document after the fetch guard admitted the URL.

    Raises ``FetchBlockedError`` for refused URLs and ``ProofFetchError`` for
    non-2xx answers or transport failures.
    """

    async def fetch_text(self, url: str) -> FetchedDocument: ...


@runtime_checkable
class TxtLookup(Protocol):
    """Resolve the TXT record set of ``qname``; raises ``ProofFetchError`` on failure."""

    async def lookup_txt(self, qname: str) -> TxtRecordSet: ...
