from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING

from anchorid.domain.errors import ProofFetchError
from anchorid.domain.ports import FetchedDocument, TxtRecord, TxtRecordSet

if TYPE_CHECKING:
    from uuid import UUID

    from anchorid.domain.model import Claim

IDENTIFIER = "4ff7ed97-b78f-4ae6-9011-5af714ee241c"
OTHER_IDENTIFIER = "0b5c3a2e-9d61-4f0e-8a47-3c2d1e0f9a88"
RESOLVER_HOST = "anchorid.example"
RESOLVER_BASE_URL = f"https://{RESOLVER_HOST}"


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2025, 1, 1, 12, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass
class FakeFetcher:
    """Serves documents by URL; unknown URLs answer like a 404."""

    documents: dict[str, str | Exception] = field(default_factory=dict)
    calls: list[str] = field(default_factory=list)

    async def fetch_text(self, url: str) -> FetchedDocument:
        self.calls.append(url)
        item = self.documents.get(url)
        if item is None:
            raise ProofFetchError("fetch_failed:404", status_code=404)
        if isinstance(item, Exception):
            raise item
        return FetchedDocument(url=url, status_code=200, text=item)


@dataclass
class SlowFetcher:
    delay: float = 1.0

    async def fetch_text(self, url: str) -> FetchedDocument:
        await asyncio.sleep(self.delay)
        return FetchedDocument(url=url, status_code=200, text="")


@dataclass
class FakeTxtLookup:
    """Answers TXT queries from a table of RRs, each a list of character-strings."""

    zones: dict[str, list[list[str]] | Exception] = field(default_factory=dict)
    ttl: int | None = 300
    calls: list[str] = field(default_factory=list)

    async def lookup_txt(self, qname: str) -> TxtRecordSet:
        self.calls.append(qname)
        item = self.zones.get(qname, [])
        if isinstance(item, Exception):
            raise item
        records = tuple(TxtRecord(segments=tuple(rr), ttl=self.ttl) for rr in item)
        return TxtRecordSet(qname=qname, records=records)


@dataclass
class RecordingNotifier:
    events: list[tuple[UUID, Claim]] = field(default_factory=list)

    def claim_status_changed(self, identifier: UUID, claim: Claim) -> None:
        self.events.append((identifier, claim))


def static_resolver(table: dict[str, list[str]]):  # noqa: ANN201
    async def resolve(host: str) -> list[str]:
        return table.get(host, [])

    return resolve


@dataclass
class ServfailTxtLookup(FakeTxtLookup):
    """Answers SERVFAIL for the first ``failures`` queries, then serves ``zones``."""

    failures: int = 1

    async def lookup_txt(self, qname: str) -> TxtRecordSet:
        if len(self.calls) < self.failures:
            self.calls.append(qname)
            raise ProofFetchError("dns_status:2", transient=True)
        return await super().lookup_txt(qname)
