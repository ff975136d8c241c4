"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import FetchedDocument, GuardedFetcher, TxtLookup, TxtRecord, TxtRecordSet
from .notifications import ClaimNotifier
from .storage import KeyValueStore

__all__ = [
    "ClaimNotifier",
    "FetchedDocument",
    "GuardedFetcher",
    "KeyValueStore",
    "TxtLookup",
    "TxtRecord",
    "TxtRecordSet",
]
