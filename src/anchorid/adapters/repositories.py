"""Profile and claims-ledger persistence on top of a ``KeyValueStore``.

Keys:

* ``profile:<uuid>`` holds the stored (manual) profile
* ``claims:<uuid>`` holds the claims ledger as a JSON array
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

from anchorid.domain.errors import LedgerConflictError

from .schema import ProfileRecord, dump_ledger, load_ledger
from .translator import (
    claim_from_record,
    claim_to_record,
    profile_from_record,
    profile_to_record,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from uuid import UUID

    from anchorid.domain.model import Claim, Profile
    from anchorid.domain.ports import KeyValueStore

log = getLogger(__name__)

PROFILE_PREFIX: Final[str] = "profile:"
CLAIMS_PREFIX: Final[str] = "claims:"
MAX_LEDGER_ATTEMPTS: Final[int] = 5


def profile_key(identifier: UUID | str) -> str:
    return f"{PROFILE_PREFIX}{str(identifier).lower()}"


def claims_key(identifier: UUID | str) -> str:
    return f"{CLAIMS_PREFIX}{str(identifier).lower()}"


class ProfileRepository:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def get(self, identifier: UUID | str) -> Profile | None:
        raw = self.store.get(profile_key(identifier))
        if raw is None:
            return None
        return profile_from_record(ProfileRecord.model_validate_json(raw))

    def save(self, profile: Profile) -> None:
        self.store.put(profile_key(profile.id), profile_to_record(profile).to_json())

    def delete(self, identifier: UUID | str) -> None:
        self.store.delete(profile_key(identifier))

    def list_ids(self) -> list[str]:
        return [key.removeprefix(PROFILE_PREFIX) for key in self.store.list(PROFILE_PREFIX)]


class ClaimsLedgerRepository:
    """Claims ledger per identifier, written with an optimistic update loop."""

    def __init__(self, store: KeyValueStore, *, max_attempts: int = MAX_LEDGER_ATTEMPTS) -> None:
        self.store = store
        self.max_attempts = max_attempts

    def load(self, identifier: UUID | str) -> list[Claim]:
        raw = self.store.get(claims_key(identifier))
        return self._decode(raw)

    def update[T](
        self,
        identifier: UUID | str,
        mutate: Callable[[list[Claim]], tuple[list[Claim], T]],
    ) -> T:
        """Read, apply ``mutate`` and write back only if nobody wrote in between.

        ``mutate`` must be pure; it is re-run on the fresh ledger after a lost race.
        """

        key = claims_key(identifier)
        for attempt in range(1, self.max_attempts + 1):
            raw = self.store.get(key)
            claims, result = mutate(self._decode(raw))
            encoded = dump_ledger([claim_to_record(claim) for claim in claims])
            if encoded == raw:
                return result
            if self.store.compare_and_set(key, encoded, expected=raw):
                return result
            log.info("Ledger %s changed concurrently, retrying (attempt %d)", key, attempt)
        raise LedgerConflictError(
            f"Could not update claims for {identifier} after {self.max_attempts} attempts"
        )

    def delete(self, identifier: UUID | str) -> None:
        self.store.delete(claims_key(identifier))

    @staticmethod
    def _decode(raw: str | None) -> list[Claim]:
        if raw is None:
            return []
        return [claim_from_record(record) for record in load_ledger(raw)]
