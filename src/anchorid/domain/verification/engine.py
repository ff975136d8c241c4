"""Claim verification engine.

Runs the verifier for a claim under a wall-clock deadline, turns every failure into
a ``failed`` status plus a reason code and caches the decision in the key-value
store so repeated checks do not refetch. A transient fetch failure (DNS SERVFAIL)
gets one more attempt inside the same deadline. The decision cache is keyed by identifier
and claim id and remembers which proof it checked; a changed proof is never answered
from cache. ``recheck=True`` bypasses the cache.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Final

from anchorid.domain.errors import (
    ClaimValidationError,
    FetchBlockedError,
    ProofFetchError,
)
from anchorid.domain.model import ClaimStatus, DnsTxtProof
from anchorid.domain.tokens import is_uuid

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from uuid import UUID

    from anchorid.domain.model import Claim, ClaimType, ProofDescriptor
    from anchorid.domain.ports import KeyValueStore

    from .verifiers import ClaimVerifier, ProofCheck

log = getLogger(__name__)

CACHE_PREFIX: Final[str] = "verifycache"


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class VerificationOutcome:
    status: ClaimStatus
    checked_at: datetime
    reason: str | None = None
    cached: bool = False

    @property
    def verified(self) -> bool:
        return self.status is ClaimStatus.VERIFIED


def cache_key(identifier: str, claim_id: str) -> str:
    return f"{CACHE_PREFIX}:{identifier}:{claim_id}"


def _proof_fingerprint(proof: ProofDescriptor) -> str:
    if isinstance(proof, DnsTxtProof):
        return f"{proof.KIND}:{proof.qname}"
    return f"{proof.KIND}:{proof.url}"


class VerificationEngine:
    def __init__(
        self,
        verifiers: Mapping[ClaimType, ClaimVerifier],
        store: KeyValueStore,
        *,
        deadline_seconds: float = 5.0,
        verified_cache_ttl_seconds: int = 15 * 60,
        failed_cache_ttl_seconds: int = 2 * 60,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.verifiers = verifiers
        self.store = store
        self.deadline_seconds = deadline_seconds
        self.verified_cache_ttl_seconds = verified_cache_ttl_seconds
        self.failed_cache_ttl_seconds = failed_cache_ttl_seconds
        self.clock = clock

    async def verify(
        self,
        identifier: UUID | str,
        claim: Claim,
        *,
        recheck: bool = False,
    ) -> VerificationOutcome:
        """Decide whether ``claim`` currently proves control for ``identifier``.

        Never raises for fetch or proof problems; only a malformed identifier is a
        caller error.
        """

        uuid = str(identifier).strip().lower()
        if not is_uuid(uuid):
            raise ClaimValidationError(f"Invalid identifier: {identifier!r}", reason="invalid_uuid")

        key = cache_key(uuid, claim.id)
        fingerprint = _proof_fingerprint(claim.proof)
        if not recheck:
            cached = self._read_cache(key, fingerprint)
            if cached is not None:
                log.debug("Using cached decision for %s on %s", claim.id, uuid)
                return cached

        outcome, ttl_hint = await self._run(uuid, claim)
        self._write_cache(key, fingerprint, outcome, ttl_hint)
        log.info(
            "Claim %s for %s: %s%s",
            claim.id,
            uuid,
            outcome.status,
            f" ({outcome.reason})" if outcome.reason else "",
        )
        return outcome

    async def _run(self, uuid: str, claim: Claim) -> tuple[VerificationOutcome, int | None]:
        verifier = self.verifiers.get(claim.type)
        if verifier is None:
            return self._failed("unknown_claim_type"), None

        try:
            async with asyncio.timeout(self.deadline_seconds):
                check = await self._check(verifier, claim, uuid)
        except TimeoutError:
            return self._failed("deadline_exceeded"), None
        except FetchBlockedError as exc:
            return self._failed(f"blocked:{exc.reason}"), None
        except ProofFetchError as exc:
            return self._failed(exc.reason), None
        except ClaimValidationError as exc:
            return self._failed(exc.reason), None
        except Exception as exc:
            log.exception("Unexpected error while verifying %s for %s", claim.id, uuid)
            return self._failed(f"verify_error:{exc}"), None

        if not check.found:
            return self._failed("proof_not_found"), None
        return VerificationOutcome(status=ClaimStatus.VERIFIED, checked_at=self.clock()), (
            check.ttl_seconds
        )

    async def _check(self, verifier: ClaimVerifier, claim: Claim, uuid: str) -> ProofCheck:
        try:
            return await verifier.check(claim, uuid)
        except ProofFetchError as exc:
            if not exc.transient:
                raise
            log.info("Transient failure (%s) on %s for %s, retrying", exc.reason, claim.id, uuid)
        return await verifier.check(claim, uuid)

    def _failed(self, reason: str) -> VerificationOutcome:
        return VerificationOutcome(status=ClaimStatus.FAILED, checked_at=self.clock(), reason=reason)

    def _read_cache(self, key: str, fingerprint: str) -> VerificationOutcome | None:
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
            if payload.get("proof") != fingerprint:
                return None
            return VerificationOutcome(
                status=ClaimStatus(payload["status"]),
                checked_at=datetime.fromisoformat(payload["checked_at"]),
                reason=payload.get("reason"),
                cached=True,
            )
        except (ValueError, KeyError, TypeError, AttributeError):
            log.warning("Ignoring unreadable verification cache entry %s", key)
            return None

    def _write_cache(
        self,
        key: str,
        fingerprint: str,
        outcome: VerificationOutcome,
        ttl_hint: int | None,
    ) -> None:
        if outcome.verified:
            ttl = self.verified_cache_ttl_seconds
            if ttl_hint is not None:
                ttl = max(1, min(ttl, ttl_hint))
        else:
            ttl = self.failed_cache_ttl_seconds
        payload = {
            "status": str(outcome.status),
            "checked_at": outcome.checked_at.isoformat(),
            "reason": outcome.reason,
            "proof": fingerprint,
        }
        self.store.put(key, json.dumps(payload), ttl_seconds=ttl)
