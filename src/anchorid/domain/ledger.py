"""Pure state transitions on an identifier's claims ledger.

The ledger is the current state of every claim, kept in submission order. Storage
adapters load it, run one of these functions and write the result back with a
compare-and-set, so these functions never touch I/O and always return new lists.
"""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING

from anchorid.domain.claims import new_claim
from anchorid.domain.errors import ClaimNotFoundError
from anchorid.domain.model import Claim, ClaimStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from datetime import datetime

    from anchorid.domain.claims import ClaimDraft


def find_claim(claims: Sequence[Claim], claim_id: str) -> Claim:
    for claim in claims:
        if claim.id == claim_id:
            return claim
    raise ClaimNotFoundError(f"Claim not found: {claim_id}")


def upsert_claim(
    claims: Sequence[Claim],
    draft: ClaimDraft,
    *,
    now: datetime,
) -> tuple[list[Claim], Claim]:
    """Add a pending claim, or refresh the entry that already has ``draft.id``.

    Resubmitting an unchanged proof leaves the entry as it is. A changed proof
    descriptor (e.g. switching a DNS claim to the apex) keeps ``created_at`` but puts
    the claim back to ``pending`` with no check history until it is verified again.
    """

    updated = list(claims)
    for index, existing in enumerate(updated):
        if existing.id != draft.id:
            continue
        if existing.proof == draft.proof and existing.url == draft.url:
            return updated, existing
        refreshed = replace(
            existing,
            target=draft.target,
            url=draft.url,
            proof=draft.proof,
            status=ClaimStatus.PENDING,
            updated_at=now,
            last_checked_at=None,
            verified_at=None,
            fail_reason=None,
        )
        updated[index] = refreshed
        return updated, refreshed

    claim = new_claim(draft, now=now)
    updated.append(claim)
    return updated, claim


def replace_claim(claims: Sequence[Claim], claim: Claim) -> list[Claim]:
    """Swap in ``claim`` for the entry with the same id, keeping ledger order."""

    updated = list(claims)
    for index, existing in enumerate(updated):
        if existing.id == claim.id:
            updated[index] = claim
            return updated
    raise ClaimNotFoundError(f"Claim not found: {claim.id}")


def verified_urls(claims: Sequence[Claim]) -> list[str]:
    return [claim.url for claim in claims if claim.status is ClaimStatus.VERIFIED]
