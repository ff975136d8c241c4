"""Claim ledger entries and their per-type proof descriptors."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, ClassVar

from .enums import ClaimStatus, ClaimType, DnsMethod, ProofKind

if TYPE_CHECKING:
    from datetime import datetime


@dataclass(frozen=True, slots=True)
class WellKnownProof:
    """``/.well-known/anchorid.txt`` on the claimed host."""

    KIND: ClassVar[ProofKind] = ProofKind.WELL_KNOWN

    url: str


@dataclass(frozen=True, slots=True)
class DnsTxtProof:
    """TXT record at ``qname``; ``method`` records whether the apex was chosen."""

    KIND: ClassVar[ProofKind] = ProofKind.DNS_TXT

    qname: str
    method: DnsMethod = DnsMethod.SUBDOMAIN


@dataclass(frozen=True, slots=True)
class GitHubReadmeProof:
    """Raw README of the ``<user>/<user>`` profile repository."""

    KIND: ClassVar[ProofKind] = ProofKind.GITHUB_README

    username: str
    url: str


@dataclass(frozen=True, slots=True)
class ProfilePageProof:
    """Any public HTTPS page; the whole document is searched."""

    KIND: ClassVar[ProofKind] = ProofKind.PROFILE_PAGE

    url: str


type ProofDescriptor = WellKnownProof | DnsTxtProof | GitHubReadmeProof | ProfilePageProof


@dataclass(frozen=True, slots=True, kw_only=True)
class Claim:
    """One entry of an identifier's claims ledger.

    ``id`` is ``"<type>:<normalized target>"`` so resubmitting the same target
    collapses onto the existing entry. ``url`` is the public URL that joins the
    profile's ``sameAs`` once the claim is verified. ``fail_reason`` is an internal
    diagnostic code; externally every failure is just ``failed``.
    """

    id: str
    type: ClaimType
    target: str
    url: str
    proof: ProofDescriptor
    created_at: datetime
    updated_at: datetime
    status: ClaimStatus = ClaimStatus.PENDING
    last_checked_at: datetime | None = None
    verified_at: datetime | None = None
    fail_reason: str | None = None

    @property
    def is_verified(self) -> bool:
        return self.status is ClaimStatus.VERIFIED

    def with_outcome(
        self,
        status: ClaimStatus,
        *,
        checked_at: datetime,
        reason: str | None = None,
    ) -> Claim:
        if status is ClaimStatus.VERIFIED:
            return replace(
                self,
                status=status,
                last_checked_at=checked_at,
                updated_at=checked_at,
                verified_at=checked_at,
                fail_reason=None,
            )
        return replace(
            self,
            status=status,
            last_checked_at=checked_at,
            updated_at=checked_at,
            fail_reason=reason,
        )
