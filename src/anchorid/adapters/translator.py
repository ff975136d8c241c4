"""Translate between domain objects and stored records."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from anchorid.domain.model import (
    Claim,
    ClaimStatus,
    ClaimType,
    DnsMethod,
    DnsTxtProof,
    EntityKind,
    GitHubReadmeProof,
    Profile,
    ProfilePageProof,
    WellKnownProof,
)

from .schema import (
    ClaimRecord,
    DnsTxtProofRecord,
    GitHubReadmeProofRecord,
    ProfilePageProofRecord,
    ProfileRecord,
    WellKnownProofRecord,
)

if TYPE_CHECKING:
    from anchorid.domain.model import ProofDescriptor

    from .schema import ProofRecord


def _or_none(values: tuple[str, ...]) -> list[str] | None:
    return list(values) if values else None


def profile_to_record(profile: Profile) -> ProfileRecord:
    return ProfileRecord(
        id=str(profile.id),
        kind=profile.kind.value,
        created_at=profile.created_at,
        modified_at=profile.modified_at,
        name=profile.name,
        alternate_names=_or_none(profile.alternate_names),
        url=profile.url,
        description=profile.description,
        same_as=_or_none(profile.manual_same_as),
        founders=_or_none(profile.founders),
        founding_date=profile.founding_date,
        affiliations=_or_none(profile.affiliations),
    )


def profile_from_record(record: ProfileRecord) -> Profile:
    return Profile(
        id=UUID(record.id),
        kind=EntityKind(record.kind),
        created_at=record.created_at,
        modified_at=record.modified_at,
        name=record.name,
        alternate_names=tuple(record.alternate_names or ()),
        url=record.url,
        description=record.description,
        manual_same_as=tuple(record.same_as or ()),
        founders=tuple(record.founders or ()),
        founding_date=record.founding_date,
        affiliations=tuple(record.affiliations or ()),
    )


def proof_to_record(proof: ProofDescriptor) -> ProofRecord:
    match proof:
        case WellKnownProof(url=url):
            return WellKnownProofRecord(url=url)
        case DnsTxtProof(qname=qname, method=method):
            return DnsTxtProofRecord(qname=qname, method=method.value)
        case GitHubReadmeProof(username=username, url=url):
            return GitHubReadmeProofRecord(username=username, url=url)
        case ProfilePageProof(url=url):
            return ProfilePageProofRecord(url=url)


def proof_from_record(record: ProofRecord) -> ProofDescriptor:
    match record:
        case WellKnownProofRecord():
            return WellKnownProof(url=record.url)
        case DnsTxtProofRecord():
            return DnsTxtProof(qname=record.qname, method=DnsMethod(record.method))
        case GitHubReadmeProofRecord():
            return GitHubReadmeProof(username=record.username, url=record.url)
        case ProfilePageProofRecord():
            return ProfilePageProof(url=record.url)


def claim_to_record(claim: Claim) -> ClaimRecord:
    return ClaimRecord(
        id=claim.id,
        type=claim.type.value,
        target=claim.target,
        url=claim.url,
        proof=proof_to_record(claim.proof),
        status=claim.status.value,
        created_at=claim.created_at,
        updated_at=claim.updated_at,
        last_checked_at=claim.last_checked_at,
        verified_at=claim.verified_at,
        fail_reason=claim.fail_reason,
    )


def claim_from_record(record: ClaimRecord) -> Claim:
    return Claim(
        id=record.id,
        type=ClaimType(record.type),
        target=record.target,
        url=record.url,
        proof=proof_from_record(record.proof),
        status=ClaimStatus(record.status),
        created_at=record.created_at,
        updated_at=record.updated_at,
        last_checked_at=record.last_checked_at,
        verified_at=record.verified_at,
        fail_reason=record.fail_reason,
    )
