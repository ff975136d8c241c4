"""Domain model for identifiers, profiles and claims."""

from __future__ import annotations

from .claims import (
    Claim,
    DnsTxtProof,
    GitHubReadmeProof,
    ProfilePageProof,
    ProofDescriptor,
    WellKnownProof,
)
from .enums import ClaimStatus, ClaimType, DnsMethod, EntityKind, ProofKind
from .profile import Profile

__all__ = [
    "Claim",
    "ClaimStatus",
    "ClaimType",
    "DnsMethod",
    "DnsTxtProof",
    "EntityKind",
    "GitHubReadmeProof",
    "Profile",
    "ProfilePageProof",
    "ProofDescriptor",
    "ProofKind",
    "WellKnownProof",
]
