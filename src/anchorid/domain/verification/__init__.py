"""Claim verification: per-type verifiers and the engine that runs them."""

from __future__ import annotations

from .engine import VerificationEngine, VerificationOutcome, cache_key
from .verifiers import (
    ClaimVerifier,
    DnsVerifier,
    GitHubVerifier,
    ProofCheck,
    SocialVerifier,
    WebsiteVerifier,
    build_verifiers,
)

__all__ = [
    "ClaimVerifier",
    "DnsVerifier",
    "GitHubVerifier",
    "ProofCheck",
    "SocialVerifier",
    "VerificationEngine",
    "VerificationOutcome",
    "WebsiteVerifier",
    "build_verifiers",
    "cache_key",
]
