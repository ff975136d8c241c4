"""One verifier per claim type.

A verifier turns a claim's proof descriptor into exactly one fetch (or one TXT
lookup) and hands the result to the token matcher. Verifiers only ever see the
guarded fetch port, never an HTTP client, so every page they read has been through
the fetch guard. Fetch and validation problems propagate as exceptions; the engine
turns them into statuses.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, ClassVar

from anchorid.domain.errors import ClaimValidationError, ProofFetchError
from anchorid.domain.model import (
    ClaimType,
    DnsTxtProof,
    GitHubReadmeProof,
    ProfilePageProof,
    WellKnownProof,
)
from anchorid.domain.tokens import any_record_matches, document_contains_proof

if TYPE_CHECKING:
    from collections.abc import Mapping

    from anchorid.domain.model import Claim
    from anchorid.domain.ports import GuardedFetcher, TxtLookup

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProofCheck:
    """Result of a completed fetch: was the expected token there?"""

    found: bool
    source: str
    ttl_seconds: int | None = None


class ClaimVerifier(ABC):
    claim_type: ClassVar[ClaimType]

    def __init__(self, *, resolver_host: str) -> None:
        self.resolver_host = resolver_host

    @abstractmethod
    async def check(self, claim: Claim, identifier: str) -> ProofCheck:
        """Fetch the claim's proof source and look for ``identifier``."""
        ...


class _DocumentVerifier(ClaimVerifier):
    """Shared flow for proofs that live in a fetched document."""

    proof_type: ClassVar[type[WellKnownProof | GitHubReadmeProof | ProfilePageProof]]

    def __init__(self, *, fetcher: GuardedFetcher, resolver_host: str) -> None:
        super().__init__(resolver_host=resolver_host)
        self.fetcher = fetcher

    async def check(self, claim: Claim, identifier: str) -> ProofCheck:
        proof = claim.proof
        if not isinstance(proof, self.proof_type):
            raise ClaimValidationError(
                f"{claim.type} claim carries a {proof.KIND} proof", reason="invalid_proof_kind"
            )
        document = await self.fetcher.fetch_text(proof.url)
        found = document_contains_proof(document.text, identifier, self.resolver_host)
        log.debug("Checked %s for %s: found=%s", document.url, identifier, found)
        return ProofCheck(found=found, source=document.url)


class WebsiteVerifier(_DocumentVerifier):
    claim_type = ClaimType.WEBSITE
    proof_type = WellKnownProof


class GitHubVerifier(_DocumentVerifier):
    claim_type = ClaimType.GITHUB
    proof_type = GitHubReadmeProof


class SocialVerifier(_DocumentVerifier):
    """The whole fetched page counts, not just a bio field."""

    claim_type = ClaimType.SOCIAL
    proof_type = ProfilePageProof


class DnsVerifier(ClaimVerifier):
    """Checks every TXT RR at the proof's qname independently."""

    claim_type = ClaimType.DNS

    def __init__(self, *, lookup: TxtLookup, resolver_host: str) -> None:
        super().__init__(resolver_host=resolver_host)
        self.lookup = lookup

    async def check(self, claim: Claim, identifier: str) -> ProofCheck:
        proof = claim.proof
        if not isinstance(proof, DnsTxtProof):
            raise ClaimValidationError(
                f"dns claim carries a {proof.KIND} proof", reason="invalid_proof_kind"
            )
        record_set = await self.lookup.lookup_txt(proof.qname)
        if not record_set.records:
            raise ProofFetchError("no_txt_records")
        found = any_record_matches(
            (record.segments for record in record_set.records),
            identifier,
            self.resolver_host,
        )
        log.debug(
            "Checked %d TXT records at %s for %s: found=%s",
            len(record_set.records),
            proof.qname,
            identifier,
            found,
        )
        return ProofCheck(found=found, source=proof.qname, ttl_seconds=record_set.min_ttl)


def build_verifiers(
    *,
    fetcher: GuardedFetcher,
    lookup: TxtLookup,
    resolver_host: str,
) -> Mapping[ClaimType, ClaimVerifier]:
    verifiers: list[ClaimVerifier] = [
        WebsiteVerifier(fetcher=fetcher, resolver_host=resolver_host),
        DnsVerifier(lookup=lookup, resolver_host=resolver_host),
        GitHubVerifier(fetcher=fetcher, resolver_host=resolver_host),
        SocialVerifier(fetcher=fetcher, resolver_host=resolver_host),
    ]
    return {verifier.claim_type: verifier for verifier in verifiers}
