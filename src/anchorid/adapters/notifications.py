"""Claim status notifications rendered to the log."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from anchorid.domain.diagnostics import describe_failure
from anchorid.domain.model import ClaimStatus

if TYPE_CHECKING:
    from uuid import UUID

    from anchorid.domain.model import Claim

log = getLogger(__name__)


class LoggingClaimNotifier:
    """``ClaimNotifier`` that writes the message a holder would be sent."""

    def __init__(self, *, resolver_base_url: str = "https://anchorid.net") -> None:
        self.resolver_base_url = resolver_base_url.rstrip("/")

    def claim_status_changed(self, identifier: UUID, claim: Claim) -> None:
        claims_url = f"{self.resolver_base_url}/claims/{identifier}"
        if claim.status is ClaimStatus.VERIFIED:
            log.info("Claim verified: %s (%s) for %s, see %s", claim.id, claim.url, identifier, claims_url)
            return
        info = describe_failure(claim.fail_reason)
        log.warning(
            "Claim verification failed: %s for %s: %s",
            claim.id,
            identifier,
            info.as_text(base_url=self.resolver_base_url).replace("\n\n", " | "),
        )
