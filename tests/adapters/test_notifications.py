from __future__ import annotations

import logging
from datetime import UTC, datetime
from uuid import UUID

import pytest

from anchorid.adapters.notifications import LoggingClaimNotifier
from anchorid.domain.claims import draft_claim, new_claim
from anchorid.domain.model import ClaimStatus
from tests.helpers.fakes import IDENTIFIER, RESOLVER_BASE_URL

NOW = datetime(2025, 1, 1, tzinfo=UTC)


def test_verified_claim_is_logged_with_claims_page(caplog: pytest.LogCaptureFixture) -> None:
    claim = new_claim(draft_claim("website", "example.com"), now=NOW)
    notifier = LoggingClaimNotifier(resolver_base_url=f"{RESOLVER_BASE_URL}/")

    with caplog.at_level(logging.INFO, logger="anchorid.adapters.notifications"):
        notifier.claim_status_changed(
            UUID(IDENTIFIER), claim.with_outcome(ClaimStatus.VERIFIED, checked_at=NOW)
        )

    (record,) = caplog.records
    assert record.levelno == logging.INFO
    assert f"{RESOLVER_BASE_URL}/claims/{IDENTIFIER}" in record.getMessage()


def test_failed_claim_is_logged_with_hint(caplog: pytest.LogCaptureFixture) -> None:
    claim = new_claim(draft_claim("dns", "example.com"), now=NOW)
    failed = claim.with_outcome(ClaimStatus.FAILED, checked_at=NOW, reason="no_txt_records")

    with caplog.at_level(logging.INFO, logger="anchorid.adapters.notifications"):
        LoggingClaimNotifier(resolver_base_url=RESOLVER_BASE_URL).claim_status_changed(
            UUID(IDENTIFIER), failed
        )

    (record,) = caplog.records
    assert record.levelno == logging.WARNING
    message = record.getMessage()
    assert "No TXT records found" in message
    assert f"Documentation: {RESOLVER_BASE_URL}/proofs#dns" in message
