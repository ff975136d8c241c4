"""TXT lookups over DNS-over-HTTPS (JSON mode)."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from anchorid.adapters.http_resilience import ResilientClient
from anchorid.domain.errors import ProofFetchError
from anchorid.domain.ports import TxtRecord, TxtRecordSet
from anchorid.domain.tokens import split_txt_data

from .schema import DohResponse

if TYPE_CHECKING:
    from anchorid.config import VerificationConfig

log = getLogger(__name__)


class DohTxtLookup:
    """``TxtLookup`` backed by a public DoH resolver.

    The resolver endpoint is fixed by configuration, never derived from claim
    input, so it does not go through the fetch guard.
    """

    def __init__(self, client: ResilientClient, *, endpoint: str) -> None:
        self.client = client
        self.endpoint = endpoint

    async def lookup_txt(self, qname: str) -> TxtRecordSet:
        try:
            response = await self.client.get(self.endpoint, params={"name": qname, "type": "TXT"})
        except httpx.TimeoutException as exc:
            raise ProofFetchError("timeout") from exc
        except httpx.HTTPError as exc:
            raise ProofFetchError(f"fetch_error:{type(exc).__name__}") from exc

        if not response.is_success:
            raise ProofFetchError(
                f"doh_status:{response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = DohResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise ProofFetchError("doh_invalid_response") from exc

        if payload.status != 0:
            raise ProofFetchError(f"dns_status:{payload.status}", transient=payload.status == 2)

        records = tuple(
            TxtRecord(segments=split_txt_data(answer.data), ttl=answer.ttl)
            for answer in payload.txt_answers
        )
        log.debug("DoH %s: %d TXT records", qname, len(records))
        return TxtRecordSet(qname=qname, records=records)


def build_doh_lookup(
    config: VerificationConfig,
    *,
    client: ResilientClient | None = None,
) -> DohTxtLookup:
    return DohTxtLookup(client or ResilientClient(config.doh_resilience), endpoint=config.doh_url)
