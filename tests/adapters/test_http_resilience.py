from __future__ import annotations

import asyncio
import logging

import httpx
import pytest

from anchorid.adapters.http_resilience import ResilientClient
from anchorid.config import VerificationConfig


def test_get_logs_request_and_status(caplog: pytest.LogCaptureFixture) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="ok")

    client = ResilientClient(
        VerificationConfig().page_resilience, transport=httpx.MockTransport(handler)
    )

    async def get_and_close() -> httpx.Response:
        try:
            return await client.get("https://example.com/proof.txt")
        finally:
            await client.aclose()

    with caplog.at_level(logging.DEBUG, logger="anchorid.adapters.http_resilience"):
        response = asyncio.run(get_and_close())

    assert response.text == "ok"
    (record,) = [r for r in caplog.records if r.name == "anchorid.adapters.http_resilience"]
    assert record.getMessage().endswith("GET https://example.com/proof.txt -> 200")
