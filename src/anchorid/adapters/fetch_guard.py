"""Outbound fetch gate for proof verification.

Every URL a verifier dereferences is judged here first: HTTPS only, and the host
must not be, or resolve to, a loopback, link-local (including the cloud metadata
address), private or otherwise non-public address. ``HttpGuardedFetcher`` is the
only ``GuardedFetcher`` implementation; it follows redirects by hand so that each
hop goes through the gate again, and connects to the address the gate checked
rather than letting httpx resolve the host a second time.
"""

from __future__ import annotations

import asyncio
import ipaddress
import socket
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Final
from urllib.parse import urlsplit, urlunsplit

import httpx

from anchorid.domain.errors import FetchBlockedError, ProofFetchError
from anchorid.domain.ports import FetchedDocument

from .http_resilience import ResilientClient

if TYPE_CHECKING:
    from anchorid.config import VerificationConfig

    from .http_resilience import RequestOptions

type HostResolver = Callable[[str], Awaitable[Sequence[str]]]

log = getLogger(__name__)

_BLOCKED_HOSTNAMES: Final = frozenset({"localhost", "localhost.localdomain", "metadata.google.internal"})


@dataclass(frozen=True, slots=True)
class GuardDecision:
    allowed: bool
    reason: str | None = None
    addresses: tuple[str, ...] = ()

    @classmethod
    def allow(cls, addresses: Sequence[str] = ()) -> GuardDecision:
        return cls(allowed=True, addresses=tuple(addresses))

    @classmethod
    def deny(cls, reason: str) -> GuardDecision:
        return cls(allowed=False, reason=reason)


def is_blocked_address(address: ipaddress.IPv4Address | ipaddress.IPv6Address) -> bool:
    if isinstance(address, ipaddress.IPv6Address) and address.ipv4_mapped is not None:
        address = address.ipv4_mapped
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_unspecified
        or address.is_multicast
        or address.is_reserved
        or not address.is_global
    )


def _literal_address(host: str) -> ipaddress.IPv4Address | ipaddress.IPv6Address | None:
    try:
        return ipaddress.ip_address(host.strip("[]"))
    except ValueError:
        return None


async def resolve_host(host: str) -> list[str]:
    loop = asyncio.get_running_loop()
    try:
        infos = await loop.getaddrinfo(host, 443, type=socket.SOCK_STREAM)
    except socket.gaierror:
        return []
    return sorted({str(info[4][0]) for info in infos if info[4]})


class FetchGuard:
    """Allow/deny decisions for proof URLs, made before any request is sent."""

    def __init__(self, *, resolver: HostResolver | None = resolve_host, resolve_hostnames: bool = True):
        self._resolver = resolver
        self.resolve_hostnames = resolve_hostnames and resolver is not None

    def check(self, url: str) -> GuardDecision:
        """Network-free part of the decision: scheme, host name and literal addresses."""

        try:
            parts = urlsplit(url)
            parts.port  # noqa: B018
        except ValueError:
            return GuardDecision.deny("invalid_url")
        if parts.scheme.lower() != "https":
            return GuardDecision.deny("not_https")
        host = (parts.hostname or "").rstrip(".").lower()
        if not host:
            return GuardDecision.deny("missing_host")
        if host in _BLOCKED_HOSTNAMES or host.endswith(".localhost"):
            return GuardDecision.deny("blocked_host")
        address = _literal_address(host)
        if address is not None and is_blocked_address(address):
            return GuardDecision.deny("blocked_address")
        return GuardDecision.allow()

    async def evaluate(self, url: str) -> GuardDecision:
        """Full decision, resolving the host name when ``resolve_hostnames`` is set.

        An allowed decision carries the addresses that were checked. The check only
        holds for those addresses: a host whose records change between this call and
        the connection (DNS rebinding) would otherwise be fetched from wherever it
        points next, so ``HttpGuardedFetcher`` connects to ``addresses[0]`` directly.
        Without host resolution nothing is pinned and httpx resolves on its own.
        """

        decision = self.check(url)
        if not decision.allowed or not self.resolve_hostnames or self._resolver is None:
            return decision

        host = (urlsplit(url).hostname or "").rstrip(".").lower()
        if _literal_address(host) is not None:
            return decision
        addresses = await self._resolver(host)
        if not addresses:
            return GuardDecision.deny("unresolvable_host")
        for value in addresses:
            address = _literal_address(value)
            if address is None or is_blocked_address(address):
                log.warning("Host %s resolves to blocked address %s", host, value)
                return GuardDecision.deny("blocked_address")
        return GuardDecision.allow(addresses)

    async def admit(self, url: str) -> GuardDecision:
        """Raise ``FetchBlockedError`` unless ``url`` may be fetched."""

        decision = await self.evaluate(url)
        if not decision.allowed:
            log.info("Fetch blocked (%s): %s", decision.reason, url)
            raise FetchBlockedError(url, decision.reason or "blocked")
        return decision


def pin_to_address(url: str, address: str) -> tuple[str, RequestOptions]:
    """Rewrite ``url`` to connect to ``address`` while still speaking to its host.

    The original host goes into the ``Host`` header and into the TLS server name,
    so virtual hosting and certificate verification behave as for the plain URL.
    """

    parts = urlsplit(url)
    host = parts.hostname or ""
    literal = f"[{address}]" if ":" in address else address
    netloc = literal if parts.port is None else f"{literal}:{parts.port}"
    authority = host if parts.port is None else f"{host}:{parts.port}"
    pinned = urlunsplit((parts.scheme, netloc, parts.path, parts.query, ""))
    return pinned, {"headers": {"Host": authority}, "extensions": {"sni_hostname": host}}


class HttpGuardedFetcher:
    def __init__(self, client: ResilientClient, guard: FetchGuard, *, max_redirects: int = 3):
        self.client = client
        self.guard = guard
        self.max_redirects = max_redirects

    async def fetch_text(self, url: str) -> FetchedDocument:
        current = url
        for _ in range(self.max_redirects + 1):
            decision = await self.guard.admit(current)
            address = decision.addresses[0] if decision.addresses else None
            response = await self._get(current, address)
            if response.is_redirect:
                location = response.headers.get("location")
                if not location:
                    raise ProofFetchError(
                        f"fetch_failed:{response.status_code}", status_code=response.status_code
                    )
                # relative to the logical URL, not the pinned one
                current = str(httpx.URL(current).join(location))
                log.debug("Following redirect to %s", current)
                continue
            if not response.is_success:
                raise ProofFetchError(
                    f"fetch_failed:{response.status_code}",
                    status_code=response.status_code,
                )
            return FetchedDocument(url=current, status_code=response.status_code, text=response.text)
        raise ProofFetchError("too_many_redirects")

    async def _get(self, url: str, address: str | None) -> httpx.Response:
        try:
            if address is None:
                return await self.client.get(url)
            pinned, options = pin_to_address(url, address)
            return await self.client.get(pinned, **options)
        except httpx.TimeoutException as exc:
            raise ProofFetchError("timeout") from exc
        except httpx.HTTPError as exc:
            raise ProofFetchError(f"fetch_error:{type(exc).__name__}") from exc


def build_guarded_fetcher(
    config: VerificationConfig,
    *,
    client: ResilientClient | None = None,
    resolver: HostResolver | None = resolve_host,
) -> HttpGuardedFetcher:
    guard = FetchGuard(resolver=resolver, resolve_hostnames=config.resolve_hostnames)
    return HttpGuardedFetcher(
        client or ResilientClient(config.page_resilience),
        guard,
        max_redirects=config.max_redirects,
    )
