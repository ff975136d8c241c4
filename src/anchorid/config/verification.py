"""Claim verification settings."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final
from urllib.parse import urlsplit

from .env import optional_env_float, optional_env_str
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

DEFAULT_RESOLVER_BASE_URL: Final[str] = "https://anchorid.net"
DEFAULT_DOH_URL: Final[str] = "https://cloudflare-dns.com/dns-query"
DEFAULT_USER_AGENT: Final[str] = "AnchorID-ClaimVerifier/1.0"

FETCH_TIMEOUT_SECONDS: Final[float] = 2.5
VERIFY_DEADLINE_SECONDS: Final[float] = 5.0
VERIFIED_CACHE_TTL_SECONDS: Final[int] = 15 * 60
FAILED_CACHE_TTL_SECONDS: Final[int] = 2 * 60
MAX_REDIRECTS: Final[int] = 3


def _page_resilience(timeout_seconds: float, user_agent: str) -> ResilienceConfig:
    return ResilienceConfig(
        name="proof-fetch",
        timeout_seconds=timeout_seconds,
        retry=RetryPolicy(),
        default_headers={
            "User-Agent": user_agent,
            "Accept": "text/plain,text/*;q=0.9,*/*;q=0.1",
        },
    )


def _doh_resilience(timeout_seconds: float, user_agent: str) -> ResilienceConfig:
    return ResilienceConfig(
        name="doh",
        timeout_seconds=timeout_seconds,
        retry=RetryPolicy(),
        ratelimit=RateLimit(max_calls=20, per_seconds=1.0),
        default_headers={"User-Agent": user_agent, "Accept": "application/dns-json"},
    )


@dataclass(frozen=True, slots=True)
class VerificationConfig:
    """Everything the verification engine and its fetchers need to know."""

    resolver_base_url: str = DEFAULT_RESOLVER_BASE_URL
    doh_url: str = DEFAULT_DOH_URL
    user_agent: str = DEFAULT_USER_AGENT
    fetch_timeout_seconds: float = FETCH_TIMEOUT_SECONDS
    deadline_seconds: float = VERIFY_DEADLINE_SECONDS
    verified_cache_ttl_seconds: int = VERIFIED_CACHE_TTL_SECONDS
    failed_cache_ttl_seconds: int = FAILED_CACHE_TTL_SECONDS
    max_redirects: int = MAX_REDIRECTS
    resolve_hostnames: bool = True

    @property
    def page_resilience(self) -> ResilienceConfig:
        return _page_resilience(self.fetch_timeout_seconds, self.user_agent)

    @property
    def doh_resilience(self) -> ResilienceConfig:
        return _doh_resilience(self.fetch_timeout_seconds, self.user_agent)

    @property
    def resolver_host(self) -> str:
        host = urlsplit(self.resolver_base_url).hostname
        if not host:
            raise ConfigurationError(f"Invalid resolver base URL: {self.resolver_base_url}")
        return host

    def resolve_url(self, identifier: str) -> str:
        return f"{self.resolver_base_url.rstrip('/')}/resolve/{identifier}"

    def claims_url(self, identifier: str) -> str:
        return f"{self.resolver_base_url.rstrip('/')}/claims/{identifier}"


def get_verification_config() -> VerificationConfig:
    resolver_base_url = optional_env_str("ANCHORID_RESOLVER_BASE_URL", DEFAULT_RESOLVER_BASE_URL)
    doh_url = optional_env_str("ANCHORID_DOH_URL", DEFAULT_DOH_URL)
    timeout = optional_env_float("ANCHORID_FETCH_TIMEOUT_SECONDS", FETCH_TIMEOUT_SECONDS)
    deadline = optional_env_float("ANCHORID_VERIFY_DEADLINE_SECONDS", VERIFY_DEADLINE_SECONDS)

    if not resolver_base_url.startswith("https://"):
        raise ConfigurationError("ANCHORID_RESOLVER_BASE_URL must be an https:// URL")
    if deadline < timeout:
        raise ConfigurationError(
            "ANCHORID_VERIFY_DEADLINE_SECONDS must not be shorter than the fetch timeout"
        )

    return VerificationConfig(
        resolver_base_url=resolver_base_url.rstrip("/"),
        doh_url=doh_url,
        fetch_timeout_seconds=timeout,
        deadline_seconds=deadline,
    )
