"""Turning claim submissions into ledger entries.

Each claim type has one way of deriving its fetch target from what the holder typed
in, and the normalized target doubles as the claim id so that resubmitting the same
resource updates the existing entry instead of adding a duplicate.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final
from urllib.parse import urlsplit, urlunsplit

import httpx

from anchorid.domain.canonicalization import normalize_identity_url
from anchorid.domain.errors import ClaimValidationError
from anchorid.domain.model import (
    Claim,
    ClaimType,
    DnsMethod,
    DnsTxtProof,
    GitHubReadmeProof,
    ProfilePageProof,
    ProofDescriptor,
    WellKnownProof,
)

if TYPE_CHECKING:
    from datetime import datetime

WELL_KNOWN_PATH: Final[str] = "/.well-known/anchorid.txt"
DNS_LABEL: Final[str] = "_anchorid"
GITHUB_HOSTS: Final = frozenset({"github.com", "www.github.com"})
GITHUB_RAW_BASE: Final[str] = "https://raw.githubusercontent.com"

_HOSTNAME_RE: Final = re.compile(r"^(?=.{1,253}$)[a-z0-9_](?:[a-z0-9_-]{0,62})(?:\.[a-z0-9_-]{1,63})*$")
_GITHUB_USER_RE: Final = re.compile(r"^[a-z0-9](?:[a-z0-9-]{0,38})$")
_FEDIVERSE_HANDLE_RE: Final = re.compile(r"^@?([^@\s/]+)@([^@\s/]+)$")


@dataclass(frozen=True, slots=True)
class ClaimDraft:
    """Normalized claim input before it is placed in a ledger."""

    id: str
    type: ClaimType
    target: str
    url: str
    proof: ProofDescriptor


def parse_claim_type(value: str) -> ClaimType:
    try:
        return ClaimType(value.strip().lower())
    except ValueError as exc:
        raise ClaimValidationError(
            f"Unsupported claim type: {value!r}", reason="unknown_claim_type"
        ) from exc


def ascii_host(host: str) -> str:
    """Lowercased, punycode form of ``host`` (IDN labels are never compared as unicode)."""

    candidate = host.strip().rstrip(".").lower()
    if not candidate:
        raise ClaimValidationError("Missing host name")
    try:
        encoded = httpx.URL(f"https://{candidate}/").raw_host.decode("ascii")
    except (httpx.InvalidURL, UnicodeError) as exc:
        raise ClaimValidationError(f"Invalid host name: {host!r}") from exc
    if not _HOSTNAME_RE.match(encoded):
        raise ClaimValidationError(f"Invalid host name: {host!r}")
    return encoded


def _host_of(target: str) -> str:
    try:
        parts = urlsplit(normalize_identity_url(target))
    except ValueError as exc:
        raise ClaimValidationError(f"Invalid target: {target!r}") from exc
    if not parts.hostname:
        raise ClaimValidationError(f"Invalid target: {target!r}")
    return ascii_host(parts.hostname)


def parse_fediverse_handle(value: str) -> str | None:
    """``@user@instance`` or ``user@instance`` to ``https://instance/@user``."""

    match = _FEDIVERSE_HANDLE_RE.match(value.strip())
    if match is None:
        return None
    username, instance = match.groups()
    return f"https://{ascii_host(instance)}/@{username}"


def draft_website_claim(target: str) -> ClaimDraft:
    host = _host_of(target)
    return ClaimDraft(
        id=f"{ClaimType.WEBSITE}:{host}",
        type=ClaimType.WEBSITE,
        target=target.strip(),
        url=f"https://{host}",
        proof=WellKnownProof(url=f"https://{host}{WELL_KNOWN_PATH}"),
    )


def dns_qname(domain: str, method: DnsMethod) -> str:
    if method is DnsMethod.APEX:
        return domain
    return f"{DNS_LABEL}.{domain}"


def draft_dns_claim(target: str, method: DnsMethod = DnsMethod.SUBDOMAIN) -> ClaimDraft:
    domain = _host_of(target)
    if domain.startswith(f"{DNS_LABEL}."):
        domain = domain[len(DNS_LABEL) + 1 :]
    qname = dns_qname(domain, method)
    return ClaimDraft(
        id=f"{ClaimType.DNS}:{qname}",
        type=ClaimType.DNS,
        target=target.strip(),
        url=f"https://{domain}",
        proof=DnsTxtProof(qname=qname, method=method),
    )


def github_username(target: str) -> str:
    """Username from a GitHub profile URL; case and trailing slashes do not matter."""

    try:
        parts = urlsplit(normalize_identity_url(target))
    except ValueError as exc:
        raise ClaimValidationError(f"Invalid GitHub profile URL: {target!r}") from exc
    if (parts.hostname or "") not in GITHUB_HOSTS:
        raise ClaimValidationError(f"Not a GitHub profile URL: {target!r}")
    segments = [segment for segment in parts.path.split("/") if segment]
    if not segments:
        raise ClaimValidationError(f"GitHub profile URL has no username: {target!r}")
    username = segments[0].lower()
    if not _GITHUB_USER_RE.match(username):
        raise ClaimValidationError(f"Invalid GitHub username: {segments[0]!r}")
    return username


def draft_github_claim(target: str) -> ClaimDraft:
    username = github_username(target)
    return ClaimDraft(
        id=f"{ClaimType.GITHUB}:{username}",
        type=ClaimType.GITHUB,
        target=target.strip(),
        url=f"https://github.com/{username}",
        proof=GitHubReadmeProof(
            username=username,
            url=f"{GITHUB_RAW_BASE}/{username}/{username}/main/README.md",
        ),
    )


def social_page_url(target: str) -> str:
    """Fetch URL for a social claim: an HTTPS page URL or a fediverse handle."""

    stripped = target.strip()
    if not stripped:
        raise ClaimValidationError("Missing social profile URL or handle")

    if "://" not in stripped:
        if "@" in stripped and "/" not in stripped:
            handle_url = parse_fediverse_handle(stripped)
            if handle_url is None:
                raise ClaimValidationError(
                    f"Handle must include an instance, e.g. @user@instance: {stripped!r}",
                    reason="invalid_handle",
                )
            return handle_url
        stripped = normalize_identity_url(stripped)

    try:
        parts = urlsplit(stripped)
    except ValueError as exc:
        raise ClaimValidationError(f"Invalid profile URL: {target!r}") from exc
    if parts.scheme.lower() != "https":
        raise ClaimValidationError(f"Profile URL must use https: {target!r}", reason="must_be_https")
    if not parts.hostname:
        raise ClaimValidationError(f"Invalid profile URL: {target!r}")
    host = ascii_host(parts.hostname)
    netloc = host if parts.port in (None, 443) else f"{host}:{parts.port}"
    return urlunsplit(("https", netloc, parts.path, parts.query, ""))


def draft_social_claim(target: str) -> ClaimDraft:
    url = social_page_url(target)
    parts = urlsplit(url)
    return ClaimDraft(
        id=f"{ClaimType.SOCIAL}:{parts.netloc}{parts.path.rstrip('/')}",
        type=ClaimType.SOCIAL,
        target=target.strip(),
        url=url,
        proof=ProfilePageProof(url=url),
    )


def draft_claim(
    claim_type: ClaimType | str,
    target: str,
    *,
    dns_method: DnsMethod | str | None = None,
) -> ClaimDraft:
    """Validate submission input and derive id, public URL and proof descriptor."""

    kind = claim_type if isinstance(claim_type, ClaimType) else parse_claim_type(claim_type)
    if not target or not target.strip():
        raise ClaimValidationError("Missing claim target")

    if kind is ClaimType.WEBSITE:
        return draft_website_claim(target)
    if kind is ClaimType.DNS:
        try:
            method = DnsMethod(dns_method) if dns_method is not None else DnsMethod.SUBDOMAIN
        except ValueError as exc:
            raise ClaimValidationError(f"Unsupported DNS method: {dns_method!r}") from exc
        return draft_dns_claim(target, method)
    if kind is ClaimType.GITHUB:
        return draft_github_claim(target)
    return draft_social_claim(target)


def new_claim(draft: ClaimDraft, *, now: datetime) -> Claim:
    return Claim(
        id=draft.id,
        type=draft.type,
        target=draft.target,
        url=draft.url,
        proof=draft.proof,
        created_at=now,
        updated_at=now,
    )
