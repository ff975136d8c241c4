"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityKind(StrEnum):
    PERSON = "Person"
    ORGANIZATION = "Organization"


class ClaimType(StrEnum):
    WEBSITE = "website"
    DNS = "dns"
    GITHUB = "github"
    SOCIAL = "social"


class ClaimStatus(StrEnum):
    PENDING = "pending"
    VERIFIED = "verified"
    FAILED = "failed"


class DnsMethod(StrEnum):
    """Where the DNS proof record lives: ``_anchorid.<domain>`` or the zone apex."""

    SUBDOMAIN = "subdomain"
    APEX = "apex"


class ProofKind(StrEnum):
    """Discriminator for the per-type proof descriptor carried by a claim."""

    WELL_KNOWN = "well_known"
    DNS_TXT = "dns_txt"
    GITHUB_README = "github_readme"
    PROFILE_PAGE = "profile_page"
