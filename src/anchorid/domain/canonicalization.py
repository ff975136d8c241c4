"""Canonical forms for profile field input.

Every helper here is idempotent: feeding its output back in returns the same value.
Invalid entries are dropped rather than rejected, matching how profile forms are
edited (one bad line should not block the save).
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import Final
from urllib.parse import urlsplit, urlunsplit

from anchorid.domain.tokens import is_uuid

_SPLIT_RE: Final = re.compile(r"\r?\n")
_FOUNDING_DATE_RE: Final = re.compile(r"^(\d{4}-\d{2}-\d{2})")
_DEFAULT_PORTS: Final = frozenset({80, 443})
_WEB_SCHEMES: Final = frozenset({"http", "https"})
_TRAILING_PATH_RE: Final = re.compile(r"[\s/]+$")


def split_multiline_or_comma(value: str) -> list[str]:
    """Accept ``"a,b"`` or multi-line text; newlines split first, then commas."""

    items: list[str] = []
    for line in _SPLIT_RE.split(value):
        items.extend(part.strip() for part in line.split(","))
    return [item for item in items if item]


def _as_items(values: object) -> list[object]:
    if isinstance(values, str):
        return list(split_multiline_or_comma(values)) if values.strip() else []
    if isinstance(values, Iterable) and not isinstance(values, Mapping):
        return list(values)
    return []


def canonicalize_url(value: object) -> str | None:
    """Canonical URL or ``None`` when ``value`` is not a usable web URL.

    Forces ``https``, lowercases the host, drops the fragment, default ports and
    trailing slashes. Whitespace mixed into the trailing slashes goes with them, so
    the result is stable under repeated application. The query string is kept
    apart from surrounding whitespace.
    """

    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parts = urlsplit(value.strip())
        port = parts.port
    except ValueError:
        return None
    if parts.scheme.lower() not in _WEB_SCHEMES:
        return None
    host = parts.hostname
    if not host or any(char.isspace() for char in host):
        return None

    netloc = f"[{host}]" if ":" in host else host
    if port is not None and port not in _DEFAULT_PORTS:
        netloc = f"{netloc}:{port}"
    if parts.username is not None:
        userinfo = parts.username
        if parts.password is not None:
            userinfo = f"{userinfo}:{parts.password}"
        netloc = f"{userinfo}@{netloc}"

    path = _TRAILING_PATH_RE.sub("", parts.path)
    return urlunsplit(("https", netloc, path, parts.query.strip(), ""))


def canonicalize_url_list(values: object) -> list[str]:
    """Canonicalize, dedupe and sort; accepts a list or comma/newline separated text."""

    canonical = {url for url in (canonicalize_url(item) for item in _as_items(values)) if url}
    return sorted(canonical)


def merge_same_as(manual: object, verified_urls: object) -> list[str]:
    """Public ``sameAs``: ``sort(dedupe(manual ∪ verified))`` after canonicalization."""

    return sorted(set(canonicalize_url_list(manual)) | set(canonicalize_url_list(verified_urls)))


def canonicalize_string(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def canonicalize_string_list(values: object) -> tuple[str, ...]:
    """Trim, drop empties and dedupe while keeping order (alternate names are ranked)."""

    seen: dict[str, None] = {}
    for item in _as_items(values):
        if isinstance(item, str) and item.strip():
            seen.setdefault(item.strip(), None)
    return tuple(seen)


def canonicalize_founding_date(value: object) -> str | None:
    """``YYYY-MM-DD`` prefix of an ISO date or datetime string."""

    text = canonicalize_string(value)
    if text is None:
        return None
    match = _FOUNDING_DATE_RE.match(text)
    return match.group(1) if match else None


def canonicalize_entity_refs(values: object, *, resolver_base_url: str) -> tuple[str, ...]:
    """References to other identifiers as resolver URLs.

    Accepts UUIDs, resolver URLs, or ``{"@id": ...}`` objects, singly or as a list or
    comma/newline separated text. Anything that does not name an identifier on this
    resolver is dropped; existence of the target is not checked.
    """

    prefix = f"{resolver_base_url.rstrip('/')}/resolve/"
    refs: dict[str, None] = {}
    for item in _as_items([values] if isinstance(values, Mapping) else values):
        if isinstance(item, Mapping):
            item = item.get("@id")
        if not isinstance(item, str):
            continue
        candidate = item.strip()
        if candidate.lower().startswith(prefix.lower()):
            candidate = candidate[len(prefix) :].strip("/")
        if is_uuid(candidate):
            refs.setdefault(f"{prefix}{candidate.lower()}", None)
    return tuple(refs)


def normalize_identity_url(value: str) -> str:
    """Default bare hosts and ``host/path`` input to ``https://``."""

    stripped = value.strip()
    if re.match(r"^https?://", stripped, flags=re.IGNORECASE):
        return stripped
    return f"https://{stripped}"
