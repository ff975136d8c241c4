"""Proof token normalization and matching.

A proof is any of these forms for the identifier's UUID:

* ``anchorid=urn:uuid:<uuid>`` (canonical, what we tell people to publish)
* ``anchorid=<uuid>``
* ``urn:uuid:<uuid>``
* ``https://<resolver-host>/resolve/<uuid>``
* the bare ``<uuid>``

Raw values are trimmed, unwrapped from one pair of double quotes and have their
whitespace collapsed before the forms are tried. DNS TXT character-strings are
joined in the order received first: resolvers and DNS hosting panels split long
values at 255 bytes, the publisher did not. UUIDs compare case-insensitively and the
``anchorid=`` prefix is accepted in any case.
"""

from __future__ import annotations

import re
from functools import lru_cache
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable

UUID_RE: Final = re.compile(
    r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
)
_WHITESPACE_RE: Final = re.compile(r"\s+")
_QUOTED_STRING_RE: Final = re.compile(r'"((?:[^"\\]|\\.)*)"')
_ESCAPE_RE: Final = re.compile(r"\\(\d{3}|.)")

PREFIX: Final[str] = "anchorid="
URN_PREFIX: Final[str] = "urn:uuid:"
CANONICAL_PREFIX: Final[str] = PREFIX + URN_PREFIX


def is_uuid(value: str) -> bool:
    """Strict 8-4-4-4-12 hex check, case-insensitive."""

    return bool(UUID_RE.match(value))


def canonical_token(uuid: str) -> str:
    return f"{CANONICAL_PREFIX}{uuid.lower()}"


def expected_tokens(uuid: str, resolver_host: str) -> frozenset[str]:
    """Every normalized value that proves control for ``uuid``."""

    lowered = uuid.lower()
    return frozenset(
        {
            canonical_token(lowered),
            f"{PREFIX}{lowered}",
            f"{URN_PREFIX}{lowered}",
            f"https://{resolver_host.lower()}/resolve/{lowered}",
            lowered,
        }
    )


def _strip_wrapping_quotes(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def normalize_value(raw: str) -> str:
    """Trim, unquote once, collapse whitespace and lowercase the ``anchorid=`` prefix."""

    value = _strip_wrapping_quotes(raw.strip()).strip()
    value = _WHITESPACE_RE.sub(" ", value)
    if value[: len(PREFIX)].lower() == PREFIX:
        value = PREFIX + value[len(PREFIX) :]
    return value


def join_segments(segments: Iterable[str]) -> str:
    """Reassemble one TXT record from its character-strings, in order."""

    return "".join(_strip_wrapping_quotes(segment.strip()) for segment in segments)


def normalize_segments(segments: Iterable[str]) -> str:
    return normalize_value(join_segments(segments))


def _unescape(match: re.Match[str]) -> str:
    escaped = match.group(1)
    if escaped.isdigit():
        return chr(int(escaped))
    return escaped


def split_txt_data(data: str) -> tuple[str, ...]:
    """Split DoH JSON TXT ``data`` into its character-strings.

    Resolvers return either the presentation form (``"part one" "part two"``, with
    ``\\"`` and ``\\DDD`` escapes) or a single unquoted string. Unquoted data is
    one segment.
    """

    stripped = data.strip()
    if not stripped.startswith('"'):
        return (stripped,)
    parts = _QUOTED_STRING_RE.findall(stripped)
    if not parts:
        return (stripped,)
    return tuple(_ESCAPE_RE.sub(_unescape, part) for part in parts)


def extract_uuid(value: str, resolver_host: str) -> str | None:
    """Return the lowercased UUID a normalized value carries, if it is a valid proof form."""

    resolve_prefix = f"https://{resolver_host.lower()}/resolve/"
    if value.startswith(CANONICAL_PREFIX):
        candidate = value[len(CANONICAL_PREFIX) :]
    elif value.startswith(PREFIX):
        candidate = value[len(PREFIX) :]
    elif value.startswith(URN_PREFIX):
        candidate = value[len(URN_PREFIX) :]
    elif value[: len(resolve_prefix)].lower() == resolve_prefix:
        candidate = value[len(resolve_prefix) :].removesuffix("/")
    else:
        candidate = value

    candidate = candidate.strip()
    if is_uuid(candidate):
        return candidate.lower()
    return None


def value_matches(raw: str, expected_uuid: str, resolver_host: str) -> bool:
    """Whole-value match: does ``raw`` consist of exactly one proof token for the UUID?"""

    found = extract_uuid(normalize_value(raw), resolver_host)
    return found is not None and found == expected_uuid.lower()


def record_matches(segments: Iterable[str], expected_uuid: str, resolver_host: str) -> bool:
    return value_matches(join_segments(segments), expected_uuid, resolver_host)


def any_record_matches(
    records: Iterable[Iterable[str]],
    expected_uuid: str,
    resolver_host: str,
) -> bool:
    """Each TXT RR is checked on its own; one matching RR is enough."""

    return any(record_matches(segments, expected_uuid, resolver_host) for segments in records)


@lru_cache(maxsize=32)
def _embedded_token_re(resolver_host: str) -> re.Pattern[str]:
    host = re.escape(resolver_host.lower())
    return re.compile(
        rf"(?:(?i:anchorid=)urn:uuid:|(?i:anchorid=)|urn:uuid:|(?i:https://{host}/resolve/))"
        r"(?P<uuid>[0-9A-Fa-f-]{36})(?![0-9A-Fa-f-])"
    )


def document_contains_proof(text: str, expected_uuid: str, resolver_host: str) -> bool:
    """Search a whole document (proof file, README, profile page) for a proof.

    A file holding just the token (possibly quoted) matches as a whole or line by
    line; inside larger documents only the prefixed forms and resolver URLs count,
    since a bare UUID in running text says nothing about who published it.
    """

    expected = expected_uuid.lower()
    if value_matches(text, expected, resolver_host):
        return True
    if any(value_matches(line, expected, resolver_host) for line in text.splitlines()):
        return True
    for match in _embedded_token_re(resolver_host).finditer(text):
        candidate = match.group("uuid")
        if is_uuid(candidate) and candidate.lower() == expected:
            return True
    return False
