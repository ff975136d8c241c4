"""Profile canonicalization, change detection and the public merged view.

``build_profile`` is the only way a profile gets written: it applies a patch over the
stored state field by field, canonicalizes everything it touches and reports whether
the result differs structurally from what was stored. ``modified_at`` only moves when
it does, so saving an unchanged form is a true no-op.

The public ``sameAs`` is ``manual ∪ verified``; it is recomputed on every read and
never written back, so revoking a claim removes its link without touching the
profile.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from logging import getLogger
from typing import TYPE_CHECKING, Final
from urllib.parse import urlsplit

from anchorid.domain.canonicalization import (
    canonicalize_entity_refs,
    canonicalize_founding_date,
    canonicalize_string,
    canonicalize_string_list,
    canonicalize_url,
    canonicalize_url_list,
    merge_same_as,
)
from anchorid.domain.errors import ProfileValidationError
from anchorid.domain.model import EntityKind, Profile

if TYPE_CHECKING:
    from uuid import UUID

log = getLogger(__name__)

DEFAULT_RESOLVER_BASE_URL: Final[str] = "https://anchorid.net"

# JSON-LD spellings accepted alongside the attribute names.
_FIELD_ALIASES: Final[Mapping[str, str]] = {
    "@type": "kind",
    "type": "kind",
    "alternateName": "alternate_names",
    "sameAs": "same_as",
    "founder": "founders",
    "foundingDate": "founding_date",
    "affiliation": "affiliations",
}
PATCH_FIELDS: Final = frozenset(
    {
        "kind",
        "name",
        "alternate_names",
        "url",
        "description",
        "same_as",
        "founders",
        "founding_date",
        "affiliations",
    }
)
_ORGANIZATION_ONLY: Final = frozenset({"founders", "founding_date"})
_PERSON_ONLY: Final = frozenset({"affiliations"})


def utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True, slots=True)
class BuildOptions:
    resolver_base_url: str = DEFAULT_RESOLVER_BASE_URL
    now: Callable[[], datetime] = utcnow
    bump_on_noop: bool = False


@dataclass(frozen=True, slots=True)
class BuildResult:
    profile: Profile
    changed: bool
    effective_same_as: tuple[str, ...] = field(default_factory=tuple)


def normalize_patch(patch: Mapping[str, object]) -> dict[str, object]:
    """Map JSON-LD keys onto attribute names and reject anything unknown."""

    normalized: dict[str, object] = {}
    unknown: list[str] = []
    for key, value in patch.items():
        name = _FIELD_ALIASES.get(key, key)
        if name not in PATCH_FIELDS:
            unknown.append(key)
            continue
        normalized[name] = value
    if unknown:
        raise ProfileValidationError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
    return normalized


def parse_kind(value: object) -> EntityKind:
    if isinstance(value, EntityKind):
        return value
    if isinstance(value, str):
        for kind in EntityKind:
            if value.strip().lower() == kind.value.lower():
                return kind
    raise ProfileValidationError(f"Unsupported entity type: {value!r}")


def _resolve_kind(stored: Profile | None, patch: Mapping[str, object]) -> EntityKind:
    requested = parse_kind(patch["kind"]) if "kind" in patch else None
    if stored is None:
        return requested or EntityKind.PERSON
    if requested is not None and requested is not stored.kind:
        raise ProfileValidationError(
            f"Entity type is fixed at creation ({stored.kind}), cannot change to {requested}"
        )
    return stored.kind


def _sanitize_manual_same_as(urls: Iterable[str], resolver_base_url: str) -> tuple[str, ...]:
    """Drop links back to the resolver itself; they are implied by ``@id``."""

    resolver_host = urlsplit(resolver_base_url).hostname
    return tuple(url for url in urls if urlsplit(url).hostname != resolver_host)


def build_profile(
    identifier: UUID,
    stored: Profile | None,
    patch: Mapping[str, object] | None,
    verified_urls: Iterable[str],
    options: BuildOptions | None = None,
) -> BuildResult:
    """Apply ``patch`` over ``stored`` and compute the merged public ``sameAs``.

    ``patch=None`` is a read build: stored timestamps are kept and ``changed`` is
    always ``False``. In a patch, a key that is present replaces the stored field (a
    value that canonicalizes to nothing clears it); absent keys are left untouched.
    """

    opts = options or BuildOptions()
    now = opts.now()
    fields = normalize_patch(patch) if patch is not None else {}
    kind = _resolve_kind(stored, fields)

    inapplicable = (_PERSON_ONLY if kind is EntityKind.ORGANIZATION else _ORGANIZATION_ONLY) & set(
        fields
    )
    if inapplicable:
        log.debug("Ignoring %s fields not used by %s profiles", sorted(inapplicable), kind)

    def pick[T](name: str, canonicalize: Callable[[object], T], stored_value: T) -> T:
        return canonicalize(fields[name]) if name in fields else stored_value

    name = pick("name", canonicalize_string, stored.name if stored else None)
    alternate_names = pick(
        "alternate_names", canonicalize_string_list, stored.alternate_names if stored else ()
    )
    url = pick("url", canonicalize_url, stored.url if stored else None)
    description = pick("description", canonicalize_string, stored.description if stored else None)
    manual_same_as = pick(
        "same_as",
        lambda value: _sanitize_manual_same_as(
            canonicalize_url_list(value), opts.resolver_base_url
        ),
        stored.manual_same_as if stored else (),
    )

    def refs(value: object) -> tuple[str, ...]:
        return canonicalize_entity_refs(value, resolver_base_url=opts.resolver_base_url)

    founders: tuple[str, ...] = ()
    founding_date: str | None = None
    affiliations: tuple[str, ...] = ()
    if kind is EntityKind.ORGANIZATION:
        founders = pick("founders", refs, stored.founders if stored else ())
        founding_date = pick(
            "founding_date", canonicalize_founding_date, stored.founding_date if stored else None
        )
    else:
        affiliations = pick("affiliations", refs, stored.affiliations if stored else ())

    candidate = Profile(
        id=identifier,
        kind=kind,
        created_at=stored.created_at if stored else now,
        modified_at=stored.modified_at if stored else now,
        name=name,
        alternate_names=alternate_names,
        url=url,
        description=description,
        manual_same_as=manual_same_as,
        founders=founders,
        founding_date=founding_date,
        affiliations=affiliations,
    )
    effective_same_as = tuple(merge_same_as(candidate.manual_same_as, verified_urls))

    if patch is None and stored is not None:
        return BuildResult(profile=candidate, changed=False, effective_same_as=effective_same_as)

    structurally_changed = (
        stored is None or candidate.structural_fields() != stored.structural_fields()
    )
    changed = structurally_changed or (stored is not None and opts.bump_on_noop)
    if changed and stored is not None:
        candidate = replace(candidate, modified_at=now)
    return BuildResult(profile=candidate, changed=changed, effective_same_as=effective_same_as)


def _isoformat(value: datetime) -> str:
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def to_jsonld(
    profile: Profile,
    effective_same_as: Iterable[str],
    *,
    resolver_base_url: str = DEFAULT_RESOLVER_BASE_URL,
    site_name: str = "AnchorID",
) -> dict[str, object]:
    """schema.org document served by the resolver, with ``sameAs`` already merged."""

    base = resolver_base_url.rstrip("/")
    resolve_url = f"{base}/resolve/{profile.id}"
    claims_url = f"{base}/claims/{profile.id}"

    document: dict[str, object] = {
        "@context": "https://schema.org",
        "@type": str(profile.kind),
        "@id": resolve_url,
        "identifier": {
            "@type": "PropertyValue",
            "propertyID": "canonical-uuid",
            "value": f"urn:uuid:{profile.id}",
        },
        "dateCreated": _isoformat(profile.created_at),
        "dateModified": _isoformat(profile.modified_at),
    }
    optional: dict[str, object] = {
        "name": profile.name,
        "alternateName": list(profile.alternate_names),
        "description": profile.description,
        "url": profile.url,
        "sameAs": list(effective_same_as),
        "founder": [{"@id": ref} for ref in profile.founders],
        "foundingDate": profile.founding_date,
        "affiliation": [{"@id": ref} for ref in profile.affiliations],
    }
    document.update({key: value for key, value in optional.items() if value})
    document["mainEntityOfPage"] = {"@type": "WebPage", "@id": resolve_url, "url": resolve_url}
    document["subjectOf"] = {
        "@type": "WebPage",
        "@id": claims_url,
        "url": claims_url,
        "name": f"{site_name} Claims",
    }
    document["isPartOf"] = {
        "@type": "WebSite",
        "@id": f"{base}/#website",
        "url": base,
        "name": site_name,
    }
    return document
