from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID

import pytest

from anchorid.domain.errors import ProfileValidationError
from anchorid.domain.model import EntityKind, Profile
from anchorid.domain.profile_builder import BuildOptions, build_profile, to_jsonld
from tests.helpers.fakes import IDENTIFIER, OTHER_IDENTIFIER

PROFILE_ID = UUID(IDENTIFIER)
BASE = "https://anchorid.net"
CREATED = datetime(2025, 1, 1, tzinfo=UTC)
LATER = datetime(2025, 2, 1, tzinfo=UTC)


def _options(now: datetime) -> BuildOptions:
    return BuildOptions(resolver_base_url=BASE, now=lambda: now)


@pytest.fixture
def stored() -> Profile:
    result = build_profile(
        PROFILE_ID,
        None,
        {
            "name": " Jane Doe ",
            "sameAs": "https://b.example/, https://A.example",
            "alternateName": ["JD"],
        },
        [],
        _options(CREATED),
    )
    assert result.changed
    return result.profile


def test_new_profile_is_canonicalized(stored: Profile) -> None:
    assert stored.kind is EntityKind.PERSON
    assert stored.name == "Jane Doe"
    assert stored.manual_same_as == ("https://a.example", "https://b.example")
    assert stored.alternate_names == ("JD",)
    assert stored.created_at == stored.modified_at == CREATED


def test_unchanged_patch_keeps_modified_at(stored: Profile) -> None:
    result = build_profile(
        PROFILE_ID,
        stored,
        {"name": "Jane Doe", "sameAs": ["https://a.example/", "https://b.example"]},
        [],
        _options(LATER),
    )

    assert result.changed is False
    assert result.profile.modified_at == CREATED
    assert result.profile == stored


def test_structural_change_advances_modified_at(stored: Profile) -> None:
    result = build_profile(PROFILE_ID, stored, {"name": "Janet Doe"}, [], _options(LATER))

    assert result.changed is True
    assert result.profile.name == "Janet Doe"
    assert result.profile.created_at == CREATED
    assert result.profile.modified_at == LATER
    assert result.profile.manual_same_as == stored.manual_same_as


def test_bump_on_noop_forces_change(stored: Profile) -> None:
    options = BuildOptions(resolver_base_url=BASE, now=lambda: LATER, bump_on_noop=True)

    result = build_profile(PROFILE_ID, stored, {}, [], options)

    assert result.changed is True
    assert result.profile.modified_at == LATER


def test_read_build_never_changes(stored: Profile) -> None:
    result = build_profile(PROFILE_ID, stored, None, ["https://github.com/janedoe"], _options(LATER))

    assert result.changed is False
    assert result.profile == stored


def test_empty_value_clears_field(stored: Profile) -> None:
    result = build_profile(PROFILE_ID, stored, {"alternateName": [], "name": "  "}, [], _options(LATER))

    assert result.profile.alternate_names == ()
    assert result.profile.name is None
    assert result.changed is True


def test_verified_urls_join_effective_same_as_only(stored: Profile) -> None:
    result = build_profile(
        PROFILE_ID, stored, None, ["https://github.com/janedoe/", "https://a.example"], _options(LATER)
    )

    assert result.effective_same_as == (
        "https://a.example",
        "https://b.example",
        "https://github.com/janedoe",
    )
    assert "https://github.com/janedoe" not in result.profile.manual_same_as


def test_links_to_the_resolver_itself_are_dropped() -> None:
    result = build_profile(
        PROFILE_ID,
        None,
        {"sameAs": [f"{BASE}/resolve/{IDENTIFIER}", "https://example.com"]},
        [],
        _options(CREATED),
    )

    assert result.profile.manual_same_as == ("https://example.com",)


def test_kind_is_fixed_after_creation(stored: Profile) -> None:
    with pytest.raises(ProfileValidationError):
        build_profile(PROFILE_ID, stored, {"@type": "Organization"}, [], _options(LATER))

    same = build_profile(PROFILE_ID, stored, {"@type": "person"}, [], _options(LATER))
    assert same.changed is False


def test_unknown_fields_are_rejected(stored: Profile) -> None:
    with pytest.raises(ProfileValidationError, match="nickname"):
        build_profile(PROFILE_ID, stored, {"nickname": "JD"}, [], _options(LATER))


def test_organization_fields() -> None:
    result = build_profile(
        PROFILE_ID,
        None,
        {
            "@type": "Organization",
            "name": "Acme",
            "founder": [OTHER_IDENTIFIER, {"@id": f"{BASE}/resolve/{OTHER_IDENTIFIER}"}],
            "foundingDate": "2019-05-01T10:00:00Z",
            "affiliation": [OTHER_IDENTIFIER],
        },
        [],
        _options(CREATED),
    )

    profile = result.profile
    assert profile.kind is EntityKind.ORGANIZATION
    assert profile.founders == (f"{BASE}/resolve/{OTHER_IDENTIFIER}",)
    assert profile.founding_date == "2019-05-01"
    assert profile.affiliations == ()


def test_to_jsonld_uses_effective_same_as_and_omits_empty_fields(stored: Profile) -> None:
    result = build_profile(PROFILE_ID, stored, None, ["https://github.com/janedoe"], _options(LATER))

    document = to_jsonld(result.profile, result.effective_same_as, resolver_base_url=BASE)

    assert document["@type"] == "Person"
    assert document["@id"] == f"{BASE}/resolve/{IDENTIFIER}"
    assert document["identifier"] == {
        "@type": "PropertyValue",
        "propertyID": "canonical-uuid",
        "value": f"urn:uuid:{IDENTIFIER}",
    }
    assert document["sameAs"] == [
        "https://a.example",
        "https://b.example",
        "https://github.com/janedoe",
    ]
    assert document["dateCreated"] == "2025-01-01T00:00:00Z"
    assert "description" not in document
    assert "founder" not in document
    assert "affiliation" not in document
