from __future__ import annotations

import pytest

from anchorid.domain.tokens import (
    any_record_matches,
    canonical_token,
    document_contains_proof,
    expected_tokens,
    normalize_segments,
    normalize_value,
    record_matches,
    split_txt_data,
    value_matches,
)
from tests.helpers.fakes import IDENTIFIER, OTHER_IDENTIFIER, RESOLVER_HOST


def test_dns_segments_are_joined_before_normalizing() -> None:
    segments = ["anchorid=urn:", f"uuid:{IDENTIFIER}"]

    assert normalize_segments(segments) == f"anchorid=urn:uuid:{IDENTIFIER}"
    assert normalize_segments(segments) == canonical_token(IDENTIFIER)


def test_quoted_segments_are_unwrapped_individually() -> None:
    assert record_matches(['"anchorid=urn:"', f'"uuid:{IDENTIFIER}"'], IDENTIFIER, RESOLVER_HOST)


@pytest.mark.parametrize(
    "value",
    [
        f"anchorid=urn:uuid:{IDENTIFIER}",
        f"anchorid={IDENTIFIER}",
        f"urn:uuid:{IDENTIFIER}",
        f"https://{RESOLVER_HOST}/resolve/{IDENTIFIER}",
        IDENTIFIER,
        IDENTIFIER.upper(),
        f"ANCHORID=urn:uuid:{IDENTIFIER}",
        f'  "anchorid=urn:uuid:{IDENTIFIER}"  ',
        f"https://{RESOLVER_HOST}/resolve/{IDENTIFIER}/",
    ],
)
def test_every_documented_form_matches(value: str) -> None:
    assert value_matches(value, IDENTIFIER, RESOLVER_HOST)


@pytest.mark.parametrize(
    "value",
    [
        f"anchorid=urn:uuid:{IDENTIFIER[:-1]}",
        f"anchorid=urn:uuid:{IDENTIFIER}0",
        "anchorid=urn:uuid:4ff7ed97b78f4ae690115af714ee241c",
        f"anchorid=urn:uuid:{OTHER_IDENTIFIER}",
        f"https://elsewhere.example/resolve/{IDENTIFIER}",
        f"http://{RESOLVER_HOST}/resolve/{IDENTIFIER}",
        f"uuid={IDENTIFIER}",
        "",
    ],
)
def test_invalid_or_foreign_values_are_rejected(value: str) -> None:
    assert not value_matches(value, IDENTIFIER, RESOLVER_HOST)


def test_expected_tokens_lists_all_forms() -> None:
    tokens = expected_tokens(IDENTIFIER.upper(), RESOLVER_HOST)

    assert tokens == {
        f"anchorid=urn:uuid:{IDENTIFIER}",
        f"anchorid={IDENTIFIER}",
        f"urn:uuid:{IDENTIFIER}",
        f"https://{RESOLVER_HOST}/resolve/{IDENTIFIER}",
        IDENTIFIER,
    }


def test_normalize_value_collapses_whitespace_and_lowercases_prefix() -> None:
    assert normalize_value('  "AnchorID=urn:uuid:abc   def"  ') == "anchorid=urn:uuid:abc def"


def test_split_txt_data_handles_presentation_form() -> None:
    assert split_txt_data('"anchorid=urn:" "uuid:abc"') == ("anchorid=urn:", "uuid:abc")
    assert split_txt_data('"say \\"hi\\"\\059"') == ('say "hi";',)
    assert split_txt_data("anchorid=urn:uuid:abc") == ("anchorid=urn:uuid:abc",)


def test_each_txt_record_is_checked_on_its_own() -> None:
    records = [
        ["v=spf1 -all"],
        [f"anchorid=urn:uuid:{OTHER_IDENTIFIER}"],
        ["anchorid=", f"urn:uuid:{IDENTIFIER}"],
    ]

    assert any_record_matches(records, IDENTIFIER, RESOLVER_HOST)
    assert not any_record_matches(records[:2], IDENTIFIER, RESOLVER_HOST)


def test_records_are_not_joined_with_each_other() -> None:
    records = [["anchorid=urn:"], [f"uuid:{IDENTIFIER}"]]

    assert not any_record_matches(records, IDENTIFIER, RESOLVER_HOST)


def test_document_matches_token_on_its_own_line() -> None:
    readme = f"# Jane Doe\n\nHello there.\n\nanchorid=urn:uuid:{IDENTIFIER}\n"

    assert document_contains_proof(readme, IDENTIFIER, RESOLVER_HOST)


def test_document_matches_embedded_resolver_url() -> None:
    page = (
        "<html><body><p>Verify me: "
        f'<a href="https://{RESOLVER_HOST}/resolve/{IDENTIFIER}">anchor</a></p></body></html>'
    )

    assert document_contains_proof(page, IDENTIFIER, RESOLVER_HOST)


def test_document_ignores_bare_uuid_in_running_text() -> None:
    page = f"<p>Some id {IDENTIFIER} mentioned in passing</p>"

    assert not document_contains_proof(page, IDENTIFIER, RESOLVER_HOST)


def test_document_file_with_bare_uuid_matches() -> None:
    assert document_contains_proof(f"{IDENTIFIER}\n", IDENTIFIER, RESOLVER_HOST)


def test_document_rejects_truncated_embedded_uuid() -> None:
    page = f"anchorid is: urn:uuid:{IDENTIFIER}ab"

    assert not document_contains_proof(page, IDENTIFIER, RESOLVER_HOST)
