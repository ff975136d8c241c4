from __future__ import annotations

import json
from collections.abc import Sequence  # noqa: TC003

import pytest

from anchorid.adapters.memory import InMemoryKeyValueStore
from anchorid.app import AnchorService
from anchorid.config import VerificationConfig
from anchorid.ui import cli
from tests.helpers.fakes import RESOLVER_BASE_URL, FakeFetcher, FakeTxtLookup

WELL_KNOWN = "https://example.com/.well-known/anchorid.txt"


@pytest.fixture
def fetcher(monkeypatch: pytest.MonkeyPatch) -> FakeFetcher:
    store = InMemoryKeyValueStore()
    fetcher = FakeFetcher()

    def build_service() -> AnchorService:
        return AnchorService(
            store=store,
            fetcher=fetcher,
            txt_lookup=FakeTxtLookup(),
            config=VerificationConfig(resolver_base_url=RESOLVER_BASE_URL),
        )

    monkeypatch.setattr(cli, "build_service", build_service)
    monkeypatch.setattr(cli, "load_dotenv", lambda: False)
    return fetcher


def _main(argv: Sequence[str]) -> int | str | None:
    with pytest.raises(SystemExit) as exc:
        cli.main(argv)
    return exc.value.code


def test_profile_and_website_claim(fetcher: FakeFetcher, capsys: pytest.CaptureFixture[str]) -> None:
    assert _main(["profile", "create", "--name", "Jane Doe", "--same-as", "https://jane.example/"]) == 0
    identifier = capsys.readouterr().out.strip()
    fetcher.documents[WELL_KNOWN] = f"anchorid=urn:uuid:{identifier}"

    assert _main(["claim", "add", identifier, "website", "example.com"]) == 0
    assert capsys.readouterr().out.startswith("website:example.com\tpending\t")

    assert _main(["claim", "verify", identifier, "website:example.com"]) == 0
    assert capsys.readouterr().out.startswith("website:example.com\tverified\t")

    assert _main(["profile", "show", identifier]) == 0
    document = json.loads(capsys.readouterr().out)
    assert document["@id"] == f"{RESOLVER_BASE_URL}/resolve/{identifier}"
    assert document["name"] == "Jane Doe"
    assert document["sameAs"] == ["https://example.com", "https://jane.example"]


def test_failed_verification_exits_with_3(
    fetcher: FakeFetcher, capsys: pytest.CaptureFixture[str]
) -> None:
    _main(["profile", "create"])
    identifier = capsys.readouterr().out.strip()
    _main(["claim", "add", identifier, "github", "https://github.com/jane"])
    capsys.readouterr()

    assert _main(["claim", "verify", identifier, "github:jane"]) == 3

    line = capsys.readouterr().out.strip()
    assert line.split("\t")[:2] == ["github:jane", "failed"]
    assert line.endswith("Proof file not found (HTTP 404)")
    assert fetcher.calls == ["https://raw.githubusercontent.com/jane/jane/main/README.md"]


def test_domain_errors_exit_with_2(fetcher: FakeFetcher) -> None:
    assert _main(["profile", "show", "not-a-uuid"]) == 2
    assert _main(["claim", "list", "4ff7ed97-b78f-4ae6-9011-5af714ee241c"]) == 0
    assert fetcher.calls == []


def test_unknown_claim_type_is_rejected_by_parser() -> None:
    with pytest.raises(SystemExit) as exc:
        cli.main(["claim", "add", "4ff7ed97-b78f-4ae6-9011-5af714ee241c", "email", "x"])

    assert exc.value.code == 2
