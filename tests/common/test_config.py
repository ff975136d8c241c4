from __future__ import annotations

from pathlib import Path

import pytest

from anchorid.config import (
    ConfigurationError,
    StorageConfig,
    VerificationConfig,
    get_storage_config,
    get_verification_config,
)

_ENV_VARS = (
    "ANCHORID_RESOLVER_BASE_URL",
    "ANCHORID_DOH_URL",
    "ANCHORID_FETCH_TIMEOUT_SECONDS",
    "ANCHORID_VERIFY_DEADLINE_SECONDS",
    "ANCHORID_DATA_DIR",
    "ANCHORID_STORE_BACKEND",
    "ANCHORID_DATABASE_URI",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_verification_defaults() -> None:
    config = get_verification_config()

    assert config.resolver_base_url == "https://anchorid.net"
    assert config.resolver_host == "anchorid.net"
    assert config.fetch_timeout_seconds == 2.5
    assert config.deadline_seconds == 5.0
    assert config.max_redirects == 3
    assert config.page_resilience.retry.total == 1


def test_verification_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANCHORID_RESOLVER_BASE_URL", "https://ids.example.org/")
    monkeypatch.setenv("ANCHORID_DOH_URL", "https://dns.google/resolve")
    monkeypatch.setenv("ANCHORID_FETCH_TIMEOUT_SECONDS", "1.5")
    monkeypatch.setenv("ANCHORID_VERIFY_DEADLINE_SECONDS", " 4 ")

    config = get_verification_config()

    assert config.resolver_base_url == "https://ids.example.org"
    assert config.resolver_host == "ids.example.org"
    assert config.doh_url == "https://dns.google/resolve"
    assert config.deadline_seconds == 4.0
    assert config.page_resilience.timeout_seconds == 1.5
    assert config.doh_resilience.timeout_seconds == 1.5
    assert config.resolve_url("abc") == "https://ids.example.org/resolve/abc"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("ANCHORID_RESOLVER_BASE_URL", "http://anchorid.net"),
        ("ANCHORID_FETCH_TIMEOUT_SECONDS", "0"),
        ("ANCHORID_FETCH_TIMEOUT_SECONDS", "soon"),
        ("ANCHORID_VERIFY_DEADLINE_SECONDS", "1"),
    ],
)
def test_invalid_verification_env(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigurationError):
        get_verification_config()


def test_direct_config_threads_timeout_and_user_agent() -> None:
    config = VerificationConfig(fetch_timeout_seconds=1.0, user_agent="AnchorID-Test/2.0")

    for resilience in (config.page_resilience, config.doh_resilience):
        assert resilience.timeout_seconds == 1.0
        assert resilience.default_headers is not None
        assert resilience.default_headers["User-Agent"] == "AnchorID-Test/2.0"


def test_resolver_host_requires_a_host() -> None:
    with pytest.raises(ConfigurationError):
        _ = VerificationConfig(resolver_base_url="not a url").resolver_host


def test_storage_memory_backend(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ANCHORID_STORE_BACKEND", "Memory")
    monkeypatch.setenv("ANCHORID_DATA_DIR", str(tmp_path))

    config = get_storage_config()

    assert config.backend == "memory"
    assert config.data_dir == tmp_path


def test_storage_sqlite_uri(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ANCHORID_DATA_DIR", str(tmp_path / "data"))

    config = get_storage_config()

    assert config.backend == "sqlite"
    assert config.database_uri() == f"sqlite+pysqlite:///{(tmp_path / 'data').resolve()}/anchorid.db"
    assert (tmp_path / "data").is_dir()


def test_storage_uri_override() -> None:
    config = StorageConfig(data_dir=Path("/nonexistent"), database_uri_override="sqlite://")

    assert config.database_uri() == "sqlite://"


def test_storage_rejects_unknown_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ANCHORID_STORE_BACKEND", "redis")

    with pytest.raises(ConfigurationError, match="redis"):
        get_storage_config()
