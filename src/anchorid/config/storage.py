"""Key-value store configuration helpers."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final, Literal, cast

from .env import optional_env_str
from .errors import ConfigurationError

APP_DIR_NAME: Final[str] = "anchorid"
DEFAULT_DB_FILENAME: Final[str] = "anchorid.db"
STORE_BACKENDS: Final = frozenset({"memory", "sqlite"})

type StoreBackend = Literal["memory", "sqlite"]


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Where profiles, ledgers and cached verification decisions live.

    ``memory`` keeps everything in the process (tests, one-off CLI runs);
    ``sqlite`` writes a single database file under ``data_dir`` unless
    ``database_uri_override`` points somewhere else.
    """

    data_dir: Path
    backend: StoreBackend = "sqlite"
    database_filename: str = DEFAULT_DB_FILENAME
    database_uri_override: str | None = None

    def database_path(self, *, ensure: bool = True) -> Path:
        data_dir = self.data_dir.expanduser().resolve()
        if ensure:
            data_dir.mkdir(parents=True, exist_ok=True)
        return data_dir / self.database_filename

    def database_uri(self) -> str:
        if self.database_uri_override:
            return self.database_uri_override
        return f"sqlite+pysqlite:///{self.database_path()}"


def _default_data_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("LOCALAPPDATA")
        base_path = Path(base) if base else (Path.home() / "AppData" / "Local")
    else:
        base = os.getenv("XDG_DATA_HOME")
        base_path = Path(base) if base else (Path.home() / ".local" / "share")
    return (base_path / APP_DIR_NAME).expanduser().resolve()


def get_storage_config() -> StorageConfig:
    env_dir = optional_env_str("ANCHORID_DATA_DIR", "")
    backend = optional_env_str("ANCHORID_STORE_BACKEND", "sqlite").lower()
    if backend not in STORE_BACKENDS:
        raise ConfigurationError(f"Unsupported store backend: {backend}")
    return StorageConfig(
        data_dir=Path(env_dir) if env_dir else _default_data_dir(),
        backend=cast("StoreBackend", backend),
        database_uri_override=optional_env_str("ANCHORID_DATABASE_URI", "") or None,
    )
