"""Key-value store on a relational database via SQLAlchemy Core."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from logging import getLogger
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, delete, insert, or_, select, update
from sqlalchemy.exc import IntegrityError

from .tables import create_all_tables, kv_table

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import ColumnElement
    from sqlalchemy.engine import Connection, Engine

log = getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SqlAlchemyKeyValueStore:
    """``KeyValueStore`` with one row per key.

    Expired rows are invisible to every read and are removed lazily. Each call runs
    in its own transaction, so single-key writes are atomic.
    """

    def __init__(self, engine: Engine, *, clock: Callable[[], datetime] = _utcnow) -> None:
        self.engine = engine
        self._clock = clock

    @classmethod
    def from_uri(cls, database_uri: str, *, create_tables: bool = True) -> SqlAlchemyKeyValueStore:
        engine = create_engine(database_uri, future=True)
        if create_tables:
            create_all_tables(engine)
        return cls(engine)

    def _not_expired(self, now: datetime) -> ColumnElement[bool]:
        return or_(kv_table.c.expires_at.is_(None), kv_table.c.expires_at > now)

    def get(self, key: str) -> str | None:
        now = self._clock()
        with self.engine.connect() as conn:
            return conn.execute(
                select(kv_table.c.value).where(kv_table.c.key == key, self._not_expired(now))
            ).scalar_one_or_none()

    def put(self, key: str, value: str, *, ttl_seconds: int | None = None) -> None:
        expires_at = self._clock() + timedelta(seconds=ttl_seconds) if ttl_seconds else None
        with self.engine.begin() as conn:
            self._replace(conn, key, value, expires_at)

    def compare_and_set(self, key: str, value: str, *, expected: str | None) -> bool:
        now = self._clock()
        try:
            with self.engine.begin() as conn:
                if expected is None:
                    conn.execute(
                        delete(kv_table).where(
                            kv_table.c.key == key, kv_table.c.expires_at <= now
                        )
                    )
                    conn.execute(insert(kv_table).values(key=key, value=value, expires_at=None))
                    return True
                result = conn.execute(
                    update(kv_table)
                    .where(
                        kv_table.c.key == key,
                        kv_table.c.value == expected,
                        self._not_expired(now),
                    )
                    .values(value=value, expires_at=None)
                )
                return result.rowcount == 1
        except IntegrityError:
            log.debug("Compare-and-set lost the insert race for %s", key)
            return False

    def list(self, prefix: str) -> list[str]:
        now = self._clock()
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(kv_table.c.key)
                .where(kv_table.c.key.startswith(prefix, autoescape=True), self._not_expired(now))
                .order_by(kv_table.c.key)
            )
            return list(rows.scalars())

    def delete(self, key: str) -> None:
        with self.engine.begin() as conn:
            conn.execute(delete(kv_table).where(kv_table.c.key == key))

    def dispose(self) -> None:
        self.engine.dispose()

    @staticmethod
    def _replace(conn: Connection, key: str, value: str, expires_at: datetime | None) -> None:
        conn.execute(delete(kv_table).where(kv_table.c.key == key))
        conn.execute(insert(kv_table).values(key=key, value=value, expires_at=expires_at))
