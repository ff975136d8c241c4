from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine

from anchorid.adapters.memory import InMemoryKeyValueStore
from anchorid.adapters.sqlalchemy import SqlAlchemyKeyValueStore, create_all_tables
from tests.helpers.fakes import FakeClock

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def sqlite_store(clock: FakeClock) -> Iterator[SqlAlchemyKeyValueStore]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    create_all_tables(engine)
    store = SqlAlchemyKeyValueStore(engine, clock=clock)
    try:
        yield store
    finally:
        store.dispose()
