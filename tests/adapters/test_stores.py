from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from anchorid.domain.ports import KeyValueStore
    from tests.helpers.fakes import FakeClock


@pytest.fixture(params=["memory_store", "sqlite_store"])
def store(request: pytest.FixtureRequest) -> KeyValueStore:
    return request.getfixturevalue(request.param)


def test_get_put_delete(store: KeyValueStore) -> None:
    assert store.get("profile:a") is None

    store.put("profile:a", "one")
    store.put("profile:a", "two")

    assert store.get("profile:a") == "two"

    store.delete("profile:a")
    store.delete("profile:a")

    assert store.get("profile:a") is None


def test_ttl_expiry(store: KeyValueStore, clock: FakeClock) -> None:
    store.put("verifycache:a", "x", ttl_seconds=120)

    clock.advance(119)
    assert store.get("verifycache:a") == "x"

    clock.advance(2)
    assert store.get("verifycache:a") is None
    assert store.list("verifycache:") == []


def test_list_by_prefix(store: KeyValueStore) -> None:
    for key in ("claims:b", "claims:a", "profile:a", "a_b:1", "axb:1"):
        store.put(key, "v")

    assert store.list("claims:") == ["claims:a", "claims:b"]
    assert store.list("a_b:") == ["a_b:1"]
    assert store.list("missing:") == []


def test_compare_and_set_creates_only_when_absent(store: KeyValueStore) -> None:
    assert store.compare_and_set("claims:a", "[1]", expected=None) is True
    assert store.compare_and_set("claims:a", "[2]", expected=None) is False
    assert store.get("claims:a") == "[1]"


def test_compare_and_set_requires_current_value(store: KeyValueStore) -> None:
    store.put("claims:a", "[1]")

    assert store.compare_and_set("claims:a", "[2]", expected="[0]") is False
    assert store.compare_and_set("claims:a", "[2]", expected="[1]") is True
    assert store.get("claims:a") == "[2]"


def test_compare_and_set_treats_expired_as_absent(store: KeyValueStore, clock: FakeClock) -> None:
    store.put("claims:a", "[1]", ttl_seconds=10)
    clock.advance(11)

    assert store.compare_and_set("claims:a", "[2]", expected="[1]") is False
    assert store.compare_and_set("claims:a", "[2]", expected=None) is True
    assert store.get("claims:a") == "[2]"
