"""Unit tests for oncosaferx.utils.cache."""

import json
from datetime import datetime, timedelta
from pathlib import Path

from oncosaferx.utils.cache import cache_get, cache_invalidate, cache_key, cache_set, entry_path

SEARCH = {"url": "http://backend.test/api/drugs/search", "q": "platin"}


def _write_aged_entry(path: Path, data: object, age_seconds: int, ttl: int) -> None:
    cached_at = (datetime.now() - timedelta(seconds=age_seconds)).isoformat()
    path.write_text(json.dumps({"data": data, "cached_at": cached_at, "ttl": ttl}))


def test_cache_key_ignores_param_order() -> None:
    assert cache_key("drug_search", {"a": 1, "b": 2}) == cache_key("drug_search", {"b": 2, "a": 1})


def test_cache_key_separates_namespaces() -> None:
    assert cache_key("drug_search", SEARCH) != cache_key("drug_detail", SEARCH)


def test_miss_returns_none(tmp_path: Path) -> None:
    assert cache_get("drug_search", SEARCH, tmp_path) is None


def test_set_then_get_round_trip(tmp_path: Path) -> None:
    cache_set("drug_search", SEARCH, {"results": [{"rxcui": "1001"}]}, tmp_path)

    assert cache_get("drug_search", SEARCH, tmp_path) == {"results": [{"rxcui": "1001"}]}


def test_expired_entry_is_deleted(tmp_path: Path) -> None:
    path = entry_path(tmp_path, "drug_detail", {"rxcui": "1001"})
    _write_aged_entry(path, {"name": "Carboplatin"}, age_seconds=120, ttl=60)

    assert cache_get("drug_detail", {"rxcui": "1001"}, tmp_path) is None
    assert not path.exists()


def test_fresh_entry_within_ttl_is_returned(tmp_path: Path) -> None:
    path = entry_path(tmp_path, "drug_detail", {"rxcui": "1001"})
    _write_aged_entry(path, {"name": "Carboplatin"}, age_seconds=5, ttl=60)

    assert cache_get("drug_detail", {"rxcui": "1001"}, tmp_path) == {"name": "Carboplatin"}


def test_corrupt_entry_is_deleted(tmp_path: Path) -> None:
    path = entry_path(tmp_path, "drug_search", SEARCH)
    path.write_text("{not json")

    assert cache_get("drug_search", SEARCH, tmp_path) is None
    assert not path.exists()


def test_custom_ttl_is_stored(tmp_path: Path) -> None:
    cache_set("drug_search", SEARCH, [], tmp_path, ttl=5)

    entry = json.loads(entry_path(tmp_path, "drug_search", SEARCH).read_text())
    assert entry["ttl"] == 5


def test_invalidate_removes_entry(tmp_path: Path) -> None:
    cache_set("drug_search", SEARCH, [], tmp_path)
    cache_invalidate("drug_search", SEARCH, tmp_path)

    assert cache_get("drug_search", SEARCH, tmp_path) is None


def test_invalidate_missing_entry_is_noop(tmp_path: Path) -> None:
    cache_invalidate("drug_search", SEARCH, tmp_path)
