from __future__ import annotations
import threading
import pytest

from blueprints.search.cache import SearchCache, make_key
from blueprints.search.schemas import SearchFilters, SearchResult

class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

def result_for(filters: SearchFilters, total: int = 0) -> SearchResult:
    return SearchResult(restaurants=(), total=total, page=filters.page, limit=filters.limit,
                        total_pages=0, filters=filters)

@pytest.fixture()
def clock():
    return FakeClock()

@pytest.fixture()
def cache(clock):
    return SearchCache(ttl=300, timer=clock)


# ---------- TTL ----------
def test_get_right_after_put_hits(cache):
    f = SearchFilters(area="Thamel")
    r = result_for(f)
    cache.put(f, r)
    assert cache.get(f) is r

def test_entry_expires_after_ttl_without_clear(cache, clock):
    f = SearchFilters(area="Thamel")
    cache.put(f, result_for(f))
    clock.advance(299)
    assert cache.get(f) is not None
    clock.advance(1)
    assert cache.get(f) is None
    assert cache.stats()["entries"] == 0

def test_put_overwrites_and_restarts_ttl(cache, clock):
    f = SearchFilters(area="Thamel")
    cache.put(f, result_for(f, total=1))
    clock.advance(200)
    newer = result_for(f, total=2)
    cache.put(f, newer)
    clock.advance(200)
    assert cache.get(f) is newer

def test_miss_on_empty_cache(cache):
    assert cache.get(SearchFilters()) is None

def test_rejects_non_results(cache):
    with pytest.raises(TypeError):
        cache.put(SearchFilters(), None)
    with pytest.raises(TypeError):
        cache.put(SearchFilters(), {"restaurants": []})


# ---------- canonical keys ----------
def test_key_ignores_construction_order():
    a = SearchFilters(area="Thamel", cuisine="Nepali", page=1)
    b = SearchFilters(cuisine="Nepali", page=1, area="Thamel")
    assert make_key(a) == make_key(b)

def test_key_treats_omitted_and_default_alike():
    assert make_key(SearchFilters(area="Thamel")) == make_key(
        SearchFilters(area="Thamel", page=1, limit=20, sort_by="rating", sort_dir="desc", budget="")
    )

def test_key_from_query_args_matches_model():
    from_args = SearchFilters.from_args({"limit": "20", "area": " Thamel ", "page": "1", "people": ""})
    assert make_key(from_args) == make_key(SearchFilters(area="Thamel"))

def test_invalid_values_normalize_to_defaults():
    f = SearchFilters.from_args({"sort_by": "price", "sort_dir": "sideways", "page": "-3",
                                 "limit": "500", "budget": "$$$$$", "people": "zero"})
    assert f == SearchFilters()
    assert make_key(f) == make_key(SearchFilters())

def test_different_filters_get_different_keys():
    assert make_key(SearchFilters(area="Thamel")) != make_key(SearchFilters(area="Patan"))
    assert make_key(SearchFilters(page=1)) != make_key(SearchFilters(page=2))

def test_key_shape():
    key = make_key(SearchFilters())
    assert key.startswith("search:")
    assert len(key) == len("search:") + 64

def test_equivalent_filters_share_cached_entry(cache):
    r = result_for(SearchFilters(area="Thamel"))
    cache.put(SearchFilters(area="Thamel", limit=20), r)
    assert cache.get(SearchFilters.from_args({"area": "Thamel"})) is r


# ---------- admin ----------
def test_clear_drops_everything(cache):
    for area in ("Thamel", "Patan", "Boudha"):
        f = SearchFilters(area=area)
        cache.put(f, result_for(f))
    cache.clear()
    assert len(cache) == 0
    assert cache.get(SearchFilters(area="Thamel")) is None

def test_stats_counts_live_entries_and_lookups(cache, clock):
    f1, f2 = SearchFilters(area="Thamel"), SearchFilters(area="Patan")
    cache.put(f1, result_for(f1))
    clock.advance(200)
    cache.put(f2, result_for(f2))
    cache.get(f1)
    cache.get(SearchFilters(area="Boudha"))
    clock.advance(150)  # f1 now stale
    stats = cache.stats()
    assert stats == {"entries": 1, "ttl_seconds": 300, "maxsize": 1024, "hits": 1, "misses": 1}

def test_maxsize_bounds_entries(clock):
    small = SearchCache(ttl=300, maxsize=2, timer=clock)
    for page in (1, 2, 3):
        f = SearchFilters(page=page)
        small.put(f, result_for(f))
    assert small.stats()["entries"] == 2

def test_parallel_put_get(cache):
    filters = [SearchFilters(page=p) for p in range(1, 21)]
    errors = []

    def worker(f):
        try:
            for _ in range(50):
                cache.put(f, result_for(f))
                got = cache.get(f)
                assert got is not None and got.page == f.page
        except AssertionError as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(f,)) for f in filters]
    for th in threads:
        th.start()
    for th in threads:
        th.join()
    assert errors == []
    assert cache.stats()["entries"] == 20
