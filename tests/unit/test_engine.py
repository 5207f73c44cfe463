"""Unit tests for SearchEngine.

Tests cover:
- Static catalog fallback and its triggering rule
- Filtering/ranking on merged live results
- Analytics emission that never blocks or fails a search
"""

import asyncio

import pytest

from cheapfinder.models.data_models import AdapterOutcome, AdapterResult, SearchRequest, landed_price
from cheapfinder.pipeline.engine import SearchEngine, merge_results, needs_fallback
from tests.fixtures.sample_data import FailingAdapter, StubAdapter, get_sample_records, make_listing


class RecordingObserver:
    def __init__(self):
        self.events = []

    async def record(self, event):
        self.events.append(event)


class BrokenObserver:
    async def record(self, event):
        raise RuntimeError("collector down")


class HangingObserver:
    def __init__(self):
        self.release = asyncio.Event()

    async def record(self, event):
        await self.release.wait()


class TestFallbackRule:

    def test_no_sources(self):
        assert needs_fallback({}) is True

    def test_all_not_configured_or_failed(self):
        results = {
            "etsy": AdapterResult.not_configured("etsy"),
            "shopify_agg": AdapterResult.failed("shopify_agg", "timeout"),
        }
        assert needs_fallback(results) is True

    def test_ok_but_empty_still_falls_back(self):
        results = {"etsy": AdapterResult("etsy", [], AdapterOutcome.OK)}
        assert needs_fallback(results) is True

    def test_any_listing_disables_fallback(self):
        results = {
            "etsy": AdapterResult("etsy", [make_listing()], AdapterOutcome.OK),
            "shopify_agg": AdapterResult.failed("shopify_agg", "boom"),
        }
        assert needs_fallback(results) is False

    def test_merge_keeps_source_order(self):
        results = {
            "etsy": AdapterResult("etsy", [make_listing(title="e1"), make_listing(title="e2")], AdapterOutcome.OK),
            "shopify_agg": AdapterResult("shopify_agg", [make_listing(title="s1")], AdapterOutcome.OK),
        }
        assert [i.title for i in merge_results(results)] == ["e1", "e2", "s1"]


class TestMockModeSearch:

    @pytest.fixture
    def engine(self, sample_config):
        return SearchEngine(sample_config, {})

    @pytest.mark.asyncio
    async def test_mock_mode_returns_catalog(self, engine):
        listings = await engine.search(SearchRequest(q="mug"))

        assert len(listings) == 4
        assert [i.landed_price for i in listings] == [22.49, 24.98, 31.0, 36.0]
        assert all(i.title.startswith("mug ") for i in listings)

    @pytest.mark.asyncio
    async def test_catalog_is_reproducible(self, engine):
        first = await engine.search(SearchRequest(q="anything"))
        second = await engine.search(SearchRequest(q="anything"))

        assert [i.to_dict() for i in first] == [i.to_dict() for i in second]

    @pytest.mark.asyncio
    async def test_mug_scenario(self, engine):
        """maxPrice=25 and minRating=4.5 leave only the 24.98 listing."""
        listings = await engine.search(SearchRequest(q="mug", max_price=25, min_rating=4.5))

        assert len(listings) == 1
        assert listings[0].landed_price == 24.98
        assert listings[0].rating == 4.7

    @pytest.mark.asyncio
    async def test_limit_truncates(self, engine):
        listings = await engine.search(SearchRequest(q="mug", limit=2))
        assert [i.landed_price for i in listings] == [22.49, 24.98]

    @pytest.mark.asyncio
    async def test_fallback_ignores_source_allow_list(self, engine):
        listings = await engine.search(SearchRequest(q="mug", sources="bogus,unknown"))
        assert len(listings) == 4

    @pytest.mark.asyncio
    async def test_mock_mode_never_calls_adapters(self, sample_config):
        adapter = StubAdapter("etsy", "Etsy", [{"price": 1}])
        engine = SearchEngine(sample_config, {"etsy": adapter})

        await engine.search(SearchRequest(q="mug"))

        assert adapter.calls == []


class TestLiveSearch:

    @pytest.mark.asyncio
    async def test_live_results_replace_catalog(self, live_config):
        adapters = {
            "etsy": StubAdapter("etsy", "Etsy", get_sample_records("Etsy", count=15, seed=1)),
            "shopify_agg": StubAdapter("shopify_agg", "Aggregator-Shopify", get_sample_records("Agg", count=15, seed=2)),
        }
        engine = SearchEngine(live_config, adapters)

        listings = await engine.search(SearchRequest(q="mug", limit=20))

        assert len(listings) == 20
        assert {i.source for i in listings} <= {"Etsy", "Aggregator-Shopify"}
        prices = [i.landed_price for i in listings]
        assert prices == sorted(prices)
        for item in listings:
            assert item.landed_price == landed_price(item.price, item.shipping, item.estimated_tax)

    @pytest.mark.asyncio
    async def test_unrequested_sources_are_skipped(self, live_config):
        etsy = StubAdapter("etsy", "Etsy", [{"price": 5}])
        agg = StubAdapter("shopify_agg", "Aggregator-Shopify", [{"price": 6}])
        engine = SearchEngine(live_config, {"etsy": etsy, "shopify_agg": agg})

        listings = await engine.search(SearchRequest(q="mug", sources=" ETSY , nope"))

        assert [i.source for i in listings] == ["Etsy"]
        assert agg.calls == []

    @pytest.mark.asyncio
    async def test_all_failures_fall_back(self, live_config):
        adapters = {
            "etsy": FailingAdapter("etsy", "Etsy", RuntimeError("500")),
            "shopify_agg": FailingAdapter("shopify_agg", "Aggregator-Shopify", ValueError("bad json")),
        }
        engine = SearchEngine(live_config, adapters)

        listings = await engine.search(SearchRequest(q="lamp"))

        assert len(listings) == 4
        assert listings[0].title == "lamp Gamma"

    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort(self, live_config):
        adapters = {
            "etsy": FailingAdapter("etsy", "Etsy", RuntimeError("500")),
            "shopify_agg": StubAdapter("shopify_agg", "Aggregator-Shopify", [{"price": 9, "title": "ok"}]),
        }
        engine = SearchEngine(live_config, adapters)

        listings = await engine.search(SearchRequest(q="lamp"))

        assert [i.title for i in listings] == ["ok"]

    @pytest.mark.asyncio
    async def test_filters_applied_to_live_results(self, live_config):
        records = get_sample_records("Etsy", count=50, seed=9)
        engine = SearchEngine(live_config, {"etsy": StubAdapter("etsy", "Etsy", records)})

        listings = await engine.search(
            SearchRequest(q="mug", limit=100, min_rating=4.0, min_reviews=200, max_price=40)
        )

        assert listings
        for item in listings:
            assert item.rating >= 4.0
            assert item.reviews >= 200
            assert item.price <= 40


class TestAnalytics:

    @pytest.mark.asyncio
    async def test_event_emitted(self, sample_config):
        observer = RecordingObserver()
        engine = SearchEngine(sample_config, {}, observer=observer)

        await engine.search(SearchRequest(q="mug", zip="10001", limit=3))
        await engine.drain()

        assert len(observer.events) == 1
        event = observer.events[0]
        assert event.query == "mug"
        assert event.zip == "10001"
        assert event.result_count == 3
        assert event.used_fallback is True
        assert event.outcomes == {
            "etsy": "auth_not_configured",
            "shopify_agg": "auth_not_configured",
            "shopify_curated": "auth_not_configured",
        }

    @pytest.mark.asyncio
    async def test_observer_failure_is_swallowed(self, sample_config):
        engine = SearchEngine(sample_config, {}, observer=BrokenObserver())

        listings = await engine.search(SearchRequest(q="mug"))
        await engine.drain()

        assert len(listings) == 4

    @pytest.mark.asyncio
    async def test_search_does_not_wait_for_observer(self, sample_config):
        observer = HangingObserver()
        engine = SearchEngine(sample_config, {}, observer=observer)

        listings = await asyncio.wait_for(engine.search(SearchRequest(q="mug")), timeout=1.0)

        assert len(listings) == 4
        assert len(engine._pending) == 1
        observer.release.set()
        await engine.drain()
        assert len(engine._pending) == 0
