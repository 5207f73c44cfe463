"""Unit tests for marketplace adapters and the static catalog."""

import json

import httpx
import pytest

from cheapfinder.fetcher.http_client import AsyncHTTPClient
from cheapfinder.processor.normalizer import normalize_batch
from cheapfinder.sources import build_adapters, catalog_for_query
from cheapfinder.sources.etsy import ETSY_LISTINGS_URL, EtsyAdapter
from cheapfinder.sources.shopify import ShopifyStorefrontAdapter


class TestStaticCatalog:

    def test_four_fixed_records(self):
        records = catalog_for_query("mug")

        assert [r["title"] for r in records] == ["mug Alpha", "mug Beta", "mug Gamma", "mug Delta"]
        assert [r["price"] for r in records] == [19.99, 27.0, 16.0, 31.0]
        assert [r["rating"] for r in records] == [4.7, 4.6, 4.4, 4.8]
        assert {r["source"] for r in records} == {"Etsy", "Aggregator-Shopify", "Curated-Shopify"}

    def test_deterministic(self):
        assert catalog_for_query("lamp") == catalog_for_query("lamp")


class TestEtsyAdapter:

    def test_configured_requires_key_and_token(self):
        client = AsyncHTTPClient()
        assert EtsyAdapter(client, "key", "token").configured is True
        assert EtsyAdapter(client, "key", "").configured is False
        assert EtsyAdapter(client, "", "token").configured is False

    @pytest.mark.asyncio
    async def test_search_maps_results(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            seen["headers"] = request.headers
            return httpx.Response(200, json={"count": 1, "results": [{
                "listing_id": 1,
                "title": "Handmade mug",
                "shop_id": 77,
                "shop": {"shop_name": "ClayCo", "review_average": 4.9, "review_count": 310},
                "price": {"amount": 2450, "divisor": 100, "currency_code": "USD"},
                "processing_max": 5,
                "url": "https://www.etsy.com/listing/1",
            }]})

        async with AsyncHTTPClient(transport=httpx.MockTransport(handler)) as client:
            records = await EtsyAdapter(client, "key", "token").search("mug", 10)

        assert str(seen["url"]).startswith(ETSY_LISTINGS_URL)
        assert seen["url"].params["keywords"] == "mug"
        assert seen["headers"]["x-api-key"] == "key"
        assert seen["headers"]["authorization"] == "Bearer token"

        listing = normalize_batch(records, "Etsy")[0]
        assert listing.price == 24.5
        assert listing.seller == "ClayCo"
        assert listing.rating == 4.9
        assert listing.reviews == 310
        assert listing.eta_days == 5

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(401, json={"error": "invalid_token"}))

        async with AsyncHTTPClient(transport=transport) as client:
            with pytest.raises(httpx.HTTPStatusError):
                await EtsyAdapter(client, "key", "token").search("mug", 10)

    @pytest.mark.asyncio
    async def test_malformed_payload_raises(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"unexpected": True}))

        async with AsyncHTTPClient(transport=transport) as client:
            with pytest.raises(ValueError):
                await EtsyAdapter(client, "key", "token").search("mug", 10)


class TestShopifyStorefrontAdapter:

    @pytest.mark.asyncio
    async def test_search_maps_products(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["token"] = request.headers["x-shopify-storefront-access-token"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"data": {"products": {"edges": [{"node": {
                "title": "Beta Mug",
                "vendor": "Brand X",
                "onlineStoreUrl": "https://brandx.com/products/beta",
                "variants": {"edges": [{"node": {"title": "12oz", "price": {"amount": "27.0"}}}]},
            }}]}}})

        async with AsyncHTTPClient(transport=httpx.MockTransport(handler)) as client:
            adapter = ShopifyStorefrontAdapter("shopify_agg", "Aggregator-Shopify", client, "brandx.myshopify.com", "tok")
            records = await adapter.search("mug", 5)

        assert seen["url"] == "https://brandx.myshopify.com/api/2024-01/graphql.json"
        assert seen["token"] == "tok"
        assert seen["body"]["variables"] == {"query": "mug", "first": 5}

        listing = normalize_batch(records, adapter.label)[0]
        assert listing.source == "Aggregator-Shopify"
        assert listing.variant == "12oz"
        assert listing.price == 27.0

    @pytest.mark.asyncio
    async def test_graphql_errors_raise(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(200, json={"errors": [{"message": "denied"}]}))

        async with AsyncHTTPClient(transport=transport) as client:
            adapter = ShopifyStorefrontAdapter("shopify_agg", "Aggregator-Shopify", client, "x.myshopify.com", "tok")
            with pytest.raises(ValueError):
                await adapter.search("mug", 5)


def test_build_adapters(live_config):
    config = live_config.model_copy(update={
        "etsy_api_key": "k",
        "etsy_access_token": "t",
        "shopify_curated_domain": "curated.myshopify.com",
        "shopify_curated_token": "c",
    })

    adapters = build_adapters(config, AsyncHTTPClient())

    assert list(adapters) == ["etsy", "shopify_agg", "shopify_curated"]
    assert adapters["etsy"].configured is True
    assert adapters["shopify_agg"].configured is False
    assert adapters["shopify_curated"].configured is True
    assert adapters["shopify_curated"].label == "Curated-Shopify"
