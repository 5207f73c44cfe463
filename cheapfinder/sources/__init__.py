"""Marketplace source adapters."""

from typing import Dict

from cheapfinder.fetcher.http_client import AsyncHTTPClient
from cheapfinder.models.config import AppConfig

from .base import SourceAdapter
from .etsy import EtsyAdapter
from .shopify import ShopifyStorefrontAdapter
from .static_catalog import catalog_for_query


def build_adapters(config: AppConfig, http_client: AsyncHTTPClient) -> Dict[str, SourceAdapter]:
    """Instantiate one adapter per known source key."""
    adapters = [
        EtsyAdapter(http_client, config.etsy_api_key, config.etsy_access_token),
        ShopifyStorefrontAdapter(
            "shopify_agg",
            "Aggregator-Shopify",
            http_client,
            config.shopify_agg_domain,
            config.shopify_agg_token,
        ),
        ShopifyStorefrontAdapter(
            "shopify_curated",
            "Curated-Shopify",
            http_client,
            config.shopify_curated_domain,
            config.shopify_curated_token,
        ),
    ]
    return {adapter.key: adapter for adapter in adapters}


__all__ = [
    "EtsyAdapter",
    "ShopifyStorefrontAdapter",
    "SourceAdapter",
    "build_adapters",
    "catalog_for_query",
]
