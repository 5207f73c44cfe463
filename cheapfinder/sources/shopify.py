"""Shopify Storefront API source adapter."""

from typing import Dict, List

from cheapfinder.fetcher.http_client import AsyncHTTPClient
from cheapfinder.sources.base import SourceAdapter

STOREFRONT_API_VERSION = "2024-01"

PRODUCT_SEARCH_QUERY = """
query Search($query: String!, $first: Int!) {
  products(first: $first, query: $query) {
    edges {
      node {
        title
        vendor
        onlineStoreUrl
        variants(first: 1) {
          edges { node { title price { amount } } }
        }
      }
    }
  }
}
"""


class ShopifyStorefrontAdapter(SourceAdapter):
    """Searches one Shopify storefront through its public GraphQL API.

    The service runs two instances, an aggregator feed and a curated feed,
    distinguished only by key, label and credentials.
    """

    def __init__(
        self,
        key: str,
        label: str,
        http_client: AsyncHTTPClient,
        shop_domain: str,
        storefront_token: str,
    ):
        self.key = key
        self.label = label
        self.http_client = http_client
        self.shop_domain = shop_domain
        self.storefront_token = storefront_token

    @property
    def configured(self) -> bool:
        return bool(self.shop_domain and self.storefront_token)

    @property
    def endpoint(self) -> str:
        return f"https://{self.shop_domain}/api/{STOREFRONT_API_VERSION}/graphql.json"

    async def search(self, query: str, limit: int) -> List[Dict]:
        response = await self.http_client.post_json(
            self.endpoint,
            {"query": PRODUCT_SEARCH_QUERY, "variables": {"query": query, "first": min(limit, 100)}},
            headers={"X-Shopify-Storefront-Access-Token": self.storefront_token},
        )
        response.raise_for_status()

        body = response.json()
        if body.get("errors"):
            raise ValueError(f"Storefront query failed: {body['errors']}")

        edges = (((body.get("data") or {}).get("products") or {}).get("edges")) or []
        records = []
        for edge in edges:
            node = edge.get("node") or {}
            variants = (node.get("variants") or {}).get("edges") or []
            variant = variants[0]["node"] if variants else {}
            records.append({
                "title": node.get("title"),
                "seller": node.get("vendor"),
                "variant": variant.get("title") or "Default",
                "price": (variant.get("price") or {}).get("amount"),
                "listing_url": node.get("onlineStoreUrl"),
            })
        return records
