"""Etsy Open API v3 source adapter."""

from typing import Dict, List

from cheapfinder.fetcher.http_client import AsyncHTTPClient
from cheapfinder.sources.base import SourceAdapter

ETSY_LISTINGS_URL = "https://openapi.etsy.com/v3/application/listings/active"


class EtsyAdapter(SourceAdapter):
    """Searches active Etsy listings with an OAuth bearer token.

    Needs both the API key (sent as ``x-api-key``) and an access token
    obtained through the PKCE bootstrap flow.
    """

    key = "etsy"
    label = "Etsy"

    def __init__(self, http_client: AsyncHTTPClient, api_key: str, access_token: str):
        self.http_client = http_client
        self.api_key = api_key
        self.access_token = access_token

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.access_token)

    async def search(self, query: str, limit: int) -> List[Dict]:
        response = await self.http_client.get(
            ETSY_LISTINGS_URL,
            params={"keywords": query, "limit": min(limit, 100), "includes": "Shop"},
            headers={
                "x-api-key": self.api_key,
                "Authorization": f"Bearer {self.access_token}",
            },
        )
        response.raise_for_status()

        results = response.json().get("results")
        if not isinstance(results, list):
            raise ValueError("Etsy response missing 'results' list")

        records = []
        for item in results:
            shop = item.get("shop") or {}
            records.append({
                "title": item.get("title"),
                "seller": shop.get("shop_name") or f"Shop {item.get('shop_id', '')}".strip(),
                "rating": shop.get("review_average"),
                "reviews": shop.get("review_count"),
                "variant": "Default",
                "price": item.get("price"),
                "shipping": 0,
                "estimated_tax": 0,
                "eta_days": item.get("processing_max"),
                "listing_url": item.get("url"),
            })
        return records
