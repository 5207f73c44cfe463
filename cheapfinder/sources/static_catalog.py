"""Deterministic fallback catalog used when no live source produces results."""

from typing import Dict, List

_BASE_ITEMS = [
    {"source": "Etsy", "suffix": "Alpha", "seller": "Shop 111", "rating": 4.7, "reviews": 120,
     "price": 19.99, "shipping": 4.99, "eta_days": 3, "listing_url": "https://etsy.com/listing/1"},
    {"source": "Aggregator-Shopify", "suffix": "Beta", "seller": "Brand X", "rating": 4.6, "reviews": 803,
     "price": 27.00, "shipping": 9.00, "eta_days": 5, "listing_url": "https://brandx.com/products/beta"},
    {"source": "Etsy", "suffix": "Gamma", "seller": "Shop 222", "rating": 4.4, "reviews": 52,
     "price": 16.00, "shipping": 6.49, "eta_days": 6, "listing_url": "https://etsy.com/listing/2"},
    {"source": "Curated-Shopify", "suffix": "Delta", "seller": "Brand Y", "rating": 4.8, "reviews": 431,
     "price": 31.00, "shipping": 0.00, "eta_days": 4, "listing_url": "https://brandy.com/products/delta"},
]


def catalog_for_query(query: str) -> List[Dict]:
    """
    Build the fallback records for a query.

    The same query always yields the same four records; only the titles
    depend on the query text.

    Args:
        query: Search term, already trimmed

    Returns:
        Provider-shaped records, each carrying its own ``source`` label
    """
    records = []
    for item in _BASE_ITEMS:
        records.append({
            "source": item["source"],
            "title": f"{query} {item['suffix']}",
            "seller": item["seller"],
            "rating": item["rating"],
            "reviews": item["reviews"],
            "variant": "Default",
            "price": item["price"],
            "shipping": item["shipping"],
            "estimated_tax": 0,
            "eta_days": item["eta_days"],
            "listing_url": item["listing_url"],
        })
    return records
