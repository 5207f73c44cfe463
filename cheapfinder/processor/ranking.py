"""Landed price, buyer filters and deterministic ranking."""

from dataclasses import replace
from typing import List, Tuple

from cheapfinder.models.data_models import ETA_SENTINEL, Listing, landed_price


def with_landed_price(listings: List[Listing]) -> List[Listing]:
    """Recompute landed_price on every listing, discarding upstream values."""
    return [
        replace(item, landed_price=landed_price(item.price, item.shipping, item.estimated_tax))
        for item in listings
    ]


def apply_filters(
    listings: List[Listing],
    min_rating: float = 0.0,
    min_reviews: float = 0,
    max_price: float = 0.0,
) -> List[Listing]:
    """
    Apply buyer constraints in a fixed order.

    A constraint that is zero or negative is disabled. ``max_price`` caps the
    item price, not the landed price.
    """
    if min_rating > 0:
        listings = [item for item in listings if item.rating >= min_rating]
    if min_reviews > 0:
        listings = [item for item in listings if item.reviews >= min_reviews]
    if max_price > 0:
        listings = [item for item in listings if item.price <= max_price]
    return listings


def rank_key(item: Listing) -> Tuple[float, float, int, int]:
    """Cheapest landed price, then best rating, most reviews, fastest delivery."""
    eta = item.eta_days if item.eta_days is not None else ETA_SENTINEL
    return (item.landed_price, -item.rating, -item.reviews, eta)


def rank(listings: List[Listing]) -> List[Listing]:
    """Stable sort by ``rank_key``; exact ties keep merge order."""
    return sorted(listings, key=rank_key)
