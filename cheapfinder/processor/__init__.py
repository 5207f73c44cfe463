"""Listing normalization and ranking."""

from .normalizer import normalize_batch, normalize_listing
from .ranking import apply_filters, rank, rank_key, with_landed_price

__all__ = [
    "apply_filters",
    "normalize_batch",
    "normalize_listing",
    "rank",
    "rank_key",
    "with_landed_price",
]
