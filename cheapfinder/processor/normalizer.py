"""Normalizer converting provider-shaped records into Listings.

Adapters hand back whatever shape their marketplace uses. Alias field names
are tried in order and string amounts are cleaned. Missing optional fields
fall back to neutral defaults.
"""

import math
from decimal import InvalidOperation
from typing import Any, Dict, List, Optional

from cheapfinder.models.data_models import Listing, round_money


def _first_present(raw: Dict, fields: List[str]) -> Any:
    for field in fields:
        value = raw.get(field)
        if value is not None:
            return value
    return None


def _money(amount: float) -> Optional[float]:
    """Round a parsed amount to cents; None if negative, non-finite or out of range."""
    if not math.isfinite(amount) or amount < 0:
        return None
    try:
        return round_money(amount)
    except InvalidOperation:
        return None


def _parse_amount(value: Any) -> Optional[float]:
    """
    Parse a monetary amount.

    Handles:
    - Numbers: 12.5
    - Strings with currency symbols or separators: "$1,299.00", "12,50"
    - Money objects: {"amount": 1250, "divisor": 100} or {"amount": "12.50"}

    Returns:
        Non-negative amount rounded to cents, or None if unusable
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, dict):
        amount = _parse_amount(value.get("amount"))
        if amount is None:
            return None
        divisor = value.get("divisor")
        if isinstance(divisor, (int, float)) and not isinstance(divisor, bool) and divisor > 0:
            amount = amount / divisor
        return _money(amount)

    if isinstance(value, (int, float)):
        try:
            return _money(float(value))
        except OverflowError:
            return None

    if isinstance(value, str):
        cleaned = value.strip().replace("$", "").replace("€", "").replace("£", "")
        # Comma as decimal separator (European format)
        if "," in cleaned and "." not in cleaned:
            cleaned = cleaned.replace(",", ".")
        cleaned = cleaned.replace(",", "")
        try:
            amount = float(cleaned)
        except ValueError:
            return None
        return _money(amount)

    return None


def _parse_float(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    return number if math.isfinite(number) else default


def _parse_count(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        count = int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None
    return count if count >= 0 else None


def _parse_text(value: Any, default: str = "") -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def normalize_listing(raw: Dict, source_label: str) -> Optional[Listing]:
    """
    Normalize a single provider record.

    Field Extraction Strategy:
    - Price: price, amount, cost; numbers, strings and money objects
    - Shipping/tax: shipping, shipping_cost / estimated_tax, tax; default 0
    - Rating: rating, review_average, stars; default 0.0
    - Reviews: reviews, review_count, num_reviews; default 0
    - ETA: eta_days, delivery_days; missing stays None

    Any ``landed_price`` on the record is ignored; the engine computes it.

    Args:
        raw: Provider-shaped record
        source_label: Label of the adapter that produced it, used when the
            record does not name its own source

    Returns:
        Listing, or None when the record has no usable price
    """
    price = _parse_amount(_first_present(raw, ["price", "amount", "cost"]))
    if price is None:
        return None

    return Listing(
        source=_parse_text(raw.get("source"), source_label),
        title=_parse_text(_first_present(raw, ["title", "name", "product_name"]), "Unknown Product"),
        seller=_parse_text(_first_present(raw, ["seller", "shop_name", "vendor"])),
        variant=_parse_text(raw.get("variant"), "Default"),
        listing_url=_parse_text(_first_present(raw, ["listing_url", "url"])),
        rating=_parse_float(_first_present(raw, ["rating", "review_average", "stars"])),
        reviews=_parse_count(_first_present(raw, ["reviews", "review_count", "num_reviews"])) or 0,
        price=price,
        shipping=_parse_amount(_first_present(raw, ["shipping", "shipping_cost"])) or 0.0,
        estimated_tax=_parse_amount(_first_present(raw, ["estimated_tax", "tax"])) or 0.0,
        eta_days=_parse_count(_first_present(raw, ["eta_days", "delivery_days"])),
    )


def normalize_batch(raw_records: List[Dict], source_label: str) -> List[Listing]:
    """Normalize a batch, dropping records without a usable price."""
    listings = []
    for raw in raw_records:
        if not isinstance(raw, dict):
            continue
        try:
            listing = normalize_listing(raw, source_label)
        except (InvalidOperation, OverflowError):
            continue
        if listing is not None:
            listings.append(listing)
    return listings
