"""Query-string parsing for the search endpoint."""

import math
from typing import Mapping, Optional

from cheapfinder.models.data_models import DEFAULT_LIMIT, DEFAULT_ZIP, KNOWN_SOURCES, MAX_LIMIT, SearchRequest
from cheapfinder.models.errors import ValidationError


def _text(value: Optional[str], default: str = "") -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _number(value: Optional[str], default: float = 0.0) -> float:
    """Parse a finite number; anything else yields ``default``."""
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def _non_negative(name: str, value: float) -> float:
    if value < 0:
        raise ValidationError(f"{name} must be >= 0")
    return value


def parse_search_request(params: Mapping[str, str], default_zip: str = DEFAULT_ZIP) -> SearchRequest:
    """
    Build a SearchRequest from raw query parameters.

    Non-numeric values fall back to defaults and ``limit`` is clamped to
    1..100, so only a blank ``q`` or a negative constraint is rejected.

    Raises:
        ValidationError: ``q`` missing/blank, or a negative constraint
    """
    q = _text(params.get("q"))
    if not q:
        raise ValidationError("Missing q")

    limit = _number(params.get("limit"), DEFAULT_LIMIT)
    limit = int(max(1, min(MAX_LIMIT, limit)))

    return SearchRequest(
        q=q,
        zip=_text(params.get("zip"), default_zip),
        limit=limit,
        min_rating=_non_negative("minRating", _number(params.get("minRating"))),
        min_reviews=_non_negative("minReviews", _number(params.get("minReviews"))),
        max_price=_non_negative("maxPrice", _number(params.get("maxPrice"))),
        sources=_text(params.get("sources"), ",".join(KNOWN_SOURCES)),
    )
