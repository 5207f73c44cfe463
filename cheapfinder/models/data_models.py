"""Core data models for the search service."""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Context, Decimal
from enum import Enum
from typing import Dict, List, Optional

# Missing delivery estimates rank behind every real one.
ETA_SENTINEL = 999

DEFAULT_ZIP = "90001"
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
KNOWN_SOURCES = ("etsy", "shopify_agg", "shopify_curated")

_CENTS = Decimal("0.01")
# Wide enough for the sum of three amounts that round_money accepted.
_LANDED_CONTEXT = Context(prec=34)


def round_money(value) -> float:
    """Round a monetary amount half-up to 2 decimal places.

    Raises:
        decimal.InvalidOperation: For non-finite or out-of-range amounts
    """
    return float(Decimal(str(value)).quantize(_CENTS, rounding=ROUND_HALF_UP))


def landed_price(price: float, shipping: float, estimated_tax: float) -> float:
    """Total buyer cost: price + shipping + tax, rounded to cents."""
    total = _LANDED_CONTEXT.add(
        _LANDED_CONTEXT.add(Decimal(str(price)), Decimal(str(shipping))),
        Decimal(str(estimated_tax)),
    )
    return float(total.quantize(_CENTS, rounding=ROUND_HALF_UP, context=_LANDED_CONTEXT))


class AdapterOutcome(Enum):
    """How a single source adapter call ended."""
    OK = "ok"
    AUTH_NOT_CONFIGURED = "auth_not_configured"
    FAILED = "failed"


@dataclass
class Listing:
    """Unified listing model."""
    source: str
    title: str
    seller: str
    variant: str
    listing_url: str
    rating: float
    reviews: int
    price: float
    shipping: float
    estimated_tax: float
    landed_price: float = 0.0
    eta_days: Optional[int] = None

    def to_dict(self) -> Dict:
        return {
            "source": self.source,
            "title": self.title,
            "seller": self.seller,
            "rating": self.rating,
            "reviews": self.reviews,
            "variant": self.variant,
            "price": self.price,
            "shipping": self.shipping,
            "estimated_tax": self.estimated_tax,
            "landed_price": self.landed_price,
            "eta_days": self.eta_days,
            "listing_url": self.listing_url,
        }


@dataclass
class SearchRequest:
    """Validated search parameters."""
    q: str
    zip: str = DEFAULT_ZIP
    limit: int = DEFAULT_LIMIT
    min_rating: float = 0.0
    min_reviews: float = 0
    max_price: float = 0.0
    sources: str = ",".join(KNOWN_SOURCES)

    def source_keys(self) -> List[str]:
        """Recognized source keys from the allow-list, in request order.

        Unknown keys are dropped silently.
        """
        keys = []
        for raw in self.sources.split(","):
            key = raw.strip().lower()
            if key in KNOWN_SOURCES and key not in keys:
                keys.append(key)
        return keys


@dataclass
class AdapterResult:
    """Result of calling a single source adapter."""
    source: str
    listings: List[Listing]
    outcome: AdapterOutcome
    reason: Optional[str] = None
    duration: float = 0.0

    @classmethod
    def not_configured(cls, source: str) -> "AdapterResult":
        return cls(source=source, listings=[], outcome=AdapterOutcome.AUTH_NOT_CONFIGURED)

    @classmethod
    def failed(cls, source: str, reason: str, duration: float = 0.0) -> "AdapterResult":
        return cls(
            source=source,
            listings=[],
            outcome=AdapterOutcome.FAILED,
            reason=reason,
            duration=duration,
        )


@dataclass
class TokenSet:
    """Token material returned by an authorization code exchange."""
    access_token: str
    refresh_token: Optional[str]
    expires_in_seconds: int


@dataclass
class RateLimitRecord:
    """Per-client fixed-window counter."""
    count: int
    window_start: float


@dataclass
class SearchEvent:
    """Analytics event emitted after each search."""
    query: str
    zip: str
    limit: int
    result_count: int
    used_fallback: bool
    outcomes: Dict[str, str] = field(default_factory=dict)
    elapsed_ms: float = 0.0
