"""JSON output formatter for search results.

The same shape is returned by ``GET /search`` and written by the CLI:

    {
        "items": [
            {
                "source": "Etsy",
                "title": "mug Alpha",
                "seller": "Shop 111",
                "rating": 4.7,
                "reviews": 120,
                "variant": "Default",
                "price": 19.99,
                "shipping": 4.99,
                "estimated_tax": 0.0,
                "landed_price": 24.98,
                "eta_days": 3,
                "listing_url": "https://etsy.com/listing/1"
            }
        ]
    }
"""

import json
from pathlib import Path
from typing import Any, Dict, List

from cheapfinder.models.data_models import Listing


class JSONOutputFormatter:
    """Formats ranked listings as JSON."""

    def format(self, listings: List[Listing]) -> Dict[str, Any]:
        """
        Format listings as a JSON-serializable dictionary.

        Args:
            listings: Ranked listings from the engine

        Returns:
            Dictionary with a single ``items`` list, order preserved
        """
        return {"items": [listing.to_dict() for listing in listings]}

    def to_json(self, listings: List[Listing], indent: int = 2) -> str:
        return json.dumps(self.format(listings), indent=indent, ensure_ascii=False)

    def save(self, listings: List[Listing], output_path: str) -> None:
        """
        Save listings to a JSON file, creating parent directories.

        Args:
            listings: Ranked listings
            output_path: Destination file path
        """
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w", encoding="utf-8") as f:
            f.write(self.to_json(listings))
