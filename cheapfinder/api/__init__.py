"""HTTP surface of the search service."""

from .app import create_app

__all__ = ["create_app"]
