"""OAuth PKCE bootstrap flow for authenticated sources."""

from .pkce import ETSY, OAuthProvider, PKCEAuthorizer, code_challenge, render_token_dump
from .state_store import OAuthStateStore

__all__ = [
    "ETSY",
    "OAuthProvider",
    "OAuthStateStore",
    "PKCEAuthorizer",
    "code_challenge",
    "render_token_dump",
]
