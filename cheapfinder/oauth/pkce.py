"""OAuth 2.0 authorization code flow with PKCE (RFC 7636).

This is an operator bootstrap flow: the resulting tokens are shown to the
operator, who copies them into configuration. They are never injected into
the running process.
"""

import base64
import hashlib
import secrets
from dataclasses import dataclass
from typing import Optional

import httpx

from cheapfinder.fetcher.http_client import AsyncHTTPClient
from cheapfinder.models.data_models import TokenSet
from cheapfinder.models.errors import ConfigurationError, InvalidOrExpiredState, UpstreamExchangeError
from cheapfinder.monitoring.logger import StructuredLogger
from cheapfinder.oauth.state_store import OAuthStateStore

STATE_BYTES = 16
VERIFIER_BYTES = 32


def b64url(data: bytes) -> str:
    """URL-safe base64 without padding."""
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_state() -> str:
    return b64url(secrets.token_bytes(STATE_BYTES))


def generate_code_verifier() -> str:
    return b64url(secrets.token_bytes(VERIFIER_BYTES))


def code_challenge(verifier: str) -> str:
    """S256 challenge: b64url(SHA-256(verifier))."""
    return b64url(hashlib.sha256(verifier.encode("ascii")).digest())


@dataclass(frozen=True)
class OAuthProvider:
    """Endpoints and scope of an OAuth authorization server."""
    name: str
    authorize_url: str
    token_url: str
    scope: str


ETSY = OAuthProvider(
    name="etsy",
    authorize_url="https://www.etsy.com/oauth/connect",
    token_url="https://api.etsy.com/v3/public/oauth/token",
    scope="listings_r",
)


class PKCEAuthorizer:
    """Starts authorizations and exchanges codes for one provider."""

    def __init__(
        self,
        provider: OAuthProvider,
        state_store: OAuthStateStore,
        http_client: AsyncHTTPClient,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            provider: Authorization server description
            state_store: Shared store of pending states
            http_client: Client used for the token request
            logger: Optional structured logger
        """
        self.provider = provider
        self.state_store = state_store
        self.http_client = http_client
        self.logger = logger

    def start_authorization(self, client_id: str, redirect_uri: str) -> str:
        """
        Begin an authorization and return the URL to send the user to.

        The verifier stays in the state store; only its digest leaves the
        process.

        Raises:
            ConfigurationError: If no client id is configured
        """
        if not client_id:
            raise ConfigurationError(f"Missing client id for {self.provider.name}")

        state = generate_state()
        verifier = generate_code_verifier()
        self.state_store.put(state, verifier)

        if self.logger:
            self.logger.oauth_start(provider=self.provider.name)

        url = httpx.URL(
            self.provider.authorize_url,
            params={
                "response_type": "code",
                "client_id": client_id,
                "redirect_uri": redirect_uri,
                "scope": self.provider.scope,
                "state": state,
                "code_challenge": code_challenge(verifier),
                "code_challenge_method": "S256",
            },
        )
        return str(url)

    async def complete_authorization(
        self,
        code: Optional[str],
        state: Optional[str],
        client_id: str,
        redirect_uri: str,
    ) -> TokenSet:
        """
        Exchange an authorization code for tokens.

        The state is consumed before the code is checked, so a callback
        without a code still burns its state.

        Raises:
            InvalidOrExpiredState: Unknown, expired or reused state, or no code
            UpstreamExchangeError: Token endpoint unreachable or refused
        """
        verifier = self.state_store.pop(state)
        if not code or verifier is None:
            raise InvalidOrExpiredState()

        form = {
            "grant_type": "authorization_code",
            "client_id": client_id,
            "redirect_uri": redirect_uri,
            "code": code,
            "code_verifier": verifier,
        }

        try:
            response = await self.http_client.post_form(self.provider.token_url, form)
        except httpx.HTTPError as e:
            self._exchange_failed(str(e) or type(e).__name__)
            raise UpstreamExchangeError(f"OAuth exchange failed: {e}") from e

        if response.is_error:
            self._exchange_failed(f"status {response.status_code}")
            raise UpstreamExchangeError(
                f"OAuth exchange failed: token endpoint returned {response.status_code}: {response.text}",
                status=response.status_code,
                body=response.text,
            )

        try:
            data = response.json()
        except ValueError as e:
            self._exchange_failed("invalid JSON")
            raise UpstreamExchangeError("OAuth exchange failed: token response is not JSON") from e

        access_token = data.get("access_token") if isinstance(data, dict) else None
        if not access_token:
            self._exchange_failed("no access_token")
            raise UpstreamExchangeError("OAuth exchange failed: no access_token in response", body=response.text)

        expires_in = data.get("expires_in") or 0
        try:
            expires_in_seconds = int(float(expires_in))
        except (TypeError, ValueError, OverflowError) as e:
            self._exchange_failed("invalid expires_in")
            raise UpstreamExchangeError(
                f"OAuth exchange failed: invalid expires_in {expires_in!r}",
                body=response.text,
            ) from e

        return TokenSet(
            access_token=access_token,
            refresh_token=data.get("refresh_token") or None,
            expires_in_seconds=expires_in_seconds,
        )

    def _exchange_failed(self, error: str) -> None:
        if self.logger:
            self.logger.oauth_exchange_failed(provider=self.provider.name, error=error)


def render_token_dump(provider: OAuthProvider, tokens: TokenSet) -> str:
    """Plain-text output shown to the operator after a successful exchange."""
    prefix = provider.name.upper()
    return (
        f"{prefix}_ACCESS_TOKEN={tokens.access_token}\n"
        f"{prefix}_REFRESH_TOKEN={tokens.refresh_token or '(none given)'}\n"
        f"expires_in={tokens.expires_in_seconds}s\n"
        "\n"
        "Next steps:\n"
        f"  - set {prefix}_ACCESS_TOKEN in the service environment\n"
        f"  - (optionally) store {prefix}_REFRESH_TOKEN for a later refresh\n"
        "  - restart with MOCK_MODE=false\n"
    )
