"""FastAPI application exposing search, health and the OAuth bootstrap flow."""

from contextlib import asynccontextmanager
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from cheapfinder.api.middleware import RateLimitMiddleware
from cheapfinder.api.params import parse_search_request
from cheapfinder.fetcher.http_client import AsyncHTTPClient
from cheapfinder.fetcher.rate_limiter import FixedWindowRateLimiter
from cheapfinder.models.config import AppConfig, ConfigManager
from cheapfinder.models.errors import (
    ConfigurationError,
    InternalError,
    InvalidOrExpiredState,
    UpstreamExchangeError,
    ValidationError,
)
from cheapfinder.monitoring.logger import StructuredLogger
from cheapfinder.oauth.pkce import ETSY, PKCEAuthorizer, render_token_dump
from cheapfinder.oauth.state_store import OAuthStateStore
from cheapfinder.pipeline.analytics import SearchObserver, build_observer
from cheapfinder.pipeline.engine import SearchEngine
from cheapfinder.pipeline.output import JSONOutputFormatter
from cheapfinder.sources import SourceAdapter, build_adapters


def _oauth_client_settings(config: AppConfig) -> Dict[str, Dict[str, str]]:
    """Configured client id and redirect URI per OAuth-capable source."""
    return {
        "etsy": {"client_id": config.etsy_api_key, "redirect_uri": config.etsy_redirect_uri},
    }


def _redirect_uri(request: Request, source: str, configured: str) -> str:
    if configured:
        return configured
    return f"https://{request.headers.get('host', 'localhost')}/oauth/{source}/callback"


def create_app(
    config: Optional[AppConfig] = None,
    *,
    http_client: Optional[AsyncHTTPClient] = None,
    adapters: Optional[Dict[str, SourceAdapter]] = None,
    observer: Optional[SearchObserver] = None,
    rate_limiter: Optional[FixedWindowRateLimiter] = None,
    state_store: Optional[OAuthStateStore] = None,
) -> FastAPI:
    """
    Build the application and its process-wide components.

    Every shared component is constructed once here and reached through
    ``app.state``; keyword arguments replace individual components in tests.

    Args:
        config: Service configuration (loaded from config/config.yaml + env if omitted)
        http_client: Shared upstream HTTP client, opened by the app lifespan
        adapters: Source adapters keyed by source key
        observer: Analytics sink
        rate_limiter: Admission control for all non-health routes
        state_store: Pending OAuth states

    Returns:
        FastAPI application
    """
    config = config or ConfigManager().config
    logger = StructuredLogger(level=config.log_level, structured=config.structured_logging)

    http_client = http_client or AsyncHTTPClient(
        connect_timeout=config.connect_timeout,
        read_timeout=config.read_timeout,
    )
    if adapters is None:
        adapters = build_adapters(config, http_client)
    if observer is None:
        observer = build_observer(config, http_client, logger)

    engine = SearchEngine(config, adapters, observer=observer, logger=logger)
    rate_limiter = rate_limiter or FixedWindowRateLimiter(
        max_requests=config.rate_limit_max_requests,
        window_seconds=config.rate_limit_window_seconds,
    )
    state_store = state_store or OAuthStateStore(ttl_seconds=config.oauth_state_ttl_seconds)
    authorizers = {"etsy": PKCEAuthorizer(ETSY, state_store, http_client, logger=logger)}
    oauth_clients = _oauth_client_settings(config)
    formatter = JSONOutputFormatter()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with http_client:
            yield
            await engine.drain()

    app = FastAPI(title="CheapFinder", lifespan=lifespan)
    app.add_middleware(RateLimitMiddleware, rate_limiter=rate_limiter, logger=logger)

    app.state.config = config
    app.state.engine = engine
    app.state.rate_limiter = rate_limiter
    app.state.state_store = state_store
    app.state.authorizers = authorizers

    @app.get("/health")
    async def health():
        """Liveness probe."""
        return {"ok": True, "env": config.env, "mock": config.mock_mode}

    @app.get("/search")
    async def search(request: Request):
        """Ranked top-N listings for a query."""
        try:
            search_request = parse_search_request(request.query_params, default_zip=config.default_zip)
        except ValidationError as e:
            return JSONResponse(status_code=e.status_code, content={"error": str(e)})

        try:
            listings = await engine.search(search_request)
        except Exception as e:
            logger.error("search_failed", exc_info=True, query=search_request.q, error=str(e))
            error = InternalError()
            return JSONResponse(status_code=error.status_code, content={"error": str(error)})

        return formatter.format(listings)

    @app.get("/oauth/{source}/start")
    async def oauth_start(source: str, request: Request):
        """Redirect the operator to the provider's consent page."""
        authorizer = authorizers.get(source)
        if authorizer is None:
            return PlainTextResponse(f"Unknown OAuth source: {source}", status_code=404)

        settings = oauth_clients[source]
        try:
            url = authorizer.start_authorization(
                settings["client_id"],
                _redirect_uri(request, source, settings["redirect_uri"]),
            )
        except ConfigurationError as e:
            return PlainTextResponse(str(e), status_code=e.status_code)
        return RedirectResponse(url, status_code=302)

    @app.get("/oauth/{source}/callback")
    async def oauth_callback(
        source: str,
        request: Request,
        code: Optional[str] = None,
        state: Optional[str] = None,
    ):
        """Exchange the authorization code and show the tokens to the operator."""
        authorizer = authorizers.get(source)
        if authorizer is None:
            return PlainTextResponse(f"Unknown OAuth source: {source}", status_code=404)

        settings = oauth_clients[source]
        try:
            tokens = await authorizer.complete_authorization(
                code,
                state,
                client_id=settings["client_id"],
                redirect_uri=_redirect_uri(request, source, settings["redirect_uri"]),
            )
        except (InvalidOrExpiredState, UpstreamExchangeError) as e:
            return PlainTextResponse(str(e), status_code=e.status_code)

        return PlainTextResponse(render_token_dump(authorizer.provider, tokens))

    return app
