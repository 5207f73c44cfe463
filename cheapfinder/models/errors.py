"""Exception taxonomy for the search service.

Each error carries the HTTP status it maps to at the API boundary so the
routes can translate without a lookup table.
"""


class CheapFinderError(Exception):
    """Base class for all service errors."""

    status_code: int = 500


class ValidationError(CheapFinderError):
    """A request parameter is missing or out of range."""

    status_code = 400


class RateLimitExceeded(CheapFinderError):
    """Client exceeded its request allowance for the current window."""

    status_code = 429

    def __init__(self, message: str = "Rate limit exceeded. Try again in a minute."):
        super().__init__(message)


class AdapterFailure(CheapFinderError):
    """A single source adapter failed. Absorbed by the engine."""

    def __init__(self, source: str, reason: str):
        super().__init__(f"{source}: {reason}")
        self.source = source
        self.reason = reason


class ConfigurationError(CheapFinderError):
    """A required configuration value (e.g. OAuth client id) is missing."""

    status_code = 400


class InvalidOrExpiredState(CheapFinderError):
    """OAuth callback carried an unknown, expired or reused state, or no code."""

    status_code = 400

    def __init__(self, message: str = "Invalid/expired state or code"):
        super().__init__(message)


class UpstreamExchangeError(CheapFinderError):
    """Token endpoint rejected the authorization code exchange."""

    status_code = 500

    def __init__(self, message: str, status: int = None, body: str = None):
        super().__init__(message)
        self.status = status
        self.body = body


class InternalError(CheapFinderError):
    """Unexpected failure in the search path. Message is safe to return."""

    status_code = 500

    def __init__(self, message: str = "Internal error"):
        super().__init__(message)
