# ABOUTME: Exception types for the route weather service and upstream error translation.
# ABOUTME: Maps httpx transport and status failures to short user-facing messages.

import ssl

import httpx


class RouteWeatherError(Exception):
    """Base class for errors raised by the route weather pipeline."""


class ConfigError(RouteWeatherError):
    """Raised at startup when required configuration is missing or invalid."""


class UpstreamShapeError(RouteWeatherError):
    """Raised when a provider payload is missing a structural field we depend on."""


CERTIFICATE_MESSAGE = (
    "Could not verify the upstream service's TLS certificate. "
    "Check your network proxy or set VERIFY_TLS=false for local development."
)
CONNECTIVITY_MESSAGE = "Could not reach the upstream service. Check your internet connection and try again."
CREDENTIALS_MESSAGE = "The upstream service rejected the API key. Check your credentials."
RATE_LIMIT_MESSAGE = "Upstream rate limit reached. Please wait a moment and try again."
GENERIC_MESSAGE = "Failed to fetch data from upstream service."


def _is_certificate_error(exc: BaseException) -> bool:
    """Walk the exception chain looking for an SSL verification failure."""
    seen = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, ssl.SSLError) or "CERTIFICATE_VERIFY_FAILED" in str(current):
            return True
        current = current.__cause__ or current.__context__
    return False


def describe_upstream_error(exc: BaseException) -> str:
    """Translate an upstream failure into a message safe to show to API clients."""
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if status in (401, 403):
            return CREDENTIALS_MESSAGE
        if status == 429:
            return RATE_LIMIT_MESSAGE
        return GENERIC_MESSAGE
    if _is_certificate_error(exc):
        return CERTIFICATE_MESSAGE
    if isinstance(exc, (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError)):
        return CONNECTIVITY_MESSAGE
    return GENERIC_MESSAGE


def expect_json_object(resp: httpx.Response, source: str) -> dict:
    """Decode a provider response body, insisting on a JSON object.

    HTML error pages and bare arrays surface as UpstreamShapeError rather than
    leaking decode errors into callers.
    """
    try:
        data = resp.json()
    except ValueError as e:
        raise UpstreamShapeError(f"{source} response was not valid JSON") from e
    if not isinstance(data, dict):
        raise UpstreamShapeError(f"{source} response was not a JSON object")
    return data
