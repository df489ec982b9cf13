# ABOUTME: Dependency container for the route weather pipeline using Pydantic BaseModel.
# ABOUTME: Holds validated settings and the shared httpx.AsyncClient used to call provider APIs.

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic_ai.retries import AsyncTenacityTransport, RetryConfig, wait_retry_after
from tenacity import retry_if_exception, stop_after_attempt

from route_weather.config import Settings

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


class RouteWeatherDeps(BaseModel):
    """Everything a pipeline run needs, passed in explicitly instead of read from globals."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    settings: Settings
    http_client: httpx.AsyncClient


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS
    return isinstance(exc, (httpx.ConnectError, httpx.ReadTimeout))


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create an httpx client with tenacity retry on transient HTTP errors.

    Retries connection errors, read timeouts, and 429/5xx responses with backoff
    that honors Retry-After. Auth failures and other 4xx responses are not retried.
    """
    transport = AsyncTenacityTransport(
        RetryConfig(
            retry=retry_if_exception(_is_transient),
            wait=wait_retry_after(max_wait=30),
            stop=stop_after_attempt(3),
            reraise=True,
        ),
        wrapped=httpx.AsyncHTTPTransport(verify=settings.verify_tls),
        validate_response=lambda r: r.raise_for_status(),
    )
    return httpx.AsyncClient(transport=transport, timeout=settings.request_timeout)
