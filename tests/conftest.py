# ABOUTME: Shared test fixtures for the route weather test suite.
# ABOUTME: Provides settings, canned provider payloads, and a URL-routing mock HTTP client factory.

from datetime import datetime, timezone
from unittest.mock import AsyncMock

import httpx
import pytest

from route_weather.config import Settings
from route_weather.deps import RouteWeatherDeps

DEPARTURE = datetime(2025, 6, 1, 8, 0, tzinfo=timezone.utc)


def make_response(url: str, json_data=None, status_code: int = 200, text: str | None = None) -> httpx.Response:
    """Build a real httpx.Response bound to a request so raise_for_status works."""
    request = httpx.Request("GET", url)
    if text is not None:
        return httpx.Response(status_code=status_code, text=text, request=request)
    return httpx.Response(status_code=status_code, json=json_data, request=request)


def straight_route_payload(points: int = 10, distance_m: float = 120000, duration_s: float = 5400) -> dict:
    """Directions payload for a straight meridian route from (0, 0) to (0, 1)."""
    coords = [[0.0, i / (points - 1)] for i in range(points)]
    return {
        "features": [
            {
                "geometry": {"coordinates": coords},
                "properties": {"summary": {"distance": distance_m, "duration": duration_s}},
            }
        ]
    }


def forecast_payload(start: datetime = DEPARTURE, buckets: int = 8) -> dict:
    """Forecast payload with 3-hourly entries beginning at ``start``."""
    base = int(start.timestamp())
    return {
        "list": [
            {
                "dt": base + i * 3 * 3600,
                "main": {"temp": 10.0 + i, "humidity": 60 + i},
                "weather": [{"description": f"condition {i}", "icon": f"0{i % 4 + 1}d"}],
                "wind": {"speed": 2.0 + i},
            }
            for i in range(buckets)
        ]
    }


@pytest.fixture
def settings() -> Settings:
    return Settings(
        openrouteservice_api_key="ors-test-key",
        openweathermap_api_key="owm-test-key",
        waypoint_count=5,
        _env_file=None,
    )


@pytest.fixture
def make_client():
    """Factory for a mock httpx.AsyncClient that dispatches GETs by URL prefix.

    Each route value is either an httpx.Response, an exception to raise, or a
    callable taking (url, params) and returning one of those.
    """

    def factory(routes: dict) -> httpx.AsyncClient:
        mock = AsyncMock(spec=httpx.AsyncClient)

        def get(url, params=None, **kwargs):
            for prefix, handler in routes.items():
                if url.startswith(prefix):
                    result = handler(url, params) if callable(handler) else handler
                    if isinstance(result, Exception):
                        raise result
                    return result
            raise AssertionError(f"Unexpected request to {url}")

        mock.get.side_effect = get
        return mock

    return factory


@pytest.fixture
def make_deps(settings, make_client):
    def factory(routes: dict) -> RouteWeatherDeps:
        return RouteWeatherDeps(settings=settings, http_client=make_client(routes))

    return factory
