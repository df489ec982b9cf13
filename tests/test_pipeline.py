# ABOUTME: End-to-end tests for compute_route_weather with all providers mocked.
# ABOUTME: Validates response assembly, route-order output, partial failures, and the mock-data fallback.

import httpx
import pytest

from conftest import DEPARTURE, forecast_payload, make_response, straight_route_payload

from route_weather.errors import UpstreamShapeError
from route_weather.models import Coordinate, TrafficLevel
from route_weather.pipeline import compute_route_weather
from route_weather.routing_service import DIRECTIONS_URL, GEOCODE_REVERSE_URL
from route_weather.weather_service import FORECAST_URL

START = Coordinate(lon=0.0, lat=0.0)
END = Coordinate(lon=0.0, lat=1.0)


def _reverse_by_latitude(url, params):
    """Name each point after its latitude band so every sampled point is distinct."""
    return make_response(url, {"features": [{"properties": {"name": f"Town {params['point.lat']:.2f}"}}]})


class TestComputeRouteWeather:
    @pytest.mark.asyncio
    async def test_assembles_full_response(self, make_deps):
        """A healthy run returns route summary plus one weather point per sampled waypoint.

        Implementation: 10-point straight route, K=5, distinct place names, forecast always available.
        Passing implies: Distance, duration, traffic, geometry, and ordered weather points are all populated.
        """
        deps = make_deps(
            {
                DIRECTIONS_URL: make_response(DIRECTIONS_URL, straight_route_payload()),
                FORECAST_URL: make_response(FORECAST_URL, forecast_payload()),
                GEOCODE_REVERSE_URL: _reverse_by_latitude,
            }
        )
        result = await compute_route_weather(deps, START, END, DEPARTURE)

        assert result.distance == "120.00"
        assert result.duration == "1.50"
        assert result.traffic is TrafficLevel.MODERATE
        assert len(result.route_coordinates) == 10
        assert result.route_coordinates[-1] == (0.0, 1.0)

        points = result.weather_data
        assert len(points) == 5
        assert points[0].progress == 0
        assert points[-1].progress == 100
        assert points[0].estimated_arrival == "08:00"
        assert points[-1].estimated_arrival == "09:30"
        assert [p.distance_from_start for p in points] == sorted(p.distance_from_start for p in points)
        assert not any(p.is_mock for p in points)

    @pytest.mark.asyncio
    async def test_serializes_client_payload(self, make_deps):
        """The JSON dump uses the camelCase keys the client reads."""
        deps = make_deps(
            {
                DIRECTIONS_URL: make_response(DIRECTIONS_URL, straight_route_payload()),
                FORECAST_URL: make_response(FORECAST_URL, forecast_payload()),
                GEOCODE_REVERSE_URL: _reverse_by_latitude,
            }
        )
        data = (await compute_route_weather(deps, START, END, DEPARTURE)).model_dump(mode="json", by_alias=True)

        assert set(data) == {"weatherData", "distance", "duration", "traffic", "routeCoordinates"}
        assert data["traffic"] == "Moderate Traffic"
        assert data["routeCoordinates"][0] == [0.0, 0.0]
        assert data["weatherData"][0]["location"] == "Town 0.00"
        assert data["weatherData"][0]["lat"] == 0.0
        assert data["weatherData"][0]["lon"] == 0.0
        assert data["weatherData"][-1]["lat"] == 1.0
        assert "coordinate" not in data["weatherData"][0]

    @pytest.mark.asyncio
    async def test_malformed_reverse_payload_keeps_point(self, make_deps):
        """A malformed reverse-geocoding payload for one point keeps its weather.

        Implementation: The second reverse lookup returns {"features": ["oops"]}; the rest are healthy.
        Passing implies: Bad name payloads degrade to a coordinate label and never trigger mock data.
        """
        calls = []

        def reverse(url, params):
            calls.append(params)
            if len(calls) == 2:
                return make_response(url, {"features": ["oops"]})
            return _reverse_by_latitude(url, params)

        deps = make_deps(
            {
                DIRECTIONS_URL: make_response(DIRECTIONS_URL, straight_route_payload()),
                FORECAST_URL: make_response(FORECAST_URL, forecast_payload()),
                GEOCODE_REVERSE_URL: reverse,
            }
        )
        result = await compute_route_weather(deps, START, END, DEPARTURE)

        assert len(result.weather_data) == 5
        assert not any(p.is_mock for p in result.weather_data)
        assert result.weather_data[1].location.startswith("(")

    @pytest.mark.asyncio
    async def test_single_point_failure_is_isolated(self, make_deps):
        """One failing forecast drops only that point.

        Implementation: The forecast for the midpoint latitude returns 500; others succeed.
        Passing implies: Per-point errors never abort the request.
        """

        def forecast(url, params):
            if abs(params["lat"] - 0.5) < 0.07:
                return make_response(url, {}, status_code=500)
            return make_response(url, forecast_payload())

        deps = make_deps(
            {
                DIRECTIONS_URL: make_response(DIRECTIONS_URL, straight_route_payload()),
                FORECAST_URL: forecast,
                GEOCODE_REVERSE_URL: _reverse_by_latitude,
            }
        )
        result = await compute_route_weather(deps, START, END, DEPARTURE)

        assert len(result.weather_data) == 4
        assert all(abs(p.coordinate.lat - 0.5) >= 0.07 for p in result.weather_data)

    @pytest.mark.asyncio
    async def test_total_weather_failure_returns_mock_points(self, make_deps):
        """When every forecast call fails, eight flagged mock points are returned.

        Implementation: Forecast endpoint raises a connect error for every point.
        Passing implies: The response is never an empty weather list.
        """
        deps = make_deps(
            {
                DIRECTIONS_URL: make_response(DIRECTIONS_URL, straight_route_payload()),
                FORECAST_URL: httpx.ConnectError("unreachable"),
            }
        )
        result = await compute_route_weather(deps, START, END, DEPARTURE)

        assert len(result.weather_data) == 8
        assert all(p.is_mock for p in result.weather_data)
        assert result.distance == "120.00"

    @pytest.mark.asyncio
    async def test_route_shape_error_propagates(self, make_deps):
        """A directions payload without features raises UpstreamShapeError."""
        deps = make_deps({DIRECTIONS_URL: make_response(DIRECTIONS_URL, {"features": []})})
        with pytest.raises(UpstreamShapeError, match="no features"):
            await compute_route_weather(deps, START, END, DEPARTURE)
