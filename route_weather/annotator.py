# ABOUTME: Per-waypoint weather annotation: arrival estimate, forecast match, and place-name lookup.
# ABOUTME: Returns an explicit PointOutcome so one failing point never aborts the whole route.

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta

import httpx

from route_weather.deps import RouteWeatherDeps
from route_weather.errors import RouteWeatherError
from route_weather.models import Coordinate, PointOutcome, WeatherCandidate, Waypoint
from route_weather.routing_service import reverse_geocode
from route_weather.weather_service import closest_forecast, get_forecast

logger = logging.getLogger(__name__)

_POINT_ERRORS = (httpx.HTTPError, RouteWeatherError, ValueError)


def coordinate_label(coord: Coordinate) -> str:
    """Fallback label used when a point has no resolvable place name."""
    return f"({coord.lat:.4f}, {coord.lon:.4f})"


def build_waypoint(
    polyline: Sequence[Coordinate],
    cumulative: Sequence[float],
    total_km: float,
    index: int,
    departure: datetime,
    duration_hours: float,
) -> Waypoint:
    """Derive distance, progress, and estimated arrival for a polyline index."""
    distance = cumulative[index]
    progress = min(1.0, distance / total_km) if total_km > 0 else 0.0
    return Waypoint(
        index=index,
        coordinate=polyline[index],
        distance_km=distance,
        progress=progress,
        estimated_arrival=departure + timedelta(hours=duration_hours * progress),
    )


def _skip(waypoint: Waypoint, reason: str) -> PointOutcome:
    logger.warning(
        "Skipping waypoint %d: %s",
        waypoint.index,
        reason,
        extra={"waypoint_index": waypoint.index, "reason": reason},
    )
    return PointOutcome(index=waypoint.index, status="skipped", reason=reason)


async def annotate_waypoint(deps: RouteWeatherDeps, waypoint: Waypoint) -> PointOutcome:
    """Fetch and match weather for one waypoint, then resolve its place name."""
    client = deps.http_client
    coord = waypoint.coordinate

    try:
        entries = await get_forecast(client, deps.settings.openweathermap_api_key, coord)
    except _POINT_ERRORS as e:
        return _skip(waypoint, f"forecast request failed: {e}")

    forecast = closest_forecast(entries, waypoint.estimated_arrival)
    if forecast is None:
        return _skip(waypoint, "forecast response had no usable entries")

    status = "success"
    reason = None
    try:
        name = await reverse_geocode(client, deps.settings.openrouteservice_api_key, coord)
    except _POINT_ERRORS as e:
        logger.warning("Reverse geocoding failed for waypoint %d: %s", waypoint.index, e)
        name = None
        reason = f"reverse geocoding failed: {e}"
    if not name:
        status = "fallback"
        reason = reason or "reverse geocoding returned no name"
        name = coordinate_label(coord)

    return PointOutcome(
        index=waypoint.index,
        status=status,
        candidate=WeatherCandidate(waypoint=waypoint, name=name, forecast=forecast),
        reason=reason,
    )
