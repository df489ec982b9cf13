# ABOUTME: Entry point that computes weather along a driving route from start to end coordinates.
# ABOUTME: Chains route fetch, distance model, waypoint selection, annotation, labeling, and fallback.

import logging
from datetime import datetime, timezone

from route_weather.annotator import annotate_waypoint, build_waypoint
from route_weather.deps import RouteWeatherDeps
from route_weather.fallback import generate_mock_points
from route_weather.geo import cumulative_distances, select_waypoint_indices
from route_weather.labeling import label_points
from route_weather.models import Coordinate, PointOutcome, RouteSummary, RouteWeatherResponse
from route_weather.routing_service import get_route
from route_weather.traffic import estimate_traffic

logger = logging.getLogger(__name__)


async def compute_route_weather(
    deps: RouteWeatherDeps,
    start: Coordinate,
    end: Coordinate,
    departure: datetime | None = None,
) -> RouteWeatherResponse:
    """Fetch a route and return its summary with weather at representative points.

    Route fetch errors propagate to the caller. Per-point weather errors do not:
    they are logged and the point is skipped, and if no point survives the
    response is filled with flagged mock data instead.
    """
    settings = deps.settings
    departure = departure or datetime.now(timezone.utc)

    route = await get_route(deps.http_client, settings.openrouteservice_api_key, start, end)
    polyline = route.coordinates
    cumulative, total_km = cumulative_distances(polyline)
    indices = select_waypoint_indices(cumulative, total_km, settings.waypoint_count)
    logger.info(
        "Route has %d points over %.1f km, sampling %d waypoints", len(polyline), total_km, len(indices)
    )

    outcomes: list[PointOutcome] = []
    for index in indices:
        waypoint = build_waypoint(polyline, cumulative, total_km, index, departure, route.duration_hours)
        outcomes.append(await annotate_waypoint(deps, waypoint))

    candidates = [o.candidate for o in outcomes if o.candidate is not None]
    skipped = sum(1 for o in outcomes if o.status == "skipped")
    if skipped:
        logger.info("Skipped %d of %d waypoints", skipped, len(outcomes))

    interval = total_km / (settings.waypoint_count - 1)
    points = label_points(candidates, len(polyline) - 1, interval, settings.min_spread_ratio)
    if not points:
        points = generate_mock_points(
            polyline, cumulative, total_km, departure, route.duration_hours, settings.mock_point_count
        )

    summary = RouteSummary(
        distance_km=route.distance_km,
        duration_hours=route.duration_hours,
        traffic=estimate_traffic(route.distance_km, route.duration_hours),
        coordinates=polyline,
    )
    return RouteWeatherResponse.from_summary(summary, points)
