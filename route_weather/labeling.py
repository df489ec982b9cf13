# ABOUTME: Deduplicates annotated waypoints that resolve to the same place and builds display labels.
# ABOUTME: Start and destination are always kept; repeats get distance-mark labels or are dropped.

import logging

from route_weather.models import WeatherCandidate, WeatherPoint

logger = logging.getLogger(__name__)

DEFAULT_MIN_SPREAD_RATIO = 0.7
EARLY_COVERAGE_COUNT = 3


def distance_mark(name: str, distance_km: float) -> str:
    return f"{name} ({round(distance_km)}km mark)"


def to_weather_point(candidate: WeatherCandidate, label: str, is_mock: bool = False) -> WeatherPoint:
    """Package a candidate into the response shape under the given label."""
    wp = candidate.waypoint
    fc = candidate.forecast
    return WeatherPoint(
        location=label,
        coordinate=wp.coordinate,
        description=fc.description,
        icon=fc.icon,
        temperature=fc.temperature,
        humidity=fc.humidity,
        wind_speed=fc.wind_speed,
        estimated_arrival=wp.estimated_arrival.strftime("%H:%M"),
        progress=round(wp.progress * 100),
        distance_from_start=round(wp.distance_km, 1),
        is_mock=is_mock,
    )


def label_points(
    candidates: list[WeatherCandidate],
    last_index: int,
    distance_interval: float,
    min_spread_ratio: float = DEFAULT_MIN_SPREAD_RATIO,
) -> list[WeatherPoint]:
    """Choose which candidates to show and how to label them, in route order.

    Rules, checked in order for each candidate:

    1. Start and destination are always kept. If the name repeats the previous
       accepted name, "(Start)" or "(Destination)" is appended.
    2. A new name is kept as is.
    3. A repeated name is kept with a distance mark while fewer than three points
       have been accepted.
    4. After that, a repeated name is kept with a distance mark only if it lies
       more than ``min_spread_ratio * distance_interval`` km past the last kept point.
    5. Anything else is dropped.

    No two consecutive outputs share both label and coordinate.
    """
    accepted: list[WeatherPoint] = []
    prev_name: str | None = None
    prev_distance = 0.0
    min_spread = min_spread_ratio * distance_interval

    for candidate in candidates:
        wp = candidate.waypoint
        name = candidate.name
        is_start = wp.index == 0
        is_end = wp.index == last_index
        repeats = bool(accepted) and name == prev_name

        if is_start or is_end:
            label = f"{name} ({'Start' if is_start else 'Destination'})" if repeats else name
        elif not repeats:
            label = name
        elif len(accepted) < EARLY_COVERAGE_COUNT or wp.distance_km - prev_distance > min_spread:
            label = distance_mark(name, wp.distance_km)
        else:
            logger.debug("Dropping waypoint %d: repeats %r too close to previous point", wp.index, name)
            continue

        if accepted and accepted[-1].location == label and accepted[-1].coordinate == wp.coordinate:
            if not is_end:
                logger.debug("Dropping waypoint %d: duplicate of previous point", wp.index)
                continue
            label = f"{label} (Destination)"

        accepted.append(to_weather_point(candidate, label))
        prev_name = name
        prev_distance = wp.distance_km

    return accepted
