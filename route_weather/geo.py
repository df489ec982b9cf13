# ABOUTME: Great-circle distance accumulation and distance-even waypoint selection along a polyline.
# ABOUTME: Also provides the closest-value search shared by index selection and forecast matching.

import math
from collections.abc import Callable, Sequence
from typing import Any

from route_weather.models import Coordinate

EARTH_RADIUS_KM = 6371.0
DEFAULT_WAYPOINT_COUNT = 15


def haversine_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in kilometres between two coordinates."""
    lat1, lat2 = math.radians(a.lat), math.radians(b.lat)
    dlat = lat2 - lat1
    dlon = math.radians(b.lon - a.lon)
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def cumulative_distances(polyline: Sequence[Coordinate]) -> tuple[list[float], float]:
    """Return the running path length at every polyline point, and the total length.

    Entry 0 is always 0.0 and the table is index-aligned with the polyline.
    """
    if not polyline:
        return [], 0.0

    table = [0.0]
    total = 0.0
    for prev, cur in zip(polyline, polyline[1:]):
        total += haversine_km(prev, cur)
        table.append(total)
    return table, total


def closest_index(
    values: Sequence[Any],
    target: float,
    key: Callable[[Any], float | None] | None = None,
) -> int | None:
    """Index of the element minimizing |value - target|, first seen wins on ties.

    Elements whose key is None are skipped. Returns None if nothing qualifies.
    """
    best_index = None
    best_diff = math.inf
    for i, item in enumerate(values):
        value = key(item) if key is not None else item
        if value is None:
            continue
        diff = abs(value - target)
        if diff < best_diff:
            best_index = i
            best_diff = diff
    return best_index


def select_waypoint_indices(
    cumulative: Sequence[float],
    total: float,
    count: int = DEFAULT_WAYPOINT_COUNT,
) -> list[int]:
    """Pick up to ``count`` polyline indices spaced evenly by distance along the route.

    The first and last indices are always present. Intermediate candidates that
    fall within ``max(1, len // count)`` indices of one already accepted are
    dropped so locally dense stretches of polyline do not cluster. A zero-length
    route falls back to even spacing by index.
    """
    n = len(cumulative)
    if n == 0:
        return []
    last = n - 1
    if last == 0:
        return [0]
    if count - 1 <= 0:
        return [0, last]

    min_gap = max(1, n // count)
    interval = total / (count - 1)
    accepted: list[int] = []

    for location_num in range(1, count - 1):
        if total > 0:
            candidate = closest_index(cumulative, location_num * interval)
        else:
            candidate = math.floor(location_num / (count - 1) * last)
        if candidate is None:
            continue
        if any(abs(candidate - other) < min_gap for other in accepted):
            continue
        accepted.append(candidate)

    return sorted(set(accepted) | {0, last})
