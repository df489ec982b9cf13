# ABOUTME: Synthetic demonstration weather used when no real waypoint weather could be fetched.
# ABOUTME: Places a fixed number of flagged mock points evenly by distance along the route.

import logging
import math
import random
from collections.abc import Sequence
from datetime import datetime, timedelta

from route_weather.geo import closest_index
from route_weather.labeling import to_weather_point
from route_weather.models import Coordinate, ForecastEntry, WeatherCandidate, WeatherPoint, Waypoint

logger = logging.getLogger(__name__)

DEFAULT_MOCK_POINT_COUNT = 8

# (description, icon, base temperature C, base humidity %, base wind m/s)
MOCK_CONDITIONS = [
    ("clear sky", "01d", 22.0, 45.0, 3.0),
    ("few clouds", "02d", 19.0, 55.0, 4.0),
    ("scattered clouds", "03d", 17.0, 60.0, 5.0),
    ("light rain", "10d", 14.0, 80.0, 6.0),
    ("overcast clouds", "04d", 15.0, 70.0, 4.5),
]


def _mock_label(i: int, count: int) -> str:
    if i == 0:
        return "Start"
    if i == count - 1:
        return "Destination"
    return f"Route point {i}"


def generate_mock_points(
    polyline: Sequence[Coordinate],
    cumulative: Sequence[float],
    total_km: float,
    departure: datetime,
    duration_hours: float,
    count: int = DEFAULT_MOCK_POINT_COUNT,
    rng: random.Random | None = None,
) -> list[WeatherPoint]:
    """Build exactly ``count`` synthetic weather points spanning 0-100% of the route.

    Each point sits at the polyline index closest to ``i / (count - 1)`` of the
    route length (index spacing for a zero-length route), so short polylines may
    repeat coordinates but the point count never changes.
    """
    if not polyline:
        return []
    rng = rng or random.Random()
    last = len(polyline) - 1
    count = max(count, 2)
    logger.warning("No real weather data along route, generating %d mock points", count)

    points = []
    for i in range(count):
        fraction = i / (count - 1)
        if total_km > 0:
            index = closest_index(cumulative, fraction * total_km)
        else:
            index = math.floor(fraction * last)
        waypoint = Waypoint(
            index=index,
            coordinate=polyline[index],
            distance_km=fraction * total_km,
            progress=fraction,
            estimated_arrival=departure + timedelta(hours=duration_hours * fraction),
        )

        description, icon, temp, humidity, wind = MOCK_CONDITIONS[i % len(MOCK_CONDITIONS)]
        forecast = ForecastEntry(
            timestamp=waypoint.estimated_arrival,
            description=description,
            icon=icon,
            temperature=round(temp + rng.uniform(-3, 3), 1),
            humidity=round(min(100.0, max(0.0, humidity + rng.uniform(-10, 10)))),
            wind_speed=round(max(0.0, wind + rng.uniform(-1.5, 1.5)), 1),
        )
        candidate = WeatherCandidate(waypoint=waypoint, name=_mock_label(i, count), forecast=forecast)
        points.append(to_weather_point(candidate, candidate.name, is_mock=True))
    return points
