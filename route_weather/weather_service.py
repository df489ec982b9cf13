# ABOUTME: Service layer for OpenWeatherMap forecast API calls and response parsing.
# ABOUTME: Fetches the 5-day/3-hour forecast for a coordinate and matches entries to arrival times.

from datetime import datetime, timezone

import httpx
from pydantic import ValidationError

from route_weather.errors import expect_json_object
from route_weather.geo import closest_index
from route_weather.models import Coordinate, ForecastEntry

FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"


async def get_forecast(client: httpx.AsyncClient, api_key: str, coord: Coordinate) -> list[ForecastEntry]:
    """Fetch the 5-day/3-hour forecast for a coordinate in metric units."""
    resp = await client.get(
        FORECAST_URL,
        params={"lat": coord.lat, "lon": coord.lon, "appid": api_key, "units": "metric"},
    )
    resp.raise_for_status()
    data = expect_json_object(resp, "Forecast")
    return parse_forecast_list(data.get("list"))


def parse_forecast_list(raw) -> list[ForecastEntry]:
    """Parse OpenWeatherMap forecast rows, skipping entries that lack required fields."""
    if not isinstance(raw, list):
        return []

    result = []
    for item in raw:
        entry = _parse_entry(item)
        if entry is not None:
            result.append(entry)
    return result


def _parse_entry(item) -> ForecastEntry | None:
    """Parse one forecast row, returning None if dt, main.temp, or weather[0] is missing."""
    if not isinstance(item, dict):
        return None
    main = item.get("main")
    conditions = item.get("weather")
    if item.get("dt") is None or not isinstance(main, dict) or main.get("temp") is None:
        return None
    if not isinstance(conditions, list) or not conditions:
        return None

    condition = conditions[0] if isinstance(conditions[0], dict) else {}
    try:
        return ForecastEntry(
            timestamp=datetime.fromtimestamp(item["dt"], tz=timezone.utc),
            description=condition.get("description", ""),
            icon=condition.get("icon", ""),
            temperature=main["temp"],
            humidity=main.get("humidity"),
            wind_speed=(item.get("wind") or {}).get("speed"),
        )
    except (ValidationError, AttributeError, TypeError, ValueError, OverflowError, OSError):
        return None


def closest_forecast(entries: list[ForecastEntry], target: datetime) -> ForecastEntry | None:
    """Return the forecast entry whose timestamp is nearest to the target time."""
    index = closest_index(entries, target.timestamp(), key=lambda e: e.timestamp.timestamp())
    return entries[index] if index is not None else None
