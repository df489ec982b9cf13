# ABOUTME: Service layer for OpenRouteService directions and geocoding API calls.
# ABOUTME: Handles forward/reverse geocoding, autocomplete, and driving route retrieval and parsing.

import httpx
from pydantic import ValidationError

from route_weather.errors import UpstreamShapeError, expect_json_object
from route_weather.models import Coordinate, GeoLocation, PlaceSuggestion, Route

DIRECTIONS_URL = "https://api.openrouteservice.org/v2/directions/driving-car"
GEOCODE_SEARCH_URL = "https://api.openrouteservice.org/geocode/search"
GEOCODE_REVERSE_URL = "https://api.openrouteservice.org/geocode/reverse"
GEOCODE_AUTOCOMPLETE_URL = "https://api.openrouteservice.org/geocode/autocomplete"

REVERSE_LAYERS = "locality,county,region"
MIN_AUTOCOMPLETE_LENGTH = 2
AUTOCOMPLETE_SIZE = 5


def format_coordinate(coord: Coordinate) -> str:
    """Format a coordinate as the 'lon,lat' string OpenRouteService expects."""
    return f"{coord.lon},{coord.lat}"


async def geocode(client: httpx.AsyncClient, api_key: str, text: str) -> GeoLocation | None:
    """Resolve free text to coordinates using the Pelias search endpoint."""
    resp = await client.get(GEOCODE_SEARCH_URL, params={"api_key": api_key, "text": text, "size": 1})
    resp.raise_for_status()
    features = expect_json_object(resp, "Geocoding").get("features") or []
    if not features:
        return None

    try:
        lon, lat = features[0]["geometry"]["coordinates"][:2]
    except (KeyError, TypeError, ValueError) as e:
        raise UpstreamShapeError("Geocoding response feature has no coordinates") from e
    return GeoLocation(lat=lat, lon=lon)


async def reverse_geocode(client: httpx.AsyncClient, api_key: str, coord: Coordinate) -> str | None:
    """Look up the nearest locality, county, or region name for a coordinate."""
    resp = await client.get(
        GEOCODE_REVERSE_URL,
        params={
            "api_key": api_key,
            "point.lat": coord.lat,
            "point.lon": coord.lon,
            "size": 1,
            "layers": REVERSE_LAYERS,
        },
    )
    resp.raise_for_status()
    features = expect_json_object(resp, "Reverse geocoding").get("features") or []
    if not isinstance(features, list):
        raise UpstreamShapeError("Reverse geocoding features was not a list")
    if not features:
        return None

    feature = features[0]
    props = feature.get("properties") if isinstance(feature, dict) else None
    if not isinstance(props, dict):
        raise UpstreamShapeError("Reverse geocoding feature has no properties object")
    name = props.get("name")
    return name if isinstance(name, str) and name.strip() else None


async def autocomplete(client: httpx.AsyncClient, api_key: str, query: str) -> list[PlaceSuggestion]:
    """Return place suggestions for a partial query; short queries return nothing."""
    query = query.strip()
    if len(query) < MIN_AUTOCOMPLETE_LENGTH:
        return []

    resp = await client.get(
        GEOCODE_AUTOCOMPLETE_URL,
        params={"api_key": api_key, "text": query, "size": AUTOCOMPLETE_SIZE},
    )
    resp.raise_for_status()
    return parse_suggestions(expect_json_object(resp, "Autocomplete"))


async def get_route(client: httpx.AsyncClient, api_key: str, start: Coordinate, end: Coordinate) -> Route:
    """Fetch a driving route between two coordinates."""
    resp = await client.get(
        DIRECTIONS_URL,
        params={"api_key": api_key, "start": format_coordinate(start), "end": format_coordinate(end)},
    )
    resp.raise_for_status()
    return parse_route(expect_json_object(resp, "Directions"))


def parse_suggestions(data: dict) -> list[PlaceSuggestion]:
    """Convert a GeoJSON feature collection into suggestions, dropping unusable features."""
    result = []
    for feature in data.get("features") or []:
        props = feature.get("properties") or {}
        coords = (feature.get("geometry") or {}).get("coordinates") or []
        name = props.get("label") or props.get("name")
        if not name or len(coords) < 2:
            continue
        result.append(PlaceSuggestion(name=name, lon=coords[0], lat=coords[1]))
    return result


def parse_route(data: dict) -> Route:
    """Extract polyline, distance, and duration from a directions GeoJSON response.

    Raises UpstreamShapeError naming the first structural field that is absent.
    Distance and duration come from the route summary, or are summed from the
    segments when the summary is missing.
    """
    features = data.get("features")
    if not features or not isinstance(features, list):
        raise UpstreamShapeError("Invalid route response: no features returned")

    feature = features[0]
    if not isinstance(feature, dict):
        raise UpstreamShapeError("Invalid route response: feature is not an object")
    geometry = feature.get("geometry")
    raw_coords = geometry.get("coordinates") if isinstance(geometry, dict) else None
    if not raw_coords or not isinstance(raw_coords, list):
        raise UpstreamShapeError("Invalid route response: no geometry coordinates")

    props = feature.get("properties")
    props = props if isinstance(props, dict) else {}
    summary = props.get("summary")
    segments = props.get("segments")
    try:
        if isinstance(summary, dict) and "distance" in summary and "duration" in summary:
            distance, duration = float(summary["distance"]), float(summary["duration"])
        elif isinstance(segments, list) and segments:
            distance = sum(float(s.get("distance", 0)) for s in segments)
            duration = sum(float(s.get("duration", 0)) for s in segments)
        else:
            raise UpstreamShapeError("Invalid route response: no summary or segments")
    except (AttributeError, TypeError, ValueError) as e:
        raise UpstreamShapeError("Invalid route response: malformed summary or segments") from e

    try:
        coordinates = [Coordinate(lon=c[0], lat=c[1]) for c in raw_coords]
    except (ValidationError, IndexError, KeyError, TypeError) as e:
        raise UpstreamShapeError("Invalid route response: malformed geometry coordinates") from e

    return Route(coordinates=coordinates, distance_m=distance, duration_s=duration)
