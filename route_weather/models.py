# ABOUTME: Pydantic BaseModels for routes, forecasts, waypoints, and the route-weather response.
# ABOUTME: Defines structured types for OpenRouteService and OpenWeatherMap data used throughout the app.

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


class Coordinate(BaseModel):
    """WGS84 position in provider order (longitude first)."""

    model_config = ConfigDict(frozen=True)

    lon: float = Field(ge=-180, le=180)
    lat: float = Field(ge=-90, le=90)

    def as_pair(self) -> tuple[float, float]:
        return (self.lon, self.lat)


class GeoLocation(BaseModel):
    """Forward geocoding result."""

    lat: float
    lon: float


class PlaceSuggestion(BaseModel):
    """One autocomplete suggestion."""

    name: str
    lat: float
    lon: float


class Route(BaseModel):
    """Driving route as returned by the routing provider."""

    coordinates: list[Coordinate]
    distance_m: float
    duration_s: float

    @property
    def distance_km(self) -> float:
        return self.distance_m / 1000

    @property
    def duration_hours(self) -> float:
        return self.duration_s / 3600


class ForecastEntry(BaseModel):
    """One 3-hour bucket from the OpenWeatherMap forecast endpoint."""

    timestamp: datetime
    description: str
    icon: str = ""
    temperature: float
    humidity: float | None = None
    wind_speed: float | None = None


class Waypoint(BaseModel):
    """A selected polyline index with its derived distance, progress, and arrival time."""

    index: int
    coordinate: Coordinate
    distance_km: float
    progress: float = Field(ge=0, le=1)
    estimated_arrival: datetime


class WeatherCandidate(BaseModel):
    """A waypoint joined with its matched forecast and resolved place name."""

    waypoint: Waypoint
    name: str
    forecast: ForecastEntry


class PointOutcome(BaseModel):
    """Result of annotating a single waypoint.

    ``success`` carries a candidate with a geocoded name, ``fallback`` carries a
    candidate labeled by its coordinates, and ``skipped`` carries only a reason.
    """

    index: int
    status: Literal["success", "fallback", "skipped"]
    candidate: WeatherCandidate | None = None
    reason: str | None = None


class TrafficLevel(str, Enum):
    LIGHT = "Light Traffic"
    MODERATE = "Moderate Traffic"
    HEAVY = "Heavy Traffic"


class WeatherPoint(BaseModel):
    """One annotated point in the response, serialized in camelCase.

    The position is emitted as flat ``lat``/``lon`` keys, which is what the map
    client reads; the nested coordinate stays available in Python.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    location: str
    coordinate: Coordinate = Field(exclude=True)
    description: str
    icon: str
    temperature: float
    humidity: float | None = None
    wind_speed: float | None = None
    estimated_arrival: str
    progress: int = Field(ge=0, le=100)
    distance_from_start: float
    is_mock: bool = False

    @computed_field
    @property
    def lat(self) -> float:
        return self.coordinate.lat

    @computed_field
    @property
    def lon(self) -> float:
        return self.coordinate.lon


class RouteSummary(BaseModel):
    """Aggregate route figures echoed back to the client."""

    distance_km: float
    duration_hours: float
    traffic: TrafficLevel
    coordinates: list[Coordinate]


class RouteWeatherResponse(BaseModel):
    """Payload returned by GET /route-weather."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    weather_data: list[WeatherPoint]
    distance: str
    duration: str
    traffic: TrafficLevel
    route_coordinates: list[tuple[float, float]]

    @classmethod
    def from_summary(cls, summary: RouteSummary, points: list[WeatherPoint]) -> "RouteWeatherResponse":
        return cls(
            weather_data=points,
            distance=f"{summary.distance_km:.2f}",
            duration=f"{summary.duration_hours:.2f}",
            traffic=summary.traffic,
            route_coordinates=[c.as_pair() for c in summary.coordinates],
        )
