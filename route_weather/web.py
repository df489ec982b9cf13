# ABOUTME: ASGI web entry point exposing geocoding, autocomplete, and route-weather endpoints.
# ABOUTME: Builds a Starlette app around explicit settings and a shared HTTP client, run via uvicorn.

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import httpx
import uvicorn
from pydantic import BaseModel, ValidationError, field_validator
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from route_weather.config import Settings
from route_weather.deps import RouteWeatherDeps, create_http_client
from route_weather.errors import ConfigError, UpstreamShapeError, describe_upstream_error
from route_weather.models import Coordinate
from route_weather.pipeline import compute_route_weather
from route_weather.routing_service import autocomplete, geocode

logger = logging.getLogger(__name__)


def parse_coordinate(text: str) -> Coordinate:
    """Parse a 'lon,lat' query value into a Coordinate."""
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2:
        raise ValueError("must be in 'lon,lat' format")
    try:
        lon, lat = float(parts[0]), float(parts[1])
    except ValueError as e:
        raise ValueError("must contain numeric longitude and latitude") from e
    try:
        return Coordinate(lon=lon, lat=lat)
    except ValidationError as e:
        raise ValueError("longitude must be within [-180, 180] and latitude within [-90, 90]") from e


def parse_departure(text: str) -> datetime:
    """Parse an epoch-milliseconds or ISO-8601 departure time; naive times are taken as UTC."""
    text = text.strip()
    if text.lstrip("-").isdigit():
        return datetime.fromtimestamp(int(text) / 1000, tz=timezone.utc)
    value = datetime.fromisoformat(text.replace("Z", "+00:00"))
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


class RouteWeatherQuery(BaseModel):
    """Validated query string for GET /route-weather.

    Arrival times are formatted in ``tz`` (an IANA zone name such as
    "Europe/Paris") when given, otherwise in the departure's own offset. Epoch
    milliseconds carry no offset, so without ``tz`` they display as UTC.
    """

    start: Coordinate
    end: Coordinate
    departure: datetime | None = None
    tz: str | None = None

    def local_departure(self) -> datetime:
        departure = self.departure or datetime.now(timezone.utc)
        return departure.astimezone(ZoneInfo(self.tz)) if self.tz else departure

    @field_validator("start", "end", mode="before")
    @classmethod
    def _parse_coordinate(cls, value):
        if isinstance(value, str):
            if not value.strip():
                raise ValueError("is required")
            return parse_coordinate(value)
        return value

    @field_validator("departure", mode="before")
    @classmethod
    def _parse_departure(cls, value):
        if isinstance(value, str):
            if not value.strip():
                return None
            try:
                return parse_departure(value)
            except (ValueError, OverflowError, OSError) as e:
                raise ValueError("must be an ISO-8601 timestamp or epoch milliseconds") from e
        return value

    @field_validator("tz", mode="before")
    @classmethod
    def _check_timezone(cls, value):
        if isinstance(value, str):
            if not value.strip():
                return None
            try:
                ZoneInfo(value.strip())
            except (ZoneInfoNotFoundError, ValueError) as e:
                raise ValueError("must be an IANA time zone name") from e
            return value.strip()
        return value


def _field_errors(exc: ValidationError) -> list[dict]:
    errors = []
    for err in exc.errors():
        field = ".".join(str(loc) for loc in err["loc"]) or "query"
        message = "is required" if err["type"] == "missing" else err["msg"].removeprefix("Value error, ")
        errors.append({"field": field, "message": message})
    return errors


def _deps(request: Request) -> RouteWeatherDeps:
    return request.app.state.deps


async def geocode_endpoint(request: Request) -> JSONResponse:
    location = request.query_params.get("location", "").strip()
    if not location:
        return JSONResponse({"error": "Location parameter is required"}, status_code=400)

    deps = _deps(request)
    try:
        result = await geocode(deps.http_client, deps.settings.openrouteservice_api_key, location)
    except httpx.HTTPError as e:
        logger.error("Geocoding failed for %r: %s", location, e)
        return JSONResponse({"error": describe_upstream_error(e)}, status_code=500)
    except UpstreamShapeError as e:
        logger.error("Geocoding returned an unexpected payload for %r: %s", location, e)
        return JSONResponse({"error": "Failed to fetch geocode data"}, status_code=500)

    if result is None:
        return JSONResponse({"error": "Location not found"}, status_code=404)
    return JSONResponse(result.model_dump())


async def autocomplete_endpoint(request: Request) -> JSONResponse:
    query = request.query_params.get("query", "")
    deps = _deps(request)
    try:
        suggestions = await autocomplete(deps.http_client, deps.settings.openrouteservice_api_key, query)
    except httpx.HTTPError as e:
        logger.error("Autocomplete failed for %r: %s", query, e)
        return JSONResponse({"error": describe_upstream_error(e)}, status_code=500)
    except UpstreamShapeError as e:
        logger.error("Autocomplete returned an unexpected payload for %r: %s", query, e)
        return JSONResponse({"error": "Failed to fetch suggestions"}, status_code=500)
    return JSONResponse([s.model_dump() for s in suggestions])


async def route_weather_endpoint(request: Request) -> JSONResponse:
    params = request.query_params
    try:
        query = RouteWeatherQuery(
            start=params.get("start", ""),
            end=params.get("end", ""),
            departure=params.get("departure"),
            tz=params.get("tz"),
        )
    except ValidationError as e:
        return JSONResponse({"errors": _field_errors(e)}, status_code=400)

    try:
        result = await compute_route_weather(_deps(request), query.start, query.end, query.local_departure())
    except UpstreamShapeError as e:
        logger.error("Route provider returned an unexpected payload: %s", e)
        return JSONResponse({"error": str(e)}, status_code=500)
    except httpx.HTTPError as e:
        logger.error("Route request failed: %s", e)
        return JSONResponse({"error": describe_upstream_error(e)}, status_code=500)
    return JSONResponse(result.model_dump(mode="json", by_alias=True))


async def health_endpoint(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def _unhandled_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error serving %s", request.url.path, exc_info=exc)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def create_app(settings: Settings | None = None, http_client: httpx.AsyncClient | None = None) -> Starlette:
    """Build the ASGI app.

    Settings are read from the environment when not supplied, raising ConfigError
    on missing keys. A client passed in is left open on shutdown; one created
    here is closed.
    """
    settings = settings or Settings.from_env()
    owns_client = http_client is None
    deps = RouteWeatherDeps(settings=settings, http_client=http_client or create_http_client(settings))

    @asynccontextmanager
    async def lifespan(app: Starlette):
        yield
        if owns_client:
            await deps.http_client.aclose()

    app = Starlette(
        routes=[
            Route("/geocode", geocode_endpoint),
            Route("/autocomplete", autocomplete_endpoint),
            Route("/route-weather", route_weather_endpoint),
            Route("/health", health_endpoint),
        ],
        middleware=[
            Middleware(CORSMiddleware, allow_origins=settings.cors_origins_list, allow_methods=["GET"]),
        ],
        exception_handlers={Exception: _unhandled_error},
        lifespan=lifespan,
    )
    app.state.deps = deps
    return app


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """Run the API server with uvicorn, failing fast on invalid configuration."""
    try:
        settings = Settings.from_env()
    except ConfigError as e:
        configure_logging()
        logger.error("Startup aborted: %s", e)
        raise SystemExit(1) from e

    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
