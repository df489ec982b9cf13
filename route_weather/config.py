# ABOUTME: Typed application settings loaded from the environment and .env files.
# ABOUTME: Validates provider API keys up front so the server fails fast on bad configuration.

from pydantic import Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from route_weather.errors import ConfigError

_PLACEHOLDER_MARKERS = ("your_", "your-", "placeholder", "changeme", "<")

_REQUIRED_KEYS = {
    "openrouteservice_api_key": "OPENROUTESERVICE_API_KEY",
    "openweathermap_api_key": "OPENWEATHERMAP_API_KEY",
}


def _looks_like_placeholder(value: str) -> bool:
    lowered = value.strip().lower()
    return not lowered or any(marker in lowered for marker in _PLACEHOLDER_MARKERS)


class Settings(BaseSettings):
    """Runtime configuration passed explicitly into the pipeline and web app.

    Each field reads the upper-case environment variable of the same name, or
    the matching line of a local .env file.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    openrouteservice_api_key: str = ""
    openweathermap_api_key: str = ""
    verify_tls: bool = True
    request_timeout: float = Field(default=10.0, gt=0)
    waypoint_count: int = Field(default=15, ge=2)
    min_spread_ratio: float = Field(default=0.7, ge=0)
    mock_point_count: int = Field(default=8, ge=2)
    cors_origins: str = "*"
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 5000

    @property
    def cors_origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @model_validator(mode="after")
    def validate_keys(self) -> "Settings":
        """Reject any required API key that is empty or left as placeholder text."""
        bad = [env for field, env in _REQUIRED_KEYS.items() if _looks_like_placeholder(getattr(self, field))]
        if bad:
            raise ValueError(f"Missing or placeholder API key(s): {', '.join(bad)}")
        return self

    @classmethod
    def from_env(cls, env_file: str | None = ".env") -> "Settings":
        """Build validated settings, raising ConfigError instead of ValidationError.

        Pass ``env_file=None`` to read only the process environment.
        """
        try:
            return cls(_env_file=env_file)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e
