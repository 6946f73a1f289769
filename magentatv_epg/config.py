import logging

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from magentatv_epg.errors import ConfigurationError


logger = logging.getLogger(__name__)


class CustomSettings(BaseSettings):
    """Application settings loaded from environment variables.

    Validates configuration at startup to catch misconfiguration early.
    """

    magenta_api_base: str = "https://api.prod.sngtv.magentatv.de/EPG/JSON"
    magenta_terminal_type: str = "Windows_chrome_118"
    tmdb_api_base: str = "https://api.themoviedb.org/3"
    tmdb_bearer: str | None = Field(
        default=None,
        validation_alias=AliasChoices("tmdbbearer", "tmdb_bearer"),
    )
    http_timeout_sec: float = 30.0
    grab_days: int = 2  # Days fetched per channel by the /programs endpoint
    lookup_concurrency: int = 1  # Items resolved concurrently, 1 keeps it sequential
    tmdb_negative_cache_ttl_sec: int = 0  # Remember TMDB misses, 0 disables
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    @field_validator("magenta_api_base", "tmdb_api_base")
    @classmethod
    def validate_api_base(cls, value: str, info) -> str:
        """Validate API base URLs are HTTP/HTTPS and strip trailing slashes."""
        if not value.lower().startswith(("http://", "https://")):
            raise ValueError(f"{info.field_name} must be HTTP/HTTPS: {value}")
        return value.rstrip("/")

    @field_validator("tmdb_bearer", mode="before")
    @classmethod
    def normalize_tmdb_bearer(cls, value):
        """Treat blank tokens as missing."""
        if isinstance(value, str):
            value = value.strip()
            return value or None
        return value

    @field_validator("http_timeout_sec")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Validate HTTP timeout (seconds)."""
        if value <= 0:
            raise ValueError("http_timeout_sec must be > 0")
        return value

    @field_validator("grab_days")
    @classmethod
    def validate_grab_days(cls, value: int) -> int:
        """Validate number of days grabbed per channel."""
        if value < 1:
            raise ValueError("grab_days must be >= 1")
        if value > 14:
            raise ValueError("grab_days must be <= 14")
        return value

    @field_validator("lookup_concurrency")
    @classmethod
    def validate_lookup_concurrency(cls, value: int) -> int:
        """Ensure lookup concurrency is a positive integer."""
        if value <= 0:
            raise ValueError("lookup_concurrency must be > 0")
        return value

    @field_validator("tmdb_negative_cache_ttl_sec")
    @classmethod
    def validate_negative_ttl(cls, value: int) -> int:
        """Validate negative cache TTL (seconds)."""
        if value < 0:
            raise ValueError("tmdb_negative_cache_ttl_sec must be >= 0")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate log level name."""
        normalized = value.upper()
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if normalized not in allowed:
            raise ValueError(f"log_level must be one of {sorted(allowed)}")
        return normalized

    def require_tmdb_bearer(self) -> str:
        """
        Return the TMDB bearer token.

        Raises:
            ConfigurationError: If TMDBBEARER is not configured
        """
        if not self.tmdb_bearer:
            raise ConfigurationError(
                "TMDBBEARER is not configured - TMDB lookups need a bearer token"
            )
        return self.tmdb_bearer

    def __init__(self, **data):
        """Initialize settings and log configuration."""
        super().__init__(**data)

        logger.info("Configuration loaded:")
        logger.info("  MagentaTV API: %s", self.magenta_api_base)
        logger.info("  TMDB API: %s", self.tmdb_api_base)
        logger.info(
            "  TMDB Bearer: %s", "configured" if self.tmdb_bearer else "missing"
        )
        logger.info("  HTTP Timeout: %ss", self.http_timeout_sec)
        logger.info("  Days per Channel: %s", self.grab_days)
        logger.info("  Lookup Concurrency: %s", self.lookup_concurrency)
        logger.info(
            "  TMDB Negative Cache TTL: %s",
            f"{self.tmdb_negative_cache_ttl_sec}s"
            if self.tmdb_negative_cache_ttl_sec
            else "disabled",
        )


settings = CustomSettings()


def setup_logging() -> None:
    """Configure application logging."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
