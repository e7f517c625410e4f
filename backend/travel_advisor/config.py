"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Counts that bound concurrency or batch sizes are >= 1

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - Empty cities_username disables city discovery (country refresh falls back to capitals)
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://advisor:advisor@db:5432/advisor"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting platforms provide postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    # Create tables on startup (local dev); production runs alembic upgrade head
    database_auto_create: bool = False

    # Upstream: OpenWeatherMap
    weather_base_url: str = "https://api.openweathermap.org"
    weather_api_key: str = "owm-placeholder"

    # Upstream: REST Countries
    country_base_url: str = "https://restcountries.com"

    # Upstream: GeoNames
    cities_base_url: str = "http://api.geonames.org"
    cities_username: str = ""
    cities_top_n: int = Field(10, ge=1)
    cities_concurrency: int = Field(5, ge=1)

    # Shared HTTP behaviour for all upstreams
    http_timeout_seconds: float = 10.0
    http_max_retries: int = Field(2, ge=0)
    http_base_delay_ms: int = 250
    http_max_delay_ms: int = 5_000

    # Scheduler (batched global refresh)
    scheduler_enabled: bool = True
    scheduler_initial_delay_ms: int = 30_000
    scheduler_sync_all_interval_ms: int = 300_000
    scheduler_batch_size: int = Field(5, ge=1)
    scheduler_concurrency: int = Field(5, ge=1)
    scheduler_timezone: str = "UTC"

    # Security
    security_bearer_token: str = "change-me"

    # Sync behaviour
    # Multi-city refresh responses include the audit type per advisory
    sync_multi_city_audit: bool = True
    # False reproduces the legacy behaviour of resetting created_at on every sync
    sync_preserve_created_at: bool = True

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
