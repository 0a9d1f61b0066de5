# fundcompare/config.py
"""
Application configuration using Pydantic Settings.

Loads configuration from environment variables (or a .env file) with
validation:
- ENVIRONMENT: Runtime mode (development, test, production)
- RISK_FREE_RATE_PCT: Annual risk-free rate used for Sharpe ratios
- DATA_FILE: JSON dataset loaded into the in-memory providers

Environment-specific behavior:
- test: No dataset required; providers start empty and tests register series
- development: Missing DATA_FILE is allowed, the API serves no instruments
- production: DATA_FILE is required

Configuration is validated on application startup. Invalid configuration
will raise a ValueError with a descriptive message.

Usage:
    from fundcompare.config import settings

    if settings.is_production:
        ...
"""
from decimal import Decimal
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Environment variables:
        - ENVIRONMENT: Runtime environment (development, test, production)
        - APP_NAME: Application name (default: "Fund Comparison API")
        - DEBUG: Enable debug mode (default: False)
        - LOG_LEVEL: Logging level (default: "INFO")
        - LOG_FORMAT: "text" or "json" (default: "text")

    Calculation settings:
        - RISK_FREE_RATE_PCT: Risk-free rate in percent (default: 7.1)
        - CHART_MAX_POINTS: Most recent chart points kept (default: 24)

    Provider settings:
        - DATA_FILE: JSON dataset path
        - PROVIDER_CACHE_TTL_SECONDS: Series cache lifetime (default: 300)
        - BENCHMARK_CACHE_TTL_SECONDS: Benchmark cache lifetime (default: 1800)
        - FETCH_TIMEOUT_SECONDS: Per-series fetch timeout (default: 15)
    """

    environment: Literal["development", "test", "production"] = Field(
        default="development",
        description="Runtime environment (development, test, production)"
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format"
    )

    app_name: str = "Fund Comparison API"
    debug: bool = False

    # =========================================================================
    # CALCULATION
    # =========================================================================
    risk_free_rate_pct: Decimal = Field(
        default=Decimal("7.1"),
        ge=0,
        le=100,
        description="Annual risk-free rate in percent (long-duration government bond yield)"
    )
    chart_max_points: int = Field(
        default=24,
        ge=1,
        le=600,
        description="Most recent monthly chart points kept in a comparison"
    )

    # =========================================================================
    # PROVIDERS
    # =========================================================================
    data_file: Path | None = Field(
        default=None,
        description="JSON dataset loaded into the in-memory providers at startup"
    )
    provider_cache_ttl_seconds: int = Field(
        default=300,
        ge=0,
        description="Lifetime of cached instrument series in seconds"
    )
    benchmark_cache_ttl_seconds: int = Field(
        default=1800,
        ge=0,
        description="Lifetime of cached benchmark series and stats in seconds"
    )
    fetch_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        le=120,
        description="Seconds to wait for one series fetch"
    )

    # =========================================================================
    # CORS
    # =========================================================================
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://127.0.0.1:3000"],
        description="Allowed CORS origins (JSON list in env var)"
    )

    # =========================================================================
    # RATE LIMITING
    # =========================================================================
    rate_limit_enabled: bool = Field(
        default=True,
        description="Enforce per-client request limits"
    )
    trust_proxy_headers: bool = Field(
        default=False,
        description="Trust X-Forwarded-For from any client (only behind a trusted load balancer)"
    )
    trusted_proxy_ips: list[str] = Field(
        default=["127.0.0.1"],
        description="Proxy addresses whose X-Forwarded-For headers are trusted"
    )

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE) if _ENV_FILE.exists() else None,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_data_config(self) -> "Settings":
        """
        Validate the dataset configuration based on environment.

        Rules:
        - test / development: DATA_FILE optional
        - production: DATA_FILE required and must exist
        """
        if self.environment != "production":
            return self

        if self.data_file is None:
            raise ValueError(
                "DATA_FILE is required in production environment. "
                "Set DATA_FILE to the path of a JSON price dataset."
            )
        if not self.data_file.exists():
            raise ValueError(f"DATA_FILE does not exist: {self.data_file}")

        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


# Create single instance
settings = Settings()
