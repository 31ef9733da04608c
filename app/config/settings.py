"""
Application settings.

Loads configuration from environment variables using pydantic-settings.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    database_url: str
    database_echo: bool = False

    # Scheduled trigger authorization (Authorization: Bearer <cron_secret>)
    cron_secret: str | None = None

    # Redis (for Dramatiq)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: str | None = None
    redis_db: int = 0

    # Application
    environment: str = "production"
    debug: bool = False
    log_level: str = "INFO"
    log_file: str = "logs/staking.log"

    # Trigger HTTP server
    trigger_server_host: str = "0.0.0.0"
    trigger_server_port: int = Field(
        default=8080, ge=1, le=65535, description="Trigger HTTP server port"
    )

    # Distribution
    distribution_timeout_seconds: int = Field(
        default=300,
        gt=0,
        description="Hard limit for a single distribution invocation",
    )
    emergency_stop_roi: bool = Field(
        default=False,
        description="Emergency stop for all ROI accruals",
    )

    # Staking
    unstake_cooldown_days: int = Field(
        default=3, ge=0, description="Days between unstake request and release"
    )
    direct_bonus_rate: float = Field(
        default=0.05,
        ge=0,
        le=1.0,
        description="Share of a new stake paid to the sponsor",
    )

    # Promotion
    promotion_window_days: int = Field(
        default=14, gt=0, description="Pre-launch promotion length in days"
    )
    voucher_expiry_days: int = Field(
        default=14, gt=0, description="Redemption window of granted vouchers"
    )

    # Leaderboard (fixed civil offset, no DST)
    leaderboard_utc_offset_hours: int = Field(default=5, ge=-12, le=14)
    leaderboard_reset_weekday: int = Field(
        default=6, ge=0, le=6, description="0=Monday ... 6=Sunday"
    )
    leaderboard_reset_hour: int = Field(default=18, ge=0, le=23)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        """Loguru expects upper-case level names."""
        return value.upper()

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


settings = Settings()
