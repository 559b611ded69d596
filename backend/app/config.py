"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - ai_available is derived: an unset or placeholder key means AI routes answer 503

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
    - SMTP and Stripe live in env, not in DB tables (ADR: one source of truth for secrets)
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


_PLACEHOLDER_KEY = "sk-ant-placeholder"


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://analytics:analytics@db:5432/analytics"
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

    # Anthropic
    anthropic_api_key: str = _PLACEHOLDER_KEY
    anthropic_max_retries: int = 3
    anthropic_timeout_seconds: int = 120
    anthropic_base_delay_ms: int = 1000
    anthropic_max_delay_ms: int = 60_000
    ai_model: str = "claude-haiku-4-5"
    ai_max_tokens: int = 2048
    ai_json_max_tokens: int = 4096

    # Auth
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    access_token_ttl_minutes: int = 60 * 24 * 7
    password_reset_ttl_minutes: int = 60
    admin_email: str | None = None
    admin_default_password: str | None = None

    # Billing
    stripe_secret_key: str | None = None
    billing_threshold_usd: float = 10.0
    usd_to_gbp_rate: float = 0.79
    invoice_days_until_due: int = 14

    # Email
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_from_email: str = "no-reply@myuserjourney.co.uk"
    smtp_from_name: str = "My User Journey"

    # Outbound lookups
    public_base_url: str = "https://myuserjourney.co.uk"
    geo_lookup_url: str = "http://ip-api.com/json"
    geo_lookup_timeout_seconds: float = 2.0
    tracking_verify_timeout_seconds: float = 10.0
    tracking_codes_cache_seconds: int = 60

    # Startup
    seed_on_startup: bool = False

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @property
    def ai_available(self) -> bool:
        return bool(self.anthropic_api_key) and self.anthropic_api_key != _PLACEHOLDER_KEY

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host)

    @property
    def stripe_configured(self) -> bool:
        return bool(self.stripe_secret_key)


@lru_cache
def get_settings() -> Settings:
    return Settings()
