"""Application configuration loaded from environment variables.

Settings for the database, HTTP server, mail provider, session signing and
rate limiting. Uses pydantic-settings for validation and .env file support.

A single Settings instance is built by the process entry point
(``create_app``) and handed to every collaborator that needs it.
"""

from datetime import timedelta
from typing import Literal

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Known insecure default password that must not be used in production
# Security: Runtime check in check_production_security() prevents use in production
_INSECURE_DEFAULT_PASSWORD = "newsletter_dev_password"  # nosec B105

# Minimum length for HMAC_SECRET in production (256 bits = 32 bytes)
_MIN_HMAC_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "newsletter"
    database_user: str = "newsletter_user"
    database_password: str = _INSECURE_DEFAULT_PASSWORD
    # Full DSN, takes precedence over the composed URL (e.g. SQLite in tests)
    database_url_override: str = ""

    # API
    # 0.0.0.0 binds to all network interfaces (required for Docker containers)
    api_host: str = "0.0.0.0"  # nosec B104
    api_port: int = 8000

    # Public base URL embedded in confirmation links
    base_url: str = "http://localhost:8000"

    # Application
    environment: str = "development"
    log_level: str = "INFO"
    log_json: bool = True

    # Mail provider (HTTP API)
    email_base_url: str = "http://localhost:8025"
    email_sender: str = "newsletter@example.com"
    email_authorization_token: SecretStr = SecretStr("")
    email_send_timeout_ms: int = 10_000

    # Session / flash signing
    hmac_secret: SecretStr = SecretStr("dev-hmac-secret-change-me")
    session_cookie_name: str = "newsletter.session"
    session_cookie_secure: bool = True
    session_cookie_samesite: Literal["lax", "strict", "none"] = "lax"
    session_ttl_hours: int = 24

    # Rate Limiting (Security)
    # Format: "count/period" (e.g., "10/minute", "100/hour")
    rate_limit_enabled: bool = True
    rate_limit_login: str = "5/minute"
    rate_limit_subscribe: str = "10/minute"

    @property
    def database_url(self) -> str:
        """Async database URL for SQLAlchemy."""
        if self.database_url_override:
            return self.database_url_override
        return (
            f"postgresql+asyncpg://{self.database_user}:{self.database_password}"
            f"@{self.database_host}:{self.database_port}/{self.database_name}"
        )

    @property
    def email_send_timeout(self) -> float:
        """Mail provider timeout in seconds (httpx expects seconds)."""
        return self.email_send_timeout_ms / 1000

    @property
    def session_ttl(self) -> timedelta:
        """Lifetime of a server-side session row."""
        return timedelta(hours=self.session_ttl_hours)

    @model_validator(mode="after")
    def check_production_security(self) -> "Settings":
        """Validate configuration invariants.

        Security: Prevents deployment with known insecure defaults.
        Checks:
        - SameSite=None requires Secure flag (browser requirement)
        - Mail timeout and session TTL must be positive (all environments)
        - Database password must not be the default in production
        - HMAC_SECRET must be >= 32 chars in production
        """
        if self.session_cookie_samesite == "none" and not self.session_cookie_secure:
            msg = (
                "SESSION_COOKIE_SECURE must be true when SESSION_COOKIE_SAMESITE=none. "
                "Browsers reject SameSite=None cookies without the Secure flag."
            )
            raise ValueError(msg)

        if self.email_send_timeout_ms <= 0:
            msg = (
                "EMAIL_SEND_TIMEOUT_MS must be positive. "
                f"Got: {self.email_send_timeout_ms}"
            )
            raise ValueError(msg)
        if self.session_ttl_hours <= 0:
            msg = f"SESSION_TTL_HOURS must be positive. Got: {self.session_ttl_hours}"
            raise ValueError(msg)

        if self.environment == "production":
            if (
                not self.database_url_override
                and self.database_password == _INSECURE_DEFAULT_PASSWORD
            ):
                msg = (
                    "Cannot use default database password in production. "
                    "Set DATABASE_PASSWORD environment variable to a secure value."
                )
                raise ValueError(msg)

            if len(self.hmac_secret.get_secret_value()) < _MIN_HMAC_SECRET_LENGTH:
                msg = (
                    f"HMAC_SECRET must be at least {_MIN_HMAC_SECRET_LENGTH} "
                    "characters in production. "
                    'Generate with: python -c "import secrets; '
                    'print(secrets.token_hex(32))"'
                )
                raise ValueError(msg)

        return self
