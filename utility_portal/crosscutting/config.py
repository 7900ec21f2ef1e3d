"""
Name: Application Configuration (Settings)

Responsibilities:
  - Centralized, typed configuration using pydantic-settings
  - Validate environment variables at startup
  - Provide defaults that match the portal's session/cookie behavior

Collaborators:
  - api/main.py: reads settings for CORS and startup validation
  - identity/auth_users.py: JWT secret, TTLs and cookie flags
  - identity/token_codec.py: expiry safety buffer
  - identity/credential_store.py: remembered-cookie max-age, storage dir
  - portal/dependencies.py: backend base URL and profile timeout

Constraints:
  - Sin lógica de negocio: solo configuración

Notes:
  - Singleton via lru_cache
  - Production validation runs as a model validator (fail fast)
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_SECRETS = {"dev-secret", "changeme", "change-me", "password", "secret"}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        app_env: Application environment (development/local/test/production)
        log_level: Root log level for the JSON logger
        log_json: Emit JSON logs (default: True)
        allowed_origins: Comma-separated CORS origins
        jwt_secret: Secret for signing HS256 access tokens
        employee_token_ttl_minutes: Employee access token TTL (default: 8h)
        customer_token_ttl_minutes: Customer access token TTL (default: 8h)
        token_expiry_buffer_seconds: Safety buffer before `exp` (default and minimum: 300)
        remember_cookie_max_age_seconds: Max-age for remembered cookies (30 days)
        auth_cookie_secure: Set Secure on auth cookies
        api_base_url: Backend base URL for profile fetches ("" = in-process)
        profile_timeout_seconds: Timeout of the profile-fetch HTTP client
        session_storage_dir: Directory for the durable credential tier
        dev_seed_demo: Seed one employee per role + a demo customer
        dev_seed_password: Password used by the demo seed
    """

    # Environment
    app_env: str = "development"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # CORS configuration
    allowed_origins: str = "http://localhost:3000"

    # Security - JWT Auth
    jwt_secret: str = "dev-secret"
    employee_token_ttl_minutes: int = 480
    customer_token_ttl_minutes: int = 480
    token_expiry_buffer_seconds: int = 300

    # Security - Cookies
    remember_cookie_max_age_seconds: int = 30 * 24 * 60 * 60
    auth_cookie_secure: bool = False

    # Portal -> Backend
    api_base_url: str = ""
    profile_timeout_seconds: float = 10.0

    # Durable credential tier (client tooling)
    session_storage_dir: str = ".portal-session"

    # Dev Tools
    dev_seed_demo: bool = False
    dev_seed_password: str = "changeme123"

    @field_validator("employee_token_ttl_minutes", "customer_token_ttl_minutes")
    @classmethod
    def ttl_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("token TTL must be greater than 0")
        return v

    @field_validator("token_expiry_buffer_seconds")
    @classmethod
    def buffer_must_cover_minimum(cls, v: int) -> int:
        if v < 300:
            raise ValueError("token_expiry_buffer_seconds must be >= 300")
        return v

    @field_validator("remember_cookie_max_age_seconds")
    @classmethod
    def max_age_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("remember_cookie_max_age_seconds must be > 0")
        return v

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    @model_validator(mode="after")
    def validate_security_requirements(self):
        if not self.is_production():
            return self

        jwt_secret = (self.jwt_secret or "").strip()
        if not jwt_secret or jwt_secret in _INSECURE_SECRETS:
            raise ValueError(
                "JWT_SECRET must be set to a strong, non-default value in production"
            )
        if len(jwt_secret) < 32:
            raise ValueError("JWT_SECRET must be at least 32 characters in production")
        if not self.auth_cookie_secure:
            raise ValueError("AUTH_COOKIE_SECURE must be true in production")
        if self.dev_seed_demo:
            raise ValueError("DEV_SEED_DEMO must be false in production")

        return self

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore unknown env vars
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get singleton Settings instance.

    Raises:
        ValidationError: If env vars are invalid
    """
    return Settings()
