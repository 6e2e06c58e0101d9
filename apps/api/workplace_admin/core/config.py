"""Application configuration with environment variables."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "dev"
    VERSION: str = "0.1.0"
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./workplace_admin.db"

    # Session cookie signing
    SECRET_KEY: str = "change-this-in-production"
    SESSION_COOKIE: str = "wp_admin_session"

    # Workplace app credentials
    APP_ID: str = ""
    APP_SECRET: str = ""
    GRAPH_VERSION: str = "v3.2"
    GRAPH_BASE_URL: str = "https://graph.facebook.com"

    # Redirect URIs registered with the app
    APP_REDIRECT: str = ""
    APP_USER_REDIRECT: str = ""
    BASE_URL: str = "http://localhost:8000"

    # Webhooks
    VERIFY_TOKEN: str = ""
    WEBHOOK_MAX_PAYLOAD_BYTES: int = 100000

    # Global token for the "Custom Integration" pseudo-community
    ACCESS_TOKEN: str = ""

    # Identity tokens
    OIDC_KEYS_URL: str = "https://www.workplace.com/.well-known/openid/"
    OIDC_ISSUER: str = "https://workplace.com"

    # Where a successful login lands when no referrer was stored
    DEFAULT_LANDING_PATH: str = "/admin"

    # Error Tracking (optional, set in production)
    SENTRY_DSN: str = ""

    # Rate Limiting (requests per minute)
    RATE_LIMIT_AUTH: int = 5

    @property
    def graph_url(self) -> str:
        """Graph API base URL with version."""
        return f"{self.GRAPH_BASE_URL.rstrip('/')}/{self.GRAPH_VERSION}"

    @property
    def app_access_token(self) -> str:
        """App access token used for app-level Graph calls."""
        return f"{self.APP_ID}|{self.APP_SECRET}"

    @property
    def has_custom_integration(self) -> bool:
        return bool(self.APP_ID and self.ACCESS_TOKEN)

    @property
    def cookie_secure(self) -> bool:
        """Secure cookies only in production."""
        return self.ENV != "dev"

    def absolute_url(self, path: str) -> str:
        """Join BASE_URL and a path without doubling slashes."""
        return f"{self.BASE_URL.rstrip('/')}/{path.lstrip('/')}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
