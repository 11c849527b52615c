from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, HttpUrl, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self

DEFAULT_SITE_URL = "http://localhost:3000"


def parse_cors(v: Any) -> list[str] | str:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


def normalize_site_url(value: str | None) -> str:
    """Trim, add a scheme when missing and drop trailing slashes."""
    if not value or not value.strip():
        return DEFAULT_SITE_URL

    url = value.strip()
    if not url.startswith(("http://", "https://")):
        url = f"https://{url}"
    return url.rstrip("/")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
    )
    PROJECT_NAME: str = "Workeasy"
    API_PREFIX: str = "/api"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"

    # Supabase Configuration (prefer new naming; keep legacy for compatibility)
    SUPABASE_URL: str = "http://localhost:54321"
    SUPABASE_PUBLISHABLE_KEY: str | None = None
    SUPABASE_SECRET: str | None = None
    SUPABASE_ANON_KEY: str | None = None
    SUPABASE_SERVICE_KEY: str | None = None

    SITE_URL: str = DEFAULT_SITE_URL
    APP_URL: str | None = None

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    # Localization
    DEFAULT_LOCALE: Literal["ko", "en", "ja"] = "ko"
    LOCALE_COOKIE_NAME: str = "locale"
    LOCALE_COOKIE_MAX_AGE: int = 60 * 60 * 24 * 365

    # Session handling
    ACCESS_TOKEN_COOKIE: str = "sb-access-token"
    REFRESH_TOKEN_COOKIE: str = "sb-refresh-token"
    SESSION_CHECK_INTERVAL_SECONDS: int = 60
    SESSION_REFRESH_THRESHOLD_SECONDS: int = 5 * 60
    MIDDLEWARE_REFRESH_THRESHOLD_SECONDS: int = 10 * 60

    SIGNIN_RATE_LIMIT: str = "10/minute"
    INVITATION_RESEND_EXTENSION_DAYS: int = 7

    # Observability Configuration
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: Literal["json", "console"] = "json"
    SENTRY_DSN: HttpUrl | None = None

    @model_validator(mode="after")
    def _normalize_urls_and_keys(self) -> Self:
        if self.SUPABASE_PUBLISHABLE_KEY and not self.SUPABASE_ANON_KEY:
            self.SUPABASE_ANON_KEY = self.SUPABASE_PUBLISHABLE_KEY
        if self.SUPABASE_SECRET and not self.SUPABASE_SERVICE_KEY:
            self.SUPABASE_SERVICE_KEY = self.SUPABASE_SECRET

        self.SITE_URL = normalize_site_url(self.SITE_URL)
        self.APP_URL = normalize_site_url(self.APP_URL or self.SITE_URL)
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS] + [
            self.SITE_URL
        ]

    def build_absolute_url(self, path: str = "") -> str:
        if not path:
            return self.SITE_URL
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.SITE_URL}{path}"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def email_verification_redirect_url(self) -> str:
        return self.build_absolute_url("/auth/callback")


settings = Settings()
