import os
from enum import Enum

from pydantic import AliasChoices, Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    APP_NAME: str = "EF Session Bridge"
    APP_DESCRIPTION: str | None = "Bridges EduSP credentials into an authenticated EF learning session."
    APP_VERSION: str | None = "1.0.0"


class EnvironmentOption(str, Enum):
    LOCAL = "local"
    STAGING = "staging"
    PRODUCTION = "production"


class EnvironmentSettings(BaseSettings):
    ENVIRONMENT: EnvironmentOption = EnvironmentOption.LOCAL


class LoggingSettings(BaseSettings):
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class CORSSettings(BaseSettings):
    CORS_ORIGINS: list[str] = ["*"]
    CORS_METHODS: list[str] = ["*"]
    CORS_HEADERS: list[str] = ["*"]


class ServerSettings(BaseSettings):
    """Bind address and port selection.

    SERVER_PORT is set by game-panel style hosts (Pterodactyl), PORT by PaaS
    hosts (Railway/Render). Local runs fall back to 3000.
    """

    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int | None = None
    PORT: int | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def HTTP_PORT(self) -> int:
        return self.SERVER_PORT or self.PORT or 3000


class IdentitySettings(BaseSettings):
    """EduSP identity provider (ip.tv) endpoints and fixed realm metadata."""

    EDUSP_API_URL: str = "https://edusp-api.ip.tv"
    EDUSP_REALM: str = "edusp"
    EDUSP_PLATFORM: str = "webclient"
    EDUSP_CARD_LABEL: str = "SPeak"
    EDUSP_TIMEOUT: float = 60.0


class PlatformSettings(BaseSettings):
    """EF corporate learning platform endpoints and wire constants."""

    EF_BASE_URL: str = "https://learn.corporate.ef.com"
    EF_LOCALE: str = "en"
    EF_CLIENT_TIMEZONE: str = "America/Sao_Paulo"
    EF_LEVELS_CORRELATION_ID: str = "EN-XS3EHEBXam436Y0HX3"
    EF_TASKS_CORRELATION_ID: str = "R3Dq5eAUEUoCWiANsW5XL"
    EF_TIMEOUT: float = 60.0

    # ============================================
    # OAuth2 SSO initiation
    # ============================================
    EF_SSO_STATE: str = "/"
    EF_SSO_INITIATOR: str = "SCHOOL_WEB"
    EF_SSO_PROMPT: str = "login"
    EF_SSO_DOMAIN_HINT: str = "saopaulo"
    EF_SSO_PARTNER_CODE: str = "SANP-J04NSMP9"
    EF_SSO_COOKIE_NAME: str = "efid_tokens"


class BrowserSettings(BaseSettings):
    """Configuration for the headless browser that completes the SSO redirect chain."""

    BROWSER_HEADLESS: bool = True

    # Leave empty to use the Playwright-managed Chromium build
    BROWSER_EXECUTABLE_PATH: str | None = Field(
        default=None,
        validation_alias=AliasChoices("BROWSER_EXECUTABLE_PATH", "PUPPETEER_EXECUTABLE_PATH"),
    )
    BROWSER_ARGS: list[str] = ["--no-sandbox", "--disable-setuid-sandbox"]

    # ============================================
    # Timeouts (seconds)
    # ============================================
    BROWSER_NAVIGATION_TIMEOUT: float = 120.0  # until network idle
    BROWSER_SETTLE_TIMEOUT: float = 5.0  # max wait for the SSO cookie after idle
    BROWSER_COOKIE_POLL_INTERVAL: float = 0.25


class Settings(
    AppSettings,
    EnvironmentSettings,
    LoggingSettings,
    CORSSettings,
    ServerSettings,
    IdentitySettings,
    PlatformSettings,
    BrowserSettings,
):
    model_config = SettingsConfigDict(
        env_file=os.path.join(os.path.dirname(os.path.realpath(__file__)), "..", "..", "..", ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
        populate_by_name=True,
    )


settings = Settings()
