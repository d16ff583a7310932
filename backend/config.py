"""Application configuration using pydantic-settings."""

from typing import Any

from pydantic import field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from services.credential_manager import CREDENTIAL_KEYS, get_credential


class KeychainSettingsSource(PydanticBaseSettingsSource):
    """Load secret fields from the OS keychain via ``keyring``.

    Only fields whose uppercase name appears in
    :data:`~services.credential_manager.CREDENTIAL_KEYS` are looked up.
    All other fields return ``None`` so the next source in the chain
    handles them.
    """

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        env_name = field_name.upper()
        if env_name not in CREDENTIAL_KEYS:
            return None, field_name, False
        value = get_credential(env_name)
        return value, field_name, False

    def __call__(self) -> dict[str, Any]:
        d: dict[str, Any] = {}
        for field_name, field_info in self.settings_cls.model_fields.items():
            value, key, is_complex = self.get_field_value(field_info, field_name)
            if value is not None:
                d[key] = value
        return d


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            KeychainSettingsSource(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    # Database
    DATABASE_URL: str = "sqlite:///./fitness.db"

    # Upstream platform base URLs (an empty value disables the platform)
    FITBIT_API_URL: str = "https://api.fitbit.com/1"
    GOOGLE_FIT_API_URL: str = "https://www.googleapis.com/fitness/v1"
    STRAVA_API_URL: str = "https://www.strava.com/api/v3"

    # Per-call timeout for upstream platform requests
    PROVIDER_TIMEOUT_SECONDS: float = 10.0

    # Session tokens issued at signin
    TOKEN_SECRET: str = ""
    TOKEN_TTL_MINUTES: int = 60

    # Registry routes only accept requests from this Origin (empty = any)
    WEBSITE_ORIGIN: str = ""

    @field_validator("PROVIDER_TIMEOUT_SECONDS")
    @classmethod
    def validate_provider_timeout(cls, v: float) -> float:
        """Reject zero or negative provider timeouts."""
        if v <= 0:
            raise ValueError(f"PROVIDER_TIMEOUT_SECONDS must be positive, got {v!r}")
        return v

    @field_validator("WEBSITE_ORIGIN", mode="before")
    @classmethod
    def strip_origin_slash(cls, v: str) -> str:
        """Browsers send Origin without a trailing slash, so drop ours."""
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize LOG_LEVEL to an uppercase Python logging level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {valid}, got {v!r}")
        return v.upper()

    # App settings
    LOG_LEVEL: str = "INFO"


settings = Settings()
