"""Library configuration using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings loaded from ``TAPI_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TAPI_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # .env may be shared with the host application
    )

    # Initial value of the process-wide base URL
    api_base: str = ""

    # Logging
    log_level: str = "info"

    # Request timeout in seconds; None disables httpx timeouts entirely
    timeout: float | None = None

    # Initial SSE reconnection delay (seconds), until the server sends `retry:`
    reconnect_delay: float = Field(default=3.0, ge=0)


settings = Settings()
