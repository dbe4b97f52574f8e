from pathlib import Path
from typing import Literal, Optional

from pydantic import HttpUrl, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WHAAPY_", env_file=".env", env_ignore_empty=True, extra="ignore"
    )
    PROJECT_NAME: str = "Whaapy"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"

    # Used when a credential does not carry its own base URL
    DEFAULT_BASE_URL: str = "https://api.whaapy.com"

    # Seconds before an outbound request is abandoned by the transport
    HTTP_TIMEOUT: float = 30.0

    # Node packages shipped with this project
    NODE_PACKAGES_DIR: Path = Path(__file__).resolve().parent.parent / "node_packages"

    # Inbound webhook endpoint: /webhooks/{trigger_id}/{WEBHOOK_PATH}
    WEBHOOK_PATH: str = "webhook"
    PUBLIC_URL: Optional[HttpUrl] = None

    DEFAULT_LIST_BUTTON_TEXT: str = "Ver Opciones"

    @field_validator("DEFAULT_BASE_URL", mode="before")
    def strip_trailing_slash(cls, v):
        if isinstance(v, str):
            return v.rstrip("/")
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def server_host(self) -> str:
        if self.PUBLIC_URL:
            return str(self.PUBLIC_URL).rstrip("/")
        return "http://localhost:8000"

    def webhook_url(self, trigger_id: str) -> str:
        """Public URL the remote service should deliver events for a trigger to."""
        return f"{self.server_host}/webhooks/{trigger_id}/{self.WEBHOOK_PATH}"


settings = Settings()  # type: ignore
