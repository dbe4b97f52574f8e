from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from whaapy.config import settings
from whaapy.workflows.engine.nodes.schema import NodeInput, TypeOptions

CREDENTIAL_TYPE = "whaapyApi"


class WhaapyCredential(BaseModel):
    """API key and base URL used for every outbound request."""
    model_config = ConfigDict(populate_by_name=True)

    api_key: str = Field(..., alias="apiKey", min_length=1)
    base_url: str = Field(default_factory=lambda: settings.DEFAULT_BASE_URL, alias="baseUrl")

    @field_validator("base_url", mode="before")
    def normalize_base_url(cls, v):
        if not v:
            return settings.DEFAULT_BASE_URL
        return str(v).rstrip("/")

    @property
    def auth_headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"}


def credential_fields() -> List[NodeInput]:
    """Form fields the host renders when the user creates a Whaapy credential."""
    return [
        NodeInput(
            name="apiKey",
            type="string",
            label="API Key",
            required=True,
            default="",
            typeOptions=TypeOptions(password=True),
            description="Your Whaapy API Key (starts with wha_). Get it from app.whaapy.com → Settings → API Keys.",
        ),
        NodeInput(
            name="baseUrl",
            type="string",
            label="Base URL",
            default=settings.DEFAULT_BASE_URL,
            description="The base URL for the Whaapy API",
        ),
    ]
