from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class WebhookEnvelope(BaseModel):
    """Normalized record emitted downstream for one accepted webhook call."""
    # None when the body names no event (only accepted by the "*" filter)
    event: Any = None
    # ISO-8601 string, or whatever the sender put in the body
    timestamp: Any
    data: Any = None
    headers: Dict[str, Any] = Field(default_factory=dict)
    raw: Any = None


class WebhookRegistration(BaseModel):
    """Registration state kept per trigger while it is active."""
    model_config = ConfigDict(populate_by_name=True)

    webhook_id: Optional[str] = Field(None, alias="webhookId")
    event: str = "*"
    url: Optional[str] = None
