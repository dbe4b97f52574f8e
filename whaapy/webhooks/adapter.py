"""
Webhook adapter: filters inbound Whaapy events and wraps them as envelopes.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from whaapy.webhooks.models import WebhookEnvelope

logger = logging.getLogger(__name__)

ALL_EVENTS = "*"

TRIGGER_EVENTS = (
    "message.received",
    "message.sent",
    "message.delivered",
    "message.read",
    "message.failed",
    "conversation.created",
    "conversation.updated",
    "conversation.handoff",
    ALL_EVENTS,
)


def event_name(body: Any) -> Any:
    """Event name of a webhook body; older deliveries use ``type``."""
    if not isinstance(body, Mapping):
        return None
    return body.get("event") or body.get("type")


def matches_filter(event: Any, event_filter: str) -> bool:
    return event_filter == ALL_EVENTS or event == event_filter


def adapt_webhook(
    body: Any,
    headers: Optional[Mapping[str, Any]] = None,
    event_filter: str = ALL_EVENTS,
) -> List[WebhookEnvelope]:
    """
    Turn one inbound webhook call into zero or one envelope.

    An event that does not match the filter is not an error: the call
    simply produces nothing.

    Args:
        body: Parsed JSON body of the callback
        headers: Request headers, passed through to the envelope
        event_filter: Event name to accept, or "*" for all

    Returns:
        Empty list, or a list holding a single WebhookEnvelope
    """
    event = event_name(body)
    if not matches_filter(event, event_filter):
        logger.debug(f"Ignoring webhook event '{event}' (filter '{event_filter}')")
        return []

    fields: Mapping[str, Any] = body if isinstance(body, Mapping) else {}
    if fields.get("data") is not None:
        data = fields["data"]
    elif fields.get("payload") is not None:
        data = fields["payload"]
    else:
        data = body

    envelope = WebhookEnvelope(
        event=event,
        timestamp=fields.get("timestamp") or datetime.now(timezone.utc).isoformat(),
        data=data,
        headers=dict(headers or {}),
        raw=body,
    )
    return [envelope]


def envelope_records(envelopes: List[WebhookEnvelope]) -> List[Dict[str, Any]]:
    return [envelope.model_dump() for envelope in envelopes]
