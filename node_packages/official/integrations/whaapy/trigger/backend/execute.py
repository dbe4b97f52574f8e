"""
Whaapy Trigger Node

Emits Whaapy webhook events (messages, conversations, AI handoffs) into a
workflow. The inbound endpoint passes each delivery in as an input item whose
JSON is the request body; request headers come through the context.

The webhook methods register, find and remove the remote webhook while the
trigger is active.
"""
from typing import Any, Dict, List, Optional

import httpx

from whaapy.config import settings
from whaapy.credentials.service import resolve_credential
from whaapy.webhooks import registration
from whaapy.webhooks.adapter import ALL_EVENTS, TRIGGER_EVENTS, adapt_webhook
from whaapy.workflows.engine.context import NodeContext
from whaapy.workflows.engine.definitions import WorkflowItem


def _event(context: NodeContext) -> str:
    return context.get_parameter("event", default="message.received") or ALL_EVENTS


async def execute(context: NodeContext) -> List[WorkflowItem]:
    """
    Filter and wrap the received webhook deliveries.

    Returns:
        One item per delivery matching the configured event
    """
    event_filter = _event(context)
    results = []

    for index, item in enumerate(context.input_data):
        for envelope in adapt_webhook(item.json_data, context.headers, event_filter):
            results.append(WorkflowItem(json=envelope.model_dump(), pairedItem=index))

    return results


async def check_exists(context: NodeContext, http_client: Optional[httpx.AsyncClient] = None) -> bool:
    credential = resolve_credential(context.credentials)
    url = settings.webhook_url(context.node_id)
    return await registration.check_exists(credential, url, _event(context), http_client=http_client)


async def create(context: NodeContext, http_client: Optional[httpx.AsyncClient] = None) -> bool:
    credential = resolve_credential(context.credentials)
    options = context.get_parameter("options", default={}) or {}
    return await registration.create(
        context.node_id,
        credential,
        settings.webhook_url(context.node_id),
        _event(context),
        secret=options.get("webhookSecret") or None,
        http_client=http_client,
    )


async def delete(context: NodeContext, http_client: Optional[httpx.AsyncClient] = None) -> bool:
    credential = resolve_credential(context.credentials)
    return await registration.deactivate(context.node_id, credential, http_client=http_client)


async def validate(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate configuration before execution.

    Returns:
        Dict with 'valid' and 'errors'
    """
    errors = []

    event = config.get("event", "message.received")
    if event not in TRIGGER_EVENTS and "{{" not in str(event):
        errors.append(f"Unknown event '{event}'. Expected one of: {', '.join(TRIGGER_EVENTS)}")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
    }
