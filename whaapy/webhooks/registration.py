"""
Webhook registration lifecycle against the Whaapy API.

While a trigger is active its registration (remote webhook id, event and
delivery URL) lives in a StaticDataStore keyed by trigger id. The three
lifecycle calls return booleans the way the host expects: failures are logged
and reported as False, never raised.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from whaapy.api.client import WhaapyClient
from whaapy.config import settings
from whaapy.credentials.models import WhaapyCredential
from whaapy.webhooks.adapter import ALL_EVENTS
from whaapy.webhooks.models import WebhookRegistration

logger = logging.getLogger(__name__)

WEBHOOKS_PATH = "/webhooks/v1"


class StaticDataStore:
    """In-process key-value store of webhook registrations per trigger id."""

    def __init__(self):
        self._records: Dict[str, WebhookRegistration] = {}

    def get(self, trigger_id: str) -> Optional[WebhookRegistration]:
        return self._records.get(trigger_id)

    def save(self, trigger_id: str, registration: WebhookRegistration) -> None:
        self._records[trigger_id] = registration

    def remove(self, trigger_id: str) -> None:
        self._records.pop(trigger_id, None)

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, trigger_id: str) -> bool:
        return trigger_id in self._records

    def __len__(self) -> int:
        return len(self._records)


registrations = StaticDataStore()


def _webhook_list(response: Any) -> list:
    if isinstance(response, list):
        return response
    if isinstance(response, dict):
        return response.get("webhooks") or response.get("data") or []
    return []


def _webhook_id(response: Any) -> Optional[str]:
    if not isinstance(response, dict):
        return None
    webhook_id = response.get("id")
    if webhook_id is None and isinstance(response.get("webhook"), dict):
        webhook_id = response["webhook"].get("id")
    return str(webhook_id) if webhook_id is not None else None


async def check_exists(
    credential: WhaapyCredential,
    url: str,
    event: str,
    http_client: Optional[httpx.AsyncClient] = None,
) -> bool:
    """True when a webhook for ``url`` subscribed to ``event`` is already registered."""
    try:
        async with WhaapyClient(credential, http_client) as client:
            response = await client.request("GET", WEBHOOKS_PATH)
    except httpx.HTTPError as e:
        logger.warning(f"Could not list Whaapy webhooks: {e}")
        return False

    return any(
        isinstance(webhook, dict)
        and webhook.get("url") == url
        and event in (webhook.get("events") or [])
        for webhook in _webhook_list(response)
    )


async def create(
    trigger_id: str,
    credential: WhaapyCredential,
    url: str,
    event: str,
    secret: Optional[str] = None,
    store: Optional[StaticDataStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> bool:
    """Register the webhook and remember its remote id for the trigger."""
    store = store if store is not None else registrations
    body: Dict[str, Any] = {
        "url": url,
        "events": [ALL_EVENTS] if event == ALL_EVENTS else [event],
    }
    if secret:
        body["secret"] = secret

    try:
        async with WhaapyClient(credential, http_client) as client:
            response = await client.request("POST", WEBHOOKS_PATH, body=body)
    except httpx.HTTPError as e:
        logger.error(f"Failed to register Whaapy webhook for trigger {trigger_id}: {e}")
        return False

    registration = store.get(trigger_id) or WebhookRegistration(event=event, url=url)
    registration.webhook_id = _webhook_id(response)
    store.save(trigger_id, registration)
    logger.info(f"Registered Whaapy webhook {registration.webhook_id} for trigger {trigger_id}")
    return True


async def delete(
    trigger_id: str,
    credential: WhaapyCredential,
    store: Optional[StaticDataStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> bool:
    """Remove the remote webhook. Nothing registered counts as success."""
    store = store if store is not None else registrations
    registration = store.get(trigger_id)
    if registration is None or not registration.webhook_id:
        return True

    try:
        async with WhaapyClient(credential, http_client) as client:
            await client.request("DELETE", f"{WEBHOOKS_PATH}/{registration.webhook_id}")
    except httpx.HTTPError as e:
        logger.error(f"Failed to delete Whaapy webhook {registration.webhook_id}: {e}")
        return False

    registration.webhook_id = None
    store.save(trigger_id, registration)
    return True


async def activate(
    trigger_id: str,
    credential: WhaapyCredential,
    event: str = ALL_EVENTS,
    secret: Optional[str] = None,
    store: Optional[StaticDataStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> bool:
    """
    Start receiving events for a trigger.

    The trigger is recorded first so the inbound endpoint accepts deliveries
    even when the webhook already existed remotely.
    """
    store = store if store is not None else registrations
    url = settings.webhook_url(trigger_id)
    if trigger_id not in store:
        store.save(trigger_id, WebhookRegistration(event=event, url=url))

    if await check_exists(credential, url, event, http_client=http_client):
        logger.info(f"Whaapy webhook for trigger {trigger_id} already registered")
        return True
    return await create(trigger_id, credential, url, event, secret, store=store, http_client=http_client)


async def deactivate(
    trigger_id: str,
    credential: WhaapyCredential,
    store: Optional[StaticDataStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> bool:
    """Stop receiving events; the trigger is forgotten once the remote webhook is gone."""
    store = store if store is not None else registrations
    deleted = await delete(trigger_id, credential, store=store, http_client=http_client)
    if deleted:
        store.remove(trigger_id)
    return deleted
