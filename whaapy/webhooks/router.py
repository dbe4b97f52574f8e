import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Request

from whaapy.config import settings
from whaapy.logger import setup_global_logger
from whaapy.webhooks.adapter import adapt_webhook, envelope_records
from whaapy.webhooks.registration import StaticDataStore, registrations
from whaapy.workflows.engine.definitions import json_array

logger = logging.getLogger(__name__)


def get_store() -> StaticDataStore:
    return registrations


async def _read_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return {}
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return raw.decode("utf-8", errors="replace")


def build_router(store: Optional[StaticDataStore] = None) -> APIRouter:
    router = APIRouter(tags=["webhooks"])
    store = store if store is not None else get_store()

    @router.post(f"/webhooks/{{trigger_id}}/{settings.WEBHOOK_PATH}")
    async def receive_webhook(trigger_id: str, request: Request) -> Dict[str, Any]:
        """
        Receive a Whaapy event for an active trigger.

        Events the trigger does not subscribe to are acknowledged with no items.
        """
        registration = store.get(trigger_id)
        if registration is None:
            raise HTTPException(status_code=404, detail="Trigger not found or not active")

        body = await _read_body(request)
        envelopes = adapt_webhook(body, dict(request.headers), registration.event)
        logger.info(f"Webhook for trigger {trigger_id}: {len(envelopes)} item(s)")

        items = json_array(envelope_records(envelopes))
        return {"items": [item.model_dump(by_alias=True) for item in items]}

    return router


def create_app(store: Optional[StaticDataStore] = None) -> FastAPI:
    setup_global_logger(settings.LOG_LEVEL)
    app = FastAPI(title=settings.PROJECT_NAME)
    app.include_router(build_router(store))

    @app.get("/health")
    async def health() -> Dict[str, str]:
        return {"status": "ok"}

    return app
