"""
Runs operation requests against the API, including pre-flight lookups.
"""
import logging
from typing import Any, Callable, Dict, List, Optional

import httpx

from whaapy.api.assembler import build_preflight, build_request
from whaapy.api.client import WhaapyClient
from whaapy.api.operations import OperationRequest
from whaapy.credentials.service import resolve_credential
from whaapy.workflows.engine.context import NodeContext
from whaapy.workflows.engine.definitions import WorkflowItem
from whaapy.workflows.engine.error_handler import ErrorClassifier, ErrorPolicyHandler
from whaapy.workflows.engine.errors import NodeOperationError

logger = logging.getLogger(__name__)


async def run_operation(client: WhaapyClient, request: OperationRequest) -> Any:
    """
    Execute an operation request and return the API response.

    A pre-flight lookup, when the operation needs one, runs first and feeds
    its result into the main request. When the lookup fails the item fails
    and the main request is never sent.

    Raises:
        NodeOperationError: Validation, lookup-miss and unsupported-operation failures
        httpx.HTTPError: Transport and HTTP status failures, unchanged
    """
    preflight = build_preflight(request)
    if preflight is not None:
        logger.debug(f"Running pre-flight lookup for {request.resource.value}.{request.operation.value}")
        lookup = await client.request(preflight.method, preflight.path, query=preflight.query)
        request = request.with_fields(**preflight.resolve(lookup))

    outbound = build_request(request)
    return await client.send(outbound)


def response_json(response: Any) -> Dict[str, Any]:
    # Items carry objects; list responses are wrapped
    if isinstance(response, dict):
        return response
    return {"data": response}


async def run_items(
    context: NodeContext,
    prepare: Optional[Callable[[Dict[str, Any]], Dict[str, Any]]] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> List[WorkflowItem]:
    """
    Run the node's operation once per input item.

    Parameters are resolved against each item, so expressions can read the
    item's fields. With continue-on-fail enabled a failing item yields an
    ``{"error": message}`` record and the next item runs; otherwise the first
    failure is raised. Binary data of the input item is carried over.

    Args:
        context: Node context with configuration, items and credential
        prepare: Applied to each item's resolved parameters (e.g. manifest defaults)
        http_client: Optional pre-built client, used by tests
    """
    credential = resolve_credential(context.credentials)
    results: List[WorkflowItem] = []

    async with WhaapyClient(credential, http_client) as client:
        for index, item in enumerate(context.items):
            try:
                fields = context.resolve_config(index)
                if prepare is not None:
                    fields = prepare(fields)
                request = OperationRequest.create(fields.get("resource"), fields.get("operation"), fields)
                response = await run_operation(client, request)
            except Exception as e:
                if isinstance(e, NodeOperationError) and e.item_index is None:
                    e.item_index = index
                if not context.continue_on_fail:
                    raise

                error_context = ErrorClassifier.classify(e)
                logger.warning(f"Item {index} failed ({error_context.category.value}): {e}")
                fallback = ErrorPolicyHandler.get_fallback_output(e)
                results.append(WorkflowItem(json=fallback, binary=item.binary_data, pairedItem=index))
                continue

            results.append(WorkflowItem(json=response_json(response), binary=item.binary_data, pairedItem=index))

    logger.info(f"Node {context.node_id} processed {len(results)} item(s)")
    return results
