"""
Whaapy Node

Calls the Whaapy API (WhatsApp Business with AI) for each input item:
messages, conversations, AI agent, templates, contacts and funnel stages.
"""
from pathlib import Path
from typing import Any, Dict, List

from whaapy.api.operations import OperationRequest
from whaapy.api.service import run_items
from whaapy.workflows.engine.context import NodeContext
from whaapy.workflows.engine.definitions import WorkflowItem
from whaapy.workflows.engine.errors import UnknownOperationError
from whaapy.workflows.engine.nodes.schema import NodeManifest

MANIFEST_PATH = Path(__file__).resolve().parent.parent / "manifest.json"
MANIFEST = NodeManifest.model_validate_json(MANIFEST_PATH.read_text("utf-8"))


async def execute(context: NodeContext) -> List[WorkflowItem]:
    """
    Execute the selected Whaapy operation.

    Args:
        context: NodeContext with the node parameters, input items and the
            injected ``whaapyApi`` credential

    Returns:
        One item per input item holding the API response (or the error
        message when continue-on-fail is enabled)
    """
    return await run_items(context, prepare=MANIFEST.with_defaults)


async def validate(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate configuration before execution.

    Only checks what can be known before expressions are resolved: the
    resource/operation pair and required fields left empty.

    Returns:
        Dict with 'valid' (bool) and optional 'errors' (list)
    """
    errors = []
    params = MANIFEST.with_defaults(config)

    try:
        OperationRequest.create(params.get("resource"), params.get("operation"), params)
    except UnknownOperationError as e:
        return {"valid": False, "errors": [e.message]}

    for node_input in MANIFEST.visible_inputs(params):
        if node_input.required and params.get(node_input.name) in (None, ""):
            errors.append(f"{node_input.label} is required")

    return {
        "valid": len(errors) == 0,
        "errors": errors,
    }

