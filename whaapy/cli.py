"""Command-line interface for the Whaapy node package."""

import asyncio
import json
import sys
from typing import Any, Dict, Tuple

import click
import uvicorn
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from whaapy.api.assembler import build_preflight, build_request
from whaapy.api.fields import set_path
from whaapy.api.operations import OperationRequest
from whaapy.config import settings
from whaapy.credentials import WhaapyCredential, verify_credential
from whaapy.logger import setup_global_logger
from whaapy.workflows.engine.errors import NodeOperationError
from whaapy.workflows.engine.nodes.registry import NodeRegistry

__version__ = "0.1.0"

console = Console()

ACTION_NODE_ID = "whaapy"


@click.group()
@click.version_option(version=__version__)
@click.option("--log-level", default=None, help="Log level (default: WHAAPY_LOG_LEVEL)")
def main(log_level: str):
    """
    Whaapy - WhatsApp Business API nodes for workflow automation.

    Inspect the node manifests, preview the HTTP requests the action node
    sends, and serve the inbound webhook endpoint.
    """
    setup_global_logger(log_level or settings.LOG_LEVEL)


def parse_field_value(raw: str) -> Any:
    """
    Objects, arrays, booleans and null are decoded as JSON; anything else
    stays a string so phone numbers and IDs keep their exact text.
    """
    if raw in ("true", "false", "null") or raw[:1] in ("{", "["):
        try:
            return json.loads(raw)
        except ValueError:
            return raw
    return raw


def parse_fields(pairs: Tuple[str, ...]) -> Dict[str, Any]:
    fields: Dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"Expected key=value, got '{pair}'", param_hint="--field")
        key, raw = pair.split("=", 1)
        # Dotted keys fill collections: additionalFields.replyTo=wamid.123
        set_path(fields, key.strip(), parse_field_value(raw))
    return fields


@main.command()
def nodes():
    """List the discovered node packages."""
    table = Table(title="Node Packages")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Version")
    table.add_column("Category")
    table.add_column("Inputs", justify="right")
    table.add_column("Webhook")

    for node in NodeRegistry.list_nodes().values():
        table.add_row(
            node["id"],
            node["name"],
            node["version"],
            node["category"],
            str(node["inputs"]),
            "yes" if node["webhook"] else "",
        )

    console.print(table)


@main.command()
@click.argument("resource")
@click.argument("operation")
@click.option("-f", "--field", "pairs", multiple=True, help="Node parameter as key=value (repeatable)")
def build(resource: str, operation: str, pairs: Tuple[str, ...]):
    """
    Print the request an operation would send, without calling the API.

    Example: whaapy build message send -f to=+5215512345678 -f textContent=Hola
    """
    fields = {"resource": resource, "operation": operation, **parse_fields(pairs)}

    node = NodeRegistry.get_node(ACTION_NODE_ID)
    if node is not None:
        fields = node.manifest.with_defaults(fields)

    try:
        request = OperationRequest.create(resource, operation, fields)
        preflight = build_preflight(request)
        if preflight is not None:
            console.print(
                f"[yellow]Pre-flight lookup:[/yellow] {preflight.method} {preflight.path} {preflight.query}"
            )
            # The lookup result is unknown offline
            request = request.with_fields(contactId="<resolved-by-lookup>")
        outbound = build_request(request)
    except NodeOperationError as e:
        console.print(f"[red]✗ {e.message}[/red]")
        sys.exit(1)

    console.print_json(data=outbound.to_dict())


@main.command()
@click.option("--api-key", envvar="WHAAPY_API_KEY", required=True, help="Whaapy API key")
@click.option("--base-url", default=None, help="API base URL (default: WHAAPY_DEFAULT_BASE_URL)")
def verify(api_key: str, base_url: str):
    """Test an API key against the Whaapy API."""
    credential = WhaapyCredential(apiKey=api_key, baseUrl=base_url or settings.DEFAULT_BASE_URL)
    result = asyncio.run(verify_credential(credential))

    if result["valid"]:
        console.print("[bold green]✓ Credential is valid[/bold green]")
        console.print_json(data=result["account"])
    else:
        console.print(f"[bold red]✗ Credential check failed:[/bold red] {result['error']}")
        sys.exit(1)


@main.command()
@click.option("--host", default="0.0.0.0", help="Host to bind to")
@click.option("--port", default=8000, help="Port to bind to (default: 8000)")
@click.option("--reload", is_flag=True, help="Enable auto-reload for development")
def serve(host: str, port: int, reload: bool):
    """Serve the inbound webhook endpoint."""
    console.print(
        Panel.fit(
            f"""[bold cyan]Whaapy webhook receiver[/bold cyan]

[dim]Host:[/dim] {host}
[dim]Port:[/dim] {port}
[dim]Endpoint:[/dim] POST /webhooks/{{trigger_id}}/{settings.WEBHOOK_PATH}
[dim]Public URL:[/dim] {settings.server_host}
""",
            border_style="cyan",
        )
    )

    try:
        uvicorn.run(
            "whaapy.webhooks.router:create_app",
            factory=True,
            host=host,
            port=port,
            reload=reload,
            log_level=settings.LOG_LEVEL.lower(),
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Server stopped[/yellow]")
        sys.exit(0)


if __name__ == "__main__":
    main()
