"""
Node Package Loader

Discovers node packages under a directory and loads their backends.

A node package is a directory holding:
    manifest.json        declarative UI metadata (validated as a NodeManifest)
    backend/execute.py   async execute(context) and optional validate(config),
                         plus check_exists/create/delete for webhook triggers
    frontend/icon.svg    optional icon
"""

import importlib.util
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from pydantic import ValidationError

from whaapy.workflows.engine.context import NodeContext
from whaapy.workflows.engine.definitions import WorkflowItem
from whaapy.workflows.engine.errors import NodeValidationError
from whaapy.workflows.engine.nodes.schema import NodeManifest

logger = logging.getLogger(__name__)

WEBHOOK_METHODS = ("check_exists", "create", "delete")


@dataclass
class NodePackage:
    """Represents a loaded node package"""
    id: str
    name: str
    version: str
    manifest: NodeManifest
    execute_fn: Callable
    validate_fn: Optional[Callable] = None
    webhook_methods: Dict[str, Callable] = field(default_factory=dict)
    package_dir: Optional[Path] = None


class NodePackageLoader:
    """
    Loads and manages node packages from the filesystem.

    Usage:
        loader = NodePackageLoader(Path("node_packages"))
        loader.discover_nodes()
        items = await loader.execute_node("whaapy", config, items, credentials)
    """

    def __init__(self, packages_dir: Path):
        self.packages_dir = Path(packages_dir)
        self.loaded_nodes: Dict[str, NodePackage] = {}

    def discover_nodes(self) -> List[NodePackage]:
        """
        Scan the packages directory (recursively) and load every valid package.

        Returns:
            List of successfully loaded NodePackage objects
        """
        nodes = []

        if not self.packages_dir.exists():
            logger.warning(f"Node packages directory {self.packages_dir} does not exist")
            return nodes

        for manifest_path in sorted(self.packages_dir.rglob("manifest.json")):
            package_dir = manifest_path.parent
            if any(part.startswith("_") for part in package_dir.relative_to(self.packages_dir).parts):
                continue

            try:
                node_package = self._load_node_package(package_dir)
            except Exception as e:
                logger.error(f"Failed to load node {package_dir.name}: {e}", exc_info=True)
                continue

            nodes.append(node_package)
            self.loaded_nodes[node_package.id] = node_package
            logger.info(f"Loaded node: {node_package.name} v{node_package.version} ({node_package.id})")

        logger.info(f"Loaded {len(nodes)} workflow nodes")
        return nodes

    def _load_node_package(self, package_dir: Path) -> NodePackage:
        """
        Load a single node package from its directory.

        Raises:
            ValueError: If manifest is invalid or execution module missing
        """
        with open(package_dir / "manifest.json", "r", encoding="utf-8") as f:
            raw_manifest = json.load(f)

        icon_path = package_dir / "frontend" / "icon.svg"
        if icon_path.exists():
            raw_manifest["icon_svg"] = icon_path.read_text("utf-8")

        try:
            manifest = NodeManifest.model_validate(raw_manifest)
        except ValidationError as e:
            raise ValueError(f"Invalid manifest in {package_dir.name}: {e}") from e

        execute_module_path = package_dir / "backend" / "execute.py"
        if not execute_module_path.exists():
            raise ValueError(f"Missing backend/execute.py in {package_dir.name}")

        spec = importlib.util.spec_from_file_location(
            f"node_packages.{manifest.id}.execute",
            execute_module_path,
        )
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        if not hasattr(module, "execute"):
            raise ValueError(f"Node package {package_dir.name} missing execute() function")

        webhook_methods = {
            name: getattr(module, name)
            for name in WEBHOOK_METHODS
            if manifest.webhook and hasattr(module, name)
        }

        return NodePackage(
            id=manifest.id,
            name=manifest.name,
            version=manifest.version,
            manifest=manifest,
            execute_fn=module.execute,
            validate_fn=getattr(module, "validate", None),
            webhook_methods=webhook_methods,
            package_dir=package_dir,
        )

    async def execute_node(
        self,
        node_id: str,
        config: Dict[str, Any],
        items: Optional[List[WorkflowItem]] = None,
        credentials: Optional[Dict[str, Any]] = None,
        settings: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, Any]] = None,
    ) -> List[WorkflowItem]:
        """
        Execute a loaded node package.

        Args:
            node_id: ID of the node to execute (e.g., "whaapy")
            config: Node parameters
            items: Input items from the previous node
            credentials: Credential data injected by the host
            settings: Node settings such as the error policy
            headers: Request headers for webhook-triggered executions

        Returns:
            Output items

        Raises:
            ValueError: If the node is not loaded
            NodeValidationError: If validate() rejects the configuration
        """
        node_package = self.loaded_nodes.get(node_id)
        if not node_package:
            raise ValueError(f"Node '{node_id}' not found. Available: {list(self.loaded_nodes.keys())}")

        if node_package.validate_fn:
            validation_result = await node_package.validate_fn(config)
            if not validation_result.get("valid", True):
                errors = validation_result.get("errors", ["Validation failed"])
                raise NodeValidationError(f"Configuration validation failed: {', '.join(errors)}")

        context = NodeContext(
            execution_id="manual",
            workflow_id="manual",
            node_id=node_package.id,
            config=config,
            input_data=items,
            credentials=credentials,
            settings=settings,
            headers=headers,
        )

        # Item failures already went through the node's error policy
        return await node_package.execute_fn(context)

    def get_node(self, node_id: str) -> Optional[NodePackage]:
        """Get a loaded node package by ID"""
        return self.loaded_nodes.get(node_id)

    def list_nodes(self) -> List[Dict[str, Any]]:
        """
        Get a list of all loaded node packages with their metadata.
        """
        return [
            {
                "id": node.id,
                "name": node.manifest.displayName or node.name,
                "version": node.version,
                "category": node.manifest.category.value,
                "description": node.manifest.description,
                "inputs": len(node.manifest.inputs),
                "webhook": node.manifest.webhook,
                "tags": node.manifest.tags,
            }
            for node in self.loaded_nodes.values()
        ]

    def get_all_schemas(self) -> List[Dict[str, Any]]:
        """
        Manifests of all loaded nodes, as consumed by the host UI.
        """
        return [node.manifest.model_dump(exclude_none=True) for node in self.loaded_nodes.values()]
