"""
Node Registry

Process-wide access to the node packages discovered under NODE_PACKAGES_DIR.
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from whaapy.config import settings
from whaapy.workflows.engine.definitions import WorkflowItem
from whaapy.workflows.engine.nodes.loader import NodePackage, NodePackageLoader

logger = logging.getLogger(__name__)


class NodeRegistry:
    """
    Central registry for the Whaapy node packages.
    """

    _loader: Optional[NodePackageLoader] = None
    _initialized: bool = False

    @classmethod
    def initialize(cls, packages_dir: Optional[Path] = None):
        """
        Discover all node packages.

        Args:
            packages_dir: Path to node_packages directory (default: settings.NODE_PACKAGES_DIR)
        """
        if packages_dir is None:
            packages_dir = settings.NODE_PACKAGES_DIR

        logger.info(f"Initializing NodeRegistry from: {packages_dir}")
        cls._loader = NodePackageLoader(packages_dir)
        cls._loader.discover_nodes()
        cls._initialized = True
        logger.info(f"NodeRegistry initialized with {len(cls._loader.loaded_nodes)} nodes")

    @classmethod
    def reset(cls):
        cls._loader = None
        cls._initialized = False

    @classmethod
    def get_node(cls, node_id: str) -> Optional[NodePackage]:
        cls._ensure_initialized()
        return cls._loader.get_node(node_id)

    @classmethod
    def list_nodes(cls) -> Dict[str, Dict[str, Any]]:
        """
        List all available nodes with their metadata, keyed by node ID.
        """
        cls._ensure_initialized()
        return {node["id"]: node for node in cls._loader.list_nodes()}

    @classmethod
    def get_all_schemas(cls) -> List[Dict[str, Any]]:
        cls._ensure_initialized()
        return cls._loader.get_all_schemas()

    @classmethod
    async def execute_node(
        cls,
        node_id: str,
        config: Dict[str, Any],
        items: Optional[List[WorkflowItem]] = None,
        credentials: Optional[Dict[str, Any]] = None,
        node_settings: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, Any]] = None,
    ) -> List[WorkflowItem]:
        cls._ensure_initialized()
        return await cls._loader.execute_node(node_id, config, items, credentials, node_settings, headers)

    @classmethod
    def _ensure_initialized(cls):
        """Ensure registry is initialized"""
        if not cls._initialized:
            cls.initialize()
