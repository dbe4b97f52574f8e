from typing import Any, Dict, List, Optional

from whaapy.workflows.engine.definitions import WorkflowItem
from whaapy.workflows.engine.error_handler import ErrorPolicy, ErrorPolicyHandler
from whaapy.workflows.engine.expressions.resolver import ExpressionResolver

_MISSING = object()


class NodeContext:
    """
    Execution context for a node.

    Holds the raw node configuration, the input items, the injected credential
    and the node settings. Parameters are resolved per item, so an expression
    such as ``{{ json.phone }}`` reads the field of the item being processed.
    """

    def __init__(
        self,
        execution_id: str,
        workflow_id: str,
        node_id: str,
        config: Dict[str, Any],
        input_data: Optional[List[WorkflowItem]] = None,
        credentials: Optional[Dict[str, Any]] = None,
        settings: Optional[Dict[str, Any]] = None,
        env: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        self.execution_id = execution_id
        self.workflow_id = workflow_id
        self.node_id = node_id
        self.raw_config = config or {}
        self.input_data = input_data or []
        self.credentials = credentials
        self.settings = settings or {}
        self.env = env or {}
        # Request headers, set by the host for webhook-triggered executions
        self.headers = headers or {}

    @property
    def items(self) -> List[WorkflowItem]:
        """Input items; a node with no input still runs once."""
        return self.input_data or [WorkflowItem(json={})]

    @property
    def error_policy(self) -> ErrorPolicy:
        return ErrorPolicyHandler.resolve_policy(self.settings)

    @property
    def continue_on_fail(self) -> bool:
        return ErrorPolicyHandler.should_continue(self.error_policy)

    def _resolver_for(self, item_index: int) -> ExpressionResolver:
        items = self.items
        item = items[item_index] if 0 <= item_index < len(items) else WorkflowItem(json={})
        return ExpressionResolver(
            {
                "json": item.json_data,
                "input": item.json_data,
                "item_index": item_index,
                "env": self.env,
                "execution": {
                    "id": self.execution_id,
                    "workflow_id": self.workflow_id,
                },
            }
        )

    def get_parameter(self, name: str, item_index: int = 0, default: Any = _MISSING) -> Any:
        """
        Return one parameter resolved against the given item.

        Raises:
            KeyError: If the parameter is absent and no default was given
        """
        if name not in self.raw_config:
            if default is _MISSING:
                raise KeyError(f"Parameter '{name}' is not set on node {self.node_id}")
            return default
        return self._resolver_for(item_index).resolve(self.raw_config[name])

    def resolve_config(self, item_index: int = 0) -> Dict[str, Any]:
        """
        Returns the whole configuration with expressions resolved for one item.
        """
        return self._resolver_for(item_index).resolve(self.raw_config)
