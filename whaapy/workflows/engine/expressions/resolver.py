import logging
from typing import Any, Dict

from jinja2.sandbox import SandboxedEnvironment

logger = logging.getLogger(__name__)


class ExpressionResolver:
    """
    Resolves expressions in node parameters.
    Uses Jinja2 syntax (e.g. {{ json.phone }}) inside a restricted sandbox.
    """

    def __init__(self, context: Dict[str, Any]):
        self.env = SandboxedEnvironment()
        self.context = context

    def resolve(self, value: Any) -> Any:
        """
        Recursively resolve expressions in the given value.

        Args:
            value: The value to resolve (string, dict, list, or primitive)

        Returns:
            Resolved value
        """
        if isinstance(value, str):
            return self._resolve_string(value)
        elif isinstance(value, dict):
            return {k: self.resolve(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [self.resolve(v) for v in value]
        else:
            return value

    def _resolve_string(self, value: str) -> Any:
        # Only fire up Jinja if it looks like a template
        if "{{" not in value or "}}" not in value:
            return value

        try:
            template = self.env.from_string(value)
            return template.render(**self.context)
        except Exception as e:
            # Keep the literal so one bad expression does not crash the item
            logger.warning(f"Expression resolution failed for '{value}': {e}")
            return value
