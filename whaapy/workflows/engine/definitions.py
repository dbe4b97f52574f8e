from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class WorkflowItem(BaseModel):
    """
    Standard unit of data passed between nodes.

    JSON data and binary data (files) are always kept apart.
    """
    model_config = ConfigDict(populate_by_name=True)

    json_data: Dict[str, Any] = Field(default_factory=dict, alias="json")
    binary_data: Dict[str, Any] = Field(default_factory=dict, alias="binary")
    # Index of the input item this one was produced from
    paired_item: Optional[int] = Field(None, alias="pairedItem")


def json_array(records: List[Dict[str, Any]]) -> List[WorkflowItem]:
    """Wrap plain dicts as items."""
    return [WorkflowItem(json=record) for record in records]
