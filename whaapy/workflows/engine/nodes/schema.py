import copy
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator


# --- Enums ---
class NodeCategory(str, Enum):
    TRIGGER = "TRIGGER"
    ACTION = "ACTION"
    LOGIC = "LOGIC"
    UTILITY = "UTILITY"


# --- Models ---
class DisplayConfiguration(BaseModel):
    """
    Configuration for hiding/showing fields.

    ``show`` maps a sibling parameter name to the values for which the field
    is visible; every listed parameter must match.
    """
    show: Optional[Dict[str, List[Any]]] = None
    hide: Optional[Dict[str, List[Any]]] = None

    def is_visible(self, params: Dict[str, Any]) -> bool:
        for name, allowed in (self.show or {}).items():
            if params.get(name) not in allowed:
                return False
        for name, blocked in (self.hide or {}).items():
            if params.get(name) in blocked:
                return False
        return True


class TypeOptions(BaseModel):
    """
    Advanced options for specific input types.
    """
    model_config = ConfigDict(extra="allow")

    rows: Optional[int] = None
    password: Optional[bool] = None
    multipleValues: Optional[bool] = None
    maxValue: Optional[int] = None


class SelectOption(BaseModel):
    label: str
    value: Any
    description: Optional[str] = None
    action: Optional[str] = None


class NodeInput(BaseModel):
    """
    Definition of a single input field in the node.
    """
    name: str
    type: str  # string, number, boolean, select, json, collection, fixedCollection, group, credential
    label: str
    default: Optional[Any] = None
    description: Optional[str] = None
    required: bool = False
    placeholder: Optional[str] = None
    noDataExpression: bool = False

    # Select options, or nested inputs for collections / fixed-collection groups
    options: Optional[Union[List[SelectOption], List["NodeInput"]]] = None
    # Fields of one entry of a fixed-collection group
    values: Optional[List["NodeInput"]] = None

    displayOptions: Optional[DisplayConfiguration] = None
    typeOptions: Optional[TypeOptions] = None
    credential_type: Optional[str] = None

    def is_visible(self, params: Dict[str, Any]) -> bool:
        if self.displayOptions is None:
            return True
        return self.displayOptions.is_visible(params)


NodeInput.model_rebuild()


class NodeOutput(BaseModel):
    name: str
    type: str
    label: Optional[str] = None
    description: Optional[str] = None


class WebhookDefinition(BaseModel):
    name: str = "default"
    httpMethod: str = "POST"
    path: str = "webhook"
    responseMode: str = "onReceived"


class NodeManifest(BaseModel):
    """
    Node manifest definition (manifest.json).
    """
    model_config = ConfigDict(validate_default=True)

    id: str
    version: str = "1.0.0"

    name: Optional[str] = None
    displayName: Optional[str] = None
    subtitle: Optional[str] = None

    description: str
    category: NodeCategory
    service: Optional[str] = "core"

    icon: Optional[str] = None
    icon_svg: Optional[str] = None

    inputs: List[NodeInput] = []
    outputs: List[NodeOutput] = []

    webhook: bool = False
    webhooks: List[WebhookDefinition] = []

    credentials: Optional[List[str]] = None
    tags: List[str] = []
    author: str = "Whaapy"

    @field_validator("name", mode="before")
    def set_name_fallback(cls, v, info: ValidationInfo):
        if v is None and "id" in info.data:
            return info.data["id"]
        return v

    @field_validator("displayName", mode="before")
    def set_display_name(cls, v, info: ValidationInfo):
        if not v and info.data.get("name"):
            return info.data["name"]
        return v

    def visible_inputs(self, params: Dict[str, Any]) -> List[NodeInput]:
        """Top-level inputs shown for the given parameter values."""
        return [node_input for node_input in self.inputs if node_input.is_visible(params)]

    def with_defaults(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Fill in defaults of visible inputs the user did not set.

        Visibility depends on other values (the operation default depends on
        the resource), so defaults are applied until nothing changes.
        """
        merged = dict(params)
        changed = True
        while changed:
            changed = False
            for node_input in self.inputs:
                if node_input.name in merged or node_input.default is None:
                    continue
                if node_input.is_visible(merged):
                    merged[node_input.name] = copy.deepcopy(node_input.default)
                    changed = True
        return merged
