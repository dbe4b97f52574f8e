"""
Operation table for the Whaapy API.

Every (resource, operation) pair maps to an OperationSpec: the HTTP method,
the path template and declarative rules saying where each node parameter
lands (path, JSON body or query string). The assembler interprets the table;
nothing in here talks to the network.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from whaapy.api.fields import is_empty
from whaapy.api.messages import build_message_body
from whaapy.workflows.engine.errors import ContactNotFoundError, NodeValidationError, UnknownOperationError


class Resource(str, Enum):
    MESSAGE = "message"
    MEDIA = "media"
    CONVERSATION = "conversation"
    AGENT = "agent"
    TEMPLATE = "template"
    CONTACT = "contact"
    FUNNEL = "funnel"


class Operation(str, Enum):
    SEND = "send"
    RETRY = "retry"
    UPLOAD = "upload"
    LIST = "list"
    GET = "get"
    GET_BY_PHONE = "getByPhone"
    GET_MESSAGES = "getMessages"
    CLOSE = "close"
    ARCHIVE = "archive"
    MARK_READ = "markRead"
    SET_AI = "setAi"
    PAUSE_AI = "pauseAi"
    AI_SUGGEST = "aiSuggest"
    TOGGLE = "toggle"
    PAUSE = "pause"
    GET_VARIABLES = "getVariables"
    SYNC = "sync"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    SEARCH = "search"
    BULK = "bulk"
    MERGE = "merge"
    GET_TAGS = "getTags"
    GET_FIELDS = "getFields"
    LIST_STAGES = "listStages"
    GET_STAGE = "getStage"
    CREATE_STAGE = "createStage"
    UPDATE_STAGE = "updateStage"
    DELETE_STAGE = "deleteStage"
    REORDER_STAGES = "reorderStages"
    MOVE_CONTACT = "moveContact"


class Target(str, Enum):
    PATH = "path"
    BODY = "body"
    QUERY = "query"


@dataclass(frozen=True)
class FieldRule:
    """Where one node parameter lands in the outbound request."""
    name: str
    target: Target
    # Destination key; dotted keys nest inside the body. Defaults to ``name``.
    key: Optional[str] = None
    # Parameter collection holding the field (e.g. "conversationFilters")
    collection: Optional[str] = None
    json: bool = False
    required: bool = False
    # Values omitted on top of "" and None
    skip: Tuple[Any, ...] = ()
    # Used when the parameter is empty
    default: Any = None

    @property
    def destination(self) -> str:
        return self.key or self.name


@dataclass(frozen=True)
class CollectionRule:
    """Copies every non-empty entry of a parameter collection."""
    collection: str
    target: Target
    renames: Mapping[str, str] = field(default_factory=dict)
    json_fields: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Preflight:
    """
    A lookup request that must succeed before the main request is built.

    ``resolve`` receives the lookup's JSON response and returns parameter
    updates for the main request, or raises to fail the item.
    """
    method: str
    path: str
    query: Dict[str, Any]
    resolve: Callable[[Any], Dict[str, Any]]


@dataclass(frozen=True)
class OperationSpec:
    method: str
    path: str
    fields: Tuple[FieldRule, ...] = ()
    collections: Tuple[CollectionRule, ...] = ()
    # Builds the base body from all parameters; rules are applied on top
    body_builder: Optional[Callable[[Mapping[str, Any]], Dict[str, Any]]] = None
    # Returns a Preflight when a lookup must run before the main request
    preflight: Optional[Callable[[Mapping[str, Any]], Any]] = None
    # Set for operations that always fail with this message
    unsupported: Optional[str] = None


@dataclass(frozen=True)
class OperationRequest:
    """One node item's selection: resource, operation and parameter values."""
    resource: Resource
    operation: Operation
    fields: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def create(cls, resource: str, operation: str, fields: Optional[Mapping[str, Any]] = None) -> "OperationRequest":
        try:
            resource_enum = Resource(resource)
            operation_enum = Operation(operation)
        except ValueError:
            raise UnknownOperationError(f"Unknown operation '{operation}' for resource '{resource}'")
        if (resource_enum, operation_enum) not in OPERATIONS:
            raise UnknownOperationError(f"Unknown operation '{operation}' for resource '{resource}'")
        return cls(resource_enum, operation_enum, dict(fields or {}))

    def with_fields(self, **updates: Any) -> "OperationRequest":
        return replace(self, fields={**self.fields, **updates})


def path_param(name: str) -> FieldRule:
    return FieldRule(name, Target.PATH, required=True)


def body(name: str, key: Optional[str] = None, **kwargs) -> FieldRule:
    return FieldRule(name, Target.BODY, key=key, **kwargs)


def query(name: str, key: Optional[str] = None, **kwargs) -> FieldRule:
    return FieldRule(name, Target.QUERY, key=key, **kwargs)


CONTACT_UPDATE_RENAMES = {
    "phoneNumber": "phone_number",
    "funnelStageId": "funnel_stage_id",
    "customFields": "custom_fields",
}

CONTACT_QUERY_RENAMES = {
    "sortBy": "sort_by",
    "sortOrder": "sort_order",
    "funnelStageId": "funnel_stage_id",
}

MEDIA_UPLOAD_UNSUPPORTED = (
    "Media upload requires binary data handling, which this node does not support. "
    "Use the HTTP Request node with binary data, or send media by URL."
)

CONTACT_CHECK_PHONE_PATH = "/contacts/check-phone"


def contact_phone_preflight(fields: Mapping[str, Any]) -> Optional[Preflight]:
    """Resolve ``contactId`` from a phone number when the contact is looked up by phone."""
    if (fields.get("contactLookupBy") or "id") != "phone":
        return None

    phone = fields.get("contactPhone_lookup")
    if is_empty(phone):
        raise NodeValidationError("Phone number is required to look up a contact by phone")

    def resolve(response: Any) -> Dict[str, Any]:
        if not isinstance(response, dict) or not response.get("exists"):
            raise ContactNotFoundError(phone)
        contact = response.get("contact")
        if not isinstance(contact, dict) or is_empty(contact.get("id")):
            raise ContactNotFoundError(phone)
        return {"contactId": contact["id"]}

    return Preflight("GET", CONTACT_CHECK_PHONE_PATH, {"phone": phone}, resolve)


def _build_operations() -> Dict[Tuple[Resource, Operation], OperationSpec]:
    conversation_id = path_param("conversationId")
    contact_id = path_param("contactId")
    stage_id = path_param("stageId")

    return {
        # --- Message ---
        (Resource.MESSAGE, Operation.SEND): OperationSpec(
            "POST", "/messages/v1", body_builder=build_message_body,
        ),
        (Resource.MESSAGE, Operation.RETRY): OperationSpec(
            "POST", "/messages/v1/{messageId}/retry", fields=(path_param("messageId"),),
        ),

        # --- Media ---
        (Resource.MEDIA, Operation.UPLOAD): OperationSpec(
            "POST", "/media/v1", unsupported=MEDIA_UPLOAD_UNSUPPORTED,
        ),

        # --- Conversation ---
        (Resource.CONVERSATION, Operation.LIST): OperationSpec(
            "GET", "/conversations/v1",
            fields=(
                query("search", collection="conversationFilters"),
                query("status", collection="conversationFilters", skip=("all",)),
                query("limit", collection="conversationFilters"),
                query("offset", collection="conversationFilters"),
            ),
        ),
        (Resource.CONVERSATION, Operation.GET): OperationSpec(
            "GET", "/conversations/v1/{conversationId}", fields=(conversation_id,),
        ),
        (Resource.CONVERSATION, Operation.GET_BY_PHONE): OperationSpec(
            "GET", "/conversations/v1/by-phone/{phoneNumber}", fields=(path_param("phoneNumber"),),
        ),
        (Resource.CONVERSATION, Operation.GET_MESSAGES): OperationSpec(
            "GET", "/conversations/v1/{conversationId}/messages",
            fields=(
                conversation_id,
                query("limit", collection="messagesOptions"),
                query("cursor", collection="messagesOptions"),
            ),
        ),
        (Resource.CONVERSATION, Operation.CLOSE): OperationSpec(
            "POST", "/conversations/v1/{conversationId}/close", fields=(conversation_id,),
        ),
        (Resource.CONVERSATION, Operation.ARCHIVE): OperationSpec(
            "POST", "/conversations/v1/{conversationId}/archive", fields=(conversation_id,),
        ),
        (Resource.CONVERSATION, Operation.MARK_READ): OperationSpec(
            "PATCH", "/conversations/v1/{conversationId}/mark-read", fields=(conversation_id,),
        ),
        (Resource.CONVERSATION, Operation.SET_AI): OperationSpec(
            "PATCH", "/conversations/v1/{conversationId}/ai",
            fields=(conversation_id, body("aiEnabled", required=True)),
        ),
        (Resource.CONVERSATION, Operation.PAUSE_AI): OperationSpec(
            "POST", "/conversations/v1/{conversationId}/ai/pause",
            fields=(conversation_id, body("pauseDurationConv", key="duration", required=True)),
        ),
        (Resource.CONVERSATION, Operation.AI_SUGGEST): OperationSpec(
            "POST", "/conversations/v1/{conversationId}/ai-suggest", fields=(conversation_id,),
        ),

        # --- Agent ---
        (Resource.AGENT, Operation.TOGGLE): OperationSpec(
            "POST", "/agent/v1/toggle", fields=(body("agentEnabled", key="enabled", required=True),),
        ),
        (Resource.AGENT, Operation.PAUSE): OperationSpec(
            "POST", "/agent/v1/pause", fields=(body("agentPauseDuration", key="duration", required=True),),
        ),

        # --- Template ---
        (Resource.TEMPLATE, Operation.LIST): OperationSpec(
            "GET", "/templates/v1",
            fields=(
                query("status", collection="templateFilters"),
                query("limit", collection="templateFilters"),
                query("offset", collection="templateFilters"),
            ),
        ),
        (Resource.TEMPLATE, Operation.GET): OperationSpec(
            "GET", "/templates/v1/{templateId}", fields=(path_param("templateId"),),
        ),
        (Resource.TEMPLATE, Operation.GET_VARIABLES): OperationSpec("GET", "/templates/v1/variables"),
        (Resource.TEMPLATE, Operation.SYNC): OperationSpec("POST", "/templates/v1/sync"),

        # --- Contact ---
        (Resource.CONTACT, Operation.LIST): OperationSpec(
            "GET", "/contacts/v1",
            collections=(CollectionRule("contactFilters", Target.QUERY, renames=CONTACT_QUERY_RENAMES),),
        ),
        (Resource.CONTACT, Operation.GET): OperationSpec(
            "GET", "/contacts/v1/{contactId}", fields=(contact_id,), preflight=contact_phone_preflight,
        ),
        (Resource.CONTACT, Operation.CREATE): OperationSpec(
            "POST", "/contacts/v1",
            fields=(
                body("contactName", key="name", required=True),
                body("contactPhone", key="phoneNumber", required=True),
                body("email", collection="contactAdditional"),
                body("tags", collection="contactAdditional"),
                body("customFields", collection="contactAdditional", json=True),
                body("metadata", collection="contactAdditional", json=True),
            ),
        ),
        (Resource.CONTACT, Operation.UPDATE): OperationSpec(
            "PATCH", "/contacts/v1/{contactId}",
            fields=(contact_id,),
            collections=(
                CollectionRule(
                    "contactUpdateFields", Target.BODY,
                    renames=CONTACT_UPDATE_RENAMES, json_fields=("customFields",),
                ),
            ),
        ),
        (Resource.CONTACT, Operation.DELETE): OperationSpec(
            "DELETE", "/contacts/v1/{contactId}", fields=(contact_id,),
        ),
        (Resource.CONTACT, Operation.SEARCH): OperationSpec(
            "POST", "/contacts/v1/search",
            fields=(
                body("searchQuery", key="query", required=True),
                body("filters", collection="searchOptions", json=True),
                body("limit", collection="searchOptions"),
                body("cursor", collection="searchOptions"),
            ),
        ),
        (Resource.CONTACT, Operation.BULK): OperationSpec(
            "POST", "/contacts/v1/bulk",
            fields=(
                body("bulkOperation", key="operation", required=True),
                body("bulkContacts", key="contacts", json=True, required=True),
                body("bulkData", key="data", json=True, default="{}"),
            ),
        ),
        (Resource.CONTACT, Operation.MERGE): OperationSpec(
            "POST", "/contacts/v1/{contactId}/merge",
            fields=(contact_id, body("mergeWithId", key="mergeWith", required=True)),
        ),
        (Resource.CONTACT, Operation.GET_TAGS): OperationSpec("GET", "/contacts/v1/tags"),
        (Resource.CONTACT, Operation.GET_FIELDS): OperationSpec("GET", "/contacts/v1/fields"),

        # --- Funnel ---
        (Resource.FUNNEL, Operation.LIST_STAGES): OperationSpec(
            "GET", "/funnel/v1/stages",
            fields=(
                query("limit", collection="stageListOptions"),
                query("offset", collection="stageListOptions"),
            ),
        ),
        (Resource.FUNNEL, Operation.GET_STAGE): OperationSpec(
            "GET", "/funnel/v1/stages/{stageId}", fields=(stage_id,),
        ),
        (Resource.FUNNEL, Operation.CREATE_STAGE): OperationSpec(
            "POST", "/funnel/v1/stages",
            fields=(
                body("stageName", key="name", required=True),
                body("position", collection="stageOptions"),
                body("color", collection="stageOptions"),
                body("description", collection="stageOptions"),
            ),
        ),
        (Resource.FUNNEL, Operation.UPDATE_STAGE): OperationSpec(
            "PATCH", "/funnel/v1/stages/{stageId}",
            fields=(stage_id,),
            collections=(CollectionRule("stageUpdateFields", Target.BODY),),
        ),
        (Resource.FUNNEL, Operation.DELETE_STAGE): OperationSpec(
            "DELETE", "/funnel/v1/stages/{stageId}", fields=(stage_id,),
        ),
        (Resource.FUNNEL, Operation.REORDER_STAGES): OperationSpec(
            "PATCH", "/funnel/v1/stages/reorder",
            fields=(body("stagesOrder", key="stages", json=True, required=True),),
        ),
        (Resource.FUNNEL, Operation.MOVE_CONTACT): OperationSpec(
            "POST", "/funnel/v1/contacts/{contactIdFunnel}/move",
            fields=(path_param("contactIdFunnel"), body("targetStageId", key="stage_id", required=True)),
        ),
    }


OPERATIONS: Dict[Tuple[Resource, Operation], OperationSpec] = _build_operations()


def get_operation_spec(resource: Resource, operation: Operation) -> OperationSpec:
    spec = OPERATIONS.get((resource, operation))
    if spec is None:
        raise UnknownOperationError(f"Unknown operation '{operation.value}' for resource '{resource.value}'")
    return spec


def operations_for(resource: Resource) -> Tuple[Operation, ...]:
    return tuple(op for res, op in OPERATIONS.keys() if res == resource)
