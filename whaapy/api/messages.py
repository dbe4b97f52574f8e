"""
Body builder for ``message.send``.

The messages endpoint takes a flat body whose shape depends on the message
type; optional delivery settings (AI pause, reply context, metadata) come from
the ``additionalFields`` collection.
"""

from typing import Any, Dict, Mapping

from whaapy.api.fields import is_empty, parse_collection, parse_json_field, set_path, split_csv
from whaapy.api.interactive import build_interactive_payload
from whaapy.config import settings
from whaapy.workflows.engine.errors import NodeValidationError, TemplateLanguageError

MESSAGE_TYPES = (
    "text",
    "image",
    "video",
    "audio",
    "document",
    "sticker",
    "template",
    "interactive",
    "location",
    "contacts",
    "reaction",
)
MEDIA_MESSAGE_TYPES = ("image", "video", "audio", "document", "sticker")
CAPTIONED_MEDIA_TYPES = ("image", "video", "document")

CUSTOM_LANGUAGE = "__custom__"


def collection_value(fields: Mapping[str, Any], collection: str, name: str, default: Any = None) -> Any:
    """Read ``name`` from a parameter collection, falling back to a top-level field."""
    values = parse_collection(collection, fields.get(collection))
    if name in values:
        return values[name]
    return fields.get(name, default)


def _required(fields: Mapping[str, Any], name: str) -> Any:
    value = fields.get(name)
    if is_empty(value):
        raise NodeValidationError(f"Parameter '{name}' is required")
    return value


def resolve_template_language(fields: Mapping[str, Any]) -> str:
    selected = fields.get("templateLanguage")
    if selected == CUSTOM_LANGUAGE:
        language = str(fields.get("templateLanguageCustom") or "").strip()
    else:
        language = selected
    if is_empty(language):
        raise TemplateLanguageError(
            "Template language is required. Select a language or enter a custom language code."
        )
    return language


def _template_body(fields: Mapping[str, Any], body: Dict[str, Any]) -> None:
    body["templateName"] = _required(fields, "templateName")
    body["language"] = resolve_template_language(fields)

    parameters = collection_value(fields, "templateOptions", "parameters")
    if not is_empty(parameters):
        body["template_parameters"] = split_csv(parameters)

    media_type = collection_value(fields, "templateOptions", "headerMediaType")
    media_url = collection_value(fields, "templateOptions", "headerMediaUrl")
    if not is_empty(media_type) and not is_empty(media_url):
        body["header_media"] = {"type": media_type, "url": media_url}


def _interactive_body(fields: Mapping[str, Any]) -> Dict[str, Any]:
    interactive_type = fields.get("interactiveType") or ""
    return build_interactive_payload(
        interactive_type,
        fields.get("interactiveBodyText") or "",
        header_type=fields.get("interactiveHeaderType") or "none",
        header_text=fields.get("interactiveHeaderText") or "",
        header_media_url=fields.get("interactiveHeaderMediaUrl") or "",
        footer_text=fields.get("interactiveFooterText") or "",
        buttons=fields.get("interactiveButtons") if interactive_type == "button" else None,
        list_button_text=(
            fields.get("interactiveListButtonText", settings.DEFAULT_LIST_BUTTON_TEXT)
            if interactive_type == "list" else ""
        ),
        sections=fields.get("interactiveSections") if interactive_type == "list" else None,
        cta_button_text=(fields.get("ctaButtonText") or "") if interactive_type == "cta_url" else "",
        cta_button_url=(fields.get("ctaButtonUrl") or "") if interactive_type == "cta_url" else "",
    )


def _apply_additional_fields(fields: Mapping[str, Any], body: Dict[str, Any]) -> None:
    def option(name: str) -> Any:
        return collection_value(fields, "additionalFields", name)

    if option("pauseAi"):
        set_path(body, "ai.pause", option("pauseAi"))
    if option("pauseDuration"):
        set_path(body, "ai.pauseDuration", option("pauseDuration"))
    if option("disableAi"):
        set_path(body, "ai.disable", option("disableAi"))
    if not is_empty(option("replyTo")):
        body["context"] = {"message_id": option("replyTo")}
    if option("createConversation") is not None:
        body["createConversation"] = option("createConversation")
    if not is_empty(option("metadata")):
        body["metadata"] = parse_json_field("metadata", option("metadata"))


def build_message_body(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Build the JSON body for sending a message.

    Args:
        fields: Resolved node parameters; collections may be nested dicts or flattened

    Returns:
        Request body starting with ``to`` and ``type``

    Raises:
        NodeValidationError: On a missing recipient, unknown type or missing template language
        PayloadJSONError: When the contacts or metadata JSON is malformed
    """
    to = _required(fields, "to")
    message_type = _required(fields, "messageType")
    if message_type not in MESSAGE_TYPES:
        raise NodeValidationError(f"Unsupported message type '{message_type}'")

    body: Dict[str, Any] = {"to": to, "type": message_type}

    if message_type == "text":
        body["content"] = fields.get("textContent")
    elif message_type in MEDIA_MESSAGE_TYPES:
        body[message_type] = {"link": fields.get("mediaUrl")}
        caption = fields.get("caption")
        if message_type in CAPTIONED_MEDIA_TYPES and not is_empty(caption):
            body[message_type]["caption"] = caption
    elif message_type == "template":
        _template_body(fields, body)
    elif message_type == "interactive":
        body["interactive"] = _interactive_body(fields)
    elif message_type == "location":
        location = {
            "latitude": fields.get("latitude"),
            "longitude": fields.get("longitude"),
        }
        for name, key in (("locationName", "name"), ("locationAddress", "address")):
            if not is_empty(fields.get(name)):
                location[key] = fields[name]
        body["location"] = location
    elif message_type == "contacts":
        body["contacts"] = parse_json_field("contactsData", fields.get("contactsData"))
    elif message_type == "reaction":
        body["reaction"] = {
            "message_id": fields.get("reactionMessageId"),
            "emoji": fields.get("reactionEmoji"),
        }

    _apply_additional_fields(fields, body)
    return body
