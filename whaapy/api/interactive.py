"""
Interactive message payloads (reply buttons, list menus, CTA URL buttons).

Turns the structured form input of the Whaapy node into the nested
``interactive`` object the messages endpoint expects.
"""

import re
from typing import Any, Dict, List, Optional, Union

from whaapy.config import settings
from whaapy.workflows.engine.errors import NodeValidationError

INTERACTIVE_TYPES = ("button", "list", "cta_url")
HEADER_MEDIA_TYPES = ("image", "video", "document")

MAX_BUTTONS = 3
MAX_SECTIONS = 10
MAX_ROWS_PER_SECTION = 10

BUTTON_TITLE_MAX = 20
ROW_TITLE_MAX = 24
ROW_DESCRIPTION_MAX = 72
CTA_TEXT_MAX = 20
ID_MAX = 256

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w\-]+", re.ASCII)
_DOUBLE_DASH = re.compile(r"--+")
_LEADING_DASH = re.compile(r"^-+")
_TRAILING_DASH = re.compile(r"-+$")


def slugify(text: Any) -> str:
    """
    Derive a reply ID from a title.

    The same title always yields the same ID, so click IDs reported by the
    webhook can be matched against the titles used to send the message.
    """
    slug = str(text).lower().strip()
    slug = _WHITESPACE.sub("_", slug)
    slug = _NON_WORD.sub("", slug)
    slug = _DOUBLE_DASH.sub("_", slug)
    slug = _LEADING_DASH.sub("", slug)
    slug = _TRAILING_DASH.sub("", slug)
    return slug[:ID_MAX]


def _entries(collection: Any, key: str) -> List[Dict[str, Any]]:
    # Fixed collections arrive as {"buttonValues": [...]}, plain lists are accepted too
    if not collection:
        return []
    if isinstance(collection, dict):
        collection = collection.get(key) or []
    return [entry for entry in collection if isinstance(entry, dict)]


def normalize_buttons(collection: Any) -> List[Dict[str, Any]]:
    return _entries(collection, "buttonValues")


def normalize_sections(collection: Any) -> List[Dict[str, Any]]:
    return [
        {"title": section.get("title"), "rows": _entries(section.get("rows"), "rowValues")}
        for section in _entries(collection, "sectionValues")
    ]


def _title(entry: Dict[str, Any], what: str) -> str:
    title = entry.get("title")
    if title is None or str(title) == "":
        raise NodeValidationError(f"{what} title is required")
    return str(title)


def _build_header(header_type: str, header_text: str, header_media_url: str) -> Optional[Dict[str, Any]]:
    if not header_type or header_type == "none":
        return None
    if header_type == "text" and header_text:
        return {"type": "text", "text": header_text}
    if header_type in HEADER_MEDIA_TYPES and header_media_url:
        return {"type": header_type, header_type: {"link": header_media_url}}
    return None


def _build_button_action(buttons: List[Dict[str, Any]]) -> Dict[str, Any]:
    reply_buttons = []
    for button in buttons[:MAX_BUTTONS]:
        title = _title(button, "Button")
        reply_buttons.append({
            "type": "reply",
            "reply": {
                "id": button.get("id") or slugify(title),
                "title": title[:BUTTON_TITLE_MAX],
            },
        })
    return {"buttons": reply_buttons}


def _build_list_action(list_button_text: str, sections: List[Dict[str, Any]]) -> Dict[str, Any]:
    built_sections = []
    for section in sections[:MAX_SECTIONS]:
        rows = []
        for row in (section.get("rows") or [])[:MAX_ROWS_PER_SECTION]:
            title = _title(row, "Row")
            built_row = {
                "id": row.get("id") or slugify(title),
                "title": title[:ROW_TITLE_MAX],
            }
            if row.get("description"):
                built_row["description"] = str(row["description"])[:ROW_DESCRIPTION_MAX]
            rows.append(built_row)

        built_section: Dict[str, Any] = {}
        if section.get("title"):
            built_section["title"] = section["title"]
        built_section["rows"] = rows
        built_sections.append(built_section)

    return {
        "button": list_button_text or settings.DEFAULT_LIST_BUTTON_TEXT,
        "sections": built_sections,
    }


def build_interactive_payload(
    interactive_type: str,
    body_text: str,
    header_type: str = "none",
    header_text: str = "",
    header_media_url: str = "",
    footer_text: str = "",
    buttons: Optional[Union[List[Dict[str, Any]], Dict[str, Any]]] = None,
    list_button_text: str = "",
    sections: Optional[Union[List[Dict[str, Any]], Dict[str, Any]]] = None,
    cta_button_text: str = "",
    cta_button_url: str = "",
) -> Dict[str, Any]:
    """
    Build the ``interactive`` object of a message.

    Variant data that is missing for the chosen type (no buttons, no sections,
    no CTA text or URL) leaves ``action`` out instead of raising; the API
    reports the problem if it cares.

    Args:
        interactive_type: "button", "list" or "cta_url"
        body_text: Main message text
        header_type: "none", "text", "image", "video" or "document"
        buttons: Reply buttons as a list or a {"buttonValues": [...]} collection
        sections: List sections as a list or a {"sectionValues": [...]} collection

    Returns:
        The interactive payload

    Raises:
        NodeValidationError: On an unknown type, an empty body, or an untitled button/row
    """
    if interactive_type not in INTERACTIVE_TYPES:
        raise NodeValidationError(
            f"Unknown interactive type '{interactive_type}'. Expected one of: {', '.join(INTERACTIVE_TYPES)}"
        )
    if not body_text:
        raise NodeValidationError("Body text is required for interactive messages")

    interactive: Dict[str, Any] = {
        "type": interactive_type,
        "body": {"text": body_text},
    }

    header = _build_header(header_type, header_text, header_media_url)
    if header:
        interactive["header"] = header

    if footer_text and footer_text.strip():
        interactive["footer"] = {"text": footer_text.strip()}

    button_entries = normalize_buttons(buttons)
    section_entries = normalize_sections(sections)

    if interactive_type == "button" and button_entries:
        interactive["action"] = _build_button_action(button_entries)
    elif interactive_type == "list" and section_entries:
        interactive["action"] = _build_list_action(list_button_text, section_entries)
    elif interactive_type == "cta_url" and cta_button_text and cta_button_url:
        interactive["action"] = {
            "name": "cta_url",
            "parameters": {
                "display_text": cta_button_text[:CTA_TEXT_MAX],
                "url": cta_button_url,
            },
        }

    return interactive
