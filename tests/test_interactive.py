"""
Tests for interactive message payloads
"""

import pytest

from whaapy.api.interactive import build_interactive_payload, normalize_sections, slugify
from whaapy.workflows.engine.errors import NodeValidationError


def test_slugify():
    assert slugify("Ver Menú") == "ver_men"
    assert slugify("  Hello World  ") == "hello_world"
    assert slugify("-opt--1-") == "opt_1"
    assert slugify("A" * 300) == "a" * 256


def test_slugify_is_deterministic():
    assert slugify("Pizza Margarita!") == slugify("Pizza Margarita!")


def test_button_payload():
    payload = build_interactive_payload(
        "button",
        "Choose one",
        header_type="text",
        header_text="Menu",
        footer_text="  thanks  ",
        buttons={"buttonValues": [{"title": "Ver Menú"}, {"title": "Help", "id": "help_1"}]},
    )

    assert payload == {
        "type": "button",
        "body": {"text": "Choose one"},
        "header": {"type": "text", "text": "Menu"},
        "footer": {"text": "thanks"},
        "action": {
            "buttons": [
                {"type": "reply", "reply": {"id": "ver_men", "title": "Ver Menú"}},
                {"type": "reply", "reply": {"id": "help_1", "title": "Help"}},
            ]
        },
    }


def test_buttons_capped_and_titles_truncated():
    buttons = [{"title": f"Option number {i} with long text"} for i in range(5)]
    payload = build_interactive_payload("button", "Pick", buttons=buttons)

    reply_buttons = payload["action"]["buttons"]
    assert len(reply_buttons) == 3
    assert all(len(b["reply"]["title"]) == 20 for b in reply_buttons)
    # The ID comes from the full title, not the truncated one
    assert reply_buttons[0]["reply"]["id"] == "option_number_0_with_long_text"


def test_untitled_button_rejected():
    with pytest.raises(NodeValidationError, match="Button title is required"):
        build_interactive_payload("button", "Pick", buttons=[{"id": "x"}])


def test_list_payload():
    sections = {
        "sectionValues": [
            {
                "title": "Pizzas",
                "rows": {"rowValues": [
                    {"title": "Margarita", "description": "Tomate, mozzarella"},
                    {"title": "Pepperoni", "id": "pep", "description": ""},
                ]},
            },
            {"title": "", "rows": {"rowValues": [{"title": "Agua"}]}},
        ]
    }
    payload = build_interactive_payload("list", "Our menu", list_button_text="Ver", sections=sections)

    assert payload["action"] == {
        "button": "Ver",
        "sections": [
            {
                "title": "Pizzas",
                "rows": [
                    {"id": "margarita", "title": "Margarita", "description": "Tomate, mozzarella"},
                    {"id": "pep", "title": "Pepperoni"},
                ],
            },
            {"rows": [{"id": "agua", "title": "Agua"}]},
        ],
    }


def test_list_limits_and_default_button_text():
    sections = [
        {"title": f"S{s}", "rows": [{"title": "R" * 30, "description": "d" * 100} for _ in range(12)]}
        for s in range(11)
    ]
    payload = build_interactive_payload("list", "Menu", sections=sections)

    action = payload["action"]
    assert action["button"] == "Ver Opciones"
    assert len(action["sections"]) == 10
    rows = action["sections"][0]["rows"]
    assert len(rows) == 10
    assert len(rows[0]["title"]) == 24
    assert len(rows[0]["description"]) == 72


def test_cta_url_payload():
    payload = build_interactive_payload(
        "cta_url",
        "Visit us",
        header_type="image",
        header_media_url="https://example.com/a.jpg",
        cta_button_text="Open the website now please",
        cta_button_url="https://example.com",
    )

    assert payload["header"] == {"type": "image", "image": {"link": "https://example.com/a.jpg"}}
    assert payload["action"] == {
        "name": "cta_url",
        "parameters": {"display_text": "Open the website now", "url": "https://example.com"},
    }


def test_missing_variant_data_omits_action():
    assert "action" not in build_interactive_payload("button", "Pick")
    assert "action" not in build_interactive_payload("list", "Pick", sections={"sectionValues": []})
    assert "action" not in build_interactive_payload("cta_url", "Go", cta_button_text="Open")


def test_header_without_content_is_omitted():
    payload = build_interactive_payload("button", "Pick", header_type="video")
    assert "header" not in payload
    payload = build_interactive_payload("button", "Pick", header_type="none", header_text="ignored")
    assert "header" not in payload


def test_blank_footer_is_omitted():
    assert "footer" not in build_interactive_payload("button", "Pick", footer_text="   ")


def test_unknown_type_and_empty_body():
    with pytest.raises(NodeValidationError, match="Unknown interactive type"):
        build_interactive_payload("carousel", "Pick")
    with pytest.raises(NodeValidationError, match="Body text is required"):
        build_interactive_payload("button", "")


def test_normalize_sections_accepts_plain_lists():
    sections = normalize_sections([{"title": "A", "rows": [{"title": "x"}, "junk"]}])
    assert sections == [{"title": "A", "rows": [{"title": "x"}]}]
