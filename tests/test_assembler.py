"""
Tests for the operation table and the outbound request assembler
"""

import pytest

from whaapy.api.assembler import OutboundRequest, build_preflight, build_request
from whaapy.api.operations import OPERATIONS, Operation, OperationRequest, Resource, operations_for
from whaapy.workflows.engine.errors import (
    ContactNotFoundError,
    NodeValidationError,
    PayloadJSONError,
    UnknownOperationError,
    UnsupportedOperationError,
)


def build(resource, operation, **fields):
    return build_request(OperationRequest.create(resource, operation, fields))


def test_every_resource_has_operations():
    assert len(OPERATIONS) == 36
    assert operations_for(Resource.MESSAGE) == (Operation.SEND, Operation.RETRY)
    assert Operation.MOVE_CONTACT in operations_for(Resource.FUNNEL)
    for resource in Resource:
        assert operations_for(resource)


def test_unknown_operation():
    with pytest.raises(UnknownOperationError, match="Unknown operation 'fly' for resource 'message'"):
        OperationRequest.create("message", "fly")
    # Valid operation name, wrong resource
    with pytest.raises(UnknownOperationError):
        OperationRequest.create("agent", "send")
    with pytest.raises(UnknownOperationError):
        OperationRequest.create(None, None)


def test_message_send():
    outbound = build("message", "send", to="+1", messageType="text", textContent="Hola")
    assert outbound.method == "POST"
    assert outbound.path == "/messages/v1"
    assert outbound.query == {}
    assert outbound.body == {"to": "+1", "type": "text", "content": "Hola"}


def test_message_retry_quotes_path():
    outbound = build("message", "retry", messageId="wamid/1 2")
    assert outbound.path == "/messages/v1/wamid%2F1%202/retry"
    assert outbound.body is None


def test_path_parameter_required():
    with pytest.raises(NodeValidationError, match="Parameter 'conversationId' is required"):
        build("conversation", "get", conversationId="")


def test_get_by_phone_encodes_plus():
    outbound = build("conversation", "getByPhone", phoneNumber="+5215512345678")
    assert outbound.path == "/conversations/v1/by-phone/%2B5215512345678"


def test_conversation_list_filters():
    outbound = build(
        "conversation", "list",
        conversationFilters={"search": "", "status": "all", "limit": 20, "offset": 0},
    )
    assert outbound.method == "GET"
    assert outbound.query == {"limit": 20, "offset": 0}
    assert outbound.body is None

    outbound = build("conversation", "list", conversationFilters={"status": "open"})
    assert outbound.query == {"status": "open"}


def test_conversation_get_messages():
    outbound = build("conversation", "getMessages", conversationId="c1", messagesOptions={"limit": 50, "cursor": "abc"})
    assert outbound.path == "/conversations/v1/c1/messages"
    assert outbound.query == {"limit": 50, "cursor": "abc"}


@pytest.mark.parametrize(
    "operation, method, suffix",
    [
        ("close", "POST", "/close"),
        ("archive", "POST", "/archive"),
        ("markRead", "PATCH", "/mark-read"),
        ("aiSuggest", "POST", "/ai-suggest"),
    ],
)
def test_conversation_actions(operation, method, suffix):
    outbound = build("conversation", operation, conversationId="c1")
    assert outbound.method == method
    assert outbound.path == f"/conversations/v1/c1{suffix}"


def test_conversation_ai_controls():
    outbound = build("conversation", "setAi", conversationId="c1", aiEnabled=False)
    assert (outbound.method, outbound.path, outbound.body) == ("PATCH", "/conversations/v1/c1/ai", {"aiEnabled": False})

    outbound = build("conversation", "pauseAi", conversationId="c1", pauseDurationConv=15)
    assert outbound.path == "/conversations/v1/c1/ai/pause"
    assert outbound.body == {"duration": 15}


def test_agent_operations():
    outbound = build("agent", "toggle", agentEnabled=True)
    assert (outbound.method, outbound.path, outbound.body) == ("POST", "/agent/v1/toggle", {"enabled": True})

    outbound = build("agent", "pause", agentPauseDuration=60)
    assert outbound.body == {"duration": 60}


def test_template_operations():
    outbound = build("template", "list", templateFilters={"status": "APPROVED", "limit": 20, "offset": 0})
    assert outbound.query == {"status": "APPROVED", "limit": 20, "offset": 0}

    assert build("template", "get", templateId="t1").path == "/templates/v1/t1"
    assert build("template", "getVariables").path == "/templates/v1/variables"

    outbound = build("template", "sync")
    assert (outbound.method, outbound.path, outbound.body) == ("POST", "/templates/v1/sync", None)


def test_contact_list_renames_query_keys():
    outbound = build(
        "contact", "list",
        contactFilters={"search": "ana", "sortBy": "name", "sortOrder": "asc", "funnelStageId": "s1", "cursor": ""},
    )
    assert outbound.query == {"search": "ana", "sort_by": "name", "sort_order": "asc", "funnel_stage_id": "s1"}


def test_contact_list_filters_from_json_text():
    outbound = build("contact", "list", contactFilters='{"search": "ana", "sortBy": "name"}')
    assert outbound.query == {"search": "ana", "sort_by": "name"}

    with pytest.raises(NodeValidationError, match="'contactFilters' must be an object"):
        build("contact", "list", contactFilters="[1]")
    with pytest.raises(PayloadJSONError):
        build("contact", "list", contactFilters="x")


def test_contact_create():
    outbound = build(
        "contact", "create",
        contactName="Ana",
        contactPhone="+1",
        contactAdditional={"email": "ana@example.com", "tags": "", "customFields": '{"vip": true}'},
    )
    assert outbound.body == {
        "name": "Ana",
        "phoneNumber": "+1",
        "email": "ana@example.com",
        "customFields": {"vip": True},
    }


def test_contact_create_invalid_json():
    with pytest.raises(PayloadJSONError, match="Invalid JSON in field 'metadata'"):
        build("contact", "create", contactName="Ana", contactPhone="+1", contactAdditional={"metadata": "{bad"})


def test_contact_update_renames_body_keys():
    outbound = build(
        "contact", "update",
        contactId="c9",
        contactUpdateFields={"name": "Ana", "phoneNumber": "+1", "funnelStageId": "s2", "customFields": '{"a": 1}', "email": ""},
    )
    assert (outbound.method, outbound.path) == ("PATCH", "/contacts/v1/c9")
    assert outbound.body == {
        "name": "Ana",
        "phone_number": "+1",
        "funnel_stage_id": "s2",
        "custom_fields": {"a": 1},
    }


def test_contact_update_without_fields_sends_empty_body():
    outbound = build("contact", "update", contactId="c9")
    assert outbound.body == {}


def test_contact_delete_and_lists():
    assert build("contact", "delete", contactId="c1").method == "DELETE"
    assert build("contact", "getTags").path == "/contacts/v1/tags"
    assert build("contact", "getFields").path == "/contacts/v1/fields"


def test_contact_search():
    outbound = build("contact", "search", searchQuery="ana", searchOptions={"filters": '{"tag": "vip"}', "limit": 5})
    assert outbound.body == {"query": "ana", "filters": {"tag": "vip"}, "limit": 5}


def test_contact_bulk_defaults_data():
    outbound = build("contact", "bulk", bulkOperation="tag", bulkContacts='["c1", "c2"]', bulkData="")
    assert outbound.body == {"operation": "tag", "contacts": ["c1", "c2"], "data": {}}


def test_contact_bulk_requires_contacts():
    with pytest.raises(NodeValidationError, match="bulkContacts"):
        build("contact", "bulk", bulkOperation="tag")


def test_contact_merge():
    outbound = build("contact", "merge", contactId="c1", mergeWithId="c2")
    assert (outbound.path, outbound.body) == ("/contacts/v1/c1/merge", {"mergeWith": "c2"})


def test_contact_get_by_id_has_no_preflight():
    request = OperationRequest.create("contact", "get", {"contactLookupBy": "id", "contactId": "c1"})
    assert build_preflight(request) is None
    assert build_request(request).path == "/contacts/v1/c1"


def test_contact_get_by_phone_preflight():
    request = OperationRequest.create("contact", "get", {"contactLookupBy": "phone", "contactPhone_lookup": "+1"})
    preflight = build_preflight(request)

    assert (preflight.method, preflight.path, preflight.query) == ("GET", "/contacts/check-phone", {"phone": "+1"})
    assert preflight.resolve({"exists": True, "contact": {"id": "c7"}}) == {"contactId": "c7"}

    with pytest.raises(ContactNotFoundError, match="No contact found with phone number: \\+1"):
        preflight.resolve({"exists": False})
    with pytest.raises(ContactNotFoundError):
        preflight.resolve({"exists": True, "contact": None})
    with pytest.raises(ContactNotFoundError):
        preflight.resolve({"exists": True, "contact": {"name": "Ana"}})
    with pytest.raises(ContactNotFoundError):
        preflight.resolve([{"id": "c7"}])


def test_contact_get_by_phone_requires_phone():
    request = OperationRequest.create("contact", "get", {"contactLookupBy": "phone"})
    with pytest.raises(NodeValidationError):
        build_preflight(request)


def test_funnel_stages():
    outbound = build("funnel", "listStages", stageListOptions={"limit": 10, "offset": 0})
    assert outbound.query == {"limit": 10, "offset": 0}

    outbound = build("funnel", "createStage", stageName="Lead", stageOptions={"position": 0, "color": "", "description": "New"})
    assert outbound.body == {"name": "Lead", "position": 0, "description": "New"}

    outbound = build("funnel", "updateStage", stageId="s1", stageUpdateFields={"name": "Won", "color": "#0f0"})
    assert (outbound.method, outbound.path, outbound.body) == ("PATCH", "/funnel/v1/stages/s1", {"name": "Won", "color": "#0f0"})

    assert build("funnel", "getStage", stageId="s1").method == "GET"
    assert build("funnel", "deleteStage", stageId="s1").method == "DELETE"


def test_funnel_reorder_and_move():
    outbound = build("funnel", "reorderStages", stagesOrder='[{"id": "s1", "position": 1}]')
    assert (outbound.method, outbound.path) == ("PATCH", "/funnel/v1/stages/reorder")
    assert outbound.body == {"stages": [{"id": "s1", "position": 1}]}

    outbound = build("funnel", "moveContact", contactIdFunnel="c1", targetStageId="s2")
    assert (outbound.path, outbound.body) == ("/funnel/v1/contacts/c1/move", {"stage_id": "s2"})


def test_media_upload_unsupported():
    request = OperationRequest.create("media", "upload", {"mediaType": "image"})
    with pytest.raises(UnsupportedOperationError, match="binary data"):
        build_request(request)


def test_outbound_request_helpers():
    outbound = OutboundRequest("GET", "/contacts/v1", {"limit": 5})
    assert outbound.url("https://api.whaapy.com/") == "https://api.whaapy.com/contacts/v1"
    assert outbound.to_dict() == {"method": "GET", "path": "/contacts/v1", "query": {"limit": 5}}
