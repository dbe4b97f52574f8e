"""
Tests for error classification and error policies
"""

import httpx
import pytest

from whaapy.workflows.engine.error_handler import (
    ErrorCategory,
    ErrorClassifier,
    ErrorPolicy,
    ErrorPolicyHandler,
)
from whaapy.workflows.engine.errors import (
    ContactNotFoundError,
    CredentialError,
    PayloadJSONError,
    UnsupportedOperationError,
)


def status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.whaapy.test/contacts/v1")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


@pytest.mark.parametrize(
    "status_code, category",
    [
        (401, ErrorCategory.CREDENTIAL_INVALID),
        (403, ErrorCategory.CREDENTIAL_INVALID),
        (404, ErrorCategory.RESOURCE_NOT_FOUND),
        (422, ErrorCategory.VALIDATION_ERROR),
        (429, ErrorCategory.RATE_LIMITED),
        (503, ErrorCategory.EXTERNAL_SERVICE_ERROR),
        (418, ErrorCategory.UNKNOWN),
    ],
)
def test_classify_http_status(status_code, category):
    context = ErrorClassifier.classify(status_error(status_code))
    assert context.category == category
    assert context.status_code == status_code


def test_classify_node_errors():
    assert ErrorClassifier.classify(PayloadJSONError("bulkData", "Expecting value")).category == ErrorCategory.VALIDATION_ERROR
    assert ErrorClassifier.classify(ContactNotFoundError("+1")).category == ErrorCategory.RESOURCE_NOT_FOUND
    assert ErrorClassifier.classify(UnsupportedOperationError("no")).category == ErrorCategory.UNSUPPORTED_OPERATION
    assert ErrorClassifier.classify(CredentialError("missing")).category == ErrorCategory.CREDENTIAL_INVALID


def test_classify_transport_errors():
    assert ErrorClassifier.classify(httpx.ReadTimeout("slow")).category == ErrorCategory.TIMEOUT
    assert ErrorClassifier.classify(httpx.ConnectError("refused")).category == ErrorCategory.NETWORK_ERROR
    assert ErrorClassifier.classify(RuntimeError("?")).category == ErrorCategory.UNKNOWN


def test_error_context_to_dict():
    data = ErrorClassifier.classify(ContactNotFoundError("+1")).to_dict()
    assert data["category"] == "resource_not_found"
    assert data["message"] == "No contact found with phone number: +1"
    assert data["suggestion"]


def test_resolve_policy():
    assert ErrorPolicyHandler.resolve_policy(None) == ErrorPolicy.STOP
    assert ErrorPolicyHandler.resolve_policy({"continue_on_fail": True}) == ErrorPolicy.CONTINUE
    assert ErrorPolicyHandler.resolve_policy({"on_error": "continue"}) == ErrorPolicy.CONTINUE
    assert ErrorPolicyHandler.resolve_policy({"on_error": "retry"}) == ErrorPolicy.STOP


def test_fallback_output():
    assert ErrorPolicyHandler.get_fallback_output(ValueError("bad")) == {"error": "bad"}
    assert ErrorPolicyHandler.should_continue(ErrorPolicy.CONTINUE)
    assert not ErrorPolicyHandler.should_continue(ErrorPolicy.STOP)
