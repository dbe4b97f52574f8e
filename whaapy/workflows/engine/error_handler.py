"""
Error handling for node execution

Implements:
- Error classification for logs and fallback output
- Error policy enforcement (stop/continue)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

import httpx

from whaapy.workflows.engine.errors import (
    ContactNotFoundError,
    CredentialError,
    NodeValidationError,
    UnknownOperationError,
    UnsupportedOperationError,
)

logger = logging.getLogger(__name__)


class ErrorCategory(str, Enum):
    """Classification of errors for handling decisions."""
    CREDENTIAL_INVALID = "credential_invalid"
    RATE_LIMITED = "rate_limited"
    NETWORK_ERROR = "network_error"
    TIMEOUT = "timeout"
    VALIDATION_ERROR = "validation_error"
    RESOURCE_NOT_FOUND = "resource_not_found"
    UNSUPPORTED_OPERATION = "unsupported_operation"
    EXTERNAL_SERVICE_ERROR = "external_service_error"
    UNKNOWN = "unknown"


class ErrorPolicy(str, Enum):
    STOP = "stop"
    CONTINUE = "continue"


@dataclass
class ErrorContext:
    """Structured error information for logging and decisions."""
    category: ErrorCategory
    message: str
    status_code: Optional[int] = None
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "message": self.message,
            "status_code": self.status_code,
            "suggestion": self.suggestion,
        }


class ErrorClassifier:
    """Classifies errors raised while running a node item."""

    SUGGESTIONS = {
        ErrorCategory.CREDENTIAL_INVALID: "Check the API key in the Whaapy credential.",
        ErrorCategory.RATE_LIMITED: "Wait a moment and try again, or reduce request frequency.",
        ErrorCategory.NETWORK_ERROR: "Check the base URL and your network connection.",
        ErrorCategory.TIMEOUT: "The Whaapy API took too long to answer. Try again later.",
        ErrorCategory.VALIDATION_ERROR: "Check the node parameters match the expected format.",
        ErrorCategory.RESOURCE_NOT_FOUND: "Verify the ID or phone number is correct.",
        ErrorCategory.UNSUPPORTED_OPERATION: "Use the HTTP Request node or upload the media by URL.",
        ErrorCategory.EXTERNAL_SERVICE_ERROR: "The Whaapy API is having issues. Try again later.",
        ErrorCategory.UNKNOWN: "An unexpected error occurred. Check the logs for details.",
    }

    @classmethod
    def classify(cls, error: Exception) -> ErrorContext:
        """Classify an error and return structured context."""
        category = ErrorCategory.UNKNOWN
        status_code = None

        if isinstance(error, (NodeValidationError, UnknownOperationError)):
            category = ErrorCategory.VALIDATION_ERROR
        elif isinstance(error, ContactNotFoundError):
            category = ErrorCategory.RESOURCE_NOT_FOUND
        elif isinstance(error, UnsupportedOperationError):
            category = ErrorCategory.UNSUPPORTED_OPERATION
        elif isinstance(error, CredentialError):
            category = ErrorCategory.CREDENTIAL_INVALID
        elif isinstance(error, httpx.TimeoutException):
            category = ErrorCategory.TIMEOUT
        elif isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code
            category = cls._category_for_status(status_code)
        elif isinstance(error, httpx.TransportError):
            category = ErrorCategory.NETWORK_ERROR

        return ErrorContext(
            category=category,
            message=str(error),
            status_code=status_code,
            suggestion=cls.SUGGESTIONS.get(category),
        )

    @staticmethod
    def _category_for_status(status_code: int) -> ErrorCategory:
        if status_code in (401, 403):
            return ErrorCategory.CREDENTIAL_INVALID
        if status_code == 404:
            return ErrorCategory.RESOURCE_NOT_FOUND
        if status_code == 429:
            return ErrorCategory.RATE_LIMITED
        if status_code in (400, 422):
            return ErrorCategory.VALIDATION_ERROR
        if status_code >= 500:
            return ErrorCategory.EXTERNAL_SERVICE_ERROR
        return ErrorCategory.UNKNOWN


class ErrorPolicyHandler:
    """Decides what happens to a batch when one item fails."""

    @staticmethod
    def resolve_policy(node_settings: Optional[Dict[str, Any]]) -> ErrorPolicy:
        """
        Read the node's error policy from its settings.

        Accepts ``{"on_error": "continue"}`` or ``{"continue_on_fail": True}``.
        """
        node_settings = node_settings or {}
        if node_settings.get("continue_on_fail"):
            return ErrorPolicy.CONTINUE
        try:
            return ErrorPolicy(node_settings.get("on_error", ErrorPolicy.STOP.value))
        except ValueError:
            logger.warning(f"Unknown error policy {node_settings.get('on_error')!r}, using 'stop'")
            return ErrorPolicy.STOP

    @staticmethod
    def should_continue(policy: ErrorPolicy) -> bool:
        return policy == ErrorPolicy.CONTINUE

    @staticmethod
    def get_fallback_output(error: Exception) -> Dict[str, Any]:
        """Result record emitted in place of a failed item."""
        return {"error": str(error)}
