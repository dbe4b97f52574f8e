from typing import Optional


class NodeOperationError(Exception):
    """Base class for failures of a single node item."""

    def __init__(self, message: str, item_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.item_index = item_index


class NodeValidationError(NodeOperationError):
    """Raised when required structured input is missing or malformed."""
    pass


class TemplateLanguageError(NodeValidationError):
    """Raised when a template message has no language code."""
    pass


class PayloadJSONError(NodeValidationError):
    """Raised when a JSON-typed field does not contain valid JSON."""

    def __init__(self, field: str, detail: str, item_index: Optional[int] = None):
        super().__init__(f"Invalid JSON in field '{field}': {detail}", item_index)
        self.field = field


class ContactNotFoundError(NodeOperationError):
    """Raised when a phone lookup reports no matching contact."""

    def __init__(self, phone: str, item_index: Optional[int] = None):
        super().__init__(f"No contact found with phone number: {phone}", item_index)
        self.phone = phone


class UnsupportedOperationError(NodeOperationError):
    """Raised for operations this node cannot perform."""
    pass


class UnknownOperationError(NodeOperationError):
    """Raised when a resource/operation pair is not in the operation table."""
    pass


class CredentialError(Exception):
    """Raised when the Whaapy credential is missing or incomplete."""
    pass
