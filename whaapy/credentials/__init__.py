from whaapy.credentials.models import CREDENTIAL_TYPE, WhaapyCredential, credential_fields
from whaapy.credentials.service import resolve_credential, verify_credential

__all__ = [
    "CREDENTIAL_TYPE",
    "WhaapyCredential",
    "credential_fields",
    "resolve_credential",
    "verify_credential",
]
