"""
Credential service functions for resolving and testing Whaapy credentials.
"""
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import ValidationError

from whaapy.config import settings
from whaapy.credentials.models import WhaapyCredential
from whaapy.workflows.engine.errors import CredentialError

logger = logging.getLogger(__name__)

CREDENTIAL_TEST_PATH = "/auth/me"


def resolve_credential(data: Optional[Dict[str, Any]]) -> WhaapyCredential:
    """
    Build a credential from the data injected by the host.

    Accepts the host's camelCase keys (apiKey, baseUrl) or snake_case ones,
    optionally wrapped in a ``{"data": {...}}`` record.

    Raises:
        CredentialError: If no API key is present
    """
    if not data:
        raise CredentialError("Whaapy credential is required")

    if isinstance(data.get("data"), dict):
        data = data["data"]

    try:
        return WhaapyCredential.model_validate(data)
    except ValidationError as e:
        raise CredentialError(f"Invalid Whaapy credential (missing apiKey): {e.error_count()} error(s)") from e


async def verify_credential(
    credential: WhaapyCredential,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """
    Check a credential against the API's identity endpoint.

    Returns:
        Dict with 'valid' (bool) and either the account data or an error message
    """
    url = f"{credential.base_url}{CREDENTIAL_TEST_PATH}"
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.HTTP_TIMEOUT) as own_client:
                response = await own_client.get(url, headers=credential.auth_headers)
        else:
            response = await client.get(url, headers=credential.auth_headers)
        response.raise_for_status()
    except httpx.HTTPStatusError as e:
        logger.warning(f"Credential test failed with status {e.response.status_code}")
        return {"valid": False, "error": f"HTTP {e.response.status_code}"}
    except httpx.HTTPError as e:
        logger.warning(f"Credential test could not reach {credential.base_url}: {e}")
        return {"valid": False, "error": str(e)}

    return {"valid": True, "account": response.json()}
