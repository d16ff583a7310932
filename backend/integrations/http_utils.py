"""HTTP helpers shared by the platform clients.

Every platform call goes through :func:`request_json`, which maps httpx
failures onto the typed exceptions in :mod:`integrations.exceptions`.
"""

import json
import logging
from typing import Any

import httpx

from integrations.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderDataError,
)
from integrations.provider_protocol import ProviderCredential

logger = logging.getLogger(__name__)


def auth_headers(credential: ProviderCredential) -> dict[str, str]:
    """Build the bearer Authorization header for a user's credential."""
    return {
        "Authorization": f"Bearer {credential.access_token}",
        "Accept": "application/json",
    }


def request_json(
    client: httpx.Client,
    method: str,
    url: str,
    provider_name: str,
    **kwargs,
) -> Any:
    """Send a request and return the decoded JSON body.

    Args:
        client: An open httpx client (base URL, timeout and transport set).
        method: HTTP method.
        url: Path relative to the client's base URL.
        provider_name: Name attached to raised errors.
        **kwargs: Passed through to ``client.request``.

    Returns:
        The parsed JSON body.

    Raises:
        ProviderAuthError: On HTTP 401/403.
        ProviderAPIError: On any other HTTP error status.
        ProviderConnectionError: On timeouts and transport failures.
        ProviderDataError: If the body is not valid JSON.
    """
    try:
        response = client.request(method, url, **kwargs)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        status = exc.response.status_code
        if status in (401, 403):
            raise ProviderAuthError(
                f"{provider_name} authentication failed (HTTP {status})",
                provider_name=provider_name,
            ) from exc
        raise ProviderAPIError(
            f"{provider_name} API error (HTTP {status})",
            provider_name=provider_name,
            status_code=status,
        ) from exc
    except httpx.TimeoutException as exc:
        raise ProviderConnectionError(
            f"{provider_name} request timed out: {exc}",
            provider_name=provider_name,
        ) from exc
    except httpx.TransportError as exc:
        raise ProviderConnectionError(
            f"{provider_name} connection failed: {exc}",
            provider_name=provider_name,
        ) from exc

    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        logger.debug("%s: undecodable body: %.200s", provider_name, response.text)
        raise ProviderDataError(
            f"{provider_name} returned a response that is not valid JSON",
            provider_name=provider_name,
        ) from exc
