"""Thin wrapper over ``requests`` shared by every upstream HTTP call."""
import requests

from config import Config
from common.error_messages import ErrorCode, ServiceError


def send_request(provider: str, method: str, url: str, **kwargs) -> requests.Response:
    """
    Perform one HTTP call to an upstream provider.

    Args:
        provider: Name used in error details (e.g. "HF", "OpenAI")
        method: HTTP method
        url: Target URL
        **kwargs: Passed through to ``requests.request``

    Returns:
        The successful response

    Raises:
        ServiceError: PROVIDER_TIMEOUT on timeout, PROVIDER_ERROR on transport
            failure or any non-2xx status (status and body text in details)
    """
    kwargs.setdefault("timeout", Config.PROVIDER_TIMEOUT_SECONDS)
    try:
        response = requests.request(method, url, **kwargs)
    except requests.Timeout as e:
        raise ServiceError(ErrorCode.PROVIDER_TIMEOUT, details=f"{provider} request timed out: {e}")
    except requests.RequestException as e:
        raise ServiceError(ErrorCode.PROVIDER_ERROR, details=f"{provider} request failed: {e}")

    if not response.ok:
        raise ServiceError(
            ErrorCode.PROVIDER_ERROR,
            details=f"{provider} API error: {response.status_code} - {response.text[:500]}",
        )
    return response
