"""Helpers that make request/response bodies safe and short enough to log."""
import json
import re
from typing import Any

# Sensitive fields that should be masked in logs
SENSITIVE_FIELDS = {
    'api_key', 'token', 'hf_token', 'secret', 'authorization',
    'access_token', 'password'
}

DATA_URL_PATTERN = re.compile(r"(data:[\w/+.-]+;base64,)[A-Za-z0-9+/=]{32,}")


def shorten_data_urls(text: str) -> str:
    """Replace the base64 body of any data URL with a size marker."""
    return DATA_URL_PATTERN.sub(
        lambda m: f"{m.group(1)}<{len(m.group(0)) - len(m.group(1))} chars>",
        text,
    )


def mask_sensitive_data(data: Any, mask_value: str = "***MASKED***") -> Any:
    """
    Recursively mask sensitive fields in data structures.

    Args:
        data: Data to mask (dict, list, or string)
        mask_value: Value to replace sensitive data with

    Returns:
        Data with sensitive fields masked and data URLs shortened
    """
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            if key.lower() in SENSITIVE_FIELDS:
                masked[key] = mask_value
            else:
                masked[key] = mask_sensitive_data(value, mask_value)
        return masked
    elif isinstance(data, list):
        return [mask_sensitive_data(item, mask_value) for item in data]
    elif isinstance(data, str):
        # Try to parse as JSON and mask if successful
        try:
            parsed = json.loads(data)
            if isinstance(parsed, (dict, list)):
                return json.dumps(mask_sensitive_data(parsed, mask_value))
        except (json.JSONDecodeError, ValueError):
            pass
        return shorten_data_urls(data)
    else:
        return data
