"""
Error codes, user-facing messages and status codes.

Every failure a service can raise is a ``ServiceError`` carrying one of the
``ErrorCode`` values below; the application turns it into the uniform
``{"error": ..., "details": ...}`` JSON envelope.
"""
from typing import Tuple, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for different types of failures."""

    # Validation Errors (400)
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_PARAMETER = "INVALID_PARAMETER"
    INVALID_IMAGE_DATA = "INVALID_IMAGE_DATA"

    # Model selection Errors
    CAPABILITY_UNAVAILABLE = "CAPABILITY_UNAVAILABLE"

    # Configuration Errors (500)
    MISSING_API_KEY = "MISSING_API_KEY"

    # Upstream provider Errors (500)
    PROVIDER_ERROR = "PROVIDER_ERROR"
    PROVIDER_TIMEOUT = "PROVIDER_TIMEOUT"
    MALFORMED_PROVIDER_RESPONSE = "MALFORMED_PROVIDER_RESPONSE"

    # Generation Errors (500)
    GENERATION_FAILED = "GENERATION_FAILED"
    CHAT_FAILED = "CHAT_FAILED"

    # Generic Errors
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


ERROR_MESSAGES = {
    ErrorCode.MISSING_FIELD: "Required information is missing.",
    ErrorCode.INVALID_PARAMETER: "One or more parameters are invalid.",
    ErrorCode.INVALID_IMAGE_DATA: "The image data provided is invalid or corrupted.",

    ErrorCode.CAPABILITY_UNAVAILABLE: "No configured model can edit a reference image.",

    ErrorCode.MISSING_API_KEY: "Provider credential is not configured.",

    ErrorCode.PROVIDER_ERROR: "The upstream provider returned an error.",
    ErrorCode.PROVIDER_TIMEOUT: "The upstream provider took too long to respond.",
    ErrorCode.MALFORMED_PROVIDER_RESPONSE: "The upstream provider returned an unreadable response.",

    ErrorCode.GENERATION_FAILED: "Failed to generate image",
    ErrorCode.CHAT_FAILED: "Failed to generate response",

    ErrorCode.UNKNOWN_ERROR: "Something unexpected happened. Please try again.",
}


ERROR_STATUS_CODES = {
    ErrorCode.MISSING_FIELD: 400,
    ErrorCode.INVALID_PARAMETER: 400,
    ErrorCode.INVALID_IMAGE_DATA: 400,

    ErrorCode.CAPABILITY_UNAVAILABLE: 400,

    ErrorCode.MISSING_API_KEY: 500,

    ErrorCode.PROVIDER_ERROR: 500,
    ErrorCode.PROVIDER_TIMEOUT: 500,
    ErrorCode.MALFORMED_PROVIDER_RESPONSE: 500,

    ErrorCode.GENERATION_FAILED: 500,
    ErrorCode.CHAT_FAILED: 500,

    ErrorCode.UNKNOWN_ERROR: 500,
}

# Hints appended to configuration errors so operators know what to set
REMEDIATION_HINTS = {
    "openai": "Set OPENAI_API_KEY in the environment or .env file.",
    "gemini": "Set GEMINI_API_KEY in the environment or .env file.",
    "huggingface": "Set HF_TOKEN in the environment or .env file.",
}


class ServiceError(Exception):
    """Failure raised by services and rendered as the error envelope."""

    def __init__(self, code: ErrorCode, message: Optional[str] = None, details: Optional[str] = None):
        self.code = code
        self.message, self.status_code = get_error_response(code, custom_message=message)
        self.details = details
        super().__init__(self.message if not details else f"{self.message} ({details})")

    def to_dict(self) -> dict:
        return {"error": self.message, "details": self.details}


def missing_credential_error(provider: str) -> ServiceError:
    """Configuration error for an absent provider credential, with a remediation hint."""
    hint = REMEDIATION_HINTS.get(provider, "Configure the provider credential.")
    return ServiceError(ErrorCode.MISSING_API_KEY, message=f"{provider} credential missing", details=hint)


def get_error_response(
    error_code: ErrorCode,
    custom_message: Optional[str] = None,
) -> Tuple[str, int]:
    """
    Get error message and HTTP status code.

    A custom message replaces the standard one; it is how handlers report
    field-specific validation errors such as "Prompt is required".

    Returns:
        Tuple of (error_message, status_code)
    """
    message = custom_message or ERROR_MESSAGES.get(error_code, ERROR_MESSAGES[ErrorCode.UNKNOWN_ERROR])
    status_code = ERROR_STATUS_CODES.get(error_code, 500)
    return message, status_code


def wrap_error(exc: Exception, fallback: ErrorCode) -> ServiceError:
    """Keep a ServiceError as is; wrap anything else under ``fallback``."""
    if isinstance(exc, ServiceError):
        return exc
    return ServiceError(fallback, details=str(exc))
