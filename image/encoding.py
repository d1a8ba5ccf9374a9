"""Conversion between provider image payloads and inline data URLs."""
import base64
import binascii
import re
from dataclasses import dataclass
from typing import Optional

from common.error_messages import ErrorCode, ServiceError

DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<params>(;[\w-]+=[^;,]*)*)(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)

# (magic prefix, offset, mime type)
MAGIC_SIGNATURES = (
    (b"\x89PNG\r\n\x1a\n", 0, "image/png"),
    (b"\xff\xd8\xff", 0, "image/jpeg"),
    (b"GIF87a", 0, "image/gif"),
    (b"GIF89a", 0, "image/gif"),
    (b"WEBP", 8, "image/webp"),
)

DEFAULT_MIME_TYPE = "image/png"


@dataclass(frozen=True)
class ImagePayload:
    """Raw image bytes tagged with a MIME type."""
    mime_type: str
    data: bytes

    @property
    def base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64}"


def sniff_mime_type(data: bytes, fallback: Optional[str] = None) -> Optional[str]:
    """MIME type from the leading magic bytes, or ``fallback`` when unrecognised."""
    for magic, offset, mime in MAGIC_SIGNATURES:
        if data[offset:offset + len(magic)] == magic:
            if mime == "image/webp" and not data.startswith(b"RIFF"):
                continue
            return mime
    return fallback


def _b64decode(value: str) -> bytes:
    cleaned = "".join(value.split())
    # tolerate missing padding
    cleaned += "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ServiceError(ErrorCode.INVALID_IMAGE_DATA, details=f"Invalid base64 image data: {e}")


def parse_data_url(value: str) -> ImagePayload:
    """
    Decode a ``data:<mime>;base64,<data>`` URL or a bare base64 string.

    The declared MIME type is kept unless the magic bytes say otherwise.

    Raises:
        ServiceError: INVALID_IMAGE_DATA for anything that is not base64 image data.
    """
    if not isinstance(value, str) or not value.strip():
        raise ServiceError(ErrorCode.INVALID_IMAGE_DATA, details="Image must be a non-empty data URL")

    value = value.strip()
    declared = None
    if value.startswith("data:"):
        match = DATA_URL_RE.match(value)
        if not match or not match.group("b64"):
            raise ServiceError(ErrorCode.INVALID_IMAGE_DATA, details="Image data URL must be base64 encoded")
        declared = match.group("mime")
        value = match.group("data")

    data = _b64decode(value)
    if not data:
        raise ServiceError(ErrorCode.INVALID_IMAGE_DATA, details="Image data is empty")
    return ImagePayload(mime_type=sniff_mime_type(data, declared or DEFAULT_MIME_TYPE), data=data)


def to_payload(data: bytes, content_type: Optional[str] = None) -> ImagePayload:
    """
    Tag provider bytes with a MIME type that matches their magic bytes.

    The upstream ``Content-Type`` header is used only when the bytes are not a
    recognised image format, and only when it names an image type.

    Raises:
        ServiceError: MALFORMED_PROVIDER_RESPONSE when the bytes are clearly not an image.
    """
    if not data:
        raise ServiceError(ErrorCode.MALFORMED_PROVIDER_RESPONSE, details="Provider returned an empty body")
    mime = sniff_mime_type(data)
    if mime:
        return ImagePayload(mime_type=mime, data=data)
    header_mime = (content_type or "").split(";")[0].strip().lower()
    if header_mime.startswith("image/"):
        return ImagePayload(mime_type=header_mime, data=data)
    raise ServiceError(
        ErrorCode.MALFORMED_PROVIDER_RESPONSE,
        details=f"Provider returned non-image content ({header_mime or 'unknown type'}): {data[:200]!r}",
    )


def to_data_url(data: bytes, content_type: Optional[str] = None) -> str:
    return to_payload(data, content_type).to_data_url()


def payload_from_base64(value: str, content_type: Optional[str] = None) -> ImagePayload:
    """Normalise an already-base64 provider answer."""
    try:
        data = parse_data_url(value).data
    except ServiceError as e:
        raise ServiceError(ErrorCode.MALFORMED_PROVIDER_RESPONSE, details=e.details)
    return to_payload(data, content_type)
