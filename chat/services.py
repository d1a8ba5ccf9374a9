"""Chat and companion services."""
import re
from typing import Iterator, List, Optional, Tuple

from config import Config, ProviderCredentials
from common.error_messages import ErrorCode, ServiceError, wrap_error
from common.models import ChatMessage, ChatRole, CompanionRequest, CompanionResponse
from common.personas import chat_system_prompt, companion_system_prompt
from common.text_service import ChatReply, generate_text, stream_text
from image.catalog import get_model
from image.prompts import enhance_companion_prompt
from image.services import generate_single_image
from utils.logger import get_logger

logger = get_logger("chat.services")

IMAGE_MARKER_RE = re.compile(r"\[IMAGE\]:\s*(.+?)(?:\n|$)", re.IGNORECASE)


def validate_messages(messages: Optional[List[ChatMessage]]) -> List[ChatMessage]:
    if not messages:
        raise ServiceError(ErrorCode.MISSING_FIELD, message="Messages are required")
    if all(m.is_empty() for m in messages):
        raise ServiceError(ErrorCode.MISSING_FIELD, message="Messages are required", details="All messages are empty")
    return messages


def complete_chat(messages: Optional[List[ChatMessage]],
                  credentials: Optional[ProviderCredentials] = None) -> ChatReply:
    """One-shot reply to a conversation using the fixed chat instruction."""
    messages = validate_messages(messages)
    try:
        return generate_text(messages, chat_system_prompt(), credentials)
    except Exception as e:
        raise wrap_error(e, ErrorCode.CHAT_FAILED)


def open_chat_stream(messages: Optional[List[ChatMessage]],
                     credentials: Optional[ProviderCredentials] = None) -> Iterator[str]:
    """
    Start streaming a reply.

    The first segment is pulled eagerly so that an upstream failure surfaces
    here, before any response bytes are sent, and can still be reported as
    the error envelope.
    """
    messages = validate_messages(messages)
    try:
        segments = stream_text(messages, chat_system_prompt(), credentials)
        first = next(segments, None)
    except Exception as e:
        raise wrap_error(e, ErrorCode.CHAT_FAILED)

    def replay() -> Iterator[str]:
        if first is not None:
            yield first
        try:
            yield from segments
        except Exception as e:
            # headers are already sent; the stream just ends early
            logger.error(f"Chat stream interrupted: {e}")

    return replay()


def extract_image_prompt(text: str) -> Tuple[str, str]:
    """
    Split a companion reply into visible text and the embedded image prompt.

    The prompt is whatever follows the first ``[IMAGE]:`` marker up to the end
    of that line; the marker line is removed from the visible text.

    Returns:
        (visible_text, image_prompt); image_prompt is "" when there is no marker
    """
    match = IMAGE_MARKER_RE.search(text)
    if not match:
        return text.strip(), ""
    visible = IMAGE_MARKER_RE.sub("", text, count=1).strip()
    return visible, match.group(1).strip()


def _companion_image(image_prompt: str, credentials: ProviderCredentials) -> Optional[str]:
    """Auxiliary image for a companion turn; any failure means no image."""
    model = get_model(Config.COMPANION_IMAGE_MODEL)
    if not model.family.is_available(credentials):
        logger.info(f"Companion image skipped: no credential for {model.id}")
        return None
    try:
        return generate_single_image(enhance_companion_prompt(image_prompt), model, credentials)
    except Exception as e:
        logger.error(f"Image generation failed: {e}")
        return None


def companion_turn(req: CompanionRequest,
                   credentials: Optional[ProviderCredentials] = None) -> CompanionResponse:
    """
    Reply as the companion persona and optionally illustrate the reply.

    Raises:
        ServiceError: MISSING_FIELD when no message is given; chat provider
            errors propagate. Image failures never do.
    """
    message = req.message
    if not isinstance(message, str) or not message.strip():
        raise ServiceError(ErrorCode.MISSING_FIELD, message="Message is required")

    credentials = credentials or Config.credentials()
    history = [m for m in req.history if m.role in (ChatRole.USER, ChatRole.ASSISTANT)]
    messages = history + [ChatMessage(role=ChatRole.USER, content=message)]

    try:
        reply = generate_text(messages, companion_system_prompt(req.persona), credentials)
    except Exception as e:
        raise wrap_error(e, ErrorCode.CHAT_FAILED)
    text, image_prompt = extract_image_prompt(reply.text)

    image = None
    if req.generate_image and image_prompt:
        image = _companion_image(image_prompt, credentials)

    return CompanionResponse(
        text=text,
        image=image,
        image_prompt=image_prompt,
        message=message,
    )
