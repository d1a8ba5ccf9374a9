"""Text generation service: Gemini first, OpenAI chat completions as the alternative."""
import json
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from google import genai
from google.genai import types

from config import Config, ProviderCredentials
from common.error_messages import ErrorCode, ServiceError, missing_credential_error
from common.http_client import send_request
from common.models import ChatMessage, ChatRole
from image.encoding import parse_data_url
from utils.logger import get_logger

logger = get_logger("text_service")

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
OPENAI_STREAM_DONE = "[DONE]"


@dataclass
class ChatReply:
    text: str
    model: str


def resolve_chat_provider(credentials: ProviderCredentials) -> Tuple[str, str]:
    """Return (provider, model) for chat: Gemini when keyed, else OpenAI."""
    if credentials.has_gemini:
        return "gemini", Config.CHAT_MODEL
    if credentials.has_openai:
        return "openai", Config.OPENAI_CHAT_MODEL
    raise missing_credential_error("gemini")


def recent_messages(messages: List[ChatMessage]) -> List[ChatMessage]:
    """Keep only the last CONVERSATION_HISTORY_DEPTH messages."""
    depth = Config.CONVERSATION_HISTORY_DEPTH
    if depth > 0 and len(messages) > depth:
        return messages[-depth:]
    return messages


def _split_system(messages: List[ChatMessage], system: str) -> Tuple[str, List[ChatMessage]]:
    """Fold system-role messages into the system instruction."""
    extra = [m.text() for m in messages if m.role == ChatRole.SYSTEM and m.text().strip()]
    turns = [m for m in messages if m.role != ChatRole.SYSTEM and not m.is_empty()]
    instruction = "\n\n".join([system] + extra) if system else "\n\n".join(extra)
    return instruction, recent_messages(turns)


def build_gemini_contents(messages: List[ChatMessage]) -> List[types.Content]:
    """
    Convert chat messages to Gemini Content objects.

    'assistant' maps to Gemini's 'model' role; image parts become inline data.
    """
    contents = []
    for msg in messages:
        gemini_role = "model" if msg.role == ChatRole.ASSISTANT else "user"
        parts = []
        for image_part in msg.image_parts():
            payload = parse_data_url(image_part.image)
            parts.append(types.Part.from_bytes(data=payload.data, mime_type=payload.mime_type))
        text = msg.text().strip()
        if text:
            parts.append(types.Part.from_text(text=text))
        if parts:
            contents.append(types.Content(role=gemini_role, parts=parts))
    return contents


def build_openai_messages(messages: List[ChatMessage], system: str) -> List[dict]:
    """Convert chat messages to the OpenAI chat-completions format."""
    result = [{"role": "system", "content": system}] if system else []
    for msg in messages:
        images = msg.image_parts()
        if not images:
            result.append({"role": msg.role.value, "content": msg.text()})
            continue
        parts = [{"type": "text", "text": msg.text()}] if msg.text() else []
        parts.extend({"type": "image_url", "image_url": {"url": p.image}} for p in images)
        result.append({"role": msg.role.value, "content": parts})
    return result


def _gemini_error(e: Exception) -> ServiceError:
    error_msg = str(e).lower()
    if "timeout" in error_msg or "deadline" in error_msg:
        return ServiceError(ErrorCode.PROVIDER_TIMEOUT, details=f"Gemini API timeout: {e}")
    return ServiceError(ErrorCode.PROVIDER_ERROR, details=f"Gemini API error: {e}")


def _gemini_client(credentials: ProviderCredentials) -> genai.Client:
    return genai.Client(api_key=credentials.gemini_api_key)


def generate_text(
    messages: List[ChatMessage],
    system: str,
    credentials: Optional[ProviderCredentials] = None,
) -> ChatReply:
    """
    One-shot completion of a conversation.

    Args:
        messages: Ordered conversation; system-role entries extend ``system``
        system: System instruction
        credentials: Provider credentials (default: from Config)

    Returns:
        ChatReply with the full completion text and the upstream model name
    """
    credentials = credentials or Config.credentials()
    provider, model = resolve_chat_provider(credentials)
    instruction, turns = _split_system(messages, system)
    logger.info(f"Chat completion via {provider}:{model} with {len(turns)} message(s)")

    if provider == "gemini":
        contents = build_gemini_contents(turns)
        try:
            response = _gemini_client(credentials).models.generate_content(
                model=model,
                contents=contents,
                config=types.GenerateContentConfig(system_instruction=instruction),
            )
        except Exception as e:
            logger.error(f"Gemini chat call failed: {e}")
            raise _gemini_error(e)
        text = response.text or ""
    else:
        response = send_request(
            "OpenAI", "POST", OPENAI_CHAT_URL,
            headers={"Authorization": f"Bearer {credentials.openai_api_key}"},
            json={"model": model, "messages": build_openai_messages(turns, instruction)},
        )
        try:
            text = response.json()["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ServiceError(ErrorCode.MALFORMED_PROVIDER_RESPONSE, details=f"OpenAI chat response unreadable: {e}")

    if not text.strip():
        logger.warning(f"No content generated by {provider}")
        raise ServiceError(ErrorCode.MALFORMED_PROVIDER_RESPONSE, details="Provider returned an empty completion")
    return ChatReply(text=text, model=model)


def _stream_openai(turns: List[ChatMessage], instruction: str, model: str,
                   credentials: ProviderCredentials) -> Iterator[str]:
    response = send_request(
        "OpenAI", "POST", OPENAI_CHAT_URL,
        headers={"Authorization": f"Bearer {credentials.openai_api_key}"},
        json={"model": model, "messages": build_openai_messages(turns, instruction), "stream": True},
        stream=True,
    )
    with response:
        for line in response.iter_lines(decode_unicode=True):
            if not line or not line.startswith("data:"):
                continue
            data = line[len("data:"):].strip()
            if data == OPENAI_STREAM_DONE:
                return
            try:
                choice = json.loads(data)["choices"][0]
            except (ValueError, KeyError, IndexError) as e:
                raise ServiceError(ErrorCode.MALFORMED_PROVIDER_RESPONSE, details=f"Bad OpenAI stream event: {e}")
            segment = (choice.get("delta") or {}).get("content")
            if segment:
                yield segment


def _stream_gemini(turns: List[ChatMessage], instruction: str, model: str,
                   credentials: ProviderCredentials) -> Iterator[str]:
    contents = build_gemini_contents(turns)
    try:
        for chunk in _gemini_client(credentials).models.generate_content_stream(
            model=model,
            contents=contents,
            config=types.GenerateContentConfig(system_instruction=instruction),
        ):
            if chunk.text:
                yield chunk.text
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Gemini chat stream failed: {e}")
        raise _gemini_error(e)


def stream_text(
    messages: List[ChatMessage],
    system: str,
    credentials: Optional[ProviderCredentials] = None,
) -> Iterator[str]:
    """Yield completion text segments as the provider produces them."""
    credentials = credentials or Config.credentials()
    provider, model = resolve_chat_provider(credentials)
    instruction, turns = _split_system(messages, system)
    logger.info(f"Streaming chat via {provider}:{model} with {len(turns)} message(s)")

    if provider == "gemini":
        return _stream_gemini(turns, instruction, model, credentials)
    return _stream_openai(turns, instruction, model, credentials)
