"""Chat and companion routes."""
from fastapi import APIRouter
from fastapi.responses import StreamingResponse

from config import Config
from chat.services import companion_turn, complete_chat, open_chat_stream
from common.models import ChatRequest, ChatResponse, CompanionRequest, CompanionResponse
from utils.logger import get_logger

logger = get_logger("chat")
router = APIRouter(prefix="/api", tags=["chat"])


@router.post("/chat", response_model=ChatResponse)
def chat(req: ChatRequest):
    """
    Forward a conversation to the text provider.

    Accepts:
      { messages: [{role, content}], stream?: true }

    With stream (default) the reply is sent as plain-text chunks; the response
    ends when the provider finishes. With stream=false a JSON envelope is returned.
    """
    credentials = Config.credentials()
    if req.stream:
        segments = open_chat_stream(req.messages, credentials)
        return StreamingResponse(segments, media_type="text/plain; charset=utf-8")

    reply = complete_chat(req.messages, credentials)
    return ChatResponse(text=reply.text, model=reply.model)


@router.post("/companion", response_model=CompanionResponse)
def companion(req: CompanionRequest):
    """
    Companion persona chat turn.

    Accepts:
      { message: "...", history?: [...], persona?: "...", generate_image?: true }

    The reply's [IMAGE]: line is stripped from the text and, when possible,
    turned into an image attached to the response.
    """
    result = companion_turn(req, Config.credentials())
    logger.info(f"Companion reply ({len(result.text)} chars, image={'yes' if result.image else 'no'})")
    return result
