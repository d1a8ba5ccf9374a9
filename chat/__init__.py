"""Chat and companion module."""
from chat.services import (
    companion_turn,
    complete_chat,
    extract_image_prompt,
    open_chat_stream
)

__all__ = [
    "companion_turn",
    "complete_chat",
    "extract_image_prompt",
    "open_chat_stream"
]
