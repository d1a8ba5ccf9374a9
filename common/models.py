"""Shared conversation models for the chat and companion endpoints."""
from enum import Enum
from typing import Optional, List, Any, Union
from pydantic import BaseModel, Field


class ChatRole(str, Enum):
    """Who authored a chat message."""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ContentPart(BaseModel):
    """One part of a multimodal message."""
    type: str = Field("text", description="Part type: 'text' or 'image'")
    text: Optional[str] = Field(None, description="Text for 'text' parts")
    image: Optional[str] = Field(None, description="Data URL for 'image' parts")


class ChatMessage(BaseModel):
    """A single conversation turn."""
    role: ChatRole = Field(..., description="user | assistant | system")
    content: Union[str, List[ContentPart]] = Field("", description="Text, or a list of parts for multimodal input")

    def text(self) -> str:
        """Plain-text view of the content (image parts dropped)."""
        if isinstance(self.content, str):
            return self.content
        return "\n".join(p.text for p in self.content if p.type == "text" and p.text)

    def image_parts(self) -> List[ContentPart]:
        if isinstance(self.content, str):
            return []
        return [p for p in self.content if p.type == "image" and p.image]

    def is_empty(self) -> bool:
        return not self.text().strip() and not self.image_parts()


class ChatRequest(BaseModel):
    """Body of POST /api/chat."""
    messages: Optional[List[ChatMessage]] = Field(None, description="Ordered conversation")
    stream: bool = Field(True, description="Stream the reply as text chunks")


class ChatResponse(BaseModel):
    """Envelope for a one-shot chat completion."""
    success: bool = True
    text: str = Field("", description="Completion text")
    model: str = Field(..., description="Upstream model that produced the reply")


class CompanionRequest(BaseModel):
    """Body of POST /api/companion."""
    message: Optional[Any] = Field(None, description="The user's new message")
    history: List[ChatMessage] = Field(default_factory=list, description="Earlier turns")
    persona: Optional[str] = Field(None, description="Replaces the default persona instruction")
    generate_image: bool = Field(True, description="Generate an image from the reply's image prompt")


class CompanionResponse(BaseModel):
    """Body returned by POST /api/companion."""
    success: bool = True
    text: str = Field("", description="Visible reply with the image marker removed")
    image: Optional[str] = Field(None, description="Generated image as a data URL, or null")
    image_prompt: str = Field("", description="Image prompt extracted from the reply")
    message: str = Field(..., description="Echo of the user's message")
