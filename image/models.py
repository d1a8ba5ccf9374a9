"""Image generation Pydantic models."""
from enum import Enum
from typing import Optional, List, Any
from pydantic import BaseModel, Field

from config import Config


class GenerationMode(str, Enum):
    TXT2IMG = "txt2img"
    IMG2IMG = "img2img"


class GenerateRequest(BaseModel):
    # prompt and count are validated by the service so bad values get the
    # handler's own 400 messages and clamping rules
    prompt: Optional[Any] = Field(None, description="Text prompt (required)")
    count: Optional[Any] = Field(1, description="Number of images, clamped to 1-4")
    image: Optional[str] = Field(None, description="Reference image as a base64 data URL")
    strength: float = Field(Config.DEFAULT_STRENGTH, description="How far img2img may move from the reference")
    model: Optional[str] = Field(None, description="Model identifier; unknown ids use the default")
    enhance: bool = Field(True, description="Add context and quality phrases to the prompt")
    negative_prompt: Optional[str] = Field("", description="What to avoid; a default is used when empty")
    guidance_scale: float = Field(Config.DEFAULT_GUIDANCE_SCALE)
    num_inference_steps: int = Field(Config.DEFAULT_INFERENCE_STEPS)


class GenerateResponse(BaseModel):
    success: bool = True
    images: List[str] = Field(..., description="Generated images as data URLs")
    prompt: str = Field(..., description="Prompt actually sent to the provider")
    original_prompt: str
    count: int
    model: str = Field(..., description="Model that served the request")
    model_switched: bool = False
    switch_reason: Optional[str] = None
    mode: GenerationMode
    available_models: List[str]


class ModelInfo(BaseModel):
    id: str
    family: str
    supports_reference_image: bool
    description: str
    recommended: bool = False
    available: bool = True


class ModelListResponse(BaseModel):
    default: str
    models: List[ModelInfo]
