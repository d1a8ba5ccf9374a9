"""Image generation module."""
from image.catalog import MODELS, ModelDescriptor, ProviderFamily, get_model
from image.models import GenerateRequest, GenerateResponse
from image.prompts import enhance_prompt
from image.selection import ModelSelection, select_model
from image.services import clamp_count, generate_images, generate_single_image

__all__ = [
    "MODELS",
    "ModelDescriptor",
    "ProviderFamily",
    "get_model",
    "GenerateRequest",
    "GenerateResponse",
    "enhance_prompt",
    "ModelSelection",
    "select_model",
    "clamp_count",
    "generate_images",
    "generate_single_image",
]
