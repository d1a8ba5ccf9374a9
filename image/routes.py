"""Image generation and model catalog routes."""
from fastapi import APIRouter

from config import Config
from image.catalog import describe_models, get_model
from image.models import GenerateRequest, GenerateResponse, ModelListResponse
from image.services import generate_images
from utils.logger import get_logger

logger = get_logger("image")
router = APIRouter(prefix="/api", tags=["image"])


@router.post("/generate", response_model=GenerateResponse)
def generate(req: GenerateRequest):
    """
    Generate 1-4 images from a prompt, optionally guided by a reference image.

    Behavior:
      - missing prompt -> 400, no provider call
      - requested model may be substituted (missing credential, no edit support);
        the response reports it in model_switched / switch_reason
      - images are generated in parallel; any failure fails the request
    """
    result = generate_images(req, Config.credentials())
    logger.info(f"Generated {len(result.images)} image(s) with {result.model.id} ({result.mode.value})")
    return result.to_response()


@router.get("/models", response_model=ModelListResponse)
def list_models():
    """List image models with their availability under the current credentials."""
    return {
        "default": get_model(None).id,
        "models": describe_models(Config.credentials()),
    }
