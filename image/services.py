"""Image generation service: validation, model selection, prompt rewrite and fan-out."""
import math
import random
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, List, Optional

from config import Config, ProviderCredentials
from common.error_messages import ErrorCode, ServiceError
from image.catalog import ModelDescriptor, model_ids
from image.encoding import parse_data_url
from image.models import GenerateRequest, GenerateResponse, GenerationMode
from image.prompts import DEFAULT_NEGATIVE_PROMPT, enhance_prompt
from image.providers import GenerationJob, generate_one
from image.selection import select_model
from utils.logger import get_logger

logger = get_logger("image.services")

MIN_IMAGES = 1
MAX_IMAGES = 4
MAX_SEED = 2 ** 31 - 1

# Upstream failures are reported as "Failed to generate image" with the provider text in details
UPSTREAM_ERRORS = {
    ErrorCode.PROVIDER_ERROR,
    ErrorCode.PROVIDER_TIMEOUT,
    ErrorCode.MALFORMED_PROVIDER_RESPONSE,
}


@dataclass
class GenerationResult:
    images: List[str]
    prompt: str
    original_prompt: str
    model: ModelDescriptor
    model_switched: bool
    switch_reason: Optional[str]
    mode: GenerationMode

    def to_response(self) -> GenerateResponse:
        return GenerateResponse(
            images=self.images,
            prompt=self.prompt,
            original_prompt=self.original_prompt,
            count=len(self.images),
            model=self.model.id,
            model_switched=self.model_switched,
            switch_reason=self.switch_reason,
            mode=self.mode,
            available_models=model_ids(),
        )


def clamp_count(value: Any) -> int:
    """Requested image count clamped to [1, 4]; anything non-numeric or zero means 1."""
    if isinstance(value, int) and not isinstance(value, bool):
        return max(MIN_IMAGES, min(value, MAX_IMAGES))
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return MIN_IMAGES
    if math.isnan(number) or number == 0:
        return MIN_IMAGES
    return int(min(max(number, MIN_IMAGES), MAX_IMAGES))


def fan_out(model: ModelDescriptor, job: GenerationJob, seeds: List[int],
            credentials: ProviderCredentials) -> List[str]:
    """
    Start one provider call per seed, wait for all of them and return data URLs.

    Results keep submission order. The first failure fails the whole batch:
    no partial result is returned and nothing is retried.
    """
    logger.info(f"Generating {len(seeds)} image(s) in parallel with {model.id}")
    with ThreadPoolExecutor(max_workers=len(seeds)) as executor:
        futures = [executor.submit(generate_one, model, job, seed, credentials) for seed in seeds]
        try:
            payloads = [future.result() for future in futures]
        except Exception:
            for future in futures:
                future.cancel()
            raise
    return [payload.to_data_url() for payload in payloads]


def generate_images(
    request: GenerateRequest,
    credentials: Optional[ProviderCredentials] = None,
    rng: Optional[random.Random] = None,
) -> GenerationResult:
    """
    Serve one /api/generate request.

    Args:
        request: Parsed request body
        credentials: Provider credentials (default: from Config)
        rng: Randomness for prompt phrases and seeds; seed it for reproducible output

    Raises:
        ServiceError: 400 for bad input or an impossible edit request, 500 for
            configuration and upstream failures
    """
    prompt = request.prompt
    if not isinstance(prompt, str) or not prompt.strip():
        raise ServiceError(ErrorCode.MISSING_FIELD, message="Prompt is required")

    credentials = credentials or Config.credentials()
    rng = rng or random.Random()
    count = clamp_count(request.count)
    reference = parse_data_url(request.image) if request.image else None

    selection = select_model(request.model, credentials, has_reference_image=reference is not None)
    model = selection.model
    mode = GenerationMode.IMG2IMG if reference is not None else GenerationMode.TXT2IMG

    effective_prompt = enhance_prompt(prompt, request.enhance, is_edit=reference is not None, rng=rng)
    job = GenerationJob(
        prompt=effective_prompt,
        negative_prompt=request.negative_prompt or DEFAULT_NEGATIVE_PROMPT,
        reference_image=reference,
        strength=request.strength,
        guidance_scale=request.guidance_scale,
        num_inference_steps=request.num_inference_steps,
        width=Config.IMAGE_WIDTH,
        height=Config.IMAGE_HEIGHT,
    )
    seeds = rng.sample(range(MAX_SEED), count)

    logger.info(f"{mode.value} request: model={model.id} count={count} prompt={prompt[:50]!r}")
    try:
        images = fan_out(model, job, seeds, credentials)
    except ServiceError as e:
        if e.code in UPSTREAM_ERRORS:
            logger.error(f"Image generation error: {e}")
            raise ServiceError(ErrorCode.GENERATION_FAILED, details=e.details)
        raise
    except Exception as e:
        logger.error(f"Image generation error: {e}", exc_info=True)
        raise ServiceError(ErrorCode.GENERATION_FAILED, details=str(e))

    return GenerationResult(
        images=images,
        prompt=effective_prompt,
        original_prompt=prompt,
        model=model,
        model_switched=selection.switched,
        switch_reason=selection.reason,
        mode=mode,
    )


def generate_single_image(prompt: str, model: ModelDescriptor,
                          credentials: Optional[ProviderCredentials] = None) -> str:
    """One image for a fixed model, no fan-out and no prompt rewrite. Returns a data URL."""
    credentials = credentials or Config.credentials()
    job = GenerationJob(
        prompt=prompt,
        negative_prompt=DEFAULT_NEGATIVE_PROMPT,
        width=Config.IMAGE_WIDTH,
        height=Config.IMAGE_HEIGHT,
    )
    return generate_one(model, job, random.randrange(MAX_SEED), credentials).to_data_url()
