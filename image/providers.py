"""
Image provider adapters.

Each adapter performs exactly one upstream generation call (plus one fetch
when the provider answers with a URL) and returns an ``ImagePayload``.
Failures are raised as ``ServiceError`` and never retried.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Optional
from urllib.parse import quote

from google import genai
from google.genai import types

from config import Config, ProviderCredentials
from common.error_messages import ErrorCode, ServiceError, missing_credential_error
from common.http_client import send_request
from image.catalog import ModelDescriptor, ProviderFamily
from image.encoding import ImagePayload, payload_from_base64, to_payload
from utils.logger import get_logger

logger = get_logger("image.providers")

OPENAI_BASE_URL = "https://api.openai.com/v1"
POLLINATIONS_URL = "https://image.pollinations.ai/prompt/"


@dataclass(frozen=True)
class GenerationJob:
    """Everything one provider call needs, shared by every call of a fan-out."""
    prompt: str
    negative_prompt: str = ""
    reference_image: Optional[ImagePayload] = None
    strength: float = 0.75
    guidance_scale: float = 7.5
    num_inference_steps: int = 25
    width: int = 1024
    height: int = 1024


def fetch_image(url: str, provider: str) -> ImagePayload:
    """Materialise an image the provider returned by URL."""
    response = send_request(provider, "GET", url)
    return to_payload(response.content, response.headers.get("Content-Type"))


# ---------- OpenAI ----------
def generate_openai(model: ModelDescriptor, job: GenerationJob, seed: int,
                    credentials: ProviderCredentials) -> ImagePayload:
    if not credentials.has_openai:
        raise missing_credential_error("openai")

    headers = {"Authorization": f"Bearer {credentials.openai_api_key}"}
    size = f"{job.width}x{job.height}"

    # OpenAI images have no seed parameter; each call samples independently
    if job.reference_image:
        ref = job.reference_image
        response = send_request(
            "OpenAI", "POST", f"{OPENAI_BASE_URL}/images/edits",
            headers=headers,
            data={"model": model.provider_model, "prompt": job.prompt, "n": "1", "size": size},
            files={"image": (f"reference.{ref.mime_type.split('/')[-1]}", ref.data, ref.mime_type)},
        )
    else:
        response = send_request(
            "OpenAI", "POST", f"{OPENAI_BASE_URL}/images/generations",
            headers=headers,
            json={"model": model.provider_model, "prompt": job.prompt, "n": 1, "size": size},
        )

    try:
        item = response.json()["data"][0]
    except (ValueError, KeyError, IndexError, TypeError) as e:
        raise ServiceError(ErrorCode.MALFORMED_PROVIDER_RESPONSE, details=f"OpenAI response has no image data: {e}")

    if item.get("b64_json"):
        return payload_from_base64(item["b64_json"])
    if item.get("url"):
        return fetch_image(item["url"], "OpenAI")
    raise ServiceError(ErrorCode.MALFORMED_PROVIDER_RESPONSE, details="OpenAI response has neither b64_json nor url")


# ---------- Gemini ----------
def generate_gemini(model: ModelDescriptor, job: GenerationJob, seed: int,
                    credentials: ProviderCredentials) -> ImagePayload:
    if not credentials.has_gemini:
        raise missing_credential_error("gemini")

    parts = []
    if job.reference_image:
        parts.append(types.Part.from_bytes(
            data=job.reference_image.data,
            mime_type=job.reference_image.mime_type,
        ))
    parts.append(types.Part.from_text(text=job.prompt))

    try:
        client = genai.Client(api_key=credentials.gemini_api_key)
        response = client.models.generate_content(
            model=model.provider_model,
            contents=[types.Content(role="user", parts=parts)],
            config=types.GenerateContentConfig(
                response_modalities=["IMAGE", "TEXT"],
                seed=seed,
            ),
        )
    except Exception as e:
        logger.error(f"Gemini image call failed: {e}")
        raise ServiceError(ErrorCode.PROVIDER_ERROR, details=f"Gemini API error: {e}")

    for candidate in response.candidates or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline and getattr(inline, "data", None):
                return to_payload(inline.data, inline.mime_type)

    raise ServiceError(ErrorCode.MALFORMED_PROVIDER_RESPONSE, details="Gemini response contained no image")


# ---------- HuggingFace Inference ----------
def generate_huggingface(model: ModelDescriptor, job: GenerationJob, seed: int,
                         credentials: ProviderCredentials) -> ImagePayload:
    if not credentials.has_huggingface:
        raise missing_credential_error("huggingface")

    parameters = {
        "guidance_scale": job.guidance_scale,
        "num_inference_steps": job.num_inference_steps,
        "negative_prompt": job.negative_prompt,
        "seed": seed,
    }
    if job.reference_image:
        parameters["image"] = job.reference_image.base64
        parameters["strength"] = job.strength

    response = send_request(
        "HF", "POST", model.provider_model,
        headers={"Authorization": f"Bearer {credentials.hf_token}"},
        json={"inputs": job.prompt, "parameters": parameters},
    )
    return to_payload(response.content, response.headers.get("Content-Type"))


# ---------- Pollinations ----------
def generate_pollinations(model: ModelDescriptor, job: GenerationJob, seed: int,
                          credentials: ProviderCredentials) -> ImagePayload:
    params = {
        "model": model.provider_model,
        "seed": seed,
        "width": job.width,
        "height": job.height,
        "nologo": "true",
    }
    if job.reference_image:
        limit = Config.POLLINATIONS_MAX_REFERENCE_BYTES
        if len(job.reference_image.data) > limit:
            raise ServiceError(
                ErrorCode.INVALID_IMAGE_DATA,
                message="Reference image is too large",
                details=f"{model.id} accepts reference images up to {limit} bytes; "
                        f"got {len(job.reference_image.data)}. Resize the image or configure OPENAI_API_KEY.",
            )
        params["image"] = job.reference_image.to_data_url()

    response = send_request("Pollinations", "GET", POLLINATIONS_URL + quote(job.prompt, safe=""), params=params)
    return to_payload(response.content, response.headers.get("Content-Type"))


PROVIDERS: Dict[ProviderFamily, Callable[..., ImagePayload]] = {
    ProviderFamily.FIRST_PARTY_IMAGE: generate_openai,
    ProviderFamily.FIRST_PARTY_CHAT: generate_gemini,
    ProviderFamily.INFERENCE_GATEWAY: generate_huggingface,
    ProviderFamily.FREE_PUBLIC_GATEWAY: generate_pollinations,
}


def generate_one(model: ModelDescriptor, job: GenerationJob, seed: int,
                 credentials: ProviderCredentials) -> ImagePayload:
    """Run a single generation call against the model's provider."""
    adapter = PROVIDERS[model.family]
    logger.debug(f"Calling {model.family.value} for model {model.id} (seed={seed})")
    return adapter(model, job, seed, credentials)
