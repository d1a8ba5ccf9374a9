"""Fixed table of image models and the provider families that serve them."""
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Any

from config import Config, ProviderCredentials


class ProviderFamily(str, Enum):
    """Provider families, highest tier first."""
    FIRST_PARTY_IMAGE = "first-party-image"        # OpenAI
    FIRST_PARTY_CHAT = "first-party-chat"          # Gemini
    INFERENCE_GATEWAY = "inference-gateway"        # HuggingFace Inference
    FREE_PUBLIC_GATEWAY = "free-public-gateway"    # Pollinations.ai

    @property
    def tier(self) -> int:
        return FAMILY_TIERS[self]

    @property
    def credential(self) -> Optional[str]:
        """Provider name whose credential the family needs (None = no credential)."""
        return FAMILY_CREDENTIALS[self]

    def is_available(self, credentials: ProviderCredentials) -> bool:
        provider = self.credential
        if provider is None:
            return True
        return provider in credentials.configured()


FAMILY_TIERS = {
    ProviderFamily.FIRST_PARTY_IMAGE: 3,
    ProviderFamily.FIRST_PARTY_CHAT: 2,
    ProviderFamily.INFERENCE_GATEWAY: 1,
    ProviderFamily.FREE_PUBLIC_GATEWAY: 0,
}

FAMILY_CREDENTIALS = {
    ProviderFamily.FIRST_PARTY_IMAGE: "openai",
    ProviderFamily.FIRST_PARTY_CHAT: "gemini",
    ProviderFamily.INFERENCE_GATEWAY: "huggingface",
    ProviderFamily.FREE_PUBLIC_GATEWAY: None,
}


@dataclass(frozen=True)
class ModelDescriptor:
    """One entry of the model table."""
    id: str
    family: ProviderFamily
    provider_model: str
    supports_reference_image: bool
    description: str
    recommended: bool = False

    def to_dict(self, credentials: Optional[ProviderCredentials] = None) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "family": self.family.value,
            "supports_reference_image": self.supports_reference_image,
            "description": self.description,
            "recommended": self.recommended,
        }
        if credentials is not None:
            data["available"] = self.family.is_available(credentials)
        return data


HF_ROUTER = "https://router.huggingface.co/hf-inference/models"

_MODEL_LIST = [
    ModelDescriptor(
        "gpt-image-1", ProviderFamily.FIRST_PARTY_IMAGE, "gpt-image-1", True,
        "OpenAI GPT Image: best prompt adherence, supports editing", recommended=True,
    ),
    ModelDescriptor(
        "dall-e-3", ProviderFamily.FIRST_PARTY_IMAGE, "dall-e-3", False,
        "OpenAI DALL-E 3",
    ),
    ModelDescriptor(
        "gemini-flash-image", ProviderFamily.FIRST_PARTY_CHAT, "gemini-2.5-flash-image", True,
        "Google Gemini 2.5 Flash Image, supports editing",
    ),
    ModelDescriptor(
        "flux-schnell", ProviderFamily.INFERENCE_GATEWAY, f"{HF_ROUTER}/black-forest-labs/FLUX.1-schnell", False,
        "FLUX.1 schnell: fast, good quality", recommended=True,
    ),
    ModelDescriptor(
        "flux-dev", ProviderFamily.INFERENCE_GATEWAY, f"{HF_ROUTER}/black-forest-labs/FLUX.1-dev", False,
        "FLUX.1 dev: slower, higher quality",
    ),
    ModelDescriptor(
        "sdxl", ProviderFamily.INFERENCE_GATEWAY, f"{HF_ROUTER}/stabilityai/stable-diffusion-xl-base-1.0", True,
        "Stable Diffusion XL base",
    ),
    ModelDescriptor(
        "sdxl-turbo", ProviderFamily.INFERENCE_GATEWAY, f"{HF_ROUTER}/stabilityai/sdxl-turbo", True,
        "SDXL Turbo: very fast",
    ),
    ModelDescriptor(
        "playground-v2", ProviderFamily.INFERENCE_GATEWAY, f"{HF_ROUTER}/playgroundai/playground-v2.5-1024px-aesthetic", False,
        "Playground v2.5: aesthetic 1024px",
    ),
    ModelDescriptor(
        "realvis-xl", ProviderFamily.INFERENCE_GATEWAY, f"{HF_ROUTER}/SG161222/RealVisXL_V4.0", True,
        "RealVisXL v4: photorealistic",
    ),
    ModelDescriptor(
        "flux", ProviderFamily.FREE_PUBLIC_GATEWAY, "flux", False,
        "Pollinations FLUX: free, no key required", recommended=True,
    ),
    ModelDescriptor(
        "turbo", ProviderFamily.FREE_PUBLIC_GATEWAY, "turbo", False,
        "Pollinations Turbo: free and fast",
    ),
    ModelDescriptor(
        "kontext", ProviderFamily.FREE_PUBLIC_GATEWAY, "kontext", True,
        "Pollinations Kontext: free image editing",
    ),
]

MODELS: Mapping[str, ModelDescriptor] = MappingProxyType({m.id: m for m in _MODEL_LIST})


def get_model(identifier: Optional[str], catalog: Mapping[str, ModelDescriptor] = MODELS,
              default: Optional[str] = None) -> ModelDescriptor:
    """Look up a model, resolving unknown or empty identifiers to the default."""
    default = default or Config.DEFAULT_IMAGE_MODEL
    if identifier and identifier in catalog:
        return catalog[identifier]
    if default in catalog:
        return catalog[default]
    # misconfigured default: first entry of the table
    return next(iter(catalog.values()))


def model_ids(catalog: Mapping[str, ModelDescriptor] = MODELS) -> List[str]:
    return list(catalog.keys())


def describe_models(credentials: ProviderCredentials,
                    catalog: Mapping[str, ModelDescriptor] = MODELS) -> List[Dict[str, Any]]:
    """Catalog listing with per-model availability for the given credentials."""
    return [m.to_dict(credentials) for m in catalog.values()]
