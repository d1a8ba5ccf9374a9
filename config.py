"""
Configuration module - loads all settings from environment variables.
"""
import os
from dataclasses import dataclass
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
try:
    load_dotenv()
except Exception as e:
    print(f"Warning: Failed to load .env file: {e}")
    print("Continuing with environment variables or defaults...")


@dataclass(frozen=True)
class ProviderCredentials:
    """Snapshot of the provider credentials available to one request."""
    openai_api_key: Optional[str] = None
    gemini_api_key: Optional[str] = None
    hf_token: Optional[str] = None

    @property
    def has_openai(self) -> bool:
        return bool(self.openai_api_key)

    @property
    def has_gemini(self) -> bool:
        return bool(self.gemini_api_key)

    @property
    def has_huggingface(self) -> bool:
        return bool(self.hf_token)

    def configured(self) -> list:
        """Names of the providers that have a credential."""
        names = []
        if self.has_openai:
            names.append("openai")
        if self.has_gemini:
            names.append("gemini")
        if self.has_huggingface:
            names.append("huggingface")
        return names


class Config:
    """Application configuration loaded from environment variables."""

    @staticmethod
    def _get_int(key: str, default: int) -> int:
        """Safely parse integer environment variable."""
        try:
            return int(os.getenv(key, str(default)))
        except (ValueError, TypeError) as e:
            print(f"Warning: Invalid integer for {key}, using default {default}: {e}")
            return default

    @staticmethod
    def _get_float(key: str, default: float) -> float:
        """Safely parse float environment variable."""
        try:
            return float(os.getenv(key, str(default)))
        except (ValueError, TypeError) as e:
            print(f"Warning: Invalid float for {key}, using default {default}: {e}")
            return default

    # Provider credentials (any of them may be absent)
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    HF_TOKEN: str = os.getenv("HF_TOKEN", "")

    # Chat
    CHAT_MODEL: str = os.getenv("CHAT_MODEL", "gemini-2.0-flash")
    OPENAI_CHAT_MODEL: str = os.getenv("OPENAI_CHAT_MODEL", "gpt-4o-mini")
    CHAT_SYSTEM_PROMPT: str = os.getenv("CHAT_SYSTEM_PROMPT", "You are a helpful, creative AI assistant.")
    CONVERSATION_HISTORY_DEPTH: int = _get_int.__func__("CONVERSATION_HISTORY_DEPTH", 20)

    # Image generation
    DEFAULT_IMAGE_MODEL: str = os.getenv("DEFAULT_IMAGE_MODEL", "flux")
    COMPANION_IMAGE_MODEL: str = os.getenv("COMPANION_IMAGE_MODEL", "flux-schnell")
    DEFAULT_STRENGTH: float = _get_float.__func__("DEFAULT_STRENGTH", 0.75)
    DEFAULT_GUIDANCE_SCALE: float = _get_float.__func__("DEFAULT_GUIDANCE_SCALE", 7.5)
    DEFAULT_INFERENCE_STEPS: int = _get_int.__func__("DEFAULT_INFERENCE_STEPS", 25)
    IMAGE_WIDTH: int = _get_int.__func__("IMAGE_WIDTH", 1024)
    IMAGE_HEIGHT: int = _get_int.__func__("IMAGE_HEIGHT", 1024)

    # Upstream calls
    PROVIDER_TIMEOUT_SECONDS: float = _get_float.__func__("PROVIDER_TIMEOUT_SECONDS", 120.0)
    # Pollinations takes the reference image in the query string
    POLLINATIONS_MAX_REFERENCE_BYTES: int = _get_int.__func__("POLLINATIONS_MAX_REFERENCE_BYTES", 48_000)

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = _get_int.__func__("PORT", 8000)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def credentials(cls) -> ProviderCredentials:
        """Current credential snapshot, passed explicitly into model selection."""
        return ProviderCredentials(
            openai_api_key=cls.OPENAI_API_KEY or None,
            gemini_api_key=cls.GEMINI_API_KEY or None,
            hf_token=cls.HF_TOKEN or None,
        )

    @classmethod
    def validate(cls) -> list:
        """Return warnings about missing provider credentials.

        Missing credentials never stop the service: the free public gateway
        needs none, and model selection substitutes around the gaps.
        """
        warnings = []
        if not cls.OPENAI_API_KEY:
            warnings.append("OPENAI_API_KEY not set: OpenAI image models will be substituted")
        if not cls.GEMINI_API_KEY:
            warnings.append("GEMINI_API_KEY not set: chat falls back to OpenAI if configured")
        if not cls.HF_TOKEN:
            warnings.append("HF_TOKEN not set: HuggingFace models will be substituted")
        if not cls.GEMINI_API_KEY and not cls.OPENAI_API_KEY:
            warnings.append("No chat provider configured: /api/chat and /api/companion will fail")
        return warnings

