"""Shared pytest fixtures for the studio API tests."""
import base64
from io import BytesIO
from typing import Optional
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from config import Config, ProviderCredentials


def create_test_image(fmt: str = "PNG", color=(255, 0, 0), size=(16, 16)) -> bytes:
    """Encode a solid-colour image with Pillow."""
    img = Image.new("RGB", size, color=color)
    buffer = BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


PNG_BYTES = create_test_image("PNG")
JPEG_BYTES = create_test_image("JPEG", color=(0, 0, 255))


def make_response(status: int = 200, content: bytes = b"", headers: Optional[dict] = None,
                  json_data=None, text: str = "") -> MagicMock:
    """Stand-in for a ``requests.Response``."""
    response = MagicMock()
    response.status_code = status
    response.ok = 200 <= status < 300
    response.content = content
    response.headers = headers or {}
    response.text = text
    if json_data is not None:
        response.json.return_value = json_data
    else:
        response.json.side_effect = ValueError("not json")
    return response


@pytest.fixture
def png_bytes() -> bytes:
    return PNG_BYTES


@pytest.fixture
def jpeg_bytes() -> bytes:
    return JPEG_BYTES


@pytest.fixture
def png_data_url() -> str:
    return "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
def no_credentials(monkeypatch) -> ProviderCredentials:
    """No provider keys configured: only the free gateway is usable."""
    monkeypatch.setattr(Config, "OPENAI_API_KEY", "")
    monkeypatch.setattr(Config, "GEMINI_API_KEY", "")
    monkeypatch.setattr(Config, "HF_TOKEN", "")
    return Config.credentials()


@pytest.fixture
def all_credentials(monkeypatch) -> ProviderCredentials:
    monkeypatch.setattr(Config, "OPENAI_API_KEY", "sk-test")
    monkeypatch.setattr(Config, "GEMINI_API_KEY", "gm-test")
    monkeypatch.setattr(Config, "HF_TOKEN", "hf-test")
    return Config.credentials()


@pytest.fixture
def test_client() -> TestClient:
    from app import app
    return TestClient(app)
