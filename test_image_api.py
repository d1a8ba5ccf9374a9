"""Integration tests for POST /api/generate and GET /api/models through the FastAPI TestClient.

Upstream HTTP is mocked at ``requests.request`` so the full stack (selection,
prompt rewrite, fan-out, provider adapter, encoding) runs for real.
"""
import base64
from unittest.mock import patch

import pytest

from config import Config
from conftest import PNG_BYTES, make_response
from image.catalog import MODELS, ProviderFamily


@pytest.fixture
def mock_request():
    with patch("common.http_client.requests.request") as mocked:
        mocked.return_value = make_response(content=PNG_BYTES, headers={"Content-Type": "image/png"})
        yield mocked


class TestGenerate:

    def test_free_model_txt2img(self, test_client, no_credentials, mock_request):
        resp = test_client.post("/api/generate", json={"prompt": "a red apple", "count": 2, "model": "flux"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert len(data["images"]) == 2
        assert data["count"] == 2
        assert data["mode"] == "txt2img"
        assert data["model"] == "flux"
        assert data["model_switched"] is False
        assert data["original_prompt"] == "a red apple"
        assert "a red apple" in data["prompt"]
        assert set(data["available_models"]) == set(MODELS)
        assert mock_request.call_count == 2

    def test_images_decode_to_declared_type(self, test_client, no_credentials, mock_request):
        resp = test_client.post("/api/generate", json={"prompt": "a red apple"})
        image = resp.json()["images"][0]
        header, encoded = image.split(",", 1)
        assert header == "data:image/png;base64"
        assert base64.b64decode(encoded).startswith(b"\x89PNG\r\n\x1a\n")

    def test_reference_image_with_uneditable_model(self, test_client, no_credentials, mock_request, png_data_url):
        resp = test_client.post("/api/generate", json={"prompt": "edit this", "image": png_data_url, "model": "flux"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["model_switched"] is True
        assert data["switch_reason"]
        assert data["mode"] == "img2img"
        assert MODELS[data["model"]].supports_reference_image

    @pytest.mark.parametrize("body", [{"prompt": ""}, {}, {"prompt": None}, {"prompt": 12}])
    def test_missing_prompt_is_400(self, test_client, no_credentials, mock_request, body):
        resp = test_client.post("/api/generate", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Prompt is required"
        mock_request.assert_not_called()

    @pytest.mark.parametrize("count, expected", [(0, 1), (5, 4), (-1, 1), ("abc", 1), (3, 3)])
    def test_count_is_clamped(self, test_client, no_credentials, mock_request, count, expected):
        resp = test_client.post("/api/generate", json={"prompt": "x", "count": count})
        assert resp.status_code == 200
        assert len(resp.json()["images"]) == expected

    def test_enhance_false_passes_prompt_through(self, test_client, no_credentials, mock_request):
        resp = test_client.post("/api/generate", json={"prompt": "a red apple", "enhance": False})
        assert resp.json()["prompt"] == "a red apple"
        url = mock_request.call_args.args[1]
        assert url.endswith("a%20red%20apple")

    def test_uncredentialed_model_is_substituted(self, test_client, no_credentials, mock_request):
        resp = test_client.post("/api/generate", json={"prompt": "x", "model": "gpt-image-1"})
        data = resp.json()
        assert resp.status_code == 200
        assert MODELS[data["model"]].family == ProviderFamily.FREE_PUBLIC_GATEWAY
        assert data["model_switched"] is True

    def test_upstream_failure_is_500_with_details(self, test_client, no_credentials, mock_request):
        mock_request.return_value = make_response(status=503, text="model overloaded")
        resp = test_client.post("/api/generate", json={"prompt": "x", "count": 2})
        assert resp.status_code == 500
        data = resp.json()
        assert data["error"] == "Failed to generate image"
        assert "Pollinations API error: 503" in data["details"]
        assert "images" not in data

    def test_huge_integer_count_is_clamped(self, test_client, no_credentials, mock_request):
        resp = test_client.post(
            "/api/generate",
            content='{"prompt": "x", "count": 1' + "0" * 400 + "}",
            headers={"Content-Type": "application/json"},
        )
        assert resp.status_code == 200
        assert len(resp.json()["images"]) == 4

    def test_oversized_reference_for_free_gateway_is_400(self, test_client, no_credentials, mock_request,
                                                         png_data_url, monkeypatch):
        monkeypatch.setattr(Config, "POLLINATIONS_MAX_REFERENCE_BYTES", 8)
        resp = test_client.post("/api/generate", json={"prompt": "edit", "image": png_data_url, "model": "kontext"})
        assert resp.status_code == 400
        assert resp.json()["error"] == "Reference image is too large"
        mock_request.assert_not_called()

    def test_invalid_image_is_400(self, test_client, no_credentials, mock_request):
        resp = test_client.post("/api/generate", json={"prompt": "x", "image": "data:image/png;base64,%%%"})
        assert resp.status_code == 400
        assert "error" in resp.json()
        mock_request.assert_not_called()

    def test_malformed_parameter_is_400(self, test_client, no_credentials, mock_request):
        resp = test_client.post("/api/generate", json={"prompt": "x", "strength": "strong"})
        assert resp.status_code == 400
        assert "strength" in resp.json()["details"]


class TestModels:

    def test_lists_catalog_with_availability(self, test_client, no_credentials):
        resp = test_client.get("/api/models")
        assert resp.status_code == 200
        data = resp.json()
        assert data["default"] in MODELS
        by_id = {m["id"]: m for m in data["models"]}
        assert set(by_id) == set(MODELS)
        assert by_id["flux"]["available"] is True
        assert by_id["gpt-image-1"]["available"] is False

    def test_credentials_enable_models(self, test_client, all_credentials):
        data = test_client.get("/api/models").json()
        assert all(m["available"] for m in data["models"])


def test_healthz(test_client, no_credentials):
    resp = test_client.get("/healthz")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
