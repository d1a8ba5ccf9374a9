"""Integration tests for POST /api/chat and POST /api/companion."""
from unittest.mock import patch

import pytest

from common.error_messages import ErrorCode, ServiceError
from common.personas import COMPANION_PERSONA
from common.text_service import ChatReply
from chat.services import extract_image_prompt

MESSAGES = [{"role": "user", "content": "Hello!"}]


class TestChat:

    def test_streams_reply(self, test_client, all_credentials):
        with patch("chat.services.stream_text", return_value=iter(["Hel", "lo ", "there"])) as mocked:
            resp = test_client.post("/api/chat", json={"messages": MESSAGES})
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.text == "Hello there"
        messages, system = mocked.call_args.args[:2]
        assert messages[0].content == "Hello!"
        assert system == "You are a helpful, creative AI assistant."

    def test_one_shot_reply(self, test_client, all_credentials):
        with patch("chat.services.generate_text", return_value=ChatReply(text="Hi!", model="gemini-2.0-flash")):
            resp = test_client.post("/api/chat", json={"messages": MESSAGES, "stream": False})
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "text": "Hi!", "model": "gemini-2.0-flash"}

    @pytest.mark.parametrize("body", [{}, {"messages": []}, {"messages": [{"role": "user", "content": "  "}]}])
    def test_missing_messages_is_400(self, test_client, all_credentials, body):
        with patch("chat.services.stream_text") as mocked:
            resp = test_client.post("/api/chat", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Messages are required"
        mocked.assert_not_called()

    def test_invalid_role_is_400(self, test_client, all_credentials):
        resp = test_client.post("/api/chat", json={"messages": [{"role": "robot", "content": "hi"}]})
        assert resp.status_code == 400

    def test_upstream_failure_before_first_chunk_is_500(self, test_client, all_credentials):
        def failing():
            raise ServiceError(ErrorCode.PROVIDER_ERROR, details="Gemini API error: 429 quota")
            yield  # pragma: no cover

        with patch("chat.services.stream_text", return_value=failing()):
            resp = test_client.post("/api/chat", json={"messages": MESSAGES})
        assert resp.status_code == 500
        assert "429 quota" in resp.json()["details"]

    def test_no_chat_credential_is_500_with_hint(self, test_client, no_credentials):
        resp = test_client.post("/api/chat", json={"messages": MESSAGES})
        assert resp.status_code == 500
        data = resp.json()
        assert "credential" in data["error"]
        assert "GEMINI_API_KEY" in data["details"]

    def test_multimodal_message_is_accepted(self, test_client, all_credentials, png_data_url):
        body = {"messages": [{"role": "user", "content": [
            {"type": "text", "text": "What is this?"},
            {"type": "image", "image": png_data_url},
        ]}]}
        with patch("chat.services.stream_text", return_value=iter(["A square."])) as mocked:
            resp = test_client.post("/api/chat", json=body)
        assert resp.status_code == 200
        message = mocked.call_args.args[0][0]
        assert message.text() == "What is this?"
        assert len(message.image_parts()) == 1


class TestCompanion:

    REPLY = "Hey there! 😊 Just got back from the lake.\n\n[IMAGE]: woman in a yellow raincoat by a lake at sunset"

    def test_reply_with_image(self, test_client, all_credentials):
        with patch("chat.services.generate_text", return_value=ChatReply(text=self.REPLY, model="m")), \
                patch("chat.services.generate_single_image", return_value="data:image/png;base64,AAAA") as image_mock:
            resp = test_client.post("/api/companion", json={"message": "hi"})

        assert resp.status_code == 200
        data = resp.json()
        assert data == {
            "success": True,
            "text": "Hey there! 😊 Just got back from the lake.",
            "image": "data:image/png;base64,AAAA",
            "image_prompt": "woman in a yellow raincoat by a lake at sunset",
            "message": "hi",
        }
        prompt = image_mock.call_args.args[0]
        assert "woman in a yellow raincoat by a lake at sunset" in prompt

    def test_image_failure_is_downgraded_to_null(self, test_client, all_credentials):
        with patch("chat.services.generate_text", return_value=ChatReply(text=self.REPLY, model="m")), \
                patch("chat.services.generate_single_image", side_effect=ServiceError(ErrorCode.PROVIDER_ERROR)):
            resp = test_client.post("/api/companion", json={"message": "hi"})
        assert resp.status_code == 200
        assert resp.json()["success"] is True
        assert resp.json()["image"] is None
        assert resp.json()["image_prompt"]

    def test_no_image_credential_skips_image(self, test_client, monkeypatch, all_credentials):
        from config import Config
        monkeypatch.setattr(Config, "HF_TOKEN", "")
        monkeypatch.setattr(Config, "COMPANION_IMAGE_MODEL", "flux-schnell")
        with patch("chat.services.generate_text", return_value=ChatReply(text=self.REPLY, model="m")), \
                patch("chat.services.generate_single_image") as image_mock:
            resp = test_client.post("/api/companion", json={"message": "hi"})
        assert resp.json()["image"] is None
        image_mock.assert_not_called()

    def test_generate_image_false(self, test_client, all_credentials):
        with patch("chat.services.generate_text", return_value=ChatReply(text=self.REPLY, model="m")), \
                patch("chat.services.generate_single_image") as image_mock:
            resp = test_client.post("/api/companion", json={"message": "hi", "generate_image": False})
        assert resp.json()["image"] is None
        assert resp.json()["image_prompt"] == "woman in a yellow raincoat by a lake at sunset"
        image_mock.assert_not_called()

    def test_persona_and_history(self, test_client, all_credentials):
        history = [
            {"role": "user", "content": "I like cats"},
            {"role": "assistant", "content": "Me too!"},
        ]
        with patch("chat.services.generate_text", return_value=ChatReply(text="Purr.", model="m")) as text_mock:
            resp = test_client.post("/api/companion", json={
                "message": "Tell me more", "history": history, "persona": "You are a pirate.",
            })
        assert resp.status_code == 200
        messages, system = text_mock.call_args.args[:2]
        assert system == "You are a pirate."
        assert [m.content for m in messages] == ["I like cats", "Me too!", "Tell me more"]
        assert resp.json()["image_prompt"] == ""

    def test_default_persona(self, test_client, all_credentials):
        with patch("chat.services.generate_text", return_value=ChatReply(text="Hi", model="m")) as text_mock:
            test_client.post("/api/companion", json={"message": "hi"})
        assert text_mock.call_args.args[1] == COMPANION_PERSONA

    @pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": 5}])
    def test_missing_message_is_400(self, test_client, all_credentials, body):
        with patch("chat.services.generate_text") as text_mock:
            resp = test_client.post("/api/companion", json=body)
        assert resp.status_code == 400
        assert resp.json()["error"] == "Message is required"
        text_mock.assert_not_called()

    def test_unexpected_chat_failure_is_wrapped(self, test_client, all_credentials):
        with patch("chat.services.generate_text", side_effect=RuntimeError("socket closed")):
            resp = test_client.post("/api/companion", json={"message": "hi"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to generate response", "details": "socket closed"}

    def test_chat_failure_is_500(self, test_client, all_credentials):
        with patch("chat.services.generate_text", side_effect=ServiceError(ErrorCode.PROVIDER_ERROR, details="down")):
            resp = test_client.post("/api/companion", json={"message": "hi"})
        assert resp.status_code == 500
        assert resp.json()["details"] == "down"


class TestExtractImagePrompt:

    def test_marker_is_removed(self):
        text, prompt = extract_image_prompt("Hello!\n[IMAGE]: a cat on a sofa")
        assert text == "Hello!"
        assert prompt == "a cat on a sofa"

    def test_marker_is_case_insensitive(self):
        text, prompt = extract_image_prompt("Hi\n[image]:   sunny beach  \nBye")
        assert prompt == "sunny beach"
        assert "[image]" not in text
        assert "Bye" in text

    def test_no_marker(self):
        assert extract_image_prompt("  Just text  ") == ("Just text", "")
