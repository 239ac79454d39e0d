"""
Tests for the Gemini extraction client.

The HTTP session is a mock; no network access.

Tests:
- Configuration errors
- Request body for transcripts and images
- Error mapping to ExtractionFailure
- Retry of transient transport errors
"""

import base64
import json
from io import BytesIO
from unittest.mock import MagicMock

import pytest
import requests
from PIL import Image

from ..capture.events import ImageArtifact, Transcript
from ..config import GeminiConfig
from ..engine_core.errors import ConfigurationError, ExtractionFailure
from ..engine_core.state import Party, Record
from ..extraction.client import ExtractionRequest, GeminiExtractionClient
from ..extraction.image import prepare_image


def gemini_reply(data: dict) -> MagicMock:
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = {
        "candidates": [{"content": {"parts": [{"text": json.dumps(data)}]}}]
    }
    return response


def make_jpeg(width: int = 64, height: int = 32, mode: str = "RGB") -> bytes:
    buffer = BytesIO()
    Image.new(mode, (width, height), color=0).save(
        buffer, format="PNG" if mode == "RGBA" else "JPEG"
    )
    return buffer.getvalue()


@pytest.fixture
def http():
    return MagicMock(spec=requests.Session)


@pytest.fixture
def client(http):
    config = GeminiConfig(api_key="test-key", max_retries=2)
    return GeminiExtractionClient(config, session=http)


def transcript_request(text="Client Acme, ID 123") -> ExtractionRequest:
    return ExtractionRequest(
        artifact=Transcript(text),
        current_record=Record(party=Party(name="Old")),
        current_question="Who is the client?",
    )


class TestConfiguration:

    def test_missing_key_raises(self):
        with pytest.raises(ConfigurationError) as exc_info:
            GeminiExtractionClient(GeminiConfig(api_key=None))

        assert "GEMINI_API_KEY" in exc_info.value.message

    def test_provider_name(self, client):
        assert client.get_provider_name() == "Gemini"


class TestTranscriptExtraction:

    def test_returns_partial_result(self, client, http):
        http.post.return_value = gemini_reply({
            "party": {"name": "Acme", "id": "123"},
            "lineItems": [],
            "complete": False,
        })

        partial = client.extract(transcript_request())

        assert partial.party.name == "Acme"
        assert partial.party.id == "123"
        assert partial.line_items == ()

    def test_request_shape(self, client, http):
        http.post.return_value = gemini_reply({})

        client.extract(transcript_request())

        args, kwargs = http.post.call_args
        assert args[0].endswith("/models/gemini-2.5-flash:generateContent")
        assert kwargs["headers"] == {"x-goog-api-key": "test-key"}
        body = kwargs["json"]
        assert body["generationConfig"]["responseMimeType"] == "application/json"
        assert "responseSchema" in body["generationConfig"]
        prompt = body["contents"][0]["parts"][0]["text"]
        assert "Client Acme, ID 123" in prompt
        assert "Who is the client?" in prompt
        assert "Old" in prompt


class TestImageExtraction:

    def test_image_is_sent_inline(self, client, http):
        http.post.return_value = gemini_reply({"notes": "Total: 10"})
        request = ExtractionRequest(
            artifact=ImageArtifact(data=make_jpeg()),
            current_record=Record(),
        )

        partial = client.extract(request)

        assert partial.notes == "Total: 10"
        parts = http.post.call_args.kwargs["json"]["contents"][0]["parts"]
        assert parts[0]["inline_data"]["mime_type"] == "image/jpeg"
        assert base64.b64decode(parts[0]["inline_data"]["data"])[:2] == b"\xff\xd8"

    def test_undecodable_image_fails(self, client, http):
        request = ExtractionRequest(
            artifact=ImageArtifact(data=b"not an image"),
            current_record=Record(),
        )

        with pytest.raises(ExtractionFailure):
            client.extract(request)
        http.post.assert_not_called()


class TestErrors:

    def test_http_error_status(self, client, http):
        response = MagicMock(status_code=500, text="internal")
        http.post.return_value = response

        with pytest.raises(ExtractionFailure) as exc_info:
            client.extract(transcript_request())

        assert "500" in exc_info.value.message
        assert http.post.call_count == 1

    def test_blocked_prompt(self, client, http):
        response = MagicMock(status_code=200)
        response.json.return_value = {"promptFeedback": {"blockReason": "SAFETY"}}
        http.post.return_value = response

        with pytest.raises(ExtractionFailure) as exc_info:
            client.extract(transcript_request())

        assert "SAFETY" in exc_info.value.message

    def test_non_json_model_text(self, client, http):
        response = MagicMock(status_code=200)
        response.json.return_value = {
            "candidates": [{"content": {"parts": [{"text": "Sorry, no idea"}]}}]
        }
        http.post.return_value = response

        with pytest.raises(ExtractionFailure):
            client.extract(transcript_request())

    def test_connection_error_is_retried(self, client, http):
        http.post.side_effect = [
            requests.exceptions.ConnectionError("reset by peer"),
            gemini_reply({"notes": "ok"}),
        ]

        partial = client.extract(transcript_request())

        assert partial.notes == "ok"
        assert http.post.call_count == 2

    def test_persistent_timeout_fails(self, client, http):
        http.post.side_effect = requests.exceptions.Timeout()

        with pytest.raises(ExtractionFailure) as exc_info:
            client.extract(transcript_request())

        assert "timed out" in exc_info.value.message
        assert http.post.call_count == 2


class TestPrepareImage:

    def test_large_image_is_downscaled(self):
        encoded, mime_type = prepare_image(make_jpeg(2000, 1000), max_size=500)

        image = Image.open(BytesIO(base64.b64decode(encoded)))
        assert mime_type == "image/jpeg"
        assert image.size == (500, 250)

    def test_transparent_image_is_converted(self):
        encoded, _ = prepare_image(make_jpeg(10, 10, mode="RGBA"))

        image = Image.open(BytesIO(base64.b64decode(encoded)))
        assert image.mode == "RGB"

    def test_garbage_raises(self):
        with pytest.raises(ExtractionFailure):
            prepare_image(b"\x00\x01\x02")
