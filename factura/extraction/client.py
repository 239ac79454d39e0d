"""
Extraction client for the generative model.

The engine only sees the logical contract:
    ExtractionRequest(artifact, current_record, current_question)
        -> PartialResult, or raises ExtractionFailure

Transport, authentication and model identifiers stay in here. The
client is always constructed from explicit configuration and injected
into whoever needs it; there is no shared instance and no default key.
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..capture.events import ImageArtifact, Transcript
from ..config import GeminiConfig
from ..engine_core.errors import ConfigurationError, ExtractionFailure
from ..engine_core.partial import PartialResult
from ..engine_core.state import Record
from .image import prepare_image
from .parser import ResponseParser
from .prompts import RESPONSE_SCHEMA, ExtractionPrompts

logger = logging.getLogger(__name__)


class TransientTransportError(Exception):
    """Connection error or timeout; retried inside the client."""
    pass


@dataclass
class ExtractionRequest:
    """Everything the model needs for one extraction."""
    artifact: Transcript | ImageArtifact
    current_record: Record
    current_question: str | None = None


class ExtractionClient(ABC):
    """Abstract base class for extraction clients."""

    @abstractmethod
    def extract(self, request: ExtractionRequest) -> PartialResult:
        """Extract a partial result. Raises ExtractionFailure."""
        pass

    @abstractmethod
    def get_provider_name(self) -> str:
        pass


class GeminiExtractionClient(ExtractionClient):
    """Client for Google Gemini's generateContent REST endpoint."""

    def __init__(
        self,
        config: GeminiConfig,
        session: requests.Session | None = None,
        parser: ResponseParser | None = None,
    ):
        valid, message = config.validate_api_key()
        if not valid:
            raise ConfigurationError(message)
        self.config = config
        self.base_url = config.base_url.rstrip("/")
        self.http = session or requests.Session()
        self.parser = parser or ResponseParser()

    def get_provider_name(self) -> str:
        return "Gemini"

    def extract(self, request: ExtractionRequest) -> PartialResult:
        """Extract invoice data from a transcript or an image."""
        body = self._build_body(request)
        try:
            payload = self._post(body)
        except TransientTransportError as e:
            raise ExtractionFailure(f"AI error: {e}")

        text = self._response_text(payload)
        partial = self.parser.parse_response(text)
        logger.info(
            "%s extraction: %d item(s), complete=%s",
            self.get_provider_name(),
            len(partial.line_items),
            partial.complete,
        )
        return partial

    def _build_body(self, request: ExtractionRequest) -> dict[str, Any]:
        record = request.current_record.to_dict()
        artifact = request.artifact

        if isinstance(artifact, ImageArtifact):
            encoded, mime_type = prepare_image(artifact.data, max_size=self.config.image_max_size)
            parts = [
                {"inline_data": {"mime_type": mime_type, "data": encoded}},
                {"text": ExtractionPrompts.receipt(record)},
            ]
        elif isinstance(artifact, Transcript):
            parts = [{
                "text": ExtractionPrompts.dictation(
                    artifact.text, record, request.current_question
                ),
            }]
        else:
            raise ExtractionFailure(f"Unsupported artifact type: {type(artifact).__name__}")

        return {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "temperature": self.config.temperature,
                "responseMimeType": "application/json",
                "responseSchema": RESPONSE_SCHEMA,
            },
        }

    def _post(self, body: dict[str, Any]) -> dict[str, Any]:
        # Wrapped at call time so max_retries comes from this client's config
        send = retry(
            stop=stop_after_attempt(self.config.max_retries),
            wait=wait_exponential(multiplier=1, min=1, max=8),
            retry=retry_if_exception_type(TransientTransportError),
            reraise=True,
        )(self._send)
        return send(body)

    def _send(self, body: dict[str, Any]) -> dict[str, Any]:
        url = f"{self.base_url}/models/{self.config.model}:generateContent"
        try:
            response = self.http.post(
                url,
                headers={"x-goog-api-key": self.config.api_key},
                json=body,
                timeout=self.config.timeout,
            )
        except requests.exceptions.ConnectionError as e:
            logger.warning("Connection to Gemini failed: %s", e)
            raise TransientTransportError(f"Failed to connect to the model service: {e}")
        except requests.exceptions.Timeout:
            logger.warning("Gemini request timed out after %ss", self.config.timeout)
            raise TransientTransportError("The model service timed out")

        if response.status_code != 200:
            raise ExtractionFailure(
                f"AI error: the model service returned status {response.status_code}: "
                f"{response.text[:200]}"
            )

        try:
            return response.json()
        except ValueError:
            raise ExtractionFailure("AI error: the model service returned a non-JSON body")

    @staticmethod
    def _response_text(payload: dict[str, Any]) -> str:
        candidates = payload.get("candidates") or []
        if not candidates:
            feedback = payload.get("promptFeedback", {})
            reason = feedback.get("blockReason", "no candidates returned")
            raise ExtractionFailure(f"AI error: {reason}")

        parts = (candidates[0].get("content") or {}).get("parts") or []
        text = "".join(part.get("text", "") for part in parts)
        if not text.strip():
            raise ExtractionFailure("AI error: the model returned no text")
        return text
