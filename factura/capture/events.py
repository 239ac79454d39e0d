"""
Capture Events - Discrete messages emitted by capture adapters.

Adapters never touch the session. They emit one of:
- ArtifactCaptured: a transcript or an image is ready
- CaptureFailed: permission/device/support failure
- CaptureAborted: the user stopped capturing before anything arrived

The capture loop converts these into engine events.
"""

from __future__ import annotations
from dataclasses import dataclass
import time
from typing import Union

from ..engine_core.event import Event


@dataclass(frozen=True)
class Transcript:
    """Dictated text from a speech recognizer."""
    text: str

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()


@dataclass(frozen=True)
class ImageArtifact:
    """
    A captured photo.

    One image per capture; the bytes are opaque to the engine.
    """
    data: bytes
    mime_type: str = "image/jpeg"
    source: str | None = None  # file path or device label, for logs

    @property
    def is_empty(self) -> bool:
        return len(self.data) == 0


Artifact = Union[Transcript, ImageArtifact]


@dataclass(frozen=True)
class ArtifactCaptured:
    artifact: Artifact
    timestamp: float = 0.0

    def to_event(self) -> Event:
        event = Event.artifact_captured(self.artifact)
        event.timestamp = self.timestamp or time.time()
        return event


@dataclass(frozen=True)
class CaptureFailed:
    message: str
    timestamp: float = 0.0

    def to_event(self) -> Event:
        event = Event.capture_failed(self.message)
        event.timestamp = self.timestamp or time.time()
        return event


@dataclass(frozen=True)
class CaptureAborted:
    timestamp: float = 0.0

    def to_event(self) -> Event:
        event = Event.capture_aborted()
        event.timestamp = self.timestamp or time.time()
        return event


CaptureEvent = Union[ArtifactCaptured, CaptureFailed, CaptureAborted]
