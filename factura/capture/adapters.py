"""
Capture Adapters - Turn devices and files into capture events.

The browser camera and speech recognizer live outside this package.
These adapters cover the same boundary for terminals and servers:
- StdinDictationAdapter: one dictated answer per line of text
- ImageFileAdapter: one receipt photo per file
"""

from __future__ import annotations
import logging
import mimetypes
from pathlib import Path
from typing import TextIO

from .events import (
    ArtifactCaptured,
    CaptureAborted,
    CaptureEvent,
    CaptureFailed,
    ImageArtifact,
    Transcript,
)

logger = logging.getLogger(__name__)


class StdinDictationAdapter:
    """
    Reads dictated answers from a text stream.

    An empty line is an empty transcript (the engine ignores it);
    end of stream is an abort.
    """

    def __init__(self, stream: TextIO):
        self.stream = stream

    def capture(self) -> CaptureEvent:
        line = self.stream.readline()
        if line == "":
            return CaptureAborted()
        return ArtifactCaptured(Transcript(text=line.rstrip("\n")))


class ImageFileAdapter:
    """Reads a receipt photo from disk."""

    SUPPORTED_TYPES = {"image/jpeg", "image/png", "image/webp", "image/heic"}

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def capture(self) -> CaptureEvent:
        if not self.path.exists():
            return CaptureFailed(f"Image file not found: {self.path}")

        mime_type, _ = mimetypes.guess_type(self.path.name)
        if mime_type not in self.SUPPORTED_TYPES:
            return CaptureFailed(f"Unsupported image type: {mime_type or self.path.suffix}")

        try:
            data = self.path.read_bytes()
        except OSError as e:
            return CaptureFailed(f"Could not read image file: {e}")

        logger.info("Captured %s (%d bytes)", self.path, len(data))
        return ArtifactCaptured(
            ImageArtifact(data=data, mime_type=mime_type, source=str(self.path))
        )
