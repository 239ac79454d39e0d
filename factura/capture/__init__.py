"""
Capture Layer - Raw artifact input.

Capture adapters produce transcripts or images and report them to the
engine as discrete events. They never mutate the session.

Architecture:
    Device/File -> Adapter -> CaptureEvent -> CaptureLoop -> Reducer
"""

from .events import (
    Transcript,
    ImageArtifact,
    Artifact,
    ArtifactCaptured,
    CaptureFailed,
    CaptureAborted,
    CaptureEvent,
)
from .adapters import StdinDictationAdapter, ImageFileAdapter

__all__ = [
    "Transcript",
    "ImageArtifact",
    "Artifact",
    "ArtifactCaptured",
    "CaptureFailed",
    "CaptureAborted",
    "CaptureEvent",
    "StdinDictationAdapter",
    "ImageFileAdapter",
]
