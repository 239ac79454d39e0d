"""
Event System - Events, payloads, and transition results.

Events represent:
1. User intents (start capture, confirm, reset)
2. Capture adapter outcomes (artifact captured, capture failed/aborted)
3. Extraction client outcomes (partial result, failure)

All session changes flow through events.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .partial import PartialResult


class EventType(Enum):
    """Types of events the engine accepts."""
    # User intents
    START = "start"
    CONFIRM = "confirm"
    RESET = "reset"

    # Capture adapter
    ARTIFACT_CAPTURED = "artifact_captured"
    CAPTURE_FAILED = "capture_failed"
    CAPTURE_ABORTED = "capture_aborted"

    # Extraction client
    EXTRACTION_SUCCEEDED = "extraction_succeeded"
    EXTRACTION_FAILED = "extraction_failed"


@dataclass
class EventPayload:
    """
    Payload for an event.

    Different event types use different fields.
    This is a generic container; validation happens in the reducer.
    """
    # For ARTIFACT_CAPTURED: Transcript, ImageArtifact, str or bytes
    artifact: Any | None = None

    # For EXTRACTION_SUCCEEDED
    partial: PartialResult | None = None

    # For CAPTURE_FAILED / EXTRACTION_FAILED
    message: str | None = None


@dataclass
class Event:
    """A complete event to be applied to a session."""
    event_type: EventType
    payload: EventPayload = field(default_factory=EventPayload)
    timestamp: float | None = None

    @classmethod
    def start(cls) -> Event:
        return cls(event_type=EventType.START)

    @classmethod
    def confirm(cls) -> Event:
        return cls(event_type=EventType.CONFIRM)

    @classmethod
    def reset(cls) -> Event:
        return cls(event_type=EventType.RESET)

    @classmethod
    def artifact_captured(cls, artifact: Any) -> Event:
        """Factory for a finished capture."""
        return cls(
            event_type=EventType.ARTIFACT_CAPTURED,
            payload=EventPayload(artifact=artifact),
        )

    @classmethod
    def capture_failed(cls, message: str) -> Event:
        return cls(
            event_type=EventType.CAPTURE_FAILED,
            payload=EventPayload(message=message),
        )

    @classmethod
    def capture_aborted(cls) -> Event:
        return cls(event_type=EventType.CAPTURE_ABORTED)

    @classmethod
    def extraction_succeeded(cls, partial: PartialResult) -> Event:
        """Factory for an extraction response."""
        return cls(
            event_type=EventType.EXTRACTION_SUCCEEDED,
            payload=EventPayload(partial=partial),
        )

    @classmethod
    def extraction_failed(cls, message: str) -> Event:
        return cls(
            event_type=EventType.EXTRACTION_FAILED,
            payload=EventPayload(message=message),
        )


@dataclass
class TransitionResult:
    """
    Result of applying an event.

    Contains:
    - Whether the event was accepted
    - New session (if accepted)
    - Error and code (if rejected)
    - Human-readable changes (for UI feedback)
    - Whether the caller must now run an extraction
    """
    success: bool
    new_state: Any | None = None  # Session
    error: str | None = None
    error_code: str | None = None

    changes: list[str] = field(default_factory=list)
    needs_extraction: bool = False

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> TransitionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        needs_extraction: bool = False,
    ) -> TransitionResult:
        """Create a success result with new session."""
        return cls(
            success=True,
            new_state=state,
            changes=changes or [],
            needs_extraction=needs_extraction,
        )
