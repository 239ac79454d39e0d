"""
Capture Loop - The core capture-driven loop.

The loop:
1. User starts a capture (microphone or camera)
2. Adapter reports an artifact (or a failure / abort)
3. Empty artifacts go straight back without calling the model
4. The extraction client turns the artifact into a partial result
5. The engine merges it and picks the next question or review
6. Repeat until the user confirms, or reset after an error

Extraction runs synchronously between the ARTIFACT_CAPTURED and the
EXTRACTION_* events, so one capture is fully reconciled before the next
can begin. Collaborator failures are converted to a message on the
session here; nothing propagates to the caller.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import threading
from typing import Any, TYPE_CHECKING

from ..capture.events import (
    ArtifactCaptured,
    CaptureAborted,
    CaptureEvent,
    CaptureFailed,
    ImageArtifact,
    Transcript,
)
from ..engine_core.errors import CaptureUnavailable, ExtractionFailure
from ..engine_core.event import Event, TransitionResult
from ..engine_core.reducer import Reducer
from ..engine_core.state import Phase, Session

if TYPE_CHECKING:
    from ..extraction.client import ExtractionClient

logger = logging.getLogger(__name__)


@dataclass
class LoopResult:
    """
    Result of one loop step.

    Carries the session snapshot after the step, the human-readable
    changes and any rejection reason.
    """
    success: bool
    session: Session

    changes: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    error_code: str | None = None

    @property
    def phase(self) -> Phase:
        return self.session.phase


class CaptureLoop:
    """
    The main capture loop driver.

    Usage:
        loop = CaptureLoop(Session.create(DICTATION_QUESTIONS), client)

        loop.start()
        result = loop.submit_transcript("Client is Acme, tax ID 123")

        if result.phase == Phase.REVIEW:
            loop.confirm()
    """

    def __init__(
        self,
        session: Session,
        client: ExtractionClient,
        reducer: Reducer | None = None,
    ):
        self.session = session
        self.client = client
        self.reducer = reducer or Reducer()
        self._lock = threading.Lock()

    # =========================================================================
    # User intents
    # =========================================================================

    def start(self) -> LoopResult:
        return self._dispatch(Event.start())

    def confirm(self) -> LoopResult:
        return self._dispatch(Event.confirm())

    def reset(self) -> LoopResult:
        return self._dispatch(Event.reset())

    # =========================================================================
    # Capture adapter events
    # =========================================================================

    def submit(self, capture_event: CaptureEvent) -> LoopResult:
        """Apply a capture adapter event."""
        return self._dispatch(capture_event.to_event())

    def submit_transcript(self, text: str) -> LoopResult:
        return self.submit(ArtifactCaptured(Transcript(text=text)))

    def submit_image(self, data: bytes, mime_type: str = "image/jpeg") -> LoopResult:
        return self.submit(ArtifactCaptured(ImageArtifact(data=data, mime_type=mime_type)))

    def abort(self) -> LoopResult:
        return self.submit(CaptureAborted())

    def fail_capture(self, message: str) -> LoopResult:
        return self.submit(CaptureFailed(message))

    def capture_from(self, adapter: Any) -> LoopResult:
        """
        Run one capture on an adapter and apply its event.

        The adapter may raise CaptureUnavailable instead of returning
        CaptureFailed.
        """
        try:
            capture_event = adapter.capture()
        except CaptureUnavailable as e:
            capture_event = CaptureFailed(e.message)
        return self.submit(capture_event)

    # =========================================================================
    # Internals
    # =========================================================================

    def _dispatch(self, event: Event) -> LoopResult:
        if not self._lock.acquire(blocking=False):
            return LoopResult(
                success=False,
                session=self.session,
                errors=["A capture is already being processed"],
                error_code="SESSION_BUSY",
            )
        try:
            result = self.reducer.apply(self.session, event)
            if not result.success:
                return self._rejected(result)

            self.session = result.new_state
            changes = list(result.changes)

            if result.needs_extraction:
                extraction = self._run_extraction(event.payload.artifact)
                if not extraction.success:
                    return self._rejected(extraction)
                self.session = extraction.new_state
                changes.extend(extraction.changes)

            return LoopResult(success=True, session=self.session, changes=changes)
        finally:
            self._lock.release()

    def _run_extraction(self, artifact: Any) -> TransitionResult:
        """
        Call the extraction client and feed the outcome back as an event.
        """
        from ..extraction.client import ExtractionRequest

        request = ExtractionRequest(
            artifact=self._normalize_artifact(artifact),
            current_record=self.session.record,
            current_question=self.session.current_question,
        )

        try:
            partial = self.client.extract(request)
            event = Event.extraction_succeeded(partial)
        except ExtractionFailure as e:
            logger.error("Extraction failed: %s", e.message)
            event = Event.extraction_failed(e.message)
        except Exception as e:
            logger.exception("Unexpected error from extraction client")
            event = Event.extraction_failed(f"Unexpected error contacting the AI: {e}")

        return self.reducer.apply(self.session, event)

    @staticmethod
    def _normalize_artifact(artifact: Any) -> Transcript | ImageArtifact:
        if isinstance(artifact, str):
            return Transcript(text=artifact)
        if isinstance(artifact, (bytes, bytearray)):
            return ImageArtifact(data=bytes(artifact))
        return artifact

    def _rejected(self, result: TransitionResult) -> LoopResult:
        return LoopResult(
            success=False,
            session=self.session,
            errors=[result.error] if result.error else [],
            error_code=result.error_code,
        )
