"""
Reducer - Applies events to a capture session.

The reducer is the single point of session mutation.
All phase changes must go through apply_event().

Design principles:
- Pure function: (session, event) -> new session
- Validates the (phase, event) pair against the transition table first
- Returns TransitionResult with success/failure
- Delegates record merging to the reconcile module
"""

from __future__ import annotations
from dataclasses import dataclass
import logging

from .errors import InvalidTransition
from .event import Event, EventType, TransitionResult
from .partial import PartialResult
from .reconcile import is_empty_artifact, merge, resume_phase
from .state import Phase, Record, Session

logger = logging.getLogger(__name__)


# Which events each phase accepts. Anything else is a precondition failure.
TRANSITIONS: dict[Phase, frozenset[EventType]] = {
    Phase.IDLE: frozenset({EventType.START, EventType.RESET}),
    Phase.CAPTURING: frozenset({
        EventType.ARTIFACT_CAPTURED,
        EventType.CAPTURE_FAILED,
        EventType.CAPTURE_ABORTED,
        EventType.RESET,
    }),
    Phase.PROCESSING: frozenset({
        EventType.EXTRACTION_SUCCEEDED,
        EventType.EXTRACTION_FAILED,
    }),
    Phase.GUIDED: frozenset({EventType.START, EventType.RESET}),
    Phase.REVIEW: frozenset({EventType.START, EventType.CONFIRM, EventType.RESET}),
    Phase.FINALIZED: frozenset({EventType.RESET}),
    Phase.ERROR: frozenset({EventType.RESET}),
}


@dataclass
class Reducer:
    """
    Reducer applies events to sessions.

    Stateless - all state is in Session.
    preserve_record_on_reset decides whether a reset out of ERROR keeps
    the accumulated record.
    """
    preserve_record_on_reset: bool = False

    def apply(self, session: Session, event: Event) -> TransitionResult:
        """
        Apply an event to the session.

        Returns TransitionResult with new session or error.
        """
        validation_error = self._validate_event(session, event)
        if validation_error:
            logger.warning(validation_error)
            return TransitionResult.failure(validation_error, error_code="INVALID_TRANSITION")

        handler = self._get_handler(event.event_type)
        if not handler:
            return TransitionResult.failure(
                f"No handler for event type: {event.event_type}",
                error_code="NO_HANDLER",
            )

        result = handler(session, event)
        if result.success and result.new_state is not None:
            logger.info(
                "%s: %s -> %s",
                event.event_type.value,
                session.phase.value,
                result.new_state.phase.value,
            )
        return result

    def _validate_event(self, session: Session, event: Event) -> str | None:
        """
        Validate that an event is accepted in the current phase.

        Returns error message if invalid, None if valid.
        """
        allowed = TRANSITIONS.get(session.phase, frozenset())
        if event.event_type in allowed:
            return None

        if session.phase == Phase.PROCESSING:
            return (
                f"Cannot handle {event.event_type.value} while an extraction "
                f"is in progress"
            )
        return f"Event {event.event_type.value} is not allowed in phase {session.phase.value}"

    def _get_handler(self, event_type: EventType):
        """Get the handler function for an event type."""
        handlers = {
            EventType.START: self._handle_start,
            EventType.ARTIFACT_CAPTURED: self._handle_artifact_captured,
            EventType.CAPTURE_FAILED: self._handle_capture_failed,
            EventType.CAPTURE_ABORTED: self._handle_capture_aborted,
            EventType.EXTRACTION_SUCCEEDED: self._handle_extraction_succeeded,
            EventType.EXTRACTION_FAILED: self._handle_extraction_failed,
            EventType.CONFIRM: self._handle_confirm,
            EventType.RESET: self._handle_reset,
        }
        return handlers.get(event_type)

    def _handle_start(self, session: Session, event: Event) -> TransitionResult:
        new_session = session._copy_with(phase=Phase.CAPTURING, last_error=None)
        return TransitionResult.success_with_state(
            new_session,
            changes=["Capture started"],
        )

    def _handle_artifact_captured(self, session: Session, event: Event) -> TransitionResult:
        """Empty captures go back without touching the record."""
        if is_empty_artifact(event.payload.artifact):
            new_session = session._copy_with(phase=resume_phase(session))
            return TransitionResult.success_with_state(
                new_session,
                changes=["Nothing was captured"],
            )

        new_session = session._copy_with(phase=Phase.PROCESSING)
        return TransitionResult.success_with_state(
            new_session,
            changes=["Artifact captured, extracting data"],
            needs_extraction=True,
        )

    def _handle_capture_failed(self, session: Session, event: Event) -> TransitionResult:
        message = event.payload.message or "Capture device is unavailable"
        new_session = session._copy_with(phase=Phase.ERROR, last_error=message)
        return TransitionResult.success_with_state(
            new_session,
            changes=[f"Capture failed: {message}"],
        )

    def _handle_capture_aborted(self, session: Session, event: Event) -> TransitionResult:
        new_session = session._copy_with(phase=resume_phase(session))
        return TransitionResult.success_with_state(
            new_session,
            changes=["Capture cancelled"],
        )

    def _handle_extraction_succeeded(self, session: Session, event: Event) -> TransitionResult:
        partial = event.payload.partial or PartialResult.empty()
        new_session = merge(session, partial)

        changes = []
        if partial.is_empty:
            changes.append("No new data was extracted")
        if partial.party and partial.party.supplied():
            changes.append(
                "Party updated: " + ", ".join(sorted(partial.party.supplied()))
            )
        if partial.line_items:
            changes.append(f"Added {len(partial.line_items)} line item(s)")
        if partial.notes is not None:
            changes.append("Notes replaced")
        if new_session.phase == Phase.REVIEW:
            changes.append("Record ready for review")
        else:
            changes.append(f"Next question: {new_session.current_question}")

        return TransitionResult.success_with_state(new_session, changes=changes)

    def _handle_extraction_failed(self, session: Session, event: Event) -> TransitionResult:
        """The record is kept as-is; only a reset leaves ERROR."""
        message = event.payload.message or "Unknown extraction error"
        new_session = session._copy_with(phase=Phase.ERROR, last_error=message)
        return TransitionResult.success_with_state(
            new_session,
            changes=[f"Extraction failed: {message}"],
        )

    def _handle_confirm(self, session: Session, event: Event) -> TransitionResult:
        new_session = session._copy_with(phase=Phase.FINALIZED)
        return TransitionResult.success_with_state(
            new_session,
            changes=["Record finalized"],
        )

    def _handle_reset(self, session: Session, event: Event) -> TransitionResult:
        keep_record = (
            self.preserve_record_on_reset and session.phase == Phase.ERROR
        )
        new_session = Session(
            questions=session.questions,
            record=session.record if keep_record else Record(),
        )
        change = "Session reset, record kept" if keep_record else "Session reset"
        return TransitionResult.success_with_state(new_session, changes=[change])


def apply_event(
    session: Session,
    event: Event,
    preserve_record_on_reset: bool = False,
) -> TransitionResult:
    """
    Convenience function to apply an event.
    """
    reducer = Reducer(preserve_record_on_reset=preserve_record_on_reset)
    return reducer.apply(session, event)


def apply_event_or_raise(
    session: Session,
    event: Event,
    preserve_record_on_reset: bool = False,
) -> Session:
    """
    Apply an event and return the new session.

    Raises InvalidTransition when the event is not allowed.
    """
    result = apply_event(session, event, preserve_record_on_reset)
    if not result.success:
        raise InvalidTransition(
            result.error or "Invalid transition",
            phase=session.phase,
            event_type=event.event_type,
        )
    return result.new_state
