"""
Tests for the reducer.

Tests:
- Transition table: allowed and rejected events per phase
- Empty artifacts short-circuit without extraction
- Capture failures and extraction failures
- Reset policy
"""

import pytest

from ..engine_core.errors import InvalidTransition
from ..engine_core.event import Event, EventType
from ..engine_core.partial import PartialResult, PartyPatch
from ..engine_core.reducer import TRANSITIONS, Reducer, apply_event, apply_event_or_raise
from ..engine_core.state import LineItem, Party, Phase, Record
from ..capture.events import ImageArtifact, Transcript


def events_for(event_type: EventType) -> Event:
    return {
        EventType.START: Event.start(),
        EventType.CONFIRM: Event.confirm(),
        EventType.RESET: Event.reset(),
        EventType.ARTIFACT_CAPTURED: Event.artifact_captured(Transcript("Acme")),
        EventType.CAPTURE_FAILED: Event.capture_failed("Microphone permission denied"),
        EventType.CAPTURE_ABORTED: Event.capture_aborted(),
        EventType.EXTRACTION_SUCCEEDED: Event.extraction_succeeded(PartialResult.empty()),
        EventType.EXTRACTION_FAILED: Event.extraction_failed("AI error"),
    }[event_type]


class TestTransitionTable:
    """Every (phase, event) pair is either in the table or rejected."""

    @pytest.mark.parametrize("phase", list(Phase))
    @pytest.mark.parametrize("event_type", list(EventType))
    def test_pair_follows_table(self, dictation_session, phase, event_type):
        session = dictation_session._copy_with(phase=phase)
        result = apply_event(session, events_for(event_type))

        assert result.success == (event_type in TRANSITIONS[phase])
        if not result.success:
            assert result.error_code == "INVALID_TRANSITION"
            assert result.new_state is None

    def test_every_phase_has_an_entry(self):
        assert set(TRANSITIONS) == set(Phase)

    def test_processing_only_accepts_extraction_outcomes(self):
        assert TRANSITIONS[Phase.PROCESSING] == {
            EventType.EXTRACTION_SUCCEEDED,
            EventType.EXTRACTION_FAILED,
        }

    def test_reset_allowed_outside_processing(self):
        for phase in Phase:
            if phase == Phase.PROCESSING:
                continue
            assert EventType.RESET in TRANSITIONS[phase]


class TestRejections:

    def test_start_while_processing_is_rejected(self, dictation_session):
        session = dictation_session._copy_with(phase=Phase.PROCESSING)
        result = apply_event(session, Event.start())

        assert not result.success
        assert "in progress" in result.error

    def test_confirm_from_guided_is_rejected(self, dictation_session):
        session = dictation_session._copy_with(phase=Phase.GUIDED, question_index=1)
        result = apply_event(session, Event.confirm())

        assert not result.success
        assert "guided" in result.error

    def test_start_from_finalized_is_rejected(self, review_session):
        finalized = apply_event(review_session, Event.confirm()).new_state
        result = apply_event(finalized, Event.start())

        assert not result.success

    def test_rejection_leaves_session_untouched(self, review_session):
        before = review_session
        apply_event(review_session, Event.extraction_failed("late"))

        assert review_session == before

    def test_apply_event_or_raise(self, dictation_session):
        with pytest.raises(InvalidTransition) as exc_info:
            apply_event_or_raise(dictation_session, Event.confirm())

        assert exc_info.value.phase == Phase.IDLE
        assert exc_info.value.event_type == EventType.CONFIRM

    def test_apply_event_or_raise_returns_session(self, dictation_session):
        session = apply_event_or_raise(dictation_session, Event.start())

        assert session.phase == Phase.CAPTURING


class TestStart:

    def test_start_from_idle(self, dictation_session):
        result = apply_event(dictation_session, Event.start())

        assert result.success
        assert result.new_state.phase == Phase.CAPTURING
        assert result.new_state.record == dictation_session.record

    def test_start_from_review_keeps_record(self, review_session):
        result = apply_event(review_session, Event.start())

        assert result.new_state.phase == Phase.CAPTURING
        assert result.new_state.record == review_session.record
        assert result.new_state.question_index == review_session.question_index


class TestArtifactCaptured:

    def test_non_empty_artifact_needs_extraction(self, dictation_session):
        session = dictation_session._copy_with(phase=Phase.CAPTURING)
        result = apply_event(session, Event.artifact_captured(Transcript("Client Acme")))

        assert result.new_state.phase == Phase.PROCESSING
        assert result.needs_extraction

    def test_empty_transcript_at_first_question_returns_to_idle(self, dictation_session):
        session = dictation_session._copy_with(phase=Phase.CAPTURING)
        result = apply_event(session, Event.artifact_captured(Transcript("   ")))

        assert result.new_state.phase == Phase.IDLE
        assert not result.needs_extraction
        assert result.new_state.record == session.record

    def test_empty_transcript_later_returns_to_guided(self, dictation_session, populated_record):
        session = dictation_session._copy_with(
            phase=Phase.CAPTURING,
            question_index=2,
            record=populated_record,
        )
        result = apply_event(session, Event.artifact_captured(""))

        assert result.new_state.phase == Phase.GUIDED
        assert result.new_state.question_index == 2
        assert result.new_state.record == populated_record
        assert not result.needs_extraction

    def test_empty_image_is_ignored(self, receipt_session):
        session = receipt_session._copy_with(phase=Phase.CAPTURING)
        result = apply_event(session, Event.artifact_captured(ImageArtifact(data=b"")))

        assert result.new_state.phase == Phase.IDLE
        assert not result.needs_extraction


class TestCaptureOutcomes:

    def test_capture_failed_goes_to_error(self, dictation_session):
        session = dictation_session._copy_with(phase=Phase.CAPTURING)
        result = apply_event(session, Event.capture_failed("Microphone permission denied"))

        assert result.new_state.phase == Phase.ERROR
        assert result.new_state.last_error == "Microphone permission denied"

    def test_capture_aborted_at_first_question(self, dictation_session):
        session = dictation_session._copy_with(phase=Phase.CAPTURING)
        result = apply_event(session, Event.capture_aborted())

        assert result.new_state.phase == Phase.IDLE

    def test_capture_aborted_mid_sequence(self, dictation_session):
        session = dictation_session._copy_with(phase=Phase.CAPTURING, question_index=1)
        result = apply_event(session, Event.capture_aborted())

        assert result.new_state.phase == Phase.GUIDED
        assert result.new_state.question_index == 1


class TestExtractionOutcomes:

    def test_extraction_succeeded_merges(self, dictation_session):
        session = dictation_session._copy_with(phase=Phase.PROCESSING)
        partial = PartialResult(
            party=PartyPatch(name="Acme", id="123"),
            line_items=(LineItem("Bolt", 10, 2),),
        )
        result = apply_event(session, Event.extraction_succeeded(partial))

        assert result.new_state.phase == Phase.REVIEW
        assert result.new_state.record.party == Party(name="Acme", id="123")
        assert "Record ready for review" in result.changes

    def test_extraction_succeeded_reports_next_question(self, dictation_session):
        session = dictation_session._copy_with(phase=Phase.PROCESSING)
        result = apply_event(session, Event.extraction_succeeded(PartialResult.empty()))

        assert result.new_state.phase == Phase.GUIDED
        assert result.changes[-1] == f"Next question: {session.questions[1]}"

    def test_empty_partial_is_reported(self, dictation_session):
        session = dictation_session._copy_with(phase=Phase.PROCESSING)
        result = apply_event(session, Event.extraction_succeeded(PartialResult.empty()))

        assert result.changes[0] == "No new data was extracted"

    def test_non_empty_partial_is_not_reported_as_empty(self, dictation_session):
        session = dictation_session._copy_with(phase=Phase.PROCESSING)
        partial = PartialResult(notes="Deliver Monday")
        result = apply_event(session, Event.extraction_succeeded(partial))

        assert "No new data was extracted" not in result.changes
        assert "Notes replaced" in result.changes

    def test_extraction_failed_keeps_record(self, dictation_session, populated_record):
        session = dictation_session._copy_with(
            phase=Phase.PROCESSING,
            record=populated_record,
            question_index=1,
        )
        result = apply_event(session, Event.extraction_failed("AI error: timeout"))

        assert result.new_state.phase == Phase.ERROR
        assert result.new_state.last_error == "AI error: timeout"
        assert result.new_state.record == populated_record
        assert result.new_state.question_index == 1


class TestConfirmAndReset:

    def test_confirm_from_review(self, review_session):
        result = apply_event(review_session, Event.confirm())

        assert result.new_state.phase == Phase.FINALIZED
        assert result.new_state.record == review_session.record

    def test_reset_discards_record_by_default(self, dictation_session, populated_record):
        session = dictation_session._copy_with(
            phase=Phase.ERROR,
            record=populated_record,
            question_index=2,
            last_error="boom",
        )
        result = apply_event(session, Event.reset())

        assert result.new_state.phase == Phase.IDLE
        assert result.new_state.record == Record()
        assert result.new_state.question_index == 0
        assert result.new_state.last_error is None
        assert result.new_state.questions == session.questions

    def test_reset_from_error_can_preserve_record(self, dictation_session, populated_record):
        session = dictation_session._copy_with(
            phase=Phase.ERROR,
            record=populated_record,
            question_index=2,
        )
        result = Reducer(preserve_record_on_reset=True).apply(session, Event.reset())

        assert result.new_state.phase == Phase.IDLE
        assert result.new_state.record == populated_record
        assert result.new_state.question_index == 0

    def test_reset_from_finalized_always_discards(self, review_session):
        finalized = apply_event(review_session, Event.confirm()).new_state
        result = Reducer(preserve_record_on_reset=True).apply(finalized, Event.reset())

        assert result.new_state.phase == Phase.IDLE
        assert result.new_state.record == Record()
