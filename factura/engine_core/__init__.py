"""
Engine Core - Incremental reconciliation of extracted invoice data.

The engine is the runtime that:
1. Owns the capture Session (record, question index, phase)
2. Validates events against the phase transition table
3. Merges partial extraction results into the record
4. Evaluates completeness and advances the guided questions
"""

from .state import Session, Record, Party, LineItem, Phase
from .partial import PartialResult, PartyPatch
from .event import Event, EventType, EventPayload, TransitionResult
from .reconcile import merge, advance_question, is_complete, merge_record
from .reducer import Reducer, apply_event, apply_event_or_raise
from .questions import Modality, questions_for, DICTATION_QUESTIONS, RECEIPT_QUESTIONS
from .errors import (
    FacturaError,
    CaptureUnavailable,
    ExtractionFailure,
    ExportFailure,
    InvalidTransition,
    ConfigurationError,
)

__all__ = [
    "Session",
    "Record",
    "Party",
    "LineItem",
    "Phase",
    "PartialResult",
    "PartyPatch",
    "Event",
    "EventType",
    "EventPayload",
    "TransitionResult",
    "merge",
    "advance_question",
    "is_complete",
    "merge_record",
    "Reducer",
    "apply_event",
    "apply_event_or_raise",
    "Modality",
    "questions_for",
    "DICTATION_QUESTIONS",
    "RECEIPT_QUESTIONS",
    "FacturaError",
    "CaptureUnavailable",
    "ExtractionFailure",
    "ExportFailure",
    "InvalidTransition",
    "ConfigurationError",
]
