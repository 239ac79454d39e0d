"""
Reconciliation - Merges partial results into the accumulating record.

The merge is a pure function: (session, partial) -> new session.
It never rejects data; whatever the extractor returned is folded in:

1. Party: field-wise override by non-empty values
2. Line items: appended in arrival order, never deduplicated
3. Notes: replaced whenever the key is present (even if empty)
4. Completeness is evaluated after every merge
5. The guided question sequence advances or the session moves to review

Line items are appended blindly. An identity-based merge (same
description updates quantity) would replace merge_line_items().
"""

from __future__ import annotations
import logging

from .partial import PartialResult, PartyPatch
from .state import LineItem, Party, Phase, Record, Session

logger = logging.getLogger(__name__)


def merge_party(party: Party, patch: PartyPatch | None) -> Party:
    """Override only the fields the patch supplies with a non-empty value."""
    if patch is None:
        return party
    supplied = patch.supplied()
    if not supplied:
        return party
    return party.with_fields(**supplied)


def merge_line_items(
    items: tuple[LineItem, ...],
    incoming: tuple[LineItem, ...],
) -> tuple[LineItem, ...]:
    """Append incoming items in order."""
    if not incoming:
        return items
    return items + tuple(incoming)


def merge_notes(notes: str, incoming: str | None) -> str:
    """Replace notes when the key was present; None means absent."""
    if incoming is None:
        return notes
    return incoming


def merge_record(record: Record, partial: PartialResult) -> Record:
    """Fold one partial result into a record."""
    return Record(
        party=merge_party(record.party, partial.party),
        line_items=merge_line_items(record.line_items, partial.line_items),
        notes=merge_notes(record.notes, partial.notes),
    )


def is_complete(session: Session, partial: PartialResult) -> bool:
    """
    Evaluate completeness after a merge.

    Complete when the extractor says so, when all required data is
    present, or when only the last one or two prompts remain.
    """
    forced = session.question_index >= session.last_question_index - 1
    return partial.complete or session.record.all_data_present or forced


def advance_question(session: Session, complete: bool) -> Session:
    """
    Move to the next guided question, or to review when complete.
    """
    if complete:
        return session._copy_with(phase=Phase.REVIEW)
    return session._copy_with(
        question_index=session.question_index + 1,
        phase=Phase.GUIDED,
    )


def merge(session: Session, partial: PartialResult) -> Session:
    """
    Merge a partial result into the session and transition.

    An empty partial result leaves the record unchanged but still runs
    completeness evaluation and the question transition.
    """
    merged = session._copy_with(
        record=merge_record(session.record, partial),
        last_error=None,
    )
    complete = is_complete(merged, partial)
    logger.debug(
        "Merged partial result (items=%d, complete_hint=%s) at question %d: complete=%s",
        len(partial.line_items),
        partial.complete,
        session.question_index,
        complete,
    )
    return advance_question(merged, complete)


def resume_phase(session: Session) -> Phase:
    """Phase to return to when a capture produced nothing."""
    return Phase.IDLE if session.question_index == 0 else Phase.GUIDED


def is_empty_artifact(artifact) -> bool:
    """
    Whether a captured artifact carries nothing worth extracting.

    Transcripts are empty after trimming whitespace; images are empty
    when they have no bytes.
    """
    if artifact is None:
        return True
    if isinstance(artifact, str):
        return not artifact.strip()
    if isinstance(artifact, (bytes, bytearray)):
        return len(artifact) == 0
    return bool(getattr(artifact, "is_empty", False))
