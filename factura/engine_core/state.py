"""
Capture State - The accumulating record and the session snapshot.

Design principles:
- Immutable-friendly: all mutations return new objects
- Serializable: snapshots are rendered as plain dicts for the UI
- Owned by the engine: only the reducer produces new sessions
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Phase(Enum):
    """Lifecycle phases of a capture session."""
    IDLE = "idle"
    CAPTURING = "capturing"  # Listening / camera open
    PROCESSING = "processing"  # Extraction in flight
    GUIDED = "guided"  # Waiting for the answer to the next question
    REVIEW = "review"  # Record is complete enough to confirm
    FINALIZED = "finalized"
    ERROR = "error"


TERMINAL_PHASES = frozenset({Phase.FINALIZED, Phase.ERROR})


@dataclass(frozen=True)
class Party:
    """
    Identity of the invoiced client (or the store, for receipts).

    All fields stay None until an extraction supplies them.
    """
    name: str | None = None
    id: str | None = None
    address: str | None = None

    FIELDS = ("name", "id", "address")

    def with_fields(self, **kwargs) -> Party:
        """Return new party with some fields replaced."""
        return Party(
            name=kwargs.get("name", self.name),
            id=kwargs.get("id", self.id),
            address=kwargs.get("address", self.address),
        )

    def to_dict(self) -> dict[str, str]:
        return {
            key: getattr(self, key)
            for key in self.FIELDS
            if getattr(self, key)
        }


@dataclass(frozen=True)
class LineItem:
    """
    One invoice line.

    Values are passed through exactly as the extractor returned them;
    quantity > 0 and unit_price >= 0 are expected but not enforced.
    """
    description: str
    quantity: float
    unit_price: float

    @property
    def subtotal(self) -> float:
        return self.quantity * self.unit_price

    @property
    def is_well_formed(self) -> bool:
        return self.quantity > 0 and self.unit_price >= 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "description": self.description,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
        }


@dataclass(frozen=True)
class Record:
    """
    The accumulating structured document.

    line_items keep arrival order and are never deduplicated.
    """
    party: Party = field(default_factory=Party)
    line_items: tuple[LineItem, ...] = ()
    notes: str = ""

    @property
    def total(self) -> float:
        """Sum of line subtotals. For display only, never exported."""
        return sum(item.subtotal for item in self.line_items)

    @property
    def all_data_present(self) -> bool:
        return bool(self.party.name and self.party.id and self.line_items)

    def _copy_with(self, **kwargs) -> Record:
        return Record(
            party=kwargs.get("party", self.party),
            line_items=kwargs.get("line_items", self.line_items),
            notes=kwargs.get("notes", self.notes),
        )

    def with_party(self, party: Party) -> Record:
        return self._copy_with(party=party)

    def with_items_appended(self, items: list[LineItem] | tuple[LineItem, ...]) -> Record:
        return self._copy_with(line_items=self.line_items + tuple(items))

    def with_notes(self, notes: str) -> Record:
        return self._copy_with(notes=notes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "party": self.party.to_dict(),
            "lineItems": [item.to_dict() for item in self.line_items],
            "notes": self.notes,
        }


@dataclass(frozen=True)
class Session:
    """
    Complete engine state at a point in time.

    Holds the record, the position in the guided question sequence and
    the current phase. Every engine operation returns a new Session;
    the presentation layer only ever reads these snapshots.
    """
    questions: tuple[str, ...]
    record: Record = field(default_factory=Record)
    question_index: int = 0
    phase: Phase = Phase.IDLE
    last_error: str | None = None

    @classmethod
    def create(cls, questions: list[str] | tuple[str, ...]) -> Session:
        """Create a fresh session: empty record, first question, idle."""
        if not questions:
            raise ValueError("A session needs at least one guided question")
        return cls(questions=tuple(questions))

    @property
    def last_question_index(self) -> int:
        return len(self.questions) - 1

    @property
    def current_question(self) -> str | None:
        if 0 <= self.question_index < len(self.questions):
            return self.questions[self.question_index]
        return None

    @property
    def is_terminal(self) -> bool:
        return self.phase in TERMINAL_PHASES

    def _copy_with(self, **kwargs) -> Session:
        """Create a copy with some fields replaced."""
        return Session(
            questions=kwargs.get("questions", self.questions),
            record=kwargs.get("record", self.record),
            question_index=kwargs.get("question_index", self.question_index),
            phase=kwargs.get("phase", self.phase),
            last_error=kwargs.get("last_error", self.last_error),
        )

    def to_dict(self) -> dict[str, Any]:
        """Snapshot for the presentation layer."""
        return {
            "phase": self.phase.value,
            "question_index": self.question_index,
            "current_question": self.current_question,
            "last_error": self.last_error,
            "record": self.record.to_dict(),
        }
