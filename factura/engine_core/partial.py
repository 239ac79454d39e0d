"""
Partial Result - One extraction response.

A partial result may cover any subset of the record:
- party: sparse patch (any subset of name/id/address)
- line_items: items to append
- notes: replacement text (None means the key was absent)
- complete: the extractor's own completeness hint

An entirely empty partial result is valid.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .state import LineItem


@dataclass(frozen=True)
class PartyPatch:
    """Sparse party update. None means "not supplied"."""
    name: str | None = None
    id: str | None = None
    address: str | None = None

    def supplied(self) -> dict[str, str]:
        """Fields carrying a non-empty value."""
        values = {"name": self.name, "id": self.id, "address": self.address}
        return {
            key: value for key, value in values.items()
            if value is not None and str(value).strip()
        }


@dataclass(frozen=True)
class PartialResult:
    """
    Output of one extraction call.

    Never validated against business rules here; whatever the
    extractor returned flows through to the merge.
    """
    party: PartyPatch | None = None
    line_items: tuple[LineItem, ...] = field(default_factory=tuple)
    notes: str | None = None
    complete: bool = False

    @classmethod
    def empty(cls) -> PartialResult:
        return cls()

    @property
    def is_empty(self) -> bool:
        """True when the result carries no data at all."""
        return (
            (self.party is None or not self.party.supplied())
            and not self.line_items
            and self.notes is None
        )
