"""
JSON export of the record.

The wire format is consumed by a downstream billing API; field names
and nesting must not change:

    {
        "party": {"name": ..., "id": ..., "address": ...},
        "lineItems": [{"description": ..., "quantity": ..., "unitPrice": ...}],
        "notes": "..."
    }

Party keys that were never populated are omitted.
"""

from __future__ import annotations
import json
from typing import Any

from ..engine_core.state import LineItem, Party, Record


def record_to_dict(record: Record) -> dict[str, Any]:
    """Serialize a record to the wire shape."""
    return record.to_dict()


def dumps_record(record: Record, indent: int | None = 2) -> str:
    """Serialize a record to a JSON string."""
    return json.dumps(record_to_dict(record), indent=indent, ensure_ascii=False)


def record_from_dict(data: dict[str, Any]) -> Record:
    """
    Rebuild a record from the wire shape.

    Raises:
        ValueError: if a line item is missing a required field
    """
    party_data = data.get("party") or {}
    items = []
    for raw in data.get("lineItems") or []:
        try:
            items.append(LineItem(
                description=raw["description"],
                quantity=raw["quantity"],
                unit_price=raw["unitPrice"],
            ))
        except KeyError as e:
            raise ValueError(f"Line item missing field {e.args[0]!r}: {raw!r}")

    return Record(
        party=Party(
            name=party_data.get("name"),
            id=party_data.get("id"),
            address=party_data.get("address"),
        ),
        line_items=tuple(items),
        notes=data.get("notes") or "",
    )
