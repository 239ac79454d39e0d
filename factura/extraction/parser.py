"""
Model response parser.

Handles:
- JSON extraction from model responses (with or without code fences)
- Key aliases (camelCase, snake_case and the older client/items/concepts)
- Numeric strings in item fields
- Wrong-typed optional fields (dropped with a warning)

A response that parses as JSON but carries no usable fields is a valid,
data-free partial result. A response that is not JSON at all is an
ExtractionFailure.
"""

from __future__ import annotations
import json
import logging
import re
from typing import Any

from ..engine_core.errors import ExtractionFailure
from ..engine_core.partial import PartialResult, PartyPatch
from ..engine_core.state import LineItem

logger = logging.getLogger(__name__)


class ResponseParser:
    """
    Parses model responses into PartialResult.
    """

    FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)\s*```", re.DOTALL | re.IGNORECASE)

    PARTY_KEYS = ("party", "client")
    ITEMS_KEYS = ("lineItems", "line_items", "items")
    NOTES_KEYS = ("notes", "concepts")

    def parse_response(self, response: str) -> PartialResult:
        """
        Parse a model response.

        Args:
            response: Raw model response text

        Returns:
            PartialResult with whatever fields could be read
        """
        data = self._load_json(response)
        if not isinstance(data, dict):
            logger.warning("Model returned %s instead of an object; ignoring it", type(data).__name__)
            return PartialResult.empty()
        return self.parse_dict(data)

    def parse_dict(self, data: dict[str, Any]) -> PartialResult:
        """Build a PartialResult from an already-decoded object."""
        party_data = self._first_key(data, self.PARTY_KEYS)
        items_data = self._first_key(data, self.ITEMS_KEYS)
        notes_present = any(key in data for key in self.NOTES_KEYS)
        notes_data = self._first_key(data, self.NOTES_KEYS)

        notes: str | None = None
        if notes_present:
            if notes_data is None:
                notes = None
            elif isinstance(notes_data, str):
                notes = notes_data
            else:
                logger.warning("Ignoring non-text notes: %r", notes_data)

        complete = data.get("complete", False)
        if not isinstance(complete, bool):
            complete = str(complete).strip().lower() == "true"

        return PartialResult(
            party=self._parse_party(party_data),
            line_items=tuple(self._parse_items(items_data)),
            notes=notes,
            complete=complete,
        )

    def _load_json(self, response: str) -> Any:
        text = (response or "").strip()
        if not text:
            raise ExtractionFailure("The model returned an empty response")

        match = self.FENCE_PATTERN.search(text)
        if match:
            text = match.group(1)

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            pass

        # Last resort: the outermost {...} block
        start, end = text.find("{"), text.rfind("}")
        if start != -1 and end > start:
            try:
                return json.loads(text[start:end + 1])
            except json.JSONDecodeError:
                pass

        raise ExtractionFailure("The model response is not valid JSON")

    @staticmethod
    def _first_key(data: dict[str, Any], keys: tuple[str, ...]) -> Any:
        for key in keys:
            if key in data:
                return data[key]
        return None

    def _parse_party(self, party_data: Any) -> PartyPatch | None:
        if party_data is None:
            return None
        if not isinstance(party_data, dict):
            logger.warning("Ignoring party that is not an object: %r", party_data)
            return None

        def text(key: str) -> str | None:
            value = party_data.get(key)
            if value is None:
                return None
            return str(value).strip()

        return PartyPatch(name=text("name"), id=text("id"), address=text("address"))

    def _parse_items(self, items_data: Any) -> list[LineItem]:
        if items_data is None:
            return []
        if not isinstance(items_data, list):
            logger.warning("Ignoring line items that are not a list: %r", items_data)
            return []

        items = []
        for raw in items_data:
            if not isinstance(raw, dict):
                logger.warning("Skipping line item that is not an object: %r", raw)
                continue
            try:
                items.append(LineItem(
                    description=str(raw.get("description") or raw.get("name") or ""),
                    quantity=self._number(raw.get("quantity", 1)),
                    unit_price=self._number(
                        raw.get("unitPrice", raw.get("unit_price", raw.get("price", 0)))
                    ),
                ))
            except ValueError as e:
                logger.warning("Skipping line item %r: %s", raw, e)
        return items

    @staticmethod
    def _number(value: Any) -> float:
        """Numbers pass through; numeric strings are converted."""
        if isinstance(value, bool):
            raise ValueError(f"not a number: {value!r}")
        if isinstance(value, (int, float)):
            return value
        if value is None:
            raise ValueError("missing number")
        cleaned = str(value).strip().replace("$", "").replace(" ", "")

        if "," in cleaned and "." in cleaned:
            # The separator that comes last is the decimal point
            if cleaned.rfind(",") > cleaned.rfind("."):
                cleaned = cleaned.replace(".", "").replace(",", ".")
            else:
                cleaned = cleaned.replace(",", "")
        elif "," in cleaned or "." in cleaned:
            separator = "," if "," in cleaned else "."
            if ResponseParser._is_grouped(cleaned, separator):
                cleaned = cleaned.replace(separator, "")
            elif cleaned.count(separator) > 1:
                raise ValueError(f"ambiguous number: {value!r}")
            else:
                cleaned = cleaned.replace(",", ".")

        try:
            number = float(cleaned)
        except ValueError:
            raise ValueError(f"not a number: {value!r}")
        return int(number) if number.is_integer() else number

    @staticmethod
    def _is_grouped(text: str, separator: str) -> bool:
        """
        Whether the separator only groups thousands, as in "1.500" or
        "1,234,567".

        A single comma stays a decimal comma ("2,5", "1,500"), and a
        leading zero group ("0.500") is always a decimal.
        """
        if separator == "," and text.count(",") < 2:
            return False
        pattern = r"-?[1-9]\d{0,2}(?:" + re.escape(separator) + r"\d{3})+"
        return re.fullmatch(pattern, text) is not None
