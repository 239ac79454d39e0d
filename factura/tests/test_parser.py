"""
Tests for the model response parser.
"""

import pytest

from ..engine_core.errors import ExtractionFailure
from ..engine_core.state import LineItem
from ..extraction.parser import ResponseParser


@pytest.fixture
def parser():
    return ResponseParser()


class TestParseResponse:
    """JSON extraction from raw model text."""

    def test_plain_json(self, parser):
        result = parser.parse_response(
            '{"party": {"name": "Acme", "id": "123"}, '
            '"lineItems": [{"description": "Bolt", "quantity": 10, "unitPrice": 2}], '
            '"complete": false}'
        )

        assert result.party.name == "Acme"
        assert result.party.id == "123"
        assert result.party.address is None
        assert result.line_items == (LineItem("Bolt", 10, 2),)
        assert result.notes is None
        assert result.complete is False

    def test_fenced_json(self, parser):
        result = parser.parse_response('```json\n{"notes": "Net 30", "complete": true}\n```')

        assert result.notes == "Net 30"
        assert result.complete is True

    def test_json_surrounded_by_prose(self, parser):
        result = parser.parse_response('Here you go: {"notes": "x"} Hope it helps')

        assert result.notes == "x"

    def test_empty_object_is_empty_partial(self, parser):
        result = parser.parse_response("{}")

        assert result.is_empty
        assert not result.complete

    def test_non_object_json_is_empty_partial(self, parser):
        assert parser.parse_response("[1, 2, 3]").is_empty

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_response_fails(self, parser, text):
        with pytest.raises(ExtractionFailure):
            parser.parse_response(text)

    def test_invalid_json_fails(self, parser):
        with pytest.raises(ExtractionFailure) as exc_info:
            parser.parse_response("I could not read the receipt")

        assert "not valid JSON" in exc_info.value.message


class TestParseDict:
    """Field-level leniency."""

    def test_legacy_keys(self, parser):
        result = parser.parse_dict({
            "client": {"name": "Acme", "id": "123", "address": "Main St"},
            "items": [{"description": "Bolt", "quantity": 1, "unitPrice": 5}],
            "concepts": "Monthly service",
        })

        assert result.party.supplied() == {"name": "Acme", "id": "123", "address": "Main St"}
        assert len(result.line_items) == 1
        assert result.notes == "Monthly service"

    def test_empty_notes_are_kept_as_present(self, parser):
        assert parser.parse_dict({"notes": ""}).notes == ""

    def test_null_notes_are_absent(self, parser):
        assert parser.parse_dict({"notes": None}).notes is None

    def test_non_text_notes_are_ignored(self, parser):
        assert parser.parse_dict({"notes": 42}).notes is None

    def test_numeric_strings_in_items(self, parser):
        result = parser.parse_dict({
            "lineItems": [
                {"description": "Paint", "quantity": "3", "unitPrice": "2,5"},
                {"description": "Brush", "quantity": "1", "unitPrice": "$1,200.75"},
            ]
        })

        assert result.line_items[0] == LineItem("Paint", 3, 2.5)
        assert result.line_items[1] == LineItem("Brush", 1, 1200.75)

    def test_spanish_number_format(self, parser):
        """Dot groups thousands and comma is the decimal point."""
        result = parser.parse_dict({
            "lineItems": [{"description": "Tornillo", "quantity": "1.500", "unitPrice": "1.234,56"}]
        })

        assert result.line_items == (LineItem("Tornillo", 1500, 1234.56),)

    @pytest.mark.parametrize("text, expected", [
        ("1.234.567,89", 1234567.89),
        ("1,234,567", 1234567),
        ("1.234.567", 1234567),
        ("1,5", 1.5),
        ("1.5", 1.5),
        ("0.500", 0.5),
        ("12.50", 12.5),
        ("$ 2.000", 2000),
    ])
    def test_number_formats(self, parser, text, expected):
        result = parser.parse_dict({
            "lineItems": [{"description": "Item", "quantity": 1, "unitPrice": text}]
        })

        assert result.line_items[0].unit_price == pytest.approx(expected)

    @pytest.mark.parametrize("text", ["1.23.45", "1,23,45"])
    def test_ambiguous_numbers_skip_the_item(self, parser, text):
        result = parser.parse_dict({
            "lineItems": [
                {"description": "Unclear", "quantity": 1, "unitPrice": text},
                {"description": "Clear", "quantity": 1, "unitPrice": 3},
            ]
        })

        assert [item.description for item in result.line_items] == ["Clear"]

    def test_null_description_falls_back_to_name(self, parser):
        result = parser.parse_dict({
            "lineItems": [{"description": None, "name": "Bolt", "quantity": 1, "unitPrice": 2}]
        })

        assert result.line_items[0].description == "Bolt"

    def test_null_description_without_name_is_blank(self, parser):
        result = parser.parse_dict({
            "lineItems": [{"description": None, "quantity": 1, "unitPrice": 2}]
        })

        assert result.line_items[0].description == ""

    def test_missing_quantity_defaults_to_one(self, parser):
        result = parser.parse_dict({"lineItems": [{"description": "Fee", "unitPrice": 10}]})

        assert result.line_items[0].quantity == 1

    def test_bad_items_are_skipped(self, parser):
        result = parser.parse_dict({
            "lineItems": [
                "not an object",
                {"description": "Bad", "quantity": "many", "unitPrice": 1},
                {"description": "Good", "quantity": 2, "unitPrice": 1},
            ]
        })

        assert [item.description for item in result.line_items] == ["Good"]

    def test_negative_values_pass_through(self, parser):
        result = parser.parse_dict({
            "lineItems": [{"description": "Discount", "quantity": 1, "unitPrice": -5}]
        })

        assert result.line_items[0].unit_price == -5

    def test_party_not_an_object_is_ignored(self, parser):
        assert parser.parse_dict({"party": "Acme"}).party is None

    def test_complete_as_string(self, parser):
        assert parser.parse_dict({"complete": "true"}).complete is True
        assert parser.parse_dict({"complete": "no"}).complete is False
