"""
Extraction Prompts - Prompts and response schema for the generative model.

The model returns a partial record: only the fields it could find in
the current artifact. The current record and question are sent along
so the model can tell what the user is answering.
"""

from __future__ import annotations
import json
from dataclasses import dataclass
from typing import Any


# Response schema in the OpenAPI subset accepted by generateContent.
RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "party": {
            "type": "OBJECT",
            "description": "Client (or store) identity. Only fields mentioned.",
            "properties": {
                "name": {"type": "STRING", "description": "Full name or business name."},
                "id": {"type": "STRING", "description": "Tax ID / identification number."},
                "address": {"type": "STRING", "description": "Postal address."},
            },
        },
        "lineItems": {
            "type": "ARRAY",
            "description": "New items mentioned in this input only.",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "description": {"type": "STRING"},
                    "quantity": {
                        "type": "NUMBER",
                        "description": "Quantity. Assume 1 if not stated.",
                    },
                    "unitPrice": {"type": "NUMBER", "description": "Price per unit."},
                },
                "required": ["description", "quantity", "unitPrice"],
            },
        },
        "notes": {
            "type": "STRING",
            "description": "General concepts or notes. Omit if none were given.",
        },
        "complete": {
            "type": "BOOLEAN",
            "description": "True when client name, ID and at least one item are known.",
        },
    },
}


@dataclass
class ExtractionPrompts:
    """
    Collection of prompts for extraction.

    Each prompt targets one capture modality.
    """

    @staticmethod
    def dictation(
        transcript: str,
        current_record: dict[str, Any],
        current_question: str | None = None,
    ) -> str:
        """Prompt to extract invoice data from a dictated answer."""
        question = current_question or "(no specific question)"
        return f"""
You are an assistant that fills in an invoice from a user's dictation.

The invoice collected so far:
{json.dumps(current_record, indent=2, ensure_ascii=False)}

The user was asked:
{question}

The user answered:
{transcript}

Return ONLY the information contained in this answer:
- party: any of name, id and address that were mentioned
- lineItems: only the NEW items mentioned in this answer, each with
  description, quantity (assume 1 if not stated) and unitPrice
- notes: general concepts or notes, only if the user gave some
- complete: true if, together with the invoice so far, the client name,
  the client ID and at least one item are known

Do not repeat items already present in the invoice. Omit fields that
were not mentioned. Output a JSON object matching the provided schema.
"""

    @staticmethod
    def receipt(current_record: dict[str, Any]) -> str:
        """Prompt to extract receipt data from a photo."""
        return f"""
Analyze the image of this receipt or invoice and extract:

- party.name: the store or business name
- party.id: the store's tax ID, if printed
- party.address: the store's address, if printed
- lineItems: every purchased item with description, quantity (assume 1
  if not stated) and unitPrice
- notes: the transaction date in YYYY-MM-DD format and the total amount,
  as "Date: <date>. Total: <amount>"
- complete: true

If something is unclear, infer it as well as possible.

The record collected so far (for corrections; may be empty):
{json.dumps(current_record, indent=2, ensure_ascii=False)}

Output a JSON object matching the provided schema.
"""
