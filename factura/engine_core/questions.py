"""
Guided question sequences.

Each capture modality steers the user through a fixed, ordered list of
prompts, one topic at a time. The last prompt is always the review
prompt; the engine forces completion once only the last one or two
prompts remain.
"""

from __future__ import annotations
from enum import Enum


class Modality(Enum):
    """How the raw artifact is captured."""
    DICTATION = "dictation"  # Speech transcript
    RECEIPT = "receipt"  # Photographed receipt


DICTATION_QUESTIONS: tuple[str, ...] = (
    "To start, what is the client's full name, tax ID and address?",
    "Great. Now tell me the invoice items, including description, quantity and unit price.",
    "Perfect. Is there any general concept or note you want to add to the invoice?",
    "We have collected all the information. Please review it.",
)

RECEIPT_QUESTIONS: tuple[str, ...] = (
    "Take a photo of the receipt so its data can be extracted.",
)


def questions_for(modality: Modality, custom: list[str] | None = None) -> tuple[str, ...]:
    """
    Get the question sequence for a modality.

    Args:
        modality: Capture modality of the session
        custom: Optional override list (must not be empty)

    Returns:
        Ordered tuple of prompts
    """
    if custom is not None:
        if not custom:
            raise ValueError("Custom question list must not be empty")
        return tuple(custom)

    if modality == Modality.RECEIPT:
        return RECEIPT_QUESTIONS
    return DICTATION_QUESTIONS
