"""
Extraction - Artifact to partial result via a generative model.

The extraction client:
1. Takes a transcript or an image plus the record collected so far
2. Prompts the model for a JSON partial result (fixed schema)
3. Parses the response leniently
4. Raises ExtractionFailure on transport, model or parse failure

The engine never retries; transient transport errors are retried once
or twice inside the client only.
"""

from ..engine_core.partial import PartialResult, PartyPatch
from .client import ExtractionClient, ExtractionRequest, GeminiExtractionClient
from .parser import ResponseParser
from .prompts import ExtractionPrompts, RESPONSE_SCHEMA

__all__ = [
    "PartialResult",
    "PartyPatch",
    "ExtractionClient",
    "ExtractionRequest",
    "GeminiExtractionClient",
    "ResponseParser",
    "ExtractionPrompts",
    "RESPONSE_SCHEMA",
]
