"""
Pytest fixtures for Factura tests.
"""

import pytest

from ..engine_core.errors import ExtractionFailure
from ..engine_core.partial import PartialResult, PartyPatch
from ..engine_core.questions import DICTATION_QUESTIONS, RECEIPT_QUESTIONS
from ..engine_core.state import LineItem, Party, Phase, Record, Session
from ..extraction.client import ExtractionClient, ExtractionRequest
from ..session import CaptureLoop


class ScriptedExtractionClient(ExtractionClient):
    """
    Extraction client that replays queued results.

    Each queued entry is a PartialResult to return or an exception to
    raise. Requests are recorded for assertions.
    """

    def __init__(self, results=None):
        self.results = list(results or [])
        self.requests: list[ExtractionRequest] = []

    def queue(self, *results):
        self.results.extend(results)

    def extract(self, request: ExtractionRequest) -> PartialResult:
        self.requests.append(request)
        if not self.results:
            return PartialResult.empty()
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def get_provider_name(self) -> str:
        return "Scripted"


@pytest.fixture
def scripted_client() -> ScriptedExtractionClient:
    return ScriptedExtractionClient()


@pytest.fixture
def dictation_session() -> Session:
    """Fresh dictation session: empty record, question 0, idle."""
    return Session.create(DICTATION_QUESTIONS)


@pytest.fixture
def receipt_session() -> Session:
    return Session.create(RECEIPT_QUESTIONS)


@pytest.fixture
def dictation_loop(dictation_session, scripted_client) -> CaptureLoop:
    return CaptureLoop(dictation_session, scripted_client)


@pytest.fixture
def acme_partial() -> PartialResult:
    """Party and one item; enough for completeness."""
    return PartialResult(
        party=PartyPatch(name="Acme", id="123"),
        line_items=(LineItem(description="Bolt", quantity=10, unit_price=2),),
        complete=False,
    )


@pytest.fixture
def item_only_partial() -> PartialResult:
    return PartialResult(
        line_items=(LineItem(description="Nut", quantity=5, unit_price=0.5),),
        complete=False,
    )


@pytest.fixture
def populated_record() -> Record:
    return Record(
        party=Party(name="Acme S.A.", id="30-12345678-9", address="Av. Siempre Viva 742"),
        line_items=(
            LineItem(description="Bolt", quantity=10, unit_price=2),
            LineItem(description="Washer", quantity=100, unit_price=0.05),
        ),
        notes="Deliver before Friday",
    )


@pytest.fixture
def review_session(dictation_session, populated_record) -> Session:
    return dictation_session._copy_with(
        record=populated_record,
        question_index=1,
        phase=Phase.REVIEW,
    )


@pytest.fixture
def extraction_error() -> ExtractionFailure:
    return ExtractionFailure("AI error: the model service returned status 500")
