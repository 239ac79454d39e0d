"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to capture loop calls
2. Manages sessions
3. Formats snapshots for the browser
4. Exports finalized records

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
Methods return either a response model or an ErrorResponse.
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
from typing import Any, Callable

from .schemas import (
    CaptureModality,
    ErrorCode,
    ErrorResponse,
    LineItemInfo,
    PartyInfo,
    RecordInfo,
    SendResponse,
    SessionPhase,
    SessionResponse,
)
from ..engine_core.errors import ConfigurationError, ExportFailure, InvalidTransition
from ..engine_core.questions import Modality
from ..engine_core.state import Phase, Record
from ..export import BillingExporter, record_to_dict
from ..session import CaptureLoop, LoopResult, ManagedSession, SessionManager

logger = logging.getLogger(__name__)


@dataclass
class APIService:
    """
    Main API service for the browser app.

    Usage:
        service = APIService(session_manager=SessionManager(client))

        created = service.create_session(CaptureModality.DICTATION)
        service.start(created.session_id)
        response = service.submit_transcript(created.session_id, "Client Acme...")
    """
    session_manager: SessionManager
    billing_exporter: BillingExporter | None = None
    # Older sessions are dropped whenever a new one is created
    session_max_age_seconds: int | None = None

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, modality: CaptureModality) -> SessionResponse:
        if self.session_max_age_seconds is not None:
            removed = self.session_manager.cleanup_stale_sessions(self.session_max_age_seconds)
            if removed:
                logger.info("Dropped %d stale session(s)", removed)
        managed = self.session_manager.create_session(Modality(modality.value))
        return self._session_to_response(managed)

    def get_session(self, session_id: str) -> SessionResponse | ErrorResponse:
        managed = self.session_manager.get_session(session_id)
        if not managed:
            return self._not_found(session_id)
        return self._session_to_response(managed)

    def end_session(self, session_id: str) -> bool:
        return self.session_manager.end_session(session_id)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Capture loop steps
    # =========================================================================

    def start(self, session_id: str) -> SessionResponse | ErrorResponse:
        return self._step(session_id, lambda loop: loop.start())

    def submit_transcript(self, session_id: str, text: str) -> SessionResponse | ErrorResponse:
        return self._step(session_id, lambda loop: loop.submit_transcript(text))

    def submit_photo(
        self,
        session_id: str,
        image_data: bytes,
        mime_type: str = "image/jpeg",
    ) -> SessionResponse | ErrorResponse:
        return self._step(session_id, lambda loop: loop.submit_image(image_data, mime_type))

    def abort_capture(self, session_id: str) -> SessionResponse | ErrorResponse:
        return self._step(session_id, lambda loop: loop.abort())

    def report_capture_error(self, session_id: str, message: str) -> SessionResponse | ErrorResponse:
        return self._step(session_id, lambda loop: loop.fail_capture(message))

    def confirm(self, session_id: str) -> SessionResponse | ErrorResponse:
        return self._step(session_id, lambda loop: loop.confirm())

    def reset(self, session_id: str) -> SessionResponse | ErrorResponse:
        return self._step(session_id, lambda loop: loop.reset())

    # =========================================================================
    # Export
    # =========================================================================

    def export_record(self, session_id: str) -> dict[str, Any] | ErrorResponse:
        """Wire JSON of a finalized record."""
        managed = self.session_manager.get_session(session_id)
        if not managed:
            return self._not_found(session_id)

        snapshot = managed.snapshot
        if snapshot.phase != Phase.FINALIZED:
            return ErrorResponse(
                error=f"Record is not finalized (phase is {snapshot.phase.value})",
                error_code=ErrorCode.INVALID_TRANSITION,
            )
        return record_to_dict(snapshot.record)

    def send_record(self, session_id: str) -> SendResponse | ErrorResponse:
        """Send a finalized record to the billing API."""
        managed = self.session_manager.get_session(session_id)
        if not managed:
            return self._not_found(session_id)

        if not self.billing_exporter:
            return ErrorResponse(
                error="Billing API is not configured",
                error_code=ErrorCode.NOT_CONFIGURED,
            )

        try:
            reply = self.billing_exporter.send(managed.snapshot)
        except InvalidTransition as e:
            return ErrorResponse(error=e.message, error_code=ErrorCode.INVALID_TRANSITION)
        except ExportFailure as e:
            logger.error("Billing export failed for %s: %s", session_id, e.message)
            return ErrorResponse(error=e.message, error_code=ErrorCode.EXPORT_FAILED)

        return SendResponse(success=True, session_id=session_id, billing_response=reply)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _step(
        self,
        session_id: str,
        action: Callable[[CaptureLoop], LoopResult],
    ) -> SessionResponse | ErrorResponse:
        managed = self.session_manager.get_session(session_id)
        if not managed:
            return self._not_found(session_id)

        result = action(managed.loop)
        if not result.success:
            code = (
                ErrorCode.SESSION_BUSY
                if result.error_code == "SESSION_BUSY"
                else ErrorCode.INVALID_TRANSITION
            )
            return ErrorResponse(
                error="; ".join(result.errors) or "Action rejected",
                error_code=code,
                details={"phase": result.phase.value},
            )
        return self._session_to_response(managed, changes=result.changes)

    @staticmethod
    def _not_found(session_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Session {session_id} not found",
            error_code=ErrorCode.SESSION_NOT_FOUND,
        )

    def _session_to_response(
        self,
        managed: ManagedSession,
        changes: list[str] | None = None,
    ) -> SessionResponse:
        snapshot = managed.snapshot
        return SessionResponse(
            session_id=managed.session_id,
            modality=CaptureModality(managed.modality.value),
            phase=SessionPhase(snapshot.phase.value),
            question_index=snapshot.question_index,
            question_count=len(snapshot.questions),
            current_question=snapshot.current_question,
            last_error=snapshot.last_error,
            record=_record_info(snapshot.record),
            total=snapshot.record.total,
            changes=changes or [],
        )


def _record_info(record: Record) -> RecordInfo:
    return RecordInfo(
        party=PartyInfo(
            name=record.party.name,
            id=record.party.id,
            address=record.party.address,
        ),
        line_items=[
            LineItemInfo(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                well_formed=item.is_well_formed,
            )
            for item in record.line_items
        ],
        notes=record.notes,
    )


def build_billing_exporter(config) -> BillingExporter | None:
    """Exporter for the configured billing API, or None if unset."""
    try:
        return BillingExporter(config)
    except ConfigurationError:
        logger.info("Billing API not configured; /send is disabled")
        return None
