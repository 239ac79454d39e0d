"""
FastAPI Application - REST API for the browser app.

Endpoints:
    POST   /api/v1/sessions                     Create capture session
    GET    /api/v1/sessions                     List active sessions
    GET    /api/v1/sessions/{id}                Get session snapshot
    DELETE /api/v1/sessions/{id}                End session
    POST   /api/v1/sessions/{id}/start          Start capturing
    POST   /api/v1/sessions/{id}/transcript     Submit a dictated answer
    POST   /api/v1/sessions/{id}/photo          Upload a receipt photo
    POST   /api/v1/sessions/{id}/abort          Cancel the current capture
    POST   /api/v1/sessions/{id}/capture-error  Report a capture failure
    POST   /api/v1/sessions/{id}/confirm        Finalize the record
    POST   /api/v1/sessions/{id}/reset          Reset the session
    GET    /api/v1/sessions/{id}/export         Finalized record as JSON
    POST   /api/v1/sessions/{id}/send           Send record to billing API
    GET    /api/v1/health                       Health check

Capture Flow:
    1. POST /start (phase: capturing)
    2. POST /transcript or /photo; the model is called synchronously
       - Blank transcript / empty photo: back to idle or guided
       - Otherwise: guided (next question) or review
    3. Repeat 1-2 until review, then POST /confirm
    4. GET /export or POST /send

All responses are JSON with explicit Pydantic schemas.
Photos are multipart/form-data.

Run with:
    uvicorn factura.api.app:create_app --factory
"""

from typing import Annotated, Optional, Union

from .. import __version__
from ..config import AppConfig, load_config

STATUS_CODES = {
    "SESSION_NOT_FOUND": 404,
    "INVALID_TRANSITION": 409,
    "SESSION_BUSY": 409,
    "EXPORT_FAILED": 502,
    "NOT_CONFIGURED": 503,
    "VALIDATION_ERROR": 400,
    "INTERNAL_ERROR": 500,
}


def create_app(service=None, config: Optional[AppConfig] = None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (built from config if not provided)
        config: Optional AppConfig (loaded from the environment if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, File, UploadFile
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn python-multipart"
        )

    from .service import APIService, build_billing_exporter
    from .schemas import (
        # Request models
        CreateSessionRequest,
        TranscriptRequest,
        CaptureErrorRequest,
        # Response models
        SessionResponse,
        ErrorResponse,
        SessionListResponse,
        EndSessionResponse,
        SendResponse,
        HealthResponse,
    )

    config = config or load_config()

    if service is None:
        from ..extraction import GeminiExtractionClient
        from ..session import SessionManager

        client = GeminiExtractionClient(config.gemini)
        service = APIService(
            session_manager=SessionManager(client, engine_config=config.engine),
            billing_exporter=build_billing_exporter(config.billing),
            session_max_age_seconds=config.api.session_max_age_seconds,
        )
    api_service = service

    app = FastAPI(
        title="Factura API",
        description="""
Incremental invoice capture - dictate or photograph, the engine merges
what the model extracts into one record.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Session does not exist |
| `INVALID_TRANSITION` | Action not allowed in the current phase |
| `SESSION_BUSY` | An extraction is in progress |
| `EXPORT_FAILED` | Billing API rejected the record |
| `NOT_CONFIGURED` | Billing API not configured |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=STATUS_CODES.get(error.error_code.value, 400),
            content=error.model_dump(mode="json"),
        )

    def respond(response):
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    error_responses = {
        404: {"model": ErrorResponse, "description": "Session not found"},
        409: {"model": ErrorResponse, "description": "Not allowed in current phase"},
    }

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["System"])
    async def health() -> HealthResponse:
        return HealthResponse(
            version=__version__,
            extraction_provider=api_service.session_manager.client.get_provider_name(),
            billing_configured=api_service.billing_exporter is not None,
        )

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        tags=["Sessions"],
        summary="Create a new capture session",
    )
    async def create_session(body: Optional[CreateSessionRequest] = None) -> SessionResponse:
        """
        Create a capture session.

        `modality=dictation` walks through the guided questions;
        `modality=receipt` goes to review after one photo.
        """
        body = body or CreateSessionRequest()
        return api_service.create_session(body.modality)

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses=error_responses,
        tags=["Sessions"],
        summary="Get session snapshot",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.get_session(session_id))

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a capture session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    # =========================================================================
    # Capture Loop Endpoints
    #
    # These are plain `def` so the synchronous model call runs in the
    # threadpool instead of blocking the event loop.
    # =========================================================================

    @app.post(
        "/api/v1/sessions/{session_id}/start",
        response_model=SessionResponse,
        responses=error_responses,
        tags=["Capture"],
        summary="Start capturing",
    )
    def start_capture(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.start(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/transcript",
        response_model=SessionResponse,
        responses=error_responses,
        tags=["Capture"],
        summary="Submit a dictated answer",
    )
    def submit_transcript(
        session_id: str,
        body: TranscriptRequest,
    ) -> Union[SessionResponse, JSONResponse]:
        """Blank text is ignored and never sent to the model."""
        return respond(api_service.submit_transcript(session_id, body.text))

    @app.post(
        "/api/v1/sessions/{session_id}/photo",
        response_model=SessionResponse,
        responses=error_responses,
        tags=["Capture"],
        summary="Upload a receipt photo",
    )
    def upload_photo(
        session_id: str,
        photo: Annotated[UploadFile, File(description="Photo of the receipt")],
    ) -> Union[SessionResponse, JSONResponse]:
        image_data = photo.file.read()
        mime_type = photo.content_type or "image/jpeg"
        return respond(api_service.submit_photo(session_id, image_data, mime_type))

    @app.post(
        "/api/v1/sessions/{session_id}/abort",
        response_model=SessionResponse,
        responses=error_responses,
        tags=["Capture"],
        summary="Cancel the current capture",
    )
    def abort_capture(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.abort_capture(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/capture-error",
        response_model=SessionResponse,
        responses=error_responses,
        tags=["Capture"],
        summary="Report that the device could not capture",
    )
    def capture_error(
        session_id: str,
        body: Optional[CaptureErrorRequest] = None,
    ) -> Union[SessionResponse, JSONResponse]:
        body = body or CaptureErrorRequest()
        return respond(api_service.report_capture_error(session_id, body.message))

    @app.post(
        "/api/v1/sessions/{session_id}/confirm",
        response_model=SessionResponse,
        responses=error_responses,
        tags=["Capture"],
        summary="Confirm the reviewed record",
    )
    def confirm(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.confirm(session_id))

    @app.post(
        "/api/v1/sessions/{session_id}/reset",
        response_model=SessionResponse,
        responses=error_responses,
        tags=["Capture"],
        summary="Reset the session",
    )
    def reset(session_id: str) -> Union[SessionResponse, JSONResponse]:
        return respond(api_service.reset(session_id))

    # =========================================================================
    # Export Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/sessions/{session_id}/export",
        responses=error_responses,
        tags=["Export"],
        summary="Finalized record as JSON",
    )
    def export_record(session_id: str):
        """Body is exactly `{party, lineItems, notes}`."""
        response = api_service.export_record(session_id)
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return JSONResponse(content=response)

    @app.post(
        "/api/v1/sessions/{session_id}/send",
        response_model=SendResponse,
        responses={
            **error_responses,
            502: {"model": ErrorResponse, "description": "Billing API failed"},
            503: {"model": ErrorResponse, "description": "Billing API not configured"},
        },
        tags=["Export"],
        summary="Send the finalized record to the billing API",
    )
    def send_record(session_id: str) -> Union[SendResponse, JSONResponse]:
        return respond(api_service.send_record(session_id))

    return app
