"""
API Module - Browser app interface.

Exposes the capture engine via REST API. The browser app:
1. Creates a capture session (dictation or receipt)
2. Starts captures and submits transcripts or photos
3. Reads the session snapshot after every step
4. Confirms, exports or sends the finalized record

All state is session-scoped. No persistent user accounts required.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    TranscriptRequest,
    CaptureErrorRequest,
    # Responses
    SessionResponse,
    ErrorResponse,
    SessionListResponse,
    EndSessionResponse,
    SendResponse,
    HealthResponse,
    # Shared
    RecordInfo,
    PartyInfo,
    LineItemInfo,
    # Enums
    SessionPhase,
    CaptureModality,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    "CreateSessionRequest",
    "TranscriptRequest",
    "CaptureErrorRequest",
    "SessionResponse",
    "ErrorResponse",
    "SessionListResponse",
    "EndSessionResponse",
    "SendResponse",
    "HealthResponse",
    "RecordInfo",
    "PartyInfo",
    "LineItemInfo",
    "SessionPhase",
    "CaptureModality",
    "ErrorCode",
    "APIService",
    "create_app",
]
