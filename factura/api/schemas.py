"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between the browser app and the
engine. RecordInfo uses the export field names (party, lineItems, notes,
unitPrice) but is the snapshot view, not the export: unset party fields
are null and each line item carries a well_formed flag. The export body
comes from factura.export.record_to_dict.

Error Codes:
- SESSION_NOT_FOUND: Session does not exist or has expired
- INVALID_TRANSITION: The action is not allowed in the current phase
- SESSION_BUSY: An extraction is in progress for this session
- EXPORT_FAILED: The billing API rejected or never received the record
- NOT_CONFIGURED: A required integration is not configured
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================

class SessionPhase(str, Enum):
    """Session phase values."""
    IDLE = "idle"
    CAPTURING = "capturing"
    PROCESSING = "processing"
    GUIDED = "guided"
    REVIEW = "review"
    FINALIZED = "finalized"
    ERROR = "error"


class CaptureModality(str, Enum):
    """How the session captures its input."""
    DICTATION = "dictation"
    RECEIPT = "receipt"


class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    SESSION_BUSY = "SESSION_BUSY"
    EXPORT_FAILED = "EXPORT_FAILED"
    NOT_CONFIGURED = "NOT_CONFIGURED"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Record Models
# =============================================================================

class PartyInfo(BaseModel):
    """Client or store identity. Unset fields are omitted on export."""
    name: Optional[str] = None
    id: Optional[str] = None
    address: Optional[str] = None


class LineItemInfo(BaseModel):
    """One invoice line."""
    model_config = ConfigDict(populate_by_name=True)

    description: str
    quantity: float
    unit_price: float = Field(alias="unitPrice")
    well_formed: bool = Field(
        True,
        description="False when quantity <= 0 or unit price < 0; values are kept as extracted",
    )


class RecordInfo(BaseModel):
    """The accumulated record."""
    model_config = ConfigDict(populate_by_name=True)

    party: PartyInfo = Field(default_factory=PartyInfo)
    line_items: list[LineItemInfo] = Field(default_factory=list, alias="lineItems")
    notes: str = ""


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    """Request to create a capture session."""
    modality: CaptureModality = CaptureModality.DICTATION


class TranscriptRequest(BaseModel):
    """A dictated answer from the browser's speech recognizer."""
    text: str = Field(description="Transcript; blank text is ignored by the engine")


class CaptureErrorRequest(BaseModel):
    """The browser could not capture (permission, device, support)."""
    message: str = Field(
        "Could not access the capture device",
        description="Human-readable reason shown to the user",
    )


# =============================================================================
# Response Models
# =============================================================================

class SessionResponse(BaseModel):
    """Snapshot of a session after a transition."""
    session_id: str
    modality: CaptureModality
    phase: SessionPhase
    question_index: int
    question_count: int
    current_question: Optional[str] = None
    last_error: Optional[str] = None
    record: RecordInfo
    total: float = Field(0.0, description="Sum of quantity x unit price, display only")
    changes: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class SessionListResponse(BaseModel):
    """List of active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class SendResponse(BaseModel):
    """Response after sending a record to the billing API."""
    success: bool
    session_id: str
    billing_response: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str
    extraction_provider: str
    billing_configured: bool = False
