"""
Error taxonomy for the capture engine.

Collaborator failures (capture, extraction, export) are raised as
exceptions at the boundary and converted into a single user-facing
message on the Session. An empty capture is not an error.
"""


class FacturaError(Exception):
    """Base exception for all factura errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class CaptureUnavailable(FacturaError):
    """Camera/microphone permission, device or support failure."""
    pass


class ExtractionFailure(FacturaError):
    """Network, model or parse failure while extracting a partial result."""
    pass


class ExportFailure(FacturaError):
    """The downstream billing API rejected or never received the record."""
    pass


class InvalidTransition(FacturaError):
    """An event was submitted in a phase that does not accept it."""

    def __init__(self, message: str, phase=None, event_type=None):
        super().__init__(message)
        self.phase = phase
        self.event_type = event_type


class ConfigurationError(FacturaError):
    """Missing or invalid configuration."""
    pass
