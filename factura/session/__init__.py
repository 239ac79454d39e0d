"""
Session Module - Manages ephemeral capture sessions.

A session represents one invoice being captured:
- Created when the user starts dictating or scanning
- Holds the accumulating record
- Processes each capture through the model and the engine
- Dropped when ended or stale

Sessions are EPHEMERAL: no persistence to database.
"""

from .capture_loop import CaptureLoop, LoopResult
from .manager import SessionManager, ManagedSession

__all__ = [
    "CaptureLoop",
    "LoopResult",
    "SessionManager",
    "ManagedSession",
]
