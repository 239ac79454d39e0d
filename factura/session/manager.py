"""
Session Manager - Creates and manages capture sessions.

LIFECYCLE:
1. User picks a modality (dictation or receipt) -> session created
2. During capture:
   - User dictates an answer or takes a photo
   - The model proposes a partial record
   - The engine merges it and asks the next question
3. User confirms the record -> finalized, ready to export
4. Session ended explicitly or cleaned up when stale

PERSISTENCE RULES:
- Sessions are in-memory only
- Ending a session drops its record
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import time
import uuid

from ..config import EngineConfig
from ..engine_core.questions import Modality
from ..engine_core.reducer import Reducer
from ..engine_core.state import Phase, Session
from ..extraction.client import ExtractionClient
from .capture_loop import CaptureLoop

logger = logging.getLogger(__name__)


@dataclass
class ManagedSession:
    """
    A capture session tracked by the manager.

    Contains the capture loop (which owns the engine Session) plus
    the bookkeeping the manager needs for cleanup.
    """
    session_id: str
    modality: Modality
    created_at: float
    loop: CaptureLoop
    ended: bool = False

    @property
    def snapshot(self) -> Session:
        return self.loop.session

    def is_active(self) -> bool:
        """Sessions stay active until ended or finalized."""
        return not self.ended and self.loop.session.phase != Phase.FINALIZED


class SessionManager:
    """
    Manages capture sessions.

    Responsibilities:
    - Create sessions with the injected extraction client
    - Track sessions by ID
    - Clean up old sessions
    """

    def __init__(
        self,
        client: ExtractionClient,
        engine_config: EngineConfig | None = None,
    ):
        self.client = client
        self.engine_config = engine_config or EngineConfig()
        self._sessions: dict[str, ManagedSession] = {}

    def create_session(self, modality: Modality = Modality.DICTATION) -> ManagedSession:
        """
        Create a new capture session.

        Args:
            modality: Dictation or receipt capture

        Returns:
            New ManagedSession in phase IDLE
        """
        session_id = str(uuid.uuid4())
        questions = self.engine_config.questions(modality)

        loop = CaptureLoop(
            session=Session.create(questions),
            client=self.client,
            reducer=Reducer(
                preserve_record_on_reset=self.engine_config.preserve_record_on_reset,
            ),
        )

        managed = ManagedSession(
            session_id=session_id,
            modality=modality,
            created_at=time.time(),
            loop=loop,
        )
        self._sessions[session_id] = managed
        logger.info("Created %s session %s", modality.value, session_id)
        return managed

    def get_session(self, session_id: str) -> ManagedSession | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def end_session(self, session_id: str) -> bool:
        """
        End a session and drop it from memory.

        Returns False if the session did not exist.
        """
        managed = self._sessions.pop(session_id, None)
        if not managed:
            return False
        managed.ended = True
        logger.info("Ended session %s", session_id)
        return True

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, managed in self._sessions.items()
            if managed.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> int:
        """
        Remove sessions older than max_age_seconds.

        Sessions with an extraction in flight are left alone.

        Returns:
            Number of sessions removed
        """
        current_time = time.time()
        to_remove = [
            session_id for session_id, managed in self._sessions.items()
            if current_time - managed.created_at > max_age_seconds
            and managed.snapshot.phase != Phase.PROCESSING
        ]

        for session_id in to_remove:
            self.end_session(session_id)
        return len(to_remove)
