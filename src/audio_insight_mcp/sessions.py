"""In-memory registry of analysis sessions."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from .adapter import AudioAnalyzer
from .config import get_config
from .controller import SessionController
from .models.session import SessionState


@dataclass
class AudioSession:
    """One user's form: a controller plus bookkeeping for eviction."""

    session_id: str
    controller: SessionController
    created_at: datetime = field(default_factory=datetime.now)
    last_active: datetime = field(default_factory=datetime.now)

    def touch(self) -> None:
        self.last_active = datetime.now()


class SessionStore:
    """Process-wide session registry with TTL eviction."""

    def __init__(self) -> None:
        self._sessions: dict[str, AudioSession] = {}

    def create(
        self,
        csv_header_template: str | None = None,
        analyzer: AudioAnalyzer | None = None,
    ) -> AudioSession:
        """Create a new session, evicting expired ones first.

        At capacity the least recently used idle session is dropped. Sessions
        with an analysis in flight are never evicted, so the store may briefly
        exceed ``max_sessions``.
        """
        self._evict_expired()
        cfg = get_config()
        if len(self._sessions) >= cfg.max_sessions:
            idle = [s for s in self._sessions.values() if not s.controller.state.is_processing]
            if idle:
                oldest = min(idle, key=lambda s: s.last_active)
                del self._sessions[oldest.session_id]

        state = SessionState(csv_header_template=csv_header_template or cfg.csv_header_template)
        sid = uuid.uuid4().hex[:12]
        session = AudioSession(
            session_id=sid,
            controller=SessionController(analyzer=analyzer, state=state),
        )
        self._sessions[sid] = session
        return session

    def get(self, session_id: str) -> AudioSession | None:
        """Look up a session by ID and mark it active."""
        self._evict_expired()
        session = self._sessions.get(session_id)
        if session is not None:
            session.touch()
        return session

    def require(self, session_id: str) -> AudioSession:
        """Like ``get`` but raises KeyError for unknown or expired ids."""
        session = self.get(session_id)
        if session is None:
            raise KeyError(f"Session {session_id} not found")
        return session

    def remove(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def _evict_expired(self) -> int:
        """Remove idle sessions past the configured timeout. Returns count evicted.

        A session with an analysis in flight is never evicted.
        """
        timeout = timedelta(hours=get_config().session_timeout_hours)
        now = datetime.now()
        expired = [
            sid
            for sid, s in self._sessions.items()
            if now - s.last_active > timeout and not s.controller.state.is_processing
        ]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)

    @property
    def count(self) -> int:
        """Number of live sessions."""
        return len(self._sessions)


# Module-level singleton
session_store = SessionStore()
