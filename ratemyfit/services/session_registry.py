"""In-memory registry of per-client analysis sessions."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ratemyfit.config import MAX_SESSIONS, SESSION_IDLE_TTL_SECONDS, logger
from ratemyfit.core import wardrobe_ops
from ratemyfit.core.notifications import Notifier
from ratemyfit.core.request_dedup import RequestDeduplicator
from ratemyfit.core.upload_session import UploadSession
from ratemyfit.core.wardrobe_poller import WardrobePoller


@dataclass
class AnalysisSession:
    """Everything one client session owns: upload state, dedup guard, poller."""

    session_id: str
    upload: UploadSession = field(default_factory=UploadSession)
    dedup: RequestDeduplicator = field(default_factory=RequestDeduplicator)
    notifier: Notifier = field(default_factory=Notifier)
    wardrobe_items: List[Dict[str, Any]] = field(default_factory=list)
    created_at: float = field(default_factory=time.time)
    last_access: float = field(default_factory=time.monotonic)
    poller: Optional[WardrobePoller] = None

    def __post_init__(self) -> None:
        if self.poller is None:
            self.poller = WardrobePoller(
                fetch_items=lambda ids: wardrobe_ops.fetch_clothing_items(ids),
                local_update=self.set_wardrobe_items,
                notifier=self.notifier,
            )

    def set_wardrobe_items(self, items: List[Dict[str, Any]]) -> None:
        self.wardrobe_items = list(items)

    def watch_wardrobe(self, items: List[Dict[str, Any]]) -> None:
        """Replace the local wardrobe copy and restart polling for it."""
        self.set_wardrobe_items(items)
        self.poller.update_items(self.wardrobe_items)

    def discard(self) -> None:
        """Drop state and cancel polling without waiting for tasks to finish."""
        self.upload.clear()
        self.poller.stop()

    async def close(self) -> None:
        self.upload.clear()
        await self.poller.aclose()


class SessionRegistry:
    """
    Sessions keyed by id, evicted after ``idle_ttl_seconds`` without access
    or, least recently used first, once more than ``max_sessions`` exist.
    """

    def __init__(
        self,
        idle_ttl_seconds: float = SESSION_IDLE_TTL_SECONDS,
        max_sessions: int = MAX_SESSIONS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.idle_ttl_seconds = idle_ttl_seconds
        self.max_sessions = max_sessions
        self._clock = clock
        self._sessions: Dict[str, AnalysisSession] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def get(self, session_id: Optional[str]) -> Optional[AnalysisSession]:
        """Return an existing session and mark it used; never creates one."""
        self._evict_idle()
        if not session_id:
            return None
        session = self._sessions.get(session_id)
        if session is not None:
            session.last_access = self._clock()
        return session

    def get_or_create(self, session_id: Optional[str] = None) -> AnalysisSession:
        existing = self.get(session_id)
        if existing is not None:
            return existing

        new_id = session_id or uuid.uuid4().hex
        session = AnalysisSession(session_id=new_id, last_access=self._clock())
        self._sessions[new_id] = session
        logger.info(f"Created analysis session: {new_id}")

        self._evict_overflow()
        return session

    def _evict_idle(self) -> None:
        now = self._clock()
        expired = [
            session_id
            for session_id, session in self._sessions.items()
            if now - session.last_access > self.idle_ttl_seconds
        ]
        for session_id in expired:
            self._sessions.pop(session_id).discard()

        if expired:
            logger.info(f"Evicted {len(expired)} idle analysis session(s)")

    def _evict_overflow(self) -> None:
        overflow = len(self._sessions) - self.max_sessions
        if overflow <= 0:
            return

        oldest = sorted(self._sessions.values(), key=lambda s: s.last_access)
        for session in oldest[:overflow]:
            self._sessions.pop(session.session_id).discard()

        logger.warning(
            f"Session limit {self.max_sessions} reached; "
            f"evicted {overflow} least recently used session(s)"
        )

    async def close(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        await session.close()
        logger.info(f"Closed analysis session: {session_id}")
        return True

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close(session_id)


# Global session registry instance
session_registry = SessionRegistry()
