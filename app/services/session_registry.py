"""In-memory registry of live series sessions."""

from __future__ import annotations

import logging
import secrets
from collections import OrderedDict

from ..clock import Clock, system_clock
from ..config import Settings
from .series_session import MetadataSource, SeriesSession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """Create, look up and discard :class:`SeriesSession` objects.

    Sessions only live in process memory. Once ``session_limit`` sessions
    exist the least recently used one is evicted.
    """

    def __init__(
        self,
        settings: Settings,
        source: MetadataSource,
        *,
        clock: Clock = system_clock,
    ) -> None:
        self._settings = settings
        self._source = source
        self._clock = clock
        self._sessions: OrderedDict[str, SeriesSession] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    async def create(self, title_id: str) -> SeriesSession:
        """Register a new session and load ``title_id`` into it."""

        session_id = secrets.token_urlsafe(12)
        session = SeriesSession(
            self._settings, self._source, session_id=session_id, clock=self._clock
        )
        self._sessions[session_id] = session
        self._evict()
        logger.info("Created session %s for %s", session_id, title_id)
        await session.load_title(title_id)
        return session

    def get(self, session_id: str) -> SeriesSession:
        """Return a session, raising ``KeyError`` when it is unknown."""

        session = self._sessions.get(session_id)
        if session is None:
            raise KeyError(f"Unknown session {session_id}")
        self._sessions.move_to_end(session_id)
        return session

    def discard(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def _evict(self) -> None:
        while len(self._sessions) > self._settings.session_limit:
            session_id, _ = self._sessions.popitem(last=False)
            logger.info("Evicted session %s", session_id)
