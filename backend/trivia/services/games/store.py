import logging
import threading
import time
from typing import Dict, List, Optional, Tuple

from .codes import generate_room_code
from .errors import NotFound
from .scheduler import TaskScheduler
from .session import GameSettings, Session

ROLE_HOST = 'host'
ROLE_PLAYER = 'player'


class SessionStore:
    """Owns every live room, keyed by room code.

    ``lock`` is re-entrant; callers hold it for the whole of one action so
    that a sweep or a timer never sees a session half-way through a change.
    """

    def __init__(
        self,
        scheduler: Optional[TaskScheduler] = None,
        clock=time.time,
        default_settings: Optional[GameSettings] = None,
        reconnect_grace: float = 60,
        stale_after: float = 30 * 60,
        code_factory=generate_room_code,
        logger=None,
    ):
        self.scheduler = scheduler or TaskScheduler()
        self.clock = clock
        self.default_settings = default_settings or GameSettings()
        self.reconnect_grace = reconnect_grace
        self.stale_after = stale_after
        self._code_factory = code_factory
        self._sessions: Dict[str, Session] = {}
        self.lock = threading.RLock()
        self.logger = logger or logging.getLogger(__name__)

    def __len__(self):
        return len(self._sessions)

    def __contains__(self, code):
        return code in self._sessions

    def codes(self) -> List[str]:
        return list(self._sessions)

    def create_session(self, host_id: str, settings: Optional[dict] = None) -> str:
        with self.lock:
            code = self._code_factory(lambda c: c in self._sessions)
            self._sessions[code] = Session(
                code=code,
                host_id=host_id,
                settings=GameSettings.from_payload(settings, self.default_settings),
                clock=self.clock,
                reconnect_grace=self.reconnect_grace,
            )
        self.logger.info(f"[room-create] room={code} host={host_id}")
        return code

    def get_session(self, code: str) -> Optional[Session]:
        return self._sessions.get(code)

    def require(self, code: str) -> Session:
        session = self._sessions.get(code)
        if session is None:
            raise NotFound('Game not found.')
        return session

    def remove_session(self, code: str) -> Optional[Session]:
        with self.lock:
            session = self._sessions.pop(code, None)
            self.scheduler.cancel_room(code)
            if session is None:
                return None
            session.disconnected_players.clear()
        self.logger.info(f"[room-remove] room={code}")
        return session

    def sweep_stale(self) -> List[str]:
        """Evict rooms idle for longer than ``stale_after`` seconds."""
        with self.lock:
            cutoff = self.clock() - self.stale_after
            stale = [code for code, s in self._sessions.items() if s.last_activity < cutoff]
            for code in stale:
                self.remove_session(code)
        if stale:
            self.logger.info(f"[sweep] evicted={','.join(stale)}")
        return stale

    def find_by_participant(self, connection_id: str) -> Optional[Tuple[str, str]]:
        for code, session in self._sessions.items():
            if session.host_id == connection_id:
                return code, ROLE_HOST
            if connection_id in session.players:
                return code, ROLE_PLAYER
        return None
