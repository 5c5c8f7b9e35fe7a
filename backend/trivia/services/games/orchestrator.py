"""Drives rooms through their phases in response to host, player and timer events.

The orchestrator is the only caller of the store and sessions. Each public
method is one turn: it takes the store lock, mutates, and emits the resulting
notifications through the transport. Failures the caller should hear about are
raised as ``GameError``; harmless repeats (a second answer, a late timer) are
ignored.
"""

import logging
from typing import Callable, List, Optional

from .codes import is_valid_room_code, normalize_room_code
from .errors import InvalidState, NotFound, QuestionSupplyError, ValidationError
from .session import ANSWER_OPTIONS, DEFAULT_AVATAR, SessionState, redact_question
from .store import ROLE_HOST, ROLE_PLAYER, SessionStore

QUESTION_TIMER = 'question'
SWEEP_TASK = 'sweep'


def room_name(code: str) -> str:
    return f"room:{code}"


class SocketIOTransport:
    """Relays orchestrator notifications through Flask-SocketIO."""

    def __init__(self, socketio, namespace='/ws'):
        self.socketio = socketio
        self.namespace = namespace

    def emit(self, event: str, payload: Optional[dict], to: str) -> None:
        self.socketio.emit(event, payload or {}, to=to, namespace=self.namespace)

    def close_room(self, room: str) -> None:
        self.socketio.close_room(room, namespace=self.namespace)


class GameOrchestrator:
    def __init__(
        self,
        store: SessionStore,
        question_supply: Callable[..., List],
        transport,
        timer_buffer: float = 1.0,
        nickname_max_length: int = 20,
        logger=None,
    ):
        self.store = store
        self.question_supply = question_supply
        self.transport = transport
        self.timer_buffer = timer_buffer
        self.nickname_max_length = nickname_max_length
        self.logger = logger or logging.getLogger(__name__)

    @property
    def scheduler(self):
        return self.store.scheduler

    # ---- helpers ----

    def _broadcast(self, code: str, event: str, payload: Optional[dict] = None) -> None:
        self.transport.emit(event, payload, to=room_name(code))

    def _require_role(self, connection_id: str, role: str):
        found = self.store.find_by_participant(connection_id)
        if not found:
            raise NotFound('You are not in a game.')
        code, actual = found
        if actual != role:
            raise InvalidState(f'Only the {role} can do that.')
        return self.store.require(code)

    def _close(self, code: str) -> None:
        self.store.remove_session(code)
        self.transport.close_room(room_name(code))

    # ---- host actions ----

    def create_room(self, connection_id: str, settings: Optional[dict] = None) -> str:
        with self.store.lock:
            if self.store.find_by_participant(connection_id):
                raise InvalidState('This connection is already in a game.')
            code = self.store.create_session(connection_id, settings if isinstance(settings, dict) else None)
            session = self.store.require(code)
        self.transport.emit('room_created', {'code': code, 'settings': session.settings.to_dict()}, to=connection_id)
        return code

    def start_room(self, connection_id: str) -> None:
        with self.store.lock:
            session = self._require_role(connection_id, ROLE_HOST)
            if session.state != SessionState.LOBBY:
                raise InvalidState('Game has already started.')
            if not session.players:
                raise InvalidState('At least one player is required to start.')
            settings = session.settings
            try:
                questions = self.question_supply(settings.difficulty, settings.categories, settings.question_count)
            except QuestionSupplyError:
                self.logger.exception(f"[question-supply] failed room={session.code}")
                raise
            if not questions:
                raise InvalidState('No questions available. Ask an admin to add some!')
            session.start(questions)
            self.logger.info(f"[room-start] room={session.code} players={len(session.players)} questions={len(questions)}")
            self._broadcast(session.code, 'room_started', {
                'total_questions': len(session.questions),
                'player_count': len(session.players),
            })
            self._send_next_question(session.code)

    def advance_question(self, connection_id: str) -> None:
        with self.store.lock:
            if self.store.find_by_participant(connection_id) is None:
                # Room already over and removed
                return
            session = self._require_role(connection_id, ROLE_HOST)
            if session.state == SessionState.LOBBY:
                raise InvalidState('Game has not started yet.')
            self._send_next_question(session.code)

    def _send_next_question(self, code: str) -> None:
        session = self.store.get_session(code)
        if session is None:
            return
        self.scheduler.cancel((code, QUESTION_TIMER))
        data = session.advance_question()
        if data is None:
            return

        if data['finished']:
            self.logger.info(f"[room-over] room={code}")
            self._broadcast(code, 'room_over', {'standings': data['standings']})
            self._close(code)
            return

        self.transport.emit('question', data, to=session.host_id)
        public = redact_question(data)
        for player_id in session.players:
            self.transport.emit('question', public, to=player_id)

        self.scheduler.schedule(
            (code, QUESTION_TIMER),
            session.settings.time_per_question + self.timer_buffer,
            self.question_expired,
            code,
            session.current_question_index,
        )

    # ---- player actions ----

    def join_room(self, connection_id: str, code, nickname, avatar=None) -> dict:
        code = normalize_room_code(code)
        nickname = nickname.strip() if isinstance(nickname, str) else ''
        avatar = (avatar.strip() if isinstance(avatar, str) else '') or DEFAULT_AVATAR
        if not code or not nickname:
            raise ValidationError('Code and nickname are required.')
        if len(nickname) > self.nickname_max_length:
            raise ValidationError(f'Nickname must be {self.nickname_max_length} characters or less.')
        if not is_valid_room_code(code):
            raise ValidationError('That does not look like a room code.')

        with self.store.lock:
            if self.store.find_by_participant(connection_id):
                raise InvalidState('This connection is already in a game.')
            session = self.store.require(code)
            result = session.add_player(connection_id, nickname, avatar)
            self.logger.info(f"[join] room={code} nickname={result.nickname} reconnected={result.reconnected}")

            joined = {'code': code, 'nickname': result.nickname, 'reconnected': result.reconnected}
            self.transport.emit('joined', joined, to=connection_id)
            self._broadcast(code, 'player_joined', {
                'nickname': result.nickname,
                'player_count': result.player_count,
                'players': result.players,
            })
            if result.reconnected:
                current = session.current_question_payload()
                if current is not None:
                    self.transport.emit('question', current, to=connection_id)
            return joined

    def submit_answer(self, connection_id: str, answer) -> Optional[dict]:
        answer = (answer or '').strip().upper() if isinstance(answer, str) else ''
        if answer not in ANSWER_OPTIONS:
            raise ValidationError('Answer must be one of A, B, C or D.')

        with self.store.lock:
            found = self.store.find_by_participant(connection_id)
            if not found or found[1] != ROLE_PLAYER:
                return None
            session = self.store.require(found[0])
            progress = session.submit_answer(connection_id, answer)
            if progress is None:
                return None

            self.transport.emit('answer_progress', {
                'answered_count': progress['answered_count'],
                'total_players': progress['total_players'],
            }, to=session.host_id)
            if progress['all_answered']:
                self.end_question(session.code)
            return progress

    # ---- results ----

    def question_expired(self, code: str, question_index: int) -> None:
        with self.store.lock:
            session = self.store.get_session(code)
            if session is None or session.current_question_index != question_index:
                self.logger.info(f"[timer-stale] room={code} question={question_index}")
                return
            self.end_question(code)

    def end_question(self, code: str) -> Optional[dict]:
        with self.store.lock:
            session = self.store.get_session(code)
            if session is None or session.state != SessionState.PLAYING:
                return None
            self.scheduler.cancel((code, QUESTION_TIMER))
            results = session.compute_results()
            if results is None:
                return None

            host_view = dict(results)
            host_view['results'] = [
                {k: v for k, v in r.items() if k != 'connection_id'} for r in results['results']
            ]
            self.transport.emit('question_results', host_view, to=session.host_id)

            total = len(results['results'])
            for r in results['results']:
                self.transport.emit('answer_result', {
                    'correct': r['correct'],
                    'correct_option': results['correct_option'],
                    'correct_text': results['correct_text'],
                    'points_earned': r['points_earned'],
                    'total_score': r['total_score'],
                    'rank': r['rank'],
                    'total_players': total,
                    'streak': r['streak'],
                }, to=r['connection_id'])
            return results

    # ---- lifecycle ----

    def disconnect(self, connection_id: str) -> None:
        with self.store.lock:
            found = self.store.find_by_participant(connection_id)
            if not found:
                return
            code, role = found
            session = self.store.require(code)

            if role == ROLE_HOST:
                self.logger.info(f"[host-disconnect] room={code}")
                self._broadcast(code, 'host_disconnected', {'code': code})
                self._close(code)
                return

            removed = session.remove_player(connection_id, preserve_for_reconnect=True)
            if removed is None:
                return
            self._broadcast(code, 'player_left', {
                'nickname': removed['nickname'],
                'player_count': removed['player_count'],
                'players': session.roster(),
            })
            if (
                session.state == SessionState.PLAYING
                and session.players
                and session.answered_count == len(session.players)
            ):
                self.end_question(code)

    def sweep_stale_sessions(self) -> List[str]:
        with self.store.lock:
            evicted = self.store.sweep_stale()
            for code in evicted:
                self.transport.close_room(room_name(code))
        return evicted

    def start_background_sweep(self, interval: float) -> bool:
        return self.scheduler.start_periodic(SWEEP_TASK, interval, self.sweep_stale_sessions)

    def room_state(self, code) -> dict:
        with self.store.lock:
            return self.store.require(normalize_room_code(code)).public_state()
