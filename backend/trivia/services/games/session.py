"""Per-room game state.

A Session is one trivia room: the host connection, the players in it, the
questions picked at start, and where the room is in its
lobby -> playing -> showing results -> ... -> finished cycle.

All methods are short and synchronous. Callers (the orchestrator) serialize
access through the store lock; nothing in here blocks or schedules work.
"""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from .errors import Conflict, InvalidState
from .scoring import rank_entries, score_answer

ANSWER_OPTIONS = ('A', 'B', 'C', 'D')
DEFAULT_AVATAR = 'ghost'
DIFFICULTIES = ('all', 'easy', 'medium', 'hard')


class SessionState(str, Enum):
    LOBBY = 'lobby'
    PLAYING = 'playing'
    SHOWING_RESULTS = 'showing_results'
    FINISHED = 'finished'


def _positive_int(value, default: int) -> int:
    try:
        value = int(value)
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


@dataclass(frozen=True)
class GameSettings:
    question_count: int = 10
    time_per_question: int = 20
    difficulty: str = 'all'
    categories: Tuple = ()

    @classmethod
    def from_payload(cls, data: Optional[dict], defaults: Optional['GameSettings'] = None) -> 'GameSettings':
        """Build settings from a client payload, falling back field by field."""
        base = defaults or cls()
        data = data or {}
        difficulty = str(data.get('difficulty') or base.difficulty).lower()
        if difficulty not in DIFFICULTIES:
            difficulty = base.difficulty
        categories = data.get('categories')
        if not isinstance(categories, (list, tuple)):
            categories = base.categories
        return cls(
            question_count=_positive_int(data.get('question_count'), base.question_count),
            time_per_question=_positive_int(data.get('time_per_question'), base.time_per_question),
            difficulty=difficulty,
            categories=tuple(categories),
        )

    def to_dict(self):
        return {
            'question_count': self.question_count,
            'time_per_question': self.time_per_question,
            'difficulty': self.difficulty,
            'categories': list(self.categories),
        }


@dataclass(frozen=True)
class QuestionSnapshot:
    text: str
    options: Dict[str, str]
    correct_option: str
    difficulty: str
    category: str

    @property
    def correct_text(self) -> str:
        return self.options.get(self.correct_option, '')


@dataclass
class Player:
    nickname: str
    avatar: str = DEFAULT_AVATAR
    score: int = 0
    current_answer: Optional[str] = None
    answer_time_ms: Optional[int] = None
    streak: int = 0
    join_seq: int = 0

    def reset_answer(self) -> None:
        self.current_answer = None
        self.answer_time_ms = None

    def to_dict(self):
        return {'nickname': self.nickname, 'avatar': self.avatar, 'score': self.score}


@dataclass
class DisconnectedPlayer:
    player: Player
    expires_at: float
    question_index: int


@dataclass
class JoinResult:
    nickname: str
    reconnected: bool
    player_count: int
    players: List[dict]


def redact_question(payload: dict) -> dict:
    """Copy of a question payload that is safe to send to players."""
    public = dict(payload)
    public.pop('correct_option', None)
    return public


@dataclass
class Session:
    code: str
    host_id: str
    settings: GameSettings = field(default_factory=GameSettings)
    clock: Callable[[], float] = time.time
    reconnect_grace: float = 60.0
    state: SessionState = SessionState.LOBBY
    players: Dict[str, Player] = field(default_factory=dict)
    disconnected_players: Dict[str, DisconnectedPlayer] = field(default_factory=dict)
    questions: Tuple[QuestionSnapshot, ...] = ()
    current_question_index: int = -1
    question_start_time: Optional[float] = None
    last_activity: float = 0.0

    def __post_init__(self):
        self._join_counter = itertools.count(1)
        self.touch()

    def touch(self) -> None:
        self.last_activity = self.clock()

    @property
    def current_question(self) -> Optional[QuestionSnapshot]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    @property
    def answered_count(self) -> int:
        return sum(1 for p in self.players.values() if p.current_answer is not None)

    def roster(self) -> List[dict]:
        return [p.to_dict() for p in self.players.values()]

    def has_nickname(self, nickname: str) -> bool:
        lowered = nickname.lower()
        return any(p.nickname.lower() == lowered for p in self.players.values())

    # ---- membership ----

    def _purge_expired(self) -> None:
        now = self.clock()
        for key in [k for k, dc in self.disconnected_players.items() if dc.expires_at <= now]:
            del self.disconnected_players[key]

    def add_player(self, connection_id: str, nickname: str, avatar: Optional[str] = None) -> JoinResult:
        self._purge_expired()
        key = nickname.lower()

        if self.state != SessionState.LOBBY:
            held = self.disconnected_players.pop(key, None)
            if held is None:
                raise InvalidState('Game already in progress.')
            player = held.player
            if held.question_index != self.current_question_index:
                player.reset_answer()
            self.players[connection_id] = player
            self.touch()
            return JoinResult(player.nickname, True, len(self.players), self.roster())

        if self.has_nickname(nickname):
            raise Conflict('Nickname already taken.')

        player = Player(nickname=nickname, avatar=avatar or DEFAULT_AVATAR, join_seq=next(self._join_counter))
        self.players[connection_id] = player
        self.touch()
        return JoinResult(player.nickname, False, len(self.players), self.roster())

    def remove_player(self, connection_id: str, preserve_for_reconnect: bool = False) -> Optional[dict]:
        player = self.players.pop(connection_id, None)
        if player is None:
            return None
        if preserve_for_reconnect and self.state != SessionState.LOBBY:
            self._purge_expired()
            self.disconnected_players[player.nickname.lower()] = DisconnectedPlayer(
                player=player,
                expires_at=self.clock() + self.reconnect_grace,
                question_index=self.current_question_index,
            )
        self.touch()
        return {'nickname': player.nickname, 'player_count': len(self.players)}

    # ---- game flow ----

    def start(self, questions) -> None:
        if self.state != SessionState.LOBBY:
            raise InvalidState('Game has already started.')
        if not self.players:
            raise InvalidState('At least one player is required to start.')
        if not questions:
            raise InvalidState('No questions available. Ask an admin to add some!')
        self.questions = tuple(questions)
        self.current_question_index = -1
        self.state = SessionState.PLAYING
        self.touch()

    def advance_question(self) -> Optional[dict]:
        """Move to the next question, or finish the game.

        Returns the question payload (including ``correct_option``), a
        ``{'finished': True, 'standings': [...]}`` dict once questions run
        out, or None when there is nothing to advance.
        """
        if self.state in (SessionState.LOBBY, SessionState.FINISHED):
            return None

        self.current_question_index = min(self.current_question_index + 1, len(self.questions))
        self.touch()
        if self.current_question_index >= len(self.questions):
            self.state = SessionState.FINISHED
            self.question_start_time = None
            return {'finished': True, 'standings': self.standings()}

        q = self.questions[self.current_question_index]
        self.question_start_time = self.clock()
        self.state = SessionState.PLAYING
        for player in self.players.values():
            player.reset_answer()

        return {
            'finished': False,
            'question_number': self.current_question_index + 1,
            'total_questions': len(self.questions),
            'question': q.text,
            'options': dict(q.options),
            'category': q.category,
            'difficulty': q.difficulty,
            'time_limit': self.settings.time_per_question,
            'correct_option': q.correct_option,
        }

    def current_question_payload(self) -> Optional[dict]:
        """Redacted payload for the open question, for players rejoining mid-question."""
        q = self.current_question
        if q is None or self.state != SessionState.PLAYING:
            return None
        return {
            'finished': False,
            'question_number': self.current_question_index + 1,
            'total_questions': len(self.questions),
            'question': q.text,
            'options': dict(q.options),
            'category': q.category,
            'difficulty': q.difficulty,
            'time_limit': self.settings.time_per_question,
        }

    def submit_answer(self, connection_id: str, answer: str) -> Optional[dict]:
        if self.state != SessionState.PLAYING or self.question_start_time is None:
            return None
        player = self.players.get(connection_id)
        if player is None or player.current_answer is not None:
            return None

        player.current_answer = answer
        elapsed = self.clock() - self.question_start_time
        player.answer_time_ms = max(0, int(round(elapsed * 1000)))
        self.touch()

        answered = self.answered_count
        return {
            'answered_count': answered,
            'total_players': len(self.players),
            'all_answered': answered == len(self.players),
        }

    def compute_results(self) -> Optional[dict]:
        q = self.current_question
        if q is None or self.state != SessionState.PLAYING:
            return None

        time_limit_ms = self.settings.time_per_question * 1000
        results = []
        for connection_id, player in sorted(self.players.items(), key=lambda item: item[1].join_seq):
            correct, points, streak = score_answer(
                player.current_answer,
                player.answer_time_ms,
                q.correct_option,
                time_limit_ms,
                player.streak,
            )
            player.streak = streak
            player.score += points
            results.append({
                'connection_id': connection_id,
                'nickname': player.nickname,
                'avatar': player.avatar,
                'answer': player.current_answer,
                'correct': correct,
                'points_earned': points,
                'total_score': player.score,
                'streak': player.streak,
            })

        self.state = SessionState.SHOWING_RESULTS
        self.question_start_time = None
        self.touch()
        return {
            'question_number': self.current_question_index + 1,
            'correct_option': q.correct_option,
            'correct_text': q.correct_text,
            'results': rank_entries(results, lambda r: r['total_score']),
        }

    def standings(self) -> List[dict]:
        ordered = sorted(self.players.values(), key=lambda p: p.join_seq)
        return rank_entries([p.to_dict() for p in ordered], lambda e: e['score'])

    def public_state(self):
        return {
            'code': self.code,
            'state': self.state.value,
            'players': self.roster(),
            'player_count': len(self.players),
            'question_number': self.current_question_index + 1 if self.current_question else None,
            'total_questions': len(self.questions),
            'settings': self.settings.to_dict(),
        }
