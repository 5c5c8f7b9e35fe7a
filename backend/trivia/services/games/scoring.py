import math
from typing import Callable, List, Optional, Tuple

BASE_POINTS = 1000
MAX_SPEED_BONUS = 500
STREAK_THRESHOLD = 3
STREAK_BONUS_PER_ANSWER = 50


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_answer(
    answer: Optional[str],
    answer_time_ms: Optional[int],
    correct_option: str,
    time_limit_ms: int,
    prior_streak: int,
) -> Tuple[bool, int, int]:
    """Score one player's answer to one question.

    Returns ``(correct, points, new_streak)``. A correct answer earns
    BASE_POINTS plus a speed bonus that shrinks linearly to zero at the time
    limit; a player who never answered is treated as having used the whole
    limit. From the third correct answer in a row, ``streak * 50`` is added.
    Anything else scores nothing and resets the streak.
    """
    correct = answer is not None and answer == correct_option
    if not correct:
        return False, 0, 0

    elapsed = time_limit_ms if answer_time_ms is None else answer_time_ms
    time_fraction = min(1.0, max(0.0, 1 - elapsed / time_limit_ms)) if time_limit_ms > 0 else 0.0
    points = BASE_POINTS + round_half_up(time_fraction * MAX_SPEED_BONUS)
    streak = prior_streak + 1
    if streak >= STREAK_THRESHOLD:
        points += streak * STREAK_BONUS_PER_ANSWER
    return True, points, streak


def rank_entries(entries: List[dict], score_of: Callable[[dict], int]) -> List[dict]:
    """Sort entries by descending score and number them 1..N.

    The sort is stable, so callers control tie order by the order they pass
    entries in. Tied scores still get distinct ranks.
    """
    ranked = sorted(entries, key=lambda e: -score_of(e))
    for idx, entry in enumerate(ranked, start=1):
        entry['rank'] = idx
    return ranked
