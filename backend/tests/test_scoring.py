from trivia.services.games.scoring import rank_entries, round_half_up, score_answer


def test_correct_instant_answer_on_third_streak():
    correct, points, streak = score_answer('A', 0, 'A', 20_000, prior_streak=2)
    assert correct is True
    assert streak == 3
    assert points == 1000 + 500 + 150


def test_correct_answer_at_time_limit_gets_no_speed_bonus():
    assert score_answer('B', 20_000, 'B', 20_000, prior_streak=0) == (True, 1000, 1)
    # Late answers are clamped, never negative
    assert score_answer('B', 25_000, 'B', 20_000, prior_streak=0) == (True, 1000, 1)


def test_streak_bonus_applies_with_no_speed_bonus():
    assert score_answer('C', 20_000, 'C', 20_000, prior_streak=3) == (True, 1000 + 4 * 50, 4)


def test_wrong_or_missing_answer_resets_streak():
    assert score_answer('A', 100, 'B', 20_000, prior_streak=5) == (False, 0, 0)
    assert score_answer(None, None, 'B', 20_000, prior_streak=5) == (False, 0, 0)


def test_speed_bonus_scales_linearly():
    _, points, _ = score_answer('A', 2000, 'A', 10_000, prior_streak=0)
    assert points == 1400
    _, points, _ = score_answer('A', 5000, 'A', 10_000, prior_streak=0)
    assert points == 1250


def test_half_points_round_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(0.49) == 0
    # 1 - 999/1000 = 0.001 -> 0.5 bonus points -> rounds up to 1
    _, points, _ = score_answer('A', 999, 'A', 1000, prior_streak=0)
    assert points == 1001


def test_rank_entries_keeps_input_order_for_ties():
    entries = [
        {'nickname': 'a', 'score': 10},
        {'nickname': 'b', 'score': 30},
        {'nickname': 'c', 'score': 10},
    ]
    ranked = rank_entries(entries, lambda e: e['score'])
    assert [(e['nickname'], e['rank']) for e in ranked] == [('b', 1), ('a', 2), ('c', 3)]


def test_speed_bonus_never_exceeds_maximum():
    _, points, _ = score_answer('A', -3000, 'A', 10_000, prior_streak=0)
    assert points == 1500
