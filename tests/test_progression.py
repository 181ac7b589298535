import dataclasses

from geoquest import config
from geoquest.models import QuestionType, SessionState
from geoquest.progression import (
    BASE_POINTS,
    apply_outcome,
    new_achievements,
    points_for,
    restart,
    use_hint,
    use_skip,
)

CAPITAL = QuestionType.CAPITAL_MCQ


def _answer_correct(state: SessionState, times: int, question_type=CAPITAL) -> SessionState:
    for _ in range(times):
        state = apply_outcome(state, True, question_type, code="FRA")
    return state


def test_every_type_has_base_points() -> None:
    assert set(BASE_POINTS) == set(QuestionType)


def test_points_for() -> None:
    assert points_for(CAPITAL, streak=0, level=1) == 500
    assert points_for(CAPITAL, streak=2, level=1) == 600
    assert points_for(CAPITAL, streak=0, level=3) == 700
    assert points_for(QuestionType.MAP_TAP, streak=2, level=1) == 1400
    assert points_for(QuestionType.FLAG_MATCH, streak=1, level=2) == round(400 * 1.1 * 1.2)


def test_correct_answer_scores_and_records() -> None:
    state = apply_outcome(SessionState(), True, CAPITAL, code="FRA", completion_key="capital_mcq-FRA")
    assert state.score == 500
    assert state.high_score == 500
    assert state.streak == 1
    assert state.best_streak == 1
    assert state.correct_in_level == 1
    assert state.mastery == {"FRA": 1}
    assert state.completed == ("capital_mcq-FRA",)
    again = apply_outcome(state, True, CAPITAL, code="FRA", completion_key="capital_mcq-FRA")
    assert again.mastery == {"FRA": 2}
    assert again.completed == ("capital_mcq-FRA",)


def test_wrong_answer_costs_a_heart_and_resets_streaks() -> None:
    state = _answer_correct(SessionState(), 3)
    state = apply_outcome(state, False, CAPITAL)
    assert state.hearts == config.MAX_HEARTS - 1
    assert state.streak == 0
    assert state.correct_in_level == 0
    assert state.best_streak == 3
    assert state.score == 500 + 550 + 600


def test_five_correct_levels_up_once() -> None:
    state = _answer_correct(SessionState(hearts=1), 4)
    assert state.level == 1
    assert state.correct_in_level == 4
    state = _answer_correct(state, 1)
    assert state.level == 2
    assert state.correct_in_level == 0
    assert state.level_start_score == state.score
    # Streak heart and level-up heart
    assert state.hearts == 3


def test_hearts_never_exceed_the_maximum() -> None:
    state = SessionState()
    for _ in range(40):
        state = apply_outcome(state, True, CAPITAL, code="FRA")
        assert 0 <= state.hearts <= config.MAX_HEARTS


def test_streak_heart_every_fifth() -> None:
    state = dataclasses.replace(SessionState(hearts=1), streak=4, correct_in_level=0)
    state = apply_outcome(state, True, CAPITAL, code="FRA")
    assert state.streak == 5
    assert state.level == 1
    assert state.hearts == 2
    state = apply_outcome(state, True, CAPITAL, code="FRA")
    assert state.hearts == 2


def test_game_over_freezes_the_state() -> None:
    state = SessionState(hearts=1)
    state = apply_outcome(state, False, CAPITAL)
    assert state.game_over
    assert apply_outcome(state, True, CAPITAL, code="FRA") is state
    assert apply_outcome(state, False, CAPITAL) is state


def test_restart_goes_back_to_the_level_start() -> None:
    state = _answer_correct(SessionState(), 7)
    assert state.level == 2
    locked = state.level_start_score
    for _ in range(3):
        state = apply_outcome(state, False, CAPITAL)
    assert state.game_over
    state = restart(state)
    assert not state.game_over
    assert state.hearts == config.MAX_HEARTS
    assert state.score == locked
    assert state.level == 2
    assert state.streak == 0
    assert state.correct_in_level == 0
    assert state.mastery == {"FRA": 7}
    assert state.hints_left == config.HINTS_PER_GAME


def test_achievements_unlock_once() -> None:
    before = SessionState(score=24_900)
    after = apply_outcome(before, True, CAPITAL, code="FRA")
    assert "elite" in after.achievements
    assert new_achievements(before, after) == ("elite",)
    later = apply_outcome(after, True, CAPITAL, code="FRA")
    assert later.achievements.count("elite") == 1
    assert new_achievements(after, later) == ()


def test_streak_achievement() -> None:
    state = _answer_correct(SessionState(), 10)
    assert "streak10" in state.achievements


def test_hints_and_skips_run_out() -> None:
    state = SessionState(hints_left=1, skips_left=1)
    state = use_hint(state)
    assert state.hints_left == 0
    assert use_hint(state) is state
    state = use_skip(state)
    assert state.skips_left == 0
    assert use_skip(state) is state
