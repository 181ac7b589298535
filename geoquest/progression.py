"""Score, streak, hearts, level and mastery transitions.

Every function here is pure: it takes a `SessionState` and returns a new one.
"""

import dataclasses
from typing import Dict, Optional, Tuple

from . import config
from .models import QuestionType, SessionState

# Option answers grow the combo slower than map taps
STREAK_BONUS = {"options": 0.1, "map": 0.2}
LEVEL_BONUS = 0.2

BASE_POINTS: Dict[QuestionType, int] = {
    QuestionType.MAP_TAP: 1000,
    QuestionType.COASTLINE_MCQ: 900,
    QuestionType.SILHOUETTE_MCQ: 900,
    QuestionType.RIVER_MCQ: 800,
    QuestionType.LANDMARK_PHOTO_MCQ: 750,
    QuestionType.NEIGHBOR_COUNT_MCQ: 600,
    QuestionType.SUBREGION_OUTLIER: 600,
    QuestionType.NEIGHBOR_MCQ: 600,
    QuestionType.PEAK_MCQ: 600,
    QuestionType.RANGE_MCQ: 600,
    QuestionType.UNESCO_MCQ: 600,
    QuestionType.ECONOMY_EXPORTS_MCQ: 600,
    QuestionType.GDP_TIER: 600,
    QuestionType.POPULATION_RANK: 500,
    QuestionType.CAPITAL_MCQ: 500,
    QuestionType.CURRENCY_MCQ: 500,
    QuestionType.LANGUAGE_MCQ: 500,
    QuestionType.CITY_MCQ: 500,
    QuestionType.FLAG_COLORS_MCQ: 500,
    QuestionType.POPULATION_TIER: 500,
    QuestionType.POPULATION_MORE_THAN: 500,
    QuestionType.FLAG_MATCH: 400,
    QuestionType.POPULATION_PAIR: 400,
    QuestionType.AREA_PAIR: 400,
    QuestionType.LANDLOCKED_MCQ: 400,
    QuestionType.REGION_MCQ: 400,
}

missing = set(QuestionType) - set(BASE_POINTS)
if missing:  # pragma: no cover
    raise RuntimeError(f"No base points for question types: {sorted(t.value for t in missing)}")
del missing

# (achievement id, title, threshold)
SCORE_ACHIEVEMENTS = (
    ("legend", "Geographic Legend (1M Pts)", 1_000_000),
    ("master", "Atlas Master (500k Pts)", 500_000),
    ("star", "Rising Star (100k Pts)", 100_000),
    ("elite", "Geographic Elite (25k Pts)", 25_000),
)
LEVEL_ACHIEVEMENTS = (
    ("lvl50", "World Sovereign (Level 50)", 50),
    ("lvl30", "Earth Master (Level 30)", 30),
    ("lvl15", "Global Navigator (Level 15)", 15),
    ("lvl8", "Veteran Traveler (Level 8)", 8),
)
STREAK_ACHIEVEMENTS = (
    ("streak50", "Untouchable Legend (50 Streak)", 50),
    ("streak25", "Master of Focus (25 Streak)", 25),
    ("streak10", "Unstoppable! (10 Streak)", 10),
)
MASTERY_ACHIEVEMENTS = (
    ("atlas100", "World Completionist (100 Mastered)", 100),
    ("atlas50", "Atlas Pro (50 Mastered)", 50),
    ("atlas25", "Globe Trotter (25 Mastered)", 25),
)
ACHIEVEMENT_TITLES = {
    key: title
    for table in (SCORE_ACHIEVEMENTS, LEVEL_ACHIEVEMENTS, STREAK_ACHIEVEMENTS, MASTERY_ACHIEVEMENTS)
    for key, title, _ in table
}


def answer_mode(question_type: QuestionType) -> str:
    return "map" if question_type is QuestionType.MAP_TAP else "options"


def points_for(question_type: QuestionType, streak: int, level: int, mode: Optional[str] = None) -> int:
    """Points for a correct answer given the streak *before* this answer."""
    bonus = STREAK_BONUS[mode or answer_mode(question_type)]
    base = BASE_POINTS[question_type]
    return int(round(base * (1 + streak * bonus) * (1 + (level - 1) * LEVEL_BONUS)))


def _unlocked(achievements: Tuple[str, ...], state: SessionState) -> Tuple[str, ...]:
    earned = list(achievements)
    mastered = sum(1 for count in state.mastery.values() if count >= 1)
    checks = (
        (SCORE_ACHIEVEMENTS, state.score),
        (LEVEL_ACHIEVEMENTS, state.level),
        (STREAK_ACHIEVEMENTS, state.streak),
        (MASTERY_ACHIEVEMENTS, mastered),
    )
    for table, value in checks:
        for key, _, threshold in table:
            if value >= threshold and key not in earned:
                earned.append(key)
    return tuple(earned)


def apply_outcome(
    state: SessionState,
    correct: bool,
    question_type: QuestionType,
    code: Optional[str] = None,
    completion_key: Optional[str] = None,
    mode: Optional[str] = None,
) -> SessionState:
    """Return the state after one answered question.

    A state that is already game over is returned unchanged; only `restart`
    leaves that state.
    """
    if state.game_over:
        return state

    if not correct:
        hearts = max(0, state.hearts - 1)
        return dataclasses.replace(
            state,
            streak=0,
            correct_in_level=0,
            hearts=hearts,
            game_over=hearts <= 0,
        )

    points = points_for(question_type, state.streak, state.level, mode)
    score = state.score + points
    streak = state.streak + 1
    hearts = state.hearts
    if streak % config.HEART_STREAK_EVERY == 0:
        hearts = min(hearts + 1, config.MAX_HEARTS)

    level = state.level
    level_start_score = state.level_start_score
    correct_in_level = state.correct_in_level + 1
    if correct_in_level >= config.LEVEL_UP_EVERY:
        level += 1
        correct_in_level = 0
        hearts = min(hearts + 1, config.MAX_HEARTS)
        # Points are locked in at each level-up
        level_start_score = score

    mastery = dict(state.mastery)
    if code:
        mastery[code] = mastery.get(code, 0) + 1
    completed = state.completed
    if completion_key and completion_key not in completed:
        completed = completed + (completion_key,)

    new_state = dataclasses.replace(
        state,
        score=score,
        high_score=max(state.high_score, score),
        streak=streak,
        best_streak=max(state.best_streak, streak),
        hearts=hearts,
        level=level,
        correct_in_level=correct_in_level,
        level_start_score=level_start_score,
        mastery=mastery,
        completed=completed,
    )
    return dataclasses.replace(new_state, achievements=_unlocked(state.achievements, new_state))


def restart(state: SessionState) -> SessionState:
    """Leave game over: full hearts, no streak, score back to the start of the level.

    Level, mastery and the completed-question history are kept.
    """
    return dataclasses.replace(
        state,
        hearts=config.MAX_HEARTS,
        game_over=False,
        streak=0,
        correct_in_level=0,
        score=state.level_start_score,
        display_score=state.level_start_score,
        hints_left=config.HINTS_PER_GAME,
        skips_left=config.SKIPS_PER_GAME,
    )


def use_hint(state: SessionState) -> SessionState:
    if state.hints_left <= 0 or state.game_over:
        return state
    return dataclasses.replace(state, hints_left=state.hints_left - 1)


def use_skip(state: SessionState) -> SessionState:
    if state.skips_left <= 0 or state.game_over:
        return state
    return dataclasses.replace(state, skips_left=state.skips_left - 1)


def new_achievements(before: SessionState, after: SessionState) -> Tuple[str, ...]:
    return tuple(key for key in after.achievements if key not in before.achievements)
