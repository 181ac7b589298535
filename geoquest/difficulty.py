"""Level gating: which slice of a pool and which question types a level plays."""

from typing import List, Sequence, Tuple, TypeVar

from . import config
from .models import QuestionType

T = TypeVar("T")

# (highest level in band, start, end) over a fame-sorted pool; None end = whole pool
LEVEL_BANDS = (
    (3, 0, 20),       # intro: a tight set of superstars
    (7, 10, 55),      # early: phasing in regional leaders
    (15, 40, 130),    # mid: the giants drop out, middle-weights remain
    (30, 100, 210),   # expert: islands and small states
)

# (first level, types unlocked there); order inside a band is the rotation order
TYPE_UNLOCKS: Tuple[Tuple[int, Tuple[QuestionType, ...]], ...] = (
    (1, (QuestionType.FLAG_MATCH, QuestionType.CAPITAL_MCQ)),
    (4, (
        QuestionType.MAP_TAP,
        QuestionType.NEIGHBOR_MCQ,
        QuestionType.POPULATION_PAIR,
        QuestionType.AREA_PAIR,
    )),
    (8, (
        QuestionType.CITY_MCQ,
        QuestionType.CURRENCY_MCQ,
        QuestionType.LANDLOCKED_MCQ,
        QuestionType.REGION_MCQ,
        QuestionType.POPULATION_TIER,
    )),
    (12, (
        QuestionType.RIVER_MCQ,
        QuestionType.LANGUAGE_MCQ,
        QuestionType.POPULATION_MORE_THAN,
        QuestionType.PEAK_MCQ,
        QuestionType.RANGE_MCQ,
    )),
    (15, (
        QuestionType.FLAG_COLORS_MCQ,
        QuestionType.GDP_TIER,
        QuestionType.ECONOMY_EXPORTS_MCQ,
        QuestionType.UNESCO_MCQ,
    )),
    (16, (
        QuestionType.SUBREGION_OUTLIER,
        QuestionType.NEIGHBOR_COUNT_MCQ,
        QuestionType.POPULATION_RANK,
    )),
    (20, (
        QuestionType.SILHOUETTE_MCQ,
        QuestionType.COASTLINE_MCQ,
        QuestionType.LANDMARK_PHOTO_MCQ,
    )),
)


def window_bounds(pool_size: int, level: int) -> Tuple[int, int]:
    """Return the [start, end) slice of a pool of `pool_size` entries for `level`.

    The band range is clamped so the window always holds at least
    MIN_WINDOW entries (or the whole pool when it is smaller than that).
    """
    start, end = 0, pool_size
    for max_level, band_start, band_end in LEVEL_BANDS:
        if level <= max_level:
            start, end = band_start, band_end
            break

    minimum = config.MIN_WINDOW
    s = max(0, min(start, pool_size - minimum))
    e = min(pool_size, max(s + minimum, min(end, pool_size)))
    return s, e


def window_for_level(pool: Sequence[T], level: int) -> List[T]:
    s, e = window_bounds(len(pool), level)
    return list(pool[s:e])


def types_for_level(level: int) -> Tuple[QuestionType, ...]:
    unlocked: List[QuestionType] = []
    for first_level, types in TYPE_UNLOCKS:
        if level >= first_level:
            unlocked.extend(types)
    return tuple(unlocked)
