from geoquest.difficulty import types_for_level, window_bounds, window_for_level
from geoquest.models import QuestionType


def test_band_windows_on_a_large_pool() -> None:
    assert window_bounds(200, 1) == (0, 20)
    assert window_bounds(200, 3) == (0, 20)
    assert window_bounds(200, 5) == (10, 55)
    assert window_bounds(200, 10) == (40, 130)
    assert window_bounds(200, 20) == (100, 200)
    assert window_bounds(250, 30) == (100, 210)
    assert window_bounds(200, 31) == (0, 200)


def test_window_clamps_to_minimum_size() -> None:
    assert window_bounds(15, 20) == (5, 15)
    assert window_bounds(6, 10) == (0, 6)
    assert window_bounds(0, 1) == (0, 0)


def test_window_bounds_always_valid() -> None:
    for size in range(0, 260, 7):
        for level in range(1, 40):
            start, end = window_bounds(size, level)
            assert 0 <= start <= end <= size
            assert end - start >= min(10, size)


def test_window_for_level_slices() -> None:
    pool = list(range(100))
    assert window_for_level(pool, 5) == list(range(10, 55))


def test_level_one_types() -> None:
    assert types_for_level(1) == (QuestionType.FLAG_MATCH, QuestionType.CAPITAL_MCQ)


def test_unlocks_are_cumulative() -> None:
    assert QuestionType.MAP_TAP not in types_for_level(3)
    assert QuestionType.MAP_TAP in types_for_level(4)
    assert QuestionType.POPULATION_TIER in types_for_level(8)
    assert QuestionType.PEAK_MCQ in types_for_level(12)
    assert QuestionType.POPULATION_RANK not in types_for_level(15)
    assert QuestionType.POPULATION_RANK in types_for_level(16)
    for level in range(1, 30):
        assert set(types_for_level(level)) <= set(types_for_level(level + 1))


def test_every_type_unlocks_exactly_once() -> None:
    types = types_for_level(20)
    assert set(types) == set(QuestionType)
    assert len(types) == len(set(types))
