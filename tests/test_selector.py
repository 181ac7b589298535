import random

from conftest import make_country

from geoquest.catalog import Catalog
from geoquest.difficulty import types_for_level, window_bounds
from geoquest.models import QuestionType
from geoquest.selector import QuestionSelector


def test_level_one_only_serves_unlocked_types(catalog, rng) -> None:
    selector = QuestionSelector(catalog, rng=rng)
    allowed = set(types_for_level(1))
    for _ in range(30):
        question = selector.next_question(1)
        assert question.type in allowed
        assert not question.is_placeholder


def test_rotation_alternates_types(catalog, rng) -> None:
    selector = QuestionSelector(catalog, rng=rng)
    served = [selector.next_question(1).type for _ in range(4)]
    assert served == [
        QuestionType.FLAG_MATCH,
        QuestionType.CAPITAL_MCQ,
        QuestionType.FLAG_MATCH,
        QuestionType.CAPITAL_MCQ,
    ]


def test_queue_serves_the_whole_window_before_repeating(catalog, rng) -> None:
    selector = QuestionSelector(catalog, rng=rng)
    pool = catalog.pool_for(QuestionType.CAPITAL_MCQ)
    start, end = window_bounds(len(pool), 1)
    window_codes = {c.cca3 for c in pool[start:end]}
    served = [selector.next_country(QuestionType.CAPITAL_MCQ, 1).cca3 for _ in range(end - start)]
    assert len(set(served)) == len(served)
    assert set(served) == window_codes


def test_completed_countries_are_skipped(catalog, rng) -> None:
    selector = QuestionSelector(catalog, rng=rng)
    pool = catalog.pool_for(QuestionType.CAPITAL_MCQ)
    start, end = window_bounds(len(pool), 1)
    window = pool[start:end]
    remaining = window[5]
    completed = [f"capital_mcq-{c.cca3}" for c in window if c is not remaining]
    for _ in range(5):
        assert selector.next_country(QuestionType.CAPITAL_MCQ, 1, completed) is remaining


def test_completed_keys_are_per_type(catalog, rng) -> None:
    selector = QuestionSelector(catalog, rng=rng)
    pool = catalog.pool_for(QuestionType.FLAG_MATCH)
    start, end = window_bounds(len(pool), 1)
    completed = [f"capital_mcq-{c.cca3}" for c in pool[start:end]]
    served = {selector.next_country(QuestionType.FLAG_MATCH, 1, completed).cca3 for _ in range(end - start)}
    assert served == {c.cca3 for c in pool[start:end]}


def test_fully_completed_window_is_recycled(catalog, rng) -> None:
    selector = QuestionSelector(catalog, rng=rng)
    pool = catalog.pool_for(QuestionType.CAPITAL_MCQ)
    start, end = window_bounds(len(pool), 1)
    window_codes = {c.cca3 for c in pool[start:end]}
    completed = [f"capital_mcq-{code}" for code in window_codes]
    country = selector.next_country(QuestionType.CAPITAL_MCQ, 1, completed)
    assert country.cca3 in window_codes


def test_level_change_rebuilds_the_queue(catalog, rng) -> None:
    selector = QuestionSelector(catalog, rng=rng)
    selector.next_country(QuestionType.CAPITAL_MCQ, 1)
    pool = catalog.pool_for(QuestionType.CAPITAL_MCQ)
    start, end = window_bounds(len(pool), 5)
    level_five = {c.cca3 for c in pool[start:end]}
    for _ in range(10):
        assert selector.next_country(QuestionType.CAPITAL_MCQ, 5).cca3 in level_five


def test_empty_pool_returns_none(catalog, rng) -> None:
    selector = QuestionSelector(catalog, rng=rng)
    assert selector.next_country(QuestionType.PEAK_MCQ, 12) is None


def test_unbuildable_types_are_skipped(rng) -> None:
    # No capitals anywhere: every level-1 question must be a flag
    countries = [make_country(f"C{idx:02d}", f"Country {idx}", population=idx + 1) for idx in range(12)]
    selector = QuestionSelector(Catalog(countries), rng=rng)
    for _ in range(6):
        assert selector.next_question(1).type is QuestionType.FLAG_MATCH


def test_placeholder_when_nothing_can_be_built(rng) -> None:
    selector = QuestionSelector(Catalog([]), rng=rng)
    question = selector.next_question(1)
    assert question.is_placeholder
    assert question.options == ["Retry"]


def test_id_prefix_keeps_ids_unique(catalog) -> None:
    selector = QuestionSelector(catalog, rng=random.Random(1))
    first = selector.next_question(1, id_prefix="a")
    second = selector.next_question(1, id_prefix="b")
    assert first.id.startswith("a-")
    assert second.id.startswith("b-")
    assert first.id != second.id


def test_set_catalog_clears_queues(catalog, rng, countries) -> None:
    selector = QuestionSelector(Catalog(countries), rng=rng)
    assert selector.next_country(QuestionType.MAP_TAP, 4) is None
    selector.next_country(QuestionType.CAPITAL_MCQ, 1)
    selector.set_catalog(catalog)
    assert all(not queue for queue in selector.queues.values())
    assert selector.next_country(QuestionType.MAP_TAP, 4) is not None


def test_higher_levels_mix_types(catalog, rng) -> None:
    selector = QuestionSelector(catalog, rng=rng)
    served = {selector.next_question(20).type for _ in range(60)}
    assert QuestionType.MAP_TAP in served
    assert QuestionType.POPULATION_PAIR in served
    assert served <= set(types_for_level(20))
