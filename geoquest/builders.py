"""One builder per question type, plus the option-set and pair-sampling helpers.

Every builder takes the shared `BuildContext` and the subject country picked
by the selector, and returns a `Question` or None when the subject (or the
pool around it) lacks what the question type needs. None is not an error:
the selector simply moves on to the next type in the rotation.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from . import config
from .catalog import Catalog
from .difficulty import window_for_level
from .geography import normalize_label
from .models import CountryRecord, Question, QuestionType, RiverRecord

logger = logging.getLogger(__name__)

DISTRACTOR_COUNT = config.OPTION_COUNT - 1

# Ratio window for comparison pairs: closer is a coin flip, wider is trivial
PAIR_MIN_RATIO = 1.05
PAIR_MAX_RATIO = 5.0
PAIR_ATTEMPTS = 50

# Subregion distractors only kick in once the window is this large
SUBREGION_TIER_MIN_POOL = 50

POPULATION_TIERS = (("Top 10", 10), ("Top 20", 20), ("Top 50", 50), ("Outside Top 50", None))
GDP_TIERS = (("Top 10", 10), ("Top 25", 25), ("Top 50", 50), ("Outside Top 50", None))

FLAG_THREE_COLOR_CCA3 = frozenset({
    "FRA", "DEU", "ITA", "BEL", "ROU", "COL", "VEN", "ECU", "EST", "LTU", "LVA",
    "RUS", "NLD", "LUX", "BGR", "IRL", "HUN", "SLE", "GAB", "TCD", "MLI", "GIN", "CIV",
})

RANK_SEPARATOR = " > "
RANK_PERMUTATION_ATTEMPTS = 6


def shuffle(items: Iterable, rng: random.Random) -> List:
    """Fisher-Yates shuffle into a new list; the input is left untouched."""
    result = list(items)
    for i in range(len(result) - 1, 0, -1):
        j = rng.randrange(i + 1)
        result[i], result[j] = result[j], result[i]
    return result


class OptionSet(NamedTuple):
    options: List[str]
    correct_index: int
    option_codes: Optional[List[Optional[str]]] = None


@dataclass
class BuildContext:
    catalog: Catalog
    level: int
    rng: random.Random
    rivers: Mapping[str, RiverRecord] = field(default_factory=dict)

    def window(self, pool_key: str) -> List[CountryRecord]:
        return window_for_level(self.catalog.pool(pool_key), self.level)


# ---------- Option sets ----------
def _fill(options: List[str], candidates: Iterable[str]) -> None:
    for value in candidates:
        if len(options) >= config.OPTION_COUNT:
            return
        if value and value not in options:
            options.append(value)


def build_option_set(
    pool: Sequence[CountryRecord],
    subject: CountryRecord,
    value_of: Callable[[CountryRecord], str],
    correct_value: str,
    rng: random.Random,
) -> OptionSet:
    """Correct value plus up to three distractor values drawn from `pool`.

    Same-region countries are preferred when they can supply at least three
    distinct distractors, which keeps wrong answers plausible (an African
    capital among African capitals). The whole pool tops up any shortfall.
    """
    options = [correct_value]
    same_region = [c for c in pool if c.region == subject.region]
    region_values = {value_of(c) for c in same_region} - {"", correct_value}
    primary = same_region if len(region_values) >= DISTRACTOR_COUNT else pool

    _fill(options, (value_of(c) for c in shuffle(primary, rng)))
    if len(options) < config.OPTION_COUNT:
        _fill(options, (value_of(c) for c in shuffle(pool, rng)))

    final = shuffle(options, rng)
    return OptionSet(final, final.index(correct_value))


def build_option_set_from_values(values: Iterable[str], correct_value: str, rng: random.Random) -> OptionSet:
    options = [correct_value]
    _fill(options, shuffle([v for v in values if v], rng))
    final = shuffle(options, rng)
    return OptionSet(final, final.index(correct_value))


def build_option_set_for_countries(
    pool: Sequence[CountryRecord],
    subject: CountryRecord,
    rng: random.Random,
) -> OptionSet:
    """Country-name options, distractors tightened to the subject's neighbourhood.

    Same subregion when the pool is large and has three candidates there
    (late-game flags and shapes look alike), else same region, else anything.
    """
    correct_value = subject.name
    codes_by_name: Dict[str, str] = {c.name: c.cca3 for c in pool}
    codes_by_name[correct_value] = subject.cca3

    same_subregion = [c for c in pool if c.subregion == subject.subregion and c.name != correct_value]
    same_region = [c for c in pool if c.region == subject.region and c.name != correct_value]
    if len(pool) > SUBREGION_TIER_MIN_POOL and len(same_subregion) >= DISTRACTOR_COUNT:
        primary = same_subregion
    elif len(same_region) >= DISTRACTOR_COUNT:
        primary = same_region
    else:
        primary = pool

    options = [correct_value]
    _fill(options, (c.name for c in shuffle(primary, rng)))
    if len(options) < config.OPTION_COUNT:
        _fill(options, (c.name for c in shuffle(pool, rng)))

    final = shuffle(options, rng)
    return OptionSet(final, final.index(correct_value), [codes_by_name.get(name) for name in final])


def pick_metric_pair(
    pool: Sequence[CountryRecord],
    metric: str,
    rng: random.Random,
) -> Optional[Tuple[CountryRecord, CountryRecord]]:
    """Two countries with different, positive values of `metric` ("population" or "area").

    Random sampling looks for a ratio strictly between 1.05 and 5.0 first;
    when none turns up the first unequal pair in shuffled order is returned.
    """
    if len(pool) < 2:
        return None
    shuffled = shuffle(pool, rng)

    for _ in range(PAIR_ATTEMPTS):
        a = shuffled[rng.randrange(len(shuffled))]
        b = shuffled[rng.randrange(len(shuffled))]
        if a.cca3 == b.cca3:
            continue
        value_a = getattr(a, metric) or 0
        value_b = getattr(b, metric) or 0
        if value_a <= 0 or value_b <= 0:
            continue
        ratio = max(value_a, value_b) / min(value_a, value_b)
        if PAIR_MIN_RATIO < ratio < PAIR_MAX_RATIO:
            return a, b

    logger.debug("No %s pair in ratio window among %d countries; using fallback", metric, len(pool))
    for i, a in enumerate(shuffled):
        value_a = getattr(a, metric) or 0
        if value_a <= 0:
            continue
        for b in shuffled[i + 1:]:
            value_b = getattr(b, metric) or 0
            if value_b > 0 and value_b != value_a and a.cca3 != b.cca3:
                return a, b
    return None


# ---------- Builders ----------
def _question(question_type: QuestionType, country: CountryRecord, prompt: str, **kwargs) -> Question:
    kwargs.setdefault("target_code", country.cca3)
    kwargs.setdefault("display_codes", [country.cca3])
    return Question(
        id=f"{question_type.value}-{country.cca3}",
        type=question_type,
        prompt=prompt,
        completion_key=f"{question_type.value}-{country.cca3}",
        **kwargs,
    )


def build_map_tap(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    target = ctx.catalog.geometry.get(country.cca3)
    if target is None:
        return None
    return _question(
        QuestionType.MAP_TAP,
        country,
        country.name,
        continent=country.region,
        flag_svg=country.flag_svg,
        flag_png=country.flag_png,
        target=target,
    )


def _country_choice(
    ctx: BuildContext,
    question_type: QuestionType,
    country: CountryRecord,
    pool_key: str,
    prompt: str,
    **kwargs,
) -> Question:
    option_set = build_option_set_for_countries(ctx.window(pool_key), country, ctx.rng)
    return _question(
        question_type,
        country,
        prompt,
        options=option_set.options,
        correct_index=option_set.correct_index,
        option_codes=option_set.option_codes,
        **kwargs,
    )


def build_flag_match(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    if not (country.flag_svg or country.flag_png):
        return None
    return _country_choice(
        ctx, QuestionType.FLAG_MATCH, country, "flag",
        "Which country matches this flag?",
        flag_svg=country.flag_svg,
        flag_png=country.flag_png,
    )


def build_silhouette(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    target = ctx.catalog.geometry.get(country.cca3)
    if target is None:
        return None
    return _country_choice(
        ctx, QuestionType.SILHOUETTE_MCQ, country, "map",
        "Identify this country by its shape:",
        target=target,
        hide_labels=True,
    )


def build_coastline(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    target = ctx.catalog.geometry.get(country.cca3)
    if target is None:
        return None
    return _country_choice(
        ctx, QuestionType.COASTLINE_MCQ, country, "all",
        "Which island or coastline is shown here?",
        target=target,
    )


def build_landmark_photo(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    landmarks = ctx.catalog.landmarks_by_code.get(country.cca3) or []
    if not landmarks:
        return None
    landmark = landmarks[ctx.rng.randrange(len(landmarks))]
    question = _country_choice(
        ctx, QuestionType.LANDMARK_PHOTO_MCQ, country, "all",
        "Which country is shown in this landmark photo?",
        image_path=landmark.image_path,
    )
    question.id = f"{question.id}-{landmark.id}"
    return question


def _attribute_builder(
    question_type: QuestionType,
    pool_key: str,
    value_of: Callable[[CountryRecord], str],
    prompt: str,
) -> Callable[[BuildContext, CountryRecord], Optional[Question]]:
    """Builder for "which <attribute> belongs to <country>" questions."""

    def build(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
        correct_value = value_of(country)
        if not correct_value:
            return None
        option_set = build_option_set(ctx.window(pool_key), country, value_of, correct_value, ctx.rng)
        return _question(
            question_type,
            country,
            prompt.format(name=country.name),
            options=option_set.options,
            correct_index=option_set.correct_index,
        )

    build.__name__ = f"build_{question_type.value}"
    return build


def _first(values: Sequence[str]) -> str:
    return values[0] if values else ""


build_capital = _attribute_builder(
    QuestionType.CAPITAL_MCQ, "capital", lambda c: _first(c.capital), "Capital of {name}?")
build_currency = _attribute_builder(
    QuestionType.CURRENCY_MCQ, "currency",
    lambda c: c.currencies[0].code if c.currencies else "", "Currency code for {name}?")
build_city = _attribute_builder(
    QuestionType.CITY_MCQ, "city", lambda c: _first(c.cities), "Which city is in {name}?")
build_language = _attribute_builder(
    QuestionType.LANGUAGE_MCQ, "language", lambda c: _first(c.languages), "Language of {name}?")
build_peak = _attribute_builder(
    QuestionType.PEAK_MCQ, "peak",
    lambda c: c.highest_peak.name if c.highest_peak else "", "Highest peak in {name}?")
build_range = _attribute_builder(
    QuestionType.RANGE_MCQ, "range", lambda c: _first(c.mountain_ranges), "Which mountain range is in {name}?")
build_region = _attribute_builder(
    QuestionType.REGION_MCQ, "physical_region",
    lambda c: _first(c.physical_regions), "Which physical region is in {name}?")
_build_river_options = _attribute_builder(
    QuestionType.RIVER_MCQ, "river", lambda c: _first(c.rivers), "River in {name}?")


def build_river(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    question = _build_river_options(ctx, country)
    if question is not None:
        record = ctx.rivers.get(normalize_label(country.rivers[0]))
        question.river_bbox = record.bbox if record else None
    return question


def build_neighbor(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    neighbors = [ctx.catalog.by_code[code] for code in country.borders if code in ctx.catalog.by_code]
    if not neighbors:
        return None
    correct = neighbors[ctx.rng.randrange(len(neighbors))]

    # A real neighbour offered as a distractor would also be a right answer
    excluded = {country.cca3, correct.cca3, *country.borders}
    everyone = [c for c in ctx.catalog.countries if c.cca3 not in excluded]
    same_subregion = [c for c in everyone if c.subregion and c.subregion == country.subregion]
    taken = {c.cca3 for c in same_subregion}
    same_region = [c for c in everyone if c.region == country.region and c.cca3 not in taken]
    taken.update(c.cca3 for c in same_region)
    elsewhere = [c for c in ctx.window("all") if c.cca3 not in excluded and c.cca3 not in taken]

    candidates = [correct]
    for item in shuffle(same_subregion, ctx.rng) + shuffle(same_region, ctx.rng) + shuffle(elsewhere, ctx.rng):
        if len(candidates) >= config.OPTION_COUNT:
            break
        if all(item.name != c.name for c in candidates):
            candidates.append(item)
    final = shuffle(candidates, ctx.rng)
    return _question(
        QuestionType.NEIGHBOR_MCQ,
        country,
        f"Which country borders {country.name}?",
        options=[c.name for c in final],
        correct_index=final.index(correct),
        option_codes=[c.cca3 for c in final],
        target_code=correct.cca3,
    )


def build_neighbor_count(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    count = len(country.borders)
    if count == 0:
        return None
    distractors = [n for n in (count + 1, count - 1, count + 2) if n >= 0 and n != count]
    final = shuffle([count, *shuffle(distractors, ctx.rng)[:DISTRACTOR_COUNT]], ctx.rng)
    return _question(
        QuestionType.NEIGHBOR_COUNT_MCQ,
        country,
        f"How many countries share a land border with {country.name}?",
        options=[str(n) for n in final],
        correct_index=final.index(count),
    )


def build_landlocked(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    if not isinstance(country.landlocked, bool):
        return None
    return _question(
        QuestionType.LANDLOCKED_MCQ,
        country,
        f"Is {country.name} landlocked or coastal?",
        options=["Landlocked", "Coastal"],
        correct_index=0 if country.landlocked else 1,
    )


def build_flag_colors(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    return _question(
        QuestionType.FLAG_COLORS_MCQ,
        country,
        f"Does the flag of {country.name} have at least THREE distinct colors?",
        options=["Yes", "No"],
        correct_index=0 if country.cca3 in FLAG_THREE_COLOR_CCA3 else 1,
    )


def _pair_question(
    ctx: BuildContext,
    question_type: QuestionType,
    pool_key: str,
    metric: str,
    prompt: str,
) -> Optional[Question]:
    pair = pick_metric_pair(ctx.window(pool_key), metric, ctx.rng)
    if pair is None:
        return None
    a, b = pair
    return Question(
        id=f"{question_type.value}-{a.cca3}-{b.cca3}",
        type=question_type,
        prompt=prompt,
        options=[a.name, b.name],
        correct_index=0 if getattr(a, metric) > getattr(b, metric) else 1,
        option_codes=[a.cca3, b.cca3],
        display_codes=[a.cca3, b.cca3],
    )


def build_population_pair(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    return _pair_question(ctx, QuestionType.POPULATION_PAIR, "population", "population", "Which is more populous?")


def build_area_pair(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    return _pair_question(ctx, QuestionType.AREA_PAIR, "area", "area", "Which is larger by area?")


def build_population_more_than(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    pair = pick_metric_pair(ctx.window("population"), "population", ctx.rng)
    if pair is None:
        return None
    first, second = pair if ctx.rng.random() <= 0.5 else (pair[1], pair[0])
    return Question(
        id=f"{QuestionType.POPULATION_MORE_THAN.value}-{first.cca3}-{second.cca3}",
        type=QuestionType.POPULATION_MORE_THAN,
        prompt=f"Is {first.name} more populous than {second.name}?",
        options=["Yes", "No"],
        correct_index=0 if first.population > second.population else 1,
        target_code=first.cca3,
        display_codes=[first.cca3, second.cca3],
    )


def build_subregion_outlier(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    if not country.subregion or not country.region:
        return None
    countries = ctx.catalog.countries
    same_subregion = shuffle(
        [c for c in countries if c.subregion == country.subregion and c.cca3 != country.cca3], ctx.rng
    )[:2]
    if len(same_subregion) < 2:
        return None
    outliers = [
        c for c in countries
        if c.region == country.region and c.subregion and c.subregion != country.subregion
    ]
    if not outliers:
        return None
    outlier = outliers[ctx.rng.randrange(len(outliers))]

    final = shuffle([country, *same_subregion, outlier], ctx.rng)
    return _question(
        QuestionType.SUBREGION_OUTLIER,
        country,
        f"Which country does NOT belong in {country.subregion}?",
        options=[c.name for c in final],
        correct_index=final.index(outlier),
        option_codes=[c.cca3 for c in final],
        display_codes=[c.cca3 for c in final],
    )


def _is_descending(countries: Sequence[CountryRecord]) -> bool:
    return all(a.population >= b.population for a, b in zip(countries, countries[1:]))


def build_population_rank(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    same_region = [c for c in ctx.catalog.countries if c.region == country.region and c.population > 0]
    if len(same_region) < 3:
        return None
    triplet = shuffle(same_region, ctx.rng)[:3]
    ordered = sorted(triplet, key=lambda c: c.population, reverse=True)
    correct = RANK_SEPARATOR.join(c.name for c in ordered)

    # The wrong order must read differently and must not also be a valid
    # descending order (possible when two populations are equal)
    wrong = None
    for _ in range(RANK_PERMUTATION_ATTEMPTS):
        candidate = shuffle(ordered, ctx.rng)
        text = RANK_SEPARATOR.join(c.name for c in candidate)
        if text != correct and not _is_descending(candidate):
            wrong = text
            break
    if wrong is None:
        for candidate in ([ordered[1], ordered[0], ordered[2]], [ordered[0], ordered[2], ordered[1]], ordered[::-1]):
            text = RANK_SEPARATOR.join(c.name for c in candidate)
            if text != correct and not _is_descending(candidate):
                wrong = text
                break
    if wrong is None:
        return None

    final = shuffle([correct, wrong], ctx.rng)
    return Question(
        id=f"{QuestionType.POPULATION_RANK.value}-" + "-".join(c.cca3 for c in triplet),
        type=QuestionType.POPULATION_RANK,
        prompt="Which is the correct order from MOST to LEAST populous?",
        options=final,
        correct_index=final.index(correct),
        display_codes=[c.cca3 for c in triplet],
    )


def tier_index(rank: int, tiers: Sequence[Tuple[str, Optional[int]]]) -> int:
    """Index of the first tier whose ceiling admits `rank` (None = no ceiling)."""
    for idx, (_, ceiling) in enumerate(tiers):
        if ceiling is None or rank <= ceiling:
            return idx
    return len(tiers) - 1


def _tier_builder(
    question_type: QuestionType,
    ranks_of: Callable[[Catalog], Mapping[str, int]],
    tiers: Sequence[Tuple[str, Optional[int]]],
    prompt: str,
) -> Callable[[BuildContext, CountryRecord], Optional[Question]]:
    def build(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
        rank = ranks_of(ctx.catalog).get(country.cca3)
        if not rank:
            return None
        return _question(
            question_type,
            country,
            prompt.format(name=country.name),
            options=[label for label, _ in tiers],
            correct_index=tier_index(rank, tiers),
        )

    build.__name__ = f"build_{question_type.value}"
    return build


build_population_tier = _tier_builder(
    QuestionType.POPULATION_TIER, lambda catalog: catalog.population_rank, POPULATION_TIERS,
    "Which population tier is {name} in?")
build_gdp_tier = _tier_builder(
    QuestionType.GDP_TIER, lambda catalog: catalog.gdp_rank, GDP_TIERS,
    "Which GDP tier is {name} in?")


def build_exports(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    if not country.top_exports:
        return None
    values = [item.label for c in ctx.catalog.pool("exports") for item in c.top_exports]
    option_set = build_option_set_from_values(values, country.top_exports[0].label, ctx.rng)
    return _question(
        QuestionType.ECONOMY_EXPORTS_MCQ,
        country,
        f"Top export category for {country.name}?",
        options=option_set.options,
        correct_index=option_set.correct_index,
    )


def build_unesco(ctx: BuildContext, country: CountryRecord) -> Optional[Question]:
    if not country.unesco_sites:
        return None
    values = [site for c in ctx.catalog.pool("unesco") for site in c.unesco_sites]
    option_set = build_option_set_from_values(values, country.unesco_sites[0], ctx.rng)
    return _question(
        QuestionType.UNESCO_MCQ,
        country,
        f"Which UNESCO World Heritage site is in {country.name}?",
        options=option_set.options,
        correct_index=option_set.correct_index,
    )


BUILDERS: Dict[QuestionType, Callable[[BuildContext, CountryRecord], Optional[Question]]] = {
    QuestionType.MAP_TAP: build_map_tap,
    QuestionType.FLAG_MATCH: build_flag_match,
    QuestionType.CAPITAL_MCQ: build_capital,
    QuestionType.NEIGHBOR_MCQ: build_neighbor,
    QuestionType.CURRENCY_MCQ: build_currency,
    QuestionType.CITY_MCQ: build_city,
    QuestionType.RIVER_MCQ: build_river,
    QuestionType.LANGUAGE_MCQ: build_language,
    QuestionType.POPULATION_PAIR: build_population_pair,
    QuestionType.AREA_PAIR: build_area_pair,
    QuestionType.LANDLOCKED_MCQ: build_landlocked,
    QuestionType.PEAK_MCQ: build_peak,
    QuestionType.RANGE_MCQ: build_range,
    QuestionType.REGION_MCQ: build_region,
    QuestionType.SUBREGION_OUTLIER: build_subregion_outlier,
    QuestionType.NEIGHBOR_COUNT_MCQ: build_neighbor_count,
    QuestionType.POPULATION_RANK: build_population_rank,
    QuestionType.SILHOUETTE_MCQ: build_silhouette,
    QuestionType.COASTLINE_MCQ: build_coastline,
    QuestionType.FLAG_COLORS_MCQ: build_flag_colors,
    QuestionType.UNESCO_MCQ: build_unesco,
    QuestionType.LANDMARK_PHOTO_MCQ: build_landmark_photo,
    QuestionType.POPULATION_TIER: build_population_tier,
    QuestionType.POPULATION_MORE_THAN: build_population_more_than,
    QuestionType.GDP_TIER: build_gdp_tier,
    QuestionType.ECONOMY_EXPORTS_MCQ: build_exports,
}


def build_question(ctx: BuildContext, question_type: QuestionType, country: CountryRecord) -> Optional[Question]:
    return BUILDERS[question_type](ctx, country)
