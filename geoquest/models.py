"""Records shared by the question engine and its callers."""

import dataclasses
import enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from . import config

# (west, south, east, north) in degrees
BBox = Tuple[float, float, float, float]


class QuestionType(str, enum.Enum):
    MAP_TAP = "map_tap"
    FLAG_MATCH = "flag_match"
    CAPITAL_MCQ = "capital_mcq"
    NEIGHBOR_MCQ = "neighbor_mcq"
    CURRENCY_MCQ = "currency_mcq"
    CITY_MCQ = "city_mcq"
    RIVER_MCQ = "river_mcq"
    LANGUAGE_MCQ = "language_mcq"
    POPULATION_PAIR = "population_pair"
    AREA_PAIR = "area_pair"
    LANDLOCKED_MCQ = "landlocked_mcq"
    PEAK_MCQ = "peak_mcq"
    RANGE_MCQ = "range_mcq"
    REGION_MCQ = "region_mcq"
    SUBREGION_OUTLIER = "subregion_outlier"
    NEIGHBOR_COUNT_MCQ = "neighbor_count_mcq"
    POPULATION_RANK = "population_rank"
    SILHOUETTE_MCQ = "silhouette_mcq"
    COASTLINE_MCQ = "coastline_mcq"
    FLAG_COLORS_MCQ = "flag_colors_mcq"
    UNESCO_MCQ = "unesco_mcq"
    LANDMARK_PHOTO_MCQ = "landmark_photo_mcq"
    POPULATION_TIER = "population_tier"
    POPULATION_MORE_THAN = "population_more_than"
    GDP_TIER = "gdp_tier"
    ECONOMY_EXPORTS_MCQ = "economy_exports_mcq"


@dataclass(frozen=True)
class Currency:
    code: str
    name: str = ""
    symbol: str = ""


@dataclass(frozen=True)
class Peak:
    name: str
    elevation: float = 0.0


@dataclass(frozen=True)
class ExportCategory:
    label: str
    hs2: Optional[str] = None
    trade_value: float = 0.0


@dataclass(frozen=True)
class CountryRecord:
    """Facts about one country, read-only for the whole session."""

    cca3: str
    name: str
    cca2: Optional[str] = None
    official_name: str = ""
    capital: Tuple[str, ...] = ()
    region: str = ""
    subregion: str = ""
    population: int = 0
    area: float = 0.0
    latlng: Tuple[float, ...] = ()
    landlocked: Optional[bool] = None
    currencies: Tuple[Currency, ...] = ()
    languages: Tuple[str, ...] = ()
    borders: Tuple[str, ...] = ()
    cities: Tuple[str, ...] = ()
    rivers: Tuple[str, ...] = ()
    highest_peak: Optional[Peak] = None
    mountain_ranges: Tuple[str, ...] = ()
    physical_regions: Tuple[str, ...] = ()
    flag_svg: Optional[str] = None
    flag_png: Optional[str] = None
    gdp_usd: Optional[float] = None
    gdp_year: Optional[int] = None
    top_exports: Tuple[ExportCategory, ...] = ()
    unesco_sites: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Landmark:
    id: str
    title: str
    cca3: str
    image_path: str
    country: str = ""
    license: str = ""
    source_url: str = ""
    credit: str = ""


@dataclass(frozen=True)
class GeometryRecord:
    """Country border geometry (GeoJSON Polygon or MultiPolygon) and its envelope."""

    code: str
    geometry: Dict[str, Any]
    bbox: BBox


@dataclass(frozen=True)
class RiverRecord:
    bbox: BBox


@dataclass
class Question:
    id: str
    type: QuestionType
    prompt: str
    options: Optional[List[str]] = None
    correct_index: Optional[int] = None
    option_codes: Optional[List[Optional[str]]] = None
    flag_svg: Optional[str] = None
    flag_png: Optional[str] = None
    image_path: Optional[str] = None
    target: Optional[GeometryRecord] = None
    target_code: Optional[str] = None
    display_codes: List[str] = field(default_factory=list)
    continent: Optional[str] = None
    hide_labels: bool = False
    river_bbox: Optional[BBox] = None
    # "{type}-{code}" recorded once answered correctly; None for questions
    # not built around a single queued country (pairs, rankings)
    completion_key: Optional[str] = None
    is_placeholder: bool = False

    @classmethod
    def placeholder(cls) -> "Question":
        """Renderable stand-in used when no unlocked type could be built."""
        return cls(
            id="no-data",
            type=QuestionType.FLAG_MATCH,
            prompt="No country data available.",
            options=["Retry"],
            correct_index=0,
            is_placeholder=True,
        )

    @property
    def is_map_tap(self) -> bool:
        return self.type is QuestionType.MAP_TAP

    @property
    def subject_code(self) -> Optional[str]:
        """Country credited with mastery when this question is answered correctly."""
        if self.option_codes and self.correct_index is not None:
            if 0 <= self.correct_index < len(self.option_codes):
                code = self.option_codes[self.correct_index]
                if code:
                    return code
        return self.target_code


@dataclass(frozen=True)
class MapClick:
    """A tap on the map.

    `rendered_codes` are the country codes of features drawn under the tap
    (a few pixels around it). `project` maps (lng, lat) to screen pixels with
    the current camera; together with `click_px` it enables the small-target
    fallback.
    """

    lng: float
    lat: float
    rendered_codes: Sequence[str] = ()
    click_px: Optional[Tuple[float, float]] = None
    project: Optional[Callable[[float, float], Tuple[float, float]]] = None


@dataclass(frozen=True)
class Outcome:
    correct: bool
    correct_index: Optional[int] = None
    correct_code: Optional[str] = None
    chosen_code: Optional[str] = None
    already_resolved: bool = False


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class SessionState:
    """Everything the progression engine tracks between answers.

    Stored as a flat JSON object by `to_dict`; `from_dict` is lenient so a
    blob saved by an older build (or edited by hand) still loads.
    """

    score: int = 0
    display_score: int = 0
    high_score: int = 0
    streak: int = 0
    best_streak: int = 0
    hearts: int = config.MAX_HEARTS
    level: int = 1
    correct_in_level: int = 0
    level_start_score: int = 0
    mastery: Dict[str, int] = field(default_factory=dict)
    completed: Tuple[str, ...] = ()
    achievements: Tuple[str, ...] = ()
    hints_left: int = config.HINTS_PER_GAME
    skips_left: int = config.SKIPS_PER_GAME
    game_over: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["mastery"] = dict(self.mastery)
        data["completed"] = list(self.completed)
        data["achievements"] = list(self.achievements)
        return data

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "SessionState":
        raw = raw or {}
        default = cls()

        mastery: Dict[str, int] = {}
        for code, count in (raw.get("mastery") or {}).items():
            count = _as_int(count, 0)
            if count > 0:
                mastery[str(code)] = count

        completed = raw.get("completed", raw.get("completedQuestions")) or []
        achievements = raw.get("achievements") or []
        hearts = min(max(_as_int(raw.get("hearts"), default.hearts), 0), config.MAX_HEARTS)
        score = max(0, _as_int(raw.get("score"), 0))
        return cls(
            score=score,
            display_score=max(0, _as_int(raw.get("display_score"), score)),
            high_score=max(score, _as_int(raw.get("high_score", raw.get("highScore")), 0)),
            streak=max(0, _as_int(raw.get("streak"), 0)),
            best_streak=max(0, _as_int(raw.get("best_streak"), 0)),
            hearts=hearts,
            level=max(1, _as_int(raw.get("level"), 1)),
            correct_in_level=min(
                max(0, _as_int(raw.get("correct_in_level", raw.get("correctInLevel")), 0)),
                config.LEVEL_UP_EVERY - 1,
            ),
            level_start_score=max(0, _as_int(raw.get("level_start_score"), 0)),
            mastery=mastery,
            completed=tuple(str(item) for item in completed if item),
            achievements=tuple(str(item) for item in achievements if item),
            hints_left=max(0, _as_int(raw.get("hints_left"), default.hints_left)),
            skips_left=max(0, _as_int(raw.get("skips_left"), default.skips_left)),
            # If they left with 0 hearts, keep them at game over
            game_over=bool(raw.get("game_over", False)) or hearts <= 0,
        )
