"""Country records, per-question-type pools and rank tables."""

import dataclasses
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .models import (
    CountryRecord,
    Currency,
    ExportCategory,
    GeometryRecord,
    Landmark,
    Peak,
    QuestionType,
)

logger = logging.getLogger(__name__)


# ---------- Parsing ----------
def _strings(values: Any) -> Tuple[str, ...]:
    if isinstance(values, str):
        values = [values]
    if not isinstance(values, (list, tuple)):
        return ()
    return tuple(str(v).strip() for v in values if v is not None and str(v).strip())


def _number(value: Any, default: float = 0.0) -> float:
    if isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _optional_str(value: Any) -> Optional[str]:
    text = (str(value) if value is not None else "").strip()
    return text or None


def _currencies(raw: Any) -> Tuple[Currency, ...]:
    # Merged dataset stores a list; the upstream REST shape is {code: {name, symbol}}
    if isinstance(raw, Mapping):
        raw = [dict(value or {}, code=code) for code, value in raw.items()]
    result = []
    for item in raw or []:
        if not isinstance(item, Mapping):
            continue
        code = (item.get("code") or "").strip()
        if code:
            result.append(Currency(code=code, name=item.get("name") or "", symbol=item.get("symbol") or ""))
    return tuple(result)


def _exports(raw: Any) -> Tuple[ExportCategory, ...]:
    result = []
    for item in raw or []:
        if not isinstance(item, Mapping):
            continue
        label = (item.get("label") or "").strip()
        if label:
            result.append(ExportCategory(
                label=label,
                hs2=_optional_str(item.get("hs2")),
                trade_value=_number(item.get("tradeValue", item.get("trade_value"))),
            ))
    return tuple(result)


def country_from_dict(raw: Mapping[str, Any]) -> Optional[CountryRecord]:
    """Build a record from one entry of the merged country dataset.

    Returns None when the entry has no 3-letter code or no name. Missing or
    malformed optional fields fall back to empty values.
    """
    cca3 = (raw.get("cca3") or "").strip().upper()
    name = raw.get("name")
    if isinstance(name, Mapping):
        name = name.get("common")
    name = (name or "").strip()
    if not cca3 or not name:
        return None

    languages = raw.get("languages")
    if isinstance(languages, Mapping):
        languages = list(languages.values())

    peak = raw.get("highestPeak") or raw.get("highest_peak")
    highest_peak = None
    if isinstance(peak, Mapping) and (peak.get("name") or "").strip():
        highest_peak = Peak(name=peak["name"].strip(), elevation=_number(peak.get("elevation")))

    landlocked = raw.get("landlocked")
    gdp_usd = _number(raw.get("gdpUsd", raw.get("gdp_usd")), 0.0) or None
    gdp_year = raw.get("gdpYear", raw.get("gdp_year"))

    return CountryRecord(
        cca3=cca3,
        name=name,
        cca2=_optional_str(raw.get("cca2")),
        official_name=(raw.get("officialName") or raw.get("official_name") or "").strip(),
        capital=_strings(raw.get("capital")),
        region=(raw.get("region") or "").strip(),
        subregion=(raw.get("subregion") or "").strip(),
        population=max(0, int(_number(raw.get("population")))),
        area=max(0.0, _number(raw.get("area"))),
        latlng=tuple(_number(v) for v in (raw.get("latlng") or [])),
        landlocked=landlocked if isinstance(landlocked, bool) else None,
        currencies=_currencies(raw.get("currencies")),
        languages=_strings(languages),
        borders=tuple(code.upper() for code in _strings(raw.get("borders"))),
        cities=_strings(raw.get("cities")),
        rivers=_strings(raw.get("rivers")),
        highest_peak=highest_peak,
        mountain_ranges=_strings(raw.get("mountainRanges", raw.get("mountain_ranges"))),
        physical_regions=_strings(raw.get("physicalRegions", raw.get("physical_regions"))),
        flag_svg=_optional_str(raw.get("flagSvg", raw.get("flag_svg"))),
        flag_png=_optional_str(raw.get("flagPng", raw.get("flag_png"))),
        gdp_usd=gdp_usd,
        gdp_year=int(_number(gdp_year)) if gdp_year is not None else None,
        top_exports=_exports(raw.get("topExports", raw.get("top_exports"))),
        unesco_sites=_strings(raw.get("unescoSites", raw.get("unesco_sites"))),
    )


def landmark_from_dict(raw: Mapping[str, Any]) -> Optional[Landmark]:
    cca3 = (raw.get("cca3") or "").strip().upper()
    image_path = (raw.get("imagePath") or raw.get("image_path") or "").strip()
    if not cca3 or not image_path:
        return None
    return Landmark(
        id=str(raw.get("id") or image_path),
        title=(raw.get("title") or "").strip(),
        cca3=cca3,
        image_path=image_path,
        country=(raw.get("country") or "").strip(),
        license=(raw.get("license") or "").strip(),
        source_url=(raw.get("sourceUrl") or raw.get("source_url") or "").strip(),
        credit=(raw.get("credit") or "").strip(),
    )


def enrich_countries(
    countries: Iterable[CountryRecord],
    gdp: Optional[Mapping[str, Any]] = None,
    exports: Optional[Mapping[str, Any]] = None,
    unesco: Optional[Mapping[str, Any]] = None,
) -> List[CountryRecord]:
    """Merge the supplemental GDP, exports and UNESCO datasets onto country records.

    Shapes: gdp {"values": {cca3: {"value", "year"}}}, exports
    {"values": {cca3: [{"hs2", "label", "tradeValue"}]}}, unesco
    {"sites": [{"name", "cca3s"}]}. A supplemental value replaces the record's
    own value when present.
    """
    gdp_values = (gdp or {}).get("values") or {}
    export_values = (exports or {}).get("values") or {}

    unesco_by_code: Dict[str, List[str]] = {}
    for site in (unesco or {}).get("sites") or []:
        name = (site.get("name") or "").strip() if isinstance(site, Mapping) else ""
        codes = site.get("cca3s") if isinstance(site, Mapping) else None
        if not name or not isinstance(codes, list):
            continue
        for code in codes:
            unesco_by_code.setdefault(str(code).upper(), []).append(name)

    enriched = []
    for country in countries:
        changes: Dict[str, Any] = {}
        gdp_entry = gdp_values.get(country.cca3)
        if isinstance(gdp_entry, Mapping) and _number(gdp_entry.get("value")) > 0:
            changes["gdp_usd"] = _number(gdp_entry.get("value"))
            if gdp_entry.get("year") is not None:
                changes["gdp_year"] = int(_number(gdp_entry.get("year")))
        top_exports = _exports(export_values.get(country.cca3))
        if top_exports:
            changes["top_exports"] = top_exports
        if country.cca3 in unesco_by_code:
            changes["unesco_sites"] = tuple(unesco_by_code[country.cca3])
        enriched.append(dataclasses.replace(country, **changes) if changes else country)
    return enriched


# ---------- Ranking ----------
def fame_score(country: CountryRecord) -> float:
    return (country.population or 0) + (country.area or 0) / 10


def sort_by_fame(countries: Iterable[CountryRecord]) -> List[CountryRecord]:
    """Well-known (populous, large) countries first."""
    return sorted(countries, key=fame_score, reverse=True)


def rank_table(countries: Sequence[CountryRecord], metric: Callable[[CountryRecord], Optional[float]]) -> Dict[str, int]:
    """1-based descending rank of every country with a positive metric.

    The sort is stable so equal values keep their input order.
    """
    ranked = [c for c in countries if (metric(c) or 0) > 0]
    ranked.sort(key=lambda c: metric(c) or 0, reverse=True)
    return {c.cca3: idx for idx, c in enumerate(ranked, start=1)}


# ---------- Pools ----------
POOL_FOR_TYPE: Dict[QuestionType, str] = {
    QuestionType.MAP_TAP: "map",
    QuestionType.SILHOUETTE_MCQ: "map",
    QuestionType.COASTLINE_MCQ: "map",
    QuestionType.FLAG_MATCH: "flag",
    QuestionType.CAPITAL_MCQ: "capital",
    QuestionType.NEIGHBOR_MCQ: "neighbor",
    QuestionType.NEIGHBOR_COUNT_MCQ: "neighbor",
    QuestionType.CURRENCY_MCQ: "currency",
    QuestionType.CITY_MCQ: "city",
    QuestionType.RIVER_MCQ: "river",
    QuestionType.LANGUAGE_MCQ: "language",
    QuestionType.POPULATION_PAIR: "population",
    QuestionType.POPULATION_RANK: "population",
    QuestionType.POPULATION_TIER: "population",
    QuestionType.POPULATION_MORE_THAN: "population",
    QuestionType.AREA_PAIR: "area",
    QuestionType.LANDLOCKED_MCQ: "landlocked",
    QuestionType.PEAK_MCQ: "peak",
    QuestionType.RANGE_MCQ: "range",
    QuestionType.REGION_MCQ: "physical_region",
    QuestionType.SUBREGION_OUTLIER: "subregion",
    QuestionType.UNESCO_MCQ: "unesco",
    QuestionType.ECONOMY_EXPORTS_MCQ: "exports",
    QuestionType.GDP_TIER: "gdp",
    QuestionType.LANDMARK_PHOTO_MCQ: "landmark",
    QuestionType.FLAG_COLORS_MCQ: "all",
}

missing = set(QuestionType) - set(POOL_FOR_TYPE)
if missing:  # pragma: no cover
    raise RuntimeError(f"No pool for question types: {sorted(t.value for t in missing)}")
del missing


class Catalog:
    """Country lookup plus the derived pools and rank tables.

    Pools depend on geometry availability (the map pool needs borders), so a
    catalog is rebuilt with `with_geometry` rather than patched in place.
    """

    def __init__(
        self,
        countries: Iterable[CountryRecord],
        geometry: Optional[Mapping[str, GeometryRecord]] = None,
        landmarks: Iterable[Landmark] = (),
    ):
        self._source = list(countries)
        self._landmark_source = list(landmarks)
        self.geometry: Mapping[str, GeometryRecord] = geometry or {}

        self.by_code: Dict[str, CountryRecord] = {}
        for country in self._source:
            if country.cca3 in self.by_code:
                logger.warning("Duplicate country code %s; keeping the first entry", country.cca3)
                continue
            self.by_code[country.cca3] = country
        unique = list(self.by_code.values())

        self.landmarks_by_code: Dict[str, List[Landmark]] = {}
        for landmark in self._landmark_source:
            self.landmarks_by_code.setdefault(landmark.cca3, []).append(landmark)

        self.countries: List[CountryRecord] = sort_by_fame(unique)
        self.population_rank = rank_table(unique, lambda c: c.population)
        self.gdp_rank = rank_table(unique, lambda c: c.gdp_usd)
        self.pools: Dict[str, List[CountryRecord]] = self._build_pools()

    def _build_pools(self) -> Dict[str, List[CountryRecord]]:
        has_geometry = lambda c: c.cca3 in self.geometry  # noqa: E731
        filters: Dict[str, Callable[[CountryRecord], bool]] = {
            "all": lambda c: True,
            "map": has_geometry,
            "flag": lambda c: bool(c.cca2 and (c.flag_svg or c.flag_png)),
            "capital": lambda c: bool(c.capital),
            "neighbor": lambda c: any(code in self.by_code for code in c.borders),
            "currency": lambda c: bool(c.currencies),
            "city": lambda c: bool(c.cities),
            "river": lambda c: bool(c.rivers),
            "language": lambda c: bool(c.languages),
            "population": lambda c: c.population > 0,
            "area": lambda c: c.area > 0,
            "landlocked": lambda c: isinstance(c.landlocked, bool),
            "peak": lambda c: c.highest_peak is not None,
            "range": lambda c: bool(c.mountain_ranges),
            "physical_region": lambda c: bool(c.physical_regions),
            "subregion": lambda c: bool(c.region and c.subregion),
            "unesco": lambda c: bool(c.unesco_sites),
            "exports": lambda c: bool(c.top_exports),
            "gdp": lambda c: (c.gdp_usd or 0) > 0,
            "landmark": lambda c: c.cca3 in self.landmarks_by_code,
        }
        # self.countries is already fame-sorted, filtering keeps that order
        return {key: [c for c in self.countries if keep(c)] for key, keep in filters.items()}

    def with_geometry(self, geometry: Mapping[str, GeometryRecord]) -> "Catalog":
        return Catalog(self._source, geometry=geometry, landmarks=self._landmark_source)

    # ---------- Read-only accessors ----------
    def get(self, code: Optional[str]) -> Optional[CountryRecord]:
        if not code:
            return None
        return self.by_code.get(code)

    def pool(self, key: str) -> List[CountryRecord]:
        return self.pools.get(key, [])

    def pool_for(self, question_type: QuestionType) -> List[CountryRecord]:
        return self.pools[POOL_FOR_TYPE[question_type]]

    def regions(self) -> List[str]:
        return sorted({c.region for c in self.countries if c.region})

    def countries_in_region(self, region: str) -> List[CountryRecord]:
        return [c for c in self.countries if c.region == region]

    def __len__(self) -> int:
        return len(self.countries)
