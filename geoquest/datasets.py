"""Load the country, border and river datasets from local files or the network.

Nothing here is fatal: a missing or broken dataset is logged and the quiz
carries on with what it has (sample countries, no map questions, no river
framing).
"""

import json
import logging
import pathlib
from typing import Any, Dict, List, Mapping, Optional, Union

import requests

from . import config
from .catalog import Catalog, country_from_dict, enrich_countries, landmark_from_dict
from .errors import DatasetError
from .geography import build_geometry_index, build_river_index
from .models import CountryRecord, GeometryRecord, Landmark, RiverRecord

logger = logging.getLogger(__name__)

Source = Union[str, pathlib.Path]

# Below this many parsed countries a full dataset is assumed to be broken
MIN_PLAUSIBLE_COUNTRIES = 150

SAMPLE_COUNTRIES: List[Dict[str, Any]] = [
    {"cca2": "FR", "cca3": "FRA", "name": "France", "capital": ["Paris"], "region": "Europe", "subregion": "Western Europe", "population": 67391582, "area": 551695, "landlocked": False, "currencies": [{"code": "EUR", "name": "Euro", "symbol": "€"}], "languages": ["French"], "borders": ["BEL", "DEU", "ITA", "ESP", "CHE", "LUX"], "cities": ["Lyon"], "rivers": ["Seine"], "highestPeak": {"name": "Mont Blanc", "elevation": 4808}, "flagPng": "https://flagcdn.com/w80/fr.png"},
    {"cca2": "DE", "cca3": "DEU", "name": "Germany", "capital": ["Berlin"], "region": "Europe", "subregion": "Western Europe", "population": 83240525, "area": 357114, "landlocked": False, "currencies": [{"code": "EUR", "name": "Euro", "symbol": "€"}], "languages": ["German"], "borders": ["FRA", "BEL", "LUX", "CHE", "POL", "AUT", "NLD"], "cities": ["Hamburg"], "rivers": ["Rhine"], "highestPeak": {"name": "Zugspitze", "elevation": 2962}, "flagPng": "https://flagcdn.com/w80/de.png"},
    {"cca2": "IT", "cca3": "ITA", "name": "Italy", "capital": ["Rome"], "region": "Europe", "subregion": "Southern Europe", "population": 59554023, "area": 301336, "landlocked": False, "currencies": [{"code": "EUR", "name": "Euro", "symbol": "€"}], "languages": ["Italian"], "borders": ["FRA", "CHE", "AUT"], "cities": ["Milan"], "rivers": ["Po"], "flagPng": "https://flagcdn.com/w80/it.png"},
    {"cca2": "ES", "cca3": "ESP", "name": "Spain", "capital": ["Madrid"], "region": "Europe", "subregion": "Southern Europe", "population": 47351567, "area": 505992, "landlocked": False, "currencies": [{"code": "EUR", "name": "Euro", "symbol": "€"}], "languages": ["Spanish"], "borders": ["FRA", "PRT"], "cities": ["Barcelona"], "rivers": ["Ebro"], "flagPng": "https://flagcdn.com/w80/es.png"},
    {"cca2": "CH", "cca3": "CHE", "name": "Switzerland", "capital": ["Bern"], "region": "Europe", "subregion": "Western Europe", "population": 8654622, "area": 41284, "landlocked": True, "currencies": [{"code": "CHF", "name": "Swiss franc", "symbol": "Fr."}], "languages": ["German", "French", "Italian"], "borders": ["FRA", "DEU", "ITA", "AUT"], "cities": ["Zurich"], "flagPng": "https://flagcdn.com/w80/ch.png"},
    {"cca2": "AT", "cca3": "AUT", "name": "Austria", "capital": ["Vienna"], "region": "Europe", "subregion": "Central Europe", "population": 8917205, "area": 83871, "landlocked": True, "currencies": [{"code": "EUR", "name": "Euro", "symbol": "€"}], "languages": ["German"], "borders": ["DEU", "CHE", "ITA"], "cities": ["Salzburg"], "rivers": ["Danube"], "flagPng": "https://flagcdn.com/w80/at.png"},
    {"cca2": "KE", "cca3": "KEN", "name": "Kenya", "capital": ["Nairobi"], "region": "Africa", "subregion": "Eastern Africa", "population": 53771300, "area": 580367, "landlocked": False, "currencies": [{"code": "KES", "name": "Kenyan shilling", "symbol": "Sh"}], "languages": ["English", "Swahili"], "borders": ["ETH", "TZA", "UGA"], "cities": ["Mombasa"], "highestPeak": {"name": "Mount Kenya", "elevation": 5199}, "flagPng": "https://flagcdn.com/w80/ke.png"},
    {"cca2": "EG", "cca3": "EGY", "name": "Egypt", "capital": ["Cairo"], "region": "Africa", "subregion": "Northern Africa", "population": 102334403, "area": 1002450, "landlocked": False, "currencies": [{"code": "EGP", "name": "Egyptian pound", "symbol": "£"}], "languages": ["Arabic"], "borders": [], "cities": ["Alexandria"], "rivers": ["Nile"], "flagPng": "https://flagcdn.com/w80/eg.png"},
    {"cca2": "ET", "cca3": "ETH", "name": "Ethiopia", "capital": ["Addis Ababa"], "region": "Africa", "subregion": "Eastern Africa", "population": 114963583, "area": 1104300, "landlocked": True, "currencies": [{"code": "ETB", "name": "Ethiopian birr", "symbol": "Br"}], "languages": ["Amharic"], "borders": ["KEN"], "cities": ["Dire Dawa"], "flagPng": "https://flagcdn.com/w80/et.png"},
    {"cca2": "JP", "cca3": "JPN", "name": "Japan", "capital": ["Tokyo"], "region": "Asia", "subregion": "Eastern Asia", "population": 125836021, "area": 377930, "landlocked": False, "currencies": [{"code": "JPY", "name": "Japanese yen", "symbol": "¥"}], "languages": ["Japanese"], "borders": [], "cities": ["Osaka"], "highestPeak": {"name": "Mount Fuji", "elevation": 3776}, "flagPng": "https://flagcdn.com/w80/jp.png"},
    {"cca2": "CN", "cca3": "CHN", "name": "China", "capital": ["Beijing"], "region": "Asia", "subregion": "Eastern Asia", "population": 1402112000, "area": 9706961, "landlocked": False, "currencies": [{"code": "CNY", "name": "Chinese yuan", "symbol": "¥"}], "languages": ["Chinese"], "borders": ["IND", "MNG"], "cities": ["Shanghai"], "rivers": ["Yangtze"], "flagPng": "https://flagcdn.com/w80/cn.png"},
    {"cca2": "IN", "cca3": "IND", "name": "India", "capital": ["New Delhi"], "region": "Asia", "subregion": "Southern Asia", "population": 1380004385, "area": 3287590, "landlocked": False, "currencies": [{"code": "INR", "name": "Indian rupee", "symbol": "₹"}], "languages": ["Hindi", "English"], "borders": ["CHN"], "cities": ["Mumbai"], "rivers": ["Ganges"], "flagPng": "https://flagcdn.com/w80/in.png"},
    {"cca2": "MN", "cca3": "MNG", "name": "Mongolia", "capital": ["Ulaanbaatar"], "region": "Asia", "subregion": "Eastern Asia", "population": 3278292, "area": 1564110, "landlocked": True, "currencies": [{"code": "MNT", "name": "Mongolian tögrög", "symbol": "₮"}], "languages": ["Mongolian"], "borders": ["CHN"], "cities": ["Erdenet"], "flagPng": "https://flagcdn.com/w80/mn.png"},
    {"cca2": "BR", "cca3": "BRA", "name": "Brazil", "capital": ["Brasília"], "region": "Americas", "subregion": "South America", "population": 212559409, "area": 8515767, "landlocked": False, "currencies": [{"code": "BRL", "name": "Brazilian real", "symbol": "R$"}], "languages": ["Portuguese"], "borders": ["ARG"], "cities": ["São Paulo"], "rivers": ["Amazon"], "flagPng": "https://flagcdn.com/w80/br.png"},
    {"cca2": "AR", "cca3": "ARG", "name": "Argentina", "capital": ["Buenos Aires"], "region": "Americas", "subregion": "South America", "population": 45376763, "area": 2780400, "landlocked": False, "currencies": [{"code": "ARS", "name": "Argentine peso", "symbol": "$"}], "languages": ["Spanish"], "borders": ["BRA"], "cities": ["Córdoba"], "highestPeak": {"name": "Aconcagua", "elevation": 6961}, "flagPng": "https://flagcdn.com/w80/ar.png"},
    {"cca2": "CA", "cca3": "CAN", "name": "Canada", "capital": ["Ottawa"], "region": "Americas", "subregion": "North America", "population": 38005238, "area": 9984670, "landlocked": False, "currencies": [{"code": "CAD", "name": "Canadian dollar", "symbol": "$"}], "languages": ["English", "French"], "borders": ["USA"], "cities": ["Toronto"], "rivers": ["Saint Lawrence"], "flagPng": "https://flagcdn.com/w80/ca.png"},
    {"cca2": "US", "cca3": "USA", "name": "United States", "capital": ["Washington, D.C."], "region": "Americas", "subregion": "North America", "population": 329484123, "area": 9372610, "landlocked": False, "currencies": [{"code": "USD", "name": "United States dollar", "symbol": "$"}], "languages": ["English"], "borders": ["CAN"], "cities": ["New York"], "rivers": ["Mississippi"], "flagPng": "https://flagcdn.com/w80/us.png"},
    {"cca2": "AU", "cca3": "AUS", "name": "Australia", "capital": ["Canberra"], "region": "Oceania", "subregion": "Australia and New Zealand", "population": 25687041, "area": 7692024, "landlocked": False, "currencies": [{"code": "AUD", "name": "Australian dollar", "symbol": "$"}], "languages": ["English"], "borders": [], "cities": ["Sydney"], "rivers": ["Murray"], "flagPng": "https://flagcdn.com/w80/au.png"},
]


# ---------- Raw JSON ----------
def fetch_json(url: str, timeout: float = config.HTTP_TIMEOUT) -> Any:
    try:
        resp = requests.get(url, timeout=timeout, headers={"User-Agent": config.USER_AGENT})
        resp.raise_for_status()
        return resp.json()
    except requests.RequestException as exc:
        raise DatasetError(f"Failed fetch {url}: {exc}") from exc
    except ValueError as exc:
        raise DatasetError(f"Response from {url} is not JSON") from exc


def read_json(path: Source) -> Any:
    try:
        return json.loads(pathlib.Path(path).read_text(encoding="utf-8-sig"))
    except OSError as exc:
        raise DatasetError(f"Cannot read {path}: {exc}") from exc
    except ValueError as exc:
        raise DatasetError(f"{path} is not valid JSON") from exc


def load_json(source: Source) -> Any:
    """Read a local path, or fetch when `source` is an http(s) URL."""
    text = str(source)
    if text.startswith(("http://", "https://")):
        return fetch_json(text)
    return read_json(source)


def _load_optional(path: pathlib.Path) -> Any:
    if not path.exists():
        return None
    try:
        return read_json(path)
    except DatasetError as exc:
        logger.warning("Ignoring supplemental dataset: %s", exc)
        return None


# ---------- Countries ----------
def parse_countries(raw: Any) -> List[CountryRecord]:
    if not isinstance(raw, list):
        raise DatasetError("Country dataset must be a JSON array")
    countries = []
    for item in raw:
        country = country_from_dict(item) if isinstance(item, Mapping) else None
        if country is None:
            logger.warning("Skipping country entry without code or name: %r", item)
            continue
        countries.append(country)
    return countries


def sample_countries() -> List[CountryRecord]:
    return parse_countries(SAMPLE_COUNTRIES)


def load_countries(source: Optional[Source] = None) -> List[CountryRecord]:
    """Merged country dataset, falling back to the bundled sample.

    A dataset that loads but parses to an implausibly small list is treated
    as broken too.
    """
    source = source or config.DATA_DIR / config.COUNTRIES_FILE
    try:
        countries = parse_countries(load_json(source))
    except DatasetError as exc:
        logger.warning("Using sample countries: %s", exc)
        return sample_countries()
    if len(countries) < MIN_PLAUSIBLE_COUNTRIES:
        logger.warning("Only %d countries in %s; using sample countries", len(countries), source)
        return sample_countries()
    return countries


def load_supplements(data_dir: Optional[pathlib.Path] = None) -> Dict[str, Any]:
    """GDP, exports, UNESCO and landmark datasets; each is optional."""
    data_dir = data_dir or config.DATA_DIR
    landmarks: List[Landmark] = []
    for item in _load_optional(data_dir / config.LANDMARKS_FILE) or []:
        landmark = landmark_from_dict(item) if isinstance(item, Mapping) else None
        if landmark is not None:
            landmarks.append(landmark)
    return {
        "gdp": _load_optional(data_dir / config.GDP_FILE) or {},
        "exports": _load_optional(data_dir / config.EXPORTS_FILE) or {},
        "unesco": _load_optional(data_dir / config.UNESCO_FILE) or {},
        "landmarks": landmarks,
    }


# ---------- Geometry ----------
def load_feature_collection(filename: str, url: Optional[str] = None, data_dir: Optional[pathlib.Path] = None) -> Dict[str, Any]:
    """Local copy first, then `url`. Returns an empty collection when both fail."""
    path = (data_dir or config.DATA_DIR) / filename
    sources: List[Source] = [path] if path.exists() else []
    if url:
        sources.append(url)
    for source in sources:
        try:
            data = load_json(source)
        except DatasetError as exc:
            logger.warning("Feature collection unavailable: %s", exc)
            continue
        if isinstance(data, Mapping):
            return dict(data)
        logger.warning("%s is not a GeoJSON object", source)
    return {"type": "FeatureCollection", "features": []}


def load_geometry(data_dir: Optional[pathlib.Path] = None, fetch: bool = True) -> Dict[str, GeometryRecord]:
    collection = load_feature_collection(config.BORDERS_FILE, config.NE_BORDERS_URL if fetch else None, data_dir)
    return build_geometry_index(collection)


def load_rivers(data_dir: Optional[pathlib.Path] = None, fetch: bool = True) -> Dict[str, RiverRecord]:
    collection = load_feature_collection(config.RIVERS_FILE, config.NE_RIVERS_URL if fetch else None, data_dir)
    return build_river_index(collection)


def load_catalog(
    data_dir: Optional[pathlib.Path] = None,
    geometry: Optional[Mapping[str, GeometryRecord]] = None,
) -> Catalog:
    data_dir = data_dir or config.DATA_DIR
    countries = load_countries(data_dir / config.COUNTRIES_FILE)
    supplements = load_supplements(data_dir)
    countries = enrich_countries(
        countries,
        gdp=supplements["gdp"],
        exports=supplements["exports"],
        unesco=supplements["unesco"],
    )
    return Catalog(countries, geometry=geometry, landmarks=supplements["landmarks"])
