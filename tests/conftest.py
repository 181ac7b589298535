import random
from typing import List

import pytest

from geoquest.catalog import Catalog
from geoquest.models import CountryRecord, Currency, GeometryRecord

# cca3, name, region, subregion, population (millions), area (km2), capital, currency, language, landlocked, borders
ROWS = [
    ("FRA", "France", "Europe", "Western Europe", 67.4, 551695, "Paris", "EUR", "French", False, ("DEU", "BEL", "ESP", "ITA", "CHE")),
    ("DEU", "Germany", "Europe", "Western Europe", 83.2, 357114, "Berlin", "EUR", "German", False, ("FRA", "BEL", "AUT", "CHE", "DNK")),
    ("BEL", "Belgium", "Europe", "Western Europe", 11.5, 30528, "Brussels", "EUR", "Dutch", False, ("FRA", "DEU")),
    ("AUT", "Austria", "Europe", "Western Europe", 8.9, 83871, "Vienna", "EUR", "German", True, ("DEU", "CHE", "ITA")),
    ("CHE", "Switzerland", "Europe", "Western Europe", 8.6, 41284, "Bern", "CHF", "German", True, ("FRA", "DEU", "AUT", "ITA")),
    ("ESP", "Spain", "Europe", "Southern Europe", 47.4, 505992, "Madrid", "EUR", "Spanish", False, ("FRA", "PRT")),
    ("ITA", "Italy", "Europe", "Southern Europe", 59.6, 301336, "Rome", "EUR", "Italian", False, ("FRA", "CHE", "AUT")),
    ("PRT", "Portugal", "Europe", "Southern Europe", 10.3, 92090, "Lisbon", "EUR", "Portuguese", False, ("ESP",)),
    ("GRC", "Greece", "Europe", "Southern Europe", 10.7, 131990, "Athens", "EUR", "Greek", False, ()),
    ("SWE", "Sweden", "Europe", "Northern Europe", 10.3, 450295, "Stockholm", "SEK", "Swedish", False, ("NOR",)),
    ("NOR", "Norway", "Europe", "Northern Europe", 5.4, 323802, "Oslo", "NOK", "Norwegian", False, ("SWE",)),
    ("DNK", "Denmark", "Europe", "Northern Europe", 5.8, 43094, "Copenhagen", "DKK", "Danish", False, ("DEU",)),
    ("KEN", "Kenya", "Africa", "Eastern Africa", 53.8, 580367, "Nairobi", "KES", "Swahili", False, ("ETH", "TZA", "UGA")),
    ("ETH", "Ethiopia", "Africa", "Eastern Africa", 115.0, 1104300, "Addis Ababa", "ETB", "Amharic", True, ("KEN",)),
    ("TZA", "Tanzania", "Africa", "Eastern Africa", 59.7, 945087, "Dodoma", "TZS", "Swahili", False, ("KEN", "UGA")),
    ("UGA", "Uganda", "Africa", "Eastern Africa", 45.7, 241550, "Kampala", "UGX", "English", True, ("KEN", "TZA")),
    ("EGY", "Egypt", "Africa", "Northern Africa", 102.3, 1002450, "Cairo", "EGP", "Arabic", False, ()),
    ("MAR", "Morocco", "Africa", "Northern Africa", 36.9, 446550, "Rabat", "MAD", "Arabic", False, ()),
    ("JPN", "Japan", "Asia", "Eastern Asia", 125.8, 377930, "Tokyo", "JPY", "Japanese", False, ()),
    ("CHN", "China", "Asia", "Eastern Asia", 1402.1, 9706961, "Beijing", "CNY", "Chinese", False, ("IND", "MNG")),
    ("KOR", "South Korea", "Asia", "Eastern Asia", 51.8, 100210, "Seoul", "KRW", "Korean", False, ()),
    ("MNG", "Mongolia", "Asia", "Eastern Asia", 3.3, 1564110, "Ulaanbaatar", "MNT", "Mongolian", True, ("CHN",)),
    ("IND", "India", "Asia", "Southern Asia", 1380.0, 3287590, "New Delhi", "INR", "Hindi", False, ("CHN",)),
    ("BRA", "Brazil", "Americas", "South America", 212.6, 8515767, "Brasília", "BRL", "Portuguese", False, ("ARG",)),
    ("ARG", "Argentina", "Americas", "South America", 45.4, 2780400, "Buenos Aires", "ARS", "Spanish", False, ("BRA",)),
    ("CAN", "Canada", "Americas", "North America", 38.0, 9984670, "Ottawa", "CAD", "English", False, ("USA",)),
    ("USA", "United States", "Americas", "North America", 329.5, 9372610, "Washington, D.C.", "USD", "English", False, ("CAN", "MEX")),
    ("MEX", "Mexico", "Americas", "North America", 128.9, 1964375, "Mexico City", "MXN", "Spanish", False, ("USA",)),
    ("AUS", "Australia", "Oceania", "Australia and New Zealand", 25.7, 7692024, "Canberra", "AUD", "English", False, ()),
    ("NZL", "New Zealand", "Oceania", "Australia and New Zealand", 5.1, 270467, "Wellington", "NZD", "English", False, ()),
    ("FJI", "Fiji", "Oceania", "Melanesia", 0.9, 18272, "Suva", "FJD", "English", False, ()),
    ("PNG", "Papua New Guinea", "Oceania", "Melanesia", 8.9, 462840, "Port Moresby", "PGK", "English", False, ()),
]

RIVERS = {"FRA": ("Seine",), "DEU": ("Rhine",), "EGY": ("Nile",), "BRA": ("Amazon",), "CHN": ("Yangtze",)}
CITIES = {"FRA": ("Lyon",), "DEU": ("Hamburg",), "ITA": ("Milan",), "ESP": ("Barcelona",), "JPN": ("Osaka",), "USA": ("New York",)}


def make_country(cca3: str, name: str, **kwargs) -> CountryRecord:
    kwargs.setdefault("cca2", cca3[:2])
    kwargs.setdefault("flag_png", f"https://flagcdn.com/w80/{cca3[:2].lower()}.png")
    return CountryRecord(cca3=cca3, name=name, **kwargs)


def square(code: str, west: float, south: float, size: float = 2.0) -> GeometryRecord:
    ring = [[west, south], [west + size, south], [west + size, south + size], [west, south + size], [west, south]]
    return GeometryRecord(
        code=code,
        geometry={"type": "Polygon", "coordinates": [ring]},
        bbox=(west, south, west + size, south + size),
    )


def build_countries() -> List[CountryRecord]:
    countries = []
    for cca3, name, region, subregion, pop, area, capital, currency, language, landlocked, borders in ROWS:
        countries.append(make_country(
            cca3,
            name,
            region=region,
            subregion=subregion,
            population=int(pop * 1_000_000),
            area=float(area),
            capital=(capital,),
            currencies=(Currency(code=currency),),
            languages=(language,),
            landlocked=landlocked,
            borders=borders,
            rivers=RIVERS.get(cca3, ()),
            cities=CITIES.get(cca3, ()),
        ))
    return countries


@pytest.fixture
def countries() -> List[CountryRecord]:
    return build_countries()


@pytest.fixture
def geometry(countries):
    # Non-overlapping 2x2 degree squares along the equator
    return {c.cca3: square(c.cca3, west=-90 + idx * 4, south=0) for idx, c in enumerate(countries)}


@pytest.fixture
def catalog(countries, geometry) -> Catalog:
    return Catalog(countries, geometry=geometry)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)
