import json
from pathlib import Path

import pytest
import requests

from geoquest import config, datasets
from geoquest.errors import DatasetError


class FakeResponse:
    def __init__(self, payload, status: int = 200):
        self.payload = payload
        self.status = status

    def raise_for_status(self) -> None:
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


def _country(idx: int) -> dict:
    return {"cca3": f"C{idx:02d}", "name": f"Country {idx}", "capital": [f"Capital {idx}"], "population": idx + 1}


def _write(path: Path, payload) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_fetch_json_sends_timeout_and_user_agent(monkeypatch) -> None:
    calls = {}

    def fake_get(url, timeout, headers):
        calls.update(url=url, timeout=timeout, headers=headers)
        return FakeResponse({"ok": True})

    monkeypatch.setattr(datasets.requests, "get", fake_get)
    assert datasets.fetch_json("https://example.test/data.json") == {"ok": True}
    assert calls["timeout"] == config.HTTP_TIMEOUT
    assert calls["headers"]["User-Agent"] == config.USER_AGENT


def test_fetch_json_wraps_http_errors(monkeypatch) -> None:
    monkeypatch.setattr(datasets.requests, "get", lambda url, timeout, headers: FakeResponse({}, status=503))
    with pytest.raises(DatasetError):
        datasets.fetch_json("https://example.test/data.json")

    def boom(url, timeout, headers):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(datasets.requests, "get", boom)
    with pytest.raises(DatasetError):
        datasets.fetch_json("https://example.test/data.json")

    monkeypatch.setattr(datasets.requests, "get", lambda url, timeout, headers: FakeResponse(ValueError("bad")))
    with pytest.raises(DatasetError):
        datasets.fetch_json("https://example.test/data.json")


def test_read_json_errors(tmp_path: Path) -> None:
    with pytest.raises(DatasetError):
        datasets.read_json(tmp_path / "missing.json")
    bad = tmp_path / "bad.json"
    bad.write_text("{", encoding="utf-8")
    with pytest.raises(DatasetError):
        datasets.read_json(bad)


def test_load_countries_full_dataset(tmp_path: Path) -> None:
    path = _write(tmp_path / "countries.json", [_country(i) for i in range(160)] + [{"name": "No code"}])
    countries = datasets.load_countries(path)
    assert len(countries) == 160
    assert countries[0].capital == ("Capital 0",)


def test_load_countries_falls_back_to_the_sample(tmp_path: Path) -> None:
    sample_size = len(datasets.SAMPLE_COUNTRIES)
    assert len(datasets.load_countries(tmp_path / "missing.json")) == sample_size
    small = _write(tmp_path / "small.json", [_country(i) for i in range(5)])
    assert len(datasets.load_countries(small)) == sample_size
    wrong_shape = _write(tmp_path / "object.json", {"countries": []})
    assert len(datasets.load_countries(wrong_shape)) == sample_size


def test_sample_countries_are_complete() -> None:
    countries = datasets.sample_countries()
    assert len(countries) == len(datasets.SAMPLE_COUNTRIES)
    assert all(c.capital and c.region and c.population > 0 for c in countries)
    assert len({c.cca3 for c in countries}) == len(countries)


def test_load_feature_collection_prefers_the_local_file(tmp_path: Path, monkeypatch) -> None:
    collection = {"type": "FeatureCollection", "features": [{"type": "Feature"}]}
    _write(tmp_path / "borders.geojson", collection)

    def never(*args, **kwargs):
        raise AssertionError("network used")

    monkeypatch.setattr(datasets.requests, "get", never)
    assert datasets.load_feature_collection("borders.geojson", "https://example.test/b.geojson", tmp_path) == collection


def test_load_feature_collection_empty_when_everything_fails(tmp_path: Path, monkeypatch) -> None:
    def boom(url, timeout, headers):
        raise requests.Timeout("slow")

    monkeypatch.setattr(datasets.requests, "get", boom)
    result = datasets.load_feature_collection("missing.geojson", "https://example.test/b.geojson", tmp_path)
    assert result == {"type": "FeatureCollection", "features": []}


def test_load_geometry_from_local_file(tmp_path: Path) -> None:
    square = {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]]}
    _write(tmp_path / config.BORDERS_FILE, {
        "type": "FeatureCollection",
        "features": [{"type": "Feature", "properties": {"ISO_A3": "AAA"}, "geometry": square}],
    })
    index = datasets.load_geometry(tmp_path, fetch=False)
    assert set(index) == {"AAA"}
    assert datasets.load_rivers(tmp_path, fetch=False) == {}


def test_load_catalog_applies_supplements(tmp_path: Path) -> None:
    countries = [_country(i) for i in range(160)]
    _write(tmp_path / config.COUNTRIES_FILE, countries)
    _write(tmp_path / config.GDP_FILE, {"values": {"C01": {"value": 5e9, "year": 2021}}})
    _write(tmp_path / config.UNESCO_FILE, {"sites": [{"name": "Old Town", "cca3s": ["C02"]}]})
    _write(tmp_path / config.LANDMARKS_FILE, [
        {"id": "tower", "title": "Tower", "cca3": "C03", "imagePath": "img/tower.jpg"},
        {"title": "No image", "cca3": "C04"},
    ])
    (tmp_path / config.EXPORTS_FILE).write_text("not json", encoding="utf-8")

    catalog = datasets.load_catalog(tmp_path)
    assert len(catalog) == 160
    assert catalog.get("C01").gdp_usd == 5e9
    assert catalog.get("C02").unesco_sites == ("Old Town",)
    assert [l.id for l in catalog.landmarks_by_code["C03"]] == ["tower"]
    assert "C04" not in catalog.landmarks_by_code
    assert catalog.pool("exports") == []
    assert catalog.gdp_rank == {"C01": 1}
