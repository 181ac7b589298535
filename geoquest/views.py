"""Read-only progress summaries built from the catalog and the mastery map."""

from typing import Dict, List, Mapping

import plotly.graph_objects as go

from .catalog import Catalog

# Approximate label positions for regions
REGION_LABEL_POSITIONS = {
    "Africa": {"lon": 20, "lat": 0},
    "Europe": {"lon": 15, "lat": 50},
    "Asia": {"lon": 90, "lat": 35},
    "Americas": {"lon": -80, "lat": 15},
    "Oceania": {"lon": 140, "lat": -25},
    "Antarctic": {"lon": 0, "lat": -75},
}

MASTERY_CAP = 5


def mastery_by_region(catalog: Catalog, mastery: Mapping[str, int]) -> Dict[str, Dict[str, int]]:
    """Per region: countries with at least one correct answer, total countries, percent."""
    summary: Dict[str, Dict[str, int]] = {}
    for country in catalog.countries:
        region = country.region or "Other"
        entry = summary.setdefault(region, {"mastered": 0, "total": 0, "percent": 0})
        entry["total"] += 1
        if int(mastery.get(country.cca3, 0)) > 0:
            entry["mastered"] += 1
    for entry in summary.values():
        entry["percent"] = int(100 * entry["mastered"] / entry["total"]) if entry["total"] else 0
    return dict(sorted(summary.items()))


def top_mastered(catalog: Catalog, mastery: Mapping[str, int], top_n: int = 3) -> List[Dict]:
    """Countries with the highest correct counts, ties broken by name.

    Each item is a dict: {code, country, count, flag}. Unknown codes are ignored.
    """
    items = []
    for code, count in mastery.items():
        country = catalog.get(code)
        if country is None or int(count) <= 0:
            continue
        items.append({
            "code": code,
            "country": country.name,
            "count": int(count),
            "flag": country.flag_png or country.flag_svg or "",
        })
    return sorted(items, key=lambda i: (-i["count"], i["country"]))[:top_n]


def build_mastery_map(catalog: Catalog, mastery: Mapping[str, int]) -> go.Figure:
    summary = mastery_by_region(catalog, mastery)

    # Capped correct counts (0-5); -1 marks never answered so it renders grey
    codes = [c.cca3 for c in catalog.countries]
    z_correct = [
        min(int(mastery.get(code, 0)), MASTERY_CAP) if int(mastery.get(code, 0)) > 0 else -1
        for code in codes
    ]
    hover_text = []
    for c in catalog.countries:
        count = int(mastery.get(c.cca3, 0))
        region_pct = summary.get(c.region or "Other", {}).get("percent", 0)
        hover_text.append(
            f"<b>{c.name}</b>"
            f"<br>Region: {c.region or 'Other'}"
            f"<br>Correct answers: {count}"
            f"<br>Region coverage: {region_pct}%"
        )

    green_only_colorscale = [
        (0.0, "#E2E8F0"),  # -1 -> grey
        (0.01, "#DCFCE7"),
        (0.40, "#86EFAC"),
        (0.80, "#22C55E"),
        (1.0, "#15803D"),
    ]

    choropleth = go.Choropleth(
        locations=codes,
        locationmode="ISO-3",
        z=z_correct,
        zmin=-1,
        zmax=MASTERY_CAP,
        text=hover_text,
        colorscale=green_only_colorscale,
        autocolorscale=False,
        colorbar=dict(
            title=dict(text=f"Correct (0–{MASTERY_CAP})", side="top"),
            thickness=12,
            len=0.7,
            bgcolor="rgba(255,255,255,0.85)",
            outlinewidth=0,
            tickmode="array",
            tickvals=list(range(MASTERY_CAP + 1)),
        ),
        marker_line_width=0.7,
        marker_line_color="#94A3B8",
        hovertemplate="%{text}<extra></extra>",
    )

    label_lons, label_lats, label_texts = [], [], []
    for region, pos in REGION_LABEL_POSITIONS.items():
        if region not in summary:
            continue
        label_lons.append(pos["lon"])
        label_lats.append(pos["lat"])
        label_texts.append(f"{region}: {summary[region]['percent']}%")

    labels = go.Scattergeo(
        lon=label_lons,
        lat=label_lats,
        mode="text",
        text=label_texts,
        textfont=dict(size=13, color="#334155"),
        hoverinfo="skip",
    )

    fig = go.Figure(data=[choropleth, labels])
    fig.update_layout(
        template="plotly_white",
        font=dict(family="Inter, Segoe UI, Roboto, Helvetica, Arial, sans-serif", color="#0f172a"),
        geo=dict(
            showframe=False,
            showcoastlines=True,
            coastlinecolor="#CBD5E1",
            showland=True,
            landcolor="#F8FAFC",
            showocean=True,
            oceancolor="#F1F5F9",
            projection_type="natural earth",
        ),
        paper_bgcolor="#FFFFFF",
        margin=dict(l=0, r=0, t=0, b=0),
        height=460,
        showlegend=False,
    )
    return fig
