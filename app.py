# app.py
import logging
import random
from typing import Dict, Optional

import plotly.graph_objects as go
import streamlit as st

from geoquest import config
from geoquest.datasets import load_catalog, load_geometry, load_rivers
from geoquest.engine import QuizEngine
from geoquest.geography import bbox_center
from geoquest.models import GeometryRecord, MapClick, Question, RiverRecord
from geoquest.progression import ACHIEVEMENT_TITLES, new_achievements
from geoquest.storage import load_state, save_state
from geoquest.views import build_mastery_map, top_mastered

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# ---------- Data ----------
@st.cache_resource
def get_catalog():
    return load_catalog()


@st.cache_data(ttl=60 * 60 * 24, show_spinner="Loading borders...")
def get_geometry() -> Dict[str, GeometryRecord]:
    return load_geometry()


@st.cache_data(ttl=60 * 60 * 24, show_spinner=False)
def get_rivers() -> Dict[str, RiverRecord]:
    return load_rivers()


def get_engine() -> QuizEngine:
    if "engine" not in st.session_state:
        engine = QuizEngine(
            get_catalog(),
            rivers=get_rivers(),
            state=load_state(),
            rng=random.Random(),
            on_change=save_state,
        )
        engine.load_geometry(get_geometry())
        engine.build_next_question()
        st.session_state["engine"] = engine
    return st.session_state["engine"]


# ---------- Map figures ----------
def _geo_layout(fig: go.Figure, height: int = 420, **geo) -> go.Figure:
    base = dict(
        showframe=False,
        showcoastlines=True,
        coastlinecolor="#CBD5E1",
        showland=True,
        landcolor="#F8FAFC",
        showocean=True,
        oceancolor="#F1F5F9",
        projection_type="natural earth",
    )
    base.update(geo)
    fig.update_layout(
        template="plotly_white",
        geo=base,
        paper_bgcolor="#FFFFFF",
        margin=dict(l=0, r=0, t=0, b=0),
        height=height,
        showlegend=False,
        dragmode=False,
    )
    return fig


def build_tap_map(engine: QuizEngine, question: Question) -> go.Figure:
    # Every country is drawn in one flat colour so the map gives nothing away
    codes = [c.cca3 for c in engine.catalog.pool("map")]
    fig = go.Figure(go.Choropleth(
        locations=codes,
        locationmode="ISO-3",
        z=[0] * len(codes),
        colorscale=[(0.0, "#E2E8F0"), (1.0, "#E2E8F0")],
        showscale=False,
        marker_line_width=0.6,
        marker_line_color="#94A3B8",
        hoverinfo="none",
    ))
    geo = {"showcountries": False}
    if question.continent:
        scope = {"Europe": "europe", "Asia": "asia", "Africa": "africa", "Oceania": "world"}.get(question.continent)
        if question.continent == "Americas":
            scope = "north america" if (question.target and question.target.bbox[3] > 12) else "south america"
        if scope:
            geo["scope"] = scope
    return _geo_layout(fig, height=480, **geo)


def build_shape_map(question: Question) -> go.Figure:
    target = question.target
    feature = {
        "type": "Feature",
        "id": target.code,
        "properties": {},
        "geometry": target.geometry,
    }
    fig = go.Figure(go.Choropleth(
        geojson={"type": "FeatureCollection", "features": [feature]},
        locations=[target.code],
        z=[1],
        colorscale=[(0.0, "#22C55E"), (1.0, "#22C55E")],
        showscale=False,
        marker_line_width=1.2,
        marker_line_color="#15803D",
        hoverinfo="none",
    ))
    fig.update_geos(fitbounds="locations", visible=not question.hide_labels)
    return _geo_layout(fig, height=320)


def build_highlight_map(question: Question) -> go.Figure:
    codes = list(question.display_codes)
    fig = go.Figure(go.Choropleth(
        locations=codes,
        locationmode="ISO-3",
        z=[1] * len(codes),
        colorscale=[(0.0, "#86EFAC"), (1.0, "#86EFAC")],
        showscale=False,
        marker_line_width=0.8,
        marker_line_color="#15803D",
        hoverinfo="none",
    ))
    geo = {}
    if question.river_bbox:
        west, south, east, north = question.river_bbox
        geo = {"lonaxis": {"range": [west - 2, east + 2]}, "lataxis": {"range": [south - 2, north + 2]}}
    else:
        fig.update_geos(fitbounds="locations")
    return _geo_layout(fig, height=300, **geo)


def click_from_selection(engine: QuizEngine, selection) -> Optional[MapClick]:
    points = (selection or {}).get("selection", {}).get("points") or []
    if not points:
        return None
    code = points[0].get("location")
    if not code:
        return None
    record = engine.catalog.geometry.get(code)
    if record is not None:
        lng, lat = bbox_center(record.bbox)
    else:
        country = engine.catalog.get(code)
        lat, lng = (country.latlng[:2] if country and len(country.latlng) >= 2 else (0.0, 0.0))
    return MapClick(lng=lng, lat=lat, rendered_codes=(code,))


# ---------- Answer handling ----------
def submit(engine: QuizEngine, choice) -> None:
    before = engine.state
    outcome = engine.answer(choice)
    if outcome.already_resolved:
        return
    question = engine.current
    if question.is_placeholder:
        st.session_state["feedback"] = ""
        engine.build_next_question()
        return
    if outcome.correct:
        st.session_state["feedback"] = "🎉 **Correct!**"
    elif question.options and outcome.correct_index is not None:
        st.session_state["feedback"] = f"❌ The correct answer was **{question.options[outcome.correct_index]}**."
    else:
        country = engine.catalog.get(outcome.correct_code)
        st.session_state["feedback"] = f"❌ Missed **{country.name if country else question.prompt}**."
    earned = new_achievements(before, engine.state)
    if earned:
        st.session_state["toasts"] = [ACHIEVEMENT_TITLES.get(key, key) for key in earned]


def next_question(engine: QuizEngine) -> None:
    st.session_state["feedback"] = ""
    engine.build_next_question()


# ---------- App UI ----------
st.set_page_config(page_title="GeoQuest", layout="centered")

if "show_intro" not in st.session_state:
    st.session_state["show_intro"] = True

if st.session_state["show_intro"]:
    st.title("🌍 GeoQuest")
    st.markdown("Flags, capitals, borders and maps. Level up by answering well.")
    st.write("---")
    st.subheader("How it works")
    st.markdown(
        f"- {config.MAX_HEARTS} hearts; a wrong answer costs one.\n"
        f"- {config.LEVEL_UP_EVERY} correct answers in a row level you up and unlock new question types.\n"
        f"- {config.HINTS_PER_GAME} hints and {config.SKIPS_PER_GAME} skips per game.\n"
        "- Progress saves locally to `progress.json`."
    )
    if st.button("Start playing", type="primary"):
        st.session_state["show_intro"] = False
        st.rerun()
    st.stop()

engine = get_engine()
state = engine.state
question = engine.current

for title in st.session_state.pop("toasts", []):
    st.toast(f"🏆 {title}")

st.title("🌍 GeoQuest")
c1, c2, c3, c4 = st.columns(4)
c1.metric("Score", f"{state.score:,}")
c2.metric("Level", state.level)
c3.metric("Streak", state.streak)
c4.metric("Hearts", "❤️" * state.hearts or "💔")
st.progress(int(100 * state.correct_in_level / config.LEVEL_UP_EVERY))

with st.sidebar:
    st.header("Session")
    st.write(f"High score: **{state.high_score:,}**")
    st.write(f"Best streak: **{state.best_streak}**")
    st.write(f"Hints left: {state.hints_left} · Skips left: {state.skips_left}")
    if st.button("Restart game"):
        st.session_state["feedback"] = ""
        engine.restart()
        st.rerun()
    st.write("---")
    st.subheader("Achievements")
    if state.achievements:
        for key in state.achievements:
            st.write(f"🏆 {ACHIEVEMENT_TITLES.get(key, key)}")
    else:
        st.caption("None yet")
    st.write("---")
    st.subheader("Persistence")
    st.write(f"Progress file: `{config.PROGRESS_FILE.name}`")

if state.game_over:
    st.error("Game over! You ran out of hearts.")
    if st.button("Play again", type="primary"):
        st.session_state["feedback"] = ""
        engine.restart()
        st.rerun()
    st.stop()

# main card
resolved = engine.resolved is not None
st.subheader(question.prompt if not question.is_map_tap else f"Tap **{question.prompt}** on the map")

if question.flag_png or question.flag_svg:
    if not question.is_map_tap:
        st.image(question.flag_png or question.flag_svg, width=200)
if question.image_path:
    st.image(question.image_path, use_container_width=True)
if question.target is not None and not question.is_map_tap:
    st.plotly_chart(build_shape_map(question), use_container_width=True, key=f"shape-{question.id}")
elif question.river_bbox or len(question.display_codes) > 1:
    st.plotly_chart(build_highlight_map(question), use_container_width=True, key=f"hl-{question.id}")

if question.is_map_tap:
    event = st.plotly_chart(
        build_tap_map(engine, question),
        use_container_width=True,
        on_select="rerun",
        selection_mode="points",
        key=f"tap-{question.id}",
    )
    if not resolved:
        click = click_from_selection(engine, event)
        if click is not None:
            submit(engine, click)
            st.rerun()
else:
    removed = set(engine.removed_options)
    cols = st.columns(2)
    for idx, option in enumerate(question.options or []):
        if idx in removed:
            continue
        with cols[idx % 2]:
            label = option
            if resolved and idx == engine.resolved.correct_index:
                label = f"✅ {option}"
            if st.button(label, key=f"opt-{question.id}-{idx}", disabled=resolved, use_container_width=True):
                submit(engine, idx)
                st.rerun()

if st.session_state.get("feedback"):
    st.write(st.session_state["feedback"])

b1, b2, b3 = st.columns(3)
with b1:
    if resolved and st.button("🎯 Next Question", type="primary"):
        next_question(engine)
        st.rerun()
with b2:
    hint_ok = not resolved and not question.is_map_tap and state.hints_left > 0 and not engine.removed_options
    if st.button(f"💡 Hint ({state.hints_left})", disabled=not hint_ok):
        engine.hint()
        st.rerun()
with b3:
    if st.button(f"⏭️ Skip ({state.skips_left})", disabled=resolved or state.skips_left <= 0):
        st.session_state["feedback"] = ""
        engine.skip()
        st.rerun()

# Progress
st.write("---")
st.subheader("Mastery map")
st.plotly_chart(build_mastery_map(engine.catalog, state.mastery), use_container_width=True)

summary = engine.mastery_by_region()
if summary:
    cols = st.columns(len(summary))
    for col, (region, entry) in zip(cols, summary.items()):
        col.metric(region, f"{entry['percent']}%", help=f"{entry['mastered']}/{entry['total']} countries")

top = top_mastered(engine.catalog, state.mastery, top_n=3)
if top:
    st.subheader("Most mastered")
    for item in top:
        if item["flag"]:
            st.markdown(
                f"<div style='display:flex;align-items:center;gap:12px;margin:6px 0;'>"
                f"  <img src='{item['flag']}' style='width:48px;height:auto;border-radius:4px;' />"
                f"  <div style='font-size:14px;color:#334155;'>{item['country']} · {item['count']} correct</div>"
                f"</div>",
                unsafe_allow_html=True,
            )
        else:
            st.write(f"{item['country']} · {item['count']} correct")
