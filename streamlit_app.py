#!/usr/bin/env python3
"""
Streamlit EDH Power Analyzer - Web App Version
"""

import streamlit as st
import pandas as pd
import plotly.express as px

from analyzer import DeckAnalyzer
from coach import format_recommendations
from deck_parser import DeckParser
from format_checker import FormatChecker
from power_calculator import DEFAULT_CONFIG
from scryfall_api import ScryfallAPI
from simulation import DEFAULT_ITERATIONS, DEFAULT_SEED

# Page configuration
st.set_page_config(
    page_title="⚡ EDH Power Analyzer",
    page_icon="⚡",
    layout="wide",
    initial_sidebar_state="expanded"
)

BAND_COLORS = {
    "casual": "#4CAF50",
    "mid": "#2196F3",
    "high": "#FF9800",
    "cedh": "#F44336",
}

EXAMPLE_DECK = """Commander
1 Atraxa, Praetors' Voice

Deck
1 Sol Ring
1 Arcane Signet
1 Demonic Tutor
1 Swords to Plowshares
1 Counterspell
1 Rhystic Study
10 Forest
10 Island
10 Plains
10 Swamp"""


@st.cache_resource
def get_api() -> ScryfallAPI:
    """One Scryfall client (and card cache) per server process."""
    return ScryfallAPI()


# Initialize session state
if 'deck_text' not in st.session_state:
    st.session_state.deck_text = ""
if 'report' not in st.session_state:
    st.session_state.report = None
    st.session_state.missing = []

st.title("⚡ EDH Power Analyzer")
st.caption("Seeded, explainable 1-10 power estimates for Commander decks, powered by Scryfall")

# ===== SIDEBAR OPTIONS =====
st.sidebar.header("⚙️ Analysis Options")
seed = st.sidebar.number_input("Simulation seed", value=DEFAULT_SEED, step=1)
iterations = st.sidebar.select_slider(
    "Simulated opening hands",
    options=[1000, 2500, 5000, 10000, 20000],
    value=DEFAULT_ITERATIONS,
)
use_target = st.sidebar.checkbox("Coach toward a target power", value=False)
target_power = st.sidebar.slider("Target power", 1.0, 10.0, 6.0, 0.5) if use_target else None

st.sidebar.header("⚖️ Format Legality")
format_checker = FormatChecker()
selected_format = st.sidebar.selectbox("Format:", format_checker.get_available_formats())
format_description = format_checker.get_format_description(selected_format)
if format_description:
    st.sidebar.info(f"📋 {format_description}")

# ===== DECK INPUT =====
col1, col2 = st.columns([3, 2])
with col1:
    st.markdown("### 📝 Paste Your Decklist")
    decklist_text = st.text_area(
        "Decklist",
        value=st.session_state.deck_text,
        height=220,
        placeholder=EXAMPLE_DECK,
        help="Supports '1 Card Name', '1x Card Name (SET) 123' and a 'Commander' section",
        label_visibility="collapsed",
    )
with col2:
    st.markdown("### 📁 Or Upload")
    uploaded_file = st.file_uploader("Upload .txt file", type=['txt'])
    if uploaded_file is not None:
        decklist_text = uploaded_file.read().decode('utf-8')
        st.success(f"✅ Loaded decklist from: {uploaded_file.name}")
    if st.button("📋 Use Example Deck", type="secondary"):
        st.session_state.deck_text = EXAMPLE_DECK
        st.rerun()

if st.button("🔍 Analyze Deck", type="primary", disabled=not decklist_text.strip(), use_container_width=True):
    try:
        entries = DeckParser().parse_text(decklist_text, name="Your Deck")
    except ValueError as e:
        st.error(f"Error parsing deck: {e}")
        st.stop()

    with st.spinner("🔍 Fetching cards and analyzing your deck..."):
        deck, missing = get_api().build_deck(entries, format=selected_format)
        analyzer = DeckAnalyzer(config=DEFAULT_CONFIG, seed=int(seed), iterations=int(iterations))
        st.session_state.report = analyzer.analyze(deck, target_power=target_power)
        st.session_state.missing = missing
        st.session_state.deck_text = decklist_text

report = st.session_state.report
if report is not None:
    score = report.power
    st.markdown("---")

    # ===== HEADLINE =====
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Power", f"{score.power:.1f} / 10")
    with col2:
        st.markdown(
            f"<h3 style='color:{BAND_COLORS.get(score.band, '#ffffff')}'>{score.band.upper()}</h3>",
            unsafe_allow_html=True,
        )
    with col3:
        st.metric("Keepable 7", f"{score.playability.keepable7_pct:.1f}%")
    with col4:
        st.metric("Goldfish win", f"T{score.goldfish.exp_win_turn:.1f}")

    if score.legality.ok:
        st.success(f"✅ Legal in {selected_format}")
    else:
        st.error("❌ " + "; ".join(score.legality.issues))

    if st.session_state.missing:
        st.warning(f"⚠️ {len(st.session_state.missing)} cards not found: {', '.join(st.session_state.missing)}")

    # ===== SUBSCORES =====
    st.markdown("### 📊 Subscores")
    subscore_df = pd.DataFrame(
        [{"Subscore": name.replace("_", " ").title(), "Score": value}
         for name, value in score.subscores.as_dict().items()]
    )
    col_left, col_right = st.columns(2)
    with col_left:
        fig_bar = px.bar(
            subscore_df, x="Score", y="Subscore", orientation="h",
            range_x=[0, 100], color="Score", color_continuous_scale="Viridis",
        )
        fig_bar.update_layout(height=400, showlegend=False, coloraxis_showscale=False)
        st.plotly_chart(fig_bar, use_container_width=True)
    with col_right:
        fig_radar = px.line_polar(subscore_df, r="Score", theta="Subscore", line_close=True, range_r=[0, 100])
        fig_radar.update_traces(fill="toself")
        fig_radar.update_layout(height=400)
        st.plotly_chart(fig_radar, use_container_width=True)

    # ===== DRIVERS & DRAGS =====
    col_left, col_right = st.columns(2)
    with col_left:
        st.markdown("### 💪 Drivers")
        for driver in score.drivers or ["No standout strengths"]:
            st.markdown(f"- {driver}")
    with col_right:
        st.markdown("### 🐢 Drags")
        for drag in score.drags or ["No major weaknesses"]:
            st.markdown(f"- {drag}")

    # ===== PLAYABILITY =====
    st.markdown("### 🎲 Opening Hands")
    play = score.playability
    play_df = pd.DataFrame([
        {"Metric": "Keepable 7", "Value": f"{play.keepable7_pct:.1f}%"},
        {"Metric": "Turn 1 land", "Value": f"{play.t1_color_hit_pct:.1f}%"},
        {"Metric": "Two colors by turn 2", "Value": f"{play.t2_two_colors_hit_pct:.1f}%"},
        {"Metric": "Untapped lands", "Value": f"{play.untapped_land_ratio:.1f}%"},
        {"Metric": "Average mana value", "Value": f"{play.avg_cmc:.2f}"},
        {"Metric": "Rocks and dorks", "Value": str(play.rocks_dorks_count)},
    ])
    st.dataframe(play_df, hide_index=True, use_container_width=True)

    # ===== DIAGNOSTICS =====
    with st.expander("🔎 Tutors & Game Changers"):
        diag = score.diagnostics
        if score.flags.no_tutors:
            st.info(f"Tutor quality {diag.tutor_quality:.1f} is low for the {score.band} band")
        if score.flags.no_game_changers:
            st.info(f"{diag.game_changer_count} game changers is low for the {score.band} band")
        if diag.tutors:
            st.dataframe(pd.DataFrame([t.__dict__ for t in diag.tutors]), hide_index=True)
        if diag.game_changers:
            st.dataframe(pd.DataFrame([g.__dict__ for g in diag.game_changers]), hide_index=True)

    # ===== COACHING =====
    if score.recommendations:
        st.markdown("### 🎯 Coaching")
        for line in format_recommendations(score.recommendations):
            st.markdown(line)
        if score.coaching_operations:
            st.dataframe(
                pd.DataFrame([op.to_dict() for op in score.coaching_operations]),
                hide_index=True, use_container_width=True,
            )
        for fix in report.quick_fixes:
            st.markdown(f"🔧 {fix}")

    # ===== SYNERGY =====
    st.markdown("### 🧩 Synergy")
    synergy = report.synergy
    st.metric("Total synergy score", f"{synergy.total_synergy_score:.0f}")
    if synergy.archetype_matches:
        archetype_df = pd.DataFrame(
            [{"Archetype": m.name, "Confidence": m.confidence, "Category": m.category}
             for m in synergy.archetype_matches]
        )
        fig_arch = px.bar(archetype_df, x="Archetype", y="Confidence", color="Category", range_y=[0, 100])
        st.plotly_chart(fig_arch, use_container_width=True)
    if synergy.mechanic_clusters:
        cluster_df = pd.DataFrame(
            [{"Mechanic": c.mechanic, "Cards": len(c.cards), "Coverage %": round(c.coverage, 1),
              "Potential": round(c.potential, 1)} for c in synergy.mechanic_clusters[:10]]
        )
        st.dataframe(cluster_df, hide_index=True, use_container_width=True)
    for suggestion in synergy.improvement_suggestions:
        st.markdown(f"- **{suggestion.type}** {', '.join(suggestion.cards)}: {suggestion.reason}")
