"""
Carbon Planner - Zone recommendations and what-if simulation.
"""

import pandas as pd
import plotly.express as px
import streamlit as st

from core.theme import get_page_config, inject_theme, section_header

st.set_page_config(**get_page_config("Carbon Planner"))
inject_theme()

from core.carbon import get_carbon_engine, get_carbon_level_color, infer_zone_type
from core.scoring import calculate_score, temperature_severity
from core.models import ScoreFactors
from core.simulation import (
    calculate_roi,
    comparison_chart_data,
    get_simulator,
    implementation_phases,
)
from loaders import get_zone_catalog

catalog = get_zone_catalog()
engine = get_carbon_engine()

# ═══════════════════════════════════════════════════════════════════════════
# ZONE SELECTION
# ═══════════════════════════════════════════════════════════════════════════
zones = catalog.all()
zone_id = st.sidebar.selectbox(
    "Select Zone",
    options=[z.id for z in zones],
    format_func=lambda zid: f"{catalog.get(zid).name} ({catalog.get(zid).area})"
)
zone = catalog.get(zone_id)

if zone.sustainability_score is not None:
    current_score = zone.sustainability_score
else:
    current_score = calculate_score(ScoreFactors(
        aqi=zone.aqi,
        energy_consumption=zone.energy_consumption,
        carbon_emission=zone.carbon_emission,
        temperature_severity=temperature_severity(zone.temperature),
    ))

recommendation = engine.recommend(
    zone.id,
    zone.name,
    zone.carbon_emission,
    zone.energy_consumption,
    current_score,
    zone_type=infer_zone_type(catalog.recommendation_label(zone)),
)

# ═══════════════════════════════════════════════════════════════════════════
# HEADER
# ═══════════════════════════════════════════════════════════════════════════
st.title(f"🏭 {zone.name}")
level = recommendation.carbon_analysis.carbon_level

col1, col2, col3, col4 = st.columns(4)
col1.metric("Carbon", f"{zone.carbon_emission:,.1f} kg")
col2.markdown(
    f"**Level**<br><span style='color:{get_carbon_level_color(level)};font-size:1.5rem'>{level.value}</span>",
    unsafe_allow_html=True
)
col3.metric("Zone type", recommendation.carbon_analysis.zone_type.value)
col4.metric(
    "Score",
    f"{current_score:g}",
    delta=f"+{recommendation.projected_improvements.sustainability_score_increase:g} possible"
)

tab_report, tab_simulate = st.tabs(["📋 Recommendation", "🧪 Simulation"])

# ═══════════════════════════════════════════════════════════════════════════
# REPORT TAB
# ═══════════════════════════════════════════════════════════════════════════
with tab_report:
    st.markdown(recommendation.recommendation_text)

    utilization = recommendation.carbon_utilization
    section_header("♻️ Carbon Utilization Potential")
    u1, u2, u3 = st.columns(3)
    u1.metric("🌳 Trees needed", f"{utilization.trees_needed:,}")
    u2.metric("☀️ Solar required", f"{utilization.solar_kw_required:,} kW")
    u3.metric("🚗 EV shift", f"{utilization.ev_shift_equivalent:,} cars")
    util_df = pd.DataFrame([
        {"pathway": "Concrete injection", "kg": utilization.concrete_injection_offset},
        {"pathway": "Synthetic fuel", "kg": utilization.synthetic_fuel_potential},
    ])
    st.plotly_chart(px.bar(util_df, x="pathway", y="kg", height=300), use_container_width=True)

# ═══════════════════════════════════════════════════════════════════════════
# SIMULATION TAB
# ═══════════════════════════════════════════════════════════════════════════
with tab_simulate:
    strategies = list(recommendation.recommended_strategies)
    by_name = {s.name: s for s in strategies}

    selected_names = st.multiselect(
        "Strategies to apply",
        options=list(by_name),
        default=list(by_name)[:1],
    )
    selected = [by_name[name] for name in selected_names]

    simulator = get_simulator(zone.carbon_emission, current_score)
    scenario = simulator.simulate(selected)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Simulated carbon", f"{scenario.simulated_carbon:,.1f} kg",
              delta=f"-{scenario.total_carbon_reduction_percent:g}%", delta_color="inverse")
    c2.metric("Simulated score", f"{scenario.simulated_sustainability_score:g}")
    c3.metric("Timeline", f"{scenario.timeline_months:g} months")
    c4.metric("Estimated cost", f"₹{scenario.estimated_cost:,.0f}")

    section_header("📊 Before / After")
    comparison = pd.DataFrame([vars(row) for row in comparison_chart_data(scenario)])
    melted = comparison.melt(id_vars="metric", value_vars=["before", "after"], var_name="when")
    st.plotly_chart(
        px.bar(melted, x="metric", y="value", color="when", barmode="group", height=320),
        use_container_width=True
    )

    if selected:
        section_header("🗓️ Implementation Phases")
        for phase in implementation_phases(selected):
            st.markdown(f"**Phase {phase.phase}** ({phase.month}): {', '.join(phase.strategies)}")
            st.caption(phase.description)

        section_header("💰 Return on Investment")
        roi_df = pd.DataFrame([r.to_dict() for r in calculate_roi(selected, zone.carbon_emission)])
        st.dataframe(roi_df, hide_index=True, use_container_width=True)

    with st.expander("Scenario matrix"):
        matrix = get_simulator(zone.carbon_emission, current_score).generate_scenario_matrix(strategies)
        st.dataframe(pd.DataFrame([s.to_dict() for s in matrix]), hide_index=True, use_container_width=True)
