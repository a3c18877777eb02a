"""
Environmental Analytics Engine - Main Application

Multi-page Streamlit dashboard: live score, insights, anomalies and
forecasts for the monitored city, plus a zone map.
"""

import json
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go
import pydeck as pdk
import streamlit as st

from core.theme import get_page_config, inject_theme, section_header, get_color_by_mode, get_circle_radius, STATUS_HEX, INSIGHT_HEX

# ═══════════════════════════════════════════════════════════════════════════
# PAGE CONFIG
# ═══════════════════════════════════════════════════════════════════════════
st.set_page_config(**get_page_config("Overview"), initial_sidebar_state="expanded")
inject_theme()

# ═══════════════════════════════════════════════════════════════════════════
# IMPORTS
# ═══════════════════════════════════════════════════════════════════════════
from core.insights import InsightGenerator, generate_zone_insight
from core.scoring import get_score_status, calculate_score_trend
from inference.anomaly_detector import get_severity_color
from inference.forecaster import get_forecaster
from loaders import LiveFeed, get_air_quality_loader, get_telemetry, get_weather_loader, get_zone_catalog
from loaders.telemetry import API_REFRESH_SECONDS

STATUS_FILE = Path("daemon_status.json")


@st.cache_data(ttl=API_REFRESH_SECONDS)
def load_conditions():
    return get_weather_loader().get_weather(), get_air_quality_loader().get_air_quality()


# The feed survives reruns so the rolling window keeps filling
if "feed" not in st.session_state:
    st.session_state.feed = LiveFeed(get_telemetry(), load_conditions)

feed = st.session_state.feed
telemetry = feed.telemetry
catalog = get_zone_catalog()
forecaster = get_forecaster()

# ═══════════════════════════════════════════════════════════════════════════
# SIDEBAR
# ═══════════════════════════════════════════════════════════════════════════
st.sidebar.title("🌿 Environmental Analytics")
st.sidebar.markdown("---")

if STATUS_FILE.exists():
    try:
        daemon_status = json.loads(STATUS_FILE.read_text())
        st.sidebar.success(f"✅ Daemon running ({daemon_status.get('uptime', '?')})")
        st.sidebar.metric("Daemon ticks", daemon_status.get("ticks", 0))
    except (OSError, json.JSONDecodeError):
        st.sidebar.warning("⚠️ Daemon status unreadable")
else:
    st.sidebar.info("💤 Daemon not running")

map_mode = st.sidebar.radio("Map layer", ["temperature", "aqi", "energy"], format_func=str.upper)
rank_insights = st.sidebar.checkbox("Rank insights by priority", value=False)

if st.sidebar.button("🔄 Refresh"):
    st.rerun()

# ═══════════════════════════════════════════════════════════════════════════
# DATA
# ═══════════════════════════════════════════════════════════════════════════
state = feed.snapshot()
weather = feed.weather
air_quality = feed.air_quality

# ═══════════════════════════════════════════════════════════════════════════
# MAIN PAGE
# ═══════════════════════════════════════════════════════════════════════════
st.title("🌿 Chennai Environmental Overview")
st.markdown(InsightGenerator().summarize(state))

col1, col2, col3, col4 = st.columns(4)

with col1:
    if state.sustainability_score is not None:
        status = get_score_status(state.sustainability_score)
        trend = calculate_score_trend(state.sustainability_score, feed.previous_score)
        delta = f"{trend.direction * trend.change:+g}" if trend else None
        st.metric("Sustainability Score", f"{state.sustainability_score}/100", delta=delta)
        st.markdown(
            f"<span style='color:{STATUS_HEX[status.color]}'>{status.label.value}</span> · {status.description}",
            unsafe_allow_html=True
        )
    else:
        st.metric("Sustainability Score", "N/A")
        st.caption("Waiting for weather data")

with col2:
    aqi_label = f"{air_quality.aqi:g}" + (" (sim)" if air_quality.simulated else "")
    st.metric("AQI", aqi_label)

with col3:
    st.metric("Energy (rolling)", f"{state.rolling_avg_usage:,.0f} kWh")

with col4:
    st.metric("Carbon", f"{state.carbon.total:,.1f} kg")

tab_insights, tab_forecast, tab_map = st.tabs(["💡 Insights", "📈 Forecasts", "🗺️ Zones"])

# ═══════════════════════════════════════════════════════════════════════════
# INSIGHTS TAB
# ═══════════════════════════════════════════════════════════════════════════
with tab_insights:
    section_header("💡 Insights", "Top findings for the current snapshot")
    insights = InsightGenerator().generate(state, rank_by_priority=rank_insights)
    if not insights:
        st.info("✅ All environmental metrics are optimal")
    for insight in insights:
        color = INSIGHT_HEX[insight.severity.value]
        st.markdown(
            f"<div style='border-left:4px solid {color};padding-left:0.75rem'>"
            f"<strong>{insight.title}</strong><br>{insight.message}</div>",
            unsafe_allow_html=True
        )
        if insight.suggestion:
            st.caption(f"→ {insight.suggestion}")

    section_header("🚨 Anomalies")
    if not state.anomalies:
        st.caption("No anomalies detected")
    for anomaly in state.anomalies:
        st.markdown(
            f"**[{anomaly.severity.value.upper()}]** {anomaly.description} "
            f"(expected {anomaly.expected_value:.1f}, {get_severity_color(anomaly.severity)})"
        )

# ═══════════════════════════════════════════════════════════════════════════
# FORECAST TAB
# ═══════════════════════════════════════════════════════════════════════════
with tab_forecast:
    section_header("📈 12-Hour Forecast")
    if weather is None:
        st.warning("Weather unavailable; forecasts need temperature and wind.")
    else:
        forecast = forecaster.predict_all(
            state.energy_history,
            list(telemetry.aqi_history),
            temperature=weather.temperature,
            wind_speed=weather.wind_speed,
        )
        fig = go.Figure()
        fig.add_trace(go.Scatter(x=forecast['energy_time'], y=forecast['energy'], name="Energy (kWh)"))
        fig.add_trace(go.Scatter(x=forecast['energy_time'], y=forecast['carbon'], name="Carbon (kg)"))
        fig.add_trace(go.Scatter(x=forecast['energy_time'], y=forecast['aqi'], name="AQI", yaxis="y2"))
        fig.update_layout(
            yaxis=dict(title="kWh / kg"),
            yaxis2=dict(title="AQI", overlaying="y", side="right"),
            height=400,
            margin=dict(l=0, r=0, t=20, b=0),
        )
        st.plotly_chart(fig, use_container_width=True)
        st.dataframe(forecast, hide_index=True, use_container_width=True)

# ═══════════════════════════════════════════════════════════════════════════
# ZONE MAP TAB
# ═══════════════════════════════════════════════════════════════════════════
with tab_map:
    section_header("🗺️ Zones", f"Colored by {map_mode}")
    value_field = {"temperature": "temperature", "aqi": "aqi", "energy": "energy_consumption"}[map_mode]

    rows = []
    for zone in catalog.all():
        value = getattr(zone, value_field)
        hex_color = get_color_by_mode(map_mode, value).lstrip("#")
        rows.append({
            "name": zone.name,
            "area": zone.area,
            "lat": zone.latitude,
            "lon": zone.longitude,
            "value": value,
            "radius": get_circle_radius(map_mode, value),
            "color": [int(hex_color[i:i + 2], 16) for i in (0, 2, 4)] + [160],
        })
    zones_df = pd.DataFrame(rows)

    st.pydeck_chart(pdk.Deck(
        map_style=None,
        initial_view_state=pdk.ViewState(latitude=13.03, longitude=80.21, zoom=10.5),
        layers=[pdk.Layer(
            "ScatterplotLayer",
            data=zones_df,
            get_position="[lon, lat]",
            get_radius="radius",
            get_fill_color="color",
            pickable=True,
        )],
        tooltip={"text": "{name}\n{area}\n{value}"},
    ))

    zone_id = st.selectbox(
        "Zone details",
        options=[z.id for z in catalog.all()],
        format_func=lambda zid: catalog.get(zid).name
    )
    zone_insight = generate_zone_insight(catalog.get(zone_id))
    st.markdown(f"**Severity:** {zone_insight.severity.value}")
    st.write(zone_insight.insight)
    for rec in zone_insight.recommendations:
        st.markdown(f"- {rec}")
