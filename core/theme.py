"""
Shared theme and styling for the dashboard pages.

Provides the CSS, color palette and map legend helpers. Nothing in the
analytics modules depends on this file.
"""

# Color palette
COLORS = {
    'primary': '#0f766e',      # Deep teal
    'secondary': '#64748b',    # Slate gray
    'accent': '#0891b2',       # Cyan
    'success': '#059669',      # Emerald
    'warning': '#d97706',      # Amber
    'danger': '#dc2626',       # Red
    'background': '#f8fafc',
    'surface': '#ffffff',
    'text': '#1e293b',
    'muted': '#64748b',
}

# Score status color tags -> hex
STATUS_HEX = {
    'emerald': '#10b981',
    'green': '#22c55e',
    'yellow': '#eab308',
    'orange': '#f97316',
    'red': '#dc2626',
}

# Insight severity -> hex
INSIGHT_HEX = {
    'info': '#2563eb',
    'warning': '#d97706',
    'success': '#059669',
}

SHARED_CSS = """
<style>
    /* Hide Streamlit chrome */
    #MainMenu, header, footer, .stDeployButton {
        visibility: hidden;
        display: none;
    }

    /* Page layout */
    .block-container {
        padding: 1.5rem 2rem;
        max-width: 1200px;
    }

    /* Typography */
    h1 {
        font-weight: 600;
        color: #1e293b;
        letter-spacing: -0.025em;
    }
    h2 {
        font-weight: 500;
        color: #334155;
        margin-top: 1.5rem;
    }

    /* Metrics */
    [data-testid="stMetricValue"] {
        font-weight: 600;
    }
</style>
"""


def get_temperature_color(temperature: float) -> str:
    if temperature >= 35:
        return "#ef4444"
    if temperature >= 33:
        return "#f97316"
    if temperature >= 31:
        return "#f59e0b"
    if temperature >= 29:
        return "#eab308"
    return "#22c55e"


def get_aqi_color(aqi: float) -> str:
    if aqi >= 151:
        return "#7c3aed"  # Unhealthy
    if aqi >= 101:
        return "#ef4444"  # Unhealthy for sensitive groups
    if aqi >= 51:
        return "#f59e0b"  # Moderate
    return "#22c55e"  # Good


def get_energy_color(energy: float) -> str:
    if energy >= 1000:
        return "#dc2626"
    if energy >= 750:
        return "#f97316"
    if energy >= 500:
        return "#eab308"
    if energy >= 300:
        return "#84cc16"
    return "#10b981"


def get_color_by_mode(mode: str, value: float) -> str:
    """Legend color for a map mode ("temperature", "aqi" or "energy")."""
    if mode == "temperature":
        return get_temperature_color(value)
    if mode == "aqi":
        return get_aqi_color(value)
    if mode == "energy":
        return get_energy_color(value)
    return "#6366f1"


def get_circle_radius(mode: str, value: float) -> float:
    """Map marker radius in meters (800-2000) scaled by the mode's range."""
    if mode == "temperature":
        normalized = min((value - 25) / 15, 1)
    elif mode == "aqi":
        normalized = min(value / 200, 1)
    elif mode == "energy":
        normalized = min(value / 1500, 1)
    else:
        normalized = 0
    return 800 + normalized * 1200


def get_page_config(title: str):
    """Get consistent page configuration."""
    return {
        'page_title': f"{title} | Environmental Analytics",
        'page_icon': "🌿",
        'layout': "wide",
    }


def inject_theme():
    """Inject shared CSS into the page."""
    import streamlit as st
    st.markdown(SHARED_CSS, unsafe_allow_html=True)


def section_header(title: str, description: str = None):
    """Render a consistent section header."""
    import streamlit as st
    st.header(title)
    if description:
        st.caption(description)
