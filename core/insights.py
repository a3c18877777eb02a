"""
Insight Generator - Rule-based insights from a dashboard snapshot.

Scans air quality, energy, carbon, weather, the sustainability score and
recent anomalies, and emits short human-readable insights.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from core.models import AnomalySeverity, DashboardState, ZoneRecord

log = logging.getLogger("core.insights")

MAX_INSIGHTS = 5
MAX_ANOMALY_INSIGHTS = 2
SUMMARY_MESSAGE_CHARS = 80
ALL_CLEAR_SUMMARY = "✅ All environmental metrics are optimal"


class InsightCategory(Enum):
    ENERGY = "energy"
    AIR = "air"
    CARBON = "carbon"
    WEATHER = "weather"
    SUSTAINABILITY = "sustainability"
    GENERAL = "general"


class InsightSeverity(Enum):
    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"


SEVERITY_PRIORITY = {
    InsightSeverity.WARNING: 3,
    InsightSeverity.INFO: 2,
    InsightSeverity.SUCCESS: 1,
}

SEVERITY_ICONS = {
    InsightSeverity.WARNING: "⚠️",
    InsightSeverity.SUCCESS: "✅",
    InsightSeverity.INFO: "ℹ️",
}


@dataclass(frozen=True)
class AIInsight:
    """A single generated insight."""
    id: str
    title: str
    message: str
    category: InsightCategory
    severity: InsightSeverity
    timestamp: datetime
    actionable: bool
    suggestion: Optional[str] = None
    priority: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'title': self.title,
            'message': self.message,
            'category': self.category.value,
            'severity': self.severity.value,
            'timestamp': self.timestamp.isoformat(),
            'actionable': self.actionable,
            'suggestion': self.suggestion,
            'priority': self.priority,
        }


class InsightGenerator:
    """
    Evaluates insight rules in a fixed order:

    air quality -> energy -> carbon -> weather -> score -> anomalies

    By default the first five insights in that order are returned. With
    rank_by_priority=True they are stable-sorted by priority (warnings
    first, actionable before not) before the cut.
    """

    def __init__(self, max_insights: int = MAX_INSIGHTS):
        self.max_insights = max_insights

    def generate(
        self,
        state: DashboardState,
        now: Optional[datetime] = None,
        rank_by_priority: bool = False
    ) -> List[AIInsight]:
        now = now or datetime.now()
        stamp = int(now.timestamp() * 1000)
        insights: List[AIInsight] = []

        def add(
            key: str,
            title: str,
            message: str,
            category: InsightCategory,
            severity: InsightSeverity,
            actionable: bool,
            suggestion: Optional[str] = None,
        ) -> None:
            insights.append(AIInsight(
                id=f"{key}-{stamp}",
                title=title,
                message=message,
                category=category,
                severity=severity,
                timestamp=now,
                actionable=actionable,
                suggestion=suggestion,
                priority=SEVERITY_PRIORITY[severity] + (1 if actionable else 0),
            ))

        # Air quality
        air = state.air_quality
        if air is not None:
            if air.aqi > 150:
                add("air", "High Pollution Alert",
                    f"Current AQI is {air.aqi:g} (Unhealthy). Avoid outdoor activities and use air purifiers.",
                    InsightCategory.AIR, InsightSeverity.WARNING, True,
                    "Reduce outdoor exposure, increase local ventilation")
            elif air.aqi > 100:
                add("air-moderate", "Moderate Air Quality",
                    f"AQI at {air.aqi:g}. Sensitive groups should limit intense outdoor activities.",
                    InsightCategory.AIR, InsightSeverity.WARNING, True)
            elif air.aqi < 50:
                add("air-good", "Excellent Air Quality",
                    "Perfect conditions for outdoor activities.",
                    InsightCategory.AIR, InsightSeverity.SUCCESS, False)

            if air.pm25 is not None and air.pm25 > 35:
                add("pm25", "High PM2.5 Levels",
                    f"Fine particulate matter at {air.pm25:g} µg/m³. Wear N95 masks outdoors.",
                    InsightCategory.AIR, InsightSeverity.WARNING, True)

        # Energy against the rolling average
        if state.energy_readings:
            current = state.current_usage
            average = state.rolling_avg_usage
            if current > average * 1.3:
                add("energy-high", "High Energy Consumption",
                    f"Current usage {current:.0f} kWh is 30% above average ({average:.0f} kWh).",
                    InsightCategory.ENERGY, InsightSeverity.WARNING, True,
                    "Check for active appliances, optimize heating/cooling, or consider demand reduction")
            elif current < average * 0.7:
                add("energy-low", "Low Energy Usage",
                    "Great job! Usage is 30% below average. Maintain current efficiency.",
                    InsightCategory.ENERGY, InsightSeverity.SUCCESS, False)

        # Carbon
        carbon = state.carbon
        if carbon is not None and carbon.total > 100:
            source, suggestion = self._dominant_carbon_source(carbon.energy, carbon.transport)
            add("carbon-high", "High Carbon Footprint",
                f"Daily emissions: {carbon.total:.1f} kg CO2e. Primary source: {source}.",
                InsightCategory.CARBON, InsightSeverity.WARNING, True, suggestion)

        # Weather
        weather = state.weather
        if weather is not None:
            if weather.temperature > 30:
                add("heat", "High Temperature Alert",
                    f"Temperature at {weather.temperature:g}°C. Stay hydrated and avoid peak sun hours (11-16).",
                    InsightCategory.WEATHER, InsightSeverity.WARNING, True)

            if weather.wind_speed > 30:
                add("wind", "Strong Winds Expected",
                    f"Wind speed: {weather.wind_speed:g} km/h. Air quality may improve due to pollution dispersal.",
                    InsightCategory.WEATHER, InsightSeverity.INFO, False)

            if weather.temperature > 28 and state.rolling_avg_usage > 400:
                add("weather-energy", "AC Driving High Energy Consumption",
                    f"High temperature ({weather.temperature:g}°C) likely causing increased AC usage.",
                    InsightCategory.SUSTAINABILITY, InsightSeverity.INFO, True,
                    "Consider increasing thermostat by 2-3°C for energy savings")

        # Sustainability score
        score = state.sustainability_score
        if score is not None:
            if score < 30:
                add("sustain-critical", "Critical Sustainability Status",
                    f"Sustainability score: {score}/100. Immediate action required across all metrics.",
                    InsightCategory.SUSTAINABILITY, InsightSeverity.WARNING, True)
            elif score > 70:
                add("sustain-good", "Positive Sustainability Trend",
                    f"Score at {score}/100. Keep up with current sustainability practices.",
                    InsightCategory.SUSTAINABILITY, InsightSeverity.SUCCESS, False)

        # Anomalies
        for anomaly in state.anomalies[:MAX_ANOMALY_INSIGHTS]:
            is_high = anomaly.severity == AnomalySeverity.HIGH
            severity = InsightSeverity.WARNING if is_high else InsightSeverity.INFO
            insights.append(AIInsight(
                id=f"anomaly-{anomaly.id}",
                title=f"Anomaly Detected: {anomaly.metric}",
                message=anomaly.description,
                category=InsightCategory.GENERAL,
                severity=severity,
                timestamp=now,
                actionable=is_high,
                priority=SEVERITY_PRIORITY[severity] + (1 if is_high else 0),
            ))

        if rank_by_priority:
            insights.sort(key=lambda i: i.priority, reverse=True)

        log.debug(f"Generated {len(insights)} insights, returning top {self.max_insights}")
        return insights[:self.max_insights]

    @staticmethod
    def _dominant_carbon_source(energy: float, transport: float) -> Tuple[str, str]:
        if energy > 40:
            return "Energy", "Switch to renewable energy sources"
        if transport > 40:
            return "Transport", "Reduce travel or use public transport"
        return "Other", "Optimize daily activities"

    def summarize(self, state: DashboardState, now: Optional[datetime] = None) -> str:
        """One-line summary built from the top insight."""
        insights = self.generate(state, now=now)
        if not insights:
            return ALL_CLEAR_SUMMARY

        top = insights[0]
        message = top.message
        if len(message) > SUMMARY_MESSAGE_CHARS:
            message = message[:SUMMARY_MESSAGE_CHARS] + "..."
        return f"{SEVERITY_ICONS[top.severity]} {top.title}: {message}"


def generate_insights(
    state: DashboardState,
    now: Optional[datetime] = None,
    rank_by_priority: bool = False
) -> List[AIInsight]:
    """Top insights for a dashboard snapshot."""
    return InsightGenerator().generate(state, now=now, rank_by_priority=rank_by_priority)


def generate_summary_insight(state: DashboardState, now: Optional[datetime] = None) -> str:
    """One-line summary for a dashboard snapshot."""
    return InsightGenerator().summarize(state, now=now)


# ═══════════════════════════════════════════════════════════════════════════
# PER-ZONE INSIGHTS
# ═══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class ZoneInsight:
    """Map-popup insight for one zone."""
    zone_id: str
    zone_name: str
    insight: str
    recommendations: Tuple[str, ...]
    severity: AnomalySeverity
    metrics: Dict[str, float]


def _escalate(current: AnomalySeverity, to: AnomalySeverity) -> AnomalySeverity:
    if to == AnomalySeverity.HIGH:
        return to
    if current == AnomalySeverity.LOW:
        return to
    return current


def generate_zone_insight(zone: ZoneRecord) -> ZoneInsight:
    """Threshold findings, correlations and recommendations for one zone."""
    findings: List[str] = []
    recommendations: List[str] = []
    severity = AnomalySeverity.LOW

    if zone.temperature >= 35:
        findings.append(f"Extreme heat in {zone.name} ({zone.temperature:g}°C)")
        recommendations.append("Increase cooling efficiency, consider energy-saving measures")
        severity = _escalate(severity, AnomalySeverity.HIGH)
    elif zone.temperature >= 33:
        findings.append(f"High temperature detected ({zone.temperature:g}°C)")
        recommendations.append("Monitor AC usage patterns")
        severity = _escalate(severity, AnomalySeverity.MEDIUM)

    if zone.aqi >= 151:
        findings.append(f"Unhealthy air quality (AQI: {zone.aqi:g})")
        recommendations.append("Avoid outdoor activities, use air purifiers")
        severity = _escalate(severity, AnomalySeverity.HIGH)
    elif zone.aqi >= 101:
        findings.append(f"Air quality moderate to poor (AQI: {zone.aqi:g})")
        recommendations.append("Sensitive groups should limit outdoor exposure")
        severity = _escalate(severity, AnomalySeverity.MEDIUM)

    if zone.energy_consumption >= 1000:
        findings.append(f"Very high energy consumption ({zone.energy_consumption:g} kWh)")
        recommendations.append("Peak load detected - review energy optimization strategies")
        severity = _escalate(severity, AnomalySeverity.HIGH)
    elif zone.energy_consumption >= 750:
        findings.append(f"Elevated energy usage ({zone.energy_consumption:g} kWh)")
        recommendations.append("Consider load balancing and renewable energy")
        severity = _escalate(severity, AnomalySeverity.MEDIUM)

    if zone.temperature >= 33 and zone.energy_consumption >= 700:
        findings.append("High energy usage correlates with temperature spike - likely increased AC demand")
    if zone.aqi >= 120 and "Industrial" in zone.area:
        findings.append("Industrial activity contributing to elevated AQI levels")
    if "Coastal" in zone.area and zone.aqi < 100:
        findings.append("Sea breeze helping maintain good air quality")
    if "Residential" in zone.area and zone.energy_consumption < 500:
        findings.append("Residential zone showing efficient energy patterns")

    if findings:
        text = ". ".join(findings) + "."
    else:
        text = f"{zone.name} showing normal environmental conditions across all metrics."

    if not recommendations:
        recommendations = ["Continue monitoring current patterns", "Maintain sustainable practices"]

    return ZoneInsight(
        zone_id=zone.id,
        zone_name=zone.name,
        insight=text,
        recommendations=tuple(recommendations),
        severity=severity,
        metrics={
            'temperature': zone.temperature,
            'aqi': zone.aqi,
            'energy': zone.energy_consumption,
            'carbon': zone.carbon_emission,
        },
    )
