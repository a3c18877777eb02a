from datetime import datetime

import pytest
from core.insights import (
    ALL_CLEAR_SUMMARY,
    InsightCategory,
    InsightGenerator,
    InsightSeverity,
    generate_insights,
    generate_summary_insight,
    generate_zone_insight,
)
from core.models import (
    AirQualityData,
    Anomaly,
    AnomalySeverity,
    CarbonBreakdown,
    DashboardState,
    EnergyReading,
    WeatherData,
    ZoneRecord,
)

NOW = datetime(2024, 6, 1, 14, 30)


def reading(usage, building="Building A"):
    return EnergyReading(building, usage, 0.0, 0.0, 0.0)


def anomaly(metric="AQI", severity=AnomalySeverity.HIGH, description="AQI is unusually high (180.0)"):
    return Anomaly(
        id=f"{metric}-1",
        metric=metric,
        current_value=180,
        expected_value=90,
        deviation=90,
        severity=severity,
        timestamp=NOW,
        description=description,
    )


def titles(insights):
    return [i.title for i in insights]


def test_empty_state_has_no_insights():
    assert generate_insights(DashboardState(), now=NOW) == []
    assert generate_summary_insight(DashboardState(), now=NOW) == ALL_CLEAR_SUMMARY


@pytest.mark.parametrize("aqi,title,severity", [
    (160, "High Pollution Alert", InsightSeverity.WARNING),
    (120, "Moderate Air Quality", InsightSeverity.WARNING),
    (40, "Excellent Air Quality", InsightSeverity.SUCCESS),
])
def test_air_quality_rules(aqi, title, severity):
    state = DashboardState(air_quality=AirQualityData("Chennai", aqi))
    (insight,) = generate_insights(state, now=NOW)
    assert insight.title == title
    assert insight.severity == severity
    assert insight.category == InsightCategory.AIR


def test_moderate_aqi_band_is_silent():
    state = DashboardState(air_quality=AirQualityData("Chennai", 75))
    assert generate_insights(state, now=NOW) == []


def test_pm25_rule_is_independent():
    state = DashboardState(air_quality=AirQualityData("Chennai", 160, pm25=40))
    assert titles(generate_insights(state, now=NOW)) == ["High Pollution Alert", "High PM2.5 Levels"]


def test_high_pollution_insight_fields():
    state = DashboardState(air_quality=AirQualityData("Chennai", 160))
    (insight,) = generate_insights(state, now=NOW)
    assert insight.id == f"air-{int(NOW.timestamp() * 1000)}"
    assert insight.actionable
    assert insight.suggestion == "Reduce outdoor exposure, increase local ventilation"
    assert insight.priority == 4
    assert insight.to_dict()["severity"] == "warning"


def test_energy_against_rolling_average():
    high = DashboardState(energy_readings=[reading(600), reading(400, "Building B")], rolling_avg_usage=500)
    assert titles(generate_insights(high, now=NOW)) == ["High Energy Consumption"]

    low = DashboardState(energy_readings=[reading(300)], rolling_avg_usage=500)
    assert titles(generate_insights(low, now=NOW)) == ["Low Energy Usage"]

    normal = DashboardState(energy_readings=[reading(500)], rolling_avg_usage=500)
    assert generate_insights(normal, now=NOW) == []


def test_carbon_attributes_dominant_source():
    state = DashboardState(carbon=CarbonBreakdown(total=150, energy=120, transport=20, waste=10))
    (insight,) = generate_insights(state, now=NOW)
    assert "Primary source: Energy" in insight.message
    assert insight.suggestion == "Switch to renewable energy sources"

    transport = DashboardState(carbon=CarbonBreakdown(total=150, energy=30, transport=100, waste=20))
    assert "Primary source: Transport" in generate_insights(transport, now=NOW)[0].message


def test_weather_rules():
    state = DashboardState(
        weather=WeatherData("Chennai", temperature=33, humidity=70, wind_speed=35, condition="Clear"),
        rolling_avg_usage=450,
    )
    assert titles(generate_insights(state, now=NOW)) == [
        "High Temperature Alert",
        "Strong Winds Expected",
        "AC Driving High Energy Consumption",
    ]


def test_score_rules():
    def score_titles(score):
        return titles(generate_insights(DashboardState(sustainability_score=score), now=NOW))

    assert score_titles(None) == []
    assert score_titles(0) == ["Critical Sustainability Status"]
    assert score_titles(29) == ["Critical Sustainability Status"]
    assert score_titles(50) == []
    assert score_titles(80) == ["Positive Sustainability Trend"]


def test_at_most_two_anomalies():
    state = DashboardState(anomalies=[
        anomaly("AQI"),
        anomaly("Energy", AnomalySeverity.MEDIUM),
        anomaly("Carbon"),
    ])
    insights = generate_insights(state, now=NOW)
    assert titles(insights) == ["Anomaly Detected: AQI", "Anomaly Detected: Energy"]
    assert insights[0].severity == InsightSeverity.WARNING
    assert insights[1].severity == InsightSeverity.INFO
    assert insights[0].category == InsightCategory.GENERAL


def busy_state():
    return DashboardState(
        air_quality=AirQualityData("Chennai", 40),
        energy_readings=[reading(900)],
        rolling_avg_usage=500,
        carbon=CarbonBreakdown(total=300, energy=300),
        weather=WeatherData("Chennai", temperature=35, humidity=60, wind_speed=5, condition="Clear"),
        sustainability_score=10,
    )


def test_cap_truncates_in_evaluation_order():
    insights = generate_insights(busy_state(), now=NOW)
    assert len(insights) == 5
    assert insights[0].title == "Excellent Air Quality"
    assert "Critical Sustainability Status" not in titles(insights)


def test_rank_by_priority():
    insights = generate_insights(busy_state(), now=NOW, rank_by_priority=True)
    assert len(insights) == 5
    assert all(i.severity == InsightSeverity.WARNING for i in insights[:4])
    assert "Excellent Air Quality" not in titles(insights)
    priorities = [i.priority for i in insights]
    assert priorities == sorted(priorities, reverse=True)


def test_custom_cap():
    assert len(InsightGenerator(max_insights=2).generate(busy_state(), now=NOW)) == 2


def test_summary_uses_top_insight():
    state = DashboardState(air_quality=AirQualityData("Chennai", 160))
    summary = generate_summary_insight(state, now=NOW)
    assert summary.startswith("⚠️ High Pollution Alert: Current AQI is 160")
    assert not summary.endswith("...")


def test_summary_truncates_long_messages():
    long_text = "Building A Energy usage spiked well beyond its normal envelope " * 3
    state = DashboardState(anomalies=[anomaly(description=long_text)])
    summary = generate_summary_insight(state, now=NOW)
    assert summary == f"⚠️ Anomaly Detected: AQI: {long_text[:80]}..."


# ═══════════════════════════════════════════════════════════════════════════
# PER-ZONE INSIGHTS
# ═══════════════════════════════════════════════════════════════════════════
def zone(name="Zone", area="", temperature=28, aqi=60, energy=400, carbon=300):
    return ZoneRecord(
        id="zone-x",
        name=name,
        latitude=13.0,
        longitude=80.2,
        temperature=temperature,
        aqi=aqi,
        energy_consumption=energy,
        carbon_emission=carbon,
        area=area,
    )


def test_zone_insight_normal_conditions():
    result = generate_zone_insight(zone(name="Quiet Park"))
    assert result.severity == AnomalySeverity.LOW
    assert result.insight == "Quiet Park showing normal environmental conditions across all metrics."
    assert result.recommendations == ("Continue monitoring current patterns", "Maintain sustainable practices")


def test_zone_insight_medium():
    result = generate_zone_insight(zone(name="T. Nagar", area="Commercial Hub", temperature=32, aqi=145, energy=850))
    assert result.severity == AnomalySeverity.MEDIUM
    assert "Air quality moderate to poor (AQI: 145)" in result.insight
    assert len(result.recommendations) == 2


def test_zone_insight_high_with_correlations():
    result = generate_zone_insight(zone(area="Industrial Estate", temperature=34, aqi=185, energy=920))
    assert result.severity == AnomalySeverity.HIGH
    assert "likely increased AC demand" in result.insight
    assert "Industrial activity contributing" in result.insight


def test_zone_insight_coastal_breeze():
    result = generate_zone_insight(zone(area="Coastal Residential", aqi=85, energy=450))
    assert "Sea breeze" in result.insight
    assert "efficient energy patterns" in result.insight
    assert result.metrics["aqi"] == 85
