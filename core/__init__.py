"""
Core module for the Environmental Analytics Engine.
Contains data models, scoring, carbon recommendations, simulation and insights.
"""

from core.models import (
    Anomaly,
    AnomalySeverity,
    AirQualityData,
    CarbonBreakdown,
    DashboardState,
    EnergyReading,
    ScoreFactors,
    WeatherData,
    ZoneRecord,
)
from core.scoring import SustainabilityScorer, ScoreLabel, calculate_score, get_score_status, get_scorer
from core.carbon import CarbonRecommendationEngine, CarbonRecommendation, CarbonLevel, ZoneType, get_carbon_engine
from core.simulation import ScenarioSimulator, SimulationScenario, simulate_scenario
from core.insights import InsightGenerator, AIInsight, generate_insights, generate_summary_insight

__all__ = [
    # Models
    "Anomaly",
    "AnomalySeverity",
    "AirQualityData",
    "CarbonBreakdown",
    "DashboardState",
    "EnergyReading",
    "ScoreFactors",
    "WeatherData",
    "ZoneRecord",
    # Scoring
    "SustainabilityScorer",
    "ScoreLabel",
    "calculate_score",
    "get_score_status",
    "get_scorer",
    # Carbon
    "CarbonRecommendationEngine",
    "CarbonRecommendation",
    "CarbonLevel",
    "ZoneType",
    "get_carbon_engine",
    # Simulation
    "ScenarioSimulator",
    "SimulationScenario",
    "simulate_scenario",
    # Insights
    "InsightGenerator",
    "AIInsight",
    "generate_insights",
    "generate_summary_insight",
]
