"""
Carbon Recommendation Engine

Turns a zone's carbon/energy figures into:
- A carbon level and an inferred zone type
- Offset equivalents (trees, solar capacity, EV conversions, CO2 utilization)
- A zone-type strategy playbook
- A projected sustainability score uplift and a plain-text report
"""

import math
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

log = logging.getLogger(__name__)


class CarbonLevel(Enum):
    """Carbon emission bands."""
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"
    CRITICAL = "Critical"


class ZoneType(Enum):
    """Zone categories used to pick a strategy playbook."""
    RESIDENTIAL = "Residential"
    COMMERCIAL = "Commercial"
    INDUSTRIAL = "Industrial"
    MIXED = "Mixed"


class Difficulty(Enum):
    """Implementation difficulty of a strategy, in rollout order."""
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


# Upper bounds (exclusive); anything at or above the last bound is Critical.
CARBON_LEVEL_BREAKPOINTS: Tuple[Tuple[float, CarbonLevel], ...] = (
    (50, CarbonLevel.LOW),
    (120, CarbonLevel.MODERATE),
    (200, CarbonLevel.HIGH),
)

CARBON_LEVEL_COLORS = {
    CarbonLevel.LOW: "#10b981",
    CarbonLevel.MODERATE: "#f59e0b",
    CarbonLevel.HIGH: "#ef4444",
    CarbonLevel.CRITICAL: "#b91c1c",
}

# Checked in this order; first hit wins.
ZONE_KEYWORDS: Tuple[Tuple[ZoneType, Tuple[str, ...]], ...] = (
    (ZoneType.INDUSTRIAL, ("INDUSTRIAL", "FACTORY", "MILL")),
    (ZoneType.COMMERCIAL, ("COMMERCIAL", "MARKET", "BUSINESS")),
    (ZoneType.RESIDENTIAL, ("RESIDENTIAL", "COLONY", "SUBURB")),
)

# Offset conversion constants
KG_CO2_PER_TREE_YEAR = 21
KG_CO2_PER_SOLAR_KW = 1400
KG_CO2_PER_EV_SHIFT = 120
CONCRETE_INJECTION_RATIO = 0.3
SYNTHETIC_FUEL_RATIO = 0.4

SCORE_GAIN_PER_REDUCTION_PCT = 0.15
MAX_SCORE_GAIN = 40.0


@dataclass(frozen=True)
class CarbonAnalysis:
    """Classification of a zone's emissions."""
    carbon_level: CarbonLevel
    carbon_emission: float
    energy_consumption: float
    zone_type: ZoneType


@dataclass(frozen=True)
class CarbonUtilization:
    """Offset equivalents for an emission figure."""
    trees_needed: int
    solar_kw_required: int
    ev_shift_equivalent: int
    concrete_injection_offset: float  # kg CO2
    synthetic_fuel_potential: float  # kg CO2

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trees_needed': self.trees_needed,
            'solar_kw_required': self.solar_kw_required,
            'ev_shift_equivalent': self.ev_shift_equivalent,
            'concrete_injection_offset': self.concrete_injection_offset,
            'synthetic_fuel_potential': self.synthetic_fuel_potential,
        }


@dataclass(frozen=True)
class SustainabilityStrategy:
    """One intervention from a zone playbook."""
    name: str
    description: str
    carbon_reduction: float  # percent
    difficulty: Difficulty
    estimated_cost: str
    time_to_implement: str
    icon: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'description': self.description,
            'carbon_reduction': self.carbon_reduction,
            'difficulty': self.difficulty.value,
            'estimated_cost': self.estimated_cost,
            'time_to_implement': self.time_to_implement,
            'icon': self.icon,
        }


@dataclass(frozen=True)
class ScoreImprovement:
    """Projected score uplift from a set of strategies."""
    score_increase: float
    new_score: float


@dataclass(frozen=True)
class ProjectedImprovements:
    carbon_reduction: float  # summed percent, uncapped
    sustainability_score_increase: float
    new_sustainability_score: float


@dataclass(frozen=True)
class CarbonRecommendation:
    """Everything the carbon panel needs for one zone."""
    zone_id: str
    zone_name: str
    carbon_analysis: CarbonAnalysis
    carbon_utilization: CarbonUtilization
    recommended_strategies: Tuple[SustainabilityStrategy, ...]
    projected_improvements: ProjectedImprovements
    recommendation_text: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'zone_id': self.zone_id,
            'zone_name': self.zone_name,
            'carbon_level': self.carbon_analysis.carbon_level.value,
            'zone_type': self.carbon_analysis.zone_type.value,
            'carbon_emission': self.carbon_analysis.carbon_emission,
            'energy_consumption': self.carbon_analysis.energy_consumption,
            'carbon_utilization': self.carbon_utilization.to_dict(),
            'recommended_strategies': [s.to_dict() for s in self.recommended_strategies],
            'projected_carbon_reduction': self.projected_improvements.carbon_reduction,
            'score_increase': self.projected_improvements.sustainability_score_increase,
            'new_score': self.projected_improvements.new_sustainability_score,
            'recommendation_text': self.recommendation_text,
        }


# ═══════════════════════════════════════════════════════════════════════════
# CLASSIFICATION AND OFFSETS
# ═══════════════════════════════════════════════════════════════════════════
def analyze_carbon_level(carbon_emission: float) -> CarbonLevel:
    """Band an emission figure: <50 Low, <120 Moderate, <200 High, else Critical."""
    for upper_bound, level in CARBON_LEVEL_BREAKPOINTS:
        if carbon_emission < upper_bound:
            return level
    return CarbonLevel.CRITICAL


def get_carbon_level_color(level: CarbonLevel) -> str:
    return CARBON_LEVEL_COLORS[level]


def infer_zone_type(zone_name: str) -> ZoneType:
    """
    Guess the zone type from keywords in its name (case-insensitive).

    A heuristic only; defaults to Mixed.
    """
    name_upper = zone_name.upper()
    for zone_type, keywords in ZONE_KEYWORDS:
        if any(keyword in name_upper for keyword in keywords):
            return zone_type
    return ZoneType.MIXED


def calculate_carbon_utilization(carbon_emission: float, energy_consumption: float) -> CarbonUtilization:
    """Express an emission figure as offset equivalents."""
    return CarbonUtilization(
        trees_needed=math.ceil(carbon_emission / KG_CO2_PER_TREE_YEAR),
        solar_kw_required=math.ceil(carbon_emission / KG_CO2_PER_SOLAR_KW),
        ev_shift_equivalent=math.ceil(carbon_emission / KG_CO2_PER_EV_SHIFT),
        concrete_injection_offset=math.floor(carbon_emission * CONCRETE_INJECTION_RATIO * 10 + 0.5) / 10,
        synthetic_fuel_potential=math.floor(carbon_emission * SYNTHETIC_FUEL_RATIO * 10 + 0.5) / 10,
    )


# ═══════════════════════════════════════════════════════════════════════════
# STRATEGY PLAYBOOKS
# ═══════════════════════════════════════════════════════════════════════════
def _residential_strategies(utilization: CarbonUtilization) -> List[SustainabilityStrategy]:
    return [
        SustainabilityStrategy(
            name="Rooftop Solar Installation",
            description=(
                f"Install {utilization.solar_kw_required} kW rooftop solar system to offset 30% "
                "of carbon emissions through renewable energy generation."
            ),
            carbon_reduction=30,
            difficulty=Difficulty.MEDIUM,
            estimated_cost="₹5-8 Lakhs per kW",
            time_to_implement="2-3 months",
            icon="☀️",
        ),
        SustainabilityStrategy(
            name="Community Tree Plantation",
            description=(
                f"Plant {utilization.trees_needed} trees in community areas. "
                "Each tree absorbs ~21 kg CO₂ annually over its lifetime."
            ),
            carbon_reduction=15,
            difficulty=Difficulty.EASY,
            estimated_cost="₹500-1000 per tree",
            time_to_implement="1-2 weeks",
            icon="🌱",
        ),
        SustainabilityStrategy(
            name="Smart AC Automation",
            description="Implement smart thermostats and IoT-based AC controls to reduce energy consumption by 15-25%.",
            carbon_reduction=20,
            difficulty=Difficulty.EASY,
            estimated_cost="₹50,000-100,000",
            time_to_implement="1 week",
            icon="💨",
        ),
        SustainabilityStrategy(
            name="EV Adoption Program",
            description=(
                f"Incentivize adoption of {utilization.ev_shift_equivalent} electric vehicles "
                "to replace fossil fuel-based transport."
            ),
            carbon_reduction=25,
            difficulty=Difficulty.HARD,
            estimated_cost="Subsidy programs",
            time_to_implement="6-12 months",
            icon="⚡",
        ),
    ]


def _commercial_strategies(utilization: CarbonUtilization) -> List[SustainabilityStrategy]:
    return [
        SustainabilityStrategy(
            name="Energy Efficiency Retrofit",
            description="Upgrade to LED lighting, improve insulation, and install energy-efficient HVAC systems.",
            carbon_reduction=35,
            difficulty=Difficulty.MEDIUM,
            estimated_cost="₹10-20 Lakhs",
            time_to_implement="2-4 weeks",
            icon="💡",
        ),
        SustainabilityStrategy(
            name="Smart Grid Integration",
            description="Implement smart metering and demand response systems to optimize energy usage patterns.",
            carbon_reduction=25,
            difficulty=Difficulty.HARD,
            estimated_cost="₹20-30 Lakhs",
            time_to_implement="3-6 months",
            icon="🔌",
        ),
        SustainabilityStrategy(
            name="Renewable Energy Power Purchase",
            description=(
                f"Procure {utilization.solar_kw_required} kW from renewable energy providers "
                "via power purchase agreements."
            ),
            carbon_reduction=40,
            difficulty=Difficulty.MEDIUM,
            estimated_cost="₹3-5 per unit",
            time_to_implement="1-3 months",
            icon="🌍",
        ),
        SustainabilityStrategy(
            name="Waste Heat Recovery",
            description="Install heat recovery systems to reuse waste heat from operations, reducing energy needs.",
            carbon_reduction=20,
            difficulty=Difficulty.HARD,
            estimated_cost="₹15-25 Lakhs",
            time_to_implement="2-3 months",
            icon="♻️",
        ),
    ]


def _industrial_strategies(utilization: CarbonUtilization) -> List[SustainabilityStrategy]:
    return [
        SustainabilityStrategy(
            name="CO₂ Concrete Injection",
            description=(
                f"Utilize {utilization.concrete_injection_offset:.1f} kg CO₂ in concrete replacement, "
                "reducing carbon while strengthening materials."
            ),
            carbon_reduction=30,
            difficulty=Difficulty.MEDIUM,
            estimated_cost="₹500-800 per ton",
            time_to_implement="1-2 months",
            icon="🏗️",
        ),
        SustainabilityStrategy(
            name="Carbon-to-Methanol Conversion",
            description=(
                f"Convert {utilization.synthetic_fuel_potential:.1f} kg CO₂ into methanol "
                "for industrial use and fuel applications."
            ),
            carbon_reduction=40,
            difficulty=Difficulty.HARD,
            estimated_cost="₹50-100 Lakhs",
            time_to_implement="6-12 months",
            icon="🧪",
        ),
        SustainabilityStrategy(
            name="Industrial Carbon Capture",
            description="Install point-source carbon capture technology to capture emissions before they reach atmosphere.",
            carbon_reduction=45,
            difficulty=Difficulty.HARD,
            estimated_cost="₹2-5 Crores",
            time_to_implement="4-8 months",
            icon="🌫️",
        ),
        SustainabilityStrategy(
            name="Process Optimization",
            description="Implement advanced automation and optimization in manufacturing processes to reduce energy intensity.",
            carbon_reduction=25,
            difficulty=Difficulty.MEDIUM,
            estimated_cost="₹30-50 Lakhs",
            time_to_implement="3-6 months",
            icon="⚙️",
        ),
    ]


PLAYBOOKS: Dict[ZoneType, Callable[[CarbonUtilization], List[SustainabilityStrategy]]] = {
    ZoneType.RESIDENTIAL: _residential_strategies,
    ZoneType.COMMERCIAL: _commercial_strategies,
    ZoneType.INDUSTRIAL: _industrial_strategies,
}


def get_zone_strategies(
    zone_type: ZoneType,
    utilization: CarbonUtilization,
    carbon_emission: float
) -> List[SustainabilityStrategy]:
    """
    Strategy playbook for a zone type.

    Residential, Commercial and Industrial each have four strategies. Mixed
    zones get a blend: the first two residential plus the first commercial.
    """
    playbook = PLAYBOOKS.get(zone_type)
    if playbook is not None:
        return playbook(utilization)
    return _residential_strategies(utilization)[:2] + _commercial_strategies(utilization)[:1]


def calculate_sustainability_improvement(
    current_score: float,
    strategies: Sequence[SustainabilityStrategy]
) -> ScoreImprovement:
    """
    Each 1% of carbon reduction is worth 0.15 score points, capped at 40
    points; the new score is capped at 100. Both rounded to 1 decimal.
    """
    total_reduction = sum(s.carbon_reduction for s in strategies)
    score_increase = min(total_reduction * SCORE_GAIN_PER_REDUCTION_PCT, MAX_SCORE_GAIN)
    new_score = min(current_score + score_increase, 100)
    return ScoreImprovement(
        score_increase=round(score_increase, 1),
        new_score=round(new_score, 1),
    )


def generate_recommendation_text(
    zone_name: str,
    carbon_emission: float,
    utilization: CarbonUtilization,
    strategies: Sequence[SustainabilityStrategy],
    improvement: ScoreImprovement
) -> str:
    """Markdown report for a zone's carbon recommendation."""
    level = analyze_carbon_level(carbon_emission)

    lines = [
        f"🌍 **{zone_name} - Carbon Intelligence Report**",
        "",
        f"**Current Status:** This zone emits {carbon_emission:.1f} kg CO₂ ({level.value} level)",
        "",
        "**Carbon Offset Equivalents:**",
        f"• 🌱 Plant {utilization.trees_needed} trees (absorb long-term carbon)",
        f"• ☀️ Install {utilization.solar_kw_required} kW solar (offset 30% emissions)",
        f"• ⚡ Switch {utilization.ev_shift_equivalent} vehicles to EV (reduce transport carbon)",
        "",
        "**Recommended Actions:**",
    ]
    for idx, strategy in enumerate(strategies[:3], start=1):
        lines.append(f"{idx}. {strategy.icon} {strategy.name}")
        lines.append(f"   → {strategy.carbon_reduction:g}% carbon reduction")

    lines.extend([
        "",
        "**Projected Impact:**",
        f"• Sustainability Score: {improvement.score_increase:.1f} point improvement",
        f"• New Score: {improvement.new_score:.1f}/100",
        "• Estimated Timeline: 2-6 months for full implementation",
        "",
        "💡 **Tip:** Start with easy wins (tree plantation, smart AC) then move to complex solutions.",
    ])
    return "\n".join(lines)


# ═══════════════════════════════════════════════════════════════════════════
# ENGINE
# ═══════════════════════════════════════════════════════════════════════════
class CarbonRecommendationEngine:
    """
    Builds CarbonRecommendations, memoizing by input tuple.

    Results are immutable, so the cache hands back the same object for the
    same inputs. The cache is guarded by a lock for concurrent callers.
    """

    MAX_CACHE_ENTRIES = 256

    def __init__(self):
        self._lock = threading.RLock()
        self._cache: Dict[Tuple, CarbonRecommendation] = {}

    def recommend(
        self,
        zone_id: str,
        zone_name: str,
        carbon_emission: float,
        energy_consumption: float,
        current_score: float,
        zone_type: Optional[ZoneType] = None
    ) -> CarbonRecommendation:
        """
        Full carbon recommendation for one zone.

        Args:
            zone_type: skip name-based inference when the caller knows better
        """
        key = (zone_id, zone_name, carbon_emission, energy_consumption, current_score, zone_type)
        with self._lock:
            cached = self._cache.get(key)
        if cached is not None:
            log.debug(f"Recommendation cache hit for {zone_id}")
            return cached

        recommendation = self._build(
            zone_id, zone_name, carbon_emission, energy_consumption, current_score, zone_type
        )

        with self._lock:
            if len(self._cache) >= self.MAX_CACHE_ENTRIES:
                self._cache.clear()
            self._cache[key] = recommendation
        return recommendation

    def _build(
        self,
        zone_id: str,
        zone_name: str,
        carbon_emission: float,
        energy_consumption: float,
        current_score: float,
        zone_type: Optional[ZoneType] = None
    ) -> CarbonRecommendation:
        level = analyze_carbon_level(carbon_emission)
        zone_type = zone_type or infer_zone_type(zone_name)
        utilization = calculate_carbon_utilization(carbon_emission, energy_consumption)
        strategies = get_zone_strategies(zone_type, utilization, carbon_emission)
        improvement = calculate_sustainability_improvement(current_score, strategies)

        return CarbonRecommendation(
            zone_id=zone_id,
            zone_name=zone_name,
            carbon_analysis=CarbonAnalysis(
                carbon_level=level,
                carbon_emission=carbon_emission,
                energy_consumption=energy_consumption,
                zone_type=zone_type,
            ),
            carbon_utilization=utilization,
            recommended_strategies=tuple(strategies),
            projected_improvements=ProjectedImprovements(
                carbon_reduction=sum(s.carbon_reduction for s in strategies),
                sustainability_score_increase=improvement.score_increase,
                new_sustainability_score=improvement.new_score,
            ),
            recommendation_text=generate_recommendation_text(
                zone_name, carbon_emission, utilization, strategies, improvement
            ),
        )

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()


def get_carbon_engine() -> CarbonRecommendationEngine:
    """Factory function for the carbon recommendation engine."""
    return CarbonRecommendationEngine()
