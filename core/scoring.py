"""
Sustainability Scoring Module

Combines air quality, energy, carbon and temperature signals into a single
0-100 score with:
- Fixed per-factor normalization to a 0-100 sub-score
- Fixed factor weights
- Status tiers and a noise-suppressed trend against the previous score
"""

import math
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from core.models import ScoreFactors

log = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# WEIGHTS AND NORMALIZATION
# ═══════════════════════════════════════════════════════════════════════════
FACTOR_WEIGHTS = {
    "aqi": 0.2,
    "energy": 0.3,
    "carbon": 0.3,
    "temperature": 0.2,
}

AQI_DIVISOR = 3.0  # AQI scale 0-300 maps onto 0-100
ENERGY_FULL_SCALE_KWH = 1000.0
CARBON_FULL_SCALE_KG = 500.0
TEMPERATURE_SEVERITY_MULTIPLIER = 10.0

NEUTRAL_TEMPERATURE_C = 25.0

TREND_DEAD_ZONE = 2


class ScoreLabel(Enum):
    """Status tiers for a sustainability score."""
    EXCELLENT = "Excellent"
    GOOD = "Good"
    MODERATE = "Moderate"
    POOR = "Poor"
    CRITICAL = "Critical"


@dataclass(frozen=True)
class ScoreStatus:
    """Status tier plus the presentation tag the dashboard renders."""
    label: ScoreLabel
    color: str
    description: str

    def to_dict(self) -> Dict[str, str]:
        return {
            'label': self.label.value,
            'color': self.color,
            'description': self.description,
        }


@dataclass(frozen=True)
class ScoreTrend:
    """Direction (-1, 0, 1) and absolute change against the previous score."""
    direction: int
    change: float


@dataclass(frozen=True)
class ScoreResult:
    """One full evaluation: score, its tier and (optionally) its trend."""
    score: int
    status: ScoreStatus
    trend: Optional[ScoreTrend] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'status': self.status.to_dict(),
            'trend': (
                {'direction': self.trend.direction, 'change': self.trend.change}
                if self.trend else None
            ),
        }


# Lower bound (inclusive) -> status. Checked top-down; the last tier catches
# everything below 20 so [0, 100] is covered without gaps.
STATUS_TIERS: Tuple[Tuple[float, ScoreStatus], ...] = (
    (80, ScoreStatus(ScoreLabel.EXCELLENT, "emerald", "Outstanding sustainability metrics")),
    (60, ScoreStatus(ScoreLabel.GOOD, "green", "Healthy environmental conditions")),
    (40, ScoreStatus(ScoreLabel.MODERATE, "yellow", "Some environmental concerns")),
    (20, ScoreStatus(ScoreLabel.POOR, "orange", "Significant sustainability issues")),
)
CRITICAL_STATUS = ScoreStatus(ScoreLabel.CRITICAL, "red", "Urgent environmental action needed")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def temperature_severity(temperature: float, baseline: float = NEUTRAL_TEMPERATURE_C) -> float:
    """Absolute deviation of a temperature from the neutral baseline."""
    return abs(temperature - baseline)


def normalize_factors(factors: ScoreFactors) -> Dict[str, float]:
    """Map each raw factor onto a 0-100 sub-score."""
    return {
        "aqi": min(factors.aqi / AQI_DIVISOR, 100.0),
        "energy": min((factors.energy_consumption / ENERGY_FULL_SCALE_KWH) * 100, 100.0),
        "carbon": min((factors.carbon_emission / CARBON_FULL_SCALE_KG) * 100, 100.0),
        "temperature": min(abs(factors.temperature_severity) * TEMPERATURE_SEVERITY_MULTIPLIER, 100.0),
    }


def calculate_score(factors: ScoreFactors) -> int:
    """
    Calculate the sustainability score.

    score = 100 - (aqi*0.2 + energy*0.3 + carbon*0.3 + temp*0.2)
    over normalized sub-scores, rounded and clamped to [0, 100].
    """
    normalized = normalize_factors(factors)
    penalty = sum(normalized[name] * weight for name, weight in FACTOR_WEIGHTS.items())
    return max(0, min(100, _round_half_up(100 - penalty)))


def get_score_status(score: float) -> ScoreStatus:
    """Get the status tier for a score."""
    for lower_bound, status in STATUS_TIERS:
        if score >= lower_bound:
            return status
    return CRITICAL_STATUS


def calculate_score_trend(current: float, previous: Optional[float]) -> Optional[ScoreTrend]:
    """
    Trend of the score against the previous evaluation.

    Changes within ±2 points report direction 0. Returns None when there is
    no prior score (previous missing or <= 0).
    """
    if previous is None or previous <= 0:
        return None
    change = current - previous
    if change > TREND_DEAD_ZONE:
        direction = 1
    elif change < -TREND_DEAD_ZONE:
        direction = -1
    else:
        direction = 0
    return ScoreTrend(direction=direction, change=abs(change))


# ═══════════════════════════════════════════════════════════════════════════
# SCORER
# ═══════════════════════════════════════════════════════════════════════════
class SustainabilityScorer:
    """
    Stateless scorer wrapping the module functions.

    The scoring formula is:

    score = round(100 - Σ(weight × normalized_factor))

    Weights and normalization scales are fixed constants.
    """

    def score(
        self,
        factors: ScoreFactors,
        detailed: bool = False
    ) -> Union[int, Dict[str, Any]]:
        """
        Score a set of factors.

        Returns:
            {"score": int, "breakdown": {...}} if detailed
            Just the score (int) otherwise
        """
        final_score = calculate_score(factors)
        if not detailed:
            return final_score

        normalized = normalize_factors(factors)
        breakdown = {
            "normalized": normalized,
            "penalties": {
                name: normalized[name] * weight
                for name, weight in FACTOR_WEIGHTS.items()
            },
            "final_score": final_score,
        }
        return {"score": final_score, "breakdown": breakdown}

    def evaluate(
        self,
        factors: ScoreFactors,
        previous_score: Optional[float] = None
    ) -> ScoreResult:
        """Score, classify and trend in one pass."""
        value = calculate_score(factors)
        log.debug(f"Sustainability score {value} (previous {previous_score})")
        return ScoreResult(
            score=value,
            status=get_score_status(value),
            trend=calculate_score_trend(value, previous_score),
        )

    def explain_score(self, factors: ScoreFactors) -> str:
        """Generate human-readable explanation of score."""
        result = self.score(factors, detailed=True)
        breakdown = result["breakdown"]
        status = get_score_status(result["score"])

        lines = [f"Score: {result['score']}/100 ({status.label.value})"]
        lines.append(status.description)
        lines.append("")
        lines.append("Penalty contributions:")
        for name, penalty in breakdown["penalties"].items():
            lines.append(f"  {name}: -{penalty:.1f}")

        return "\n".join(lines)


def get_scorer() -> SustainabilityScorer:
    """Factory function for the sustainability scorer."""
    return SustainabilityScorer()
