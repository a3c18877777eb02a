"""
Carbon Simulation Module - What-if scenarios for strategy selections.

Given a zone's base carbon and score and a chosen subset of recommended
strategies, projects post-intervention metrics, rollout phases, cost and ROI.
"""

import re
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence, Tuple

from core.carbon import (
    Difficulty,
    SustainabilityStrategy,
    MAX_SCORE_GAIN,
    SCORE_GAIN_PER_REDUCTION_PCT,
)

log = logging.getLogger("core.simulation")

MAX_REDUCTION_PCT = 95.0
MIN_SIMULATED_CARBON = 5.0

# Free-text timeline prefix -> months. First key the text starts with wins.
TIMELINE_MONTHS: Tuple[Tuple[str, float], ...] = (
    ("1 week", 0.25),
    ("2 weeks", 0.5),
    ("1-2 weeks", 0.5),
    ("1-2 months", 1.5),
    ("2-3 months", 2.5),
    ("2-4 weeks", 0.75),
    ("3-6 months", 4.5),
    ("4-8 months", 6),
    ("6-12 months", 9),
)
DEFAULT_TIMELINE_MONTHS = 3.0
MIN_TIMELINE_MONTHS = 2.0

CURRENCY_MULTIPLIERS: Tuple[Tuple[str, float], ...] = (
    ("Crore", 10_000_000),
    ("Lakh", 100_000),
)
THOUSANDS_SUFFIX = re.compile(r"\d\s*[kK]\b")
FIRST_AMOUNT = re.compile(r"\d[\d,]*(?:\.\d+)?")
PER_UNIT = re.compile(r"\bper\b")

# No quantity is known for "per kW"/"per tree" style costs, so they are
# counted at a flat estimate. Strings with no amount at all get the same.
PLACEHOLDER_COST = 500_000.0

CARBON_PRICE_PER_TON = 1000.0  # currency units per ton CO2
ROI_HORIZON_YEARS = 10
MIN_PAYBACK_YEARS = 0.5

DIFFICULTY_ORDER = {
    Difficulty.EASY: 0,
    Difficulty.MEDIUM: 1,
    Difficulty.HARD: 2,
}


@dataclass(frozen=True)
class SimulationScenario:
    """Result of applying a set of strategies to a zone."""
    base_carbon: float
    base_sustainability_score: float
    selected_strategies: Tuple[str, ...]
    simulated_carbon: float
    simulated_sustainability_score: float
    total_carbon_reduction: float  # kg CO2
    total_carbon_reduction_percent: float
    timeline_months: float
    estimated_cost: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'base_carbon': self.base_carbon,
            'base_sustainability_score': self.base_sustainability_score,
            'selected_strategies': list(self.selected_strategies),
            'simulated_carbon': self.simulated_carbon,
            'simulated_sustainability_score': self.simulated_sustainability_score,
            'total_carbon_reduction': self.total_carbon_reduction,
            'total_carbon_reduction_percent': self.total_carbon_reduction_percent,
            'timeline_months': self.timeline_months,
            'estimated_cost': self.estimated_cost,
        }


@dataclass(frozen=True)
class ComparisonRow:
    """Before/after row for the comparison chart."""
    metric: str
    before: float
    after: float
    reduction: float


@dataclass(frozen=True)
class ImplementationPhase:
    """A rollout phase of up to two strategies."""
    phase: int
    month: str
    strategies: Tuple[str, ...]
    description: str


@dataclass(frozen=True)
class ROIAnalysis:
    """Return on investment for one strategy."""
    strategy_name: str
    investment: float
    annual_carbon_savings: float
    payback_period_years: float
    roi_10_year_percent: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'strategy_name': self.strategy_name,
            'investment': self.investment,
            'annual_carbon_savings': self.annual_carbon_savings,
            'payback_period_years': self.payback_period_years,
            'roi_10_year_percent': self.roi_10_year_percent,
        }


def _round1(value: float) -> float:
    return round(value, 1)


def parse_cost(cost: str) -> float:
    """
    Parse a free-text cost into absolute currency units.

    Takes the first (lower) amount of a range and applies the
    Crore / Lakh / K multiplier. Per-unit strings return the per-unit
    amount. Empty text is 0; text without any amount falls back to
    PLACEHOLDER_COST.
    """
    if not cost:
        return 0.0

    match = FIRST_AMOUNT.search(cost)
    if match is None:
        log.debug(f"No amount in cost string {cost!r}, using placeholder")
        return PLACEHOLDER_COST

    amount = float(match.group().replace(",", ""))
    for suffix, multiplier in CURRENCY_MULTIPLIERS:
        if suffix in cost:
            return amount * multiplier
    if THOUSANDS_SUFFIX.search(cost):
        return amount * 1000
    return amount


def is_per_unit_cost(cost: str) -> bool:
    return bool(PER_UNIT.search(cost))


def estimate_timeline(strategies: Sequence[SustainabilityStrategy]) -> float:
    """Longest strategy timeline in months, never below 2."""
    timelines = []
    for strategy in strategies:
        months = DEFAULT_TIMELINE_MONTHS
        for prefix, value in TIMELINE_MONTHS:
            if strategy.time_to_implement.startswith(prefix):
                months = value
                break
        timelines.append(months)

    return max(timelines + [MIN_TIMELINE_MONTHS])


def estimate_total_cost(strategies: Sequence[SustainabilityStrategy]) -> float:
    """Sum of strategy costs; per-unit costs count at PLACEHOLDER_COST."""
    total = 0.0
    for strategy in strategies:
        if is_per_unit_cost(strategy.estimated_cost):
            total += PLACEHOLDER_COST
        else:
            total += parse_cost(strategy.estimated_cost)
    return total


def simulate_scenario(
    base_carbon: float,
    base_score: float,
    selected_strategies: Sequence[SustainabilityStrategy]
) -> SimulationScenario:
    """
    Simulate the effect of the selected strategies.

    Reductions add up but are capped at 95%, and simulated carbon never
    drops below 5 kg. Score gain is 0.15 per reduction percent, capped at
    40 points, with the new score capped at 100.
    """
    reduction_pct = min(sum(s.carbon_reduction for s in selected_strategies), MAX_REDUCTION_PCT)

    simulated_carbon = max(base_carbon * (1 - reduction_pct / 100), MIN_SIMULATED_CARBON)

    score_increase = min(reduction_pct * SCORE_GAIN_PER_REDUCTION_PCT, MAX_SCORE_GAIN)
    simulated_score = min(base_score + score_increase, 100)

    return SimulationScenario(
        base_carbon=_round1(base_carbon),
        base_sustainability_score=_round1(base_score),
        selected_strategies=tuple(s.name for s in selected_strategies),
        simulated_carbon=_round1(simulated_carbon),
        simulated_sustainability_score=_round1(simulated_score),
        total_carbon_reduction=_round1(base_carbon - simulated_carbon),
        total_carbon_reduction_percent=reduction_pct,
        timeline_months=estimate_timeline(selected_strategies),
        estimated_cost=estimate_total_cost(selected_strategies),
    )


def comparison_chart_data(scenario: SimulationScenario) -> List[ComparisonRow]:
    """Before/after rows: carbon emissions, then sustainability score."""
    return [
        ComparisonRow(
            metric="Carbon Emissions",
            before=scenario.base_carbon,
            after=scenario.simulated_carbon,
            reduction=scenario.total_carbon_reduction,
        ),
        ComparisonRow(
            metric="Sustainability Score",
            before=scenario.base_sustainability_score,
            after=scenario.simulated_sustainability_score,
            reduction=_round1(scenario.simulated_sustainability_score - scenario.base_sustainability_score),
        ),
    ]


def implementation_phases(strategies: Sequence[SustainabilityStrategy]) -> List[ImplementationPhase]:
    """
    Order strategies Easy -> Medium -> Hard and group them two per phase.
    """
    ordered = sorted(strategies, key=lambda s: DIFFICULTY_ORDER[s.difficulty])

    buckets: List[List[str]] = []
    for idx, strategy in enumerate(ordered):
        if idx % 2 == 0:
            buckets.append([])
        buckets[-1].append(strategy.name)

    phases = []
    for number, names in enumerate(buckets, start=1):
        if number == 1:
            description = "Begin with easy-to-implement solutions"
        elif number == 2:
            description = "Execute medium-complexity projects"
        else:
            description = "Roll out advanced/complex solutions"
        phases.append(ImplementationPhase(
            phase=number,
            month=f"Month {number}-{number + 1}",
            strategies=tuple(names),
            description=description,
        ))
    return phases


def calculate_roi(
    strategies: Sequence[SustainabilityStrategy],
    base_carbon: float
) -> List[ROIAnalysis]:
    """
    Per-strategy investment, savings, payback and 10-year ROI.

    Annual savings are base_carbon * reduction% / 12. The /12 treats the
    base figure as if it were a yearly total being turned into a monthly
    one; it is kept for output compatibility but is likely a unit error
    until the period of base_carbon is pinned down.
    """
    results = []
    for strategy in strategies:
        investment = parse_cost(strategy.estimated_cost)
        annual_savings = base_carbon * strategy.carbon_reduction / 100 / 12
        annual_benefit = annual_savings * CARBON_PRICE_PER_TON

        payback = investment / (annual_benefit or 1)
        if investment > 0:
            roi = (annual_benefit * ROI_HORIZON_YEARS - investment) / investment * 100
        else:
            roi = 0.0

        results.append(ROIAnalysis(
            strategy_name=strategy.name,
            investment=investment,
            annual_carbon_savings=annual_savings,
            payback_period_years=max(payback, MIN_PAYBACK_YEARS),
            roi_10_year_percent=max(roi, 0.0),
        ))
    return results


class ScenarioSimulator:
    """Runs what-if simulations for one zone and keeps the history."""

    def __init__(self, base_carbon: float, base_score: float):
        self.base_carbon = base_carbon
        self.base_score = base_score
        self.results: List[SimulationScenario] = []

    def simulate(self, strategies: Sequence[SustainabilityStrategy]) -> SimulationScenario:
        scenario = simulate_scenario(self.base_carbon, self.base_score, strategies)
        self.results.append(scenario)
        return scenario

    def generate_scenario_matrix(
        self,
        strategies: Sequence[SustainabilityStrategy]
    ) -> List[SimulationScenario]:
        """
        One scenario per strategy on its own, then the cumulative set in
        rollout order (easiest first).
        """
        scenarios = [self.simulate([s]) for s in strategies]

        ordered = sorted(strategies, key=lambda s: DIFFICULTY_ORDER[s.difficulty])
        for count in range(2, len(ordered) + 1):
            scenarios.append(self.simulate(ordered[:count]))

        log.debug(f"Generated {len(scenarios)} scenarios from {len(strategies)} strategies")
        return scenarios


def get_simulator(base_carbon: float, base_score: float) -> ScenarioSimulator:
    """Factory function for the scenario simulator."""
    return ScenarioSimulator(base_carbon, base_score)
