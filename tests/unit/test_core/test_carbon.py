import pytest
from core.carbon import (
    CarbonLevel,
    ZoneType,
    analyze_carbon_level,
    calculate_carbon_utilization,
    calculate_sustainability_improvement,
    generate_recommendation_text,
    get_carbon_engine,
    get_carbon_level_color,
    get_zone_strategies,
    infer_zone_type,
    CarbonRecommendationEngine,
)


@pytest.mark.parametrize("carbon,level", [
    (0, CarbonLevel.LOW),
    (45, CarbonLevel.LOW),
    (49.9, CarbonLevel.LOW),
    (50, CarbonLevel.MODERATE),
    (119, CarbonLevel.MODERATE),
    (120, CarbonLevel.HIGH),
    (150, CarbonLevel.HIGH),
    (200, CarbonLevel.CRITICAL),
    (250, CarbonLevel.CRITICAL),
])
def test_carbon_levels(carbon, level):
    assert analyze_carbon_level(carbon) == level


def test_carbon_level_colors():
    assert get_carbon_level_color(CarbonLevel.LOW) == "#10b981"
    assert get_carbon_level_color(CarbonLevel.CRITICAL) == "#b91c1c"


def test_utilization_equivalents():
    util = calculate_carbon_utilization(210, 1000)
    assert util.trees_needed == 10
    assert util.solar_kw_required == 1
    assert util.ev_shift_equivalent == 2
    assert util.concrete_injection_offset == 63.0
    assert util.synthetic_fuel_potential == 84.0


def test_utilization_scales_with_carbon():
    for carbon in (37, 100, 555, 1025):
        single = calculate_carbon_utilization(carbon, 0).trees_needed
        double = calculate_carbon_utilization(2 * carbon, 0).trees_needed
        assert abs(double - 2 * single) <= 1


def test_zero_carbon_needs_nothing():
    util = calculate_carbon_utilization(0, 0)
    assert util.trees_needed == 0
    assert util.solar_kw_required == 0


def test_infer_zone_type():
    assert infer_zone_type("Ambattur Industrial Estate") == ZoneType.INDUSTRIAL
    assert infer_zone_type("T. Nagar commercial hub") == ZoneType.COMMERCIAL
    assert infer_zone_type("Porur Suburban Residential") == ZoneType.RESIDENTIAL
    assert infer_zone_type("Velachery") == ZoneType.MIXED


def test_infer_zone_type_prefers_industrial():
    assert infer_zone_type("Industrial Market") == ZoneType.INDUSTRIAL


def test_playbook_sizes():
    util = calculate_carbon_utilization(300, 800)
    for zone_type in (ZoneType.RESIDENTIAL, ZoneType.COMMERCIAL, ZoneType.INDUSTRIAL):
        assert len(get_zone_strategies(zone_type, util, 300)) == 4


def test_mixed_zone_blends_playbooks():
    util = calculate_carbon_utilization(300, 800)
    names = [s.name for s in get_zone_strategies(ZoneType.MIXED, util, 300)]
    assert names == [
        "Rooftop Solar Installation",
        "Community Tree Plantation",
        "Energy Efficiency Retrofit",
    ]


def test_strategy_descriptions_use_utilization():
    util = calculate_carbon_utilization(210, 1000)
    residential = get_zone_strategies(ZoneType.RESIDENTIAL, util, 210)
    assert "Plant 10 trees" in residential[1].description
    industrial = get_zone_strategies(ZoneType.INDUSTRIAL, util, 210)
    assert "63.0 kg" in industrial[0].description


def test_sustainability_improvement():
    util = calculate_carbon_utilization(300, 800)
    residential = get_zone_strategies(ZoneType.RESIDENTIAL, util, 300)  # 90% total
    improvement = calculate_sustainability_improvement(60, residential)
    assert improvement.score_increase == 13.5
    assert improvement.new_score == 73.5


def test_sustainability_improvement_caps():
    util = calculate_carbon_utilization(300, 800)
    industrial = get_zone_strategies(ZoneType.INDUSTRIAL, util, 300)  # 140% total
    doubled = industrial + industrial
    assert calculate_sustainability_improvement(10, doubled).score_increase == 40.0
    assert calculate_sustainability_improvement(95, industrial).new_score == 100


def test_recommendation_text():
    util = calculate_carbon_utilization(250, 900)
    strategies = get_zone_strategies(ZoneType.INDUSTRIAL, util, 250)
    improvement = calculate_sustainability_improvement(40, strategies)
    text = generate_recommendation_text("Ambattur", 250, util, strategies, improvement)

    assert "Ambattur - Carbon Intelligence Report" in text
    assert "250.0 kg CO₂ (Critical level)" in text
    assert "1. 🏗️ CO₂ Concrete Injection" in text
    assert "Process Optimization" not in text  # only the top three are listed


def test_engine_recommend():
    engine = CarbonRecommendationEngine()
    rec = engine.recommend("zone-12", "Ambattur Industrial Estate", 754.4, 920, 35)

    assert rec.carbon_analysis.carbon_level == CarbonLevel.CRITICAL
    assert rec.carbon_analysis.zone_type == ZoneType.INDUSTRIAL
    assert len(rec.recommended_strategies) == 4
    assert rec.projected_improvements.carbon_reduction == 140
    assert rec.projected_improvements.new_sustainability_score == 56.0
    assert rec.to_dict()["zone_type"] == "Industrial"


def test_engine_zone_type_override():
    engine = CarbonRecommendationEngine()
    rec = engine.recommend("zone-3", "Velachery", 590.4, 720, 40, zone_type=ZoneType.COMMERCIAL)
    assert rec.carbon_analysis.zone_type == ZoneType.COMMERCIAL
    assert rec.recommended_strategies[0].name == "Energy Efficiency Retrofit"


def test_engine_cache():
    engine = get_carbon_engine()
    first = engine.recommend("z", "Residential Colony", 120, 500, 50)
    second = engine.recommend("z", "Residential Colony", 120, 500, 50)
    other = engine.recommend("z", "Residential Colony", 121, 500, 50)

    assert first is second
    assert other is not first

    engine.clear_cache()
    assert engine.recommend("z", "Residential Colony", 120, 500, 50) is not first
