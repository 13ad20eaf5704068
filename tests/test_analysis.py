"""Tests for drivetrain analysis and usage-profile evaluation."""

import pytest

from drivetrain_engine.core.analysis import (
    USAGE_PROFILES,
    UsageProfile,
    analyze_drivetrain,
    cadence_consistency,
    compare_setups,
    count_unique_ratios,
    evaluate_for_usage,
    get_usage_profile,
    performance_metrics,
    target_speed_gears,
)
from drivetrain_engine.core.components import Cassette, Chain, Crankset, RearDerailleur
from drivetrain_engine.core.setup import DrivetrainSetup, WheelSetup
from drivetrain_engine.core.tire import TireCircumferenceResolver, TireMeasurement

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_BASE: dict = {
    "manufacturer": "Shimano",
    "model": "105 R7000",
    "year": 2018,
    "weight": 500.0,
    "bike_type": "road",
    "msrp": 100.0,
}


def _sample_resolver() -> TireCircumferenceResolver:
    measurement = TireMeasurement(
        tire_size="700x25c", rim_width=19, circumference=2110, source="BRR_2023"
    )
    return TireCircumferenceResolver({"700x25c": {19.0: measurement}})


def _sample_setup(chainrings=(34, 50), total_capacity=39) -> DrivetrainSetup:
    """Return the 105 road reference setup on 700x25c."""
    return DrivetrainSetup(
        bike_type="road",
        crankset=Crankset(
            **_BASE,
            id="crank",
            chainrings=chainrings,
            chain_line=43.5,
            crank_lengths=(172.5,),
            bcd_major=110,
            bottom_brackets=("BSA",),
        ),
        cassette=Cassette(
            **_BASE,
            id="cassette",
            speeds=11,
            cog_range=(11, 32),
            cogs=(11, 12, 13, 14, 16, 18, 20, 22, 25, 28, 32),
            freehub_type="shimano-11",
        ),
        rear_derailleur=RearDerailleur(
            **_BASE,
            id="rd",
            speeds=11,
            max_cog_size=34,
            total_capacity=total_capacity,
            cage_length="GS",
            cable_pull=3.4,
            brand="shimano",
        ),
        chain=Chain(**_BASE, id="chain", speeds=11, width=5.5, links=118, brand="shimano"),
        wheel_setup=WheelSetup(tire_size="700x25c", rim_width=19),
        crank_length=172.5,
    )


# ---------------------------------------------------------------------------
# analyze_drivetrain
# ---------------------------------------------------------------------------


def test_analysis_reference_setup() -> None:
    analysis = analyze_drivetrain(_sample_setup(), _sample_resolver())
    assert analysis.compatibility.compatible
    assert analysis.total_gears == 22
    assert len(analysis.gears) == 22
    assert analysis.gear_range == pytest.approx((50 / 11) / (34 / 32))
    assert analysis.largest_gap >= analysis.average_step > 0


def test_unique_ratios_at_hundredth_resolution() -> None:
    analysis = analyze_drivetrain(_sample_setup(), _sample_resolver())
    expected = len({round(g.ratio * 100) for g in analysis.gears})
    assert analysis.unique_ratios == expected
    assert analysis.unique_ratios <= analysis.total_gears


def test_recommended_gears_are_straight_chain() -> None:
    """Only the four cogs nearest the cassette centre exceed 97.5 %."""
    analysis = analyze_drivetrain(_sample_setup(), _sample_resolver())
    assert len(analysis.recommended_gears) == 8
    for index in analysis.recommended_gears:
        assert analysis.gears[index].efficiency > 0.975
    assert analysis.chain_line_analysis.straight_chain_gears == analysis.recommended_gears


def test_chain_line_classification_partitions_gears() -> None:
    classification = analyze_drivetrain(_sample_setup(), _sample_resolver()).chain_line_analysis
    indices = (
        classification.straight_chain_gears
        + classification.cross_chain_gears
        + classification.avoid_gears
    )
    assert sorted(indices) == list(range(22))
    assert classification.avoid_gears == ()


def test_analysis_reports_incompatibility() -> None:
    analysis = analyze_drivetrain(_sample_setup(total_capacity=33), _sample_resolver())
    assert not analysis.compatibility.compatible
    assert analysis.total_gears == 22


def test_analysis_of_empty_crankset() -> None:
    analysis = analyze_drivetrain(_sample_setup(chainrings=()), _sample_resolver())
    assert analysis.total_gears == 0
    assert analysis.gear_range == 0.0
    assert analysis.recommended_gears == ()


# ---------------------------------------------------------------------------
# Metrics and comparison
# ---------------------------------------------------------------------------


def test_performance_metrics() -> None:
    gears = list(analyze_drivetrain(_sample_setup(), _sample_resolver()).gears)
    metrics = performance_metrics(gears)
    assert metrics["optimal_gears"] == 8
    assert metrics["problematic_gears"] == 0
    assert sum(b["count"] for b in metrics["efficiency_distribution"].values()) == 22
    assert metrics["unique_ratios"] == count_unique_ratios(gears)
    assert 0 <= metrics["chain_line_score"] <= 100
    low, high = metrics["speed_range"]
    assert low < high


def test_performance_metrics_usable_ratio() -> None:
    """Every gear of the reference setup is above 95 %, so both ranges agree."""
    gears = list(analyze_drivetrain(_sample_setup(), _sample_resolver()).gears)
    metrics = performance_metrics(gears)
    assert metrics["usable_ratio"] == pytest.approx((50 / 11) / (34 / 32))
    assert 0.0 <= metrics["cadence_consistency"] <= 100.0
    assert [row["speed"] for row in metrics["target_speeds"]] == [15.0, 20.0, 25.0, 30.0]


def test_target_speed_gears_reference_setup() -> None:
    """34x16 gives 15.0 mph and 50x12 gives 29.5 mph at 90 rpm."""
    gears = list(analyze_drivetrain(_sample_setup(), _sample_resolver()).gears)
    rows = target_speed_gears(gears, (15.0, 30.0))
    assert [(r["gear"].chainring, r["gear"].cog) for r in rows] == [(34, 16), (50, 12)]
    assert rows[0]["efficiency"] == rows[0]["gear"].efficiency


def test_cadence_consistency_single_gear() -> None:
    gears = list(analyze_drivetrain(_sample_setup(), _sample_resolver()).gears)
    assert cadence_consistency(gears[:1]) == 100.0


def test_performance_metrics_empty_raises() -> None:
    with pytest.raises(ValueError):
        performance_metrics([])


def test_compare_setups_ranks_by_score() -> None:
    ranked = compare_setups(
        {"double": _sample_setup(), "single": _sample_setup(chainrings=(42,))},
        _sample_resolver(),
    )
    assert len(ranked) == 2
    assert ranked[0]["score"] >= ranked[-1]["score"]
    assert {row["name"] for row in ranked} == {"double", "single"}


# ---------------------------------------------------------------------------
# Usage profiles
# ---------------------------------------------------------------------------


def test_six_usage_profiles() -> None:
    names = [p.name for p in USAGE_PROFILES]
    assert names == [
        "Commuting",
        "Recreational Road",
        "Racing/Training",
        "Climbing/Touring",
        "Mountain Biking",
        "Gravel/Adventure",
    ]


def test_get_usage_profile_case_insensitive() -> None:
    assert get_usage_profile("commuting").priority == "efficiency"
    with pytest.raises(KeyError):
        get_usage_profile("unicycle")


def test_profile_rejects_unknown_priority() -> None:
    with pytest.raises(ValueError):
        UsageProfile("x", (10, 20), (80, 90), "flat", "comfort", "")


def test_usable_gears_within_speed_range() -> None:
    gears = list(analyze_drivetrain(_sample_setup(), _sample_resolver()).gears)
    profile = get_usage_profile("Commuting")
    result = evaluate_for_usage(gears, profile)
    assert 0 <= result.score <= 100
    for gear in result.usable_gears:
        assert 12 <= gear.speed_at_cadence.rpm90 <= 20
        assert gear.efficiency > 0.95


def test_climbing_profile_strength() -> None:
    """34x32 down to 34x22 and 50x32 all sit under 12 mph at 90 rpm."""
    gears = list(analyze_drivetrain(_sample_setup(), _sample_resolver()).gears)
    result = evaluate_for_usage(gears, get_usage_profile("Climbing/Touring"))
    assert result.strengths == ("Good climbing gear selection",)
    assert result.weaknesses == ()


def test_racing_profile_limited_top_end() -> None:
    """Only 50x11 exceeds 30 mph at 90 rpm on a 2110 mm wheel."""
    gears = list(analyze_drivetrain(_sample_setup(), _sample_resolver()).gears)
    result = evaluate_for_usage(gears, get_usage_profile("Racing/Training"))
    assert result.weaknesses == ("Limited top-end speed",)
    assert result.recommendations == ("Consider larger chainring or smaller cassette",)


def test_empty_gear_table_scores_zero() -> None:
    result = evaluate_for_usage([], get_usage_profile("Commuting"))
    assert result.score == 0
    assert result.usable_gears == ()
