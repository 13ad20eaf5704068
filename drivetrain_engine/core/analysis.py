"""Drivetrain analysis and usage-profile evaluation.

``analyze_drivetrain`` bundles the gear table, the compatibility verdict
and the headline figures of a setup into one :class:`DrivetrainAnalysis`.
``evaluate_for_usage`` scores a gear table against a riding profile by
looking at the speed each gear gives at 90 rpm.

Efficiency bands used for classification:

    straight   efficiency > 0.975
    cross      0.95 <= efficiency <= 0.975
    avoid      efficiency < 0.95
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np

from drivetrain_engine.core.compatibility import (
    CompatibilityCheck,
    check_drivetrain_compatibility,
)
from drivetrain_engine.core.gear_table import find_gear_duplicates
from drivetrain_engine.core.gears import GearCalculation, calculate_all_gears
from drivetrain_engine.core.setup import DrivetrainSetup
from drivetrain_engine.core.tire import TireCircumferenceResolver

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

STRAIGHT_EFFICIENCY: float = 0.975
USABLE_EFFICIENCY: float = 0.95
USAGE_EFFICIENCY_WEIGHT: float = 2000.0
CLIMBING_SPEED_MPH: float = 12.0
TOP_SPEED_MPH: float = 30.0
TARGET_SPEEDS_MPH: tuple[float, ...] = (15.0, 20.0, 25.0, 30.0)
CONSISTENCY_CADENCES: tuple[int, ...] = (80, 90, 100)

PRIORITIES: tuple[str, ...] = ("efficiency", "range", "top_speed", "climbing")
TERRAINS: tuple[str, ...] = ("flat", "rolling", "hilly", "mountainous")


# ---------------------------------------------------------------------------
# Drivetrain analysis
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainLineClassification:
    """Indices into the gear table, grouped by efficiency band."""

    straight_chain_gears: tuple[int, ...]
    cross_chain_gears: tuple[int, ...]
    avoid_gears: tuple[int, ...]


@dataclass(frozen=True)
class DrivetrainAnalysis:
    """Headline figures for a setup.

    Attributes:
        setup: The analysed setup.
        compatibility: Rule-engine verdict.
        gears: Full gear table, chainring-major.
        total_gears: Number of chainring/cog combinations.
        unique_ratios: Distinct ratios at 0.01 resolution.
        gear_range: Highest ratio / lowest ratio (0 when there are no gears).
        average_step: Mean percentage step between ratio-adjacent gears.
        largest_gap: Largest percentage step.
        recommended_gears: Indices of gears above 97.5 % efficiency.
        chain_line_analysis: Indices grouped by efficiency band.
    """

    setup: DrivetrainSetup
    compatibility: CompatibilityCheck
    gears: tuple[GearCalculation, ...]
    total_gears: int
    unique_ratios: int
    gear_range: float
    average_step: float
    largest_gap: float
    recommended_gears: tuple[int, ...]
    chain_line_analysis: ChainLineClassification


def _ratio_steps(gears: list[GearCalculation]) -> np.ndarray:
    """Unrounded percentage steps between ratio-adjacent gears."""
    ratios = np.sort(np.array([g.ratio for g in gears], dtype=float))
    if ratios.size < 2:
        return np.array([], dtype=float)
    return np.diff(ratios) / ratios[:-1] * 100.0


def count_unique_ratios(gears: list[GearCalculation]) -> int:
    """Number of distinct ratios at 0.01 resolution."""
    return len({round(g.ratio * 100) for g in gears})


def classify_chain_line(gears: list[GearCalculation]) -> ChainLineClassification:
    straight = [i for i, g in enumerate(gears) if g.efficiency > STRAIGHT_EFFICIENCY]
    cross = [
        i
        for i, g in enumerate(gears)
        if USABLE_EFFICIENCY <= g.efficiency <= STRAIGHT_EFFICIENCY
    ]
    avoid = [i for i, g in enumerate(gears) if g.efficiency < USABLE_EFFICIENCY]
    return ChainLineClassification(tuple(straight), tuple(cross), tuple(avoid))


def analyze_drivetrain(
    setup: DrivetrainSetup,
    resolver: TireCircumferenceResolver | None = None,
) -> DrivetrainAnalysis:
    """Compute the gear table, compatibility and summary figures.

    Args:
        setup: Setup with ``wheel_setup`` and ``crank_length`` set.
        resolver: Tire circumference resolver; the packaged table is used
            when omitted.

    Returns:
        A :class:`DrivetrainAnalysis`.

    Raises:
        InvalidComponentData: If the setup cannot be calculated.
    """
    gears = calculate_all_gears(setup, resolver)
    compatibility = check_drivetrain_compatibility(setup)

    ratios = [g.ratio for g in gears]
    gear_range = max(ratios) / min(ratios) if ratios else 0.0
    steps = _ratio_steps(gears)
    classification = classify_chain_line(gears)

    return DrivetrainAnalysis(
        setup=setup,
        compatibility=compatibility,
        gears=tuple(gears),
        total_gears=len(gears),
        unique_ratios=count_unique_ratios(gears),
        gear_range=gear_range,
        average_step=float(steps.mean()) if steps.size else 0.0,
        largest_gap=float(steps.max()) if steps.size else 0.0,
        recommended_gears=classification.straight_chain_gears,
        chain_line_analysis=classification,
    )


def cadence_consistency(gears: list[GearCalculation]) -> float:
    """Score (0-100) how evenly speeds step between ratio-adjacent gears.

    At 80, 90 and 100 rpm the mean absolute deviation of the speed steps is
    taken; the score is 100 minus their average, floored at 0.
    """
    if len(gears) < 2:
        return 100.0
    ordered = sorted(gears, key=lambda g: g.ratio)
    variation = 0.0
    for cadence in CONSISTENCY_CADENCES:
        speeds = np.array([g.speed_at_cadence.at(cadence) for g in ordered])
        steps = np.diff(speeds)
        variation += float(np.mean(np.abs(steps - steps.mean())))
    return max(0.0, 100.0 - variation / len(CONSISTENCY_CADENCES))


def target_speed_gears(
    gears: list[GearCalculation],
    targets: tuple[float, ...] = TARGET_SPEEDS_MPH,
) -> list[dict[str, Any]]:
    """Closest efficient gear (above 95 %) to each target speed at 90 rpm.

    Falls back to the first gear of the table when none is efficient.
    """
    rows: list[dict[str, Any]] = []
    for target in targets:
        best = gears[0]
        smallest = float("inf")
        for gear in gears:
            diff = abs(gear.speed_at_cadence.rpm90 - target)
            if diff < smallest and gear.efficiency > USABLE_EFFICIENCY:
                smallest = diff
                best = gear
        rows.append({"speed": target, "gear": best, "efficiency": best.efficiency})
    return rows


def performance_metrics(gears: list[GearCalculation]) -> dict[str, Any]:
    """Efficiency, step and speed statistics of a gear table.

    Returns:
        A dictionary with keys ``average_efficiency``, ``optimal_gears``,
        ``problematic_gears``, ``efficiency_distribution``,
        ``usable_ratio``, ``average_step``, ``largest_gap``,
        ``smallest_gap``, ``cadence_consistency``, ``speed_range``,
        ``practical_range``, ``target_speeds``, ``chain_line_score``,
        ``unique_ratios``, ``redundancy`` and ``duplicate_groups``.
        ``usable_ratio`` is the range of the gears above 95 % efficiency,
        0 when there are none.

    Raises:
        ValueError: If *gears* is empty.
    """
    if not gears:
        raise ValueError("Cannot compute metrics for an empty gear table.")

    efficiencies = np.array([g.efficiency for g in gears], dtype=float)
    speeds = np.array([g.speed_at_cadence.rpm90 for g in gears], dtype=float)
    practical = speeds[efficiencies > USABLE_EFFICIENCY]
    usable_ratios = np.array(
        [g.ratio for g in gears if g.efficiency > USABLE_EFFICIENCY], dtype=float
    )
    steps = _ratio_steps(gears)
    total = len(gears)

    bands = {
        "98%+": int(np.sum(efficiencies >= 0.98)),
        "97-98%": int(np.sum((efficiencies >= 0.97) & (efficiencies < 0.98))),
        "95-97%": int(np.sum((efficiencies >= 0.95) & (efficiencies < 0.97))),
        "<95%": int(np.sum(efficiencies < 0.95)),
    }
    average_efficiency = float(efficiencies.mean())
    unique = count_unique_ratios(gears)

    return {
        "average_efficiency": average_efficiency,
        "optimal_gears": int(np.sum(efficiencies > STRAIGHT_EFFICIENCY)),
        "problematic_gears": int(np.sum(efficiencies < USABLE_EFFICIENCY)),
        "efficiency_distribution": {
            band: {"count": count, "percentage": round(count / total * 100)}
            for band, count in bands.items()
        },
        "usable_ratio": (
            float(usable_ratios.max() / usable_ratios.min())
            if usable_ratios.size
            else 0.0
        ),
        "average_step": float(steps.mean()) if steps.size else 0.0,
        "largest_gap": float(steps.max()) if steps.size else 0.0,
        "smallest_gap": float(steps.min()) if steps.size else 0.0,
        "cadence_consistency": cadence_consistency(gears),
        "speed_range": (float(speeds.min()), float(speeds.max())),
        "practical_range": (
            (float(practical.min()), float(practical.max()))
            if practical.size
            else None
        ),
        "target_speeds": target_speed_gears(gears),
        "chain_line_score": max(0, min(100, round((average_efficiency - 0.9) * 1000))),
        "unique_ratios": unique,
        "redundancy": round((total - unique) / total * 100),
        "duplicate_groups": len(find_gear_duplicates(gears)),
    }


# ---------------------------------------------------------------------------
# Usage profiles
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UsageProfile:
    """A style of riding and the speeds it needs.

    Attributes:
        name: Display name.
        speed_range: ``(min, max)`` target speed in mph.
        cadence_range: ``(min, max)`` typical cadence in rpm.
        terrain: One of :data:`TERRAINS`.
        priority: One of :data:`PRIORITIES`.
        description: Short description.
    """

    name: str
    speed_range: tuple[float, float]
    cadence_range: tuple[int, int]
    terrain: str
    priority: str
    description: str

    def __post_init__(self) -> None:
        if self.speed_range[0] > self.speed_range[1]:
            raise ValueError("speed_range must be (min, max).")
        if self.terrain not in TERRAINS:
            raise ValueError(f"terrain must be one of {TERRAINS}.")
        if self.priority not in PRIORITIES:
            raise ValueError(f"priority must be one of {PRIORITIES}.")


USAGE_PROFILES: tuple[UsageProfile, ...] = (
    UsageProfile(
        "Commuting", (12, 20), (80, 100), "flat", "efficiency",
        "Daily commuting, consistent speeds",
    ),
    UsageProfile(
        "Recreational Road", (15, 25), (85, 95), "rolling", "range",
        "Weekend rides, varied terrain",
    ),
    UsageProfile(
        "Racing/Training", (20, 35), (90, 110), "rolling", "top_speed",
        "Competitive riding, high speeds",
    ),
    UsageProfile(
        "Climbing/Touring", (8, 18), (70, 90), "mountainous", "climbing",
        "Long climbs with loaded bike",
    ),
    UsageProfile(
        "Mountain Biking", (5, 25), (70, 100), "mountainous", "range",
        "Technical terrain, wide speed range",
    ),
    UsageProfile(
        "Gravel/Adventure", (10, 22), (75, 95), "rolling", "range",
        "Mixed surfaces, long distances",
    ),
)


@dataclass(frozen=True)
class UsageEvaluation:
    score: int
    usable_gears: tuple[GearCalculation, ...]
    recommendations: tuple[str, ...]
    strengths: tuple[str, ...]
    weaknesses: tuple[str, ...]


def get_usage_profile(name: str) -> UsageProfile:
    """Look up a profile in :data:`USAGE_PROFILES` by name (case-insensitive).

    Raises:
        KeyError: If no profile has that name.
    """
    for profile in USAGE_PROFILES:
        if profile.name.lower() == name.lower():
            return profile
    raise KeyError(f"Unknown usage profile {name!r}.")


def evaluate_for_usage(
    gears: list[GearCalculation], profile: UsageProfile
) -> UsageEvaluation:
    """Score how well a gear table covers a riding profile.

    A gear is usable when its 90 rpm speed lies within the profile's speed
    range and its efficiency exceeds 95 %.  The score (0-100) averages the
    percentage of usable gears with an efficiency bonus of
    ``(mean usable efficiency - 0.95) * 2000``.

    Args:
        gears: Gear table.
        profile: Riding profile.

    Returns:
        A :class:`UsageEvaluation` with priority-specific strengths,
        weaknesses and recommendations.
    """
    low, high = profile.speed_range
    usable = [
        g
        for g in gears
        if low <= g.speed_at_cadence.rpm90 <= high
        and g.efficiency > USABLE_EFFICIENCY
    ]

    coverage = len(usable) / len(gears) * 100.0 if gears else 0.0
    efficiency_bonus = 0.0
    if usable:
        mean_efficiency = sum(g.efficiency for g in usable) / len(usable)
        efficiency_bonus = (mean_efficiency - USABLE_EFFICIENCY) * USAGE_EFFICIENCY_WEIGHT
    score = round(min(100.0, (coverage + efficiency_bonus) / 2.0))

    strengths: list[str] = []
    weaknesses: list[str] = []
    recommendations: list[str] = []

    if profile.priority == "efficiency":
        straight = [g for g in usable if g.efficiency > STRAIGHT_EFFICIENCY]
        if len(straight) > len(usable) * 0.7:
            strengths.append("Excellent efficiency in target speed range")
        else:
            weaknesses.append("Some efficiency loss in target speed range")
            recommendations.append(
                "Consider optimizing chain line for better efficiency"
            )
    elif profile.priority == "range":
        covered = 0.0
        if usable:
            usable_speeds = [g.speed_at_cadence.rpm90 for g in usable]
            covered = max(usable_speeds) - min(usable_speeds)
        if covered > high - low:
            strengths.append("Wide usable speed range")
        else:
            weaknesses.append("Limited speed range coverage")
            recommendations.append("Consider wider cassette range")
    elif profile.priority == "climbing":
        low_gears = [g for g in gears if g.speed_at_cadence.rpm90 < CLIMBING_SPEED_MPH]
        if len(low_gears) > 2 and any(
            g.efficiency > USABLE_EFFICIENCY for g in low_gears
        ):
            strengths.append("Good climbing gear selection")
        else:
            weaknesses.append("Limited low-speed climbing options")
            recommendations.append("Consider larger cassette or smaller chainring")
    elif profile.priority == "top_speed":
        high_gears = [g for g in gears if g.speed_at_cadence.rpm90 > TOP_SPEED_MPH]
        if len(high_gears) > 1 and any(
            g.efficiency > STRAIGHT_EFFICIENCY for g in high_gears
        ):
            strengths.append("Good high-speed capability")
        else:
            weaknesses.append("Limited top-end speed")
            recommendations.append("Consider larger chainring or smaller cassette")

    return UsageEvaluation(
        score=score,
        usable_gears=tuple(usable),
        recommendations=tuple(recommendations),
        strengths=tuple(strengths),
        weaknesses=tuple(weaknesses),
    )


# ---------------------------------------------------------------------------
# Setup comparison
# ---------------------------------------------------------------------------


def compare_setups(
    setups: dict[str, DrivetrainSetup],
    resolver: TireCircumferenceResolver | None = None,
) -> list[dict[str, Any]]:
    """Analyse several setups and rank them by an overall score.

    The score averages efficiency (mean efficiency x 100), range
    (``min(100, gear_range * 10)``), step smoothness
    (``max(0, 100 - average_step * 5)``) and the chain-line score.

    Args:
        setups: Setups keyed by display name.
        resolver: Tire circumference resolver shared by every analysis.

    Returns:
        One dictionary per setup with ``name``, ``analysis``, ``score``,
        ``strengths`` and ``weaknesses``, best score first.  Setups with
        no gears are skipped.
    """
    ranked: list[dict[str, Any]] = []
    for name, setup in setups.items():
        analysis = analyze_drivetrain(setup, resolver)
        if not analysis.gears:
            continue
        metrics = performance_metrics(list(analysis.gears))

        score = round(
            (
                metrics["average_efficiency"] * 100.0
                + min(100.0, analysis.gear_range * 10.0)
                + max(0.0, 100.0 - metrics["average_step"] * 5.0)
                + metrics["chain_line_score"]
            )
            / 4.0
        )

        strengths: list[str] = []
        weaknesses: list[str] = []
        if metrics["average_efficiency"] > STRAIGHT_EFFICIENCY:
            strengths.append("Excellent overall efficiency")
        if analysis.gear_range > 4:
            strengths.append("Wide gear range")
        if metrics["average_step"] < 15:
            strengths.append("Consistent gear steps")
        if metrics["problematic_gears"] == 0:
            strengths.append("No problematic gears")
        if metrics["average_efficiency"] < 0.96:
            weaknesses.append("Below-average efficiency")
        if metrics["largest_gap"] > 20:
            weaknesses.append("Large gaps between some gears")
        if metrics["redundancy"] > 15:
            weaknesses.append("Significant gear overlap")

        ranked.append(
            {
                "name": name,
                "analysis": analysis,
                "score": score,
                "strengths": strengths,
                "weaknesses": weaknesses,
            }
        )

    ranked.sort(key=lambda row: row["score"], reverse=True)
    return ranked
