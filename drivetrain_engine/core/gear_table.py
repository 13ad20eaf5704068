"""Summaries over a computed gear table.

All functions take the ``list[GearCalculation]`` produced by
:func:`drivetrain_engine.core.gears.calculate_all_gears` and never modify
it.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from drivetrain_engine.core.gears import GearCalculation

# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------

OPTIMAL_EFFICIENCY: float = 0.975
PROBLEMATIC_EFFICIENCY: float = 0.96
PROBLEMATIC_ANGLE_DEG: float = 5.0
USABLE_EFFICIENCY: float = 0.95
DUPLICATE_TOLERANCE: float = 0.05

# (upper cadence bound, standard cadence); first match wins.
_CADENCE_BUCKETS: tuple[tuple[float, int], ...] = (
    (65, 60),
    (85, 80),
    (95, 90),
    (110, 100),
)


@dataclass(frozen=True)
class DuplicateGroup:
    """Gears whose ratios lie within tolerance of ``primary``.

    ``best_option`` is the most efficient member, the earliest on ties.
    """

    primary: GearCalculation
    duplicates: tuple[GearCalculation, ...]
    best_option: GearCalculation


@dataclass(frozen=True)
class GearRange:
    """Spread of a gear table.

    Attributes:
        range: Highest ratio divided by lowest ratio.
        lowest: Gear with the lowest ratio.
        highest: Gear with the highest ratio.
        lowest_usable: Lowest-ratio gear with efficiency above 0.95.
        highest_usable: Highest-ratio gear with efficiency above 0.95.
    """

    range: float
    lowest: GearCalculation
    highest: GearCalculation
    lowest_usable: GearCalculation | None
    highest_usable: GearCalculation | None


@dataclass(frozen=True)
class GearStep:
    """Percentage jump between two ratio-adjacent gears."""

    from_gear: GearCalculation
    to_gear: GearCalculation
    step_percentage: float


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def get_optimal_gears(gears: list[GearCalculation]) -> list[GearCalculation]:
    """Gears with efficiency above 97.5 %."""
    return [g for g in gears if g.efficiency > OPTIMAL_EFFICIENCY]


def get_problematic_gears(gears: list[GearCalculation]) -> list[GearCalculation]:
    """Gears below 96 % efficiency or deflected by more than 5 degrees."""
    return [
        g
        for g in gears
        if g.efficiency < PROBLEMATIC_EFFICIENCY
        or g.cross_chain_angle > PROBLEMATIC_ANGLE_DEG
    ]


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


def _sorted_by_ratio(gears: list[GearCalculation]) -> list[GearCalculation]:
    order = np.argsort([g.ratio for g in gears], kind="stable")
    return [gears[i] for i in order]


def find_gear_duplicates(
    gears: list[GearCalculation], tolerance: float = DUPLICATE_TOLERANCE
) -> list[DuplicateGroup]:
    """Group gears with near-identical ratios.

    Gears are scanned in input order.  Each unclaimed gear becomes the
    primary of a group holding every later unclaimed gear whose ratio is
    within *tolerance*; a gear appears in at most one group.

    Args:
        gears: Gear table.
        tolerance: Maximum absolute ratio difference.

    Returns:
        Groups with at least one duplicate, in order of their primary.
    """
    ratios = np.array([g.ratio for g in gears], dtype=float)
    claimed = np.zeros(len(gears), dtype=bool)
    groups: list[DuplicateGroup] = []

    for i, gear in enumerate(gears):
        if claimed[i]:
            continue
        close = np.abs(ratios - ratios[i]) <= tolerance
        close[: i + 1] = False
        close &= ~claimed
        matches = np.flatnonzero(close)
        if matches.size == 0:
            continue
        claimed[i] = True
        claimed[matches] = True
        duplicates = tuple(gears[j] for j in matches)
        best = gear
        for other in duplicates:
            if other.efficiency > best.efficiency:
                best = other
        groups.append(
            DuplicateGroup(primary=gear, duplicates=duplicates, best_option=best)
        )
    return groups


def calculate_gear_range(gears: list[GearCalculation]) -> GearRange:
    """Lowest, highest and overall range of a gear table.

    Raises:
        ValueError: If *gears* is empty.
    """
    if not gears:
        raise ValueError("Cannot compute the range of an empty gear table.")

    ordered = _sorted_by_ratio(gears)
    usable = [g for g in ordered if g.efficiency > USABLE_EFFICIENCY]
    lowest, highest = ordered[0], ordered[-1]

    return GearRange(
        range=highest.ratio / lowest.ratio,
        lowest=lowest,
        highest=highest,
        lowest_usable=usable[0] if usable else None,
        highest_usable=usable[-1] if usable else None,
    )


def calculate_gear_steps(gears: list[GearCalculation]) -> list[GearStep]:
    """Percentage steps between ratio-adjacent gears, rounded to 0.1."""
    ordered = _sorted_by_ratio(gears)
    if len(ordered) < 2:
        return []

    ratios = np.array([g.ratio for g in ordered], dtype=float)
    percentages = np.diff(ratios) / ratios[:-1] * 100.0
    return [
        GearStep(
            from_gear=ordered[i],
            to_gear=ordered[i + 1],
            step_percentage=round(float(pct), 1),
        )
        for i, pct in enumerate(percentages)
    ]


def cadence_bucket(cadence: float) -> int:
    """Nearest standard cadence bucket for *cadence* rpm."""
    for upper, bucket in _CADENCE_BUCKETS:
        if cadence <= upper:
            return bucket
    return 120


def suggest_gear_for_speed(
    gears: list[GearCalculation],
    target_speed_mph: float,
    cadence: float = 90,
) -> GearCalculation | None:
    """Optimal gear whose speed at *cadence* is closest to the target.

    Only gears from :func:`get_optimal_gears` are considered; ties keep
    the first gear in table order.

    Returns:
        The best gear, or ``None`` when no gear is optimal.
    """
    bucket = cadence_bucket(cadence)
    best: GearCalculation | None = None
    smallest = float("inf")
    for gear in get_optimal_gears(gears):
        diff = abs(gear.speed_at_cadence.at(bucket) - target_speed_mph)
        if diff < smallest:
            smallest = diff
            best = gear
    return best
