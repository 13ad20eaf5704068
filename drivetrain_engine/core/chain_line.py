"""Chain-line and cross-chain geometry model for the drivetrain engine.

The front chain line is the crankset's nominal value shifted by the
bottom-bracket standard.  The rear chain line is the cassette centreline
for the hub spacing and speed count; each cog sits a fixed spacing either
side of it.  The cross-chain angle follows from the lateral offset over
the chain stay length:

    angle = degrees(atan(|front - rear_cog| / chain_stay))

Efficiency is a stepped penalty on that angle, starting from 98 % for a
straight chain.  The breakpoints are empirical and deliberately not
smoothed.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from drivetrain_engine.core.setup import DrivetrainSetup

# ---------------------------------------------------------------------------
# Reference tables
# ---------------------------------------------------------------------------

# Frame-side shift of the front chain line relative to a 68 mm BSA shell.
BOTTOM_BRACKET_OFFSETS: dict[str, float] = {
    "BSA": 0.0,
    "ITA": 1.0,
    "BB30": 1.0,
    "PF30": 1.0,
    "BB86": 0.0,
    "BB90": 11.0,
    "BB92": 12.0,
    "PF92": 12.0,
    "T47": 0.0,
    "BB107": 19.5,
    "Other": 0.0,
}

# Cranksets built for 30 mm spindles sit further outboard.
CRANKSET_BOTTOM_BRACKET_ADJUSTMENTS: dict[str, float] = {
    "BB30": 2.5,
    "PF30": 2.5,
}

# Cassette centreline by rear hub spacing (mm).
HUB_SPACING_CHAIN_LINES: dict[int, float] = {
    120: 42.0,
    126: 43.5,
    130: 43.5,
    135: 46.0,
    142: 46.0,
    148: 52.0,
    150: 52.0,
    157: 56.5,
}
DEFAULT_REAR_CHAIN_LINE: float = 43.5

# Wider cassettes shift the centreline outboard.
CASSETTE_STACK_ADJUSTMENTS: dict[int, float] = {
    8: -1.0,
    9: -0.5,
    10: 0.0,
    11: 0.5,
    12: 1.0,
    13: 1.5,
}

# Centre-to-centre distance between adjacent cogs (mm).
COG_SPACING: dict[int, float] = {
    7: 5.0,
    8: 4.8,
    9: 4.34,
    10: 3.95,
    11: 3.74,
    12: 3.35,
    13: 3.15,
}
DEFAULT_COG_SPACING: float = 3.74

DEFAULT_HUB_SPACING: dict[str, int] = {
    "road": 130,
    "gravel": 142,
    "mtb": 148,
    "hybrid": 130,
    "bmx": 120,
}

DEFAULT_CHAIN_STAY_LENGTH: dict[str, float] = {
    "road": 410.0,
    "gravel": 425.0,
    "mtb": 435.0,
    "hybrid": 420.0,
    "bmx": 365.0,
}
FALLBACK_CHAIN_STAY_LENGTH: float = 420.0

BASE_EFFICIENCY: float = 0.98

# (upper angle bound in degrees, efficiency penalty); first match wins.
EFFICIENCY_PENALTIES: tuple[tuple[float, float], ...] = (
    (0.5, 0.0),
    (1.0, 0.002),
    (2.0, 0.005),
    (3.0, 0.01),
    (4.0, 0.02),
    (5.0, 0.03),
    (6.0, 0.045),
)
EXTREME_ANGLE_PENALTY: float = 0.07

# (status, angle must be below, efficiency must be above); first match wins.
STATUS_THRESHOLDS: tuple[tuple[str, float, float], ...] = (
    ("optimal", 0.5, 0.975),
    ("good", 2.0, 0.97),
    ("acceptable", 4.0, 0.95),
    ("poor", 6.0, 0.93),
)

CHAIN_LINE_STATUSES: tuple[str, ...] = ("optimal", "good", "acceptable", "poor", "avoid")

# Higher rank is better.
STATUS_RANK: dict[str, int] = {
    status: len(CHAIN_LINE_STATUSES) - i for i, status in enumerate(CHAIN_LINE_STATUSES)
}


# ---------------------------------------------------------------------------
# Geometry primitives
# ---------------------------------------------------------------------------


def front_chain_line(
    crankset_chain_line: float, bottom_bracket: str | None = None
) -> float:
    """Front chain line in mm including bottom-bracket offsets.

    Args:
        crankset_chain_line: Nominal chain line of the crankset.
        bottom_bracket: Frame bottom-bracket standard; ``None`` means BSA.

    Returns:
        Effective front chain line in mm.
    """
    standard = bottom_bracket or "BSA"
    return (
        crankset_chain_line
        + BOTTOM_BRACKET_OFFSETS.get(standard, 0.0)
        + CRANKSET_BOTTOM_BRACKET_ADJUSTMENTS.get(standard, 0.0)
    )


def rear_chain_line(hub_spacing: float, speeds: int) -> float:
    """Cassette centreline in mm for a hub spacing and speed count."""
    base = HUB_SPACING_CHAIN_LINES.get(int(round(hub_spacing)), DEFAULT_REAR_CHAIN_LINE)
    return base + CASSETTE_STACK_ADJUSTMENTS.get(speeds, 0.0)


def cog_spacing(speeds: int) -> float:
    """Centre-to-centre cog spacing in mm for a speed count."""
    return COG_SPACING.get(speeds, DEFAULT_COG_SPACING)


def cog_position(rear_line: float, cog_index: int, cog_count: int, speeds: int) -> float:
    """Lateral position of the cog at *cog_index* in mm from the centreline."""
    centre_index = (cog_count - 1) / 2.0
    return rear_line + (cog_index - centre_index) * cog_spacing(speeds)


def cross_chain_angle(front: float, rear: float, chain_stay_length: float) -> float:
    """Chain deflection angle in degrees."""
    return math.degrees(math.atan(abs(front - rear) / chain_stay_length))


def chain_efficiency(angle_deg: float) -> float:
    """Drivetrain efficiency (0-1) for a cross-chain angle."""
    for upper, penalty in EFFICIENCY_PENALTIES:
        if angle_deg < upper:
            return BASE_EFFICIENCY - penalty
    return BASE_EFFICIENCY - EXTREME_ANGLE_PENALTY


def chain_line_status(angle_deg: float, efficiency: float) -> str:
    """Classify a chain angle as optimal, good, acceptable, poor or avoid."""
    for status, max_angle, min_efficiency in STATUS_THRESHOLDS:
        if angle_deg < max_angle and efficiency > min_efficiency:
            return status
    return "avoid"


def hub_spacing_for(setup: DrivetrainSetup) -> float:
    if setup.hub_spacing is not None:
        return setup.hub_spacing
    return DEFAULT_HUB_SPACING.get(setup.bike_type, 130)


def chain_stay_length_for(setup: DrivetrainSetup) -> float:
    if setup.chain_stay_length is not None:
        return setup.chain_stay_length
    return DEFAULT_CHAIN_STAY_LENGTH.get(setup.bike_type, FALLBACK_CHAIN_STAY_LENGTH)


# ---------------------------------------------------------------------------
# Per-pair evaluation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ChainLinePoint:
    """Chain-line figures merged into a gear calculation.

    Attributes:
        chain_line: Effective front chain line in mm.
        rear_position: Lateral position of the cog in mm.
        cross_chain_angle: Chain deflection in degrees.
        efficiency: Drivetrain efficiency (0-1).
        status: Chain-line status bucket.
    """

    chain_line: float
    rear_position: float
    cross_chain_angle: float
    efficiency: float
    status: str


def chain_line_for_pair(setup: DrivetrainSetup, cog_index: int) -> ChainLinePoint:
    """Evaluate the chain line for the cog at *cog_index* of the setup's cassette.

    The front chain line does not depend on which chainring is engaged, so
    every ring shares the figures of a given cog.
    """
    front = front_chain_line(setup.crankset.chain_line, setup.bottom_bracket)
    speeds = setup.cassette.speeds
    rear = cog_position(
        rear_chain_line(hub_spacing_for(setup), speeds),
        cog_index,
        len(setup.cassette.cogs),
        speeds,
    )
    angle = cross_chain_angle(front, rear, chain_stay_length_for(setup))
    efficiency = chain_efficiency(angle)
    return ChainLinePoint(
        chain_line=front,
        rear_position=rear,
        cross_chain_angle=angle,
        efficiency=efficiency,
        status=chain_line_status(angle, efficiency),
    )


# ---------------------------------------------------------------------------
# Whole-cassette report
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CogPosition:
    """Display-rounded chain-line figures for a single cog."""

    cog: int
    position: float
    offset_from_front: float
    angle: float
    efficiency: float
    status: str


@dataclass(frozen=True)
class ChainLineResult:
    """Chain-line analysis across every cog of a cassette.

    Attributes:
        front_chain_line: Effective front chain line in mm.
        rear_chain_line: Cassette centreline in mm.
        offset: ``|front - rear|`` in mm.
        cog_positions: Per-cog figures, smallest cog first.
        straight_chain_gears: Cogs rated optimal or good.
        cross_chain_gears: Cogs rated poor.
        avoid_gears: Cogs rated avoid.
        optimal_range: ``(min, max)`` of the straight-chain cogs, ``(0, 0)``
            when there are none.
    """

    front_chain_line: float
    rear_chain_line: float
    offset: float
    cog_positions: tuple[CogPosition, ...] = ()
    straight_chain_gears: tuple[int, ...] = ()
    cross_chain_gears: tuple[int, ...] = ()
    avoid_gears: tuple[int, ...] = ()
    optimal_range: tuple[int, int] = field(default=(0, 0))


def analyze_chain_line(setup: DrivetrainSetup) -> ChainLineResult:
    """Build the per-cog chain-line report for a setup."""
    front = front_chain_line(setup.crankset.chain_line, setup.bottom_bracket)
    speeds = setup.cassette.speeds
    rear = rear_chain_line(hub_spacing_for(setup), speeds)
    chain_stay = chain_stay_length_for(setup)
    cogs = setup.cassette.cogs

    positions: list[CogPosition] = []
    for index, cog in enumerate(cogs):
        position = cog_position(rear, index, len(cogs), speeds)
        angle = cross_chain_angle(front, position, chain_stay)
        efficiency = chain_efficiency(angle)
        positions.append(
            CogPosition(
                cog=cog,
                position=round(position, 1),
                offset_from_front=round(abs(position - front), 1),
                angle=round(angle, 1),
                efficiency=round(efficiency, 3),
                status=chain_line_status(angle, efficiency),
            )
        )

    straight = [p.cog for p in positions if p.status in ("optimal", "good")]
    return ChainLineResult(
        front_chain_line=front,
        rear_chain_line=rear,
        offset=abs(front - rear),
        cog_positions=tuple(positions),
        straight_chain_gears=tuple(straight),
        cross_chain_gears=tuple(p.cog for p in positions if p.status == "poor"),
        avoid_gears=tuple(p.cog for p in positions if p.status == "avoid"),
        optimal_range=(min(straight), max(straight)) if straight else (0, 0),
    )


def chain_line_recommendations(result: ChainLineResult) -> dict[str, list[str]]:
    """Turn a chain-line report into recommendations, warnings and optimisations."""
    recommendations: list[str] = []
    warnings: list[str] = []
    optimizations: list[str] = []

    if result.offset > 5.0:
        warnings.append(f"Large chain line offset: {result.offset:.1f}mm")
        recommendations.append("Consider different bottom bracket or crankset")

    usable = [
        p for p in result.cog_positions if p.status in ("optimal", "good")
    ]
    if len(usable) < len(result.cog_positions) * 0.6:
        warnings.append("Limited usable gear range due to chain line issues")
        recommendations.append("Consider adjusting chain line or cassette choice")

    if result.straight_chain_gears:
        low, high = result.optimal_range
        optimizations.append(f"Focus on {low}T-{high}T cogs for best efficiency")
    if result.avoid_gears:
        avoid = ", ".join(str(c) for c in result.avoid_gears)
        optimizations.append(f"Avoid {avoid}T cogs due to extreme chain line")

    return {
        "recommendations": recommendations,
        "warnings": warnings,
        "optimizations": optimizations,
    }


def compare_chain_lines(setups: dict[str, DrivetrainSetup]) -> list[dict[str, object]]:
    """Rank named setups by chain-line quality, best first.

    Each row carries the chain-line ``result``, the average cog
    ``efficiency`` as a percentage with one decimal, the number of
    ``usable_gears`` (cogs rated acceptable or better) and a 0-100
    ``score``.  Setups whose cassette has no cogs are skipped.
    """
    rows: list[dict[str, object]] = []
    for name, setup in setups.items():
        result = analyze_chain_line(setup)
        positions = result.cog_positions
        if not positions:
            continue
        average = sum(p.efficiency for p in positions) / len(positions)
        usable = sum(
            1 for p in positions if p.status in ("optimal", "good", "acceptable")
        )
        score = (average - 0.9) * 1000 + usable / len(positions) * 20
        rows.append(
            {
                "name": name,
                "result": result,
                "efficiency": round(average * 1000) / 10,
                "usable_gears": usable,
                "score": max(0, min(100, round(score))),
            }
        )
    rows.sort(key=lambda row: row["score"], reverse=True)
    return rows


def ideal_chain_line(speeds: int, hub_spacing: float = 130) -> dict[str, object]:
    """Front chain line that matches the cassette centreline."""
    rear = rear_chain_line(hub_spacing, speeds)
    return {
        "ideal_front_chain_line": rear,
        "rear_chain_line": rear,
        "reasoning": (
            f"For best chain line with {speeds}-speed cassette, front chain "
            f"line should be {rear:g}mm to match rear centreline"
        ),
    }
