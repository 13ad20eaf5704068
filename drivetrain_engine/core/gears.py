"""Gear ratio and speed model for the drivetrain engine.

For every (chainring, cog) pair of a setup the calculator produces one
:class:`GearCalculation`:

    ratio              = chainring / cog
    gear_inches        = ratio * circumference / pi / 25.4
    gain_ratio         = ratio * (circumference / 2pi) / crank_length
    development_meters = circumference * ratio / 1000
    speed (mph)        = development * rpm * 60 / 1000 * 0.621371

The gain ratio follows Sheldon Brown's definition and is the only figure
that depends on crank length.  Chain-line figures come from
:mod:`drivetrain_engine.core.chain_line`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from drivetrain_engine.core.chain_line import ChainLinePoint, chain_line_for_pair
from drivetrain_engine.core.setup import DrivetrainSetup
from drivetrain_engine.core.tire import TireCircumferenceResolver
from drivetrain_engine.errors import InvalidComponentData

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

MM_PER_INCH: float = 25.4
KMH_TO_MPH: float = 0.621371
CADENCES: tuple[int, ...] = (60, 80, 90, 100, 120)
BASELINE_CRANK_LENGTH_MM: float = 175.0

# (upper bound, description); first match wins.
_GAIN_RATIO_BANDS: tuple[tuple[float, str], ...] = (
    (2.5, "Very Low (steep climbing)"),
    (3.5, "Low (climbing)"),
    (4.5, "Medium-Low (rolling terrain)"),
    (5.5, "Medium (general riding)"),
    (6.5, "Medium-High (fast riding)"),
    (7.5, "High (racing/sprinting)"),
)


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SpeedAtCadence:
    """Road speed in mph at the standard cadences, rounded to 0.1."""

    rpm60: float
    rpm80: float
    rpm90: float
    rpm100: float
    rpm120: float

    def at(self, cadence: int) -> float:
        """Speed at one of :data:`CADENCES`."""
        if cadence not in CADENCES:
            raise KeyError(f"No speed recorded for {cadence} rpm.")
        return getattr(self, f"rpm{cadence}")

    def as_dict(self) -> dict[int, float]:
        return {rpm: self.at(rpm) for rpm in CADENCES}


@dataclass(frozen=True)
class GearCalculation:
    """Every computed figure for one chainring/cog combination.

    Attributes:
        chainring: Chainring teeth.
        cog: Cog teeth.
        ratio: Chainring / cog.
        gear_inches: Equivalent direct-drive wheel diameter in inches.
        gain_ratio: Distance travelled by the bike per distance travelled
            by the pedal (Sheldon Brown).
        development_meters: Metres travelled per crank revolution.
        speed_at_cadence: Speeds in mph at the standard cadences.
        chain_line: Effective front chain line in mm.
        cross_chain_angle: Chain deflection in degrees.
        efficiency: Drivetrain efficiency (0-1).
        wheel_circumference_mm: Wheel circumference used.
        crank_length_mm: Crank length used.
        front_index: Position of the chainring, smallest first.
        rear_index: Position of the cog, smallest first.
        gear_number: 1-based position in chainring-major order.
        status: Chain-line status bucket of the pair.
    """

    chainring: int
    cog: int
    ratio: float
    gear_inches: float
    gain_ratio: float
    development_meters: float
    speed_at_cadence: SpeedAtCadence
    chain_line: float
    cross_chain_angle: float
    efficiency: float
    wheel_circumference_mm: float
    crank_length_mm: float
    front_index: int = 0
    rear_index: int = 0
    gear_number: int = 1
    status: str = "optimal"


# ---------------------------------------------------------------------------
# Primitive formulas
# ---------------------------------------------------------------------------


def gear_ratio(chainring: int, cog: int) -> float:
    """Chainring teeth divided by cog teeth.

    Raises:
        InvalidComponentData: If either tooth count is <= 0.
    """
    if cog <= 0:
        raise InvalidComponentData(f"cog must be > 0, got {cog}.")
    if chainring <= 0:
        raise InvalidComponentData(f"chainring must be > 0, got {chainring}.")
    return chainring / cog


def gain_ratio(
    chainring: int,
    cog: int,
    wheel_radius_mm: float,
    crank_length_mm: float,
) -> float:
    """Sheldon Brown gain ratio: ``ratio * wheel_radius / crank_length``.

    Raises:
        InvalidComponentData: If crank length is <= 0 or the tooth counts
            are invalid.
    """
    if crank_length_mm <= 0.0:
        raise InvalidComponentData(f"crank_length must be > 0, got {crank_length_mm}.")
    return gear_ratio(chainring, cog) * (wheel_radius_mm / crank_length_mm)


def speeds_at_cadences(development_meters: float) -> SpeedAtCadence:
    """Speeds in mph at :data:`CADENCES` for a given development."""
    speeds = [
        round(development_meters * rpm * 60.0 / 1000.0 * KMH_TO_MPH, 1)
        for rpm in CADENCES
    ]
    return SpeedAtCadence(*speeds)


def calculate_gear(
    chainring: int,
    cog: int,
    wheel_circumference_mm: float,
    crank_length_mm: float,
    chain_line: ChainLinePoint,
    front_index: int = 0,
    rear_index: int = 0,
    gear_number: int = 1,
) -> GearCalculation:
    """Compute every figure for a single chainring/cog pair.

    Args:
        chainring: Chainring teeth.
        cog: Cog teeth.
        wheel_circumference_mm: Wheel circumference in mm.
        crank_length_mm: Crank length in mm.
        chain_line: Chain-line figures for the cog.
        front_index: Position of the chainring.
        rear_index: Position of the cog.
        gear_number: 1-based gear number.

    Returns:
        The populated :class:`GearCalculation`.

    Raises:
        InvalidComponentData: If cog or crank length is <= 0.
    """
    ratio = gear_ratio(chainring, cog)
    wheel_radius = wheel_circumference_mm / (2.0 * math.pi)
    development = wheel_circumference_mm * ratio / 1000.0

    return GearCalculation(
        chainring=chainring,
        cog=cog,
        ratio=ratio,
        gear_inches=ratio * (wheel_circumference_mm / math.pi / MM_PER_INCH),
        gain_ratio=gain_ratio(chainring, cog, wheel_radius, crank_length_mm),
        development_meters=development,
        speed_at_cadence=speeds_at_cadences(development),
        chain_line=chain_line.chain_line,
        cross_chain_angle=chain_line.cross_chain_angle,
        efficiency=chain_line.efficiency,
        wheel_circumference_mm=wheel_circumference_mm,
        crank_length_mm=crank_length_mm,
        front_index=front_index,
        rear_index=rear_index,
        gear_number=gear_number,
        status=chain_line.status,
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def calculate_all_gears(
    setup: DrivetrainSetup,
    resolver: TireCircumferenceResolver | None = None,
) -> list[GearCalculation]:
    """Compute the full gear table of a setup.

    The wheel circumference is resolved once; the chain-line model is
    evaluated for each pair.  Output order is chainring-major, cog-minor,
    smallest first.

    Args:
        setup: The drivetrain to evaluate.  ``wheel_setup`` and
            ``crank_length`` must be set.
        resolver: Tire circumference resolver.  Defaults to one built
            from ``data/tires.yaml`` under
            :data:`drivetrain_engine.config.DATA_DIR`, the repository-root
            ``data/`` directory.  That directory is only present in a
            source checkout or an editable install; pass a resolver
            explicitly otherwise.

    Returns:
        ``len(chainrings) * len(cogs)`` gear calculations; empty when the
        crankset has no rings or the cassette has no cogs.

    Raises:
        InvalidComponentData: If the wheel setup is missing or the crank
            length is missing or <= 0.
        FileNotFoundError: If *resolver* is omitted and the default tire
            table is not on disk.
    """
    if setup.wheel_setup is None:
        raise InvalidComponentData("wheel_setup is required for gear calculations.")
    if setup.crank_length is None or setup.crank_length <= 0.0:
        raise InvalidComponentData(
            f"crank_length must be > 0, got {setup.crank_length}."
        )

    chainrings = setup.crankset.chainrings
    cogs = setup.cassette.cogs
    if not chainrings or not cogs:
        return []

    if resolver is None:
        from drivetrain_engine.config import load_tire_resolver

        resolver = load_tire_resolver()

    wheel = setup.wheel_setup
    circumference = resolver.resolve(
        wheel.tire_size, wheel.rim_width, wheel.pressure
    ).circumference_mm

    gears: list[GearCalculation] = []
    for front_index, chainring in enumerate(chainrings):
        for rear_index, cog in enumerate(cogs):
            gears.append(
                calculate_gear(
                    chainring,
                    cog,
                    circumference,
                    setup.crank_length,
                    chain_line_for_pair(setup, rear_index),
                    front_index=front_index,
                    rear_index=rear_index,
                    gear_number=front_index * len(cogs) + rear_index + 1,
                )
            )
    return gears


# ---------------------------------------------------------------------------
# Gain ratio helpers
# ---------------------------------------------------------------------------


def compare_gain_ratios_with_crank_lengths(
    chainring: int,
    cog: int,
    wheel_radius_mm: float,
    crank_lengths: list[float],
) -> list[dict[str, float]]:
    """Gain ratio for each crank length relative to a 175 mm baseline.

    Returns:
        One mapping per crank length with ``crank_length``, ``gain_ratio``
        and ``relative_difference`` (percent, rounded to 0.01).
    """
    baseline = gain_ratio(chainring, cog, wheel_radius_mm, BASELINE_CRANK_LENGTH_MM)
    rows: list[dict[str, float]] = []
    for length in crank_lengths:
        value = gain_ratio(chainring, cog, wheel_radius_mm, length)
        rows.append(
            {
                "crank_length": length,
                "gain_ratio": value,
                "relative_difference": round((value - baseline) / baseline * 100.0, 2),
            }
        )
    return rows


def interpret_gain_ratio(value: float) -> str:
    """Describe the riding a gain ratio suits."""
    for upper, description in _GAIN_RATIO_BANDS:
        if value < upper:
            return description
    return "Very High (time trial/sprinting)"
