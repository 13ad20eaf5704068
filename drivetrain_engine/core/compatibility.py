"""Rule-based compatibility checking for drivetrain setups.

Each rule inspects the whole setup and reports findings independently of
the others.  Every rule always runs so callers see every issue at once;
the setup is compatible when no rule reports a ``critical`` finding.

``get_problematic_gears`` is a separate, deliberately coarse heuristic
(linear cog offsets around a fixed road centreline).  It is independent of
the geometry in :mod:`drivetrain_engine.core.chain_line` and the two may
disagree.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable

from drivetrain_engine.core.components import (
    PRESS_FIT_BOTTOM_BRACKETS,
    THREADED_BOTTOM_BRACKETS,
)
from drivetrain_engine.core.setup import DrivetrainSetup

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

CRITICAL: str = "critical"
WARNING: str = "warning"
INFO: str = "info"
SEVERITIES: tuple[str, ...] = (CRITICAL, WARNING, INFO)

CAPACITY_WARNING_FRACTION: float = 0.9
CHAIN_LINE_TOLERANCE_MM: float = 2.0
CHAIN_WIDTH_TOLERANCE_MM: float = 0.3

STANDARD_CHAIN_LINES: dict[str, float] = {
    "road": 43.5,
    "gravel": 46.0,
    "mtb": 52.0,
    "hybrid": 43.5,
    "bmx": 42.0,
}

EXPECTED_CHAIN_WIDTHS: dict[int, float] = {
    8: 7.3,
    9: 6.7,
    10: 5.9,
    11: 5.5,
    12: 5.25,
    13: 5.25,
}

FREEHUB_WARNINGS: dict[str, str] = {
    "shimano-12": (
        "Requires Shimano Micro Spline freehub "
        "(not compatible with standard HG freehub)"
    ),
    "sram-xdr": "Requires SRAM XDR freehub (longer than standard HG freehub)",
    "sram-xd": "Requires SRAM XD freehub (different spline pattern than HG)",
    "campagnolo-11": (
        "Requires Campagnolo freehub (different spline pattern than Shimano/SRAM)"
    ),
    "campagnolo-13": (
        "Requires Campagnolo freehub (different spline pattern than Shimano/SRAM)"
    ),
}

# Linear cross-chain estimate used by get_problematic_gears.
ESTIMATE_CASSETTE_CENTERLINE_MM: float = 43.5
ESTIMATE_COG_SPACING_MM: float = 4.5
CROSS_CHAIN_OFFSET_MM: float = 10.0
SEVERE_CROSS_CHAIN_OFFSET_MM: float = 15.0


# ---------------------------------------------------------------------------
# Result containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CompatibilityWarning:
    """A single compatibility finding.

    Attributes:
        severity: ``critical``, ``warning`` or ``info``.
        component: Component role the finding concerns.
        issue: What is wrong.
        suggestion: How to fix it, if there is a standard remedy.
    """

    severity: str
    component: str
    issue: str
    suggestion: str | None = None

    def __post_init__(self) -> None:
        if self.severity not in SEVERITIES:
            raise ValueError(f"severity must be one of {SEVERITIES}.")


@dataclass(frozen=True)
class CompatibilityCheck:
    """Verdict for a whole setup.

    Attributes:
        compatible: ``True`` when there is no critical finding.
        warnings: Every finding of every rule.
        notes: Informational notes.
    """

    compatible: bool
    warnings: tuple[CompatibilityWarning, ...] = ()
    notes: tuple[str, ...] = ()

    @property
    def critical(self) -> list[CompatibilityWarning]:
        return [w for w in self.warnings if w.severity == CRITICAL]


@dataclass
class RuleFindings:
    """Warnings and notes produced by one rule."""

    warnings: list[CompatibilityWarning] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


def check_speed_match(setup: DrivetrainSetup) -> RuleFindings:
    """All speed-indexed components must share one speed count."""
    findings = RuleFindings()
    speeds = {
        setup.cassette.speeds,
        setup.chain.speeds,
        setup.rear_derailleur.speeds,
    }
    if setup.front_derailleur is not None:
        speeds.add(setup.front_derailleur.speeds)

    if len(speeds) > 1:
        found = ", ".join(str(s) for s in sorted(speeds))
        findings.warnings.append(
            CompatibilityWarning(
                severity=CRITICAL,
                component="drivetrain",
                issue=f"Speed mismatch: Found {found} speeds across components",
                suggestion="All drivetrain components must have the same speed count",
            )
        )
    return findings


def required_capacity(setup: DrivetrainSetup) -> int:
    """Teeth of slack the rear derailleur must absorb."""
    return setup.crankset.chainring_spread + setup.cassette.cog_spread


def check_derailleur_capacity(setup: DrivetrainSetup) -> RuleFindings:
    """The derailleur cage must take up chainring spread plus cog spread."""
    findings = RuleFindings()
    needed = required_capacity(setup)
    capacity = setup.rear_derailleur.total_capacity

    if needed > capacity:
        findings.warnings.append(
            CompatibilityWarning(
                severity=CRITICAL,
                component="rear_derailleur",
                issue=(
                    f"Insufficient capacity: Need {needed}T, "
                    f"derailleur has {capacity}T"
                ),
                suggestion="Use a long cage derailleur (SGS/GS) or reduce gear range",
            )
        )
    elif needed > capacity * CAPACITY_WARNING_FRACTION:
        findings.warnings.append(
            CompatibilityWarning(
                severity=WARNING,
                component="rear_derailleur",
                issue=f"Near capacity limit: Using {needed}T of {capacity}T capacity",
                suggestion=(
                    "Consider a longer cage derailleur for better shifting performance"
                ),
            )
        )
    return findings


def check_max_cog(setup: DrivetrainSetup) -> RuleFindings:
    """The largest cog must clear the derailleur's upper pulley."""
    findings = RuleFindings()
    largest = setup.cassette.cog_range[1]
    limit = setup.rear_derailleur.max_cog_size
    if largest > limit:
        findings.warnings.append(
            CompatibilityWarning(
                severity=CRITICAL,
                component="rear_derailleur",
                issue=(
                    f"Cassette largest cog ({largest}T) exceeds "
                    f"derailleur limit ({limit}T)"
                ),
                suggestion="Use a smaller cassette or different derailleur model",
            )
        )
    return findings


def check_freehub(setup: DrivetrainSetup) -> RuleFindings:
    findings = RuleFindings()
    freehub = setup.cassette.freehub_type
    findings.notes.append(f"Freehub type required: {freehub}")
    if freehub in FREEHUB_WARNINGS:
        findings.warnings.append(
            CompatibilityWarning(
                severity=WARNING,
                component="cassette",
                issue=FREEHUB_WARNINGS[freehub],
                suggestion="Verify wheel freehub compatibility before purchase",
            )
        )
    return findings


def check_chain_line(setup: DrivetrainSetup) -> RuleFindings:
    """Crankset chain line against the bike type's standard."""
    findings = RuleFindings()
    standard = STANDARD_CHAIN_LINES[setup.bike_type]
    actual = setup.crankset.chain_line
    findings.notes.append(f"Chain line: {actual:g}mm (standard: {standard:g}mm)")

    if abs(actual - standard) > CHAIN_LINE_TOLERANCE_MM:
        findings.warnings.append(
            CompatibilityWarning(
                severity=WARNING,
                component="crankset",
                issue=(
                    f"Non-standard chain line: {actual:g}mm "
                    f"(standard is {standard:g}mm)"
                ),
                suggestion="May cause shifting issues, chain wear, or noise",
            )
        )

    if len(setup.crankset.chainrings) > 1:
        findings.warnings.append(
            CompatibilityWarning(
                severity=INFO,
                component="drivetrain",
                issue="Avoid cross-chaining (big ring + big cog, small ring + small cog)",
                suggestion="Use middle gears for best chain line and efficiency",
            )
        )
    return findings


def check_cable_pull(setup: DrivetrainSetup) -> RuleFindings:
    """Mixed-brand shifting and wireless derailleurs."""
    findings = RuleFindings()
    rear = setup.rear_derailleur
    front = setup.front_derailleur

    if front is not None and front.brand.lower() != rear.brand.lower():
        findings.warnings.append(
            CompatibilityWarning(
                severity=WARNING,
                component="front_derailleur",
                issue=f"Mixed brands: {front.brand} front / {rear.brand} rear",
                suggestion=(
                    "Verify shifter compatibility - may need different "
                    "cable pull ratios"
                ),
            )
        )

    if rear.wireless:
        if rear.brand.lower() == "sram":
            suggestion = "SRAM AXS requires AXS shifters and battery"
        else:
            suggestion = "Pair with matching wireless shifters and keep the battery charged"
        findings.warnings.append(
            CompatibilityWarning(
                severity=INFO,
                component="rear_derailleur",
                issue="Wireless derailleur requires compatible wireless shifters",
                suggestion=suggestion,
            )
        )
    return findings


def check_chain_width(setup: DrivetrainSetup) -> RuleFindings:
    """Chain internal width against the cassette's speed count."""
    findings = RuleFindings()
    speeds = setup.cassette.speeds
    expected = EXPECTED_CHAIN_WIDTHS.get(speeds)
    actual = setup.chain.width
    if expected is not None and abs(actual - expected) > CHAIN_WIDTH_TOLERANCE_MM:
        findings.warnings.append(
            CompatibilityWarning(
                severity=CRITICAL,
                component="chain",
                issue=(
                    f"Chain width {actual:g}mm may not fit {speeds}-speed cassette "
                    f"(expected ~{expected:g}mm)"
                ),
                suggestion="Use chain designed for the correct speed count",
            )
        )
    return findings


def check_bottom_bracket(setup: DrivetrainSetup) -> RuleFindings:
    findings = RuleFindings()
    supported = setup.crankset.bottom_brackets
    findings.notes.append(f"Compatible bottom brackets: {', '.join(supported)}")

    frame_bb = setup.bottom_bracket
    if frame_bb is None:
        return findings

    if frame_bb not in supported:
        findings.warnings.append(
            CompatibilityWarning(
                severity=CRITICAL,
                component="crankset",
                issue=f"Crankset not compatible with {frame_bb} bottom bracket",
                suggestion=f"Use one of: {', '.join(supported)}",
            )
        )
    if frame_bb in PRESS_FIT_BOTTOM_BRACKETS:
        findings.notes.append(
            "Press-fit bottom bracket - requires proper installation tools"
        )
    elif frame_bb in THREADED_BOTTOM_BRACKETS:
        findings.notes.append(
            "Threaded bottom bracket - easier to install and maintain"
        )
    return findings


def check_front_derailleur(setup: DrivetrainSetup) -> RuleFindings:
    findings = RuleFindings()
    front = setup.front_derailleur
    if front is None:
        return findings

    spread = setup.crankset.chainring_spread
    if spread > front.max_chainring_diff:
        findings.warnings.append(
            CompatibilityWarning(
                severity=CRITICAL,
                component="front_derailleur",
                issue=(
                    f"Chainring difference ({spread}T) exceeds front derailleur "
                    f"limit ({front.max_chainring_diff}T)"
                ),
                suggestion=(
                    "Use a front derailleur designed for larger chainring differences"
                ),
            )
        )
    if len(setup.crankset.chainrings) == 1:
        findings.warnings.append(
            CompatibilityWarning(
                severity=WARNING,
                component="front_derailleur",
                issue="Front derailleur specified for 1x (single chainring) setup",
                suggestion="1x setups typically do not use front derailleurs",
            )
        )
    return findings


Rule = Callable[[DrivetrainSetup], RuleFindings]

COMPATIBILITY_RULES: tuple[tuple[str, Rule], ...] = (
    ("speed_match", check_speed_match),
    ("derailleur_capacity", check_derailleur_capacity),
    ("max_cog", check_max_cog),
    ("freehub", check_freehub),
    ("chain_line", check_chain_line),
    ("cable_pull", check_cable_pull),
    ("chain_width", check_chain_width),
    ("bottom_bracket", check_bottom_bracket),
    ("front_derailleur", check_front_derailleur),
)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def check_drivetrain_compatibility(setup: DrivetrainSetup) -> CompatibilityCheck:
    """Run every compatibility rule against a setup.

    Args:
        setup: The drivetrain to check.

    Returns:
        A :class:`CompatibilityCheck`; ``compatible`` is ``False`` when any
        rule reported a critical finding.
    """
    warnings: list[CompatibilityWarning] = []
    notes: list[str] = []
    for _, rule in COMPATIBILITY_RULES:
        findings = rule(setup)
        warnings.extend(findings.warnings)
        notes.extend(findings.notes)

    compatible = not any(w.severity == CRITICAL for w in warnings)
    logger.debug(
        "Compatibility for %s/%s: compatible=%s with %d finding(s)",
        setup.crankset.id,
        setup.cassette.id,
        compatible,
        len(warnings),
    )
    return CompatibilityCheck(
        compatible=compatible, warnings=tuple(warnings), notes=tuple(notes)
    )


# ---------------------------------------------------------------------------
# Linear cross-chain heuristic
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CrossChainGear:
    chainring: int
    cog: int
    severity: str  # "moderate" or "severe"


@dataclass(frozen=True)
class AvoidGear:
    chainring: int
    cog: int
    reason: str


@dataclass(frozen=True)
class ProblematicGears:
    """Pairs flagged by the linear heuristic."""

    cross_chain: tuple[CrossChainGear, ...] = ()
    avoid: tuple[AvoidGear, ...] = ()


def calculate_chain_line_offset(
    chainring: int, cog: int, setup: DrivetrainSetup
) -> float:
    """Rough lateral offset in mm between the crankset and a cog.

    Cogs are spaced 4.5 mm apart around a 43.5 mm centreline regardless of
    the cassette; the chainring is not used.
    """
    cogs = setup.cassette.cogs
    cog_index = cogs.index(cog)
    centre_index = (len(cogs) - 1) / 2.0
    rear = ESTIMATE_CASSETTE_CENTERLINE_MM + (cog_index - centre_index) * (
        ESTIMATE_COG_SPACING_MM
    )
    return abs(setup.crankset.chain_line - rear)


def get_problematic_gears(setup: DrivetrainSetup) -> ProblematicGears:
    """Flag cross-chained and big-big / small-small pairs.

    A pair is cross-chained when the estimated offset exceeds 10 mm
    (severe above 15 mm).  On multi-ring setups the big ring with cogs of
    at least 80 % of the largest cog, and the small ring with cogs of at
    most 120 % of the smallest cog, are flagged to avoid.
    """
    chainrings = setup.crankset.chainrings
    cogs = setup.cassette.cogs
    cross_chain: list[CrossChainGear] = []
    avoid: list[AvoidGear] = []

    for front in chainrings:
        for rear in cogs:
            offset = calculate_chain_line_offset(front, rear, setup)
            if offset > CROSS_CHAIN_OFFSET_MM:
                severity = (
                    "severe" if offset > SEVERE_CROSS_CHAIN_OFFSET_MM else "moderate"
                )
                cross_chain.append(CrossChainGear(front, rear, severity))

            if len(chainrings) > 1:
                if front == chainrings[-1] and rear >= cogs[-1] * 0.8:
                    avoid.append(
                        AvoidGear(
                            front,
                            rear,
                            "Big ring + big cog causes excessive cross-chaining",
                        )
                    )
                if front == chainrings[0] and rear <= cogs[0] * 1.2:
                    avoid.append(
                        AvoidGear(
                            front,
                            rear,
                            "Small ring + small cog causes excessive cross-chaining",
                        )
                    )

    return ProblematicGears(cross_chain=tuple(cross_chain), avoid=tuple(avoid))
