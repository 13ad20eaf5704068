"""CLI entrypoint for the drivetrain calculation and compatibility engine."""

from __future__ import annotations

import logging
import sys

from drivetrain_engine import __version__
from drivetrain_engine.config import load_tire_resolver
from drivetrain_engine.core.analysis import analyze_drivetrain
from drivetrain_engine.core.gear_table import calculate_gear_range, suggest_gear_for_speed
from drivetrain_engine.core.setup import WheelSetup
from drivetrain_engine.data_ingestion.registry import ComponentRegistry


def main() -> None:
    """Print the gear table and compatibility verdict of a 105 road setup."""
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    print(f"Drivetrain Engine v{__version__}")
    print("=" * 72)

    # -- Load reference data --------------------------------------------------
    registry = ComponentRegistry.from_catalog()
    resolver = load_tire_resolver()
    print(f"\nCatalog: {len(registry)} components loaded")

    setup = registry.build_setup(
        bike_type="road",
        crankset_id="shimano-105-r7000-50-34",
        cassette_id="shimano-105-r7000-11-32",
        rear_derailleur_id="shimano-105-r7000-gs",
        chain_id="shimano-105-cn-hg601-11",
        wheel_setup=WheelSetup(tire_size="700x25c", rim_width=19),
        crank_length=172.5,
        bottom_bracket="BSA",
    )
    circumference = resolver.resolve("700x25c", 19)
    print(f"Crankset : {setup.crankset.label} {setup.crankset.chainrings}")
    print(f"Cassette : {setup.cassette.label} {setup.cassette.cogs}")
    print(
        f"Wheel    : 700x25c on 19mm rim, {circumference.circumference_mm:.0f}mm "
        f"({circumference.confidence})"
    )
    print("-" * 72)

    # -- Gear table -----------------------------------------------------------
    analysis = analyze_drivetrain(setup, resolver)
    print(
        f"\n  {'#':>2}  {'Gear':>7}  {'Ratio':>6}  {'Inches':>6}  {'Gain':>5}  "
        f"{'mph@90':>6}  {'Angle':>5}  {'Eff':>5}  Status"
    )
    for gear in analysis.gears:
        print(
            f"  {gear.gear_number:2d}  {gear.chainring:>3}x{gear.cog:<3}  "
            f"{gear.ratio:6.3f}  {gear.gear_inches:6.1f}  {gear.gain_ratio:5.2f}  "
            f"{gear.speed_at_cadence.rpm90:6.1f}  {gear.cross_chain_angle:5.2f}  "
            f"{gear.efficiency:5.3f}  {gear.status}"
        )

    gear_range = calculate_gear_range(list(analysis.gears))
    print(
        f"\nGears: {analysis.total_gears} ({analysis.unique_ratios} unique), "
        f"range {gear_range.range:.0%}, average step {analysis.average_step:.1f}%, "
        f"largest gap {analysis.largest_gap:.1f}%"
    )
    cruise = suggest_gear_for_speed(list(analysis.gears), 20.0)
    if cruise is not None:
        print(f"Best gear for 20 mph at 90 rpm: {cruise.chainring}x{cruise.cog}")

    # -- Compatibility --------------------------------------------------------
    check = analysis.compatibility
    verdict = "COMPATIBLE" if check.compatible else "NOT COMPATIBLE"
    print(f"\nCompatibility: {verdict}")
    for warning in check.warnings:
        print(f"  [{warning.severity:<8}] {warning.component}: {warning.issue}")
    for note in check.notes:
        print(f"  note: {note}")


if __name__ == "__main__":
    sys.exit(main() or 0)
