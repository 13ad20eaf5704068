"""Tests for the compatibility rule engine."""

import pytest

from drivetrain_engine.core.compatibility import (
    COMPATIBILITY_RULES,
    CRITICAL,
    INFO,
    WARNING,
    CompatibilityWarning,
    calculate_chain_line_offset,
    check_drivetrain_compatibility,
    get_problematic_gears,
    required_capacity,
)
from drivetrain_engine.core.components import (
    Cassette,
    Chain,
    Crankset,
    FrontDerailleur,
    RearDerailleur,
)
from drivetrain_engine.core.setup import DrivetrainSetup

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_BASE: dict = {
    "manufacturer": "Shimano",
    "model": "Test",
    "year": 2018,
    "weight": 500.0,
    "bike_type": "road",
    "msrp": 100.0,
}

_ROAD_COGS: tuple[int, ...] = (11, 12, 13, 14, 16, 18, 20, 22, 25, 28, 32)
_MTB_COGS: tuple[int, ...] = (10, 12, 14, 16, 18, 21, 24, 28, 33, 39, 45, 51)


def _crankset(chainrings=(34, 50), chain_line=43.5, bottom_brackets=("BSA", "BB86")) -> Crankset:
    return Crankset(
        **_BASE,
        id="crank",
        chainrings=chainrings,
        chain_line=chain_line,
        crank_lengths=(172.5,),
        bcd_major=110,
        bottom_brackets=bottom_brackets,
    )


def _cassette(speeds=11, cogs=_ROAD_COGS, freehub_type="shimano-11") -> Cassette:
    return Cassette(
        **_BASE,
        id="cassette",
        speeds=speeds,
        cog_range=(cogs[0], cogs[-1]),
        cogs=cogs,
        freehub_type=freehub_type,
    )


def _derailleur(speeds=11, max_cog_size=34, total_capacity=39, cable_pull=3.4, brand="shimano") -> RearDerailleur:
    return RearDerailleur(
        **_BASE,
        id="rd",
        speeds=speeds,
        max_cog_size=max_cog_size,
        total_capacity=total_capacity,
        cage_length="GS",
        cable_pull=cable_pull,
        brand=brand,
    )


def _chain(speeds=11, width=5.5) -> Chain:
    return Chain(**_BASE, id="chain", speeds=speeds, width=width, links=118, brand="shimano")


def _front_derailleur(speeds=11, max_chainring_diff=16, brand="shimano") -> FrontDerailleur:
    return FrontDerailleur(
        **_BASE,
        id="fd",
        speeds=speeds,
        max_chainring_diff=max_chainring_diff,
        clamp_type="braze-on",
        cable_pull=3.4,
        brand=brand,
    )


def _sample_setup(**overrides) -> DrivetrainSetup:
    """Return the 105 road reference setup (50/34, 11-32, GS derailleur)."""
    fields = dict(
        bike_type="road",
        crankset=_crankset(),
        cassette=_cassette(),
        rear_derailleur=_derailleur(),
        chain=_chain(),
    )
    fields.update(overrides)
    return DrivetrainSetup(**fields)


def _critical(check) -> list[CompatibilityWarning]:
    return [w for w in check.warnings if w.severity == CRITICAL]


# ---------------------------------------------------------------------------
# Reference scenarios
# ---------------------------------------------------------------------------


def test_reference_road_setup_is_compatible() -> None:
    """50/34 with 11-32 on a GS cage fits, close to the capacity limit."""
    check = check_drivetrain_compatibility(_sample_setup())
    assert check.compatible
    assert _critical(check) == []
    issues = [w.issue for w in check.warnings]
    assert "Near capacity limit: Using 37T of 39T capacity" in issues


def test_short_cage_capacity_failure() -> None:
    """(50 - 34) + (32 - 11) = 37 teeth exceed a 33 tooth cage."""
    setup = _sample_setup(rear_derailleur=_derailleur(total_capacity=33))
    check = check_drivetrain_compatibility(setup)
    assert not check.compatible
    critical = _critical(check)
    assert len(critical) == 1
    assert "37" in critical[0].issue
    assert "33" in critical[0].issue
    assert critical[0].component == "rear_derailleur"


def test_max_cog_failure() -> None:
    """A 51T cog cannot be reached by a derailleur limited to 34T."""
    setup = DrivetrainSetup(
        bike_type="mtb",
        crankset=_crankset(chainrings=(32,), chain_line=52.0, bottom_brackets=("BSA",)),
        cassette=_cassette(speeds=12, cogs=_MTB_COGS, freehub_type="shimano-12"),
        rear_derailleur=_derailleur(speeds=12, max_cog_size=34, total_capacity=47),
        chain=_chain(speeds=12, width=5.25),
    )
    check = check_drivetrain_compatibility(setup)
    critical = _critical(check)
    assert len(critical) == 1
    assert "51" in critical[0].issue
    assert "34" in critical[0].issue


def test_speed_mismatch_reported_once() -> None:
    """11-speed cassette and derailleur with a 12-speed chain."""
    setup = _sample_setup(chain=_chain(speeds=12, width=5.25))
    check = check_drivetrain_compatibility(setup)
    assert not check.compatible
    critical = _critical(check)
    assert len(critical) == 1
    assert critical[0].issue == "Speed mismatch: Found 11, 12 speeds across components"
    assert critical[0].component == "drivetrain"


# ---------------------------------------------------------------------------
# Individual rules
# ---------------------------------------------------------------------------


def test_required_capacity_ignores_single_ring() -> None:
    setup = _sample_setup(crankset=_crankset(chainrings=(40,)))
    assert required_capacity(setup) == 21


def test_freehub_note_and_warning() -> None:
    setup = _sample_setup(
        cassette=_cassette(speeds=11, freehub_type="sram-xdr"),
    )
    check = check_drivetrain_compatibility(setup)
    assert "Freehub type required: sram-xdr" in check.notes
    freehub = [w for w in check.warnings if w.component == "cassette"]
    assert len(freehub) == 1
    assert freehub[0].severity == WARNING
    assert freehub[0].suggestion == "Verify wheel freehub compatibility before purchase"


def test_standard_freehub_has_no_warning() -> None:
    check = check_drivetrain_compatibility(_sample_setup())
    assert not [w for w in check.warnings if w.component == "cassette"]


def test_non_standard_chain_line_warns() -> None:
    setup = _sample_setup(crankset=_crankset(chain_line=47.0))
    check = check_drivetrain_compatibility(setup)
    issues = [w.issue for w in check.warnings if w.component == "crankset"]
    assert issues == ["Non-standard chain line: 47mm (standard is 43.5mm)"]
    assert "Chain line: 47mm (standard: 43.5mm)" in check.notes


def test_cross_chain_reminder_only_for_multiple_rings() -> None:
    double = check_drivetrain_compatibility(_sample_setup())
    single = check_drivetrain_compatibility(
        _sample_setup(crankset=_crankset(chainrings=(40,)))
    )
    assert any(w.severity == INFO and w.component == "drivetrain" for w in double.warnings)
    assert not any(w.component == "drivetrain" for w in single.warnings)


def test_mixed_brand_front_and_rear() -> None:
    setup = _sample_setup(front_derailleur=_front_derailleur(brand="campagnolo"))
    check = check_drivetrain_compatibility(setup)
    issues = [w.issue for w in check.warnings]
    assert "Mixed brands: campagnolo front / shimano rear" in issues
    assert check.compatible


def test_wireless_derailleur_info() -> None:
    setup = _sample_setup(rear_derailleur=_derailleur(cable_pull=0, brand="sram"))
    check = check_drivetrain_compatibility(setup)
    wireless = [w for w in check.warnings if "Wireless" in w.issue]
    assert len(wireless) == 1
    assert wireless[0].severity == INFO
    assert wireless[0].suggestion == "SRAM AXS requires AXS shifters and battery"


def test_chain_width_mismatch_is_critical() -> None:
    """An 11-speed cassette with a 10-speed-width chain."""
    setup = _sample_setup(chain=_chain(width=5.9))
    check = check_drivetrain_compatibility(setup)
    critical = _critical(check)
    assert len(critical) == 1
    assert critical[0].component == "chain"
    assert "expected ~5.5mm" in critical[0].issue


def test_unsupported_bottom_bracket_is_critical() -> None:
    setup = _sample_setup(bottom_bracket="BB30")
    check = check_drivetrain_compatibility(setup)
    critical = _critical(check)
    assert len(critical) == 1
    assert critical[0].issue == "Crankset not compatible with BB30 bottom bracket"
    assert critical[0].suggestion == "Use one of: BSA, BB86"
    assert "Press-fit bottom bracket - requires proper installation tools" in check.notes


def test_threaded_bottom_bracket_note() -> None:
    check = check_drivetrain_compatibility(_sample_setup(bottom_bracket="BSA"))
    assert check.compatible
    assert "Compatible bottom brackets: BSA, BB86" in check.notes
    assert "Threaded bottom bracket - easier to install and maintain" in check.notes


def test_front_derailleur_capacity_exceeded() -> None:
    setup = _sample_setup(front_derailleur=_front_derailleur(max_chainring_diff=14))
    critical = _critical(check_drivetrain_compatibility(setup))
    assert len(critical) == 1
    assert critical[0].issue == (
        "Chainring difference (16T) exceeds front derailleur limit (14T)"
    )


def test_front_derailleur_on_single_ring_warns() -> None:
    setup = _sample_setup(
        crankset=_crankset(chainrings=(40,)), front_derailleur=_front_derailleur()
    )
    check = check_drivetrain_compatibility(setup)
    assert check.compatible
    assert any(
        w.issue == "Front derailleur specified for 1x (single chainring) setup"
        for w in check.warnings
    )


def test_all_rules_run_without_short_circuit() -> None:
    """Several failures are all reported together."""
    setup = _sample_setup(
        rear_derailleur=_derailleur(max_cog_size=28, total_capacity=30),
        chain=_chain(speeds=12, width=5.25),
    )
    critical = _critical(check_drivetrain_compatibility(setup))
    assert len(critical) == 3


def test_rule_battery_is_fixed() -> None:
    assert len(COMPATIBILITY_RULES) == 9


def test_warning_rejects_unknown_severity() -> None:
    with pytest.raises(ValueError):
        CompatibilityWarning(severity="fatal", component="chain", issue="x")


# ---------------------------------------------------------------------------
# Linear cross-chain heuristic
# ---------------------------------------------------------------------------


def test_chain_line_offset_estimate() -> None:
    setup = _sample_setup()
    assert calculate_chain_line_offset(50, 18, setup) == pytest.approx(0.0)
    assert calculate_chain_line_offset(50, 11, setup) == pytest.approx(22.5)


def test_problematic_gears_reference_setup() -> None:
    result = get_problematic_gears(_sample_setup())
    # Cogs three or more positions from the centre on both rings.
    assert len(result.cross_chain) == 12
    severe = {(g.chainring, g.cog) for g in result.cross_chain if g.severity == "severe"}
    assert (50, 32) in severe
    assert (34, 11) in severe
    avoid = {(g.chainring, g.cog) for g in result.avoid}
    assert avoid == {(50, 28), (50, 32), (34, 11), (34, 12), (34, 13)}


def test_problematic_gears_single_ring_has_no_avoid_list() -> None:
    result = get_problematic_gears(_sample_setup(crankset=_crankset(chainrings=(40,))))
    assert result.avoid == ()
