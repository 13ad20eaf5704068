"""Tests for component models and setup validation."""

import pytest

from drivetrain_engine.core.components import (
    COMPONENT_TYPES,
    Cassette,
    Chain,
    Crankset,
    FrontDerailleur,
    RearDerailleur,
)
from drivetrain_engine.core.setup import DrivetrainSetup, WheelSetup
from drivetrain_engine.errors import DrivetrainError, InvalidComponentData

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_BASE: dict = {
    "manufacturer": "Shimano",
    "model": "105 R7000",
    "year": 2018,
    "weight": 700.0,
    "bike_type": "road",
    "msrp": 100.0,
}


def _sample_crankset(**overrides) -> Crankset:
    fields = dict(
        _BASE,
        id="crank-50-34",
        chainrings=(34, 50),
        chain_line=43.5,
        crank_lengths=(170, 172.5),
        bcd_major=110,
        bottom_brackets=("BSA", "BB86"),
    )
    fields.update(overrides)
    return Crankset(**fields)


def _sample_cassette(**overrides) -> Cassette:
    fields = dict(
        _BASE,
        id="cassette-11-32",
        speeds=11,
        cog_range=(11, 32),
        cogs=(11, 12, 13, 14, 16, 18, 20, 22, 25, 28, 32),
        freehub_type="shimano-11",
    )
    fields.update(overrides)
    return Cassette(**fields)


def _sample_derailleur(**overrides) -> RearDerailleur:
    fields = dict(
        _BASE,
        id="rd-gs",
        speeds=11,
        max_cog_size=34,
        total_capacity=39,
        cage_length="GS",
        cable_pull=3.4,
        brand="shimano",
    )
    fields.update(overrides)
    return RearDerailleur(**fields)


def _sample_chain(**overrides) -> Chain:
    fields = dict(_BASE, id="chain-11", speeds=11, width=5.5, links=118, brand="shimano")
    fields.update(overrides)
    return Chain(**fields)


# ---------------------------------------------------------------------------
# Crankset
# ---------------------------------------------------------------------------


def test_crankset_stores_sequences_as_tuples() -> None:
    """Lists passed to a crankset must be frozen into tuples."""
    crank = _sample_crankset(chainrings=[34, 50], crank_lengths=[170], bottom_brackets=["BSA"])
    assert crank.chainrings == (34, 50)
    assert crank.crank_lengths == (170,)
    assert crank.bottom_brackets == ("BSA",)


def test_crankset_rejects_descending_chainrings() -> None:
    """Chainrings must be listed smallest first."""
    with pytest.raises(InvalidComponentData, match="ascending"):
        _sample_crankset(chainrings=(50, 34))


def test_crankset_rejects_duplicate_chainrings() -> None:
    with pytest.raises(InvalidComponentData, match="duplicates"):
        _sample_crankset(chainrings=(34, 34))


def test_crankset_rejects_unknown_bottom_bracket() -> None:
    with pytest.raises(InvalidComponentData):
        _sample_crankset(bottom_brackets=("BSA", "XYZ99"))


def test_chainring_spread() -> None:
    """Spread is largest minus smallest ring, zero for a single ring."""
    assert _sample_crankset().chainring_spread == 16
    assert _sample_crankset(chainrings=(32,)).chainring_spread == 0
    assert _sample_crankset(chainrings=()).chainring_spread == 0


def test_label_joins_manufacturer_and_model() -> None:
    assert _sample_crankset().label == "Shimano 105 R7000"


# ---------------------------------------------------------------------------
# Cassette
# ---------------------------------------------------------------------------


def test_cassette_cog_spread() -> None:
    assert _sample_cassette().cog_spread == 21


def test_cassette_rejects_cogs_outside_cog_range() -> None:
    """The first and last cog must match the declared cog range."""
    with pytest.raises(InvalidComponentData, match="cog_range"):
        _sample_cassette(cog_range=(11, 34))


def test_cassette_rejects_unsorted_cogs() -> None:
    with pytest.raises(InvalidComponentData):
        _sample_cassette(cogs=(11, 13, 12, 14, 16, 18, 20, 22, 25, 28, 32))


def test_cassette_allows_empty_cogs() -> None:
    assert _sample_cassette(cogs=()).cogs == ()


def test_cassette_rejects_zero_speeds() -> None:
    with pytest.raises(InvalidComponentData):
        _sample_cassette(speeds=0)


def test_cassette_rejects_unknown_freehub() -> None:
    with pytest.raises(InvalidComponentData, match="freehub_type"):
        _sample_cassette(freehub_type="hyperglide-plus")


# ---------------------------------------------------------------------------
# Derailleurs, chain and base fields
# ---------------------------------------------------------------------------


def test_wireless_derailleur_has_zero_cable_pull() -> None:
    assert _sample_derailleur(cable_pull=0).wireless
    assert not _sample_derailleur().wireless


def test_derailleur_rejects_unknown_cage_length() -> None:
    with pytest.raises(InvalidComponentData):
        _sample_derailleur(cage_length="XL")


def test_front_derailleur_requires_positive_chainring_diff() -> None:
    with pytest.raises(InvalidComponentData):
        FrontDerailleur(
            **_BASE,
            id="fd",
            speeds=11,
            max_chainring_diff=0,
            clamp_type="braze-on",
            cable_pull=3.4,
            brand="shimano",
        )


@pytest.mark.parametrize("field, value", [("weight", 0), ("year", -1), ("msrp", -5)])
def test_base_fields_are_validated(field: str, value: float) -> None:
    """Zero or negative shared numeric fields must fail fast."""
    with pytest.raises(InvalidComponentData):
        _sample_chain(**{field: value})


def test_unknown_bike_type_rejected() -> None:
    with pytest.raises(InvalidComponentData, match="bike_type"):
        _sample_chain(bike_type="tandem")


def test_invalid_component_data_is_a_value_error() -> None:
    """Callers catching ValueError must also catch component errors."""
    assert issubclass(InvalidComponentData, ValueError)
    assert issubclass(InvalidComponentData, DrivetrainError)


def test_component_types_cover_every_kind() -> None:
    assert set(COMPONENT_TYPES) == {
        "crankset",
        "cassette",
        "rear_derailleur",
        "front_derailleur",
        "chain",
    }
    assert COMPONENT_TYPES["chain"] is Chain


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def _sample_setup(**overrides) -> DrivetrainSetup:
    fields = dict(
        bike_type="road",
        crankset=_sample_crankset(),
        cassette=_sample_cassette(),
        rear_derailleur=_sample_derailleur(),
        chain=_sample_chain(),
    )
    fields.update(overrides)
    return DrivetrainSetup(**fields)


def test_setup_component_ids() -> None:
    ids = _sample_setup().component_ids
    assert ids["crankset"] == "crank-50-34"
    assert ids["front_derailleur"] is None


def test_setup_rejects_unknown_bottom_bracket() -> None:
    with pytest.raises(InvalidComponentData):
        _sample_setup(bottom_bracket="XYZ99")


def test_setup_rejects_non_positive_hub_spacing() -> None:
    with pytest.raises(InvalidComponentData):
        _sample_setup(hub_spacing=0)


@pytest.mark.parametrize(
    "rim_width, pressure",
    [(0, None), (-4000, None), (19, 0), (19, -80)],
)
def test_wheel_setup_rejects_non_positive_inputs(rim_width: float, pressure) -> None:
    """A non-positive rim width would drive the circumference negative."""
    with pytest.raises(InvalidComponentData):
        WheelSetup(tire_size="700x32c", rim_width=rim_width, pressure=pressure)


def test_wheel_setup_rejects_empty_tire_size() -> None:
    with pytest.raises(InvalidComponentData, match="tire_size"):
        WheelSetup(tire_size="", rim_width=19)


def test_wheel_setup_accepts_pressure() -> None:
    wheel = WheelSetup(tire_size="700x28c", rim_width=21, pressure=80)
    assert wheel.pressure == 80
