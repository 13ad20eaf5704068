"""Tests for the component registry over the seed catalog."""

import pytest

from drivetrain_engine.core.compatibility import check_drivetrain_compatibility
from drivetrain_engine.core.components import Cassette, Chain
from drivetrain_engine.core.setup import WheelSetup
from drivetrain_engine.data_ingestion.registry import ComponentRegistry
from drivetrain_engine.errors import DrivetrainError, UnresolvedReference

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _sample_registry() -> ComponentRegistry:
    return ComponentRegistry.from_catalog()


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------


def test_catalog_loads_every_component() -> None:
    registry = _sample_registry()
    assert len(registry) == 20
    assert "shimano-105-r7000-11-32" in registry
    assert "campagnolo-record" not in registry


def test_get_returns_typed_component() -> None:
    cassette = _sample_registry().cassette("shimano-105-r7000-11-32")
    assert isinstance(cassette, Cassette)
    assert cassette.cogs[0] == 11
    assert cassette.cogs[-1] == 32


def test_unknown_id_raises_unresolved_reference() -> None:
    registry = _sample_registry()
    with pytest.raises(UnresolvedReference):
        registry.get("does-not-exist")
    # Also a KeyError and a DrivetrainError for callers catching either.
    with pytest.raises(KeyError):
        registry.get("does-not-exist")
    with pytest.raises(DrivetrainError):
        registry.chain("does-not-exist")


def test_wrong_kind_raises_unresolved_reference() -> None:
    with pytest.raises(UnresolvedReference, match="crankset"):
        _sample_registry().cassette("shimano-105-r7000-50-34")


def test_duplicate_ids_rejected() -> None:
    chain = _sample_registry().chain("shimano-105-cn-hg601-11")
    with pytest.raises(ValueError):
        ComponentRegistry([chain, chain])


# ---------------------------------------------------------------------------
# Listing and search
# ---------------------------------------------------------------------------


def test_cranksets_by_bike_type() -> None:
    registry = _sample_registry()
    assert len(registry.cranksets("road")) == 3
    assert len(registry.cranksets("mtb")) == 3
    assert registry.cranksets("bmx") == []


def test_cassettes_by_speed() -> None:
    registry = _sample_registry()
    twelve = registry.cassettes(speeds=12)
    assert len(twelve) == 3
    assert all(c.speeds == 12 for c in twelve)
    assert [c.id for c in registry.cassettes("road", 11)] == ["shimano-105-r7000-11-32"]


def test_select_by_speed_excludes_cranksets() -> None:
    matches = _sample_registry().select(speeds=11)
    assert matches
    assert all(c.kind != "crankset" for c in matches)


def test_select_unknown_kind_raises() -> None:
    with pytest.raises(ValueError):
        _sample_registry().select("saddle")


def test_chains_filtered_by_bike_type_and_speed() -> None:
    chains = _sample_registry().chains("mtb", 12)
    assert {c.id for c in chains} == {"shimano-xt-cn-m8100-12", "sram-gx-eagle-12"}
    assert all(isinstance(c, Chain) for c in chains)


def test_search_is_case_insensitive() -> None:
    registry = _sample_registry()
    matches = registry.search("EAGLE")
    assert len(matches) == 4
    assert [c.id for c in registry.search("eagle", kind="chain")] == ["sram-gx-eagle-12"]


def test_search_without_match() -> None:
    assert _sample_registry().search("dura-ace") == []


# ---------------------------------------------------------------------------
# Setup assembly
# ---------------------------------------------------------------------------


def test_build_reference_road_setup() -> None:
    setup = _sample_registry().build_setup(
        bike_type="road",
        crankset_id="shimano-105-r7000-50-34",
        cassette_id="shimano-105-r7000-11-32",
        rear_derailleur_id="shimano-105-r7000-gs",
        chain_id="shimano-105-cn-hg601-11",
        wheel_setup=WheelSetup(tire_size="700x25c", rim_width=19),
        crank_length=172.5,
        front_derailleur_id="shimano-105-r7000-fd",
        bottom_bracket="BSA",
    )
    assert setup.crankset.chainrings == (34, 50)
    assert setup.front_derailleur is not None
    assert check_drivetrain_compatibility(setup).compatible


def test_build_short_cage_setup_is_incompatible() -> None:
    setup = _sample_registry().build_setup(
        bike_type="road",
        crankset_id="shimano-105-r7000-50-34",
        cassette_id="shimano-105-r7000-11-32",
        rear_derailleur_id="shimano-105-r7000-ss",
        chain_id="shimano-105-cn-hg601-11",
    )
    assert not check_drivetrain_compatibility(setup).compatible


def test_build_setup_with_unknown_part() -> None:
    registry = _sample_registry()
    with pytest.raises(UnresolvedReference):
        registry.build_setup(
            bike_type="road",
            crankset_id="shimano-105-r7000-50-34",
            cassette_id="shimano-105-r7000-11-32",
            rear_derailleur_id="shimano-105-r7000-gs",
            chain_id="missing-chain",
        )
