"""Drivetrain setup assembled from catalog components for one session."""

from __future__ import annotations

from dataclasses import dataclass

from drivetrain_engine.core.components import (
    BIKE_TYPES,
    BOTTOM_BRACKET_STANDARDS,
    Cassette,
    Chain,
    Crankset,
    FrontDerailleur,
    RearDerailleur,
)
from drivetrain_engine.errors import InvalidComponentData


@dataclass(frozen=True)
class WheelSetup:
    """Tire and rim combination used to resolve the wheel circumference.

    Attributes:
        tire_size: Tire label such as ``"700x25c"`` or ``"29x2.4"``.
        rim_width: Internal rim width in mm.
        pressure: Inflation pressure in psi, if known.
    """

    tire_size: str
    rim_width: float
    pressure: float | None = None

    def __post_init__(self) -> None:
        if not self.tire_size:
            raise InvalidComponentData("tire_size must not be empty.")
        if self.rim_width is None or self.rim_width <= 0:
            raise InvalidComponentData(
                f"rim_width must be > 0, got {self.rim_width!r}."
            )
        if self.pressure is not None and self.pressure <= 0:
            raise InvalidComponentData(
                f"pressure must be > 0, got {self.pressure!r}."
            )


@dataclass(frozen=True)
class DrivetrainSetup:
    """A complete drivetrain as selected by the user.

    ``wheel_setup`` and ``crank_length`` are only needed by the gear
    calculator; the compatibility engine works without them.  The optional
    ``hub_spacing`` and ``chain_stay_length`` override the per-bike-type
    defaults of the chain-line model.

    Attributes:
        bike_type: One of :data:`~drivetrain_engine.core.components.BIKE_TYPES`.
        crankset: Selected crankset.
        cassette: Selected cassette.
        rear_derailleur: Selected rear derailleur.
        chain: Selected chain.
        wheel_setup: Tire/rim combination.
        crank_length: Selected crank arm length in mm.
        front_derailleur: Front derailleur, ``None`` for 1x setups.
        bottom_bracket: Frame bottom-bracket standard, if known.
        hub_spacing: Rear hub spacing in mm.
        chain_stay_length: Chain stay length in mm.
    """

    bike_type: str
    crankset: Crankset
    cassette: Cassette
    rear_derailleur: RearDerailleur
    chain: Chain
    wheel_setup: WheelSetup | None = None
    crank_length: float | None = None
    front_derailleur: FrontDerailleur | None = None
    bottom_bracket: str | None = None
    hub_spacing: float | None = None
    chain_stay_length: float | None = None

    def __post_init__(self) -> None:
        """Validate setup parameters."""
        if self.bike_type not in BIKE_TYPES:
            raise InvalidComponentData(
                f"bike_type must be one of {BIKE_TYPES}, got {self.bike_type!r}."
            )
        if (
            self.bottom_bracket is not None
            and self.bottom_bracket not in BOTTOM_BRACKET_STANDARDS
        ):
            raise InvalidComponentData(
                f"Unknown bottom bracket standard {self.bottom_bracket!r}."
            )
        if self.hub_spacing is not None and self.hub_spacing <= 0:
            raise InvalidComponentData("hub_spacing must be > 0.")
        if self.chain_stay_length is not None and self.chain_stay_length <= 0:
            raise InvalidComponentData("chain_stay_length must be > 0.")

    @property
    def component_ids(self) -> dict[str, str | None]:
        """IDs of every selected component, keyed by role."""
        return {
            "crankset": self.crankset.id,
            "cassette": self.cassette.id,
            "rear_derailleur": self.rear_derailleur.id,
            "chain": self.chain.id,
            "front_derailleur": (
                self.front_derailleur.id if self.front_derailleur else None
            ),
        }
