"""In-memory component registry and setup assembly."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator, TypeVar

from drivetrain_engine.config import load_component_catalog
from drivetrain_engine.core.components import (
    COMPONENT_TYPES,
    Cassette,
    Chain,
    Component,
    Crankset,
    FrontDerailleur,
    RearDerailleur,
)
from drivetrain_engine.core.setup import DrivetrainSetup, WheelSetup
from drivetrain_engine.errors import UnresolvedReference

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=Component)


class ComponentRegistry:
    """Lookup, listing and search over a fixed set of components.

    The registry is built once from reference data and never mutated.

    Args:
        components: Components to register.  IDs must be unique.

    Raises:
        ValueError: If two components share an ID.
    """

    def __init__(self, components: Iterable[Component]) -> None:
        self._components: dict[str, Component] = {}
        for component in components:
            if component.id in self._components:
                raise ValueError(f"Duplicate component id {component.id!r}")
            self._components[component.id] = component
        logger.debug("Registry holds %d components", len(self._components))

    @classmethod
    def from_catalog(cls, path: Path | None = None) -> ComponentRegistry:
        """Build a registry from the YAML seed catalog."""
        return cls(load_component_catalog(path))

    def __len__(self) -> int:
        return len(self._components)

    def __contains__(self, component_id: object) -> bool:
        return component_id in self._components

    def __iter__(self) -> Iterator[Component]:
        return iter(self._components.values())

    # -- lookup ---------------------------------------------------------------

    def get(self, component_id: str) -> Component:
        """Return the component with *component_id*.

        Raises:
            UnresolvedReference: If the ID is unknown.
        """
        try:
            return self._components[component_id]
        except KeyError:
            raise UnresolvedReference(
                f"Unknown component id {component_id!r}"
            ) from None

    def _get_kind(self, component_id: str, cls: type[C]) -> C:
        component = self.get(component_id)
        if not isinstance(component, cls):
            raise UnresolvedReference(
                f"Component {component_id!r} is a {component.kind}, "
                f"not a {cls.kind}"
            )
        return component

    def crankset(self, component_id: str) -> Crankset:
        return self._get_kind(component_id, Crankset)

    def cassette(self, component_id: str) -> Cassette:
        return self._get_kind(component_id, Cassette)

    def rear_derailleur(self, component_id: str) -> RearDerailleur:
        return self._get_kind(component_id, RearDerailleur)

    def front_derailleur(self, component_id: str) -> FrontDerailleur:
        return self._get_kind(component_id, FrontDerailleur)

    def chain(self, component_id: str) -> Chain:
        return self._get_kind(component_id, Chain)

    # -- listing --------------------------------------------------------------

    def select(
        self,
        kind: str | None = None,
        bike_type: str | None = None,
        speeds: int | None = None,
    ) -> list[Component]:
        """Components matching every given filter, in registration order.

        ``speeds`` only matches components that carry a speed count, so
        cranksets are excluded whenever it is given.

        Raises:
            ValueError: If *kind* is not a known component type.
        """
        if kind is not None and kind not in COMPONENT_TYPES:
            raise ValueError(f"Unknown component type {kind!r}")
        matches = []
        for component in self._components.values():
            if kind is not None and component.kind != kind:
                continue
            if bike_type is not None and component.bike_type != bike_type:
                continue
            if speeds is not None and getattr(component, "speeds", None) != speeds:
                continue
            matches.append(component)
        return matches

    def cranksets(self, bike_type: str | None = None) -> list[Crankset]:
        return self.select("crankset", bike_type)  # type: ignore[return-value]

    def cassettes(
        self, bike_type: str | None = None, speeds: int | None = None
    ) -> list[Cassette]:
        return self.select("cassette", bike_type, speeds)  # type: ignore[return-value]

    def rear_derailleurs(
        self, bike_type: str | None = None, speeds: int | None = None
    ) -> list[RearDerailleur]:
        return self.select("rear_derailleur", bike_type, speeds)  # type: ignore[return-value]

    def front_derailleurs(
        self, bike_type: str | None = None, speeds: int | None = None
    ) -> list[FrontDerailleur]:
        return self.select("front_derailleur", bike_type, speeds)  # type: ignore[return-value]

    def chains(
        self, bike_type: str | None = None, speeds: int | None = None
    ) -> list[Chain]:
        return self.select("chain", bike_type, speeds)  # type: ignore[return-value]

    def search(self, query: str, kind: str | None = None) -> list[Component]:
        """Case-insensitive substring search over id, manufacturer and model."""
        needle = query.strip().lower()
        return [
            c
            for c in self.select(kind)
            if needle in c.id.lower()
            or needle in c.manufacturer.lower()
            or needle in c.model.lower()
        ]

    # -- setup assembly -------------------------------------------------------

    def build_setup(
        self,
        bike_type: str,
        crankset_id: str,
        cassette_id: str,
        rear_derailleur_id: str,
        chain_id: str,
        wheel_setup: WheelSetup | None = None,
        crank_length: float | None = None,
        front_derailleur_id: str | None = None,
        bottom_bracket: str | None = None,
        hub_spacing: float | None = None,
        chain_stay_length: float | None = None,
    ) -> DrivetrainSetup:
        """Assemble a :class:`DrivetrainSetup` from component IDs.

        Raises:
            UnresolvedReference: If an ID is unknown or names a component
                of the wrong kind.
            InvalidComponentData: If the setup parameters are invalid.
        """
        return DrivetrainSetup(
            bike_type=bike_type,
            crankset=self.crankset(crankset_id),
            cassette=self.cassette(cassette_id),
            rear_derailleur=self.rear_derailleur(rear_derailleur_id),
            chain=self.chain(chain_id),
            wheel_setup=wheel_setup,
            crank_length=crank_length,
            front_derailleur=(
                self.front_derailleur(front_derailleur_id)
                if front_derailleur_id is not None
                else None
            ),
            bottom_bracket=bottom_bracket,
            hub_spacing=hub_spacing,
            chain_stay_length=chain_stay_length,
        )
