"""Component models for the drivetrain engine.

Components are immutable reference data.  Every required numeric field is
validated on construction so that bad records fail fast with
:class:`~drivetrain_engine.errors.InvalidComponentData` instead of
producing nonsense ratios further down the line.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar

from drivetrain_engine.errors import InvalidComponentData

# ---------------------------------------------------------------------------
# Vocabularies
# ---------------------------------------------------------------------------

BIKE_TYPES: tuple[str, ...] = ("road", "gravel", "mtb", "hybrid", "bmx")

BOTTOM_BRACKET_STANDARDS: tuple[str, ...] = (
    "BSA",
    "ITA",
    "BB30",
    "PF30",
    "BB86",
    "BB90",
    "BB92",
    "PF92",
    "T47",
    "BB107",
    "Other",
)

PRESS_FIT_BOTTOM_BRACKETS: frozenset[str] = frozenset(
    {"BB30", "PF30", "BB86", "BB90", "BB92", "PF92", "BB107"}
)
THREADED_BOTTOM_BRACKETS: frozenset[str] = frozenset({"BSA", "ITA", "T47"})

FREEHUB_TYPES: tuple[str, ...] = (
    "shimano-11",
    "shimano-12",
    "sram-xdr",
    "sram-xd",
    "campagnolo-11",
    "campagnolo-13",
    "standard-8-10",
)

CAGE_LENGTHS: tuple[str, ...] = ("SS", "GS", "SGS", "max")


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _require_positive(owner: str, name: str, value: float) -> None:
    if value is None or value <= 0:
        raise InvalidComponentData(f"{owner}: {name} must be > 0, got {value!r}.")


def _require_teeth(owner: str, name: str, teeth: tuple[int, ...]) -> None:
    """Teeth counts must be positive, unique and sorted ascending."""
    for t in teeth:
        if t <= 0:
            raise InvalidComponentData(
                f"{owner}: {name} must be positive tooth counts, got {t!r}."
            )
    if list(teeth) != sorted(teeth):
        raise InvalidComponentData(f"{owner}: {name} must be sorted ascending.")
    if len(set(teeth)) != len(teeth):
        raise InvalidComponentData(f"{owner}: {name} must not contain duplicates.")


# ---------------------------------------------------------------------------
# Base component
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Component:
    """Fields shared by every drivetrain component.

    Attributes:
        id: Catalog identifier (e.g. ``"shimano-105-r7000-11-32"``).
        manufacturer: Manufacturer name.
        model: Model name.
        year: Model year.
        weight: Weight in grams.
        bike_type: One of :data:`BIKE_TYPES`.
        msrp: List price in USD.
    """

    kind: ClassVar[str] = "component"

    id: str
    manufacturer: str
    model: str
    year: int
    weight: float
    bike_type: str
    msrp: float

    def __post_init__(self) -> None:
        if not self.id:
            raise InvalidComponentData("Component id must not be empty.")
        if not self.manufacturer:
            raise InvalidComponentData(f"{self.id}: manufacturer must not be empty.")
        if self.bike_type not in BIKE_TYPES:
            raise InvalidComponentData(
                f"{self.id}: bike_type must be one of {BIKE_TYPES}, "
                f"got {self.bike_type!r}."
            )
        _require_positive(self.id, "year", self.year)
        _require_positive(self.id, "weight", self.weight)
        if self.msrp is None or self.msrp < 0:
            raise InvalidComponentData(f"{self.id}: msrp must be >= 0.")

    @property
    def label(self) -> str:
        """Human-readable ``"<manufacturer> <model>"`` label."""
        return f"{self.manufacturer} {self.model}"


# ---------------------------------------------------------------------------
# Concrete components
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Crankset(Component):
    """Crankset with its chainrings and bottom-bracket interface.

    Attributes:
        chainrings: Chainring tooth counts, ascending (may be empty).
        chain_line: Nominal front chain line in mm from the bike centreline.
        crank_lengths: Available crank arm lengths in mm.
        bcd_major: Bolt circle diameter of the outer ring in mm.
        bottom_brackets: Supported bottom-bracket standards.
        bcd_minor: Bolt circle diameter of the inner ring, if different.
        max_chainring_size: Largest ring the spider accepts.
        min_chainring_size: Smallest ring the spider accepts.
    """

    kind: ClassVar[str] = "crankset"

    chainrings: tuple[int, ...]
    chain_line: float
    crank_lengths: tuple[float, ...]
    bcd_major: float
    bottom_brackets: tuple[str, ...]
    bcd_minor: float | None = None
    max_chainring_size: int | None = None
    min_chainring_size: int | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "chainrings", tuple(self.chainrings))
        object.__setattr__(self, "crank_lengths", tuple(self.crank_lengths))
        object.__setattr__(self, "bottom_brackets", tuple(self.bottom_brackets))
        _require_teeth(self.id, "chainrings", self.chainrings)
        _require_positive(self.id, "chain_line", self.chain_line)
        _require_positive(self.id, "bcd_major", self.bcd_major)
        if self.bcd_minor is not None:
            _require_positive(self.id, "bcd_minor", self.bcd_minor)
        for length in self.crank_lengths:
            _require_positive(self.id, "crank_lengths", length)
        for standard in self.bottom_brackets:
            if standard not in BOTTOM_BRACKET_STANDARDS:
                raise InvalidComponentData(
                    f"{self.id}: unknown bottom bracket standard {standard!r}."
                )

    @property
    def chainring_spread(self) -> int:
        """Tooth difference between largest and smallest ring (0 for 1x)."""
        if len(self.chainrings) < 2:
            return 0
        return self.chainrings[-1] - self.chainrings[0]


@dataclass(frozen=True)
class Cassette(Component):
    """Rear cassette.

    Attributes:
        speeds: Number of sprockets the drivetrain is designed for.
        cog_range: ``(smallest, largest)`` tooth counts.
        cogs: Every cog, ascending; bounds must match ``cog_range``.
        freehub_type: Freehub standard the cassette mounts on.
        stack_height: Cassette stack height in mm, if known.
    """

    kind: ClassVar[str] = "cassette"

    speeds: int
    cog_range: tuple[int, int]
    cogs: tuple[int, ...]
    freehub_type: str
    stack_height: float | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "cog_range", tuple(self.cog_range))
        object.__setattr__(self, "cogs", tuple(self.cogs))
        _require_positive(self.id, "speeds", self.speeds)
        if len(self.cog_range) != 2:
            raise InvalidComponentData(f"{self.id}: cog_range must be (min, max).")
        _require_positive(self.id, "cog_range", self.cog_range[0])
        if self.cog_range[0] > self.cog_range[1]:
            raise InvalidComponentData(f"{self.id}: cog_range must be (min, max).")
        _require_teeth(self.id, "cogs", self.cogs)
        if self.cogs and (
            self.cogs[0] != self.cog_range[0] or self.cogs[-1] != self.cog_range[1]
        ):
            raise InvalidComponentData(
                f"{self.id}: cogs {self.cogs[0]}-{self.cogs[-1]} do not match "
                f"cog_range {self.cog_range[0]}-{self.cog_range[1]}."
            )
        if self.freehub_type not in FREEHUB_TYPES:
            raise InvalidComponentData(
                f"{self.id}: freehub_type must be one of {FREEHUB_TYPES}, "
                f"got {self.freehub_type!r}."
            )

    @property
    def cog_spread(self) -> int:
        """Tooth difference between largest and smallest cog."""
        return self.cog_range[1] - self.cog_range[0]


@dataclass(frozen=True)
class RearDerailleur(Component):
    """Rear derailleur.

    Attributes:
        speeds: Speed count the derailleur indexes for.
        max_cog_size: Largest cog the upper pulley clears.
        total_capacity: Total teeth of slack the cage can absorb.
        cage_length: One of :data:`CAGE_LENGTHS`.
        cable_pull: Cable pull per shift in mm (``0`` = wireless).
        brand: Groupset brand (``shimano``, ``sram``, ...).
    """

    kind: ClassVar[str] = "rear_derailleur"

    speeds: int
    max_cog_size: int
    total_capacity: int
    cage_length: str
    cable_pull: float
    brand: str

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_positive(self.id, "speeds", self.speeds)
        _require_positive(self.id, "max_cog_size", self.max_cog_size)
        _require_positive(self.id, "total_capacity", self.total_capacity)
        if self.cage_length not in CAGE_LENGTHS:
            raise InvalidComponentData(
                f"{self.id}: cage_length must be one of {CAGE_LENGTHS}."
            )
        if self.cable_pull is None or self.cable_pull < 0:
            raise InvalidComponentData(f"{self.id}: cable_pull must be >= 0.")
        if not self.brand:
            raise InvalidComponentData(f"{self.id}: brand must not be empty.")

    @property
    def wireless(self) -> bool:
        return self.cable_pull == 0


@dataclass(frozen=True)
class FrontDerailleur(Component):
    """Front derailleur.

    Attributes:
        speeds: Speed count of the matching groupset.
        max_chainring_diff: Largest chainring tooth difference supported.
        clamp_type: ``braze-on``, ``clamp`` or ``direct-mount``.
        cable_pull: Cable pull per shift in mm (``0`` = wireless).
        brand: Groupset brand.
    """

    kind: ClassVar[str] = "front_derailleur"

    speeds: int
    max_chainring_diff: int
    clamp_type: str
    cable_pull: float
    brand: str

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_positive(self.id, "speeds", self.speeds)
        _require_positive(self.id, "max_chainring_diff", self.max_chainring_diff)
        if self.cable_pull is None or self.cable_pull < 0:
            raise InvalidComponentData(f"{self.id}: cable_pull must be >= 0.")
        if not self.brand:
            raise InvalidComponentData(f"{self.id}: brand must not be empty.")


@dataclass(frozen=True)
class Chain(Component):
    """Chain.

    Attributes:
        speeds: Speed count the chain is designed for.
        width: Internal width in mm.
        links: Number of links as sold.
        brand: Chain brand.
    """

    kind: ClassVar[str] = "chain"

    speeds: int
    width: float
    links: int
    brand: str

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_positive(self.id, "speeds", self.speeds)
        _require_positive(self.id, "width", self.width)
        _require_positive(self.id, "links", self.links)
        if not self.brand:
            raise InvalidComponentData(f"{self.id}: brand must not be empty.")


COMPONENT_TYPES: dict[str, type[Component]] = {
    cls.kind: cls
    for cls in (Crankset, Cassette, RearDerailleur, FrontDerailleur, Chain)
}
