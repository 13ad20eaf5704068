"""Configuration loader for the drivetrain engine reference data."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from drivetrain_engine.core.components import COMPONENT_TYPES, Component
from drivetrain_engine.core.tire import TireCircumferenceResolver, TireMeasurement

logger = logging.getLogger(__name__)

DATA_DIR: Path = Path(__file__).resolve().parent.parent / "data"
TIRE_DATABASE_PATH: Path = DATA_DIR / "tires.yaml"
COMPONENT_CATALOG_PATH: Path = DATA_DIR / "components.yaml"

_TIRE_REQUIRED_FIELDS: tuple[str, ...] = (
    "tire_size",
    "rim_width",
    "circumference",
    "source",
)

_TIRE_NUMERIC_FIELDS: tuple[str, ...] = ("rim_width", "circumference")


def _read_yaml(path: Path, label: str) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"{label} file not found: {path}")
    with open(path, encoding="utf-8") as fh:
        return yaml.safe_load(fh)


def load_tire_database(
    path: Path | None = None,
) -> dict[str, dict[float, TireMeasurement]]:
    """Load the measured tire circumference table from a YAML file.

    The file holds a ``measurements`` list; each entry is validated and
    converted into a :class:`TireMeasurement`.

    Args:
        path: Optional override for the tire table path.

    Returns:
        ``{tire_size: {rim_width: TireMeasurement}}``.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If an entry is missing fields, has non-numeric or
            non-positive values, or duplicates a tire/rim combination.
    """
    tire_path = path or TIRE_DATABASE_PATH
    data = _read_yaml(tire_path, "Tire database")

    database: dict[str, dict[float, TireMeasurement]] = {}
    for idx, entry in enumerate(data["measurements"]):
        # --- Validate required fields ---
        for field in _TIRE_REQUIRED_FIELDS:
            if field not in entry:
                raise ValueError(
                    f"Tire entry {idx} ({entry.get('tire_size', '<unknown>')}) "
                    f"is missing required field '{field}'"
                )

        # --- Validate numeric values ---
        for field in _TIRE_NUMERIC_FIELDS:
            val = entry[field]
            if not isinstance(val, (int, float)) or isinstance(val, bool):
                raise ValueError(
                    f"Tire entry {idx} ({entry['tire_size']}): "
                    f"'{field}' must be numeric, got {type(val).__name__}"
                )
            if float(val) <= 0.0:
                raise ValueError(
                    f"Tire entry {idx} ({entry['tire_size']}): "
                    f"'{field}' must be > 0, got {val}"
                )

        tire_size = str(entry["tire_size"])
        rim_width = float(entry["rim_width"])
        pressure = entry.get("pressure")
        tire_data = database.setdefault(tire_size, {})
        if rim_width in tire_data:
            raise ValueError(
                f"Tire entry {idx}: duplicate measurement for "
                f"{tire_size} on {rim_width:g}mm rim"
            )
        tire_data[rim_width] = TireMeasurement(
            tire_size=tire_size,
            rim_width=rim_width,
            circumference=float(entry["circumference"]),
            source=str(entry["source"]),
            pressure=float(pressure) if pressure is not None else None,
            notes=entry.get("notes"),
        )

    logger.info(
        "Loaded %d tire measurements for %d sizes from %s",
        sum(len(v) for v in database.values()),
        len(database),
        tire_path,
    )
    return database


def load_tire_resolver(path: Path | None = None) -> TireCircumferenceResolver:
    """Build a :class:`TireCircumferenceResolver` over the tire table."""
    return TireCircumferenceResolver(load_tire_database(path))


def component_from_record(record: dict[str, Any]) -> Component:
    """Build a component from a flat mapping with a ``type`` key.

    Raises:
        ValueError: If the type is missing or unknown, or the record has
            unexpected or missing fields.
        InvalidComponentData: If a field value fails validation.
    """
    fields = dict(record)
    kind = fields.pop("type", None)
    if kind not in COMPONENT_TYPES:
        raise ValueError(
            f"Component {fields.get('id', '<unknown>')}: unknown type {kind!r}"
        )
    try:
        return COMPONENT_TYPES[kind](**fields)
    except TypeError as exc:
        raise ValueError(
            f"Component {fields.get('id', '<unknown>')} ({kind}): {exc}"
        ) from exc


def load_component_catalog(path: Path | None = None) -> list[Component]:
    """Load the seed component catalog from a YAML file.

    Each entry of the ``components`` list is dispatched on its ``type``
    (``crankset``, ``cassette``, ``rear_derailleur``, ``front_derailleur``
    or ``chain``).

    Args:
        path: Optional override for the catalog path.

    Returns:
        Components in file order.

    Raises:
        FileNotFoundError: If the catalog file does not exist.
        ValueError: If an entry has an unknown type or the wrong fields.
        InvalidComponentData: If an entry fails validation.
    """
    catalog_path = path or COMPONENT_CATALOG_PATH
    data = _read_yaml(catalog_path, "Component catalog")

    components = [component_from_record(entry) for entry in data["components"]]
    logger.info("Loaded %d components from %s", len(components), catalog_path)
    return components
