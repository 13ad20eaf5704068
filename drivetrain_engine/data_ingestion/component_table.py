"""Tabular component import for the drivetrain engine.

Component spreadsheets use one row per component with camelCase columns
and comma-separated list cells::

    id,type,manufacturer,model,year,weight,bikeType,msrp,chainrings,...
    shimano-105-r7000-50-34,crankset,Shimano,105 R7000,2018,736,road,180,"50,34",...

Columns that do not apply to a row's component type are left empty and
ignored.  Chainrings are listed big ring first in these sheets and are
sorted on import; cogs must already be ascending.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path
from typing import Any

import pandas as pd

from drivetrain_engine.config import component_from_record
from drivetrain_engine.core.components import COMPONENT_TYPES, Component

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Column mapping
# ---------------------------------------------------------------------------

COLUMN_FIELDS: dict[str, str] = {
    "bikeType": "bike_type",
    "chainLine": "chain_line",
    "crankLength": "crank_lengths",
    "bcdMajor": "bcd_major",
    "bcdMinor": "bcd_minor",
    "bottomBracket": "bottom_brackets",
    "maxChainringSize": "max_chainring_size",
    "minChainringSize": "min_chainring_size",
    "cogRange": "cog_range",
    "freehubType": "freehub_type",
    "stackHeight": "stack_height",
    "maxCogSize": "max_cog_size",
    "totalCapacity": "total_capacity",
    "cageLength": "cage_length",
    "cablePull": "cable_pull",
    "maxChainringDiff": "max_chainring_diff",
    "clampType": "clamp_type",
}

_INT_LIST_FIELDS: frozenset[str] = frozenset({"chainrings", "cog_range", "cogs"})
_FLOAT_LIST_FIELDS: frozenset[str] = frozenset({"crank_lengths"})
_STR_LIST_FIELDS: frozenset[str] = frozenset({"bottom_brackets"})
_INT_FIELDS: frozenset[str] = frozenset(
    {
        "year",
        "speeds",
        "max_cog_size",
        "total_capacity",
        "links",
        "max_chainring_size",
        "min_chainring_size",
        "max_chainring_diff",
    }
)
_FLOAT_FIELDS: frozenset[str] = frozenset(
    {
        "weight",
        "msrp",
        "chain_line",
        "bcd_major",
        "bcd_minor",
        "stack_height",
        "cable_pull",
        "width",
    }
)


def _split(value: Any) -> list[str]:
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _convert(field: str, value: Any) -> Any:
    if field in _INT_LIST_FIELDS:
        return [int(float(part)) for part in _split(value)]
    if field in _FLOAT_LIST_FIELDS:
        return [float(part) for part in _split(value)]
    if field in _STR_LIST_FIELDS:
        return _split(value)
    if field in _INT_FIELDS:
        return int(float(value))
    if field in _FLOAT_FIELDS:
        return float(value)
    return str(value).strip()


def record_from_row(row: dict[str, Any]) -> dict[str, Any]:
    """Turn one spreadsheet row into a flat component record.

    Empty cells and columns that are not fields of the row's component
    type are dropped.

    Raises:
        ValueError: If the row has no known ``type`` or a cell cannot be
            converted.
    """
    kind = row.get("type")
    if not isinstance(kind, str) or kind.strip() not in COMPONENT_TYPES:
        raise ValueError(f"Row {row.get('id', '<unknown>')}: unknown type {kind!r}")
    kind = kind.strip()
    allowed = {f.name for f in dataclasses.fields(COMPONENT_TYPES[kind])}

    record: dict[str, Any] = {"type": kind}
    for column, value in row.items():
        if column == "type" or value is None:
            continue
        if not isinstance(value, (list, tuple)) and pd.isna(value):
            continue
        if isinstance(value, str) and not value.strip():
            continue
        field = COLUMN_FIELDS.get(column, column)
        if field not in allowed:
            continue
        try:
            record[field] = _convert(field, value)
        except (TypeError, ValueError) as exc:
            raise ValueError(
                f"Row {row.get('id', '<unknown>')}: cannot read {column!r} "
                f"from {value!r}"
            ) from exc

    if "chainrings" in record:
        record["chainrings"] = sorted(record["chainrings"])
    return record


def components_from_frame(frame: pd.DataFrame) -> list[Component]:
    """Build components from a DataFrame of spreadsheet rows.

    Args:
        frame: One row per component, columns as in the module docstring.

    Returns:
        Components in row order.

    Raises:
        ValueError: If a row cannot be converted.
        InvalidComponentData: If a converted row fails validation.
    """
    if frame.empty:
        return []
    if "type" not in frame.columns:
        raise ValueError("Component table is missing the 'type' column")

    components = [
        component_from_record(record_from_row(row))
        for row in frame.to_dict(orient="records")
    ]
    logger.info("Imported %d components from table", len(components))
    return components


def load_component_csv(path: Path | str) -> list[Component]:
    """Read a component CSV with pandas and convert every row.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If a row cannot be converted.
    """
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Component table not found: {csv_path}")
    frame = pd.read_csv(csv_path, dtype=str, skip_blank_lines=True)
    return components_from_frame(frame)
