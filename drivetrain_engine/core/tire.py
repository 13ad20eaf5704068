"""Tire circumference resolution for the drivetrain engine.

Resolution order for a tire/rim combination:

    1. Exact lookup in the measured-circumference table.
    2. Linear interpolation between the two measured rim widths that
       bracket the requested one, for the same tire size.
    3. Parametric estimate from the parsed nominal diameter and width,
       corrected for rim width.
    4. A fixed 700x25c-equivalent fallback when the label cannot be parsed.

``resolve`` never raises: an unknown or malformed tire size degrades to an
``estimated`` result.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Mapping

import numpy as np

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

FALLBACK_CIRCUMFERENCE_MM: float = 2110.0  # 700x25c equivalent
REFERENCE_RIM_WIDTH_MM: float = 21.0
RIM_WIDTH_CORRECTION: float = 0.8  # mm of circumference per mm of rim width
PRESSURE_CORRECTION_PER_10_PSI: float = -0.001

CONFIDENCE_LEVELS: tuple[str, ...] = ("measured", "interpolated", "estimated")

_ROAD_700_RE = re.compile(r"^700\s*x\s*(\d+(?:\.\d+)?)\s*c?$", re.IGNORECASE)
_GRAVEL_650_RE = re.compile(r"^650\s*x\s*(\d+(?:\.\d+)?)\s*b?$", re.IGNORECASE)
_MTB_RE = re.compile(r"^(29|27\.5|26)\s*x\s*(\d+(?:\.\d+)?)\"?$", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TireMeasurement:
    """A measured rollout for one tire on one rim width.

    Attributes:
        tire_size: Tire label (e.g. ``"700x28c"``).
        rim_width: Internal rim width in mm.
        circumference: Measured circumference in mm.
        source: Where the measurement comes from.
        pressure: Pressure in psi at which it was measured, if recorded.
        notes: Free-form remarks.
    """

    tire_size: str
    rim_width: float
    circumference: float
    source: str
    pressure: float | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        if not self.tire_size:
            raise ValueError("tire_size must not be empty.")
        if self.rim_width <= 0.0:
            raise ValueError("rim_width must be > 0.")
        if self.circumference <= 0.0:
            raise ValueError("circumference must be > 0.")
        if self.pressure is not None and self.pressure <= 0.0:
            raise ValueError("pressure must be > 0.")


@dataclass(frozen=True)
class CircumferenceResult:
    """Outcome of a circumference lookup.

    Attributes:
        circumference_mm: Wheel circumference in mm.
        source: Data source or estimation method.
        confidence: ``measured``, ``interpolated`` or ``estimated``.
        notes: Explanation of how the value was obtained.
    """

    circumference_mm: float
    source: str
    confidence: str
    notes: str | None = None

    def __post_init__(self) -> None:
        if self.confidence not in CONFIDENCE_LEVELS:
            raise ValueError(f"confidence must be one of {CONFIDENCE_LEVELS}.")


TireDatabase = Mapping[str, Mapping[float, TireMeasurement]]


# ---------------------------------------------------------------------------
# Label parsing and estimation
# ---------------------------------------------------------------------------


def parse_tire_size(tire_size: str) -> tuple[float, float] | None:
    """Parse a tire label into ``(nominal_diameter, width)``.

    Road and gravel labels carry the width in mm (``700x25c``,
    ``650x47b``); mountain bike labels carry it in inches (``29x2.4``).

    Returns:
        ``(diameter, width)`` or ``None`` when the label is not recognised.
    """
    label = tire_size.strip()
    match = _ROAD_700_RE.match(label)
    if match:
        return 700.0, float(match.group(1))
    match = _GRAVEL_650_RE.match(label)
    if match:
        return 650.0, float(match.group(1))
    match = _MTB_RE.match(label)
    if match:
        return float(match.group(1)), float(match.group(2))
    return None


def estimate_circumference(diameter: float, width: float, rim_width: float) -> float:
    """Parametric circumference estimate in mm, rounded to the millimetre.

    Each nominal diameter has its own linear model in tire width; a rim
    correction of 0.8 mm per mm of internal width away from 21 mm is added.
    """
    if diameter == 700:
        base = 2096.0 + (width - 23.0) * 2.5
    elif diameter == 650:
        base = 2070.0 + (width - 42.0) * 2.0
    elif diameter == 29:
        base = 2300.0 + (width - 2.1) * 50.0
    elif diameter == 27.5:
        base = 2140.0 + (width - 2.1) * 50.0
    elif diameter == 26:
        base = 1970.0 + (width - 1.9) * 40.0
    else:
        base = FALLBACK_CIRCUMFERENCE_MM
    rim_adjustment = (rim_width - REFERENCE_RIM_WIDTH_MM) * RIM_WIDTH_CORRECTION
    return float(round(base + rim_adjustment))


def adjust_for_pressure(
    circumference: float, base_pressure: float, target_pressure: float
) -> float:
    """Scale a measured circumference to a different pressure.

    Higher pressure shrinks the rolling circumference by roughly 0.1 % per
    10 psi.
    """
    delta = (target_pressure - base_pressure) / 10.0
    return float(round(circumference * (1.0 + delta * PRESSURE_CORRECTION_PER_10_PSI)))


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class TireCircumferenceResolver:
    """Maps a tire/rim combination to a wheel circumference.

    Attributes:
        database: ``{tire_size: {rim_width: TireMeasurement}}``.
    """

    __slots__ = ("database",)

    def __init__(self, database: TireDatabase | None = None) -> None:
        self.database: TireDatabase = database if database is not None else {}

    def resolve(
        self,
        tire_size: str,
        rim_width_mm: float,
        pressure_psi: float | None = None,
    ) -> CircumferenceResult:
        """Resolve the circumference for a tire/rim combination.

        Args:
            tire_size: Tire label such as ``"700x25c"``.
            rim_width_mm: Internal rim width in mm.
            pressure_psi: Optional inflation pressure.

        Returns:
            A :class:`CircumferenceResult`.  Never raises.
        """
        label = tire_size.strip() if isinstance(tire_size, str) else ""
        rim_width = _as_finite(rim_width_mm)
        pressure = _as_finite(pressure_psi)

        if rim_width is not None:
            measured = self._lookup(label, rim_width, pressure)
            if measured is not None:
                return measured
            interpolated = self._interpolate(label, rim_width)
            if interpolated is not None:
                return interpolated
        return self._estimate(label, rim_width)

    # -- resolution steps ----------------------------------------------------

    def _lookup(
        self, label: str, rim_width: float, pressure: float | None
    ) -> CircumferenceResult | None:
        for width, measurement in self.database.get(label, {}).items():
            if math.isclose(width, rim_width, abs_tol=1e-9):
                circumference = measurement.circumference
                if pressure and measurement.pressure:
                    circumference = adjust_for_pressure(
                        circumference, measurement.pressure, pressure
                    )
                return CircumferenceResult(
                    circumference_mm=float(circumference),
                    source=measurement.source,
                    confidence="measured",
                    notes=measurement.notes,
                )
        return None

    def _interpolate(self, label: str, rim_width: float) -> CircumferenceResult | None:
        measurements = self.database.get(label)
        if not measurements:
            return None
        widths = sorted(measurements)
        lower = max((w for w in widths if w <= rim_width), default=None)
        upper = min((w for w in widths if w >= rim_width), default=None)
        if lower is None or upper is None or lower == upper:
            return None

        circumference = np.interp(
            rim_width,
            [lower, upper],
            [measurements[lower].circumference, measurements[upper].circumference],
        )
        logger.debug(
            "Interpolated %s on %.1fmm rim between %smm and %smm",
            label,
            rim_width,
            lower,
            upper,
        )
        return CircumferenceResult(
            circumference_mm=float(round(float(circumference))),
            source=f"interpolated_{measurements[lower].source}",
            confidence="interpolated",
            notes=f"Interpolated between {lower:g}mm and {upper:g}mm rim widths",
        )

    def _estimate(self, label: str, rim_width: float | None) -> CircumferenceResult:
        parsed = parse_tire_size(label) if label else None
        if parsed is None:
            logger.warning(
                "Unrecognised tire size %r, using 700x25c equivalent", label
            )
            return CircumferenceResult(
                circumference_mm=FALLBACK_CIRCUMFERENCE_MM,
                source="estimated_fallback",
                confidence="estimated",
                notes="Unknown tire size, using 700x25c equivalent",
            )

        diameter, width = parsed
        effective_rim = rim_width if rim_width is not None else REFERENCE_RIM_WIDTH_MM
        logger.info("No measurement for %s, estimating from its label", label)
        return CircumferenceResult(
            circumference_mm=estimate_circumference(diameter, width, effective_rim),
            source="estimated_formula",
            confidence="estimated",
            notes=f"Estimated using diameter {diameter:g} and width {width:g}",
        )

    # -- catalogue helpers ---------------------------------------------------

    def tire_sizes(self) -> list[str]:
        """All tire sizes with at least one measurement, sorted."""
        return sorted(self.database)

    def measurements(self, tire_size: str) -> list[TireMeasurement]:
        """Measurements for *tire_size* ordered by rim width."""
        tire_data = self.database.get(tire_size, {})
        return [tire_data[w] for w in sorted(tire_data)]

    def search(self, query: str) -> list[str]:
        """Tire sizes whose label contains *query* (case-insensitive)."""
        needle = query.lower()
        return [size for size in self.tire_sizes() if needle in size.lower()]

    def stats(self) -> dict[str, object]:
        """Counts of measurements, tire sizes and distinct sources."""
        sources: set[str] = set()
        total = 0
        for tire_data in self.database.values():
            total += len(tire_data)
            sources.update(m.source for m in tire_data.values())
        return {
            "total_measurements": total,
            "tire_sizes": len(self.database),
            "sources": sorted(sources),
        }


def _as_finite(value: object) -> float | None:
    """Return *value* as a finite float, or ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
