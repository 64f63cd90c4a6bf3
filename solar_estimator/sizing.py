"""
System sizing from annual electricity consumption.
"""

import math
from dataclasses import dataclass
from typing import Optional

from .config import (
    DEFAULT_PANEL_AREA_M2,
    DEFAULT_PANEL_WATTAGE,
    DEFAULT_SUN_HOURS,
    DEFAULT_SYSTEM_EFFICIENCY,
)
from .errors import InvalidInput

DAYS_PER_YEAR = 365


@dataclass(frozen=True)
class SizingInput:
    """Consumption and performance assumptions used to size a system."""
    annual_consumption_kwh: float
    efficiency: float = DEFAULT_SYSTEM_EFFICIENCY
    sun_hours_per_day: float = DEFAULT_SUN_HOURS

    @classmethod
    def from_config(cls, annual_consumption_kwh: float, config=None) -> "SizingInput":
        """Pair a consumption figure with a config's efficiency and sun hours."""
        if config is None:
            return cls(annual_consumption_kwh)
        return cls(
            annual_consumption_kwh=annual_consumption_kwh,
            efficiency=config.system_efficiency,
            sun_hours_per_day=config.sun_hours_per_day,
        )


@dataclass(frozen=True)
class SystemSize:
    """Recommended system."""
    capacity_kw: float
    panel_count: int
    panel_wattage: float
    max_roof_panels: Optional[int] = None
    fits_on_roof: Optional[bool] = None


def _is_positive(value: float) -> bool:
    return math.isfinite(value) and value > 0


def calculate_capacity_kw(sizing: SizingInput) -> float:
    """
    Capacity needed to cover a year of consumption.

    capacity = consumption / 365 / sun hours / efficiency

    Raises:
        InvalidInput: if any factor is zero, negative or not finite
    """
    if not _is_positive(sizing.annual_consumption_kwh):
        raise InvalidInput("Annual consumption must be greater than zero")
    if not _is_positive(sizing.sun_hours_per_day):
        raise InvalidInput("Sun hours per day must be greater than zero")
    if not _is_positive(sizing.efficiency):
        raise InvalidInput("System efficiency must be greater than zero")

    return (
        sizing.annual_consumption_kwh
        / DAYS_PER_YEAR
        / sizing.sun_hours_per_day
        / sizing.efficiency
    )


def recommend_panel_count(capacity_kw: float, panel_wattage: float = DEFAULT_PANEL_WATTAGE) -> int:
    """Number of panels needed to reach capacity, rounded up."""
    if not _is_positive(panel_wattage):
        raise InvalidInput("Panel wattage must be greater than zero")
    if not _is_positive(capacity_kw):
        raise InvalidInput("System capacity must be a finite value greater than zero")
    return math.ceil(capacity_kw * 1000 / panel_wattage)


def max_panels_for_roof(roof_area_m2: float, panel_area_m2: float = DEFAULT_PANEL_AREA_M2) -> int:
    """How many whole panels fit in a roof area, ignoring layout."""
    if not _is_positive(roof_area_m2):
        raise InvalidInput("Roof area must be greater than zero")
    if not _is_positive(panel_area_m2):
        raise InvalidInput("Panel area must be greater than zero")
    return math.floor(roof_area_m2 / panel_area_m2)


def size_system(sizing: SizingInput, config=None, roof_area_m2: Optional[float] = None) -> SystemSize:
    """
    Size a system and its panel count.

    Args:
        sizing: Consumption and performance assumptions
        config: EstimatorConfig supplying panel wattage and area (defaults if None)
        roof_area_m2: Usable roof area; enables the roof fit check

    Returns:
        SystemSize
    """
    if config is None:
        panel_wattage = DEFAULT_PANEL_WATTAGE
        panel_area = DEFAULT_PANEL_AREA_M2
    else:
        panel_wattage = config.panel_wattage
        panel_area = config.panel_area_m2

    capacity_kw = calculate_capacity_kw(sizing)
    panel_count = recommend_panel_count(capacity_kw, panel_wattage)

    max_roof_panels = None
    fits_on_roof = None
    if roof_area_m2 is not None:
        max_roof_panels = max_panels_for_roof(roof_area_m2, panel_area)
        fits_on_roof = panel_count <= max_roof_panels

    return SystemSize(
        capacity_kw=capacity_kw,
        panel_count=panel_count,
        panel_wattage=panel_wattage,
        max_roof_panels=max_roof_panels,
        fits_on_roof=fits_on_roof
    )
