"""
Default assumptions and API key lookup for the solar estimator.
"""

import os
from dataclasses import dataclass
from typing import Optional

# Installed cost before incentives ($/watt), 2021 US average
DEFAULT_COST_PER_WATT = 2.77

# Flat retail electricity rate ($/kWh)
DEFAULT_ELECTRICITY_RATE = 0.14

# Fraction of nameplate output that reaches the meter
DEFAULT_SYSTEM_EFFICIENCY = 0.75

# Peak sun hours per day, averaged over the year
DEFAULT_SUN_HOURS = 4.0

DEFAULT_PANEL_WATTAGE = 350  # Watts per panel
DEFAULT_PANEL_AREA_M2 = 1.6  # 1.0 m x 1.6 m module footprint

# PVWatts request parameters
DEFAULT_LOSSES_PCT = 14.0
DEFAULT_ARRAY_TYPE = 1   # Fixed (roof mount)
DEFAULT_MODULE_TYPE = 1  # Premium


@dataclass(frozen=True)
class EstimatorConfig:
    """Every numeric assumption the engine makes, overridable per estimate."""
    cost_per_watt: float = DEFAULT_COST_PER_WATT
    electricity_rate: float = DEFAULT_ELECTRICITY_RATE
    system_efficiency: float = DEFAULT_SYSTEM_EFFICIENCY
    sun_hours_per_day: float = DEFAULT_SUN_HOURS
    panel_wattage: float = DEFAULT_PANEL_WATTAGE
    panel_area_m2: float = DEFAULT_PANEL_AREA_M2
    losses_pct: float = DEFAULT_LOSSES_PCT
    array_type: int = DEFAULT_ARRAY_TYPE
    module_type: int = DEFAULT_MODULE_TYPE


@dataclass(frozen=True)
class ApiKeys:
    """Provider credentials."""
    nrel: Optional[str] = None
    openweather: Optional[str] = None

    def missing(self) -> list:
        """Names of the environment variables that are not set."""
        names = []
        if not self.nrel:
            names.append("NREL_API_KEY")
        if not self.openweather:
            names.append("OPENWEATHER_API_KEY")
        return names


def load_api_keys(environ=None) -> ApiKeys:
    """Read provider API keys from environment variables."""
    if environ is None:
        environ = os.environ
    return ApiKeys(
        nrel=environ.get("NREL_API_KEY") or None,
        openweather=environ.get("OPENWEATHER_API_KEY") or None,
    )
