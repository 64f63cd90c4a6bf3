"""
Financial calculations for solar payback analysis.
Installation cost, annual savings and simple payback, with and without incentives.
"""

import math
from dataclasses import dataclass
from typing import List, Sequence

from .incentives import AppliedIncentive

# Payback period when the system never pays for itself
UNBOUNDED = float('inf')


@dataclass
class CostEstimate:
    """Cost, savings and payback for a purchased system."""
    installation_cost: float
    total_incentives: float
    adjusted_cost: float  # Not floored; negative when incentives exceed cost
    annual_savings: float
    payback_years: float
    adjusted_payback_years: float
    applied_incentives: List[AppliedIncentive]


def is_unbounded(years: float) -> bool:
    """True if a payback period means 'never pays back'."""
    return math.isinf(years)


def calculate_installation_cost(system_size_kw: float, cost_per_watt: float) -> float:
    """Gross installed cost in dollars."""
    return system_size_kw * 1000 * cost_per_watt


def calculate_annual_savings(annual_production_kwh: float, electricity_rate: float) -> float:
    """Value of a year of production at the retail rate."""
    return annual_production_kwh * electricity_rate


def calculate_payback(cost: float, annual_savings: float) -> float:
    """
    Simple payback in years.

    Args:
        cost: Dollars to recover
        annual_savings: Dollars saved per year

    Returns:
        cost / annual_savings, or UNBOUNDED if savings are not positive
    """
    if annual_savings > 0:
        return cost / annual_savings
    return UNBOUNDED


def build_cost_estimate(
    installation_cost: float,
    annual_savings: float,
    applied_incentives: Sequence[AppliedIncentive],
    total_incentives: float
) -> CostEstimate:
    """Assemble a CostEstimate from figures that are already worked out."""
    adjusted_cost = installation_cost - total_incentives
    return CostEstimate(
        installation_cost=installation_cost,
        total_incentives=total_incentives,
        adjusted_cost=adjusted_cost,
        annual_savings=annual_savings,
        payback_years=calculate_payback(installation_cost, annual_savings),
        adjusted_payback_years=calculate_payback(adjusted_cost, annual_savings),
        applied_incentives=list(applied_incentives)
    )


def estimate_costs(
    system_size_kw: float,
    annual_production_kwh: float,
    cost_per_watt: float,
    electricity_rate: float,
    applied_incentives: Sequence[AppliedIncentive] = ()
) -> CostEstimate:
    """
    Calculate cost and payback for a cash purchase.

    Nothing is rounded here; round only for display.

    Args:
        system_size_kw: System size in kW
        annual_production_kwh: Predicted annual production
        cost_per_watt: Installed cost per watt ($/W)
        electricity_rate: Electricity rate ($/kWh)
        applied_incentives: Incentives already resolved against the installation cost

    Returns:
        CostEstimate
    """
    installation_cost = calculate_installation_cost(system_size_kw, cost_per_watt)
    annual_savings = calculate_annual_savings(annual_production_kwh, electricity_rate)

    applied = list(applied_incentives)
    total_incentives = sum(incentive.applied_amount for incentive in applied)
    return build_cost_estimate(installation_cost, annual_savings, applied, total_incentives)


def calculate_offset_percentage(
    annual_production_kwh: float,
    annual_usage_kwh: float
) -> float:
    """
    Calculate what percentage of electricity usage is offset by solar.

    Args:
        annual_production_kwh: Annual solar production
        annual_usage_kwh: Annual electricity usage

    Returns:
        Offset percentage (0-100+, can exceed 100 if overproducing)
    """
    if annual_usage_kwh <= 0:
        return 0
    return (annual_production_kwh / annual_usage_kwh) * 100
