"""
Display formatting and share-by-email text for a finished estimate.
All rounding of figures happens here.
"""

from typing import List, Sequence, Tuple
from urllib.parse import quote

import pandas as pd

from .climate import MonthlyClimateSummary
from .financial_calcs import calculate_offset_percentage, is_unbounded
from .production import MONTH_NAMES, ProductionResult

NO_PAYBACK_TEXT = "N/A (no savings calculated)"
SHARE_SUBJECT = "Solar Estimation Results"
DISCLAIMER = (
    "Note: This is a rough estimate. Please consult with a solar professional "
    "for more accurate figures."
)


def format_currency(amount: float) -> str:
    """Whole dollars with thousands separators, e.g. -$1,234."""
    dollars = round(amount)
    sign = '-' if dollars < 0 else ''
    return f"{sign}${abs(dollars):,}"


def format_payback(years: float) -> str:
    if is_unbounded(years):
        return NO_PAYBACK_TEXT
    return f"{years:.1f} years"


def summary_rows(estimate) -> List[Tuple[str, str]]:
    """Label/value pairs for the results card, in display order."""
    system = estimate.system
    costs = estimate.costs
    production = estimate.production
    offset = calculate_offset_percentage(
        production.annual_kwh,
        estimate.request.annual_consumption_kwh
    )

    rows = [
        ("Estimated Annual Solar Production", f"{production.annual_kwh:,.0f} kWh"),
        ("Usage Offset", f"{offset:.0f}%"),
        ("Recommended System Size", f"{system.capacity_kw:.2f} kW"),
        ("Number of Panels", f"{system.panel_count} x {system.panel_wattage:.0f} W"),
    ]
    if system.max_roof_panels is not None:
        fit = "fits" if system.fits_on_roof else "does not fit"
        rows.append(("Roof Capacity", f"{system.max_roof_panels} panels (system {fit})"))

    rows += [
        ("Estimated Installation Cost", format_currency(costs.installation_cost)),
        ("Total Available Incentives", format_currency(costs.total_incentives)),
        ("Adjusted Installation Cost", format_currency(costs.adjusted_cost)),
        ("Estimated Annual Savings", format_currency(costs.annual_savings)),
        ("Estimated Payback Period (without incentives)", format_payback(costs.payback_years)),
        ("Adjusted Payback Period (with incentives)", format_payback(costs.adjusted_payback_years)),
    ]
    return rows


def incentive_rows(estimate) -> List[Tuple[str, str]]:
    return [
        (incentive.description, format_currency(incentive.applied_amount))
        for incentive in estimate.applied_incentives
    ]


def build_share_text(estimate) -> str:
    """Plain-text body for sharing an estimate by email."""
    lines = [f"{label}: {value}" for label, value in summary_rows(estimate)]
    for description, amount in incentive_rows(estimate):
        lines.append(f"Incentive - {description}: {amount}")
    lines.append("")
    lines.append(DISCLAIMER)
    return "\n".join(lines)


def build_mailto_link(estimate) -> str:
    return (
        f"mailto:?subject={quote(SHARE_SUBJECT)}"
        f"&body={quote(build_share_text(estimate))}"
    )


def monthly_production_frame(production: ProductionResult) -> pd.DataFrame:
    """Monthly production for charting, rounded to whole kWh."""
    return pd.DataFrame({
        'month': list(MONTH_NAMES),
        'production_kwh': [round(value) for value in production.monthly_kwh],
    })


def climate_frame(summaries: Sequence[MonthlyClimateSummary]) -> pd.DataFrame:
    """Monthly climate normals for charting."""
    return pd.DataFrame({
        'month': [s.label for s in summaries],
        'temperature_c': [s.temperature_c for s in summaries],
        'uv_index': [s.uv_index for s in summaries],
        'sample_count': [s.sample_count for s in summaries],
    })
