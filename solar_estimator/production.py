"""
Turns a PVWatts response into annual and monthly production figures.
"""

from dataclasses import dataclass
from typing import Any, Dict, Tuple

import numpy as np

from .errors import MalformedResponse, UpstreamDataError

MONTH_NAMES = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
               'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')


@dataclass(frozen=True)
class ProductionResult:
    """Expected AC production, as reported by the provider."""
    annual_kwh: float
    monthly_kwh: Tuple[float, ...]  # Jan..Dec


def interpret_production(response: Dict[str, Any]) -> ProductionResult:
    """
    Extract annual and monthly AC output from a PVWatts payload.

    The monthly values are taken as given; they are not re-scaled to add up
    to the annual figure.

    Args:
        response: Decoded PVWatts JSON

    Returns:
        ProductionResult

    Raises:
        UpstreamDataError: if the payload lists errors
        MalformedResponse: if ac_annual or a 12-value ac_monthly is missing
    """
    if not isinstance(response, dict):
        raise MalformedResponse("Solar data response is not a JSON object")

    errors = response.get('errors')
    if errors:
        if isinstance(errors, str):
            errors = [errors]
        raise UpstreamDataError(errors)

    outputs = response.get('outputs')
    if not isinstance(outputs, dict):
        raise MalformedResponse("Solar data response missing 'outputs'")

    annual = outputs.get('ac_annual')
    monthly = outputs.get('ac_monthly')
    if annual is None or monthly is None:
        raise MalformedResponse("Solar data response missing 'ac_annual' or 'ac_monthly'")

    try:
        annual_kwh = float(annual)
        monthly_values = np.asarray(monthly, dtype=float)
    except (TypeError, ValueError) as e:
        raise MalformedResponse(f"Solar data response has non-numeric output: {e}") from e

    if monthly_values.shape != (len(MONTH_NAMES),):
        raise MalformedResponse(
            f"Expected 12 monthly values, got {monthly_values.size}"
        )

    if not np.isfinite(annual_kwh) or not np.all(np.isfinite(monthly_values)):
        raise MalformedResponse("Solar data response contains non-finite values")
    if annual_kwh < 0 or np.any(monthly_values < 0):
        raise MalformedResponse("Solar data response contains negative production")

    return ProductionResult(
        annual_kwh=annual_kwh,
        monthly_kwh=tuple(monthly_values.tolist())
    )
