"""
Runs a full solar estimate: locate, size, fetch production, cost it out,
then pick up current and historical weather if they are available.
"""

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from .api_calls import Location, OpenWeatherClient, PVWattsClient, geocode_address
from .climate import CurrentWeather, MonthlyClimateSummary, WeatherSample, aggregate_monthly_climate
from .config import ApiKeys, EstimatorConfig
from .errors import EstimationError, InvalidInput, LocationNotFound, ProviderError
from .financial_calcs import (
    CostEstimate,
    build_cost_estimate,
    calculate_annual_savings,
    calculate_installation_cost,
)
from .incentives import DEFAULT_CATALOG, IncentiveCatalog, apply_incentives, derive_region_code
from .production import ProductionResult, interpret_production
from .sizing import SizingInput, SystemSize, size_system

log = logging.getLogger(__name__)


class EstimationState(Enum):
    IDLE = 'idle'
    LOCATING = 'locating'
    SIZING = 'sizing'
    PRODUCTION_REQUESTED = 'production_requested'
    COSTING = 'costing'
    WEATHER_REQUESTED = 'weather_requested'
    HISTORICAL_REQUESTED = 'historical_requested'
    COMPLETE = 'complete'
    FAILED = 'failed'


class BranchStatus(Enum):
    OK = 'ok'
    FAILED = 'failed'
    NOT_REQUESTED = 'not_requested'


@dataclass(frozen=True)
class BranchResult:
    """Result of an optional lookup that may be skipped or fail without consequence."""
    status: BranchStatus
    value: Any = None
    error: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.status is BranchStatus.OK


NOT_REQUESTED = BranchResult(BranchStatus.NOT_REQUESTED)


@dataclass
class EstimationRequest:
    """What the user entered."""
    address: str
    annual_consumption_kwh: float
    tilt_degrees: float = 20.0
    azimuth_degrees: float = 180.0
    roof_area_m2: Optional[float] = None
    include_weather: bool = True
    include_history: bool = True

    def validate(self):
        """Raise InvalidInput for values outside the accepted ranges."""
        if not self.address or not self.address.strip():
            raise InvalidInput("Please enter an address.")
        if not math.isfinite(self.annual_consumption_kwh) or self.annual_consumption_kwh <= 0:
            raise InvalidInput("Annual consumption must be greater than zero")
        if not 0 <= self.tilt_degrees <= 90:
            raise InvalidInput("Tilt must be between 0 and 90 degrees")
        if not 0 <= self.azimuth_degrees <= 359:
            raise InvalidInput("Azimuth must be between 0 and 359 degrees")
        if self.roof_area_m2 is not None and (
            not math.isfinite(self.roof_area_m2) or self.roof_area_m2 <= 0
        ):
            raise InvalidInput("Roof area must be greater than zero")


@dataclass
class Collaborators:
    """
    External services an estimate depends on.

    geocode and production are required. A weather collaborator left as
    None is treated as not requested.

    Required collaborators should raise EstimationError subclasses. Anything
    else they raise is reported as a ProviderError.
    """
    geocode: Callable[[str], Optional[Location]]
    production: Callable[[Location, float, float, float], Dict[str, Any]]
    current_weather: Optional[Callable[[Location], CurrentWeather]] = None
    historical_weather: Optional[Callable[[Location], List[WeatherSample]]] = None
    region_code: Callable[[str], str] = derive_region_code


def default_collaborators(api_keys: ApiKeys, config: Optional[EstimatorConfig] = None) -> Collaborators:
    """Wire up Nominatim, PVWatts and OpenWeather."""
    pvwatts = PVWattsClient(api_keys.nrel, config)
    weather = OpenWeatherClient(api_keys.openweather)
    return Collaborators(
        geocode=geocode_address,
        production=pvwatts.request,
        current_weather=weather.current,
        historical_weather=weather.daily,
    )


@dataclass
class SolarEstimate:
    """Everything produced by a successful estimate."""
    request: EstimationRequest
    location: Location
    region_code: str
    system: SystemSize
    production: ProductionResult
    costs: CostEstimate
    current_weather: BranchResult = NOT_REQUESTED
    climate: BranchResult = NOT_REQUESTED

    @property
    def applied_incentives(self):
        return self.costs.applied_incentives

    @property
    def monthly_climate(self) -> Optional[List[MonthlyClimateSummary]]:
        return self.climate.value if self.climate.available else None


@dataclass
class EstimationOutcome:
    """Terminal state of a run plus either an estimate or the error that stopped it."""
    state: EstimationState
    estimate: Optional[SolarEstimate] = None
    error: Optional[EstimationError] = None
    states: List[EstimationState] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is EstimationState.COMPLETE

    def result(self) -> SolarEstimate:
        """Return the estimate, or raise the error that stopped the run."""
        if self.error is not None:
            raise self.error
        return self.estimate


class SolarEstimator:
    """
    Sequences one estimate against a set of collaborators.

    The incentive catalog and numeric assumptions are injected so tests can
    swap them out.
    """

    def __init__(
        self,
        collaborators: Collaborators,
        config: Optional[EstimatorConfig] = None,
        catalog: Optional[IncentiveCatalog] = None
    ):
        self.collaborators = collaborators
        self.config = config or EstimatorConfig()
        self.catalog = DEFAULT_CATALOG if catalog is None else catalog

    def estimate(self, request: EstimationRequest) -> EstimationOutcome:
        states = [EstimationState.IDLE]

        def enter(state):
            log.debug("Estimate for %r: %s", request.address, state.value)
            states.append(state)

        try:
            request.validate()

            enter(EstimationState.LOCATING)
            location = _call('geocoding', self.collaborators.geocode, request.address)
            if location is None:
                raise LocationNotFound("Unable to find coordinates for the given address")

            enter(EstimationState.SIZING)
            sizing = SizingInput.from_config(request.annual_consumption_kwh, self.config)
            system = size_system(sizing, self.config, request.roof_area_m2)

            enter(EstimationState.PRODUCTION_REQUESTED)
            response = _call(
                'solar production', self.collaborators.production,
                location, system.capacity_kw, request.tilt_degrees, request.azimuth_degrees
            )
            production = interpret_production(response)

            enter(EstimationState.COSTING)
            region_code = _call('region lookup', self.collaborators.region_code, request.address)
            costs = self._cost(system, production, region_code)

        except EstimationError as e:
            log.error("Estimate for %r failed: %s", request.address, e)
            enter(EstimationState.FAILED)
            return EstimationOutcome(state=EstimationState.FAILED, error=e, states=states)

        estimate = SolarEstimate(
            request=request,
            location=location,
            region_code=region_code,
            system=system,
            production=production,
            costs=costs
        )
        self._fetch_weather(request, estimate, enter)

        enter(EstimationState.COMPLETE)
        return EstimationOutcome(state=EstimationState.COMPLETE, estimate=estimate, states=states)

    def _cost(self, system: SystemSize, production: ProductionResult, region_code: str) -> CostEstimate:
        records = self.catalog.match(region_code)
        installation_cost = calculate_installation_cost(system.capacity_kw, self.config.cost_per_watt)
        applied, total = apply_incentives(records, installation_cost)
        annual_savings = calculate_annual_savings(production.annual_kwh, self.config.electricity_rate)
        return build_cost_estimate(installation_cost, annual_savings, applied, total)

    def _fetch_weather(self, request: EstimationRequest, estimate: SolarEstimate, enter):
        """Run the weather lookups side by side; failures leave the branch empty."""
        current = self.collaborators.current_weather
        historical = self.collaborators.historical_weather
        want_current = request.include_weather and current is not None
        want_history = request.include_history and historical is not None

        if not (want_current or want_history):
            return

        location = estimate.location
        with ThreadPoolExecutor(max_workers=2) as pool:
            current_future = history_future = None
            if want_current:
                enter(EstimationState.WEATHER_REQUESTED)
                current_future = pool.submit(current, location)
            if want_history:
                enter(EstimationState.HISTORICAL_REQUESTED)
                history_future = pool.submit(
                    lambda: aggregate_monthly_climate(historical(location))
                )

            if current_future is not None:
                estimate.current_weather = _settle('current weather', current_future)
            if history_future is not None:
                estimate.climate = _settle('historical weather', history_future)


def _call(name: str, collaborator, *args):
    """Call a required collaborator, reporting unexpected failures as ProviderError."""
    try:
        return collaborator(*args)
    except EstimationError:
        raise
    except Exception as e:
        raise ProviderError(f"{name.capitalize()} failed: {e}") from e


def _settle(name: str, future) -> BranchResult:
    try:
        return BranchResult(BranchStatus.OK, value=future.result())
    except Exception as e:
        log.warning("Error fetching %s: %s", name, e, exc_info=True)
        return BranchResult(BranchStatus.FAILED, error=str(e))


def estimate_solar(
    request: EstimationRequest,
    collaborators: Collaborators,
    config: Optional[EstimatorConfig] = None,
    catalog: Optional[IncentiveCatalog] = None
) -> EstimationOutcome:
    """Run one estimate. See SolarEstimator.estimate."""
    return SolarEstimator(collaborators, config, catalog).estimate(request)
