"""Solar system sizing, production and payback estimates."""

from .api_calls import (
    Location,
    OpenWeatherClient,
    PVWattsClient,
    geocode_address
)

from .climate import (
    CurrentWeather,
    MonthlyClimateSummary,
    WeatherSample,
    aggregate_monthly_climate
)

from .config import (
    ApiKeys,
    EstimatorConfig,
    load_api_keys
)

from .errors import (
    EstimationError,
    InvalidInput,
    LocationNotFound,
    MalformedResponse,
    MissingApiKey,
    ProviderError,
    UpstreamDataError
)

from .estimator import (
    BranchResult,
    BranchStatus,
    Collaborators,
    EstimationOutcome,
    EstimationRequest,
    EstimationState,
    SolarEstimate,
    SolarEstimator,
    default_collaborators,
    estimate_solar
)

from .financial_calcs import (
    UNBOUNDED,
    CostEstimate,
    build_cost_estimate,
    estimate_costs,
    is_unbounded
)

from .incentives import (
    DEFAULT_CATALOG,
    AppliedIncentive,
    IncentiveCatalog,
    IncentiveRecord,
    apply_incentives,
    derive_region_code,
    match_incentives
)

from .production import (
    ProductionResult,
    interpret_production
)

from .sizing import (
    SizingInput,
    SystemSize,
    calculate_capacity_kw,
    size_system
)
