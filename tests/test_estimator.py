import logging

import pytest
import requests

from solar_estimator import (
    DEFAULT_CATALOG,
    ApiKeys,
    BranchStatus,
    EstimationRequest,
    EstimationState,
    EstimatorConfig,
    IncentiveCatalog,
    IncentiveRecord,
    InvalidInput,
    LocationNotFound,
    MalformedResponse,
    ProviderError,
    SolarEstimator,
    UpstreamDataError,
    apply_incentives,
    default_collaborators,
    estimate_solar,
    is_unbounded,
)
from solar_estimator.incentives import REBATE, TAX_CREDIT

from conftest import SACRAMENTO, FakeProviders, pvwatts_payload

S = EstimationState

FULL_RUN = [
    S.IDLE, S.LOCATING, S.SIZING, S.PRODUCTION_REQUESTED, S.COSTING,
    S.WEATHER_REQUESTED, S.HISTORICAL_REQUESTED, S.COMPLETE,
]


def test_complete_estimate(providers, ca_request):
    outcome = estimate_solar(ca_request, providers.collaborators())

    assert outcome.succeeded
    assert outcome.state is S.COMPLETE
    assert outcome.error is None
    assert outcome.states == FULL_RUN

    estimate = outcome.result()
    assert estimate.location == SACRAMENTO
    assert estimate.region_code == 'CA'
    assert estimate.system.capacity_kw == pytest.approx(9.13, abs=0.01)
    assert estimate.system.panel_count == 27
    assert estimate.system.fits_on_roof is True
    assert estimate.production.annual_kwh == 12000.0
    assert len(estimate.production.monthly_kwh) == 12

    costs = estimate.costs
    assert costs.installation_cost == pytest.approx(estimate.system.capacity_kw * 1000 * 2.77)
    assert costs.annual_savings == pytest.approx(1680)
    assert [a.description for a in estimate.applied_incentives] == [
        'California Solar Initiative Rebate',
        'Federal Solar Investment Tax Credit',
    ]
    assert costs.total_incentives == pytest.approx(1000 + 0.30 * costs.installation_cost)
    assert costs.adjusted_cost == pytest.approx(costs.installation_cost - costs.total_incentives)
    assert costs.adjusted_payback_years == pytest.approx(costs.adjusted_cost / costs.annual_savings)

    assert estimate.current_weather.status is BranchStatus.OK
    assert estimate.current_weather.value.condition_text == 'clear sky'
    assert estimate.climate.available
    assert estimate.monthly_climate[0].temperature_c == 11.0
    assert estimate.monthly_climate[6].uv_index == 9.5


def test_production_request_uses_sized_capacity_and_geometry(providers):
    request = EstimationRequest('10 Main St, Albany, NY', 8000, tilt_degrees=35, azimuth_degrees=200)
    estimate_solar(request, providers.collaborators()).result()

    (_, location, capacity, tilt, azimuth), = providers.called('production')
    assert location == SACRAMENTO
    assert capacity == pytest.approx(8000 / 365 / 4 / 0.75)
    assert (tilt, azimuth) == (35, 200)


def test_region_without_incentives(providers):
    request = EstimationRequest('1 Main St, Austin, TX', 10000)
    costs = estimate_solar(request, providers.collaborators()).result().costs
    assert costs.applied_incentives == []
    assert costs.total_incentives == 0
    assert costs.adjusted_cost == costs.installation_cost


def test_zero_production_completes_with_unbounded_payback(ca_request):
    providers = FakeProviders(payload=pvwatts_payload(annual=0, monthly=[0] * 12))
    outcome = estimate_solar(ca_request, providers.collaborators())
    assert outcome.succeeded
    costs = outcome.estimate.costs
    assert costs.annual_savings == 0
    assert is_unbounded(costs.payback_years)
    assert is_unbounded(costs.adjusted_payback_years)


def test_unknown_address_fails(ca_request):
    providers = FakeProviders(location=None)
    outcome = estimate_solar(ca_request, providers.collaborators())

    assert outcome.state is S.FAILED
    assert isinstance(outcome.error, LocationNotFound)
    assert outcome.estimate is None
    assert outcome.states == [S.IDLE, S.LOCATING, S.FAILED]
    assert providers.called('production') == []
    assert providers.called('current_weather') == []
    with pytest.raises(LocationNotFound):
        outcome.result()


def test_invalid_consumption_fails_before_any_call(providers):
    outcome = estimate_solar(EstimationRequest('1 Main St, X, CA', 0), providers.collaborators())
    assert isinstance(outcome.error, InvalidInput)
    assert outcome.states == [S.IDLE, S.FAILED]
    assert providers.calls == []


@pytest.mark.parametrize('consumption', [float('nan'), float('inf'), float('-inf')])
def test_non_finite_consumption_fails_before_any_call(providers, consumption):
    outcome = estimate_solar(EstimationRequest('1 Main St, X, CA', consumption), providers.collaborators())
    assert outcome.state is S.FAILED
    assert isinstance(outcome.error, InvalidInput)
    assert providers.calls == []


@pytest.mark.parametrize('kwargs', [
    {'tilt_degrees': -1},
    {'tilt_degrees': 91},
    {'azimuth_degrees': 360},
    {'roof_area_m2': 0},
    {'roof_area_m2': float('nan')},
])
def test_out_of_range_geometry_is_invalid(providers, kwargs):
    request = EstimationRequest('1 Main St, X, CA', 10000, **kwargs)
    assert isinstance(estimate_solar(request, providers.collaborators()).error, InvalidInput)


def test_sizing_failure_from_config(providers, ca_request):
    outcome = estimate_solar(
        ca_request, providers.collaborators(), EstimatorConfig(sun_hours_per_day=0)
    )
    assert isinstance(outcome.error, InvalidInput)
    assert outcome.states == [S.IDLE, S.LOCATING, S.SIZING, S.FAILED]
    assert providers.called('production') == []


def test_production_errors_abort_estimate(ca_request):
    providers = FakeProviders(payload=pvwatts_payload(errors=['Invalid API key']))
    outcome = estimate_solar(ca_request, providers.collaborators())

    assert isinstance(outcome.error, UpstreamDataError)
    assert str(outcome.error) == 'Invalid API key'
    assert outcome.states == [S.IDLE, S.LOCATING, S.SIZING, S.PRODUCTION_REQUESTED, S.FAILED]
    assert providers.called('current_weather') == []
    assert providers.called('historical_weather') == []


def test_malformed_production_aborts_estimate(ca_request):
    providers = FakeProviders(payload=pvwatts_payload(monthly=[100.0] * 11))
    outcome = estimate_solar(ca_request, providers.collaborators())
    assert isinstance(outcome.error, MalformedResponse)


def test_provider_failure_aborts_estimate(providers, ca_request):
    def broken(*args):
        raise ProviderError("Request timed out. Please try again.")

    outcome = estimate_solar(ca_request, providers.collaborators(production=broken))
    assert outcome.state is S.FAILED
    assert isinstance(outcome.error, ProviderError)


def _raise(error):
    def collaborator(*args):
        raise error
    return collaborator


@pytest.mark.parametrize('name, error, states', [
    ('geocode', requests.exceptions.ConnectionError('refused'), [S.IDLE, S.LOCATING, S.FAILED]),
    ('production', KeyError('outputs'),
     [S.IDLE, S.LOCATING, S.SIZING, S.PRODUCTION_REQUESTED, S.FAILED]),
    ('region_code', IndexError('list index out of range'),
     [S.IDLE, S.LOCATING, S.SIZING, S.PRODUCTION_REQUESTED, S.COSTING, S.FAILED]),
])
def test_unexpected_collaborator_errors_become_provider_errors(providers, ca_request, name, error, states):
    outcome = estimate_solar(ca_request, providers.collaborators(**{name: _raise(error)}))
    assert outcome.state is S.FAILED
    assert isinstance(outcome.error, ProviderError)
    assert outcome.error.__cause__ is error
    assert outcome.states == states
    assert providers.called('current_weather') == []


def test_incentive_total_matches_applied_amounts(providers, ca_request):
    costs = estimate_solar(ca_request, providers.collaborators()).result().costs
    _, total = apply_incentives(DEFAULT_CATALOG.match('CA'), costs.installation_cost)
    assert costs.total_incentives == total
    assert costs.adjusted_cost == costs.installation_cost - total


def test_weather_failure_is_absorbed(ca_request, caplog):
    caplog.set_level(logging.WARNING)
    providers = FakeProviders(weather_error=ProviderError("Network error: refused"))
    outcome = estimate_solar(ca_request, providers.collaborators())

    assert outcome.succeeded
    assert outcome.states == FULL_RUN
    weather = outcome.estimate.current_weather
    assert weather.status is BranchStatus.FAILED
    assert weather.value is None
    assert 'refused' in weather.error
    assert outcome.estimate.climate.available
    assert 'current weather' in caplog.text


def test_both_optional_failures_are_absorbed(ca_request):
    providers = FakeProviders(
        weather_error=MalformedResponse("Unexpected weather data format"),
        history_error=RuntimeError("boom")
    )
    outcome = estimate_solar(ca_request, providers.collaborators())

    assert outcome.state is S.COMPLETE
    assert outcome.estimate.current_weather.status is BranchStatus.FAILED
    assert outcome.estimate.climate.status is BranchStatus.FAILED
    assert outcome.estimate.monthly_climate is None
    assert outcome.estimate.costs.installation_cost > 0


def test_weather_not_requested(providers):
    request = EstimationRequest(
        '1 Capitol Mall, Sacramento, CA', 10000, include_weather=False, include_history=False
    )
    outcome = estimate_solar(request, providers.collaborators())

    assert outcome.succeeded
    assert outcome.states == [S.IDLE, S.LOCATING, S.SIZING, S.PRODUCTION_REQUESTED, S.COSTING, S.COMPLETE]
    assert outcome.estimate.current_weather.status is BranchStatus.NOT_REQUESTED
    assert outcome.estimate.climate.status is BranchStatus.NOT_REQUESTED
    assert providers.called('current_weather') == []
    assert providers.called('historical_weather') == []


def test_missing_weather_collaborators_count_as_not_requested(providers, ca_request):
    collaborators = providers.collaborators(current_weather=None, historical_weather=None)
    estimate = estimate_solar(ca_request, collaborators).result()
    assert estimate.current_weather.status is BranchStatus.NOT_REQUESTED
    assert estimate.climate.status is BranchStatus.NOT_REQUESTED


def test_only_history_requested(providers):
    request = EstimationRequest('1 Capitol Mall, Sacramento, CA', 10000, include_weather=False)
    outcome = estimate_solar(request, providers.collaborators())
    assert S.WEATHER_REQUESTED not in outcome.states
    assert S.HISTORICAL_REQUESTED in outcome.states
    assert outcome.estimate.climate.available


def test_injected_catalog_and_config(providers):
    catalog = IncentiveCatalog([
        IncentiveRecord('ZZ', TAX_CREDIT, 0.5, 'Half off'),
        IncentiveRecord('ZZ', REBATE, 100, 'Small rebate'),
    ])
    config = EstimatorConfig(cost_per_watt=3.0, electricity_rate=0.2)
    estimator = SolarEstimator(providers.collaborators(), config=config, catalog=catalog)

    costs = estimator.estimate(EstimationRequest('Somewhere, ZZ', 10000)).result().costs
    installation = (10000 / 365 / 4 / 0.75) * 1000 * 3.0
    assert costs.installation_cost == pytest.approx(installation)
    assert costs.total_incentives == pytest.approx(installation * 0.5 + 100)
    assert costs.annual_savings == pytest.approx(12000 * 0.2)


def test_empty_catalog_is_respected(providers, ca_request):
    estimator = SolarEstimator(providers.collaborators(), catalog=IncentiveCatalog([]))
    assert estimator.estimate(ca_request).result().applied_incentives == []


def test_custom_region_code_function(providers):
    collaborators = providers.collaborators(region_code=lambda address: 'NY')
    estimate = estimate_solar(EstimationRequest('350 5th Ave, New York 10118', 10000), collaborators).result()
    assert estimate.region_code == 'NY'
    assert [a.record.region_code for a in estimate.applied_incentives] == ['NY', 'NY']


def test_default_collaborators_wire_provider_clients():
    collaborators = default_collaborators(ApiKeys(nrel='n', openweather='o'))
    assert collaborators.production.__self__.api_key == 'n'
    assert collaborators.current_weather.__self__.api_key == 'o'
    assert collaborators.historical_weather.__self__.api_key == 'o'
