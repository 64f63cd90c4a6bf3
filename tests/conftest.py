from datetime import datetime, timezone

import pytest

from solar_estimator import (
    Collaborators,
    CurrentWeather,
    EstimationRequest,
    Location,
    WeatherSample,
)

SACRAMENTO = Location(38.58, -121.49, display_name='Sacramento, California')

MONTHLY_KWH = [620.0, 750.0, 980.0, 1120.0, 1260.0, 1310.0,
               1350.0, 1290.0, 1110.0, 900.0, 700.0, 610.0]


def pvwatts_payload(annual=12000.0, monthly=None, errors=None):
    payload = {
        'errors': errors or [],
        'outputs': {
            'ac_annual': annual,
            'ac_monthly': list(MONTHLY_KWH if monthly is None else monthly),
        }
    }
    return payload


def sample(year, month, day, temperature, uv_index):
    return WeatherSample(
        timestamp=datetime(year, month, day, 12, tzinfo=timezone.utc),
        temperature_c=temperature,
        uv_index=uv_index
    )


class FakeProviders:
    """Canned collaborators that record how they were called."""

    def __init__(self, location=SACRAMENTO, payload=None,
                 weather=None, history=None,
                 weather_error=None, history_error=None):
        self.location = location
        self.payload = pvwatts_payload() if payload is None else payload
        self.weather = weather or CurrentWeather(
            temperature_c=24.5, condition_text='clear sky', cloud_cover_pct=5.0
        )
        self.history = history if history is not None else [
            sample(2023, 1, 10, 10.0, 2.0),
            sample(2023, 1, 20, 12.0, 3.0),
            sample(2023, 7, 4, 31.5, 9.5),
        ]
        self.weather_error = weather_error
        self.history_error = history_error
        self.calls = []

    def geocode(self, address):
        self.calls.append(('geocode', address))
        return self.location

    def production(self, location, capacity_kw, tilt, azimuth):
        self.calls.append(('production', location, capacity_kw, tilt, azimuth))
        return self.payload

    def current_weather(self, location):
        self.calls.append(('current_weather', location))
        if self.weather_error is not None:
            raise self.weather_error
        return self.weather

    def historical_weather(self, location):
        self.calls.append(('historical_weather', location))
        if self.history_error is not None:
            raise self.history_error
        return self.history

    def called(self, name):
        return [call for call in self.calls if call[0] == name]

    def collaborators(self, **overrides):
        kwargs = dict(
            geocode=self.geocode,
            production=self.production,
            current_weather=self.current_weather,
            historical_weather=self.historical_weather,
        )
        kwargs.update(overrides)
        return Collaborators(**kwargs)


@pytest.fixture
def providers():
    return FakeProviders()


@pytest.fixture
def ca_request():
    return EstimationRequest(
        address='1 Capitol Mall, Sacramento, CA',
        annual_consumption_kwh=10000,
        tilt_degrees=20,
        azimuth_degrees=180,
        roof_area_m2=60.0
    )
