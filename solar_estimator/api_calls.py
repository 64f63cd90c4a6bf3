"""
Provider API integration for solar production estimates.
Handles Nominatim geocoding, NREL PVWatts and OpenWeather calls.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests

from .climate import CurrentWeather, WeatherSample, parse_current_weather, parse_daily_samples
from .config import EstimatorConfig
from .errors import MalformedResponse, MissingApiKey, ProviderError

log = logging.getLogger(__name__)

NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
PVWATTS_URL = "https://developer.nrel.gov/api/pvwatts/v6.json"
OPENWEATHER_CURRENT_URL = "https://api.openweathermap.org/data/2.5/weather"
OPENWEATHER_ONECALL_URL = "https://api.openweathermap.org/data/2.5/onecall"

USER_AGENT = "solar-estimator/0.1"


@dataclass(frozen=True)
class Location:
    """Coordinates resolved from an address."""
    latitude: float
    longitude: float
    display_name: str = field(default='', compare=False)


def _get_json(url: str, params: Dict[str, Any], timeout: int,
              headers: Optional[Dict[str, str]] = None,
              allow_error_body: bool = False) -> Any:
    """
    GET a URL and decode its JSON body.

    With allow_error_body, a 4xx response whose JSON carries an 'errors'
    list is returned instead of raised, so callers can report the
    provider's own messages.
    """
    try:
        response = requests.get(url, params=params, headers=headers, timeout=timeout)

        if allow_error_body and 400 <= response.status_code < 500:
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and body.get('errors'):
                return body

        response.raise_for_status()
        return response.json()

    except requests.exceptions.Timeout as e:
        log.error("Request timed out: %s", url)
        raise ProviderError("Request timed out. Please try again.") from e
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        error_msg = f"API error: {status}"
        if status in (401, 403):
            error_msg = "API key invalid or quota exceeded"
        elif status == 404:
            error_msg = "No data available for this location"
        log.error("%s (URL: %s)", error_msg, url)
        raise ProviderError(error_msg) from e
    except requests.exceptions.JSONDecodeError as e:
        log.error("Invalid JSON from %s: %s", url, e)
        raise MalformedResponse(f"Invalid JSON in response: {str(e)}") from e
    except requests.exceptions.RequestException as e:
        log.error("Network error calling %s: %s", url, e)
        raise ProviderError(f"Network error: {str(e)}") from e


def geocode_address(address: str) -> Optional[Location]:
    """
    Convert a street address to coordinates using OpenStreetMap Nominatim.

    Args:
        address: Free-text address

    Returns:
        Location of the best match, or None if nothing matched
    """
    params = {
        "format": "json",
        "q": address,
        "limit": 1
    }
    data = _get_json(NOMINATIM_URL, params, timeout=10, headers={"User-Agent": USER_AGENT})

    if not isinstance(data, list):
        raise MalformedResponse("Geocoding response is not a list")
    if not data:
        return None

    hit = data[0]
    try:
        return Location(
            latitude=float(hit['lat']),
            longitude=float(hit['lon']),
            display_name=hit.get('display_name', address)
        )
    except (KeyError, TypeError, ValueError) as e:
        raise MalformedResponse(f"Geocoding result missing coordinates: {e!r}") from e


class PVWattsClient:
    """
    Minimal helper for calling the NREL PVWatts API.

    Docs: https://developer.nrel.gov/docs/solar/pvwatts/v6/
    """

    def __init__(self, api_key: Optional[str], config: Optional[EstimatorConfig] = None):
        self.api_key = api_key
        self.config = config or EstimatorConfig()

    def request(
        self,
        location: Location,
        system_capacity_kw: float,
        tilt_deg: float,
        azimuth_deg: float
    ) -> Dict[str, Any]:
        """
        Calls PVWatts and returns the decoded JSON payload.

        The payload is returned as-is, including an 'errors' list if the API
        reported one; interpret_production decides what it means.
        """
        if not self.api_key:
            raise MissingApiKey("No NREL_API_KEY configured.")

        params = {
            "api_key": self.api_key,
            "lat": location.latitude,
            "lon": location.longitude,
            "system_capacity": system_capacity_kw,
            "azimuth": azimuth_deg,
            "tilt": tilt_deg,
            "array_type": self.config.array_type,
            "module_type": self.config.module_type,
            "losses": self.config.losses_pct,
        }
        return _get_json(PVWATTS_URL, params, timeout=15, allow_error_body=True)


class OpenWeatherClient:
    """Current conditions and recent daily history from OpenWeather."""

    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key

    def _params(self, location: Location) -> Dict[str, Any]:
        if not self.api_key:
            raise MissingApiKey("No OPENWEATHER_API_KEY configured.")
        return {
            "lat": location.latitude,
            "lon": location.longitude,
            "appid": self.api_key,
            "units": "metric",
        }

    def current(self, location: Location) -> CurrentWeather:
        """Current temperature, description and cloud cover."""
        data = _get_json(OPENWEATHER_CURRENT_URL, self._params(location), timeout=10)
        return parse_current_weather(data)

    def daily(self, location: Location) -> List[WeatherSample]:
        """Daily samples from the One Call API."""
        params = self._params(location)
        params["exclude"] = "current,minutely,hourly,alerts"
        data = _get_json(OPENWEATHER_ONECALL_URL, params, timeout=10)
        return parse_daily_samples(data)
