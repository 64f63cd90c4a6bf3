"""
Weather records and their reduction to monthly climate normals.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List

import pandas as pd

from .errors import MalformedResponse
from .production import MONTH_NAMES


@dataclass(frozen=True)
class WeatherSample:
    """One day of historical weather."""
    timestamp: datetime
    temperature_c: float  # Daytime temperature
    uv_index: float  # Stand-in for solar radiation


@dataclass(frozen=True)
class MonthlyClimateSummary:
    """Mean daytime temperature and UV index for a calendar month."""
    month: int  # 1-12
    label: str
    temperature_c: float
    uv_index: float
    sample_count: int


@dataclass(frozen=True)
class CurrentWeather:
    """Conditions at the site right now."""
    temperature_c: float
    condition_text: str
    cloud_cover_pct: float


def _utc_month(timestamp: datetime) -> int:
    # Naive timestamps are taken as UTC
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc)
    return timestamp.month


def _mean(values: pd.Series) -> float:
    # fsum keeps the result independent of sample order
    return math.fsum(values) / len(values)


def aggregate_monthly_climate(samples: Iterable[WeatherSample]) -> List[MonthlyClimateSummary]:
    """
    Average daily samples into one summary per calendar month.

    Always returns 12 entries, January first. Months without samples
    report 0 for both averages. Averages are rounded to one decimal.

    Args:
        samples: Daily weather samples in any order

    Returns:
        List of 12 MonthlyClimateSummary
    """
    frame = pd.DataFrame(
        [(_utc_month(s.timestamp), s.temperature_c, s.uv_index) for s in samples],
        columns=['month', 'temperature_c', 'uv_index']
    )

    if frame.empty:
        monthly = pd.DataFrame(columns=['temperature_c', 'uv_index', 'sample_count'])
    else:
        monthly = frame.groupby('month').agg(
            temperature_c=('temperature_c', _mean),
            uv_index=('uv_index', _mean),
            sample_count=('temperature_c', 'size'),
        )
    monthly = monthly.reindex(range(1, 13))

    summaries = []
    for month, label in enumerate(MONTH_NAMES, start=1):
        row = monthly.loc[month]
        count = 0 if pd.isna(row['sample_count']) else int(row['sample_count'])
        if count > 0:
            temperature = round(float(row['temperature_c']), 1)
            uv_index = round(float(row['uv_index']), 1)
        else:
            temperature = 0.0
            uv_index = 0.0
        summaries.append(MonthlyClimateSummary(
            month=month,
            label=label,
            temperature_c=temperature,
            uv_index=uv_index,
            sample_count=count
        ))

    return summaries


def parse_current_weather(data: Dict[str, Any]) -> CurrentWeather:
    """
    Read an OpenWeather current-weather payload.

    Raises:
        MalformedResponse: if temperature, description or cloud cover is missing
    """
    try:
        return CurrentWeather(
            temperature_c=float(data['main']['temp']),
            condition_text=str(data['weather'][0]['description']),
            cloud_cover_pct=float(data['clouds']['all'])
        )
    except (KeyError, IndexError, TypeError, ValueError) as e:
        raise MalformedResponse(f"Unexpected weather data format: {e!r}") from e


def parse_daily_samples(data: Dict[str, Any]) -> List[WeatherSample]:
    """
    Read the daily block of an OpenWeather One Call payload.

    Raises:
        MalformedResponse: if 'daily' is missing or a day lacks dt, temp.day or uvi
    """
    if not isinstance(data, dict) or not isinstance(data.get('daily'), list):
        raise MalformedResponse("Unexpected historical weather data format: missing 'daily'")

    samples = []
    try:
        for day in data['daily']:
            samples.append(WeatherSample(
                timestamp=datetime.fromtimestamp(day['dt'], tz=timezone.utc),
                temperature_c=float(day['temp']['day']),
                uv_index=float(day['uvi'])
            ))
    except (KeyError, TypeError, ValueError, OverflowError, OSError) as e:
        raise MalformedResponse(f"Unexpected historical weather data format: {e!r}") from e

    return samples
