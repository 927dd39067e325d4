"""
Game-time weather forecasts from OpenWeather.
"""

import logging
from typing import Optional, Dict, Any
from datetime import datetime, timezone
import requests

from ..data.models import WeatherReport, as_float


logger = logging.getLogger(__name__)


FORECAST_URL = "https://api.openweathermap.org/data/2.5/forecast"

# Forecast slots further than this from kickoff are ignored
MAX_FORECAST_GAP_SECONDS = 3 * 60 * 60


def parse_game_time(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 kickoff time (ESPN uses a trailing ``Z``) as UTC."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class WeatherClient:
    """OpenWeather 5-day forecast client."""

    def __init__(self, api_key: Optional[str], timeout: float = 5.0):
        self.api_key = api_key
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'RosterAdvisor/1.0 (OpenWeather Integration)'
        })

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def get_game_forecast(self, city: Optional[str], game_time: Optional[str]) -> Optional[WeatherReport]:
        """Forecast closest to kickoff, or None when nothing is within 3 hours.

        Raises ``requests.RequestException`` on HTTP failure.
        """
        kickoff = parse_game_time(game_time)
        if not self.enabled or not city or kickoff is None:
            return None

        response = self.session.get(
            FORECAST_URL,
            params={'q': city, 'appid': self.api_key, 'units': 'imperial'},
            timeout=self.timeout
        )
        response.raise_for_status()
        return self._select_forecast(response.json(), kickoff)

    def _select_forecast(self, data: Dict[str, Any], kickoff: datetime) -> Optional[WeatherReport]:
        target = kickoff.timestamp()
        best = None
        best_gap = None

        for entry in data.get('list') or []:
            gap = abs(as_float(entry.get('dt')) - target)
            if gap >= MAX_FORECAST_GAP_SECONDS:
                continue
            if best_gap is None or gap < best_gap:
                best, best_gap = entry, gap

        if best is None:
            logger.debug(f"No forecast within 3 hours of {kickoff.isoformat()}")
            return None

        main = best.get('main') or {}
        wind = best.get('wind') or {}
        conditions = (best.get('weather') or [{}])[0]

        return WeatherReport(
            temperature=as_float(main.get('temp')) if main.get('temp') is not None else None,
            humidity=as_float(main.get('humidity')) if main.get('humidity') is not None else None,
            wind_speed=as_float(wind.get('speed')),
            conditions=str(conditions.get('main') or ''),
            description=str(conditions.get('description') or '')
        )
