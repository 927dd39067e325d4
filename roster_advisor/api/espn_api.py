"""
ESPN public API integration: weekly NFL schedule and league-wide injury report.
"""

import time
import logging
import threading
from typing import List, Dict, Optional, Any
from dataclasses import dataclass
import requests

from ..data.models import InjuryStatus, parse_enum


logger = logging.getLogger(__name__)


SCOREBOARD_URL = "https://site.api.espn.com/apis/site/v2/sports/football/nfl/scoreboard"
INJURIES_URL = "https://site.api.espn.com/apis/site/v2/sports/football/nfl/injuries"

# Yahoo abbreviations that differ from ESPN's
TEAM_ALIASES = {
    'WAS': 'WSH',
    'JAC': 'JAX',
    'LA': 'LAR',
}

ESPN_STATUS_ALIASES = {
    'day-to-day': InjuryStatus.QUESTIONABLE,
    'injured reserve': InjuryStatus.OUT,
    'suspension': InjuryStatus.OUT,
    'physically unable to perform': InjuryStatus.OUT,
}


def normalize_team(abbreviation: Optional[str]) -> str:
    abbreviation = (abbreviation or '').strip().upper()
    return TEAM_ALIASES.get(abbreviation, abbreviation)


def normalize_name(name: str) -> str:
    return ' '.join(name.lower().replace('.', '').replace("'", '').split())


def parse_espn_status(status: Optional[str]) -> InjuryStatus:
    parsed = parse_enum(InjuryStatus, status, None)
    if parsed is not None:
        return parsed
    return ESPN_STATUS_ALIASES.get((status or '').strip().lower(), InjuryStatus.UNKNOWN)


@dataclass
class ScheduledGame:
    """One NFL game in a week's schedule."""
    home_team: str
    away_team: str
    game_time: Optional[str] = None
    venue: Optional[str] = None
    city: Optional[str] = None


@dataclass
class InjuryEntry:
    """One player's line on the ESPN injury report."""
    status: InjuryStatus
    description: str = ""


class ESPNClient:
    """Client for ESPN's public NFL endpoints."""

    def __init__(self, timeout: float = 5.0):
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'RosterAdvisor/1.0 (ESPN Integration)'
        })
        self._cache: Dict[Any, Any] = {}
        self._cache_ttl = 1800  # 30 minutes
        self._lock = threading.Lock()

    def _get_cached(self, key):
        with self._lock:
            if key in self._cache:
                data, timestamp = self._cache[key]
                if time.time() - timestamp < self._cache_ttl:
                    return data
        return None

    def _set_cached(self, key, data):
        with self._lock:
            self._cache[key] = (data, time.time())

    def get_schedule(self, week: int) -> List[ScheduledGame]:
        """Regular-season games for a week. Raises ``requests.RequestException`` on failure."""
        cached = self._get_cached(('schedule', week))
        if cached is not None:
            return cached

        response = self.session.get(
            SCOREBOARD_URL,
            params={'week': week, 'seasontype': 2},
            timeout=self.timeout
        )
        response.raise_for_status()
        games = self._parse_scoreboard(response.json())

        self._set_cached(('schedule', week), games)
        logger.debug(f"Loaded {len(games)} games for week {week}")
        return games

    def find_game(self, schedule: List[ScheduledGame], team: str) -> Optional[ScheduledGame]:
        team = normalize_team(team)
        for game in schedule:
            if team in (game.home_team, game.away_team):
                return game
        return None

    def get_injuries(self) -> Dict[str, InjuryEntry]:
        """League-wide injury report keyed by normalized player name."""
        cached = self._get_cached('injuries')
        if cached is not None:
            return cached

        response = self.session.get(INJURIES_URL, timeout=self.timeout)
        response.raise_for_status()
        injuries = self._parse_injuries(response.json())

        self._set_cached('injuries', injuries)
        logger.debug(f"Loaded {len(injuries)} injury report entries")
        return injuries

    def get_player_injury(self, player_name: str) -> Optional[InjuryEntry]:
        return self.get_injuries().get(normalize_name(player_name))

    def clear_cache(self):
        with self._lock:
            self._cache.clear()

    def _parse_scoreboard(self, data: Dict[str, Any]) -> List[ScheduledGame]:
        games = []
        for event in data.get('events') or []:
            competitions = event.get('competitions') or []
            if not competitions:
                continue
            competition = competitions[0]

            home_team = away_team = None
            for competitor in competition.get('competitors') or []:
                abbreviation = normalize_team((competitor.get('team') or {}).get('abbreviation'))
                if competitor.get('homeAway') == 'home':
                    home_team = abbreviation
                elif competitor.get('homeAway') == 'away':
                    away_team = abbreviation

            if not home_team or not away_team:
                continue

            venue = competition.get('venue') or {}
            games.append(ScheduledGame(
                home_team=home_team,
                away_team=away_team,
                game_time=event.get('date') or competition.get('date'),
                venue=venue.get('fullName'),
                city=(venue.get('address') or {}).get('city')
            ))
        return games

    def _parse_injuries(self, data: Dict[str, Any]) -> Dict[str, InjuryEntry]:
        injuries = {}
        for team_report in data.get('injuries') or []:
            for item in team_report.get('injuries') or []:
                name = (item.get('athlete') or {}).get('displayName')
                if not name:
                    continue
                status = parse_espn_status(item.get('status'))
                injuries[normalize_name(name)] = InjuryEntry(
                    status=status,
                    description=str(item.get('shortComment') or '')
                )
        return injuries
