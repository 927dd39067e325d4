"""
Yahoo Fantasy Sports API client for fantasy football.
"""

import logging
from typing import List, Dict, Optional, Any
import requests

from yahoo_fantasy_api import league, team

from ..data.models import (
    Player, Roster, RosterPosition, LeagueRules, InjuryStatus, RESERVE_SLOTS, as_float
)
from ..config.settings import AppConfig, get_config
from .auth_manager import YahooAuthManager


logger = logging.getLogger(__name__)


# Yahoo roster status codes
YAHOO_STATUS_CODES = {
    '': InjuryStatus.ACTIVE,
    'P': InjuryStatus.PROBABLE,
    'Q': InjuryStatus.QUESTIONABLE,
    'D': InjuryStatus.DOUBTFUL,
    'O': InjuryStatus.OUT,
    'IR': InjuryStatus.OUT,
    'SUSP': InjuryStatus.OUT,
    'NA': InjuryStatus.OUT,
}

DEFAULT_SCORING_SETTINGS = {
    'Passing Yards': 0.04,
    'Passing Touchdowns': 4,
    'Interceptions': -2,
    'Rushing Yards': 0.1,
    'Rushing Touchdowns': 6,
    'Receptions': 0.5,
    'Receiving Yards': 0.1,
    'Receiving Touchdowns': 6,
    'Field Goals 0-19': 3,
    'Field Goals 20-29': 3,
    'Field Goals 30-39': 3,
    'Field Goals 40-49': 4,
    'Field Goals 50+': 5,
    'Extra Points': 1,
    'Sacks': 1,
    'Defensive Interceptions': 2,
    'Fumbles Recovered': 2,
    'Safeties': 2,
    'Defensive Touchdowns': 6,
    'Points Allowed 0': 10,
    'Points Allowed 1-6': 7,
    'Points Allowed 7-13': 4,
    'Points Allowed 14-20': 1,
    'Points Allowed 21-27': 0,
    'Points Allowed 28-34': -1,
    'Points Allowed 35+': -4,
}


def parse_yahoo_status(code: Optional[str]) -> InjuryStatus:
    """Map a Yahoo roster status code to an injury status."""
    code = (code or '').strip().upper()
    if code in YAHOO_STATUS_CODES:
        return YAHOO_STATUS_CODES[code]
    if code.startswith('PUP') or code.startswith('NFI'):
        return InjuryStatus.OUT
    # Full words ("Questionable") come through from some endpoints and the demo roster
    for status in InjuryStatus:
        if code == status.value.upper():
            return status
    return InjuryStatus.UNKNOWN


def get_mock_roster() -> Roster:
    """Demonstration roster used when Yahoo is unavailable."""
    def player(player_id, name, position, nfl_team, slot):
        return Player(player_id=player_id, name=name, position=position, team=nfl_team,
                      is_starting=slot != 'BN', status='Active', selected_position=slot)

    return Roster(
        team_id='1',
        team_name='Mock Team',
        players=[
            player('1', 'Patrick Mahomes', 'QB', 'KC', 'QB'),
            player('2', 'Christian McCaffrey', 'RB', 'SF', 'RB'),
            player('3', 'Tyreek Hill', 'WR', 'MIA', 'WR'),
            player('4', 'Travis Kelce', 'TE', 'KC', 'TE'),
            player('5', 'Justin Tucker', 'K', 'BAL', 'K'),
            player('6', 'Buffalo Bills', 'DEF', 'BUF', 'DEF'),
            player('7', 'Josh Allen', 'QB', 'BUF', 'BN'),
            player('8', 'Saquon Barkley', 'RB', 'PHI', 'BN'),
        ]
    )


def get_default_league_rules() -> LeagueRules:
    """Standard league rules used when Yahoo settings are unavailable."""
    return LeagueRules(
        roster_positions=[
            RosterPosition('QB', 1),
            RosterPosition('RB', 2),
            RosterPosition('WR', 2),
            RosterPosition('TE', 1),
            RosterPosition('K', 1),
            RosterPosition('DEF', 1),
            RosterPosition('BN', 6),
        ],
        scoring_settings=dict(DEFAULT_SCORING_SETTINGS),
        max_teams=12,
        max_adds=0,
        max_trades=0,
        trade_deadline=None
    )


class SimpleOAuth:
    """Minimal OAuth holder accepted by yahoo_fantasy_api (it only needs ``session``)."""

    def __init__(self, token: str):
        self.token = token
        self.session = requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {self.token}',
            'User-Agent': 'RosterAdvisor/1.0'
        })

    def token_is_valid(self) -> bool:
        return True


class YahooFantasyClient:
    """Yahoo Fantasy Sports API client."""

    def __init__(self, auth_manager: Optional[YahooAuthManager] = None,
                 config: Optional[AppConfig] = None):
        self.config = config or get_config()
        self.auth_manager = auth_manager or YahooAuthManager(self.config)
        self._oauth: Optional[SimpleOAuth] = None
        self._leagues: Dict[str, league.League] = {}

    def _get_oauth(self) -> Optional[SimpleOAuth]:
        if self._oauth is None:
            access_token = self.auth_manager.get_access_token()
            if not access_token:
                return None
            self._oauth = SimpleOAuth(access_token)
        return self._oauth

    def _get_league(self, league_id: Optional[str]) -> Optional[league.League]:
        if not league_id:
            return None
        oauth = self._get_oauth()
        if oauth is None:
            return None
        if league_id not in self._leagues:
            self._leagues[league_id] = league.League(oauth, f"nfl.l.{league_id}")
        return self._leagues[league_id]

    @property
    def is_connected(self) -> bool:
        return self._get_oauth() is not None

    def get_roster(self, league_id: Optional[str], team_id: Optional[str]) -> Roster:
        """Get a team's roster, or the demonstration roster if Yahoo is unavailable."""
        if not league_id or not team_id:
            logger.warning("League or team ID not set, using demonstration roster")
            return get_mock_roster()

        oauth = self._get_oauth()
        if oauth is None:
            logger.info("No Yahoo access token found, using demonstration roster")
            return get_mock_roster()

        try:
            team_key = f"nfl.l.{league_id}.t.{team_id}"
            lg = self._get_league(league_id)
            roster_data = team.Team(oauth, team_key).roster()

            details = self._get_player_details(lg, [p.get('player_id') for p in roster_data])

            players = []
            for player_data in roster_data:
                player = self._parse_player_data(player_data, details.get(str(player_data.get('player_id'))))
                if player:
                    players.append(player)

            roster = Roster(team_id=str(team_id), team_name=self._get_team_name(lg, team_id), players=players)
            logger.info(f"Retrieved {len(players)} players from roster")
            return roster

        except (requests.RequestException, RuntimeError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Error fetching roster: {e}")
            return get_mock_roster()

    def get_league_rules(self, league_id: Optional[str]) -> LeagueRules:
        """Get league roster slots and scoring, or default rules if Yahoo is unavailable."""
        lg = self._get_league(league_id)
        if lg is None:
            return get_default_league_rules()

        try:
            positions = lg.positions()
            settings = lg.settings()

            roster_positions = []
            for position, info in positions.items():
                count = int(as_float(info.get('count'))) if isinstance(info, dict) else 0
                roster_positions.append(RosterPosition(position=position, count=count))

            scoring_settings = self._parse_scoring_settings(settings)

            return LeagueRules(
                roster_positions=roster_positions,
                scoring_settings=scoring_settings or dict(DEFAULT_SCORING_SETTINGS),
                max_teams=int(as_float(settings.get('num_teams'), 12)),
                max_adds=int(as_float(settings.get('max_adds'))),
                max_trades=int(as_float(settings.get('max_trades'))),
                trade_deadline=settings.get('trade_end_date') or None
            )

        except (requests.RequestException, RuntimeError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Error fetching league rules: {e}")
            return get_default_league_rules()

    def get_player_points(self, league_id: str, player_ids: List[str],
                          week: Optional[int] = None) -> Dict[str, float]:
        """Fantasy points per player for one week, or season to date when ``week`` is None.

        Raises ``LookupError`` when Yahoo is unavailable so callers can fall back.
        """
        lg = self._get_league(league_id)
        if lg is None:
            raise LookupError("Yahoo access token not available")

        ids = [int(player_id) for player_id in player_ids]
        if week is None:
            stats = lg.player_stats(ids, 'season')
        else:
            stats = lg.player_stats(ids, 'week', week=week)

        points = {}
        for entry in stats:
            if entry.get('player_id') is None:
                continue
            points[str(entry['player_id'])] = as_float(entry.get('total_points'))
        return points

    def get_free_agents(self, league_id: str, position: str, count: int = 2) -> List[str]:
        """Names of the most-owned available players at a position."""
        lg = self._get_league(league_id)
        if lg is None:
            return []

        try:
            players = lg.free_agents(position)
            players = sorted(players, key=lambda p: as_float(p.get('percent_owned')), reverse=True)
            return [p['name'] for p in players[:count] if p.get('name')]
        except (requests.RequestException, RuntimeError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Error fetching {position} free agents: {e}")
            return []

    def _get_player_details(self, lg: league.League, player_ids: List[Any]) -> Dict[str, Dict[str, Any]]:
        ids = [int(player_id) for player_id in player_ids if player_id is not None]
        if not ids:
            return {}
        try:
            return {str(d.get('player_id')): d for d in lg.player_details(ids)}
        except (requests.RequestException, RuntimeError, ValueError, KeyError, TypeError) as e:
            logger.debug(f"Could not fetch player details: {e}")
            return {}

    def _get_team_name(self, lg: league.League, team_id: str) -> str:
        # Yahoo keys teams by numeric game id ("449.l.123.t.4"), not "nfl"
        try:
            for team_key, info in lg.teams().items():
                if team_key.endswith(f".t.{team_id}"):
                    return info.get('name', 'Unknown Team')
        except (requests.RequestException, RuntimeError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.debug(f"Could not fetch team name for team {team_id}: {e}")
        return 'Unknown Team'

    def _parse_scoring_settings(self, settings: Dict[str, Any]) -> Dict[str, float]:
        scoring = {}
        for rule in settings.get('scoring_settings') or []:
            if isinstance(rule, dict) and rule.get('stat'):
                scoring[str(rule['stat'])] = as_float(rule.get('points'))
        return scoring

    def _parse_player_data(self, player_data: Dict[str, Any],
                           player_details: Optional[Dict[str, Any]] = None) -> Optional[Player]:
        """Parse one roster entry from the Yahoo API."""
        if player_data.get('player_id') is None:
            return None

        details = player_details or {}
        eligible_positions = player_data.get('eligible_positions') or []
        display_position = details.get('display_position') or (eligible_positions[0] if eligible_positions else 'Unknown')
        selected_position = str(player_data.get('selected_position') or 'BN')

        return Player(
            player_id=str(player_data['player_id']),
            name=str(player_data.get('name') or 'Unknown Player'),
            position=str(display_position).split(',')[0],
            team=str(details.get('editorial_team_abbr') or 'Unknown').upper(),
            is_starting=selected_position not in RESERVE_SLOTS,
            status=str(player_data.get('status') or 'Active'),
            selected_position=selected_position
        )
