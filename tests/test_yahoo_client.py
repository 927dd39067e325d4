"""
Tests for the Yahoo client and token manager.
"""

import json
import time
from unittest.mock import Mock, patch

import pytest
import requests

from roster_advisor.config.settings import AppConfig, YahooAPIConfig
from roster_advisor.data.models import InjuryStatus
from roster_advisor.api.auth_manager import YahooAuthManager
from roster_advisor.api.yahoo_client import (
    YahooFantasyClient, get_mock_roster, get_default_league_rules, parse_yahoo_status
)


class TestYahooHelpers:
    """Test cases for status parsing and fallback data."""

    def test_parse_yahoo_status(self):
        assert parse_yahoo_status('') == InjuryStatus.ACTIVE
        assert parse_yahoo_status(None) == InjuryStatus.ACTIVE
        assert parse_yahoo_status('Q') == InjuryStatus.QUESTIONABLE
        assert parse_yahoo_status('D') == InjuryStatus.DOUBTFUL
        assert parse_yahoo_status('IR') == InjuryStatus.OUT
        assert parse_yahoo_status('PUP-R') == InjuryStatus.OUT
        assert parse_yahoo_status('Questionable') == InjuryStatus.QUESTIONABLE
        assert parse_yahoo_status('Active') == InjuryStatus.ACTIVE
        assert parse_yahoo_status('COVID-19') == InjuryStatus.UNKNOWN

    def test_mock_roster(self):
        roster = get_mock_roster()

        assert roster.team_name == 'Mock Team'
        assert len(roster.players) == 8
        assert sum(1 for p in roster.players if p.is_starting) == 6
        assert {p.player_id for p in roster.players} == {str(i) for i in range(1, 9)}

    def test_default_league_rules(self):
        rules = get_default_league_rules()

        assert rules.required_positions() == {'QB': 1, 'RB': 2, 'WR': 2, 'TE': 1, 'K': 1, 'DEF': 1}
        assert rules.max_teams == 12
        assert rules.scoring_settings['Passing Touchdowns'] == 4


class TestYahooFantasyClient:
    """Test cases for YahooFantasyClient."""

    def setup_method(self):
        self.auth_manager = Mock()
        self.auth_manager.get_access_token.return_value = "token"
        self.client = YahooFantasyClient(auth_manager=self.auth_manager, config=AppConfig())

    def test_without_token_uses_fallbacks(self):
        self.auth_manager.get_access_token.return_value = None

        assert self.client.get_roster("123", "4").team_name == 'Mock Team'
        assert self.client.get_league_rules("123") == get_default_league_rules()
        assert self.client.get_free_agents("123", "RB") == []
        assert self.client.is_connected is False
        with pytest.raises(LookupError):
            self.client.get_player_points("123", ["1"])

    def test_without_ids_uses_mock_roster(self):
        assert self.client.get_roster(None, "4").team_name == 'Mock Team'
        self.auth_manager.get_access_token.assert_not_called()

    @patch('roster_advisor.api.yahoo_client.league.League')
    @patch('roster_advisor.api.yahoo_client.team.Team')
    def test_get_roster(self, mock_team, mock_league):
        mock_team.return_value.roster.return_value = [
            {'player_id': 30123, 'name': 'Patrick Mahomes', 'selected_position': 'QB',
             'eligible_positions': ['QB'], 'status': ''},
            {'player_id': 30977, 'name': 'Josh Allen', 'selected_position': 'BN',
             'eligible_positions': ['QB'], 'status': 'Q'},
        ]
        lg = mock_league.return_value
        lg.player_details.return_value = [
            {'player_id': '30123', 'editorial_team_abbr': 'kc', 'display_position': 'QB'},
            {'player_id': '30977', 'editorial_team_abbr': 'Buf', 'display_position': 'QB'},
        ]
        lg.teams.return_value = {'449.l.123.t.4': {'name': 'Touchdown Makers'}}

        roster = self.client.get_roster("123", "4")

        mock_team.assert_called_once()
        assert mock_team.call_args.args[1] == "nfl.l.123.t.4"
        lg.player_details.assert_called_once_with([30123, 30977])
        assert roster.team_id == "4"
        assert roster.team_name == 'Touchdown Makers'
        assert [p.player_id for p in roster.players] == ["30123", "30977"]
        assert roster.players[0].team == 'KC'
        assert roster.players[0].is_starting is True
        assert roster.players[1].is_starting is False
        assert roster.players[1].status == 'Q'

    @patch('roster_advisor.api.yahoo_client.league.League')
    @patch('roster_advisor.api.yahoo_client.team.Team')
    def test_get_roster_error_falls_back(self, mock_team, mock_league):
        mock_team.return_value.roster.side_effect = RuntimeError("API down")

        roster = self.client.get_roster("123", "4")

        assert roster.team_name == 'Mock Team'

    @patch('roster_advisor.api.yahoo_client.league.League')
    def test_get_league_rules(self, mock_league):
        lg = mock_league.return_value
        lg.positions.return_value = {
            'QB': {'count': 1}, 'RB': {'count': 2}, 'W/R/T': {'count': 1}, 'BN': {'count': 6}
        }
        lg.settings.return_value = {
            'num_teams': 10, 'max_adds': 0, 'trade_end_date': '2024-11-16',
            'scoring_settings': [{'stat': 'Receptions', 'points': 1}]
        }

        rules = self.client.get_league_rules("123")

        assert rules.required_positions() == {'QB': 1, 'RB': 2, 'W/R/T': 1}
        assert rules.max_teams == 10
        assert rules.max_adds == 0
        assert rules.trade_deadline == '2024-11-16'
        assert rules.scoring_settings == {'Receptions': 1.0}

    @patch('roster_advisor.api.yahoo_client.league.League')
    def test_get_league_rules_error_uses_defaults(self, mock_league):
        mock_league.return_value.positions.side_effect = requests.ConnectionError("down")

        assert self.client.get_league_rules("123") == get_default_league_rules()

    @patch('roster_advisor.api.yahoo_client.league.League')
    def test_get_player_points(self, mock_league):
        lg = mock_league.return_value
        lg.player_stats.return_value = [
            {'player_id': 30123, 'total_points': 24.5},
            {'player_id': 30977, 'total_points': '-'},
        ]

        season = self.client.get_player_points("123", ["30123", "30977"])
        weekly = self.client.get_player_points("123", ["30123"], week=3)

        assert season == {'30123': 24.5, '30977': 0.0}
        assert weekly['30123'] == 24.5
        lg.player_stats.assert_any_call([30123, 30977], 'season')
        lg.player_stats.assert_any_call([30123], 'week', week=3)

    @patch('roster_advisor.api.yahoo_client.league.League')
    def test_get_free_agents_sorted_by_ownership(self, mock_league):
        mock_league.return_value.free_agents.return_value = [
            {'name': 'Deep Sleeper', 'percent_owned': 2},
            {'name': 'Popular Pickup', 'percent_owned': 45},
            {'name': 'Solid Backup', 'percent_owned': 20},
        ]

        assert self.client.get_free_agents("123", "RB") == ['Popular Pickup', 'Solid Backup']


class TestYahooAuthManager:
    """Test cases for YahooAuthManager."""

    def make_config(self, tmp_path, **yahoo):
        yahoo.setdefault('token_file', str(tmp_path / 'tokens.json'))
        return AppConfig(yahoo_api=YahooAPIConfig(**yahoo))

    def test_configured_token_is_used(self, tmp_path):
        manager = YahooAuthManager(self.make_config(tmp_path, access_token='configured'))

        assert manager.get_access_token() == 'configured'
        assert manager.is_authenticated()

    def test_token_file_is_loaded(self, tmp_path):
        token_file = tmp_path / 'tokens.json'
        token_file.write_text(json.dumps({
            'access_token': 'stored', 'refresh_token': 'refresh', 'expires_at': time.time() + 3600
        }))

        manager = YahooAuthManager(self.make_config(tmp_path))

        assert manager.get_access_token() == 'stored'

    def test_unreadable_token_file_is_ignored(self, tmp_path):
        (tmp_path / 'tokens.json').write_text('not json')

        manager = YahooAuthManager(self.make_config(tmp_path))

        assert manager.get_access_token() is None

    @patch('roster_advisor.api.auth_manager.requests.post')
    def test_expired_token_is_refreshed(self, mock_post, tmp_path):
        token_file = tmp_path / 'tokens.json'
        token_file.write_text(json.dumps({
            'access_token': 'old', 'refresh_token': 'refresh', 'expires_at': time.time() - 10
        }))
        mock_post.return_value.json.return_value = {
            'access_token': 'new', 'refresh_token': 'refresh-2', 'expires_in': 3600
        }

        manager = YahooAuthManager(self.make_config(tmp_path, client_id='id', client_secret='secret'))

        assert manager.get_access_token() == 'new'
        saved = json.loads(token_file.read_text())
        assert saved['access_token'] == 'new'
        assert saved['refresh_token'] == 'refresh-2'

    @patch('roster_advisor.api.auth_manager.requests.post')
    def test_failed_refresh_returns_none(self, mock_post, tmp_path):
        mock_post.side_effect = requests.ConnectionError("down")
        config = self.make_config(tmp_path, refresh_token='refresh', client_id='id', client_secret='secret')

        manager = YahooAuthManager(config)

        assert manager.get_access_token() is None
        mock_post.assert_called_once()

    def test_refresh_needs_client_credentials(self, tmp_path):
        manager = YahooAuthManager(self.make_config(tmp_path, refresh_token='refresh'))

        assert manager.get_access_token() is None

    def test_logout_removes_token_file(self, tmp_path):
        token_file = tmp_path / 'tokens.json'
        token_file.write_text(json.dumps({'access_token': 'stored'}))
        manager = YahooAuthManager(self.make_config(tmp_path))

        manager.logout()

        assert not token_file.exists()
        assert manager.get_access_token() is None
