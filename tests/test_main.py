"""
Tests for the command line entry point.
"""

from datetime import date
from unittest.mock import Mock, patch

import pytest
from rich.console import Console

from roster_advisor.config.settings import AppConfig, ENV_OVERRIDES
from roster_advisor.api.yahoo_client import get_mock_roster, get_default_league_rules
from roster_advisor.main import RosterAdvisor, build_parser, get_current_week, main


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestCurrentWeek:
    """Test cases for week calculation."""

    def test_weeks_from_season_start(self):
        assert get_current_week('2024-09-05', date(2024, 9, 5)) == 1
        assert get_current_week('2024-09-05', date(2024, 9, 11)) == 1
        assert get_current_week('2024-09-05', date(2024, 9, 12)) == 2

    def test_clamped_to_regular_season(self):
        assert get_current_week('2024-09-05', date(2024, 8, 1)) == 1
        assert get_current_week('2024-09-05', date(2025, 3, 1)) == 18


class TestParser:
    """Test cases for argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.week is None
        assert args.research is True
        assert args.interactive is False
        assert args.config == 'config.yaml'

    def test_flags(self):
        args = build_parser().parse_args(['--week', '5', '-l', '123', '-t', '4', '--no-research'])

        assert args.week == 5
        assert args.league == '123'
        assert args.team == '4'
        assert args.research is False

    @pytest.mark.parametrize("week", ['0', '19', 'five'])
    def test_invalid_week(self, week):
        with pytest.raises(SystemExit):
            build_parser().parse_args(['--week', week])


class TestRosterAdvisor:
    """Test cases for RosterAdvisor."""

    def setup_method(self):
        self.yahoo = Mock()
        self.yahoo.get_roster.return_value = get_mock_roster()
        self.yahoo.get_league_rules.return_value = get_default_league_rules()
        self.yahoo.is_connected = False
        self.out = Console(record=True, width=200, color_system=None)
        self.advisor = RosterAdvisor(AppConfig(), yahoo_client=self.yahoo, out=self.out)

    def test_run_analysis_without_research(self):
        with patch.object(self.advisor, 'create_research') as mock_research:
            recommendations = self.advisor.run_analysis(None, None, 5, research=False)

        mock_research.assert_not_called()
        assert len(recommendations.starter_recommendations) == 7
        assert recommendations.week == 5
        assert "Week 5 Recommendations" in self.out.export_text()

    def test_run_analysis_with_research(self):
        research = Mock()
        research.research_players.return_value = {}
        with patch.object(self.advisor, 'create_research', return_value=research):
            self.advisor.run_analysis("123", "4", 5)

        research.research_players.assert_called_once()
        assert research.research_players.call_args.args[1] == 5

    def test_free_agents_for_waiver_positions(self):
        self.yahoo.is_connected = True
        self.yahoo.get_free_agents.side_effect = lambda league_id, position: [f"{position} Pickup"]

        recommendations = self.advisor.run_analysis("123", "4", 5, research=False)

        waivers = {w.position: w.suggested_players for w in recommendations.waiver_recommendations}
        assert waivers == {'WR': ['WR Pickup'], 'TE': ['TE Pickup']}


class TestMain:
    """Test cases for main()."""

    @patch('roster_advisor.main.load_dotenv')
    @patch('roster_advisor.main.setup_logging')
    @patch('roster_advisor.main.RosterAdvisor')
    def test_main_runs_analysis(self, mock_advisor, mock_logging, mock_dotenv):
        main(['--week', '3', '--league', '123', '--team', '4', '--no-research'])

        mock_advisor.return_value.run_analysis.assert_called_once_with('123', '4', 3, research=False)
        mock_logging.assert_called_once()

    @patch('roster_advisor.main.load_dotenv')
    @patch('roster_advisor.main.setup_logging')
    @patch('roster_advisor.main.RosterAdvisor')
    def test_main_uses_configured_ids(self, mock_advisor, mock_logging, mock_dotenv, tmp_path):
        (tmp_path / 'config.yaml').write_text("league_id: 555\nteam_id: 2\n")

        main(['--week', '3'])

        mock_advisor.return_value.run_analysis.assert_called_once_with('555', '2', 3, research=True)

    @patch('roster_advisor.main.load_dotenv')
    @patch('roster_advisor.main.setup_logging')
    def test_invalid_config_exits(self, mock_logging, mock_dotenv, tmp_path):
        (tmp_path / 'config.yaml').write_text("research:\n  timeout_seconds: 0\n")

        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
        mock_logging.assert_not_called()

    @patch('roster_advisor.main.load_dotenv')
    @patch('roster_advisor.main.setup_logging')
    @patch('roster_advisor.main.RosterAdvisor')
    def test_analysis_failure_exits(self, mock_advisor, mock_logging, mock_dotenv):
        mock_advisor.return_value.run_analysis.side_effect = RuntimeError("boom")

        with pytest.raises(SystemExit) as exc_info:
            main(['--week', '3'])

        assert exc_info.value.code == 1

    @patch('roster_advisor.main.load_dotenv')
    @patch('roster_advisor.main.setup_logging')
    @patch('roster_advisor.main.RosterAdvisor')
    def test_keyboard_interrupt_exits_cleanly(self, mock_advisor, mock_logging, mock_dotenv):
        mock_advisor.return_value.run_analysis.side_effect = KeyboardInterrupt

        with pytest.raises(SystemExit) as exc_info:
            main(['--week', '3'])

        assert exc_info.value.code == 0
