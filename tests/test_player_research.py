"""
Tests for concurrent player research.
"""

import time
import threading
import logging
from unittest.mock import Mock, patch

import pytest
import requests

from roster_advisor.config.settings import AppConfig, ResearchConfig
from roster_advisor.data.models import (
    Player, PlayerEnrichment, WeekResult, InjuryReport, InjuryStatus, OpponentRank,
    ProjectionConfidence, Trend, WeatherReport
)
from roster_advisor.api.espn_api import ESPNClient, ScheduledGame, InjuryEntry
from roster_advisor.api.player_research import (
    PlayerResearch, ResearchCache, ResearchRun, calculate_trend, combine_injury_reports,
    get_fallback_projection, get_mock_season_stats
)


def weeks(*points):
    return [WeekResult(week=i + 1, points=p) for i, p in enumerate(points)]


def make_espn(schedule=None, injuries=None):
    espn = ESPNClient()
    espn.get_schedule = Mock(return_value=schedule if schedule is not None else [])
    espn.get_injuries = Mock(return_value=injuries or {})
    return espn


KC_GAME = ScheduledGame(home_team='KC', away_team='BAL', game_time='2024-09-06T00:20Z',
                        venue='GEHA Field at Arrowhead Stadium', city='Kansas City')


class TestResearchHelpers:
    """Test cases for trend, fallback, and injury helpers."""

    def test_calculate_trend(self):
        assert calculate_trend(weeks(10, 10, 15, 15)) == Trend.IMPROVING
        assert calculate_trend(weeks(20, 10, 10)) == Trend.DECLINING
        assert calculate_trend(weeks(10, 11, 12, 11)) == Trend.STABLE
        assert calculate_trend(weeks(30)) == Trend.STABLE
        assert calculate_trend([]) == Trend.STABLE

    def test_mock_season_stats(self):
        stats = get_mock_season_stats('QB')

        assert stats.fantasy_points == 280.0
        assert stats.games_played == 12
        assert stats.counting_stats['passingYards'] == 3200.0
        assert get_mock_season_stats('LB').fantasy_points == 0.0

    def test_fallback_projection_is_stable(self):
        player = Player(player_id="1", name="Patrick Mahomes", position="QB", team="KC")

        first = get_fallback_projection(player, 5)
        second = get_fallback_projection(player, 5)

        assert first == second
        assert 15 <= first.points < 50
        assert first.confidence == ProjectionConfidence.LOW
        assert first.week == 5

    def test_combine_injury_reports(self):
        active = InjuryReport(status=InjuryStatus.ACTIVE)
        questionable = InjuryReport(status=InjuryStatus.QUESTIONABLE, description='Ankle')

        assert combine_injury_reports([active, questionable]) is questionable
        assert combine_injury_reports([questionable, active]) is questionable
        assert combine_injury_reports([]).status == InjuryStatus.UNKNOWN


class TestResearchCache:
    """Test cases for ResearchCache."""

    def test_get_and_set(self):
        cache = ResearchCache(ttl_minutes=30)
        data = PlayerEnrichment()

        cache.set("1", 5, data)

        assert cache.get("1", 5) is data
        assert cache.get("1", 6) is None
        assert len(cache) == 1

    @patch('roster_advisor.api.player_research.time.time')
    def test_entries_expire(self, mock_time):
        cache = ResearchCache(ttl_minutes=30)
        mock_time.return_value = 1000.0
        cache.set("1", 5, PlayerEnrichment())

        mock_time.return_value = 1000.0 + 29 * 60
        assert cache.get("1", 5) is not None

        mock_time.return_value = 1000.0 + 30 * 60
        assert cache.get("1", 5) is None
        assert len(cache) == 0

    def test_clear(self):
        cache = ResearchCache()
        cache.set("1", 5, PlayerEnrichment())

        cache.clear()

        assert len(cache) == 0


class TestPlayerResearch:
    """Test cases for PlayerResearch."""

    def setup_method(self):
        self.config = AppConfig(research=ResearchConfig(timeout_seconds=2.0))
        self.mahomes = Player(player_id="1", name="Patrick Mahomes", position="QB", team="KC")
        self.allen = Player(player_id="7", name="Josh Allen", position="QB", team="BUF", status="Q")

    def test_research_without_sources_uses_defaults(self):
        research = PlayerResearch(config=self.config)

        results = research.research_players([self.allen, self.mahomes], 5)

        assert list(results) == ["7", "1"]
        data = results["1"]
        assert data.season_stats.fantasy_points == 280.0
        assert data.recent_performance.recent_weeks == []
        assert data.matchup is None
        assert data.injury_status.status == InjuryStatus.ACTIVE
        assert data.weather is None
        assert data.projections.confidence == ProjectionConfidence.LOW
        assert results["7"].injury_status.status == InjuryStatus.QUESTIONABLE

    def test_yahoo_points_fetched_once_per_week(self):
        season = {"1": 150.0, "7": 120.0}
        by_week = {1: {"1": 10.0}, 2: {"1": 10.0}, 3: {"1": 15.0}, 4: {"1": 15.0}}

        def get_player_points(league_id, player_ids, week=None):
            return season if week is None else by_week[week]

        yahoo = Mock()
        yahoo.get_player_points.side_effect = get_player_points
        research = PlayerResearch(config=self.config, yahoo_client=yahoo, league_id="123")

        results = research.research_players([self.mahomes, self.allen], 5)

        mahomes = results["1"]
        assert mahomes.season_stats.fantasy_points == 150.0
        assert mahomes.season_stats.games_played == 4
        assert mahomes.recent_performance.average_points == pytest.approx(12.5)
        assert mahomes.trend == Trend.IMPROVING
        assert [w.week for w in mahomes.recent_performance.recent_weeks] == [1, 2, 3, 4]
        assert results["7"].recent_performance.recent_weeks == []

        season_calls = [c for c in yahoo.get_player_points.call_args_list if c.kwargs.get('week') is None]
        assert len(season_calls) == 1
        assert yahoo.get_player_points.call_count == 5

    def test_yahoo_unavailable_falls_back(self):
        yahoo = Mock()
        yahoo.get_player_points.side_effect = LookupError("no token")
        research = PlayerResearch(config=self.config, yahoo_client=yahoo, league_id="123")

        data = research.research_players([self.mahomes], 5)["1"]

        assert data.season_stats.fantasy_points == 280.0
        assert data.recent_performance.average_points == 0.0

    def test_matchup_and_opponent_rank(self):
        self.config.opponent_ranks = {'BAL': {'QB': 'Tough'}}
        research = PlayerResearch(config=self.config, espn_client=make_espn([KC_GAME]))

        results = research.research_players([self.mahomes, self.allen], 1)

        matchup = results["1"].matchup
        assert matchup.opponent == 'BAL'
        assert matchup.is_home is True
        assert matchup.opponent_rank == OpponentRank.TOUGH
        assert matchup.venue == 'Kansas City'
        assert results["7"].matchup.is_bye

    def test_empty_schedule_means_unknown_matchup(self):
        research = PlayerResearch(config=self.config, espn_client=make_espn([]))

        assert research.research_players([self.mahomes], 1)["1"].matchup is None

    def test_espn_injury_combined_with_yahoo(self):
        injuries = {'patrick mahomes': InjuryEntry(status=InjuryStatus.DOUBTFUL, description='Ankle')}
        research = PlayerResearch(config=self.config, espn_client=make_espn([KC_GAME], injuries))

        injury = research.research_players([self.mahomes], 1)["1"].injury_status

        assert injury.status == InjuryStatus.DOUBTFUL
        assert injury.probability == 'Low'
        assert injury.description == 'Ankle'

    def test_failed_lookup_is_logged_and_defaulted(self, caplog):
        espn = make_espn()
        espn.get_schedule.side_effect = requests.ConnectionError("down")
        research = PlayerResearch(config=self.config, espn_client=espn)

        with caplog.at_level(logging.WARNING):
            data = research.research_players([self.mahomes], 1)["1"]

        assert data.matchup is None
        assert "Error researching matchup for Patrick Mahomes" in caplog.text

    def test_slow_lookup_times_out(self, caplog):
        def slow_schedule(week):
            time.sleep(1.0)
            return [KC_GAME]

        espn = make_espn()
        espn.get_schedule.side_effect = slow_schedule
        config = AppConfig(research=ResearchConfig(timeout_seconds=0.2))
        research = PlayerResearch(config=config, espn_client=espn)

        with caplog.at_level(logging.WARNING):
            data = research.research_players([self.mahomes], 1)["1"]

        assert data.matchup is None
        assert data.projections.confidence == ProjectionConfidence.LOW
        assert "Timed out researching matchup for Patrick Mahomes" in caplog.text

    def test_weather_only_for_scheduled_games(self):
        weather = Mock()
        weather.enabled = True
        weather.get_game_forecast.return_value = WeatherReport(wind_speed=25.0, conditions='Clear')
        research = PlayerResearch(config=self.config, espn_client=make_espn([KC_GAME]),
                                  weather_client=weather)

        results = research.research_players([self.mahomes, self.allen], 1)

        assert results["1"].weather.wind_speed == 25.0
        assert results["7"].weather is None
        weather.get_game_forecast.assert_called_once_with('Kansas City', '2024-09-06T00:20Z')

    def test_projections_from_scraper(self):
        scraper = Mock()
        scraper.get_player_projection.side_effect = lambda name, position, week: (
            22.5 if name == "Patrick Mahomes" else None)
        research = PlayerResearch(config=self.config, projections_scraper=scraper)

        results = research.research_players([self.mahomes, self.allen], 5)

        assert results["1"].projections.points == 22.5
        assert results["1"].projections.confidence == ProjectionConfidence.HIGH
        assert results["7"].projections.confidence == ProjectionConfidence.LOW

    def test_scraper_errors_fall_back(self):
        scraper = Mock()
        scraper.get_player_projection.side_effect = requests.HTTPError("403")
        research = PlayerResearch(config=self.config, projections_scraper=scraper)

        projection = research.research_players([self.mahomes], 5)["1"].projections

        assert projection == get_fallback_projection(self.mahomes, 5)

    def test_cached_players_are_not_researched_again(self):
        espn = make_espn([KC_GAME])
        research = PlayerResearch(config=self.config, espn_client=espn)

        first = research.research_players([self.mahomes], 1)
        second = research.research_players([self.mahomes], 1)

        assert second["1"] is first["1"]
        assert espn.get_schedule.call_count == 1

    def test_timeout_counts_from_lookup_start(self):
        backs = [Player(player_id=str(i), name=f"Back {i}", position="RB", team="KC") for i in range(12)]
        config = AppConfig(research=ResearchConfig(timeout_seconds=0.5, max_workers=2))
        research = PlayerResearch(config=config)

        def slow_injury(player, week):
            time.sleep(0.2)
            return InjuryReport(status=InjuryStatus.QUESTIONABLE)

        with patch.object(research, 'get_injury_status', side_effect=slow_injury):
            results = research.research_players(backs, 5)

        assert [data.injury_status.status for data in results.values()] == [InjuryStatus.QUESTIONABLE] * 12

    def test_lingering_lookup_does_not_leak_into_next_run(self):
        release = threading.Event()
        stale_returned = threading.Event()

        def get_player_points(league_id, player_ids, week=None):
            if player_ids == ["1"]:
                if week == 1:
                    release.wait(5)
                    stale_returned.set()
                return {"1": 10.0}
            if week is None:
                release.set()
                stale_returned.wait(5)
                time.sleep(0.05)
                return {"7": 120.0}
            return {"7": 10.0}

        yahoo = Mock()
        yahoo.get_player_points.side_effect = get_player_points
        config = AppConfig(research=ResearchConfig(timeout_seconds=0.2, max_workers=1))
        research = PlayerResearch(config=config, yahoo_client=yahoo, league_id="123")

        research.research_players([self.mahomes], 5)
        allen = research.research_players([self.allen], 5)["7"]

        assert stale_returned.is_set()
        assert allen.season_stats.fantasy_points == 120.0
        assert [w.week for w in allen.recent_performance.recent_weeks] == [1, 2, 3, 4]


class TestResearchRun:
    """Test cases for ResearchRun."""

    def test_points_fetched_once_per_key(self):
        run = ResearchRun(["1", "7"])
        fetch = Mock(return_value={"1": 10.0})

        assert run.points(3, fetch) == {"1": 10.0}
        assert run.points(3, fetch) == {"1": 10.0}
        assert fetch.call_count == 1
        assert run.player_ids == ["1", "7"]

    def test_errors_shared_by_later_callers(self):
        run = ResearchRun(["1"])
        fetch = Mock(side_effect=LookupError("no token"))

        for _ in range(2):
            with pytest.raises(LookupError):
                run.points('season', fetch)
        assert fetch.call_count == 1

    def test_runs_do_not_share_points(self):
        first, second = ResearchRun(["1"]), ResearchRun(["7"])

        first.points('season', lambda: {"1": 150.0})

        assert second.points('season', lambda: {"7": 120.0}) == {"7": 120.0}

    def test_mark_started(self):
        run = ResearchRun(["1"])

        assert run.started_at(("1", "matchup")) is None
        run.mark_started(("1", "matchup"))
        assert run.started_at(("1", "matchup")) is not None
