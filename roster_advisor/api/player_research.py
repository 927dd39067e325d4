"""
Concurrent player research: gathers season stats, recent form, matchup,
injury, weather, and projections for every rostered player.
"""

import math
import time
import zlib
import logging
import threading
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor, Future, FIRST_COMPLETED, wait
from functools import partial
from typing import List, Dict, Optional, Any, Tuple, Callable
import requests

from ..data.models import (
    Player, PlayerEnrichment, SeasonStats, WeekResult, RecentPerformance, Matchup,
    InjuryReport, InjuryStatus, WeatherReport, Projection, ProjectionConfidence,
    OpponentRank, Trend, parse_enum
)
from ..config.settings import AppConfig, get_config
from .yahoo_client import YahooFantasyClient, parse_yahoo_status
from .espn_api import ESPNClient, normalize_team
from .weather_api import WeatherClient
from .fantasypros_scraper import FantasyProsScraper


logger = logging.getLogger(__name__)


RECENT_WEEKS = 4
TREND_THRESHOLD = 2.0
POLL_INTERVAL = 0.05

INJURY_SEVERITY = {
    InjuryStatus.UNKNOWN: 0,
    InjuryStatus.ACTIVE: 1,
    InjuryStatus.PROBABLE: 2,
    InjuryStatus.QUESTIONABLE: 3,
    InjuryStatus.DOUBTFUL: 4,
    InjuryStatus.OUT: 5,
}

PLAY_PROBABILITY = {
    InjuryStatus.ACTIVE: 'High',
    InjuryStatus.PROBABLE: 'High',
    InjuryStatus.QUESTIONABLE: 'Medium',
    InjuryStatus.DOUBTFUL: 'Low',
    InjuryStatus.OUT: 'None',
    InjuryStatus.UNKNOWN: 'Unknown',
}

# Typical season-to-date totals used when live stats are unavailable
MOCK_SEASON_STATS = {
    'QB': {'fantasyPoints': 280, 'passingYards': 3200, 'passingTDs': 22, 'interceptions': 8,
           'rushingYards': 350, 'rushingTDs': 4},
    'RB': {'fantasyPoints': 180, 'rushingYards': 850, 'rushingTDs': 8, 'receptions': 45,
           'receivingYards': 320, 'receivingTDs': 2},
    'WR': {'fantasyPoints': 160, 'receptions': 65, 'receivingYards': 850, 'receivingTDs': 6,
           'rushingYards': 50},
    'TE': {'fantasyPoints': 120, 'receptions': 55, 'receivingYards': 650, 'receivingTDs': 5},
    'K': {'fantasyPoints': 110, 'fieldGoals': 22, 'extraPoints': 35},
    'DEF': {'fantasyPoints': 95, 'sacks': 35, 'interceptions': 12, 'fumblesRecovered': 8,
            'defensiveTDs': 2, 'pointsAllowed': 320},
}
MOCK_GAMES_PLAYED = 12

# (minimum, spread) of fallback weekly projections by position
FALLBACK_PROJECTION_RANGES = {
    'QB': (15, 35),
    'RB': (8, 30),
    'WR': (6, 25),
    'TE': (4, 20),
    'K': (6, 15),
    'DEF': (5, 20),
}
DEFAULT_PROJECTION_RANGE = (5, 25)


def calculate_trend(recent_weeks: List[WeekResult]) -> Trend:
    """Compare the later half of recent weeks against the earlier half."""
    if len(recent_weeks) < 2:
        return Trend.STABLE

    points = [w.points for w in recent_weeks]
    middle = (len(points) + 1) // 2
    first_half, second_half = points[:middle], points[middle:]

    diff = sum(second_half) / len(second_half) - sum(first_half) / len(first_half)
    if diff > TREND_THRESHOLD:
        return Trend.IMPROVING
    if diff < -TREND_THRESHOLD:
        return Trend.DECLINING
    return Trend.STABLE


def get_mock_season_stats(position: str) -> SeasonStats:
    stats = dict(MOCK_SEASON_STATS.get(position, {'fantasyPoints': 0}))
    stats['gamesPlayed'] = MOCK_GAMES_PLAYED
    return SeasonStats.from_dict(stats)


def get_fallback_projection(player: Player, week: int) -> Projection:
    """Position-typical projection, stable for a given player and week."""
    minimum, spread = FALLBACK_PROJECTION_RANGES.get(player.position, DEFAULT_PROJECTION_RANGE)
    seed = zlib.crc32(f"{player.player_id}:{week}".encode('utf-8'))
    return Projection(points=float(minimum + seed % spread), confidence=ProjectionConfidence.LOW, week=week)


def combine_injury_reports(reports: List[InjuryReport]) -> InjuryReport:
    """Keep the most severe report; earlier reports win ties."""
    if not reports:
        return InjuryReport()
    return max(reports, key=lambda r: INJURY_SEVERITY[r.status])


class ResearchCache:
    """Thread-safe TTL cache of research results keyed by player and week."""

    def __init__(self, ttl_minutes: float = 30):
        self.ttl_seconds = ttl_minutes * 60
        self._entries: Dict[Tuple[str, int], Tuple[PlayerEnrichment, float]] = {}
        self._lock = threading.Lock()

    def get(self, player_id: str, week: int) -> Optional[PlayerEnrichment]:
        with self._lock:
            entry = self._entries.get((player_id, week))
            if entry is None:
                return None
            data, timestamp = entry
            if time.time() - timestamp >= self.ttl_seconds:
                del self._entries[(player_id, week)]
                return None
            return data

    def set(self, player_id: str, week: int, data: PlayerEnrichment):
        with self._lock:
            self._entries[(player_id, week)] = (data, time.time())

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ResearchRun:
    """State shared by the lookups of a single research pass.

    Holds the ids being researched, the Yahoo points fetched so far, and when
    each lookup started running. Lookups left running after a pass ends only
    ever touch their own run.
    """

    def __init__(self, player_ids: List[str]):
        self.player_ids = list(player_ids)
        self._points: Dict[Any, Any] = {}
        self._locks: Dict[Any, threading.Lock] = {}
        self._started: Dict[Tuple[str, str], float] = {}
        self._guard = threading.Lock()

    def mark_started(self, key: Tuple[str, str]):
        with self._guard:
            self._started[key] = time.monotonic()

    def started_at(self, key: Tuple[str, str]) -> Optional[float]:
        with self._guard:
            return self._started.get(key)

    def points(self, key, fetch: Callable[[], Dict[str, float]]) -> Dict[str, float]:
        """Fetch once per key; later callers share the result or the error."""
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())

        with lock:
            if key not in self._points:
                try:
                    self._points[key] = fetch()
                except Exception as e:
                    self._points[key] = e
            result = self._points[key]

        if isinstance(result, Exception):
            raise result
        return result


class PlayerResearch:
    """Researches players concurrently, one task per player and data category.

    Each task is bounded by the configured timeout, counted from when it
    starts running; a failed or slow lookup leaves that category at its
    default value.
    """

    def __init__(self, config: Optional[AppConfig] = None,
                 yahoo_client: Optional[YahooFantasyClient] = None,
                 league_id: Optional[str] = None,
                 espn_client: Optional[ESPNClient] = None,
                 weather_client: Optional[WeatherClient] = None,
                 projections_scraper: Optional[FantasyProsScraper] = None,
                 cache: Optional[ResearchCache] = None):
        self.config = config or get_config()
        research = self.config.research
        self.timeout = research.timeout_seconds
        self.max_workers = research.max_workers

        self.yahoo_client = yahoo_client
        self.league_id = league_id or self.config.league_id
        self.espn_client = espn_client
        self.weather_client = weather_client
        self.projections_scraper = projections_scraper
        self.cache = cache if cache is not None else ResearchCache(research.cache_ttl_minutes)

    def research_players(self, players: List[Player], week: int) -> Dict[str, PlayerEnrichment]:
        """Enrichment for every player, keyed by player id in roster order."""
        results: Dict[str, PlayerEnrichment] = {}
        pending = []
        for player in players:
            cached = self.cache.get(player.player_id, week)
            if cached is not None:
                results[player.player_id] = cached
            else:
                pending.append(player)

        if pending:
            logger.info(f"Researching {len(pending)} players for week {week} "
                        f"({len(players) - len(pending)} cached)")
            for player_id, enrichment in self._research(pending, week).items():
                self.cache.set(player_id, week, enrichment)
                results[player_id] = enrichment

        return {p.player_id: results[p.player_id] for p in players}

    def _research(self, players: List[Player], week: int) -> Dict[str, PlayerEnrichment]:
        run = ResearchRun([p.player_id for p in players])

        lookups = {
            'season_stats': partial(self.get_season_stats, run=run),
            'recent_performance': partial(self.get_recent_performance, run=run),
            'matchup': self.get_matchup,
            'injury_status': self.get_injury_status,
            'projections': self.get_projections,
        }

        executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix='research')
        try:
            futures = {}
            for player in players:
                for category, lookup in lookups.items():
                    key = (player.player_id, category)
                    futures[executor.submit(self._run_lookup, run, key, lookup, player, week)] = (player, category)
            found = self._collect(run, futures)

            weather_futures = {}
            if self.weather_client is not None and self.weather_client.enabled:
                for player in players:
                    matchup = found[player.player_id].get('matchup')
                    if matchup is not None and not matchup.is_bye:
                        key = (player.player_id, 'weather')
                        future = executor.submit(self._run_lookup, run, key, self.get_weather, player, matchup)
                        weather_futures[future] = (player, 'weather')
            found_weather = self._collect(run, weather_futures)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        enriched = {}
        for player in players:
            values = found[player.player_id]
            enriched[player.player_id] = PlayerEnrichment(
                season_stats=values.get('season_stats') or SeasonStats(),
                recent_performance=values.get('recent_performance') or RecentPerformance(),
                matchup=values.get('matchup'),
                injury_status=values.get('injury_status') or InjuryReport(),
                weather=found_weather[player.player_id].get('weather'),
                projections=values.get('projections') or Projection(week=week)
            )
        return enriched

    @staticmethod
    def _run_lookup(run: ResearchRun, key: Tuple[str, str], lookup: Callable, *args):
        run.mark_started(key)
        return lookup(*args)

    def _collect(self, run: ResearchRun,
                 futures: Dict[Future, Tuple[Player, str]]) -> Dict[str, Dict[str, Any]]:
        """Gather finished lookups; anything slow or failing is logged and left out."""
        collected: Dict[str, Dict[str, Any]] = defaultdict(dict)
        if not futures:
            return collected

        # Queued lookups give up once every worker could have timed out on each round
        rounds = math.ceil(len(futures) / self.max_workers) + 1
        deadline = time.monotonic() + self.timeout * rounds

        pending = set(futures)
        while pending:
            done, pending = wait(pending, timeout=min(POLL_INTERVAL, self.timeout),
                                 return_when=FIRST_COMPLETED)
            for future in done:
                player, category = futures[future]
                try:
                    collected[player.player_id][category] = future.result()
                except Exception as e:
                    logger.warning(f"Error researching {category} for {player.name}: {e}")

            now = time.monotonic()
            for future in list(pending):
                player, category = futures[future]
                started = run.started_at((player.player_id, category))
                if now >= deadline or (started is not None and now - started >= self.timeout):
                    future.cancel()
                    pending.discard(future)
                    logger.warning(f"Timed out researching {category} for {player.name}")
        return collected

    def _batch_points(self, run: ResearchRun, week: Optional[int]) -> Dict[str, float]:
        """Yahoo points for every player in the run, fetched once per week."""
        if self.yahoo_client is None or not self.league_id:
            raise LookupError("Yahoo client not configured")

        key = week if week is not None else 'season'
        return run.points(key, lambda: self.yahoo_client.get_player_points(
            self.league_id, run.player_ids, week=week))

    def get_season_stats(self, player: Player, week: int,
                         run: Optional[ResearchRun] = None) -> SeasonStats:
        run = run or ResearchRun([player.player_id])
        try:
            points = self._batch_points(run, None)
        except (LookupError, RuntimeError, requests.RequestException) as e:
            logger.debug(f"Using typical season stats for {player.name}: {e}")
            return get_mock_season_stats(player.position)

        if player.player_id not in points:
            return get_mock_season_stats(player.position)

        return SeasonStats(games_played=max(0, week - 1), fantasy_points=points[player.player_id])

    def get_recent_performance(self, player: Player, week: int,
                               run: Optional[ResearchRun] = None) -> RecentPerformance:
        run = run or ResearchRun([player.player_id])
        recent_weeks = []
        for past_week in range(max(1, week - RECENT_WEEKS), week):
            try:
                points = self._batch_points(run, past_week)
            except LookupError:
                return RecentPerformance()
            if player.player_id in points:
                recent_weeks.append(WeekResult(week=past_week, points=points[player.player_id]))

        average = sum(w.points for w in recent_weeks) / len(recent_weeks) if recent_weeks else 0.0
        return RecentPerformance(
            recent_weeks=recent_weeks,
            average_points=average,
            trend=calculate_trend(recent_weeks)
        )

    def get_matchup(self, player: Player, week: int) -> Optional[Matchup]:
        """Opponent for the week; a team absent from a non-empty schedule is on bye."""
        if self.espn_client is None or not player.team or player.team == 'Unknown':
            return None

        schedule = self.espn_client.get_schedule(week)
        if not schedule:
            return None

        game = self.espn_client.find_game(schedule, player.team)
        if game is None:
            return Matchup(opponent='BYE')

        is_home = game.home_team == normalize_team(player.team)
        opponent = game.away_team if is_home else game.home_team
        return Matchup(
            opponent=opponent,
            is_home=is_home,
            opponent_rank=self.get_opponent_rank(opponent, player.position),
            game_time=game.game_time,
            venue=game.city or game.venue
        )

    def get_opponent_rank(self, opponent: str, position: str) -> Optional[OpponentRank]:
        ranks = self.config.opponent_ranks.get(opponent) or {}
        return parse_enum(OpponentRank, ranks.get(position), None)

    def get_injury_status(self, player: Player, week: int) -> InjuryReport:
        yahoo_status = parse_yahoo_status(player.status)
        reports = [InjuryReport(status=yahoo_status, probability=PLAY_PROBABILITY[yahoo_status])]

        if self.espn_client is not None:
            try:
                entry = self.espn_client.get_player_injury(player.name)
            except requests.RequestException as e:
                logger.warning(f"ESPN injury report unavailable: {e}")
                entry = None
            if entry is not None:
                reports.append(InjuryReport(
                    status=entry.status,
                    probability=PLAY_PROBABILITY[entry.status],
                    description=entry.description
                ))

        return combine_injury_reports(reports)

    def get_weather(self, player: Player, matchup: Matchup) -> Optional[WeatherReport]:
        if self.weather_client is None:
            return None
        return self.weather_client.get_game_forecast(matchup.venue, matchup.game_time)

    def get_projections(self, player: Player, week: int) -> Projection:
        if self.projections_scraper is not None:
            try:
                points = self.projections_scraper.get_player_projection(player.name, player.position, week)
            except requests.RequestException as e:
                logger.debug(f"FantasyPros unavailable for {player.name}: {e}")
                points = None
            if points is not None:
                return Projection(points=points, confidence=ProjectionConfidence.HIGH, week=week)

        return get_fallback_projection(player, week)
