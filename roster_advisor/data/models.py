"""
Data models for the Fantasy Football Roster Advisor.
Defines the roster, league rules, and per-player research structures that the
analysis pipeline consumes.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any, Type, TypeVar
from enum import Enum
from datetime import datetime


logger = logging.getLogger(__name__)

E = TypeVar('E', bound=Enum)


class Position(Enum):
    """Fantasy football positions and roster slots."""
    QB = "QB"
    RB = "RB"
    WR = "WR"
    TE = "TE"
    K = "K"
    DEF = "DEF"
    FLEX = "FLEX"
    BN = "BN"  # Bench
    IR = "IR"  # Injured reserve


# Slots that never count toward the weekly starting lineup
RESERVE_SLOTS = {Position.BN.value, Position.IR.value}


class InjuryStatus(Enum):
    """Player injury status."""
    ACTIVE = "Active"
    PROBABLE = "Probable"
    QUESTIONABLE = "Questionable"
    DOUBTFUL = "Doubtful"
    OUT = "Out"
    UNKNOWN = "Unknown"


class Trend(Enum):
    """Short-window performance trajectory."""
    IMPROVING = "improving"
    STABLE = "stable"
    DECLINING = "declining"


class OpponentRank(Enum):
    """Qualitative matchup difficulty against a player's position."""
    VERY_EASY = "Very Easy"
    EASY = "Easy"
    AVERAGE = "Average"
    TOUGH = "Tough"
    VERY_TOUGH = "Very Tough"


class ProjectionConfidence(Enum):
    """Confidence attached to a weekly projection."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RiskLevel(Enum):
    """Risk assessment levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def parse_enum(enum_cls: Type[E], value: Any, default: Optional[E]) -> Optional[E]:
    """Parse an enum by value or name, falling back to ``default``."""
    if isinstance(value, enum_cls):
        return value
    if value is None:
        return default
    text = str(value).strip()
    for member in enum_cls:
        if text.lower() in (member.value.lower(), member.name.lower()):
            return member
    return default


def as_float(value: Any, default: float = 0.0) -> float:
    """Coerce a loosely typed number, treating malformed values as ``default``."""
    if value is None or isinstance(value, bool):
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _get(data: Dict[str, Any], *keys: str) -> Any:
    """Return the first present key (supports camelCase and snake_case payloads)."""
    for key in keys:
        if key in data:
            return data[key]
    return None


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


@dataclass
class Player:
    """Rostered fantasy football player."""
    player_id: str
    name: str
    position: str
    team: str
    is_starting: bool = False
    status: str = "Active"
    selected_position: str = Position.BN.value


@dataclass
class Roster:
    """A fantasy team's roster."""
    team_id: str
    team_name: str
    players: List[Player] = field(default_factory=list)


@dataclass
class RosterPosition:
    """A lineup slot type and how many of it the league requires."""
    position: str
    count: int


@dataclass
class LeagueRules:
    """Fantasy league settings and rules."""
    roster_positions: List[RosterPosition] = field(default_factory=list)
    scoring_settings: Dict[str, float] = field(default_factory=dict)
    max_teams: int = 12
    max_adds: int = 0
    max_trades: int = 0
    trade_deadline: Optional[str] = None

    def required_positions(self) -> Dict[str, int]:
        """Required starter counts per position, excluding bench/reserve slots."""
        required = {}
        for roster_position in self.roster_positions:
            if roster_position.position in RESERVE_SLOTS:
                continue
            required[roster_position.position] = max(0, int(roster_position.count))
        return required


@dataclass
class SeasonStats:
    """Season-to-date statistics."""
    games_played: int = 0
    fantasy_points: float = 0.0
    counting_stats: Dict[str, float] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> 'SeasonStats':
        data = _as_dict(data)
        counting = {}
        for key, value in data.items():
            if key in ('gamesPlayed', 'games_played', 'fantasyPoints', 'fantasy_points'):
                continue
            counting[key] = as_float(value)
        return cls(
            games_played=int(as_float(_get(data, 'gamesPlayed', 'games_played'))),
            fantasy_points=as_float(_get(data, 'fantasyPoints', 'fantasy_points')),
            counting_stats=counting
        )


@dataclass
class WeekResult:
    """Fantasy points scored in one week."""
    week: int
    points: float = 0.0


@dataclass
class RecentPerformance:
    """Recent weekly results with their average and trend."""
    recent_weeks: List[WeekResult] = field(default_factory=list)
    average_points: float = 0.0
    trend: Trend = Trend.STABLE

    @classmethod
    def from_dict(cls, data: Any) -> 'RecentPerformance':
        data = _as_dict(data)
        weeks = []
        for item in _get(data, 'recentWeeks', 'recent_weeks') or []:
            if isinstance(item, WeekResult):
                weeks.append(item)
            elif isinstance(item, dict):
                weeks.append(WeekResult(week=int(as_float(item.get('week'))),
                                        points=as_float(item.get('points'))))
        return cls(
            recent_weeks=weeks,
            average_points=as_float(_get(data, 'averagePoints', 'average_points')),
            trend=parse_enum(Trend, data.get('trend'), Trend.STABLE)
        )


@dataclass
class Matchup:
    """A player's opponent for the week."""
    opponent: str
    is_home: bool = False
    opponent_rank: Optional[OpponentRank] = None
    game_time: Optional[str] = None
    venue: Optional[str] = None

    @property
    def is_bye(self) -> bool:
        return self.opponent == "BYE"

    @classmethod
    def from_dict(cls, data: Any) -> Optional['Matchup']:
        if not isinstance(data, dict) or not data.get('opponent'):
            return None
        return cls(
            opponent=str(data['opponent']),
            is_home=bool(_get(data, 'isHome', 'is_home')),
            opponent_rank=parse_enum(OpponentRank, _get(data, 'opponentRank', 'opponent_rank'), None),
            game_time=_get(data, 'gameTime', 'game_time'),
            venue=data.get('venue')
        )


@dataclass
class InjuryReport:
    """Injury designation for the week."""
    status: InjuryStatus = InjuryStatus.UNKNOWN
    probability: str = "Unknown"
    description: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> 'InjuryReport':
        data = _as_dict(data)
        return cls(
            status=parse_enum(InjuryStatus, data.get('status'), InjuryStatus.UNKNOWN),
            probability=str(data.get('probability', 'Unknown')),
            description=str(data.get('description', ''))
        )


@dataclass
class WeatherReport:
    """Game-time weather forecast."""
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    wind_speed: float = 0.0
    conditions: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> Optional['WeatherReport']:
        if not isinstance(data, dict):
            return None
        temperature = data.get('temperature')
        humidity = data.get('humidity')
        return cls(
            temperature=as_float(temperature) if temperature is not None else None,
            humidity=as_float(humidity) if humidity is not None else None,
            wind_speed=as_float(_get(data, 'windSpeed', 'wind_speed')),
            conditions=str(data.get('conditions') or ''),
            description=str(data.get('description') or '')
        )


@dataclass
class Projection:
    """Projected fantasy points for the week."""
    points: float = 0.0
    confidence: ProjectionConfidence = ProjectionConfidence.LOW
    week: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Any) -> 'Projection':
        data = _as_dict(data)
        week = data.get('week')
        return cls(
            points=as_float(data.get('points')),
            confidence=parse_enum(ProjectionConfidence, data.get('confidence'), ProjectionConfidence.LOW),
            week=int(as_float(week)) if week is not None else None
        )


@dataclass
class PlayerEnrichment:
    """Everything the research step learned about one player for one week.

    Every field has a neutral default so that a failed lookup never reaches
    the analysis step as anything other than a default value.
    """
    season_stats: SeasonStats = field(default_factory=SeasonStats)
    recent_performance: RecentPerformance = field(default_factory=RecentPerformance)
    matchup: Optional[Matchup] = None
    injury_status: InjuryReport = field(default_factory=InjuryReport)
    weather: Optional[WeatherReport] = None
    projections: Projection = field(default_factory=Projection)
    last_updated: datetime = field(default_factory=datetime.now)

    @property
    def trend(self) -> Trend:
        return self.recent_performance.trend

    @property
    def opponent_rank(self) -> Optional[OpponentRank]:
        return self.matchup.opponent_rank if self.matchup else None

    @classmethod
    def from_dict(cls, data: Any) -> 'PlayerEnrichment':
        """Build an enrichment record from a loosely typed payload."""
        data = _as_dict(data)
        return cls(
            season_stats=SeasonStats.from_dict(_get(data, 'seasonStats', 'season_stats')),
            recent_performance=RecentPerformance.from_dict(_get(data, 'recentPerformance', 'recent_performance')),
            matchup=Matchup.from_dict(data.get('matchup')),
            injury_status=InjuryReport.from_dict(_get(data, 'injuryStatus', 'injury_status')),
            weather=WeatherReport.from_dict(data.get('weather')),
            projections=Projection.from_dict(data.get('projections'))
        )


def enrichment_for(player_data: Dict[str, PlayerEnrichment], player: Player) -> PlayerEnrichment:
    """Look up a player's enrichment, defaulting when research has nothing."""
    enrichment = player_data.get(player.player_id) if player_data else None
    if enrichment is None:
        return PlayerEnrichment()
    return enrichment
