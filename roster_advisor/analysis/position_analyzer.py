"""
Position grouping and strength assessment.
"""

import logging
from typing import List, Dict
from dataclasses import dataclass, field

from ..data.models import (
    Player, PlayerEnrichment, InjuryStatus, OpponentRank, enrichment_for
)


logger = logging.getLogger(__name__)


DEPTH_LABELS = ['none', 'shallow', 'adequate', 'good']

INJURY_CONCERN_STATUSES = {InjuryStatus.QUESTIONABLE, InjuryStatus.DOUBTFUL, InjuryStatus.OUT}
POOR_MATCHUP_RANKS = {OpponentRank.TOUGH, OpponentRank.VERY_TOUGH}


@dataclass
class PositionAlert:
    """A flag raised for a group of players at one position."""
    type: str
    severity: str
    message: str
    players: List[str] = field(default_factory=list)


@dataclass
class PositionAnalysis:
    """Aggregate view of one roster position."""
    position: str
    count: int
    starters: int
    depth: str
    strength: float
    recommendations: List[PositionAlert] = field(default_factory=list)


def group_by_position(players: List[Player]) -> Dict[str, List[Player]]:
    """Group players by position, keeping roster order within each group."""
    groups: Dict[str, List[Player]] = {}
    for player in players:
        groups.setdefault(player.position, []).append(player)
    return groups


def assess_depth(count: int) -> str:
    """Classify positional depth from the number of rostered players."""
    if count < len(DEPTH_LABELS):
        return DEPTH_LABELS[max(0, count)]
    return 'excellent'


def calculate_position_strength(players: List[Player],
                                player_data: Dict[str, PlayerEnrichment]) -> float:
    """Mean raw talent of a position group (matchup and injury not considered)."""
    if not players:
        return 0.0

    total = 0.0
    for player in players:
        data = enrichment_for(player_data, player)
        total += (data.season_stats.fantasy_points * 0.3 +
                  data.recent_performance.average_points * 0.5 +
                  data.projections.points * 0.2)

    return total / len(players)


class PositionAnalyzer:
    """Builds per-position strength, depth, and alert summaries."""

    def analyze_positions(self, players: List[Player],
                          player_data: Dict[str, PlayerEnrichment]) -> Dict[str, PositionAnalysis]:
        """Analyze every position present on the roster."""
        analysis = {}
        for position, group in group_by_position(players).items():
            analysis[position] = PositionAnalysis(
                position=position,
                count=len(group),
                starters=sum(1 for p in group if p.is_starting),
                depth=assess_depth(len(group)),
                strength=calculate_position_strength(group, player_data),
                recommendations=self.get_position_recommendations(group, player_data)
            )
        return analysis

    def get_position_recommendations(self, players: List[Player],
                                     player_data: Dict[str, PlayerEnrichment]) -> List[PositionAlert]:
        """Flag injury concerns, bye weeks, and difficult matchups within a group."""
        alerts = []

        injured = [p for p in players
                   if enrichment_for(player_data, p).injury_status.status in INJURY_CONCERN_STATUSES]
        if injured:
            alerts.append(PositionAlert(
                type='injury',
                severity='high',
                message=f"{len(injured)} player(s) have injury concerns",
                players=[p.name for p in injured]
            ))

        on_bye = []
        poor_matchups = []
        for player in players:
            matchup = enrichment_for(player_data, player).matchup
            if matchup is None:
                continue
            if matchup.is_bye:
                on_bye.append(player)
            if matchup.opponent_rank in POOR_MATCHUP_RANKS:
                poor_matchups.append(player)

        if on_bye:
            alerts.append(PositionAlert(
                type='bye',
                severity='medium',
                message=f"{len(on_bye)} player(s) on bye week",
                players=[p.name for p in on_bye]
            ))

        if poor_matchups:
            alerts.append(PositionAlert(
                type='matchup',
                severity='low',
                message=f"{len(poor_matchups)} player(s) have difficult matchups",
                players=[p.name for p in poor_matchups]
            ))

        return alerts
