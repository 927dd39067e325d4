"""
Player evaluation system for the Fantasy Football Roster Advisor.
Scores players from season, recent, projection, matchup, and injury signals.
"""

import logging
from typing import List, Dict, Any, Optional
from dataclasses import dataclass, field

from ..data.models import (
    Player, PlayerEnrichment, InjuryStatus, OpponentRank, Position, enrichment_for
)


logger = logging.getLogger(__name__)


GAMES_PER_SEASON = 17

SEASON_WEIGHT = 0.3
RECENT_WEIGHT = 0.4
PROJECTION_WEIGHT = 0.2
MATCHUP_WEIGHT = 0.1

MATCHUP_BONUS = {
    OpponentRank.VERY_EASY: 3.0,
    OpponentRank.EASY: 1.5,
    OpponentRank.AVERAGE: 0.0,
    OpponentRank.TOUGH: -1.5,
    OpponentRank.VERY_TOUGH: -3.0,
}

INJURY_PENALTY = {
    InjuryStatus.OUT: 1.0,
    InjuryStatus.DOUBTFUL: 0.7,
    InjuryStatus.QUESTIONABLE: 0.3,
    InjuryStatus.PROBABLE: 0.1,
}

POSITION_WEIGHTS = {
    Position.QB.value: 1.0,
    Position.RB.value: 1.2,
    Position.WR.value: 1.1,
    Position.TE.value: 0.9,
    Position.K.value: 0.7,
    Position.DEF.value: 0.8,
}


@dataclass
class ScoreFactor:
    """One weighted input to a player's score."""
    type: str
    value: Any
    weight: float


@dataclass
class PlayerScore:
    """Player evaluation score with breakdown."""
    player: Player
    score: float
    factors: List[ScoreFactor] = field(default_factory=list)
    recommendation: str = ""


class PlayerEvaluator:
    """Evaluates players for weekly start/sit decisions."""

    def evaluate_player(self, player: Player, enrichment: Optional[PlayerEnrichment] = None) -> PlayerScore:
        """Evaluate a player from the research gathered for the week."""
        data = enrichment or PlayerEnrichment()
        score = self.calculate_score(player, data)
        return PlayerScore(
            player=player,
            score=score,
            factors=self.get_score_factors(data),
            recommendation=self.get_recommendation(data, score)
        )

    def score_players(self, players: List[Player],
                      player_data: Dict[str, PlayerEnrichment]) -> Dict[str, PlayerScore]:
        """Score every player, keyed by player id."""
        scores = {}
        for player in players:
            scores[player.player_id] = self.evaluate_player(player, enrichment_for(player_data, player))
        return scores

    def calculate_score(self, player: Player, data: PlayerEnrichment) -> float:
        """Weighted blend of per-game season average, recent form, projection and matchup."""
        score = (data.season_stats.fantasy_points / GAMES_PER_SEASON) * SEASON_WEIGHT
        score += data.recent_performance.average_points * RECENT_WEIGHT
        score += data.projections.points * PROJECTION_WEIGHT
        score += self.get_matchup_bonus(data) * MATCHUP_WEIGHT

        score *= (1 - self.get_injury_penalty(data))
        score *= POSITION_WEIGHTS.get(player.position, 1.0)

        return max(0.0, score)

    def get_matchup_bonus(self, data: PlayerEnrichment) -> float:
        """Bonus (or penalty) points for the opponent's difficulty tier."""
        rank = data.opponent_rank
        if rank is None:
            return 0.0
        return MATCHUP_BONUS.get(rank, 0.0)

    def get_injury_penalty(self, data: PlayerEnrichment) -> float:
        """Fraction of the score lost to the player's injury designation."""
        return INJURY_PENALTY.get(data.injury_status.status, 0.0)

    def get_score_factors(self, data: PlayerEnrichment) -> List[ScoreFactor]:
        """Explain which inputs contributed to the score."""
        factors = []

        if data.season_stats.fantasy_points:
            factors.append(ScoreFactor('season', data.season_stats.fantasy_points, SEASON_WEIGHT))

        if data.recent_performance.average_points:
            factors.append(ScoreFactor('recent', data.recent_performance.average_points, RECENT_WEIGHT))

        if data.projections.points:
            factors.append(ScoreFactor('projection', data.projections.points, PROJECTION_WEIGHT))

        if data.opponent_rank is not None:
            factors.append(ScoreFactor('matchup', data.opponent_rank.value, MATCHUP_WEIGHT))

        return factors

    def get_recommendation(self, data: PlayerEnrichment, score: float) -> str:
        """Start/flex/sit label for a scored player."""
        status = data.injury_status.status
        if status == InjuryStatus.OUT:
            return "SIT - Player is out"

        if status == InjuryStatus.DOUBTFUL:
            return "SIT - High injury risk"

        if score > 20:
            return "START - High scoring potential"

        if score > 15:
            return "START - Good scoring potential"

        if score > 10:
            return "FLEX - Moderate scoring potential"

        return "SIT - Low scoring potential"

