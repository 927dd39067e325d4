"""
Lineup optimization engine for the Fantasy Football Roster Advisor.
Splits the roster into suggested starters and bench using league slot
requirements and player scores.
"""

import logging
from typing import List, Dict, Optional
from dataclasses import dataclass, field

from ..data.models import (
    Player, PlayerEnrichment, LeagueRules, InjuryStatus, OpponentRank,
    ProjectionConfidence, Trend, enrichment_for
)
from .player_evaluator import PlayerScore, ScoreFactor
from .position_analyzer import group_by_position


logger = logging.getLogger(__name__)


DEFAULT_REQUIRED_POSITIONS = {
    'QB': 1, 'RB': 2, 'WR': 2, 'TE': 1, 'K': 1, 'DEF': 1
}


@dataclass
class LineupSlot:
    """A player placed in the suggested lineup or on the bench."""
    player: Player
    position: str
    score: float
    reasoning: List[ScoreFactor] = field(default_factory=list)


@dataclass
class RosterOptimization:
    """Result of lineup optimization."""
    suggested_starters: List[LineupSlot] = field(default_factory=list)
    suggested_bench: List[LineupSlot] = field(default_factory=list)
    # Players at positions the league has no required slot for (e.g. FLEX-only
    # eligibility); the caller decides what to do with them.
    unassigned: List[Player] = field(default_factory=list)
    reasoning: List[str] = field(default_factory=list)
    projected_points: float = 0.0


def get_required_positions(league_rules: Optional[LeagueRules]) -> Dict[str, int]:
    """Required starters per position, falling back to a standard lineup."""
    if league_rules is None or not league_rules.roster_positions:
        return dict(DEFAULT_REQUIRED_POSITIONS)
    return league_rules.required_positions()


class LineupOptimizer:
    """Chooses starters for each required position by player score."""

    def optimize_roster(self, players: List[Player], player_scores: Dict[str, PlayerScore],
                        league_rules: Optional[LeagueRules],
                        player_data: Dict[str, PlayerEnrichment]) -> RosterOptimization:
        """Fill each required position with its highest-scoring players.

        Within a position players are ordered by score, highest first; equal
        scores keep their original roster order. Inputs are not modified.
        """
        optimization = RosterOptimization()
        required_positions = get_required_positions(league_rules)
        groups = group_by_position(players)

        for position, required in required_positions.items():
            ranked = sorted(groups.get(position, []),
                            key=lambda p: self._score_of(p, player_scores),
                            reverse=True)

            for index, player in enumerate(ranked):
                slot = LineupSlot(
                    player=player,
                    position=position,
                    score=self._score_of(player, player_scores),
                    reasoning=self._factors_of(player, player_scores)
                )
                if index < required:
                    optimization.suggested_starters.append(slot)
                else:
                    optimization.suggested_bench.append(slot)

        optimization.unassigned = [p for p in players if p.position not in required_positions]
        if optimization.unassigned:
            logger.debug(
                f"{len(optimization.unassigned)} player(s) at positions without a required slot: "
                f"{', '.join(p.name for p in optimization.unassigned)}"
            )

        optimization.projected_points = sum(slot.score for slot in optimization.suggested_starters)
        optimization.reasoning = self._generate_optimization_reasoning(optimization, player_data)

        return optimization

    def _score_of(self, player: Player, player_scores: Dict[str, PlayerScore]) -> float:
        player_score = player_scores.get(player.player_id)
        return player_score.score if player_score else 0.0

    def _factors_of(self, player: Player, player_scores: Dict[str, PlayerScore]) -> List[ScoreFactor]:
        player_score = player_scores.get(player.player_id)
        return list(player_score.factors) if player_score else []

    def _generate_optimization_reasoning(self, optimization: RosterOptimization,
                                         player_data: Dict[str, PlayerEnrichment]) -> List[str]:
        """Explain each starter and bench decision."""
        reasoning = []

        for starter in optimization.suggested_starters:
            data = enrichment_for(player_data, starter.player)
            reason = f"Starting {starter.player.name} at {starter.position}"

            if data.trend == Trend.IMPROVING:
                reason += " (improving trend)"
            elif data.opponent_rank == OpponentRank.EASY:
                reason += " (favorable matchup)"
            elif data.projections.confidence == ProjectionConfidence.HIGH:
                reason += " (high confidence projection)"

            reasoning.append(reason)

        for bench in optimization.suggested_bench:
            data = enrichment_for(player_data, bench.player)
            reason = f"Benching {bench.player.name}"

            if data.injury_status.status == InjuryStatus.QUESTIONABLE:
                reason += " (injury concern)"
            elif data.trend == Trend.DECLINING:
                reason += " (declining performance)"
            elif data.opponent_rank == OpponentRank.TOUGH:
                reason += " (difficult matchup)"

            reasoning.append(reason)

        return reasoning
