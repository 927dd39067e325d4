"""
Roster analysis pipeline: scores, position summaries, strengths, weaknesses,
risks, and lineup optimization for one roster and week.
"""

import logging
from typing import List, Dict, Optional
from dataclasses import dataclass, field
from datetime import datetime

from ..data.models import Player, Roster, LeagueRules, PlayerEnrichment
from .player_evaluator import PlayerEvaluator, PlayerScore
from .position_analyzer import PositionAnalyzer, PositionAnalysis
from .team_profile import TeamProfiler, TeamStrength, TeamWeakness
from .risk_assessor import RiskAssessor, PlayerRisk
from .lineup_optimizer import LineupOptimizer, RosterOptimization


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TeamInfo:
    team_id: str
    name: str


@dataclass(frozen=True)
class Analysis:
    """Everything derived from one roster for one week."""
    team: TeamInfo
    week: int
    league_rules: Optional[LeagueRules]
    current_starters: List[Player]
    bench_players: List[Player]
    position_analysis: Dict[str, PositionAnalysis]
    team_strengths: List[TeamStrength]
    team_weaknesses: List[TeamWeakness]
    player_scores: Dict[str, PlayerScore]
    roster_optimization: RosterOptimization
    risk_assessment: List[PlayerRisk]
    player_data: Dict[str, PlayerEnrichment] = field(default_factory=dict)
    last_updated: datetime = field(default_factory=datetime.now)


class RosterAnalyzer:
    """Runs every analysis step over a researched roster."""

    def __init__(self):
        self.evaluator = PlayerEvaluator()
        self.position_analyzer = PositionAnalyzer()
        self.profiler = TeamProfiler()
        self.risk_assessor = RiskAssessor()
        self.optimizer = LineupOptimizer()

    def analyze_roster(self, roster: Roster, league_rules: Optional[LeagueRules],
                       player_data: Optional[Dict[str, PlayerEnrichment]], week: int) -> Analysis:
        """Build the analysis for a roster; missing research is treated as neutral."""
        player_data = dict(player_data or {})
        players = list(roster.players)

        player_scores = self.evaluator.score_players(players, player_data)

        analysis = Analysis(
            team=TeamInfo(team_id=roster.team_id, name=roster.team_name),
            week=week,
            league_rules=league_rules,
            current_starters=[p for p in players if p.is_starting],
            bench_players=[p for p in players if not p.is_starting],
            position_analysis=self.position_analyzer.analyze_positions(players, player_data),
            team_strengths=self.profiler.identify_strengths(players, player_data),
            team_weaknesses=self.profiler.identify_weaknesses(players, player_data),
            player_scores=player_scores,
            roster_optimization=self.optimizer.optimize_roster(players, player_scores, league_rules, player_data),
            risk_assessment=self.risk_assessor.assess_risks(players, player_data),
            player_data=player_data
        )

        logger.debug(
            f"Analyzed {len(players)} players for week {week}: "
            f"{len(analysis.team_strengths)} strengths, {len(analysis.team_weaknesses)} weaknesses, "
            f"{len(analysis.risk_assessment)} risks"
        )
        return analysis
