"""
Recommendation engine for the Fantasy Football Roster Advisor.
Turns a roster analysis into graded, explained start/sit, waiver, and trade
suggestions plus risk alerts.
"""

import logging
from typing import List, Dict, Optional
from dataclasses import dataclass, field
from datetime import datetime

from ..data.models import (
    Player, InjuryStatus, OpponentRank, ProjectionConfidence,
    RiskLevel, Trend, Position, enrichment_for
)
from .roster_analyzer import Analysis, TeamInfo
from .lineup_optimizer import LineupSlot
from .risk_assessor import PlayerRisk, RiskFinding
from .team_profile import TeamWeakness


logger = logging.getLogger(__name__)


GRADE_LADDER = ['A', 'A-', 'B+', 'B', 'B-', 'C+', 'C']

RISK_COUNT_DOWNGRADE = 3
WEAKNESS_COUNT_DOWNGRADE = 2

BASE_CONFIDENCE = 0.5
RISK_CONFIDENCE_PENALTY = 0.05

ALTERNATIVE_SCORE_RATIO = 0.8
MAX_ALTERNATIVES = 2
KEEP_AT_STRENGTH = 2

WAIVER_WEAKNESS_TYPES = ('depth', 'performance')
PREMIUM_WAIVER_POSITIONS = {Position.RB.value, Position.WR.value}

EASY_MATCHUPS = {OpponentRank.EASY, OpponentRank.VERY_EASY}
TOUGH_MATCHUPS = {OpponentRank.TOUGH, OpponentRank.VERY_TOUGH}

# Generic pickup archetypes used when no free-agent pool is supplied
WAIVER_ARCHETYPES = {
    'QB': ['Backup QB 1', 'Backup QB 2'],
    'RB': ['Handcuff RB 1', 'Handcuff RB 2'],
    'WR': ['WR3 Option 1', 'WR3 Option 2'],
    'TE': ['TE2 Option 1', 'TE2 Option 2'],
    'K': ['Kicker Option 1', 'Kicker Option 2'],
    'DEF': ['Defense Option 1', 'Defense Option 2'],
}

RISK_ADVICE = {
    'injury': 'Monitor injury status closely',
    'weather': 'Check weather conditions before game time',
    'performance': 'Consider benching if trend continues',
    'matchup': 'Difficult matchup - consider alternatives',
}


@dataclass
class RecommendationSummary:
    overall_grade: str
    projected_points: float
    strengths: int
    weaknesses: int
    risks: int
    key_insights: List[str] = field(default_factory=list)


@dataclass
class Alternative:
    player: Player
    score: float
    reasoning: str


@dataclass
class StarterRecommendation:
    player: Player
    position: str
    confidence: float
    reasoning: str
    projected_points: float
    risk_level: RiskLevel
    alternatives: List[Alternative] = field(default_factory=list)


@dataclass
class BenchRecommendation:
    player: Player
    position: str
    reasoning: str
    projected_points: float
    risk_level: RiskLevel
    watch_list: bool = False


@dataclass
class WaiverRecommendation:
    position: Optional[str]
    priority: int
    reasoning: str
    suggested_players: List[str] = field(default_factory=list)
    drop_candidates: List[str] = field(default_factory=list)


@dataclass
class TradeRecommendation:
    type: str
    position: str
    priority: str
    reasoning: str
    trade_candidates: List[str] = field(default_factory=list)
    target_positions: List[str] = field(default_factory=list)


@dataclass
class RiskAlert:
    player: Player
    risk_level: RiskLevel
    urgency: str
    recommendation: str
    risks: List[RiskFinding] = field(default_factory=list)


@dataclass
class Recommendations:
    """Weekly recommendations for one team."""
    week: int
    team: TeamInfo
    summary: RecommendationSummary
    starter_recommendations: List[StarterRecommendation]
    bench_recommendations: List[BenchRecommendation]
    waiver_recommendations: List[WaiverRecommendation]
    trade_recommendations: List[TradeRecommendation]
    risk_alerts: List[RiskAlert]
    confidence: float
    projected_score: float
    unassigned: List[Player] = field(default_factory=list)
    last_updated: datetime = field(default_factory=datetime.now)


def downgrade(grade: str) -> str:
    """One step down the grade ladder; the lowest grade stays put."""
    index = GRADE_LADDER.index(grade)
    return GRADE_LADDER[min(index + 1, len(GRADE_LADDER) - 1)]


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class RecommendationEngine:
    """Generates weekly recommendations from a roster analysis."""

    def generate_recommendations(self, analysis: Analysis, week: int,
                                 free_agents: Optional[Dict[str, List[str]]] = None) -> Recommendations:
        """Build all recommendations.

        ``free_agents`` optionally maps a position to available player names,
        best first; it feeds the waiver suggestions.
        """
        optimization = analysis.roster_optimization
        return Recommendations(
            week=week,
            team=analysis.team,
            summary=self.generate_summary(analysis),
            starter_recommendations=self.generate_starter_recommendations(analysis),
            bench_recommendations=self.generate_bench_recommendations(analysis),
            waiver_recommendations=self.generate_waiver_recommendations(analysis, free_agents),
            trade_recommendations=self.generate_trade_recommendations(analysis),
            risk_alerts=self.generate_risk_alerts(analysis),
            confidence=self.calculate_overall_confidence(analysis),
            projected_score=optimization.projected_points,
            unassigned=list(optimization.unassigned)
        )

    def generate_summary(self, analysis: Analysis) -> RecommendationSummary:
        summary = RecommendationSummary(
            overall_grade=self.calculate_overall_grade(analysis),
            projected_points=analysis.roster_optimization.projected_points,
            strengths=len(analysis.team_strengths),
            weaknesses=len(analysis.team_weaknesses),
            risks=len(analysis.risk_assessment)
        )

        if analysis.team_strengths:
            top_strength = analysis.team_strengths[0]
            summary.key_insights.append(
                f"Strong {top_strength.position or 'performance'} with {len(top_strength.players)} players"
            )

        if analysis.team_weaknesses:
            top_weakness = analysis.team_weaknesses[0]
            summary.key_insights.append(f"Weak {top_weakness.position or 'performance'} needs attention")

        high_risks = [r for r in analysis.risk_assessment if r.overall_risk == RiskLevel.HIGH]
        if high_risks:
            summary.key_insights.append(f"{len(high_risks)} high-risk players need monitoring")

        return summary

    def calculate_overall_grade(self, analysis: Analysis) -> str:
        """Letter grade from projected points, downgraded for risk count and weaknesses."""
        projected_points = analysis.roster_optimization.projected_points

        if projected_points < 100:
            grade = 'C'
        elif projected_points < 120:
            grade = 'B'
        elif projected_points < 140:
            grade = 'A-'
        else:
            grade = 'A'

        if len(analysis.risk_assessment) > RISK_COUNT_DOWNGRADE:
            grade = downgrade(grade)

        if len(analysis.team_weaknesses) > WEAKNESS_COUNT_DOWNGRADE:
            grade = downgrade(grade)

        return grade

    def generate_starter_recommendations(self, analysis: Analysis) -> List[StarterRecommendation]:
        """Starter recommendations, most confident first (ties keep lineup order)."""
        recommendations = []

        for starter in analysis.roster_optimization.suggested_starters:
            recommendations.append(StarterRecommendation(
                player=starter.player,
                position=starter.position,
                confidence=self.calculate_player_confidence(starter.player, analysis),
                reasoning=self._starter_reasoning(starter, analysis),
                projected_points=starter.score,
                risk_level=self.assess_player_risk(starter.player, analysis),
                alternatives=self.find_alternatives(starter, analysis)
            ))

        return sorted(recommendations, key=lambda r: r.confidence, reverse=True)

    def generate_bench_recommendations(self, analysis: Analysis) -> List[BenchRecommendation]:
        recommendations = []

        for bench in analysis.roster_optimization.suggested_bench:
            recommendations.append(BenchRecommendation(
                player=bench.player,
                position=bench.position,
                reasoning=self._bench_reasoning(bench, analysis),
                projected_points=bench.score,
                risk_level=self.assess_player_risk(bench.player, analysis),
                watch_list=self.should_be_on_watch_list(bench.player, analysis)
            ))

        return recommendations

    def generate_waiver_recommendations(self, analysis: Analysis,
                                        free_agents: Optional[Dict[str, List[str]]] = None
                                        ) -> List[WaiverRecommendation]:
        """Waiver targets for depth and performance weaknesses, highest priority first."""
        recommendations = []

        for weakness in analysis.team_weaknesses:
            if weakness.type not in WAIVER_WEAKNESS_TYPES:
                continue

            recommendations.append(WaiverRecommendation(
                position=weakness.position,
                priority=self.calculate_waiver_priority(weakness),
                reasoning=f"Address {weakness.reason}",
                suggested_players=self.suggest_waiver_targets(weakness.position, free_agents),
                drop_candidates=self.suggest_drop_candidates(weakness.position, analysis)
            ))

        return sorted(recommendations, key=lambda r: r.priority, reverse=True)

    def generate_trade_recommendations(self, analysis: Analysis) -> List[TradeRecommendation]:
        """Offer surplus depth at strong positions that are not also weaknesses."""
        recommendations = []
        weak_positions = {w.position for w in analysis.team_weaknesses if w.position}
        target_positions = self.identify_trade_targets(analysis.team_weaknesses)

        for strength in analysis.team_strengths:
            if not strength.position or len(strength.players) <= KEEP_AT_STRENGTH:
                continue
            if strength.position in weak_positions:
                continue

            recommendations.append(TradeRecommendation(
                type='trade_out',
                position=strength.position,
                priority='medium',
                reasoning=f"Strong {strength.position} depth - consider trading for needs",
                trade_candidates=self._rank_names(strength.position, strength.players, analysis)[KEEP_AT_STRENGTH:],
                target_positions=target_positions
            ))

        return recommendations

    def generate_risk_alerts(self, analysis: Analysis) -> List[RiskAlert]:
        alerts = []

        for risk in analysis.risk_assessment:
            if risk.overall_risk == RiskLevel.HIGH:
                urgency = 'immediate'
            elif risk.overall_risk == RiskLevel.MEDIUM:
                urgency = 'monitor'
            else:
                continue

            alerts.append(RiskAlert(
                player=risk.player,
                risk_level=risk.overall_risk,
                urgency=urgency,
                recommendation=self.generate_risk_recommendation(risk),
                risks=list(risk.risks)
            ))

        return alerts

    def calculate_player_confidence(self, player: Player, analysis: Analysis) -> float:
        """Confidence in starting a player, from 0 to 1."""
        data = enrichment_for(analysis.player_data, player)
        confidence = BASE_CONFIDENCE

        if data.trend == Trend.IMPROVING:
            confidence += 0.2
        elif data.trend == Trend.DECLINING:
            confidence -= 0.2

        if data.projections.confidence == ProjectionConfidence.HIGH:
            confidence += 0.15
        elif data.projections.confidence == ProjectionConfidence.LOW:
            confidence -= 0.15

        if data.opponent_rank in EASY_MATCHUPS:
            confidence += 0.1
        elif data.opponent_rank in TOUGH_MATCHUPS:
            confidence -= 0.1

        if data.injury_status.status == InjuryStatus.QUESTIONABLE:
            confidence -= 0.2
        elif data.injury_status.status == InjuryStatus.DOUBTFUL:
            confidence -= 0.4

        return clamp(confidence)

    def calculate_overall_confidence(self, analysis: Analysis) -> float:
        """Mean starter confidence less a penalty per risky player."""
        starters = analysis.roster_optimization.suggested_starters
        if not starters:
            return 0.0

        confidences = [self.calculate_player_confidence(s.player, analysis) for s in starters]
        average = sum(confidences) / len(confidences)
        return clamp(average - RISK_CONFIDENCE_PENALTY * len(analysis.risk_assessment))

    def assess_player_risk(self, player: Player, analysis: Analysis) -> RiskLevel:
        for risk in analysis.risk_assessment:
            if risk.player.player_id == player.player_id:
                return risk.overall_risk
        return RiskLevel.LOW

    def find_alternatives(self, starter: LineupSlot, analysis: Analysis) -> List[Alternative]:
        """Bench players at the same position scoring close to the starter."""
        alternatives = []
        for bench in analysis.roster_optimization.suggested_bench:
            if bench.position != starter.position:
                continue
            if bench.score > starter.score * ALTERNATIVE_SCORE_RATIO:
                alternatives.append(Alternative(
                    player=bench.player,
                    score=bench.score,
                    reasoning=f"Similar position with {bench.score:.1f} projected points"
                ))
        return alternatives[:MAX_ALTERNATIVES]

    def calculate_waiver_priority(self, weakness: TeamWeakness) -> int:
        """Priority on a 1-10 scale."""
        priority = 5

        if weakness.type == 'depth':
            priority += 2

        if weakness.type == 'performance':
            priority += 1

        if weakness.position in PREMIUM_WAIVER_POSITIONS:
            priority += 1

        return min(10, priority)

    def suggest_waiver_targets(self, position: Optional[str],
                               free_agents: Optional[Dict[str, List[str]]] = None) -> List[str]:
        if not position:
            return []
        if free_agents and free_agents.get(position):
            return list(free_agents[position][:2])
        return list(WAIVER_ARCHETYPES.get(position, []))

    def suggest_drop_candidates(self, position: Optional[str], analysis: Analysis) -> List[str]:
        """Lowest-scoring suggested bench players at the position."""
        if not position:
            return []
        bench = [b for b in analysis.roster_optimization.suggested_bench if b.position == position]
        return [b.player.name for b in sorted(bench, key=lambda b: b.score)[:2]]

    def identify_trade_targets(self, weaknesses: List[TeamWeakness]) -> List[str]:
        return [w.position for w in weaknesses if w.position][:2]

    def generate_risk_recommendation(self, risk: PlayerRisk) -> str:
        return '; '.join(RISK_ADVICE[r.type] for r in risk.risks if r.type in RISK_ADVICE)

    def should_be_on_watch_list(self, player: Player, analysis: Analysis) -> bool:
        data = enrichment_for(analysis.player_data, player)
        return (data.trend == Trend.IMPROVING or
                data.projections.confidence == ProjectionConfidence.HIGH or
                data.opponent_rank in EASY_MATCHUPS)

    def _rank_names(self, position: str, names: List[str], analysis: Analysis) -> List[str]:
        """Order a strength's player names by score, best first (ties keep roster order)."""
        scored = [s for s in analysis.player_scores.values()
                  if s.player.position == position and s.player.name in names]
        if len(scored) != len(names):
            return list(names)
        return [s.player.name for s in sorted(scored, key=lambda s: s.score, reverse=True)]

    def _starter_reasoning(self, starter: LineupSlot, analysis: Analysis) -> str:
        data = enrichment_for(analysis.player_data, starter.player)
        reasons = []

        if starter.score > 20:
            reasons.append('High projected points')
        elif starter.score > 15:
            reasons.append('Good projected points')

        if data.trend == Trend.IMPROVING:
            reasons.append('Improving performance trend')

        if data.opponent_rank == OpponentRank.EASY:
            reasons.append('Favorable matchup')

        if data.recent_performance.average_points > 15:
            reasons.append('Consistent high performance')

        return ', '.join(reasons)

    def _bench_reasoning(self, bench: LineupSlot, analysis: Analysis) -> str:
        data = enrichment_for(analysis.player_data, bench.player)
        reasons = []

        if bench.score < 10:
            reasons.append('Low projected points')

        if data.injury_status.status == InjuryStatus.QUESTIONABLE:
            reasons.append('Injury concerns')

        if data.opponent_rank == OpponentRank.TOUGH:
            reasons.append('Difficult matchup')

        if data.trend == Trend.DECLINING:
            reasons.append('Declining performance')

        return ', '.join(reasons)
