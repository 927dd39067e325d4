"""
Per-player risk detection and aggregation.
"""

import logging
from typing import List, Dict
from dataclasses import dataclass, field

from ..data.models import (
    Player, PlayerEnrichment, InjuryStatus, OpponentRank, RiskLevel, Trend, enrichment_for
)


logger = logging.getLogger(__name__)


SEVERITY_POINTS = {
    RiskLevel.LOW: 1,
    RiskLevel.MEDIUM: 2,
    RiskLevel.HIGH: 3,
}

HIGH_RISK_TOTAL = 6
MEDIUM_RISK_TOTAL = 3

HIGH_WIND_MPH = 20
WET_CONDITIONS = {'Rain', 'Snow'}


@dataclass
class RiskFinding:
    """A single risk detected for a player."""
    type: str
    severity: RiskLevel
    description: str


@dataclass
class PlayerRisk:
    """All risks detected for one player and their combined level."""
    player: Player
    risks: List[RiskFinding] = field(default_factory=list)
    overall_risk: RiskLevel = RiskLevel.LOW


def calculate_overall_risk(findings: List[RiskFinding]) -> RiskLevel:
    """Sum finding severities and bucket the total."""
    total = sum(SEVERITY_POINTS[finding.severity] for finding in findings)
    if total >= HIGH_RISK_TOTAL:
        return RiskLevel.HIGH
    if total >= MEDIUM_RISK_TOTAL:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


class RiskAssessor:
    """Detects injury, weather, performance, and matchup risks."""

    def assess_risks(self, players: List[Player],
                     player_data: Dict[str, PlayerEnrichment]) -> List[PlayerRisk]:
        """Risk entries for players with at least one finding, in roster order."""
        risks = []
        for player in players:
            findings = self.find_player_risks(enrichment_for(player_data, player))
            if findings:
                risks.append(PlayerRisk(
                    player=player,
                    risks=findings,
                    overall_risk=calculate_overall_risk(findings)
                ))
        return risks

    def find_player_risks(self, data: PlayerEnrichment) -> List[RiskFinding]:
        findings = []

        status = data.injury_status.status
        if status in (InjuryStatus.QUESTIONABLE, InjuryStatus.DOUBTFUL):
            findings.append(RiskFinding(
                type='injury',
                severity=RiskLevel.HIGH if status == InjuryStatus.DOUBTFUL else RiskLevel.MEDIUM,
                description=f"Injury status: {status.value}"
            ))

        weather = data.weather
        if weather is not None:
            if weather.wind_speed > HIGH_WIND_MPH:
                findings.append(RiskFinding(
                    type='weather',
                    severity=RiskLevel.MEDIUM,
                    description=f"High winds ({weather.wind_speed:g} mph) - affects passing/kicking"
                ))
            if weather.conditions in WET_CONDITIONS:
                findings.append(RiskFinding(
                    type='weather',
                    severity=RiskLevel.LOW,
                    description=f"{weather.conditions} conditions - may affect gameplay"
                ))

        if data.trend == Trend.DECLINING:
            findings.append(RiskFinding(
                type='performance',
                severity=RiskLevel.MEDIUM,
                description="Declining performance trend"
            ))

        if data.opponent_rank == OpponentRank.VERY_TOUGH:
            findings.append(RiskFinding(
                type='matchup',
                severity=RiskLevel.MEDIUM,
                description="Very difficult matchup"
            ))

        return findings
