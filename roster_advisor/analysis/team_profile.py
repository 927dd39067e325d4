"""
Team strength and weakness identification.
"""

import logging
from typing import List, Dict, Optional
from dataclasses import dataclass, field

from ..data.models import Player, PlayerEnrichment, Position, Trend, enrichment_for
from .position_analyzer import group_by_position, calculate_position_strength


logger = logging.getLogger(__name__)


STRENGTH_THRESHOLD = 15.0
WEAKNESS_THRESHOLD = 8.0
MIN_DEPTH = 2

# Single-starter positions that are never flagged for thin depth
DEPTH_EXEMPT_POSITIONS = {Position.K.value, Position.DEF.value}


@dataclass
class TeamStrength:
    """Something the roster does well."""
    type: str
    reason: str
    position: Optional[str] = None
    strength: Optional[float] = None
    players: List[str] = field(default_factory=list)


@dataclass
class TeamWeakness:
    """Something the roster should address."""
    type: str
    reason: str
    position: Optional[str] = None
    strength: Optional[float] = None
    players: List[str] = field(default_factory=list)


class TeamProfiler:
    """Classifies positions and players as team strengths or weaknesses."""

    def identify_strengths(self, players: List[Player],
                           player_data: Dict[str, PlayerEnrichment]) -> List[TeamStrength]:
        strengths = []

        for position, group in group_by_position(players).items():
            strength = calculate_position_strength(group, player_data)
            if strength > STRENGTH_THRESHOLD:
                strengths.append(TeamStrength(
                    type='position',
                    position=position,
                    strength=strength,
                    players=[p.name for p in group],
                    reason=f"High average fantasy points ({strength:.1f})"
                ))

        consistent = [p for p in players
                      if enrichment_for(player_data, p).trend in (Trend.IMPROVING, Trend.STABLE)]
        if consistent:
            strengths.append(TeamStrength(
                type='consistency',
                players=[p.name for p in consistent],
                reason="Multiple players showing consistent or improving performance"
            ))

        return strengths

    def identify_weaknesses(self, players: List[Player],
                            player_data: Dict[str, PlayerEnrichment]) -> List[TeamWeakness]:
        weaknesses = []
        groups = group_by_position(players)

        for position, group in groups.items():
            strength = calculate_position_strength(group, player_data)
            if strength < WEAKNESS_THRESHOLD:
                weaknesses.append(TeamWeakness(
                    type='position',
                    position=position,
                    strength=strength,
                    players=[p.name for p in group],
                    reason=f"Low average fantasy points ({strength:.1f})"
                ))

        declining = [p for p in players if enrichment_for(player_data, p).trend == Trend.DECLINING]
        if declining:
            weaknesses.append(TeamWeakness(
                type='performance',
                players=[p.name for p in declining],
                reason="Players showing declining performance trends"
            ))

        for position, group in groups.items():
            if len(group) < MIN_DEPTH and position not in DEPTH_EXEMPT_POSITIONS:
                weaknesses.append(TeamWeakness(
                    type='depth',
                    position=position,
                    players=[p.name for p in group],
                    reason=f"Limited depth at {position} position"
                ))

        return weaknesses
