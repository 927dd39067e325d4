"""
Terminal rendering of rosters and recommendations.
"""

from typing import List, Optional

from rich.console import Console
from rich.rule import Rule
from rich.table import Table

from ..data.models import Player, Roster, LeagueRules, RiskLevel, RESERVE_SLOTS
from ..analysis.position_analyzer import group_by_position
from ..analysis.recommendation_engine import (
    Recommendations, RecommendationSummary, StarterRecommendation, BenchRecommendation,
    WaiverRecommendation, TradeRecommendation, RiskAlert
)

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

GRADE_COLORS = {
    'A': 'green',
    'A-': 'green',
    'B+': 'green',
    'B': 'yellow',
    'B-': 'blue',
    'C+': 'blue',
    'C': 'red',
}

RISK_COLORS = {
    RiskLevel.LOW: 'green',
    RiskLevel.MEDIUM: 'yellow',
    RiskLevel.HIGH: 'red',
}

SEVERITY_COLORS = {
    RiskLevel.LOW: 'yellow',
    RiskLevel.MEDIUM: 'blue',
    RiskLevel.HIGH: 'red',
}


def confidence_color(confidence: float) -> str:
    if confidence >= 0.8:
        return 'green'
    if confidence >= 0.6:
        return 'yellow'
    if confidence >= 0.4:
        return 'blue'
    return 'red'


def priority_color(priority: int) -> str:
    if priority >= 8:
        return 'red'
    if priority >= 6:
        return 'yellow'
    if priority >= 4:
        return 'blue'
    return 'green'


def confidence_band(confidence: float) -> str:
    if confidence > 0.8:
        return '[green]High confidence in recommendations[/green]'
    if confidence > 0.6:
        return '[yellow]Moderate confidence - monitor closely[/yellow]'
    return '[red]Low confidence - consider manual review[/red]'


def print_error(message: str) -> None:
    err_console.print(f"[red bold]Error:[/red bold] {message}")


def display_roster(roster: Roster, league_rules: LeagueRules, out: Optional[Console] = None) -> None:
    """Print the roster grouped by position, then the league rules summary."""
    out = out or console
    out.print(Rule(f"[bold blue]{roster.team_name} Roster[/bold blue]"))

    for position, players in group_by_position(roster.players).items():
        starters = [p for p in players if p.is_starting]
        bench = [p for p in players if not p.is_starting]

        out.print(f"\n[yellow]{position}[/yellow] ({len(players)} total)")
        if starters:
            out.print("  [green]Starters:[/green]")
            for player in starters:
                out.print(f"    {player.name} ({player.team})")
        if bench:
            out.print("  [dim]Bench:[/dim]")
            for player in bench:
                out.print(f"    {player.name} ({player.team})")

    out.print()
    out.print(Rule("[bold blue]League Rules Summary[/bold blue]"))
    for roster_position in league_rules.roster_positions:
        if roster_position.position not in RESERVE_SLOTS:
            out.print(f"  {roster_position.position}: {roster_position.count} required")
    out.print(f"  Max Teams: {league_rules.max_teams}")
    out.print(f"  Max Adds: {'Unlimited' if league_rules.max_adds == 0 else league_rules.max_adds}")


def display_recommendations(recommendations: Recommendations, week: int,
                            out: Optional[Console] = None) -> None:
    """Print every recommendation section for the week."""
    out = out or console
    out.print()
    out.print(Rule(f"[bold blue]Week {week} Recommendations[/bold blue]"))

    _print_summary(recommendations.summary, out)
    _print_starters(recommendations.starter_recommendations, out)
    _print_bench(recommendations.bench_recommendations, out)
    _print_waivers(recommendations.waiver_recommendations, out)
    _print_trades(recommendations.trade_recommendations, out)
    _print_risk_alerts(recommendations.risk_alerts, out)
    _print_unassigned(recommendations.unassigned, out)
    _print_confidence(recommendations.confidence, recommendations.projected_score, out)


def _print_summary(summary: RecommendationSummary, out: Console) -> None:
    grade_color = GRADE_COLORS.get(summary.overall_grade, 'white')
    out.print("\n[bold cyan]Team Summary[/bold cyan]")
    out.print(f"  Overall Grade: [{grade_color}]{summary.overall_grade}[/{grade_color}]")
    out.print(f"  Projected Points: [yellow]{summary.projected_points:.1f}[/yellow]")
    out.print(f"  Strengths: [green]{summary.strengths}[/green]")
    out.print(f"  Weaknesses: [red]{summary.weaknesses}[/red]")
    out.print(f"  Risks: [blue]{summary.risks}[/blue]")

    if summary.key_insights:
        out.print("\n  [cyan]Key Insights:[/cyan]")
        for insight in summary.key_insights:
            out.print(f"    - {insight}")


def _print_starters(recommendations: List[StarterRecommendation], out: Console) -> None:
    if not recommendations:
        return

    out.print("\n[bold green]Starter Recommendations[/bold green]")
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("#", justify="right")
    table.add_column("Player")
    table.add_column("Pos")
    table.add_column("Team")
    table.add_column("Proj", justify="right")
    table.add_column("Conf", justify="right")
    table.add_column("Risk")
    table.add_column("Reasoning")

    for index, rec in enumerate(recommendations, 1):
        conf = confidence_color(rec.confidence)
        risk = RISK_COLORS[rec.risk_level]
        table.add_row(
            str(index), rec.player.name, rec.position, rec.player.team,
            f"{rec.projected_points:.1f}",
            f"[{conf}]{rec.confidence * 100:.0f}%[/{conf}]",
            f"[{risk}]{rec.risk_level.value.upper()}[/{risk}]",
            rec.reasoning
        )
    out.print(table)

    for rec in recommendations:
        for alt in rec.alternatives:
            out.print(f"  [cyan]Alternative to {rec.player.name}:[/cyan] "
                      f"{alt.player.name} ({alt.score:.1f} pts) - {alt.reasoning}")


def _print_bench(recommendations: List[BenchRecommendation], out: Console) -> None:
    if not recommendations:
        return

    out.print("\n[bold blue]Bench Recommendations[/bold blue]")
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("#", justify="right")
    table.add_column("Player")
    table.add_column("Pos")
    table.add_column("Team")
    table.add_column("Proj", justify="right")
    table.add_column("Risk")
    table.add_column("Watch")
    table.add_column("Reasoning")

    for index, rec in enumerate(recommendations, 1):
        risk = RISK_COLORS[rec.risk_level]
        table.add_row(
            str(index), rec.player.name, rec.position, rec.player.team,
            f"{rec.projected_points:.1f}",
            f"[{risk}]{rec.risk_level.value.upper()}[/{risk}]",
            "[cyan]yes[/cyan]" if rec.watch_list else "",
            rec.reasoning
        )
    out.print(table)


def _print_waivers(recommendations: List[WaiverRecommendation], out: Console) -> None:
    if not recommendations:
        return

    out.print("\n[bold magenta]Waiver Wire Recommendations[/bold magenta]")
    for index, rec in enumerate(recommendations, 1):
        color = priority_color(rec.priority)
        out.print(f"\n{index}. {rec.position or 'General'} Position")
        out.print(f"   Priority: [{color}]Priority {rec.priority}/10[/{color}]")
        out.print(f"   Reasoning: [dim]{rec.reasoning}[/dim]")
        if rec.suggested_players:
            out.print("   [green]Suggested Pickups:[/green]")
            for name in rec.suggested_players:
                out.print(f"     - {name}")
        if rec.drop_candidates:
            out.print("   [red]Drop Candidates:[/red]")
            for name in rec.drop_candidates:
                out.print(f"     - {name}")


def _print_trades(recommendations: List[TradeRecommendation], out: Console) -> None:
    if not recommendations:
        return

    out.print("\n[bold magenta]Trade Recommendations[/bold magenta]")
    for index, rec in enumerate(recommendations, 1):
        out.print(f"\n{index}. {rec.type.upper()} - {rec.position}")
        out.print(f"   Priority: {rec.priority}")
        out.print(f"   Reasoning: [dim]{rec.reasoning}[/dim]")
        if rec.trade_candidates:
            out.print("   [blue]Trade Candidates:[/blue]")
            for name in rec.trade_candidates:
                out.print(f"     - {name}")
        if rec.target_positions:
            out.print("   [green]Target Positions:[/green]")
            for position in rec.target_positions:
                out.print(f"     - {position}")


def _print_risk_alerts(alerts: List[RiskAlert], out: Console) -> None:
    if not alerts:
        return

    out.print("\n[bold red]Risk Alerts[/bold red]")
    for index, alert in enumerate(alerts, 1):
        risk = RISK_COLORS[alert.risk_level]
        urgency = 'red' if alert.urgency == 'immediate' else 'blue'
        out.print(f"\n{index}. {alert.player.name} ({alert.player.position})")
        out.print(f"   Risk Level: [{risk}]{alert.risk_level.value.upper()}[/{risk}]")
        out.print(f"   Urgency: [{urgency}]{alert.urgency.upper()}[/{urgency}]")
        for finding in alert.risks:
            severity = SEVERITY_COLORS[finding.severity]
            out.print(f"   - [{severity}]{finding.severity.value.upper()}[/{severity}]: {finding.description}")
        out.print(f"   Recommendation: [dim]{alert.recommendation}[/dim]")


def _print_unassigned(players: List[Player], out: Console) -> None:
    if not players:
        return

    out.print("\n[bold yellow]No Lineup Slot[/bold yellow]")
    out.print("  [dim]Your league has no starting slot for these positions:[/dim]")
    for player in players:
        out.print(f"  - {player.name} ({player.position}, {player.team})")


def _print_confidence(confidence: float, projected_score: float, out: Console) -> None:
    color = confidence_color(confidence)
    out.print("\n[bold blue]Confidence & Projections[/bold blue]")
    out.print(f"  Overall Confidence: [{color}]{confidence * 100:.0f}%[/{color}]")
    out.print(f"  Projected Score: [yellow]{projected_score:.1f}[/yellow] points")
    out.print(f"  {confidence_band(confidence)}")
