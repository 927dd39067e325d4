"""
Main application entry point for the Fantasy Football Roster Advisor.
Orchestrates the workflow: fetch roster and league rules, research players,
analyze the roster, and print weekly recommendations.
"""

import sys
import logging
import logging.handlers
import argparse
from datetime import datetime, date
from typing import Optional, List, Dict

import yaml
from dotenv import load_dotenv
from rich.console import Console
from rich.prompt import Prompt, IntPrompt, Confirm

from .config.settings import AppConfig, ConfigManager, LoggingConfig
from .api.yahoo_client import YahooFantasyClient
from .api.espn_api import ESPNClient
from .api.weather_api import WeatherClient
from .api.fantasypros_scraper import FantasyProsScraper
from .api.player_research import PlayerResearch
from .analysis.roster_analyzer import RosterAnalyzer, Analysis
from .analysis.recommendation_engine import RecommendationEngine, Recommendations, WAIVER_WEAKNESS_TYPES
from .utils.display import console, display_roster, display_recommendations, print_error


logger = logging.getLogger(__name__)

FIRST_WEEK = 1
LAST_WEEK = 18


def get_current_week(season_start: str, today: Optional[date] = None) -> int:
    """Current NFL week from the season start date, clamped to the regular season."""
    start = datetime.strptime(season_start, '%Y-%m-%d').date()
    today = today or date.today()
    week = (today - start).days // 7 + 1
    return max(FIRST_WEEK, min(LAST_WEEK, week))


def setup_logging(log_config: LoggingConfig):
    """Setup logging configuration."""
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_config.level))

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # File handler with rotation
    file_handler = logging.handlers.RotatingFileHandler(
        log_config.file,
        maxBytes=log_config.max_size_mb * 1024 * 1024,
        backupCount=log_config.backup_count
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    # Console output goes to stderr so it never interleaves with the report
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(logging.WARNING)
    logger.addHandler(console_handler)


class RosterAdvisor:
    """Runs the full roster analysis for one team and week."""

    def __init__(self, config: AppConfig, yahoo_client: Optional[YahooFantasyClient] = None,
                 out: Optional[Console] = None):
        self.config = config
        self.out = out or console
        self.yahoo_client = yahoo_client or YahooFantasyClient(config=config)
        self.roster_analyzer = RosterAnalyzer()
        self.recommendation_engine = RecommendationEngine()

    def create_research(self, league_id: Optional[str]) -> PlayerResearch:
        timeout = self.config.research.timeout_seconds
        return PlayerResearch(
            config=self.config,
            yahoo_client=self.yahoo_client,
            league_id=league_id,
            espn_client=ESPNClient(timeout=timeout),
            weather_client=WeatherClient(self.config.external_apis.openweather_api_key, timeout=timeout),
            projections_scraper=FantasyProsScraper(timeout=timeout)
        )

    def run_analysis(self, league_id: Optional[str], team_id: Optional[str], week: int,
                     research: bool = True) -> Recommendations:
        """Analyze the roster and print recommendations for the week."""
        self.out.print(f"[bold]Analyzing roster for Week {week}...[/bold]")
        logger.info(f"Starting analysis for league {league_id}, team {team_id}, week {week}")

        roster = self.yahoo_client.get_roster(league_id, team_id)
        league_rules = self.yahoo_client.get_league_rules(league_id)
        display_roster(roster, league_rules, self.out)

        player_data = {}
        if research:
            self.out.print("\n[dim]Researching player statistics and matchups...[/dim]")
            player_data = self.create_research(league_id).research_players(roster.players, week)

        analysis = self.roster_analyzer.analyze_roster(roster, league_rules, player_data, week)
        free_agents = self.get_free_agents(league_id, analysis)
        recommendations = self.recommendation_engine.generate_recommendations(analysis, week, free_agents)

        display_recommendations(recommendations, week, self.out)
        logger.info(f"Analysis complete: grade {recommendations.summary.overall_grade}, "
                    f"projected {recommendations.projected_score:.1f} points")
        return recommendations

    def get_free_agents(self, league_id: Optional[str], analysis: Analysis) -> Dict[str, List[str]]:
        """Available players for positions that will get waiver suggestions."""
        if not league_id or not self.yahoo_client.is_connected:
            return {}

        positions = []
        for weakness in analysis.team_weaknesses:
            if weakness.type in WAIVER_WEAKNESS_TYPES and weakness.position and weakness.position not in positions:
                positions.append(weakness.position)

        return {position: self.yahoo_client.get_free_agents(league_id, position) for position in positions}


def prompt_options(config: AppConfig, default_week: int) -> argparse.Namespace:
    """Ask for league, team, week, and research preference."""
    league_id = ''
    while not league_id:
        league_id = Prompt.ask("Enter your Yahoo Fantasy League ID", default=config.league_id or None) or ''
        if not league_id:
            console.print("[red]League ID is required[/red]")

    team_id = ''
    while not team_id:
        team_id = Prompt.ask("Enter your Team ID", default=config.team_id or None) or ''
        if not team_id:
            console.print("[red]Team ID is required[/red]")

    while True:
        week = IntPrompt.ask("Enter the week number for recommendations", default=default_week)
        if FIRST_WEEK <= week <= LAST_WEEK:
            break
        console.print(f"[red]Week must be between {FIRST_WEEK} and {LAST_WEEK}[/red]")

    research = Confirm.ask("Perform detailed player research?", default=True)
    return argparse.Namespace(league=league_id, team=team_id, week=week, research=research)


def week_number(value: str) -> int:
    week = int(value)
    if not FIRST_WEEK <= week <= LAST_WEEK:
        raise argparse.ArgumentTypeError(f"week must be between {FIRST_WEEK} and {LAST_WEEK}")
    return week


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fantasy Football Roster Advisor")
    parser.add_argument("-w", "--week", type=week_number, help="Week number for recommendations")
    parser.add_argument("-l", "--league", help="Yahoo league ID")
    parser.add_argument("-t", "--team", help="Yahoo team ID")
    parser.add_argument("-i", "--interactive", action="store_true", help="Run in interactive mode")
    parser.add_argument("--research", action=argparse.BooleanOptionalAction, default=True,
                        help="Perform detailed player research")
    parser.add_argument("--config", default="config.yaml", help="Path to the YAML configuration file")
    return parser


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    args = build_parser().parse_args(argv)
    load_dotenv()

    try:
        config = ConfigManager(args.config).load_config()
        default_week = get_current_week(config.season_start)
    except (ValueError, OSError, yaml.YAMLError) as e:
        print_error(f"Invalid configuration: {e}")
        sys.exit(1)

    setup_logging(config.logging)
    console.print("[bold]Fantasy Football Roster Advisor[/bold]\n")

    try:
        if args.interactive:
            options = prompt_options(config, default_week)
        else:
            options = argparse.Namespace(
                league=args.league or config.league_id,
                team=args.team or config.team_id,
                week=args.week or default_week,
                research=args.research
            )

        advisor = RosterAdvisor(config)
        advisor.run_analysis(options.league, options.team, options.week, research=options.research)

    except KeyboardInterrupt:
        console.print("\nStopped by user")
        sys.exit(0)
    except Exception as e:
        logger.exception("Analysis failed")
        print_error(str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
