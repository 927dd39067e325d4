"""
Configuration management for the Fantasy Football Roster Advisor.
Handles loading, validation, and access to application settings.
"""

import os
import logging
import yaml
from typing import Dict, Any, Optional
from dataclasses import dataclass, field
from pathlib import Path


logger = logging.getLogger(__name__)


@dataclass
class YahooAPIConfig:
    """Yahoo API configuration settings."""
    client_id: str = ""
    client_secret: str = ""
    redirect_uri: str = "oob"
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    token_file: str = "tokens.json"


@dataclass
class ExternalAPIConfig:
    """External API configuration settings."""
    openweather_api_key: Optional[str] = None


@dataclass
class ResearchConfig:
    """Player research settings."""
    timeout_seconds: float = 5.0
    max_workers: int = 8
    cache_ttl_minutes: int = 30


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "INFO"
    file: str = "roster_advisor.log"
    max_size_mb: int = 10
    backup_count: int = 5


@dataclass
class AppConfig:
    """Main application configuration settings."""
    league_id: Optional[str] = None
    team_id: Optional[str] = None
    season_start: str = "2024-09-05"
    yahoo_api: YahooAPIConfig = field(default_factory=YahooAPIConfig)
    external_apis: ExternalAPIConfig = field(default_factory=ExternalAPIConfig)
    research: ResearchConfig = field(default_factory=ResearchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    # Opponent team -> position -> rank label ("Very Easy" .. "Very Tough")
    opponent_ranks: Dict[str, Dict[str, str]] = field(default_factory=dict)


ENV_OVERRIDES = {
    'LEAGUE_ID': ('league_id',),
    'TEAM_ID': ('team_id',),
    'YAHOO_CLIENT_ID': ('yahoo_api', 'client_id'),
    'YAHOO_CLIENT_SECRET': ('yahoo_api', 'client_secret'),
    'YAHOO_ACCESS_TOKEN': ('yahoo_api', 'access_token'),
    'YAHOO_REFRESH_TOKEN': ('yahoo_api', 'refresh_token'),
    'OPENWEATHER_API_KEY': ('external_apis', 'openweather_api_key'),
}


class ConfigManager:
    """Manages application configuration loading and validation."""

    def __init__(self, config_path: str = "config.yaml"):
        self.config_path = Path(config_path)
        self._config: Optional[AppConfig] = None

    def load_config(self) -> AppConfig:
        """Load configuration from YAML file, then apply environment overrides."""
        config_data: Dict[str, Any] = {}
        if self.config_path.exists():
            with open(self.config_path, 'r') as file:
                config_data = yaml.safe_load(file) or {}
        else:
            logger.info(f"Configuration file not found: {self.config_path}, using defaults")

        if not isinstance(config_data, dict):
            raise ValueError(f"Configuration file must contain a mapping: {self.config_path}")

        yahoo_data = config_data.get('yahoo_api') or {}
        external_data = config_data.get('external_apis') or {}
        research_data = config_data.get('research') or {}
        logging_data = config_data.get('logging') or {}

        yahoo_api_config = YahooAPIConfig(
            client_id=str(yahoo_data.get('client_id', '')),
            client_secret=str(yahoo_data.get('client_secret', '')),
            redirect_uri=yahoo_data.get('redirect_uri', 'oob'),
            access_token=yahoo_data.get('access_token'),
            refresh_token=yahoo_data.get('refresh_token'),
            token_file=yahoo_data.get('token_file', 'tokens.json')
        )

        external_api_config = ExternalAPIConfig(
            openweather_api_key=external_data.get('openweather_api_key')
        )

        research_config = ResearchConfig(
            timeout_seconds=float(research_data.get('timeout_seconds', 5.0)),
            max_workers=int(research_data.get('max_workers', 8)),
            cache_ttl_minutes=int(research_data.get('cache_ttl_minutes', 30))
        )

        logging_config = LoggingConfig(
            level=str(logging_data.get('level', 'INFO')).upper(),
            file=logging_data.get('file', 'roster_advisor.log'),
            max_size_mb=int(logging_data.get('max_size_mb', 10)),
            backup_count=int(logging_data.get('backup_count', 5))
        )

        league_id = config_data.get('league_id')
        team_id = config_data.get('team_id')

        config = AppConfig(
            league_id=str(league_id) if league_id is not None else None,
            team_id=str(team_id) if team_id is not None else None,
            season_start=str(config_data.get('season_start', '2024-09-05')),
            yahoo_api=yahoo_api_config,
            external_apis=external_api_config,
            research=research_config,
            logging=logging_config,
            opponent_ranks=config_data.get('opponent_ranks') or {}
        )

        self._apply_env_overrides(config)
        self._validate(config)

        self._config = config
        return self._config

    def _apply_env_overrides(self, config: AppConfig):
        """Override configuration values from environment variables."""
        for env_name, path in ENV_OVERRIDES.items():
            value = os.environ.get(env_name)
            if not value:
                continue
            target = config
            for attr in path[:-1]:
                target = getattr(target, attr)
            setattr(target, path[-1], value)

    def _validate(self, config: AppConfig):
        """Validate configuration values."""
        if config.research.timeout_seconds <= 0:
            raise ValueError("Research timeout must be positive")

        if config.research.max_workers < 1:
            raise ValueError("Research max_workers must be at least 1")

        if config.research.cache_ttl_minutes < 0:
            raise ValueError("Research cache TTL cannot be negative")

        if config.logging.level not in ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'):
            raise ValueError(f"Unknown logging level: {config.logging.level}")

    def get_config(self) -> AppConfig:
        """Get the current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load_config()
        return self._config

    def reload_config(self) -> AppConfig:
        """Reload configuration from file."""
        self._config = None
        return self.get_config()


# Global config instance
config_manager = ConfigManager()


def get_config() -> AppConfig:
    """Get the current application configuration."""
    return config_manager.get_config()
