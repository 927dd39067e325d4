"""
OAuth token manager for the Yahoo Fantasy Sports API.
Handles token lookup, refresh, and storage.
"""

import json
import time
import logging
from typing import Optional
from pathlib import Path
import requests
from requests.auth import HTTPBasicAuth

from ..config.settings import AppConfig, get_config


logger = logging.getLogger(__name__)


TOKEN_URL = "https://api.login.yahoo.com/oauth2/get_token"

# Refresh this many seconds before the recorded expiry
EXPIRY_BUFFER_SECONDS = 60


class YahooAuthManager:
    """Resolves a Yahoo access token from configuration or a token file."""

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or get_config()
        self.token_file = Path(self.config.yahoo_api.token_file)
        self.access_token: Optional[str] = self.config.yahoo_api.access_token
        self.refresh_token: Optional[str] = self.config.yahoo_api.refresh_token
        self.token_expires_at: Optional[float] = None

        if not self.access_token:
            self._load_tokens()

    def _load_tokens(self):
        """Load tokens from file if they exist."""
        if not self.token_file.exists():
            return
        try:
            with open(self.token_file, 'r') as f:
                token_data = json.load(f)
            self.access_token = token_data.get('access_token')
            self.refresh_token = token_data.get('refresh_token') or self.refresh_token
            self.token_expires_at = token_data.get('expires_at')
        except (OSError, json.JSONDecodeError, AttributeError) as e:
            logger.warning(f"Ignoring unreadable token file {self.token_file}: {e}")

    def _save_tokens(self):
        """Save tokens to file."""
        token_data = {
            'access_token': self.access_token,
            'refresh_token': self.refresh_token,
            'expires_at': self.token_expires_at
        }
        try:
            with open(self.token_file, 'w') as f:
                json.dump(token_data, f)
        except OSError as e:
            logger.warning(f"Could not save tokens to {self.token_file}: {e}")

    def _is_token_valid(self) -> bool:
        """Check if current access token is usable.

        Tokens supplied directly through configuration carry no expiry and are
        trusted as-is.
        """
        if not self.access_token:
            return False
        if self.token_expires_at is None:
            return True
        return time.time() < self.token_expires_at - EXPIRY_BUFFER_SECONDS

    def _refresh_token(self) -> bool:
        """Refresh the access token using the refresh token."""
        yahoo = self.config.yahoo_api
        if not self.refresh_token or not yahoo.client_id or not yahoo.client_secret:
            return False

        token_data = {
            'redirect_uri': yahoo.redirect_uri,
            'grant_type': 'refresh_token',
            'refresh_token': self.refresh_token
        }

        try:
            response = requests.post(
                TOKEN_URL,
                data=token_data,
                auth=HTTPBasicAuth(yahoo.client_id, yahoo.client_secret),
                headers={'Content-Type': 'application/x-www-form-urlencoded'},
                timeout=10
            )
            response.raise_for_status()
            token_response = response.json()

            self.access_token = token_response['access_token']
            if 'refresh_token' in token_response:
                self.refresh_token = token_response['refresh_token']
            self.token_expires_at = time.time() + float(token_response.get('expires_in', 3600))

            self._save_tokens()
            logger.info("Refreshed Yahoo access token")
            return True

        except (requests.RequestException, ValueError, KeyError) as e:
            logger.error(f"Error refreshing Yahoo token: {e}")
            self.access_token = None
            self.token_expires_at = None
            return False

    def get_access_token(self) -> Optional[str]:
        """Get current access token, refreshing if necessary."""
        if self._is_token_valid():
            return self.access_token
        if self._refresh_token():
            return self.access_token
        return None

    def logout(self):
        """Clear stored tokens."""
        self.access_token = None
        self.refresh_token = None
        self.token_expires_at = None
        if self.token_file.exists():
            self.token_file.unlink()

    def is_authenticated(self) -> bool:
        return self._is_token_valid()
