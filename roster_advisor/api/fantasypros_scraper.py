"""
FantasyPros web scraper for weekly fantasy football projections.
"""

import re
import time
import logging
import threading
from typing import Dict, Optional, Any
import requests
from bs4 import BeautifulSoup


logger = logging.getLogger(__name__)


class FantasyProsScraper:
    """Web scraper for FantasyPros consensus projections."""

    # FantasyPros projection page slugs per roster position
    POSITION_SLUGS = {
        'QB': 'qb',
        'RB': 'rb',
        'WR': 'wr',
        'TE': 'te',
        'K': 'k',
        'DEF': 'dst',
    }

    def __init__(self, timeout: float = 5.0, rate_limit_delay: float = 0.5):
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            'User-Agent': 'Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36'
        })
        self._cache: Dict[Any, Any] = {}
        self._cache_ttl = 3600  # 1 hour cache
        self._rate_limit_delay = rate_limit_delay
        self._locks: Dict[Any, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _rate_limit(self):
        """Space out requests to FantasyPros."""
        if self._rate_limit_delay:
            time.sleep(self._rate_limit_delay)

    def _lock_for(self, key) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())

    def get_position_projections(self, position: str, week: int) -> Dict[str, float]:
        """Projected fantasy points for a position and week, keyed by normalized name.

        Concurrent callers for the same page share one download. Raises
        ``requests.RequestException`` on HTTP failure.
        """
        slug = self.POSITION_SLUGS.get(position)
        if slug is None:
            logger.debug(f"No FantasyPros projections for position {position}")
            return {}

        cache_key = (slug, week)
        with self._lock_for(cache_key):
            if cache_key in self._cache:
                cached_data, timestamp = self._cache[cache_key]
                if time.time() - timestamp < self._cache_ttl:
                    return cached_data

            self._rate_limit()
            response = self.session.get(
                f"https://www.fantasypros.com/nfl/projections/{slug}.php",
                params={'week': week},
                timeout=self.timeout
            )
            response.raise_for_status()

            soup = BeautifulSoup(response.content, 'html.parser')
            projections = self._parse_projections_page(soup)

            self._cache[cache_key] = (projections, time.time())
            logger.info(f"Scraped {len(projections)} {position} projections from FantasyPros for week {week}")
            return projections

    def get_player_projection(self, player_name: str, position: str, week: int) -> Optional[float]:
        """Projected points for one player, or None when the player is not listed."""
        projections = self.get_position_projections(position, week)

        target = self._normalize_name(player_name)
        if target in projections:
            return projections[target]

        for name, points in projections.items():
            if self._names_match(target, name):
                return points

        logger.debug(f"{player_name} not found in FantasyPros {position} projections")
        return None

    def _parse_projections_page(self, soup: BeautifulSoup) -> Dict[str, float]:
        """Parse the projections table: first column player, FPTS column points."""
        table = soup.find('table', id='data') or soup.find('table')
        if table is None:
            return {}

        header_rows = table.find('thead').find_all('tr') if table.find('thead') else []
        headers = [th.get_text(strip=True).upper() for th in header_rows[-1].find_all('th')] if header_rows else []
        # Without an FPTS header the last column holds total points
        points_index = headers.index('FPTS') if 'FPTS' in headers else -1

        projections = {}
        for row in table.find_all('tr'):
            if row.find('th'):
                continue

            cells = row.find_all('td')
            if len(cells) < 2 or len(cells) <= points_index:
                continue

            name = self._extract_player_name(cells[0])
            if not name:
                continue

            projections[self._normalize_name(name)] = self._extract_number(cells[points_index])

        return projections

    def _extract_player_name(self, cell) -> str:
        link = cell.find('a', class_='player-name')
        if link is not None:
            return link.get_text(strip=True)
        return self._clean_player_name(cell.get_text(' ', strip=True))

    def _clean_player_name(self, name: str) -> str:
        """Strip team abbreviations and injury tags from a player cell."""
        name = re.sub(r'\s+\([^)]+\)', '', name)  # (Team) or (IR)
        name = re.sub(r'\s+[A-Z]{2,3}$', '', name)  # Team abbreviation
        name = re.sub(r'\s+[QDOP]$', '', name)  # Injury tag
        return name.strip()

    def _normalize_name(self, name: str) -> str:
        name = name.lower().replace('.', '').replace("'", '')
        name = re.sub(r'\s+(jr|sr|ii|iii|iv)$', '', name.strip())
        return ' '.join(name.split())

    def _names_match(self, name1: str, name2: str) -> bool:
        """Check if two normalized player names match (allowing for variations)."""
        if name1 == name2:
            return True

        if name1.replace(' ', '') == name2.replace(' ', ''):
            return True

        # "Josh Allen" vs "J Allen"
        parts1, parts2 = name1.split(), name2.split()
        if len(parts1) > 1 and len(parts2) > 1 and parts1[-1] == parts2[-1]:
            return parts1[0][0] == parts2[0][0] and (len(parts1[0]) == 1 or len(parts2[0]) == 1)

        return False

    def _extract_number(self, cell) -> float:
        """Extract numeric value from a cell."""
        text = re.sub(r'[^\d.-]', '', cell.get_text(strip=True))
        try:
            return float(text) if text else 0.0
        except ValueError:
            return 0.0
