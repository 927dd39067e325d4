"""
Fantasy Football Roster Advisor

Fetches a Yahoo Fantasy Football roster and league rules, researches every
player (statistics, injuries, matchups, weather, projections), scores and
ranks the roster, and produces start/sit, waiver, and trade recommendations
for a given week.
"""

__version__ = "1.0.0"
__author__ = "Fantasy Football Roster Advisor Team"
__description__ = "Weekly start/sit, waiver, and trade recommendations for Yahoo Fantasy Football"
