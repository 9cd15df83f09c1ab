"""
Tournament alert system for Football Tournaments UK.

This module handles:
- Matching tournaments against subscriber alert filters
- Rate limiting and duplicate suppression via the delivery log
- Rendering digest, instant and verification emails
- Sending alert emails via Resend
- Running daily/weekly digest cycles and instant alerts
"""

from .alert_matcher import filter_matching_tournaments, tournament_matches_criteria
from .digest_builder import build_digest
from .dispatcher import run_digest_cycle, run_instant_alerts

__all__ = [
    "filter_matching_tournaments",
    "tournament_matches_criteria",
    "build_digest",
    "run_digest_cycle",
    "run_instant_alerts",
]
