"""
Invite leaderboard.
"""

from .ranking import RankedSponsor, SponsorScore, aggregate_scores, rank_of, rank_top
from .service import Leaderboard, LeaderboardService, MyRank
from .window import resolve_weekly_window

__all__ = [
    "Leaderboard",
    "LeaderboardService",
    "MyRank",
    "RankedSponsor",
    "SponsorScore",
    "aggregate_scores",
    "rank_of",
    "rank_top",
    "resolve_weekly_window",
]
