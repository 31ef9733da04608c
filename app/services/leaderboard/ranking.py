"""
Invite ranking.

Pure aggregation of raw activation rows into sponsor scores and ranks.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class SponsorScore:
    """Activated invite count of one sponsor."""

    sponsor_id: str
    activated_invites: int
    first_activation_at: datetime

    @property
    def sort_key(self) -> tuple[int, datetime, str]:
        return (-self.activated_invites, self.first_activation_at, self.sponsor_id)


@dataclass(frozen=True)
class RankedSponsor:
    """Leaderboard row."""

    rank: int
    user_id: str
    activated_invites: int


def aggregate_scores(rows: Iterable[tuple[str, str, datetime]]) -> list[SponsorScore]:
    """
    Reduce (sponsor_id, invitee_id, stake_created_at) rows to scores.

    An invitee counts once per sponsor, activated at their earliest
    qualifying stake. A sponsor's first activation is the earliest of
    those.

    Returns:
        Scores sorted by activated DESC, first activation ASC, sponsor ASC
    """
    activation: dict[tuple[str, str], datetime] = {}
    for sponsor_id, invitee_id, created_at in rows:
        key = (sponsor_id, invitee_id)
        current = activation.get(key)
        if current is None or created_at < current:
            activation[key] = created_at

    counts: dict[str, int] = {}
    first: dict[str, datetime] = {}
    for (sponsor_id, _invitee_id), activated_at in activation.items():
        counts[sponsor_id] = counts.get(sponsor_id, 0) + 1
        if sponsor_id not in first or activated_at < first[sponsor_id]:
            first[sponsor_id] = activated_at

    scores = [
        SponsorScore(sponsor_id, counts[sponsor_id], first[sponsor_id])
        for sponsor_id in counts
    ]
    scores.sort(key=lambda score: score.sort_key)
    return scores


def rank_top(scores: list[SponsorScore], limit: int) -> list[RankedSponsor]:
    """First `limit` sorted scores with 1-based ranks."""
    return [
        RankedSponsor(rank=index, user_id=score.sponsor_id, activated_invites=score.activated_invites)
        for index, score in enumerate(scores[:limit], start=1)
    ]


def rank_of(scores: list[SponsorScore], user_id: str) -> tuple[int, int | None]:
    """
    Activated count and rank of one sponsor.

    Returns:
        (activated_invites, rank); rank is 1 + number of sponsors strictly
        ahead in the ordering, None when the user has no activations
    """
    mine = next((score for score in scores if score.sponsor_id == user_id), None)
    if mine is None or mine.activated_invites == 0:
        return 0, None

    ahead = sum(1 for score in scores if score.sort_key < mine.sort_key)
    return mine.activated_invites, ahead + 1
