"""
Integration tests for the invite leaderboard.

Tests cover:
- Activation filters (window, package, amount, cancellation)
- Ranking of sponsors and the caller's own rank
- Parameter validation
"""

from datetime import UTC, datetime
from decimal import Decimal

import pytest

from app.services.leaderboard import LeaderboardService
from app.services.staking.service import StakingService
from app.utils.exceptions import ValidationError


async def stake_at(session, clock, when, user_id, amount):
    clock.set(when)
    return await StakingService(session, clock).create_stake(user_id, amount)


@pytest.fixture
async def invite_graph(db_session, clock, fund_wallet, invite):
    """
    alice invited bob and carol, dave invited erin and frank.

    Window of Wednesday 2026-01-07 12:00 UTC starts Sunday 2026-01-04 13:00 UTC.
    """
    for sponsor_id, user_id in [
        ("alice", "bob"),
        ("alice", "carol"),
        ("dave", "erin"),
        ("dave", "frank"),
    ]:
        await invite(sponsor_id, user_id)
        await fund_wallet(user_id, 1000)

    await stake_at(db_session, clock, datetime(2026, 1, 6, 10, tzinfo=UTC), "erin", 250)
    await stake_at(db_session, clock, datetime(2026, 1, 7, 9, tzinfo=UTC), "bob", 100)
    # Trial does not qualify
    await stake_at(db_session, clock, datetime(2026, 1, 7, 10, tzinfo=UTC), "carol", 10)
    # Before the window
    await stake_at(db_session, clock, datetime(2026, 1, 4, 12, tzinfo=UTC), "frank", 500)

    clock.set(datetime(2026, 1, 7, 12, tzinfo=UTC))


class TestInviteLeaderboard:
    """Test weekly invite leaderboard."""

    @pytest.mark.asyncio
    async def test_ranking(self, db_session, clock, invite_graph):
        """Ties on count are ordered by earliest activation."""
        board = await LeaderboardService(db_session, clock).get_invite_leaderboard("alice")

        assert board.start == datetime(2026, 1, 4, 13, tzinfo=UTC)
        assert board.end == clock.now()
        assert [(r.rank, r.user_id, r.activated_invites) for r in board.top] == [
            (1, "dave", 1),
            (2, "alice", 1),
        ]
        assert board.me.rank == 2
        assert board.me.activated_invites == 1
        assert "Sunday 18:00 UTC+5" in board.reset_rule

    @pytest.mark.asyncio
    async def test_multiple_stakes_count_once(self, db_session, clock, invite_graph):
        """A second stake by the same invitee adds nothing."""
        await stake_at(db_session, clock, datetime(2026, 1, 7, 11, tzinfo=UTC), "erin", 500)
        clock.set(datetime(2026, 1, 7, 12, tzinfo=UTC))

        board = await LeaderboardService(db_session, clock).get_invite_leaderboard("dave")

        assert board.top[0].user_id == "dave"
        assert board.top[0].activated_invites == 1

    @pytest.mark.asyncio
    async def test_window_excludes_its_end(self, db_session, clock, fund_wallet, invite, invite_graph):
        """Activations at the window start count, activations at now do not."""
        for user_id in ("gina", "hank"):
            await invite("alice", user_id)
            await fund_wallet(user_id, 1000)
        await stake_at(db_session, clock, datetime(2026, 1, 4, 13, tzinfo=UTC), "gina", 100)
        await stake_at(db_session, clock, datetime(2026, 1, 7, 12, tzinfo=UTC), "hank", 100)

        board = await LeaderboardService(db_session, clock).get_invite_leaderboard("alice")

        assert board.end == datetime(2026, 1, 7, 12, tzinfo=UTC)
        assert board.me.activated_invites == 2

    @pytest.mark.asyncio
    async def test_lower_thresholds(self, db_session, clock, invite_graph):
        """Trial stakes qualify when the thresholds allow them."""
        board = await LeaderboardService(db_session, clock).get_invite_leaderboard(
            "alice", min_stake=Decimal("10"), min_package_id=0
        )

        assert board.top[0].user_id == "alice"
        assert board.top[0].activated_invites == 2
        assert board.me.rank == 1

    @pytest.mark.asyncio
    async def test_cancelled_stake_does_not_activate(self, db_session, clock, invite_graph):
        """Cancelled stakes are ignored."""
        service = StakingService(db_session, clock)
        [entry] = await service.get_on_stake_entries("bob")
        await service.cancel_stake(entry.id, "chargeback")

        board = await LeaderboardService(db_session, clock).get_invite_leaderboard("alice")

        assert [r.user_id for r in board.top] == ["dave"]
        assert board.me.rank is None

    @pytest.mark.asyncio
    async def test_caller_without_activations(self, db_session, clock, invite_graph):
        """Callers with no activations get no rank."""
        board = await LeaderboardService(db_session, clock).get_invite_leaderboard("zoe")

        assert board.me.activated_invites == 0
        assert board.me.rank is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [4, 101])
    async def test_limit_out_of_range(self, db_session, clock, limit):
        """limit must be 5-100."""
        with pytest.raises(ValidationError):
            await LeaderboardService(db_session, clock).get_invite_leaderboard("alice", limit=limit)
