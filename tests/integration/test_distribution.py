"""
Integration tests for the distribution sweeps.

Tests cover:
- Daily ROI credit, same-day idempotency and cap completion
- Voucher positions stopping at their ROI window end
- Team earnings up the sponsor chain and missed earnings
- Expired voucher reconciliation
- Failure isolation of entries and sponsors
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from app.config.settings import settings
from app.models.enums import StakeStatus, VoucherType
from app.repositories.staking_entry_repository import StakingEntryRepository
from app.repositories.transaction_record_repository import TeamEarningRecordRepository
from app.repositories.user_balance_repository import UserBalanceRepository
from app.repositories.voucher_repository import VoucherRepository
from app.services.distribution.balance_handler import BalanceHandler
from app.services.distribution.roi_distributor import DailyRoiDistributor
from app.services.distribution.team_distributor import TeamEarningDistributor
from app.services.distribution.voucher_reconciler import VoucherExpiryReconciler
from app.services.staking.service import StakingService
from app.services.voucher.voucher_service import VoucherService


async def stake(session, clock, user_id, amount):
    return await StakingService(session, clock).create_stake(user_id, amount)


async def wallet_of(session, user_id):
    return await UserBalanceRepository(session).get_by_user_id(user_id)


async def open_voucher_position(session, clock, user_id, value="10", package_id=0, days=14):
    service = VoucherService(session, clock)
    vouchers = await service.create_vouchers(
        1,
        VoucherType.PACKAGE,
        Decimal(value),
        user_id=user_id,
        package_id=package_id,
        roi_validity_days=days,
        affects_max_cap=False,
    )
    entry = await service.use_voucher_for_stake(user_id, vouchers[0].id)
    return entry, vouchers[0]


class TestDailyRoiDistribution:
    """Test the daily ROI sweep."""

    @pytest.mark.asyncio
    async def test_credits_daily_roi(self, db_session, clock, fund_wallet):
        """Each on-stake entry earns one day of ROI."""
        await fund_wallet("alice", 500)
        entry = await stake(db_session, clock, "alice", 250)

        summary = await DailyRoiDistributor(db_session, clock).distribute_daily_earnings()

        assert summary.processed == 1
        assert summary.credited == 1
        assert summary.total_rewarded == Decimal("2.75")

        entry = await StakingEntryRepository(db_session).get_by_id(entry.id)
        assert entry.total_earned == Decimal("2.75")
        assert entry.last_credited_date == clock.today()

        wallet = await wallet_of(db_session, "alice")
        assert wallet.balance == Decimal("252.75")
        assert wallet.daily_earning == Decimal("2.75")
        assert wallet.capped_earned == Decimal("2.75")

    @pytest.mark.asyncio
    async def test_same_day_rerun_credits_nothing(self, db_session, clock, fund_wallet):
        """A second run on the same UTC day skips every entry."""
        await fund_wallet("alice", 100)
        await stake(db_session, clock, "alice", 100)
        distributor = DailyRoiDistributor(db_session, clock)
        await distributor.distribute_daily_earnings()

        clock.set(clock.now() + timedelta(hours=6))
        summary = await distributor.distribute_daily_earnings()

        assert summary.skipped == 1
        assert summary.credited == 0
        wallet = await wallet_of(db_session, "alice")
        assert wallet.balance == Decimal("1")

    @pytest.mark.asyncio
    async def test_daily_earning_resets_next_day(self, db_session, clock, fund_wallet):
        """daily_earning holds only the current day."""
        await fund_wallet("alice", 100)
        await stake(db_session, clock, "alice", 100)
        distributor = DailyRoiDistributor(db_session, clock)
        await distributor.distribute_daily_earnings()

        clock.set(clock.now() + timedelta(days=1))
        await distributor.distribute_daily_earnings()

        wallet = await wallet_of(db_session, "alice")
        assert wallet.balance == Decimal("2")
        assert wallet.daily_earning == Decimal("1")
        assert wallet.daily_earning_date == clock.today()

    @pytest.mark.asyncio
    async def test_last_credit_clamped_to_cap(self, db_session, clock, fund_wallet):
        """The final credit pays only the remainder and completes the entry."""
        await fund_wallet("alice", 100)
        entry = await stake(db_session, clock, "alice", 100)
        entry.total_earned = Decimal("179.5")
        await db_session.commit()

        summary = await DailyRoiDistributor(db_session, clock).distribute_daily_earnings()

        assert summary.total_rewarded == Decimal("0.5")
        assert summary.total_missed == Decimal("0.5")
        assert summary.completed == 1
        entry = await StakingEntryRepository(db_session).get_by_id(entry.id)
        assert entry.status == StakeStatus.COMPLETED.value
        assert entry.total_earned == Decimal("180")
        assert entry.end_date == clock.now()

        wallet = await wallet_of(db_session, "alice")
        assert wallet.on_staking == Decimal("0")
        assert wallet.balance == Decimal("0.5")
        assert wallet.missed_earnings == Decimal("0.5")

    @pytest.mark.asyncio
    @pytest.mark.slow
    async def test_bronze_runs_to_cap(self, db_session, clock, fund_wallet):
        """Bronze earns exactly 180 over 180 days and then stops."""
        await fund_wallet("alice", 100)
        entry = await stake(db_session, clock, "alice", 100)
        distributor = DailyRoiDistributor(db_session, clock)

        for _ in range(181):
            await distributor.distribute_daily_earnings()
            clock.set(clock.now() + timedelta(days=1))

        entry = await StakingEntryRepository(db_session).get_by_id(entry.id)
        assert entry.status == StakeStatus.COMPLETED.value
        assert entry.total_earned == Decimal("180")
        wallet = await wallet_of(db_session, "alice")
        assert wallet.balance == Decimal("180")

    @pytest.mark.asyncio
    async def test_completed_entries_not_processed(self, db_session, clock, fund_wallet):
        """Cancelled entries are outside the sweep."""
        await fund_wallet("alice", 100)
        entry = await stake(db_session, clock, "alice", 100)
        await StakingService(db_session, clock).cancel_stake(entry.id, "test")

        summary = await DailyRoiDistributor(db_session, clock).distribute_daily_earnings()

        assert summary.processed == 0

    @pytest.mark.asyncio
    async def test_emergency_stop(self, db_session, clock, fund_wallet, monkeypatch):
        """Emergency stop skips the whole run."""
        monkeypatch.setattr(settings, "emergency_stop_roi", True)
        await fund_wallet("alice", 100)
        await stake(db_session, clock, "alice", 100)

        summary = await DailyRoiDistributor(db_session, clock).distribute_daily_earnings()

        assert summary.processed == 0
        wallet = await wallet_of(db_session, "alice")
        assert wallet.balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_restrict_to_user(self, db_session, clock, fund_wallet):
        """user_id limits the sweep to one user."""
        await fund_wallet("alice", 100)
        await fund_wallet("bob", 100)
        await stake(db_session, clock, "alice", 100)
        await stake(db_session, clock, "bob", 100)

        summary = await DailyRoiDistributor(db_session, clock).distribute_daily_earnings(
            user_id="bob"
        )

        assert summary.credited == 1
        assert (await wallet_of(db_session, "alice")).balance == Decimal("0")

    @pytest.mark.asyncio
    async def test_failing_entry_does_not_stop_sweep(
        self, db_session, clock, fund_wallet, monkeypatch
    ):
        """A failing entry is rolled back alone and credited on a later run."""
        await fund_wallet("alice", 100)
        await fund_wallet("bob", 100)
        await stake(db_session, clock, "alice", 100)
        bob_entry = await stake(db_session, clock, "bob", 100)

        credit_daily_roi = BalanceHandler.credit_daily_roi

        async def fail_for_bob(self, user_id, *args, **kwargs):
            if user_id == "bob":
                raise RuntimeError("wallet locked")
            return await credit_daily_roi(self, user_id, *args, **kwargs)

        monkeypatch.setattr(BalanceHandler, "credit_daily_roi", fail_for_bob)
        distributor = DailyRoiDistributor(db_session, clock)

        summary = await distributor.distribute_daily_earnings()

        assert summary.processed == 2
        assert summary.credited == 1
        assert summary.failed == 1
        entry = await StakingEntryRepository(db_session).get_by_id(bob_entry.id, for_update=True)
        assert entry.total_earned == Decimal("0")
        assert entry.last_credited_date is None
        bob = await wallet_of(db_session, "bob")
        assert bob.balance == Decimal("0")
        assert bob.daily_earning == Decimal("0")
        assert (await wallet_of(db_session, "alice")).balance == Decimal("1")

        monkeypatch.undo()
        retry = await distributor.distribute_daily_earnings()

        assert retry.credited == 1
        assert retry.skipped == 1
        assert (await wallet_of(db_session, "bob")).balance == Decimal("1")

    @pytest.mark.asyncio
    async def test_voucher_links_scope(self, db_session, clock, fund_wallet, monkeypatch):
        """Full sweeps load voucher links unfiltered; user runs pass their entry ids."""
        await fund_wallet("alice", 100)
        entry = await stake(db_session, clock, "alice", 100)
        calls = []
        get_links = VoucherRepository.get_links

        async def spy(self, stake_ids=None):
            calls.append(stake_ids)
            return await get_links(self, stake_ids)

        monkeypatch.setattr(VoucherRepository, "get_links", spy)
        distributor = DailyRoiDistributor(db_session, clock)

        await distributor.distribute_daily_earnings()
        await distributor.distribute_daily_earnings(user_id="alice")

        assert calls == [None, [entry.id]]


class TestVoucherPositions:
    """Test ROI of positions opened from package vouchers."""

    @pytest.mark.asyncio
    async def test_voucher_position_earns_outside_wallet_cap(self, db_session, clock):
        """Position earns ROI without counting toward capped_earned."""
        entry, _ = await open_voucher_position(db_session, clock, "alice")

        assert entry.package_name == "Voucher Position"
        assert entry.counts_toward_cap is False

        await DailyRoiDistributor(db_session, clock).distribute_daily_earnings()

        wallet = await wallet_of(db_session, "alice")
        assert wallet.balance == Decimal("0.08")
        assert wallet.capped_earned == Decimal("0")
        assert wallet.on_staking == Decimal("10")

    @pytest.mark.asyncio
    async def test_completed_at_window_end(self, db_session, clock):
        """Past roi_end_date the position completes with end_date = roi_end_date."""
        entry, voucher = await open_voucher_position(db_session, clock, "alice", days=14)
        roi_end = clock.now() + timedelta(days=14)

        clock.set(roi_end + timedelta(seconds=1))
        summary = await DailyRoiDistributor(db_session, clock).distribute_daily_earnings()

        assert summary.completed == 1
        assert summary.credited == 0
        entry = await StakingEntryRepository(db_session).get_by_id(entry.id)
        assert entry.status == StakeStatus.COMPLETED.value
        assert entry.end_date == roi_end
        assert entry.total_earned == Decimal("0")

        wallet = await wallet_of(db_session, "alice")
        assert wallet.on_staking == Decimal("0")

    @pytest.mark.asyncio
    async def test_still_credited_on_last_instant(self, db_session, clock):
        """At exactly roi_end_date the position still earns."""
        await open_voucher_position(db_session, clock, "alice", days=14)

        clock.set(clock.now() + timedelta(days=14))
        summary = await DailyRoiDistributor(db_session, clock).distribute_daily_earnings()

        assert summary.credited == 1
        assert summary.completed == 0


class TestVoucherExpiryReconciler:
    """Test reconciliation of expired voucher positions."""

    @pytest.mark.asyncio
    async def test_reconcile(self, db_session, clock):
        """Stale positions are completed at their window end, once."""
        entry, _ = await open_voucher_position(db_session, clock, "alice", days=14)
        roi_end = clock.now() + timedelta(days=14)
        clock.set(roi_end + timedelta(days=3))
        reconciler = VoucherExpiryReconciler(db_session, clock)

        summary = await reconciler.reconcile_expired_vouchers()

        assert summary.checked == 1
        assert summary.completed == 1
        entry = await StakingEntryRepository(db_session).get_by_id(entry.id)
        assert entry.status == StakeStatus.COMPLETED.value
        assert entry.end_date == roi_end

        again = await reconciler.reconcile_expired_vouchers()
        assert again.checked == 0

    @pytest.mark.asyncio
    async def test_active_window_untouched(self, db_session, clock):
        """Positions inside their window are left alone."""
        await open_voucher_position(db_session, clock, "alice", days=14)

        summary = await VoucherExpiryReconciler(db_session, clock).reconcile_expired_vouchers()

        assert summary.checked == 0


class TestTeamEarningDistribution:
    """Test the team earning sweep."""

    @pytest.mark.asyncio
    async def test_level_percents_up_the_chain(self, db_session, clock, fund_wallet, invite):
        """Level 1 gets 10% and level 2 gets 5% of a member's daily earning."""
        for user_id in ("alice", "bob", "carol"):
            await fund_wallet(user_id, 100)
        await invite("alice", "bob")
        await invite("bob", "carol")
        await stake(db_session, clock, "alice", 100)
        await stake(db_session, clock, "bob", 100)
        await stake(db_session, clock, "carol", 100)
        await DailyRoiDistributor(db_session, clock).distribute_daily_earnings()

        summary = await TeamEarningDistributor(db_session, clock).distribute_team_earnings()

        assert summary.processed == 2
        alice = await wallet_of(db_session, "alice")
        bob = await wallet_of(db_session, "bob")
        # carol -> bob 0.10; bob -> alice 0.10, carol -> alice 0.05
        assert bob.team_earning == Decimal("0.1")
        assert alice.team_earning == Decimal("0.15")

        records = await TeamEarningRecordRepository(db_session).find_by(sponsor_id="alice")
        assert sorted((r.source_user_id, r.level) for r in records) == [
            ("bob", 1),
            ("carol", 2),
        ]

        entries = await StakingService(db_session, clock).get_on_stake_entries("alice")
        assert entries[0].total_earned == Decimal("1.15")

    @pytest.mark.asyncio
    async def test_same_day_rerun_skipped(self, db_session, clock, fund_wallet, invite):
        """A sponsor is credited at most once per day."""
        await fund_wallet("alice", 100)
        await fund_wallet("bob", 100)
        await invite("alice", "bob")
        await stake(db_session, clock, "alice", 100)
        await stake(db_session, clock, "bob", 100)
        await DailyRoiDistributor(db_session, clock).distribute_daily_earnings()
        distributor = TeamEarningDistributor(db_session, clock)
        await distributor.distribute_team_earnings()

        summary = await distributor.distribute_team_earnings()

        assert summary.skipped == 1
        alice = await wallet_of(db_session, "alice")
        assert alice.team_earning == Decimal("0.1")

    @pytest.mark.asyncio
    async def test_sponsor_without_entries_misses_earning(
        self, db_session, clock, fund_wallet, invite
    ):
        """Team earning with no room under any cap is booked as missed."""
        await fund_wallet("bob", 100)
        await invite("alice", "bob")
        await stake(db_session, clock, "bob", 100)
        await DailyRoiDistributor(db_session, clock).distribute_daily_earnings()

        summary = await TeamEarningDistributor(db_session, clock).distribute_team_earnings()

        assert summary.total_missed == Decimal("0.1")
        alice = await wallet_of(db_session, "alice")
        assert alice.team_earning == Decimal("0")
        assert alice.missed_earnings == Decimal("0.1")
        assert alice.balance == Decimal("0")
        assert await TeamEarningRecordRepository(db_session).find_by(sponsor_id="alice") == []

    @pytest.mark.asyncio
    async def test_no_earners_yesterday(self, db_session, clock, fund_wallet, invite):
        """Earnings of a previous day are not redistributed."""
        await fund_wallet("alice", 100)
        await fund_wallet("bob", 100)
        await invite("alice", "bob")
        await stake(db_session, clock, "alice", 100)
        await stake(db_session, clock, "bob", 100)
        await DailyRoiDistributor(db_session, clock).distribute_daily_earnings()

        clock.set(clock.now() + timedelta(days=1))
        summary = await TeamEarningDistributor(db_session, clock).distribute_team_earnings()

        assert summary.processed == 0

    @pytest.mark.asyncio
    async def test_records_hold_only_credited_share(
        self, db_session, clock, fund_wallet, invite
    ):
        """Contributions are recorded up to what fit under the sponsor's cap."""
        for user_id in ("alice", "bob", "carol"):
            await fund_wallet(user_id, 100)
        await invite("alice", "bob")
        await invite("alice", "carol")
        alice_entry = await stake(db_session, clock, "alice", 100)
        await stake(db_session, clock, "bob", 100)
        await stake(db_session, clock, "carol", 100)
        await DailyRoiDistributor(db_session, clock).distribute_daily_earnings()
        alice_entry.total_earned = Decimal("179.85")
        await db_session.commit()

        summary = await TeamEarningDistributor(db_session, clock).distribute_team_earnings()

        assert summary.total_rewarded == Decimal("0.15")
        assert summary.total_missed == Decimal("0.05")
        records = await TeamEarningRecordRepository(db_session).find_by(sponsor_id="alice")
        assert sorted((r.source_user_id, r.amount) for r in records) == [
            ("bob", Decimal("0.1")),
            ("carol", Decimal("0.05")),
        ]
        alice = await wallet_of(db_session, "alice")
        assert alice.team_earning == Decimal("0.15")
        assert alice.missed_earnings == Decimal("0.05")

    @pytest.mark.asyncio
    async def test_failing_sponsor_does_not_stop_sweep(
        self, db_session, clock, fund_wallet, invite, monkeypatch
    ):
        """A failing sponsor is rolled back alone and credited on a later run."""
        for user_id in ("alice", "bob", "carol", "dave"):
            await fund_wallet(user_id, 100)
        await invite("alice", "bob")
        await invite("carol", "dave")
        alice_entry = await stake(db_session, clock, "alice", 100)
        for user_id in ("bob", "carol", "dave"):
            await stake(db_session, clock, user_id, 100)
        await DailyRoiDistributor(db_session, clock).distribute_daily_earnings()

        credit_team_earning = BalanceHandler.credit_team_earning

        async def fail_for_alice(self, user_id, *args, **kwargs):
            if user_id == "alice":
                raise RuntimeError("wallet locked")
            return await credit_team_earning(self, user_id, *args, **kwargs)

        monkeypatch.setattr(BalanceHandler, "credit_team_earning", fail_for_alice)
        distributor = TeamEarningDistributor(db_session, clock)

        summary = await distributor.distribute_team_earnings()

        assert summary.processed == 2
        assert summary.credited == 1
        assert summary.failed == 1
        entry = await StakingEntryRepository(db_session).get_by_id(alice_entry.id, for_update=True)
        assert entry.total_earned == Decimal("1")
        alice = await wallet_of(db_session, "alice")
        assert alice.team_earning == Decimal("0")
        assert alice.team_credited_date is None
        assert await TeamEarningRecordRepository(db_session).find_by(sponsor_id="alice") == []
        assert (await wallet_of(db_session, "carol")).team_earning == Decimal("0.1")

        monkeypatch.undo()
        retry = await distributor.distribute_team_earnings()

        assert retry.credited == 1
        assert retry.skipped == 1
        assert (await wallet_of(db_session, "alice")).team_earning == Decimal("0.1")
