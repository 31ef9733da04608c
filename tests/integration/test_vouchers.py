"""
Integration tests for VoucherService.

Tests cover:
- Issuing vouchers with unique codes
- Redeeming withdraw and package codes
- Opening staking positions from package vouchers
- Expiry of stale vouchers
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from app.models.enums import StakeStatus, VoucherStatus, VoucherType
from app.models.voucher import Voucher
from app.repositories.user_balance_repository import UserBalanceRepository
from app.repositories.voucher_repository import LinkedVoucher, NoVoucher, VoucherRepository
from app.services.voucher import VoucherService, is_valid_voucher_code
from app.services.voucher.voucher_service import resolve_voucher_package
from app.utils.exceptions import NotFoundError, ValidationError


@pytest.fixture
def voucher_service(db_session, clock):
    """VoucherService on the test database."""
    return VoucherService(db_session, clock)


class TestIssueVouchers:
    """Test voucher creation."""

    @pytest.mark.asyncio
    async def test_codes_unique_and_valid(self, voucher_service):
        """Every voucher gets its own well-formed code."""
        vouchers = await voucher_service.create_vouchers(5, VoucherType.WITHDRAW, Decimal("5"))

        codes = [v.code for v in vouchers]
        assert len(set(codes)) == 5
        assert all(is_valid_voucher_code(code) for code in codes)
        assert all(v.status == VoucherStatus.ACTIVE.value for v in vouchers)

    @pytest.mark.asyncio
    async def test_package_terms_stored(self, voucher_service):
        """Package vouchers keep their package reference."""
        [voucher] = await voucher_service.create_vouchers(
            1, VoucherType.PACKAGE, Decimal("30"), user_id="alice", package_id=2
        )

        assert voucher.package_name == "Silver"
        assert voucher.user_id == "alice"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("count", "value"), [(0, "5"), (1, "0")])
    async def test_invalid_input(self, voucher_service, count, value):
        """Count and value must be positive."""
        with pytest.raises(ValidationError):
            await voucher_service.create_vouchers(count, VoucherType.WITHDRAW, Decimal(value))


class TestRedeemByCode:
    """Test code redemption."""

    @pytest.mark.asyncio
    async def test_withdraw_voucher_credits_wallet(self, db_session, voucher_service):
        """Withdraw vouchers are consumed and credited."""
        [voucher] = await voucher_service.create_vouchers(1, VoucherType.WITHDRAW, Decimal("5"))

        redeemed = await voucher_service.redeem_by_code("bob", f"  {voucher.code.lower()} ")

        assert redeemed.status == VoucherStatus.USED.value
        assert redeemed.user_id == "bob"
        wallet = await UserBalanceRepository(db_session).get_by_user_id("bob")
        assert wallet.balance == Decimal("5")

    @pytest.mark.asyncio
    async def test_withdraw_voucher_redeemed_once(self, db_session, voucher_service):
        """A used code cannot be redeemed again."""
        [voucher] = await voucher_service.create_vouchers(1, VoucherType.WITHDRAW, Decimal("5"))
        code = voucher.code
        await voucher_service.redeem_by_code("bob", code)

        with pytest.raises(ValidationError):
            await voucher_service.redeem_by_code("bob", code)

        wallet = await UserBalanceRepository(db_session).get_by_user_id("bob", for_update=True)
        assert wallet.balance == Decimal("5")

    @pytest.mark.asyncio
    async def test_package_voucher_claimed_by_one_user(self, voucher_service):
        """Package codes are assigned and stay active until used."""
        [voucher] = await voucher_service.create_vouchers(1, VoucherType.PACKAGE, Decimal("10"))
        code = voucher.code

        redeemed = await voucher_service.redeem_by_code("alice", code)
        assert redeemed.status == VoucherStatus.ACTIVE.value
        assert redeemed.user_id == "alice"

        with pytest.raises(ValidationError, match="another user"):
            await voucher_service.redeem_by_code("mallory", code)

    @pytest.mark.asyncio
    async def test_unknown_code(self, voucher_service):
        """Unknown codes are not found."""
        with pytest.raises(NotFoundError):
            await voucher_service.redeem_by_code("alice", "V-AAAA-BBBB")

    @pytest.mark.asyncio
    async def test_expired_code(self, db_session, voucher_service, clock):
        """Codes past expires_at are rejected and later marked expired."""
        [voucher] = await voucher_service.create_vouchers(
            1, VoucherType.WITHDRAW, Decimal("5"), expires_at=clock.now() - timedelta(days=1)
        )
        code = voucher.code

        with pytest.raises(ValidationError, match="expired"):
            await voucher_service.redeem_by_code("alice", code)

        assert await voucher_service.expire_stale_vouchers() == 1
        stored = await VoucherRepository(db_session).get_by_code(code, for_update=True)
        assert stored.status == VoucherStatus.EXPIRED.value


class TestUseVoucherForStake:
    """Test voucher positions."""

    @pytest.mark.asyncio
    async def test_opens_position(self, db_session, voucher_service, clock):
        """Package voucher opens an entry with the package terms."""
        [voucher] = await voucher_service.create_vouchers(
            1,
            VoucherType.PACKAGE,
            Decimal("15"),
            user_id="alice",
            package_id=1,
            roi_validity_days=30,
            affects_max_cap=True,
        )

        entry = await voucher_service.use_voucher_for_stake("alice", voucher.id)

        assert entry.status == StakeStatus.ACTIVE.value
        assert entry.amount == Decimal("15")
        assert entry.daily_roi == Decimal("1.0")
        assert entry.max_earning == Decimal("27")
        assert entry.counts_toward_cap is True

        link = await VoucherRepository(db_session).get_link(entry.id)
        assert isinstance(link, LinkedVoucher)
        assert link.roi_end_date == clock.now() + timedelta(days=30)

        wallet = await UserBalanceRepository(db_session).get_by_user_id("alice")
        assert wallet.balance == Decimal("0")
        assert wallet.on_staking == Decimal("15")

    @pytest.mark.asyncio
    async def test_voucher_used_once(self, voucher_service):
        """A used voucher cannot open a second position."""
        [voucher] = await voucher_service.create_vouchers(
            1, VoucherType.PACKAGE, Decimal("10"), user_id="alice", package_id=0
        )
        voucher_id = voucher.id
        await voucher_service.use_voucher_for_stake("alice", voucher_id)

        with pytest.raises(ValidationError, match="used"):
            await voucher_service.use_voucher_for_stake("alice", voucher_id)

    @pytest.mark.asyncio
    async def test_withdraw_voucher_not_stakeable(self, voucher_service):
        """Withdraw vouchers cannot open positions."""
        [voucher] = await voucher_service.create_vouchers(
            1, VoucherType.WITHDRAW, Decimal("5"), user_id="alice"
        )

        with pytest.raises(ValidationError):
            await voucher_service.use_voucher_for_stake("alice", voucher.id)

    @pytest.mark.asyncio
    async def test_other_users_voucher(self, voucher_service):
        """Vouchers of other users are not found."""
        [voucher] = await voucher_service.create_vouchers(
            1, VoucherType.PACKAGE, Decimal("10"), user_id="alice"
        )

        with pytest.raises(NotFoundError):
            await voucher_service.use_voucher_for_stake("mallory", voucher.id)

    @pytest.mark.asyncio
    async def test_plain_entry_has_no_voucher(self, db_session, fund_wallet, clock):
        """Entries opened with money resolve to NoVoucher."""
        from app.services.staking.service import StakingService

        await fund_wallet("alice", 100)
        entry = await StakingService(db_session, clock).create_stake("alice", 100)

        assert isinstance(await VoucherRepository(db_session).get_link(entry.id), NoVoucher)


class TestResolveVoucherPackage:
    """Test package resolution for voucher terms."""

    def test_explicit_package_id(self):
        """package_id wins."""
        voucher = Voucher(value=Decimal("15"), package_id=3)
        assert resolve_voucher_package(voucher).name == "Gold"

    def test_package_name(self):
        """Name is used when id is missing."""
        voucher = Voucher(value=Decimal("15"), package_name="platinum")
        assert resolve_voucher_package(voucher).id == 4

    def test_amount_match(self):
        """Exact value match is next."""
        voucher = Voucher(value=Decimal("250"))
        assert resolve_voucher_package(voucher).name == "Silver"

    def test_trial_fallback(self):
        """Anything else uses Trial terms."""
        voucher = Voucher(value=Decimal("33"))
        assert resolve_voucher_package(voucher).name == "Trial"
