"""
Voucher service.

Issues vouchers, redeems codes, opens staking positions from package
vouchers and expires vouchers past their redemption deadline.
"""

from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from app.config.business_constants import (
    DEFAULT_VOUCHER_CURRENCY,
    DEFAULT_VOUCHER_ROI_DAYS,
    VOUCHER_CODE_ATTEMPTS_PER_CODE,
    VOUCHER_POSITION_NAME,
)
from app.config.staking_packages import (
    TRIAL_PACKAGE_ID,
    StakingPackage,
    find_package_for_amount,
    get_package,
    get_package_by_name,
)
from app.models.enums import VoucherStatus, VoucherType
from app.models.staking_entry import StakingEntry
from app.models.voucher import Voucher
from app.repositories.voucher_repository import VoucherRepository
from app.services.base_service import BaseService, transaction
from app.services.distribution.balance_handler import BalanceHandler
from app.services.staking.creator import StakeCreator
from app.services.voucher.code_generator import (
    generate_voucher_code,
    normalize_voucher_code,
)
from app.utils.datetime_utils import Clock
from app.utils.exceptions import NotFoundError, StakingError, ValidationError


def resolve_voucher_package(voucher: Voucher) -> StakingPackage | None:
    """
    Pick the package whose ROI terms a package voucher uses.

    Order: explicit package_id, package_name, exact amount match, Trial.
    """
    package = get_package(voucher.package_id)
    if package is None and voucher.package_name:
        package = get_package_by_name(voucher.package_name)
    if package is None:
        package = find_package_for_amount(voucher.value)
    if package is None:
        package = get_package(TRIAL_PACKAGE_ID)
    return package


class VoucherService(BaseService):
    """Voucher lifecycle operations."""

    def __init__(self, session: AsyncSession, clock: Clock | None = None) -> None:
        """Initialize voucher service."""
        super().__init__(session, clock)
        self.voucher_repo = VoucherRepository(session)
        self.balance_handler = BalanceHandler(session)
        self.stake_creator = StakeCreator(session)

    def generate_voucher_code(self) -> str:
        """Generate a random code (uniqueness is checked on issue)."""
        return generate_voucher_code()

    async def _generate_unique_codes(self, count: int) -> list[str]:
        max_attempts = count * VOUCHER_CODE_ATTEMPTS_PER_CODE
        codes: list[str] = []
        attempts = 0

        while len(codes) < count:
            if attempts >= max_attempts:
                raise StakingError(
                    f"Could not generate {count} unique voucher codes "
                    f"after {max_attempts} attempts"
                )
            needed = count - len(codes)
            candidates = {self.generate_voucher_code() for _ in range(needed)}
            attempts += needed
            candidates -= set(codes)
            taken = await self.voucher_repo.get_existing_codes(sorted(candidates))
            codes.extend(sorted(candidates - taken))

        return codes[:count]

    async def issue_vouchers(
        self,
        count: int,
        voucher_type: VoucherType,
        value: Decimal,
        user_id: str | None = None,
        package_id: int | None = None,
        roi_validity_days: int | None = None,
        affects_max_cap: bool = True,
        expires_at: datetime | None = None,
        title: str | None = None,
        description: str | None = None,
        currency: str = DEFAULT_VOUCHER_CURRENCY,
    ) -> list[Voucher]:
        """
        Create vouchers in the current transaction without committing.

        Args:
            count: Number of vouchers
            voucher_type: package or withdraw
            value: Nominal value
            user_id: Owner, None for claimable codes
            package_id: Package terms for package vouchers
            roi_validity_days: ROI window of the resulting position
            affects_max_cap: Whether position earnings count toward the cap
            expires_at: Redemption deadline
            title: Display title
            description: Display description
            currency: Currency code

        Returns:
            Created vouchers

        Raises:
            ValidationError: On non-positive count or value
        """
        if count <= 0:
            raise ValidationError("Voucher count must be positive")
        if value <= 0:
            raise ValidationError("Voucher value must be positive")

        package = get_package(package_id)
        codes = await self._generate_unique_codes(count)

        vouchers = await self.voucher_repo.add_all(
            [
                {
                    "code": code,
                    "user_id": user_id,
                    "type": voucher_type.value,
                    "status": VoucherStatus.ACTIVE.value,
                    "value": value,
                    "currency": currency,
                    "title": title,
                    "description": description,
                    "package_id": package.id if package else None,
                    "package_name": package.name if package else None,
                    "roi_validity_days": roi_validity_days,
                    "affects_max_cap": affects_max_cap,
                    "expires_at": expires_at,
                    "created_at": self.clock.now(),
                }
                for code in codes
            ]
        )

        self.logger.info(
            f"Issued {len(vouchers)} {voucher_type.value} vouchers",
            extra={"count": len(vouchers), "value": str(value), "user_id": user_id},
        )
        return vouchers

    @transaction
    async def create_vouchers(self, count: int, voucher_type: VoucherType, value: Decimal, **kwargs) -> list[Voucher]:
        """Create vouchers as one unit of work. See issue_vouchers."""
        return await self.issue_vouchers(count, voucher_type, value, **kwargs)

    @transaction
    async def redeem_by_code(self, user_id: str, code: str) -> Voucher:
        """
        Claim a voucher code.

        Package vouchers are assigned to the user and stay active until
        used for a stake. Withdraw vouchers are consumed immediately and
        their value is credited to the wallet.

        Args:
            user_id: Redeeming user
            code: Voucher code

        Returns:
            Redeemed voucher

        Raises:
            NotFoundError: Unknown code
            ValidationError: Code owned by someone else, used or expired
        """
        voucher = await self.voucher_repo.get_by_code(
            normalize_voucher_code(code), for_update=True
        )
        if voucher is None:
            raise NotFoundError("Voucher not found")

        if voucher.user_id is not None and voucher.user_id != user_id:
            raise ValidationError("Voucher already claimed by another user")

        if voucher.status != VoucherStatus.ACTIVE.value:
            raise ValidationError(f"Voucher is {voucher.status}")

        now = self.clock.now()
        if voucher.is_expired(now):
            raise ValidationError("Voucher has expired")

        if voucher.user_id is None:
            if not await self.voucher_repo.assign_owner(voucher.id, user_id):
                raise ValidationError("Voucher already claimed by another user")

        if voucher.type == VoucherType.WITHDRAW.value:
            if not await self.voucher_repo.mark_used(voucher.id, used_at=now):
                raise ValidationError("Voucher already used")
            await self.balance_handler.credit_voucher(
                user_id, voucher.value, voucher.id, voucher.code
            )

        await self.session.refresh(voucher)
        self.logger.info(
            f"Voucher {voucher.code} redeemed",
            extra={"voucher_id": voucher.id, "user_id": user_id, "type": voucher.type},
        )
        return voucher

    @transaction
    async def use_voucher_for_stake(self, user_id: str, voucher_id: int) -> StakingEntry:
        """
        Open a staking position from a package voucher.

        The entry stakes the voucher value with the terms of the voucher's
        package, and its ROI stops at roi_end_date regardless of the cap.

        Args:
            user_id: Voucher owner
            voucher_id: Voucher ID

        Returns:
            Created entry

        Raises:
            NotFoundError: Voucher missing or owned by someone else
            ValidationError: Wrong type, not active or expired
        """
        voucher = await self.voucher_repo.get_user_voucher(
            user_id, voucher_id, for_update=True
        )
        if voucher is None:
            raise NotFoundError("Voucher not found")

        if voucher.type != VoucherType.PACKAGE.value:
            raise ValidationError("This voucher cannot be used for staking")

        if voucher.status != VoucherStatus.ACTIVE.value:
            raise ValidationError(f"Voucher is {voucher.status}")

        now = self.clock.now()
        if voucher.is_expired(now):
            raise ValidationError("Voucher has expired")

        package = resolve_voucher_package(voucher)
        if package is None:
            raise ValidationError(f"No staking package for voucher value {voucher.value}")

        entry = await self.stake_creator.open_entry(
            user_id=user_id,
            amount=voucher.value,
            package=package,
            start_date=now,
            package_name=VOUCHER_POSITION_NAME,
            counts_toward_cap=voucher.affects_max_cap,
        )

        roi_days = voucher.roi_validity_days or DEFAULT_VOUCHER_ROI_DAYS
        roi_end_date = now + timedelta(days=roi_days)

        if not await self.voucher_repo.mark_used(
            voucher.id,
            used_at=now,
            roi_end_date=roi_end_date,
            applied_to_stake_id=entry.id,
        ):
            raise ValidationError("Voucher already used")

        await self.balance_handler.add_on_staking(user_id, voucher.value)
        await self.session.refresh(voucher)

        self.logger.info(
            f"Voucher {voucher.code} used for staking entry {entry.id}",
            extra={
                "voucher_id": voucher.id,
                "entry_id": entry.id,
                "package": package.name,
                "roi_end_date": roi_end_date.isoformat(),
            },
        )
        return entry

    @transaction
    async def expire_stale_vouchers(self) -> int:
        """Mark active vouchers past expires_at as expired. Returns count."""
        expired = await self.voucher_repo.expire_stale(self.clock.now())
        if expired:
            self.logger.info(f"Expired {expired} vouchers", extra={"count": expired})
        return expired

    async def list_user_vouchers(
        self, user_id: str, status: VoucherStatus | None = None
    ) -> list[Voucher]:
        """Get vouchers owned by user."""
        return await self.voucher_repo.get_user_vouchers(user_id, status)
