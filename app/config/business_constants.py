"""
Business logic constants.

Central location for business rules shared by services, jobs and scripts.
"""

from decimal import Decimal

from app.config.settings import settings


# Team earnings: share of each downline member's daily earning paid to the
# sponsor at each depth (level 1 = direct sponsor)
TEAM_LEVEL_PERCENTS: tuple[Decimal, ...] = (
    Decimal("0.10"),
    Decimal("0.05"),
    Decimal("0.03"),
    Decimal("0.02"),
    Decimal("0.01"),
    Decimal("0.01"),
)
MAX_TEAM_DEPTH = len(TEAM_LEVEL_PERCENTS)

# Direct sponsor bonus on a new stake
DIRECT_BONUS_RATE = Decimal(str(settings.direct_bonus_rate))

# Cooldown between unstake request and principal release
UNSTAKE_COOLDOWN_DAYS = settings.unstake_cooldown_days

# Name of entries created from package vouchers
VOUCHER_POSITION_NAME = "Voucher Position"

# Voucher codes: V-XXXX-XXXX without ambiguous characters (no I, O, 0, 1)
VOUCHER_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
VOUCHER_CODE_PREFIX = "V"
VOUCHER_CODE_GROUPS = 2
VOUCHER_CODE_GROUP_LENGTH = 4
VOUCHER_CODE_ATTEMPTS_PER_CODE = 10
DEFAULT_VOUCHER_CURRENCY = "USDT"

# Fallback ROI window for package vouchers without roi_validity_days
DEFAULT_VOUCHER_ROI_DAYS = 14

# Leaderboard
LEADERBOARD_DEFAULT_LIMIT = 50
LEADERBOARD_MIN_LIMIT = 5
LEADERBOARD_MAX_LIMIT = 100
LEADERBOARD_MIN_STAKE = Decimal("100")
LEADERBOARD_MIN_PACKAGE_ID = 1
