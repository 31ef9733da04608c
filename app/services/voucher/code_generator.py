"""
Voucher code generation.

Codes look like V-7KQ2-M9XD and use an alphabet without the easily
confused characters I, O, 0 and 1.
"""

import re
import secrets

from app.config.business_constants import (
    VOUCHER_CODE_ALPHABET,
    VOUCHER_CODE_GROUP_LENGTH,
    VOUCHER_CODE_GROUPS,
    VOUCHER_CODE_PREFIX,
)

VOUCHER_CODE_PATTERN = re.compile(
    rf"^{VOUCHER_CODE_PREFIX}"
    rf"(-[{VOUCHER_CODE_ALPHABET}]{{{VOUCHER_CODE_GROUP_LENGTH}}}){{{VOUCHER_CODE_GROUPS}}}$"
)


def generate_voucher_code() -> str:
    """Generate a random voucher code."""
    groups = [
        "".join(secrets.choice(VOUCHER_CODE_ALPHABET) for _ in range(VOUCHER_CODE_GROUP_LENGTH))
        for _ in range(VOUCHER_CODE_GROUPS)
    ]
    return "-".join([VOUCHER_CODE_PREFIX, *groups])


def normalize_voucher_code(code: str) -> str:
    """Uppercase and strip user input."""
    return code.strip().upper()


def is_valid_voucher_code(code: str) -> bool:
    """Check code format."""
    return bool(VOUCHER_CODE_PATTERN.match(code))
