"""
Voucher services.
"""

from .code_generator import generate_voucher_code, is_valid_voucher_code
from .voucher_service import VoucherService, resolve_voucher_package

__all__ = [
    "VoucherService",
    "generate_voucher_code",
    "is_valid_voucher_code",
    "resolve_voucher_package",
]
