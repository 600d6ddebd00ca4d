"""
Error types raised by otpkit.

Every user-facing failure is an :class:`OTPError` carrying an
:class:`ErrorCode`, a description and the underlying cause (if any).
Broken internal invariants raise :class:`ContractError` instead.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Symbolic error kinds."""

    # Construction
    MISSING_LABEL = "missing_label"
    INVALID_ALGORITHM = "invalid_algorithm"
    RANDOM_SOURCE = "random_source"

    # Parsing
    URL_PARSE = "url_parse"
    WRONG_SCHEME = "wrong_scheme"
    INVALID_OTP_TYPE = "invalid_otp_type"
    BASE32_DECODE = "base32_decode"
    INVALID_DIGITS = "invalid_digits"
    MISSING_SECRET = "missing_secret"

    # HOTP
    NOT_HOTP = "not_hotp"
    MISSING_COUNTER = "missing_counter"
    INVALID_COUNTER = "invalid_counter"

    # TOTP
    NOT_TOTP = "not_totp"
    INVALID_PERIOD = "invalid_period"


class OTPError(ValueError):
    """A key could not be created, imported or updated."""

    def __init__(
        self,
        code: ErrorCode,
        desc: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(desc)
        self.code = code
        self.desc = desc
        self.cause = cause

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.desc}: {self.cause}"
        return self.desc

    def __repr__(self) -> str:
        return f"OTPError({self.code.name}, {self.desc!r})"


class ContractError(RuntimeError):
    """An internal invariant was broken (programming error, not bad input)."""
