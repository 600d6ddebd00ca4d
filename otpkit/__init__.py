"""
otpkit – HOTP / TOTP keys and otpauth:// provisioning URLs.

Usage::

    from otpkit import import_key

    key = import_key("otpauth://totp/alice?secret=JBSWY3DPEHPK3PXP")
    key.code()
"""

import logging

from otpkit.core.errors import ContractError, ErrorCode, OTPError
from otpkit.core.hotp import HOTP
from otpkit.core.key import OTPKey, parse_key_url
from otpkit.core.totp import TOTP
from otpkit.core.utils import (
    DEFAULT_ALGORITHM,
    DEFAULT_DIGITS,
    DEFAULT_PERIOD,
    DEFAULT_SECRET_LENGTH,
    TYPE_HOTP,
    TYPE_TOTP,
    Algorithm,
)
from otpkit.factory import import_key, new_key, new_key_with_defaults

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Algorithm",
    "ContractError",
    "DEFAULT_ALGORITHM",
    "DEFAULT_DIGITS",
    "DEFAULT_PERIOD",
    "DEFAULT_SECRET_LENGTH",
    "ErrorCode",
    "HOTP",
    "OTPError",
    "OTPKey",
    "TOTP",
    "TYPE_HOTP",
    "TYPE_TOTP",
    "import_key",
    "new_key",
    "new_key_with_defaults",
    "parse_key_url",
]
