"""
Type-dispatching construction and import of OTP keys.
"""

import logging
from typing import Dict, Optional

from otpkit.core.errors import ErrorCode, OTPError
from otpkit.core.hotp import HOTP, parse_counter
from otpkit.core.key import OTPKey, parse_key_url
from otpkit.core.totp import TOTP, Clock
from otpkit.core.utils import TYPE_HOTP, TYPE_TOTP
from otpkit.uri.parser import lookup_param

logger = logging.getLogger(__name__)


def new_key(
    key_type: str,
    label: str,
    issuer: str = "",
    algorithm: str = "",
    digits: int = 0,
    extra_params: Optional[Dict[str, str]] = None,
    secret_length: int = 0,
) -> OTPKey:
    """
    Create a new key of type ``key_type`` ("totp" or "hotp").

    Variant settings come from ``extra_params``: ``period`` (optional) for
    TOTP, ``counter`` (required) for HOTP.

    Raises:
        OTPError: INVALID_OTP_TYPE, MISSING_COUNTER, INVALID_COUNTER,
            INVALID_PERIOD or any construction error.
    """
    params = extra_params or {}
    if key_type == TYPE_TOTP:
        raw = lookup_param(params, "period")
        period = 0
        if raw:
            try:
                period = int(raw)
            except ValueError as exc:
                raise OTPError(ErrorCode.INVALID_PERIOD, f"invalid period: {raw}", exc) from exc
        # TOTP.new maps non-positive periods to the default
        return TOTP.new(label, issuer, algorithm, digits, period, secret_length)
    if key_type == TYPE_HOTP:
        counter = parse_counter(lookup_param(params, "counter"))
        return HOTP.new(label, issuer, algorithm, digits, counter, secret_length)
    raise OTPError(ErrorCode.INVALID_OTP_TYPE, f"invalid OTP authentication type: {key_type}")


def new_key_with_defaults(
    key_type: str,
    label: str,
    issuer: str = "",
    extra_params: Optional[Dict[str, str]] = None,
) -> OTPKey:
    """Call :func:`new_key` with default algorithm, digits and secret length."""
    return new_key(key_type, label, issuer, extra_params=extra_params)


def import_key(url: str, clock: Optional[Clock] = None) -> OTPKey:
    """
    Import a key from an otpauth:// URL, returning a :class:`TOTP` or :class:`HOTP`.

    Args:
        url:   Provisioning URL.
        clock: Time source for TOTP keys (ignored for HOTP).
    """
    core, otp_type, params = parse_key_url(url)
    logger.debug("Importing %s key for label %r", otp_type, core.label)
    if otp_type == TYPE_TOTP:
        return TOTP._from_core(core, params, clock)
    if otp_type == TYPE_HOTP:
        return HOTP._from_core(core, params)
    raise OTPError(ErrorCode.INVALID_OTP_TYPE, f"invalid OTP authentication type: {otp_type}")
