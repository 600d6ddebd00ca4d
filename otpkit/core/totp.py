"""
TOTP (Time-based One-Time Password) keys following RFC 6238.

Produces codes identical to Google Authenticator.
"""

import logging
import time
from datetime import datetime
from typing import Callable, Dict, Optional, Union

from otpkit.core.errors import ErrorCode, OTPError
from otpkit.core.key import OTPKey, RandomSource, parse_key_url
from otpkit.core.utils import DEFAULT_DIGITS, DEFAULT_PERIOD, DEFAULT_WINDOW, TYPE_TOTP
from otpkit.uri.parser import lookup_param

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Instant = Union[int, float, datetime]


def parse_period(raw: Optional[str]) -> int:
    """
    Parse the ``period`` parameter of a TOTP URL (absent means 30).

    Raises:
        OTPError: INVALID_PERIOD when not a positive integer.
    """
    if raw is None or raw == "":
        return DEFAULT_PERIOD
    try:
        period = int(raw)
    except ValueError as exc:
        raise OTPError(ErrorCode.INVALID_PERIOD, f"invalid period: {raw}", exc) from exc
    if period < 1:
        raise OTPError(ErrorCode.INVALID_PERIOD, f"invalid period: {raw}")
    return period


def _unix_seconds(instant: Instant) -> float:
    if isinstance(instant, datetime):
        return instant.timestamp()
    return instant


class TOTP(OTPKey):
    """
    A time-based key.

    ``clock`` returns the current Unix time in seconds and defaults to
    :func:`time.time`; pass a fixed callable for deterministic codes.
    """

    def __init__(
        self,
        secret: bytes,
        label: str,
        issuer: str = "",
        algorithm: str = "",
        digits: int = DEFAULT_DIGITS,
        period: int = DEFAULT_PERIOD,
        clock: Optional[Clock] = None,
    ) -> None:
        super().__init__(secret, label, issuer, algorithm, digits)
        self.period = period
        self.clock = clock or time.time

    @classmethod
    def new(
        cls,
        label: str,
        issuer: str = "",
        algorithm: str = "",
        digits: int = 0,
        period: int = 0,
        secret_length: int = 0,
        random_source: Optional[RandomSource] = None,
        clock: Optional[Clock] = None,
    ) -> "TOTP":
        """
        Create a key with a fresh random secret.

        ``digits``, ``period`` and ``secret_length`` fall back to 6, 30 and 10
        when <= 0.

        Raises:
            OTPError: MISSING_LABEL, INVALID_ALGORITHM or RANDOM_SOURCE.
        """
        fields = cls._fresh_fields(label, issuer, algorithm, digits, secret_length, random_source)
        if period <= 0:
            period = DEFAULT_PERIOD
        logger.debug("Created totp key for label %r", label)
        return cls(period=period, clock=clock, **fields)

    @classmethod
    def new_with_defaults(cls, label: str, issuer: str = "") -> "TOTP":
        return cls.new(label, issuer)

    @classmethod
    def _from_core(
        cls,
        core: OTPKey,
        params: Dict[str, str],
        clock: Optional[Clock] = None,
    ) -> "TOTP":
        period = parse_period(lookup_param(params, "period"))
        return cls(
            secret=core.secret,
            label=core.label,
            issuer=core.issuer,
            algorithm=core.algorithm,
            digits=core.digits,
            period=period,
            clock=clock,
        )

    @classmethod
    def from_url(cls, url: str, clock: Optional[Clock] = None) -> "TOTP":
        """
        Import an ``otpauth://totp/...`` URL.

        Raises:
            OTPError: NOT_TOTP for an HOTP URL, or any URL parsing error.
        """
        core, otp_type, params = parse_key_url(url)
        if otp_type != TYPE_TOTP:
            raise OTPError(ErrorCode.NOT_TOTP, "not a totp key")
        return cls._from_core(core, params, clock)

    # ── Codes ────────────────────────────────────────────────────────────

    def period_index(self, instant: Instant) -> int:
        """Time step containing ``instant``: ``floor(unix_seconds / period)``."""
        return int(_unix_seconds(instant) // self.period)

    def code_for_period(self, period_index: int) -> int:
        """Code for a raw time step index (not a wall-clock time)."""
        return self._code_for(period_index)

    def code_for_instant(self, instant: Instant) -> int:
        """Code for a Unix timestamp or :class:`datetime`."""
        return self.code_for_period(self.period_index(instant))

    def code(self) -> int:
        """Code for the current time according to ``clock``."""
        return self.code_for_instant(self.clock())

    def remaining_seconds(self, timestamp: Optional[Instant] = None) -> int:
        """Return seconds until the current TOTP window expires."""
        t = _unix_seconds(timestamp) if timestamp is not None else self.clock()
        return self.period - (int(t) % self.period)

    def verify(
        self,
        token: Union[str, int],
        window: int = DEFAULT_WINDOW,
        timestamp: Optional[Instant] = None,
    ) -> bool:
        """
        Validate a token within ±``window`` time steps.

        Args:
            token:     Token to validate.
            window:    Allowed skew in steps (default 1).
            timestamp: Override the clock.

        Returns:
            True if the token is valid within the window.
        """
        t = timestamp if timestamp is not None else self.clock()
        current = self.period_index(t)
        for step in range(-window, window + 1):
            if self._matches(token, current + step):
                return True
        return False

    # ── URL ──────────────────────────────────────────────────────────────

    def to_url(self) -> str:
        params = {}
        if self.period != DEFAULT_PERIOD:
            params["period"] = str(self.period)
        return self._url(TYPE_TOTP, params)

    def type_name(self) -> str:
        return TYPE_TOTP

    def __repr__(self) -> str:
        return f"{super().__repr__()[:-1]}, period={self.period})"
