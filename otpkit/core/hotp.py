"""
HOTP (HMAC-based One-Time Password) keys following RFC 4226.
"""

import logging
from typing import Dict, Optional, Union

from otpkit.core.errors import ErrorCode, OTPError
from otpkit.core.key import OTPKey, RandomSource, parse_key_url
from otpkit.core.utils import DEFAULT_DIGITS, DEFAULT_LOOK_AHEAD, TYPE_HOTP
from otpkit.uri.parser import lookup_param

logger = logging.getLogger(__name__)


def parse_counter(raw: Optional[str]) -> int:
    """
    Parse the ``counter`` parameter of an HOTP URL.

    Raises:
        OTPError: MISSING_COUNTER when absent, INVALID_COUNTER when not an integer.
    """
    if raw is None or raw == "":
        raise OTPError(ErrorCode.MISSING_COUNTER, "counter parameter is missing")
    try:
        return int(raw)
    except ValueError as exc:
        raise OTPError(ErrorCode.INVALID_COUNTER, f"invalid counter: {raw}", exc) from exc


class HOTP(OTPKey):
    """A counter-based key. ``counter`` is advanced by the caller."""

    def __init__(
        self,
        secret: bytes,
        label: str,
        issuer: str = "",
        algorithm: str = "",
        digits: int = DEFAULT_DIGITS,
        counter: int = 0,
    ) -> None:
        super().__init__(secret, label, issuer, algorithm, digits)
        self.counter = counter

    @classmethod
    def new(
        cls,
        label: str,
        issuer: str = "",
        algorithm: str = "",
        digits: int = 0,
        counter: int = 0,
        secret_length: int = 0,
        random_source: Optional[RandomSource] = None,
    ) -> "HOTP":
        """
        Create a key with a fresh random secret.

        Args:
            label:         Account label, required.
            issuer:        Optional issuer.
            algorithm:     sha1 / sha256 / sha512, empty for sha1.
            digits:        Code length, <= 0 for 6.
            counter:       Initial counter, stored as given.
            secret_length: Secret size in bytes, <= 0 for 10.
            random_source: Callable returning n random bytes.

        Raises:
            OTPError: MISSING_LABEL, INVALID_ALGORITHM or RANDOM_SOURCE.
        """
        fields = cls._fresh_fields(label, issuer, algorithm, digits, secret_length, random_source)
        logger.debug("Created hotp key for label %r", label)
        return cls(counter=counter, **fields)

    @classmethod
    def new_with_defaults(cls, label: str, issuer: str = "") -> "HOTP":
        return cls.new(label, issuer)

    @classmethod
    def _from_core(cls, core: OTPKey, params: Dict[str, str]) -> "HOTP":
        counter = parse_counter(lookup_param(params, "counter"))
        return cls(
            secret=core.secret,
            label=core.label,
            issuer=core.issuer,
            algorithm=core.algorithm,
            digits=core.digits,
            counter=counter,
        )

    @classmethod
    def from_url(cls, url: str) -> "HOTP":
        """
        Import an ``otpauth://hotp/...`` URL.

        Raises:
            OTPError: NOT_HOTP for a TOTP URL, or any URL parsing error.
        """
        core, otp_type, params = parse_key_url(url)
        if otp_type != TYPE_HOTP:
            raise OTPError(ErrorCode.NOT_HOTP, "not a hotp key")
        return cls._from_core(core, params)

    # ── Codes ────────────────────────────────────────────────────────────

    def code(self) -> int:
        """Code for the current counter."""
        return self._code_for(self.counter)

    def code_at(self, n: int) -> int:
        """Code for ``counter + n``; the counter is not changed."""
        return self._code_for(self.counter + n)

    def code_for_counter(self, counter: int) -> int:
        return self._code_for(counter)

    def verify(
        self,
        token: Union[str, int],
        look_ahead: int = DEFAULT_LOOK_AHEAD,
    ) -> Optional[int]:
        """
        Validate a token against the current counter and ``look_ahead`` after it.

        Returns:
            The counter value to continue from (matched counter + 1), or None
            if the token is invalid. The stored counter is not changed.
        """
        for i in range(look_ahead + 1):
            if self._matches(token, self.counter + i):
                return self.counter + i + 1
        return None

    # ── URL ──────────────────────────────────────────────────────────────

    def to_url(self) -> str:
        return self._url(TYPE_HOTP, {"counter": str(self.counter)})

    def type_name(self) -> str:
        return TYPE_HOTP

    def __repr__(self) -> str:
        return f"{super().__repr__()[:-1]}, counter={self.counter})"
