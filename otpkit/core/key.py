"""
Shared key core for HOTP (RFC 4226) and TOTP (RFC 6238).

Holds the fields common to both variants, the HMAC dynamic truncation and the
otpauth:// (de)serialization helpers the variants build on.
"""

import hmac
import logging
import secrets
import struct
from typing import Callable, Dict, Optional, Tuple

from otpkit.core.errors import ContractError, ErrorCode, OTPError
from otpkit.core.utils import (
    DEFAULT_DIGITS,
    DEFAULT_SECRET_LENGTH,
    check_algorithm,
    decode_secret,
    encode_secret,
    format_code,
    hash_name,
)
from otpkit.uri.parser import build_otpauth_uri, parse_otpauth_uri

logger = logging.getLogger(__name__)

RandomSource = Callable[[int], bytes]

_COUNTER_MASK = 0xFFFFFFFFFFFFFFFF


def random_secret(
    length: int = DEFAULT_SECRET_LENGTH,
    random_source: Optional[RandomSource] = None,
) -> bytes:
    """
    Return ``length`` cryptographically random bytes.

    Raises:
        OTPError: RANDOM_SOURCE if the source fails or comes up short.
    """
    source = random_source or secrets.token_bytes
    try:
        raw = source(length)
    except (OSError, NotImplementedError) as exc:
        raise OTPError(ErrorCode.RANDOM_SOURCE, "error reading random bytes", exc) from exc
    if raw is None or len(raw) < length:
        raise OTPError(ErrorCode.RANDOM_SOURCE, "couldn't read enough random bytes")
    return bytes(raw[:length])


class OTPKey:
    """
    Base class for OTP keys.

    Subclasses provide :meth:`code`, :meth:`to_url` and :meth:`type_name`.
    """

    def __init__(
        self,
        secret: bytes,
        label: str,
        issuer: str = "",
        algorithm: str = "",
        digits: int = DEFAULT_DIGITS,
    ) -> None:
        self.secret = secret
        self.label = label
        self.issuer = issuer or ""
        self.algorithm = check_algorithm(algorithm)
        self.digits = digits

    @staticmethod
    def _fresh_fields(
        label: str,
        issuer: str,
        algorithm: str,
        digits: int,
        secret_length: int,
        random_source: Optional[RandomSource],
    ) -> dict:
        """Validate constructor input, apply defaults and draw a new secret."""
        if not label:
            raise OTPError(ErrorCode.MISSING_LABEL, "must provide a label")
        algorithm = check_algorithm(algorithm)
        if digits <= 0:
            digits = DEFAULT_DIGITS
        if secret_length <= 0:
            secret_length = DEFAULT_SECRET_LENGTH
        return {
            "secret": random_secret(secret_length, random_source),
            "label": label,
            "issuer": issuer,
            "algorithm": algorithm,
            "digits": digits,
        }

    # ── Secret ───────────────────────────────────────────────────────────

    def export_secret(self) -> str:
        """Return the secret as padded, uppercase base32."""
        return encode_secret(self.secret)

    def import_secret(self, secret: str) -> None:
        """
        Replace the secret with a base32-encoded one.

        Raises:
            OTPError: BASE32_DECODE on malformed input; the key is left unchanged.
        """
        self.secret = decode_secret(secret)

    # ── Codes ────────────────────────────────────────────────────────────

    def hash_truncate(self, counter: int) -> bytes:
        """
        HMAC the 8-byte big-endian ``counter`` and apply dynamic truncation
        (RFC 4226 §5.3).

        Returns:
            The 4 extracted bytes, top bit of the first one cleared.
        """
        digest_name = hash_name(self.algorithm)
        if digest_name is None:
            raise ContractError(f"unsupported algorithm {self.algorithm!r} bypassed validation")

        # negative counters wrap like an unsigned 64-bit integer
        msg = struct.pack(">Q", counter & _COUNTER_MASK)
        digest = hmac.new(self.secret, msg, digest_name).digest()

        offset = digest[-1] & 0x0F
        truncated = bytearray(digest[offset : offset + 4])
        truncated[0] &= 0x7F
        return bytes(truncated)

    def _code_for(self, counter: int) -> int:
        value = struct.unpack(">I", self.hash_truncate(counter))[0]
        return value % (10**self.digits)

    def _matches(self, token, counter: int) -> bool:
        expected = format_code(self._code_for(counter), self.digits)
        return hmac.compare_digest(str(token).strip().zfill(self.digits), expected)

    def code(self) -> int:
        raise NotImplementedError

    # ── URL ──────────────────────────────────────────────────────────────

    def _url(self, otp_type: str, params: Optional[Dict[str, str]] = None) -> str:
        return build_otpauth_uri(
            otp_type,
            label=self.label,
            secret=self.secret,
            issuer=self.issuer,
            algorithm=self.algorithm,
            digits=self.digits,
            params=params,
        )

    def to_url(self) -> str:
        raise NotImplementedError

    def type_name(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.to_url()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(label={self.label!r}, issuer={self.issuer!r}, "
            f"algorithm={self.algorithm!r}, digits={self.digits})"
        )


def parse_key_url(url: str) -> Tuple[OTPKey, str, Dict[str, str]]:
    """
    Parse an otpauth:// URL into its shared key fields.

    Returns:
        ``(core, otp_type, params)`` where ``params`` holds the parameters the
        core did not consume, for the variant to interpret.
    """
    try:
        parsed = parse_otpauth_uri(url)
    except OTPError as exc:
        logger.debug("Rejected otpauth URL: %s", exc.code.value)
        raise
    core = OTPKey(
        secret=parsed.secret,
        label=parsed.label,
        issuer=parsed.issuer,
        algorithm=parsed.algorithm,
        digits=parsed.digits,
    )
    return core, parsed.otp_type, parsed.params
