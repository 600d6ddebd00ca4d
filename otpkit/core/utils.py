"""
Shared constants and helpers: algorithms, defaults, base32 secrets.
"""

import base64
import binascii
import re
from enum import Enum
from typing import Optional, Union

from otpkit.core.errors import ErrorCode, OTPError


# ── Defaults ──────────────────────────────────────────────────────────────────

DEFAULT_DIGITS = 6
DEFAULT_SECRET_LENGTH = 10   # bytes, 16 base32 characters
DEFAULT_ALGORITHM = "SHA1"
DEFAULT_PERIOD = 30          # seconds
DEFAULT_LOOK_AHEAD = 10      # HOTP resync steps
DEFAULT_WINDOW = 1           # TOTP skew steps

TYPE_TOTP = "totp"
TYPE_HOTP = "hotp"
OTP_TYPES = (TYPE_TOTP, TYPE_HOTP)


# ── Algorithms ────────────────────────────────────────────────────────────────

class Algorithm(str, Enum):
    """Supported HMAC algorithms."""

    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"


_ALG_MAP: dict[str, str] = {
    "sha1": "sha1",
    "sha256": "sha256",
    "sha512": "sha512",
}


def hash_name(algorithm: Union[str, Algorithm]) -> Optional[str]:
    """
    Map an algorithm name (any case) to its :mod:`hashlib` name.

    Returns None for unsupported algorithms.
    """
    if isinstance(algorithm, Algorithm):
        algorithm = algorithm.value
    return _ALG_MAP.get(algorithm.lower())


def check_algorithm(algorithm: Union[str, Algorithm, None]) -> str:
    """
    Validate an algorithm name and return it as it should be stored.

    Empty values mean the default (SHA1). Other values keep the caller's case.

    Raises:
        OTPError: INVALID_ALGORITHM for anything but sha1/sha256/sha512.
    """
    if not algorithm:
        return DEFAULT_ALGORITHM
    if isinstance(algorithm, Algorithm):
        return algorithm.value
    if hash_name(algorithm) is None:
        raise OTPError(ErrorCode.INVALID_ALGORITHM, f"unknown algorithm: {algorithm}")
    return algorithm


# ── Base32 ────────────────────────────────────────────────────────────────────

def normalize_secret(secret: str) -> str:
    """
    Normalise a base32 secret: strip spaces, uppercase, add padding.

    Args:
        secret: Raw user-supplied secret string.

    Returns:
        Uppercase base32 string with correct padding.

    Raises:
        OTPError: BASE32_DECODE if the string contains invalid base32 characters.
    """
    secret = secret.strip().upper().replace(" ", "").replace("-", "")
    # Base32 alphabet: A-Z and 2-7
    if not re.fullmatch(r"[A-Z2-7]*=*", secret):
        raise OTPError(
            ErrorCode.BASE32_DECODE,
            "can't decode base32 key: invalid base32 characters",
        )
    # Pad to multiple of 8
    pad = (8 - len(secret) % 8) % 8
    return secret + "=" * pad


def decode_secret(secret: str) -> bytes:
    """
    Decode a base32-encoded secret string to raw bytes.

    Raises:
        OTPError: BASE32_DECODE on invalid base32 input.
    """
    normalized = normalize_secret(secret)
    try:
        return base64.b32decode(normalized)
    except (binascii.Error, ValueError) as exc:
        raise OTPError(ErrorCode.BASE32_DECODE, "can't decode base32 key", exc) from exc


def encode_secret(raw: bytes) -> str:
    """Encode raw bytes as standard padded, uppercase base32."""
    return base64.b32encode(raw).decode("ascii")


# ── Codes ─────────────────────────────────────────────────────────────────────

def format_code(code: int, digits: int) -> str:
    """Zero-pad a numeric code to ``digits`` characters."""
    return str(code).zfill(digits)
