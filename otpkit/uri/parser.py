"""
Parse and build otpauth:// URIs as defined by the Google Authenticator Key URI Format.

Reference: https://github.com/google/google-authenticator/wiki/Key-Uri-Format
"""

import logging
import urllib.parse
from dataclasses import dataclass, field
from typing import Dict, Optional

from otpkit.core.errors import ContractError, ErrorCode, OTPError
from otpkit.core.utils import (
    DEFAULT_ALGORITHM,
    DEFAULT_DIGITS,
    OTP_TYPES,
    check_algorithm,
    decode_secret,
    encode_secret,
    hash_name,
)

logger = logging.getLogger(__name__)

SCHEME = "otpauth"

# Characters Go-style URL path escaping leaves alone, besides unreserved ones.
_PATH_SAFE = "/:@$&+,;="


@dataclass
class KeyURL:
    """Parsed representation of an otpauth:// URI."""

    otp_type: str       # "totp" or "hotp"
    label: str          # path without its leading slash, may be empty
    secret: bytes       # decoded secret
    issuer: str = ""
    algorithm: str = DEFAULT_ALGORITHM
    digits: int = DEFAULT_DIGITS
    params: Dict[str, str] = field(default_factory=dict)  # variant parameters


def parse_otpauth_uri(uri: str) -> KeyURL:
    """
    Parse and validate an ``otpauth://`` URI.

    Parameter names are matched case-insensitively and the first occurrence of
    a name wins. Unknown parameters end up in :attr:`KeyURL.params`.

    Args:
        uri: Full otpauth URI string.

    Returns:
        Populated :class:`KeyURL`.

    Raises:
        OTPError: If the URI is malformed or contains invalid values.
    """
    try:
        parsed = urllib.parse.urlparse(uri)
        query = urllib.parse.parse_qsl(parsed.query, keep_blank_values=True)
    except (TypeError, ValueError, AttributeError) as exc:
        raise OTPError(ErrorCode.URL_PARSE, "can't parse url", exc) from exc

    if parsed.scheme.lower() != SCHEME:
        raise OTPError(ErrorCode.WRONG_SCHEME, f"bad scheme: {parsed.scheme}")

    otp_type = parsed.netloc.lower()
    if otp_type not in OTP_TYPES:
        raise OTPError(
            ErrorCode.INVALID_OTP_TYPE,
            f"invalid OTP authentication type: {parsed.netloc}",
        )

    path = urllib.parse.unquote(parsed.path)
    label = path[1:] if path.startswith("/") else path

    secret: Optional[bytes] = None
    issuer = ""
    algorithm = DEFAULT_ALGORITHM
    digits = DEFAULT_DIGITS
    params: Dict[str, str] = {}
    seen = set()

    for name, value in query:
        key = name.lower()
        if key in seen:
            continue
        seen.add(key)

        if key == "secret":
            secret = decode_secret(value)
        elif key == "digits":
            try:
                digits = int(value)
            except ValueError as exc:
                raise OTPError(ErrorCode.INVALID_DIGITS, f"invalid digits: {value}", exc) from exc
            if digits < 1:
                raise OTPError(ErrorCode.INVALID_DIGITS, f"invalid digits: {value}")
        elif key == "algorithm":
            algorithm = check_algorithm(value)
        elif key == "issuer":
            issuer = value
        else:
            params[name] = value

    if secret is None:
        raise OTPError(ErrorCode.MISSING_SECRET, "the secret parameter is required")

    return KeyURL(
        otp_type=otp_type,
        label=label,
        secret=secret,
        issuer=issuer,
        algorithm=algorithm,
        digits=digits,
        params=params,
    )


def lookup_param(params: Dict[str, str], name: str) -> Optional[str]:
    """Case-insensitive lookup of a variant parameter."""
    for key, value in params.items():
        if key.lower() == name:
            return value
    return None


def build_otpauth_uri(
    otp_type: str,
    label: str,
    secret: bytes,
    issuer: str = "",
    algorithm: str = DEFAULT_ALGORITHM,
    digits: int = DEFAULT_DIGITS,
    params: Optional[Dict[str, str]] = None,
) -> str:
    """
    Build an otpauth:// URI.

    ``digits`` is left out when it equals the default, ``algorithm`` when it is
    SHA1 and ``issuer`` when empty. Query keys are written in sorted order.

    Raises:
        ContractError: On an unknown ``otp_type`` or an unsupported algorithm.
    """
    if otp_type not in OTP_TYPES:
        raise ContractError(f"bad otp type {otp_type!r}: only totp and hotp allowed")

    query: Dict[str, str] = dict(params or {})
    query["secret"] = encode_secret(secret)
    if digits != DEFAULT_DIGITS:
        query["digits"] = str(digits)

    digest = hash_name(algorithm or DEFAULT_ALGORITHM)
    if digest is None:
        raise ContractError(f"unsupported algorithm {algorithm!r} bypassed validation")
    if digest != "sha1":
        query["algorithm"] = algorithm

    if issuer:
        query["issuer"] = issuer

    encoded = urllib.parse.urlencode(sorted(query.items()))
    path = urllib.parse.quote(label, safe=_PATH_SAFE)
    logger.debug("Built %s URL for label %r", otp_type, label)
    return f"{SCHEME}://{otp_type}/{path}?{encoded}"
