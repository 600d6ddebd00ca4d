"""Tests for otpkit.uri.parser and URL serialization of keys."""

import pytest

from otpkit.core.errors import ContractError, ErrorCode, OTPError
from otpkit.core.hotp import HOTP
from otpkit.core.key import parse_key_url
from otpkit.core.totp import TOTP
from otpkit.uri.parser import KeyURL, build_otpauth_uri, parse_otpauth_uri


def _error_code(uri: str) -> ErrorCode:
    with pytest.raises(OTPError) as exc_info:
        parse_otpauth_uri(uri)
    return exc_info.value.code


# ── Valid URIs ────────────────────────────────────────────────────────────────

def test_parse_basic_totp() -> None:
    uri = "otpauth://totp/Example:alice@example.com?secret=JBSWY3DPEHPK3PXP&issuer=Example"
    result = parse_otpauth_uri(uri)
    assert isinstance(result, KeyURL)
    assert result.otp_type == "totp"
    assert result.label == "Example:alice@example.com"
    assert result.issuer == "Example"
    assert result.secret == b"Hello!\xde\xad\xbe\xef"
    assert result.algorithm == "SHA1"
    assert result.digits == 6
    assert result.params == {}


def test_parse_escaped_label() -> None:
    result = parse_otpauth_uri("otpauth://totp/Example%3Aalice%40example.com?secret=JBSWY3DPEHPK3PXP")
    assert result.label == "Example:alice@example.com"


def test_parse_empty_label_is_allowed() -> None:
    result = parse_otpauth_uri("otpauth://totp/?secret=JBSWY3DPEHPK3PXP")
    assert result.label == ""


def test_parse_totp_with_sha256() -> None:
    uri = (
        "otpauth://totp/Issuer:user?secret=JBSWY3DPEHPK3PXP"
        "&algorithm=sha256&digits=8&period=60"
    )
    result = parse_otpauth_uri(uri)
    assert result.algorithm == "sha256"
    assert result.digits == 8
    assert result.params == {"period": "60"}


def test_parse_parameter_names_are_case_insensitive() -> None:
    result = parse_otpauth_uri(
        "otpauth://hotp/x?SECRET=5STMOV5AVXA2IYVU&Digits=8&ISSUER=Acme&Counter=3"
    )
    assert result.digits == 8
    assert result.issuer == "Acme"
    assert result.params == {"Counter": "3"}


def test_parse_first_occurrence_wins() -> None:
    result = parse_otpauth_uri("otpauth://totp/x?secret=JBSWY3DPEHPK3PXP&digits=8&digits=7")
    assert result.digits == 8


def test_parse_unknown_parameters_pass_through() -> None:
    result = parse_otpauth_uri("otpauth://totp/x?secret=JBSWY3DPEHPK3PXP&image=logo.png&foo=")
    assert result.params == {"image": "logo.png", "foo": ""}


def test_parse_lenient_secret() -> None:
    result = parse_otpauth_uri("otpauth://totp/x?secret=jbswy3dpehpk3pxp")
    assert result.secret == b"Hello!\xde\xad\xbe\xef"


def test_parse_host_case_insensitive() -> None:
    assert parse_otpauth_uri("otpauth://TOTP/x?secret=JBSWY3DPEHPK3PXP").otp_type == "totp"


def test_parse_key_url_returns_core() -> None:
    core, otp_type, params = parse_key_url(
        "otpauth://hotp/myKey?counter=120&digits=8&secret=S4X6VOHUOGQD7ZNC"
    )
    assert otp_type == "hotp"
    assert core.label == "myKey"
    assert core.digits == 8
    assert core.export_secret() == "S4X6VOHUOGQD7ZNC"
    assert params == {"counter": "120"}


# ── Error cases ───────────────────────────────────────────────────────────────

def test_parse_wrong_scheme() -> None:
    with pytest.raises(OTPError, match="scheme"):
        parse_otpauth_uri("http://totp/acc?secret=ADS2OR6Q6K3OJZDW")
    assert _error_code("http://totp/acc?secret=ADS2OR6Q6K3OJZDW") is ErrorCode.WRONG_SCHEME


def test_parse_malformed_url() -> None:
    assert _error_code("otpauth://[totp/acc?secret=ADS2OR6Q6K3OJZDW") is ErrorCode.URL_PARSE


def test_parse_unknown_type() -> None:
    assert _error_code("otpauth://steam/acc?secret=JBSWY3DPEHPK3PXP") is ErrorCode.INVALID_OTP_TYPE


def test_parse_missing_secret() -> None:
    assert _error_code("otpauth://totp/acc") is ErrorCode.MISSING_SECRET
    assert _error_code("otpauth://totp/acc?digits=8") is ErrorCode.MISSING_SECRET


def test_parse_bad_secret() -> None:
    assert _error_code("otpauth://totp/acc?secret=A!BAD") is ErrorCode.BASE32_DECODE


def test_parse_invalid_algorithm() -> None:
    with pytest.raises(OTPError, match="algorithm"):
        parse_otpauth_uri("otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&algorithm=MD5")


@pytest.mark.parametrize("digits", ["six", "", "0", "-2"])
def test_parse_invalid_digits(digits: str) -> None:
    uri = f"otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&digits={digits}"
    assert _error_code(uri) is ErrorCode.INVALID_DIGITS


def test_parse_errors_are_value_errors() -> None:
    with pytest.raises(ValueError):
        parse_otpauth_uri("otpauth://totp/acc")


# ── Builder ───────────────────────────────────────────────────────────────────

def test_build_minimal_uri() -> None:
    uri = build_otpauth_uri("totp", "mydomain.com", b"Hello!\xde\xad\xbe\xef")
    assert uri == "otpauth://totp/mydomain.com?secret=JBSWY3DPEHPK3PXP"


def test_build_full_uri_sorted_query() -> None:
    uri = build_otpauth_uri(
        "hotp",
        "Example:alice@example.com",
        b"Hello!\xde\xad\xbe\xef",
        issuer="Example Co",
        algorithm="SHA256",
        digits=8,
        params={"counter": "4"},
    )
    assert uri == (
        "otpauth://hotp/Example:alice@example.com"
        "?algorithm=SHA256&counter=4&digits=8&issuer=Example+Co&secret=JBSWY3DPEHPK3PXP"
    )


def test_build_escapes_label() -> None:
    uri = build_otpauth_uri("totp", "john doe?#", b"")
    assert uri == "otpauth://totp/john%20doe%3F%23?secret="
    assert parse_otpauth_uri(uri).label == "john doe?#"


def test_build_omits_sha1_in_any_case() -> None:
    uri = build_otpauth_uri("totp", "x", b"abc", algorithm="sha1")
    assert "algorithm" not in uri


def test_build_unknown_type_is_a_contract_error() -> None:
    with pytest.raises(ContractError):
        build_otpauth_uri("steam", "x", b"abc")


def test_build_unknown_algorithm_is_a_contract_error() -> None:
    with pytest.raises(ContractError):
        build_otpauth_uri("totp", "x", b"abc", algorithm="md5")


# ── Key URLs ──────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "url",
    [
        "otpauth://hotp/myKey?counter=0&secret=5STMOV5AVXA2IYVU",
        "otpauth://hotp/mydomain.com?counter=1&secret=UYMIODYLDUSYMBVV",
        "otpauth://totp/mydomain.com?secret=UYMIODYLDUSYMBVV",
        "otpauth://totp/myKey?digits=8&period=60&secret=ADS2OR6Q6K3OJZDW",
        "otpauth://totp/ACME:bob?algorithm=SHA512&issuer=ACME&secret=ADS2OR6Q6K3OJZDW",
    ],
)
def test_canonical_urls_round_trip_exactly(url: str) -> None:
    cls = HOTP if url.startswith("otpauth://hotp") else TOTP
    key = cls.from_url(url)
    assert key.to_url() == url
    assert str(key) == url


def test_totp_url_omits_default_period_and_digits() -> None:
    key = TOTP.from_url("otpauth://totp/myKey?digits=6&period=30&secret=ADS2OR6Q6K3OJZDW")
    assert key.to_url() == "otpauth://totp/myKey?secret=ADS2OR6Q6K3OJZDW"


def test_hotp_url_always_has_counter() -> None:
    key = HOTP(b"Hello!\xde\xad\xbe\xef", "bob", counter=0)
    assert key.to_url() == "otpauth://hotp/bob?counter=0&secret=JBSWY3DPEHPK3PXP"


def test_algorithm_case_preserved_in_url() -> None:
    key = TOTP.from_url("otpauth://totp/x?secret=ADS2OR6Q6K3OJZDW&algorithm=sha256")
    assert "algorithm=sha256" in key.to_url()
