import pyotp
import pytest

from otpcore import otp_core
from otpcore.base32 import base32_decode
from otpcore.otp_core import (
    dynamic_truncate,
    format_otpauth_uri,
    generate_random_secret,
    generate_totp,
    get_remaining_time,
    hotp,
    hotp_from_key,
    int_to_bytes,
    time_counter,
    verify_totp,
)

# RFC 4226 Appendix D
RFC4226_CODES = [
    "755224", "287082", "359152", "969429", "338314",
    "254676", "287922", "162583", "399871", "520489",
]

# RFC 6238 Appendix B, SHA-1 column (8 digits)
RFC6238_SHA1 = [
    (59, "94287082"),
    (1111111109, "07081804"),
    (1111111111, "14050471"),
    (1234567890, "89005924"),
    (2000000000, "69279037"),
    (20000000000, "65353130"),
]


# --- HOTP ------------------------------------------------------------------
@pytest.mark.parametrize("counter, expected", list(enumerate(RFC4226_CODES)))
def test_hotp_rfc4226_vectors(rfc_secret, counter, expected):
    assert hotp(rfc_secret, counter) == expected


def test_hotp_from_key_matches_base32_form(rfc_secret):
    assert hotp_from_key(b"12345678901234567890", 3) == hotp(rfc_secret, 3)


def test_hotp_is_deterministic(rfc_secret):
    assert {hotp(rfc_secret, 42, 8) for _ in range(5)} == {hotp(rfc_secret, 42, 8)}


def test_hotp_matches_pyotp():
    secret = pyotp.random_base32()
    reference = pyotp.HOTP(secret)
    for counter in (0, 1, 7, 1000, 2 ** 32 + 5):
        assert hotp(secret, counter) == reference.at(counter)


def test_hotp_accepts_empty_key():
    code = hotp_from_key(b"", 0)
    assert len(code) == 6 and code.isdigit()
    assert hotp("", 0) == code


def test_int_to_bytes_is_8_byte_big_endian():
    assert int_to_bytes(1) == b"\x00" * 7 + b"\x01"
    assert int_to_bytes(2 ** 64 - 1) == b"\xff" * 8


def test_dynamic_truncate_rfc4226_example():
    # Section 5.4 of RFC 4226
    digest = bytes.fromhex("1f8698690e02ca16618550ef7f19da8e945b555a")
    assert dynamic_truncate(digest) == 0x50EF7F19


def test_digits_above_nine_are_zero_padded(rfc_secret):
    nine = hotp(rfc_secret, 0, 9)
    ten = hotp(rfc_secret, 0, 10)
    twelve = hotp(rfc_secret, 0, 12)
    assert len(ten) == 10 and len(twelve) == 12
    assert int(ten) % 10 ** 9 == int(nine)
    assert twelve.startswith("00")


def test_non_positive_digits_rejected(rfc_secret):
    with pytest.raises(ValueError):
        hotp(rfc_secret, 0, 0)


# --- TOTP ------------------------------------------------------------------
@pytest.mark.parametrize("timestamp, expected", RFC6238_SHA1)
def test_totp_rfc6238_sha1_vectors(rfc_secret, timestamp, expected):
    assert generate_totp(rfc_secret, 30, 8, timestamp * 1000) == expected


@pytest.mark.parametrize("timestamp, expected", RFC6238_SHA1)
def test_totp_rfc6238_six_digits(rfc_secret, timestamp, expected):
    assert generate_totp(rfc_secret, 30, 6, timestamp * 1000) == expected[-6:]


def test_totp_matches_pyotp():
    secret = pyotp.random_base32()
    reference = pyotp.TOTP(secret)
    for timestamp in (0, 59, 1700000000, 1700000029, 1700000030):
        assert generate_totp(secret, at_time_millis=timestamp * 1000) == reference.at(timestamp)


def test_totp_same_within_one_step(rfc_secret):
    start = 1700000010 * 1000  # 1700000010 is a multiple of 30
    codes = {generate_totp(rfc_secret, 30, 6, start + ms) for ms in (0, 1, 15000, 29999)}
    assert len(codes) == 1


def test_totp_boundary_belongs_to_new_step(rfc_secret):
    assert generate_totp(rfc_secret, 30, 6, 29999) == hotp(rfc_secret, 0)
    assert generate_totp(rfc_secret, 30, 6, 30000) == hotp(rfc_secret, 1)


def test_totp_custom_time_step(rfc_secret):
    assert generate_totp(rfc_secret, 60, 6, 119999) == hotp(rfc_secret, 1)
    assert generate_totp(rfc_secret, 60, 6, 120000) == hotp(rfc_secret, 2)


def test_totp_defaults_to_wall_clock(rfc_secret, monkeypatch):
    monkeypatch.setattr(otp_core.time, "time", lambda: 59.5)
    assert generate_totp(rfc_secret, 30, 8) == "94287082"


def test_time_counter_rejects_non_positive_step():
    with pytest.raises(ValueError):
        time_counter(1000, 0)


def test_remaining_time_range():
    for now in range(0, 3 * 30):
        assert 1 <= get_remaining_time(30, now=now) <= 30


@pytest.mark.parametrize("now, expected", [(0, 30), (1, 29), (29, 1), (29.9, 1), (30, 30), (61, 29)])
def test_remaining_time_values(now, expected):
    assert get_remaining_time(30, now=now) == expected


def test_remaining_time_wall_clock(monkeypatch):
    monkeypatch.setattr(otp_core.time, "time", lambda: 1700000005.7)
    assert get_remaining_time(30) == 5


# --- verification ----------------------------------------------------------
def test_verify_current_code(rfc_secret):
    assert verify_totp(rfc_secret, "94287082", 30, 8, window=0, now=59)


def test_verify_accepts_one_step_of_drift(rfc_secret):
    # "94287082" belongs to counter 1 (t in [30, 60))
    assert verify_totp(rfc_secret, "94287082", 30, 8, window=1, now=89)
    assert verify_totp(rfc_secret, "94287082", 30, 8, window=1, now=5)


def test_verify_rejects_outside_window(rfc_secret):
    assert not verify_totp(rfc_secret, "94287082", 30, 8, window=1, now=120)
    assert not verify_totp(rfc_secret, "94287082", 30, 8, window=0, now=60)


def test_verify_token_must_match_exactly(rfc_secret):
    assert not verify_totp(rfc_secret, " 94287082 ", 30, 8, window=0, now=59)
    assert not verify_totp(rfc_secret, "94287082\n", 30, 8, window=0, now=59)
    assert not verify_totp(rfc_secret, 94287082, 30, 8, window=0, now=59)


def test_verify_wider_window(rfc_secret):
    assert verify_totp(rfc_secret, "94287082", 30, 8, window=2, now=119)


def test_verify_generated_code_wall_clock(monkeypatch):
    secret = generate_random_secret()
    monkeypatch.setattr(otp_core.time, "time", lambda: 1700000000.0)
    code = generate_totp(secret, at_time_millis=(1700000000 - 30) * 1000)
    assert verify_totp(secret, code)


def test_verify_wrong_code(rfc_secret):
    assert not verify_totp(rfc_secret, "00000000", 30, 8, now=59)
    assert not verify_totp(rfc_secret, "", 30, 8, now=59)


def test_verify_skips_negative_counters(rfc_secret):
    assert verify_totp(rfc_secret, hotp(rfc_secret, 0), now=10, window=1)


def test_verify_never_raises(rfc_secret):
    assert verify_totp(None, "123456") is False
    assert verify_totp(rfc_secret, "123456", time_step=0) is False
    assert verify_totp(rfc_secret, "123456", digits=0) is False
    assert verify_totp(rfc_secret, "１２３４５６", now=59) is False


# --- helpers ---------------------------------------------------------------
def test_random_secret_is_base32_of_requested_size():
    secret = generate_random_secret(20)
    assert len(base32_decode(secret)) == 20
    assert set(secret) <= set("ABCDEFGHIJKLMNOPQRSTUVWXYZ234567")
    assert generate_random_secret() != generate_random_secret()


def test_random_secret_rejects_bad_length():
    with pytest.raises(ValueError):
        generate_random_secret(0)


def test_format_otpauth_uri_round_trips_through_pyotp():
    uri = format_otpauth_uri("JBSWY3DPEHPK3PXP", "alice@example.com", "Example Corp")
    assert uri == (
        "otpauth://totp/Example%20Corp:alice@example.com"
        "?secret=JBSWY3DPEHPK3PXP&issuer=Example%20Corp"
    )
    parsed = pyotp.parse_uri(uri)
    assert parsed.secret == "JBSWY3DPEHPK3PXP"
    assert parsed.issuer == "Example Corp"
    assert parsed.name == "alice@example.com"


def test_format_otpauth_uri_non_default_parameters():
    uri = format_otpauth_uri("JBSWY3DPEHPK3PXP", "bob", "", digits=8, period=60)
    assert uri == "otpauth://totp/bob?secret=JBSWY3DPEHPK3PXP&digits=8&period=60"
