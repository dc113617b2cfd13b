"""
otpcore package
===============

TOTP / HOTP code engine (RFC 6238 & RFC 4226) and authenticator URL parsing
used by the authvault web app and CLI.

──────────────────────────────────────────────
Core algorithm
──────────────────────────────────────────────
- HOTP:
  code = Truncate(HMAC-SHA1(key=secret, msg=counter)) mod 10^digits

- TOTP:
  HOTP with counter = floor(unix_seconds / time_step)
  → default time_step = 30 seconds, 6 digits.

- Dynamic truncation:
  4 bytes from the HMAC at offset (last byte & 0x0F), MSB cleared.

──────────────────────────────────────────────
Quick example
──────────────────────────────────────────────
>>> from otpcore import generate_totp, get_remaining_time, parse_authenticator_url
>>> record = parse_authenticator_url(
...     "otpauth://totp/Example:alice@example.com?secret=JBSWY3DPEHPK3PXP&issuer=Example")
>>> record.account_name
'alice@example.com'
>>> code = generate_totp(record.secret)
>>> remaining = get_remaining_time(30)
"""

from .base32 import base32_decode, base32_encode
from .otp_core import (
    DEFAULT_DIGITS,
    DEFAULT_TIME_STEP,
    DEFAULT_WINDOW,
    format_otpauth_uri,
    generate_random_secret,
    generate_totp,
    get_remaining_time,
    hotp,
    hotp_from_key,
    verify_totp,
)
from .url_parser import (
    ProvisioningRecord,
    parse_authenticator_url,
    parse_microsoft_auth_url,
    parse_otpauth_url,
    parse_phonefactor_url,
)

__all__ = [
    "DEFAULT_DIGITS",
    "DEFAULT_TIME_STEP",
    "DEFAULT_WINDOW",
    "ProvisioningRecord",
    "base32_decode",
    "base32_encode",
    "format_otpauth_uri",
    "generate_random_secret",
    "generate_totp",
    "get_remaining_time",
    "hotp",
    "hotp_from_key",
    "parse_authenticator_url",
    "parse_microsoft_auth_url",
    "parse_otpauth_url",
    "parse_phonefactor_url",
    "verify_totp",
]
