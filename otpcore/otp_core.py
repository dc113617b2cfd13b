#!/usr/bin/env python3
"""
otp_core.py — Core TOTP / HOTP engine for authvault.

Goals:
- Pure functions only, called directly by the web layer, the CLI and tests.
- No storage access: the caller passes in the secret, digits and time step
  of the authenticator entry it loaded.
- HMAC-SHA1 per RFC 4226 / RFC 6238 (what Google / Microsoft Authenticator use).

Security notes:
- Secrets are Base32 text; decoding is lenient (see otpcore.base32).
- verify_totp compares codes with hmac.compare_digest.
"""

from typing import Optional
import hmac
import hashlib
import logging
import os
import struct
import time
from urllib.parse import quote, urlencode

from .base32 import base32_decode, base32_encode

logger = logging.getLogger(__name__)

# --- Config / constants ----------------------------------------------------
DEFAULT_DIGITS = 6          # standard: 6 digits
DEFAULT_TIME_STEP = 30      # TOTP step (seconds)
DEFAULT_WINDOW = 1          # +/- steps accepted by verify_totp
SECRET_BYTES = 32           # random secret length used by the web layer


# --- Utility ---------------------------------------------------------------
def generate_random_secret(length: int = SECRET_BYTES) -> str:
    """
    Generate a random secret and return it as Base32 (no padding).

    - `length` bytes from os.urandom (CSPRNG).
    - Encoded with otpcore.base32 so it imports into any authenticator app.

    Returns:
        str: Base32 secret (e.g. "JBSWY3DPEHPK3PXP...")
    """
    if length <= 0:
        raise ValueError("Secret length must be positive")
    return base32_encode(os.urandom(length))


# --- RFC helpers -----------------------------------------------------------
def int_to_bytes(i: int) -> bytes:
    """
    Pack a counter as the 8-byte big-endian message RFC 4226 requires.

    Example: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'

    Raises:
        struct.error: if the counter is negative or wider than 64 bits
    """
    return struct.pack(">Q", i)


def dynamic_truncate(hmac_digest: bytes) -> int:
    """
    Dynamic truncation per RFC 4226.

    - offset = last byte & 0x0F
    - take 4 bytes at offset, clear the MSB (0x7F) of the first
    - return the 31-bit unsigned integer
    """
    offset = hmac_digest[-1] & 0x0F
    code = (
        ((hmac_digest[offset] & 0x7F) << 24)
        | ((hmac_digest[offset + 1] & 0xFF) << 16)
        | ((hmac_digest[offset + 2] & 0xFF) << 8)
        | (hmac_digest[offset + 3] & 0xFF)
    )
    return code


def hotp_from_key(key: bytes, counter: int, digits: int = DEFAULT_DIGITS) -> str:
    """
    HOTP for raw key bytes.

    Steps:
    1. Message = 8-byte counter (big-endian)
    2. HMAC-SHA1(key, message); any key length works, including b""
    3. Dynamic truncate -> dbc
    4. otp = dbc % 10^digits, zero-padded to `digits` characters

    With digits > 9 the 31-bit dbc cannot fill the code; the result is just
    zero-padded. This boundary is not enforced.
    """
    if digits <= 0:
        raise ValueError("digits must be positive")
    digest = hmac.new(key, int_to_bytes(counter), hashlib.sha1).digest()
    dbc = dynamic_truncate(digest)
    return str(dbc % (10 ** digits)).zfill(digits)


def hotp(secret_b32: str, counter: int, digits: int = DEFAULT_DIGITS) -> str:
    """
    HOTP code (RFC 4226) for a Base32 secret.

    Arguments:
        secret_b32: Base32 secret (case/whitespace insensitive, lenient)
        counter: non-negative 64-bit counter
        digits: number of digits (6 recommended)
    """
    return hotp_from_key(base32_decode(secret_b32), counter, digits)


def time_counter(timestamp_millis: float, time_step: int = DEFAULT_TIME_STEP) -> int:
    """
    TOTP counter for a timestamp in milliseconds: floor(seconds / time_step).

    A timestamp exactly on a step boundary belongs to the new step.
    """
    if time_step <= 0:
        raise ValueError("time_step must be positive")
    return int(timestamp_millis // 1000) // time_step


def generate_totp(
    secret_b32: str,
    time_step: int = DEFAULT_TIME_STEP,
    digits: int = DEFAULT_DIGITS,
    at_time_millis: Optional[float] = None,
) -> str:
    """
    Generate a TOTP code (RFC 6238): HOTP(counter = floor(t / time_step)).

    Arguments:
        secret_b32: Base32 secret
        time_step: X (seconds), default 30
        digits: number of OTP digits
        at_time_millis: epoch milliseconds (None -> now)

    Notes:
        - Two timestamps inside the same step give the same code.
        - Does not read or write any storage.
    """
    if at_time_millis is None:
        at_time_millis = time.time() * 1000
    counter = time_counter(at_time_millis, time_step)
    return hotp(secret_b32, counter, digits)


def get_remaining_time(time_step: int = DEFAULT_TIME_STEP, now: Optional[float] = None) -> int:
    """
    Seconds until the current code rotates, in [1, time_step].

    `now` is epoch seconds and defaults to the wall clock.
    """
    if time_step <= 0:
        raise ValueError("time_step must be positive")
    if now is None:
        now = time.time()
    return time_step - (int(now) % time_step)


# --- OTP verification ------------------------------------------------------
def verify_totp(
    secret_b32: str,
    token: str,
    time_step: int = DEFAULT_TIME_STEP,
    digits: int = DEFAULT_DIGITS,
    window: int = DEFAULT_WINDOW,
    now: Optional[float] = None,
) -> bool:
    """
    Check a user-supplied TOTP code against the steps around the current time.

    Counters current-window .. current+window (2*window+1 candidates) are
    tried; negative counters are skipped. `now` is epoch seconds and defaults
    to the wall clock at call time.
    The token is compared as given, so callers strip user input first.

    Returns False on mismatch and on any computation error; never raises.
    """
    try:
        if now is None:
            now = time.time()
        key = base32_decode(secret_b32)
        counter = time_counter(now * 1000, time_step)
        for offset in range(-window, window + 1):
            test_counter = counter + offset
            if test_counter < 0:
                continue
            expected = hotp_from_key(key, test_counter, digits)
            if hmac.compare_digest(expected, token):
                return True
    except Exception as e:
        logger.warning("TOTP verification failed with an error: %s", e)
    return False


def format_otpauth_uri(
    secret_b32: str,
    account: str,
    issuer: str,
    digits: int = DEFAULT_DIGITS,
    period: int = DEFAULT_TIME_STEP,
) -> str:
    """
    Build an otpauth:// provisioning URI for a TOTP entry.

    - otpauth://totp/{issuer}:{account}?secret=...&issuer=...[&digits=..][&period=..]
    - issuer/account are percent-encoded; digits/period only when non-default.
    """
    label = quote(account, safe="@")
    params = {"secret": secret_b32}
    if issuer:
        label = quote(issuer, safe="") + ":" + label
        params["issuer"] = issuer
    if digits != DEFAULT_DIGITS:
        params["digits"] = digits
    if period != DEFAULT_TIME_STEP:
        params["period"] = period
    return f"otpauth://totp/{label}?{urlencode(params, quote_via=quote)}"

