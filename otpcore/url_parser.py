"""
url_parser.py — Authenticator provisioning URL parsing.

Supported formats:

    otpauth://totp/Example:alice@example.com?secret=JBSWY3DPEHPK3PXP&issuer=Example
    phonefactor://activate_account?code=NUMBER&url=PERCENT_ENCODED_ACTIVATION_URL

Each parser takes the raw URL text and returns a ProvisioningRecord, or None
when the URL is not its format or is missing a required field. The public
entry point, parse_authenticator_url, tries the parsers in order and never
raises: junk input (None, numbers, broken URLs) simply gives None.
"""

import logging
import re
from typing import Callable, NamedTuple, Optional, Sequence
from urllib.parse import parse_qs, unquote, urlsplit

logger = logging.getLogger(__name__)

PHONEFACTOR_ISSUER = "Microsoft"
MIN_PHONEFACTOR_SECRET_LENGTH = 10

# '%' not followed by two hex digits
_MALFORMED_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class ProvisioningRecord(NamedTuple):
    """Normalized result of parsing any supported provisioning URL."""

    secret: str
    issuer: str = ""
    account_name: str = ""

    def to_dict(self) -> dict:
        return {
            "secret": self.secret,
            "issuer": self.issuer,
            "account_name": self.account_name,
        }


UrlParser = Callable[[str], Optional[ProvisioningRecord]]


def _query_value(params: dict, key: str) -> str:
    values = params.get(key)
    return values[0] if values else ""


def parse_otpauth_url(url: str) -> Optional[ProvisioningRecord]:
    """
    Parse a standard otpauth:// URI (Google Key Uri Format).

    - secret: `secret` query parameter (required)
    - issuer: `issuer` query parameter, else the first path segment
    - account_name: the second path segment (URL-decoded)

    A single-segment label is split on the first ':' (`Issuer:account`);
    without ':' it is the account name alone.
    """
    parts = urlsplit(url.strip())
    if parts.scheme.lower() != "otpauth":
        return None

    params = parse_qs(parts.query)
    secret = _query_value(params, "secret").strip()
    if not secret:
        return None

    segments = [unquote(s) for s in parts.path.lstrip("/").split("/")]
    if len(segments) > 1:
        label_issuer, account_name = segments[0], segments[1]
    elif ":" in segments[0]:
        label_issuer, account_name = segments[0].split(":", 1)
    else:
        label_issuer, account_name = "", segments[0]

    issuer = _query_value(params, "issuer") or label_issuer.strip()
    return ProvisioningRecord(secret, issuer, account_name.strip())


def parse_phonefactor_url(url: str) -> Optional[ProvisioningRecord]:
    """
    Parse a phonefactor:// activation URL (Microsoft Authenticator).

    e.g. phonefactor://activate_account?code=518227904&url=https%3a%2f%2fmobileappcommunicator.auth.microsoft.com%2factivatev2%2f863602595%2fSASPUBKRCAZ1FD043

    The secret is the last path segment of the decoded activation URL and
    must be at least MIN_PHONEFACTOR_SECRET_LENGTH characters.
    """
    parts = urlsplit(url.strip())
    if parts.scheme.lower() != "phonefactor":
        return None

    params = parse_qs(parts.query)
    code = _query_value(params, "code")
    activate_url = _query_value(params, "url")
    if not code or not activate_url:
        return None

    # parse_qs decoded once already; activation URLs are sometimes double-encoded
    if _MALFORMED_ESCAPE.search(activate_url):
        return None
    try:
        decoded = unquote(activate_url, errors="strict")
    except UnicodeDecodeError:
        return None
    secret = decoded.split("/")[-1]
    if len(secret) < MIN_PHONEFACTOR_SECRET_LENGTH:
        return None

    return ProvisioningRecord(
        secret=secret,
        issuer=PHONEFACTOR_ISSUER,
        account_name=f"{PHONEFACTOR_ISSUER} Account ({code})",
    )


# Tried in order; the first parser returning a record wins.
DEFAULT_PARSERS = (
    parse_otpauth_url,
    parse_phonefactor_url,
)


def parse_authenticator_url(
    url: str, parsers: Sequence[UrlParser] = DEFAULT_PARSERS
) -> Optional[ProvisioningRecord]:
    """
    Parse any supported authenticator URL; None if no parser accepts it.

    A parser that raises is treated as a failed parse and the next one is
    tried. Pass `parsers` to support extra schemes.
    """
    if not isinstance(url, str):
        return None

    for parser in parsers:
        try:
            record = parser(url)
        except Exception as e:
            logger.debug("%s rejected URL: %s", getattr(parser, "__name__", parser), e)
            continue
        if record is not None:
            return record
    return None


def parse_microsoft_auth_url(url: str) -> Optional[ProvisioningRecord]:
    """Older name for parse_authenticator_url."""
    return parse_authenticator_url(url)
