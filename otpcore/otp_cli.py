#!/usr/bin/env python3
"""
otp_cli.py — command line front end for otpcore.

Subcommands:
- secret : generate a random Base32 secret
- totp   : show the TOTP code for a secret (once, or live with --watch)
- hotp   : HOTP code for a secret and counter
- verify : check a TOTP code against a secret
- parse  : parse an otpauth:// or phonefactor:// URL
- uri    : print the otpauth:// URI (and optionally a QR data URI)
"""

import argparse
import json
import sys
import time

from . import otp_core
from .url_parser import parse_authenticator_url


# --- CLI command handlers ---
def cmd_secret(args):
    print(otp_core.generate_random_secret(args.length))
    return 0


def cmd_totp(args):
    if not args.watch:
        code = otp_core.generate_totp(args.secret, args.period, args.digits)
        remaining = otp_core.get_remaining_time(args.period)
        print(f"TOTP ({args.digits}d): {code}  (valid ~{remaining:2d}s)")
        return 0

    print(f"Press Ctrl+C to quit. Generating {args.digits}-digit TOTP every {args.period}s...\n")
    last_code = None
    try:
        while True:
            code = otp_core.generate_totp(args.secret, args.period, args.digits)
            remaining = otp_core.get_remaining_time(args.period)
            if code != last_code:
                print(f"TOTP ({args.digits}d): {code}  (valid ~{remaining:2d}s)")
                last_code = code
            else:
                print(f".. {remaining:2d}s left", end="\r", flush=True)
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nBye.")
    return 0


def cmd_hotp(args):
    code = otp_core.hotp(args.secret, args.counter, args.digits)
    print(f"HOTP({args.digits}d, counter={args.counter}): {code}")
    return 0


def cmd_verify(args):
    ok = otp_core.verify_totp(
        args.secret,
        args.code,
        time_step=args.period,
        digits=args.digits,
        window=args.window,
    )
    if ok:
        print("[+] TOTP code is VALID")
        return 0
    print("[-] TOTP code is INVALID")
    return 1


def cmd_parse(args):
    record = parse_authenticator_url(args.url)
    if record is None:
        print("[-] Unsupported or malformed authenticator URL", file=sys.stderr)
        return 1
    print(json.dumps(record.to_dict(), indent=2, ensure_ascii=False))
    return 0


def cmd_uri(args):
    uri = otp_core.format_otpauth_uri(
        args.secret, args.account, args.issuer, digits=args.digits, period=args.period
    )
    print(uri)
    if args.qr:
        from .qr import qr_code_data_uri

        print(qr_code_data_uri(uri))
    return 0


def cmd_help(args):
    print("'authvault -h' for help.")
    return 0


# --- Argparse builder ---
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="authvault", description="TOTP/HOTP authenticator toolkit")
    sub = p.add_subparsers(dest="cmd")
    p.set_defaults(func=cmd_help)

    # secret
    ps = sub.add_parser("secret", help="Generate a random Base32 secret")
    ps.add_argument("--length", type=int, default=otp_core.SECRET_BYTES, help="Secret size in bytes")
    ps.set_defaults(func=cmd_secret)

    # totp
    pt = sub.add_parser("totp", help="Show the TOTP code for a secret")
    pt.add_argument("secret", help="Base32 secret")
    pt.add_argument("--digits", type=int, default=otp_core.DEFAULT_DIGITS, help="Number of OTP digits")
    pt.add_argument("--period", type=int, default=otp_core.DEFAULT_TIME_STEP, help="TOTP time step (seconds)")
    pt.add_argument("--watch", action="store_true", help="Refresh the code in real time")
    pt.set_defaults(func=cmd_totp)

    # hotp
    ph = sub.add_parser("hotp", help="Generate HOTP code for a specific counter")
    ph.add_argument("secret", help="Base32 secret")
    ph.add_argument("--counter", type=int, required=True)
    ph.add_argument("--digits", type=int, default=otp_core.DEFAULT_DIGITS)
    ph.set_defaults(func=cmd_hotp)

    # verify
    pv = sub.add_parser("verify", help="Verify a TOTP code")
    pv.add_argument("secret", help="Base32 secret")
    pv.add_argument("code", help="OTP code to verify")
    pv.add_argument("--digits", type=int, default=otp_core.DEFAULT_DIGITS)
    pv.add_argument("--period", type=int, default=otp_core.DEFAULT_TIME_STEP)
    pv.add_argument("--window", type=int, default=otp_core.DEFAULT_WINDOW, help="Allowed +/- step window")
    pv.set_defaults(func=cmd_verify)

    # parse
    pp = sub.add_parser("parse", help="Parse an otpauth:// or phonefactor:// URL")
    pp.add_argument("url")
    pp.set_defaults(func=cmd_parse)

    # uri
    pu = sub.add_parser("uri", help="Print the otpauth:// URI for a secret")
    pu.add_argument("secret", help="Base32 secret")
    pu.add_argument("--account", default="user@example")
    pu.add_argument("--issuer", default="authvault")
    pu.add_argument("--digits", type=int, default=otp_core.DEFAULT_DIGITS)
    pu.add_argument("--period", type=int, default=otp_core.DEFAULT_TIME_STEP)
    pu.add_argument("--qr", action="store_true", help="Also print a PNG QR code data URI")
    pu.set_defaults(func=cmd_uri)

    return p


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
