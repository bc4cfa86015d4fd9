from __future__ import annotations
import argparse
import logging
import os
import sys
from getpass import getpass
from typing import Optional, Sequence

from pbkdf_mod.errors import PBKDFError
from pbkdf_mod.hash_format import hash_password, verify_password
from pbkdf_mod.kdf import KDFParams

logger = logging.getLogger("pbkdf_hash")

ITERATIONS_ENV = "PBKDF_HASH_ITERATIONS"


def default_iterations() -> int:
    # 0 falls through to DEFAULT_PARAMS.
    raw = os.getenv(ITERATIONS_ENV, "").strip()
    if not raw:
        return 0
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", ITERATIONS_ENV, raw)
        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pbkdf-hash",
        description="PBKDF2-HMAC-SHA256 password hashing: $pbkdf2-sha256$i=..,l=..$salt$key",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="cmd", required=True)

    h = sub.add_parser("hash", help="Hash a password read from the terminal")
    h.add_argument("-i", "--iterations", type=int, default=default_iterations(),
                   help=f"PBKDF2 iterations (default: ${ITERATIONS_ENV} or 120000)")
    h.add_argument("-l", "--key-len", type=int, default=0, help="Derived key bytes (default: 32)")
    h.add_argument("-s", "--salt-len", type=int, default=0, help="Salt bytes (default: 16)")

    v = sub.add_parser("verify", help="Check a password against an encoded hash")
    v.add_argument("hash", help="Encoded hash, quote it to keep the shell off the $ signs")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "hash":
        if min(args.iterations, args.key_len, args.salt_len) < 0:
            print("Error: option values must not be negative.", file=sys.stderr)
            return 2
        password = getpass("Password: ")
        if password != getpass("Confirm password: "):
            print("Error: passwords do not match.", file=sys.stderr)
            return 2
        params = KDFParams(
            iterations=args.iterations,
            key_len=args.key_len,
            salt_len=args.salt_len,
        )
    else:
        password = getpass("Password: ")

    try:
        if args.cmd == "hash":
            print(hash_password(password, params))
            return 0
        if verify_password(password, args.hash):
            print("OK")
            return 0
        print("MISMATCH")
        return 1
    except PBKDFError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
