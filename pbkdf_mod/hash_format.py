from __future__ import annotations
import base64
import logging
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.constant_time import bytes_eq

from .errors import InvalidOrCorruptedHash
from .kdf import (
    MAX_ITERATIONS,
    MAX_KEY_LEN,
    KDFParams,
    Password,
    derive_key,
    generate_salt,
)

logger = logging.getLogger(__name__)

ALGORITHM_ID = "pbkdf2-sha256"
FIELD_SEP = "$"
PARAM_SEP = ","
KV_SEP = "="

# The format has no hash family field, so verification is always SHA-256.
VERIFY_HASH_FAMILY = hashes.SHA256()


@dataclass(frozen=True)
class ParsedHash:
    iterations: int
    key_len: int
    salt: bytes
    derived_key: bytes


def b64encode_raw(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii").rstrip("=")


def b64decode_raw(field: str) -> bytes:
    # Unpadded standard alphabet only: padding and stray characters are errors.
    if "=" in field or len(field) % 4 == 1:
        raise ValueError("Not unpadded base64.")
    return base64.b64decode(field + "=" * (-len(field) % 4), validate=True)


def encode_hash(iterations: int, key_len: int, salt: bytes, derived_key: bytes) -> str:
    # $pbkdf2-sha256$i=<iterations>,l=<key_len>$<b64 salt>$<b64 key>
    return FIELD_SEP.join((
        "",
        ALGORITHM_ID,
        f"i={iterations}{PARAM_SEP}l={key_len}",
        b64encode_raw(salt),
        b64encode_raw(derived_key),
    ))


def _parse_count(value: str) -> int:
    if not (value.isascii() and value.isdigit()):
        raise ValueError(f"Not a base-10 count: {value!r}")
    return int(value)


def _parse_params(field: str) -> tuple[int, int]:
    # Returns (iterations, key_len)
    iterations = key_len = 0
    for param in field.split(PARAM_SEP):
        kv = param.split(KV_SEP)
        if len(kv) != 2:
            continue
        key, value = kv
        if key == "i":
            iterations = _parse_count(value)
        elif key == "l":
            key_len = _parse_count(value)

    if not 0 < iterations <= MAX_ITERATIONS or not 0 < key_len <= MAX_KEY_LEN:
        raise ValueError("Missing, zero or out-of-range i/l parameter.")
    return iterations, key_len


def _parse(encoded: str) -> ParsedHash:
    parts = encoded.split(FIELD_SEP)
    if len(parts) != 5:
        raise ValueError(f"Expected 5 fields, got {len(parts)}.")

    leading, algorithm, params, b64_salt, b64_key = parts
    if leading != "":
        raise ValueError("Missing leading separator.")
    if algorithm != ALGORITHM_ID:
        raise ValueError(f"Unsupported algorithm: {algorithm!r}")

    iterations, key_len = _parse_params(params)
    salt = b64decode_raw(b64_salt)
    derived_key = b64decode_raw(b64_key)
    return ParsedHash(iterations, key_len, salt, derived_key)


def parse_hash(encoded: str) -> ParsedHash:
    """Split an encoded hash into its parameters, salt and derived key.

    Every kind of malformed input raises the same InvalidOrCorruptedHash,
    with the underlying reason suppressed.
    """
    try:
        return _parse(encoded)
    except (ValueError, TypeError, AttributeError):
        raise InvalidOrCorruptedHash() from None


def hash_password(password: Password, params: Optional[KDFParams] = None) -> str:
    """Hash `password` and return the self-describing encoded string.

    Unset fields of `params` fall back to DEFAULT_PARAMS. Errors from salt
    generation propagate unchanged.
    """
    p = (params or KDFParams()).resolved()
    salt = generate_salt(p.salt_len)
    dk = derive_key(password, salt, p.iterations, p.key_len, p.hash_family)
    return encode_hash(p.iterations, p.key_len, salt, dk)


def verify_password(password: Password, encoded: str) -> bool:
    """Check `password` against an encoded hash in constant time.

    A wrong password returns False; only a malformed `encoded` raises.
    """
    parsed = parse_hash(encoded)
    dk = derive_key(
        password,
        parsed.salt,
        parsed.iterations,
        parsed.key_len,
        VERIFY_HASH_FAMILY,
    )
    matched = bytes_eq(dk, parsed.derived_key)
    logger.debug("verify: %s", "match" if matched else "mismatch")
    return matched
