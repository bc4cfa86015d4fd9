from __future__ import annotations
import logging
import os
from dataclasses import dataclass, replace
from typing import Optional, Union

from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives import hashes

from .errors import InvalidArgument, RandomSourceUnavailable

logger = logging.getLogger(__name__)

Password = Union[str, bytes, bytearray]


@dataclass(frozen=True)
class KDFParams:
    # 0 (or None for hash_family) means "take the value from DEFAULT_PARAMS".
    iterations: int = 0
    key_len: int = 0   # bytes of derived key
    salt_len: int = 0  # bytes of random salt
    hash_family: Optional[hashes.HashAlgorithm] = None

    def resolved(self) -> "KDFParams":
        return resolve_params(self)


# Upper bound of PBKDF2HMAC's iteration argument. Keys past 1 KiB add
# nothing for password storage.
MAX_ITERATIONS = 2**31 - 1
MAX_KEY_LEN = 1024

# NIST SP 800-132 asks for at least 128 bits of salt.
DEFAULT_PARAMS = KDFParams(
    iterations=120_000,
    key_len=32,
    salt_len=16,
    hash_family=hashes.SHA256(),
)


def resolve_params(params: Optional[KDFParams] = None) -> KDFParams:
    if params is None:
        return DEFAULT_PARAMS
    return replace(
        params,
        iterations=params.iterations or DEFAULT_PARAMS.iterations,
        key_len=params.key_len or DEFAULT_PARAMS.key_len,
        salt_len=params.salt_len or DEFAULT_PARAMS.salt_len,
        hash_family=params.hash_family or DEFAULT_PARAMS.hash_family,
    )


def generate_salt(length: int) -> bytes:
    """Return `length` bytes from the OS secure random source."""
    if not isinstance(length, int) or length <= 0:
        raise InvalidArgument("salt length must be positive")
    try:
        return os.urandom(length)
    except (NotImplementedError, OSError) as e:
        raise RandomSourceUnavailable("secure random source unavailable") from e


def check_bounds(iterations: int, key_len: int) -> None:
    if not 0 < iterations <= MAX_ITERATIONS:
        raise InvalidArgument(f"iterations must be in 1..{MAX_ITERATIONS}")
    if not 0 < key_len <= MAX_KEY_LEN:
        raise InvalidArgument(f"key length must be in 1..{MAX_KEY_LEN} bytes")


def to_bytes(password: Password) -> bytes:
    if isinstance(password, str):
        return password.encode("utf-8")
    if isinstance(password, (bytes, bytearray)):
        return bytes(password)
    raise ValueError("Password must be str or bytes.")


def derive_key(
    password: Password,
    salt: bytes,
    iterations: int,
    key_len: int,
    algorithm: Optional[hashes.HashAlgorithm] = None,
) -> bytes:
    check_bounds(iterations, key_len)
    algorithm = algorithm or DEFAULT_PARAMS.hash_family
    logger.debug(
        "pbkdf2-%s: iterations=%d key_len=%d salt_len=%d",
        algorithm.name, iterations, key_len, len(salt),
    )
    kdf = PBKDF2HMAC(
        algorithm=algorithm,
        length=key_len,
        salt=bytes(salt),
        iterations=iterations,
    )
    return kdf.derive(to_bytes(password))
