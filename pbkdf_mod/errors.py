from __future__ import annotations


class PBKDFError(Exception):
    """Base class for every error raised by pbkdf_mod."""


class InvalidArgument(PBKDFError, ValueError):
    pass


class RandomSourceUnavailable(PBKDFError, RuntimeError):
    pass


class InvalidOrCorruptedHash(PBKDFError, ValueError):
    # Same message for every parse failure.
    MESSAGE = "invalid or corrupted hash"

    def __init__(self) -> None:
        super().__init__(self.MESSAGE)
