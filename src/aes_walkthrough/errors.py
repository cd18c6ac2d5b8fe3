"""
Error types raised by the AES engine.

All of them derive from ValueError: every failure is a caller usage error
detected before any output is produced.
"""


class AesError(ValueError):
    """Base class for engine errors."""


class InvalidKeyLengthError(AesError):
    """Key is not 16, 24 or 32 bytes."""

    def __init__(self, length: int):
        self.length = length
        super().__init__(f"Key must be 16, 24 or 32 bytes, got {length}")


class MissingIvError(AesError):
    """CBC or CTR requested without an IV."""

    def __init__(self, mode: str):
        self.mode = mode
        super().__init__(f"{mode} mode requires a 16-byte IV")


class InvalidPaddingError(AesError):
    """Trailing padding is out of range or malformed."""


class BlockLengthError(AesError):
    """A state, IV or ciphertext is not a whole number of 16-byte blocks."""
