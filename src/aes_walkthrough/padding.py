"""
Block padding: PKCS#7, ANSI X.923 and zero-fill ("none").

pad() always returns a multiple of 16 bytes. For PKCS#7 and ANSI X.923
the pad length n = 16 - len % 16 lies in 1..16, so an already aligned
input gains a full block.
"""

from __future__ import annotations

import enum

from .errors import BlockLengthError, InvalidPaddingError

BLOCK_SIZE = 16


class Padding(str, enum.Enum):
    PKCS7 = "pkcs7"
    ANSI_X923 = "ansi_x923"
    NONE = "none"


def pad(data: bytes, scheme: Padding | str = Padding.PKCS7) -> bytes:
    """
    Pad data to a multiple of 16 bytes.

    Args:
        data: message bytes
        scheme: padding scheme

    Returns:
        Padded copy of data
    """
    scheme = Padding(scheme)
    data = bytes(data)
    n = BLOCK_SIZE - len(data) % BLOCK_SIZE

    if scheme is Padding.PKCS7:
        return data + bytes([n]) * n
    if scheme is Padding.ANSI_X923:
        return data + bytes(n - 1) + bytes([n])

    # Zero-fill to the boundary; lossy, see unpad()
    if n == BLOCK_SIZE:
        return data
    return data + bytes(n)


def unpad(data: bytes, scheme: Padding | str = Padding.PKCS7) -> bytes:
    """
    Strip padding added by pad().

    For Padding.NONE the data is returned unchanged: filler zeros cannot
    be told apart from message zeros.

    Raises:
        InvalidPaddingError: if data is not whole blocks, or the trailing
            length byte or filler bytes do not match the scheme
    """
    scheme = Padding(scheme)
    data = bytes(data)

    if scheme is Padding.NONE:
        return data

    if not data or len(data) % BLOCK_SIZE != 0:
        raise InvalidPaddingError(
            f"Padded data must be a non-empty multiple of 16 bytes, got {len(data)}"
        )

    n = data[-1]
    if not 1 <= n <= BLOCK_SIZE:
        raise InvalidPaddingError(f"Padding length byte out of range: {n}")

    filler = data[-n:-1]
    if scheme is Padding.PKCS7:
        expected = bytes([n]) * (n - 1)
    else:
        expected = bytes(n - 1)
    if filler != expected:
        raise InvalidPaddingError(f"Malformed {scheme.value} padding")

    return data[:-n]


def split_blocks(data: bytes) -> list[bytes]:
    """Split aligned data into an ordered list of 16-byte blocks."""
    if len(data) % BLOCK_SIZE != 0:
        raise BlockLengthError(
            f"Data must be a multiple of 16 bytes, got {len(data)}"
        )
    return [bytes(data[i:i + BLOCK_SIZE]) for i in range(0, len(data), BLOCK_SIZE)]
