"""
Utility functions for byte/state conversions and text formatting.

AES state is 16 bytes in column-major order: the byte at matrix
position (row, col) lives at linear index row + 4*col.

  byte[0]  -> (0, 0)
  byte[1]  -> (1, 0)
  byte[2]  -> (2, 0)
  byte[3]  -> (3, 0)
  byte[4]  -> (0, 1)
  ...
  byte[15] -> (3, 3)
"""

from __future__ import annotations

import base64
import binascii
import enum
import re

from .errors import InvalidKeyLengthError

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


class OutputFormat(str, enum.Enum):
    """Text renderings of a byte buffer."""

    HEX = "hex"
    BASE64 = "base64"
    BINARY = "binary"


def idx(row: int, col: int) -> int:
    """Column-major linear index for byte at (row, col)."""
    return row + 4 * col


def state_to_grid(state: bytes) -> list[list[int]]:
    """
    Convert a 16-byte state to a 4x4 row-indexed grid.

    Args:
        state: 16 bytes, column-major

    Returns:
        grid[row][col]
    """
    if len(state) != 16:
        raise ValueError(f"Expected 16 bytes, got {len(state)}")
    return [[state[idx(row, col)] for col in range(4)] for row in range(4)]


def grid_to_state(grid: list[list[int]]) -> bytes:
    """Convert a 4x4 grid back to 16 column-major bytes."""
    return bytes(grid[row][col] for col in range(4) for row in range(4))


def hex_to_bytes(hex_str: str) -> bytes:
    """
    Convert hex string to bytes.

    Whitespace is ignored, so "cc 0e c1 70" and "cc0ec170" are equal.
    """
    return bytes.fromhex("".join(hex_str.split()))


def bytes_to_hex(data: bytes, sep: str = "") -> str:
    """Convert bytes to a lowercase hex string."""
    if sep:
        return sep.join(f"{b:02x}" for b in data)
    return data.hex()


def bytes_to_binary(data: bytes, sep: str = "") -> str:
    """Render bytes as 8-digit binary groups."""
    return sep.join(f"{b:08b}" for b in data)


def binary_to_bytes(text: str) -> bytes:
    """Parse a string of binary digits (whitespace ignored) into bytes."""
    digits = "".join(text.split())
    if len(digits) % 8 != 0 or set(digits) - {"0", "1"}:
        raise ValueError("Binary input must be groups of 8 digits 0/1")
    return bytes(int(digits[i:i + 8], 2) for i in range(0, len(digits), 8))


def format_bytes(data: bytes, fmt: OutputFormat | str = OutputFormat.HEX) -> str:
    """Render a byte buffer in one of the supported text formats."""
    fmt = OutputFormat(fmt)
    if fmt is OutputFormat.HEX:
        return bytes_to_hex(data)
    if fmt is OutputFormat.BASE64:
        return base64.b64encode(data).decode("ascii")
    return bytes_to_binary(data)


def parse_bytes(text: str, fmt: OutputFormat | str = OutputFormat.HEX) -> bytes:
    """Inverse of format_bytes."""
    fmt = OutputFormat(fmt)
    if fmt is OutputFormat.HEX:
        return hex_to_bytes(text)
    if fmt is OutputFormat.BASE64:
        try:
            return base64.b64decode("".join(text.split()), validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64: {e}") from e
    return binary_to_bytes(text)


def normalize_key(text: str, key_bits: int = 128) -> bytes:
    """
    Turn user key text into exactly key_bits/8 bytes.

    Hex text (whitespace ignored) is decoded; anything else is taken as
    UTF-8. The result is truncated or zero-extended to the key size.
    """
    if key_bits not in (128, 192, 256):
        raise InvalidKeyLengthError(key_bits // 8)
    size = key_bits // 8

    compact = "".join(text.split())
    if compact and _HEX_RE.match(compact):
        if len(compact) % 2:
            compact += "0"
        raw = bytes.fromhex(compact)
    else:
        raw = text.encode("utf-8")

    return raw[:size].ljust(size, b"\x00")


def format_state_grid(state: bytes) -> str:
    """
    Format state as a readable 4x4 grid.

    Returns multi-line string like:
      2b 28 ab 09
      7e ae f7 cf
      15 d2 15 4f
      16 a6 88 3c
    """
    lines = []
    for row in state_to_grid(state):
        lines.append("  " + " ".join(f"{v:02x}" for v in row))
    return "\n".join(lines)


def format_state_line(state: bytes) -> str:
    """Format state as 4 space-separated column words."""
    return " ".join(state[c * 4:c * 4 + 4].hex() for c in range(len(state) // 4))


def xor_bytes(a: bytes, b: bytes) -> bytes:
    """
    XOR two byte sequences of equal length.
    """
    if len(a) != len(b):
        raise ValueError(f"Length mismatch: {len(a)} vs {len(b)}")
    return bytes(x ^ y for x, y in zip(a, b))
