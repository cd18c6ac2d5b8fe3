"""
AES key expansion (FIPS-197 Section 5.2) for 128, 192 and 256-bit keys.

The key is read as Nk 4-byte words; the schedule derives
4 * (Nr + 1) words which are grouped into Nr + 1 round keys.

  Nk = 4  ->  Nr = 10
  Nk = 6  ->  Nr = 12
  Nk = 8  ->  Nr = 14
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass

from .errors import InvalidKeyLengthError
from .tables import RCON, SBOX

ROUNDS_BY_KEY_LENGTH = {16: 10, 24: 12, 32: 14}


def num_rounds(key_length: int) -> int:
    """Number of rounds for a key of key_length bytes."""
    try:
        return ROUNDS_BY_KEY_LENGTH[key_length]
    except KeyError:
        raise InvalidKeyLengthError(key_length) from None


def generate_key(key_bits: int = 128) -> bytes:
    """Fresh random key of key_bits (128, 192 or 256) bits."""
    if key_bits not in (128, 192, 256):
        raise InvalidKeyLengthError(key_bits // 8)
    return secrets.token_bytes(key_bits // 8)


def rot_word(word: bytes) -> bytes:
    """Cyclic left rotation of a 4-byte word by one byte."""
    return word[1:] + word[:1]


def sub_word(word: bytes) -> bytes:
    """Apply the S-box to each byte of a word."""
    return bytes(SBOX[b] for b in word)


def _xor_word(a: bytes, b: bytes) -> bytes:
    return bytes(x ^ y for x, y in zip(a, b))


@dataclass(frozen=True)
class WordStep:
    """One derived word of the key schedule, with every intermediate."""

    index: int
    previous: bytes               # w[i-1]
    rotated: bytes | None         # RotWord(w[i-1]) when i % Nk == 0
    substituted: bytes | None     # after SubWord, if applied
    rcon: int | None              # round constant XORed into byte 0
    temp: bytes                   # value XORed with w[i-Nk]
    word_nk_back: bytes           # w[i-Nk]
    result: bytes                 # w[i]

    @property
    def round(self) -> int:
        """Round key this word belongs to."""
        return self.index // 4


def _derive(key: bytes) -> tuple[list[bytes], list[WordStep]]:
    nr = num_rounds(len(key))
    nk = len(key) // 4
    total_words = 4 * (nr + 1)

    words = [bytes(key[i * 4:i * 4 + 4]) for i in range(nk)]
    steps: list[WordStep] = []

    for i in range(nk, total_words):
        previous = words[i - 1]
        temp = previous
        rotated = substituted = None
        rcon = None

        if i % nk == 0:
            rotated = rot_word(temp)
            substituted = sub_word(rotated)
            rcon = RCON[i // nk]
            temp = bytes([substituted[0] ^ rcon]) + substituted[1:]
        elif nk > 6 and i % nk == 4:
            substituted = sub_word(temp)
            temp = substituted

        word = _xor_word(words[i - nk], temp)
        words.append(word)
        steps.append(WordStep(
            index=i,
            previous=previous,
            rotated=rotated,
            substituted=substituted,
            rcon=rcon,
            temp=temp,
            word_nk_back=words[i - nk],
            result=word,
        ))

    return words, steps


def expand_key(key: bytes) -> list[bytes]:
    """
    Expand a cipher key into round keys.

    Args:
        key: 16, 24 or 32-byte AES key

    Returns:
        List of Nr + 1 round keys, 16 bytes each. Round key 0 is the
        first 16 bytes of the key.

    Raises:
        InvalidKeyLengthError: before any derivation if the key size is wrong
    """
    words, _ = _derive(bytes(key))
    return [b"".join(words[r * 4:r * 4 + 4]) for r in range(len(words) // 4)]


def key_schedule_steps(key: bytes) -> list[WordStep]:
    """
    Derive the schedule and return one WordStep per derived word
    (w[Nk] .. w[4*(Nr+1) - 1]), for step-by-step display.
    """
    _, steps = _derive(bytes(key))
    return steps
