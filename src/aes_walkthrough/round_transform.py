"""
AES round transformations and single-block cipher.

Forward:  AddRoundKey(0), then for r = 1..Nr:
          SubBytes -> ShiftRows -> MixColumns (skipped when r == Nr) -> AddRoundKey(r)

Inverse:  AddRoundKey(Nr), then for r = Nr-1..0:
          InvShiftRows -> InvSubBytes -> AddRoundKey(r) -> InvMixColumns (skipped when r == 0)

States are 16-byte column-major ``bytes``; every transform returns a new
object, so a recorded state can never change after it is emitted.
"""

from __future__ import annotations

from typing import Any

from . import trace
from .errors import BlockLengthError
from .tables import INV_SBOX, MUL2, MUL3, MUL9, MUL11, MUL13, MUL14, SBOX
from .utils import idx

BLOCK_SIZE = 16

# Valid round-key counts: Nr + 1 for Nr in (10, 12, 14)
_ROUND_KEY_COUNTS = (11, 13, 15)


def check_block(block: bytes, what: str = "Block") -> bytes:
    """Return block as bytes, or raise BlockLengthError if not 16 bytes."""
    if len(block) != BLOCK_SIZE:
        raise BlockLengthError(f"{what} must be 16 bytes, got {len(block)}")
    return bytes(block)


def _check_round_keys(round_keys: list[bytes]) -> None:
    if len(round_keys) not in _ROUND_KEY_COUNTS:
        raise BlockLengthError(
            f"Expected 11, 13 or 15 round keys, got {len(round_keys)}"
        )
    for rk in round_keys:
        check_block(rk, "Round key")


# ------------------------------------------------------------------
# Forward transforms
# ------------------------------------------------------------------

def sub_bytes(state: bytes) -> bytes:
    """Replace each byte with its S-box image."""
    return bytes(SBOX[b] for b in state)


def shift_rows(state: bytes) -> bytes:
    """Cyclically shift row r left by r positions; row 0 unchanged."""
    return bytes(
        state[idx(row, (col + row) % 4)]
        for col in range(4)
        for row in range(4)
    )


def mix_column(column: bytes) -> bytes:
    """Multiply one 4-byte column by the MixColumns matrix."""
    s0, s1, s2, s3 = column
    return bytes((
        MUL2[s0] ^ MUL3[s1] ^ s2 ^ s3,
        s0 ^ MUL2[s1] ^ MUL3[s2] ^ s3,
        s0 ^ s1 ^ MUL2[s2] ^ MUL3[s3],
        MUL3[s0] ^ s1 ^ s2 ^ MUL2[s3],
    ))


def mix_columns(state: bytes) -> bytes:
    """Apply mix_column to each of the four columns."""
    return b"".join(mix_column(state[c * 4:c * 4 + 4]) for c in range(4))


def add_round_key(state: bytes, round_key: bytes) -> bytes:
    """XOR state with round key."""
    return bytes(s ^ k for s, k in zip(state, round_key))


# ------------------------------------------------------------------
# Inverse transforms
# ------------------------------------------------------------------

def inv_sub_bytes(state: bytes) -> bytes:
    return bytes(INV_SBOX[b] for b in state)


def inv_shift_rows(state: bytes) -> bytes:
    """Cyclically shift row r right by r positions."""
    return bytes(
        state[idx(row, (col - row) % 4)]
        for col in range(4)
        for row in range(4)
    )


def inv_mix_column(column: bytes) -> bytes:
    s0, s1, s2, s3 = column
    return bytes((
        MUL14[s0] ^ MUL11[s1] ^ MUL13[s2] ^ MUL9[s3],
        MUL9[s0] ^ MUL14[s1] ^ MUL11[s2] ^ MUL13[s3],
        MUL13[s0] ^ MUL9[s1] ^ MUL14[s2] ^ MUL11[s3],
        MUL11[s0] ^ MUL13[s1] ^ MUL9[s2] ^ MUL14[s3],
    ))


def inv_mix_columns(state: bytes) -> bytes:
    return b"".join(inv_mix_column(state[c * 4:c * 4 + 4]) for c in range(4))


# ------------------------------------------------------------------
# Block cipher
# ------------------------------------------------------------------

def encrypt_block(
    block: bytes,
    round_keys: list[bytes],
    recorder: Any = None,
    block_index: int | None = None,
) -> bytes:
    """
    Encrypt a single 16-byte block with pre-expanded round keys.

    Args:
        block: 16-byte input state
        round_keys: output of expand_key (11, 13 or 15 keys)
        recorder: optional trace sink with a ``record`` method
        block_index: block number attached to trace entries

    Returns:
        16-byte output state
    """
    state = check_block(block)
    _check_round_keys(round_keys)
    nr = len(round_keys) - 1

    def emit(label: str, new: bytes, old: bytes, rnd: int, key: bytes | None = None) -> None:
        recorder.record(label, new, previous_state=old, round_key=key,
                        block=block_index, round=rnd)

    previous = state
    state = add_round_key(state, round_keys[0])
    if recorder is not None:
        emit(trace.ADD_ROUND_KEY, state, previous, 0, round_keys[0])

    for rnd in range(1, nr + 1):
        previous = state
        state = sub_bytes(state)
        if recorder is not None:
            emit(trace.SUB_BYTES, state, previous, rnd)

        previous = state
        state = shift_rows(state)
        if recorder is not None:
            emit(trace.SHIFT_ROWS, state, previous, rnd)

        # Final round: no MixColumns
        if rnd < nr:
            previous = state
            state = mix_columns(state)
            if recorder is not None:
                emit(trace.MIX_COLUMNS, state, previous, rnd)

        previous = state
        state = add_round_key(state, round_keys[rnd])
        if recorder is not None:
            emit(trace.ADD_ROUND_KEY, state, previous, rnd, round_keys[rnd])

    return state


def decrypt_block(
    block: bytes,
    round_keys: list[bytes],
    recorder: Any = None,
    block_index: int | None = None,
) -> bytes:
    """
    Decrypt a single 16-byte block (FIPS-197 inverse cipher).

    Round keys are the same list expand_key produces; they are consumed
    in reverse order.
    """
    state = check_block(block)
    _check_round_keys(round_keys)
    nr = len(round_keys) - 1

    def emit(label: str, new: bytes, old: bytes, rnd: int, key: bytes | None = None) -> None:
        recorder.record(label, new, previous_state=old, round_key=key,
                        block=block_index, round=rnd)

    previous = state
    state = add_round_key(state, round_keys[nr])
    if recorder is not None:
        emit(trace.ADD_ROUND_KEY, state, previous, nr, round_keys[nr])

    for rnd in range(nr - 1, -1, -1):
        previous = state
        state = inv_shift_rows(state)
        if recorder is not None:
            emit(trace.INV_SHIFT_ROWS, state, previous, rnd)

        previous = state
        state = inv_sub_bytes(state)
        if recorder is not None:
            emit(trace.INV_SUB_BYTES, state, previous, rnd)

        previous = state
        state = add_round_key(state, round_keys[rnd])
        if recorder is not None:
            emit(trace.ADD_ROUND_KEY, state, previous, rnd, round_keys[rnd])

        if rnd > 0:
            previous = state
            state = inv_mix_columns(state)
            if recorder is not None:
                emit(trace.INV_MIX_COLUMNS, state, previous, rnd)

    return state
