"""
Block-cipher modes of operation: ECB, CBC and CTR.

ECB:  C[i] = E(P[i])
CBC:  C[0] = E(P[0] ^ IV),  C[i] = E(P[i] ^ C[i-1])
CTR:  C[i] = P[i] ^ E(IV + i)     (128-bit big-endian counter)

The message-level functions validate key, IV and lengths before any
block is processed, so a failed call never produces partial output.
"""

from __future__ import annotations

import enum
import logging
import secrets
from dataclasses import dataclass
from typing import Any

from . import trace
from .errors import BlockLengthError, MissingIvError
from .key_schedule import expand_key, num_rounds
from .padding import BLOCK_SIZE, Padding, pad, split_blocks, unpad
from .round_transform import check_block, decrypt_block, encrypt_block
from .utils import xor_bytes

logger = logging.getLogger(__name__)

_COUNTER_MODULUS = 1 << 128


class Mode(str, enum.Enum):
    ECB = "ECB"
    CBC = "CBC"
    CTR = "CTR"

    @property
    def needs_iv(self) -> bool:
        return self is not Mode.ECB


@dataclass(frozen=True)
class EncryptionResult:
    """Ciphertext plus the IV it was produced with (None for ECB)."""

    ciphertext: bytes
    iv: bytes | None = None

    @property
    def blocks(self) -> list[bytes]:
        return split_blocks(self.ciphertext)


def generate_iv() -> bytes:
    """Fresh random 16-byte IV / nonce."""
    return secrets.token_bytes(BLOCK_SIZE)


def counter_block(iv: bytes, index: int) -> bytes:
    """
    Counter value for block ``index``: IV + index as a 128-bit
    big-endian integer, carry propagating leftward, wrapping at 2^128.
    """
    iv = check_block(iv, "IV")
    value = (int.from_bytes(iv, "big") + index) % _COUNTER_MODULUS
    return value.to_bytes(BLOCK_SIZE, "big")


def keystream_block(
    round_keys: list[bytes],
    iv: bytes,
    index: int,
    recorder: Any = None,
) -> bytes:
    """
    CTR keystream for block ``index``. Depends only on the key, IV and
    index, so blocks may be computed in any order.
    """
    counter = counter_block(iv, index)
    if recorder is not None:
        recorder.record(trace.COUNTER, counter, round_key=iv, block=index)
    return encrypt_block(counter, round_keys, recorder, block_index=index)


def _resolve_iv(mode: Mode, iv: bytes | None) -> bytes | None:
    if not mode.needs_iv:
        return None
    if iv is None:
        raise MissingIvError(mode.value)
    return check_block(iv, "IV")


def encrypt_blocks(
    blocks: list[bytes],
    round_keys: list[bytes],
    mode: Mode | str = Mode.ECB,
    iv: bytes | None = None,
    recorder: Any = None,
) -> list[bytes]:
    """
    Encrypt an ordered sequence of 16-byte blocks.

    Args:
        blocks: plaintext blocks (already padded)
        round_keys: output of expand_key
        mode: ECB, CBC or CTR
        iv: 16-byte IV / initial counter, required for CBC and CTR
        recorder: optional trace sink

    Returns:
        Ciphertext blocks, same order and count

    Raises:
        MissingIvError: CBC/CTR without IV
        BlockLengthError: IV or a block is not 16 bytes
    """
    mode = Mode(mode)
    iv = _resolve_iv(mode, iv)
    blocks = [check_block(b) for b in blocks]

    out: list[bytes] = []
    chain = iv

    for i, block in enumerate(blocks):
        if recorder is not None:
            recorder.record(trace.PLAINTEXT, block, block=i)

        if mode is Mode.ECB:
            cipher = encrypt_block(block, round_keys, recorder, block_index=i)

        elif mode is Mode.CBC:
            state = xor_bytes(block, chain)
            if recorder is not None:
                label = trace.IV_XOR if i == 0 else trace.CHAIN_XOR
                recorder.record(label, state, previous_state=block,
                                round_key=chain, block=i)
            cipher = encrypt_block(state, round_keys, recorder, block_index=i)
            chain = cipher

        else:
            keystream = keystream_block(round_keys, iv, i, recorder)
            cipher = xor_bytes(block, keystream)
            if recorder is not None:
                recorder.record(trace.COUNTER_XOR, cipher, previous_state=block,
                                round_key=keystream, block=i)

        if recorder is not None:
            recorder.record(trace.OUTPUT, cipher, block=i)
        out.append(cipher)

    return out


def decrypt_blocks(
    blocks: list[bytes],
    round_keys: list[bytes],
    mode: Mode | str = Mode.ECB,
    iv: bytes | None = None,
    recorder: Any = None,
) -> list[bytes]:
    """
    Decrypt an ordered sequence of 16-byte ciphertext blocks.

    CTR uses the forward cipher on the counter, exactly as encryption.
    """
    mode = Mode(mode)
    iv = _resolve_iv(mode, iv)
    blocks = [check_block(b) for b in blocks]

    out: list[bytes] = []

    for i, block in enumerate(blocks):
        if recorder is not None:
            recorder.record(trace.CIPHERTEXT, block, block=i)

        if mode is Mode.ECB:
            plain = decrypt_block(block, round_keys, recorder, block_index=i)

        elif mode is Mode.CBC:
            chain = iv if i == 0 else blocks[i - 1]
            state = decrypt_block(block, round_keys, recorder, block_index=i)
            plain = xor_bytes(state, chain)
            if recorder is not None:
                label = trace.IV_XOR if i == 0 else trace.CHAIN_XOR
                recorder.record(label, plain, previous_state=state,
                                round_key=chain, block=i)

        else:
            keystream = keystream_block(round_keys, iv, i, recorder)
            plain = xor_bytes(block, keystream)
            if recorder is not None:
                recorder.record(trace.COUNTER_XOR, plain, previous_state=block,
                                round_key=keystream, block=i)

        if recorder is not None:
            recorder.record(trace.OUTPUT, plain, block=i)
        out.append(plain)

    return out


def _as_bytes(data: bytes | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


def encrypt_message(
    plaintext: bytes | str,
    key: bytes,
    mode: Mode | str = Mode.ECB,
    padding: Padding | str = Padding.PKCS7,
    iv: bytes | None = None,
    recorder: Any = None,
) -> EncryptionResult:
    """
    Pad and encrypt a whole message.

    A str plaintext is encoded as UTF-8. For CBC and CTR a random IV is
    generated when none is supplied; the IV actually used is returned.

    Args:
        plaintext: message
        key: 16, 24 or 32-byte key
        mode: ECB, CBC or CTR
        padding: PKCS7, ANSI_X923 or NONE
        iv: optional 16-byte IV / initial counter
        recorder: optional trace sink

    Returns:
        EncryptionResult(ciphertext, iv)
    """
    mode = Mode(mode)
    padding = Padding(padding)
    round_keys = expand_key(key)

    if mode.needs_iv:
        if iv is None:
            iv = generate_iv()
            logger.debug("Generated %s IV %s", mode.value, iv.hex())
        iv = check_block(iv, "IV")
    else:
        iv = None

    blocks = split_blocks(pad(_as_bytes(plaintext), padding))
    logger.debug("Encrypting %d block(s): mode=%s padding=%s key=%d bits",
                 len(blocks), mode.value, padding.value, len(key) * 8)

    cipher_blocks = encrypt_blocks(blocks, round_keys, mode, iv, recorder)
    return EncryptionResult(ciphertext=b"".join(cipher_blocks), iv=iv)


def decrypt_message(
    ciphertext: bytes,
    key: bytes,
    mode: Mode | str = Mode.ECB,
    padding: Padding | str = Padding.PKCS7,
    iv: bytes | None = None,
    recorder: Any = None,
) -> bytes:
    """
    Decrypt a whole message and strip its padding.

    Raises:
        MissingIvError: CBC/CTR without IV
        BlockLengthError: ciphertext is not a whole number of blocks
        InvalidPaddingError: padding check failed after decryption
    """
    mode = Mode(mode)
    padding = Padding(padding)
    round_keys = expand_key(key)
    iv = _resolve_iv(mode, iv)

    ciphertext = bytes(ciphertext)
    if len(ciphertext) % BLOCK_SIZE != 0:
        raise BlockLengthError(
            f"Ciphertext must be a multiple of 16 bytes, got {len(ciphertext)}"
        )

    blocks = split_blocks(ciphertext)
    logger.debug("Decrypting %d block(s): mode=%s padding=%s",
                 len(blocks), mode.value, padding.value)

    plain_blocks = decrypt_blocks(blocks, round_keys, mode, iv, recorder)
    return unpad(b"".join(plain_blocks), padding)


class CipherSession:
    """
    Key, mode and padding with one IV that stays fixed across calls.

    The IV is drawn once when the session is created (or taken from the
    caller) and only changes on an explicit renew_iv().
    """

    def __init__(
        self,
        key: bytes,
        mode: Mode | str = Mode.ECB,
        padding: Padding | str = Padding.PKCS7,
        iv: bytes | None = None,
    ):
        self.mode = Mode(mode)
        self.padding = Padding(padding)
        self.rounds = num_rounds(len(key))
        self._key = bytes(key)
        self._iv: bytes | None = None
        if self.mode.needs_iv:
            self._iv = check_block(iv, "IV") if iv is not None else generate_iv()

    @property
    def iv(self) -> bytes | None:
        return self._iv

    def renew_iv(self, iv: bytes | None = None) -> bytes | None:
        """Replace the session IV (random unless given). No-op for ECB."""
        if self.mode.needs_iv:
            self._iv = check_block(iv, "IV") if iv is not None else generate_iv()
        return self._iv

    def encrypt(self, plaintext: bytes | str, recorder: Any = None) -> EncryptionResult:
        return encrypt_message(plaintext, self._key, self.mode, self.padding,
                               self._iv, recorder)

    def decrypt(self, ciphertext: bytes, recorder: Any = None) -> bytes:
        return decrypt_message(ciphertext, self._key, self.mode, self.padding,
                               self._iv, recorder)

    def __repr__(self) -> str:
        return (f"CipherSession(mode={self.mode.value}, padding={self.padding.value}, "
                f"rounds={self.rounds})")
