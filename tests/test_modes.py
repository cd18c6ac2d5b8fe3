"""
Tests for the ECB / CBC / CTR mode layer.

Verifies:
- ECB determinism and block independence
- CBC chaining: a change propagates forward only
- CTR counter arithmetic and per-block independence
- IV handling, sessions and error reporting before any output
"""

import random

import pytest

from aes_walkthrough.errors import (
    BlockLengthError,
    InvalidKeyLengthError,
    InvalidPaddingError,
    MissingIvError,
)
from aes_walkthrough.key_schedule import expand_key
from aes_walkthrough.modes import (
    CipherSession,
    EncryptionResult,
    Mode,
    counter_block,
    decrypt_blocks,
    decrypt_message,
    encrypt_blocks,
    encrypt_message,
    generate_iv,
    keystream_block,
)
from aes_walkthrough.padding import Padding, split_blocks
from aes_walkthrough.trace import TraceRecorder
from aes_walkthrough.utils import xor_bytes


KEY = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
IV = bytes.fromhex("f0f1f2f3f4f5f6f7f8f9fafbfcfdfeff")


def random_bytes(n: int, rng: random.Random) -> bytes:
    """Generate n random bytes."""
    return bytes(rng.randint(0, 255) for _ in range(n))


class TestEcb:

    def test_deterministic(self) -> None:
        msg = b"The quick brown fox jumps over the lazy dog"
        first = encrypt_message(msg, KEY, Mode.ECB)
        second = encrypt_message(msg, KEY, Mode.ECB)
        assert first.ciphertext == second.ciphertext

    def test_equal_blocks_equal_ciphertext(self) -> None:
        msg = b"A" * 16 * 3
        blocks = encrypt_message(msg, KEY, Mode.ECB, Padding.NONE).blocks
        assert blocks[0] == blocks[1] == blocks[2]

    def test_iv_ignored(self) -> None:
        result = encrypt_message(b"hello", KEY, Mode.ECB, iv=IV)
        assert result.iv is None
        assert result.ciphertext == encrypt_message(b"hello", KEY, Mode.ECB).ciphertext


class TestCbc:

    @pytest.mark.parametrize("changed", [0, 1, 2, 3])
    def test_change_propagates_forward_only(self, changed: int) -> None:
        rng = random.Random(changed)
        msg = bytearray(random_bytes(64, rng))
        before = encrypt_message(bytes(msg), KEY, Mode.CBC, Padding.NONE, iv=IV).blocks

        msg[changed * 16 + 5] ^= 0x01
        after = encrypt_message(bytes(msg), KEY, Mode.CBC, Padding.NONE, iv=IV).blocks

        for i in range(4):
            if i < changed:
                assert before[i] == after[i], f"block {i} should be unchanged"
            else:
                assert before[i] != after[i], f"block {i} should change"

    def test_equal_blocks_differ(self) -> None:
        blocks = encrypt_message(b"A" * 32, KEY, Mode.CBC, Padding.NONE, iv=IV).blocks
        assert blocks[0] != blocks[1]

    def test_first_block_is_ecb_of_iv_xor(self) -> None:
        block = bytes(range(16))
        round_keys = expand_key(KEY)
        cbc = encrypt_blocks([block], round_keys, Mode.CBC, IV)
        ecb = encrypt_blocks([xor_bytes(block, IV)], round_keys, Mode.ECB)
        assert cbc == ecb

    def test_random_iv_generated(self) -> None:
        result = encrypt_message(b"hello", KEY, Mode.CBC)
        assert result.iv is not None and len(result.iv) == 16
        assert decrypt_message(result.ciphertext, KEY, Mode.CBC, iv=result.iv) == b"hello"

    def test_different_iv_different_ciphertext(self) -> None:
        a = encrypt_message(b"hello", KEY, Mode.CBC, iv=bytes(16))
        b = encrypt_message(b"hello", KEY, Mode.CBC, iv=b"\x01" + bytes(15))
        assert a.ciphertext != b.ciphertext


class TestCounter:

    def test_index_zero_is_iv(self) -> None:
        assert counter_block(IV, 0) == IV

    def test_simple_increment(self) -> None:
        assert counter_block(bytes(16), 1) == bytes(15) + b"\x01"
        assert counter_block(bytes(16), 256) == bytes(14) + b"\x01\x00"

    def test_carry_propagates_left(self) -> None:
        iv = bytes(8) + b"\xff" * 8
        assert counter_block(iv, 1) == bytes(7) + b"\x01" + bytes(8)

    def test_carry_from_low_byte(self) -> None:
        assert counter_block(IV, 1).hex() == "f0f1f2f3f4f5f6f7f8f9fafbfcfdff00"

    def test_wraps_at_128_bits(self) -> None:
        assert counter_block(b"\xff" * 16, 1) == bytes(16)
        assert counter_block(b"\xff" * 16, 3) == bytes(15) + b"\x02"

    def test_bad_iv_length(self) -> None:
        with pytest.raises(BlockLengthError, match="IV must be 16 bytes"):
            counter_block(bytes(8), 0)


class TestCtr:

    def test_plaintext_not_passed_through_cipher(self) -> None:
        """C[i] = P[i] ^ E(IV + i)."""
        rng = random.Random(3)
        blocks = [random_bytes(16, rng) for _ in range(3)]
        round_keys = expand_key(KEY)
        out = encrypt_blocks(blocks, round_keys, Mode.CTR, IV)
        for i, (p, c) in enumerate(zip(blocks, out)):
            assert xor_bytes(p, c) == keystream_block(round_keys, IV, i)

    def test_keystream_independent_of_order(self) -> None:
        round_keys = expand_key(KEY)
        forward = [keystream_block(round_keys, IV, i) for i in range(5)]
        backward = [keystream_block(round_keys, IV, i) for i in reversed(range(5))]
        assert forward == list(reversed(backward))

    def test_swapped_blocks_decrypt_block_by_block(self) -> None:
        rng = random.Random(11)
        round_keys = expand_key(KEY)
        blocks = [random_bytes(16, rng) for _ in range(4)]
        cipher = encrypt_blocks(blocks, round_keys, Mode.CTR, IV)

        # Swap blocks 1 and 3; each still decrypts with its own offset
        order = [0, 3, 2, 1]
        for i in order:
            assert xor_bytes(cipher[i], keystream_block(round_keys, IV, i)) == blocks[i]

    def test_change_affects_only_its_block(self) -> None:
        msg = bytearray(range(64))
        before = encrypt_message(bytes(msg), KEY, Mode.CTR, Padding.NONE, iv=IV).blocks
        msg[20] ^= 0xFF
        after = encrypt_message(bytes(msg), KEY, Mode.CTR, Padding.NONE, iv=IV).blocks
        assert [before[i] == after[i] for i in range(4)] == [True, False, True, True]

    def test_decrypt_equals_encrypt(self) -> None:
        round_keys = expand_key(KEY)
        blocks = [bytes(range(16)), bytes(range(16, 32))]
        assert decrypt_blocks(blocks, round_keys, Mode.CTR, IV) == \
            encrypt_blocks(blocks, round_keys, Mode.CTR, IV)


class TestRoundTrip:

    @pytest.mark.parametrize("mode", list(Mode))
    @pytest.mark.parametrize("padding", list(Padding))
    @pytest.mark.parametrize("key_len", [16, 24, 32])
    def test_message_round_trip(self, mode: Mode, padding: Padding, key_len: int) -> None:
        rng = random.Random(key_len)
        key = random_bytes(key_len, rng)
        # Aligned so that zero-fill is lossless
        msg = random_bytes(48, rng)
        result = encrypt_message(msg, key, mode, padding)
        assert decrypt_message(result.ciphertext, key, mode, padding, iv=result.iv) == msg

    def test_str_plaintext_is_utf8(self) -> None:
        text = "Salom, dunyo! салом"
        a = encrypt_message(text, KEY, Mode.CBC, iv=IV)
        b = encrypt_message(text.encode("utf-8"), KEY, Mode.CBC, iv=IV)
        assert a == b

    def test_empty_message(self) -> None:
        result = encrypt_message(b"", KEY, Mode.ECB, Padding.PKCS7)
        assert len(result.ciphertext) == 16
        assert decrypt_message(result.ciphertext, KEY) == b""

    def test_empty_message_no_padding(self) -> None:
        assert encrypt_message(b"", KEY, Mode.ECB, Padding.NONE).ciphertext == b""

    def test_none_padding_keeps_filler_zeros(self) -> None:
        result = encrypt_message(b"abc", KEY, Mode.ECB, Padding.NONE)
        assert len(result.ciphertext) == 16
        assert decrypt_message(result.ciphertext, KEY, Mode.ECB, Padding.NONE) == b"abc" + bytes(13)


class TestErrors:

    @pytest.mark.parametrize("mode", [Mode.CBC, Mode.CTR])
    def test_missing_iv_blocks(self, mode: Mode) -> None:
        recorder = TraceRecorder()
        with pytest.raises(MissingIvError, match=f"{mode.value} mode requires"):
            encrypt_blocks([bytes(16)], expand_key(KEY), mode, None, recorder)
        assert len(recorder) == 0

    @pytest.mark.parametrize("mode", [Mode.CBC, Mode.CTR])
    def test_missing_iv_decrypt(self, mode: Mode) -> None:
        with pytest.raises(MissingIvError):
            decrypt_message(bytes(16), KEY, mode)

    def test_bad_iv_length(self) -> None:
        with pytest.raises(BlockLengthError, match="IV must be 16 bytes"):
            encrypt_message(b"x", KEY, Mode.CBC, iv=bytes(12))

    def test_invalid_key_aborts_before_output(self) -> None:
        recorder = TraceRecorder()
        with pytest.raises(InvalidKeyLengthError):
            encrypt_message(b"hello", bytes(17), Mode.ECB, recorder=recorder)
        assert len(recorder) == 0

    def test_ciphertext_not_block_aligned(self) -> None:
        with pytest.raises(BlockLengthError, match="multiple of 16"):
            decrypt_message(bytes(20), KEY)

    def test_bad_padding_after_decrypt(self) -> None:
        # Last plaintext byte 0x00 is never valid PKCS#7
        result = encrypt_message(bytes(range(1, 16)) + b"\x00", KEY, Mode.ECB, Padding.NONE)
        with pytest.raises(InvalidPaddingError, match="out of range"):
            decrypt_message(result.ciphertext, KEY, Mode.ECB, Padding.PKCS7)

    def test_unknown_mode(self) -> None:
        with pytest.raises(ValueError):
            encrypt_message(b"x", KEY, "OFB")


class TestCipherSession:

    def test_iv_fixed_across_calls(self) -> None:
        session = CipherSession(KEY, Mode.CBC)
        first = session.encrypt(b"hello")
        second = session.encrypt(b"hello")
        assert first.iv == second.iv == session.iv
        assert first.ciphertext == second.ciphertext

    def test_renew_iv(self) -> None:
        session = CipherSession(KEY, Mode.CTR, iv=IV)
        assert session.iv == IV
        new_iv = session.renew_iv()
        assert new_iv == session.iv
        assert len(new_iv) == 16
        explicit = session.renew_iv(bytes(16))
        assert explicit == bytes(16)

    def test_round_trip(self) -> None:
        session = CipherSession(KEY, Mode.CBC, Padding.ANSI_X923)
        result = session.encrypt("session text")
        assert session.decrypt(result.ciphertext) == b"session text"

    def test_ecb_has_no_iv(self) -> None:
        session = CipherSession(KEY, Mode.ECB)
        assert session.iv is None
        assert session.renew_iv() is None

    def test_invalid_key_rejected_at_construction(self) -> None:
        with pytest.raises(InvalidKeyLengthError):
            CipherSession(bytes(5), Mode.CBC)

    def test_repr(self) -> None:
        assert "rounds=10" in repr(CipherSession(KEY))


def test_generate_iv() -> None:
    ivs = {generate_iv() for _ in range(10)}
    assert len(ivs) == 10
    assert all(len(iv) == 16 for iv in ivs)


def test_result_blocks() -> None:
    result = EncryptionResult(ciphertext=bytes(range(32)))
    assert result.blocks == split_blocks(bytes(range(32)))
