"""
Reference AES implementation using PyCryptodome for verification.
"""

from Crypto.Cipher import AES
from Crypto.Util import Padding as _pycrypto_padding

from .modes import EncryptionResult, Mode
from .padding import Padding
from .padding import pad as _zero_fill

# PyCryptodome style names for the length-marking schemes
_STYLES = {
    Padding.PKCS7: "pkcs7",
    Padding.ANSI_X923: "x923",
}


def _cipher(key: bytes, mode: Mode, iv: bytes | None):
    if mode is Mode.ECB:
        return AES.new(key, AES.MODE_ECB)
    if iv is None:
        raise ValueError(f"{mode.value} mode requires a 16-byte IV")
    if mode is Mode.CBC:
        return AES.new(key, AES.MODE_CBC, iv=iv)
    # Whole 128-bit block is the counter, initialised to the IV
    return AES.new(key, AES.MODE_CTR, nonce=b"", initial_value=iv)


def reference_encrypt(
    plaintext: bytes,
    key: bytes,
    mode: Mode | str = Mode.ECB,
    padding: Padding | str = Padding.PKCS7,
    iv: bytes | None = None,
) -> bytes:
    """
    Encrypt a message with PyCryptodome.

    Args:
        plaintext: message bytes
        key: 16, 24 or 32-byte key
        mode: ECB, CBC or CTR
        padding: padding scheme (applied in every mode, CTR included)
        iv: 16-byte IV / initial counter for CBC and CTR

    Returns:
        Ciphertext bytes
    """
    mode = Mode(mode)
    padding = Padding(padding)
    if padding is Padding.NONE:
        data = _zero_fill(plaintext, Padding.NONE)
    else:
        data = _pycrypto_padding.pad(plaintext, AES.block_size, style=_STYLES[padding])
    return _cipher(key, mode, iv).encrypt(data)


def reference_decrypt(
    ciphertext: bytes,
    key: bytes,
    mode: Mode | str = Mode.ECB,
    padding: Padding | str = Padding.PKCS7,
    iv: bytes | None = None,
) -> bytes:
    """Decrypt a message with PyCryptodome and strip its padding."""
    mode = Mode(mode)
    padding = Padding(padding)
    data = _cipher(key, mode, iv).decrypt(ciphertext)
    if padding is Padding.NONE:
        return data
    return _pycrypto_padding.unpad(data, AES.block_size, style=_STYLES[padding])


def verify_message(
    result: EncryptionResult,
    plaintext: bytes,
    key: bytes,
    mode: Mode | str = Mode.ECB,
    padding: Padding | str = Padding.PKCS7,
) -> tuple[bool, str]:
    """
    Validate an engine result against the PyCryptodome reference.

    Returns:
        Tuple of (is_correct, error_detail)
    """
    expected = reference_encrypt(plaintext, key, mode, padding, result.iv)
    if result.ciphertext == expected:
        return True, ""
    return False, (
        f"Ciphertext mismatch: expected {expected.hex()}, "
        f"got {result.ciphertext.hex()}"
    )
