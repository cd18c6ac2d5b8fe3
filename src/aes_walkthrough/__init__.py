"""
AES Walkthrough

AES-128/192/256 engine for step-by-step teaching:
1. Key schedule with per-word intermediates
2. Round transforms with an optional trace of every intermediate state
3. ECB, CBC and CTR modes with PKCS#7, ANSI X.923 or zero padding
"""

__version__ = "1.0.0"

from .errors import (
    AesError,
    BlockLengthError,
    InvalidKeyLengthError,
    InvalidPaddingError,
    MissingIvError,
)
from .key_schedule import expand_key, generate_key, key_schedule_steps, num_rounds
from .round_transform import decrypt_block, encrypt_block
from .padding import Padding, pad, unpad
from .modes import (
    CipherSession,
    EncryptionResult,
    Mode,
    decrypt_message,
    encrypt_message,
)
from .trace import TraceEntry, TraceRecorder

# Known-answer scenario: ECB, PKCS#7 (value confirmed with PyCryptodome)
KAT_PLAINTEXT = "Salom, AES!"
KAT_KEY_HEX = "cc0ec1702424018d4efd5ef38d152f63"
KAT_CT_HEX = "ff979035faef60be72b7e6e062fb01b7"

# FIPS-197 Appendix B
DEFAULT_KEY_HEX = "2b7e151628aed2a6abf7158809cf4f3c"
DEFAULT_PT_HEX = "3243f6a8885a308d313198a2e0370734"
DEFAULT_CT_HEX = "3925841d02dc09fbdc118597196a0b32"

__all__ = [
    "AesError",
    "BlockLengthError",
    "InvalidKeyLengthError",
    "InvalidPaddingError",
    "MissingIvError",
    "expand_key",
    "generate_key",
    "key_schedule_steps",
    "num_rounds",
    "encrypt_block",
    "decrypt_block",
    "Padding",
    "pad",
    "unpad",
    "CipherSession",
    "EncryptionResult",
    "Mode",
    "encrypt_message",
    "decrypt_message",
    "TraceEntry",
    "TraceRecorder",
]
