"""Configuration for an encryption run."""

from __future__ import annotations

from dataclasses import dataclass

from .modes import Mode
from .padding import Padding
from .utils import OutputFormat


@dataclass
class EncryptionConfig:
    """Options shared by the library front end and the CLI.

    String values are accepted and coerced to the matching enum.
    """

    mode: Mode = Mode.ECB
    padding: Padding = Padding.PKCS7

    # Key size in bits: 128, 192 or 256
    key_bits: int = 128

    # Rendering of ciphertext text output
    output_format: OutputFormat = OutputFormat.HEX

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        try:
            self.mode = Mode(self.mode.upper() if isinstance(self.mode, str) else self.mode)
        except ValueError:
            raise ValueError(f"mode must be ECB, CBC or CTR, got {self.mode!r}") from None
        try:
            self.padding = Padding(self.padding.lower() if isinstance(self.padding, str) else self.padding)
        except ValueError:
            raise ValueError(f"Unknown padding: {self.padding!r}") from None
        try:
            self.output_format = OutputFormat(
                self.output_format.lower() if isinstance(self.output_format, str) else self.output_format
            )
        except ValueError:
            raise ValueError(f"Unknown output_format: {self.output_format!r}") from None
        if self.key_bits not in (128, 192, 256):
            raise ValueError(f"key_bits must be 128, 192 or 256, got {self.key_bits}")

    @property
    def key_bytes(self) -> int:
        return self.key_bits // 8

    @property
    def rounds(self) -> int:
        """Number of cipher rounds (10, 12 or 14)."""
        return {128: 10, 192: 12, 256: 14}[self.key_bits]

    @property
    def needs_iv(self) -> bool:
        return self.mode.needs_iv
