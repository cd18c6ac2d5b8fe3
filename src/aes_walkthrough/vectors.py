"""Known-answer vectors: FIPS-197 Appendix C and NIST SP 800-38A."""

# FIPS-197 Appendix C, one per key size
FIPS_197_TEST_VECTORS = [
    # C.1 - AES-128
    {
        "key": bytes.fromhex("000102030405060708090a0b0c0d0e0f"),
        "plaintext": bytes.fromhex("00112233445566778899aabbccddeeff"),
        "ciphertext": bytes.fromhex("69c4e0d86a7b0430d8cdb78070b4c55a"),
    },
    # C.2 - AES-192
    {
        "key": bytes.fromhex("000102030405060708090a0b0c0d0e0f1011121314151617"),
        "plaintext": bytes.fromhex("00112233445566778899aabbccddeeff"),
        "ciphertext": bytes.fromhex("dda97ca4864cdfe06eaf70a0ec0d7191"),
    },
    # C.3 - AES-256
    {
        "key": bytes.fromhex(
            "000102030405060708090a0b0c0d0e0f101112131415161718191a1b1c1d1e1f"
        ),
        "plaintext": bytes.fromhex("00112233445566778899aabbccddeeff"),
        "ciphertext": bytes.fromhex("8ea2b7ca516745bfeafc49904b496089"),
    },
    # Appendix B - AES-128
    {
        "key": bytes.fromhex("2b7e151628aed2a6abf7158809cf4f3c"),
        "plaintext": bytes.fromhex("3243f6a8885a308d313198a2e0370734"),
        "ciphertext": bytes.fromhex("3925841d02dc09fbdc118597196a0b32"),
    },
]

# SP 800-38A F.1.1 / F.2.1 / F.5.1 (AES-128), first two blocks
SP800_38A_KEY = bytes.fromhex("2b7e151628aed2a6abf7158809cf4f3c")
SP800_38A_PLAINTEXT = bytes.fromhex(
    "6bc1bee22e409f96e93d7e117393172a"
    "ae2d8a571e03ac9c9eb76fac45af8e51"
)
SP800_38A_VECTORS = {
    "ECB": {
        "iv": None,
        "ciphertext": bytes.fromhex(
            "3ad77bb40d7a3660a89ecaf32466ef97"
            "f5d3d58503b9699de785895a96fdbaaf"
        ),
    },
    "CBC": {
        "iv": bytes.fromhex("000102030405060708090a0b0c0d0e0f"),
        "ciphertext": bytes.fromhex(
            "7649abac8119b246cee98e9b12e9197d"
            "5086cb9b507219ee95db113a917678b2"
        ),
    },
    "CTR": {
        "iv": bytes.fromhex("f0f1f2f3f4f5f6f7f8f9fafbfcfdfeff"),
        "ciphertext": bytes.fromhex(
            "874d6191b620e3261bef6864990db6ce"
            "9806f66b7970fdff8617187bb9fffdff"
        ),
    },
}
