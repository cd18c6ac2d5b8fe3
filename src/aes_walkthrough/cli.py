"""Command-line interface for the AES walkthrough engine.

Usage:
    aes-walkthrough encrypt "Salom, AES!" --key cc0ec1702424018d4efd5ef38d152f63 --verify
    aes-walkthrough encrypt "hello" --mode CBC --iv 000102030405060708090a0b0c0d0e0f --verbose
    aes-walkthrough encrypt "hello" --key-length 256      (random key, printed)
    aes-walkthrough decrypt <hex> --key <hex> --mode CBC --iv <hex>
    aes-walkthrough keys --key 2b7e151628aed2a6abf7158809cf4f3c --steps
    aes-walkthrough selftest --n 50 --seed 1
"""

from __future__ import annotations

import logging
import random
import secrets
import sys
from typing import TextIO

import click

from . import KAT_CT_HEX, KAT_KEY_HEX, KAT_PLAINTEXT, __version__
from .config import EncryptionConfig
from .errors import AesError
from .key_schedule import expand_key, generate_key, key_schedule_steps
from .modes import Mode, decrypt_message, encrypt_message
from .padding import Padding
from .reference import reference_decrypt, verify_message
from .round_transform import encrypt_block
from .trace import TraceRecorder, print_header
from .utils import (
    OutputFormat,
    bytes_to_hex,
    format_bytes,
    format_state_grid,
    hex_to_bytes,
    normalize_key,
    parse_bytes,
)
from .vectors import FIPS_197_TEST_VECTORS, SP800_38A_KEY, SP800_38A_PLAINTEXT, SP800_38A_VECTORS


def _common_options(func):
    """Options shared by 'encrypt' and 'decrypt'."""
    options = [
        click.option("--key", "key_text", default=None,
                     help="Key as hex (spaces allowed) or text; fitted to --key-length"),
        click.option("--key-length", "key_bits", type=click.Choice(["128", "192", "256"]),
                     default="128", show_default=True, help="Key size in bits"),
        click.option("--mode", type=click.Choice([m.value for m in Mode], case_sensitive=False),
                     default="ECB", show_default=True, help="Block mode"),
        click.option("--padding", type=click.Choice([p.value for p in Padding], case_sensitive=False),
                     default="pkcs7", show_default=True, help="Padding scheme"),
        click.option("--iv", "iv_hex", default=None,
                     help="IV / initial counter as 32 hex chars (CBC, CTR)"),
        click.option("--format", "fmt", type=click.Choice([f.value for f in OutputFormat]),
                     default="hex", show_default=True, help="Ciphertext text format"),
        click.option("--verbose", "-v", is_flag=True, help="Print every intermediate state"),
        click.option("--trace", "trace_file", type=click.File("w", encoding="utf-8", lazy=True),
                     default=None, help="Write a JSON Lines trace to FILE"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _fail(message: str) -> None:
    click.echo(f"Error: {message}", err=True)
    sys.exit(1)


def _parse_iv(iv_hex: str | None) -> bytes | None:
    if iv_hex is None:
        return None
    try:
        iv = hex_to_bytes(iv_hex)
    except ValueError as e:
        _fail(f"Invalid IV hex: {e}")
    if len(iv) != 16:
        _fail(f"IV must be 32 hex chars (16 bytes), got {len(iv)} bytes")
    return iv


def _setup_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")


@click.group()
@click.version_option(version=__version__, prog_name="aes-walkthrough")
def main() -> None:
    """AES step-by-step engine.

    Encrypt and decrypt with AES-128/192/256 in ECB, CBC or CTR mode and
    inspect every intermediate state.
    """
    pass


@main.command()
@click.argument("plaintext")
@_common_options
@click.option("--verify", is_flag=True, help="Cross-check against PyCryptodome")
def encrypt(
    plaintext: str,
    key_text: str | None,
    key_bits: str,
    mode: str,
    padding: str,
    iv_hex: str | None,
    fmt: str,
    verbose: bool,
    trace_file: TextIO | None,
    verify: bool,
) -> None:
    """Encrypt PLAINTEXT (UTF-8 text).

    Without --key a random key of --key-length bits is drawn and printed.
    """
    _setup_logging(verbose)
    config = EncryptionConfig(mode=mode, padding=padding, key_bits=int(key_bits),
                              output_format=fmt)
    if key_text is None:
        key = generate_key(config.key_bits)
    else:
        key = normalize_key(key_text, config.key_bits)
    iv = _parse_iv(iv_hex)

    recorder = TraceRecorder(verbose=verbose, trace_file=trace_file)
    if verbose:
        print_header(f"AES-{config.key_bits} {config.mode.value} encryption")
    try:
        result = encrypt_message(plaintext, key, config.mode, config.padding,
                                 iv=iv, recorder=recorder)
    except AesError as e:
        _fail(str(e))

    click.echo(f"Key:        {bytes_to_hex(key)}")
    if result.iv is not None:
        click.echo(f"IV:         {bytes_to_hex(result.iv)}")
    click.echo(f"Ciphertext: {format_bytes(result.ciphertext, config.output_format)}")

    if verify:
        ok, detail = verify_message(result, plaintext.encode("utf-8"), key,
                                    config.mode, config.padding)
        if ok:
            click.echo("Verification: [OK] PASS")
        else:
            click.echo(f"Verification: [ERROR] FAIL - {detail}")
            sys.exit(1)


@main.command()
@click.argument("ciphertext")
@_common_options
@click.option("--verify", is_flag=True, help="Cross-check against PyCryptodome")
def decrypt(
    ciphertext: str,
    key_text: str | None,
    key_bits: str,
    mode: str,
    padding: str,
    iv_hex: str | None,
    fmt: str,
    verbose: bool,
    trace_file: TextIO | None,
    verify: bool,
) -> None:
    """Decrypt CIPHERTEXT given in --format."""
    _setup_logging(verbose)
    config = EncryptionConfig(mode=mode, padding=padding, key_bits=int(key_bits),
                              output_format=fmt)
    if key_text is None:
        _fail("decrypt requires --key")
    key = normalize_key(key_text, config.key_bits)
    iv = _parse_iv(iv_hex)

    try:
        data = parse_bytes(ciphertext, config.output_format)
    except ValueError as e:
        _fail(f"Invalid ciphertext: {e}")

    recorder = TraceRecorder(verbose=verbose, trace_file=trace_file)
    if verbose:
        print_header(f"AES-{config.key_bits} {config.mode.value} decryption")
    try:
        plain = decrypt_message(data, key, config.mode, config.padding,
                                iv=iv, recorder=recorder)
    except AesError as e:
        _fail(str(e))

    click.echo(f"Plaintext (hex):  {bytes_to_hex(plain)}")
    click.echo(f"Plaintext (text): {plain.decode('utf-8', errors='replace')}")

    if verify:
        expected = reference_decrypt(data, key, config.mode, config.padding, iv)
        if expected == plain:
            click.echo("Verification: [OK] PASS")
        else:
            click.echo(f"Verification: [ERROR] FAIL - expected {bytes_to_hex(expected)}")
            sys.exit(1)


@main.command()
@click.option("--key", "key_text", required=True, help="Key as hex or text")
@click.option("--key-length", "key_bits", type=click.Choice(["128", "192", "256"]),
              default="128", show_default=True)
@click.option("--steps", is_flag=True, help="Show RotWord/SubWord/Rcon per derived word")
@click.option("--grid", is_flag=True, help="Show each round key as a 4x4 matrix")
def keys(key_text: str, key_bits: str, steps: bool, grid: bool) -> None:
    """Print the expanded round keys."""
    key = normalize_key(key_text, int(key_bits))
    round_keys = expand_key(key)

    for r, rk in enumerate(round_keys):
        click.echo(f"Round {r:2d}: {bytes_to_hex(rk)}")
        if grid:
            click.echo(format_state_grid(rk))

    if steps:
        click.echo("")
        for step in key_schedule_steps(key):
            line = f"w[{step.index:2d}] prev={step.previous.hex()}"
            if step.rotated is not None:
                line += f" rot={step.rotated.hex()}"
            if step.substituted is not None:
                line += f" sub={step.substituted.hex()}"
            if step.rcon is not None:
                line += f" rcon={step.rcon:02x}"
            line += f" ^ w[{step.index - len(key) // 4:2d}]={step.word_nk_back.hex()}"
            line += f" -> {step.result.hex()}"
            click.echo(line)


@main.command()
@click.option("--n", "num_tests", type=int, default=100, show_default=True,
              help="Number of random round-trip tests")
@click.option("--seed", type=int, default=None, help="Random seed for reproducibility")
@click.option("--verbose", "-v", is_flag=True, help="Show detailed output")
def selftest(num_tests: int, seed: int | None, verbose: bool) -> None:
    """Validate the engine against known answers and PyCryptodome."""
    failures = 0

    click.echo("Running FIPS-197 KAT tests...")
    for i, vec in enumerate(FIPS_197_TEST_VECTORS):
        ct = encrypt_block(vec["plaintext"], expand_key(vec["key"]))
        if ct == vec["ciphertext"]:
            if verbose:
                click.echo(f"  FIPS test {i+1} (AES-{len(vec['key']) * 8}): PASS")
        else:
            failures += 1
            click.echo(f"  FIPS test {i+1}: FAIL - got {ct.hex()}")

    click.echo("Running SP 800-38A mode tests...")
    for mode_name, vec in SP800_38A_VECTORS.items():
        result = encrypt_message(SP800_38A_PLAINTEXT, SP800_38A_KEY, mode_name,
                                 Padding.NONE, iv=vec["iv"])
        if result.ciphertext == vec["ciphertext"]:
            if verbose:
                click.echo(f"  {mode_name}: PASS")
        else:
            failures += 1
            click.echo(f"  {mode_name}: FAIL - got {result.ciphertext.hex()}")

    result = encrypt_message(KAT_PLAINTEXT, hex_to_bytes(KAT_KEY_HEX), Mode.ECB, Padding.PKCS7)
    if result.ciphertext.hex() == KAT_CT_HEX:
        click.echo("Known answer: PASS")
    else:
        failures += 1
        click.echo(f"Known answer: FAIL - got {result.ciphertext.hex()}")

    click.echo(f"\nRunning {num_tests} random tests...")
    if seed is not None:
        rng = random.Random(seed)
        random_bytes = lambda n: bytes(rng.randint(0, 255) for _ in range(n))
        choose = rng.choice
    else:
        random_bytes = secrets.token_bytes
        choose = secrets.choice

    random_passed = 0
    for i in range(num_tests):
        key = random_bytes(choose((16, 24, 32)))
        mode = choose(list(Mode))
        padding = choose([Padding.PKCS7, Padding.ANSI_X923])
        message = random_bytes(choose(range(0, 65)))
        iv = random_bytes(16) if mode.needs_iv else None

        result = encrypt_message(message, key, mode, padding, iv=iv)
        ok, detail = verify_message(result, message, key, mode, padding)
        if ok and decrypt_message(result.ciphertext, key, mode, padding, iv) == message:
            random_passed += 1
        else:
            failures += 1
            if verbose:
                click.echo(f"  Random test {i+1} ({mode.value}): FAIL {detail}")

    click.echo(f"Random tests: {random_passed}/{num_tests} passed")

    click.echo("")
    if failures == 0:
        click.echo("SELFTEST PASSED")
        sys.exit(0)
    click.echo(f"SELFTEST FAILED: {failures} failures")
    sys.exit(1)


if __name__ == "__main__":
    main()
