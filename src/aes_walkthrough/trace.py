"""
Trace recording for AES operations.

Contains:
- TraceEntry: one immutable intermediate state
- TraceRecorder: in-memory log + JSON Lines file + simple verbose stdout

The engine only ever calls ``record``; any object with a compatible
``record`` method can be passed instead of a TraceRecorder.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterator, TextIO

from .utils import format_state_line


# Labels emitted by the round transform and mode layer
PLAINTEXT = "Plaintext"
CIPHERTEXT = "Ciphertext"
IV_XOR = "IV XOR"
CHAIN_XOR = "Chain XOR"
COUNTER = "Counter"
ADD_ROUND_KEY = "AddRoundKey"
SUB_BYTES = "SubBytes"
SHIFT_ROWS = "ShiftRows"
MIX_COLUMNS = "MixColumns"
INV_SUB_BYTES = "InvSubBytes"
INV_SHIFT_ROWS = "InvShiftRows"
INV_MIX_COLUMNS = "InvMixColumns"
COUNTER_XOR = "Counter XOR"
OUTPUT = "Output"


@dataclass(frozen=True)
class TraceEntry:
    """A named intermediate state, in the order it was produced."""

    label: str
    state: bytes
    previous_state: bytes | None = None
    round_key: bytes | None = None
    block: int | None = None
    round: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "block": self.block,
            "round": self.round,
            "state": self.state.hex(),
            "previous_state": None if self.previous_state is None else self.previous_state.hex(),
            "round_key": None if self.round_key is None else self.round_key.hex(),
        }


class TraceRecorder:
    """
    Records and outputs traces of AES execution.

    Supports:
    - in-memory entries  (always)
    - JSON Lines output  (when trace_file is set)
    - verbose stdout     (one line per entry)
    """

    def __init__(self, verbose: bool = False, trace_file: TextIO | None = None):
        self.verbose = verbose
        self.trace_file = trace_file
        self._entries: list[TraceEntry] = []

    def record(
        self,
        label: str,
        state: bytes,
        previous_state: bytes | None = None,
        round_key: bytes | None = None,
        block: int | None = None,
        round: int | None = None,
    ) -> None:
        """Record a trace entry."""
        entry = TraceEntry(
            label=label,
            state=bytes(state),
            previous_state=None if previous_state is None else bytes(previous_state),
            round_key=None if round_key is None else bytes(round_key),
            block=block,
            round=round,
        )
        self._entries.append(entry)

        if self.trace_file:
            self.trace_file.write(json.dumps(entry.to_dict()) + "\n")
            self.trace_file.flush()

        if self.verbose:
            self._print_verbose(entry)

    def _print_verbose(self, entry: TraceEntry) -> None:
        blk = "B--" if entry.block is None else f"B{entry.block:02d}"
        rnd = "R--" if entry.round is None else f"R{entry.round:02d}"
        line = f"{blk} {rnd}  {entry.label:14s} STATE:{format_state_line(entry.state)}"
        if entry.round_key is not None:
            line += f"  KEY:{entry.round_key.hex()}"
        print(line)

    @property
    def entries(self) -> list[TraceEntry]:
        return list(self._entries)

    def labels(self) -> list[str]:
        return [e.label for e in self._entries]

    def for_block(self, block: int) -> list[TraceEntry]:
        """Entries belonging to one block, in order."""
        return [e for e in self._entries if e.block == block]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TraceEntry]:
        return iter(list(self._entries))


# ------------------------------------------------------------------
# Shared formatting functions
# ------------------------------------------------------------------

def print_header(title: str) -> None:
    """Print a section header."""
    print(f"\n{'#'*70}")
    print(f"# {title}")
    print(f"{'#'*70}")
