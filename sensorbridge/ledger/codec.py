"""Cleartext tuple encoding used by decryption callbacks.

Values travel as consecutive 32-byte big-endian unsigned words.
"""

from __future__ import annotations

from typing import Sequence

from .errors import MalformedCleartext

WORD_SIZE = 32


def encode_cleartexts(values: Sequence[int]) -> bytes:
    """Pack non-negative integers into 32-byte words."""
    out = bytearray()
    for v in values:
        if v < 0:
            raise ValueError(f"cleartext must be non-negative: {v}")
        out += int(v).to_bytes(WORD_SIZE, "big")
    return bytes(out)


def decode_cleartexts(blob: bytes, count: int = 2) -> tuple[int, ...]:
    """Unpack exactly ``count`` words; anything else is malformed."""
    if len(blob) != WORD_SIZE * count:
        raise MalformedCleartext(
            f"expected {WORD_SIZE * count} bytes, got {len(blob)}",
            length=len(blob),
        )
    return tuple(
        int.from_bytes(blob[i * WORD_SIZE:(i + 1) * WORD_SIZE], "big")
        for i in range(count)
    )


__all__ = ["WORD_SIZE", "decode_cleartexts", "encode_cleartexts"]
