"""Word codec — raw program bytes ⇄ little-endian 16-bit words."""
from __future__ import annotations

import struct
from typing import Iterable, List


def words_from_bytes(data: bytes) -> List[int]:
    """Decode ``(low, high)`` byte pairs into words.

    A trailing unpaired byte is dropped; nothing else is validated.
    """
    count = len(data) // 2
    return list(struct.unpack_from(f"<{count}H", data, 0))


def bytes_from_words(words: Iterable[int]) -> bytes:
    words = list(words)
    return struct.pack(f"<{len(words)}H", *words)
