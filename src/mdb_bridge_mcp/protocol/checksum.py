"""MDB checksum: the low 8 bits of the sum of all bytes."""

from __future__ import annotations


def checksum(data: bytes) -> int:
    """Return the MDB checksum of ``data``.

    An empty input yields 0.
    """
    return sum(data) & 0xFF
