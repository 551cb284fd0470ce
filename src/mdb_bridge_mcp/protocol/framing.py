"""MDB frame builder and parser.

Frame layout::

    +--------------------------------+----------+
    |  Control byte + payload        | Checksum |
    |  variable length               | 1 byte   |
    +--------------------------------+----------+

- Checksum: low 8 bits of the sum of every preceding byte
- No start/stop markers, no length prefix, no escaping
"""

from __future__ import annotations

from dataclasses import dataclass

from .checksum import checksum


@dataclass
class Frame:
    """A frame split into its data bytes and trailing checksum."""

    data: bytes
    checksum: int

    @property
    def valid(self) -> bool:
        return checksum(self.data) == self.checksum

    def __repr__(self) -> str:
        return (
            f"Frame(data={self.data.hex(' ') if self.data else '(empty)'}, "
            f"checksum=0x{self.checksum:02X})"
        )


def build_frame(data: bytes) -> bytes:
    """Append the MDB checksum to ``data``.

    Args:
        data: Control byte followed by any payload bytes.

    Returns:
        ``data`` plus one checksum byte.
    """
    data = bytes(data)
    return data + bytes([checksum(data)])


def parse_frame(data: bytes) -> Frame | None:
    """Split a received buffer into data bytes and its trailing checksum.

    The checksum is not verified here; check :attr:`Frame.valid` or use
    :func:`verify_checksum` when the device is known to send one.

    Returns:
        A ``Frame``, or ``None`` if ``data`` is empty.
    """
    if not data:
        return None
    return Frame(data=bytes(data[:-1]), checksum=data[-1])


def verify_checksum(data: bytes) -> bool:
    """Return True if the last byte of ``data`` is the checksum of the rest."""
    frame = parse_frame(data)
    return frame is not None and frame.valid
