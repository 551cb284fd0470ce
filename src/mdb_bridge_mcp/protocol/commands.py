"""MDB opcodes, control-byte composition and command text parsing.

The control byte sent on the bus combines the peripheral address (upper
nibble) with the opcode (lower nibble)::

    control = (address & 0xF0) | opcode
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import IntEnum

from .framing import build_frame


class Opcode(IntEnum):
    """Cashless device command opcodes."""

    RESET = 0x00
    SETUP = 0x01
    POLL = 0x02
    VEND = 0x03
    READER = 0x04
    REVALUE = 0x05
    EXPANSION = 0x07


class Address(IntEnum):
    """Peripheral base addresses."""

    BILL_VALIDATOR = 0x30
    CASHLESS_1 = 0x10
    CASHLESS_2 = 0x60


# Mapping from command words to opcodes
OPCODE_NAMES: dict[str, Opcode] = {
    "reset": Opcode.RESET,
    "cashlessreset": Opcode.RESET,
    "cashless_reset": Opcode.RESET,
    "setup": Opcode.SETUP,
    "poll": Opcode.POLL,
    "vend": Opcode.VEND,
    "reader": Opcode.READER,
    "revalue": Opcode.REVALUE,
    "expansion": Opcode.EXPANSION,
}

# `cashlessreset`, `cashless_reset`, `CashlessReset(1)`
CASHLESS_RESET_RE = re.compile(r"^cashless_?reset(?:\s*\(\s*(\d+)\s*\))?$", re.IGNORECASE)

_HEX_RE = re.compile(r"^[0-9a-fA-F]+$")


@dataclass(frozen=True)
class Command:
    """A single addressed MDB command."""

    address: int
    opcode: int
    payload: bytes = b""

    def __post_init__(self) -> None:
        if not 0 <= self.address <= 0xFF:
            raise ValueError(f"Address must be 0-255, got {self.address}")
        if not 0 <= self.opcode <= 0x0F:
            raise ValueError(f"Opcode must be 0-15, got {self.opcode}")

    @property
    def control_byte(self) -> int:
        return control_byte(self.address, self.opcode)

    def to_bytes(self) -> bytes:
        """Wire bytes: the bare control byte, or a checksummed frame with payload."""
        if not self.payload:
            return bytes([self.control_byte])
        return build_frame(bytes([self.control_byte]) + self.payload)

    def __repr__(self) -> str:
        return (
            f"Command(address=0x{self.address:02X}, opcode=0x{self.opcode:X}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


def control_byte(address: int, opcode: int) -> int:
    """Combine the address nibble of ``address`` with ``opcode``."""
    if not 0 <= address <= 0xFF:
        raise ValueError(f"Address must be 0-255, got {address}")
    if not 0 <= opcode <= 0x0F:
        raise ValueError(f"Opcode must be 0-15, got {opcode}")
    return (address & 0xF0) | opcode


def build_command(address: int, opcode: int, payload: bytes = b"") -> bytes:
    """Build the wire bytes for a command."""
    return Command(address, opcode, bytes(payload)).to_bytes()


def build_reset(address: int) -> bytes:
    """Build a RESET control byte for the peripheral at ``address``."""
    return build_command(address, Opcode.RESET)


def is_cashless_reset(text: str) -> bool:
    """Return True for the ``cashlessreset(N)`` command form."""
    return CASHLESS_RESET_RE.match(text.strip()) is not None


def parse_hex(text: str) -> bytes:
    """Parse hex text such as ``"0A FF"`` or ``"0x0a 0xff"`` into bytes.

    Whitespace and ``0x`` prefixes are ignored; an odd number of digits is
    left-padded with a zero.

    Raises:
        ValueError: If the text is empty or contains non-hex characters.
    """
    cleaned = re.sub(r"\s+", "", re.sub(r"0x", "", text, flags=re.IGNORECASE))
    if not cleaned:
        raise ValueError("Enter a hex byte (e.g. '00' or '0A FF')")
    if not _HEX_RE.match(cleaned):
        raise ValueError("Invalid hex (use 0-9, A-F, spaces allowed)")
    if len(cleaned) % 2:
        cleaned = "0" + cleaned
    return bytes.fromhex(cleaned)


def format_hex(data: bytes) -> str:
    """Format bytes as upper-case, space separated hex."""
    return data.hex(" ").upper()


def parse_opcode(word: str) -> int:
    """Resolve a command word or numeric opcode (``poll``, ``0x02``, ``2``)."""
    key = word.strip().lower()
    if key in OPCODE_NAMES:
        return OPCODE_NAMES[key]
    try:
        value = int(key, 16) if key.startswith("0x") else int(key)
    except ValueError:
        raise ValueError(
            f"Unknown command '{word}'. Valid: {list(OPCODE_NAMES)} or an opcode 0-15"
        ) from None
    if not 0 <= value <= 0x0F:
        raise ValueError(f"Opcode must be 0-15, got {value}")
    return value


def parse_command_text(text: str) -> tuple[int, bytes]:
    """Parse command text into an opcode and payload.

    Accepted forms::

        reset
        CashlessReset(1)
        poll
        0x04
        vend 00 01 00 0A

    The number in ``cashlessreset(N)`` is accepted for compatibility and
    ignored; the bus address is passed separately.

    Returns:
        ``(opcode, payload)``.

    Raises:
        ValueError: If the command word or payload is invalid.
    """
    cmd = text.strip()
    if not cmd:
        raise ValueError("Command text must not be empty")
    if is_cashless_reset(cmd):
        return Opcode.RESET, b""

    word, *rest = cmd.split(None, 1)
    opcode = parse_opcode(word)
    payload = parse_hex(rest[0]) if rest else b""
    return opcode, payload
