"""Protocol layer: checksum, framing, command builders, and the ACK handshake."""

from .checksum import checksum
from .framing import Frame, build_frame, parse_frame, verify_checksum
from .commands import Command, Opcode, build_command, control_byte
from .handshake import HandshakeEngine, HandshakeOutcome, OutcomeKind, collect_response
