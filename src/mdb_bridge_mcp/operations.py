"""The operations exposed to callers: reset, command, raw send, daemon command.

Each operation opens its own serial port or daemon connection, uses it
exclusively, and releases it before returning.  Nothing is cached between
calls, so callers must not run two operations against the same port at the
same time.
"""

from __future__ import annotations

import logging
import time

from .config import DEFAULT_READ_TIMEOUT_MS, TEXT_COMMAND_READ_TIMEOUT_MS
from .exceptions import ChecksumError
from .models.port_config import port_config_for
from .protocol.commands import (
    Command,
    Opcode,
    format_hex,
    is_cashless_reset,
    parse_command_text,
    parse_hex,
)
from .protocol.framing import verify_checksum
from .protocol.handshake import (
    HandshakeEngine,
    HandshakeOutcome,
    OutcomeKind,
    collect_response,
)
from .transport.daemon_bridge import BridgeConfig, BridgeReply, DaemonBridge
from .transport.serial_transport import SerialTransport

logger = logging.getLogger(__name__)

ACK_RECEIVED = "ACK received"
NO_ACK_RECEIVED = "No ACK received"


def handshake(
    command: Command,
    port: str,
    *,
    profile: str | None = None,
    abort_on_nak: bool = False,
    transport_factory=SerialTransport,
    sleep=time.sleep,
) -> HandshakeOutcome:
    """Send ``command`` and wait for an ACK, retrying a bounded number of times.

    Raises:
        PortOpenError: If the port cannot be opened.
        WriteError, ReadError: If the link fails mid-handshake.
    """
    config = port_config_for(port, profile)
    logger.debug("Handshake %r on %s", command, port)
    with transport_factory(config) as transport:
        engine = HandshakeEngine(transport, abort_on_nak=abort_on_nak, sleep=sleep)
        outcome = engine.run(command.to_bytes())

    if outcome.kind is OutcomeKind.TRANSPORT_ERROR:
        raise outcome.error
    return outcome


def reset(address: int, port: str, **kwargs) -> bool:
    """Send RESET to the peripheral at ``address``.

    Returns:
        True if the peripheral ACKed within the retry budget.
    """
    outcome = handshake(Command(address, Opcode.RESET), port, **kwargs)
    return outcome.acknowledged


def command(command_text: str, port: str, address: int, **kwargs) -> str:
    """Send a named command (``poll``, ``vend 00 01``, ``0x04``...) and await its ACK.

    Returns:
        ``"ACK received"`` or ``"No ACK received"``.
    """
    opcode, payload = parse_command_text(command_text)
    outcome = handshake(Command(address, opcode, payload), port, **kwargs)
    return ACK_RECEIVED if outcome.acknowledged else NO_ACK_RECEIVED


def _send(
    port: str,
    data: bytes,
    read_timeout_ms: int | None,
    expected_len: int | None,
    append_checksum: bool,
    profile: str | None,
    transport_factory,
) -> bytes:
    timeout = DEFAULT_READ_TIMEOUT_MS if read_timeout_ms is None else read_timeout_ms
    config = port_config_for(port, profile, timeout)
    with transport_factory(config) as transport:
        return collect_response(
            transport,
            bytes(data),
            expected_len=expected_len,
            append_checksum=append_checksum,
        )


def send_raw(
    port: str,
    data: bytes,
    read_timeout_ms: int | None = None,
    expected_len: int | None = None,
    *,
    verify: bool = False,
    profile: str | None = None,
    transport_factory=SerialTransport,
) -> bytes:
    """Send ``data`` with the MDB checksum appended and return the reply bytes.

    Args:
        port: Serial device path.
        data: Frame bytes without checksum.
        read_timeout_ms: Idle timeout that ends the read (default 200 ms).
        expected_len: Stop reading once this many bytes have arrived.
        verify: Reject a reply whose last byte is not its checksum.

    Raises:
        ChecksumError: If ``verify`` is set and the reply fails the check.
    """
    response = _send(
        port, data, read_timeout_ms, expected_len, True, profile, transport_factory
    )
    if verify and response and not verify_checksum(response):
        raise ChecksumError(port, response)
    return response


def send_unframed(
    port: str,
    data: bytes,
    read_timeout_ms: int | None = None,
    expected_len: int | None = None,
    *,
    profile: str | None = None,
    transport_factory=SerialTransport,
) -> bytes:
    """Send ``data`` exactly as given (no checksum) and return the reply bytes."""
    return _send(
        port, data, read_timeout_ms, expected_len, False, profile, transport_factory
    )


def bridge_send(text: str, config: BridgeConfig | None = None) -> BridgeReply:
    """Forward a text command to the MDB daemon and return its reply lines."""
    return DaemonBridge(config).send(text)


def bridge_command(text: str, config: BridgeConfig | None = None) -> str:
    """Forward a text command to the MDB daemon and return its JSON reply text."""
    return bridge_send(text, config).text


def run_command_text(
    text: str,
    port: str,
    address: int,
    *,
    profile: str | None = None,
    transport_factory=SerialTransport,
    sleep=time.sleep,
) -> str:
    """Interpret free-form input: ``cashlessreset(N)`` or hex bytes.

    A cashless reset runs the ACK handshake and returns ``"true"`` or
    ``"false"``.  Anything else is parsed as hex, sent as a checksummed
    frame, and the reply is returned as spaced hex.

    Raises:
        ValueError: For an invalid address or malformed hex.
    """
    if is_cashless_reset(text):
        ok = reset(
            address,
            port,
            profile=profile,
            transport_factory=transport_factory,
            sleep=sleep,
        )
        return "true" if ok else "false"

    data = parse_hex(text)
    response = send_raw(
        port,
        data,
        read_timeout_ms=TEXT_COMMAND_READ_TIMEOUT_MS,
        profile=profile,
        transport_factory=transport_factory,
    )
    return format_hex(response)
