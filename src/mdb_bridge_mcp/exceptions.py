"""Exception types raised by the serial transport and the daemon bridge.

Expected protocol outcomes (no ACK, timeout while waiting for an ACK) are
not exceptions; see :class:`~mdb_bridge_mcp.protocol.handshake.HandshakeOutcome`.
"""

from __future__ import annotations


class MDBError(Exception):
    """Base class for all MDB bridge errors."""


class PortOpenError(MDBError):
    """The serial port is missing, busy, or rejects the requested settings."""

    def __init__(self, port: str, cause: BaseException) -> None:
        self.port = port
        self.cause = cause
        super().__init__(f"Failed to open port {port}: {cause}")


class WriteError(MDBError):
    """An I/O failure occurred while writing to the serial port."""

    def __init__(self, port: str, cause: BaseException | str) -> None:
        self.port = port
        self.cause = cause
        super().__init__(f"Write failed on {port}: {cause}")


class ReadError(MDBError):
    """An I/O failure (not a timeout) occurred while reading the serial port."""

    def __init__(self, port: str, cause: BaseException | str) -> None:
        self.port = port
        self.cause = cause
        super().__init__(f"Read error on {port}: {cause}")


class ChecksumError(MDBError):
    """A received frame's trailing byte does not match its checksum."""

    def __init__(self, port: str, data: bytes) -> None:
        self.port = port
        self.data = data
        super().__init__(
            f"Checksum mismatch in response from {port}: {data.hex(' ').upper() or '(empty)'}"
        )


class BridgeError(MDBError):
    """Base class for daemon bridge failures."""


class BridgeConnectError(BridgeError):
    """The MDB daemon could not be reached."""

    def __init__(self, address: str, cause: BaseException) -> None:
        self.address = address
        self.cause = cause
        super().__init__(
            f"Cannot connect to MDB daemon at {address}. "
            f"Is the Python daemon running? Error: {cause}"
        )


class NoResponseError(BridgeError):
    """The daemon accepted the command but sent nothing back."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"No response from MDB daemon at {address} (timeout)")
