"""TCP client for the MDB daemon.

The daemon speaks a line protocol: one text command per line in, one or
more JSON lines back.  Every call opens a fresh connection, sends the
command, and collects reply lines until the daemon closes the socket or
goes quiet for the read timeout.
"""

from __future__ import annotations

import json
import logging
import socket
from dataclasses import dataclass, field
from typing import Any

from ..config import DAEMON_HOST, DAEMON_PORT, DAEMON_TIMEOUT_MS
from ..exceptions import BridgeConnectError, BridgeError, NoResponseError

logger = logging.getLogger(__name__)

RECV_SIZE = 4096


@dataclass(frozen=True)
class BridgeConfig:
    """Daemon endpoint and symmetric socket timeout (seconds)."""

    host: str = "127.0.0.1"
    port: int = 5127
    timeout: float = 1.0

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @classmethod
    def from_env(cls) -> BridgeConfig:
        """Build the config from ``MDB_DAEMON_HOST``/``_PORT``/``_TIMEOUT_MS``."""
        return cls(host=DAEMON_HOST, port=DAEMON_PORT, timeout=DAEMON_TIMEOUT_MS / 1000)


@dataclass
class BridgeReply:
    """Reply lines from the daemon, in the order received."""

    lines: list[str] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def decoded(self) -> list[Any]:
        """Decode each line as JSON, keeping undecodable lines as plain text."""
        result: list[Any] = []
        for line in self.lines:
            try:
                result.append(json.loads(line))
            except ValueError:
                result.append(line)
        return result

    def __str__(self) -> str:
        return self.text


class DaemonBridge:
    """Sends text commands to the MDB daemon and returns its reply.

    Usage::

        bridge = DaemonBridge(BridgeConfig.from_env())
        reply = bridge.send("CashlessReset(1)")
        print(reply.text)
    """

    def __init__(self, config: BridgeConfig | None = None) -> None:
        self._config = config or BridgeConfig.from_env()

    @property
    def config(self) -> BridgeConfig:
        return self._config

    def send(self, command: str) -> BridgeReply:
        """Send one command and collect the reply lines.

        Args:
            command: Command text; surrounding whitespace is stripped and a
                single newline is appended.

        Returns:
            The reply lines received before end-of-stream or read timeout.

        Raises:
            BridgeConnectError: If the daemon is not listening.
            BridgeError: On a socket error before any reply bytes arrived.
            NoResponseError: If the daemon sent nothing before the timeout.
        """
        address = self._config.address
        logger.debug("[TCP] Connecting to daemon at %s", address)
        try:
            sock = socket.create_connection(
                (self._config.host, self._config.port),
                timeout=self._config.timeout,
            )
        except OSError as e:
            raise BridgeConnectError(address, e) from e

        with sock:
            sock.settimeout(self._config.timeout)
            message = command.strip() + "\n"
            logger.debug("[TCP TX] %s", message.strip())
            try:
                sock.sendall(message.encode("utf-8"))
            except OSError as e:
                raise BridgeError(f"Write to MDB daemon at {address} failed: {e}") from e

            lines = self._read_lines(sock, address)

        if not lines:
            raise NoResponseError(address)
        return BridgeReply(lines=lines)

    def _read_lines(self, sock: socket.socket, address: str) -> list[str]:
        """Read newline-delimited lines until EOF or the socket goes idle."""
        lines: list[str] = []
        buffer = b""
        received = False

        while True:
            try:
                chunk = sock.recv(RECV_SIZE)
            except socket.timeout:
                break
            except OSError as e:
                if not received:
                    raise BridgeError(f"Read from MDB daemon at {address} failed: {e}") from e
                logger.debug("[TCP] Read ended after partial reply: %s", e)
                break

            if not chunk:
                break
            received = True
            buffer += chunk
            *complete, buffer = buffer.split(b"\n")
            for raw in complete:
                self._append_line(lines, raw)

        # Trailing text without a newline still counts as a line
        self._append_line(lines, buffer)
        return lines

    @staticmethod
    def _append_line(lines: list[str], raw: bytes) -> None:
        text = raw.decode("utf-8", errors="replace").strip()
        if text:
            logger.debug("[TCP RX] %s", text)
            lines.append(text)
