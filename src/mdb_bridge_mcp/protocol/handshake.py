"""ACK handshake and response collection on top of a serial transport.

Handshake state machine (one run per top-level call)::

    IDLE -> SENDING -> AWAITING_ACK -> SUCCESS
                 ^           |
                 |           +------> RETRY (sleep, attempt += 1)
                 +-----------+           |
                                         +--> FAILURE (attempts exhausted)

A write or read failure jumps straight to FAILURE and is never retried.
"Not acknowledged yet" is ordinary control flow and is reported through
:class:`HandshakeOutcome`, not through an exception.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum

from ..config import ACK, MAX_ATTEMPTS, NAK, READ_CHUNK_SIZE, RETRY_DELAY_S
from ..exceptions import ReadError, WriteError
from .framing import build_frame

logger = logging.getLogger(__name__)


class HandshakeState(Enum):
    IDLE = "idle"
    SENDING = "sending"
    AWAITING_ACK = "awaiting_ack"
    RETRY = "retry"
    SUCCESS = "success"
    FAILURE = "failure"


class OutcomeKind(Enum):
    ACKNOWLEDGED = "acknowledged"
    NOT_ACKNOWLEDGED = "not_acknowledged"
    TIMED_OUT = "timed_out"
    TRANSPORT_ERROR = "transport_error"


@dataclass
class HandshakeOutcome:
    """Result of one handshake run.

    ``received`` holds the non-ACK bytes seen on the last attempt
    (NOT_ACKNOWLEDGED); ``error`` holds the cause of a TRANSPORT_ERROR.
    """

    kind: OutcomeKind
    attempts: int
    received: bytes = b""
    error: Exception | None = None

    @property
    def acknowledged(self) -> bool:
        return self.kind is OutcomeKind.ACKNOWLEDGED

    def to_dict(self) -> dict:
        result = {
            "outcome": self.kind.value,
            "acknowledged": self.acknowledged,
            "attempts": self.attempts,
        }
        if self.received:
            result["received"] = self.received.hex(" ").upper()
        if self.error is not None:
            result["error"] = str(self.error)
        return result


class HandshakeEngine:
    """Bounded send / await-ACK loop.

    Args:
        transport: An open transport with ``write`` and ``read_available``.
        max_attempts: Total send attempts before giving up.
        retry_delay: Seconds to sleep between attempts.
        abort_on_nak: Stop retrying as soon as a NAK byte is received.
        sleep: Sleep function, replaceable in tests.
    """

    def __init__(
        self,
        transport,
        max_attempts: int = MAX_ATTEMPTS,
        retry_delay: float = RETRY_DELAY_S,
        abort_on_nak: bool = False,
        sleep=time.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        self._transport = transport
        self._max_attempts = max_attempts
        self._retry_delay = retry_delay
        self._abort_on_nak = abort_on_nak
        self._sleep = sleep
        self._state = HandshakeState.IDLE

    @property
    def state(self) -> HandshakeState:
        return self._state

    def _enter(self, state: HandshakeState) -> None:
        logger.debug("Handshake %s -> %s", self._state.value, state.value)
        self._state = state

    def run(self, message: bytes) -> HandshakeOutcome:
        """Send ``message`` until it is acknowledged or attempts run out.

        Args:
            message: A single control byte, or a complete checksummed frame.
        """
        self._state = HandshakeState.IDLE
        attempt = 1

        while True:
            self._enter(HandshakeState.SENDING)
            try:
                self._transport.write(message)
                self._transport.flush()
            except WriteError as e:
                self._enter(HandshakeState.FAILURE)
                return HandshakeOutcome(OutcomeKind.TRANSPORT_ERROR, attempt, error=e)

            self._enter(HandshakeState.AWAITING_ACK)
            try:
                reply = self._transport.read_available(1)
            except ReadError as e:
                self._enter(HandshakeState.FAILURE)
                return HandshakeOutcome(OutcomeKind.TRANSPORT_ERROR, attempt, error=e)

            if reply == bytes([ACK]):
                self._enter(HandshakeState.SUCCESS)
                logger.info("ACK received after %d attempt(s)", attempt)
                return HandshakeOutcome(OutcomeKind.ACKNOWLEDGED, attempt)

            if reply:
                logger.debug("Attempt %d: no ACK, got %s", attempt, reply.hex(" ").upper())
            else:
                logger.debug("Attempt %d: timed out waiting for ACK", attempt)

            nak = reply == bytes([NAK])
            if attempt >= self._max_attempts or (nak and self._abort_on_nak):
                self._enter(HandshakeState.FAILURE)
                logger.info("No ACK received after %d attempt(s)", attempt)
                if reply:
                    return HandshakeOutcome(OutcomeKind.NOT_ACKNOWLEDGED, attempt, received=reply)
                return HandshakeOutcome(OutcomeKind.TIMED_OUT, attempt)

            self._enter(HandshakeState.RETRY)
            self._sleep(self._retry_delay)
            attempt += 1


def collect_response(
    transport,
    message: bytes,
    expected_len: int | None = None,
    append_checksum: bool = True,
) -> bytes:
    """Write one message, then read until the line goes idle.

    Reads stop when ``expected_len`` bytes have arrived or a read times out
    with nothing, whichever comes first.  There is no ACK or retry here.

    Args:
        transport: An open transport.
        message: Bytes to send.
        expected_len: Optional number of bytes after which to stop.
        append_checksum: Append the MDB checksum before sending.

    Returns:
        All bytes received.

    Raises:
        WriteError, ReadError: On I/O failure.
    """
    if expected_len is not None and expected_len < 0:
        raise ValueError(f"expected_len must not be negative, got {expected_len}")

    frame = build_frame(message) if append_checksum else bytes(message)
    transport.write(frame)
    transport.flush()

    response = bytearray()
    while True:
        chunk = transport.read_available(READ_CHUNK_SIZE)
        if not chunk:
            break
        response.extend(chunk)
        if expected_len is not None and len(response) >= expected_len:
            break

    return bytes(response)
