"""RS-232 connection to an MDB master interface.

One :class:`SerialTransport` owns one pyserial handle for the duration of a
single operation.  Use it as a context manager so the port is released on
every exit path::

    with SerialTransport(config) as transport:
        transport.write(b"\\x10")
        ack = transport.read_available(1)
"""

from __future__ import annotations

import logging

import serial

from ..config import READ_CHUNK_SIZE
from ..exceptions import PortOpenError, ReadError, WriteError
from ..models.port_config import PortConfig

logger = logging.getLogger(__name__)


class SerialTransport:
    """Scoped serial port handle with timeout-bounded reads.

    Args:
        config: Port settings; fixed for the lifetime of the transport.
        serial_factory: Callable returning an open ``serial.Serial``-like
            object from :meth:`PortConfig.serial_kwargs`.
    """

    def __init__(self, config: PortConfig, serial_factory=serial.Serial) -> None:
        self._config = config
        self._serial_factory = serial_factory
        self._ser = None

    @property
    def config(self) -> PortConfig:
        return self._config

    @property
    def port(self) -> str:
        return self._config.port

    @property
    def is_open(self) -> bool:
        return self._ser is not None

    def open(self) -> SerialTransport:
        """Open the serial port with the configured settings.

        Raises:
            PortOpenError: If the device is absent, busy, or the platform
                driver rejects the settings.
        """
        if self._ser is not None:
            return self
        try:
            self._ser = self._serial_factory(**self._config.serial_kwargs())
        except (serial.SerialException, OSError, ValueError) as e:
            raise PortOpenError(self.port, e) from e

        logger.info(
            "Opened %s (%d baud, %d%s%d, flow=%s, timeout=%.0f ms)",
            self.port,
            self._config.baudrate,
            int(self._config.data_bits),
            self._config.parity.value,
            int(self._config.stop_bits),
            self._config.flow_control.name.lower(),
            self._config.timeout * 1000,
        )
        return self

    def close(self) -> None:
        """Close the serial port. Safe to call more than once."""
        if self._ser is None:
            return
        try:
            self._ser.close()
        except (serial.SerialException, OSError) as e:
            logger.warning("Error closing %s: %s", self.port, e)
        finally:
            self._ser = None
            logger.info("Closed %s", self.port)

    def __enter__(self) -> SerialTransport:
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def write(self, data: bytes) -> None:
        """Write every byte of ``data``.

        Raises:
            WriteError: On any I/O failure, or if the driver stops
                accepting bytes before the write completes.
        """
        ser = self._require_open()
        view = memoryview(bytes(data))
        written = 0
        logger.debug("[SERIAL TX] %d bytes: %s", len(view), view.hex(" ").upper())
        while written < len(view):
            try:
                n = ser.write(view[written:])
            except (serial.SerialException, OSError) as e:
                raise WriteError(self.port, e) from e
            if not n:
                raise WriteError(self.port, f"wrote {written} of {len(view)} bytes")
            written += n

    def flush(self) -> None:
        """Wait for the output buffer to drain. Failures are ignored."""
        if self._ser is None:
            return
        try:
            self._ser.flush()
        except (serial.SerialException, OSError) as e:
            logger.debug("Flush failed on %s: %s", self.port, e)

    def read_available(self, size: int = READ_CHUNK_SIZE) -> bytes:
        """Read up to ``size`` bytes, waiting at most the configured timeout.

        Blocks until the first byte arrives or the timeout expires, then
        takes whatever else is already buffered.

        Returns:
            The bytes read, or ``b""`` if the read timed out.

        Raises:
            ReadError: On an I/O failure other than a timeout.
        """
        ser = self._require_open()
        try:
            data = ser.read(1)
            if data and size > 1:
                extra = min(size - 1, ser.in_waiting)
                if extra > 0:
                    data += ser.read(extra)
        except (serial.SerialException, OSError) as e:
            raise ReadError(self.port, e) from e

        if data:
            logger.debug("[SERIAL RX] %d bytes: %s", len(data), data.hex(" ").upper())
        return bytes(data)

    def _require_open(self):
        if self._ser is None:
            raise ConnectionError(f"Serial port {self.port} not open; call open() first")
        return self._ser
