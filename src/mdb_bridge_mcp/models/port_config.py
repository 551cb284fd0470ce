"""Serial port parameters and per-device profiles.

Different MDB interface boards ship with different RS-232 settings, so the
electrical parameters are kept in named profiles instead of being fixed in
the transport.  Pick the profile that matches the device datasheet.

==================  ======  ====  ======  ====  ========
Profile             Baud    Data  Parity  Stop  Flow
==================  ======  ====  ======  ====  ========
mdb-master-rs232    115200  8     None    1     RTS/CTS
nayax-9600-8e1      9600    8     Even    1     None
==================  ======  ====  ======  ====  ========
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum, IntEnum
from typing import Any

import serial

from ..config import DEFAULT_READ_TIMEOUT_MS, SERIAL_PROFILE


class DataBits(IntEnum):
    FIVE = 5
    SIX = 6
    SEVEN = 7
    EIGHT = 8


class Parity(Enum):
    NONE = serial.PARITY_NONE
    ODD = serial.PARITY_ODD
    EVEN = serial.PARITY_EVEN


class StopBits(IntEnum):
    ONE = 1
    TWO = 2


class FlowControl(Enum):
    NONE = "none"
    SOFTWARE = "xonxoff"
    HARDWARE = "rtscts"


@dataclass(frozen=True)
class PortConfig:
    """Immutable settings for one serial port.

    ``timeout`` is the per-read timeout in seconds, as pyserial expects it.
    """

    port: str
    baudrate: int = 115200
    data_bits: DataBits = DataBits.EIGHT
    parity: Parity = Parity.NONE
    stop_bits: StopBits = StopBits.ONE
    flow_control: FlowControl = FlowControl.HARDWARE
    timeout: float = DEFAULT_READ_TIMEOUT_MS / 1000

    def __post_init__(self) -> None:
        if self.baudrate <= 0:
            raise ValueError(f"Baud rate must be positive, got {self.baudrate}")
        if self.timeout < 0:
            raise ValueError(f"Timeout must not be negative, got {self.timeout}")

    def with_timeout(self, timeout_ms: int) -> PortConfig:
        """Return a copy of this config with a different read timeout."""
        return replace(self, timeout=timeout_ms / 1000)

    def for_port(self, port: str) -> PortConfig:
        """Return a copy of this config bound to another port."""
        return replace(self, port=port)

    def serial_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``serial.Serial``."""
        return {
            "port": self.port,
            "baudrate": self.baudrate,
            "bytesize": int(self.data_bits),
            "parity": self.parity.value,
            "stopbits": int(self.stop_bits),
            "xonxoff": self.flow_control is FlowControl.SOFTWARE,
            "rtscts": self.flow_control is FlowControl.HARDWARE,
            "timeout": self.timeout,
            "write_timeout": self.timeout,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "port": self.port,
            "baudrate": self.baudrate,
            "data_bits": int(self.data_bits),
            "parity": self.parity.name.lower(),
            "stop_bits": int(self.stop_bits),
            "flow_control": self.flow_control.name.lower(),
            "timeout_ms": round(self.timeout * 1000),
        }


PROFILES: dict[str, PortConfig] = {
    # MDB Master RS-232 interface documentation
    "mdb-master-rs232": PortConfig(
        port="",
        baudrate=115200,
        parity=Parity.NONE,
        flow_control=FlowControl.HARDWARE,
    ),
    # Nayax cashless reader on a plain USB-serial adapter
    "nayax-9600-8e1": PortConfig(
        port="",
        baudrate=9600,
        parity=Parity.EVEN,
        flow_control=FlowControl.NONE,
    ),
}


def port_config_for(
    port: str,
    profile: str | None = None,
    timeout_ms: int | None = None,
) -> PortConfig:
    """Build the PortConfig for ``port`` from a named profile.

    Args:
        port: Serial device path, e.g. ``/dev/ttyUSB0`` or ``COM3``.
        profile: Profile name; defaults to ``MDB_SERIAL_PROFILE``.
        timeout_ms: Optional read timeout override in milliseconds.

    Raises:
        ValueError: If the profile is unknown or the port is empty.
    """
    if not port:
        raise ValueError("Port name must not be empty")
    name = profile or SERIAL_PROFILE
    if name not in PROFILES:
        raise ValueError(f"Unknown serial profile '{name}'. Valid: {list(PROFILES)}")
    config = PROFILES[name].for_port(port)
    if timeout_ms is not None:
        config = config.with_timeout(timeout_ms)
    return config
