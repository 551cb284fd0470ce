"""Tests for serial port settings and profiles."""

import dataclasses

import pytest
import serial

from mdb_bridge_mcp.models.port_config import (
    PROFILES,
    DataBits,
    FlowControl,
    Parity,
    PortConfig,
    StopBits,
    port_config_for,
)


def test_default_config_is_mdb_master():
    """Defaults match the MDB Master RS-232 settings."""
    config = PortConfig(port="/dev/ttyUSB0")
    assert config.baudrate == 115200
    assert config.data_bits == DataBits.EIGHT
    assert config.parity == Parity.NONE
    assert config.stop_bits == StopBits.ONE
    assert config.flow_control == FlowControl.HARDWARE
    assert config.timeout == pytest.approx(0.2)


def test_config_is_immutable():
    """A PortConfig cannot be changed in place."""
    config = PortConfig(port="/dev/ttyUSB0")
    with pytest.raises(dataclasses.FrozenInstanceError):
        config.baudrate = 9600


def test_with_timeout_returns_copy():
    """with_timeout leaves the original untouched."""
    config = PortConfig(port="COM3")
    longer = config.with_timeout(300)
    assert longer.timeout == pytest.approx(0.3)
    assert config.timeout == pytest.approx(0.2)
    assert longer.port == "COM3"


def test_serial_kwargs_hardware_flow():
    """RTS/CTS maps to rtscts, not xonxoff."""
    kwargs = PortConfig(port="/dev/ttyUSB0").serial_kwargs()
    assert kwargs["port"] == "/dev/ttyUSB0"
    assert kwargs["baudrate"] == 115200
    assert kwargs["bytesize"] == serial.EIGHTBITS
    assert kwargs["parity"] == serial.PARITY_NONE
    assert kwargs["stopbits"] == serial.STOPBITS_ONE
    assert kwargs["rtscts"] is True
    assert kwargs["xonxoff"] is False
    assert kwargs["timeout"] == pytest.approx(0.2)


def test_serial_kwargs_even_parity_software_flow():
    """Even parity and XON/XOFF are passed through."""
    config = PortConfig(
        port="COM1",
        baudrate=9600,
        data_bits=DataBits.SEVEN,
        parity=Parity.EVEN,
        stop_bits=StopBits.TWO,
        flow_control=FlowControl.SOFTWARE,
    )
    kwargs = config.serial_kwargs()
    assert kwargs["bytesize"] == serial.SEVENBITS
    assert kwargs["parity"] == serial.PARITY_EVEN
    assert kwargs["stopbits"] == serial.STOPBITS_TWO
    assert kwargs["xonxoff"] is True
    assert kwargs["rtscts"] is False


def test_invalid_values_raise():
    """Non-positive baud or negative timeout should raise."""
    with pytest.raises(ValueError):
        PortConfig(port="COM1", baudrate=0)
    with pytest.raises(ValueError):
        PortConfig(port="COM1", timeout=-1)


def test_profiles_differ():
    """The two known device profiles keep their own settings."""
    master = PROFILES["mdb-master-rs232"]
    nayax = PROFILES["nayax-9600-8e1"]
    assert (master.baudrate, master.parity, master.flow_control) == (
        115200, Parity.NONE, FlowControl.HARDWARE,
    )
    assert (nayax.baudrate, nayax.parity, nayax.flow_control) == (
        9600, Parity.EVEN, FlowControl.NONE,
    )


def test_port_config_for_profile():
    """port_config_for binds the port and applies a timeout override."""
    config = port_config_for("/dev/ttyUSB1", "nayax-9600-8e1", timeout_ms=250)
    assert config.port == "/dev/ttyUSB1"
    assert config.baudrate == 9600
    assert config.timeout == pytest.approx(0.25)


def test_port_config_for_default_profile():
    """Without a profile name the default profile is used."""
    config = port_config_for("/dev/ttyUSB1")
    assert config.baudrate == 115200


def test_port_config_for_errors():
    """Unknown profile or empty port should raise."""
    with pytest.raises(ValueError):
        port_config_for("/dev/ttyUSB0", "no-such-profile")
    with pytest.raises(ValueError):
        port_config_for("")


def test_to_dict():
    """to_dict gives plain values."""
    d = PROFILES["nayax-9600-8e1"].for_port("COM4").to_dict()
    assert d == {
        "port": "COM4",
        "baudrate": 9600,
        "data_bits": 8,
        "parity": "even",
        "stop_bits": 1,
        "flow_control": "none",
        "timeout_ms": 200,
    }
