"""Data models for serial port settings."""

from .port_config import (
    PROFILES,
    DataBits,
    FlowControl,
    Parity,
    PortConfig,
    StopBits,
    port_config_for,
)
