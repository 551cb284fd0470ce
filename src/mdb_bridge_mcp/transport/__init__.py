"""Transport layer: scoped serial port access and the TCP daemon bridge."""

from .daemon_bridge import BridgeConfig, BridgeReply, DaemonBridge
from .serial_transport import SerialTransport
