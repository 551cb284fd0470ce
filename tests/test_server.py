"""Tests for the MCP tool functions."""

from __future__ import annotations

import json
import sys
from unittest.mock import MagicMock, patch

import pytest

from mdb_bridge_mcp.exceptions import BridgeConnectError, PortOpenError
from mdb_bridge_mcp.transport.daemon_bridge import BridgeReply


def _get_server_module():
    """Import server module with FastMCP mocked to avoid init issues."""
    mock_fastmcp_cls = MagicMock()
    mock_fastmcp_instance = MagicMock()
    # Make the @mcp.tool() decorator a no-op that returns the function unchanged
    mock_fastmcp_instance.tool.return_value = lambda fn: fn
    mock_fastmcp_instance.resource.return_value = lambda fn: fn
    mock_fastmcp_cls.return_value = mock_fastmcp_instance

    with patch("mcp.server.fastmcp.FastMCP", mock_fastmcp_cls):
        # Remove cached server module so it re-imports with our mock
        sys.modules.pop("mdb_bridge_mcp.server", None)
        import mdb_bridge_mcp.server as server_mod

    return server_mod


def test_cashless_reset_tool():
    """The reset tool reports the ACK result."""
    server = _get_server_module()
    with patch.object(server.operations, "reset", return_value=True) as reset:
        result = server.cashless_reset(16, "/dev/ttyUSB0")
    reset.assert_called_once_with(16, "/dev/ttyUSB0", profile=None)
    assert result == {"acknowledged": True, "addr": 16, "port": "/dev/ttyUSB0"}


def test_cashless_reset_bad_address():
    """Argument errors come back as an error dict."""
    server = _get_server_module()
    with patch.object(server.operations, "reset", side_effect=ValueError("Address must be 0-255, got 300")):
        result = server.cashless_reset(300, "/dev/ttyUSB0")
    assert "error" in result


def test_cashless_reset_port_error_propagates():
    """Hard transport errors are raised to the MCP runtime."""
    server = _get_server_module()
    error = PortOpenError("/dev/ttyUSB9", OSError("No such file or directory"))
    with patch.object(server.operations, "reset", side_effect=error):
        with pytest.raises(PortOpenError):
            server.cashless_reset(16, "/dev/ttyUSB9")


def test_mdb_send_command_tool():
    """The command tool returns the status text."""
    server = _get_server_module()
    with patch.object(server.operations, "command", return_value="No ACK received"):
        result = server.mdb_send_command(" poll ", "/dev/ttyUSB0", 16)
    assert result == {"status": "No ACK received", "command": "poll", "addr": 16}


def test_send_raw_tool():
    """Raw send returns the reply as a list, hex and length."""
    server = _get_server_module()
    with patch.object(server.operations, "send_raw", return_value=b"\x00\x0a") as send:
        result = server.send_raw("/dev/ttyUSB0", [16, 2], read_timeout_ms=300, expected_len=2)
    send.assert_called_once_with(
        "/dev/ttyUSB0", b"\x10\x02", 300, 2, verify=False, profile=None
    )
    assert result == {"response": [0, 10], "hex": "00 0A", "length": 2}


def test_send_raw_tool_rejects_bad_bytes():
    """Values outside 0-255 are refused before anything is sent."""
    server = _get_server_module()
    with patch.object(server.operations, "send_raw") as send:
        result = server.send_raw("/dev/ttyUSB0", [16, 300])
    assert "error" in result
    send.assert_not_called()


def test_send_raw_unframed_tool():
    """The unframed tool passes bytes through to send_unframed."""
    server = _get_server_module()
    with patch.object(server.operations, "send_unframed", return_value=b"") as send:
        result = server.send_raw_unframed("/dev/ttyUSB0", [16, 2, 18])
    send.assert_called_once_with("/dev/ttyUSB0", b"\x10\x02\x12", None, None, profile=None)
    assert result["length"] == 0


def test_run_command_tool():
    """Free-form input is dispatched through run_command_text."""
    server = _get_server_module()
    with patch.object(server.operations, "run_command_text", return_value="true"):
        assert server.run_command("cashlessreset(1)", "/dev/ttyUSB0", 16) == {"output": "true"}
    with patch.object(server.operations, "run_command_text", side_effect=ValueError("Invalid hex")):
        assert server.run_command("zz", "/dev/ttyUSB0") == {"error": "Invalid hex"}


def test_mdb_command_tool():
    """Daemon replies are returned as text and decoded lines."""
    server = _get_server_module()
    reply = BridgeReply(lines=['{"ok": true}', "READY"])
    with patch.object(server.operations, "bridge_send", return_value=reply):
        result = server.mdb_command("CashlessReset(1)")
    assert result == {"response": '{"ok": true}\nREADY', "lines": [{"ok": True}, "READY"]}


def test_mdb_command_tool_unreachable():
    """A missing daemon is a hard error."""
    server = _get_server_module()
    error = BridgeConnectError("127.0.0.1:5127", ConnectionRefusedError(111, "Connection refused"))
    with patch.object(server.operations, "bridge_send", side_effect=error):
        with pytest.raises(BridgeConnectError):
            server.mdb_command("Poll")


def test_profiles_resource():
    """The profiles resource lists each profile's settings."""
    server = _get_server_module()
    profiles = json.loads(server.resource_profiles())
    assert profiles["mdb-master-rs232"]["baudrate"] == 115200
    assert profiles["nayax-9600-8e1"]["parity"] == "even"
    assert "port" not in profiles["nayax-9600-8e1"]


def test_commands_resource():
    """The commands resource maps words to opcodes."""
    server = _get_server_module()
    commands = json.loads(server.resource_commands())
    assert commands["poll"] == 2
    assert commands["cashlessreset"] == 0
