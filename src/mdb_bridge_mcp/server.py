"""MCP server entry point for MDB peripherals.

Exposes the MDB operations as tools via the Model Context Protocol
using the official Python MCP SDK with stdio transport.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mcp.server.fastmcp import FastMCP

from . import operations
from .config import LOG_LEVEL
from .models.port_config import PROFILES
from .protocol.commands import OPCODE_NAMES, format_hex
from .transport.daemon_bridge import BridgeConfig

logger = logging.getLogger(__name__)

mcp = FastMCP(
    "mdb-bridge",
    instructions="Send MDB commands to cashless readers over RS-232 or the MDB daemon",
)

# Resolved once at startup; tests replace it with an ephemeral endpoint
_bridge_config: BridgeConfig = BridgeConfig.from_env()


def _check_bytes(data: list[int]) -> bytes:
    bad = [b for b in data if not 0 <= b <= 0xFF]
    if bad:
        raise ValueError(f"Byte values must be 0-255, got {bad}")
    return bytes(data)


def _response_dict(response: bytes) -> dict[str, Any]:
    return {
        "response": list(response),
        "hex": format_hex(response),
        "length": len(response),
    }


# ─── SERIAL TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def cashless_reset(
    addr: int,
    port_name: str,
    profile: str | None = None,
) -> dict[str, Any]:
    """Send RESET to a cashless peripheral and wait for its ACK.

    Retries up to 3 times, 200 ms apart.

    Args:
        addr: Bus address (0-255); the upper nibble selects the device.
        port_name: Serial device, e.g. /dev/ttyUSB0 or COM3.
        profile: Serial profile name (see mdb://profiles).
    """
    try:
        acknowledged = operations.reset(addr, port_name, profile=profile)
    except ValueError as e:
        return {"error": str(e)}
    return {"acknowledged": acknowledged, "addr": addr, "port": port_name}


@mcp.tool()
def mdb_send_command(
    command: str,
    port_name: str,
    addr: int,
    profile: str | None = None,
) -> dict[str, Any]:
    """Send an MDB command to a peripheral and wait for its ACK.

    Args:
        command: Command word or opcode, optionally followed by hex payload
                 bytes, e.g. "poll", "reset", "vend 00 01 00 0A", "0x04".
        port_name: Serial device.
        addr: Bus address (0-255).
        profile: Serial profile name.
    """
    try:
        status = operations.command(command, port_name, addr, profile=profile)
    except ValueError as e:
        return {"error": str(e)}
    return {"status": status, "command": command.strip(), "addr": addr}


@mcp.tool()
def send_raw(
    port_name: str,
    data: list[int],
    read_timeout_ms: int | None = None,
    expected_len: int | None = None,
    verify: bool = False,
    profile: str | None = None,
) -> dict[str, Any]:
    """Send a raw MDB frame; the checksum byte is appended automatically.

    Reads until expected_len bytes arrive or the line is idle for
    read_timeout_ms (default 200).

    Args:
        port_name: Serial device.
        data: Frame bytes without checksum, e.g. [16, 2].
        read_timeout_ms: Idle timeout that ends the read.
        expected_len: Number of reply bytes after which to stop reading.
        verify: Reject a reply whose trailing checksum is wrong.
        profile: Serial profile name.
    """
    try:
        payload = _check_bytes(data)
        response = operations.send_raw(
            port_name,
            payload,
            read_timeout_ms,
            expected_len,
            verify=verify,
            profile=profile,
        )
    except ValueError as e:
        return {"error": str(e)}
    return _response_dict(response)


@mcp.tool()
def send_raw_unframed(
    port_name: str,
    data: list[int],
    read_timeout_ms: int | None = None,
    expected_len: int | None = None,
    profile: str | None = None,
) -> dict[str, Any]:
    """Send bytes exactly as given (no checksum appended) and return the reply.

    Args:
        port_name: Serial device.
        data: Bytes to send, including any checksum.
        read_timeout_ms: Idle timeout that ends the read.
        expected_len: Number of reply bytes after which to stop reading.
        profile: Serial profile name.
    """
    try:
        payload = _check_bytes(data)
        response = operations.send_unframed(
            port_name,
            payload,
            read_timeout_ms,
            expected_len,
            profile=profile,
        )
    except ValueError as e:
        return {"error": str(e)}
    return _response_dict(response)


@mcp.tool()
def run_command(
    command: str,
    port_name: str,
    addr: int = 1,
    profile: str | None = None,
) -> dict[str, Any]:
    """Run free-form input: "cashlessreset(1)" or hex bytes such as "0A FF".

    Args:
        command: A cashless reset command, or hex bytes to send as a frame.
        port_name: Serial device.
        addr: Bus address used for a cashless reset.
        profile: Serial profile name.
    """
    try:
        output = operations.run_command_text(command, port_name, addr, profile=profile)
    except ValueError as e:
        return {"error": str(e)}
    return {"output": output}


# ─── DAEMON TOOLS ────────────────────────────────────────────────────

@mcp.tool()
def mdb_command(command: str) -> dict[str, Any]:
    """Send a text command to the MDB daemon and return its JSON reply.

    The daemon must already be running and listening on its TCP port
    (127.0.0.1:5127 unless MDB_DAEMON_HOST/MDB_DAEMON_PORT say otherwise).

    Args:
        command: Daemon command, e.g. "CashlessReset(1)".
    """
    reply = operations.bridge_send(command, _bridge_config)
    return {"response": reply.text, "lines": reply.decoded()}


# ─── MCP RESOURCES ───────────────────────────────────────────────────

@mcp.resource("mdb://profiles")
def resource_profiles() -> str:
    """Serial profiles available for the port settings."""
    return json.dumps({
        name: {k: v for k, v in config.to_dict().items() if k != "port"}
        for name, config in PROFILES.items()
    })


@mcp.resource("mdb://commands")
def resource_commands() -> str:
    """Command words accepted by mdb_send_command and their opcodes."""
    return json.dumps({name: int(opcode) for name, opcode in OPCODE_NAMES.items()})


# ─── ENTRY POINT ─────────────────────────────────────────────────────

def main():
    """Run the MCP server with stdio transport."""
    logging.basicConfig(level=LOG_LEVEL)
    logger.info("MDB daemon endpoint: %s", _bridge_config.address)
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
