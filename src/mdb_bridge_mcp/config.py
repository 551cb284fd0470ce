"""Process-wide defaults, overridable from the environment."""

from __future__ import annotations

import os

# MDB protocol constants
ACK = 0x00
NAK = 0xFF
MAX_ATTEMPTS = 3
RETRY_DELAY_S = 0.2
DEFAULT_READ_TIMEOUT_MS = 200
TEXT_COMMAND_READ_TIMEOUT_MS = 300
READ_CHUNK_SIZE = 256

# Daemon bridge endpoint
DAEMON_HOST = os.getenv("MDB_DAEMON_HOST", "127.0.0.1")
DAEMON_PORT = int(os.getenv("MDB_DAEMON_PORT", "5127"))
DAEMON_TIMEOUT_MS = int(os.getenv("MDB_DAEMON_TIMEOUT_MS", "1000"))

# Serial profile used when a caller does not name one
SERIAL_PROFILE = os.getenv("MDB_SERIAL_PROFILE", "mdb-master-rs232")

LOG_LEVEL = os.getenv("MDB_LOG_LEVEL", "INFO").upper()
