"""Protocol definitions for the COBS framing codec.

Contains:
- Wire constants (delimiter, block limits)
- MAX_FRAME_SIZE: advisory frame size limit for transport-side resync
- SerialPort Protocol for type checking
- Logging configuration
"""

import logging
import os
from typing import Protocol

# TRACE logging level (below DEBUG)
TRACE = 5
logging.addLevelName(TRACE, "TRACE")

# Frame terminator, never present inside an encoded frame
DELIMITER = 0x00

# Overhead byte value of a full block
MAX_BLOCK_SIZE = 0xFF

# Data bytes carried by a full block
MAX_BLOCK_DATA = MAX_BLOCK_SIZE - 1

# Advisory limit used to detect sync problems (configurable via envvar).
# The decoder does not check it; frame readers discard anything longer.
MAX_FRAME_SIZE = int(os.environ.get("COBS_MAX_FRAME_SIZE", "1024"))

# Maximum bytes to discard when resyncing (prevents infinite loop on garbage)
MAX_RESYNC_BYTES = 8192


class SerialPort(Protocol):
    """Protocol for serial port operations needed by frame I/O."""

    def write(self, data: bytes, /) -> int | None: ...
    def read(self, size: int = ..., /) -> bytes: ...
    @property
    def in_waiting(self) -> int: ...
