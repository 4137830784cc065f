"""COBS framing codec.

This package contains:
- protocol: Wire constants, MAX_FRAME_SIZE, SerialPort Protocol
- checksum: XOR checksum
- encoding: Frame encoding
- decoding: Frame decoding, DecodeResult
- parser: COBSParser with validated message store
- io: Frame I/O helpers (send_frame, read_frame, recv_message)
- device: Serial device setup
"""

from framing.checksum import checksum
from framing.decoding import DecodeError, DecodeResult, decode
from framing.encoding import encode, max_frame_length
from framing.io import TransportError
from framing.parser import COBSParser
from framing.protocol import (
    DELIMITER,
    MAX_BLOCK_DATA,
    MAX_BLOCK_SIZE,
    MAX_FRAME_SIZE,
    SerialPort,
)

__all__ = [
    # Protocol
    "DELIMITER",
    "MAX_BLOCK_DATA",
    "MAX_BLOCK_SIZE",
    "MAX_FRAME_SIZE",
    "SerialPort",
    # Codec
    "checksum",
    "encode",
    "decode",
    "max_frame_length",
    "DecodeError",
    "DecodeResult",
    "COBSParser",
    # Exceptions
    "TransportError",
]
