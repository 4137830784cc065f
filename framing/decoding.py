"""COBS frame decoding.

decode() never raises on malformed input. The outcome is returned as a
DecodeResult value owned by the caller, so concurrent callers need no
shared state.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from framing.checksum import checksum
from framing.protocol import DELIMITER, MAX_BLOCK_SIZE, TRACE

logger = logging.getLogger(__name__)


class DecodeError(Enum):
    """Reason a frame failed validation."""

    CHECKSUM_MISMATCH = "checksum mismatch"
    EMPTY_OR_TRUNCATED = "empty or truncated frame"


@dataclass(frozen=True)
class DecodeResult:
    """Result of decoding a single frame.

    Attributes:
        success: True if the checksum validated.
        message: Decoded payload with the checksum stripped (empty on failure).
        error: Failure reason, None on success.
        terminated: False if input ran out before a delimiter was seen.
    """

    success: bool
    message: bytes = b""
    error: DecodeError | None = None
    terminated: bool = True

    def __bool__(self) -> bool:
        return self.success


def unstuff(frame: bytes) -> tuple[bytearray, bool]:
    """Reverse the block stuffing without validating the checksum.

    Returns (message, terminated), where message still ends with the
    checksum byte.
    """
    output = bytearray()
    remaining = 0  # Forces the first byte to be read as an overhead byte
    prev_overhead = MAX_BLOCK_SIZE  # No delimiter goes in front of the first block
    terminated = False

    for byte in frame:
        if remaining > 0:
            output.append(byte)
            remaining -= 1
            continue

        if byte == DELIMITER:
            terminated = True
            break

        # The previous block was closed by a zero in the source, restore it
        if prev_overhead != MAX_BLOCK_SIZE:
            output.append(DELIMITER)

        prev_overhead = byte
        remaining = byte - 1

    return output, terminated


def decode(frame: bytes) -> DecodeResult:
    """Decode a COBS frame and validate its checksum.

    Args:
        frame: Encoded bytes, normally ending with the 0x00 delimiter.

    Returns:
        DecodeResult carrying the payload on success.
    """
    output, terminated = unstuff(frame)
    if not terminated:
        logger.debug(f"Frame of {len(frame)} bytes ended without delimiter")

    # A valid message has at least the checksum byte
    if not output:
        return DecodeResult(
            success=False, error=DecodeError.EMPTY_OR_TRUNCATED, terminated=terminated
        )

    received_crc = output.pop()
    calculated_crc = checksum(output)

    if received_crc != calculated_crc:
        logger.debug(
            f"Checksum mismatch: received 0x{received_crc:02X}, "
            f"calculated 0x{calculated_crc:02X}"
        )
        return DecodeResult(
            success=False, error=DecodeError.CHECKSUM_MISMATCH, terminated=terminated
        )

    logger.log(TRACE, f"Decoded {len(output)} byte payload")
    return DecodeResult(success=True, message=bytes(output), terminated=terminated)
