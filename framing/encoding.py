"""COBS frame encoding.

Frame layout::

    +----------+-------------+-----+----------+-------------+-----------+
    | Overhead | Data        | ... | Overhead | Data        | Delimiter |
    | 1 byte   | Overhead-1  |     | 1 byte   | Overhead-1  | 0x00      |
    +----------+-------------+-----+----------+-------------+-----------+

- The encoded message is the payload followed by its XOR checksum byte.
- Each block holds up to 254 non-zero data bytes. The overhead byte counts
  itself plus the data bytes, so a full block has overhead 0xFF.
- A zero byte in the message closes the current block and is dropped; the
  decoder puts it back when the closed block was not full.
"""

import logging

from framing.checksum import checksum
from framing.protocol import DELIMITER, MAX_BLOCK_DATA, MAX_BLOCK_SIZE, TRACE

logger = logging.getLogger(__name__)


def max_frame_length(payload_len: int) -> int:
    """Upper bound on the encoded size of a payload of payload_len bytes.

    One overhead byte per started block of 254 message bytes, one extra
    overhead byte for the block that follows a full final block, and the
    trailing delimiter. The message is the payload plus its checksum byte.
    """
    message_len = payload_len + 1
    return message_len + message_len // MAX_BLOCK_DATA + 2


def encode(payload: bytes) -> bytes:
    """Encode a payload into a delimiter-terminated COBS frame.

    Args:
        payload: Arbitrary bytes, may contain 0x00.

    Returns:
        The frame. 0x00 appears only as its last byte.
    """
    crc = checksum(payload)
    message_len = len(payload) + 1

    # Allocate once to the bound and shrink at the end
    output = bytearray(max_frame_length(len(payload)))
    overhead_idx = 0  # Slot reserved for the current block's overhead byte
    pos = 1
    overhead = 1

    for i in range(message_len):
        byte = payload[i] if i < len(payload) else crc

        if byte != DELIMITER:
            output[pos] = byte
            pos += 1
            overhead += 1

        if byte == DELIMITER or overhead == MAX_BLOCK_SIZE:
            output[overhead_idx] = overhead
            overhead = 1
            overhead_idx = pos
            pos += 1

    output[overhead_idx] = overhead
    output[pos] = DELIMITER
    pos += 1

    del output[pos:]
    logger.log(TRACE, f"Encoded {len(payload)} byte payload into {pos} byte frame")
    return bytes(output)
