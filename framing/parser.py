"""Stateful COBS parser holding the last validated message.

COBSParser keeps the boolean decode API: decode() reports success and the
payload is fetched afterwards with get_validated_message(). The stored
message is only replaced when a frame validates, so a failed decode never
exposes partial data.

Instances are not safe to share between concurrent decoders. Use one parser
per caller, or call framing.decoding.decode() directly.
"""

import logging

from framing import decoding, encoding
from framing.decoding import DecodeResult
from framing.protocol import MAX_FRAME_SIZE

logger = logging.getLogger(__name__)


class COBSParser:
    """Encoder/decoder with a validated message store."""

    # Advisory only, decode() does not enforce it
    MAX_FRAME_SIZE = MAX_FRAME_SIZE

    def __init__(self) -> None:
        self._message = b""
        self._last_result: DecodeResult | None = None

    def encode(self, payload: bytes) -> bytes:
        """Encode payload into a delimiter-terminated frame."""
        return encoding.encode(payload)

    def decode(self, frame: bytes) -> bool:
        """Decode a frame. Returns True and stores the payload if it validates."""
        result = decoding.decode(frame)
        self._last_result = result
        if not result.success:
            logger.debug(f"Frame rejected: {result.error.value if result.error else 'unknown'}")
            return False
        self._message = result.message
        return True

    def get_validated_message(self) -> bytes:
        """Return the payload from the most recent successful decode."""
        return self._message

    @property
    def message(self) -> bytes:
        """Alias for get_validated_message()."""
        return self._message

    @property
    def last_result(self) -> DecodeResult | None:
        """Result of the most recent decode() call, successful or not."""
        return self._last_result
