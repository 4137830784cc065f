"""Serial I/O helpers for COBS frames.

Contains:
- TransportError: Raised on timeout or when resync fails
- drain_input: Clear stale data from input buffer
- send_frame: Encode and write a payload
- FrameReader: Split a byte stream into frames, discarding oversized frames
- read_frame: Read one frame with a fresh FrameReader
- recv_message: Read and decode one frame
"""

import logging

from framing.decoding import DecodeResult, decode
from framing.encoding import encode
from framing.protocol import DELIMITER, MAX_FRAME_SIZE, MAX_RESYNC_BYTES, TRACE, SerialPort

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when a frame cannot be read due to transport issues (timeout, lost sync)."""

    pass


def drain_input(port: SerialPort) -> int:
    """Drain stale data from input buffer. Returns bytes drained."""
    count = port.in_waiting
    if count > 0:
        port.read(count)
        logger.debug(f"Drained {count} stale bytes from input buffer")
    return count


def send_frame(port: SerialPort, payload: bytes) -> int | None:
    """Encode payload and write the frame. Returns bytes written."""
    frame = encode(payload)
    logger.log(TRACE, f"TX {frame.hex(' ')}")
    return port.write(frame)


class FrameReader:
    """Splits a serial byte stream into frames.

    A partially received frame is kept when a read times out, so the next
    call continues it instead of treating its tail as a new frame. Frames
    longer than max_frame_size are treated as a sync problem: they are
    dropped and reading continues from the next delimiter. Lone delimiters
    (empty frames, idle fill) are skipped and do not count as discarded.
    """

    def __init__(self, port: SerialPort, max_frame_size: int = MAX_FRAME_SIZE) -> None:
        self._port = port
        self._max_frame_size = max_frame_size
        self._frame = bytearray()
        self._oversized = False

    @property
    def pending(self) -> int:
        """Bytes of an incomplete frame carried over from earlier reads."""
        return len(self._frame)

    def read_frame(self) -> bytes:
        """Read one frame, including its trailing delimiter.

        Raises:
            TransportError: On timeout, or after MAX_RESYNC_BYTES bytes were
                discarded without finding an acceptable frame.
        """
        discarded = 0

        while True:
            data = self._port.read(1)
            if len(data) < 1:
                if self._frame:
                    logger.debug(f"Timeout with {len(self._frame)} bytes of frame pending")
                raise TransportError("Timeout or truncated frame")

            if data[0] == DELIMITER:
                if self._frame:
                    self._frame.append(DELIMITER)
                    frame = bytes(self._frame)
                    self._frame.clear()
                    if discarded > 0:
                        logger.debug(f"Resynced after discarding {discarded} bytes")
                    return frame
                if self._oversized:
                    logger.debug("Dropped oversized frame, waiting for next frame")
                    self._oversized = False
                    discarded += 1
            elif self._oversized:
                discarded += 1
            else:
                self._frame += data
                # The delimiter still has to fit
                if len(self._frame) + 1 > self._max_frame_size:
                    logger.warning(f"Frame exceeds max size {self._max_frame_size}, resyncing")
                    discarded += len(self._frame)
                    self._frame.clear()
                    self._oversized = True

            if discarded > MAX_RESYNC_BYTES:
                logger.warning(f"Failed to resync after discarding {discarded} bytes")
                raise TransportError(f"No valid frame within {MAX_RESYNC_BYTES} bytes")

    def recv_message(self) -> DecodeResult:
        """Read the next frame and decode it.

        Raises:
            TransportError: On timeout or lost sync, see read_frame().
        """
        frame = self.read_frame()
        logger.log(TRACE, f"RX {frame.hex(' ')}")
        return decode(frame)


def read_frame(port: SerialPort, max_frame_size: int = MAX_FRAME_SIZE) -> bytes:
    """Read one frame with a fresh FrameReader.

    Bytes of a frame cut short by a timeout are lost. Use a FrameReader to
    keep them across calls.
    """
    return FrameReader(port, max_frame_size).read_frame()


def recv_message(port: SerialPort, max_frame_size: int = MAX_FRAME_SIZE) -> DecodeResult:
    """Read the next frame with a fresh FrameReader and decode it."""
    return FrameReader(port, max_frame_size).recv_message()
