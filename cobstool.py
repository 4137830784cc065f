#!/usr/bin/env python3
"""COBS frame encode/decode and serial test tool."""

import argparse
import logging
import os
import pty
import random
import select
import signal
import sys
import threading
from types import FrameType

import serial

from framing import COBSParser, decode, encode
from framing.device import DEFAULT_BAUDRATE, open_serial
from framing.io import FrameReader, TransportError, drain_input, send_frame
from framing.protocol import MAX_FRAME_SIZE

logger = logging.getLogger(__name__)

DEFAULT_LOOPBACK_COUNT = 100

# Echo thread wakes up this often to check for shutdown
ECHO_POLL_INTERVAL_S = 0.1

# Smallest valid frame, the encoded empty payload
MIN_FRAME_SIZE = 3

# Payload size range for random loopback payloads, spans several full blocks
MIN_PAYLOAD_SIZE = 0
MAX_PAYLOAD_SIZE = 600


def random_payload() -> bytes:
    """Generate a random payload of random length, with some forced zero bytes."""
    size = random.randint(MIN_PAYLOAD_SIZE, MAX_PAYLOAD_SIZE)
    data = bytearray(random.getrandbits(8) for _ in range(size))
    for _ in range(random.randint(0, 4)):
        if data:
            data[random.randrange(len(data))] = 0
    return bytes(data)


def frame_size(text: str) -> int:
    """argparse type for a frame size limit that admits at least the empty payload."""
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: {text!r}")
    if value < MIN_FRAME_SIZE:
        raise argparse.ArgumentTypeError(f"must be at least {MIN_FRAME_SIZE}, got {value}")
    return value


def _parse_hex(parser: argparse.ArgumentParser, text: str) -> bytes:
    try:
        return bytes.fromhex(text)
    except ValueError as e:
        parser.error(f"invalid hex input {text!r}: {e}")


class LoopbackDevice:
    """Virtual loopback device using a pty pair."""

    def __init__(self, baudrate: int) -> None:
        if sys.platform not in ("linux", "darwin"):
            raise RuntimeError(
                f"Loopback mode only supported on Linux/macOS, not {sys.platform}"
            )
        self._master_fd, slave_fd = pty.openpty()
        slave_name = os.ttyname(slave_fd)
        os.close(slave_fd)
        self.serial = serial.Serial(
            slave_name,
            baudrate=baudrate,
            timeout=1.0,
            write_timeout=1.0,
            xonxoff=False,
            rtscts=False,
        )
        self._running = True
        self._echo_thread = threading.Thread(target=self._echo_loop, daemon=True)
        self._echo_thread.start()
        logger.info(f"Loopback pty: {slave_name}")

    def _echo_loop(self) -> None:
        # Poll so close() can stop the thread before the fd goes away
        while self._running:
            try:
                ready, _, _ = select.select([self._master_fd], [], [], ECHO_POLL_INTERVAL_S)
                if not ready:
                    continue
                data = os.read(self._master_fd, 4096)
                if data:
                    os.write(self._master_fd, data)
            except OSError:
                break

    def close(self) -> None:
        self._running = False
        self._echo_thread.join(timeout=5 * ECHO_POLL_INTERVAL_S)
        if self._echo_thread.is_alive():
            logger.warning("Echo thread did not stop")
        if self.serial.is_open:
            self.serial.close()
        os.close(self._master_fd)
        logger.info("Closed loopback device")


def cmd_encode(payload: bytes) -> int:
    print(encode(payload).hex())
    return 0


def cmd_decode(frame: bytes) -> int:
    result = decode(frame)
    if not result.success:
        assert result.error is not None
        logger.error(f"Decode failed: {result.error.value}")
        return 1
    if not result.terminated:
        logger.warning("Frame has no trailing delimiter")
    print(result.message.hex())
    return 0


def run_loopback(count: int, baudrate: int, max_frame_size: int) -> int:
    """Send random payloads through a pty echo and check each one comes back intact."""
    dev = LoopbackDevice(baudrate)
    reader = FrameReader(dev.serial, max_frame_size)
    sent, received, ok = 0, 0, 0
    try:
        drain_input(dev.serial)
        for _ in range(count):
            payload = random_payload()
            send_frame(dev.serial, payload)
            sent += 1
            result = reader.recv_message()
            received += 1
            if result.success and result.message == payload:
                ok += 1
            else:
                logger.warning(f"Mismatch on {len(payload)} byte payload: {result.error}")
    except TransportError as e:
        logger.error(f"Transport error: {e}")
    except serial.SerialException as e:
        logger.error(f"Serial error: {e}")
    finally:
        dev.close()

    pct = (ok / received * 100) if received else 0
    print(f"sent={sent} recv={received} ok={ok} ({pct:.1f}%)")
    return 0 if ok == count else 1


def run_listen(device: str, baudrate: int, count: int, max_frame_size: int) -> int:
    """Print validated payloads read from a serial device."""
    running = True

    def handler(_sig: int, _frame: FrameType | None) -> None:
        nonlocal running
        running = False

    signal.signal(signal.SIGINT, handler)

    try:
        ser = open_serial(device, baudrate)
    except serial.SerialException as e:
        logger.error(f"Serial error: {e}")
        return 1

    parser = COBSParser()
    # One reader for the whole session keeps frames split by a read timeout
    reader = FrameReader(ser, max_frame_size)
    received = 0
    try:
        drain_input(ser)
        logger.info(f"Listening on {device}")
        while running and (count == 0 or received < count):
            try:
                frame = reader.read_frame()
            except TransportError as e:
                logger.debug(f"No frame: {e}")
                continue
            received += 1
            if parser.decode(frame):
                print(parser.get_validated_message().hex())
            else:
                assert parser.last_result is not None and parser.last_result.error is not None
                logger.warning(f"Dropped frame: {parser.last_result.error.value}")
        return 0
    except serial.SerialException as e:
        logger.error(f"Serial error: {e}")
        return 1
    finally:
        ser.close()


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Encode, decode and test COBS frames",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s encode 010203               Print frame for payload 01 02 03
  %(prog)s decode 040102030100         Print payload of a frame
  %(prog)s loopback -n 500             Round-trip 500 random frames over a pty
  %(prog)s listen -d /dev/ttyUSB0      Print payloads received on a device
""",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )
    parser.add_argument(
        "--max-frame-size",
        type=frame_size,
        default=MAX_FRAME_SIZE,
        help=f"Discard received frames longer than this (default: {MAX_FRAME_SIZE})",
    )

    subparsers = parser.add_subparsers(dest="mode")

    encode_parser = subparsers.add_parser("encode", help="Encode a hex payload")
    encode_parser.add_argument("payload", help="Payload as hex, e.g. 010203")

    decode_parser = subparsers.add_parser("decode", help="Decode a hex frame")
    decode_parser.add_argument("frame", help="Frame as hex, e.g. 040102030100")

    loopback_parser = subparsers.add_parser(
        "loopback", help="Round-trip random frames over a pty"
    )
    loopback_parser.add_argument(
        "-n",
        "--count",
        type=int,
        default=DEFAULT_LOOPBACK_COUNT,
        help=f"Number of frames (default: {DEFAULT_LOOPBACK_COUNT})",
    )
    loopback_parser.add_argument(
        "-b",
        "--baudrate",
        type=int,
        default=DEFAULT_BAUDRATE,
        help=f"Baud rate (default: {DEFAULT_BAUDRATE})",
    )

    listen_parser = subparsers.add_parser(
        "listen", help="Print payloads received on a serial device"
    )
    listen_parser.add_argument(
        "-d", "--device", type=str, required=True, help="Serial device path"
    )
    listen_parser.add_argument(
        "-b",
        "--baudrate",
        type=int,
        default=DEFAULT_BAUDRATE,
        help=f"Baud rate (default: {DEFAULT_BAUDRATE})",
    )
    listen_parser.add_argument(
        "-n", "--count", type=int, default=0, help="Stop after N frames, 0 = run until Ctrl-C"
    )

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    match args.mode:
        case "encode":
            return cmd_encode(_parse_hex(parser, args.payload))
        case "decode":
            return cmd_decode(_parse_hex(parser, args.frame))
        case "loopback":
            return run_loopback(args.count, args.baudrate, args.max_frame_size)
        case "listen":
            return run_listen(args.device, args.baudrate, args.count, args.max_frame_size)

    parser.print_help()
    return 2


if __name__ == "__main__":
    sys.exit(main())
