"""Unit tests for COBS frame encoding."""

import random
import unittest

from framing.checksum import checksum
from framing.encoding import encode, max_frame_length
from framing.protocol import DELIMITER, MAX_BLOCK_SIZE


def _blocks(frame: bytes) -> list[bytes]:
    """Split a frame (without its delimiter) into blocks, overhead byte included."""
    blocks = []
    idx = 0
    body = frame[:-1]
    while idx < len(body):
        size = body[idx]
        blocks.append(body[idx : idx + size])
        idx += size
    return blocks


class TestEncodeFormat(unittest.TestCase):
    """Test exact wire output for known payloads."""

    def test_worked_example(self) -> None:
        # Checksum of 01 02 03 is 00, which closes the first block
        self.assertEqual(encode(b"\x01\x02\x03"), b"\x04\x01\x02\x03\x01\x00")

    def test_empty_payload(self) -> None:
        # Message is just the 00 checksum
        self.assertEqual(encode(b""), b"\x01\x01\x00")

    def test_single_zero(self) -> None:
        self.assertEqual(encode(b"\x00"), b"\x01\x01\x01\x00")

    def test_nonzero_checksum(self) -> None:
        self.assertEqual(encode(b"hello"), b"\x07hello\x62\x00")

    def test_zeros_only(self) -> None:
        # 254 zeros plus the 00 checksum: every zero closes a one-byte block
        frame = encode(bytes(254))
        self.assertEqual(frame, b"\x01" * 256 + b"\x00")

    def test_full_block(self) -> None:
        # 254 x 01 has checksum 00
        payload = b"\x01" * 254
        frame = encode(payload)
        self.assertEqual(frame[0], MAX_BLOCK_SIZE)
        self.assertEqual(frame[1:255], payload)
        # Zero checksum closes an empty block, then the final empty block
        self.assertEqual(frame[255:], b"\x01\x01\x00")

    def test_full_block_at_end(self) -> None:
        # 253 x 01 has checksum 01, so the message is exactly one full block
        frame = encode(b"\x01" * 253)
        self.assertEqual(frame, b"\xff" + b"\x01" * 254 + b"\x01\x00")

    def test_multiple_full_blocks(self) -> None:
        payload = bytes((i % 255) + 1 for i in range(600))
        blocks = _blocks(encode(payload))
        self.assertEqual([b[0] for b in blocks[:2]], [MAX_BLOCK_SIZE, MAX_BLOCK_SIZE])
        for block in blocks:
            self.assertEqual(len(block), block[0])

    def test_returns_bytes(self) -> None:
        self.assertIsInstance(encode(bytearray(b"abc")), bytes)


class TestEncodeProperties(unittest.TestCase):
    """Test invariants over a range of payloads."""

    def setUp(self) -> None:
        rng = random.Random(0xC0B5)
        self.payloads = [b"", b"\x00", bytes(254), bytes(range(256)), b"\xff" * 1000]
        for _ in range(200):
            size = rng.randint(0, 800)
            data = bytearray(rng.getrandbits(8) for _ in range(size))
            # Sprinkle zero runs so short blocks are common
            for _ in range(rng.randint(0, 10)):
                if data:
                    data[rng.randrange(len(data))] = 0
            self.payloads.append(bytes(data))

    def test_delimiter_only_at_end(self) -> None:
        for payload in self.payloads:
            frame = encode(payload)
            self.assertEqual(frame[-1], DELIMITER)
            self.assertNotIn(DELIMITER, frame[:-1])

    def test_length_within_bound(self) -> None:
        for payload in self.payloads:
            self.assertLessEqual(len(encode(payload)), max_frame_length(len(payload)))

    def test_overhead_fields_in_range(self) -> None:
        for payload in self.payloads:
            for block in _blocks(encode(payload)):
                self.assertGreaterEqual(block[0], 1)
                self.assertLessEqual(block[0], MAX_BLOCK_SIZE)
                self.assertEqual(len(block), block[0])

    def test_blocks_carry_message(self) -> None:
        # Only full blocks are not followed by a dropped zero
        for payload in self.payloads:
            blocks = _blocks(encode(payload))
            rebuilt = bytearray()
            for i, block in enumerate(blocks):
                rebuilt += block[1:]
                if block[0] != MAX_BLOCK_SIZE and i < len(blocks) - 1:
                    rebuilt.append(0)
            self.assertEqual(bytes(rebuilt), payload + bytes([checksum(payload)]))

    def test_deterministic(self) -> None:
        payload = b"\x83\x00\x01\x02\x03"
        self.assertEqual(encode(payload), encode(payload))


class TestMaxFrameLength(unittest.TestCase):
    """Test the encoded size upper bound."""

    def test_empty(self) -> None:
        self.assertEqual(max_frame_length(0), 3)

    def test_bound_is_tight_for_full_block(self) -> None:
        self.assertEqual(len(encode(b"\x01" * 253)), max_frame_length(253))

    def test_bound_is_tight_for_zero_only_payload(self) -> None:
        self.assertEqual(len(encode(bytes(10))), max_frame_length(10))

    def test_low_overhead_without_zeros(self) -> None:
        payload = b"\x55" * 10_000
        overhead = len(encode(payload)) - len(payload)
        self.assertLessEqual(overhead / len(payload), 0.005)


if __name__ == "__main__":
    unittest.main()
