"""Single-byte XOR checksum appended to every framed payload."""


def checksum(data: bytes) -> int:
    """Return the XOR of all bytes in data (0 for empty input).

    This is a parity check, not a CRC: two corruptions that flip the same
    bit in different bytes cancel out and go undetected.
    """
    crc = 0
    for byte in data:
        crc ^= byte
    return crc
