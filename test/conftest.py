"""pytest configuration and fixtures for COBS framing tests.

Provides:
- MockSerialPort: Single-buffer mock for frame I/O unit tests
- Markers for unit vs integration tests
"""

import io
import threading

import pytest


class MockSerialPort:
    """Mock serial port for unit testing.

    Uses a single buffer shared between read and write operations.
    Data written to the port can be read back immediately, and reads past
    the end return b"" like a pyserial port that timed out.
    """

    def __init__(self, data: bytes = b"") -> None:
        self._buffer = io.BytesIO()
        self._read_pos = 0
        self._lock = threading.Lock()
        if data:
            self.inject(data)

    def write(self, data: bytes) -> int:
        with self._lock:
            pos = self._buffer.tell()
            self._buffer.seek(0, 2)  # Seek to end
            written = self._buffer.write(data)
            self._buffer.seek(pos)
            return written

    def read(self, size: int = 1, /) -> bytes:
        with self._lock:
            self._buffer.seek(self._read_pos)
            data = self._buffer.read(size)
            self._read_pos = self._buffer.tell()
            return data

    @property
    def in_waiting(self) -> int:
        with self._lock:
            end_pos = self._buffer.seek(0, 2)
            return max(0, end_pos - self._read_pos)

    def inject(self, data: bytes) -> None:
        """Inject data into the buffer as if received from peer."""
        self.write(data)


@pytest.fixture
def mock_port() -> MockSerialPort:
    """Return an empty MockSerialPort."""
    return MockSerialPort()


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: mark test as unit test")
    config.addinivalue_line("markers", "integration: mark test as integration test (requires pty)")
