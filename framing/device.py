"""Serial device setup for COBS frame I/O.

Contains:
- log_device_info: Log information about a serial device
- open_serial: Open and configure a serial port for binary frames
"""

import logging
import os

import serial
import serial.tools.list_ports

logger = logging.getLogger(__name__)

DEFAULT_BAUDRATE = 115200
DEFAULT_READ_TIMEOUT_S = 1.0


def log_device_info(device: str) -> None:
    """Log information about a serial device."""
    real_path = os.path.realpath(device)
    if real_path.startswith("/dev/pts/"):
        logger.info(f"Device: {device} -> {real_path} (pty)")
        return

    ports = [p for p in serial.tools.list_ports.comports() if p.device == device]
    if not ports:
        logger.info(f"Device: {device} (not in port list)")
        return

    info = ports[0]
    logger.info(f"Device: {info.device} ({info.description})")
    if info.vid is not None:
        logger.info(f"VID:PID: {info.vid:04x}:{info.pid:04x}")


def open_serial(
    device: str,
    baudrate: int = DEFAULT_BAUDRATE,
    rtscts: bool = False,
    timeout: float = DEFAULT_READ_TIMEOUT_S,
) -> serial.Serial:
    """Open a serial port in 8N1 raw mode.

    Software flow control stays off because XON/XOFF bytes may appear
    inside frames.
    """
    log_device_info(device)
    ser = serial.Serial(
        port=device,
        baudrate=baudrate,
        bytesize=serial.EIGHTBITS,
        parity=serial.PARITY_NONE,
        stopbits=serial.STOPBITS_ONE,
        xonxoff=False,
        rtscts=rtscts,
        timeout=timeout,
        write_timeout=1.0,
    )
    logger.debug(f"Serial port: baudrate={ser.baudrate}, rtscts={ser.rtscts}, timeout={timeout}s")
    return ser
