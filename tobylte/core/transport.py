"""
Transport layer abstraction for modem communication.

Provides a raw byte stream over the modem's serial port, with a mock
implementation for hardware-free testing.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Callable, Deque, Optional
import serial
from serial import SerialException

from ..exceptions import TransportError, DeviceDisconnectedError

logger = logging.getLogger(__name__)

TERMINATOR = b"\r\n"

# Phrases pyserial uses when the USB device went away underneath us
_DISCONNECT_PHRASES = (
    "device disconnected",
    "device reports readiness to read but returned no data",
    "no such device",
    "device not configured",
    "input/output error",
)


class Transport(ABC):
    """Abstract base class for the modem byte stream."""

    @abstractmethod
    def write(self, data: bytes) -> int:
        """
        Write data to the transport.

        Args:
            data: Bytes to write

        Returns:
            Number of bytes written

        Raises:
            TransportError: If write fails
        """
        pass

    @abstractmethod
    def read(self, size: int = 255) -> bytes:
        """
        Read whatever bytes are available, up to ``size``.

        Returns an empty bytes object when nothing arrived within the
        transport's read timeout.

        Raises:
            TransportError: If read fails
        """
        pass

    @abstractmethod
    def is_open(self) -> bool:
        """Check if transport is open."""
        pass

    @abstractmethod
    def close(self) -> None:
        """Close the transport."""
        pass


class SerialTransport(Transport):
    """Serial port transport implementation."""

    def __init__(
        self,
        port: str,
        baudrate: int = 115200,
        timeout: float = 0.01
    ) -> None:
        """
        Open the serial port.

        Args:
            port: Serial port path (e.g., /dev/ttyACM0)
            baudrate: Baud rate for serial communication
            timeout: Read timeout in seconds, kept short so the pump stays responsive

        Raises:
            TransportError: If serial port cannot be opened
        """
        self.port = port
        self.baudrate = baudrate
        self.timeout = timeout

        try:
            self._serial = serial.Serial(
                port=port,
                baudrate=baudrate,
                bytesize=serial.EIGHTBITS,
                stopbits=serial.STOPBITS_ONE,
                timeout=timeout
            )
            logger.info(f"Opened serial port {port} at {baudrate} baud")
        except SerialException as e:
            logger.error(f"Failed to open serial port {port}: {e}")
            raise TransportError(f"Failed to open serial port {port}: {e}") from e

    def write(self, data: bytes) -> int:
        """Write data to serial port."""
        try:
            written = self._serial.write(data)
            logger.debug(f"Wrote {written} bytes: {data}")
            return written
        except SerialException as e:
            raise self._translate(e, "write") from e

    def read(self, size: int = 255) -> bytes:
        """Read available bytes from the serial port."""
        try:
            waiting = self._serial.in_waiting
            data = self._serial.read(min(max(waiting, 1), size))
            if data:
                logger.debug(f"Read {len(data)} bytes: {data}")
            return data
        except SerialException as e:
            raise self._translate(e, "read") from e

    def _translate(self, error: SerialException, operation: str) -> TransportError:
        error_str = str(error).lower()

        if any(phrase in error_str for phrase in _DISCONNECT_PHRASES):
            logger.error(f"Device disconnected: {error}")
            return DeviceDisconnectedError(
                f"Serial device disconnected: {error}",
                response=str(error)
            )

        logger.error(f"Serial {operation} failed: {error}")
        return TransportError(f"Serial {operation} failed: {error}")

    def is_open(self) -> bool:
        """Check if serial port is open."""
        return bool(self._serial and self._serial.is_open)

    def close(self) -> None:
        """Close the serial port."""
        if self._serial and self._serial.is_open:
            self._serial.close()
            logger.info(f"Closed serial port {self.port}")


# Maps a written command (without terminator) to the response lines it produces
Responder = Callable[[str], Optional[list[str]]]


class MockTransport(Transport):
    """
    Mock transport for testing.

    Simulates a modem without requiring hardware. Responses are either queued
    up front with ``add_response`` or produced per command by a ``responder``.
    Queued bytes are handed out in chunks of ``chunk_size`` to exercise
    partial-line framing.
    """

    def __init__(
        self,
        responder: Optional[Responder] = None,
        chunk_size: int = 255
    ) -> None:
        """
        Initialize mock transport.

        Args:
            responder: Called with each written command; returned lines are
                       queued as the modem's answer
            chunk_size: Maximum bytes returned by a single read
        """
        self._open = True
        self._responder = responder
        self._chunk_size = chunk_size
        self._input: Deque[int] = deque()
        self._written: list[bytes] = []
        self._lock = threading.Lock()
        logger.info("Initialized MockTransport")

    def add_response(self, lines: list[str]) -> None:
        """
        Queue response lines to be returned by read.

        Args:
            lines: List of response lines (e.g., ["+CREG: 0,1", "OK"])
        """
        self.feed(b"".join(line.encode("utf-8") + TERMINATOR for line in lines))
        logger.debug(f"Added mock response: {lines}")

    def feed(self, data: bytes) -> None:
        """Queue raw bytes, terminators included."""
        with self._lock:
            self._input.extend(data)

    def write(self, data: bytes) -> int:
        """Record written data and trigger the responder."""
        if not self._open:
            raise DeviceDisconnectedError(
                "MockTransport is closed (simulating device disconnection)",
                response="MockTransport closed"
            )

        logger.debug(f"Mock write: {data}")
        with self._lock:
            self._written.append(data)

        if self._responder is not None:
            command = data.decode("utf-8").rstrip("\r\n")
            lines = self._responder(command)
            if lines:
                self.add_response(lines)

        return len(data)

    def read(self, size: int = 255) -> bytes:
        """Return up to ``size`` queued bytes, or b"" when idle."""
        if not self._open:
            raise DeviceDisconnectedError(
                "MockTransport is closed (simulating device disconnection)",
                response="MockTransport closed"
            )

        with self._lock:
            count = min(size, self._chunk_size, len(self._input))
            data = bytes(self._input.popleft() for _ in range(count))

        if data:
            logger.debug(f"Mock read: {data}")
        return data

    @property
    def written(self) -> list[str]:
        """Commands written so far, terminators stripped."""
        with self._lock:
            return [chunk.decode("utf-8").rstrip("\r\n") for chunk in self._written]

    def is_open(self) -> bool:
        """Check if mock transport is open."""
        return self._open

    def close(self) -> None:
        """Close mock transport."""
        self._open = False
        logger.info("Closed MockTransport")

    def clear_responses(self) -> None:
        """Drop all queued input (useful for testing)."""
        with self._lock:
            self._input.clear()
            logger.debug("Cleared mock input")
