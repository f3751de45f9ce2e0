"""
Line framer.

Turns the modem's unframed byte stream into CRLF-terminated response lines.
"""

import logging
from typing import TYPE_CHECKING, Optional

from ..exceptions import FramingError

if TYPE_CHECKING:
    from .queues import LineQueue

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 255


class LineFramer:
    """
    Accumulates bytes across reads and emits complete lines.

    A line is complete when the last two accumulated bytes are CR LF. The
    content before the terminator is emitted unless it is empty. Lines that
    outgrow ``capacity`` raise FramingError; the connection cannot recover
    its framing after that.
    """

    def __init__(
        self,
        sink: Optional["LineQueue"] = None,
        capacity: int = DEFAULT_CAPACITY
    ) -> None:
        """
        Args:
            sink: Queue that receives every framed line, in arrival order
            capacity: Working buffer size in bytes, terminator included
        """
        self.sink = sink
        self.capacity = capacity
        self._buffer = bytearray()

    def feed(self, chunk: bytes) -> list[str]:
        """
        Consume a chunk of raw bytes.

        Args:
            chunk: Bytes as read from the transport

        Returns:
            Lines completed by this chunk

        Raises:
            FramingError: If the partial line exceeds the buffer capacity
        """
        lines = []

        for byte in chunk:
            if len(self._buffer) >= self.capacity:
                pending = bytes(self._buffer)
                self._buffer.clear()
                raise FramingError(
                    f"Response line exceeds {self.capacity} byte buffer",
                    response=pending.decode("utf-8", errors="ignore")
                )

            self._buffer.append(byte)

            if self._buffer.endswith(b"\r\n"):
                line = self._buffer[:-2].decode("utf-8", errors="ignore")
                self._buffer.clear()
                if line:
                    logger.debug(f"RX: {line}")
                    lines.append(line)
                    if self.sink is not None:
                        self.sink.put(line)

        return lines

    @property
    def pending(self) -> bytes:
        """Bytes of the incomplete line accumulated so far."""
        return bytes(self._buffer)

    def reset(self) -> None:
        """Discard any partial line."""
        self._buffer.clear()
