"""
I/O pump.

Background thread that feeds the line framer from the transport and flushes
the transmit queue onto it. It never waits on the state machine.
"""

import logging
import os
import threading
import time
from typing import Callable, Optional

from .transport import Transport, TERMINATOR
from .framer import LineFramer, DEFAULT_CAPACITY
from .queues import LineQueue
from ..exceptions import DeviceDisconnectedError, FramingError, TransportError

logger = logging.getLogger(__name__)

FailureCallback = Callable[[Exception], None]


class IOPump:
    """
    Drives the transport for the lifetime of the connection.

    Coordinates:
    - Transmit queue (commands waiting to be written)
    - Line framer (raw bytes to response lines)
    - Receive queue (framed lines waiting for the correlator)

    A vanished device path, a device disconnection or a framing overflow
    stops the pump for good; ``failure`` then holds the cause.
    """

    def __init__(
        self,
        transport: Transport,
        device_path: Optional[str] = None,
        poll_interval: float = 0.01,
        read_size: int = 255,
        framer_capacity: int = DEFAULT_CAPACITY,
        on_failure: Optional[FailureCallback] = None
    ) -> None:
        """
        Initialize the pump.

        Args:
            transport: Transport instance for communication
            device_path: Path checked every cycle; the device counts as gone
                         when it no longer exists
            poll_interval: Idle sleep between cycles in seconds
            read_size: Maximum bytes read per cycle
            framer_capacity: Line framer buffer size
            on_failure: Optional callback for fatal pump errors
        """
        self.transport = transport
        self.device_path = device_path
        self.poll_interval = poll_interval
        self.read_size = read_size

        self.transmit_queue = LineQueue("transmit")
        self.receive_queue = LineQueue("receive")
        self.framer = LineFramer(sink=self.receive_queue, capacity=framer_capacity)

        # Thread management
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._running = False
        self._on_failure = on_failure

        # Error handling
        self._consecutive_errors = 0
        self._max_consecutive_errors = 5
        self._failure: Optional[Exception] = None

        logger.info("Initialized IOPump")

    def start(self) -> None:
        """Start the pump thread."""
        if self._running:
            logger.warning("IOPump already started")
            return

        self._failure = None
        self._consecutive_errors = 0

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._pump_loop,
            daemon=True,
            name="ModemPumpThread"
        )
        self._thread.start()
        self._running = True
        logger.info("Started I/O pump thread")

    def stop(self) -> None:
        """Stop the pump thread and wait for it to finish."""
        if not self._running:
            return

        logger.info("Stopping I/O pump thread...")
        self._stop_event.set()

        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=1.0)
            if self._thread.is_alive():
                logger.warning("Pump thread did not terminate in time")

        self._running = False
        logger.info("Stopped I/O pump thread")

    def close(self) -> None:
        """Stop the pump and close the transport."""
        logger.info("Closing modem connection")
        self.stop()
        self.transport.close()

    def _pump_loop(self) -> None:
        logger.debug("Pump thread started")

        while not self._stop_event.is_set():
            try:
                if self.device_path and not os.path.exists(self.device_path):
                    raise DeviceDisconnectedError(
                        f"Serial device {self.device_path} is no longer available"
                    )

                data = self.transport.read(self.read_size)
                if data:
                    self.framer.feed(data)

                self._flush_transmit_queue()
                self._consecutive_errors = 0

                if not data:
                    self._stop_event.wait(self.poll_interval)

            except (DeviceDisconnectedError, FramingError) as e:
                logger.error(f"I/O pump stopping: {e}")
                self._fail(e)
                break
            except Exception as e:
                self._consecutive_errors += 1
                logger.error(f"Error in pump loop ({self._consecutive_errors}/{self._max_consecutive_errors}): {e}")

                if self._consecutive_errors >= self._max_consecutive_errors:
                    logger.error(f"Too many consecutive errors ({self._consecutive_errors}), stopping pump thread")
                    self._fail(e)
                    break

                # Exponential backoff: 0.1s, 0.2s, 0.4s, 0.8s
                time.sleep(0.1 * (2 ** (self._consecutive_errors - 1)))

        logger.debug("Pump thread stopped")

    def _flush_transmit_queue(self) -> None:
        while True:
            command = self.transmit_queue.pop()
            if command is None:
                return

            frame = command.encode("utf-8") + TERMINATOR
            try:
                written = self.transport.write(frame)
            except TransportError:
                # Keep ordering: the command goes out first on the next cycle
                self.transmit_queue.put_front(command)
                raise

            if written != len(frame):
                logger.error(f"Partial write, wrote {written} out of {len(frame)} bytes: {command}")
            else:
                logger.debug(f"TX: {command}")

    def _fail(self, error: Exception) -> None:
        self._failure = error
        self._running = False
        if self._on_failure:
            self._on_failure(error)

    @property
    def failure(self) -> Optional[Exception]:
        """Exception that stopped the pump, if any."""
        return self._failure

    def is_running(self) -> bool:
        return self._running

    def is_disconnected(self) -> bool:
        """True if the pump stopped because the device went away."""
        return isinstance(self._failure, DeviceDisconnectedError)

    def __enter__(self):
        if not self._running:
            self.start()
        return self

    def __exit__(self, *exc):
        self.close()
