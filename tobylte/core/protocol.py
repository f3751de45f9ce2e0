"""
AT command correlation.

Matches framed response lines to the single command in flight.
"""

import logging
import threading
import time
from typing import Callable, Optional

from .queues import LineQueue
from ..parsers.response import LineKind, classify_line, derive_mnemonic
from ..types import CommandOutcome, OutcomeStatus, TIMEOUT_MESSAGE

logger = logging.getLogger(__name__)


class CommandCorrelator:
    """
    Sends one command at a time and waits for its terminal response.

    Works against the pump's transmit and receive queues only, so waiting
    here never holds up the I/O pump. A lock keeps at most one exchange in
    flight even when the operator console shares the correlator with the
    state machine.
    """

    def __init__(
        self,
        transmit_queue: LineQueue,
        receive_queue: LineQueue,
        default_timeout: float = 5.0,
        poll_interval: float = 0.01,
        clock: Callable[[], float] = time.monotonic
    ) -> None:
        """
        Initialize the correlator.

        Args:
            transmit_queue: Queue drained onto the transport by the pump
            receive_queue: Queue of framed response lines
            default_timeout: Seconds to wait for OK/ERROR
            poll_interval: Seconds between receive queue drains
            clock: Monotonic time source
        """
        self.transmit_queue = transmit_queue
        self.receive_queue = receive_queue
        self.default_timeout = default_timeout
        self.poll_interval = poll_interval
        self._clock = clock

        # Single command in flight
        self._lock = threading.Lock()

        logger.info("Initialized command correlator")

    def send_and_await(self, command: str, timeout: Optional[float] = None) -> CommandOutcome:
        """
        Send a command and wait for it to resolve.

        Every line seen while waiting is consumed, whatever the outcome. All
        lines of a drain pass are classified front to back, so a data line
        queued behind the terminal line still lands in the payload.

        Args:
            command: Command to send (e.g. "AT+CREG?")
            timeout: Seconds to wait (uses default if None)

        Returns:
            CommandOutcome with exactly one of success, failure or timeout

        Example:

        .. code-block:: python

            outcome = correlator.send_and_await("AT+CREG?")
            if outcome.success:
                print(outcome.payload)  # e.g. "0,1"
        """
        with self._lock:
            mnemonic = derive_mnemonic(command)
            logger.debug(f"Searching for \"{mnemonic}\"")

            deadline = self._clock() + (timeout if timeout is not None else self.default_timeout)
            self.transmit_queue.put(command)

            completed = False
            success = False
            payload = ""

            while True:
                for line in self.receive_queue.drain():
                    logger.debug(f"Processing response for {command}: {line}")
                    result = classify_line(line, mnemonic)

                    if result.kind is LineKind.DATA:
                        payload = result.payload
                    elif result.kind is LineKind.OK:
                        success = True
                        completed = True
                    elif result.kind is LineKind.ERROR:
                        payload = result.payload
                        success = False
                        completed = True

                if completed:
                    status = OutcomeStatus.SUCCESS if success else OutcomeStatus.FAILURE
                    logger.debug(f"{command} -> {status.value}: {payload}")
                    return CommandOutcome(command, status, payload)

                if self._clock() > deadline:
                    logger.warning(f"{command} timed out")
                    return CommandOutcome(command, OutcomeStatus.TIMED_OUT, TIMEOUT_MESSAGE)

                time.sleep(self.poll_interval)

    def post(self, command: str) -> None:
        """
        Queue a command without waiting for its response.

        Used for commands after which the modem may never answer, such as a
        soft reset or a full restart.
        """
        logger.debug(f"Posting {command} without waiting")
        self.transmit_queue.put(command)

    def discard_pending(self) -> int:
        """
        Drop response lines nobody is waiting for.

        Replies to posted commands stay in the receive queue and would
        otherwise resolve the next exchange before it is even transmitted.

        Returns:
            Number of lines dropped
        """
        with self._lock:
            dropped = self.receive_queue.drain()
        for line in dropped:
            logger.debug(f"Discarding unsolicited line: {line}")
        return len(dropped)
