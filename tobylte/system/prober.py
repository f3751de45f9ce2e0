"""
Reachability prober.

Pings a target once per round from a background thread and reports each
round as answered or idle.
"""

import logging
import subprocess
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)

ProbeCallback = Callable[[], None]


class ReachabilityProber:
    """
    Periodic ICMP echo probing using the system ``ping`` tool.

    Each round sends one echo request from ``source`` to ``target`` and waits
    up to ``max_rtt`` seconds. ``on_success`` fires when a reply came back,
    ``on_idle`` when the round ended without one. Rounds start at most once
    every ``max_rtt`` seconds.
    """

    def __init__(
        self,
        target: str,
        source: Optional[str] = None,
        max_rtt: float = 5.0,
        on_success: Optional[ProbeCallback] = None,
        on_idle: Optional[ProbeCallback] = None
    ) -> None:
        """
        Args:
            target: Address to ping
            source: Source address to ping from (the session's IP)
            max_rtt: Round-trip ceiling in seconds
            on_success: Called after an answered round
            on_idle: Called after an unanswered round
        """
        self.target = target
        self.source = source
        self.max_rtt = max_rtt
        self.on_success = on_success
        self.on_idle = on_idle

        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()

    def command(self) -> list[str]:
        """ping invocation for one round."""
        cmd = ["ping", "-c", "1", "-W", str(max(1, int(self.max_rtt)))]
        if self.source:
            cmd += ["-I", self.source]
        cmd.append(self.target)
        return cmd

    def probe_once(self) -> bool:
        """
        Send one echo request.

        Returns:
            True if a reply arrived within max_rtt
        """
        try:
            result = subprocess.run(
                self.command(),
                capture_output=True,
                text=True,
                timeout=self.max_rtt + 1
            )
        except subprocess.TimeoutExpired:
            return False
        except OSError as e:
            logger.warning(f"Unable to run ping: {e}")
            return False
        return result.returncode == 0

    def start(self) -> None:
        """Start probing in a background thread."""
        if self._thread and self._thread.is_alive():
            logger.warning("Prober already running")
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._probe_loop,
            daemon=True,
            name="ReachabilityProber"
        )
        self._thread.start()
        logger.info(f"Probing {self.target} from {self.source or 'default source'}")

    def stop(self) -> None:
        """Stop probing; callbacks no longer fire afterwards."""
        self._stop_event.set()
        if self._thread and self._thread is not threading.current_thread():
            self._thread.join(timeout=self.max_rtt + 2)
        self._thread = None
        logger.info(f"Stopped probing {self.target}")

    def is_running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())

    def _probe_loop(self) -> None:
        while not self._stop_event.is_set():
            started = time.monotonic()
            answered = self.probe_once()

            if self._stop_event.is_set():
                break

            if answered:
                logger.debug(f"Reply from {self.target}")
                if self.on_success:
                    self.on_success()
            else:
                logger.debug(f"No reply from {self.target} within {self.max_rtt}s")
                if self.on_idle:
                    self.on_idle()

            remaining = self.max_rtt - (time.monotonic() - started)
            if remaining > 0:
                self._stop_event.wait(remaining)
