"""
Command line entry point for tobylte.

Opens the modem's serial port, starts the I/O pump and runs the
connectivity manager until it exits. With ``--console`` operator-typed AT
commands are sent through the same correlator for diagnostics.
"""

import sys
import time
import logging
import argparse
import threading
from typing import Optional, TextIO

from .config import ManagerConfig, OUTPUT_VERBOSE, OUTPUT_DEBUG
from .core import SerialTransport, IOPump, CommandCorrelator
from .manager import ConnectivityManager
from .system import DEFAULT_RESOLV_CONF
from .version import __version__
from .exceptions import ModemError, DeviceDisconnectedError

logger = logging.getLogger(__name__)


class OperatorConsole:
    """Reads AT commands from a stream and prints their outcome."""

    def __init__(
        self,
        correlator: CommandCorrelator,
        stream: Optional[TextIO] = None,
        out: Optional[TextIO] = None
    ):
        """
        Initialize console.

        Args:
            correlator: Correlator shared with the connectivity manager
            stream: Input stream (defaults to stdin)
            out: Output stream (defaults to stdout)
        """
        self.correlator = correlator
        self.stream = stream or sys.stdin
        self.out = out or sys.stdout
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        """Start reading commands in a daemon thread."""
        self._thread = threading.Thread(
            target=self.run,
            daemon=True,
            name="OperatorConsole"
        )
        self._thread.start()
        logger.info("Operator console ready, type AT commands")

    def run(self) -> None:
        """Read commands until end of input."""
        for raw in self.stream:
            cmd = raw.strip()
            if not cmd:
                continue
            self.handle(cmd)

    def handle(self, cmd: str) -> None:
        """Send one command and display its outcome."""
        logger.debug(f"Received console command: {cmd}")
        outcome = self.correlator.send_and_await(cmd)
        print(f"Success: {outcome.success} Response: {outcome.payload}", file=self.out, flush=True)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="tobylte",
        description="Toby LTE Modem Manager - keeps a u-blox TOBY modem's data session up",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  tobylte -d /dev/ttyACM0 -a internet -i wwan0
  tobylte -d /dev/ttyACM0 -a internet -i wwan0 -v
  tobylte -d /dev/ttyACM0 -a internet -i wwan0 -vv
        """
    )

    parser.add_argument(
        "-d", "--device",
        required=True,
        help="Serial port for modem (/dev/ttyACM0, etc)"
    )
    parser.add_argument(
        "-b", "--baudrate",
        type=int,
        default=115200,
        help="Baud rate (default: 115200)"
    )
    parser.add_argument(
        "-a", "--apn",
        required=True,
        help="APN (Access Point Name) for mobile provider"
    )
    parser.add_argument(
        "-i", "--interface",
        required=True,
        help="Network interface to assign IP to (ie. wwan0)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "-vv", "--debug",
        action="store_true",
        help="Debug output (warning: noisy!), enables the console"
    )
    parser.add_argument(
        "--console",
        action="store_true",
        help="Accept AT commands on stdin"
    )
    parser.add_argument(
        "--resolv-conf",
        default=DEFAULT_RESOLV_CONF,
        help=f"Resolver file to overwrite (default: {DEFAULT_RESOLV_CONF})"
    )
    parser.add_argument(
        "--max-recoveries",
        type=int,
        default=2,
        help="Failed provisioning cycles retried before exiting (default: 2)"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )
    return parser


def configure_logging(verbosity: int) -> None:
    """
    Set up logging for the selected verbosity.

    Quiet shows lifecycle steps, verbose adds TX/RX traffic, debug adds the
    correlator's line-by-line trace.
    """
    if verbosity >= OUTPUT_VERBOSE:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        if verbosity < OUTPUT_DEBUG:
            logging.getLogger("tobylte.core.protocol").setLevel(logging.INFO)
    else:
        logging.basicConfig(
            level=logging.INFO,
            format='%(levelname)s: %(message)s'
        )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = ManagerConfig.from_args(args)
    except ValueError as e:
        parser.error(str(e))

    configure_logging(config.verbosity)
    logger.info(f"Toby LTE Modem Manager v{__version__}")

    try:
        transport = SerialTransport(port=config.port, baudrate=config.baudrate)
    except ModemError as e:
        logger.error(f"Error opening serial port: {e}")
        return 1

    pump = IOPump(transport, device_path=config.port, poll_interval=config.poll_interval)
    pump.start()

    correlator = CommandCorrelator(
        pump.transmit_queue,
        pump.receive_queue,
        default_timeout=config.command_timeout,
        poll_interval=config.poll_interval
    )
    manager = ConnectivityManager(config, correlator, pump=pump)

    if config.console:
        OperatorConsole(correlator).start()

    try:
        return manager.run()
    except DeviceDisconnectedError as e:
        logger.error(f"Serial port is no longer available ({e}), exiting in {config.disconnect_exit_delay:g} seconds...")
        time.sleep(config.disconnect_exit_delay)
        return 1
    except ModemError as e:
        logger.error(f"Fatal: {e}")
        return 1
    except KeyboardInterrupt:
        manager.stop()
        return 0
    finally:
        pump.close()


if __name__ == "__main__":
    sys.exit(main())
