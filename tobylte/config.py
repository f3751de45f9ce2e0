"""
Runtime configuration for the connectivity manager.

All timing constants live here so tests can shrink them to zero.
"""

from dataclasses import dataclass

from .types import ModemSetting

REQUIRED_SETTINGS: tuple[ModemSetting, ...] = (
    ModemSetting('AT+UBMCONF=2', "networking mode"),
    ModemSetting('AT+UUSBCONF=2,"ECM"', "USB mode"),
    ModemSetting('AT+UWWEBUI=1', "web server mode"),
)

# Verbosity levels selected with -v / -vv
OUTPUT_QUIET = 0
OUTPUT_VERBOSE = 1
OUTPUT_DEBUG = 2


@dataclass
class ManagerConfig:
    """
    Configuration for one modem connection.

    Attributes:
        port: Serial device path (e.g. /dev/ttyACM0)
        apn: Access point name of the mobile provider
        interface: Host network interface to configure (e.g. wwan0)
        baudrate: Serial baud rate
        verbosity: One of OUTPUT_QUIET, OUTPUT_VERBOSE, OUTPUT_DEBUG
        command_timeout: Seconds to wait for OK/ERROR after each command
        poll_interval: Seconds between receive queue drains
        registration_attempts: AT+CREG? polls before giving up
        registration_interval: Seconds between registration polls
        pdp_settle_delay: Pause after the PDP provisioning sequence
        activation_settle_delay: Pause after session activation
        soft_reset_delay: Pause after queueing the soft reset
        restart_poll_interval: Device path polling period while restarting
        restart_settle_delay: Pause after the device reappears
        probe_max_rtt: Reachability probe round-trip ceiling in seconds
        health_threshold: Consecutive failed probes that trigger reprovisioning
        monitor_interval: Seconds between health counter checks
        resolv_conf: Resolver file overwritten with the assigned DNS servers
        max_recoveries: Failed provisioning cycles retried in-process
        disconnect_exit_delay: Pause before exiting after the device vanished
        settings: Modem settings enforced on startup
        context_count: PDP context ids cleared during provisioning
        console: Accept operator AT commands on stdin
    """
    port: str
    apn: str
    interface: str
    baudrate: int = 115200
    verbosity: int = OUTPUT_QUIET
    command_timeout: float = 5.0
    poll_interval: float = 0.01
    registration_attempts: int = 20
    registration_interval: float = 0.5
    pdp_settle_delay: float = 2.0
    activation_settle_delay: float = 1.0
    soft_reset_delay: float = 2.0
    restart_poll_interval: float = 0.1
    restart_settle_delay: float = 2.0
    probe_max_rtt: float = 5.0
    health_threshold: int = 3
    monitor_interval: float = 0.1
    resolv_conf: str = "/etc/resolv.conf"
    max_recoveries: int = 2
    disconnect_exit_delay: float = 10.0
    settings: tuple[ModemSetting, ...] = REQUIRED_SETTINGS
    context_count: int = 8
    console: bool = False

    def __post_init__(self) -> None:
        for name in ("port", "apn", "interface"):
            if not getattr(self, name):
                raise ValueError(f"Must specify {name}")
        if self.health_threshold < 1:
            raise ValueError("health_threshold must be at least 1")
        if self.max_recoveries < 0:
            raise ValueError("max_recoveries cannot be negative")

    @classmethod
    def from_args(cls, args, **overrides) -> "ManagerConfig":
        """
        Build a configuration from parsed command line arguments.

        Args:
            args: argparse namespace produced by ``tobylte.cli.build_parser``
            **overrides: Extra fields to set (mostly for tests)
        """
        verbosity = OUTPUT_QUIET
        if args.debug:
            verbosity = OUTPUT_DEBUG
        elif args.verbose:
            verbosity = OUTPUT_VERBOSE

        values = dict(
            port=args.device,
            apn=args.apn,
            interface=args.interface,
            baudrate=args.baudrate,
            verbosity=verbosity,
            resolv_conf=args.resolv_conf,
            max_recoveries=args.max_recoveries,
            console=args.console or verbosity == OUTPUT_DEBUG,
        )
        values.update(overrides)
        return cls(**values)

    @property
    def debug(self) -> bool:
        return self.verbosity >= OUTPUT_DEBUG

    def describe(self) -> str:
        """Short human readable summary used in startup logging."""
        return f"{self.port} @ {self.baudrate} baud, APN {self.apn!r}, interface {self.interface}"
