"""
Connectivity state machine.

Sequences modem configuration, data session bring-up and link supervision.
"""

import logging
import os
import threading
import time
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional

from .config import ManagerConfig
from .features import SettingEnforcer, SessionManager, HealthCounter
from .system import InterfaceConfigurator, ResolverWriter, ReachabilityProber
from .types import NetworkConfig
from .exceptions import (
    ModemError,
    ProtocolTimeout,
    CommandRejected,
    ResponseParseError,
    RegistrationTimeout,
    ExternalToolError
)

if TYPE_CHECKING:
    from .core import CommandCorrelator, IOPump

logger = logging.getLogger(__name__)

SOFT_RESET_COMMAND = "ATZ"
RESTART_COMMAND = "AT+CFUN=1,1"

# Exit code after a settings restart; the supervisor relaunches us
EXIT_RESTART = 0
EXIT_STOPPED = 0

# Errors a fresh provisioning cycle can cure
RECOVERABLE_ERRORS = (
    ProtocolTimeout,
    CommandRejected,
    ResponseParseError,
    RegistrationTimeout,
    ExternalToolError,
)


class ManagerState(Enum):
    """Lifecycle states of the connectivity manager."""
    ENFORCE_SETTINGS = "enforce_settings"
    RESTART_WAIT = "restart_wait"
    PROVISION_PDP = "provision_pdp"
    AWAIT_REGISTRATION = "await_registration"
    ACTIVATE_SESSION = "activate_session"
    EXTRACT_CONFIG = "extract_config"
    CONFIGURE_INTERFACE = "configure_interface"
    MONITOR = "monitor"
    STOPPED = "stopped"


class ConnectivityManager:
    """
    Keeps the modem's data session up.

    Runs settings enforcement once, then cycles through provisioning and
    monitoring for as long as the link can be kept alive:

    .. code-block:: text

        ENFORCE_SETTINGS -> (RESTART_WAIT) -> PROVISION_PDP -> AWAIT_REGISTRATION
          -> ACTIVATE_SESSION -> EXTRACT_CONFIG -> CONFIGURE_INTERFACE -> MONITOR
          -> PROVISION_PDP ...

    Every failure soft-resets the modem. Failures inside a provisioning cycle
    are retried with a fresh cycle up to ``max_recoveries`` times in a row;
    anything else, or one failure too many, propagates to the caller, which
    exits non-zero.

    Example:

    .. code-block:: python

        manager = ConnectivityManager(config, correlator, pump=pump)
        sys.exit(manager.run())
    """

    def __init__(
        self,
        config: ManagerConfig,
        correlator: "CommandCorrelator",
        pump: Optional["IOPump"] = None,
        interface: Optional[InterfaceConfigurator] = None,
        resolver: Optional[ResolverWriter] = None,
        prober_factory: Callable[..., ReachabilityProber] = ReachabilityProber,
        device_exists: Callable[[str], bool] = os.path.exists,
        sleep: Callable[[float], None] = time.sleep
    ) -> None:
        """
        Initialize the manager.

        Args:
            config: Connection configuration
            correlator: Correlator shared with the operator console
            pump: I/O pump, checked for fatal failures while monitoring
            interface: Host interface configurator
            resolver: Resolver file writer
            prober_factory: Builds the reachability prober for each session
            device_exists: Device path existence check
            sleep: Delay function, replaceable in tests
        """
        self.config = config
        self.correlator = correlator
        self.pump = pump
        self.interface = interface or InterfaceConfigurator()
        self.resolver = resolver or ResolverWriter(config.resolv_conf)
        self._prober_factory = prober_factory
        self._device_exists = device_exists
        self._sleep = sleep

        self.settings = SettingEnforcer(correlator)
        self.session = SessionManager(correlator, sleep=sleep)
        self.health = HealthCounter(config.health_threshold)

        self.state = ManagerState.ENFORCE_SETTINGS
        self.network_config: Optional[NetworkConfig] = None
        self.reprovision_count = 0

        self._prober: Optional[ReachabilityProber] = None
        self._stop_event = threading.Event()

    def _enter(self, state: ManagerState) -> None:
        logger.debug(f"State {self.state.value} -> {state.value}")
        self.state = state

    def run(self) -> int:
        """
        Run the lifecycle until stopped or a settings restart.

        Returns:
            EXIT_RESTART after the modem restarted to apply settings,
            EXIT_STOPPED after ``stop()``

        Raises:
            ModemError: On unrecoverable failure, after the soft reset
        """
        logger.info(f"Managing modem on {self.config.describe()}")

        try:
            restart_required = self._enforce_settings()
        except ModemError as e:
            self._soft_reset(e)
            raise

        if restart_required:
            return self._restart_modem()

        failures = 0
        while not self._stop_event.is_set():
            try:
                self.network_config = self._provision()
                failures = 0
                self._monitor()
            except RECOVERABLE_ERRORS as e:
                failures += 1
                self._soft_reset(e)
                if failures > self.config.max_recoveries:
                    logger.error(f"Giving up after {failures} failed provisioning attempts")
                    raise
                logger.warning(f"Reprovisioning (attempt {failures}/{self.config.max_recoveries})")
            except ModemError as e:
                self._soft_reset(e)
                raise

        self._enter(ManagerState.STOPPED)
        return EXIT_STOPPED

    def stop(self) -> None:
        """Ask the manager to leave its loop at the next check."""
        logger.info("Stopping connectivity manager")
        self._stop_event.set()

    def _enforce_settings(self) -> bool:
        self._enter(ManagerState.ENFORCE_SETTINGS)
        return self.settings.enforce_all(self.config.settings)

    def _restart_modem(self) -> int:
        """Restart the modem and wait for its device to come back."""
        self._enter(ManagerState.RESTART_WAIT)
        logger.info("Restarting modem and then program once it returns...")
        self.correlator.post(RESTART_COMMAND)

        disappeared = False
        while not self._stop_event.is_set():
            if not self._device_exists(self.config.port):
                if not disappeared:
                    logger.info("Modem disappeared, awaiting its return...")
                    disappeared = True
            elif disappeared:
                logger.info(f"Modem reappeared, restarting in {self.config.restart_settle_delay:g} seconds...")
                self._sleep(self.config.restart_settle_delay)
                return EXIT_RESTART
            self._sleep(self.config.restart_poll_interval)

        self._enter(ManagerState.STOPPED)
        return EXIT_STOPPED

    def _provision(self) -> NetworkConfig:
        """One full provisioning cycle, ending with the host configured."""
        cfg = self.config
        self._check_pump()

        self._enter(ManagerState.PROVISION_PDP)
        self.session.provision_pdp(cfg.apn, cfg.context_count)
        self._sleep(cfg.pdp_settle_delay)

        self._enter(ManagerState.AWAIT_REGISTRATION)
        self.session.await_registration(cfg.registration_attempts, cfg.registration_interval)

        self._enter(ManagerState.ACTIVATE_SESSION)
        self.session.activate_session()
        self._sleep(cfg.activation_settle_delay)

        self._enter(ManagerState.EXTRACT_CONFIG)
        network_config = self.session.extract_config()

        self._enter(ManagerState.CONFIGURE_INTERFACE)
        self.interface.configure(cfg.interface, network_config.ip, network_config.gateway)
        self.resolver.write(network_config.primary_dns, network_config.secondary_dns)

        return network_config

    def _monitor(self) -> None:
        """
        Probe the primary DNS until the link is lost or the manager stops.

        Returns when ``health_threshold`` consecutive probes went unanswered.
        """
        self._enter(ManagerState.MONITOR)
        network_config = self.network_config
        self.health.reset()

        prober = self._prober_factory(
            target=network_config.primary_dns,
            source=network_config.ip,
            max_rtt=self.config.probe_max_rtt,
            on_success=self.health.record_success,
            on_idle=self.health.record_idle
        )
        self._prober = prober
        prober.start()

        try:
            while not self._stop_event.is_set():
                self._check_pump()
                if self.health.exhausted:
                    logger.warning(
                        f"Error no connectivity after {self.health.value} pings, attempting to reconnect..."
                    )
                    self.reprovision_count += 1
                    return
                self._stop_event.wait(self.config.monitor_interval)
        finally:
            prober.stop()
            self._prober = None

    def _check_pump(self) -> None:
        if self.pump is not None and self.pump.failure is not None:
            raise self.pump.failure

    def _soft_reset(self, error: Exception) -> None:
        """
        Best-effort soft reset after a failure.

        The reset's own reply and any late answers to the failed cycle are
        dropped so the next command only sees its own response.
        """
        logger.error(f"{error}")
        logger.error("Issuing modem reset...")
        self.correlator.post(SOFT_RESET_COMMAND)
        self._sleep(self.config.soft_reset_delay)
        dropped = self.correlator.discard_pending()
        if dropped:
            logger.debug(f"Dropped {dropped} stale response lines after reset")

    def __repr__(self) -> str:
        return f"<ConnectivityManager state={self.state.value}>"
