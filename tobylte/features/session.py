"""
Data session manager.

Handles PDP context provisioning, network registration, session activation
and extraction of the assigned network parameters.
"""

import logging
import time
from typing import TYPE_CHECKING, Callable

from ..types import NetworkConfig, RegistrationStatus
from ..parsers.network import RegistrationStatusParser, NetworkConfigParser
from ..exceptions import RegistrationTimeout

if TYPE_CHECKING:
    from ..core import CommandCorrelator

logger = logging.getLogger(__name__)

ACTIVATION_COMMANDS = (
    "AT+UPSD=0,100,4",
    "AT+UPSD=0,0,0",
    "AT+UPSDA=0,3",
)


def provisioning_commands(apn: str, context_count: int = 8) -> list[str]:
    """
    Command sequence that resets the PDP contexts and defines the default one.

    Extended errors are enabled, the radio is switched off while the contexts
    are deleted and redefined, then full functionality is restored.
    """
    return (
        ["AT+CMEE=2", "AT+CFUN=4"]
        + [f"AT+CGDEL={cid}" for cid in range(1, context_count + 1)]
        + [f'AT+UCGDFLT=1,"IP","{apn}"', "AT+CFUN=1"]
    )


class SessionManager:
    """
    Manages the mobile data session.

    Every step raises on the first failed command; the caller decides how to
    recover.
    """

    def __init__(
        self,
        correlator: "CommandCorrelator",
        sleep: Callable[[float], None] = time.sleep
    ) -> None:
        """
        Initialize session manager.

        Args:
            correlator: Correlator for AT command execution
            sleep: Delay function, replaceable in tests
        """
        self.correlator = correlator
        self._sleep = sleep

        # Parsers
        self._reg_status_parser = RegistrationStatusParser()
        self._config_parser = NetworkConfigParser()

        logger.debug("Initialized SessionManager")

    def _run(self, commands, step: str) -> None:
        for command in commands:
            outcome = self.correlator.send_and_await(command)
            if not outcome.success:
                logger.error(f"Error issuing {step} command {command}: {outcome.payload}")
                outcome.raise_for_status()

    def provision_pdp(self, apn: str, context_count: int = 8) -> None:
        """
        Set up the default PDP context for ``apn``.

        Raises:
            CommandRejected: If any command is rejected
            ProtocolTimeout: If any command times out
        """
        logger.info("Setting up PDP context...")
        self._run(provisioning_commands(apn, context_count), "PDP")

    def get_registration_status(self) -> RegistrationStatus:
        """
        Get network registration status.

        Raises:
            CommandRejected: If the query is rejected
            ProtocolTimeout: If the query times out
            ResponseParseError: If the payload is malformed
        """
        outcome = self.correlator.send_and_await("AT+CREG?")
        if not outcome.success:
            logger.error(f"Error checking network status: {outcome.payload}")
            outcome.raise_for_status()
        reg_status = self._reg_status_parser.parse(outcome.payload)
        logger.debug(f"Registration status: {reg_status}")
        return reg_status

    def await_registration(self, attempts: int = 20, interval: float = 0.5) -> RegistrationStatus:
        """
        Poll registration until the modem is attached (home or roaming).

        Args:
            attempts: Maximum number of AT+CREG? polls
            interval: Seconds between polls

        Returns:
            The registered status

        Raises:
            RegistrationTimeout: If the modem did not register in time
        """
        logger.info("Waiting for connection to mobile network to come up...")
        reg_status = None

        for attempt in range(attempts):
            reg_status = self.get_registration_status()
            if reg_status.is_registered:
                logger.info(f"Registered to network (stat {reg_status.stat})")
                return reg_status

            logger.debug(f"Not registered yet (stat {reg_status.stat}), attempt {attempt + 1}/{attempts}")
            self._sleep(interval)

        last = f"{reg_status.n},{reg_status.stat}" if reg_status else ""
        raise RegistrationTimeout(
            "Network did not come up",
            command="AT+CREG?",
            response=last
        )

    def activate_session(self) -> None:
        """
        Bind the PDP context to the default packet switched profile and activate it.

        Raises:
            CommandRejected: If any command is rejected
            ProtocolTimeout: If any command times out
        """
        logger.info("Assigning PDP to default context...")
        self._run(ACTIVATION_COMMANDS, "PDP")

    def extract_config(self) -> NetworkConfig:
        """
        Read the network parameters assigned to the session.

        Returns:
            NetworkConfig with IP, gateway and DNS servers

        Raises:
            CommandRejected: If a query is rejected
            ProtocolTimeout: If a query times out
            ConfigExtractionError: If a response is missing fields
        """
        logger.info("Finding networking configuration...")

        outcome = self.correlator.send_and_await("AT+CGCONTRDP")
        if not outcome.success:
            logger.error(f"Error getting modem IP: {outcome.payload}")
            outcome.raise_for_status()
        context_payload = outcome.payload

        outcome = self.correlator.send_and_await("AT+UIPADDR=")
        if not outcome.success:
            logger.error(f"Error getting modem gateway IP: {outcome.payload}")
            outcome.raise_for_status()

        config = self._config_parser.parse(context_payload, outcome.payload)
        logger.info(
            f"Network IP: {config.ip}, Primary DNS: {config.primary_dns}, "
            f"Secondary DNS: {config.secondary_dns}, Gateway IP: {config.gateway}"
        )
        return config
