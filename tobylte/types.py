"""
Data types and structures for tobylte.

Provides typed representations of command outcomes and modem data.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Optional

from .exceptions import CommandRejected, ProtocolTimeout

TIMEOUT_MESSAGE = "Timed out waiting for response"


class OutcomeStatus(Enum):
    """How a single command exchange ended."""
    SUCCESS = "success"
    FAILURE = "failure"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class CommandOutcome:
    """
    Result of one send-and-await exchange.

    Attributes:
        command: Command as it was queued for transmission
        status: Terminal status of the exchange
        payload: Data response with the mnemonic prefix removed, the error
                 line on failure, or a timeout message
    """
    command: str
    status: OutcomeStatus
    payload: str = ""

    @property
    def success(self) -> bool:
        """True if the modem answered OK."""
        return self.status is OutcomeStatus.SUCCESS

    @property
    def timed_out(self) -> bool:
        """True if no terminal line arrived before the deadline."""
        return self.status is OutcomeStatus.TIMED_OUT

    def raise_for_status(self) -> "CommandOutcome":
        """
        Raise if the exchange did not succeed.

        Returns:
            self, so calls can be chained

        Raises:
            ProtocolTimeout: If the exchange timed out
            CommandRejected: If the modem returned an error line
        """
        if self.status is OutcomeStatus.TIMED_OUT:
            raise ProtocolTimeout(self.payload, command=self.command)
        if self.status is OutcomeStatus.FAILURE:
            raise CommandRejected(
                f"Modem rejected {self.command}",
                command=self.command,
                response=self.payload
            )
        return self


class RegistrationState(IntEnum):
    """Network registration status values."""
    NOT_REGISTERED = 0
    REGISTERED_HOME = 1
    SEARCHING = 2
    DENIED = 3
    UNKNOWN = 4
    REGISTERED_ROAMING = 5


@dataclass
class RegistrationStatus:
    """
    Network registration status from AT+CREG?

    Attributes:
        n: Reporting mode (0=disable, 1=enable, 2=enable with location)
        stat: Registration status (see RegistrationState enum)
        lac: Location Area Code (hex string, if available)
        ci: Cell ID (hex string, if available)
        act: Access technology (if available)
    """
    n: Optional[int]
    stat: int
    lac: Optional[str] = None
    ci: Optional[str] = None
    act: Optional[int] = None

    @property
    def is_registered(self) -> bool:
        """Check if registered to network (home or roaming)."""
        return self.stat in (
            RegistrationState.REGISTERED_HOME,
            RegistrationState.REGISTERED_ROAMING
        )


@dataclass(frozen=True)
class ModemSetting:
    """
    A modem configuration parameter that must hold a given value.

    ``command`` is the corrective command (e.g. ``AT+UBMCONF=2``); the query
    and desired value are derived from it.
    """
    command: str
    name: str

    @property
    def query(self) -> str:
        """Setting command without its value (e.g. ``AT+UBMCONF``)."""
        return self.command.split("=")[0]

    @property
    def desired(self) -> str:
        """Desired value as it appears in the query response."""
        return self.command.split("=")[1]


@dataclass
class NetworkConfig:
    """Network parameters assigned by the carrier for the active session."""
    ip: str
    gateway: str
    primary_dns: str
    secondary_dns: str
