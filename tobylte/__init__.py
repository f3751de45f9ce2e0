"""
tobylte - connection manager for u-blox TOBY LTE modems.
"""

from .version import __version__
from .manager import ConnectivityManager, ManagerState
from .config import ManagerConfig, REQUIRED_SETTINGS

from .core import (
    Transport,
    SerialTransport,
    MockTransport,
    LineFramer,
    LineQueue,
    IOPump,
    CommandCorrelator,
)

from .types import (
    CommandOutcome,
    OutcomeStatus,
    ModemSetting,
    NetworkConfig,
    RegistrationStatus,
    RegistrationState,
)

from .exceptions import (
    ModemError,
    TransportError,
    DeviceDisconnectedError,
    FramingError,
    ProtocolTimeout,
    CommandRejected,
    ResponseParseError,
    ConfigExtractionError,
    RegistrationTimeout,
    ExternalToolError,
)

__all__ = [
    "__version__",
    "ConnectivityManager",
    "ManagerState",
    "ManagerConfig",
    "REQUIRED_SETTINGS",
    "Transport",
    "SerialTransport",
    "MockTransport",
    "LineFramer",
    "LineQueue",
    "IOPump",
    "CommandCorrelator",
    "CommandOutcome",
    "OutcomeStatus",
    "ModemSetting",
    "NetworkConfig",
    "RegistrationStatus",
    "RegistrationState",
    "ModemError",
    "TransportError",
    "DeviceDisconnectedError",
    "FramingError",
    "ProtocolTimeout",
    "CommandRejected",
    "ResponseParseError",
    "ConfigExtractionError",
    "RegistrationTimeout",
    "ExternalToolError",
]
