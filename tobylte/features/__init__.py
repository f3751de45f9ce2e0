"""
Feature managers for modem functionality.

Provides the building blocks of the connectivity lifecycle:
- SettingEnforcer: Persistent modem settings
- SessionManager: PDP context, registration, activation, network parameters
- HealthCounter: Consecutive failed reachability probes
"""

from .settings import SettingEnforcer
from .session import SessionManager, provisioning_commands, ACTIVATION_COMMANDS
from .health import HealthCounter

__all__ = [
    "SettingEnforcer",
    "SessionManager",
    "provisioning_commands",
    "ACTIVATION_COMMANDS",
    "HealthCounter",
]
