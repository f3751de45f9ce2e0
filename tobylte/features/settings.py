"""
Setting enforcer.

Converges persistent modem settings with as few writes as possible.
"""

import logging
from typing import TYPE_CHECKING, Iterable

from ..types import ModemSetting

if TYPE_CHECKING:
    from ..core import CommandCorrelator

logger = logging.getLogger(__name__)


class SettingEnforcer:
    """
    Query-then-correct enforcement of modem settings.

    Running against a modem that is already configured transmits nothing but
    the queries. Changed settings only take effect after a full modem
    restart, which the caller issues once for the whole batch.
    """

    def __init__(self, correlator: "CommandCorrelator") -> None:
        """
        Args:
            correlator: Correlator used for the query and corrective commands
        """
        self.correlator = correlator

    def enforce(self, setting: str, desired_value: str, name: str) -> bool:
        """
        Make sure a setting holds the desired value.

        Args:
            setting: Corrective command, e.g. ``AT+UBMCONF=2``
            desired_value: Substring expected in the query response
            name: Human readable setting name for the log

        Returns:
            True if the setting was changed and a restart is required

        Raises:
            CommandRejected: If the query or the corrective command fails
            ProtocolTimeout: If the query or the corrective command times out

        Example:

        .. code-block:: python

            if enforcer.enforce("AT+UBMCONF=2", "2", "networking mode"):
                print("restart needed")
        """
        query = setting.split("=")[0] + "?"

        outcome = self.correlator.send_and_await(query)
        if not outcome.success:
            logger.error(f"Error polling modem {name}: {outcome.payload}")
            outcome.raise_for_status()

        if desired_value in outcome.payload:
            logger.info(f"Modem in desired {name} ({outcome.payload}), continuing...")
            return False

        logger.info(
            f"Modem is in the incorrect {name} ({outcome.payload}), should be {desired_value}, "
            f"issuing {setting} and will restart later..."
        )
        outcome = self.correlator.send_and_await(setting)
        if not outcome.success:
            logger.error(f"Error setting modem {name}: {outcome.payload}")
            outcome.raise_for_status()

        return True

    def enforce_setting(self, setting: ModemSetting) -> bool:
        """Enforce a ModemSetting; see ``enforce``."""
        return self.enforce(setting.command, setting.desired, setting.name)

    def enforce_all(self, settings: Iterable[ModemSetting]) -> bool:
        """
        Enforce every setting in order.

        Returns:
            True if any setting changed
        """
        restart_required = False
        for setting in settings:
            restart_required = self.enforce_setting(setting) or restart_required
        return restart_required
