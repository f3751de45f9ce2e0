"""
Host interface configuration.

Brings up the modem's point-to-point interface and installs the default
route using the system ``ifconfig`` and ``route`` tools.
"""

import logging
import subprocess
from typing import Sequence

from ..exceptions import ExternalToolError

logger = logging.getLogger(__name__)


def run_tool(cmd: Sequence[str], timeout: float = 10.0) -> str:
    """
    Run a system tool and return its stdout.

    Raises:
        ExternalToolError: If the tool cannot be run, times out or exits non-zero
    """
    logger.debug(f"Running {' '.join(cmd)}")
    try:
        result = subprocess.run(
            list(cmd),
            capture_output=True,
            text=True,
            timeout=timeout,
            check=True
        )
    except subprocess.CalledProcessError as e:
        raise ExternalToolError(
            f"Command exited with status {e.returncode}",
            command=" ".join(cmd),
            response=(e.stderr or "").strip()
        ) from e
    except (OSError, subprocess.TimeoutExpired) as e:
        raise ExternalToolError(
            f"Failed to run {cmd[0]}: {e}",
            command=" ".join(cmd)
        ) from e
    return result.stdout or ""


class InterfaceConfigurator:
    """Configures the host side of the data session."""

    def configure(self, interface: str, ip: str, gateway: str) -> None:
        """
        Assign ``ip`` to ``interface`` as a point-to-point link to ``gateway``
        and route all traffic through it.

        Raises:
            ExternalToolError: If ifconfig or route fails
        """
        logger.info(f"Bringing up {interface}...")
        run_tool(["/usr/bin/env", "ifconfig", interface, ip, "pointopoint", gateway])

        logger.info(f"Adding default route via {gateway} on {interface}")
        run_tool(["/usr/bin/env", "route", "add", "default", "gw", gateway, interface])
