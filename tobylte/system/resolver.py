"""
Resolver configuration.
"""

import logging

from ..exceptions import ExternalToolError

logger = logging.getLogger(__name__)

DEFAULT_RESOLV_CONF = "/etc/resolv.conf"


class ResolverWriter:
    """Overwrites the resolver file with the carrier's DNS servers."""

    def __init__(self, path: str = DEFAULT_RESOLV_CONF) -> None:
        self.path = path

    def write(self, primary_dns: str, secondary_dns: str) -> None:
        """
        Write ``nameserver`` lines for the primary then the secondary server.

        Raises:
            ExternalToolError: If the file cannot be written
        """
        content = f"nameserver {primary_dns}\nnameserver {secondary_dns}\n"
        try:
            with open(self.path, "w") as f:
                f.write(content)
        except OSError as e:
            raise ExternalToolError(f"Error writing {self.path}: {e}") from e
        logger.info(f"Wrote nameservers {primary_dns}, {secondary_dns} to {self.path}")
