"""
Network-specific response parsers.

Parses registration status and the network parameters assigned to the
active PDP context.
"""

import logging
from typing import Optional

from .base import ResponseParser, CommaSeparatedParser
from ..types import NetworkConfig, RegistrationStatus
from ..exceptions import ConfigExtractionError, ResponseParseError

logger = logging.getLogger(__name__)


class RegistrationStatusParser(ResponseParser[RegistrationStatus]):
    """Parser for AT+CREG? (registration status) response."""

    def parse(self, payload: str) -> RegistrationStatus:
        """
        Parse AT+CREG? response.

        Expected formats:
            "0,1"                     (minimal)
            "2,1,\"1234\",\"5678\""   (with location)
            "2,1,\"1234\",\"5678\",7" (with location and act)

        Only the status field must be numeric; unreadable mode, location
        or access technology fields come back as None.
        """
        if not payload:
            raise ResponseParseError(
                "Empty registration status response",
                command="AT+CREG?",
                response=payload
            )

        try:
            parts = payload.split(",")

            n = _optional_int(parts[0])
            stat = int(parts[1])
            lac = parts[2].strip('"') or None if len(parts) > 2 else None
            ci = parts[3].strip('"') or None if len(parts) > 3 else None
            act = _optional_int(parts[4]) if len(parts) > 4 else None

            return RegistrationStatus(
                n=n,
                stat=stat,
                lac=lac,
                ci=ci,
                act=act
            )
        except (ValueError, IndexError) as e:
            raise ResponseParseError(
                f"Failed to parse registration status: {payload}",
                command="AT+CREG?",
                response=payload
            ) from e


class ContextParametersParser(ResponseParser[tuple[str, str, str]]):
    """
    Parser for AT+CGCONTRDP (dynamic PDP context parameters).

    Fields 4, 5 and 6 hold the assigned IP address, the primary DNS and the
    secondary DNS.
    """

    IP_FIELD = 4
    PRIMARY_DNS_FIELD = 5
    SECONDARY_DNS_FIELD = 6

    def __init__(self) -> None:
        self._fields = CommaSeparatedParser(
            min_parts=self.SECONDARY_DNS_FIELD + 1,
            command="AT+CGCONTRDP"
        )

    def parse(self, payload: str) -> tuple[str, str, str]:
        """
        Parse AT+CGCONTRDP response.

        Expected format:
            1,0,"internet","0.0.0.0","10.0.0.5","8.8.8.8","8.8.4.4",...

        Returns:
            Tuple of (ip, primary_dns, secondary_dns)
        """
        fields = _extract(self._fields, payload)
        return (
            _required(fields, self.IP_FIELD, "IP address", "AT+CGCONTRDP", payload),
            _required(fields, self.PRIMARY_DNS_FIELD, "primary DNS", "AT+CGCONTRDP", payload),
            _required(fields, self.SECONDARY_DNS_FIELD, "secondary DNS", "AT+CGCONTRDP", payload),
        )


class GatewayAddressParser(ResponseParser[str]):
    """
    Parser for AT+UIPADDR= (IP interface addresses).

    Field 2 holds the gateway address of the host interface.
    """

    GATEWAY_FIELD = 2

    def __init__(self) -> None:
        self._fields = CommaSeparatedParser(
            min_parts=self.GATEWAY_FIELD + 1,
            command="AT+UIPADDR="
        )

    def parse(self, payload: str) -> str:
        """
        Parse AT+UIPADDR= response.

        Expected format:
            1,"usb0:0","10.0.0.1","255.255.255.0","",""
        """
        fields = _extract(self._fields, payload)
        return _required(fields, self.GATEWAY_FIELD, "gateway", "AT+UIPADDR=", payload)


class NetworkConfigParser:
    """Combines the context parameter and gateway responses into a NetworkConfig."""

    def __init__(self) -> None:
        self._context_parser = ContextParametersParser()
        self._gateway_parser = GatewayAddressParser()

    def parse(self, context_payload: str, gateway_payload: str) -> NetworkConfig:
        """
        Build the network configuration.

        Args:
            context_payload: Payload of AT+CGCONTRDP
            gateway_payload: Payload of AT+UIPADDR=

        Raises:
            ConfigExtractionError: If a field is missing or empty
        """
        ip, primary_dns, secondary_dns = self._context_parser.parse(context_payload)
        gateway = self._gateway_parser.parse(gateway_payload)

        config = NetworkConfig(
            ip=ip,
            gateway=gateway,
            primary_dns=primary_dns,
            secondary_dns=secondary_dns
        )
        logger.debug(f"Parsed network config: {config}")
        return config


def _extract(parser: CommaSeparatedParser, payload: str) -> list[str]:
    try:
        return parser.parse(payload)
    except ResponseParseError as e:
        raise ConfigExtractionError(
            f"Malformed network parameters: {e.args[0]}",
            command=e.command,
            response=e.response
        ) from e


def _required(fields: list[str], index: int, name: str, command: str, payload: str) -> str:
    value = fields[index]
    if not value:
        raise ConfigExtractionError(
            f"Empty {name} in field {index}",
            command=command,
            response=payload
        )
    return value


def _optional_int(field: str) -> Optional[int]:
    try:
        return int(field)
    except ValueError:
        return None
