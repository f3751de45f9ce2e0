"""
Exceptions for the tobylte package.

Carries the command and modem response that led to a failure so fatal
exits can be diagnosed from the log alone.
"""

from typing import Optional


class ModemError(Exception):
    """
    Base exception for modem management errors.

    All tobylte exceptions inherit from this class.
    """

    def __init__(
        self,
        message: str,
        command: Optional[str] = None,
        response: Optional[str] = None
    ) -> None:
        """
        Initialize exception with context.

        Args:
            message: Error description
            command: AT command that caused the error (if applicable)
            response: Modem response payload (if applicable)
        """
        self.command = command
        self.response = response
        super().__init__(message)

    def __str__(self) -> str:
        """Format error message with context."""
        parts = [super().__str__()]

        if self.command:
            parts.append(f"Command: {self.command}")

        if self.response:
            parts.append(f"Response: {self.response}")

        return " | ".join(parts)


class TransportError(ModemError):
    """
    Raised when the transport layer fails.

    This indicates:
    - Serial port cannot be opened
    - Read or write failure
    """
    pass


class DeviceDisconnectedError(TransportError):
    """
    Raised when the serial device disappears during operation.

    Fatal for the connection; the process has to be relaunched.
    """
    pass


class FramingError(ModemError):
    """
    Raised when a response line overflows the framer's working buffer.
    """
    pass


class ProtocolTimeout(ModemError):
    """
    Raised when no terminal line (OK/ERROR) arrives before the deadline.
    """
    pass


class CommandRejected(ModemError):
    """
    Raised when the modem answers a command with an error line.
    """
    pass


class ResponseParseError(ModemError):
    """
    Raised when a response payload does not have the expected shape.
    """
    pass


class ConfigExtractionError(ResponseParseError):
    """
    Raised when the assigned network parameters cannot be extracted.

    This indicates:
    - Too few comma-separated fields in AT+CGCONTRDP or AT+UIPADDR output
    - An empty address field
    """
    pass


class RegistrationTimeout(ModemError):
    """
    Raised when the modem never registers to the mobile network.
    """
    pass


class ExternalToolError(ModemError):
    """
    Raised when a host collaborator fails.

    This indicates:
    - ifconfig or route returned non-zero or could not be run
    - The resolver file could not be written
    """
    pass
