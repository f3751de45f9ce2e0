"""
Response parsers.

Classifies response lines and parses data payloads into typed structures.
"""

from .base import ResponseParser, CommaSeparatedParser, unquote
from .response import LineKind, ClassifiedLine, classify_line, derive_mnemonic
from .network import (
    RegistrationStatusParser,
    ContextParametersParser,
    GatewayAddressParser,
    NetworkConfigParser
)

__all__ = [
    "ResponseParser",
    "CommaSeparatedParser",
    "unquote",
    "LineKind",
    "ClassifiedLine",
    "classify_line",
    "derive_mnemonic",
    "RegistrationStatusParser",
    "ContextParametersParser",
    "GatewayAddressParser",
    "NetworkConfigParser",
]
