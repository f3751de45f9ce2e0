"""
Base parser classes and utilities.

Provides reusable parsing functionality for response payloads.
"""

import logging
from abc import ABC, abstractmethod
from typing import TypeVar, Generic

from ..exceptions import ResponseParseError

logger = logging.getLogger(__name__)

T = TypeVar('T')


def unquote(field: str) -> str:
    """
    Strip one pair of surrounding double quotes.

    Fields without surrounding quotes are returned unchanged.
    """
    if len(field) >= 2 and field[0] == '"' and field[-1] == '"':
        return field[1:-1]
    return field


class ResponseParser(ABC, Generic[T]):
    """
    Abstract base class for response parsers.

    Parsers convert the payload of a data response (the line with its
    ``<mnemonic>: `` prefix removed) into typed data structures.
    """

    @abstractmethod
    def parse(self, payload: str) -> T:
        """
        Parse a response payload.

        Args:
            payload: Data response from the correlator

        Returns:
            Parsed data structure

        Raises:
            ResponseParseError: If payload cannot be parsed
        """
        pass


class CommaSeparatedParser(ResponseParser[list[str]]):
    """Parser for comma-separated values."""

    def __init__(self, min_parts: int | None = None, command: str | None = None):
        """
        Initialize parser.

        Args:
            min_parts: Minimum number of fields required (None = any)
            command: Command reported in parse errors
        """
        self.min_parts = min_parts
        self.command = command

    def parse(self, payload: str) -> list[str]:
        """Parse comma-separated values, unquoting each field."""
        if not payload:
            raise ResponseParseError("Empty response", command=self.command, response=payload)

        parts = [unquote(p.strip()) for p in payload.split(",")]

        if self.min_parts is not None and len(parts) < self.min_parts:
            raise ResponseParseError(
                f"Expected at least {self.min_parts} fields, got {len(parts)}",
                command=self.command,
                response=payload
            )

        return parts
