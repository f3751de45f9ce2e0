"""
Response line classification.

The modem protocol has no grammar beyond "<mnemonic>: <data>" lines followed
by a terminal OK or an error line, so classification is plain substring
matching against the mnemonic of the command in flight.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

_AT_PREFIX = re.compile(r"^(at|AT)")
_MNEMONIC = re.compile(r"^.[a-zA-Z]*")


class LineKind(Enum):
    """What a response line means for the command in flight."""
    DATA = "data"
    OK = "ok"
    ERROR = "error"
    OTHER = "other"


@dataclass(frozen=True)
class ClassifiedLine:
    kind: LineKind
    payload: Optional[str] = None

    @property
    def terminal(self) -> bool:
        """True for lines that end the exchange."""
        return self.kind in (LineKind.OK, LineKind.ERROR)


def derive_mnemonic(command: str) -> str:
    """
    Derive the response mnemonic for a command.

    Strips a leading ``AT``/``at`` and keeps the first remaining character
    plus the letters that follow it, so ``AT+CREG?`` gives ``+CREG`` and
    ``ATZ`` gives ``Z``. Mixed-case prefixes such as ``At`` are left alone.

    Args:
        command: Command as sent to the modem

    Returns:
        Mnemonic, or an empty string for a bare ``AT``
    """
    stripped = _AT_PREFIX.sub("", command, count=1)
    match = _MNEMONIC.match(stripped)
    return match.group(0) if match else ""


def classify_line(line: str, mnemonic: str) -> ClassifiedLine:
    """
    Classify one response line.

    Data lines are matched first: a line containing ``"<mnemonic>: "`` yields
    the line with the first occurrence of that prefix removed. Otherwise a
    line equal to ``OK`` is success and a line containing ``ERROR`` is a
    failure whose payload is the whole line.

    Example:

    .. code-block:: python

        classify_line("+CREG: 0,1", "+CREG").payload  # "0,1"
    """
    if mnemonic:
        prefix = mnemonic + ": "
        if prefix in line:
            return ClassifiedLine(LineKind.DATA, line.replace(prefix, "", 1))

    if line == "OK":
        return ClassifiedLine(LineKind.OK)

    if "ERROR" in line:
        return ClassifiedLine(LineKind.ERROR, line)

    return ClassifiedLine(LineKind.OTHER)
