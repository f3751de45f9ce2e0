"""
Core modem infrastructure.

Provides low-level building blocks for modem communication:
- Transport: Serial byte stream abstraction
- LineFramer: CRLF line framing
- LineQueue: Thread-safe transmit and receive queues
- IOPump: Background thread driving the transport
- CommandCorrelator: Command/response matching
"""

from .transport import Transport, SerialTransport, MockTransport
from .framer import LineFramer
from .queues import LineQueue
from .pump import IOPump
from .protocol import CommandCorrelator

__all__ = [
    "Transport",
    "SerialTransport",
    "MockTransport",
    "LineFramer",
    "LineQueue",
    "IOPump",
    "CommandCorrelator",
]
