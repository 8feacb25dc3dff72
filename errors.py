#!/usr/bin/env python3
"""
Error types raised by the ethgen traffic generator
Construction-time errors abort startup, write errors are counted and skipped
"""


class TrafficGenError(Exception):
    """Base class for all traffic generator errors"""


class ConfigurationError(TrafficGenError):
    """Configuration is unusable (bad rate, out-of-range field, unreadable file)"""


class InvalidAddress(TrafficGenError):
    """Malformed hardware address string"""

    def __init__(self, field: str, value):
        self.field = field
        self.value = value
        super().__init__(f"invalid {field} MAC address: {value!r}")


class SerializationError(TrafficGenError):
    """Frame layers could not be composed"""


class TransportWriteError(TrafficGenError):
    """A single frame write to the sink failed"""
