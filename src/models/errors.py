"""
Error taxonomy for the MPSSE protocol engines.

Every failure surfaces as one of these exceptions; the engines never retry and
never terminate the process. NackError is an expected bus outcome the caller
branches on, the rest indicate caller bugs or transport faults.
"""

from typing import Optional


class MpsseError(Exception):
    """Base class for all engine errors."""


class ArgumentError(MpsseError, ValueError):
    """Invalid length, frequency or byte value passed by the caller."""


class BufferOverflowError(MpsseError):
    """Command batch would exceed the transport buffer capacity."""

    def __init__(self, pending: int, requested: int, capacity: int):
        super().__init__(
            f"Command buffer overflow: {pending} pending + {requested} requested > {capacity}"
        )
        self.pending = pending
        self.requested = requested
        self.capacity = capacity


class TransportError(MpsseError):
    """USB level write/read fault, short write or over-long read."""


class ReadTimeoutError(MpsseError):
    """Expected response bytes did not arrive before the read deadline."""

    def __init__(self, expected: int, received: int, timeout_s: float):
        super().__init__(
            f"Read timed out after {timeout_s * 1000:.1f}ms: got {received} of {expected} bytes"
        )
        self.expected = expected
        self.received = received
        self.timeout_s = timeout_s


class SyncError(MpsseError):
    """Bad-command echo pattern not observed; command stream is not aligned."""


class DeviceOpenError(MpsseError):
    """USB device could not be found or claimed."""


class NackError(MpsseError):
    """A byte that should have been acknowledged was not."""

    def __init__(self, message: str, addr7: Optional[int] = None, bytes_written: int = 0):
        super().__init__(message)
        self.addr7 = addr7
        # Data bytes (address excluded) accepted before the NACK
        self.bytes_written = bytes_written


class AddressNackedError(NackError):
    """No device acknowledged the address byte."""


class DataNackedError(NackError):
    """The addressed device refused a data byte."""
