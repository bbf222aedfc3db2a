# hardware/ftdi/ftdi_port_interface.py
"""
IFtdiPort Protocol
==================
Minimal contract for one open FTDI channel (the DeviceHandle).

Everything above this layer (TransportBuffer, engines) talks to the chip
only through these calls, so tests can substitute MockFtdiPort.
"""

from typing import Protocol
from models.enums import BitMode


class IFtdiPort(Protocol):

    # -------------------------------
    # Mode control
    # -------------------------------

    def set_bitmode(self, mask: int, mode: BitMode) -> None:
        """Select bit mode; mask sets pin directions for bit-bang modes."""
        ...

    def set_latency_timer(self, latency_ms: int) -> None:
        ...

    def purge_buffers(self) -> None:
        """Drop anything queued in the chip's RX and TX FIFOs."""
        ...

    # -------------------------------
    # IO
    # -------------------------------

    def write_data(self, data: bytes) -> int:
        """Write bytes, return how many the device accepted."""
        ...

    def read_data(self, size: int) -> bytes:
        """
        Return up to `size` bytes that are available now.

        An empty result means nothing has arrived yet, it is not an error.
        """
        ...

    # -------------------------------
    # Lifecycle
    # -------------------------------

    def close(self) -> None:
        ...
