# hardware/mpsse/transport_buffer.py
"""
TransportBuffer - batched command stream over one FTDI channel
===============================================================
Every flush() is one USB bulk transfer. Multi-step bus sequences are
staged here first so the transport latency does not leak into the bus
timing as jitter between single-byte transfers.

- append_byte()/append_bytes() are all-or-nothing against a 512 byte cap
- flush() never retries a short write (chip state is unknown afterwards)
- read_exact() polls with a 1ms wall-clock deadline
"""

from __future__ import annotations
import time
from typing import Iterable

from hardware.ftdi.ftdi_port_interface import IFtdiPort
from models.errors import ArgumentError, BufferOverflowError, ReadTimeoutError, TransportError
from utils.logger import get_logger, LogCategory, LogLevel, hex_bytes

log = get_logger().for_category(LogCategory.TRANSPORT)


class TransportBuffer:
    """
    Owns the port handle and the pending command bytes.

    Only one engine may drive a TransportBuffer at a time; that is the
    caller's responsibility and is not checked here.
    """

    CAPACITY = 512
    READ_TIMEOUT_S = 0.001

    def __init__(self, port: IFtdiPort) -> None:
        self.port = port
        self._buffer = bytearray()

    # ==================== Buffer ====================

    @property
    def pending(self) -> bytes:
        """Snapshot of the bytes waiting for flush()."""
        return bytes(self._buffer)

    def __len__(self) -> int:
        return len(self._buffer)

    def clear(self) -> None:
        self._buffer.clear()

    def append_byte(self, value: int) -> None:
        self.append_bytes((value,))

    def append_bytes(self, data: Iterable[int]) -> None:
        """Append all of data or nothing."""
        try:
            chunk = bytes(data)
        except (ValueError, TypeError) as ex:
            raise ArgumentError(f"Command bytes must be ints in 0-255: {ex}") from ex

        if len(self._buffer) + len(chunk) > self.CAPACITY:
            raise BufferOverflowError(len(self._buffer), len(chunk), self.CAPACITY)
        self._buffer.extend(chunk)

    def flush(self) -> None:
        """Write all pending bytes in a single transfer."""
        if not self._buffer:
            return

        expected = len(self._buffer)
        if log.is_enabled(LogLevel.DEBUG):
            log.debug("flush", length=expected, data=hex_bytes(self._buffer))

        written = self.port.write_data(bytes(self._buffer))
        if written != expected:
            log.error("Short write", expected=expected, written=written)
            raise TransportError(f"write_data() failed: expected {expected} got {written}")
        self._buffer.clear()

    # ==================== Read ====================

    def read_exact(self, length: int) -> bytes:
        """
        Collect exactly `length` response bytes within READ_TIMEOUT_S of entry.

        Raises:
            ReadTimeoutError: deadline passed with fewer bytes collected
            TransportError: port failure or more bytes than requested
        """
        if length < 0:
            raise ArgumentError(f"Invalid read length: {length}")
        if length == 0:
            return b""

        deadline = time.perf_counter() + self.READ_TIMEOUT_S
        received = bytearray()
        while True:
            chunk = self.port.read_data(length - len(received))
            if chunk:
                received.extend(chunk)
                if len(received) > length:
                    raise TransportError(
                        f"read_data() got too many bytes: expected {length} got {len(received)}"
                    )
            if len(received) == length:
                return bytes(received)
            if time.perf_counter() >= deadline:
                break

        log.warn("Read timed out", expected=length, received=len(received))
        raise ReadTimeoutError(length, len(received), self.READ_TIMEOUT_S)

    # ==================== Lifecycle ====================

    def close(self) -> None:
        """Drop pending bytes and release the port (aborts any in-flight state)."""
        self._buffer.clear()
        self.port.close()

    def __enter__(self) -> 'TransportBuffer':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
