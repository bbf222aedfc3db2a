from collections import deque
from typing import Callable, Deque, List, Optional, Tuple
from hardware.ftdi.ftdi_port_interface import IFtdiPort
from models.enums import BitMode
from models.errors import TransportError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.HARDWARE)

# Called with every written chunk, returns bytes the "chip" sends back
Responder = Callable[[bytes], bytes]


class MockFtdiPort(IFtdiPort):
    """
    In-memory FTDI channel.

    - writes: every write_data() payload, in order
    - queue_read(): scripts one delivery returned by a later read_data()
    - responder: optional hook producing replies for written commands
    - write_limit: accept at most this many bytes per write (short write)
    """

    def __init__(self, responder: Optional[Responder] = None):
        self.writes: List[bytes] = []
        self.bitmodes: List[Tuple[int, BitMode]] = []
        self.latency_ms: Optional[int] = None
        self.responder = responder
        self.write_limit: Optional[int] = None
        self.read_error: Optional[str] = None
        self.purge_count = 0
        self.closed = False
        self._deliveries: Deque[bytes] = deque()
        log.debug("Mock FTDI port initialized")

    # -------------------------------
    # Scripting
    # -------------------------------

    def queue_read(self, data: bytes) -> None:
        """Queue one delivery; read_data() never merges deliveries."""
        self._deliveries.append(bytes(data))

    @property
    def written(self) -> bytes:
        """All bytes written so far, concatenated."""
        return b"".join(self.writes)

    def reset_writes(self) -> None:
        self.writes.clear()

    # -------------------------------
    # Mode control
    # -------------------------------

    def set_bitmode(self, mask: int, mode: BitMode) -> None:
        self.bitmodes.append((mask, mode))

    def set_latency_timer(self, latency_ms: int) -> None:
        self.latency_ms = latency_ms

    def purge_buffers(self) -> None:
        self.purge_count += 1
        self._deliveries.clear()

    # -------------------------------
    # IO
    # -------------------------------

    def write_data(self, data: bytes) -> int:
        data = bytes(data)
        accepted = data if self.write_limit is None else data[:self.write_limit]
        self.writes.append(accepted)
        if self.responder is not None:
            reply = self.responder(accepted)
            if reply:
                self.queue_read(reply)
        return len(accepted)

    def read_data(self, size: int) -> bytes:
        if self.read_error is not None:
            raise TransportError(self.read_error)
        if not self._deliveries:
            return b""
        # Returned whole even if larger than size: lets tests provoke over-long reads
        return self._deliveries.popleft()

    # -------------------------------
    # Lifecycle
    # -------------------------------

    def close(self) -> None:
        self.closed = True
