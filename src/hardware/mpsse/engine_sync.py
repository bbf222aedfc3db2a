# hardware/mpsse/engine_sync.py
"""
EngineSync - prove the MPSSE command stream is byte aligned
============================================================
Two invalid opcodes are written; the engine answers each with
BAD_COMMAND_ECHO followed by the opcode. Seeing FA AB FA AA means the
next byte we send is parsed as an opcode.

Must run once per engine attach, before clock or pin setup.
"""

from __future__ import annotations
import time

from hardware.mpsse.commands import BAD_COMMAND_ECHO
from hardware.mpsse.transport_buffer import TransportBuffer
from models.errors import SyncError, TransportError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.SYNC)


BAD_COMMANDS = bytes((0xAB, 0xAA))
EXPECTED_ECHO = (
    (BAD_COMMAND_ECHO << 24) | (BAD_COMMANDS[0] << 16) | (BAD_COMMAND_ECHO << 8) | BAD_COMMANDS[1]
)  # 0xFAABFAAA


class EngineSync:
    """One-shot synchronization against the bad-command echo."""

    SETTLE_S = 0.0001     # ignore early matches (stale bytes from a prior session)
    DEADLINE_S = 0.010
    READ_CHUNK = 256

    def __init__(self, transport: TransportBuffer) -> None:
        self.transport = transport

    def run(self) -> None:
        """
        Raises:
            TransportError: write or read failure
            SyncError: echo pattern not seen within DEADLINE_S
        """
        self.transport.clear()
        port = self.transport.port

        written = port.write_data(BAD_COMMANDS)
        if written != len(BAD_COMMANDS):
            raise TransportError(f"write_data() failed: {written}")

        # Only the first 4 bytes of each read are folded in. Correct as long as
        # sync reads come back a few bytes at a time, which holds on FT2232H.
        window = 0
        begin = time.perf_counter()
        while True:
            elapsed = time.perf_counter() - begin
            if elapsed > self.DEADLINE_S:
                break
            if elapsed > self.SETTLE_S and window == EXPECTED_ECHO:
                break

            chunk = port.read_data(self.READ_CHUNK)
            for b in chunk[:4]:
                window = ((window << 8) | b) & 0xFFFFFFFF

        if window != EXPECTED_ECHO:
            log.error("MPSSE synchronization failed", last_bytes=f"{window:#010x}")
            raise SyncError(f"MPSSE synchronization failed: last bytes {window:#010x}")

        log.info("MPSSE synchronized", elapsed_us=int((time.perf_counter() - begin) * 1e6))
