import time

import pytest

from hardware.mpsse.engine_sync import EngineSync, EXPECTED_ECHO
from hardware.mpsse.transport_buffer import TransportBuffer
from models.errors import SyncError, TransportError


def test_expected_echo_pattern():
    assert EXPECTED_ECHO == 0xFAABFAAA


def test_sync_succeeds_on_echo(transport, port):
    """Both bad opcodes are written in one transfer and echoed back."""
    transport.append_byte(0x87)  # stale command, must be discarded

    EngineSync(transport).run()

    assert port.writes == [b"\xAB\xAA"]
    assert len(transport) == 0


def test_sync_skips_stale_bytes(transport, port):
    port.queue_read(b"\x12\x34")

    EngineSync(transport).run()


def test_sync_fails_without_echo(silent_port):
    with pytest.raises(SyncError):
        EngineSync(TransportBuffer(silent_port)).run()


def test_sync_fails_on_wrong_echo(silent_port):
    silent_port.responder = lambda data: b"\xFA\xAB\xFA\xAB"

    with pytest.raises(SyncError):
        EngineSync(TransportBuffer(silent_port)).run()


def test_sync_short_write(transport, port):
    port.write_limit = 1

    with pytest.raises(TransportError):
        EngineSync(transport).run()


def test_sync_waits_out_settle_time(transport):
    """An echo already present on the first read is only accepted after SETTLE_S."""
    begin = time.perf_counter()
    EngineSync(transport).run()
    assert time.perf_counter() - begin >= EngineSync.SETTLE_S


def test_failed_sync_gives_up_at_deadline(silent_port):
    begin = time.perf_counter()
    with pytest.raises(SyncError):
        EngineSync(TransportBuffer(silent_port)).run()
    elapsed = time.perf_counter() - begin

    assert elapsed >= EngineSync.DEADLINE_S
    assert elapsed < EngineSync.DEADLINE_S * 10
