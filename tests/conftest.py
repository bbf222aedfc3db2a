import pytest
from collections import deque

from hardware.ftdi.ftdi_port_mock import MockFtdiPort
from hardware.mpsse.transport_buffer import TransportBuffer
from models.enums import LogLevel
from utils.logger import configure_logger


ACK_BIT = 0x00
NACK_BIT = 0x01

# Argument byte counts of the fixed-length opcodes the engines emit
_FIXED_ARGS = {
    0x80: 2, 0x82: 2, 0x86: 2,
    0x87: 0, 0x8A: 0, 0x8C: 0, 0x8D: 0, 0x96: 0, 0x97: 0,
    0x13: 2, 0x1B: 2,
}


class FakeMpsse:
    """
    Minimal MPSSE command interpreter used as a MockFtdiPort responder.

    - unknown opcodes are echoed as FA <op>
    - 1-bit reads (22 00) answer the next entry of `acks` (default ACK)
    - 8-bit reads (22 07) answer the next entry of `rx` (default 0xFF)
    - SET_BITS_LOW values are recorded in `lower_pins`
    """

    def __init__(self):
        self.acks = deque()
        self.rx = deque()
        self.lower_pins = []

    def __call__(self, data: bytes) -> bytes:
        reply = bytearray()
        i = 0
        while i < len(data):
            op = data[i]
            if i + 1 + _FIXED_ARGS.get(op, 0) > len(data):
                break  # command cut short by a partial write
            if op == 0x80:
                self.lower_pins.append((data[i + 1], data[i + 2]))
            if op in _FIXED_ARGS:
                i += 1 + _FIXED_ARGS[op]
            elif op == 0x22:
                if data[i + 1] == 0x00:
                    reply.append(self.acks.popleft() if self.acks else ACK_BIT)
                else:
                    reply.append(self.rx.popleft() if self.rx else 0xFF)
                i += 2
            elif op == 0x11:
                length = data[i + 1] | (data[i + 2] << 8)
                i += 3 + length + 1
            else:
                reply += bytes((0xFA, op))
                i += 1
        return bytes(reply)


@pytest.fixture(autouse=True)
def quiet_logger():
    """Keep test output readable; restore the default level afterwards."""
    configure_logger(LogLevel.ERROR, use_colors=False)
    yield
    configure_logger(LogLevel.INFO, use_colors=True)


@pytest.fixture
def chip():
    return FakeMpsse()


@pytest.fixture
def port(chip):
    return MockFtdiPort(responder=chip)


@pytest.fixture
def silent_port():
    """Port whose chip never answers."""
    return MockFtdiPort()


@pytest.fixture
def transport(port):
    return TransportBuffer(port)
