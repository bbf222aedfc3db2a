from hardware.mpsse.commands import SET_BITS_LOW, SET_BITS_HIGH
from hardware.mpsse.transport_buffer import TransportBuffer
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.TRANSPORT)


class PinController:
    """
    Level/direction control for the GPIO banks (bit = 1 means high / output).

    Each call is flushed on its own: the command stream has no built-in delay,
    so separate transfers are what put a time gap between two line changes.
    """

    def __init__(self, transport: TransportBuffer) -> None:
        self.transport = transport

    def set_lower_pins(self, state: int, direction: int) -> None:
        """ADBUS0..7"""
        self._set(SET_BITS_LOW, state, direction)

    def set_upper_pins(self, state: int, direction: int) -> None:
        """ACBUS0..7"""
        self._set(SET_BITS_HIGH, state, direction)

    def _set(self, opcode: int, state: int, direction: int) -> None:
        log.debug("set pins", opcode=f"{opcode:#04x}", state=f"{state:#010b}", dir=f"{direction:#010b}")
        self.transport.append_bytes((opcode, state, direction))
        self.transport.flush()
