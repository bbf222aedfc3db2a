# hardware/pixel/pixel_encoder.py
"""
PixelEncoder - WS2812B string driven from the MPSSE data-out pin
=================================================================
DO (ADBUS1) idles low. The engine shifts bits at 2.5MHz (400ns each) and
every colour bit becomes a 3-bit pulse:

    0 -> 100   (400ns high, 800ns low)
    1 -> 110   (800ns high, 400ns low)

Holding the line low for 125 bit periods (50us) latches the frame, so a
frame must leave the chip as one continuous pulse train: any gap longer
than that between chunks would be taken as end-of-frame.

Colour values are 0x00RRGGBB ints (top byte ignored), remapped to the
string's wire order (GRB for WS2812B).
"""

from __future__ import annotations
from typing import Iterable, List, Optional

from hardware.mpsse.commands import MPSSE_IDLE_LOW_WRITE, shift_length
from hardware.mpsse.clock_configurator import ClockConfigurator
from hardware.mpsse.engine_sync import EngineSync
from hardware.mpsse.pin_controller import PinController
from hardware.mpsse.transport_buffer import TransportBuffer
from models.clock_profile import ClockProfile
from models.enums import BitMode, ColorOrder
from models.errors import ArgumentError, MpsseError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.PIXEL)


BIT_CLOCK_KHZ = 2500.0

PULSE_ZERO = 0b100
PULSE_ONE = 0b110
PULSE_BITS = 3
BYTES_PER_PIXEL = 3 * PULSE_BITS   # three colour bytes, 24 pulse bits each

SCK = 0b0000_0001
DO = 0b0000_0010

# Shift command header: opcode + 2 length bytes
SHIFT_HEADER_LEN = 3


def expand_byte(value: int) -> int:
    """Map the 8 bits of value (MSB first) to a 24-bit pulse pattern."""
    if not (0 <= value <= 0xFF):
        raise ArgumentError(f"Byte out of range: {value}")
    pattern = 0
    for bit in range(7, -1, -1):
        pattern = (pattern << PULSE_BITS) | (PULSE_ONE if (value >> bit) & 1 else PULSE_ZERO)
    return pattern


# Packed (3 byte) pulse pattern for every byte value
_EXPANDED: List[bytes] = [expand_byte(v).to_bytes(3, "big") for v in range(256)]
_VALID_GROUPS = frozenset(_EXPANDED)


def encode_frame(pixels: Iterable[int], color_order: ColorOrder = ColorOrder.GRB) -> bytes:
    """
    Expand a whole frame into one packed pulse train (9 bytes per pixel).

    The result is always a multiple of 3 bytes and ends with a 0 bit.
    """
    out = bytearray()
    order = color_order.value
    for value in pixels:
        channels = {
            "R": (value >> 16) & 0xFF,
            "G": (value >> 8) & 0xFF,
            "B": value & 0xFF,
        }
        for name in order:
            out += _EXPANDED[channels[name]]
    return bytes(out)


def validate_pulse_train(data: bytes) -> None:
    """Every 3-byte block must be an expanded byte; the last bit must be 0."""
    if len(data) % 3:
        raise ArgumentError(f"Pulse train length {len(data)} is not a multiple of 3 bytes")
    for offset in range(0, len(data), 3):
        if data[offset:offset + 3] not in _VALID_GROUPS:
            raise ArgumentError(f"Invalid pulse group at byte {offset}: {data[offset:offset + 3].hex()}")
    if data and data[-1] & 0x01:
        raise ArgumentError("Pulse train must end low")


class PixelEncoder:
    """
    Unidirectional, unacknowledged frame sender.

    Example:
        with PixelEncoder.create(transport) as led:
            led.send_frame([0xFFFFFF, 0x000000])
    """

    # Largest shift payload that fits the transport buffer with its header
    MAX_CHUNK = TransportBuffer.CAPACITY - SHIFT_HEADER_LEN

    def __init__(self, transport: TransportBuffer, color_order: ColorOrder = ColorOrder.GRB) -> None:
        self.transport = transport
        self.color_order = color_order
        self.pins = PinController(transport)
        self.clock_profile: Optional[ClockProfile] = None
        self._closed = False

    # ==================== Lifecycle ====================

    @classmethod
    def create(cls, transport: TransportBuffer, color_order: ColorOrder = ColorOrder.GRB) -> 'PixelEncoder':
        """Enter MPSSE mode, synchronize, program the 2.5MHz bit clock, park DO low."""
        transport.port.set_bitmode(0xFF, BitMode.MPSSE)
        encoder = cls(transport, color_order)
        try:
            EngineSync(transport).run()
            encoder.clock_profile = ClockConfigurator(transport).configure(
                BIT_CLOCK_KHZ, three_phase=False, adaptive=False
            )
            transport.clear()
            encoder.pins.set_lower_pins(0, SCK | DO)
        except MpsseError:
            encoder.close()
            raise

        log.info("Pixel encoder ready", bit_clock=f"{encoder.clock_profile.actual_khz:.02f}kHz",
                 order=color_order.value)
        return encoder

    def close(self) -> None:
        """Leave MPSSE mode. The transport stays open."""
        if self._closed:
            return
        self._closed = True
        try:
            self.transport.port.set_bitmode(0xFF, BitMode.RESET)
        except MpsseError as ex:
            log.error("Bit mode reset failed", error=str(ex))

    def __enter__(self) -> 'PixelEncoder':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ==================== Sending ====================

    @staticmethod
    def expand_byte(value: int) -> int:
        return expand_byte(value)

    def encode_frame(self, pixels: Iterable[int]) -> bytes:
        return encode_frame(pixels, self.color_order)

    def send_raw(self, data: bytes) -> None:
        """
        Shift a packed pulse train out of DO, no acknowledge phase.

        Raises:
            ArgumentError: data is not a valid pulse train
            TransportError: write failure
        """
        data = bytes(data)
        validate_pulse_train(data)
        if not data:
            return

        t = self.transport
        t.clear()
        for offset in range(0, len(data), self.MAX_CHUNK):
            chunk = data[offset:offset + self.MAX_CHUNK]
            t.append_byte(MPSSE_IDLE_LOW_WRITE)
            t.append_bytes(shift_length(len(chunk)))
            t.append_bytes(chunk)
            t.flush()

        log.debug("pulse train sent", bits=len(data) * 8)

    def send_frame(self, pixels: Iterable[int]) -> None:
        """Send one complete frame as a single continuous pulse train."""
        pixels = list(pixels)
        self.send_raw(self.encode_frame(pixels))
        log.debug("frame sent", pixels=len(pixels))
