# hardware/i2c/i2c_engine.py
"""
I2cEngine - two-wire bus master on the MPSSE
=============================================
Pins:
    SCL -> ADBUS0
    SDA -> ADBUS1 (drive) and ADBUS2 (sense), tied together
Add pull-up resistors if the dongle has none.

Every bus primitive documents the line levels it expects and leaves behind.
Line changes that need a hold time before the next change are flushed as
separate transfers; the USB round trip provides the gap.
"""

from __future__ import annotations
from contextlib import contextmanager
from typing import Iterator, Optional

from hardware.mpsse.commands import (
    MPSSE_BITMODE,
    MPSSE_IDLE_LOW_READ,
    MPSSE_IDLE_LOW_WRITE,
    MPSSE_LSB,
    SEND_IMMEDIATE,
    SET_BITS_LOW,
)
from hardware.mpsse.clock_configurator import ClockConfigurator
from hardware.mpsse.engine_sync import EngineSync
from hardware.mpsse.pin_controller import PinController
from hardware.mpsse.transport_buffer import TransportBuffer
from models.clock_profile import ClockProfile
from models.enums import Ack, BitMode
from models.errors import (
    AddressNackedError,
    ArgumentError,
    DataNackedError,
    MpsseError,
)
from utils.logger import get_logger, LogCategory, hex_bytes

log = get_logger().for_category(LogCategory.I2C)


SCL = 0b0000_0001
SDA_OUT = 0b0000_0010
SDA_IN = 0b0000_0100

DIR_DRIVE_SDA = SCL | SDA_OUT   # master drives both lines
DIR_RELEASE_SDA = SCL           # SDA left to the pull-up / slave

# Per byte: release SDA (3) + read 8 bits (2) + acquire SDA (3) + ack bit (3)
READ_COMMAND_BYTES_PER_BYTE = 11


class I2cEngine:
    """
    Sole bus master. Exactly one engine may drive a TransportBuffer at a time.

    Example:
        with I2cEngine.create(transport, bus_frequency_khz=100) as i2c:
            raw = i2c.transaction(0x18, b"\\x05", rx_len=2)
    """

    DEFAULT_FREQUENCY_KHZ = 400.0
    # Largest read_bytes() count whose commands fit one transfer
    MAX_READ_BYTES = (TransportBuffer.CAPACITY - 1) // READ_COMMAND_BYTES_PER_BYTE

    def __init__(self, transport: TransportBuffer) -> None:
        self.transport = transport
        self.pins = PinController(transport)
        self.clock_profile: Optional[ClockProfile] = None
        self._closed = False

    # ==================== Lifecycle ====================

    @classmethod
    def create(cls, transport: TransportBuffer,
               bus_frequency_khz: float = DEFAULT_FREQUENCY_KHZ) -> 'I2cEngine':
        """
        Enter MPSSE mode, synchronize, program a three-phase clock and
        release both lines high.
        """
        if bus_frequency_khz <= 0:
            raise ArgumentError(f"bad input: khz={bus_frequency_khz}")

        transport.port.set_bitmode(0xFF, BitMode.MPSSE)
        engine = cls(transport)
        try:
            EngineSync(transport).run()
            engine.clock_profile = ClockConfigurator(transport).configure(
                bus_frequency_khz, three_phase=True, adaptive=False
            )
            engine._initialize_pins()
        except MpsseError:
            engine.close()
            raise

        log.info("I2C engine ready", scl=f"{engine.clock_profile.actual_khz:.02f}kHz")
        return engine

    def close(self) -> None:
        """Leave MPSSE mode. The transport stays open and may be reused."""
        if self._closed:
            return
        self._closed = True
        try:
            self.transport.port.set_bitmode(0xFF, BitMode.RESET)
        except MpsseError as ex:
            log.error("Bit mode reset failed", error=str(ex))

    def __enter__(self) -> 'I2cEngine':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Postcond: SDA & SCL both hold high.
    def _initialize_pins(self) -> None:
        self.transport.clear()
        self.pins.set_lower_pins(SCL | SDA_OUT, DIR_DRIVE_SDA)

    # ==================== Helpers ====================

    @staticmethod
    def addr7_to_data(addr7: int, is_read: bool) -> int:
        """7-bit address + R/W bit as the 8-bit address byte."""
        return ((addr7 << 1) | (1 if is_read else 0)) & 0xFF

    # ==================== Bus primitives ====================

    def start(self) -> None:
        """
        Precond: SDA & SCL high.  Postcond: SDA & SCL low.

        SDA ‾‾\\____
        SCL ‾‾‾‾\\__
        """
        self.pins.set_lower_pins(SCL, DIR_DRIVE_SDA)   # SDA low while SCL high: start
        self.pins.set_lower_pins(0, DIR_DRIVE_SDA)

    def restart(self) -> None:
        """
        Repeated start.  Precond: SDA & SCL low.  Postcond: SDA & SCL low.

        SDA ___/‾‾‾\\___
        SCL _____/‾‾‾\\__
        """
        self.pins.set_lower_pins(SDA_OUT, DIR_DRIVE_SDA)
        self.pins.set_lower_pins(SCL | SDA_OUT, DIR_DRIVE_SDA)
        self.pins.set_lower_pins(SCL, DIR_DRIVE_SDA)
        self.pins.set_lower_pins(0, DIR_DRIVE_SDA)

    def stop(self) -> None:
        """
        Precond: SDA & SCL low.  Postcond: SDA & SCL high.

        SDA ____/‾‾
        SCL __/‾‾‾‾
        """
        self.pins.set_lower_pins(SCL, DIR_DRIVE_SDA)
        self.pins.set_lower_pins(SCL | SDA_OUT, DIR_DRIVE_SDA)

    def write_byte(self, value: int) -> Ack:
        """
        Precond/postcond: SDA & SCL low.

        Clock out 8 bits MSB first, then sample one acknowledge bit.
        """
        if not (0 <= value <= 0xFF):
            raise ArgumentError(f"Byte out of range: {value}")

        cmds = (
            MPSSE_IDLE_LOW_WRITE | MPSSE_BITMODE, 0x07, value,  # 0x07 == 8 bits
            # Both lines low now; hand SDA to the slave so ADBUS2 can sample the ack.
            # The write holds data 1/3 cycle past the pulse, so no gap is needed.
            SET_BITS_LOW, 0, DIR_RELEASE_SDA,
            MPSSE_IDLE_LOW_READ | MPSSE_BITMODE, 0x00,          # 0x00 == 1 bit
            SEND_IMMEDIATE,
            # Take SDA back and hold it low so the postcondition holds
            SET_BITS_LOW, 0, DIR_DRIVE_SDA,
        )
        self.transport.append_bytes(cmds)
        self.transport.flush()

        ack_bit = self.transport.read_exact(1)[0]
        # Low is ACK, high is NACK
        ack = Ack.NACK if ack_bit & 0x01 else Ack.ACK
        log.debug("write byte", value=f"{value:#04x}", ack=ack.name)
        return ack

    def read_bytes(self, count: int) -> bytes:
        """
        Precond/postcond: SDA & SCL low.

        Clock in `count` bytes, ACK every byte but the last, NACK the last.
        All commands go out in one transfer followed by one bulk read, so
        count above MAX_READ_BYTES raises BufferOverflowError with nothing sent.
        """
        if count < 0:
            raise ArgumentError(f"Invalid read count: {count}")
        if count == 0:
            return b""

        cmds = bytearray()
        for i in range(count):
            nack = 1 if i == count - 1 else 0
            cmds += bytes((
                SET_BITS_LOW, 0, DIR_RELEASE_SDA,
                MPSSE_IDLE_LOW_READ | MPSSE_BITMODE, 0x07,
                SET_BITS_LOW, 0, DIR_DRIVE_SDA,
                # LSB flag so the bit comes from bit 0; high (1) is NACK
                MPSSE_IDLE_LOW_WRITE | MPSSE_BITMODE | MPSSE_LSB, 0x00, nack,
            ))
        cmds.append(SEND_IMMEDIATE)

        self.transport.append_bytes(cmds)
        self.transport.flush()
        data = self.transport.read_exact(count)
        log.debug("read bytes", count=count, data=hex_bytes(data))
        return data

    # ==================== Transaction ====================

    @contextmanager
    def _bus_held(self) -> Iterator[None]:
        """Start on entry, stop on every exit path."""
        try:
            self.start()
            yield
        except BaseException:
            # A failed flush keeps its bytes pending; they must not go out with the stop
            self.transport.clear()
            try:
                self.stop()
            except MpsseError as ex:
                log.error("Stop after failed transaction failed", error=str(ex))
            raise
        self.stop()

    def transaction(self, addr7: int, tx: bytes = b"", rx_len: int = 0) -> bytes:
        """
        Precond/postcond: SDA & SCL high.

        - tx empty,  rx_len >= 0 : Start-RdAddr-Read-Stop
        - tx given,  rx_len == 0 : Start-WrAddr-Write-Stop
        - tx given,  rx_len > 0  : Start-WrAddr-Write-Restart-RdAddr-Read-Stop

        Returns the rx_len received bytes.

        Raises:
            AddressNackedError / DataNackedError: expected ACK not received
            TransportError, ReadTimeoutError: I/O fault
        """
        if not (0 <= addr7 <= 0x7F):
            raise ArgumentError(f"Invalid 7-bit address: {addr7:#x}")
        if rx_len < 0:
            raise ArgumentError(f"Invalid rx_len: {rx_len}")
        tx = bytes(tx)

        with self._bus_held():
            if tx:
                self._write_address(addr7, is_read=False)
                for i, value in enumerate(tx):
                    if self.write_byte(value) is Ack.NACK:
                        log.warn("Data byte NACKed", addr=f"{addr7:#04x}", index=i)
                        raise DataNackedError(
                            f"Device {addr7:#04x} NACKed data byte {i}",
                            addr7=addr7,
                            bytes_written=i,
                        )
                if rx_len == 0:
                    return b""
                self.restart()

            self._write_address(addr7, is_read=True)
            return self.read_bytes(rx_len)

    def _write_address(self, addr7: int, is_read: bool) -> None:
        if self.write_byte(self.addr7_to_data(addr7, is_read)) is Ack.NACK:
            log.warn("Address NACKed", addr=f"{addr7:#04x}", read=is_read)
            raise AddressNackedError(f"No ACK from device {addr7:#04x}", addr7=addr7)
