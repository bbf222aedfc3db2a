"""
Enums for the MPSSE protocol engines
"""

from enum import Enum, IntEnum, auto


class FtdiInterface(IntEnum):
    """
    FTDI channel selector.

    Values are the wIndex used in vendor control requests (libftdi numbering).
    ANY resolves to channel A.
    """
    ANY = 0
    A = 1
    B = 2
    C = 3
    D = 4


class BitMode(IntEnum):
    """FTDI bit modes (SIO_SET_BITMODE high byte)"""
    RESET = 0x00     # Back to UART / FIFO mode
    BITBANG = 0x01   # Asynchronous bit-bang
    MPSSE = 0x02     # Multi-protocol synchronous serial engine
    SYNCBB = 0x04    # Synchronous bit-bang


class Ack(Enum):
    """Acknowledge bit sampled after an I2C byte write"""
    ACK = auto()     # SDA read low
    NACK = auto()    # SDA read high


class ColorOrder(Enum):
    """Wire order of the three colour bytes of a pixel"""
    RGB = "RGB"
    RBG = "RBG"
    GRB = "GRB"
    GBR = "GBR"
    BRG = "BRG"
    BGR = "BGR"


class LogLevel(Enum):
    """Logging severity levels"""
    DEBUG = auto()
    INFO = auto()
    WARN = auto()
    ERROR = auto()


class LogCategory(Enum):
    """Log categories for structured logging"""
    CONFIG = auto()      # Configuration loading, validation
    HARDWARE = auto()    # USB device open/close, bit modes
    TRANSPORT = auto()   # Command buffer, flushes, reads
    SYNC = auto()        # MPSSE synchronization
    CLOCK = auto()       # Clock divisor programming
    I2C = auto()         # Two-wire bus engine
    PIXEL = auto()       # WS2812B pixel string engine
    SYSTEM = auto()      # Startup, shutdown, errors
