"""
MPSSE command opcodes (FTDI AN_108).

Shift commands are built by OR-ing the flag bits below. The clock edge flags
must match the idle level of the clock or the engine misbehaves:

If clock idles at ... use
LOW                   WRITE_NEG or READ_POS
HIGH                  WRITE_POS or READ_NEG

                        2-phase-clk      3-phase-clk
clk-idle-low            __/‾‾\\__/‾‾\\    __/‾‾\\_____/‾‾\\__
data-write-neg          <=1=> <=2=>     <=1====> <=2====>

clk-idle-high           ‾‾\\__/‾‾\\__/    ‾‾\\__/‾‾‾‾‾\\__/‾‾
data-write-pos          <=1=> <=2=>     <=1====> <=2====>

I2C data must be stable while SCL is high, so it runs idle-low and never uses READ_NEG.
"""

# Shift command flag bits
MPSSE_WRITE_NEG = 0x01   # Write on falling edge
MPSSE_BITMODE = 0x02     # Length counts bits (0 = 1 bit) instead of bytes
MPSSE_READ_NEG = 0x04    # Sample on falling edge
MPSSE_LSB = 0x08         # LSB first
MPSSE_DO_WRITE = 0x10
MPSSE_DO_READ = 0x20
MPSSE_WRITE_TMS = 0x40

MPSSE_IDLE_LOW_WRITE = MPSSE_DO_WRITE | MPSSE_WRITE_NEG
MPSSE_IDLE_HIGH_WRITE = MPSSE_DO_WRITE
MPSSE_IDLE_LOW_READ = MPSSE_DO_READ
MPSSE_IDLE_HIGH_READ = MPSSE_DO_READ | MPSSE_READ_NEG

# Pin commands: opcode, value, direction (1 = output)
SET_BITS_LOW = 0x80
GET_BITS_LOW = 0x81
SET_BITS_HIGH = 0x82
GET_BITS_HIGH = 0x83

LOOPBACK_START = 0x84
LOOPBACK_END = 0x85

# Clock commands
TCK_DIVISOR = 0x86
DIS_DIV_5 = 0x8A
EN_DIV_5 = 0x8B
EN_3_PHASE = 0x8C
DIS_3_PHASE = 0x8D
EN_ADAPTIVE = 0x96
DIS_ADAPTIVE = 0x97

# Ask the chip to push its RX buffer to the host now
SEND_IMMEDIATE = 0x87

# The engine answers an unknown opcode with BAD_COMMAND_ECHO followed by that opcode
BAD_COMMAND_ECHO = 0xFA

# Base clock with the divide-by-5 prescaler disabled (kHz)
BASE_CLOCK_KHZ = 60000.0
MAX_CLOCK_DIVISOR = 0xFFFF

# Maximum payload of one byte-mode shift command (length field is 16 bit, minus one)
MAX_SHIFT_BYTES = 0x10000


def shift_length(count: int) -> bytes:
    """Length field for byte-mode shifts: count - 1, little endian."""
    n = count - 1
    return bytes((n & 0xFF, (n >> 8) & 0xFF))
