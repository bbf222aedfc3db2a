"""
Models package - Data models for the MPSSE protocol engines
"""

from .enums import FtdiInterface, BitMode, Ack, ColorOrder, LogLevel, LogCategory
from .clock_profile import ClockProfile
from .errors import (
    MpsseError,
    ArgumentError,
    BufferOverflowError,
    TransportError,
    ReadTimeoutError,
    SyncError,
    DeviceOpenError,
    NackError,
    AddressNackedError,
    DataNackedError,
)

__all__ = [
    'FtdiInterface',
    'BitMode',
    'Ack',
    'ColorOrder',
    'LogLevel',
    'LogCategory',
    'ClockProfile',
    'MpsseError',
    'ArgumentError',
    'BufferOverflowError',
    'TransportError',
    'ReadTimeoutError',
    'SyncError',
    'DeviceOpenError',
    'NackError',
    'AddressNackedError',
    'DataNackedError',
]
