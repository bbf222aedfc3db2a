"""
Hardware Layer

Low-level access to an FTDI MPSSE channel:

- FTDI port (pyusb driver + mock)
- MPSSE command transport, sync, clock and pin control
- I2C master engine
- WS2812B pixel encoder
"""
from .ftdi import IFtdiPort, UsbFtdiPort, MockFtdiPort, create_ftdi_port
from .mpsse import TransportBuffer, EngineSync, ClockConfigurator, PinController
from .i2c import I2cEngine
from .pixel import PixelEncoder
from .hardware_coordinator import HardwareCoordinator, HardwareBundle

__all__ = [
    "IFtdiPort",
    "UsbFtdiPort",
    "MockFtdiPort",
    "create_ftdi_port",
    "TransportBuffer",
    "EngineSync",
    "ClockConfigurator",
    "PinController",
    "I2cEngine",
    "PixelEncoder",
    "HardwareCoordinator",
    "HardwareBundle",
]
