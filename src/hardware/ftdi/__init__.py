from .ftdi_port_interface import IFtdiPort
from .usb_ftdi_port import UsbFtdiPort
from .ftdi_port_mock import MockFtdiPort
from .ftdi_port_factory import create_ftdi_port


__all__ = [
    "IFtdiPort",
    "UsbFtdiPort",
    "MockFtdiPort",
    "create_ftdi_port",
]
