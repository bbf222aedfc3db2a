from __future__ import annotations
from typing import Callable, Union

from hardware.ftdi.ftdi_port_factory import create_ftdi_port
from hardware.ftdi.ftdi_port_interface import IFtdiPort
from hardware.i2c.i2c_engine import I2cEngine
from hardware.mpsse.transport_buffer import TransportBuffer
from hardware.pixel.pixel_encoder import PixelEncoder
from models.errors import MpsseError
from models.hardware import DeviceConfig, HardwareConfig
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.HARDWARE)


class HardwareCoordinator:
    """
    Creates the hardware objects for one FTDI channel:

      - FTDI port (USB or injected factory)
      - TransportBuffer owning the port
      - Exactly one engine (I2C or pixel) on top of it

    No knowledge of what devices sit on the bus.
    """

    def __init__(self, config: HardwareConfig,
                 port_factory: Callable[[DeviceConfig], IFtdiPort] = create_ftdi_port):
        self.config = config
        self.port_factory = port_factory

    def initialize_i2c(self) -> "HardwareBundle":
        log.info("HardwareCoordinator: Initializing I2C engine...",
                 interface=self.config.device.interface.name)
        transport = self._open_transport()
        try:
            engine = I2cEngine.create(transport, self.config.i2c.frequency_khz)
        except MpsseError:
            transport.close()
            raise
        return HardwareBundle(transport=transport, engine=engine)

    def initialize_pixel(self) -> "HardwareBundle":
        log.info("HardwareCoordinator: Initializing pixel encoder...",
                 interface=self.config.device.interface.name)
        transport = self._open_transport()
        try:
            engine = PixelEncoder.create(transport, self.config.pixel.color_order)
        except MpsseError:
            transport.close()
            raise
        return HardwareBundle(transport=transport, engine=engine)

    def _open_transport(self) -> TransportBuffer:
        return TransportBuffer(self.port_factory(self.config.device))


class HardwareBundle:
    """
    Bundles the engine with the transport it drives.
    Closing the bundle leaves MPSSE mode, then releases the device.
    """

    def __init__(self, transport: TransportBuffer, engine: Union[I2cEngine, PixelEncoder]):
        self.transport = transport
        self.engine = engine

    def close(self) -> None:
        try:
            self.engine.close()
        finally:
            self.transport.close()

    def __enter__(self) -> "HardwareBundle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
