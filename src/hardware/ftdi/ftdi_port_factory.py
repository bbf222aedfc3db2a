# factory.py
from hardware.ftdi.ftdi_port_interface import IFtdiPort
from hardware.ftdi.usb_ftdi_port import UsbFtdiPort
from models.hardware import DeviceConfig


def create_ftdi_port(config: DeviceConfig) -> 'IFtdiPort':
    if config.by_location:
        port = UsbFtdiPort.open_bus_device(config.bus, config.address, config.interface)
    else:
        port = UsbFtdiPort.open_vendor_product(config.vendor_id, config.product_id, config.interface)

    try:
        port.set_latency_timer(config.latency_timer_ms)
        port.purge_buffers()
    except Exception:
        port.close()
        raise
    return port
