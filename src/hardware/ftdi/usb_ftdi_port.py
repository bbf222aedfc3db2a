# hardware/ftdi/usb_ftdi_port.py
"""
UsbFtdiPort - pyusb driver for one FTDI channel
================================================
Concrete IFtdiPort talking to FT2232H/FT232H/FT4232H chips over pyusb.

Features:
- Open by vendor/product id or by USB bus/address
- Channel (interface A-D) selection
- Vendor control requests: reset, purge, latency timer, bit mode
- Bulk reads with the 2 modem-status bytes stripped from every packet
- Surplus bytes from a bulk read are kept for the next read_data() call
"""

from __future__ import annotations

import usb.core
import usb.util

from hardware.ftdi.ftdi_port_interface import IFtdiPort
from models.enums import BitMode, FtdiInterface
from models.errors import ArgumentError, DeviceOpenError, TransportError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.HARDWARE)


# Vendor requests (bmRequestType host->device, vendor, device)
FTDI_DEVICE_OUT_REQTYPE = 0x40
SIO_RESET_REQUEST = 0x00
SIO_SET_LATENCY_TIMER_REQUEST = 0x09
SIO_SET_BITMODE_REQUEST = 0x0B

SIO_RESET_SIO = 0
SIO_RESET_PURGE_RX = 1
SIO_RESET_PURGE_TX = 2

# Every bulk IN packet starts with two modem status bytes
MODEM_STATUS_LEN = 2

CONTROL_TIMEOUT_MS = 1000
WRITE_TIMEOUT_MS = 5000


class UsbFtdiPort(IFtdiPort):
    """
    One claimed FTDI channel. Exclusive owner of the USB interface.

    Use the open_* factories, then close() (or a with-block) to release it.
    """

    def __init__(self, device: usb.core.Device, interface: FtdiInterface = FtdiInterface.ANY,
                 read_timeout_ms: int = 100) -> None:
        if interface == FtdiInterface.ANY:
            interface = FtdiInterface.A

        self._dev = device
        self.interface = interface
        self._index = int(interface)            # wIndex for control requests
        self._intf_number = int(interface) - 1  # USB interface number
        self._read_timeout_ms = read_timeout_ms
        self._backlog = bytearray()
        self._closed = False

        self._claim()

    # ==================== Factories ====================

    @classmethod
    def open_vendor_product(cls, vendor_id: int, product_id: int,
                            interface: FtdiInterface = FtdiInterface.ANY) -> 'UsbFtdiPort':
        dev = usb.core.find(idVendor=vendor_id, idProduct=product_id)
        if dev is None:
            raise DeviceOpenError(f"No USB device {vendor_id:04x}:{product_id:04x}")
        port = cls(dev, interface)
        log.info("FTDI device opened", vid=f"{vendor_id:#06x}", pid=f"{product_id:#06x}",
                 interface=port.interface.name)
        return port

    @classmethod
    def open_bus_device(cls, bus: int, address: int,
                        interface: FtdiInterface = FtdiInterface.ANY) -> 'UsbFtdiPort':
        """
        Open by USB bus number and device address.
        Not to be confused with the port path which may also be shown as "x-y".
        """
        dev = usb.core.find(bus=bus, address=address)
        if dev is None:
            raise DeviceOpenError(f"No USB device at bus {bus} address {address}")
        port = cls(dev, interface)
        log.info("FTDI device opened", bus=bus, address=address, interface=port.interface.name)
        return port

    # ==================== IFtdiPort API ====================

    def set_bitmode(self, mask: int, mode: BitMode) -> None:
        self._control(SIO_SET_BITMODE_REQUEST, (int(mode) << 8) | (mask & 0xFF))
        log.debug("Bit mode set", mode=BitMode(mode).name, mask=f"{mask:#04x}")

    def set_latency_timer(self, latency_ms: int) -> None:
        if not (1 <= latency_ms <= 255):
            raise ArgumentError(f"Latency timer out of range: {latency_ms}")
        self._control(SIO_SET_LATENCY_TIMER_REQUEST, latency_ms)

    def purge_buffers(self) -> None:
        self._control(SIO_RESET_REQUEST, SIO_RESET_PURGE_RX)
        self._control(SIO_RESET_REQUEST, SIO_RESET_PURGE_TX)
        self._backlog.clear()

    def write_data(self, data: bytes) -> int:
        try:
            return self._dev.write(self._ep_out, data, timeout=WRITE_TIMEOUT_MS)
        except usb.core.USBTimeoutError:
            return 0
        except usb.core.USBError as ex:
            raise TransportError(f"Bulk write failed: {ex}") from ex

    def read_data(self, size: int) -> bytes:
        if len(self._backlog) < size:
            self._fill_backlog()
        chunk = bytes(self._backlog[:size])
        del self._backlog[:size]
        return chunk

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            usb.util.release_interface(self._dev, self._intf_number)
        finally:
            usb.util.dispose_resources(self._dev)
        log.info("FTDI device closed", interface=self.interface.name)

    def __enter__(self) -> 'UsbFtdiPort':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ==================== Helpers ====================

    def _claim(self) -> None:
        dev = self._dev
        try:
            try:
                cfg = dev.get_active_configuration()
            except usb.core.USBError:
                dev.set_configuration()
                cfg = dev.get_active_configuration()

            intf = cfg[(self._intf_number, 0)]
            ep_in = usb.util.find_descriptor(
                intf,
                custom_match=lambda e: usb.util.endpoint_direction(e.bEndpointAddress) == usb.util.ENDPOINT_IN,
            )
            ep_out = usb.util.find_descriptor(
                intf,
                custom_match=lambda e: usb.util.endpoint_direction(e.bEndpointAddress) == usb.util.ENDPOINT_OUT,
            )
            if ep_in is None or ep_out is None:
                raise DeviceOpenError(f"Interface {self.interface.name} has no bulk endpoints")

            self._ep_in = ep_in.bEndpointAddress
            self._ep_out = ep_out.bEndpointAddress
            self._max_packet = ep_in.wMaxPacketSize

            if dev.is_kernel_driver_active(self._intf_number):
                dev.detach_kernel_driver(self._intf_number)
            usb.util.claim_interface(dev, self._intf_number)

            self._control(SIO_RESET_REQUEST, SIO_RESET_SIO)
        except (usb.core.USBError, KeyError) as ex:
            usb.util.dispose_resources(dev)
            raise DeviceOpenError(f"Cannot claim FTDI interface {self.interface.name}: {ex}") from ex

    def _control(self, request: int, value: int) -> None:
        try:
            self._dev.ctrl_transfer(FTDI_DEVICE_OUT_REQTYPE, request, value, self._index,
                                    timeout=CONTROL_TIMEOUT_MS)
        except usb.core.USBError as ex:
            raise TransportError(f"Control request {request:#04x} failed: {ex}") from ex

    def _fill_backlog(self) -> None:
        """One bulk read; payload (status bytes removed) goes into the backlog."""
        try:
            raw = self._dev.read(self._ep_in, self._max_packet * 8, timeout=self._read_timeout_ms)
        except usb.core.USBTimeoutError:
            return
        except usb.core.USBError as ex:
            raise TransportError(f"Bulk read failed: {ex}") from ex

        self._backlog.extend(strip_modem_status(bytes(raw), self._max_packet))


def strip_modem_status(raw: bytes, max_packet: int) -> bytes:
    """Remove the 2 status bytes heading each max_packet sized USB packet."""
    payload = bytearray()
    for offset in range(0, len(raw), max_packet):
        payload.extend(raw[offset + MODEM_STATUS_LEN:offset + max_packet])
    return bytes(payload)
