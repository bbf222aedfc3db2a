import pytest
import usb.core
import usb.util
from unittest.mock import MagicMock

from hardware.ftdi.ftdi_port_factory import create_ftdi_port
from hardware.ftdi.ftdi_port_mock import MockFtdiPort
from hardware.ftdi.usb_ftdi_port import UsbFtdiPort, strip_modem_status
from models.enums import BitMode, FtdiInterface
from models.errors import ArgumentError, DeviceOpenError, TransportError
from models.hardware import DeviceConfig


@pytest.fixture
def usb_util(monkeypatch):
    """Replace the usb.util calls that need a real backend."""
    ep_in = MagicMock(bEndpointAddress=0x81, wMaxPacketSize=64)
    ep_out = MagicMock(bEndpointAddress=0x02)

    def find_descriptor(intf, custom_match):
        return next(ep for ep in (ep_in, ep_out) if custom_match(ep))

    util = MagicMock()
    monkeypatch.setattr(usb.util, "find_descriptor", find_descriptor)
    monkeypatch.setattr(usb.util, "claim_interface", util.claim_interface)
    monkeypatch.setattr(usb.util, "release_interface", util.release_interface)
    monkeypatch.setattr(usb.util, "dispose_resources", util.dispose_resources)
    return util


@pytest.fixture
def device():
    dev = MagicMock()
    dev.is_kernel_driver_active.return_value = False
    return dev


@pytest.fixture
def usb_port(usb_util, device):
    port = UsbFtdiPort(device, FtdiInterface.B)
    device.ctrl_transfer.reset_mock()
    return port


# ==================== Modem status ====================

def test_strip_modem_status_single_packet():
    assert strip_modem_status(b"\x31\x60abc", 64) == b"abc"


def test_strip_modem_status_every_packet():
    assert strip_modem_status(b"\x31\x60ab\x31\x60cd\x31\x60", 4) == b"abcd"


def test_strip_modem_status_only_status():
    assert strip_modem_status(b"\x31\x60", 64) == b""


# ==================== Open / claim ====================

def test_claim_resets_channel(usb_util, device):
    UsbFtdiPort(device, FtdiInterface.B)

    usb_util.claim_interface.assert_called_once_with(device, 1)
    device.ctrl_transfer.assert_called_once_with(0x40, 0x00, 0, 2, timeout=1000)


def test_any_interface_means_a(usb_util, device):
    port = UsbFtdiPort(device)
    assert port.interface is FtdiInterface.A
    usb_util.claim_interface.assert_called_once_with(device, 0)


def test_kernel_driver_detached(usb_util, device):
    device.is_kernel_driver_active.return_value = True
    UsbFtdiPort(device, FtdiInterface.A)
    device.detach_kernel_driver.assert_called_once_with(0)


def test_claim_failure_raises_open_error(usb_util, device):
    usb_util.claim_interface.side_effect = usb.core.USBError("busy")

    with pytest.raises(DeviceOpenError):
        UsbFtdiPort(device, FtdiInterface.A)
    usb_util.dispose_resources.assert_called_once_with(device)


def test_open_missing_device(monkeypatch):
    monkeypatch.setattr(usb.core, "find", lambda **kwargs: None)

    with pytest.raises(DeviceOpenError):
        UsbFtdiPort.open_vendor_product(0x0403, 0x6010)
    with pytest.raises(DeviceOpenError):
        UsbFtdiPort.open_bus_device(1, 7)


# ==================== Control requests ====================

def test_set_bitmode(usb_port, device):
    usb_port.set_bitmode(0xFF, BitMode.MPSSE)
    device.ctrl_transfer.assert_called_once_with(0x40, 0x0B, 0x02FF, 2, timeout=1000)


def test_latency_timer(usb_port, device):
    usb_port.set_latency_timer(2)
    device.ctrl_transfer.assert_called_once_with(0x40, 0x09, 2, 2, timeout=1000)

    with pytest.raises(ArgumentError):
        usb_port.set_latency_timer(0)


def test_purge_buffers(usb_port, device):
    usb_port.purge_buffers()
    assert [c.args[:3] for c in device.ctrl_transfer.call_args_list] == [(0x40, 0x00, 1), (0x40, 0x00, 2)]


def test_control_failure(usb_port, device):
    device.ctrl_transfer.side_effect = usb.core.USBError("pipe")
    with pytest.raises(TransportError):
        usb_port.set_bitmode(0x00, BitMode.RESET)


# ==================== Bulk IO ====================

def test_write_data(usb_port, device):
    device.write.return_value = 3
    assert usb_port.write_data(b"\x80\x03\x03") == 3
    assert device.write.call_args.args[0] == 0x02


def test_write_timeout_is_short_write(usb_port, device):
    device.write.side_effect = usb.core.USBTimeoutError("timeout")
    assert usb_port.write_data(b"\x87") == 0


def test_write_failure(usb_port, device):
    device.write.side_effect = usb.core.USBError("gone")
    with pytest.raises(TransportError):
        usb_port.write_data(b"\x87")


def test_read_keeps_surplus_for_next_call(usb_port, device):
    device.read.return_value = b"\x31\x60xyz"

    assert usb_port.read_data(2) == b"xy"
    assert usb_port.read_data(1) == b"z"
    assert device.read.call_count == 1


def test_read_timeout_means_no_data(usb_port, device):
    device.read.side_effect = usb.core.USBTimeoutError("timeout")
    assert usb_port.read_data(4) == b""


def test_read_failure(usb_port, device):
    device.read.side_effect = usb.core.USBError("gone")
    with pytest.raises(TransportError):
        usb_port.read_data(1)


def test_close_is_idempotent(usb_port, usb_util, device):
    with usb_port:
        pass
    usb_port.close()

    usb_util.release_interface.assert_called_once_with(device, 1)
    usb_util.dispose_resources.assert_called_once_with(device)


# ==================== Factory ====================

def test_factory_opens_by_vendor_product(monkeypatch):
    mock = MockFtdiPort()
    calls = []

    def fake_open(vid, pid, interface):
        calls.append((vid, pid, interface))
        return mock

    monkeypatch.setattr(UsbFtdiPort, "open_vendor_product", fake_open)

    port = create_ftdi_port(DeviceConfig(interface=FtdiInterface.B, latency_timer_ms=2))

    assert port is mock
    assert calls == [(0x0403, 0x6010, FtdiInterface.B)]
    assert mock.latency_ms == 2
    assert mock.purge_count == 1


def test_factory_opens_by_location(monkeypatch):
    mock = MockFtdiPort()
    monkeypatch.setattr(UsbFtdiPort, "open_bus_device", lambda bus, address, interface: mock)

    assert create_ftdi_port(DeviceConfig(bus=1, address=7)) is mock


def test_factory_closes_port_on_setup_failure(monkeypatch):
    mock = MockFtdiPort()
    mock.set_latency_timer = MagicMock(side_effect=TransportError("stall"))
    monkeypatch.setattr(UsbFtdiPort, "open_vendor_product", lambda vid, pid, interface: mock)

    with pytest.raises(TransportError):
        create_ftdi_port(DeviceConfig())
    assert mock.closed
