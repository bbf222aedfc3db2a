from hardware.mpsse.pin_controller import PinController


def test_lower_pins(transport, port):
    PinController(transport).set_lower_pins(0x01, 0x03)
    assert port.writes == [b"\x80\x01\x03"]


def test_upper_pins(transport, port):
    PinController(transport).set_upper_pins(0xF0, 0xFF)
    assert port.writes == [b"\x82\xF0\xFF"]


def test_each_call_is_its_own_transfer(transport, port):
    pins = PinController(transport)
    pins.set_lower_pins(0x03, 0x03)
    pins.set_lower_pins(0x01, 0x03)

    assert port.writes == [b"\x80\x03\x03", b"\x80\x01\x03"]
    assert len(transport) == 0
