import pytest

from hardware.mpsse.clock_configurator import ClockConfigurator
from hardware.mpsse.commands import MAX_CLOCK_DIVISOR
from models.errors import ArgumentError


def test_i2c_fast_mode_divisor():
    """400kHz three-phase is exactly reachable."""
    profile = ClockConfigurator.compute(400, three_phase=True)

    assert profile.divisor == 49
    assert profile.actual_khz == pytest.approx(400.0)
    assert profile.error == pytest.approx(0.0)


def test_i2c_standard_mode_divisor():
    profile = ClockConfigurator.compute(100, three_phase=True)
    assert profile.divisor == 199
    assert profile.actual_khz == pytest.approx(100.0)


def test_pixel_bit_clock_divisor():
    profile = ClockConfigurator.compute(2500, three_phase=False)
    assert profile.divisor == 11
    assert profile.actual_khz == pytest.approx(2500.0)


def test_divisor_clamped_low():
    profile = ClockConfigurator.compute(60000, three_phase=False)
    assert profile.divisor == 0
    assert profile.actual_khz == pytest.approx(30000.0)
    assert profile.error == pytest.approx(0.5)


def test_divisor_clamped_high():
    profile = ClockConfigurator.compute(0.1, three_phase=False)
    assert profile.divisor == MAX_CLOCK_DIVISOR
    assert profile.error > 1.0


def test_quantization_error_reported():
    profile = ClockConfigurator.compute(1000, three_phase=True)
    # 60MHz / 1.5MHz / 2 - 1 = 19
    assert profile.divisor == 19
    assert profile.error_percent == pytest.approx(0.0)

    profile = ClockConfigurator.compute(350, three_phase=True)
    assert profile.error > 0.0


@pytest.mark.parametrize("khz", [0, -1, -400.0])
def test_non_positive_frequency_rejected(khz):
    with pytest.raises(ArgumentError):
        ClockConfigurator.compute(khz, three_phase=True)


def test_configure_writes_mode_and_divisor(transport, port):
    transport.append_byte(0xAB)  # leftover, must be cleared

    profile = ClockConfigurator(transport).configure(400, three_phase=True, adaptive=False)

    assert port.writes == [bytes((0x8C, 0x97, 0x8A, 0x86, 0x31, 0x00))]
    assert profile.divisor == 49


def test_configure_two_phase_adaptive(transport, port):
    ClockConfigurator(transport).configure(0.5, three_phase=False, adaptive=True)
    # 60000 / 0.5 / 2 - 1 = 59999 = 0xEA5F
    assert port.writes == [bytes((0x8D, 0x96, 0x8A, 0x86, 0x5F, 0xEA))]


def test_configure_rejects_before_writing(transport, port):
    with pytest.raises(ArgumentError):
        ClockConfigurator(transport).configure(0, three_phase=False, adaptive=False)
    assert port.writes == []


def test_profile_as_dict():
    d = ClockConfigurator.compute(400, three_phase=True).as_dict()
    assert d["divisor"] == 49
    assert d["three_phase"] is True
