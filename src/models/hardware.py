"""
Hardware Configuration Models

These are data models that mirror the YAML configuration files:
device.yaml, buses.yaml and logging.yaml.

Each model checks only its own value ranges in __post_init__.
ConfigManager is responsible for turning raw dicts into these.
"""

from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any, Optional
from models.enums import FtdiInterface, ColorOrder, LogLevel


# FT2232H defaults (also used by the FT4232H/FT232H with other product ids)
FTDI_VENDOR_ID = 0x0403
FT2232H_PRODUCT_ID = 0x6010


# ============================================================
#  USB device
# ============================================================

@dataclass(frozen=True)
class DeviceConfig:
    """
    Which FTDI channel to open.

    When both bus and address are set the device is opened by USB location,
    otherwise by vendor/product id.
    """
    vendor_id: int = FTDI_VENDOR_ID
    product_id: int = FT2232H_PRODUCT_ID
    interface: FtdiInterface = FtdiInterface.A
    bus: Optional[int] = None
    address: Optional[int] = None
    latency_timer_ms: int = 16

    def __post_init__(self):
        if not (0 <= self.vendor_id <= 0xFFFF):
            raise ValueError(f"DeviceConfig.vendor_id out of range: {self.vendor_id:#x}")
        if not (0 <= self.product_id <= 0xFFFF):
            raise ValueError(f"DeviceConfig.product_id out of range: {self.product_id:#x}")
        if (self.bus is None) != (self.address is None):
            raise ValueError("DeviceConfig.bus and DeviceConfig.address must be set together")
        if not (1 <= self.latency_timer_ms <= 255):
            raise ValueError("DeviceConfig.latency_timer_ms must be in 1-255")

    @property
    def by_location(self) -> bool:
        return self.bus is not None and self.address is not None

    def as_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["interface"] = self.interface.name
        return d


# ============================================================
#  Buses
# ============================================================

@dataclass(frozen=True)
class I2cBusConfig:
    """Two-wire bus settings. Typical buses run at 100 or 400 kHz."""
    frequency_khz: float = 400.0

    def __post_init__(self):
        if self.frequency_khz <= 0:
            raise ValueError("I2cBusConfig.frequency_khz must be > 0")


@dataclass(frozen=True)
class PixelStripConfig:
    """WS2812B string attached to ADBUS1 (DO)."""
    color_order: ColorOrder = ColorOrder.GRB
    led_count: int = 0

    def __post_init__(self):
        if self.led_count < 0:
            raise ValueError("PixelStripConfig.led_count must be >= 0")

    def as_dict(self) -> Dict[str, Any]:
        return {"color_order": self.color_order.value, "led_count": self.led_count}


@dataclass(frozen=True)
class LoggingConfig:
    level: LogLevel = LogLevel.INFO
    use_colors: bool = True


# ============================================================
#  Root Hardware Model
# ============================================================

@dataclass(frozen=True)
class HardwareConfig:
    """
    The root model representing the merged configuration.
    Contains no behavior.
    """

    device: DeviceConfig
    i2c: I2cBusConfig
    pixel: PixelStripConfig
    logging: LoggingConfig
