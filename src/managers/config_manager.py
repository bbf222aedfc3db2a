"""
Config Manager

Loads config.yaml (with include: support), falls back to factory defaults,
and parses the merged dict into typed HardwareConfig dataclasses.
"""

import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from models.enums import FtdiInterface, ColorOrder, LogLevel
from models.hardware import (
    HardwareConfig,
    DeviceConfig,
    I2cBusConfig,
    PixelStripConfig,
    LoggingConfig,
)
from utils.logger import get_logger, configure_logger, LogCategory
from utils.serialization import Serializer

log = get_logger().for_category(LogCategory.CONFIG)


class ConfigManager:
    """
    Main configuration manager with include system support

    Example:
        config = ConfigManager()
        hw = config.load()

        hw.device.interface   # FtdiInterface.A
        hw.i2c.frequency_khz  # 400.0
    """

    def __init__(self, config_path="config/config.yaml", defaults_path="config/factory_defaults.yaml",
                 base_dir: Optional[Path] = None):
        """
        Args:
            config_path: Path to main config.yaml (relative to base_dir)
            defaults_path: Path to factory defaults fallback
            base_dir: Directory paths are resolved against (default: src/)
        """
        self.base_dir = Path(base_dir) if base_dir is not None else Path(__file__).parent.parent
        self.config_path = Path(config_path)
        self.factory_defaults_path = Path(defaults_path)
        self.data: Dict[str, Any] = {}
        self.hardware: Optional[HardwareConfig] = None

    def load(self) -> HardwareConfig:
        """
        Load YAML configuration

        Process:
        1. Load main config.yaml
        2. If it has 'include:' list, load and merge those files
        3. Fallback to factory_defaults.yaml on failure
        4. Parse into HardwareConfig and apply the logging section
        """
        try:
            full_path = self.base_dir / self.config_path
            with open(full_path, "r", encoding="utf-8") as f:
                main_config = yaml.safe_load(f) or {}

            if 'include' in main_config:
                log.info("Using include-based configuration")
                self.data = self._load_with_includes(main_config['include'], full_path.parent)
            else:
                log.info("Using monolithic configuration")
                self.data = main_config

        except (OSError, yaml.YAMLError) as ex:
            log.error("Failed to load config.yaml", error=str(ex), error_type=type(ex).__name__)
            log.warn("Falling back to factory defaults")

            defaults_path = self.base_dir / self.factory_defaults_path
            with open(defaults_path, "r", encoding="utf-8") as f:
                self.data = yaml.safe_load(f) or {}

        self.hardware = self.parse(self.data)
        configure_logger(self.hardware.logging.level, self.hardware.logging.use_colors)
        return self.hardware

    def _load_with_includes(self, include_list: List[str], config_dir: Path) -> Dict[str, Any]:
        """Load and shallow-merge every file of include_list, in order."""
        merged: Dict[str, Any] = {}

        for filename in include_list:
            filepath = config_dir / filename
            try:
                with open(filepath, 'r', encoding='utf-8') as f:
                    file_data = yaml.safe_load(f)
                    if file_data:
                        merged.update(file_data)
                        log.info(f"Loaded {filename}", keys=str(list(file_data.keys())))
            except FileNotFoundError:
                log.error(f"File not found: {filename}")
                raise

        log.info("Config merge complete", total_keys=len(merged), keys=str(list(merged.keys())))
        return merged

    # ===== Parsing =====

    @classmethod
    def parse(cls, data: Dict[str, Any]) -> HardwareConfig:
        """
        Convert the raw merged dict into HardwareConfig.

        Missing sections get dataclass defaults.

        Raises:
            ValueError: unknown enum names or out-of-range values
        """
        return HardwareConfig(
            device=cls._parse_device(data.get("device") or {}),
            i2c=I2cBusConfig(
                frequency_khz=float((data.get("i2c") or {}).get("frequency_khz", 400.0)),
            ),
            pixel=cls._parse_pixel(data.get("pixel") or {}),
            logging=cls._parse_logging(data.get("logging") or {}),
        )

    @staticmethod
    def _parse_device(raw: Dict[str, Any]) -> DeviceConfig:
        defaults = DeviceConfig()
        interface = raw.get("interface", defaults.interface.name)
        return DeviceConfig(
            vendor_id=int(raw.get("vendor_id", defaults.vendor_id)),
            product_id=int(raw.get("product_id", defaults.product_id)),
            interface=Serializer.str_to_enum(str(interface).upper(), FtdiInterface),
            bus=raw.get("bus"),
            address=raw.get("address"),
            latency_timer_ms=int(raw.get("latency_timer_ms", defaults.latency_timer_ms)),
        )

    @staticmethod
    def _parse_pixel(raw: Dict[str, Any]) -> PixelStripConfig:
        order = str(raw.get("color_order", ColorOrder.GRB.value)).upper()
        return PixelStripConfig(
            color_order=Serializer.str_to_enum(order, ColorOrder),
            led_count=int(raw.get("led_count", 0)),
        )

    @staticmethod
    def _parse_logging(raw: Dict[str, Any]) -> LoggingConfig:
        level = str(raw.get("level", LogLevel.INFO.name)).upper()
        return LoggingConfig(
            level=Serializer.str_to_enum(level, LogLevel),
            use_colors=bool(raw.get("use_colors", True)),
        )
