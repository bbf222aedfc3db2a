from .transport_buffer import TransportBuffer
from .engine_sync import EngineSync
from .clock_configurator import ClockConfigurator
from .pin_controller import PinController

__all__ = [
    "TransportBuffer",
    "EngineSync",
    "ClockConfigurator",
    "PinController",
]
