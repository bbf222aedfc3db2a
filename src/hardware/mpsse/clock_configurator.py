# hardware/mpsse/clock_configurator.py
"""
ClockConfigurator - TCK divisor programming
============================================
f_tck = 60MHz / ((1 + divisor) * 2), with three-phase clocking stretching
each cycle by half (effective rate x2/3).

Achievable frequencies are quantized, so the relative error is reported
and logged but never rejected.
"""

from __future__ import annotations
import math

from hardware.mpsse.commands import (
    BASE_CLOCK_KHZ,
    MAX_CLOCK_DIVISOR,
    EN_3_PHASE,
    DIS_3_PHASE,
    EN_ADAPTIVE,
    DIS_ADAPTIVE,
    DIS_DIV_5,
    TCK_DIVISOR,
)
from hardware.mpsse.transport_buffer import TransportBuffer
from models.clock_profile import ClockProfile
from models.errors import ArgumentError
from utils.logger import get_logger, LogCategory

log = get_logger().for_category(LogCategory.CLOCK)


class ClockConfigurator:

    def __init__(self, transport: TransportBuffer) -> None:
        self.transport = transport

    @staticmethod
    def compute(khz: float, three_phase: bool, adaptive: bool = False) -> ClockProfile:
        """Pure divisor calculation, no I/O."""
        if khz <= 0:
            raise ArgumentError(f"bad input: khz={khz}")

        divisor = BASE_CLOCK_KHZ / (khz * 1.5 if three_phase else khz) / 2 - 1
        # Round half away from zero; negative values clamp to 0 anyway
        div = min(max(math.floor(divisor + 0.5), 0), MAX_CLOCK_DIVISOR)

        actual_khz = BASE_CLOCK_KHZ / ((div + 1) * 2)
        if three_phase:
            actual_khz = actual_khz / 3 * 2
        error = abs(actual_khz - khz) / khz

        return ClockProfile(
            requested_khz=khz,
            three_phase=three_phase,
            adaptive=adaptive,
            divisor=div,
            actual_khz=actual_khz,
            error=error,
        )

    def configure(self, khz: float, three_phase: bool, adaptive: bool) -> ClockProfile:
        """Compute the divisor, program mode bits + divisor, flush."""
        profile = self.compute(khz, three_phase, adaptive)

        log.info(
            "MPSSE clock configured",
            requested=f"{khz:.02f}kHz",
            divisor=profile.divisor,
            actual=f"{profile.actual_khz:.02f}kHz",
            error=f"{profile.error_percent:.02f}%",
        )

        t = self.transport
        t.clear()
        t.append_bytes((
            EN_3_PHASE if three_phase else DIS_3_PHASE,
            EN_ADAPTIVE if adaptive else DIS_ADAPTIVE,
            DIS_DIV_5,  # 60MHz base clock
            TCK_DIVISOR,
            profile.divisor & 0xFF,
            (profile.divisor >> 8) & 0xFF,
        ))
        t.flush()
        return profile
