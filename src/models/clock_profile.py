from __future__ import annotations
from dataclasses import dataclass, asdict
from typing import Dict, Any


@dataclass(frozen=True)
class ClockProfile:
    """Result of a clock divisor computation (never cached, one per configure call)."""
    requested_khz: float
    three_phase: bool
    adaptive: bool
    divisor: int
    actual_khz: float
    error: float  # relative, |actual - requested| / requested

    @property
    def error_percent(self) -> float:
        return self.error * 100

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)
