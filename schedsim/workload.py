from __future__ import annotations

from dataclasses import dataclass
from random import Random
from typing import List, Optional, Tuple

from .models import ProcessDescriptor


@dataclass(frozen=True)
class WorkloadSpec:
    """Parameters for a random process population."""

    count: int
    burst_range: Tuple[int, int] = (1, 10)
    arrival_gap: Tuple[int, int] = (0, 3)
    priority_range: Tuple[int, int] = (1, 10)
    prefix: str = "P"

    def __post_init__(self) -> None:
        if self.count < 0:
            msg = "count cannot be negative"
            raise ValueError(msg)
        _check_range("burst_range", self.burst_range, minimum=1)
        _check_range("arrival_gap", self.arrival_gap, minimum=0)
        _check_range("priority_range", self.priority_range, minimum=None)


def _check_range(name: str, bounds: Tuple[int, int], minimum: Optional[int]) -> None:
    low, high = bounds
    if minimum is not None and low < minimum:
        msg = f"{name} lower bound must be at least {minimum}"
        raise ValueError(msg)
    if high < low:
        msg = f"{name} must satisfy min <= max"
        raise ValueError(msg)


def random_workload(spec: WorkloadSpec, *, seed: int | None = None) -> List[ProcessDescriptor]:
    """
    Draw `spec.count` processes with uniform burst, priority and inter-arrival
    gaps. The first process always arrives at tick 0. The same seed always
    yields the same workload.
    """
    rng = Random(seed)
    processes: List[ProcessDescriptor] = []
    arrival = 0
    for i in range(1, spec.count + 1):
        if i > 1:
            arrival += rng.randint(*spec.arrival_gap)
        processes.append(
            ProcessDescriptor(
                pid=f"{spec.prefix}{i}",
                arrival_time=arrival,
                burst_time=rng.randint(*spec.burst_range),
                priority=rng.randint(*spec.priority_range),
            )
        )
    return processes


def parse_int_range(raw: str) -> Tuple[int, int]:
    """Parse a "min,max" CLI value."""
    parts = [item.strip() for item in raw.split(",") if item.strip()]
    if len(parts) != 2:
        msg = f"expected min,max but got {raw!r}"
        raise ValueError(msg)
    low, high = (int(part) for part in parts)
    return (low, high)
