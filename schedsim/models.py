from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .errors import SimulationInvariantError

_DIGITS = re.compile(r"(\d+)")


def pid_sort_key(pid: str) -> Tuple:
    """
    Natural ordering for process ids, so "P2" sorts before "P10".
    """
    parts = _DIGITS.split(pid)
    return tuple((0, int(part), "") if part.isdigit() else (1, 0, part) for part in parts)


class ProcessState(str, Enum):
    NEW = "NEW"
    READY = "READY"
    RUNNING = "RUNNING"
    TERMINATED = "TERMINATED"


@dataclass(frozen=True)
class ProcessDescriptor:
    pid: str
    arrival_time: int
    burst_time: int
    priority: int = 0


@dataclass
class ProcessRuntime:
    """
    Mutable bookkeeping for one process during a single engine run.
    """

    descriptor: ProcessDescriptor
    remaining_time: int
    state: ProcessState = ProcessState.NEW
    first_run_time: Optional[int] = None
    completion_time: Optional[int] = None
    ready_since: Optional[int] = None

    @classmethod
    def for_descriptor(cls, descriptor: ProcessDescriptor) -> "ProcessRuntime":
        return cls(descriptor=descriptor, remaining_time=descriptor.burst_time)

    @property
    def pid(self) -> str:
        return self.descriptor.pid

    @property
    def arrival_time(self) -> int:
        return self.descriptor.arrival_time

    @property
    def burst_time(self) -> int:
        return self.descriptor.burst_time

    @property
    def priority(self) -> int:
        return self.descriptor.priority

    def _require(self, *states: ProcessState) -> None:
        if self.state not in states:
            allowed = ", ".join(s.value for s in states)
            raise SimulationInvariantError(
                f"Process {self.pid!r} is {self.state.value}; expected {allowed}"
            )

    def mark_ready(self, now: int) -> None:
        self._require(ProcessState.NEW, ProcessState.RUNNING)
        self.state = ProcessState.READY
        self.ready_since = now

    def mark_running(self, now: int) -> None:
        self._require(ProcessState.READY)
        self.state = ProcessState.RUNNING
        if self.first_run_time is None:
            self.first_run_time = now

    def execute_tick(self) -> None:
        self._require(ProcessState.RUNNING)
        self.remaining_time -= 1
        if not 0 <= self.remaining_time <= self.burst_time:
            raise SimulationInvariantError(
                f"Process {self.pid!r} has remaining_time {self.remaining_time} "
                f"outside [0, {self.burst_time}]"
            )

    def mark_terminated(self, now: int) -> None:
        self._require(ProcessState.RUNNING)
        self.state = ProcessState.TERMINATED
        self.completion_time = now

    @property
    def is_terminated(self) -> bool:
        return self.state is ProcessState.TERMINATED


@dataclass(frozen=True)
class Decision:
    """
    A policy's choice: which process runs, for how many ticks, and the ready
    queue left behind once it has been taken out.
    """

    pid: str
    allotted_ticks: int
    ready: Tuple[str, ...]


@dataclass(frozen=True)
class ScheduledSlice:
    """
    One contiguous slice of execution for a process in the Gantt chart.
    """

    pid: str
    start_time: int
    end_time: int
    cpu: int = 0


@dataclass
class SimulationRun:
    """
    Raw output of one engine run, consumed by the metrics calculator.
    """

    policy: str
    quantum: Optional[int]
    cpus: int
    processes: List[ProcessRuntime] = field(default_factory=list)
    timeline: List[ScheduledSlice] = field(default_factory=list)
    total_ticks: int = 0
    busy_ticks: int = 0
    idle_ticks: int = 0
    dispatches: int = 0
    preemptions: int = 0


@dataclass(frozen=True)
class ProcessMetrics:
    pid: str
    arrival_time: int
    burst_time: int
    priority: int
    start_time: int
    completion_time: int
    waiting_time: int
    turnaround_time: int
    response_time: int


@dataclass(frozen=True)
class SystemMetrics:
    total_ticks: int
    busy_ticks: int
    idle_ticks: int
    makespan: int
    throughput: float
    cpu_utilization: float
    avg_waiting: float
    avg_turnaround: float
    avg_response: float
    starvation_count: int = 0
    dispatches: int = 0
    preemptions: int = 0


@dataclass(frozen=True)
class SimulationReport:
    policy: str
    quantum: Optional[int]
    cpus: int
    processes: Tuple[ProcessMetrics, ...]
    timeline: Tuple[ScheduledSlice, ...]
    system: SystemMetrics
