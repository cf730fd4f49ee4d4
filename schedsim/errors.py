from __future__ import annotations


class SchedulerError(Exception):
    """Base class for recoverable simulator errors."""


class SetupError(SchedulerError, ValueError):
    """Bad input detected before the first simulated tick."""


class DuplicateIdError(SetupError):
    def __init__(self, pid: str) -> None:
        super().__init__(f"Process id {pid!r} is already registered")
        self.pid = pid


class InvalidBurstError(SetupError):
    def __init__(self, pid: str, burst_time: int) -> None:
        super().__init__(f"Process {pid!r} has burst_time {burst_time!r}; it must be a positive whole number of ticks")
        self.pid = pid
        self.burst_time = burst_time


class InvalidArrivalError(SetupError):
    def __init__(self, pid: str, arrival_time: int) -> None:
        super().__init__(f"Process {pid!r} has arrival_time {arrival_time!r}; it must be a non-negative whole tick")
        self.pid = pid
        self.arrival_time = arrival_time


class InvalidQuantumError(SetupError):
    def __init__(self, quantum) -> None:
        super().__init__(f"Round Robin requires a positive quantum (got {quantum!r})")
        self.quantum = quantum


class InvalidCpuCountError(SetupError):
    def __init__(self, cpus) -> None:
        super().__init__(f"At least one CPU is required (got {cpus!r})")
        self.cpus = cpus


class UnknownPolicyError(SetupError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown scheduling policy '{name}'")
        self.name = name


class RegistrationClosedError(SchedulerError):
    """Raised when a process is registered after the store was closed."""


class IncompleteSimulationError(SchedulerError):
    """Raised when metrics are requested before every process terminated."""


class SimulationInvariantError(RuntimeError):
    """
    A broken engine or policy invariant (non-terminating loop, negative
    remaining time, ...). Not a SchedulerError: it signals a defect, not bad
    input, and must propagate.
    """


class WorkloadFormatError(SchedulerError, ValueError):
    """A workload file that cannot be turned into process descriptors."""
