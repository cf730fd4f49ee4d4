"""
CPU scheduling simulator.

Runs a fixed population of processes through a discrete-event engine under a
selectable policy (FCFS, SJN, SRTF, Round Robin, preemptive and
non-preemptive Priority) and derives waiting, turnaround and response metrics.
"""

from .compare import compare_policies
from .engine import SchedulerEngine, simulate
from .metrics import build_report
from .models import ProcessDescriptor, SimulationReport
from .policies import PolicyConfig, PolicyKind
from .store import ProcessStore

__all__ = [
    "ProcessDescriptor",
    "ProcessStore",
    "PolicyConfig",
    "PolicyKind",
    "SchedulerEngine",
    "SimulationReport",
    "build_report",
    "compare_policies",
    "simulate",
]
