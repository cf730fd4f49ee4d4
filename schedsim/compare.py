from __future__ import annotations

from concurrent.futures import ProcessPoolExecutor
from typing import List, Optional, Sequence

from .engine import SchedulerEngine
from .metrics import build_report
from .models import ProcessDescriptor, SimulationReport
from .policies import PolicyConfig
from .store import ProcessStore

DEFAULT_POLICIES = ["fcfs", "sjn", "srtf", "rr", "priority", "priority-p"]


def run_policy(store: ProcessStore, config: PolicyConfig) -> SimulationReport:
    """
    Run one policy on a private copy of `store` and return its report.
    """
    return build_report(SchedulerEngine(store.copy(), config).run())


def compare_policies(
    processes: Sequence[ProcessDescriptor],
    policies: Sequence[str] = DEFAULT_POLICIES,
    quantum: Optional[int] = 2,
    cpus: int = 1,
    max_workers: Optional[int] = None,
) -> List[SimulationReport]:
    """
    Run several policies on the same workload, one engine each, and return the
    reports in the order the policies were given.

    All configurations and the workload are validated before anything runs.
    With max_workers > 1 the runs are spread over a process pool.
    """
    store = ProcessStore(processes)
    configs = [PolicyConfig.from_name(name, quantum=quantum, cpus=cpus) for name in policies]

    if max_workers is None or max_workers <= 1 or len(configs) <= 1:
        return [run_policy(store, config) for config in configs]

    with ProcessPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(run_policy, [store] * len(configs), configs))
