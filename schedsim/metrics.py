from __future__ import annotations

from typing import List, Sequence

from .errors import IncompleteSimulationError
from .models import ProcessMetrics, SimulationReport, SimulationRun, SystemMetrics


def build_process_metrics(run: SimulationRun) -> List[ProcessMetrics]:
    """
    Per-process waiting, turnaround and response times. Every process must
    have terminated.
    """
    unfinished = [p.pid for p in run.processes if not p.is_terminated]
    if unfinished:
        raise IncompleteSimulationError(
            f"{len(unfinished)} process(es) have not terminated: {', '.join(unfinished)}"
        )

    metrics: List[ProcessMetrics] = []
    for p in run.processes:
        turnaround_time = p.completion_time - p.arrival_time
        metrics.append(
            ProcessMetrics(
                pid=p.pid,
                arrival_time=p.arrival_time,
                burst_time=p.burst_time,
                priority=p.priority,
                start_time=p.first_run_time,
                completion_time=p.completion_time,
                waiting_time=turnaround_time - p.burst_time,
                turnaround_time=turnaround_time,
                response_time=p.first_run_time - p.arrival_time,
            )
        )
    return metrics


def summarize_process_metrics(processes: Sequence[ProcessMetrics]) -> dict:
    """
    Return averages of the key per-process metrics for quick comparison.
    """
    if not processes:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0, "avg_response": 0.0}

    n = len(processes)
    return {
        "avg_waiting": sum(p.waiting_time for p in processes) / n,
        "avg_turnaround": sum(p.turnaround_time for p in processes) / n,
        "avg_response": sum(p.response_time for p in processes) / n,
    }


def compute_system_metrics(run: SimulationRun, processes: Sequence[ProcessMetrics]) -> SystemMetrics:
    """
    Aggregate throughput, CPU utilization and averages for a finished run.
    """
    summary = summarize_process_metrics(processes)
    total_ticks = run.total_ticks
    capacity = total_ticks * run.cpus

    throughput = len(processes) / total_ticks if total_ticks > 0 else 0.0
    cpu_utilization = run.busy_ticks / capacity if capacity > 0 else 0.0
    makespan = max((p.completion_time for p in processes), default=0)

    # Processes waiting more than twice the average count as starved.
    avg_wait = summary["avg_waiting"]
    starvation_count = sum(1 for p in processes if p.waiting_time > 2 * avg_wait)

    return SystemMetrics(
        total_ticks=total_ticks,
        busy_ticks=run.busy_ticks,
        idle_ticks=run.idle_ticks,
        makespan=makespan,
        throughput=throughput,
        cpu_utilization=cpu_utilization,
        avg_waiting=summary["avg_waiting"],
        avg_turnaround=summary["avg_turnaround"],
        avg_response=summary["avg_response"],
        starvation_count=starvation_count,
        dispatches=run.dispatches,
        preemptions=run.preemptions,
    )


def build_report(run: SimulationRun) -> SimulationReport:
    processes = build_process_metrics(run)
    return SimulationReport(
        policy=run.policy,
        quantum=run.quantum,
        cpus=run.cpus,
        processes=tuple(processes),
        timeline=tuple(run.timeline),
        system=compute_system_metrics(run, processes),
    )
