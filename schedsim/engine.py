from __future__ import annotations

import logging
from collections import deque
from typing import Deque, Dict, Iterable, List, Optional, Tuple

from .errors import SimulationInvariantError
from .metrics import build_report
from .models import (
    ProcessDescriptor,
    ProcessRuntime,
    ProcessState,
    ScheduledSlice,
    SimulationReport,
    SimulationRun,
)
from .policies import PolicyConfig, select_next, urgency_key
from .store import ProcessStore

logger = logging.getLogger(__name__)


class _Cpu:
    """One processor slot: the process it holds and what is left of its allotment."""

    def __init__(self, index: int) -> None:
        self.index = index
        self.running: Optional[ProcessRuntime] = None
        self.allotment_left = 0
        self.slice_start = 0


class SchedulerEngine:
    """
    Discrete-event scheduler loop.

    Every tick the engine promotes arrivals, lets the policy fill (or, for
    preemptive policies, re-evaluate) each CPU, executes one tick of work per
    busy CPU and then settles completions and expired quanta. All run state,
    the clock included, is rebuilt by reset() at the start of run().
    """

    def __init__(self, store: ProcessStore, config: PolicyConfig) -> None:
        store.close()
        self.store = store
        self.config = config
        self.reset()

    def reset(self) -> None:
        self.clock = 0
        self.processes: List[ProcessRuntime] = [
            ProcessRuntime.for_descriptor(d) for d in self.store.all()
        ]
        self._by_pid: Dict[str, ProcessRuntime] = {p.pid: p for p in self.processes}
        self._pending: Deque[ProcessRuntime] = deque(self.processes)
        self.ready: Tuple[str, ...] = ()
        self.cpus = [_Cpu(i) for i in range(self.config.cpus)]
        self.timeline: List[ScheduledSlice] = []
        self.busy_ticks = 0
        self.idle_ticks = 0
        self.dispatches = 0
        self.preemptions = 0
        self._terminated = 0

    @property
    def tick_limit(self) -> int:
        total_burst = sum(p.burst_time for p in self.processes)
        max_arrival = max((p.arrival_time for p in self.processes), default=0)
        return total_burst + max_arrival

    def done(self) -> bool:
        return self._terminated == len(self.processes)

    def run(self) -> SimulationRun:
        self.reset()
        limit = self.tick_limit
        while not self.done():
            if self.clock >= limit:
                raise SimulationInvariantError(
                    f"{self.config.label} did not finish within {limit} ticks "
                    f"({self._terminated}/{len(self.processes)} terminated)"
                )
            self.tick()

        logger.info(
            "%s finished %d processes in %d ticks (busy=%d, idle=%d, preemptions=%d)",
            self.config.label,
            len(self.processes),
            self.clock,
            self.busy_ticks,
            self.idle_ticks,
            self.preemptions,
        )
        return SimulationRun(
            policy=self.config.label,
            quantum=self.config.quantum,
            cpus=self.config.cpus,
            processes=list(self.processes),
            timeline=sorted(self.timeline, key=lambda s: (s.start_time, s.cpu)),
            total_ticks=self.clock,
            busy_ticks=self.busy_ticks,
            idle_ticks=self.idle_ticks,
            dispatches=self.dispatches,
            preemptions=self.preemptions,
        )

    def tick(self) -> None:
        self._promote_arrivals()
        for cpu in self._scheduling_order():
            self._schedule(cpu)
        for cpu in self.cpus:
            self._execute(cpu)
        self.clock += 1
        # Arrivals at the new boundary queue up ahead of anything re-enqueued now.
        self._promote_arrivals()
        for cpu in self.cpus:
            self._settle(cpu)

    def _scheduling_order(self) -> List[_Cpu]:
        # Preemptive policies: idle CPUs first, then running processes from
        # least to most urgent. An arrival displaces at most one process.
        if not self.config.preemptive:
            return self.cpus
        key = urgency_key(self.config)
        idle = [cpu for cpu in self.cpus if cpu.running is None]
        busy = [cpu for cpu in self.cpus if cpu.running is not None]
        return idle + sorted(busy, key=lambda cpu: key(cpu.running), reverse=True)

    # -------- Transitions --------
    def _log_transition(self, p: ProcessRuntime, old: ProcessState, detail: str = "") -> None:
        extra = f" {detail}" if detail else ""
        logger.debug("t=%d: %s %s -> %s%s", self.clock, p.pid, old.value, p.state.value, extra)

    def _promote_arrivals(self) -> None:
        while self._pending and self._pending[0].arrival_time <= self.clock:
            p = self._pending.popleft()
            p.mark_ready(self.clock)
            self.ready += (p.pid,)
            self._log_transition(p, ProcessState.NEW)

    def _schedule(self, cpu: _Cpu) -> None:
        if cpu.running is not None and cpu.allotment_left > 0:
            return

        # Only a preemptive policy leaves a process on the CPU once its
        # allotment is spent; it is offered back to the policy as a candidate.
        running = cpu.running
        candidates = [self._by_pid[pid] for pid in self.ready]
        decision = select_next(self.clock, candidates, running, self.config)
        if decision is None:
            return

        self.ready = decision.ready
        if running is not None and decision.pid == running.pid:
            cpu.allotment_left = decision.allotted_ticks
            return

        chosen = self._by_pid.get(decision.pid)
        if chosen is None or chosen.state is not ProcessState.READY:
            raise SimulationInvariantError(
                f"{self.config.label} selected {decision.pid!r}, which is not ready"
            )
        if not 0 < decision.allotted_ticks <= chosen.remaining_time:
            raise SimulationInvariantError(
                f"{self.config.label} allotted {decision.allotted_ticks} ticks to "
                f"{chosen.pid!r} with {chosen.remaining_time} remaining"
            )

        if running is not None:
            self._close_slice(cpu)
            self._requeue(running, "(preempted)")

        chosen.mark_running(self.clock)
        self._log_transition(chosen, ProcessState.READY, f"on cpu{cpu.index}")
        cpu.running = chosen
        cpu.allotment_left = decision.allotted_ticks
        cpu.slice_start = self.clock
        self.dispatches += 1

    def _execute(self, cpu: _Cpu) -> None:
        if cpu.running is None:
            self.idle_ticks += 1
            return
        cpu.running.execute_tick()
        cpu.allotment_left -= 1
        self.busy_ticks += 1

    def _settle(self, cpu: _Cpu) -> None:
        p = cpu.running
        if p is None:
            return
        if p.remaining_time == 0:
            self._close_slice(cpu)
            p.mark_terminated(self.clock)
            self._log_transition(p, ProcessState.RUNNING)
            self._terminated += 1
            cpu.running = None
        elif cpu.allotment_left == 0 and not self.config.preemptive:
            self._close_slice(cpu)
            self._requeue(p, "(time slice)")
            cpu.running = None

    def _requeue(self, p: ProcessRuntime, detail: str) -> None:
        p.mark_ready(self.clock)
        self.ready += (p.pid,)
        self.preemptions += 1
        self._log_transition(p, ProcessState.RUNNING, detail)

    def _close_slice(self, cpu: _Cpu) -> None:
        if cpu.running is not None and self.clock > cpu.slice_start:
            self.timeline.append(
                ScheduledSlice(
                    pid=cpu.running.pid,
                    start_time=cpu.slice_start,
                    end_time=self.clock,
                    cpu=cpu.index,
                )
            )


def simulate(
    processes: Iterable[ProcessDescriptor],
    policy: str,
    quantum: Optional[int] = None,
    cpus: int = 1,
) -> SimulationReport:
    """
    Validate the setup, run one simulation to completion and build its report.
    """
    config = PolicyConfig.from_name(policy, quantum=quantum, cpus=cpus)
    store = ProcessStore(processes)
    return build_report(SchedulerEngine(store, config).run())
