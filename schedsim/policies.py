from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional, Sequence

from .errors import InvalidCpuCountError, InvalidQuantumError, UnknownPolicyError
from .models import Decision, ProcessRuntime, pid_sort_key


class PolicyKind(str, Enum):
    FCFS = "fcfs"
    SJN = "sjn"
    SRTF = "srtf"
    ROUND_ROBIN = "rr"
    PRIORITY_PREEMPTIVE = "priority-p"
    PRIORITY_NON_PREEMPTIVE = "priority"


POLICY_LABELS: Dict[PolicyKind, str] = {
    PolicyKind.FCFS: "FCFS",
    PolicyKind.SJN: "SJN (non-preemptive)",
    PolicyKind.SRTF: "SRTF",
    PolicyKind.ROUND_ROBIN: "Round Robin",
    PolicyKind.PRIORITY_PREEMPTIVE: "Priority (preemptive)",
    PolicyKind.PRIORITY_NON_PREEMPTIVE: "Priority (non-preemptive)",
}

_ALIASES: Dict[str, PolicyKind] = {
    "fcfs": PolicyKind.FCFS,
    "sjn": PolicyKind.SJN,
    "sjf": PolicyKind.SJN,
    "srtf": PolicyKind.SRTF,
    "rr": PolicyKind.ROUND_ROBIN,
    "round-robin": PolicyKind.ROUND_ROBIN,
    "priority": PolicyKind.PRIORITY_NON_PREEMPTIVE,
    "priority-np": PolicyKind.PRIORITY_NON_PREEMPTIVE,
    "priority-p": PolicyKind.PRIORITY_PREEMPTIVE,
}


@dataclass(frozen=True)
class PolicyConfig:
    kind: PolicyKind
    quantum: Optional[int] = None
    cpus: int = 1

    def __post_init__(self) -> None:
        if self.kind is PolicyKind.ROUND_ROBIN:
            if self.quantum is None or self.quantum <= 0:
                raise InvalidQuantumError(self.quantum)
        elif self.quantum is not None and self.quantum <= 0:
            raise InvalidQuantumError(self.quantum)
        if self.cpus < 1:
            raise InvalidCpuCountError(self.cpus)

    @classmethod
    def from_name(cls, name: str, quantum: Optional[int] = None, cpus: int = 1) -> "PolicyConfig":
        try:
            kind = _ALIASES[name.lower()]
        except KeyError:
            raise UnknownPolicyError(name) from None
        if kind is not PolicyKind.ROUND_ROBIN:
            # Only round robin is time-sliced.
            quantum = None
        return cls(kind=kind, quantum=quantum, cpus=cpus)

    @property
    def label(self) -> str:
        return POLICY_LABELS[self.kind]

    @property
    def preemptive(self) -> bool:
        return self.kind in PREEMPTIVE


Selector = Callable[[int, Sequence[ProcessRuntime], Optional[ProcessRuntime], PolicyConfig], Optional[Decision]]


def _without(ready: Sequence[ProcessRuntime], pid: str) -> tuple:
    return tuple(p.pid for p in ready if p.pid != pid)


def _pick(ready: Sequence[ProcessRuntime], key) -> Optional[ProcessRuntime]:
    if not ready:
        return None
    return min(ready, key=key)


def _arrival_key(p: ProcessRuntime):
    return (p.ready_since, pid_sort_key(p.pid))


def _shortest_key(p: ProcessRuntime):
    return (p.remaining_time, p.ready_since, pid_sort_key(p.pid))


def _priority_key(p: ProcessRuntime):
    return (p.priority, p.ready_since, pid_sort_key(p.pid))


def select_fcfs(tick, ready, running, config) -> Optional[Decision]:
    """
    First-Come First-Served: earliest ready_since, ties by id. Runs to completion.
    """
    chosen = _pick(ready, _arrival_key)
    if chosen is None:
        return None
    return Decision(chosen.pid, chosen.remaining_time, _without(ready, chosen.pid))


def select_sjn(tick, ready, running, config) -> Optional[Decision]:
    """
    Shortest Job Next (non-preemptive).
    """
    chosen = _pick(ready, _shortest_key)
    if chosen is None:
        return None
    return Decision(chosen.pid, chosen.remaining_time, _without(ready, chosen.pid))


def select_round_robin(tick, ready, running, config) -> Optional[Decision]:
    """
    Round Robin: the head of the rotation runs for at most one quantum.
    """
    if not ready:
        return None
    head = ready[0]
    return Decision(head.pid, min(head.remaining_time, config.quantum), _without(ready, head.pid))


def _preemptive_select(ready, running, key) -> Optional[Decision]:
    # The running process keeps the CPU unless a ready one is strictly better
    # on the primary key.
    best = _pick(ready, key)
    if running is not None and (best is None or key(best)[0] >= key(running)[0]):
        return Decision(running.pid, 1, tuple(p.pid for p in ready))
    if best is None:
        return None
    return Decision(best.pid, 1, _without(ready, best.pid))


def select_srtf(tick, ready, running, config) -> Optional[Decision]:
    """
    Shortest Remaining Time First (preemptive SJN), re-evaluated every tick.
    """
    return _preemptive_select(ready, running, _shortest_key)


def select_priority_preemptive(tick, ready, running, config) -> Optional[Decision]:
    """
    Lower numeric priority wins; a strictly more urgent ready process preempts
    the running one at the next tick boundary.
    """
    return _preemptive_select(ready, running, _priority_key)


def select_priority(tick, ready, running, config) -> Optional[Decision]:
    """
    Static priority (non-preemptive). Ties by ready_since, then id.
    """
    chosen = _pick(ready, _priority_key)
    if chosen is None:
        return None
    return Decision(chosen.pid, chosen.remaining_time, _without(ready, chosen.pid))


SELECTORS: Dict[PolicyKind, Selector] = {
    PolicyKind.FCFS: select_fcfs,
    PolicyKind.SJN: select_sjn,
    PolicyKind.SRTF: select_srtf,
    PolicyKind.ROUND_ROBIN: select_round_robin,
    PolicyKind.PRIORITY_PREEMPTIVE: select_priority_preemptive,
    PolicyKind.PRIORITY_NON_PREEMPTIVE: select_priority,
}

URGENCY_KEYS = {
    PolicyKind.SRTF: _shortest_key,
    PolicyKind.PRIORITY_PREEMPTIVE: _priority_key,
}

PREEMPTIVE = frozenset(URGENCY_KEYS)


def urgency_key(config: PolicyConfig):
    """
    Sort key ranking processes by urgency under a preemptive policy (smaller
    is more urgent).
    """
    return URGENCY_KEYS[config.kind]


def select_next(
    tick: int,
    ready: Sequence[ProcessRuntime],
    running: Optional[ProcessRuntime],
    config: PolicyConfig,
) -> Optional[Decision]:
    """
    Ask the configured policy for the next unit of work. Returns None when
    there is nothing to run (idle).
    """
    return SELECTORS[config.kind](tick, ready, running, config)
