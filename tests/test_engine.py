import pytest

from schedsim import policies
from schedsim.engine import SchedulerEngine, simulate
from schedsim.errors import (
    DuplicateIdError,
    InvalidBurstError,
    InvalidQuantumError,
    SimulationInvariantError,
)
from schedsim.metrics import build_report
from schedsim.models import Decision, ProcessDescriptor, ProcessState
from schedsim.policies import PolicyConfig, PolicyKind
from schedsim.store import ProcessStore
from schedsim.workload import WorkloadSpec, random_workload


def _engine(processes, policy="fcfs", quantum=None, cpus=1):
    return SchedulerEngine(ProcessStore(processes), PolicyConfig.from_name(policy, quantum=quantum, cpus=cpus))


def test_idle_gap_is_counted():
    res = simulate(
        [
            ProcessDescriptor("A", arrival_time=0, burst_time=2),
            ProcessDescriptor("B", arrival_time=5, burst_time=3),
        ],
        "fcfs",
    )
    assert [(s.pid, s.start_time, s.end_time) for s in res.timeline] == [("A", 0, 2), ("B", 5, 8)]
    assert res.system.total_ticks == 8
    assert res.system.idle_ticks == 3
    assert res.system.busy_ticks == 5
    assert res.system.cpu_utilization == pytest.approx(5 / 8)
    assert res.system.throughput == pytest.approx(2 / 8)


def test_late_first_arrival_records_leading_idle():
    res = simulate([ProcessDescriptor("A", arrival_time=3, burst_time=2)], "rr", quantum=1)
    assert res.system.idle_ticks == 3
    assert res.processes[0].response_time == 0
    assert res.processes[0].completion_time == 5


def test_two_cpus_share_the_ready_queue():
    res = simulate(
        [
            ProcessDescriptor("A", arrival_time=0, burst_time=4),
            ProcessDescriptor("B", arrival_time=0, burst_time=2),
            ProcessDescriptor("C", arrival_time=1, burst_time=3),
        ],
        "fcfs",
        cpus=2,
    )
    assert [(s.pid, s.cpu, s.start_time, s.end_time) for s in res.timeline] == [
        ("A", 0, 0, 4),
        ("B", 1, 0, 2),
        ("C", 1, 2, 5),
    ]
    assert res.system.total_ticks == 5
    assert res.system.busy_ticks == 9
    assert res.system.cpu_utilization == pytest.approx(9 / 10)


def test_two_cpus_preemption_displaces_least_urgent():
    res = simulate(
        [
            ProcessDescriptor("A", arrival_time=0, burst_time=4, priority=5),
            ProcessDescriptor("B", arrival_time=0, burst_time=4, priority=6),
            ProcessDescriptor("C", arrival_time=1, burst_time=1, priority=4),
        ],
        "priority-p",
        cpus=2,
    )
    assert [(s.pid, s.cpu, s.start_time, s.end_time) for s in res.timeline] == [
        ("A", 0, 0, 4),
        ("B", 1, 0, 1),
        ("C", 1, 1, 2),
        ("B", 1, 2, 5),
    ]
    assert res.system.preemptions == 1
    assert res.system.busy_ticks == 9
    assert res.system.total_ticks == 5
    by_pid = {p.pid: p for p in res.processes}
    assert by_pid["C"].response_time == 0
    assert by_pid["A"].waiting_time == 0


def test_two_cpus_idle_cpu_takes_arrival_before_preempting():
    res = simulate(
        [
            ProcessDescriptor("A", arrival_time=0, burst_time=3, priority=5),
            ProcessDescriptor("B", arrival_time=1, burst_time=2, priority=1),
        ],
        "priority-p",
        cpus=2,
    )
    assert [(s.pid, s.cpu, s.start_time, s.end_time) for s in res.timeline] == [
        ("A", 0, 0, 3),
        ("B", 1, 1, 3),
    ]
    assert res.system.preemptions == 0


def test_preempted_process_keeps_executed_progress():
    engine = _engine(
        [
            ProcessDescriptor("low", arrival_time=0, burst_time=6, priority=9),
            ProcessDescriptor("high", arrival_time=2, burst_time=2, priority=1),
        ],
        policy="priority-p",
    )
    engine.reset()
    for _ in range(3):
        engine.tick()
    low = next(p for p in engine.processes if p.pid == "low")
    # Ran during ticks 0 and 1, preempted at the tick-2 boundary.
    assert low.remaining_time == 4
    assert low.state is ProcessState.READY
    assert low.ready_since == 2
    assert low.first_run_time == 0


def test_run_is_repeatable():
    workload = random_workload(WorkloadSpec(count=12), seed=7)
    engine = _engine(workload, policy="rr", quantum=3)
    first = build_report(engine.run())
    second = build_report(engine.run())
    assert first == second


def test_empty_workload_reports_zeros():
    res = simulate([], "fcfs")
    assert res.processes == ()
    assert res.system.total_ticks == 0
    assert res.system.throughput == 0.0
    assert res.system.cpu_utilization == 0.0
    assert res.system.avg_waiting == 0.0


def test_setup_errors_surface_before_running():
    with pytest.raises(DuplicateIdError):
        simulate(
            [
                ProcessDescriptor("A", arrival_time=0, burst_time=1),
                ProcessDescriptor("A", arrival_time=1, burst_time=1),
            ],
            "fcfs",
        )
    with pytest.raises(InvalidBurstError):
        simulate([ProcessDescriptor("A", arrival_time=0, burst_time=0)], "fcfs")
    with pytest.raises(InvalidQuantumError):
        simulate([ProcessDescriptor("A", arrival_time=0, burst_time=1)], "rr", quantum=0)


def test_stalled_policy_is_fatal(monkeypatch):
    monkeypatch.setitem(policies.SELECTORS, PolicyKind.FCFS, lambda tick, ready, running, config: None)
    engine = _engine([ProcessDescriptor("A", arrival_time=0, burst_time=3)])
    with pytest.raises(SimulationInvariantError):
        engine.run()


def test_over_allotment_is_fatal(monkeypatch):
    def greedy(tick, ready, running, config):
        if not ready:
            return None
        return Decision(ready[0].pid, ready[0].remaining_time + 1, ())

    monkeypatch.setitem(policies.SELECTORS, PolicyKind.FCFS, greedy)
    engine = _engine([ProcessDescriptor("A", arrival_time=0, burst_time=3)])
    with pytest.raises(SimulationInvariantError):
        engine.run()


@pytest.mark.parametrize("policy", ["fcfs", "sjn", "srtf", "rr", "priority", "priority-p"])
@pytest.mark.parametrize("seed", [1, 2, 3])
@pytest.mark.parametrize("cpus", [1, 2])
def test_random_workloads_hold_invariants(policy, seed, cpus):
    workload = random_workload(WorkloadSpec(count=15, arrival_gap=(0, 5)), seed=seed)
    res = simulate(workload, policy, quantum=3, cpus=cpus)
    assert res.system.busy_ticks == sum(p.burst_time for p in workload)
    assert res.system.total_ticks <= sum(p.burst_time for p in workload) + max(p.arrival_time for p in workload)
    for p in res.processes:
        assert p.completion_time >= p.arrival_time + p.burst_time
        assert p.waiting_time >= 0
        assert p.response_time >= 0
