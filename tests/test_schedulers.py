import pytest

from schedsim.engine import simulate
from schedsim.models import ProcessDescriptor

ALL_POLICIES = ["fcfs", "sjn", "srtf", "rr", "priority", "priority-p"]


def _procs():
    return [
        ProcessDescriptor("P1", arrival_time=0, burst_time=5, priority=2),
        ProcessDescriptor("P2", arrival_time=1, burst_time=3, priority=1),
        ProcessDescriptor("P3", arrival_time=2, burst_time=8, priority=3),
    ]


def _slices(res):
    return [(s.pid, s.start_time, s.end_time) for s in res.timeline]


def _by_pid(res):
    return {p.pid: p for p in res.processes}


def test_fcfs_order():
    res = simulate(_procs(), "fcfs")
    assert [s.pid for s in res.timeline] == ["P1", "P2", "P3"]
    assert res.processes[0].waiting_time == 0
    assert res.processes[1].waiting_time == 4
    assert res.processes[2].waiting_time == 6


def test_fcfs_two_process_example():
    res = simulate(
        [
            ProcessDescriptor("1", arrival_time=0, burst_time=5),
            ProcessDescriptor("2", arrival_time=1, burst_time=3),
        ],
        "fcfs",
    )
    assert _slices(res) == [("1", 0, 5), ("2", 5, 8)]
    assert _by_pid(res)["1"].waiting_time == 0
    assert _by_pid(res)["2"].waiting_time == 4


def test_sjn_order():
    res = simulate(_procs(), "sjn")
    # P1 is alone at t=0, then P2 (3) beats P3 (8).
    assert _slices(res) == [("P1", 0, 5), ("P2", 5, 8), ("P3", 8, 16)]


def test_sjn_picks_shortest_among_ready():
    res = simulate(
        [
            ProcessDescriptor("A", arrival_time=0, burst_time=4),
            ProcessDescriptor("B", arrival_time=1, burst_time=6),
            ProcessDescriptor("C", arrival_time=2, burst_time=2),
        ],
        "sjf",
    )
    assert [s.pid for s in res.timeline] == ["A", "C", "B"]


def test_rr_quantum_2_example():
    res = simulate(
        [
            ProcessDescriptor("1", arrival_time=0, burst_time=5),
            ProcessDescriptor("2", arrival_time=0, burst_time=3),
        ],
        "rr",
        quantum=2,
    )
    assert _slices(res) == [("1", 0, 2), ("2", 2, 4), ("1", 4, 6), ("2", 6, 7), ("1", 7, 8)]
    assert _by_pid(res)["2"].completion_time == 7
    assert _by_pid(res)["1"].completion_time == 8


def test_rr_new_arrivals_queue_ahead_of_expired_process():
    res = simulate(_procs(), "rr", quantum=2)
    # P3 arrives exactly when P1's first quantum ends and is queued before it.
    assert _slices(res)[:4] == [("P1", 0, 2), ("P2", 2, 4), ("P3", 4, 6), ("P1", 6, 8)]
    assert res.system.busy_ticks == sum(p.burst_time for p in _procs())
    assert {p.pid: p.completion_time for p in res.processes} == {"P1": 12, "P2": 9, "P3": 16}


def test_priority_static():
    res = simulate(_procs(), "priority")
    # P1 starts alone at t=0 and is not preempted by the more urgent P2.
    assert _slices(res) == [("P1", 0, 5), ("P2", 5, 8), ("P3", 8, 16)]
    assert res.system.preemptions == 0


def test_priority_preemptive():
    res = simulate(_procs(), "priority-p")
    assert _slices(res) == [("P1", 0, 1), ("P2", 1, 4), ("P1", 4, 8), ("P3", 8, 16)]
    metrics = _by_pid(res)
    assert metrics["P2"].response_time == 0
    assert metrics["P1"].completion_time == 8
    assert metrics["P1"].waiting_time == 3
    assert res.system.preemptions == 1


def test_priority_preemptive_equal_priority_does_not_preempt():
    res = simulate(
        [
            ProcessDescriptor("A", arrival_time=0, burst_time=3, priority=1),
            ProcessDescriptor("B", arrival_time=1, burst_time=2, priority=1),
        ],
        "priority-p",
    )
    assert _slices(res) == [("A", 0, 3), ("B", 3, 5)]


def test_srtf_preempts_for_shorter_remaining():
    res = simulate(_procs(), "srtf")
    assert _slices(res) == [("P1", 0, 1), ("P2", 1, 4), ("P1", 4, 8), ("P3", 8, 16)]
    assert res.system.busy_ticks == sum(p.burst_time for p in _procs())


@pytest.mark.parametrize("policy", ALL_POLICIES)
def test_every_policy_conserves_work(policy):
    res = simulate(_procs(), policy, quantum=2)
    assert {p.pid for p in res.processes} == {"P1", "P2", "P3"}
    assert res.system.busy_ticks == sum(p.burst_time for p in _procs())
    for p in res.processes:
        assert p.completion_time >= p.arrival_time + p.burst_time
        assert p.turnaround_time >= p.burst_time >= 0
        assert p.waiting_time >= 0
        assert p.response_time >= 0
