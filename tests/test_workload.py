import pytest

from schedsim.workload import WorkloadSpec, parse_int_range, random_workload


def test_seeded_workload_is_reproducible():
    spec = WorkloadSpec(count=20)
    assert random_workload(spec, seed=11) == random_workload(spec, seed=11)


def test_workload_respects_ranges():
    spec = WorkloadSpec(count=50, burst_range=(2, 4), arrival_gap=(1, 2), priority_range=(1, 3))
    procs = random_workload(spec, seed=3)
    assert [p.pid for p in procs[:3]] == ["P1", "P2", "P3"]
    assert procs[0].arrival_time == 0
    for prev, cur in zip(procs, procs[1:]):
        assert 1 <= cur.arrival_time - prev.arrival_time <= 2
    assert all(2 <= p.burst_time <= 4 for p in procs)
    assert all(1 <= p.priority <= 3 for p in procs)


def test_empty_workload():
    assert random_workload(WorkloadSpec(count=0), seed=1) == []


def test_invalid_specs():
    with pytest.raises(ValueError):
        WorkloadSpec(count=-1)
    with pytest.raises(ValueError):
        WorkloadSpec(count=1, burst_range=(0, 3))
    with pytest.raises(ValueError):
        WorkloadSpec(count=1, arrival_gap=(3, 1))


def test_parse_int_range():
    assert parse_int_range("1, 10") == (1, 10)
    with pytest.raises(ValueError):
        parse_int_range("5")
