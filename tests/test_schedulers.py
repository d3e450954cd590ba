import pytest

from scheduler_sim.algorithms import (
    ALGORITHMS,
    run_algorithm,
    schedule_priority,
    schedule_rr,
    schedule_sjf,
)
from scheduler_sim.models import InvalidProcessError, Process


def _procs():
    return [
        Process("P1", arrival_time=0, burst_time=5, priority=2),
        Process("P2", arrival_time=1, burst_time=3, priority=1),
        Process("P3", arrival_time=2, burst_time=8, priority=3),
    ]


def _priority_test1():
    return [
        Process("P1", 0, 8, 3),
        Process("P2", 1, 4, 1),
        Process("P3", 2, 2, 4),
        Process("P4", 3, 1, 2),
        Process("P5", 4, 3, 5),
    ]


def _metrics(result):
    return {pr.name: (pr.waiting_time, pr.turnaround_time) for pr in result.process_results}


def test_sjf_preempts_for_shorter_remaining_time():
    res = schedule_sjf(_procs())
    assert res.execution_order == ["P1", "P2", "P1", "P3"]
    assert _metrics(res) == {"P1": (3, 8), "P2": (0, 3), "P3": (6, 14)}
    assert res.avg_waiting_time == pytest.approx(3.0)
    assert res.avg_turnaround_time == pytest.approx(25 / 3)


def test_sjf_charges_context_switch_on_process_change():
    res = schedule_sjf(_procs(), 1)
    assert res.execution_order == ["P1", "P2", "P1", "P3"]
    assert _metrics(res) == {"P1": (5, 10), "P2": (1, 4), "P3": (9, 17)}
    assert res.system.context_switches == 3


def test_sjf_tie_goes_to_earlier_arrival():
    procs = [Process("B", 1, 2), Process("A", 0, 3)]
    # At t=1 A has 2 left, same as B; A arrived first and keeps the CPU.
    res = schedule_sjf(procs)
    assert res.execution_order == ["A", "B"]


def test_sjf_idles_until_first_arrival():
    res = schedule_sjf([Process("P1", 3, 2)])
    assert res.result_for("P1").completion_time == 5
    assert res.result_for("P1").waiting_time == 0


def test_rr_quantum_2():
    res = schedule_rr(_procs(), 0, 2)
    assert res.execution_order == ["P1", "P2", "P3", "P1", "P2", "P3", "P1", "P3", "P3"]
    assert _metrics(res) == {"P1": (7, 12), "P2": (5, 8), "P3": (6, 14)}
    assert res.avg_waiting_time == pytest.approx(6.0)
    assert sum(p.burst_time for p in _procs()) == res.system.cpu_busy_time


def test_rr_with_context_switch():
    res = schedule_rr(_procs(), 1, 2)
    assert res.execution_order == ["P1", "P2", "P3", "P1", "P2", "P3", "P1", "P3", "P3"]
    assert _metrics(res) == {"P1": (13, 18), "P2": (9, 12), "P3": (14, 22)}
    assert res.avg_waiting_time == pytest.approx(12.0)
    assert res.avg_turnaround_time == pytest.approx(52 / 3)
    assert res.system.context_switches == 8


def test_rr_jumps_over_idle_gap():
    procs = [Process("P1", 0, 2), Process("P2", 6, 1)]
    res = schedule_rr(procs, 1, 4)
    assert res.result_for("P2").completion_time == 7
    assert res.result_for("P2").waiting_time == 0


def test_rr_charges_context_switch_for_lone_process():
    procs = [Process("P1", 0, 5), Process("P2", 10, 1)]
    res = schedule_rr(procs, 1, 2)
    # P1 is alone in the queue but still pays a switch between its runs.
    assert res.execution_order == ["P1", "P1", "P1", "P2"]
    assert res.result_for("P1").completion_time == 7
    assert res.result_for("P1").waiting_time == 2
    assert res.result_for("P2").waiting_time == 0
    assert res.system.context_switches == 2


def test_rr_requires_positive_quantum():
    with pytest.raises(ValueError):
        schedule_rr(_procs(), 0, 0)
    with pytest.raises(ValueError):
        schedule_rr(_procs())


def test_priority_with_aging_mixed_arrivals():
    res = schedule_priority(_priority_test1(), 1, 5)
    assert res.execution_order == ["P1", "P2", "P1", "P4", "P1", "P3", "P1", "P5", "P1", "P3", "P5"]
    assert _metrics(res) == {
        "P1": (15, 23),
        "P2": (1, 5),
        "P3": (21, 23),
        "P4": (6, 7),
        "P5": (21, 24),
    }
    assert res.avg_waiting_time == pytest.approx(12.8)
    assert res.avg_turnaround_time == pytest.approx(16.4)


def test_priority_simultaneous_arrivals_tie_on_longer_wait():
    procs = [
        Process("P1", 0, 6, 3),
        Process("P2", 0, 3, 1),
        Process("P3", 0, 8, 2),
        Process("P4", 0, 4, 4),
        Process("P5", 0, 2, 5),
    ]
    res = schedule_priority(procs, 1, 5)
    assert res.execution_order == [
        "P2", "P3", "P1", "P3", "P4", "P1", "P3", "P5", "P3",
        "P1", "P4", "P3", "P1", "P3", "P5", "P4", "P1", "P4",
    ]
    assert _metrics(res) == {
        "P1": (32, 38),
        "P2": (0, 3),
        "P3": (23, 31),
        "P4": (36, 40),
        "P5": (31, 33),
    }
    assert res.avg_waiting_time == pytest.approx(24.4)
    assert res.avg_turnaround_time == pytest.approx(29.0)
    assert res.system.context_switches == 17


def test_priority_same_priorities_age_into_turns():
    procs = [
        Process("P1", 0, 4, 2),
        Process("P2", 1, 3, 2),
        Process("P3", 2, 2, 2),
        Process("P4", 3, 5, 2),
    ]
    res = schedule_priority(procs, 1, 5)
    assert res.execution_order == ["P1", "P2", "P3", "P4", "P2", "P3", "P4"]
    assert _metrics(res) == {"P1": (0, 4), "P2": (9, 12), "P3": (11, 13), "P4": (12, 17)}
    assert res.avg_waiting_time == pytest.approx(8.0)
    assert res.avg_turnaround_time == pytest.approx(11.5)


def test_priority_aging_interval_zero_disables_aging():
    res = schedule_priority(_priority_test1(), 1, 0)
    assert res.execution_order == ["P1", "P2", "P4", "P1", "P3", "P5"]
    assert _metrics(res) == {
        "P1": (8, 16),
        "P2": (1, 5),
        "P3": (15, 17),
        "P4": (4, 5),
        "P5": (16, 19),
    }


def test_priority_rejects_negative_aging_interval():
    with pytest.raises(ValueError):
        schedule_priority(_procs(), 0, -1)


@pytest.mark.parametrize("name", sorted(ALGORITHMS))
def test_single_process_runs_once_without_waiting(name):
    procs = [Process("P1", 0, 2, priority=1, quantum=4)]
    res = run_algorithm(name, procs, 2, 2)
    assert res.execution_order == ["P1"]
    assert res.result_for("P1").waiting_time == 0


@pytest.mark.parametrize("name", sorted(ALGORITHMS))
def test_empty_input_gives_empty_result(name):
    for empty in (None, []):
        res = run_algorithm(name, empty, 1, 2)
        assert res.execution_order == []
        assert res.process_results == []
        assert res.avg_waiting_time == 0.0


@pytest.mark.parametrize("name", sorted(ALGORITHMS))
def test_metric_identities_and_determinism(name):
    procs = [
        Process("P1", 0, 17, 4, 7),
        Process("P2", 2, 6, 7, 9),
        Process("P3", 5, 11, 3, 4),
        Process("P4", 15, 4, 6, 6),
    ]
    snapshot = list(procs)

    first = run_algorithm(name, procs, 1, 3)
    second = run_algorithm(name, procs, 1, 3)

    assert procs == snapshot
    assert first == second
    assert len(first.process_results) == len(procs)
    for pr in first.process_results:
        assert pr.turnaround_time == pr.completion_time - pr.arrival_time
        assert pr.waiting_time == pr.turnaround_time - pr.burst_time
        assert pr.completion_time >= pr.arrival_time + pr.burst_time
    assert first.system.cpu_busy_time == sum(p.burst_time for p in procs)
    assert first.system.cpu_busy_time <= first.system.makespan


def test_duplicate_names_rejected():
    procs = [Process("P1", 0, 1), Process("P1", 1, 2)]
    with pytest.raises(InvalidProcessError):
        schedule_sjf(procs)


def test_negative_context_switch_rejected():
    with pytest.raises(ValueError):
        schedule_sjf(_procs(), -1)


def test_run_algorithm_unknown_name():
    with pytest.raises(ValueError):
        run_algorithm("fcfs", _procs())
