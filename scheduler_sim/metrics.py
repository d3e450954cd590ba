from __future__ import annotations

from typing import Dict, List, Optional

from .models import Process, ProcessResult, ScheduledSlice, SchedulerResult, SystemMetrics


def record_run(timeline: List[ScheduledSlice], pid: str, start_time: int, end_time: int) -> None:
    """
    Append a run to the timeline, extending the last slice when the same
    process simply keeps the CPU.
    """
    if end_time <= start_time:
        return
    if timeline:
        last = timeline[-1]
        if last.pid == pid and last.end_time == start_time:
            last.end_time = end_time
            return
    timeline.append(ScheduledSlice(pid=pid, start_time=start_time, end_time=end_time))


def append_collapsed(order: List[str], name: str) -> None:
    if not order or order[-1] != name:
        order.append(name)


def build_result(
    scheduler_name: str,
    processes: List[Process],
    completion: Dict[str, int],
    execution_order: List[str],
    timeline: List[ScheduledSlice],
    context_switches: int = 0,
    quantum_history: Optional[Dict[str, List[int]]] = None,
) -> SchedulerResult:
    """
    Turn the per-run completion table into a ``SchedulerResult``.

    Process results follow input order. Turnaround and waiting time are
    derived here so every algorithm reports them the same way.
    """
    result = SchedulerResult(scheduler_name=scheduler_name, execution_order=list(execution_order), timeline=timeline)

    for p in processes:
        completion_time = completion[p.name]
        turnaround_time = completion_time - p.arrival_time
        waiting_time = turnaround_time - p.burst_time

        pr = ProcessResult(
            name=p.name,
            arrival_time=p.arrival_time,
            burst_time=p.burst_time,
            priority=p.priority,
            waiting_time=waiting_time,
            turnaround_time=turnaround_time,
            completion_time=completion_time,
        )
        if quantum_history is not None:
            pr.quantum_history = list(quantum_history[p.name])
            pr.extra_info = f"Quantum history: {pr.quantum_history}"
        result.process_results.append(pr)

    summary = summarize_process_results(result.process_results)
    result.avg_waiting_time = summary["avg_waiting"]
    result.avg_turnaround_time = summary["avg_turnaround"]
    compute_system_metrics(result, context_switches=context_switches)
    return result


def compute_system_metrics(result: SchedulerResult, context_switches: int = 0) -> SystemMetrics:
    """
    Compute throughput and CPU utilization given populated per-process results
    and timeline slices.
    """
    if not result.process_results:
        system = SystemMetrics(cpu_busy_time=0, makespan=0, throughput=0.0, cpu_utilization=0.0)
        result.system = system
        return system

    makespan = max(p.completion_time for p in result.process_results)
    cpu_busy_time = sum(slice_.end_time - slice_.start_time for slice_ in result.timeline)

    throughput = len(result.process_results) / makespan if makespan > 0 else 0.0
    cpu_utilization = cpu_busy_time / makespan if makespan > 0 else 0.0

    # A process counts as starved when it waited more than twice the average.
    avg_wait = sum(p.waiting_time for p in result.process_results) / len(result.process_results)
    starvation_count = sum(1 for p in result.process_results if p.waiting_time > 2 * avg_wait)

    system = SystemMetrics(
        cpu_busy_time=cpu_busy_time,
        makespan=makespan,
        throughput=throughput,
        cpu_utilization=cpu_utilization,
        context_switches=context_switches,
        starvation_count=starvation_count,
    )
    result.system = system
    return system


def summarize_process_results(processes: List[ProcessResult]) -> dict:
    """
    Return averages of the key per-process metrics for quick comparison.
    """
    if not processes:
        return {"avg_waiting": 0.0, "avg_turnaround": 0.0}

    n = len(processes)
    return {
        "avg_waiting": sum(p.waiting_time for p in processes) / n,
        "avg_turnaround": sum(p.turnaround_time for p in processes) / n,
    }
