from __future__ import annotations

import logging
from typing import Dict, List, Optional, Protocol, Sequence

from .ag import schedule_ag
from .metrics import append_collapsed, build_result, record_run
from .models import Process, ScheduledSlice, SchedulerResult, check_context_switch, validate_processes

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """
    Common calling convention shared by every algorithm.

    ``param`` is the Round Robin quantum, the Priority aging interval, and is
    ignored by SJF and AG.
    """

    def __call__(
        self,
        processes: Optional[Sequence[Process]],
        context_switch_time: int = 0,
        param: Optional[int] = None,
        /,
    ) -> SchedulerResult: ...


def schedule_sjf(
    processes: Optional[Sequence[Process]],
    context_switch_time: int = 0,
    param: Optional[int] = None,
) -> SchedulerResult:
    """
    Shortest Job First (preemptive, a.k.a. shortest remaining time first).

    Every time unit the arrived process with the least remaining time gets
    the CPU; ties go to the earlier arrival, then the smaller name. Changing
    process costs ``context_switch_time`` before the unit runs.
    """
    check_context_switch(context_switch_time)
    procs = validate_processes(processes)

    remaining = {p.name: p.burst_time for p in procs}
    completion: Dict[str, int] = {}
    order: List[str] = []
    timeline: List[ScheduledSlice] = []
    switches = 0

    time = 0
    previous: Optional[str] = None

    while len(completion) < len(procs):
        ready = [p for p in procs if p.arrival_time <= time and remaining[p.name] > 0]
        if not ready:
            # CPU idle until the next arrival.
            time = min(p.arrival_time for p in procs if remaining[p.name] > 0)
            continue

        current = min(ready, key=lambda p: (remaining[p.name], p.arrival_time, p.name))

        if current.name != previous:
            if previous is not None:
                time += context_switch_time
                switches += 1
            order.append(current.name)
            logger.debug("SJF t=%d: dispatch %s (remaining %d)", time, current.name, remaining[current.name])

        start_time = time
        remaining[current.name] -= 1
        time += 1
        record_run(timeline, current.name, start_time, time)

        if remaining[current.name] == 0:
            completion[current.name] = time
        previous = current.name

    return build_result(
        "Preemptive Shortest Job First (SJF)",
        procs,
        completion,
        order,
        timeline,
        context_switches=switches,
    )


def schedule_rr(
    processes: Optional[Sequence[Process]],
    context_switch_time: int = 0,
    quantum: Optional[int] = None,
) -> SchedulerResult:
    """
    Round Robin scheduling with a fixed time quantum.

    Every dispatch is one order entry. ``context_switch_time`` is added after
    a run whenever the ready queue is non-empty.
    """
    if quantum is None or quantum <= 0:
        raise ValueError("Round Robin requires a positive quantum")
    check_context_switch(context_switch_time)
    procs = validate_processes(processes)

    # sorted() is stable, so simultaneous arrivals keep input order.
    arrivals = sorted(procs, key=lambda p: p.arrival_time)
    remaining = {p.name: p.burst_time for p in procs}
    completion: Dict[str, int] = {}
    order: List[str] = []
    timeline: List[ScheduledSlice] = []
    switches = 0

    time = 0
    next_idx = 0
    ready: List[Process] = []

    def enqueue_new_arrivals(current_time: int) -> None:
        nonlocal next_idx
        while next_idx < len(arrivals) and arrivals[next_idx].arrival_time <= current_time:
            ready.append(arrivals[next_idx])
            next_idx += 1

    while len(completion) < len(procs):
        enqueue_new_arrivals(time)

        if not ready:
            # Jump to next arrival if CPU is idle
            time = arrivals[next_idx].arrival_time
            continue

        current = ready.pop(0)
        order.append(current.name)

        run_time = min(quantum, remaining[current.name])
        slice_start = time
        time += run_time
        remaining[current.name] -= run_time
        record_run(timeline, current.name, slice_start, time)

        # Arrivals during the slice queue up ahead of the preempted process.
        enqueue_new_arrivals(time)

        if remaining[current.name] == 0:
            completion[current.name] = time
        else:
            ready.append(current)

        # Charged whenever something is waiting, even if the head is the
        # process that just ran.
        if ready:
            time += context_switch_time
            switches += 1

    return build_result("Round Robin", procs, completion, order, timeline, context_switches=switches)


def schedule_priority(
    processes: Optional[Sequence[Process]],
    context_switch_time: int = 0,
    aging_interval: Optional[int] = 0,
) -> SchedulerResult:
    """
    Preemptive priority scheduling with aging.

    Lower numbers win; ties go to the earlier arrival, then the longer
    unbroken wait, then the lower static priority, then the name. A ready process that has waited ``aging_interval``
    consecutive units gains one priority level per interval (never past 1);
    running resets its wait and hence its effective priority. Context-switch
    ticks count as waiting time for everyone except the incoming process.
    ``aging_interval`` of 0 disables aging.
    """
    aging_interval = aging_interval or 0
    if aging_interval < 0:
        raise ValueError(f"Aging interval must be >= 0, got {aging_interval}")
    check_context_switch(context_switch_time)
    procs = validate_processes(processes)

    remaining = {p.name: p.burst_time for p in procs}
    # Consecutive units spent waiting since arrival or since last on the CPU.
    waited = {p.name: 0 for p in procs}
    completion: Dict[str, int] = {}
    order: List[str] = []
    timeline: List[ScheduledSlice] = []
    switches = 0

    time = 0
    previous: Optional[str] = None

    def ready_at(t: int) -> List[Process]:
        return [p for p in procs if p.arrival_time <= t and remaining[p.name] > 0]

    def effective_priority(p: Process) -> int:
        if not aging_interval:
            return p.priority
        aged = p.priority - waited[p.name] // aging_interval
        return min(p.priority, max(1, aged))

    def accrue_wait(t: int, running: str) -> None:
        for p in ready_at(t):
            if p.name == running:
                continue
            waited[p.name] += 1
            if aging_interval and waited[p.name] % aging_interval == 0:
                logger.debug(
                    "Priority t=%d: %s aged to effective priority %d", t + 1, p.name, effective_priority(p)
                )

    while len(completion) < len(procs):
        candidates = ready_at(time)
        if not candidates:
            time = min(p.arrival_time for p in procs if remaining[p.name] > 0)
            continue

        current = min(
            candidates,
            key=lambda p: (effective_priority(p), p.arrival_time, -waited[p.name], p.priority, p.name),
        )

        if current.name != previous:
            if previous is not None:
                for _ in range(context_switch_time):
                    accrue_wait(time, current.name)
                    time += 1
                switches += 1
            append_collapsed(order, current.name)
            logger.debug(
                "Priority t=%d: dispatch %s (effective priority %d)", time, current.name, effective_priority(current)
            )

        start_time = time
        remaining[current.name] -= 1
        waited[current.name] = 0
        accrue_wait(time, current.name)
        time += 1
        record_run(timeline, current.name, start_time, time)

        if remaining[current.name] == 0:
            completion[current.name] = time
        previous = current.name

    return build_result(
        "Preemptive Priority Scheduling (with Aging)",
        procs,
        completion,
        order,
        timeline,
        context_switches=switches,
    )


ALGORITHMS: Dict[str, Scheduler] = {
    "sjf": schedule_sjf,
    "rr": schedule_rr,
    "priority": schedule_priority,
    "ag": schedule_ag,
}


def run_algorithm(
    name: str,
    processes: Optional[Sequence[Process]],
    context_switch_time: int = 0,
    param: Optional[int] = None,
) -> SchedulerResult:
    """
    Dispatch to the requested algorithm by its short name.
    """
    name = name.lower()
    if name not in ALGORITHMS:
        raise ValueError(f"Unknown algorithm '{name}' (choose from: {', '.join(ALGORITHMS)})")

    func = ALGORITHMS[name]
    return func(processes, context_switch_time, param)
