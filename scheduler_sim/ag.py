"""
AG scheduling.

Each dispatch hands the process its current quantum Q, split by units used:

- first ceil(Q/4) units: FCFS, never interrupted;
- next ceil(Q/4) units: non-preemptive priority, entered only if no waiting
  process has a strictly better (lower) priority;
- the rest: preemptive SJF, left as soon as a waiting process has strictly
  less remaining time.

How the run ends decides the next quantum:

- (i)   quantum used up:            Q += 2
- (ii)  lost to a better priority:  Q += ceil((Q - used) / 2)
- (iii) lost to a shorter job:      Q += Q - used
- finished:                         Q = 0
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .metrics import build_result, record_run
from .models import (
    InvalidProcessError,
    Process,
    ScheduledSlice,
    SchedulerResult,
    check_context_switch,
    validate_processes,
)

logger = logging.getLogger(__name__)

QUANTUM_EXHAUSTED = "i"
PRIORITY_PREEMPTED = "ii"
SJF_PREEMPTED = "iii"


@dataclass(eq=False)
class _AGState:
    process: Process
    remaining: int
    quantum: int
    history: List[int] = field(default_factory=list)
    used: int = 0

    @property
    def name(self) -> str:
        return self.process.name

    @property
    def finished(self) -> bool:
        return self.remaining <= 0


def phase_bounds(quantum: int) -> tuple[int, int]:
    """
    Return the cumulative unit counts ending the FCFS and priority phases.

    For a quantum of 1 the priority phase ends at 2, past the quantum.
    """
    quarter = math.ceil(quantum * 0.25)
    return quarter, 2 * quarter


def next_quantum(quantum: int, used: int, scenario: str) -> int:
    if scenario == QUANTUM_EXHAUSTED:
        return quantum + 2
    if scenario == PRIORITY_PREEMPTED:
        return quantum + math.ceil((quantum - used) / 2)
    if scenario == SJF_PREEMPTED:
        return quantum + (quantum - used)
    raise ValueError(f"Unknown AG scenario '{scenario}'")


def _best_priority(ready: List[_AGState]) -> Optional[_AGState]:
    # First one wins among equals, so queue order breaks ties.
    best = None
    for state in ready:
        if best is None or state.process.priority < best.process.priority:
            best = state
    return best


def _shorter_job(ready: List[_AGState], current: _AGState) -> Optional[_AGState]:
    """
    Return the waiting process with the least remaining time if it beats
    ``current`` strictly, otherwise None.
    """
    best = current
    for state in ready:
        if state.remaining < best.remaining:
            best = state
    return None if best is current else best


def schedule_ag(
    processes: Optional[Sequence[Process]],
    context_switch_time: int = 0,
    param: Optional[int] = None,
) -> SchedulerResult:
    """
    AG scheduling. ``param`` is unused: every process carries its own
    starting quantum.
    """
    check_context_switch(context_switch_time)
    procs = validate_processes(processes)

    missing = [p.name for p in procs if p.quantum is None]
    if missing:
        raise InvalidProcessError(f"AG scheduling needs a quantum for every process (missing: {', '.join(missing)})")

    arrivals = sorted(procs, key=lambda p: p.arrival_time)
    states: Dict[str, _AGState] = {
        p.name: _AGState(process=p, remaining=p.burst_time, quantum=p.quantum, history=[p.quantum]) for p in procs
    }

    order: List[str] = []
    timeline: List[ScheduledSlice] = []
    completion: Dict[str, int] = {}
    switches = 0

    ready: List[_AGState] = []
    next_idx = 0
    time = 0

    def admit_arrivals() -> None:
        nonlocal next_idx
        while next_idx < len(arrivals) and arrivals[next_idx].arrival_time <= time:
            ready.append(states[arrivals[next_idx].name])
            next_idx += 1

    def run_unit(state: _AGState) -> None:
        nonlocal time
        state.remaining -= 1
        state.used += 1
        record_run(timeline, state.name, time, time + 1)
        time += 1
        admit_arrivals()

    def finish(state: _AGState) -> None:
        completion[state.name] = time
        state.quantum = 0
        state.history.append(0)
        logger.debug("AG t=%d: %s finished, quantum history %s", time, state.name, state.history)

    last: Optional[str] = None

    while len(completion) < len(procs):
        if not ready:
            time = max(time, arrivals[next_idx].arrival_time)
            admit_arrivals()

        current = ready.pop(0)

        if last is not None and current.name != last:
            switches += 1
            if context_switch_time > 0:
                time += context_switch_time
                admit_arrivals()

        order.append(current.name)
        last = current.name

        current.used = 0
        quantum = current.quantum
        fcfs_end, priority_end = phase_bounds(quantum)
        logger.debug("AG t=%d: dispatch %s with quantum %d", time, current.name, quantum)

        scenario = QUANTUM_EXHAUSTED
        preemptor: Optional[_AGState] = None

        # FCFS phase
        while current.used < fcfs_end and not current.finished:
            run_unit(current)
        if current.finished:
            finish(current)
            continue

        # Priority phase
        best = _best_priority(ready)
        if best is not None and best.process.priority < current.process.priority:
            scenario, preemptor = PRIORITY_PREEMPTED, best
        else:
            while current.used < priority_end and not current.finished:
                run_unit(current)
            if current.finished:
                finish(current)
                continue

            # SJF phase, re-checked after every unit
            preemptor = _shorter_job(ready, current)
            if preemptor is not None:
                scenario = SJF_PREEMPTED
            else:
                while current.used < quantum and not current.finished:
                    run_unit(current)
                    preemptor = _shorter_job(ready, current)
                    if preemptor is not None:
                        scenario = SJF_PREEMPTED
                        break

        if current.finished:
            finish(current)
            continue

        current.quantum = next_quantum(quantum, current.used, scenario)
        current.history.append(current.quantum)
        logger.debug(
            "AG t=%d: %s stopped after %d/%d units (scenario %s), new quantum %d",
            time,
            current.name,
            current.used,
            quantum,
            scenario,
            current.quantum,
        )

        ready.append(current)
        if preemptor is not None:
            # O(n) find-and-move: the preemptor must run next.
            ready.remove(preemptor)
            ready.insert(0, preemptor)

    history = {name: state.history for name, state in states.items()}
    return build_result(
        "AG Scheduling",
        procs,
        completion,
        order,
        timeline,
        context_switches=switches,
        quantum_history=history,
    )
