from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional


class InvalidProcessError(ValueError):
    """Raised when a process (or a set of processes) breaks the input contract."""


def _require_int(name: str, field_name: str, value) -> None:
    # bool is an int subclass; True/False as a burst time is always a mistake.
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidProcessError(f"{name}: {field_name} must be an integer, got {value!r}")


@dataclass(frozen=True)
class Process:
    """
    Immutable description of one schedulable unit.

    Lower ``priority`` values mean higher priority. ``quantum`` is only read
    by the AG scheduler; the other algorithms take their quantum / aging
    interval from the call.
    """

    name: str
    arrival_time: int
    burst_time: int
    priority: int = 0
    quantum: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.name:
            raise InvalidProcessError("Process name must be a non-empty string")
        _require_int(self.name, "arrival_time", self.arrival_time)
        _require_int(self.name, "burst_time", self.burst_time)
        _require_int(self.name, "priority", self.priority)
        if self.arrival_time < 0:
            raise InvalidProcessError(f"{self.name}: arrival_time must be >= 0, got {self.arrival_time}")
        if self.burst_time <= 0:
            raise InvalidProcessError(f"{self.name}: burst_time must be > 0, got {self.burst_time}")
        if self.quantum is not None:
            _require_int(self.name, "quantum", self.quantum)
            if self.quantum <= 0:
                raise InvalidProcessError(f"{self.name}: quantum must be > 0, got {self.quantum}")


def validate_processes(processes: Optional[Iterable[Process]]) -> List[Process]:
    """
    Return the processes as a fresh list, rejecting duplicate names.

    ``None`` is treated as an empty workload.
    """
    if processes is None:
        return []

    result = list(processes)
    seen: set[str] = set()
    for p in result:
        if p.name in seen:
            raise InvalidProcessError(f"Duplicate process name '{p.name}'")
        seen.add(p.name)
    return result


def check_context_switch(context_switch_time: int) -> None:
    if context_switch_time < 0:
        raise ValueError(f"Context switch time must be >= 0, got {context_switch_time}")


@dataclass
class ScheduledSlice:
    """
    One contiguous slice of execution for a process in the Gantt chart.
    """

    pid: str
    start_time: int
    end_time: int


@dataclass
class ProcessResult:
    name: str
    arrival_time: int
    burst_time: int
    priority: int
    waiting_time: int
    turnaround_time: int
    completion_time: int
    quantum_history: List[int] = field(default_factory=list)
    extra_info: str = ""


@dataclass
class SystemMetrics:
    cpu_busy_time: int
    makespan: int
    throughput: float
    cpu_utilization: float
    context_switches: int = 0
    starvation_count: int = 0


@dataclass
class SchedulerResult:
    scheduler_name: str
    execution_order: List[str] = field(default_factory=list)
    process_results: List[ProcessResult] = field(default_factory=list)
    avg_waiting_time: float = 0.0
    avg_turnaround_time: float = 0.0
    timeline: List[ScheduledSlice] = field(default_factory=list)
    system: Optional[SystemMetrics] = None

    def result_for(self, name: str) -> ProcessResult:
        for pr in self.process_results:
            if pr.name == name:
                return pr
        raise KeyError(name)
