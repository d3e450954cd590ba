"""
CPU scheduling simulator.

Computes execution order and waiting/turnaround metrics for preemptive SJF,
Round Robin, preemptive Priority with aging and the AG adaptive scheduler.
"""

from .ag import schedule_ag
from .algorithms import ALGORITHMS, Scheduler, run_algorithm, schedule_priority, schedule_rr, schedule_sjf
from .models import InvalidProcessError, Process, ProcessResult, SchedulerResult

__all__ = [
    "ALGORITHMS",
    "InvalidProcessError",
    "Process",
    "ProcessResult",
    "Scheduler",
    "SchedulerResult",
    "run_algorithm",
    "schedule_ag",
    "schedule_priority",
    "schedule_rr",
    "schedule_sjf",
]
