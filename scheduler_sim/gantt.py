from __future__ import annotations

from typing import Dict, Iterator, List, Optional, Tuple

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import ScheduledSlice

COLORS = ["red", "green", "yellow", "blue", "magenta", "cyan"]


def _segments(slices: List[ScheduledSlice]) -> Iterator[Tuple[Optional[str], int, int]]:
    """
    Yield ``(pid, width, end_time)`` for every run and every gap between
    runs. Gaps (idle CPU or context switching) have ``pid`` None.
    """
    last_time = 0
    for sl in sorted(slices, key=lambda s: (s.start_time, s.end_time)):
        if sl.start_time > last_time:
            yield None, sl.start_time - last_time, sl.start_time
        yield sl.pid, max(1, sl.end_time - sl.start_time), sl.end_time
        last_time = sl.end_time


def render_gantt(slices: List[ScheduledSlice]) -> str:
    """
    Plain-text Gantt chart; gaps are drawn with dots.
    """
    if not slices:
        return "(no execution)"

    line = "|"
    labels = ""
    time_marks = "0"

    for pid, width, end_time in _segments(slices):
        if pid is None:
            line += "." * width
            labels += " " * width
        else:
            line += "=" * width
            labels += pid[:width].ljust(width)
        time_marks += f"{end_time:>3}"

    line += "|"
    return "\n".join(["Gantt Chart:", line, labels, time_marks])


def build_rich_gantt(slices: List[ScheduledSlice]) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart and a string with time marks.
    """
    if not slices:
        return Panel("No execution", title="Gantt Chart"), ""

    pid_to_color: Dict[str, str] = {}

    def pid_color(pid: str) -> str:
        if pid not in pid_to_color:
            pid_to_color[pid] = COLORS[len(pid_to_color) % len(COLORS)]
        return pid_to_color[pid]

    bars = Text()
    labels = Text()
    time_marks = "0"

    for pid, width, end_time in _segments(slices):
        if pid is None:
            bars.append("·" * width, style="dim")
            labels.append(" " * width)
        else:
            bars.append(" " * width, style=f"on {pid_color(pid)}")
            labels.append(pid[:width].ljust(width), style="bold")
        time_marks += f"{end_time:>3}"

    table = Table.grid(padding=(0, 0))
    table.add_row(bars)
    table.add_row(labels)

    return Panel.fit(table, title="Gantt Chart"), time_marks
