from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Tuple

from .ag import schedule_ag
from .algorithms import schedule_priority, schedule_rr, schedule_sjf
from .models import Process, SchedulerResult
from .workload_io import processes_from_mappings

AVERAGE_TOLERANCE = 0.01

# expectedOutput keys of a multi-algorithm test case.
STANDARD_LABELS = ("SJF", "RR", "Priority")


@dataclass
class TestCase:
    """
    One structured test case: inputs plus the expected output document.

    ``expected`` is a single result object for AG cases, or a mapping keyed
    by ``"SJF"``, ``"RR"`` and ``"Priority"`` otherwise.
    """

    __test__ = False  # keep pytest from collecting this class

    name: str
    context_switch: int
    rr_quantum: int
    aging_interval: int
    processes: List[Process] = field(default_factory=list)
    expected: dict = field(default_factory=dict)

    @property
    def is_ag(self) -> bool:
        return "executionOrder" in self.expected


def load_test_case(path: str | Path) -> TestCase:
    path = Path(path)
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)
    return parse_test_case(raw, default_name=path.stem)


def parse_test_case(raw: Mapping, default_name: str = "") -> TestCase:
    try:
        inp = raw["input"]
        expected = raw["expectedOutput"]
        return TestCase(
            name=str(raw.get("name") or default_name),
            context_switch=int(inp.get("contextSwitch", 0)),
            rr_quantum=int(inp.get("rrQuantum", 0)),
            aging_interval=int(inp.get("agingInterval", 0)),
            processes=processes_from_mappings(inp["processes"]),
            expected=dict(expected),
        )
    except (KeyError, TypeError, AttributeError) as exc:
        raise ValueError(f"Invalid test case {default_name or raw!r}: missing or malformed field") from exc


def compare_result(expected: Mapping, result: SchedulerResult) -> List[str]:
    """
    Compare a result against an expected-output object.

    Returns human-readable mismatch descriptions; an empty list means the
    result matches.
    """
    label = result.scheduler_name
    problems: List[str] = []

    expected_order = list(expected.get("executionOrder", []))
    if expected_order != result.execution_order:
        problems.append(f"{label}: execution order {result.execution_order} != expected {expected_order}")

    for exp in expected.get("processResults", []):
        name = exp["name"]
        try:
            actual = result.result_for(name)
        except KeyError:
            problems.append(f"{label}: process {name} missing in output")
            continue

        for key, actual_value in (
            ("waitingTime", actual.waiting_time),
            ("turnaroundTime", actual.turnaround_time),
        ):
            if key in exp and int(exp[key]) != actual_value:
                problems.append(f"{label}: {key} for {name} is {actual_value}, expected {exp[key]}")

        if "quantumHistory" in exp and list(exp["quantumHistory"]) != actual.quantum_history:
            problems.append(
                f"{label}: quantum history for {name} is {actual.quantum_history}, expected {exp['quantumHistory']}"
            )

    for key, actual_value in (
        ("averageWaitingTime", result.avg_waiting_time),
        ("averageTurnaroundTime", result.avg_turnaround_time),
    ):
        if key in expected and abs(float(expected[key]) - actual_value) > AVERAGE_TOLERANCE:
            problems.append(f"{label}: {key} is {actual_value:.2f}, expected {expected[key]}")

    return problems


def run_test_case(case: TestCase) -> Dict[str, Tuple[SchedulerResult, List[str]]]:
    """
    Run every algorithm the test case has expectations for.

    Returns ``{label: (result, mismatches)}``; labels are ``"AG"`` or the
    expectedOutput keys.
    """
    outcomes: Dict[str, Tuple[SchedulerResult, List[str]]] = {}

    if case.is_ag:
        result = schedule_ag(case.processes, case.context_switch)
        outcomes["AG"] = (result, compare_result(case.expected, result))
        return outcomes

    runners = {
        "SJF": lambda: schedule_sjf(case.processes, case.context_switch),
        "RR": lambda: schedule_rr(case.processes, case.context_switch, case.rr_quantum),
        "Priority": lambda: schedule_priority(case.processes, case.context_switch, case.aging_interval),
    }
    for label in STANDARD_LABELS:
        if label in case.expected:
            result = runners[label]()
            outcomes[label] = (result, compare_result(case.expected[label], result))

    return outcomes
