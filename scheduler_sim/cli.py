from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .algorithms import ALGORITHMS, run_algorithm
from .gantt import build_rich_gantt, render_gantt
from .models import SchedulerResult
from .testcases import load_test_case, run_test_case
from .workload_io import load_workload

DEFAULT_QUANTUM = 2
DEFAULT_AGING_INTERVAL = 5


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="scheduler-sim",
        description="CPU scheduling simulator (preemptive SJF, Round Robin, Priority with aging, AG).",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log scheduling decisions.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_run_options(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--workload",
            "-w",
            required=True,
            help="Path to JSON or CSV workload file (or a test-case JSON).",
        )
        sub.add_argument(
            "--context-switch",
            "-c",
            type=int,
            default=0,
            help="Context switch time charged when the running process changes (default: 0).",
        )
        sub.add_argument(
            "--quantum",
            "-q",
            type=int,
            default=DEFAULT_QUANTUM,
            help=f"Round Robin time quantum (default: {DEFAULT_QUANTUM}).",
        )
        sub.add_argument(
            "--aging-interval",
            type=int,
            default=DEFAULT_AGING_INTERVAL,
            help=f"Priority aging interval, 0 disables aging (default: {DEFAULT_AGING_INTERVAL}).",
        )

    run_parser = subparsers.add_parser("run", help="Run one scheduling algorithm on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        choices=sorted(ALGORITHMS),
        help="Algorithm to use.",
    )
    run_parser.add_argument(
        "--plain",
        action="store_true",
        help="Draw the Gantt chart as plain text instead of a rich panel.",
    )
    add_run_options(run_parser)

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run several algorithms on the same workload and compare average metrics.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=list(ALGORITHMS),
        help=f"Algorithms to compare (default: {' '.join(ALGORITHMS)}).",
    )
    add_run_options(compare_parser)

    check_parser = subparsers.add_parser(
        "check",
        help="Run structured test-case files and report mismatches against their expected output.",
    )
    check_parser.add_argument("cases", nargs="+", help="Test-case JSON files.")

    return parser


def _param_for(algorithm: str, args: argparse.Namespace) -> Optional[int]:
    if algorithm == "rr":
        return args.quantum
    if algorithm == "priority":
        return args.aging_interval
    return None


def _print_result(result: SchedulerResult, console: Console, plain: bool = False) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.scheduler_name}")
    console.print(f"[bold]Execution order:[/bold] {' -> '.join(result.execution_order) or '(none)'}")
    console.print()

    if plain:
        console.print(render_gantt(result.timeline), markup=False, highlight=False)
    else:
        panel, time_marks = build_rich_gantt(result.timeline)
        console.print(panel)
        if time_marks:
            console.print(time_marks)

    console.print()

    show_history = any(pr.quantum_history for pr in result.process_results)
    headers = ["Process", "Arrive", "Burst", "Priority", "Complete", "Wait", "Turnaround"]
    if show_history:
        headers.append("Quantum history")

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"Process", "Priority"} else "right"
        proc_table.add_column(h, justify=justify)

    for pr in result.process_results:
        row = [
            pr.name,
            str(pr.arrival_time),
            str(pr.burst_time),
            str(pr.priority),
            str(pr.completion_time),
            str(pr.waiting_time),
            str(pr.turnaround_time),
        ]
        if show_history:
            row.append(", ".join(str(q) for q in pr.quantum_history))
        proc_table.add_row(*row)

    console.print(proc_table)
    console.print()

    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")
    sys_table.add_row("Avg waiting", f"{result.avg_waiting_time:.2f}")
    sys_table.add_row("Avg turnaround", f"{result.avg_turnaround_time:.2f}")
    if result.system:
        sys = result.system
        sys_table.add_row("Makespan", str(sys.makespan))
        sys_table.add_row("Context switches", str(sys.context_switches))
        sys_table.add_row("Throughput (proc/time)", f"{sys.throughput:.3f}")
        sys_table.add_row("CPU utilization", f"{sys.cpu_utilization*100:.1f}%")
        sys_table.add_row("Starvation count", str(sys.starvation_count))

    console.print(sys_table)


def _run_compare(args: argparse.Namespace, console: Console) -> None:
    workload_path = Path(args.workload)
    processes = load_workload(workload_path)

    summary_table = Table(title=f"Algorithm comparison: {workload_path}", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Order")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Context switches", justify="right")

    for alg in args.algorithms:
        result = run_algorithm(alg, processes, args.context_switch, _param_for(alg.lower(), args))
        summary_table.add_row(
            result.scheduler_name,
            " ".join(result.execution_order),
            f"{result.avg_waiting_time:.2f}",
            f"{result.avg_turnaround_time:.2f}",
            str(result.system.context_switches if result.system else 0),
        )

    console.print(summary_table)


def _run_check(paths: List[str], console: Console) -> bool:
    all_passed = True
    for path in paths:
        case = load_test_case(path)
        for label, (_, problems) in run_test_case(case).items():
            if problems:
                all_passed = False
                console.print(f"[red]FAIL[/red] {case.name} [{label}]")
                for problem in problems:
                    console.print(f"    {problem}")
            else:
                console.print(f"[green]PASS[/green] {case.name} [{label}]")
    return all_passed


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)
    console = Console()

    try:
        if args.command == "run":
            processes = load_workload(Path(args.workload))
            result = run_algorithm(args.algorithm, processes, args.context_switch, _param_for(args.algorithm, args))
            _print_result(result, console, plain=args.plain)
            return 0

        if args.command == "compare":
            _run_compare(args, console)
            return 0

        if args.command == "check":
            return 0 if _run_check(args.cases, console) else 1
    except (OSError, ValueError) as exc:
        console.print(f"[red]Error: {exc}[/red]")
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
