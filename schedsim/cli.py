from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Sequence

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from .compare import DEFAULT_POLICIES, compare_policies
from .engine import simulate
from .errors import SchedulerError
from .gantt import build_rich_gantt, render_gantt
from .models import SimulationReport
from .workload import WorkloadSpec, parse_int_range, random_workload
from .workload_io import load_workload, save_workload

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schedsim",
        description="CPU scheduling simulator (FCFS, SJN, SRTF, RR, Priority).",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (DEBUG shows every state transition; default: WARNING).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Run a scheduling policy on a workload file.")
    run_parser.add_argument(
        "--algorithm",
        "-a",
        required=True,
        help="Policy to use (fcfs, sjn, srtf, rr, priority, priority-p).",
    )
    run_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    run_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=None,
        help="Time quantum for round-robin (ignored by the other policies).",
    )
    run_parser.add_argument(
        "--cpus",
        type=int,
        default=1,
        help="Number of processors (default: 1).",
    )
    run_parser.add_argument(
        "--step",
        action="store_true",
        help="Replay the schedule tick by tick in the terminal.",
    )
    run_parser.add_argument(
        "--step-delay",
        type=float,
        default=0.3,
        help="Seconds to wait between steps when --step is used (default: 0.3).",
    )
    run_parser.add_argument(
        "--plain",
        action="store_true",
        help="Draw the Gantt chart as plain text instead of a colored panel.",
    )

    compare_parser = subparsers.add_parser(
        "compare",
        help="Run multiple policies on the same workload and compare average metrics.",
    )
    compare_parser.add_argument(
        "--workload",
        "-w",
        required=True,
        help="Path to JSON or CSV workload file.",
    )
    compare_parser.add_argument(
        "--algorithms",
        "-a",
        nargs="+",
        default=list(DEFAULT_POLICIES),
        help=f"Policies to compare (default: {' '.join(DEFAULT_POLICIES)}).",
    )
    compare_parser.add_argument(
        "--quantum",
        "-q",
        type=int,
        default=2,
        help="Time quantum used for RR when included (default: 2).",
    )
    compare_parser.add_argument(
        "--cpus",
        type=int,
        default=1,
        help="Number of processors (default: 1).",
    )
    compare_parser.add_argument(
        "--jobs",
        "-j",
        type=int,
        default=1,
        help="Worker processes used to run the policies in parallel (default: 1).",
    )

    generate_parser = subparsers.add_parser(
        "generate",
        help="Write a random workload to a JSON or CSV file.",
    )
    generate_parser.add_argument("--count", "-n", type=int, required=True, help="Number of processes.")
    generate_parser.add_argument("--output", "-o", required=True, help="Destination .json or .csv file.")
    generate_parser.add_argument("--seed", type=int, default=None, help="Random seed (default: random).")
    generate_parser.add_argument("--burst", default="1,10", help="Burst time range as min,max (default: 1,10).")
    generate_parser.add_argument("--gap", default="0,3", help="Inter-arrival gap range as min,max (default: 0,3).")
    generate_parser.add_argument(
        "--priority",
        default="1,10",
        help="Priority range as min,max; lower is more urgent (default: 1,10).",
    )

    return parser


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
    )


def _print_result(result: SimulationReport, console: Console, plain: bool = False) -> None:
    console.print(f"[bold]Algorithm:[/bold] {result.policy}")
    if result.quantum is not None:
        console.print(f"[bold]Quantum:[/bold] {result.quantum}")
    if result.cpus > 1:
        console.print(f"[bold]CPUs:[/bold] {result.cpus}")

    console.print()

    if plain:
        console.print(render_gantt(result.timeline, result.cpus), markup=False, highlight=False)
    else:
        panel, time_marks = build_rich_gantt(result.timeline, result.cpus)
        console.print(panel)
        if time_marks:
            console.print(time_marks)

    console.print()

    headers = [
        "PID",
        "Arrive",
        "Burst",
        "Start",
        "Complete",
        "Wait",
        "Turnaround",
        "Response",
        "Priority",
    ]

    proc_table = Table(title="Per-process metrics", box=box.SIMPLE_HEAVY)
    for h in headers:
        justify = "center" if h in {"PID", "Priority"} else "right"
        proc_table.add_column(h, justify=justify)

    for p in result.processes:
        proc_table.add_row(
            p.pid,
            str(p.arrival_time),
            str(p.burst_time),
            str(p.start_time),
            str(p.completion_time),
            str(p.waiting_time),
            str(p.turnaround_time),
            str(p.response_time),
            str(p.priority),
        )

    console.print(proc_table)
    console.print()

    sys = result.system
    sys_table = Table(title="System metrics", box=box.SIMPLE_HEAVY)
    sys_table.add_column("Metric")
    sys_table.add_column("Value", justify="right")

    sys_table.add_row("Avg waiting", f"{sys.avg_waiting:.2f}")
    sys_table.add_row("Avg turnaround", f"{sys.avg_turnaround:.2f}")
    sys_table.add_row("Avg response", f"{sys.avg_response:.2f}")
    sys_table.add_row("Throughput (proc/tick)", f"{sys.throughput:.3f}")
    sys_table.add_row("CPU utilization", f"{sys.cpu_utilization*100:.1f}%")
    sys_table.add_row("Total ticks", str(sys.total_ticks))
    sys_table.add_row("Idle ticks", str(sys.idle_ticks))
    sys_table.add_row("Dispatches", str(sys.dispatches))
    sys_table.add_row("Preemptions", str(sys.preemptions))
    sys_table.add_row("Starvation count", str(sys.starvation_count))

    console.print(sys_table)


def _print_comparison(reports: Sequence[SimulationReport], console: Console) -> None:
    summary_table = Table(title="Algorithm comparison", box=box.SIMPLE_HEAVY)
    summary_table.add_column("Algorithm")
    summary_table.add_column("Quantum", justify="right")
    summary_table.add_column("Avg waiting", justify="right")
    summary_table.add_column("Avg turnaround", justify="right")
    summary_table.add_column("Avg response", justify="right")
    summary_table.add_column("Utilization", justify="right")
    summary_table.add_column("Throughput", justify="right")

    for result in reports:
        sys = result.system
        summary_table.add_row(
            result.policy,
            "" if result.quantum is None else str(result.quantum),
            f"{sys.avg_waiting:.2f}",
            f"{sys.avg_turnaround:.2f}",
            f"{sys.avg_response:.2f}",
            f"{sys.cpu_utilization*100:.1f}%",
            f"{sys.throughput:.3f}",
        )

    console.print(summary_table)


def _animate_result(result: SimulationReport, delay: float, console: Console) -> None:
    """
    Replay the finished schedule tick by tick.
    """
    timeline = sorted(result.timeline, key=lambda s: (s.start_time, s.cpu))
    if not timeline:
        console.print("[red]No execution to animate.[/red]")
        return

    makespan = result.system.total_ticks
    console.print(f"[bold]Simulating {result.policy}[/bold] (duration {makespan} ticks)")
    console.print("[dim]Press Ctrl+C to skip animation.[/dim]")

    for t in range(makespan):
        cells = []
        for cpu in range(result.cpus):
            running = next(
                (sl for sl in timeline if sl.cpu == cpu and sl.start_time <= t < sl.end_time),
                None,
            )
            if running is None:
                cells.append("[dim][idle][/dim]")
            else:
                bar = "█" * (t - running.start_time + 1)
                cells.append(f"{running.pid} [green]{bar}[/green]")
        console.print(f"t={t:2d}: " + " | ".join(cells))
        time.sleep(delay)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    console = Console()

    try:
        if args.command == "run":
            processes = load_workload(Path(args.workload))
            result = simulate(processes, args.algorithm, quantum=args.quantum, cpus=args.cpus)
            if args.step:
                try:
                    _animate_result(result, args.step_delay, console)
                except KeyboardInterrupt:
                    console.print("[yellow]Animation skipped.[/yellow]")
            _print_result(result, console, plain=args.plain)
            return 0

        if args.command == "compare":
            processes = load_workload(Path(args.workload))
            reports = compare_policies(
                processes,
                args.algorithms,
                quantum=args.quantum,
                cpus=args.cpus,
                max_workers=args.jobs,
            )
            _print_comparison(reports, console)
            return 0

        if args.command == "generate":
            spec = WorkloadSpec(
                count=args.count,
                burst_range=parse_int_range(args.burst),
                arrival_gap=parse_int_range(args.gap),
                priority_range=parse_int_range(args.priority),
            )
            processes = random_workload(spec, seed=args.seed)
            path = save_workload(processes, args.output)
            console.print(f"Wrote {len(processes)} processes to [green]{path}[/green]")
            return 0
    except (SchedulerError, ValueError, OSError) as exc:
        logger.debug("Command %s failed", args.command, exc_info=True)
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        return 1

    parser.error(f"Unknown command: {args.command}")
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
