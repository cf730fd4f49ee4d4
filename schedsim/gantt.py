from __future__ import annotations

from typing import Dict, List, Sequence

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .models import ScheduledSlice


def _by_cpu(slices: Sequence[ScheduledSlice], cpus: int) -> List[List[ScheduledSlice]]:
    rows: List[List[ScheduledSlice]] = [[] for _ in range(max(cpus, 1))]
    for sl in sorted(slices, key=lambda s: (s.start_time, s.end_time)):
        rows[sl.cpu].append(sl)
    return rows


def render_gantt(slices: Sequence[ScheduledSlice], cpus: int = 1) -> str:
    """
    Plain-text Gantt chart, one bar per CPU. Idle ticks are drawn as dots.
    """
    if not slices:
        return "(no execution)"

    lines = ["Gantt Chart:"]
    for index, row in enumerate(_by_cpu(slices, cpus)):
        line = "|"
        labels = ""
        time_marks = "0"
        last_time = 0

        for sl in row:
            idle_gap = sl.start_time - last_time
            if idle_gap > 0:
                line += "." * idle_gap
                labels += " " * idle_gap
                last_time = sl.start_time
                time_marks += f"{last_time:>3}"

            width = max(1, sl.end_time - sl.start_time)
            line += "=" * width
            labels += sl.pid[:width].ljust(width)
            last_time = sl.end_time
            time_marks += f"{last_time:>3}"

        line += "|"
        if cpus > 1:
            lines.append(f"CPU {index}:")
        lines.extend([line, labels, time_marks])

    return "\n".join(lines)


def build_rich_gantt(slices: Sequence[ScheduledSlice], cpus: int = 1) -> tuple[Panel, str]:
    """
    Build a Rich Panel containing a colored Gantt chart (one row per CPU) and a
    string with the time marks of the first CPU.
    """
    if not slices:
        panel = Panel("No execution", title="Gantt Chart")
        return panel, ""

    colors = ["red", "green", "yellow", "blue", "magenta", "cyan"]
    pid_to_color: Dict[str, str] = {}

    def pid_color(pid: str) -> str:
        if pid not in pid_to_color:
            idx = len(pid_to_color) % len(colors)
            pid_to_color[pid] = colors[idx]
        return pid_to_color[pid]

    table = Table.grid(padding=(0, 1))
    first_marks = ""

    for index, row in enumerate(_by_cpu(slices, cpus)):
        timeline = Text()
        labels = Text()
        time_marks = "0"
        last_time = 0

        for sl in row:
            idle_gap = sl.start_time - last_time
            if idle_gap > 0:
                timeline.append(" " * idle_gap)
                labels.append(" " * idle_gap)
                last_time = sl.start_time
                time_marks += f"{last_time:>3}"

            width = max(1, sl.end_time - sl.start_time)
            timeline.append(" " * width, style=f"on {pid_color(sl.pid)}")
            labels.append(sl.pid[:width].ljust(width), style="bold")

            last_time = sl.end_time
            time_marks += f"{last_time:>3}"

        if index == 0:
            first_marks = time_marks
        table.add_row(f"CPU{index}", timeline)
        table.add_row("", labels)

    panel = Panel.fit(table, title="Gantt Chart")
    return panel, first_marks
