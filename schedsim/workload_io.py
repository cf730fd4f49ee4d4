from __future__ import annotations

import csv
import json
import logging
import re
from dataclasses import asdict
from pathlib import Path
from typing import List, Sequence

from .errors import WorkloadFormatError
from .models import ProcessDescriptor

logger = logging.getLogger(__name__)

FIELDS = ("pid", "arrival_time", "burst_time", "priority")
_INT_TEXT = re.compile(r"[+-]?\d+")


def load_workload(path: str | Path) -> List[ProcessDescriptor]:
    """
    Load a workload from a JSON or CSV file into a list of ProcessDescriptor objects.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        processes = _load_json(path)
    elif suffix == ".csv":
        processes = _load_csv(path)
    else:
        raise WorkloadFormatError(f"Unsupported workload format: {suffix} (use .json or .csv)")

    logger.info("Loaded %d processes from %s", len(processes), path)
    return processes


def save_workload(processes: Sequence[ProcessDescriptor], path: str | Path) -> Path:
    """
    Write descriptors to a JSON or CSV file, chosen by the file suffix.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    rows = [asdict(p) for p in processes]

    if suffix == ".json":
        with path.open("w", encoding="utf-8") as f:
            json.dump(rows, f, indent=2)
            f.write("\n")
    elif suffix == ".csv":
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=FIELDS)
            writer.writeheader()
            writer.writerows(rows)
    else:
        raise WorkloadFormatError(f"Unsupported workload format: {suffix} (use .json or .csv)")

    logger.info("Saved %d processes to %s", len(rows), path)
    return path


def _load_json(path: Path) -> List[ProcessDescriptor]:
    with path.open("r", encoding="utf-8") as f:
        try:
            raw = json.load(f)
        except json.JSONDecodeError as exc:
            raise WorkloadFormatError(f"{path}: invalid JSON ({exc})") from exc
        except UnicodeDecodeError as exc:
            raise WorkloadFormatError(f"{path}: not valid UTF-8 ({exc.reason})") from exc

    if not isinstance(raw, list):
        raise WorkloadFormatError("JSON workload must be a list of process objects")

    return [_process_from_mapping(entry) for entry in raw]


def _load_csv(path: Path) -> List[ProcessDescriptor]:
    processes: List[ProcessDescriptor] = []
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        try:
            for row in reader:
                processes.append(_process_from_mapping(row))
        except UnicodeDecodeError as exc:
            raise WorkloadFormatError(f"{path}: not valid UTF-8 ({exc.reason})") from exc
    return processes


def _parse_int(value) -> int:
    """
    Accept JSON integers and CSV digit strings; reject floats, booleans and
    anything int() would silently truncate or coerce.
    """
    if isinstance(value, bool):
        raise ValueError(f"expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and _INT_TEXT.fullmatch(value.strip()):
        return int(value)
    raise ValueError(f"expected an integer, got {value!r}")


def _process_from_mapping(mapping) -> ProcessDescriptor:
    if not isinstance(mapping, dict):
        raise WorkloadFormatError(f"Invalid process entry: {mapping!r}")

    try:
        pid = str(mapping["pid"])
        arrival_time = _parse_int(mapping["arrival_time"])
        burst_time = _parse_int(mapping["burst_time"])
    except (KeyError, ValueError) as exc:
        raise WorkloadFormatError(f"Invalid process entry: {mapping!r}") from exc

    priority_val = mapping.get("priority")
    try:
        priority = _parse_int(priority_val) if priority_val not in (None, "") else 0
    except ValueError as exc:
        raise WorkloadFormatError(f"Invalid priority in process entry: {mapping!r}") from exc

    return ProcessDescriptor(
        pid=pid,
        arrival_time=arrival_time,
        burst_time=burst_time,
        priority=priority,
    )
