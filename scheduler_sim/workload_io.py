from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Iterable, List, Mapping

from .models import InvalidProcessError, Process

# Accepted spellings for each Process field, first match wins.
_FIELD_ALIASES = {
    "name": ("name", "pid"),
    "arrival_time": ("arrival", "arrival_time"),
    "burst_time": ("burst", "burst_time"),
    "priority": ("priority",),
    "quantum": ("quantum",),
}


def load_workload(path: str | Path) -> List[Process]:
    """
    Load a workload from a JSON or CSV file into a list of Process objects.

    A JSON file holds either a list of process objects or a test-case
    document, in which case ``input.processes`` is used.
    """
    path = Path(path)
    suffix = path.suffix.lower()

    if suffix == ".json":
        return _load_json(path)
    if suffix == ".csv":
        return _load_csv(path)

    raise ValueError(f"Unsupported workload format: {suffix} (use .json or .csv)")


def _load_json(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8") as f:
        raw = json.load(f)

    if isinstance(raw, Mapping):
        try:
            raw = raw["input"]["processes"]
        except (KeyError, TypeError) as exc:
            raise ValueError(f"{path}: JSON object has no input.processes list") from exc

    if not isinstance(raw, Iterable) or isinstance(raw, (str, bytes)):
        raise ValueError("JSON workload must be a list of process objects")

    return processes_from_mappings(raw)


def _load_csv(path: Path) -> List[Process]:
    with path.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        return processes_from_mappings(reader)


def processes_from_mappings(entries: Iterable[Mapping]) -> List[Process]:
    return [process_from_mapping(entry) for entry in entries]


def _lookup(mapping: Mapping, field_name: str):
    for key in _FIELD_ALIASES[field_name]:
        value = mapping.get(key)
        if value not in (None, ""):
            return value
    return None


def process_from_mapping(mapping: Mapping) -> Process:
    try:
        name = _lookup(mapping, "name")
        arrival = _lookup(mapping, "arrival_time")
        burst = _lookup(mapping, "burst_time")
        if name is None or arrival is None or burst is None:
            raise KeyError("name/arrival/burst")
        priority_val = _lookup(mapping, "priority")
        quantum_val = _lookup(mapping, "quantum")
        quantum = int(quantum_val) if quantum_val is not None else None

        return Process(
            name=str(name),
            arrival_time=int(arrival),
            burst_time=int(burst),
            priority=int(priority_val) if priority_val is not None else 0,
            # Workloads written for the non-AG algorithms use 0 for "no quantum".
            quantum=quantum or None,
        )
    except InvalidProcessError:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"Invalid process entry: {mapping!r}") from exc
