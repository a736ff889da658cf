from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from .models import FeeRecord


@dataclass(frozen=True)
class FilterState:
    name: str = ""
    status: str = ""


def filter_records(records: Sequence[FeeRecord], name_pattern: str = "", status_pattern: str = "") -> list[FeeRecord]:
    """Records whose name contains ``name_pattern`` (ignoring case) and whose
    status equals ``status_pattern``; an empty pattern matches everything.
    Input order is kept."""
    needle = (name_pattern or "").casefold()
    filtered = []
    for r in records:
        if needle and needle not in r.name.casefold():
            continue
        if status_pattern and r.status != status_pattern:
            continue
        filtered.append(r)
    return filtered


def apply_filter(records: Sequence[FeeRecord], state: FilterState) -> list[FeeRecord]:
    return filter_records(records, state.name, state.status)
