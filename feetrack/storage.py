from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable

from .constants import ACTIVITY_KEY, ACTIVITY_LIMIT, DATA_JSON_PATH, RECORDS_KEY
from .logger import AppEvent, ErrorLogger
from .models import FeeRecord


class RecordStore:
    """Whole-collection persistence of fee records in a JSON slot file.

    The file holds one JSON object whose keys are named slots, the same way a
    browser's local storage would. Every load reads the full collection and
    every save rewrites it; there is no locking, so only one process should
    write to a given file at a time.
    """

    def __init__(self, path: Path = DATA_JSON_PATH, key: str = RECORDS_KEY, err_logger: ErrorLogger | None = None):
        self.path = path
        self.key = key
        self.err_logger = err_logger or ErrorLogger()

    # ---------------- Slots ----------------
    def _read_slots(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError, RecursionError) as e:
            # RecursionError: arrays nested deeper than the JSON decoder can follow.
            self.err_logger.log_exception(e, f"read_slots: {self.path}")
            return {}
        if not isinstance(data, dict):
            self.err_logger.log_problem(f"read_slots: {self.path}", "data file is not a JSON object")
            return {}
        return data

    def _write_slots(self, slots: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=self.path.name, suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(slots, f, indent=2, ensure_ascii=False)
                f.write("\n")
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    # ---------------- Records ----------------
    def load(self) -> list[FeeRecord]:
        raw = self._read_slots().get(self.key)
        if raw is None:
            return []
        if not isinstance(raw, list):
            self.err_logger.log_problem("load_records", f"slot {self.key!r} is not a list")
            return []

        records = []
        for idx, r in enumerate(raw):
            if not isinstance(r, dict):
                continue
            try:
                records.append(FeeRecord.from_dict(r))
            except (TypeError, ValueError, OverflowError, RecursionError) as e:
                self.err_logger.log_exception(e, f"load_records: entry {idx} skipped")
        return records

    def save(self, records: Iterable[FeeRecord]) -> None:
        slots = self._read_slots()
        slots[self.key] = [r.to_dict() for r in records]
        self._write_slots(slots)

    # ---------------- Activity ----------------
    def add_event(self, event: AppEvent) -> None:
        slots = self._read_slots()
        events = slots.get(ACTIVITY_KEY)
        if not isinstance(events, list):
            events = []
        events.append(event.to_dict())
        slots[ACTIVITY_KEY] = events[-ACTIVITY_LIMIT:]
        self._write_slots(slots)

    def list_events(self, limit: int = ACTIVITY_LIMIT) -> list[AppEvent]:
        events = self._read_slots().get(ACTIVITY_KEY)
        if not isinstance(events, list):
            return []
        return [AppEvent.from_dict(e) for e in events[-limit:] if isinstance(e, dict)]
