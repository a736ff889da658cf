from __future__ import annotations

import traceback
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from .constants import ERROR_LOG_PATH


@dataclass
class AppEvent:
    timestamp: str
    action: str
    entity_type: str
    entity_id: str
    details: str = ""

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "AppEvent":
        return AppEvent(
            timestamp=str(d.get("timestamp", "")),
            action=str(d.get("action", "")),
            entity_type=str(d.get("entity_type", "")),
            entity_id=str(d.get("entity_id", "")),
            details=str(d.get("details", "")),
        )

    def to_dict(self) -> dict[str, str]:
        return asdict(self)


class ErrorLogger:
    """Appends problems to the error log file next to the data file.

    Exceptions are written with their traceback. Data problems that have no
    exception (a record that cannot be read, a slot of the wrong type) are
    written as a single line so the log still shows what was skipped.
    """

    def __init__(self, path: Path = ERROR_LOG_PATH):
        self.path = path

    def _append(self, context: str, body: str = "") -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(f"[{now_ts()}] {context}\n")
            if body:
                f.write(body)
            f.write("\n")

    def log_exception(self, exc: BaseException, context: str = "") -> None:
        self._append(context, "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)))

    def log_problem(self, context: str, message: str) -> None:
        self._append(context, f"{message}\n")


def now_ts() -> str:
    return datetime.now().isoformat(timespec="seconds")
