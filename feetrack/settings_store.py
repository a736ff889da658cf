from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .constants import CURRENCY_SYMBOL, SETTINGS_JSON_PATH, STATUS_PAID, STATUSES


@dataclass
class Settings:
    currency_symbol: str = CURRENCY_SYMBOL
    statuses: list[str] = field(default_factory=lambda: list(STATUSES))
    default_status: str = STATUS_PAID
    appearance_mode: str = "System"  # Light | Dark | System
    ui_scaling: float = 1.0

    @staticmethod
    def from_dict(d: dict[str, Any]) -> "Settings":
        raw_scale = d.get("ui_scaling", 1.0)
        try:
            scale = float(raw_scale)
        except (TypeError, ValueError):
            scale = 1.0
        # Keep scaling in a sane range to avoid blurry fractional scaling.
        if scale < 0.8:
            scale = 0.8
        if scale > 1.4:
            scale = 1.4

        raw_statuses = d.get("statuses")
        statuses = [str(s).strip() for s in raw_statuses if str(s).strip()] if isinstance(raw_statuses, list) else []
        if not statuses:
            statuses = list(STATUSES)

        default_status = str(d.get("default_status", STATUS_PAID))
        if default_status not in statuses:
            default_status = statuses[0]

        return Settings(
            currency_symbol=str(d.get("currency_symbol") or CURRENCY_SYMBOL),
            statuses=statuses,
            default_status=default_status,
            appearance_mode=str(d.get("appearance_mode", "System")),
            ui_scaling=scale,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "currency_symbol": self.currency_symbol,
            "statuses": self.statuses,
            "default_status": self.default_status,
            "appearance_mode": self.appearance_mode,
            "ui_scaling": self.ui_scaling,
        }


class SettingsStore:
    def __init__(self, path: Path = SETTINGS_JSON_PATH):
        self.path = path

    def load(self) -> Settings:
        if not self.path.exists():
            settings = Settings()
            self.save(settings)
            return settings

        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except ValueError:
            return Settings()
        return Settings.from_dict(data if isinstance(data, dict) else {})

    def save(self, settings: Settings) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=2, ensure_ascii=False)
            f.write("\n")
