"""Form handling: turns a submitted fee form into a new record or a payment
appended to an existing one, then persists and re-renders."""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from .constants import CURRENCY_SYMBOL, EXPORT_XLSX_PATH
from .export import export_records
from .filtering import FilterState, apply_filter
from .ids import MonotonicIdGenerator
from .logger import AppEvent, now_ts
from .models import FeeRecord, Payment, RecordId, parse_number
from .presentation import HistoryView, TableView, render_history, render_table
from .storage import RecordStore


@dataclass
class FeeForm:
    roll_number: str = ""
    name: str = ""
    amount: str = ""
    total_fee: str = ""
    date: str = ""
    status: str = ""


@dataclass
class NormalizedForm:
    roll_number: str
    name: str
    amount: float
    total_fee: float | None
    date: str
    status: str


@dataclass
class Submission:
    record: FeeRecord
    created: bool
    view: TableView


def normalize_form(form: FeeForm) -> NormalizedForm:
    # Empty names pass through unchecked; the form is the only guard.
    amount = parse_number(form.amount)
    if amount is None or amount < 0:
        amount = 0.0
    return NormalizedForm(
        roll_number=(form.roll_number or "").strip(),
        name=(form.name or "").strip(),
        amount=amount,
        total_fee=parse_number(form.total_fee),
        date=form.date or "",
        status=form.status or "",
    )


def find_by_roll(records: Sequence[FeeRecord], roll_number: str) -> FeeRecord | None:
    if not roll_number:
        return None
    for r in records:
        if r.roll_number and r.roll_number == roll_number:
            return r
    return None


def find_by_id(records: Sequence[FeeRecord], record_id: str) -> FeeRecord | None:
    for r in records:
        if str(r.id) == record_id:
            return r
    return None


class FeeController:
    def __init__(
        self,
        store: RecordStore,
        id_factory: Callable[[], RecordId] | None = None,
        currency_symbol: str = CURRENCY_SYMBOL,
    ):
        self.store = store
        self.new_id = id_factory or MonotonicIdGenerator()
        self.currency_symbol = currency_symbol

    def records(self) -> list[FeeRecord]:
        return self.store.load()

    def view(self, filter_state: FilterState = FilterState()) -> TableView:
        return render_table(apply_filter(self.records(), filter_state), self.currency_symbol)

    def submit(self, form: FeeForm, filter_state: FilterState = FilterState()) -> Submission:
        data = normalize_form(form)
        records = self.store.load()

        payment = Payment(id=self.new_id(), amount=data.amount, date=data.date, status=data.status)
        record = find_by_roll(records, data.roll_number)
        created = record is None
        if record is None:
            record = FeeRecord(
                id=self.new_id(),
                name=data.name,
                roll_number=data.roll_number,
                payments=[payment],
                amount=payment.amount,
                total_fee=data.total_fee,
                date=data.date,
                status=data.status,
            )
            records.append(record)
        else:
            record.add_payment(payment, total_fee=data.total_fee)

        self.store.save(records)
        self._emit(
            "add_record" if created else "add_payment",
            str(record.id),
            f"{record.name} [{record.roll_number or '-'}] {payment.amount:.2f} {payment.status}".strip(),
        )
        return Submission(
            record=record,
            created=created,
            view=render_table(apply_filter(records, filter_state), self.currency_symbol),
        )

    def find_record(self, key: str) -> FeeRecord | None:
        """Record by roll number, falling back to the record id.

        Every roll number is checked before any id, so a roll number that
        happens to equal another record's id still finds its own record.
        """
        key = str(key)
        records = self.records()
        return find_by_roll(records, key) or find_by_id(records, key)

    def history(self, key: str) -> HistoryView | None:
        rec = self.find_record(key)
        if rec is None:
            return None
        return render_history(rec, self.currency_symbol)

    def record_history(self, record_id: RecordId) -> HistoryView | None:
        """History of one exact record, even when its roll number is shared."""
        rec = find_by_id(self.records(), str(record_id))
        if rec is None:
            return None
        return render_history(rec, self.currency_symbol)

    def export(self, path: Path = EXPORT_XLSX_PATH) -> Path:
        records = self.records()
        out = export_records(records, path)
        self._emit("export", "records", str(len(records)), str(out))
        return out

    def _emit(self, action: str, entity_id: str, details: str = "") -> None:
        self.store.add_event(
            AppEvent(timestamp=now_ts(), action=action, entity_type="fee_record", entity_id=entity_id, details=details)
        )
