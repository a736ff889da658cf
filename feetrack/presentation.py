"""View models for the records table and the payment history window.

Nothing here touches widgets: the functions map records to plain rows, and the
UI copies those rows into its tree views. Equal input always gives equal rows.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Sequence

from .aggregation import balance, paid_amount, payment_history
from .constants import CURRENCY_SYMBOL, NO_RECORDS_MESSAGE, PLACEHOLDER
from .models import FeeRecord

TONE_WARNING = "warning"
TONE_SUCCESS = "success"
TONE_NEUTRAL = "neutral"


def format_currency(value: Any, symbol: str = CURRENCY_SYMBOL) -> str:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        return PLACEHOLDER
    return f"{symbol} {value:.2f}"


def balance_tone(value: float) -> str:
    if value > 0:
        return TONE_WARNING
    if value == 0:
        return TONE_SUCCESS
    return TONE_NEUTRAL


@dataclass(frozen=True)
class TableRow:
    seq: int
    roll_number: str
    name: str
    paid: str
    total_fee: str
    date: str
    status: str
    balance: str
    balance_tone: str
    history_key: str
    record_id: str

    def values(self) -> tuple[Any, ...]:
        return (
            self.seq,
            self.roll_number,
            self.name,
            self.paid,
            self.total_fee,
            self.date,
            self.status,
            self.balance,
        )


@dataclass(frozen=True)
class TableView:
    rows: tuple[TableRow, ...] = ()
    placeholder: str = NO_RECORDS_MESSAGE

    @property
    def is_empty(self) -> bool:
        return not self.rows


@dataclass(frozen=True)
class HistoryRow:
    seq: int
    amount: str
    date: str
    status: str


@dataclass(frozen=True)
class HistoryView:
    title: str
    rows: tuple[HistoryRow, ...] = field(default_factory=tuple)


def render_row(seq: int, record: FeeRecord, symbol: str = CURRENCY_SYMBOL) -> TableRow:
    paid = paid_amount(record)
    owed = balance(record, paid)
    return TableRow(
        seq=seq,
        roll_number=record.roll_number or PLACEHOLDER,
        name=record.name,
        paid=format_currency(paid, symbol),
        # Zero and absent totals both show the placeholder.
        total_fee=format_currency(record.total_fee, symbol) if record.total_fee else PLACEHOLDER,
        date=record.date or PLACEHOLDER,
        status=record.status or PLACEHOLDER,
        balance=format_currency(owed, symbol),
        balance_tone=balance_tone(owed),
        history_key=record.lookup_key,
        record_id=str(record.id),
    )


def render_table(records: Sequence[FeeRecord], symbol: str = CURRENCY_SYMBOL) -> TableView:
    # Sequence numbers restart at 1 on every render; they are not record ids.
    return TableView(rows=tuple(render_row(i, r, symbol) for i, r in enumerate(records, start=1)))


def render_history(record: FeeRecord, symbol: str = CURRENCY_SYMBOL) -> HistoryView:
    rows = tuple(
        HistoryRow(
            seq=i,
            amount=format_currency(p.amount, symbol),
            date=p.date or PLACEHOLDER,
            status=p.status or PLACEHOLDER,
        )
        for i, p in enumerate(payment_history(record), start=1)
    )
    return HistoryView(title=f"{record.name} ({record.lookup_key})", rows=rows)
