"""Paid amounts, balances and payment history for fee records.

Every function here is pure and accepts either a :class:`FeeRecord` or a raw
stored mapping in either record shape.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Union

from .constants import STATUS_PENDING
from .models import FeeRecord, Payment, as_record, to_amount

__all__ = ["Summary", "balance", "paid_amount", "payment_history", "summarize", "to_amount"]

RecordLike = Union[FeeRecord, Mapping[str, Any]]


def paid_amount(record: RecordLike) -> float:
    rec = as_record(record)
    if rec.payments:
        return sum(to_amount(p.amount) for p in rec.payments)
    return to_amount(rec.amount)


def balance(record: RecordLike, paid: float | None = None) -> float:
    """Outstanding amount.

    With a known total fee this is ``total_fee - paid`` and may be negative
    for an overpayment. Without one, a "Pending" record is assumed to still
    owe everything paid so far, and anything else owes nothing.
    """
    rec = as_record(record)
    if paid is None:
        paid = paid_amount(rec)
    if rec.total_fee is not None:
        return rec.total_fee - paid
    if rec.status == STATUS_PENDING:
        return paid
    return 0.0


def payment_history(record: RecordLike) -> list[Payment]:
    rec = as_record(record)
    if rec.payments:
        return list(rec.payments)
    return [Payment(id=rec.id, amount=to_amount(rec.amount), date=rec.date, status=rec.status)]


@dataclass
class Summary:
    records: int = 0
    total_paid: float = 0.0
    total_outstanding: float = 0.0
    by_status: dict[str, int] = field(default_factory=dict)


def summarize(records: Iterable[RecordLike]) -> Summary:
    summary = Summary()
    for record in records:
        rec = as_record(record)
        paid = paid_amount(rec)
        owed = balance(rec, paid)
        summary.records += 1
        summary.total_paid += paid
        if owed > 0:
            summary.total_outstanding += owed
        if rec.status:
            summary.by_status[rec.status] = summary.by_status.get(rec.status, 0) + 1
    return summary
