"""Fee record and payment types.

Stored records come in two shapes. Older records carry one flat
``amount``/``date``/``status`` triple and no ``payments`` list; newer records
keep every payment in ``payments`` and mirror the sum into ``amount``. Both
are turned into the payments shape here, at the load boundary, so the rest of
the application only ever sees one shape.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import Any, Mapping, Union

RecordId = Union[int, str]

SHAPE_PAYMENTS = "payments"
SHAPE_LEGACY = "legacy"

_CANONICAL_KEYS = {"id", "rollNumber", "name", "payments", "amount", "totalFee", "date", "status"}

# Leading numeric prefix, the same part a browser's parseFloat() would accept.
_NUMBER_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(float(value))
    except OverflowError:
        # Integers wider than a double.
        return False


def parse_number(value: Any) -> float | None:
    """Best-effort numeric parse; ``None`` when nothing numeric is found."""
    if _is_number(value):
        return float(value)
    if isinstance(value, str):
        m = _NUMBER_PREFIX.match(value)
        if m:
            try:
                parsed = float(m.group(1))
            except ValueError:
                return None
            return parsed if math.isfinite(parsed) else None
    return None


def to_amount(value: Any) -> float:
    parsed = parse_number(value)
    return 0.0 if parsed is None else parsed


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


@dataclass
class Payment:
    id: RecordId
    amount: float
    date: str = ""
    status: str = ""

    @staticmethod
    def from_dict(d: Mapping[str, Any], fallback_id: RecordId = "") -> "Payment":
        pid = d.get("id")
        return Payment(
            id=fallback_id if pid is None or pid == "" else pid,
            amount=to_amount(d.get("amount")),
            date=_text(d.get("date")),
            status=_text(d.get("status")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "amount": self.amount, "date": self.date, "status": self.status}


@dataclass
class FeeRecord:
    id: RecordId
    name: str = ""
    roll_number: str = ""
    payments: list[Payment] = field(default_factory=list)
    amount: float = 0.0
    total_fee: float | None = None
    date: str = ""
    status: str = ""
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def lookup_key(self) -> str:
        """Key the history view is opened with: roll number, else the id."""
        return self.roll_number or str(self.id)

    def recompute_amount(self) -> None:
        self.amount = sum(p.amount for p in self.payments)

    def add_payment(self, payment: Payment, total_fee: float | None = None) -> None:
        self.payments.append(payment)
        self.recompute_amount()
        # A blank total fee on a later payment never clears the stored one.
        if total_fee is not None:
            self.total_fee = total_fee
        self.date = payment.date
        self.status = payment.status

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "FeeRecord":
        rid = d.get("id")
        if rid is None:
            rid = ""
        total_fee = d.get("totalFee")
        extra = {k: v for k, v in d.items() if k not in _CANONICAL_KEYS}
        if total_fee is not None and not _is_number(total_fee):
            # Unusable total fees are kept as stored so a save does not erase them.
            extra["totalFee"] = total_fee
        rec = FeeRecord(
            id=rid,
            name=_text(d.get("name")),
            roll_number=_text(d.get("rollNumber")),
            total_fee=float(total_fee) if _is_number(total_fee) else None,
            date=_text(d.get("date")),
            status=_text(d.get("status")),
            extra=extra,
        )

        if record_shape(d) == SHAPE_PAYMENTS:
            rec.payments = [
                Payment.from_dict(p if isinstance(p, Mapping) else {}, fallback_id=rid) for p in d["payments"]
            ]
        else:
            rec.payments = [legacy_payment(d)]
        rec.recompute_amount()
        return rec

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = dict(self.extra)
        out.update(
            {
                "id": self.id,
                "rollNumber": self.roll_number,
                "name": self.name,
                "payments": [p.to_dict() for p in self.payments],
                "amount": self.amount,
                "date": self.date,
                "status": self.status,
            }
        )
        if self.total_fee is not None:
            out["totalFee"] = self.total_fee
        return out


def record_shape(d: Mapping[str, Any]) -> str:
    payments = d.get("payments")
    if isinstance(payments, list) and payments:
        return SHAPE_PAYMENTS
    return SHAPE_LEGACY


def legacy_payment(d: Mapping[str, Any]) -> Payment:
    """Single history entry built from a legacy record's flat fields."""
    rid = d.get("id")
    return Payment(
        id="" if rid is None else rid,
        amount=to_amount(d.get("amount")),
        date=_text(d.get("date")),
        status=_text(d.get("status")),
    )


def as_record(record: FeeRecord | Mapping[str, Any]) -> FeeRecord:
    if isinstance(record, FeeRecord):
        return record
    return FeeRecord.from_dict(record)
