"""Excel export of fee records and their payment history."""
from __future__ import annotations

from pathlib import Path
from typing import Sequence

from openpyxl import Workbook
from openpyxl.styles import Font

from .aggregation import balance, paid_amount, payment_history
from .constants import EXPORT_XLSX_PATH
from .models import FeeRecord

RECORDS_SHEET = "fee_records"
PAYMENTS_SHEET = "payments"

RECORD_HEADERS = ["roll_number", "name", "paid", "total_fee", "balance", "last_payment_date", "status"]
PAYMENT_HEADERS = ["record_id", "roll_number", "name", "payment_id", "amount", "date", "status"]


def _write_headers(ws, headers: list[str]) -> None:
    ws.append(headers)
    for cell in ws[1]:
        cell.font = Font(bold=True)
    ws.freeze_panes = "A2"


def export_records(records: Sequence[FeeRecord], path: Path = EXPORT_XLSX_PATH) -> Path:
    wb = Workbook()
    # Replace the default sheet with named ones.
    wb.remove(wb.active)

    ws = wb.create_sheet(RECORDS_SHEET)
    _write_headers(ws, RECORD_HEADERS)
    for r in records:
        paid = paid_amount(r)
        ws.append([r.roll_number, r.name, paid, r.total_fee, balance(r, paid), r.date, r.status])

    ws = wb.create_sheet(PAYMENTS_SHEET)
    _write_headers(ws, PAYMENT_HEADERS)
    for r in records:
        for p in payment_history(r):
            ws.append([str(r.id), r.roll_number, r.name, str(p.id), p.amount, p.date, p.status])

    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path
