from __future__ import annotations

from pathlib import Path

APP_NAME = "Student Fee Tracker"

WORKSPACE_ROOT = Path(__file__).resolve().parents[1]
DATA_JSON_PATH = WORKSPACE_ROOT / "fee_data.json"
SETTINGS_JSON_PATH = WORKSPACE_ROOT / "settings.json"
ERROR_LOG_PATH = WORKSPACE_ROOT / "error_log.txt"
EXPORT_XLSX_PATH = WORKSPACE_ROOT / "fee_records.xlsx"

RECORDS_KEY = "feeRecords"
ACTIVITY_KEY = "feeActivity"
ACTIVITY_LIMIT = 500

CURRENCY_SYMBOL = "₹"
PLACEHOLDER = "-"
NO_RECORDS_MESSAGE = "No records found."

STATUS_PAID = "Paid"
STATUS_PENDING = "Pending"
STATUSES = [STATUS_PAID, STATUS_PENDING]
