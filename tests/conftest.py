"""Pytest fixtures for testing"""

import itertools
import json

import pytest

from feetrack.controller import FeeController
from feetrack.logger import ErrorLogger
from feetrack.models import FeeRecord
from feetrack.storage import RecordStore


@pytest.fixture
def err_logger(tmp_path) -> ErrorLogger:
    return ErrorLogger(tmp_path / "error_log.txt")


@pytest.fixture
def store(tmp_path, err_logger) -> RecordStore:
    """Record store backed by a temporary data file"""
    return RecordStore(tmp_path / "fee_data.json", err_logger=err_logger)


@pytest.fixture
def controller(store) -> FeeController:
    """Controller with deterministic ids 1, 2, 3, ..."""
    return FeeController(store, id_factory=itertools.count(1).__next__)


@pytest.fixture
def raw_records() -> list[dict]:
    """Stored records in both shapes, as an older data file would hold them"""
    return [
        {
            "id": 1700000000001,
            "rollNumber": "R1",
            "name": "Asha",
            "totalFee": 1000,
            "payments": [{"id": 1700000000001, "amount": 400, "date": "2024-01-10", "status": "Paid"}],
            "amount": 400,
            "date": "2024-01-10",
            "status": "Paid",
        },
        {
            "id": 1700000000002,
            "rollNumber": "R2",
            "name": "Bala",
            "status": "Pending",
            "amount": 250,
            "date": "2024-02-01",
        },
        {
            "id": 1700000000003,
            "rollNumber": "",
            "name": "Chitra Rao",
            "totalFee": 500,
            "payments": [
                {"id": 11, "amount": 200, "date": "2024-03-01", "status": "Pending"},
                {"id": 12, "amount": "150", "date": "2024-03-15", "status": "Paid"},
            ],
            "amount": 350,
            "date": "2024-03-15",
            "status": "Paid",
        },
    ]


@pytest.fixture
def records(raw_records) -> list[FeeRecord]:
    return [FeeRecord.from_dict(r) for r in raw_records]


@pytest.fixture
def seeded_store(store, raw_records) -> RecordStore:
    """Store whose data file already holds the sample records"""
    store.path.write_text(json.dumps({"feeRecords": raw_records}), encoding="utf-8")
    return store
