# Student Fee Tracker
# A desktop application that records student fee payments, keeps them in a local
# JSON data file, and shows a filterable table with per-student payment history.
# Uses CustomTkinter for the UI and OpenPyXL for Excel export.

from feetrack.app import run_app


if __name__ == "__main__":
    run_app()
