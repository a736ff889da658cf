from __future__ import annotations

import ctypes
import sys
from tkinter import messagebox, ttk
from typing import Any

import customtkinter as ctk

from .aggregation import summarize
from .constants import APP_NAME, DATA_JSON_PATH, EXPORT_XLSX_PATH
from .controller import FeeController, FeeForm
from .filtering import FilterState
from .logger import ErrorLogger
from .presentation import TONE_NEUTRAL, TONE_SUCCESS, TONE_WARNING, HistoryView, TableView, format_currency
from .settings_store import SettingsStore
from .storage import RecordStore

ALL_STATUSES = "All"

TONE_COLORS = {
    TONE_WARNING: "#dc3545",
    TONE_SUCCESS: "#28a745",
    TONE_NEUTRAL: "",
}


def _enable_high_dpi() -> None:
    """Best-effort: make the app crisp on Windows high-DPI displays."""

    if not sys.platform.startswith("win"):
        return
    try:
        # Windows 8.1+
        ctypes.windll.shcore.SetProcessDpiAwareness(2)  # type: ignore[attr-defined]
    except Exception:
        try:
            ctypes.windll.user32.SetProcessDPIAware()  # type: ignore[attr-defined]
        except Exception:
            pass


class FeeTrackerApp(ctk.CTk):
    """Fee entry form, filterable records table and payment history window."""

    def __init__(self):
        super().__init__()

        self.err_logger = ErrorLogger()
        self.settings_store = SettingsStore()
        self.settings = self.settings_store.load()

        ctk.set_default_color_theme("blue")
        self._apply_ui_settings()

        self.title(APP_NAME)
        self.geometry("1240x760")
        self.minsize(1080, 640)

        self.protocol("WM_DELETE_WINDOW", self._on_close)

        self.store = RecordStore(err_logger=self.err_logger)
        self.controller = FeeController(self.store, currency_symbol=self.settings.currency_symbol)

        self._after_ids: dict[str, str] = {}
        self._form: dict[str, Any] = {}

        self._configure_ttk()
        self._build_shell()
        self.refresh_records()

    # Tkinter callback errors can be silent; log them.
    def report_callback_exception(self, exc, val, tb):  # type: ignore[override]
        try:
            self.err_logger.log_exception(val, f"tk_callback: {exc}")
        finally:
            super().report_callback_exception(exc, val, tb)

    # ---------------- Look & Feel ----------------
    def _apply_ui_settings(self) -> None:
        mode = (self.settings.appearance_mode or "System").strip().capitalize()
        if mode not in {"Light", "Dark", "System"}:
            mode = "System"
        ctk.set_appearance_mode(mode)
        # Using the same value for window+widget scaling avoids fractional blur.
        ctk.set_window_scaling(self.settings.ui_scaling)
        ctk.set_widget_scaling(self.settings.ui_scaling)

    def _configure_ttk(self) -> None:
        try:
            style = ttk.Style()
            style.theme_use("clam")
            style.configure("Treeview", rowheight=28, borderwidth=0, relief="flat")
            style.configure("Treeview.Heading", font=("Segoe UI", 10, "bold"), padding=(8, 6))
        except Exception as e:
            self.err_logger.log_exception(e, "configure_ttk")

    def _card(self, parent: Any, **kwargs: Any) -> ctk.CTkFrame:
        return ctk.CTkFrame(
            parent,
            corner_radius=14,
            border_width=1,
            border_color=("#e5e7eb", "#1f2937"),
            **kwargs,
        )

    def _debounce(self, key: str, delay_ms: int, fn) -> None:
        if key in self._after_ids:
            try:
                self.after_cancel(self._after_ids[key])
            except ValueError:
                pass
        self._after_ids[key] = self.after(delay_ms, fn)

    # ---------------- Layout ----------------
    def _build_shell(self) -> None:
        self.grid_columnconfigure(0, weight=0)
        self.grid_columnconfigure(1, weight=1)
        self.grid_rowconfigure(1, weight=1)

        bar = ctk.CTkFrame(self, corner_radius=0)
        bar.grid(row=0, column=0, columnspan=2, sticky="ew")
        bar.grid_columnconfigure(0, weight=1)
        ctk.CTkLabel(bar, text=APP_NAME, font=ctk.CTkFont(size=22, weight="bold")).grid(
            row=0, column=0, sticky="w", padx=18, pady=(18, 2)
        )
        self.summary_label = ctk.CTkLabel(bar, text="", font=ctk.CTkFont(size=12), text_color=("#6b7280", "#94a3b8"))
        self.summary_label.grid(row=1, column=0, sticky="w", padx=18, pady=(0, 12))
        ctk.CTkLabel(
            bar,
            text=f"Data: {DATA_JSON_PATH.name}\nLogs: {self.err_logger.path.name}",
            justify="right",
            font=ctk.CTkFont(size=11),
            text_color=("#6b7280", "#94a3b8"),
        ).grid(row=0, column=1, rowspan=2, sticky="e", padx=18)

        self._build_form(self._card(self)).grid(row=1, column=0, sticky="nsw", padx=(18, 9), pady=(0, 18))
        self._build_records(ctk.CTkFrame(self, corner_radius=0)).grid(
            row=1, column=1, sticky="nsew", padx=(9, 18), pady=(0, 18)
        )

    def _build_form(self, card: ctk.CTkFrame) -> ctk.CTkFrame:
        card.grid_columnconfigure(1, weight=1)
        ctk.CTkLabel(card, text="Record Payment", font=ctk.CTkFont(size=14, weight="bold")).grid(
            row=0, column=0, columnspan=2, sticky="w", padx=14, pady=(14, 6)
        )

        fields = [
            ("roll_number", "Roll Number", "optional, e.g. R1"),
            ("name", "Student Name", ""),
            ("amount", "Fee Amount", "0.00"),
            ("total_fee", "Total Fee", "leave blank to keep"),
            ("date", "Payment Date", "YYYY-MM-DD"),
        ]
        row = 1
        for key, label, hint in fields:
            ctk.CTkLabel(card, text=label).grid(row=row, column=0, padx=14, pady=8, sticky="w")
            ent = ctk.CTkEntry(card, placeholder_text=hint, width=220)
            ent.grid(row=row, column=1, padx=14, pady=8, sticky="ew")
            self._form[key] = ent
            row += 1

        ctk.CTkLabel(card, text="Status").grid(row=row, column=0, padx=14, pady=8, sticky="w")
        status = ctk.CTkOptionMenu(card, values=self.settings.statuses)
        status.set(self.settings.default_status)
        status.grid(row=row, column=1, padx=14, pady=8, sticky="ew")
        self._form["status"] = status
        row += 1

        ctk.CTkButton(card, text="Add Payment", command=self.submit_form).grid(
            row=row, column=0, columnspan=2, padx=14, pady=(12, 6), sticky="ew"
        )
        ctk.CTkButton(card, text="Clear", fg_color="transparent", border_width=1, command=self.reset_form).grid(
            row=row + 1, column=0, columnspan=2, padx=14, pady=(6, 14), sticky="ew"
        )
        return card

    def _build_records(self, frame: ctk.CTkFrame) -> ctk.CTkFrame:
        frame.grid_columnconfigure(0, weight=1)
        frame.grid_rowconfigure(1, weight=1)

        toolbar = self._card(frame)
        toolbar.grid(row=0, column=0, sticky="ew", pady=(0, 12))
        toolbar.grid_columnconfigure(1, weight=1)

        ctk.CTkLabel(toolbar, text="Search").grid(row=0, column=0, padx=(12, 6), pady=12)
        self.filter_name = ctk.CTkEntry(toolbar, placeholder_text="student name")
        self.filter_name.grid(row=0, column=1, padx=6, pady=12, sticky="ew")
        self.filter_name.bind("<KeyRelease>", lambda _e: self._debounce("filter_name", 180, self.refresh_records))

        ctk.CTkLabel(toolbar, text="Status").grid(row=0, column=2, padx=(12, 6), pady=12)
        self.filter_status = ctk.CTkOptionMenu(
            toolbar, values=[ALL_STATUSES] + self.settings.statuses, command=lambda _v: self.refresh_records()
        )
        self.filter_status.set(ALL_STATUSES)
        self.filter_status.grid(row=0, column=3, padx=6, pady=12)

        ctk.CTkButton(toolbar, text="History", width=90, command=self.open_selected_history).grid(
            row=0, column=4, padx=(12, 6), pady=12
        )
        ctk.CTkButton(toolbar, text="Export", width=90, command=self.export_records).grid(
            row=0, column=5, padx=(6, 12), pady=12
        )

        card = self._card(frame)
        card.grid(row=1, column=0, sticky="nsew")
        card.grid_columnconfigure(0, weight=1)
        card.grid_rowconfigure(1, weight=1)

        header = ctk.CTkFrame(card, corner_radius=0)
        header.grid(row=0, column=0, sticky="ew", padx=12, pady=(12, 6))
        header.grid_columnconfigure(0, weight=1)
        ctk.CTkLabel(header, text="Fee Records", font=ctk.CTkFont(size=14, weight="bold")).grid(row=0, column=0, sticky="w")
        self.records_count = ctk.CTkLabel(header, text="0 records", text_color=("#6b7280", "#94a3b8"))
        self.records_count.grid(row=0, column=1, sticky="e")

        self.records_tree = self._make_records_tree(card)
        self.records_tree.bind("<Double-1>", lambda _e: self.open_selected_history())
        return frame

    # ---------------- Treeviews ----------------
    def _wrap_tree(self, parent: Any) -> ctk.CTkFrame:
        wrap = ctk.CTkFrame(parent, corner_radius=0)
        wrap.grid_columnconfigure(0, weight=1)
        wrap.grid_rowconfigure(0, weight=1)
        return wrap

    def _make_records_tree(self, parent: ctk.CTkFrame) -> ttk.Treeview:
        wrap = self._wrap_tree(parent)
        columns = ("seq", "roll", "name", "paid", "total", "date", "status", "balance")
        tree = ttk.Treeview(wrap, columns=columns, show="headings", selectmode="browse")
        for col, text, width in [
            ("seq", "#", 50),
            ("roll", "Roll No", 100),
            ("name", "Name", 200),
            ("paid", "Amount Paid", 120),
            ("total", "Total Fee", 120),
            ("date", "Last Payment", 120),
            ("status", "Status", 90),
            ("balance", "Balance", 120),
        ]:
            tree.heading(col, text=text)
            tree.column(col, width=width, anchor="w")
        for tone, color in TONE_COLORS.items():
            if color:
                tree.tag_configure(tone, foreground=color)
        vsb = ttk.Scrollbar(wrap, orient="vertical", command=tree.yview)
        tree.configure(yscrollcommand=vsb.set)
        tree.grid(row=0, column=0, sticky="nsew")
        vsb.grid(row=0, column=1, sticky="ns")
        wrap.grid(row=1, column=0, sticky="nsew", padx=12, pady=(0, 12))
        return tree

    def _make_history_tree(self, parent: ctk.CTkFrame) -> ttk.Treeview:
        wrap = self._wrap_tree(parent)
        columns = ("seq", "amount", "date", "status")
        tree = ttk.Treeview(wrap, columns=columns, show="headings", selectmode="none", height=8)
        for col, text, width in [("seq", "#", 50), ("amount", "Amount", 140), ("date", "Date", 140), ("status", "Status", 110)]:
            tree.heading(col, text=text)
            tree.column(col, width=width, anchor="w")
        vsb = ttk.Scrollbar(wrap, orient="vertical", command=tree.yview)
        tree.configure(yscrollcommand=vsb.set)
        tree.grid(row=0, column=0, sticky="nsew")
        vsb.grid(row=0, column=1, sticky="ns")
        wrap.grid(row=1, column=0, sticky="nsew", padx=14, pady=(0, 10))
        return tree

    # ---------------- Data refresh ----------------
    def current_filter(self) -> FilterState:
        status = self.filter_status.get()
        return FilterState(name=self.filter_name.get() or "", status="" if status == ALL_STATUSES else status)

    def refresh_records(self) -> None:
        try:
            self.show_table(self.controller.view(self.current_filter()))
            self.refresh_summary()
        except Exception as e:
            self.err_logger.log_exception(e, "refresh_records")

    def show_table(self, view: TableView) -> None:
        for item in self.records_tree.get_children(""):
            self.records_tree.delete(item)

        if view.is_empty:
            self.records_tree.insert("", "end", iid="__empty__", values=("", "", view.placeholder))
        # The tree iid carries the record id; roll numbers may repeat.
        for row in view.rows:
            self.records_tree.insert("", "end", iid=f"{row.seq}:{row.record_id}", values=row.values(), tags=(row.balance_tone,))
        self.records_count.configure(text=f"{len(view.rows)} records")

    def refresh_summary(self) -> None:
        s = summarize(self.controller.records())
        sym = self.settings.currency_symbol
        counts = "  ".join(f"{k}: {v}" for k, v in sorted(s.by_status.items()))
        self.summary_label.configure(
            text=(
                f"{s.records} students  |  Paid {format_currency(s.total_paid, sym)}"
                f"  |  Outstanding {format_currency(s.total_outstanding, sym)}  |  {counts}"
            ).rstrip(" |")
        )

    # ---------------- Form ----------------
    def read_form(self) -> FeeForm:
        return FeeForm(**{k: w.get() for k, w in self._form.items()})

    def reset_form(self) -> None:
        for key, widget in self._form.items():
            if key == "status":
                widget.set(self.settings.default_status)
            else:
                widget.delete(0, "end")

    def submit_form(self) -> None:
        try:
            result = self.controller.submit(self.read_form(), self.current_filter())
            self.reset_form()
            self.show_table(result.view)
            self.refresh_summary()
        except Exception as e:
            self.err_logger.log_exception(e, "submit_form")

    # ---------------- History ----------------
    def open_selected_history(self) -> None:
        sel = self.records_tree.selection()
        if not sel or sel[0] == "__empty__":
            return
        self.open_history(sel[0].split(":", 1)[1])

    def open_history(self, record_id: str) -> None:
        try:
            view = self.controller.record_history(record_id)
        except Exception as e:
            self.err_logger.log_exception(e, "open_history")
            return
        if view is None:
            return
        self._history_dialog(view)

    def _history_dialog(self, view: HistoryView) -> None:
        dlg = ctk.CTkToplevel(self)
        dlg.title("Payment History")
        dlg.geometry("520x420")
        dlg.transient(self)
        dlg.grab_set()
        dlg.grid_columnconfigure(0, weight=1)
        dlg.grid_rowconfigure(0, weight=1)

        shell = self._card(dlg)
        shell.grid(row=0, column=0, sticky="nsew", padx=14, pady=14)
        shell.grid_columnconfigure(0, weight=1)
        shell.grid_rowconfigure(1, weight=1)

        ctk.CTkLabel(shell, text=view.title, font=ctk.CTkFont(size=18, weight="bold")).grid(
            row=0, column=0, sticky="w", padx=14, pady=(14, 10)
        )
        tree = self._make_history_tree(shell)
        for row in view.rows:
            tree.insert("", "end", values=(row.seq, row.amount, row.date, row.status))

        ctk.CTkButton(shell, text="Close", command=dlg.destroy).grid(row=2, column=0, padx=14, pady=(0, 14), sticky="e")
        dlg.bind("<Escape>", lambda _e: dlg.destroy())

    # ---------------- Export ----------------
    def export_records(self) -> None:
        try:
            path = self.controller.export(EXPORT_XLSX_PATH)
        except Exception as e:
            self.err_logger.log_exception(e, "export_records")
            messagebox.showerror("Export failed", str(e), parent=self)
            return
        messagebox.showinfo("Export", f"Saved {path.name}", parent=self)

    # ---------------- Close ----------------
    def _on_close(self) -> None:
        self.destroy()


def run_app() -> None:
    _enable_high_dpi()
    app = FeeTrackerApp()
    app.mainloop()
