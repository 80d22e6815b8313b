from __future__ import annotations

import tkinter as tk
from tkinter import ttk, filedialog
from datetime import date, timedelta

from payshia_erp.domain.errors import AuthorizationError, ValidationError


class ReportsView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Excel + Reports")

        self.period = tk.StringVar(value="weekly")
        self.summary_var = tk.StringVar(value="")
        self._build()

    def _build(self):
        tab = self.frame

        box1 = ttk.LabelFrame(tab, text="Import opening stock from Excel")
        box1.pack(fill="x", padx=10, pady=10)

        ttk.Label(box1, text="Headers: sku | quantity | batch_number | expiry_date").pack(anchor="w", padx=10, pady=(8, 4))
        ttk.Button(box1, text="Choose file and import", style="Big.TButton", command=self.import_excel)\
            .pack(anchor="w", padx=10, pady=(0, 10))

        box2 = ttk.LabelFrame(tab, text="Sales summary")
        box2.pack(fill="x", padx=10, pady=10)

        row = ttk.Frame(box2)
        row.pack(fill="x", padx=10, pady=10)

        ttk.Label(row, text="Preset window").pack(side="left")
        ttk.Radiobutton(row, text="Today", value="daily", variable=self.period).pack(side="left", padx=10)
        ttk.Radiobutton(row, text="Weekly (last 7 days)", value="weekly", variable=self.period).pack(side="left", padx=10)
        ttk.Radiobutton(row, text="Monthly (last 30 days)", value="monthly", variable=self.period).pack(side="left", padx=10)

        btns = ttk.Frame(box2)
        btns.pack(fill="x", padx=10, pady=(0, 10))
        ttk.Button(btns, text="Show", command=self.show_summary).pack(side="left")
        ttk.Button(btns, text="Export to Excel", style="Big.TButton", command=self.export_summary).pack(side="left", padx=10)
        ttk.Button(btns, text="Print", command=self.print_summary).pack(side="left")
        ttk.Label(box2, textvariable=self.summary_var, justify="left").pack(anchor="w", padx=10, pady=(0, 10))

        box3 = ttk.LabelFrame(tab, text="Stock + suppliers")
        box3.pack(fill="x", padx=10, pady=10)
        ttk.Button(box3, text="Export stock balance (current location)", command=self.export_stock)\
            .pack(side="left", padx=10, pady=10)
        ttk.Button(box3, text="Export supplier balances", command=self.export_suppliers)\
            .pack(side="left", padx=10, pady=10)

    def _window(self) -> tuple[date, date]:
        end = date.today()
        days = {"daily": 0, "weekly": 7, "monthly": 30}[self.period.get()]
        return end - timedelta(days=days), end

    def _ask_path(self, stem: str) -> str:
        return filedialog.asksaveasfilename(
            title="Save report as",
            defaultextension=".xlsx",
            filetypes=[("Excel files", "*.xlsx")],
            initialdir=str(self.app.exports_dir),
            initialfile=f"{stem}_{date.today().isoformat()}.xlsx",
        )

    def import_excel(self):
        path = filedialog.askopenfilename(title="Select Excel file", filetypes=[("Excel files", "*.xlsx")])
        if not path:
            return
        try:
            if not self.app.can_action("opening_stock"):
                raise AuthorizationError("Your role cannot record opening stock.")
            ok, skipped = self.app.container.excel.import_opening_stock_excel(path)
            self.app.toast(f"Excel import: {ok} ok, {skipped} skipped.", kind="success")
            self.app.refresh_low_stock_panel()
        except Exception as e:
            self.app.handle_error("Import error", e, "Excel import failed.")

    def show_summary(self):
        start, end = self._window()
        try:
            rows, totals = self.app.reporting.sales_summary(start, end, self.app.location_id)
        except Exception as e:
            self.app.handle_error("Sales summary", e, "Failed to load sales summary.")
            return
        fmt = self.app.currency.format
        self.summary_var.set(
            f"{len(rows)} invoice(s)   Subtotal {fmt(totals.sub_total)}   Discount {fmt(totals.discount)}   "
            f"Service charge {fmt(totals.charge)}   Grand total {fmt(totals.grand_total)}"
        )

    def export_summary(self):
        start, end = self._window()
        path = self._ask_path(f"sales_summary_{self.period.get()}")
        if not path:
            return
        try:
            if not self.app.can_action("export_report"):
                raise AuthorizationError("Your role cannot export reports.")
            n = self.app.reporting.export_sales_summary_excel(path, start, end, self.app.location_id)
            self.app.toast(f"Sales summary exported ({n} invoices).", kind="success")
        except Exception as e:
            self.app.handle_error("Export error", e, "Excel export failed.")

    def print_summary(self):
        start, end = self._window()
        try:
            rows, totals = self.app.reporting.sales_summary(start, end, self.app.location_id)
            printing = self.app.container.printing
            path = printing.save(
                printing.sales_summary(rows, totals, start, end),
                self.app.export_path(f"sales_summary_{start.isoformat()}_{end.isoformat()}.txt"),
            )
        except Exception as e:
            self.app.handle_error("Print", e, "Failed to print sales summary.")
            return
        self.app.toast(f"Sales summary saved to {path.name}.", kind="success")

    def export_stock(self):
        try:
            if self.app.location_id is None:
                raise ValidationError("No Location Selected")
            path = self._ask_path("stock_balance")
            if not path:
                return
            n = self.app.reporting.export_stock_balance_excel(path, self.app.location_id)
            self.app.toast(f"Stock balance exported ({n} rows).", kind="success")
        except Exception as e:
            self.app.handle_error("Export error", e, "Excel export failed.")

    def export_suppliers(self):
        path = self._ask_path("supplier_balance")
        if not path:
            return
        try:
            n = self.app.reporting.export_supplier_balance_excel(path)
            self.app.toast(f"Supplier balances exported ({n} suppliers).", kind="success")
        except Exception as e:
            self.app.handle_error("Export error", e, "Excel export failed.")
