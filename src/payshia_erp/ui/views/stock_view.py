from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox
from datetime import date
import logging

from payshia_erp.domain.errors import AppError, AuthorizationError, ValidationError

log = logging.getLogger("payshia_erp.ui")


class StockView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Stock")

        self.lines: list[dict] = []
        self.dest_var = tk.StringVar()
        self.value_var = tk.StringVar(value="Value: 0.00")
        self._build()

    def _build(self):
        tab = self.frame

        left = ttk.LabelFrame(tab, text="Stock balance (current location)")
        left.pack(side="left", fill="both", expand=True, padx=(10, 6), pady=10)

        cols = ("sku", "name", "stock", "reorder")
        self.stock_tree = ttk.Treeview(left, columns=cols, show="headings", height=22, style="Modern.Treeview")
        heads = {"sku": "SKU", "name": "Product", "stock": "On hand", "reorder": "Reorder level"}
        widths = {"sku": 120, "name": 240, "stock": 80, "reorder": 100}
        for c in cols:
            self.stock_tree.heading(c, text=heads[c])
            self.stock_tree.column(c, width=widths[c], anchor="w")
        self.stock_tree.tag_configure("low", background="#fee2e2")
        self.stock_tree.pack(fill="both", expand=True, padx=6, pady=6)

        right = ttk.Frame(tab)
        right.pack(side="right", fill="both", padx=(0, 10), pady=10)

        form = ttk.LabelFrame(right, text="Transfer stock out of this location")
        form.pack(fill="x")

        ttk.Label(form, text="To").grid(row=0, column=0, sticky="w", padx=8, pady=6)
        self.dest_combo = ttk.Combobox(form, textvariable=self.dest_var, width=28, state="readonly")
        self.dest_combo.grid(row=0, column=1, columnspan=3, sticky="w", padx=8, pady=6)

        ttk.Label(form, text="SKU").grid(row=1, column=0, sticky="w", padx=8, pady=6)
        self.sku_e = ttk.Entry(form, width=16)
        self.sku_e.grid(row=1, column=1, padx=8, pady=6)
        ttk.Label(form, text="Qty").grid(row=1, column=2, sticky="w", padx=8, pady=6)
        self.qty_e = ttk.Entry(form, width=8)
        self.qty_e.grid(row=1, column=3, padx=8, pady=6)
        ttk.Button(form, text="Add", command=self.add_line).grid(row=1, column=4, padx=8, pady=6)

        self.lines_list = tk.Listbox(form, height=6)
        self.lines_list.grid(row=2, column=0, columnspan=5, sticky="ew", padx=8, pady=(0, 6))

        row = ttk.Frame(form)
        row.grid(row=3, column=0, columnspan=5, sticky="ew", padx=8, pady=(0, 8))
        ttk.Label(row, textvariable=self.value_var).pack(side="left")
        ttk.Button(row, text="Clear", command=self.clear_lines).pack(side="right")
        ttk.Button(row, text="Transfer", style="Big.TButton", command=self.create_transfer).pack(side="right", padx=8)

        hist = ttk.LabelFrame(right, text="Transfers")
        hist.pack(fill="both", expand=True, pady=(10, 0))
        cols = ("number", "from", "to", "date", "status")
        self.transfer_tree = ttk.Treeview(hist, columns=cols, show="headings", height=10, style="Modern.Treeview")
        for c, label, w in (("number", "Transfer #", 110), ("from", "From", 60), ("to", "To", 60),
                            ("date", "Date", 100), ("status", "Status", 80)):
            self.transfer_tree.heading(c, text=label)
            self.transfer_tree.column(c, width=w, anchor="w")
        self.transfer_tree.pack(fill="both", expand=True, padx=6, pady=6)

    def refresh(self):
        for item in self.stock_tree.get_children():
            self.stock_tree.delete(item)
        if self.app.location_id is not None:
            for lvl in self.app.inventory.location_stock(self.app.location_id):
                tags = ("low",) if lvl.stock <= lvl.reorder_level else ()
                self.stock_tree.insert("", "end", values=(
                    lvl.sku, lvl.product_name, f"{lvl.stock:g}", f"{lvl.reorder_level:g}"
                ), tags=tags)

        current = self.app.location_var.get()
        self.dest_combo["values"] = [label for label in self.app.location_labels() if label != current]

        for item in self.transfer_tree.get_children():
            self.transfer_tree.delete(item)
        for t in self.app.inventory.list_transfers():
            self.transfer_tree.insert("", "end", values=(
                t.stock_transfer_number, t.from_location, t.to_location, t.transfer_date, t.status
            ))

    def add_line(self):
        sku = self.sku_e.get().strip()
        try:
            qty = float(self.qty_e.get().strip())
        except ValueError:
            messagebox.showwarning("Validation", "Qty must be a number.")
            return
        if not sku:
            messagebox.showwarning("Validation", "Enter a SKU.")
            return
        self.lines.append({"sku": sku, "quantity": qty})
        self.sku_e.delete(0, tk.END)
        self.qty_e.delete(0, tk.END)
        self.refresh_lines()

    def refresh_lines(self):
        self.lines_list.delete(0, tk.END)
        for it in self.lines:
            self.lines_list.insert(tk.END, f"{it['sku']}  x {it['quantity']:g}")
        try:
            value = self.app.inventory.transfer_value(self.lines)
        except AppError as e:
            log.warning("transfer_value_failed error=%s", e)
            value = 0.0
        self.value_var.set(f"Value: {self.app.currency.format(value)}")

    def clear_lines(self):
        self.lines = []
        self.refresh_lines()

    def create_transfer(self):
        try:
            if not self.app.can_action("stock_transfer"):
                raise AuthorizationError("Your role cannot transfer stock.")
            dest = self.app.location_for(self.dest_var.get())
            if dest is None:
                raise ValidationError("Destination location is required.")
            number = self.app.inventory.create_transfer(date.today(), self.app.location_id, dest, self.lines)
        except Exception as e:
            self.app.handle_error("Stock transfer", e, "Failed to create transfer.")
            return
        self.app.toast(f"Transfer {number} created.", kind="success")
        self.clear_lines()
        self.refresh()
        self.app.refresh_low_stock_panel()
