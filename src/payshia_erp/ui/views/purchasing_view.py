from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox, simpledialog
from dataclasses import replace
from datetime import date
import logging

from payshia_erp.domain.errors import AppError, AuthorizationError, ValidationError
from payshia_erp.domain.models import GrnBatch

log = logging.getLogger("payshia_erp.ui")


class PurchasingView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Purchasing")

        self.lines: list[dict] = []
        self.supplier_var = tk.StringVar()
        self.pick_var = tk.StringVar()
        self.po_total_var = tk.StringVar(value="Total: 0.00")

        self.supplier_map: dict[str, str] = {}
        self.product_map: dict[str, tuple] = {}

        self._build()

    def _build(self):
        tab = self.frame

        top = ttk.LabelFrame(tab, text="New purchase order")
        top.pack(fill="x", padx=10, pady=10)

        ttk.Label(top, text="Supplier").grid(row=0, column=0, padx=10, pady=8, sticky="w")
        self.supplier_combo = ttk.Combobox(top, textvariable=self.supplier_var, width=30, state="readonly")
        self.supplier_combo.grid(row=0, column=1, padx=10, pady=8, sticky="w")
        self.supplier_combo.bind("<<ComboboxSelected>>", self.on_supplier_selected)

        ttk.Label(top, text="Product").grid(row=1, column=0, padx=10, pady=8, sticky="w")
        self.product_combo = ttk.Combobox(top, textvariable=self.pick_var, width=44)
        self.product_combo.grid(row=1, column=1, padx=10, pady=8, sticky="w")

        ttk.Label(top, text="Qty").grid(row=1, column=2, padx=10, pady=8, sticky="w")
        self.qty_e = ttk.Entry(top, width=8)
        self.qty_e.grid(row=1, column=3, padx=10, pady=8)
        ttk.Label(top, text="Rate").grid(row=1, column=4, padx=10, pady=8, sticky="w")
        self.rate_e = ttk.Entry(top, width=10)
        self.rate_e.grid(row=1, column=5, padx=10, pady=8)
        ttk.Button(top, text="Add line", command=self.add_line).grid(row=1, column=6, padx=10, pady=8)

        cols = ("sku", "name", "qty", "rate", "line")
        self.lines_tree = ttk.Treeview(top, columns=cols, show="headings", height=5, style="Modern.Treeview")
        heads = {"sku": "SKU", "name": "Name", "qty": "Qty", "rate": "Rate", "line": "Line"}
        widths = {"sku": 120, "name": 340, "qty": 70, "rate": 110, "line": 110}
        for c in cols:
            self.lines_tree.heading(c, text=heads[c])
            self.lines_tree.column(c, width=widths[c], anchor="w")
        self.lines_tree.grid(row=2, column=0, columnspan=7, sticky="ew", padx=10, pady=(0, 8))

        row = ttk.Frame(top)
        row.grid(row=3, column=0, columnspan=7, sticky="ew", padx=10, pady=(0, 10))
        ttk.Label(row, textvariable=self.po_total_var).pack(side="left")
        ttk.Button(row, text="Clear lines", command=self.clear_lines).pack(side="right")
        ttk.Button(row, text="Create PO", style="Big.TButton", command=self.create_po).pack(side="right", padx=10)

        hist = ttk.LabelFrame(tab, text="Purchase orders (approved orders in green can be received)")
        hist.pack(fill="both", expand=True, padx=10, pady=(0, 10))

        btns = ttk.Frame(hist)
        btns.pack(fill="x", padx=10, pady=8)
        ttk.Button(btns, text="Receive goods (GRN)", command=self.receive_selected).pack(side="left")
        ttk.Button(btns, text="Print PO", command=self.print_selected).pack(side="left", padx=10)
        ttk.Button(btns, text="Pay supplier", command=self.pay_supplier).pack(side="left")
        ttk.Button(btns, text="Refresh", command=self.refresh_history).pack(side="right")

        cols = ("id", "po", "supplier", "status", "total", "delivery", "created")
        self.po_tree = ttk.Treeview(hist, columns=cols, show="headings", height=10, style="Modern.Treeview")
        heads = {
            "id": "ID", "po": "PO #", "supplier": "Supplier", "status": "Status",
            "total": "Total", "delivery": "Delivery", "created": "Created",
        }
        widths = {"id": 50, "po": 120, "supplier": 240, "status": 90, "total": 120, "delivery": 110, "created": 160}
        for c in cols:
            self.po_tree.heading(c, text=heads[c])
            self.po_tree.column(c, width=widths[c], anchor="w")
        self.po_tree.tag_configure("receivable", background="#dcfce7")
        self.po_tree.pack(fill="both", expand=True, padx=10, pady=(0, 10))

        grns = ttk.LabelFrame(tab, text="Goods received notes")
        grns.pack(fill="both", expand=True, padx=10, pady=(0, 10))

        btns = ttk.Frame(grns)
        btns.pack(fill="x", padx=10, pady=8)
        ttk.Button(btns, text="Print GRN", command=self.print_grn).pack(side="left")
        ttk.Button(btns, text="Return goods", command=self.return_goods).pack(side="left", padx=10)

        cols = ("id", "grn", "po", "supplier", "total", "payment", "created")
        self.grn_tree = ttk.Treeview(grns, columns=cols, show="headings", height=6, style="Modern.Treeview")
        heads = {
            "id": "ID", "grn": "GRN #", "po": "PO #", "supplier": "Supplier",
            "total": "Grand total", "payment": "Payment", "created": "Created",
        }
        widths = {"id": 50, "grn": 120, "po": 120, "supplier": 240, "total": 120, "payment": 90, "created": 160}
        for c in cols:
            self.grn_tree.heading(c, text=heads[c])
            self.grn_tree.column(c, width=widths[c], anchor="w")
        self.grn_tree.pack(fill="both", expand=True, padx=10, pady=(0, 10))

    # ---------- refresh ----------
    def refresh(self):
        suppliers = self.app.container.suppliers.list_suppliers()
        self.supplier_map = {s.supplier_name: s.supplier_id for s in suppliers}
        self.supplier_combo["values"] = list(self.supplier_map)

        self.product_map = {}
        for p in self.app.products_view.products:
            for var in p.variants:
                self.product_map[f"{var.sku} - {p.name}"] = (p, var)
        self.product_combo["values"] = list(self.product_map)
        self.refresh_history()

    def refresh_history(self):
        names = {v: k for k, v in self.supplier_map.items()}
        for item in self.po_tree.get_children():
            self.po_tree.delete(item)
        fmt = self.app.currency.format
        receivable = {po.id for po in self.app.purchases.receivable_purchase_orders()}
        for po in self.app.purchases.list_purchase_orders():
            self.po_tree.insert("", "end", values=(
                po.id, po.po_number, names.get(po.supplier_id, po.supplier_id), po.po_status,
                fmt(po.total_amount), po.delivery_date or "", po.created_at,
            ), tags=("receivable",) if po.id in receivable else ())

        for item in self.grn_tree.get_children():
            self.grn_tree.delete(item)
        for g in self.app.purchases.list_grns():
            self.grn_tree.insert("", "end", values=(
                g.id, g.grn_number, g.po_number, names.get(g.supplier_id, g.supplier_id),
                fmt(g.grand_total), g.payment_status, g.created_at,
            ))

    # ---------- new PO ----------
    def on_supplier_selected(self, _evt=None):
        supplier_id = self.supplier_map.get(self.supplier_var.get())
        if not supplier_id:
            return
        try:
            products = self.app.catalog.products_for_supplier(supplier_id)
        except AppError as e:
            log.warning("supplier_products_failed supplier_id=%s error=%s", supplier_id, e)
            return
        if not products:
            # no supplier link on the catalog yet, keep the full list
            return
        choices = [f"{var.sku} - {p.name}" for p in products for var in p.variants]
        self.product_combo["values"] = choices
        self.pick_var.set("")

    def add_line(self):
        found = self.product_map.get(self.pick_var.get().strip())
        if not found:
            messagebox.showwarning("Validation", "Pick a product from the dropdown list.")
            return
        product, variant = found
        try:
            qty = float(self.qty_e.get().strip())
            rate = float(self.rate_e.get().strip() or product.cost_price)
        except ValueError:
            messagebox.showwarning("Validation", "Qty and rate must be numbers.")
            return

        self.lines.append({
            "product_id": product.id,
            "product_variant_id": variant.id,
            "sku": variant.sku,
            "name": product.name,
            "quantity": qty,
            "order_rate": rate,
        })
        self.qty_e.delete(0, tk.END)
        self.rate_e.delete(0, tk.END)
        self.refresh_lines()

    def refresh_lines(self):
        for item in self.lines_tree.get_children():
            self.lines_tree.delete(item)
        fmt = self.app.currency.format
        total = 0.0
        for it in self.lines:
            line = it["quantity"] * it["order_rate"]
            total += line
            self.lines_tree.insert("", "end", values=(it["sku"], it["name"], f"{it['quantity']:g}", fmt(it["order_rate"]), fmt(line)))
        self.po_total_var.set(f"Total: {fmt(total)}")

    def clear_lines(self):
        self.lines = []
        self.refresh_lines()

    def create_po(self):
        try:
            if not self.app.can_action("create_purchase_order"):
                raise AuthorizationError("Your role cannot create purchase orders.")
            po_number = self.app.purchases.create_purchase_order(
                self.supplier_map.get(self.supplier_var.get(), ""),
                self.lines,
            )
        except Exception as e:
            self.app.handle_error("Purchase order", e, "Failed to create purchase order.")
            return

        self.app.toast(f"Purchase order {po_number} created.", kind="success")
        self.clear_lines()
        self.refresh_history()
        self.app.refresh_kpis()

    # ---------- selected PO ----------
    def _selected_po_id(self) -> str:
        sel = self.po_tree.selection()
        if not sel:
            raise ValidationError("Select a purchase order.")
        return str(self.po_tree.item(sel[0], "values")[0])

    def receive_selected(self):
        try:
            if not self.app.can_action("receive_goods"):
                raise AuthorizationError("Your role cannot receive goods.")
            draft = self.app.purchases.build_grn_draft(self._selected_po_id())
            batch = simpledialog.askstring("Batch", "Batch number for all received lines:", parent=self.frame)
            if not batch:
                return
            lines = tuple(
                replace(line, batches=(GrnBatch(batch_number=batch, received_qty=line.receivable),))
                for line in draft.lines
                if line.receivable > 0
            )
            if not lines:
                raise ValidationError("Everything on this purchase order has already been received.")
            grn_number = self.app.purchases.create_grn(replace(draft, lines=lines))
        except Exception as e:
            self.app.handle_error("Goods received", e, "Failed to create GRN.")
            return

        self.app.toast(f"GRN {grn_number} created.", kind="success")
        self.refresh_history()
        self.app.refresh_low_stock_panel()

    def print_selected(self):
        try:
            po = self.app.purchases.get_purchase_order(self._selected_po_id())
            supplier = self.app.container.suppliers.get_supplier(po.supplier_id)
            printing = self.app.container.printing
            path = printing.save(printing.purchase_order(po, supplier), self.app.export_path(f"po_{po.po_number}.txt"))
        except Exception as e:
            self.app.handle_error("Print", e, "Failed to print purchase order.")
            return
        self.app.toast(f"Purchase order saved to {path.name}.", kind="success")

    def pay_supplier(self):
        try:
            if not self.app.can_action("supplier_payment"):
                raise AuthorizationError("Your role cannot pay suppliers.")
            po = self.app.purchases.get_purchase_order(self._selected_po_id())
            due = self.app.purchases.due_grns(po.supplier_id)
            if not due:
                raise ValidationError("This supplier has no unpaid GRNs.")
            accounts = self.app.container.accounting.payment_accounts()
            if not accounts:
                raise ValidationError("No payment account is set up.")
            outstanding = sum(g.grand_total for g in due)
            amount = simpledialog.askfloat(
                "Pay supplier",
                f"{len(due)} unpaid GRN(s), {self.app.currency.format(outstanding)} outstanding.\n"
                f"Amount to pay from {accounts[0].name}:",
                initialvalue=outstanding,
                parent=self.frame,
            )
            if amount is None:
                return
            payment = self.app.purchases.record_payment(
                po.supplier_id, amount, str(accounts[0].code), [g.id for g in due], payment_date=date.today(),
            )
        except Exception as e:
            self.app.handle_error("Supplier payment", e, "Failed to record payment.")
            return
        self.app.toast(f"Payment of {self.app.currency.format(payment.amount)} recorded.", kind="success")

    # ---------- selected GRN ----------
    def _selected_grn(self):
        sel = self.grn_tree.selection()
        if not sel:
            raise ValidationError("Select a GRN.")
        return self.app.purchases.get_grn(str(self.grn_tree.item(sel[0], "values")[0]))

    def print_grn(self):
        try:
            grn = self._selected_grn()
            supplier = self.app.container.suppliers.get_supplier(grn.supplier_id)
            printing = self.app.container.printing
            path = printing.save(printing.grn(grn, supplier), self.app.export_path(f"grn_{grn.grn_number}.txt"))
        except Exception as e:
            self.app.handle_error("Print", e, "Failed to print GRN.")
            return
        self.app.toast(f"GRN saved to {path.name}.", kind="success")

    def return_goods(self):
        try:
            if not self.app.can_action("supplier_return"):
                raise AuthorizationError("Your role cannot return goods to suppliers.")
            grn = self._selected_grn()
            items = []
            for it in grn.items:
                label = it.product_name or it.variant_sku or it.product_id
                qty = simpledialog.askfloat(
                    "Return goods",
                    f"{label}: received {it.received_qty:g}. Quantity to return:",
                    initialvalue=0,
                    minvalue=0,
                    maxvalue=it.received_qty,
                    parent=self.frame,
                )
                if qty is None:
                    return
                reason = simpledialog.askstring("Return goods", f"Reason for {label}:", parent=self.frame)
                if reason is None:
                    return
                items.append({
                    "product_id": it.product_id,
                    "product_variant_id": it.product_variant_id,
                    "product_name": label,
                    "received_qty": it.received_qty,
                    "unit_price": it.order_rate,
                    "return_qty": qty,
                    "reason": reason,
                })
            ret = self.app.purchases.create_supplier_return(grn.id, items)
            supplier = self.app.container.suppliers.get_supplier(grn.supplier_id)
            printing = self.app.container.printing
            path = printing.save(
                printing.supplier_return(ret, supplier, grn_number=grn.grn_number),
                self.app.export_path(f"return_{grn.grn_number}.txt"),
            )
        except Exception as e:
            self.app.handle_error("Supplier return", e, "Failed to create supplier return.")
            return
        log.info("supplier_return_saved grn=%s path=%s", grn.grn_number, path)
        self.app.toast(f"Return of {self.app.currency.format(ret.total_value)} recorded.", kind="success")
        self.app.refresh_low_stock_panel()
