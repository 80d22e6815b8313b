from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox, simpledialog

from payshia_erp.domain.errors import AuthorizationError, NotFoundError, ValidationError
from payshia_erp.services.sales_service import CHANNELS, INVOICE_STATUSES, RECEIPT_TYPES


class SalesView:
    """Invoice list with the documents and payments that hang off an invoice."""

    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Invoices")

        self.method_var = tk.StringVar(value="Cash")
        self.bank_var = tk.BooleanVar(value=False)
        self.invoices: dict[str, object] = {}
        self.customer_var = tk.StringVar()
        self.channel_var = tk.StringVar(value="Retail")
        self.status_var = tk.StringVar(value="Draft")
        self.customer_ids: dict[str, str] = {}
        self.lines: list[dict] = []
        self._build()

    def _build(self):
        tab = self.frame

        new = ttk.LabelFrame(tab, text="New invoice")
        new.pack(fill="x", padx=10, pady=(10, 0))

        ttk.Label(new, text="Customer").grid(row=0, column=0, sticky="w", padx=8, pady=6)
        self.customer_combo = ttk.Combobox(new, textvariable=self.customer_var, width=26, state="readonly")
        self.customer_combo.grid(row=0, column=1, sticky="w", padx=8, pady=6)
        ttk.Label(new, text="Channel").grid(row=0, column=2, sticky="w", padx=8, pady=6)
        ttk.Combobox(new, textvariable=self.channel_var, values=[c for c in CHANNELS if c != "POS"], width=12,
                     state="readonly").grid(row=0, column=3, sticky="w", padx=8, pady=6)
        ttk.Label(new, text="Status").grid(row=0, column=4, sticky="w", padx=8, pady=6)
        ttk.Combobox(new, textvariable=self.status_var, values=list(INVOICE_STATUSES), width=10, state="readonly")\
            .grid(row=0, column=5, sticky="w", padx=8, pady=6)

        ttk.Label(new, text="SKU").grid(row=1, column=0, sticky="w", padx=8, pady=6)
        self.sku_e = ttk.Entry(new, width=16)
        self.sku_e.grid(row=1, column=1, sticky="w", padx=8, pady=6)
        ttk.Label(new, text="Qty").grid(row=1, column=2, sticky="w", padx=8, pady=6)
        self.qty_e = ttk.Entry(new, width=8)
        self.qty_e.grid(row=1, column=3, sticky="w", padx=8, pady=6)
        ttk.Button(new, text="Add line", command=self.add_line).grid(row=1, column=4, padx=8, pady=6)
        ttk.Button(new, text="Clear", command=self.clear_lines).grid(row=1, column=5, padx=8, pady=6)

        self.lines_list = tk.Listbox(new, height=4)
        self.lines_list.grid(row=2, column=0, columnspan=6, sticky="ew", padx=8, pady=(0, 6))
        ttk.Button(new, text="Create invoice", style="Big.TButton", command=self.create_invoice)\
            .grid(row=3, column=0, columnspan=6, sticky="e", padx=8, pady=(0, 8))

        actions = ttk.LabelFrame(tab, text="Selected invoice")
        actions.pack(fill="x", padx=10, pady=10)

        ttk.Button(actions, text="Print invoice", command=self.print_invoice).pack(side="left", padx=10, pady=8)
        ttk.Checkbutton(actions, text="Bank details", variable=self.bank_var).pack(side="left")
        ttk.Button(actions, text="Dispatch note", command=self.print_dispatch_note).pack(side="left", padx=10)
        ttk.Button(actions, text="Gate pass", command=self.print_gate_pass).pack(side="left")

        ttk.Label(actions, text="Method").pack(side="left", padx=(24, 6))
        ttk.Combobox(actions, textvariable=self.method_var, values=list(RECEIPT_TYPES), width=14, state="readonly")\
            .pack(side="left")
        ttk.Button(actions, text="Take payment", style="Big.TButton", command=self.take_payment)\
            .pack(side="left", padx=10, pady=8)
        ttk.Button(actions, text="Refresh", command=self.refresh).pack(side="right", padx=10)
        ttk.Button(actions, text="Pending for customer", command=self.show_pending).pack(side="right")

        lists = ttk.Frame(tab)
        lists.pack(fill="both", expand=True, padx=10, pady=(0, 10))

        box = ttk.LabelFrame(lists, text="Invoices")
        box.pack(side="left", fill="both", expand=True)

        cols = ("number", "date", "customer", "status", "payment", "total", "location")
        self.tree = ttk.Treeview(box, columns=cols, show="headings", height=20, style="Modern.Treeview")
        heads = {
            "number": "Invoice #", "date": "Date", "customer": "Customer", "status": "Status",
            "payment": "Payment", "total": "Grand total", "location": "Location",
        }
        widths = {"number": 130, "date": 150, "customer": 90, "status": 80, "payment": 90, "total": 120, "location": 80}
        for c in cols:
            self.tree.heading(c, text=heads[c])
            self.tree.column(c, width=widths[c], anchor="w")

        vsb = ttk.Scrollbar(box, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscrollcommand=vsb.set)
        self.tree.pack(side="left", fill="both", expand=True, padx=(6, 0), pady=6)
        vsb.pack(side="right", fill="y", pady=6)

        rec = ttk.LabelFrame(lists, text="Receipts")
        rec.pack(side="right", fill="both", padx=(10, 0))
        cols = ("number", "date", "invoice", "method", "amount")
        self.receipt_tree = ttk.Treeview(rec, columns=cols, show="headings", height=20, style="Modern.Treeview")
        for c, label, w in (("number", "Receipt #", 100), ("date", "Date", 90), ("invoice", "Invoice #", 110),
                            ("method", "Method", 90), ("amount", "Amount", 100)):
            self.receipt_tree.heading(c, text=label)
            self.receipt_tree.column(c, width=w, anchor="w")
        self.receipt_tree.pack(fill="both", expand=True, padx=6, pady=6)

    def _fill_invoices(self, invoices):
        for item in self.tree.get_children():
            self.tree.delete(item)
        fmt = self.app.currency.format
        self.invoices = {}
        for inv in invoices:
            iid = self.tree.insert("", "end", values=(
                inv.invoice_number, inv.invoice_date, inv.customer_code, inv.invoice_status,
                inv.payment_status, fmt(inv.grand_total), inv.location_id,
            ))
            self.invoices[iid] = inv

    def refresh(self):
        self._fill_invoices(self.app.sales.list_invoices())

        for item in self.receipt_tree.get_children():
            self.receipt_tree.delete(item)
        fmt = self.app.currency.format
        for r in self.app.sales.list_receipts():
            self.receipt_tree.insert("", "end", values=(r.rec_number, r.date, r.ref_id, r.payment_method, fmt(r.amount)))

        self.customer_ids = {
            f"{c.customer_id} {c.first_name} {c.last_name}".strip(): c.customer_id
            for c in self.app.customers.list_customers()
        }
        self.customer_combo["values"] = list(self.customer_ids)

    # ---------- new invoice ----------
    def add_line(self):
        try:
            qty = float(self.qty_e.get().strip())
            product, variant_id = self.app.catalog.find_by_sku(self.sku_e.get())
            price = product.price
            if self.channel_var.get() == "Wholesale" and product.wholesale_price > 0:
                price = product.wholesale_price
            batches = self.app.inventory.available_batches(product.id, variant_id, self.app.location_id)
        except ValueError:
            messagebox.showwarning("Validation", "Qty must be a number.")
            return
        except Exception as e:
            self.app.handle_error("Invoice", e, "Failed to add line.")
            return
        self.lines.append({
            "product_id": product.id,
            "name": product.name,
            "quantity": qty,
            "unit_price": price,
            "cost_price": product.cost_price,
            "batch": batches[0].patch_code if batches else None,
        })
        self.sku_e.delete(0, tk.END)
        self.qty_e.delete(0, tk.END)
        self.refresh_lines()

    def refresh_lines(self):
        self.lines_list.delete(0, tk.END)
        fmt = self.app.currency.format
        for it in self.lines:
            batch = it["batch"] or "no batch"
            self.lines_list.insert(tk.END, f"{it['name']}  x {it['quantity']:g}  @ {fmt(it['unit_price'])}  [{batch}]")

    def clear_lines(self):
        self.lines = []
        self.refresh_lines()

    def create_invoice(self):
        try:
            if not self.app.can_action("create_invoice"):
                raise AuthorizationError("Your role cannot create invoices.")
            number = self.app.sales.create_invoice(
                self.customer_ids.get(self.customer_var.get(), ""),
                self.lines,
                status=self.status_var.get(),
                channel=self.channel_var.get(),
            )
        except Exception as e:
            self.app.handle_error("Invoice", e, "Failed to create invoice.")
            return
        self.app.toast(f"Invoice {number} created.", kind="success")
        self.clear_lines()
        self.refresh()
        self.app.refresh_low_stock_panel()

    def show_pending(self):
        try:
            customer = self.customer_ids.get(self.customer_var.get())
            if not customer:
                raise ValidationError("Pick a customer under New invoice first.")
            pending = self.app.sales.pending_invoices(customer)
        except Exception as e:
            self.app.handle_error("Invoices", e, "Failed to load pending invoices.")
            return
        self._fill_invoices(pending)
        self.app.toast(f"{len(pending)} pending invoice(s) for customer {customer}.", kind="info")

    # ---------- helpers ----------
    def _selected(self):
        sel = self.tree.selection()
        if not sel:
            raise ValidationError("Select an invoice.")
        inv = self.invoices[sel[0]]
        try:
            # list rows carry no lines
            return self.app.sales.get_invoice(inv.id)
        except NotFoundError:
            return inv

    def _customer(self, inv):
        try:
            return self.app.customers.get_customer(inv.customer_code)
        except NotFoundError:
            return None

    def _save(self, text: str, filename: str):
        path = self.app.container.printing.save(text, self.app.export_path(filename))
        self.app.toast(f"Saved {path.name}.", kind="success")

    # ---------- documents ----------
    def print_invoice(self):
        try:
            inv = self._selected()
            text = self.app.container.printing.invoice(inv, self._customer(inv), show_bank_details=self.bank_var.get())
            self._save(text, f"invoice_{inv.invoice_number}.txt")
        except Exception as e:
            self.app.handle_error("Print", e, "Failed to print invoice.")

    def print_dispatch_note(self):
        try:
            inv = self._selected()
            vehicle = simpledialog.askstring("Dispatch note", "Vehicle number:", parent=self.frame)
            if vehicle is None:
                return
            text = self.app.container.printing.dispatch_note(inv, self._customer(inv), vehicle_no=vehicle.strip())
            self._save(text, f"dispatch_{inv.invoice_number}.txt")
        except Exception as e:
            self.app.handle_error("Print", e, "Failed to print dispatch note.")

    def print_gate_pass(self):
        try:
            inv = self._selected()
            text = self.app.container.printing.gate_pass(inv, self._customer(inv))
            self._save(text, f"gatepass_{inv.invoice_number}.txt")
        except Exception as e:
            self.app.handle_error("Print", e, "Failed to print gate pass.")

    # ---------- receipts ----------
    def take_payment(self):
        try:
            if not self.app.can_action("create_receipt"):
                raise AuthorizationError("Your role cannot take payments.")
            inv = self._selected()
            balance = self.app.sales.invoice_balance(inv)
            if balance <= 0:
                raise ValidationError(f"Invoice {inv.invoice_number} is fully paid.")
            amount = simpledialog.askfloat(
                "Take payment",
                f"Balance due on {inv.invoice_number}: {self.app.currency.format(balance)}\nAmount received:",
                initialvalue=balance,
                parent=self.frame,
            )
            if amount is None:
                return
            receipt = self.app.sales.create_receipt(
                inv.customer_code, inv.invoice_number, amount, method=self.method_var.get(),
            )
            printing = self.app.container.printing
            text = printing.receipt(receipt, self._customer(inv), invoice_number=inv.invoice_number)
            path = printing.save(text, self.app.export_path(f"receipt_{receipt.rec_number or inv.invoice_number}.txt"))
        except Exception as e:
            self.app.handle_error("Payment", e, "Failed to record payment.")
            return
        self.app.toast(f"Payment of {self.app.currency.format(receipt.amount)} saved to {path.name}.", kind="success")
        self.refresh()
