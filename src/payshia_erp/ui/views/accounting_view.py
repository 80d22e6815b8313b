from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from datetime import date

from payshia_erp.services.accounting_service import ASSET_STATUSES, DEPRECIATION_METHODS


class AccountingView:
    """Two-line journal vouchers, expenses and the fixed-asset register."""

    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Accounting")

        self.accounts: dict[str, int] = {}
        self.debit_var = tk.StringVar()
        self.credit_var = tk.StringVar()
        self.exp_account_var = tk.StringVar()
        self.pay_account_var = tk.StringVar()
        self.asset_status_var = tk.StringVar(value=ASSET_STATUSES[0])
        self.asset_method_var = tk.StringVar(value=DEPRECIATION_METHODS[0])
        self._build()

    def _build(self):
        tab = self.frame

        left = ttk.Frame(tab)
        left.pack(side="left", fill="y", padx=(10, 6), pady=8)

        journal = ttk.LabelFrame(left, text="Journal voucher")
        journal.pack(fill="x")
        self.debit_combo = self._combo(journal, "Debit", 0, self.debit_var)
        self.credit_combo = self._combo(journal, "Credit", 1, self.credit_var)
        self.j_amount_e = self._entry(journal, "Amount", 2)
        self.j_narration_e = self._entry(journal, "Narration", 3)
        ttk.Button(journal, text="Post", command=self.on_post_journal)\
            .grid(row=4, column=0, columnspan=2, sticky="ew", padx=8, pady=(6, 8))

        expense = ttk.LabelFrame(left, text="Expense")
        expense.pack(fill="x", pady=10)
        self.payee_e = self._entry(expense, "Payee", 0)
        self.e_amount_e = self._entry(expense, "Amount", 1)
        self.exp_combo = self._combo(expense, "Expense account", 2, self.exp_account_var)
        self.pay_combo = self._combo(expense, "Paid from", 3, self.pay_account_var)
        self.e_notes_e = self._entry(expense, "Notes", 4)
        ttk.Button(expense, text="Record expense", command=self.on_record_expense)\
            .grid(row=5, column=0, columnspan=2, sticky="ew", padx=8, pady=(6, 8))

        asset = ttk.LabelFrame(left, text="Fixed asset")
        asset.pack(fill="x")
        self.asset_name_e = self._entry(asset, "Name", 0)
        self.asset_type_e = self._entry(asset, "Type", 1)
        self.asset_cost_e = self._entry(asset, "Cost", 2)
        self.asset_dep_e = self._entry(asset, "Acc. depreciation", 3, "0")
        ttk.Combobox(asset, textvariable=self.asset_status_var, values=list(ASSET_STATUSES), state="readonly", width=18)\
            .grid(row=4, column=0, columnspan=2, sticky="ew", padx=8, pady=4)
        ttk.Combobox(asset, textvariable=self.asset_method_var, values=list(DEPRECIATION_METHODS), state="readonly", width=18)\
            .grid(row=5, column=0, columnspan=2, sticky="ew", padx=8, pady=4)
        ttk.Button(asset, text="Register asset", command=self.on_register_asset)\
            .grid(row=6, column=0, columnspan=2, sticky="ew", padx=8, pady=(6, 8))

        right = ttk.LabelFrame(tab, text="Chart of accounts")
        right.pack(side="right", fill="both", expand=True, padx=(0, 10), pady=8)

        cols = ("code", "name", "type", "sub_type", "balance")
        self.tree = ttk.Treeview(right, columns=cols, show="headings", height=14, style="Modern.Treeview")
        heads = {"code": "Code", "name": "Account", "type": "Type", "sub_type": "Sub type", "balance": "Balance"}
        widths = {"code": 70, "name": 220, "type": 90, "sub_type": 140, "balance": 120}
        for c in cols:
            self.tree.heading(c, text=heads[c])
            self.tree.column(c, width=widths[c], anchor="w")
        self.tree.pack(fill="both", expand=True, padx=6, pady=6)

        expenses = ttk.LabelFrame(right, text="Expenses")
        expenses.pack(fill="both", expand=True, padx=6, pady=(0, 6))
        cols = ("date", "payee", "amount", "expense", "paid_from")
        self.expense_tree = ttk.Treeview(expenses, columns=cols, show="headings", height=8, style="Modern.Treeview")
        for c, label, w in (("date", "Date", 90), ("payee", "Payee", 180), ("amount", "Amount", 110),
                            ("expense", "Expense a/c", 90), ("paid_from", "Paid from", 90)):
            self.expense_tree.heading(c, text=label)
            self.expense_tree.column(c, width=w, anchor="w")
        self.expense_tree.pack(fill="both", expand=True, padx=6, pady=6)

    def _entry(self, parent, label, row, value=""):
        ttk.Label(parent, text=label).grid(row=row, column=0, sticky="w", padx=8, pady=4)
        e = ttk.Entry(parent, width=22)
        e.grid(row=row, column=1, sticky="ew", padx=8, pady=4)
        if value:
            e.insert(0, value)
        return e

    def _combo(self, parent, label, row, var):
        ttk.Label(parent, text=label).grid(row=row, column=0, sticky="w", padx=8, pady=4)
        cb = ttk.Combobox(parent, textvariable=var, width=20, state="readonly")
        cb.grid(row=row, column=1, sticky="ew", padx=8, pady=4)
        return cb

    def refresh(self):
        accounting = self.app.container.accounting
        accounts = accounting.list_accounts()
        self.accounts = {f"{a.code} {a.name}": a.code for a in accounts}
        labels = list(self.accounts)
        self.debit_combo["values"] = labels
        self.credit_combo["values"] = labels
        self.exp_combo["values"] = [f"{a.code} {a.name}" for a in accounting.expense_accounts()]
        self.pay_combo["values"] = [f"{a.code} {a.name}" for a in accounting.payment_accounts()]

        for item in self.tree.get_children():
            self.tree.delete(item)
        fmt = self.app.currency.format
        for a in accounts:
            self.tree.insert("", "end", values=(a.code, a.name, a.type, a.sub_type, fmt(a.balance)))

        for item in self.expense_tree.get_children():
            self.expense_tree.delete(item)
        for e in accounting.list_expenses():
            self.expense_tree.insert("", "end", values=(
                e.date, e.payee, fmt(e.amount), e.expense_account_id, e.payment_account_id
            ))

    # ---------- actions ----------
    def on_post_journal(self):
        try:
            self.app.require_action("post_journal")
            amount = self.j_amount_e.get()
            entry = self.app.container.accounting.post_journal_entry(self.j_narration_e.get(), [
                {"account_code": self.accounts.get(self.debit_var.get()), "debit": amount},
                {"account_code": self.accounts.get(self.credit_var.get()), "credit": amount},
            ])
        except Exception as e:
            self.app.handle_error("Journal", e, "Failed to post journal entry.")
            return
        self.app.toast(f"Journal entry posted ({self.app.currency.format(entry.total_debit)}).", kind="success")
        self.j_amount_e.delete(0, tk.END)
        self.j_narration_e.delete(0, tk.END)
        self.refresh()

    def on_record_expense(self):
        try:
            self.app.require_action("record_expense")
            self.app.container.accounting.record_expense(
                self.payee_e.get(),
                self.e_amount_e.get(),
                self.accounts.get(self.exp_account_var.get()),
                self.accounts.get(self.pay_account_var.get()),
                notes=self.e_notes_e.get(),
            )
        except Exception as e:
            self.app.handle_error("Expense", e, "Failed to record expense.")
            return
        self.app.toast("Expense recorded.", kind="success")
        for e in (self.payee_e, self.e_amount_e, self.e_notes_e):
            e.delete(0, tk.END)
        self.refresh()

    def on_register_asset(self):
        try:
            self.app.require_action("manage_fixed_assets")
            asset = self.app.container.accounting.register_fixed_asset(
                self.asset_name_e.get(),
                self.asset_type_e.get(),
                date.today(),
                self.asset_cost_e.get(),
                status=self.asset_status_var.get(),
                depreciation_method=self.asset_method_var.get(),
                accumulated_depreciation=self.asset_dep_e.get(),
            )
        except Exception as e:
            self.app.handle_error("Fixed asset", e, "Failed to register asset.")
            return
        self.app.toast(
            f"{asset.name} registered. Net book value {self.app.currency.format(asset.net_book_value)}.",
            kind="success",
        )
        for e in (self.asset_name_e, self.asset_type_e, self.asset_cost_e):
            e.delete(0, tk.END)
