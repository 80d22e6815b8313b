from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox

from payshia_erp.domain.errors import AuthorizationError
from payshia_erp.services.customer_service import EMAIL_AUDIENCES, SMS_AUDIENCES


class CustomersView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Customers")

        self.audience_var = tk.StringVar(value="All")
        self.email_audience_var = tk.StringVar(value="All")
        self.tiers_var = tk.StringVar(value="")
        self._build()

    def _build(self):
        tab = self.frame

        left = ttk.Frame(tab)
        left.pack(side="left", fill="y", padx=(10, 6), pady=8)

        form = ttk.LabelFrame(left, text="Add customer")
        form.pack(fill="x")
        self.first_e = self._entry(form, "First name", 0)
        self.last_e = self._entry(form, "Last name", 1)
        self.phone_e = self._entry(form, "Phone", 2)
        self.email_e = self._entry(form, "Email", 3)
        self.credit_e = self._entry(form, "Credit limit", 4)
        ttk.Button(form, text="Add customer", command=self.on_add_customer)\
            .grid(row=5, column=0, columnspan=2, sticky="ew", padx=8, pady=(6, 8))

        loyalty = ttk.LabelFrame(left, text="Loyalty tiers (points)")
        loyalty.pack(fill="x", pady=10)
        schema = self.app.customers.schema
        self.silver_e = self._entry(loyalty, "Silver", 0, str(schema.silver))
        self.gold_e = self._entry(loyalty, "Gold", 1, str(schema.gold))
        self.platinum_e = self._entry(loyalty, "Platinum", 2, str(schema.platinum))
        ttk.Button(loyalty, text="Save tiers", command=self.on_save_schema)\
            .grid(row=3, column=0, columnspan=2, sticky="ew", padx=8, pady=(6, 4))
        ttk.Label(loyalty, textvariable=self.tiers_var).grid(row=4, column=0, columnspan=2, sticky="w", padx=8, pady=(0, 8))

        sms = ttk.LabelFrame(left, text="SMS campaign")
        sms.pack(fill="x")
        self.sms_name_e = self._entry(sms, "Name", 0)
        ttk.Label(sms, text="Audience").grid(row=1, column=0, sticky="w", padx=8, pady=4)
        ttk.Combobox(sms, textvariable=self.audience_var, values=list(SMS_AUDIENCES), width=14, state="readonly")\
            .grid(row=1, column=1, sticky="ew", padx=8, pady=4)
        self.sms_text = tk.Text(sms, width=30, height=4)
        self.sms_text.grid(row=2, column=0, columnspan=2, padx=8, pady=4)
        ttk.Button(sms, text="Schedule", command=self.on_sms_campaign)\
            .grid(row=3, column=0, columnspan=2, sticky="ew", padx=8, pady=(4, 8))

        mail = ttk.LabelFrame(left, text="Email campaign")
        mail.pack(fill="x", pady=(10, 0))
        self.mail_name_e = self._entry(mail, "Name", 0)
        self.mail_subject_e = self._entry(mail, "Subject", 1)
        ttk.Label(mail, text="Audience").grid(row=2, column=0, sticky="w", padx=8, pady=4)
        ttk.Combobox(mail, textvariable=self.email_audience_var, values=list(EMAIL_AUDIENCES), width=14, state="readonly")\
            .grid(row=2, column=1, sticky="ew", padx=8, pady=4)
        self.mail_text = tk.Text(mail, width=30, height=4)
        self.mail_text.grid(row=3, column=0, columnspan=2, padx=8, pady=4)
        ttk.Button(mail, text="Schedule", command=self.on_email_campaign)\
            .grid(row=4, column=0, columnspan=2, sticky="ew", padx=8, pady=(4, 8))

        right = ttk.LabelFrame(tab, text="Customers")
        right.pack(side="right", fill="both", expand=True, padx=(0, 10), pady=8)

        cols = ("id", "name", "phone", "email", "points", "tier", "credit")
        self.tree = ttk.Treeview(right, columns=cols, show="headings", height=20, style="Modern.Treeview")
        heads = {
            "id": "ID", "name": "Name", "phone": "Phone", "email": "Email",
            "points": "Points", "tier": "Tier", "credit": "Credit limit",
        }
        widths = {"id": 50, "name": 200, "phone": 120, "email": 200, "points": 70, "tier": 80, "credit": 100}
        for c in cols:
            self.tree.heading(c, text=heads[c])
            self.tree.column(c, width=widths[c], anchor="w")
        for tier, colour in (("Silver", "#f1f5f9"), ("Gold", "#fef9c3"), ("Platinum", "#e0e7ff")):
            self.tree.tag_configure(tier, background=colour)

        vsb = ttk.Scrollbar(right, orient="vertical", command=self.tree.yview)
        self.tree.configure(yscrollcommand=vsb.set)
        self.tree.pack(side="left", fill="both", expand=True, padx=(6, 0), pady=6)
        vsb.pack(side="right", fill="y", pady=6)

        self.tree.bind("<Delete>", lambda _e: self.on_delete_customer())

    def _entry(self, parent, label, row, value=""):
        ttk.Label(parent, text=label).grid(row=row, column=0, sticky="w", padx=8, pady=4)
        e = ttk.Entry(parent, width=18)
        e.grid(row=row, column=1, sticky="ew", padx=8, pady=4)
        if value:
            e.insert(0, value)
        parent.columnconfigure(1, weight=1)
        return e

    def refresh(self):
        for item in self.tree.get_children():
            self.tree.delete(item)
        fmt = self.app.currency.format
        for c, tier in self.app.customers.customers_with_tiers():
            self.tree.insert("", "end", values=(
                c.customer_id, c.name, c.phone_number, c.email_address, c.loyalty_points, tier, fmt(c.credit_limit)
            ), tags=(tier,))
        self.tiers_var.set("  ".join(f"{t}: {n}" for t, n in self.app.customers.tier_counts().items()))

    def on_add_customer(self):
        try:
            if not self.app.can_action("manage_customers"):
                raise AuthorizationError("Your role cannot manage customers.")
            self.app.customers.save_customer({
                "customer_first_name": self.first_e.get(),
                "customer_last_name": self.last_e.get(),
                "phone_number": self.phone_e.get(),
                "email_address": self.email_e.get(),
                "credit_limit": self.credit_e.get(),
            })
        except Exception as e:
            self.app.handle_error("Customer", e, "Failed to save customer.")
            return
        for e in (self.first_e, self.last_e, self.phone_e, self.email_e, self.credit_e):
            e.delete(0, tk.END)
        self.app.toast("Customer saved.", kind="success")
        self.refresh()
        self.app.pos_view.refresh_customers()

    def on_delete_customer(self):
        sel = self.tree.selection()
        if not sel:
            return
        customer_id, name = self.tree.item(sel[0], "values")[:2]
        if not messagebox.askyesno("Confirm delete", f"Delete customer '{name}'?", parent=self.frame):
            return
        try:
            if not self.app.can_action("manage_customers"):
                raise AuthorizationError("Your role cannot manage customers.")
            self.app.customers.delete_customer(str(customer_id))
        except Exception as e:
            self.app.handle_error("Customer", e, "Failed to delete customer.")
            return
        self.refresh()

    def on_save_schema(self):
        try:
            self.app.customers.update_loyalty_schema(self.silver_e.get(), self.gold_e.get(), self.platinum_e.get())
        except Exception as e:
            self.app.handle_error("Loyalty", e, "Failed to update loyalty tiers.")
            return
        self.app.toast("Loyalty tiers updated.", kind="success")
        self.refresh()

    def on_sms_campaign(self):
        try:
            if not self.app.can_action("run_campaigns"):
                raise AuthorizationError("Your role cannot run campaigns.")
            campaign = self.app.customers.create_sms_campaign(
                self.sms_name_e.get(), self.audience_var.get(), self.sms_text.get("1.0", "end").strip(),
            )
        except Exception as e:
            self.app.handle_error("SMS campaign", e, "Failed to create campaign.")
            return
        self.app.toast(f"Campaign '{campaign.name}' scheduled for {campaign.recipient_count} customer(s).", kind="success")
        self.sms_name_e.delete(0, tk.END)
        self.sms_text.delete("1.0", "end")

    def on_email_campaign(self):
        custom_ids = ()
        if self.email_audience_var.get() == "Custom":
            custom_ids = [str(self.tree.item(i, "values")[0]) for i in self.tree.selection()]
        try:
            if not self.app.can_action("run_campaigns"):
                raise AuthorizationError("Your role cannot run campaigns.")
            campaign = self.app.customers.create_email_campaign(
                self.mail_name_e.get(),
                self.mail_subject_e.get(),
                self.email_audience_var.get(),
                self.mail_text.get("1.0", "end").strip(),
                custom_ids=custom_ids,
            )
        except Exception as e:
            self.app.handle_error("Email campaign", e, "Failed to create campaign.")
            return
        self.app.toast(f"Campaign '{campaign.name}' scheduled for {campaign.recipient_count} customer(s).", kind="success")
        for e in (self.mail_name_e, self.mail_subject_e):
            e.delete(0, tk.END)
        self.mail_text.delete("1.0", "end")
