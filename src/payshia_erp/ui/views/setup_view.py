from __future__ import annotations

import tkinter as tk
from tkinter import ttk

from payshia_erp.domain.errors import AuthorizationError, ValidationError
from payshia_erp.services.plan_service import LIMIT_KINDS, UNLIMITED


class SetupView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Setup")

        self.loc_type_var = tk.StringVar(value="Retail")
        self.pos_var = tk.BooleanVar(value=True)
        self.plan_var = tk.StringVar(value="-")
        self._build()

    def _build(self):
        tab = self.frame

        plan = ttk.LabelFrame(tab, text="Subscription plan")
        plan.pack(fill="x", padx=10, pady=(10, 0))
        ttk.Label(plan, textvariable=self.plan_var).pack(side="left", padx=8, pady=8)
        ttk.Button(plan, text="Check feature", command=self.on_check_feature).pack(side="right", padx=8)
        self.feature_e = ttk.Entry(plan, width=22)
        self.feature_e.pack(side="right")

        locs = ttk.LabelFrame(tab, text="Locations")
        locs.pack(fill="both", expand=True, padx=10, pady=(10, 5))

        form = ttk.Frame(locs)
        form.pack(side="left", fill="y", padx=8, pady=8)
        self.loc_name_e = self._entry(form, "Name", 0)
        ttk.Label(form, text="Type").grid(row=1, column=0, sticky="w", padx=6, pady=3)
        ttk.Combobox(form, textvariable=self.loc_type_var, values=["Retail", "Warehouse", "Outlet"], width=16, state="readonly")\
            .grid(row=1, column=1, sticky="ew", padx=6, pady=3)
        self.loc_addr_e = self._entry(form, "Address", 2)
        self.loc_city_e = self._entry(form, "City", 3)
        self.loc_phone_e = self._entry(form, "Phone", 4)
        ttk.Checkbutton(form, text="POS enabled", variable=self.pos_var).grid(row=5, column=1, sticky="w", padx=6)
        ttk.Button(form, text="Add location", command=self.on_add_location)\
            .grid(row=6, column=0, columnspan=2, sticky="ew", padx=6, pady=(6, 0))

        cols = ("id", "name", "type", "city", "phone", "pos")
        self.loc_tree = ttk.Treeview(locs, columns=cols, show="headings", height=8, style="Modern.Treeview")
        for c, label, w in (("id", "ID", 50), ("name", "Name", 200), ("type", "Type", 90),
                            ("city", "City", 120), ("phone", "Phone", 120), ("pos", "POS", 50)):
            self.loc_tree.heading(c, text=label)
            self.loc_tree.column(c, width=w, anchor="w")
        self.loc_tree.pack(side="right", fill="both", expand=True, padx=8, pady=8)

        sups = ttk.LabelFrame(tab, text="Suppliers")
        sups.pack(fill="both", expand=True, padx=10, pady=(5, 10))

        form = ttk.Frame(sups)
        form.pack(side="left", fill="y", padx=8, pady=8)
        self.sup_name_e = self._entry(form, "Name", 0)
        self.sup_contact_e = self._entry(form, "Contact", 1)
        self.sup_email_e = self._entry(form, "Email", 2)
        self.sup_phone_e = self._entry(form, "Phone", 3)
        self.sup_city_e = self._entry(form, "City", 4)
        self.sup_opening_e = self._entry(form, "Opening balance", 5)
        ttk.Button(form, text="Add supplier", command=self.on_add_supplier)\
            .grid(row=6, column=0, columnspan=2, sticky="ew", padx=6, pady=(6, 0))

        cols = ("id", "name", "contact", "email", "phone", "opening")
        self.sup_tree = ttk.Treeview(sups, columns=cols, show="headings", height=8, style="Modern.Treeview")
        for c, label, w in (("id", "ID", 50), ("name", "Name", 200), ("contact", "Contact", 140),
                            ("email", "Email", 180), ("phone", "Phone", 110), ("opening", "Opening", 100)):
            self.sup_tree.heading(c, text=label)
            self.sup_tree.column(c, width=w, anchor="w")
        self.sup_tree.pack(side="right", fill="both", expand=True, padx=8, pady=8)

    def _entry(self, parent, label, row):
        ttk.Label(parent, text=label).grid(row=row, column=0, sticky="w", padx=6, pady=3)
        e = ttk.Entry(parent, width=20)
        e.grid(row=row, column=1, sticky="ew", padx=6, pady=3)
        return e

    def refresh(self):
        plans = self.app.container.plans
        usage = []
        for kind in LIMIT_KINDS:
            status = plans.check_plan_limit(kind)
            limit = "unlimited" if status.limit == UNLIMITED else f"{status.limit:g}"
            usage.append(f"{kind} {status.usage}/{limit}")
        name = plans.plan.name if plans.plan else "Unknown"
        self.plan_var.set(f"{name} plan: " + ", ".join(usage))

        for item in self.loc_tree.get_children():
            self.loc_tree.delete(item)
        for l in self.app.container.locations.list_locations():
            self.loc_tree.insert("", "end", values=(
                l.location_id, l.location_name, l.location_type, l.city, l.phone_1, "Yes" if l.pos_status else "No"
            ))

        for item in self.sup_tree.get_children():
            self.sup_tree.delete(item)
        fmt = self.app.currency.format
        for s in self.app.container.suppliers.list_suppliers():
            self.sup_tree.insert("", "end", values=(
                s.supplier_id, s.supplier_name, s.contact_person, s.email, s.telephone, fmt(s.opening_balance)
            ))

    def on_add_location(self):
        try:
            if not self.app.can_action("manage_locations"):
                raise AuthorizationError("Your role cannot manage locations.")
            self.app.container.locations.save_location({
                "location_name": self.loc_name_e.get(),
                "location_type": self.loc_type_var.get(),
                "address_line1": self.loc_addr_e.get(),
                "city": self.loc_city_e.get(),
                "phone_1": self.loc_phone_e.get(),
                "pos_status": self.pos_var.get(),
            })
        except Exception as e:
            self.app.handle_error("Location", e, "Failed to save location.")
            return
        for e in (self.loc_name_e, self.loc_addr_e, self.loc_city_e, self.loc_phone_e):
            e.delete(0, tk.END)
        self.app.toast("Location saved.", kind="success")
        self.refresh()
        self.app.load_locations()

    def on_add_supplier(self):
        try:
            if not self.app.can_action("manage_suppliers"):
                raise AuthorizationError("Your role cannot manage suppliers.")
            self.app.container.suppliers.save_supplier({
                "supplier_name": self.sup_name_e.get(),
                "contact_person": self.sup_contact_e.get(),
                "email": self.sup_email_e.get(),
                "telephone": self.sup_phone_e.get(),
                "city": self.sup_city_e.get(),
                "opening_balance": self.sup_opening_e.get(),
            })
        except Exception as e:
            self.app.handle_error("Supplier", e, "Failed to save supplier.")
            return
        for e in (self.sup_name_e, self.sup_contact_e, self.sup_email_e, self.sup_phone_e, self.sup_city_e, self.sup_opening_e):
            e.delete(0, tk.END)
        self.app.toast("Supplier saved.", kind="success")
        self.refresh()
        self.app.purchasing_view.refresh()

    def on_check_feature(self):
        try:
            feature = self.feature_e.get().strip()
            if not feature:
                raise ValidationError("Enter a feature name.")
            included = self.app.container.plans.check_feature_access(feature)
        except Exception as e:
            self.app.handle_error("Plan", e, "Failed to check feature.")
            return
        if included:
            self.app.toast(f"{feature} is included in your plan.", kind="success")
        else:
            self.app.toast(f"{feature} is not included in your plan.", kind="info")
