from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox
import logging

from payshia_erp.domain.errors import AppError, AuthorizationError

log = logging.getLogger("payshia_erp.ui")

# label -> (REST resource, second field label)
LOOKUPS = {
    "Category": ("master-categories", "Description"),
    "Brand": ("brands", "Description"),
    "Color": ("colors", "Hex code"),
    "Size": ("sizes", "Abbreviation"),
    "Collection": ("collections", "Description"),
    "Custom field": ("custom-fields", "Description"),
}


class ProductsView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Products")

        self._categories: dict[str, str] = {}
        self._products = []

        tab = self.frame

        left = ttk.LabelFrame(tab, text="Add product", width=280)
        left.pack(side="left", fill="y", padx=(0, 6), pady=8)
        left.pack_propagate(False)

        right = ttk.LabelFrame(tab, text="Products list")
        right.pack(side="right", fill="both", expand=True, pady=8)

        self.p_name = self._entry(left, "Name", 0)
        ttk.Label(left, text="Category").grid(row=1, column=0, sticky="w", padx=8, pady=4)
        self.category_var = tk.StringVar()
        self.p_category = ttk.Combobox(left, textvariable=self.category_var, width=16, state="readonly")
        self.p_category.grid(row=1, column=1, sticky="ew", padx=8, pady=4)
        self.p_price = self._entry(left, "Selling price", 2)
        self.p_cost = self._entry(left, "Cost price", 3)
        self.p_wholesale = self._entry(left, "Wholesale", 4)
        self.p_skus = self._entry(left, "SKUs (a, b)", 5)

        ttk.Label(left, text="Status").grid(row=6, column=0, sticky="w", padx=8, pady=4)
        self.status_var = tk.StringVar(value="active")
        ttk.Combobox(left, textvariable=self.status_var, values=["active", "draft"], width=16, state="readonly")\
            .grid(row=6, column=1, sticky="ew", padx=8, pady=4)

        btns = ttk.Frame(left)
        btns.grid(row=7, column=0, columnspan=2, sticky="ew", padx=8, pady=(6, 8))
        btns.columnconfigure(0, weight=1)
        btns.columnconfigure(1, weight=1)
        btns.columnconfigure(2, weight=1)

        ttk.Button(btns, text="Add", command=self.on_add_product).grid(row=0, column=0, sticky="ew", padx=(0, 6))
        ttk.Button(btns, text="Delete variant", command=self.on_delete_variant).grid(row=0, column=1, sticky="ew", padx=6)
        ttk.Button(btns, text="Clear", command=self.clear_form).grid(row=0, column=2, sticky="ew", padx=(6, 0))

        for entry in (self.p_name, self.p_price, self.p_cost, self.p_wholesale, self.p_skus):
            entry.bind("<Return>", self._on_enter_add_product)

        lookups = ttk.LabelFrame(left, text="Lookups")
        lookups.grid(row=8, column=0, columnspan=2, sticky="nsew", padx=8, pady=(4, 8))
        left.rowconfigure(8, weight=1)
        self.lookup_var = tk.StringVar(value="Category")
        kinds = ttk.Combobox(lookups, textvariable=self.lookup_var, values=list(LOOKUPS), width=16, state="readonly")
        kinds.grid(row=0, column=0, columnspan=2, sticky="ew", padx=6, pady=4)
        kinds.bind("<<ComboboxSelected>>", lambda _e: self.refresh_lookups())
        self.l_name = self._entry(lookups, "Name", 1)
        self.l_extra_label = tk.StringVar(value=LOOKUPS["Category"][1])
        ttk.Label(lookups, textvariable=self.l_extra_label).grid(row=2, column=0, sticky="w", padx=8, pady=4)
        self.l_extra = ttk.Entry(lookups, width=16)
        self.l_extra.grid(row=2, column=1, sticky="ew", padx=8, pady=4)
        self.lookup_list = tk.Listbox(lookups, height=5)
        self.lookup_list.grid(row=3, column=0, columnspan=2, sticky="nsew", padx=6, pady=4)
        lookups.rowconfigure(3, weight=1)
        row = ttk.Frame(lookups)
        row.grid(row=4, column=0, columnspan=2, sticky="ew", padx=6, pady=(0, 6))
        ttk.Button(row, text="Save", command=self.on_save_lookup).pack(side="left", fill="x", expand=True)
        ttk.Button(row, text="Delete", command=self.on_delete_lookup).pack(side="left", fill="x", expand=True, padx=(6, 0))
        self._lookup_ids: list[str] = []

        tree_wrap = ttk.Frame(right)
        tree_wrap.pack(fill="both", expand=True, padx=6, pady=6)

        cols = ("id", "variant", "sku", "name", "category", "price", "cost", "status")
        self.tree = ttk.Treeview(tree_wrap, columns=cols, show="headings", height=20, style="Modern.Treeview")
        heads = {
            "id": "ID", "variant": "Variant", "sku": "SKU", "name": "Name", "category": "Category",
            "price": "Price", "cost": "Cost", "status": "Status",
        }
        widths = {"id": 48, "variant": 60, "sku": 110, "name": 260, "category": 120, "price": 92, "cost": 92, "status": 70}
        for c in cols:
            self.tree.heading(c, text=heads[c])
            self.tree.column(c, width=widths[c], anchor="w")

        self.tree.tag_configure("draft", foreground="#64748b")

        vsb = ttk.Scrollbar(tree_wrap, orient="vertical", command=self.tree.yview)
        hsb = ttk.Scrollbar(tree_wrap, orient="horizontal", command=self.tree.xview)
        self.tree.configure(yscrollcommand=vsb.set, xscrollcommand=hsb.set)
        self.tree.grid(row=0, column=0, sticky="nsew")
        vsb.grid(row=0, column=1, sticky="ns")
        hsb.grid(row=1, column=0, sticky="ew")

        tree_wrap.columnconfigure(0, weight=1)
        tree_wrap.rowconfigure(0, weight=1)

    def _entry(self, parent, label, row):
        ttk.Label(parent, text=label).grid(row=row, column=0, sticky="w", padx=8, pady=4)
        e = ttk.Entry(parent, width=16)
        e.grid(row=row, column=1, sticky="ew", padx=8, pady=4)
        parent.columnconfigure(1, weight=1)
        return e

    def _on_enter_add_product(self, _event=None):
        self.on_add_product()
        return "break"

    def on_add_product(self):
        try:
            if not self.app.can_action("create_product"):
                raise AuthorizationError("Your role cannot create products.")

            skus = [s.strip() for s in self.p_skus.get().split(",") if s.strip()]
            form = {
                "name": self.p_name.get(),
                "category_id": self._categories.get(self.category_var.get(), ""),
                "price": self.p_price.get(),
                "cost_price": self.p_cost.get(),
                "wholesale_price": self.p_wholesale.get(),
                "status": self.status_var.get(),
                "variants": [{"sku": s} for s in skus],
            }
            pid = self.app.catalog.save_product(form)
            self.app.toast(f"Product added (ID {pid}).", kind="success")
            self.clear_form()
            self.app.refresh_all(show_toast=False)
        except Exception as e:
            self.app.handle_error("Error", e, "Failed to add product.")

    def on_delete_variant(self):
        try:
            if not self.app.can_action("delete_product"):
                raise AuthorizationError("Only admin can delete product variants.")

            selected = self.tree.selection()
            if not selected:
                raise ValueError("Select a product variant.")

            values = self.tree.item(selected[0], "values")
            variant_id = str(values[1])
            sku = str(values[2])

            confirmed = messagebox.askyesno(
                "Confirm delete",
                f"Delete variant '{sku}' (ID {variant_id})?",
                parent=self.frame,
            )
            if not confirmed:
                return

            self.app.catalog.delete_variant(variant_id)
            self.app.toast("Variant deleted.", kind="success")
            self.refresh()
        except ValueError as e:
            messagebox.showwarning("Validation", str(e), parent=self.frame)
        except Exception as e:
            self.app.handle_error("Delete variant", e, "Failed to delete variant.")

    def clear_form(self):
        for e in (self.p_name, self.p_price, self.p_cost, self.p_wholesale, self.p_skus):
            e.delete(0, tk.END)
        self.category_var.set("")
        self.status_var.set("active")
        self.p_name.focus_set()

    @property
    def products(self):
        return self._products

    def refresh(self):
        self._categories = {c.name: c.id for c in self.app.catalog.list_categories()}
        self.p_category["values"] = list(self._categories)

        for item in self.tree.get_children():
            self.tree.delete(item)

        self._products = self.app.catalog.list_products()
        fmt = self.app.currency.format
        for p in self._products:
            tag = ("draft",) if p.status == "draft" else ()
            for var in p.variants or ():
                self.tree.insert(
                    "", "end",
                    values=(p.id, var.id, var.sku, p.name, p.category, fmt(p.price), fmt(p.cost_price), p.status),
                    tags=tag,
                )

        if hasattr(self.app, "pos_view"):
            self.app.pos_view.refresh_product_choices()
        self.refresh_lookups()

    def select_sku(self, sku: str):
        for iid in self.tree.get_children():
            vals = self.tree.item(iid, "values")
            if len(vals) >= 3 and str(vals[2]) == str(sku):
                self.tree.selection_set(iid)
                self.tree.focus(iid)
                self.tree.see(iid)
                return

    # ---------- lookups ----------
    def _lookup_rows(self, kind: str) -> list[tuple[str, str]]:
        catalog = self.app.catalog
        if kind == "Category":
            return [(c.id, c.name) for c in catalog.list_categories()]
        if kind == "Brand":
            return [(b.id, b.name) for b in catalog.list_brands()]
        if kind == "Color":
            return [(c.id, f"{c.name} {c.hex_code or ''}".strip()) for c in catalog.list_colors()]
        if kind == "Size":
            return [(s.id, f"{s.value} ({s.abbreviation or '-'})") for s in catalog.list_sizes()]
        if kind == "Collection":
            return [(c.id, f"{c.title} [{c.product_count}]") for c in catalog.list_collections()]
        return [(f.id, f.field_name) for f in catalog.list_custom_fields()]

    def refresh_lookups(self):
        kind = self.lookup_var.get()
        self.l_extra_label.set(LOOKUPS[kind][1])
        self.lookup_list.delete(0, tk.END)
        self._lookup_ids = []
        try:
            rows = self._lookup_rows(kind)
        except AppError as e:
            log.warning("lookup_refresh_failed kind=%s error=%s", kind, e)
            return
        for entity_id, label in rows:
            self.lookup_list.insert(tk.END, label)
            self._lookup_ids.append(entity_id)

    def on_save_lookup(self):
        kind = self.lookup_var.get()
        name, extra = self.l_name.get(), self.l_extra.get()
        catalog = self.app.catalog
        try:
            if not self.app.can_action("manage_catalog"):
                raise AuthorizationError("Your role cannot manage the catalog.")
            if kind == "Category":
                catalog.save_category(name, extra)
            elif kind == "Brand":
                catalog.save_brand(name, extra)
            elif kind == "Color":
                catalog.save_color(name, extra)
            elif kind == "Size":
                catalog.save_size(name, extra)
            elif kind == "Collection":
                # selected product rows become the collection members
                ids = {str(self.tree.item(i, "values")[0]) for i in self.tree.selection()}
                catalog.save_collection(name, description=extra, product_ids=sorted(ids))
            else:
                catalog.save_custom_field(name, extra)
        except Exception as e:
            self.app.handle_error(kind, e, f"Failed to save {kind.lower()}.")
            return
        self.l_name.delete(0, tk.END)
        self.l_extra.delete(0, tk.END)
        self.app.toast(f"{kind} saved.", kind="success")
        if kind == "Category":
            self.refresh()
        else:
            self.refresh_lookups()

    def on_delete_lookup(self):
        sel = self.lookup_list.curselection()
        if not sel:
            return
        kind = self.lookup_var.get()
        label = self.lookup_list.get(sel[0])
        if not messagebox.askyesno("Confirm delete", f"Delete {kind.lower()} '{label}'?", parent=self.frame):
            return
        try:
            if not self.app.can_action("manage_catalog"):
                raise AuthorizationError("Your role cannot manage the catalog.")
            self.app.catalog.delete_lookup(LOOKUPS[kind][0], self._lookup_ids[sel[0]])
        except Exception as e:
            self.app.handle_error(kind, e, f"Failed to delete {kind.lower()}.")
            return
        self.refresh_lookups()
