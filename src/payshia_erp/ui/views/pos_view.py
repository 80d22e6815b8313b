from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox, simpledialog
from datetime import datetime
import logging

from payshia_erp.domain.errors import AuthorizationError, ValidationError
from payshia_erp.services.pos_service import ORDER_TYPES, WALK_IN_CUSTOMER_ID

log = logging.getLogger("payshia_erp.ui")


class PosView:
    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Point of Sale")

        self.order_id: str | None = None
        self.pick_var = tk.StringVar()
        self.order_var = tk.StringVar()
        self.customer_var = tk.StringVar()
        self.type_var = tk.StringVar(value="Take Away")
        self.service_var = tk.BooleanVar(value=False)
        self.totals_var = tk.StringVar(value="")

        self.all_choices: list[str] = []
        self.choice_map: dict[str, tuple] = {}
        self.order_map: dict[str, str] = {}
        self.customer_map: dict[str, str] = {}

        self._build()

    def _build(self):
        tab = self.frame

        orders = ttk.LabelFrame(tab, text="Orders")
        orders.pack(fill="x", padx=10, pady=(10, 0))

        ttk.Label(orders, text="Type").grid(row=0, column=0, padx=10, pady=8, sticky="w")
        ttk.Combobox(orders, textvariable=self.type_var, values=list(ORDER_TYPES), width=12, state="readonly")\
            .grid(row=0, column=1, padx=(0, 10), pady=8)
        self.table_e = ttk.Entry(orders, width=14)
        self.table_e.grid(row=0, column=2, padx=(0, 10), pady=8)
        ttk.Button(orders, text="New order", command=self.on_new_order).grid(row=0, column=3, padx=(0, 10), pady=8)

        ttk.Label(orders, text="Active").grid(row=0, column=4, padx=10, pady=8, sticky="w")
        self.order_combo = ttk.Combobox(orders, textvariable=self.order_var, width=30, state="readonly")
        self.order_combo.grid(row=0, column=5, padx=(0, 10), pady=8)
        self.order_combo.bind("<<ComboboxSelected>>", self.on_order_selected)

        top = ttk.LabelFrame(tab, text="Add item to cart")
        top.pack(fill="x", padx=10, pady=10)

        ttk.Label(top, text="Search product (SKU or name)").grid(row=0, column=0, padx=10, pady=8, sticky="w")
        self.combo = ttk.Combobox(top, textvariable=self.pick_var, width=52)
        self.combo.grid(row=0, column=1, padx=10, pady=8, sticky="w")
        self.combo.bind("<KeyRelease>", lambda e: self._filter_combobox(self.combo, self.all_choices, self.pick_var.get()))

        ttk.Label(top, text="Qty").grid(row=0, column=2, padx=10, pady=8, sticky="w")
        self.qty_e = ttk.Entry(top, width=8)
        self.qty_e.grid(row=0, column=3, padx=10, pady=8, sticky="w")

        ttk.Label(top, text="Discount").grid(row=0, column=4, padx=10, pady=8, sticky="w")
        self.disc_e = ttk.Entry(top, width=8)
        self.disc_e.grid(row=0, column=5, padx=10, pady=8, sticky="w")

        ttk.Button(top, text="Add to cart", style="Big.TButton", command=self.add_to_cart)\
            .grid(row=0, column=6, padx=10, pady=8)

        self.combo.bind("<Return>", lambda _e: self.add_to_cart())
        self.qty_e.bind("<Return>", lambda _e: self.add_to_cart())

        mid = ttk.Frame(tab)
        mid.pack(fill="both", expand=True, padx=10, pady=(0, 10))

        cart_box = ttk.LabelFrame(mid, text="Cart")
        cart_box.pack(side="left", fill="both", expand=True, padx=(0, 10))

        cols = ("variant", "name", "qty", "unit", "disc", "line")
        self.cart_tree = ttk.Treeview(cart_box, columns=cols, show="headings", height=16, style="Modern.Treeview")
        heads = {"variant": "Variant", "name": "Item", "qty": "Qty", "unit": "Unit", "disc": "Discount", "line": "Line"}
        widths = {"variant": 70, "name": 360, "qty": 60, "unit": 100, "disc": 90, "line": 110}
        for c in cols:
            self.cart_tree.heading(c, text=heads[c])
            self.cart_tree.column(c, width=widths[c], anchor="w")
        self.cart_tree.pack(fill="both", expand=True, padx=10, pady=10)
        self.cart_tree.bind("<Double-1>", lambda _e: self.change_quantity())

        btnrow = ttk.Frame(cart_box)
        btnrow.pack(fill="x", padx=10, pady=(0, 10))
        ttk.Button(btnrow, text="Remove selected", command=self.remove_selected).pack(side="left")
        ttk.Button(btnrow, text="Change qty", command=self.change_quantity).pack(side="left", padx=(10, 0))
        ttk.Button(btnrow, text="Hold", command=self.on_hold).pack(side="left", padx=10)
        ttk.Button(btnrow, text="Clear order", command=self.clear_order).pack(side="left")
        ttk.Button(btnrow, text="Send KOT", command=self.on_kot).pack(side="left", padx=10)

        right = ttk.LabelFrame(mid, text="Checkout")
        right.pack(side="right", fill="y")

        ttk.Label(right, text="Customer").pack(anchor="w", padx=10, pady=(10, 4))
        self.customer_combo = ttk.Combobox(right, textvariable=self.customer_var, width=30, state="readonly")
        self.customer_combo.pack(padx=10)
        self.customer_combo.bind("<<ComboboxSelected>>", self.on_customer_selected)

        ttk.Label(right, text="Order discount").pack(anchor="w", padx=10, pady=(10, 4))
        self.order_disc_e = ttk.Entry(right, width=14)
        self.order_disc_e.pack(anchor="w", padx=10)
        self.order_disc_e.bind("<Return>", lambda _e: self.on_order_discount())

        ttk.Checkbutton(right, text="Service charge (10%)", variable=self.service_var, command=self.on_service_toggle)\
            .pack(anchor="w", padx=10, pady=10)

        ttk.Label(right, textvariable=self.totals_var, justify="left").pack(anchor="w", padx=10, pady=10)

        ttk.Button(right, text="Checkout", style="Big.TButton", command=self.checkout)\
            .pack(fill="x", padx=10, pady=(0, 10))

    def _filter_combobox(self, combo: ttk.Combobox, all_choices: list[str], typed: str):
        typed = typed.strip().lower()
        combo["values"] = all_choices if not typed else [c for c in all_choices if typed in c.lower()]

    # ---------- refresh ----------
    def refresh_product_choices(self):
        fmt = self.app.currency.format
        choices = []
        mapping = {}
        for p in self.app.products_view.products:
            if p.status != "active":
                continue
            for var in p.variants:
                label = f"{var.sku} - {p.name} ({fmt(p.price)})"
                choices.append(label)
                mapping[label] = (p, var.id)
        self.all_choices = choices
        self.choice_map = mapping
        self.combo["values"] = choices

    def refresh_customers(self):
        self.customer_map = {"Walk-in Customer": WALK_IN_CUSTOMER_ID}
        for c in self.app.customers.list_customers():
            self.customer_map[f"{c.name} ({c.phone_number})"] = c.customer_id
        self.customer_combo["values"] = list(self.customer_map)

    def refresh_orders(self):
        pos = self.app.pos
        self.order_map = {}
        for o in pos.open_orders():
            self.order_map[o.name] = o.id
        for o in pos.held_orders():
            self.order_map[f"{o.name} [held]"] = o.id
        self.order_combo["values"] = list(self.order_map)
        if self.order_id not in pos.orders:
            self.order_id = None
            self.order_var.set("")

    def refresh(self):
        self.refresh_customers()
        self.refresh_orders()
        self.refresh_cart_view()

    # ---------- orders ----------
    def _current(self):
        if self.order_id is None:
            raise ValidationError("No Active Order")
        return self.app.pos.get_order(self.order_id)

    def on_new_order(self):
        try:
            order = self.app.pos.open_order(self.type_var.get(), table_name=self.table_e.get().strip() or None)
        except Exception as e:
            self.app.handle_error("New order", e, "Failed to open order.")
            return
        self.order_id = order.id
        self.table_e.delete(0, tk.END)
        self.refresh_orders()
        self.order_var.set(order.name)
        self.refresh_cart_view()

    def on_order_selected(self, _evt=None):
        order_id = self.order_map.get(self.order_var.get())
        if order_id is None:
            return
        order = self.app.pos.resume(order_id)
        self.order_id = order.id
        self.service_var.set(order.service_charge_enabled)
        self.refresh_orders()
        self.order_var.set(order.name)
        self.refresh_cart_view()

    def on_customer_selected(self, _evt=None):
        try:
            self.app.pos.set_customer(self._current().id, self.customer_map.get(self.customer_var.get(), WALK_IN_CUSTOMER_ID))
        except Exception as e:
            self.app.handle_error("Customer", e, "Failed to set customer.")

    def add_to_cart(self):
        picked = self.pick_var.get().strip()
        found = self.choice_map.get(picked)
        if not found:
            messagebox.showwarning("Validation", "Pick a product from the dropdown list.")
            return
        product, variant_id = found

        try:
            if self.order_id is None:
                self.on_new_order()
            qty = int(float(self.qty_e.get().strip() or 1))
            disc = float(self.disc_e.get().strip() or 0)
            batches = self.app.pos.batches_for(product, variant_id)
            batch = batches[0].patch_code if batches else None
            self.app.pos.add_to_cart(self.order_id, product, variant_id, qty, disc, batch)
        except ValueError:
            messagebox.showwarning("Validation", "Qty and discount must be numbers.")
            return
        except Exception as e:
            self.app.handle_error("Add to cart", e, "Failed to add item.")
            return

        self.qty_e.delete(0, tk.END)
        self.disc_e.delete(0, tk.END)
        self.refresh_cart_view()
        self.app.toast("Added to cart.", kind="success", ms=1500)

    def refresh_cart_view(self):
        for item in self.cart_tree.get_children():
            self.cart_tree.delete(item)

        if self.order_id is None or self.order_id not in self.app.pos.orders:
            self.totals_var.set("No Active Order")
            return

        fmt = self.app.currency.format
        order = self.app.pos.get_order(self.order_id)
        for line in order.cart:
            self.cart_tree.insert("", "end", values=(
                line.variant_id, line.label, line.quantity, fmt(line.unit_price), fmt(line.item_discount), fmt(line.line_total)
            ))

        t = self.app.pos.totals(self.order_id)
        self.totals_var.set(
            f"Subtotal:        {fmt(t.subtotal)}\n"
            f"Item discounts:  {fmt(t.item_discounts)}\n"
            f"Service charge:  {fmt(t.service_charge)}\n"
            f"Order discount:  {fmt(t.discount)}\n"
            f"TOTAL:           {fmt(t.total)}"
        )

    def remove_selected(self):
        sel = self.cart_tree.selection()
        if not sel or self.order_id is None:
            return
        variant_id = str(self.cart_tree.item(sel[0], "values")[0])
        self.app.pos.remove_from_cart(self.order_id, variant_id)
        self.refresh_cart_view()
        self.app.toast("Removed line.", kind="info", ms=1500)

    def change_quantity(self):
        sel = self.cart_tree.selection()
        if not sel or self.order_id is None:
            return
        variant_id, label, qty = self.cart_tree.item(sel[0], "values")[:3]
        new_qty = simpledialog.askinteger("Quantity", f"Quantity for {label} (0 removes it):",
                                          initialvalue=int(float(qty)), minvalue=0, parent=self.frame)
        if new_qty is None:
            return
        self.app.pos.update_quantity(self.order_id, str(variant_id), new_qty)
        log.info("pos_quantity_changed order_id=%s variant_id=%s qty=%s", self.order_id, variant_id, new_qty)
        self.refresh_cart_view()

    def on_order_discount(self):
        try:
            self.app.pos.set_discount(self._current().id, float(self.order_disc_e.get().strip() or 0))
        except ValueError:
            messagebox.showwarning("Validation", "Discount must be a number.")
            return
        except Exception as e:
            self.app.handle_error("Discount", e, "Failed to set discount.")
            return
        self.refresh_cart_view()

    def on_service_toggle(self):
        if self.order_id is None:
            return
        self.app.pos.toggle_service_charge(self.order_id, self.service_var.get())
        self.refresh_cart_view()

    def on_hold(self):
        try:
            order = self.app.pos.hold(self._current().id)
        except Exception as e:
            self.app.handle_error("Hold", e, "Failed to hold order.")
            return
        self.app.toast(f"{order.name} held.", kind="info")
        self.order_id = None
        self.refresh_orders()
        self.refresh_cart_view()

    def clear_order(self):
        if self.order_id is None:
            return
        self.app.pos.clear(self.order_id)
        self.order_id = None
        self.refresh_orders()
        self.refresh_cart_view()
        self.app.toast("Order cleared.", kind="info", ms=1500)

    def on_kot(self):
        try:
            order = self.app.pos.send_to_kitchen(self._current().id)
            text = self.app.container.printing.kot(order, cashier_name=self.app.session.user_name)
            path = self.app.container.printing.save(text, self.app.export_path(f"kot_{order.id}.txt"))
        except Exception as e:
            self.app.handle_error("KOT", e, "Failed to print KOT.")
            return
        self.app.toast(f"KOT saved to {path.name}.", kind="success")

    def checkout(self):
        try:
            if not self.app.can_action("pos_checkout"):
                raise AuthorizationError("Your role cannot close sales.")
            pos_ids = {l.location_id for l in self.app.container.locations.pos_locations()}
            if self.app.location_id not in pos_ids:
                raise ValidationError("The selected location is not enabled for POS.")
            invoice_number = self.app.pos.checkout(self._current().id)
        except Exception as e:
            self.app.handle_error("Checkout failed", e, "Checkout failed.")
            return

        messagebox.showinfo("OK", f"Sale saved. Invoice: {invoice_number}")
        self.app.toast(f"Invoice {invoice_number} created ({datetime.now():%H:%M}).", kind="success")
        self.order_id = None
        self.order_disc_e.delete(0, tk.END)
        self.service_var.set(False)
        self.refresh_orders()
        self.refresh_cart_view()
        self.app.refresh_kpis()
