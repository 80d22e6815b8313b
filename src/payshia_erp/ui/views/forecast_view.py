from __future__ import annotations

import tkinter as tk
from tkinter import ttk

from payshia_erp.domain.errors import AuthorizationError


class ForecastView:
    """AI reorder-point suggestion for one product."""

    def __init__(self, notebook: ttk.Notebook, app):
        self.app = app
        self.frame = ttk.Frame(notebook)
        notebook.add(self.frame, text="Forecast")

        self.product_var = tk.StringVar()
        self.point_var = tk.StringVar(value="-")
        self.qty_var = tk.StringVar(value="-")
        self._build()

    def _build(self):
        tab = self.frame

        form = ttk.LabelFrame(tab, text="Inventory forecast")
        form.pack(fill="x", padx=10, pady=10)

        ttk.Label(form, text="Product name").grid(row=0, column=0, sticky="w", padx=10, pady=6)
        self.product_combo = ttk.Combobox(form, textvariable=self.product_var, width=48)
        self.product_combo.grid(row=0, column=1, sticky="w", padx=10, pady=6)

        ttk.Label(form, text="Past sales data").grid(row=1, column=0, sticky="nw", padx=10, pady=6)
        self.sales_text = tk.Text(form, width=70, height=5)
        self.sales_text.grid(row=1, column=1, sticky="w", padx=10, pady=6)

        ttk.Label(form, text="Seasonal trends").grid(row=2, column=0, sticky="nw", padx=10, pady=6)
        self.trends_text = tk.Text(form, width=70, height=4)
        self.trends_text.grid(row=2, column=1, sticky="w", padx=10, pady=6)

        ttk.Button(form, text="Generate forecast", style="Big.TButton", command=self.on_forecast)\
            .grid(row=3, column=1, sticky="w", padx=10, pady=(6, 10))

        out = ttk.LabelFrame(tab, text="Result")
        out.pack(fill="both", expand=True, padx=10, pady=(0, 10))

        ttk.Label(out, text="Reorder point", style="KPI.TLabel").grid(row=0, column=0, sticky="w", padx=10, pady=(10, 2))
        ttk.Label(out, textvariable=self.point_var, style="KPIValue.TLabel").grid(row=0, column=1, sticky="w", padx=10)
        ttk.Label(out, text="Reorder quantity", style="KPI.TLabel").grid(row=1, column=0, sticky="w", padx=10, pady=2)
        ttk.Label(out, textvariable=self.qty_var, style="KPIValue.TLabel").grid(row=1, column=1, sticky="w", padx=10)

        self.explanation = tk.Text(out, width=100, height=12, wrap="word", state="disabled")
        self.explanation.grid(row=2, column=0, columnspan=2, sticky="nsew", padx=10, pady=10)
        out.columnconfigure(1, weight=1)
        out.rowconfigure(2, weight=1)

        self.product_combo.bind("<FocusIn>", lambda _e: self._load_products())

    def _load_products(self):
        self.product_combo["values"] = [p.name for p in self.app.products_view.products]

    def _set_explanation(self, text: str):
        self.explanation.configure(state="normal")
        self.explanation.delete("1.0", "end")
        self.explanation.insert("1.0", text)
        self.explanation.configure(state="disabled")

    def on_forecast(self):
        try:
            if not self.app.can_action("run_forecast"):
                raise AuthorizationError("Your role cannot run forecasts.")
            self.app.toast("Generating forecast...", kind="info", ms=10000)
            self.app.update_idletasks()
            result = self.app.container.forecast.forecast(
                self.product_var.get(),
                self.sales_text.get("1.0", "end"),
                self.trends_text.get("1.0", "end"),
            )
        except Exception as e:
            self.app.handle_error("Forecast", e, "Failed to generate forecast. Please try again.")
            return

        self.point_var.set(f"{result.reorder_point:g}")
        self.qty_var.set(f"{result.reorder_quantity:g}")
        self._set_explanation(result.forecast_explanation)
        self.app.toast("Forecast generated.", kind="success")
