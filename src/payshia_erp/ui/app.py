from __future__ import annotations

import tkinter as tk
from tkinter import ttk, messagebox
import logging
from pathlib import Path

from payshia_erp.application.container import AppContainer, bind_session, set_location
from payshia_erp.domain.errors import AppError, ValidationError
from payshia_erp.domain.models import UserSession
from payshia_erp.ui.views import (
    AccountingView,
    CustomersView,
    ForecastView,
    PosView,
    ProductsView,
    PurchasingView,
    ReportsView,
    SalesView,
    SetupView,
    StockView,
)

log = logging.getLogger("payshia_erp.ui")


class LoginDialog(tk.Toplevel):
    """Modal sign-in. On success `self.session` holds a company-scoped session."""

    def __init__(self, master, auth_service):
        super().__init__(master)
        self.title("Sign in - Payshia ERP")
        self.resizable(False, False)
        self.auth = auth_service
        self.session: UserSession | None = None

        body = ttk.Frame(self, padding=16)
        body.pack(fill="both", expand=True)

        ttk.Label(body, text="Email").grid(row=0, column=0, sticky="w", pady=4)
        self.email_e = ttk.Entry(body, width=32)
        self.email_e.grid(row=0, column=1, pady=4)
        ttk.Label(body, text="Password").grid(row=1, column=0, sticky="w", pady=4)
        self.pass_e = ttk.Entry(body, width=32, show="*")
        self.pass_e.grid(row=1, column=1, pady=4)

        self.msg_var = tk.StringVar(value="")
        ttk.Label(body, textvariable=self.msg_var, foreground="#b91c1c").grid(row=2, column=0, columnspan=2, sticky="w")

        ttk.Button(body, text="Login", style="Big.TButton", command=self.on_login)\
            .grid(row=3, column=0, columnspan=2, sticky="ew", pady=(8, 0))
        ttk.Button(body, text="Create an account", command=self.on_register)\
            .grid(row=4, column=0, columnspan=2, sticky="ew", pady=(6, 0))

        self.pass_e.bind("<Return>", lambda _e: self.on_login())
        self.email_e.focus_set()
        self.protocol("WM_DELETE_WINDOW", self.destroy)
        self.transient(master)
        self.grab_set()

    def on_login(self):
        try:
            session = self.auth.login(self.email_e.get(), self.pass_e.get())
        except AppError as e:
            self.msg_var.set(str(e))
            return

        if session.needs_company:
            dlg = CompanyDialog(self, self.auth, session)
            self.wait_window(dlg)
            if dlg.session is None:
                self.msg_var.set("A company is required to continue.")
                return
            session = dlg.session

        self.session = session
        self.destroy()

    def on_register(self):
        dlg = RegisterDialog(self, self.auth)
        self.wait_window(dlg)
        if dlg.email:
            self.email_e.delete(0, tk.END)
            self.email_e.insert(0, dlg.email)
            self.pass_e.focus_set()
            self.msg_var.set("Account created. Sign in to continue.")


class RegisterDialog(tk.Toplevel):
    def __init__(self, master, auth_service):
        super().__init__(master)
        self.title("Create an account")
        self.resizable(False, False)
        self.auth = auth_service
        self.email: str | None = None

        body = ttk.Frame(self, padding=16)
        body.pack(fill="both", expand=True)

        self.entries = {}
        for i, (key, label, show) in enumerate((
            ("full_name", "Full name", ""),
            ("email", "Email", ""),
            ("password", "Password", "*"),
        )):
            ttk.Label(body, text=label).grid(row=i, column=0, sticky="w", pady=4)
            e = ttk.Entry(body, width=32, show=show)
            e.grid(row=i, column=1, pady=4)
            self.entries[key] = e

        ttk.Button(body, text="Register", style="Big.TButton", command=self.on_register)\
            .grid(row=3, column=0, columnspan=2, sticky="ew", pady=(8, 0))
        self.transient(master)
        self.grab_set()

    def on_register(self):
        form = {k: e.get() for k, e in self.entries.items()}
        try:
            self.auth.register(form["full_name"], form["email"], form["password"])
        except AppError as e:
            messagebox.showwarning("Register", str(e), parent=self)
            return
        self.email = form["email"].strip()
        self.destroy()


class CompanyDialog(tk.Toplevel):
    FIELDS = (
        ("company_name", "Company name"),
        ("company_address", "Address"),
        ("company_city", "City"),
        ("company_email", "Email"),
        ("company_telephone", "Telephone"),
        ("website", "Website (optional)"),
    )

    def __init__(self, master, auth_service, session: UserSession):
        super().__init__(master)
        self.title("Create your company")
        self.auth = auth_service
        self.pending = session
        self.session: UserSession | None = None

        body = ttk.Frame(self, padding=16)
        body.pack(fill="both", expand=True)
        ttk.Label(body, text=f"Welcome {session.user_name}. Set up your company to continue.")\
            .grid(row=0, column=0, columnspan=2, sticky="w", pady=(0, 8))

        self.entries = {}
        for i, (key, label) in enumerate(self.FIELDS, start=1):
            ttk.Label(body, text=label).grid(row=i, column=0, sticky="w", pady=3)
            e = ttk.Entry(body, width=34)
            e.grid(row=i, column=1, pady=3)
            self.entries[key] = e

        ttk.Button(body, text="Create company", style="Big.TButton", command=self.on_create)\
            .grid(row=len(self.FIELDS) + 1, column=0, columnspan=2, sticky="ew", pady=(8, 0))
        self.transient(master)
        self.grab_set()

    def on_create(self):
        form = {k: e.get() for k, e in self.entries.items()}
        try:
            self.session = self.auth.create_company(self.pending, form)
        except AppError as e:
            messagebox.showwarning("Company", str(e), parent=self)
            return
        self.destroy()


class App(tk.Tk):
    def __init__(self, container: AppContainer, logs_dir: str, exports_dir: str):
        super().__init__()
        self.title("Payshia ERP")
        self.geometry("1280x760")
        self.minsize(1120, 640)

        self.container = container
        self.logs_dir = logs_dir
        self.exports_dir = Path(exports_dir)
        self.session: UserSession | None = None

        self.status_var = tk.StringVar(value="")
        self.user_var = tk.StringVar(value="Not signed in")
        self.location_var = tk.StringVar(value="")
        self._toast_after_id = None
        self._locations: dict[str, str] = {}

        self._build_styles()

    # ---------- shortcuts used by views ----------
    @property
    def catalog(self):
        return self.container.catalog

    @property
    def inventory(self):
        return self.container.inventory

    @property
    def sales(self):
        return self.container.sales

    @property
    def pos(self):
        return self.container.pos

    @property
    def purchases(self):
        return self.container.purchases

    @property
    def customers(self):
        return self.container.customers

    @property
    def reporting(self):
        return self.container.reporting

    @property
    def currency(self):
        return self.container.currency

    # ---------- startup ----------
    def start(self) -> bool:
        """Ask for credentials, then build the main window. False if the user gave up."""
        self.withdraw()
        dlg = LoginDialog(self, self.container.auth)
        self.wait_window(dlg)
        if dlg.session is None:
            return False

        self.session = dlg.session
        bind_session(self.container, self.session)
        log.info("session_started user_id=%s company_id=%s role=%s",
                 self.session.user_id, self.session.company_id, self.session.role)

        self._build_topbar()

        main = ttk.Frame(self)
        main.pack(fill="both", expand=True, padx=12, pady=(0, 8))

        self.sidebar = ttk.Frame(main)
        self.sidebar.pack(side="left", fill="y", padx=(0, 10))

        self.content = ttk.Frame(main)
        self.content.pack(side="right", fill="both", expand=True)

        self.nb = ttk.Notebook(self.content, style="Side.TNotebook")
        self.nb.pack(fill="both", expand=True)

        # Views (tabs hidden)
        self.products_view = ProductsView(self.nb, self)
        self.pos_view = PosView(self.nb, self)
        self.sales_view = SalesView(self.nb, self)
        self.purchasing_view = PurchasingView(self.nb, self)
        self.stock_view = StockView(self.nb, self)
        self.customers_view = CustomersView(self.nb, self)
        self.accounting_view = AccountingView(self.nb, self)
        self.setup_view = SetupView(self.nb, self)
        self.reports_view = ReportsView(self.nb, self)
        self.forecast_view = ForecastView(self.nb, self)

        self._build_sidebar()
        self._build_status_bar()
        self.deiconify()

        self.load_locations()
        self.refresh_all(show_toast=False)
        self.toast("Ready.", kind="info", ms=1200)
        return True

    def _build_styles(self):
        style = ttk.Style(self)
        style.layout("Side.TNotebook.Tab", [])
        style.configure("Side.TNotebook", tabmargins=0)

        try:
            style.configure("Big.TButton", padding=(14, 10))
            style.configure("Title.TLabel", font=("Segoe UI", 12, "bold"))
            style.configure("KPI.TLabel", font=("Segoe UI", 10))
            style.configure("KPIValue.TLabel", font=("Segoe UI", 11, "bold"))
            style.configure("Modern.Treeview", rowheight=24, font=("Segoe UI", 9))
            style.configure("Modern.Treeview.Heading", font=("Segoe UI", 9, "bold"))
        except tk.TclError as e:
            log.exception("ui_style_failed error=%s", e)

    def _build_topbar(self):
        top = ttk.Frame(self)
        top.pack(fill="x", padx=12, pady=10)

        ttk.Label(top, text="Location").pack(side="left")
        self.location_combo = ttk.Combobox(top, textvariable=self.location_var, width=28, state="readonly")
        self.location_combo.pack(side="left", padx=10)
        self.location_combo.bind("<<ComboboxSelected>>", self.on_location_change)

        ttk.Label(top, text="Currency").pack(side="left", padx=(10, 0))
        self.currency_var = tk.StringVar(value=self.currency.code)
        cur = ttk.Combobox(top, textvariable=self.currency_var, width=6, state="readonly",
                           values=["LKR", "USD", "EUR", "GBP", "JPY"])
        cur.pack(side="left", padx=10)
        cur.bind("<<ComboboxSelected>>", self.on_currency_change)

        self.user_var.set(f"{self.session.user_name} ({self.session.role}) - {self.session.company_name or ''}")
        ttk.Label(top, textvariable=self.user_var).pack(side="right")

    def _build_sidebar(self):
        box = ttk.LabelFrame(self.sidebar, text="Modules")
        box.pack(fill="x", pady=(0, 10))

        entries = [
            ("📦 Products", self.products_view),
            ("🧾 Point of Sale", self.pos_view),
            ("🧮 Invoices", self.sales_view),
            ("🚚 Purchasing", self.purchasing_view),
            ("🏬 Stock", self.stock_view),
            ("👥 Customers", self.customers_view),
            ("📒 Accounting", self.accounting_view),
            ("⚙ Setup", self.setup_view),
            ("📊 Excel + Reports", self.reports_view),
            ("🤖 Forecast", self.forecast_view),
        ]
        for i, (text, view) in enumerate(entries):
            ttk.Button(
                box, text=text, style="Big.TButton",
                command=lambda v=view: self.nb.select(v.frame)
            ).pack(fill="x", padx=10, pady=(10 if i == 0 else 6, 6))

        ttk.Button(box, text="🔄 Refresh", style="Big.TButton",
                   command=self.refresh_all).pack(fill="x", padx=10, pady=(6, 10))

        kpi = ttk.LabelFrame(self.sidebar, text="Dashboard")
        kpi.pack(fill="x")

        self.k_products = ttk.Label(kpi, text="-", style="KPIValue.TLabel")
        self.k_locations = ttk.Label(kpi, text="-", style="KPIValue.TLabel")
        self.k_open_po = ttk.Label(kpi, text="-", style="KPIValue.TLabel")
        self.k_sales = ttk.Label(kpi, text="-", style="KPIValue.TLabel")

        labels = ["Products", "Locations", "Open POs", "Sales today"]
        widgets = [self.k_products, self.k_locations, self.k_open_po, self.k_sales]
        for i, (lab, w) in enumerate(zip(labels, widgets)):
            ttk.Label(kpi, text=lab, style="KPI.TLabel").grid(
                row=i, column=0, sticky="w", padx=10, pady=(8 if i == 0 else 2, 2)
            )
            w.grid(row=i, column=1, sticky="e", padx=10, pady=(8 if i == 0 else 2, 2))

        kpi.columnconfigure(0, weight=1)
        kpi.columnconfigure(1, weight=1)

        lowbox = ttk.LabelFrame(self.sidebar, text="Low Stock")
        lowbox.pack(fill="both", expand=True, pady=(10, 0))
        self.low_list = tk.Listbox(lowbox, height=10)
        self.low_list.pack(fill="both", expand=True, padx=10, pady=10)
        self.low_list.bind("<Double-1>", self.on_low_stock_open)
        self._low_items: list[str] = []

    def _build_status_bar(self):
        bar = ttk.Frame(self)
        bar.pack(fill="x", padx=12, pady=(0, 10))
        ttk.Label(bar, textvariable=self.status_var).pack(side="left")
        ttk.Label(bar, text=f"Logs: {self.logs_dir}").pack(side="right")

    def toast(self, msg: str, kind: str = "info", ms: int = 2500):
        prefix = {"info": "ℹ ", "success": "✅ ", "warn": "⚠ ", "error": "❌ "}.get(kind, "")
        self.status_var.set(prefix + msg)
        if self._toast_after_id is not None:
            self.after_cancel(self._toast_after_id)
        self._toast_after_id = self.after(ms, lambda: self.status_var.set(""))

    # ---------- errors + permissions ----------
    def handle_error(self, title: str, error: Exception, fallback: str):
        """Single place where view actions surface failures."""
        if isinstance(error, ValidationError):
            log.info("ui_validation title=%s error=%s", title, error)
            messagebox.showwarning(title, str(error), parent=self)
        elif isinstance(error, AppError):
            log.warning("ui_app_error title=%s type=%s error=%s", title, type(error).__name__, error)
            messagebox.showerror(title, str(error) or fallback, parent=self)
        else:
            log.exception("ui_unexpected_error title=%s", title, exc_info=error)
            messagebox.showerror(title, fallback, parent=self)
        self.toast(fallback, kind="error")

    def can_action(self, action: str) -> bool:
        if self.session is None:
            return False
        return self.container.auth.can(self.session, action)

    def require_action(self, action: str) -> None:
        self.container.auth.require_action(self.session, action)

    # ---------- location + currency ----------
    def load_locations(self):
        try:
            locations = self.container.locations.list_locations()
        except AppError as e:
            self.handle_error("Locations", e, "Failed to load locations.")
            return
        self._locations = {f"{l.location_name} ({l.location_id})": l.location_id for l in locations if l.is_active}
        self.location_combo["values"] = list(self._locations)

        current = self.container.settings.location_id
        for label, loc_id in self._locations.items():
            if current is not None and str(loc_id) == str(current):
                self.location_var.set(label)
                break
        else:
            if self._locations:
                self.location_var.set(next(iter(self._locations)))
                self.on_location_change()

    @property
    def location_id(self) -> str | None:
        return self._locations.get(self.location_var.get())

    def location_labels(self) -> list[str]:
        return list(self._locations)

    def location_for(self, label: str) -> str | None:
        return self._locations.get(label)

    def on_location_change(self, _evt=None):
        loc = self.location_id
        set_location(self.container, int(loc) if loc else None)
        log.info("location_selected location_id=%s", loc)
        self.refresh_low_stock_panel()
        try:
            self.stock_view.refresh()
        except AppError as e:
            log.warning("stock_refresh_failed error=%s", e)

    def on_currency_change(self, _evt=None):
        try:
            self.currency.set_currency(self.currency_var.get())
            self.container.printing.symbol = self.currency.symbol
            self.refresh_all(show_toast=False)
        except AppError as e:
            self.handle_error("Currency", e, "Failed to change currency.")

    # ---------- refresh ----------
    def refresh_all(self, show_toast: bool = True):
        views = (
            self.products_view, self.pos_view, self.sales_view, self.purchasing_view,
            self.stock_view, self.customers_view, self.accounting_view, self.setup_view,
        )
        for view in views:
            try:
                view.refresh()
            except AppError as e:
                self.handle_error("Refresh", e, "Failed to load data.")
                return

        self.refresh_kpis()
        self.refresh_low_stock_panel()

        if show_toast:
            self.toast("Refreshed.", kind="info", ms=1200)

    def refresh_kpis(self):
        try:
            k = self.reporting.dashboard_kpis()
        except AppError as e:
            log.warning("kpi_refresh_failed error=%s", e)
            return
        self.k_products.config(text=str(k.products))
        self.k_locations.config(text=str(k.locations))
        self.k_open_po.config(text=str(k.open_purchase_orders))
        self.k_sales.config(text=self.currency.format(k.sales_today))

    def refresh_low_stock_panel(self):
        self.low_list.delete(0, tk.END)
        self._low_items = []
        if self.location_id is None:
            return
        try:
            low = self.inventory.low_stock(self.location_id)
        except AppError as e:
            log.warning("low_stock_refresh_failed error=%s", e)
            return
        for lvl in low:
            self.low_list.insert(tk.END, f"{lvl.sku} - {lvl.product_name} ({lvl.stock:g}/{lvl.reorder_level:g})")
            self._low_items.append(lvl.sku)

    def on_low_stock_open(self, _evt=None):
        sel = self.low_list.curselection()
        if not sel:
            return
        sku = self._low_items[sel[0]]
        self.nb.select(self.products_view.frame)
        self.products_view.select_sku(sku)
        self.toast(f"Selected low stock: {sku}", kind="warn", ms=2000)

    def export_path(self, filename: str) -> Path:
        return self.exports_dir / filename
