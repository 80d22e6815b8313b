from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.table import Table, TableStyleInfo

from payshia_erp.domain.models import InventoryLevel, Invoice

log = logging.getLogger("payshia_erp.reports")

WALK_IN = "Walk-in Customer"


@dataclass(frozen=True)
class SalesSummaryRow:
    invoice: Invoice
    customer_name: str


@dataclass(frozen=True)
class SalesTotals:
    sub_total: float = 0.0
    discount: float = 0.0
    charge: float = 0.0
    grand_total: float = 0.0


@dataclass(frozen=True)
class SupplierBalance:
    supplier_id: str
    supplier_name: str
    opening_balance: float
    grn_total: float
    paid_total: float
    returned_total: float

    @property
    def balance(self) -> float:
        return self.opening_balance + self.grn_total - self.paid_total - self.returned_total


@dataclass(frozen=True)
class DashboardKpis:
    products: int
    locations: int
    open_purchase_orders: int
    sales_today: float
    invoices_today: int


def _invoice_day(inv: Invoice) -> Optional[date]:
    try:
        return date.fromisoformat(inv.invoice_date[:10])
    except ValueError:
        return None


# ---------- workbook helpers ----------

def money(cell):
    cell.number_format = "#,##0.00"


def bold_row(ws, r):
    for c in ws[r]:
        c.font = Font(bold=True)


def set_widths(ws, widths: dict[str, int]):
    for col, w in widths.items():
        ws.column_dimensions[col].width = w


def add_table(ws, name: str, start_row: int, start_col: int, end_row: int, end_col: int):
    ref = f"{get_column_letter(start_col)}{start_row}:{get_column_letter(end_col)}{end_row}"
    tab = Table(displayName=name, ref=ref)
    tab.tableStyleInfo = TableStyleInfo(
        name="TableStyleMedium9",
        showRowStripes=True,
        showColumnStripes=False,
    )
    ws.add_table(tab)


class ReportingService:
    def __init__(self, repo, today: Callable[[], date] = date.today):
        self.repo = repo
        self.today = today

    # ---------- sales summary ----------
    def sales_summary(
        self,
        start: Optional[date] = None,
        end: Optional[date] = None,
        location_id: Optional[str] = None,
    ) -> tuple[list[SalesSummaryRow], SalesTotals]:
        invoices = self.repo.completed_invoices()
        if location_id:
            invoices = [i for i in invoices if i.location_id == str(location_id)]
        if start is not None and end is not None:
            kept = []
            for inv in invoices:
                day = _invoice_day(inv)
                if day is not None and start <= day <= end:
                    kept.append(inv)
            invoices = kept

        names = {c.customer_id: c.name for c in self.repo.list_customers()}
        rows = [SalesSummaryRow(invoice=i, customer_name=names.get(i.customer_code) or WALK_IN) for i in invoices]
        totals = SalesTotals(
            sub_total=sum(i.inv_amount for i in invoices),
            discount=sum(i.discount_amount for i in invoices),
            charge=sum(i.service_charge for i in invoices),
            grand_total=sum(i.grand_total for i in invoices),
        )
        return rows, totals

    # ---------- stock ----------
    def stock_balance(self, location_id: str) -> list[InventoryLevel]:
        return self.repo.location_stock(str(location_id))

    # ---------- suppliers ----------
    def supplier_balances(self) -> list[SupplierBalance]:
        grns = self.repo.list_grns()
        payments = self.repo.list_payments()
        returns = self.repo.list_supplier_returns()

        out = []
        for s in self.repo.list_suppliers():
            out.append(SupplierBalance(
                supplier_id=s.supplier_id,
                supplier_name=s.supplier_name,
                opening_balance=s.opening_balance,
                grn_total=sum(g.grand_total for g in grns if g.supplier_id == s.supplier_id),
                paid_total=sum(p.amount for p in payments if p.supplier_id == s.supplier_id),
                returned_total=sum(r.total_value for r in returns if r.supplier_id == s.supplier_id),
            ))
        return out

    # ---------- dashboard ----------
    def dashboard_kpis(self) -> DashboardKpis:
        today = self.today()
        todays = [i for i in self.repo.list_invoices() if _invoice_day(i) == today]
        return DashboardKpis(
            products=len(self.repo.list_products()),
            locations=len(self.repo.list_locations()),
            open_purchase_orders=sum(1 for po in self.repo.list_purchase_orders() if po.po_status == "pending"),
            sales_today=sum(i.grand_total for i in todays),
            invoices_today=len(todays),
        )

    # ---------- exports ----------
    def export_sales_summary_excel(
        self,
        path: str,
        start: Optional[date] = None,
        end: Optional[date] = None,
        location_id: Optional[str] = None,
    ) -> int:
        rows, totals = self.sales_summary(start, end, location_id)
        wb = Workbook()

        ws = wb.active
        ws.title = "Summary"
        ws["A1"] = "Sales Summary"
        ws["A1"].font = Font(bold=True, size=14)
        ws["A3"] = "Window"
        ws["B3"] = f"{start.isoformat() if start else '...'}  ->  {end.isoformat() if end else '...'}"
        ws["A4"] = "Location"
        ws["B4"] = str(location_id) if location_id else "All Locations"

        summary = [
            ("Invoices", len(rows)),
            ("Sub Total", totals.sub_total),
            ("Discount", totals.discount),
            ("Service Charge", totals.charge),
            ("Grand Total", totals.grand_total),
        ]
        for i, (label, val) in enumerate(summary):
            r = 6 + i
            ws[f"A{r}"] = label
            ws[f"B{r}"] = val
            if i > 0:
                money(ws[f"B{r}"])
        set_widths(ws, {"A": 22, "B": 34})

        ws2 = wb.create_sheet("Invoices")
        ws2.append(["Invoice #", "Date", "Customer", "Sub Total", "Discount", "Service Charge", "Grand Total", "Status"])
        bold_row(ws2, 1)
        for out_row, row in enumerate(rows, start=2):
            inv = row.invoice
            ws2.append([
                inv.invoice_number, inv.invoice_date, row.customer_name,
                inv.inv_amount, inv.discount_amount, inv.service_charge, inv.grand_total,
                inv.invoice_status,
            ])
            for col in "DEFG":
                money(ws2[f"{col}{out_row}"])
        ws2.freeze_panes = "A2"
        set_widths(ws2, {"A": 16, "B": 14, "C": 28, "D": 14, "E": 14, "F": 16, "G": 16, "H": 10})
        if ws2.max_row >= 2:
            add_table(ws2, "SalesSummary", 1, 1, ws2.max_row, 8)

        wb.save(path)
        log.info("report_exported kind=sales_summary rows=%s path=%s", len(rows), path)
        return len(rows)

    def export_stock_balance_excel(self, path: str, location_id: str) -> int:
        levels = self.stock_balance(location_id)
        wb = Workbook()
        ws = wb.active
        ws.title = "Stock Balance"
        ws.append(["SKU", "Product", "Location", "Stock", "Reorder Level", "Low"])
        bold_row(ws, 1)
        for lvl in levels:
            ws.append([lvl.sku, lvl.product_name, lvl.location_id, lvl.stock, lvl.reorder_level, "YES" if lvl.is_low else ""])
        ws.freeze_panes = "A2"
        set_widths(ws, {"A": 16, "B": 34, "C": 12, "D": 10, "E": 14, "F": 6})
        if ws.max_row >= 2:
            add_table(ws, "StockBalance", 1, 1, ws.max_row, 6)
        wb.save(path)
        log.info("report_exported kind=stock_balance rows=%s path=%s", len(levels), path)
        return len(levels)

    def export_supplier_balance_excel(self, path: str) -> int:
        balances = self.supplier_balances()
        wb = Workbook()
        ws = wb.active
        ws.title = "Supplier Balance"
        ws.append(["Supplier", "Opening", "GRN Total", "Paid", "Returned", "Balance"])
        bold_row(ws, 1)
        for out_row, b in enumerate(balances, start=2):
            ws.append([b.supplier_name, b.opening_balance, b.grn_total, b.paid_total, b.returned_total, b.balance])
            for col in "BCDEF":
                money(ws[f"{col}{out_row}"])
        ws.freeze_panes = "A2"
        set_widths(ws, {"A": 30, "B": 14, "C": 14, "D": 14, "E": 14, "F": 16})
        if ws.max_row >= 2:
            add_table(ws, "SupplierBalance", 1, 1, ws.max_row, 6)
        wb.save(path)
        log.info("report_exported kind=supplier_balance rows=%s path=%s", len(balances), path)
        return len(balances)
