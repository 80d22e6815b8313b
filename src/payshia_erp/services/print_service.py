from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import Callable, Iterable, Optional

from payshia_erp.config import CompanyProfile
from payshia_erp.domain.models import (
    Customer,
    GoodsReceivedNote,
    Invoice,
    PosOrder,
    PurchaseOrder,
    Receipt,
    Supplier,
    SupplierReturn,
)
from payshia_erp.services.currency_service import format_money

log = logging.getLogger("payshia_erp.print")

WIDTH = 64
TICKET_WIDTH = 40


def _rule(width: int = WIDTH, ch: str = "-") -> str:
    return ch * width


def _pair(label: str, value: object, width: int = WIDTH) -> str:
    value = str(value)
    return f"{label}{value:>{width - len(label)}}"


def _qty(value: float) -> str:
    return f"{value:,.2f}"


def _day(value: str) -> str:
    try:
        return date.fromisoformat((value or "")[:10]).strftime("%d %b, %Y")
    except ValueError:
        return value or ""


class PrintService:
    """
    Plain-text renditions of the printable documents. Every document is a list of
    fixed-width lines joined with newlines; `save` writes one out for printing.
    """

    def __init__(self, company: CompanyProfile | None = None, symbol: str = "", now: Callable[[], datetime] = datetime.now):
        self.company = company or CompanyProfile()
        self.symbol = symbol
        self.now = now

    def money(self, amount: float) -> str:
        return format_money(amount, self.symbol)

    # ---------- shared blocks ----------
    def _header(self, title: str, width: int = WIDTH) -> list[str]:
        lines = [self.company.name.center(width)]
        for addr in self.company.address_lines:
            lines.append(addr.center(width))
        if self.company.email:
            lines.append(self.company.email.center(width))
        lines.append(_rule(width, "="))
        lines.append(title.upper().center(width))
        lines.append(_rule(width, "="))
        return lines

    def _footer(self, *notes: str) -> list[str]:
        lines = [_rule()]
        for n in notes:
            lines.append(n.center(WIDTH))
        if self.company.website:
            lines.append(self.company.website.center(WIDTH))
        return lines

    @staticmethod
    def _party(heading: str, name: str, extra: Iterable[str] = ()) -> list[str]:
        lines = [f"{heading}:", f"  {name}"]
        lines.extend(f"  {x}" for x in extra if x)
        return lines

    def _priced_table(self, rows: Iterable[tuple[str, float, float, float]]) -> list[str]:
        lines = [f"{'Description':<28}{'Qty':>10}{'Unit Price':>12}{'Amount':>14}", _rule()]
        for desc, qty, price, amount in rows:
            lines.append(f"{desc[:28]:<28}{_qty(qty):>10}{price:>12,.2f}{amount:>14,.2f}")
        lines.append(_rule())
        return lines

    def _totals(self, rows: Iterable[tuple[str, float]]) -> list[str]:
        return [_pair(label, self.money(amount)) for label, amount in rows]

    @staticmethod
    def _signatures(*labels: str) -> list[str]:
        cell = WIDTH // len(labels)
        return [
            "",
            "".join(("_" * (cell - 4)).ljust(cell) for _ in labels),
            "".join(label.ljust(cell) for label in labels),
        ]

    # ---------- sales documents ----------
    def invoice(self, invoice: Invoice, customer: Optional[Customer] = None, show_bank_details: bool = False) -> str:
        customer = customer or invoice.customer
        lines = self._header("Invoice")
        lines.append(_pair("Invoice #:", invoice.invoice_number))
        lines.append(_pair("Invoice Date:", _day(invoice.invoice_date)))
        lines.append(_pair("Due Date:", _day(invoice.invoice_date)))
        lines.append("")
        if customer is not None:
            lines += self._party("Bill To", customer.name, (customer.address_line1, customer.city, customer.email_address))
        else:
            lines += self._party("Bill To", "Walk-in Customer")
        lines.append("")
        lines += self._priced_table(
            (item.product_name or f"Product ID {item.product_id}", item.quantity, item.item_price, item.line_total)
            for item in invoice.items
        )
        lines += self._totals([
            ("Subtotal", invoice.inv_amount),
            ("Discount", -invoice.discount_amount),
            ("Service Charge", invoice.service_charge),
        ])
        lines.append(_rule())
        lines.append(_pair("TOTAL", self.money(invoice.grand_total)))

        if show_bank_details:
            lines += [
                "",
                "PAYMENT DETAILS",
                f"Account Name: {self.company.bank_account_name}",
                f"Account No:   {self.company.bank_account_no}",
                f"Branch:       {self.company.bank_branch}",
                "Please include the invoice number in your payment reference.",
            ]

        lines += self._footer(
            "Thank you for your business!",
            "If you have any questions about this invoice, please contact us.",
        )
        return "\n".join(lines)

    def _quantity_only(self, title: str, invoice: Invoice, customer: Optional[Customer], vehicle_no: str) -> list[str]:
        lines = self._header(title)
        lines.append(_pair("Ref #:", invoice.invoice_number))
        lines.append(_pair("Date:", _day(invoice.invoice_date)))
        lines.append(_pair("Vehicle No:", vehicle_no or "-"))
        lines.append("")
        lines += self._party("Deliver To", customer.name if customer else "Walk-in Customer",
                             (customer.address_line1, customer.city) if customer else ())
        lines.append("")
        lines.append(f"{'#':<4}{'Description':<44}{'Quantity':>16}")
        lines.append(_rule())
        for n, item in enumerate(invoice.items, start=1):
            desc = item.product_name or f"Product ID {item.product_id}"
            lines.append(f"{n:<4}{desc[:44]:<44}{_qty(item.quantity):>16}")
        lines.append(_rule())
        return lines

    def dispatch_note(self, invoice: Invoice, customer: Optional[Customer] = None, vehicle_no: str = "") -> str:
        lines = self._quantity_only("Dispatch Note", invoice, customer or invoice.customer, vehicle_no)
        lines += self._signatures("Prepared by", "Authorized by", "Received by")
        return "\n".join(lines)

    def gate_pass(self, invoice: Invoice, customer: Optional[Customer] = None, vehicle_no: str = "") -> str:
        lines = self._quantity_only("Gate Pass", invoice, customer or invoice.customer, vehicle_no)
        lines += self._signatures("Security Officer", "Driver Signature")
        return "\n".join(lines)

    def receipt(self, receipt: Receipt, customer: Optional[Customer] = None, invoice_number: str = "") -> str:
        lines = self._header("Payment Receipt")
        lines.append(_pair("Receipt #:", receipt.rec_number or receipt.id))
        lines.append(_pair("Date:", _day(receipt.date)))
        lines.append(_pair("Invoice #:", invoice_number or receipt.ref_id))
        lines.append("")
        lines += self._party("Received From", customer.name if customer else f"Customer {receipt.customer_id}")
        lines.append("")
        lines.append(f"{'Description':<30}{'Payment Method':<18}{'Amount Paid':>16}")
        lines.append(_rule())
        lines.append(f"{'Payment for ' + (invoice_number or receipt.ref_id):<30}{receipt.payment_method:<18}{receipt.amount:>16,.2f}")
        lines.append(_rule())
        lines.append(_pair("TOTAL PAID", self.money(receipt.amount)))
        lines += self._footer("Thank you for your payment!")
        return "\n".join(lines)

    def kot(self, order: PosOrder, cashier_name: str = "") -> str:
        """Kitchen ticket, sized for a 40-column thermal roll."""
        w = TICKET_WIDTH
        lines = ["K.O.T".center(w), _rule(w)]
        lines.append(_pair("Order:", order.name, w))
        lines.append(_pair("Time:", self.now().strftime("%H:%M"), w))
        if cashier_name:
            lines.append(_pair("Cashier:", cashier_name, w))
        if order.steward:
            lines.append(_pair("Steward:", order.steward, w))
        lines.append(_rule(w))
        for line in order.cart:
            lines.append(f"{line.quantity:>4} x {line.label[:w - 7]}")
        lines.append(_rule(w))
        return "\n".join(lines)

    # ---------- purchasing documents ----------
    def purchase_order(self, po: PurchaseOrder, supplier: Optional[Supplier] = None) -> str:
        lines = self._header("Purchase Order")
        lines.append(_pair("PO #:", po.po_number))
        lines.append(_pair("Date:", _day(po.created_at)))
        if po.delivery_date:
            lines.append(_pair("Delivery Date:", _day(po.delivery_date)))
        lines.append("")
        lines += self._party("Supplier", supplier.supplier_name if supplier else f"Supplier {po.supplier_id}",
                             (supplier.street_name, supplier.city, supplier.email) if supplier else ())
        lines.append("")
        lines += self._priced_table(
            (it.product_name or it.variant_sku or f"Product ID {it.product_id}", it.quantity, it.order_rate, it.total_cost)
            for it in po.items
        )
        lines += self._totals([("Subtotal", po.sub_total)])
        lines.append(_pair("TOTAL", self.money(po.total_amount)))
        if po.remarks:
            lines += ["", f"Remarks: {po.remarks}"]
        lines += self._footer("Thank you for your business!")
        return "\n".join(lines)

    def grn(self, grn: GoodsReceivedNote, supplier: Optional[Supplier] = None) -> str:
        lines = self._header("Goods Received Note")
        lines.append(_pair("GRN #:", grn.grn_number))
        lines.append(_pair("PO #:", grn.po_number or "-"))
        lines.append(_pair("Date:", _day(grn.created_at)))
        lines.append("")
        lines += self._party("Supplier", supplier.supplier_name if supplier else f"Supplier {grn.supplier_id}")
        lines.append("")
        lines.append(f"{'Description':<20}{'Batch':<10}{'EXP':<11}{'Qty':>7}{'Price':>8}{'Amount':>8}")
        lines.append(_rule())
        for it in grn.items:
            desc = it.product_name or it.variant_sku or f"Product ID {it.product_id}"
            amount = it.received_qty * it.order_rate
            lines.append(
                f"{desc[:20]:<20}{it.patch_code[:10]:<10}{it.expire_date[:10]:<11}"
                f"{it.received_qty:>7,.0f}{it.order_rate:>8,.2f}{amount:>8,.2f}"
            )
        lines.append(_rule())
        lines += self._totals([
            ("Subtotal", grn.sub_total),
            ("Tax", grn.tax_value),
        ])
        lines.append(_pair("TOTAL", self.money(grn.grand_total)))
        lines += self._signatures("Received by", "Checked by")
        lines += self._footer("Goods received in good condition.")
        return "\n".join(lines)

    def supplier_return(self, ret: SupplierReturn, supplier: Optional[Supplier] = None, grn_number: str = "") -> str:
        lines = self._header("Supplier Return Note")
        lines.append(_pair("Return #:", ret.id))
        lines.append(_pair("GRN Ref #:", grn_number or ret.grn_id))
        lines.append(_pair("Date:", _day(ret.return_date)))
        lines.append("")
        lines += self._party("Supplier", supplier.supplier_name if supplier else f"Supplier {ret.supplier_id}")
        lines.append("")
        lines.append(f"{'Description':<22}{'Reason':<14}{'Qty':>8}{'Unit Price':>10}{'Amount':>10}")
        lines.append(_rule())
        for it in ret.items:
            lines.append(
                f"{it.product_name[:22]:<22}{it.reason[:14]:<14}{it.return_qty:>8,.0f}"
                f"{it.unit_price:>10,.2f}{it.return_qty * it.unit_price:>10,.2f}"
            )
        lines.append(_rule())
        lines.append(_pair("TOTAL", self.money(ret.total_value)))
        if ret.notes:
            lines += ["", f"Notes: {ret.notes}"]
        lines += self._signatures("Issued by", "Supplier")
        lines += self._footer("Goods returned in good condition.")
        return "\n".join(lines)

    # ---------- reports ----------
    def sales_summary(self, rows, totals, start: Optional[date] = None, end: Optional[date] = None) -> str:
        lines = self._header("Sales Summary")
        if start and end:
            lines.append(_pair("Period:", f"{start.strftime('%d %b, %Y')} - {end.strftime('%d %b, %Y')}"))
        lines.append(_pair("Invoices:", len(rows)))
        lines.append("")
        lines.append(f"{'Invoice #':<16}{'Date':<12}{'Customer':<22}{'Total':>14}")
        lines.append(_rule())
        for row in rows:
            inv = row.invoice
            lines.append(f"{inv.invoice_number[:16]:<16}{inv.invoice_date[:10]:<12}{row.customer_name[:22]:<22}{inv.grand_total:>14,.2f}")
        lines.append(_rule())
        lines += self._totals([
            ("Subtotal", totals.sub_total),
            ("Discount", -totals.discount),
            ("Service Charge", totals.charge),
        ])
        lines.append(_pair("GRAND TOTAL", self.money(totals.grand_total)))
        return "\n".join(lines)

    def save(self, text: str, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
        log.info("document_saved path=%s", path)
        return path
