from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Callable, Iterable, Optional

from payshia_erp.domain.errors import ValidationError
from payshia_erp.domain.models import Invoice, Receipt
from payshia_erp.services import validation as v

log = logging.getLogger("payshia_erp.sales")

INVOICE_STATUSES = ("Draft", "Sent", "Paid")
CHANNELS = ("Retail", "Wholesale", "POS")
RECEIPT_TYPES = {"Cash": "0", "Card": "1", "Bank Transfer": "2"}


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: float
    discount: float
    service_charge: float
    grand_total: float
    discount_percentage: float
    cost_value: float
    tendered: float


def invoice_totals(
    items: Iterable[dict],
    bill_discount: float = 0.0,
    service_charge: float = 0.0,
    status: str = "Draft",
) -> InvoiceTotals:
    """items: [{quantity, unit_price, cost_price?, discount?}]"""
    items = list(items)
    subtotal = sum(float(it.get("quantity") or 0) * float(it.get("unit_price") or 0) for it in items)
    item_discounts = sum(float(it.get("discount") or 0) for it in items)
    discount = item_discounts + float(bill_discount or 0)
    charge = float(service_charge or 0)
    grand = subtotal - discount + charge
    return InvoiceTotals(
        subtotal=subtotal,
        discount=discount,
        service_charge=charge,
        grand_total=grand,
        discount_percentage=(discount / subtotal * 100) if subtotal > 0 else 0.0,
        cost_value=sum(float(it.get("cost_price") or 0) * float(it.get("quantity") or 0) for it in items),
        tendered=grand if status == "Paid" else 0.0,
    )


class SalesService:
    def __init__(
        self,
        repo,
        location_id: Optional[int] = None,
        user_id: int = 1,
        now: Callable[[], datetime] = datetime.now,
    ):
        self.repo = repo
        self.location_id = location_id
        self.user_id = user_id
        self.now = now

    # ---------- invoices ----------
    def _validate_items(self, items: list[dict], require_batch: bool) -> None:
        if not items:
            raise ValidationError("At least one item is required.")
        for it in items:
            if not str(it.get("product_id") or "").strip():
                raise ValidationError("Product is required.")
            v.integer(it.get("product_id"), "Product is invalid.")
            v.at_least(it.get("quantity"), 1, "Quantity must be at least 1.")
            v.at_least(it.get("unit_price"), 0, "Unit price must be positive.")
            v.at_least(it.get("discount"), 0, "Discount must be positive.", 0.0)
            if require_batch and not str(it.get("batch") or "").strip():
                raise ValidationError("Batch is required.")

    def create_invoice(
        self,
        customer_id: str,
        items: Iterable[dict],
        invoice_date: Optional[date] = None,
        status: str = "Draft",
        bill_discount: float = 0.0,
        service_charge: float = 0.0,
        remark: str = "",
        channel: str = "Retail",
    ) -> str:
        """
        items: [{product_id, quantity, unit_price, cost_price, discount?, batch?}]

        Returns the server-assigned invoice number.
        """
        if self.location_id is None:
            raise ValidationError("No location selected.")
        if not str(customer_id or "").strip():
            raise ValidationError("Customer is required.")
        customer = v.integer(customer_id, "Customer is invalid.")
        if status not in INVOICE_STATUSES:
            raise ValidationError("Status must be Draft, Sent or Paid.")
        if channel not in CHANNELS:
            raise ValidationError(f"Unknown sales channel: {channel}")
        if v.number(bill_discount, "Discount must be positive.", 0.0) < 0:
            raise ValidationError("Discount must be positive.")
        if v.number(service_charge, "Service charge must be positive.", 0.0) < 0:
            raise ValidationError("Service charge must be positive.")

        items = list(items)
        self._validate_items(items, require_batch=(channel == "Retail"))

        totals = invoice_totals(items, bill_discount, service_charge, status)
        now = self.now()
        company = str(self.repo.company_id)
        payload = {
            "invoice_date": (invoice_date or now.date()).strftime("%Y-%m-%d"),
            "inv_amount": totals.subtotal,
            "grand_total": totals.grand_total,
            "discount_amount": totals.discount,
            "discount_percentage": totals.discount_percentage,
            "customer_code": str(customer_id),
            "service_charge": totals.service_charge,
            "tendered_amount": totals.tendered,
            "close_type": "Cash",
            "invoice_status": status,
            "payment_status": "Pending",
            "current_time": now.strftime("%Y-%m-%d %H:%M:%S"),
            "location_id": int(self.location_id),
            "table_id": 0,
            "order_ready_status": 1,
            "created_by": "Admin User",
            "is_active": 1,
            "steward_id": "STW-001",
            "cost_value": totals.cost_value,
            "remark": remark or ("POS sale" if channel == "POS" else ""),
            "ref_hold": None,
            "company_id": company,
            "items": [
                {
                    "user_id": self.user_id,
                    "product_id": int(it["product_id"]),
                    "item_price": float(it["unit_price"]),
                    "item_discount": float(it.get("discount") or 0),
                    "quantity": float(it["quantity"]),
                    "customer_id": customer,
                    "table_id": 0,
                    "cost_price": float(it.get("cost_price") or 0),
                    "is_active": 1,
                    "hold_status": 0,
                    "printed_status": 1,
                    "company_id": company,
                }
                for it in items
            ],
        }
        result = self.repo.create_invoice(payload)
        invoice_number = str(result.get("invoice_number") or "")
        log.info(
            "invoice_created invoice_number=%s channel=%s customer=%s items=%s grand_total=%.2f status=%s",
            invoice_number, channel, customer_id, len(items), totals.grand_total, status,
        )
        return invoice_number

    def get_invoice(self, invoice_id: str) -> Invoice:
        return self.repo.get_invoice(invoice_id)

    def list_invoices(self) -> list[Invoice]:
        return self.repo.list_invoices()

    def pending_invoices(self, customer_code: str) -> list[Invoice]:
        return self.repo.pending_invoices(customer_code)

    def invoice_balance(self, invoice: Invoice) -> float:
        return self.repo.invoice_balance(invoice.customer_code, invoice.invoice_number)

    # ---------- receipts ----------
    def create_receipt(
        self,
        customer_id: str,
        invoice_number: str,
        amount: object,
        method: str = "Cash",
        receipt_date: Optional[date] = None,
        created_by: Optional[int] = None,
    ) -> Receipt:
        if self.location_id is None:
            raise ValidationError("No location selected.")
        if not str(customer_id or "").strip():
            raise ValidationError("Customer is required.")
        customer = v.integer(customer_id, "Customer is invalid.")
        if not str(invoice_number or "").strip():
            raise ValidationError("Invoice is required.")
        value = v.at_least(amount, 0.01, "Amount must be greater than zero.")
        if method not in RECEIPT_TYPES:
            raise ValidationError("Payment method must be Cash, Card or Bank Transfer.")

        payload = {
            "type": RECEIPT_TYPES[method],
            "is_active": 1,
            "date": (receipt_date or self.now().date()).strftime("%Y-%m-%d"),
            "amount": value,
            "created_by": created_by if created_by is not None else self.user_id,
            "ref_id": invoice_number,
            "location_id": int(self.location_id),
            "customer_id": customer,
            "today_invoice": invoice_number,
            "company_id": self.repo.company_id,
        }
        result = self.repo.create_receipt(payload)
        body = result.get("data") or result
        data = dict(payload)
        data["id"] = str(body.get("id") or "")
        data["rec_number"] = str(body.get("rec_number") or "")
        log.info("receipt_created invoice=%s amount=%.2f method=%s", invoice_number, value, method)
        return Receipt.from_api(data)

    def list_receipts(self) -> list[Receipt]:
        return self.repo.list_receipts()
