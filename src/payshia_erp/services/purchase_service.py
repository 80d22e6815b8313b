from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, timedelta
from typing import Callable, Iterable, Optional

from payshia_erp.domain.errors import AppError, ValidationError
from payshia_erp.domain.models import (
    GoodsReceivedNote,
    GrnBatch,
    GrnDraft,
    GrnLine,
    PurchaseOrder,
    SupplierPayment,
    SupplierReturn,
)
from payshia_erp.services import validation as v

log = logging.getLogger("payshia_erp.purchasing")

TAX_RATE = 0.15
PO_STATUSES = ("pending", "approved", "rejected")
DEFAULT_DELIVERY_DAYS = 14


def po_totals(items: Iterable[dict]) -> tuple[float, float, float]:
    """(subtotal, tax, total) for PO form lines of {quantity, order_rate}."""
    sub_total = sum(float(it.get("quantity") or 0) * float(it.get("order_rate") or 0) for it in items)
    tax = sub_total * TAX_RATE
    return sub_total, tax, sub_total + tax


def grn_totals(draft: GrnDraft) -> tuple[float, float, float]:
    sub_total = sum(b.received_qty * line.unit_rate for line in draft.lines for b in line.batches)
    tax = sub_total * TAX_RATE if draft.tax_type.upper() == "VAT" else 0.0
    return sub_total, tax, sub_total + tax


def _receivable(po: PurchaseOrder) -> bool:
    return po.po_status == "approved" and po.is_active


class PurchaseService:
    def __init__(self, repo, location_id: Optional[int] = None, today: Callable[[], date] = date.today):
        self.repo = repo
        self.location_id = location_id
        self.today = today

    # ---------- purchase orders ----------
    def list_purchase_orders(self) -> list[PurchaseOrder]:
        return self.repo.list_purchase_orders()

    def get_purchase_order(self, po_id: str) -> PurchaseOrder:
        return self.repo.get_purchase_order(po_id)

    def default_delivery_date(self) -> date:
        return self.today() + timedelta(days=DEFAULT_DELIVERY_DAYS)

    def create_purchase_order(
        self,
        supplier_id: str,
        items: Iterable[dict],
        delivery_date: Optional[date] = None,
        po_status: str = "pending",
        tax_type: str = "VAT",
        remarks: str = "",
        is_active: bool = True,
    ) -> str:
        """
        items: [{product_id, product_variant_id?, quantity, order_rate}]

        Returns the server-assigned PO number.
        """
        if self.location_id is None:
            raise ValidationError("No Location Selected")
        if not str(supplier_id or "").strip():
            raise ValidationError("Supplier is required.")
        if po_status not in PO_STATUSES:
            raise ValidationError("Status must be pending, approved or rejected.")
        if not (tax_type or "").strip():
            raise ValidationError("Tax type is required.")

        items = list(items)
        if not items:
            raise ValidationError("At least one item is required.")

        products = {p.id: p for p in self.repo.list_products()}
        lines = []
        for it in items:
            pid = str(it.get("product_id") or "").strip()
            if not pid:
                raise ValidationError("Product is required.")
            qty = v.at_least(it.get("quantity"), 1, "Quantity must be at least 1.")
            rate = v.at_least(it.get("order_rate"), 0, "Cost must be a positive number.")

            product = products.get(pid)
            variant_id = it.get("product_variant_id")
            if not variant_id and product is not None and product.variants:
                variant_id = product.variants[0].id
            lines.append({
                "product_id": int(pid),
                "product_variant_id": int(variant_id) if variant_id else None,
                "quantity": qty,
                "order_rate": rate,
                "order_unit": (product.stock_unit if product is not None else "") or "Nos",
            })

        sub_total, _tax, total = po_totals(lines)
        payload = {
            "location_id": int(self.location_id),
            "company_id": self.repo.company_id,
            "supplier_id": int(supplier_id),
            "total_amount": total,
            "currency": "LKR",
            "tax_type": tax_type,
            "sub_total": sub_total,
            "created_by": "admin",
            "po_status": po_status,
            "remarks": remarks or "",
            "delivery_date": (delivery_date or self.default_delivery_date()).strftime("%Y-%m-%d"),
            "is_active": 1 if is_active else 0,
            "items": lines,
        }
        result = self.repo.create_purchase_order(payload)
        po_number = str(result.get("po_number") or "")
        log.info("po_created po_number=%s supplier_id=%s items=%s total=%.2f", po_number, supplier_id, len(lines), total)
        return po_number

    # ---------- goods received ----------
    def build_grn_draft(self, po_id: str) -> GrnDraft:
        po = self.repo.get_purchase_order(po_id)
        if not _receivable(po):
            raise ValidationError(f"Purchase order {po.po_number} is {po.po_status}; only approved orders can be received.")
        products = {p.id: p for p in self.repo.list_products()}
        suppliers = {s.supplier_id: s.supplier_name for s in self.repo.list_suppliers()}

        lines = []
        for item in po.items:
            try:
                already = self.repo.total_received_qty(item.product_id, item.product_variant_id, po.po_number)
            except AppError as e:
                log.warning("received_qty_unavailable po=%s product_id=%s error=%s", po.po_number, item.product_id, e)
                already = 0.0

            product = products.get(item.product_id)
            sku = item.variant_sku or ""
            if product is not None and not sku:
                variant = next((x for x in product.variants if x.id == item.product_variant_id), None)
                sku = variant.sku if variant else ""
            receivable = item.quantity - already
            lines.append(GrnLine(
                product_id=item.product_id,
                product_variant_id=item.product_variant_id,
                sku=sku,
                product_name=item.product_name or (product.name if product else ""),
                order_qty=item.quantity,
                already_received=already,
                unit_rate=item.order_rate,
                order_unit=item.order_unit,
                batches=(GrnBatch(batch_number="", received_qty=max(receivable, 0.0)),),
            ))

        return GrnDraft(
            po_id=po.id,
            po_number=po.po_number,
            supplier_id=po.supplier_id,
            supplier_name=suppliers.get(po.supplier_id, ""),
            location_id=str(self.location_id or po.location_id or ""),
            grn_date=self.today(),
            currency=po.currency or "LKR",
            tax_type=po.tax_type or "VAT",
            lines=tuple(lines),
        )

    def set_batches(self, draft: GrnDraft, line_index: int, batches: Iterable[GrnBatch]) -> GrnDraft:
        lines = list(draft.lines)
        lines[line_index] = replace(lines[line_index], batches=tuple(batches))
        return replace(draft, lines=tuple(lines))

    def validate_grn(self, draft: GrnDraft) -> None:
        if not str(draft.location_id or "").strip():
            raise ValidationError("Location is required")
        for line in draft.lines:
            if not line.batches:
                raise ValidationError("At least one batch is required.")
            for b in line.batches:
                if not (b.batch_number or "").strip():
                    raise ValidationError("Batch number is required.")
                if b.received_qty < 0.01:
                    raise ValidationError("Quantity must be greater than 0.")
            # small epsilon for float sums of batch quantities
            if line.received_total > line.receivable + 1e-9:
                raise ValidationError("Total received quantity for an item cannot exceed the receivable quantity.")

    def create_grn(self, draft: GrnDraft) -> str:
        self.validate_grn(draft)
        sub_total, tax, grand_total = grn_totals(draft)

        items = []
        for line in draft.lines:
            for b in line.batches:
                items.append({
                    "product_id": int(line.product_id),
                    "product_variant_id": int(line.product_variant_id),
                    "order_unit": line.order_unit,
                    "order_rate": line.unit_rate,
                    "received_qty": b.received_qty,
                    "patch_code": b.batch_number.strip(),
                    "manufacture_date": b.mfg_date.strftime("%Y-%m-%d") if b.mfg_date else "",
                    "expire_date": b.exp_date.strftime("%Y-%m-%d") if b.exp_date else "",
                    "po_number": draft.po_number,
                    "is_active": 1,
                })

        payload = {
            "location_id": int(draft.location_id),
            "company_id": self.repo.company_id,
            "supplier_id": int(draft.supplier_id),
            "po_number": draft.po_number,
            "grn_date": draft.grn_date.strftime("%Y-%m-%d"),
            "currency": draft.currency,
            "tax_type": draft.tax_type,
            "sub_total": sub_total,
            "tax_value": tax,
            "grand_total": grand_total,
            "payment_status": draft.payment_status or "Unpaid",
            "remarks": draft.remark or "",
            "created_by": "admin",
            "is_active": 1,
            "items": items,
        }
        result = self.repo.create_grn(payload)
        grn_number = str(result.get("grn_number") or (result.get("data") or {}).get("grn_number") or "")
        log.info("grn_created grn_number=%s po_number=%s lines=%s total=%.2f", grn_number, draft.po_number, len(items), grand_total)
        return grn_number

    def list_grns(self) -> list[GoodsReceivedNote]:
        return self.repo.list_grns()

    def get_grn(self, grn_id: str) -> GoodsReceivedNote:
        return self.repo.get_grn(grn_id)

    def receivable_purchase_orders(self) -> list[PurchaseOrder]:
        return [po for po in self.repo.list_purchase_orders() if _receivable(po)]

    # ---------- returns / payments ----------
    def create_supplier_return(self, grn_id: str, items: Iterable[dict], notes: str = "") -> SupplierReturn:
        """
        items: [{product_id, product_variant_id, product_name, received_qty, unit_price, return_qty, reason}]
        """
        grn = self.repo.get_grn(grn_id)
        items = list(items)
        if not items:
            raise ValidationError("At least one item must be included in the return.")

        returned = []
        for it in items:
            qty = v.at_least(it.get("return_qty"), 0, "Return quantity cannot be negative.", 0.0)
            received = float(it.get("received_qty") or 0)
            if qty > received:
                raise ValidationError("Return quantity cannot exceed received quantity.")
            reason = v.text(it.get("reason"), 1, "Reason is required.")
            if qty > 0:
                returned.append({
                    "product_id": str(it.get("product_id")),
                    "product_variant_id": str(it.get("product_variant_id") or ""),
                    "product_name": str(it.get("product_name") or ""),
                    "received_qty": received,
                    "unit_price": float(it.get("unit_price") or 0),
                    "return_qty": qty,
                    "reason": reason,
                })
        if not returned:
            raise ValidationError("At least one item must have a return quantity greater than 0.")

        total_value = sum(r["return_qty"] * r["unit_price"] for r in returned)
        payload = {
            "grn_id": grn.id,
            "supplier_id": grn.supplier_id,
            "location_id": grn.location_id,
            "company_id": self.repo.company_id,
            "return_date": self.today().strftime("%Y-%m-%d"),
            "total_value": total_value,
            "notes": notes or "",
            "created_by": "admin",
            "items": returned,
        }
        result = self.repo.create_supplier_return(payload)
        data = dict(payload)
        data["id"] = str((result.get("data") or result).get("id") or "")
        log.info("supplier_return_created grn=%s items=%s value=%.2f", grn.grn_number, len(returned), total_value)
        return SupplierReturn.from_api(data)

    def list_supplier_returns(self) -> list[SupplierReturn]:
        return self.repo.list_supplier_returns()

    def due_grns(self, supplier_id: str) -> list[GoodsReceivedNote]:
        return [
            g for g in self.repo.list_grns()
            if g.supplier_id == str(supplier_id) and g.payment_status != "Paid"
        ]

    def record_payment(
        self,
        supplier_id: str,
        amount: object,
        payment_account_id: str,
        grn_ids: Iterable[str],
        payment_date: Optional[date] = None,
        notes: str = "",
    ) -> SupplierPayment:
        if payment_date is None:
            raise ValidationError("A date is required.")
        if not str(supplier_id or "").strip():
            raise ValidationError("Supplier is required.")
        value = v.at_least(amount, 0.01, "Amount must be greater than zero.")
        if not str(payment_account_id or "").strip():
            raise ValidationError("Payment account is required.")
        grn_ids = [str(g) for g in grn_ids]
        if not grn_ids:
            raise ValidationError("Please select at least one GRN to pay.")

        payload = {
            "date": payment_date.strftime("%Y-%m-%d"),
            "supplier_id": str(supplier_id),
            "amount": value,
            "payment_account_id": str(payment_account_id),
            "grn_ids": grn_ids,
            "notes": notes or "",
            "company_id": self.repo.company_id,
            "created_by": "admin",
        }
        result = self.repo.create_payment(payload)
        data = dict(payload)
        data["id"] = str((result.get("data") or result).get("id") or "")
        log.info("supplier_payment_recorded supplier_id=%s amount=%.2f grns=%s", supplier_id, value, len(grn_ids))
        return SupplierPayment.from_api(data)

    def list_payments(self) -> list[SupplierPayment]:
        return self.repo.list_payments()
