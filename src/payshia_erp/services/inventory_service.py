from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable, Optional

from payshia_erp.domain.errors import NotFoundError, ValidationError
from payshia_erp.domain.models import InventoryLevel, Product, StockBatch, StockTransfer
from payshia_erp.services import validation as v

log = logging.getLogger("payshia_erp.inventory")

NO_EXPIRY = "0000-00-00"


class InventoryService:
    def __init__(self, repo, location_id: Optional[int] = None, today: Callable[[], date] = date.today):
        self.repo = repo
        self.location_id = location_id
        self.today = today

    # ---------- stock lookups ----------
    def available_batches(self, product_id: str, product_variant_id: str, location_id: Optional[str] = None) -> list[StockBatch]:
        batches = self.repo.stock_batches(product_id, product_variant_id, location_id)
        return [b for b in batches if b.stock_balance > 0]

    def location_stock(self, location_id: Optional[str] = None) -> list[InventoryLevel]:
        loc = location_id or self.location_id
        if loc is None:
            raise ValidationError("No Location Selected")
        return self.repo.location_stock(str(loc))

    def low_stock(self, location_id: Optional[str] = None) -> list[InventoryLevel]:
        return [lvl for lvl in self.location_stock(location_id) if lvl.is_low]

    # ---------- opening stock ----------
    def record_opening_stock(self, product: Optional[Product], lines: Iterable[dict]) -> int:
        """
        lines: [{product_variant_id, sku, quantity, batch_number?, expiry_date?}]

        Only lines with quantity > 0 are posted. Returns how many entries were sent.
        """
        if self.location_id is None:
            raise ValidationError("No location or company selected.")
        if product is None or not product.id:
            raise ValidationError("Please select a product.")

        entries = []
        today_iso = self.today().strftime("%Y-%m-%d")
        for line in lines:
            qty = v.at_least(line.get("quantity"), 0, "Quantity must be a positive number.", 0.0)
            if qty <= 0:
                continue
            expiry = line.get("expiry_date")
            entries.append({
                "type": "IN",
                "quantity": qty,
                "patch_code": (line.get("batch_number") or "").strip() or f"OPEN-{line.get('sku', '')}",
                "manufacture_date": today_iso,
                "expire_date": expiry.strftime("%Y-%m-%d") if expiry else NO_EXPIRY,
                "product_id": int(product.id),
                "reference": "Opening Stock",
                "location_id": int(self.location_id),
                "created_by": "admin",
                "is_active": "1",
                "ref_id": "N/A",
                "company_id": self.repo.company_id,
                "transaction_type": "opening_stock",
                "product_variant_id": int(line["product_variant_id"]),
            })

        if not entries:
            raise ValidationError("Please enter a quantity for at least one variant.")

        self.repo.post_stock_entries(entries)
        log.info("opening_stock_saved product_id=%s entries=%s", product.id, len(entries))
        return len(entries)

    # ---------- transfers ----------
    def list_transfers(self) -> list[StockTransfer]:
        return self.repo.list_stock_transfers()

    def transfer_value(self, items: Iterable[dict]) -> float:
        """Sum of cost price x quantity, resolving each SKU against the catalog."""
        by_sku = self._variants_by_sku()
        total = 0.0
        for it in items:
            found = by_sku.get((it.get("sku") or "").strip())
            if found is None:
                continue
            product, _variant_id = found
            total += product.cost_price * float(it.get("quantity") or 0)
        return total

    def _variants_by_sku(self) -> dict[str, tuple[Product, str]]:
        out: dict[str, tuple[Product, str]] = {}
        for p in self.repo.list_products():
            for var in p.variants:
                out[var.sku] = (p, var.id)
        return out

    def create_transfer(
        self,
        transfer_date: Optional[date],
        from_location: str,
        to_location: str,
        items: Iterable[dict],
    ) -> str:
        if transfer_date is None:
            raise ValidationError("A date is required.")
        if transfer_date > self.today():
            raise ValidationError("Transfer date cannot be in the future.")
        src = str(from_location or "").strip()
        dst = str(to_location or "").strip()
        if not src:
            raise ValidationError("Source location is required.")
        if not dst:
            raise ValidationError("Destination location is required.")
        if src == dst:
            raise ValidationError("Source and destination locations cannot be the same.")

        items = list(items)
        if not items:
            raise ValidationError("At least one item is required.")

        by_sku = self._variants_by_sku()
        lines = []
        for it in items:
            sku = (it.get("sku") or "").strip()
            if not sku:
                raise ValidationError("Product is required.")
            qty = v.at_least(it.get("quantity"), 1, "Quantity must be at least 1.")
            found = by_sku.get(sku)
            if found is None:
                raise NotFoundError(f"No product variant with SKU '{sku}'.")
            product, variant_id = found
            lines.append({
                "product_id": int(product.id),
                "product_variant_id": int(variant_id),
                "quantity": qty,
                "cost_price": product.cost_price,
            })

        payload = {
            "from_location": int(src),
            "to_location": int(dst),
            "transfer_date": transfer_date.strftime("%Y-%m-%d"),
            "status": "pending",
            "total_value": sum(l["cost_price"] * l["quantity"] for l in lines),
            "company_id": self.repo.company_id,
            "created_by": "admin",
            "items": lines,
        }
        result = self.repo.create_stock_transfer(payload)
        number = str(result.get("stock_transfer_number") or (result.get("data") or {}).get("stock_transfer_number") or "")
        log.info("stock_transfer_created number=%s from=%s to=%s items=%s", number, src, dst, len(lines))
        return number
