from __future__ import annotations

import logging
from datetime import date, datetime

from openpyxl import load_workbook

from payshia_erp.domain.errors import AppError, ValidationError

log = logging.getLogger("payshia_erp.inventory")


def _as_date(value) -> date | None:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip()[:10])


class ExcelService:
    def __init__(self, catalog_service, inventory_service):
        self.catalog = catalog_service
        self.inventory = inventory_service

    def import_opening_stock_excel(self, path: str) -> tuple[int, int]:
        """
        Each row is an opening-stock line for one variant at the current location.
        Headers:
          sku | quantity | batch_number | expiry_date
        batch_number and expiry_date may be left blank.
        """
        wb = load_workbook(path)
        ws = wb.active

        headers = {}
        for col in range(1, ws.max_column + 1):
            v = ws.cell(row=1, column=col).value
            if isinstance(v, str):
                headers[v.strip().lower()] = col

        required = ["sku", "quantity"]
        for r in required:
            if r not in headers:
                raise ValidationError(f"Missing column header: {r}")

        def cell(row, name):
            col = headers.get(name)
            return ws.cell(row=row, column=col).value if col else None

        ok = 0
        skipped = 0

        # product_id -> (product, [lines])
        grouped: dict[str, tuple] = {}
        for row in range(2, ws.max_row + 1):
            try:
                sku = cell(row, "sku")
                qty = cell(row, "quantity")
                if not sku or qty is None:
                    skipped += 1
                    continue

                sku = str(sku).strip()
                qty = float(qty)
                if qty <= 0:
                    skipped += 1
                    continue

                product, variant_id = self.catalog.find_by_sku(sku)
                batch = cell(row, "batch_number")
                line = {
                    "product_variant_id": variant_id,
                    "sku": sku,
                    "quantity": qty,
                    "batch_number": str(batch).strip() if batch else "",
                    "expiry_date": _as_date(cell(row, "expiry_date")),
                }
                grouped.setdefault(product.id, (product, []))[1].append(line)
            except (AppError, ValueError, TypeError) as e:
                log.warning("opening_stock_row_skipped row=%s error=%s", row, e)
                skipped += 1

        for product, lines in grouped.values():
            ok += self.inventory.record_opening_stock(product, lines)

        log.info("opening_stock_imported path=%s ok=%s skipped=%s", path, ok, skipped)
        return ok, skipped
