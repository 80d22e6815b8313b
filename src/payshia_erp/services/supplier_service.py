from __future__ import annotations

import logging
from typing import Optional

from payshia_erp.domain.models import Supplier
from payshia_erp.services import validation as v

log = logging.getLogger("payshia_erp.purchasing")


class SupplierService:
    def __init__(self, repo):
        self.repo = repo

    def list_suppliers(self) -> list[Supplier]:
        return self.repo.list_suppliers()

    def get_supplier(self, supplier_id: str) -> Optional[Supplier]:
        for s in self.repo.list_suppliers():
            if s.supplier_id == str(supplier_id):
                return s
        return None

    def save_supplier(self, form: dict, supplier_id: Optional[str] = None) -> dict:
        payload = dict(form)
        payload["supplier_name"] = v.text(form.get("supplier_name"), 3, "Supplier name is required.")
        payload["contact_person"] = v.text(form.get("contact_person"), 3, "Contact person is required.")
        payload["email"] = v.email(form.get("email"))
        payload["telephone"] = v.text(form.get("telephone"), 10, "Phone number is required.")
        payload["opening_balance"] = v.number(form.get("opening_balance"), "Opening balance must be a number.", 0.0)
        payload["is_active"] = 1
        payload["created_by"] = "admin"
        payload["company_id"] = self.repo.company_id

        result = self.repo.save_supplier(payload, supplier_id)
        log.info("supplier_saved supplier_id=%s name=%s", supplier_id or "new", payload["supplier_name"])
        return result
