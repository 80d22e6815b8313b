from __future__ import annotations

import logging
from typing import Optional

from payshia_erp.domain.models import Location
from payshia_erp.services import validation as v

log = logging.getLogger("payshia_erp.locations")


class LocationService:
    def __init__(self, repo, plans=None):
        self.repo = repo
        self.plans = plans

    def list_locations(self) -> list[Location]:
        return self.repo.list_locations()

    def pos_locations(self) -> list[Location]:
        return [l for l in self.repo.list_locations() if l.pos_status and l.is_active]

    def save_location(self, form: dict, location_id: Optional[str] = None) -> dict:
        payload = dict(form)
        payload["location_name"] = v.text(form.get("location_name"), 3, "Location name is required.")
        payload["location_type"] = v.text(form.get("location_type"), 1, "Location type is required.")
        payload["address_line1"] = v.text(form.get("address_line1"), 3, "Address is required.")
        payload["city"] = v.text(form.get("city"), 2, "City is required.")
        payload["phone_1"] = v.text(form.get("phone_1"), 10, "A valid phone number is required.")
        payload.update({
            "is_active": 1,
            "pos_status": 1 if form.get("pos_status") else 0,
            "created_by": "admin",
            "logo_path": "/logos/default.png",
            "pos_token": 101,
            "company_id": self.repo.company_id,
        })

        if location_id is None and self.plans is not None:
            self.plans.require("locations")

        result = self.repo.save_location(payload, location_id)
        log.info("location_saved location_id=%s name=%s", location_id or "new", payload["location_name"])
        return result
