from __future__ import annotations

import logging
from typing import Optional

from payshia_erp.domain.errors import ApiError, AuthorizationError, ValidationError
from payshia_erp.domain.models import UserSession
from payshia_erp.services import validation as v

log = logging.getLogger("payshia_erp.auth")

ROLES = ("Admin", "Manager", "Sales Agent")

PERMISSIONS: dict[str, set[str]] = {
    "manage_catalog": {"Admin", "Manager"},
    "create_product": {"Admin", "Manager"},
    "delete_product": {"Admin"},
    "manage_locations": {"Admin"},
    "manage_suppliers": {"Admin", "Manager"},
    "manage_customers": {"Admin", "Manager", "Sales Agent"},
    "create_purchase_order": {"Admin", "Manager"},
    "receive_goods": {"Admin", "Manager"},
    "supplier_return": {"Admin", "Manager"},
    "supplier_payment": {"Admin"},
    "stock_transfer": {"Admin", "Manager"},
    "opening_stock": {"Admin", "Manager"},
    "create_invoice": {"Admin", "Manager", "Sales Agent"},
    "create_receipt": {"Admin", "Manager", "Sales Agent"},
    "pos_checkout": {"Admin", "Manager", "Sales Agent"},
    "post_journal": {"Admin"},
    "record_expense": {"Admin", "Manager"},
    "manage_fixed_assets": {"Admin"},
    "run_campaigns": {"Admin", "Manager"},
    "run_forecast": {"Admin", "Manager"},
    "export_report": {"Admin", "Manager", "Sales Agent"},
}

COMPANY_URL_FIELDS = ("website", "org_logo", "founder_photo")


class AuthService:
    def __init__(self, repo):
        self.repo = repo

    def login(self, email: str, password: str) -> UserSession:
        email_clean = v.email(email, "Please enter a valid email address.")
        if not (password or ""):
            raise ValidationError("Password is required.")

        body = self.repo.login(email_clean, password)
        data = body.get("data") or {}
        user_id = data.get("id")
        user_name = data.get("user_name")
        if not user_id or not user_name:
            raise AuthorizationError("Login successful, but user ID or name was not returned.")

        role = str(data.get("role") or "Admin")
        company = self.resolve_company(int(user_id))
        if company is None:
            log.info("login_pending_company user_id=%s", user_id)
            return UserSession(user_id=int(user_id), user_name=str(user_name), role=role)

        company_id, company_name = company
        log.info("login_ok user_id=%s company_id=%s", user_id, company_id)
        return UserSession(
            user_id=int(user_id),
            user_name=str(user_name),
            role=role,
            company_id=company_id,
            company_name=company_name,
        )

    def resolve_company(self, user_id: int) -> Optional[tuple[int, str]]:
        assoc = self.repo.company_association(user_id)
        links = assoc.get("data") or []
        if assoc.get("status") != "success" or not assoc.get("has_company") or not links:
            return None
        company_id = int(links[0]["company_id"])
        details = self.repo.get_company(company_id)
        return company_id, str(details.get("company_name") or "")

    def register(self, full_name: str, email: str, password: str) -> dict:
        name = v.text(full_name, 3, "Full name must be at least 3 characters.")
        email_clean = v.email(email, "Please enter a valid email address.")
        if len(password or "") < 8:
            raise ValidationError("Password must be at least 8 characters.")

        first_name, _, last_name = name.partition(" ")
        payload = {
            "email": email_clean,
            "user_name": email_clean.split("@")[0],
            "pass": password,
            "first_name": first_name,
            "last_name": last_name.strip(),
            "sex": "Male",
            "addressl1": "N/A",
            "addressl2": "",
            "city": "N/A",
            "PNumber": "",
            "WPNumber": "",
            "user_status": "Active",
            "acc_type": "user",
            "img_path": "",
            "update_by": "system",
            "civil_status": "Single",
            "nic_number": "",
        }
        created = self.repo.create_user(payload)
        log.info("user_registered user_name=%s", payload["user_name"])
        return created

    def create_company(self, session: UserSession, form: dict) -> UserSession:
        """Create a company for a user without one and link the two."""
        payload = dict(form)
        payload["company_name"] = v.text(form.get("company_name"), 3, "Company name is required.")
        payload["company_address"] = v.text(form.get("company_address"), 3, "Address is required.")
        payload["company_city"] = v.text(form.get("company_city"), 2, "City is required.")
        payload["company_email"] = v.email(form.get("company_email"), "A valid email is required.")
        payload["company_telephone"] = v.text(form.get("company_telephone"), 10, "A valid phone number is required.")
        for key in COMPANY_URL_FIELDS:
            payload[key] = v.optional_url(form.get(key))
        payload["is_active"] = 1
        payload["created_by"] = "admin"

        result = self.repo.create_company(payload)
        raw_id = (result.get("data") or {}).get("id")
        if raw_id is None:
            raise ApiError("Failed to create company.")
        company_id = int(raw_id)
        self.repo.link_company_user({"company_id": company_id, "user_id": session.user_id, "created_by": "admin"})
        log.info("company_created company_id=%s user_id=%s", company_id, session.user_id)
        return UserSession(
            user_id=session.user_id,
            user_name=session.user_name,
            role=session.role,
            company_id=company_id,
            company_name=payload["company_name"],
        )

    def can(self, session: UserSession, action: str) -> bool:
        allowed_roles = PERMISSIONS.get(action)
        if not allowed_roles:
            return False
        return session.role in allowed_roles

    def require_action(self, session: UserSession, action: str) -> None:
        if not self.can(session, action):
            raise AuthorizationError(f"Role '{session.role}' is not allowed to perform '{action}'.")
