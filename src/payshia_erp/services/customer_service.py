from __future__ import annotations

import logging
from typing import Iterable, Optional

from payshia_erp.domain.errors import NotFoundError, ValidationError
from payshia_erp.domain.models import Customer, EmailCampaign, LoyaltySchema, SmsCampaign
from payshia_erp.services import validation as v

log = logging.getLogger("payshia_erp.crm")

TIERS = ("Bronze", "Silver", "Gold", "Platinum")
SMS_AUDIENCES = ("All", "Silver", "Gold", "Platinum")
EMAIL_AUDIENCES = SMS_AUDIENCES + ("Custom",)
SMS_MAX_LENGTH = 160


def loyalty_tier(points: float, schema: LoyaltySchema | None = None) -> str:
    schema = schema or LoyaltySchema()
    if points >= schema.platinum:
        return "Platinum"
    if points >= schema.gold:
        return "Gold"
    if points >= schema.silver:
        return "Silver"
    return "Bronze"


class CustomerService:
    def __init__(self, repo, location_id: Optional[int] = None, schema: LoyaltySchema | None = None):
        self.repo = repo
        self.location_id = location_id
        self.schema = schema or LoyaltySchema()

    # ---------- customers ----------
    def list_customers(self) -> list[Customer]:
        return self.repo.list_customers()

    def get_customer(self, customer_id: str) -> Customer:
        for c in self.repo.list_customers():
            if c.customer_id == str(customer_id):
                return c
        raise NotFoundError("Customer not found.")

    def save_customer(self, form: dict, customer_id: Optional[str] = None) -> dict:
        if self.location_id is None:
            raise ValidationError("No Location Selected")

        payload = dict(form)
        payload["customer_first_name"] = v.text(form.get("customer_first_name"), 2, "First name is required.")
        payload["customer_last_name"] = v.text(form.get("customer_last_name"), 2, "Last name is required.")
        payload["phone_number"] = v.text(form.get("phone_number"), 10, "A valid phone number is required.")
        payload["email_address"] = v.optional_email(form.get("email_address"))
        payload["opening_balance"] = v.number(form.get("opening_balance"), "Opening balance must be a number.", 0.0)
        payload["credit_limit"] = v.number(form.get("credit_limit"), "Credit limit must be a number.", 0.0)
        payload.update({
            "is_active": 1,
            "created_by": "admin",
            "company_id": self.repo.company_id,
            "location_id": int(self.location_id),
            "city_id": 3,
            "credit_days": 30,
            "region_id": 5,
            "route_id": 2,
            "area_id": 8,
        })

        result = self.repo.save_customer(payload, customer_id)
        log.info("customer_saved customer_id=%s", customer_id or "new")
        return result

    def delete_customer(self, customer_id: str) -> None:
        self.repo.delete_customer(customer_id)
        log.info("customer_deleted customer_id=%s", customer_id)

    # ---------- loyalty ----------
    def tier_of(self, customer: Customer) -> str:
        return loyalty_tier(customer.loyalty_points, self.schema)

    def customers_with_tiers(self) -> list[tuple[Customer, str]]:
        return [(c, self.tier_of(c)) for c in self.repo.list_customers()]

    def update_loyalty_schema(self, silver: object, gold: object, platinum: object) -> LoyaltySchema:
        s = int(v.at_least(silver, 0, "Points must be a positive number."))
        g = int(v.at_least(gold, 0, "Points must be a positive number."))
        p = int(v.at_least(platinum, 0, "Points must be a positive number."))
        if g <= s:
            raise ValidationError("Gold tier must have more points than Silver.")
        if p <= g:
            raise ValidationError("Platinum tier must have more points than Gold.")
        self.schema = LoyaltySchema(silver=s, gold=g, platinum=p)
        log.info("loyalty_schema_updated silver=%s gold=%s platinum=%s", s, g, p)
        return self.schema

    def tier_counts(self) -> dict[str, int]:
        counts = {t: 0 for t in TIERS}
        for _c, tier in self.customers_with_tiers():
            counts[tier] += 1
        return counts

    # ---------- campaigns ----------
    def recipients_for(self, audience: str, custom_ids: Iterable[str] = ()) -> tuple[Customer, ...]:
        customers = self.repo.list_customers()
        if audience == "All":
            return tuple(customers)
        if audience == "Custom":
            wanted = {str(i) for i in custom_ids}
            return tuple(c for c in customers if c.customer_id in wanted)
        return tuple(c for c in customers if self.tier_of(c) == audience)

    def create_sms_campaign(self, name: str, target_audience: str, content: str) -> SmsCampaign:
        name_clean = v.text(name, 3, "Campaign name is required.")
        if target_audience not in SMS_AUDIENCES:
            raise ValidationError("Please select a target audience.")
        body = v.text(content, 10, "Message content is required.")
        if len(body) > SMS_MAX_LENGTH:
            raise ValidationError("Message must be 160 characters or less.")

        campaign = SmsCampaign(
            name=name_clean,
            target_audience=target_audience,
            content=body,
            status="Scheduled",
            recipients=self.recipients_for(target_audience),
        )
        log.info("sms_campaign_created name=%s audience=%s recipients=%s", name_clean, target_audience, campaign.recipient_count)
        return campaign

    def create_email_campaign(
        self,
        name: str,
        subject: str,
        target_audience: str,
        content: str,
        custom_ids: Iterable[str] = (),
    ) -> EmailCampaign:
        name_clean = v.text(name, 3, "Campaign name is required.")
        subject_clean = v.text(subject, 3, "Subject line is required.")
        if target_audience not in EMAIL_AUDIENCES:
            raise ValidationError("Please select a target audience.")
        body = v.text(content, 20, "Email content is required.")

        recipients = self.recipients_for(target_audience, custom_ids)
        campaign = EmailCampaign(
            name=name_clean,
            subject=subject_clean,
            target_audience=target_audience,
            content=body,
            status="Scheduled",
            recipients=tuple(c for c in recipients if c.email_address),
        )
        log.info("email_campaign_created name=%s audience=%s recipients=%s", name_clean, target_audience, campaign.recipient_count)
        return campaign
