from __future__ import annotations

import logging
import math
from datetime import date
from typing import Callable, Optional

from payshia_erp.domain.errors import AppError, PlanLimitError, ValidationError
from payshia_erp.domain.models import Plan, PlanLimits, PlanLimitStatus

log = logging.getLogger("payshia_erp.plans")

UNLIMITED = math.inf
# Usage reported when the server can't be asked; treated as "limit reached".
UNKNOWN_USAGE = 999

PLANS: tuple[Plan, ...] = (
    Plan(
        id="plan-basic",
        name="Basic",
        description="For small businesses just getting started.",
        price=15,
        limits=PlanLimits(orders=100, products=25, locations=1),
        features=("Standard Reporting", "Email Support"),
        cta_label="Choose Basic",
    ),
    Plan(
        id="plan-pro",
        name="Pro",
        description="For growing businesses that need more power.",
        price=45,
        limits=PlanLimits(orders=1000, products=500, locations=5),
        features=("Advanced Reporting", "Priority Support", "AI Logistics"),
        cta_label="Upgrade to Pro",
    ),
    Plan(
        id="plan-enterprise",
        name="Enterprise",
        description="For large-scale operations with custom needs.",
        price=99,
        limits=PlanLimits(orders=UNLIMITED, products=UNLIMITED, locations=UNLIMITED),
        features=("Custom Reporting", "Dedicated Account Manager", "24/7 Phone Support"),
        cta_label="Contact Us",
    ),
)

LIMIT_KINDS = ("products", "locations", "orders")


def find_plan(plan_id: str) -> Optional[Plan]:
    for p in PLANS:
        if p.id == plan_id:
            return p
    return None


class PlanService:
    def __init__(self, repo, plan_id: str = "plan-basic", today: Callable[[], date] = date.today):
        self.repo = repo
        self.plan_id = plan_id
        self.today = today

    @property
    def plan(self) -> Optional[Plan]:
        return find_plan(self.plan_id)

    def _usage(self, kind: str) -> int:
        try:
            if kind == "products":
                return len(self.repo.list_products())
            if kind == "locations":
                return len(self.repo.list_locations())
            month = self.today().strftime("%Y-%m")
            return sum(1 for o in self.repo.list_orders() if o.date.startswith(month))
        except AppError as e:
            log.warning("plan_usage_unavailable kind=%s error=%s", kind, e)
            return UNKNOWN_USAGE

    def check_plan_limit(self, kind: str) -> PlanLimitStatus:
        if kind not in LIMIT_KINDS:
            raise ValidationError(f"Unknown limit type: {kind}")

        plan = self.plan
        if plan is None:
            return PlanLimitStatus(has_access=False, limit=0, usage=0, name="Unknown")

        limit = float(getattr(plan.limits, kind))
        usage = self._usage(kind)
        if limit == UNLIMITED or limit == -1:
            return PlanLimitStatus(has_access=True, limit=UNLIMITED, usage=usage, name=plan.name)
        return PlanLimitStatus(has_access=usage < limit, limit=limit, usage=usage, name=plan.name)

    def check_feature_access(self, feature_name: str) -> bool:
        plan = self.plan
        if plan is None:
            return False
        needle = feature_name.lower()
        return any(needle in f.lower() for f in plan.features)

    def require(self, kind: str) -> PlanLimitStatus:
        status = self.check_plan_limit(kind)
        if not status.has_access:
            log.info("plan_limit_reached kind=%s plan=%s usage=%s limit=%s", kind, status.name, status.usage, status.limit)
            raise PlanLimitError(
                f"You have reached the {kind} limit of your {status.name} plan "
                f"({status.usage}/{status.limit:g}). Please upgrade to add more."
            )
        return status
