from datetime import date

import pytest

from conftest import FakeRepository, make_product
from payshia_erp.domain.errors import AuthorizationError, PlanLimitError, ValidationError
from payshia_erp.domain.models import Order, UserSession
from payshia_erp.services.auth_service import AuthService
from payshia_erp.services.plan_service import UNKNOWN_USAGE, PlanService


def test_login_resolves_company():
    repo = FakeRepository()
    repo.responses["login"] = {"data": {"id": 12, "user_name": "nimal", "role": "Manager"}}
    repo.responses["company_association"] = {"status": "success", "has_company": True, "data": [{"company_id": "3"}]}
    repo.responses["get_company"] = {"company_name": "Nimal Stores"}

    session = AuthService(repo).login(" nimal@shop.lk ", "pw")

    assert session.user_id == 12
    assert session.company_id == 3
    assert session.company_name == "Nimal Stores"
    assert session.role == "Manager"
    assert not session.needs_company
    assert repo.payloads("login")[0]["email"] == "nimal@shop.lk"


def test_login_without_company_needs_one():
    repo = FakeRepository()
    repo.responses["login"] = {"data": {"id": 4, "user_name": "kamal"}}
    session = AuthService(repo).login("kamal@shop.lk", "pw")
    assert session.needs_company
    assert session.role == "Admin"


def test_login_rejects_missing_user_fields():
    repo = FakeRepository()
    repo.responses["login"] = {"data": {"id": 4}}
    with pytest.raises(AuthorizationError):
        AuthService(repo).login("kamal@shop.lk", "pw")


def test_login_validates_input_before_calling_server():
    repo = FakeRepository()
    with pytest.raises(ValidationError, match="valid email"):
        AuthService(repo).login("not-an-email", "pw")
    with pytest.raises(ValidationError, match="Password"):
        AuthService(repo).login("a@b.co", "")
    assert repo.posted == []


def test_create_company_links_user():
    repo = FakeRepository()
    repo.responses["create_company"] = {"data": {"id": 9}}
    auth = AuthService(repo)

    session = auth.create_company(UserSession(user_id=4, user_name="kamal"), {
        "company_name": "Kamal Traders",
        "company_address": "12 Main St",
        "company_city": "Galle",
        "company_email": "hello@kamal.lk",
        "company_telephone": "0771234567",
        "website": "https://kamal.lk",
    })

    assert session.company_id == 9
    assert repo.payloads("link_company_user") == [{"company_id": 9, "user_id": 4, "created_by": "admin"}]


def test_create_company_rejects_bad_url():
    auth = AuthService(FakeRepository())
    with pytest.raises(ValidationError, match="valid URL"):
        auth.create_company(UserSession(user_id=4, user_name="kamal"), {
            "company_name": "Kamal Traders",
            "company_address": "12 Main St",
            "company_city": "Galle",
            "company_email": "hello@kamal.lk",
            "company_telephone": "0771234567",
            "website": "kamal dot lk",
        })


def test_register_requires_long_password():
    with pytest.raises(ValidationError, match="8 characters"):
        AuthService(FakeRepository()).register("Kamal Perera", "k@p.lk", "short")


def test_role_permissions():
    auth = AuthService(FakeRepository())
    agent = UserSession(user_id=1, user_name="a", role="Sales Agent")
    admin = UserSession(user_id=2, user_name="b", role="Admin")

    assert auth.can(agent, "pos_checkout")
    assert not auth.can(agent, "supplier_payment")
    assert auth.can(admin, "supplier_payment")
    assert not auth.can(admin, "unknown_action")
    with pytest.raises(AuthorizationError):
        auth.require_action(agent, "post_journal")


def test_product_limit_blocks_at_plan_cap():
    repo = FakeRepository()
    repo.products = [make_product(pid=str(i)) for i in range(25)]
    plans = PlanService(repo, plan_id="plan-basic")

    status = plans.check_plan_limit("products")
    assert not status.has_access
    assert status.usage == 25
    with pytest.raises(PlanLimitError, match="products limit"):
        plans.require("products")


def test_orders_counted_for_current_month_only():
    repo = FakeRepository()
    repo.orders = [
        Order(id="1", customer_name="A", channel="POS", date="2026-10-02", status="Paid", total=10),
        Order(id="2", customer_name="B", channel="POS", date="2026-09-30", status="Paid", total=10),
    ]
    plans = PlanService(repo, today=lambda: date(2026, 10, 19))
    assert plans.check_plan_limit("orders").usage == 1


def test_enterprise_is_unlimited():
    repo = FakeRepository()
    repo.locations = [object()] * 50
    status = PlanService(repo, plan_id="plan-enterprise").check_plan_limit("locations")
    assert status.has_access


def test_usage_failure_counts_as_limit_reached():
    repo = FakeRepository()
    repo.failing.add("list_locations")
    status = PlanService(repo, plan_id="plan-pro").check_plan_limit("locations")
    assert status.usage == UNKNOWN_USAGE
    assert not status.has_access


def test_unknown_plan_and_feature_access():
    assert not PlanService(FakeRepository(), plan_id="nope").check_plan_limit("orders").has_access
    pro = PlanService(FakeRepository(), plan_id="plan-pro")
    assert pro.check_feature_access("ai logistics")
    assert not pro.check_feature_access("Phone Support")
    with pytest.raises(ValidationError):
        pro.check_plan_limit("users")
