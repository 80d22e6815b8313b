import json
import logging
from pathlib import Path

import pytest

from payshia_erp.application.container import bind_session, build_container, set_location
from payshia_erp.config import DEFAULT_API_BASE_URL, ErpSettings, load_settings
from payshia_erp.domain.models import UserSession
from payshia_erp.logging_config import DOMAIN_LOGGERS, SESSION_CONTEXT, JsonFormatter, setup_logging


def test_settings_defaults():
    settings = load_settings({})
    assert settings.api_base_url == DEFAULT_API_BASE_URL
    assert settings.company_id == 1
    assert settings.location_id is None
    assert settings.openai_api_key is None


def test_settings_from_env():
    settings = load_settings({
        "PAYSHIA_API_BASE_URL": "http://localhost:5000/",
        "PAYSHIA_COMPANY_ID": "4",
        "PAYSHIA_LOCATION_ID": "2",
        "PAYSHIA_PLAN_ID": "plan-pro",
        "PAYSHIA_CURRENCY": "usd",
        "PAYSHIA_HTTP_TIMEOUT": "2.5",
        "OPENAI_API_KEY": "sk-test",
    })
    assert settings.api_base_url == "http://localhost:5000"
    assert settings.company_id == 4
    assert settings.location_id == 2
    assert settings.plan_id == "plan-pro"
    assert settings.currency == "USD"
    assert settings.http_timeout == 2.5
    assert settings.openai_api_key == "sk-test"


def test_bad_company_id_is_rejected():
    with pytest.raises(ValueError):
        load_settings({"PAYSHIA_COMPANY_ID": "abc"})


def test_container_wires_shared_repository():
    c = build_container(ErpSettings(company_id=3, location_id=2, currency="USD"))

    assert c.repo.company_id == 3
    assert c.catalog.repo is c.repo
    assert c.catalog.plans is c.plans
    assert c.pos.sales is c.sales
    assert c.excel.inventory is c.inventory
    assert c.sales.location_id == 2
    assert c.printing.symbol == "$"


def test_bind_session_and_location():
    c = build_container(ErpSettings())

    bind_session(c, UserSession(user_id=12, user_name="nimal", company_id=7))
    set_location(c, 5)

    assert c.repo.company_id == 7
    assert c.sales.user_id == 12
    assert (SESSION_CONTEXT.company_id, SESSION_CONTEXT.user_id) == (7, 12)
    assert {c.customers.location_id, c.purchases.location_id, c.inventory.location_id, c.sales.location_id} == {5}


def test_bind_session_without_company_keeps_default():
    c = build_container(ErpSettings(company_id=3))
    bind_session(c, UserSession(user_id=12, user_name="nimal"))
    assert c.repo.company_id == 3


def test_json_formatter():
    record = logging.LogRecord("payshia_erp.sales", logging.INFO, __file__, 1, "invoice_created n=%s", ("INV-1",), None)
    data = json.loads(JsonFormatter().format(record))
    assert data["logger"] == "payshia_erp.sales"
    assert data["message"] == "invoice_created n=INV-1"
    assert data["level"] == "INFO"


def test_json_formatter_adds_session_context():
    record = logging.LogRecord("payshia_erp.api", logging.INFO, __file__, 1, "api_request", (), None)
    record.company_id = 7
    record.user_id = None
    data = json.loads(JsonFormatter().format(record))
    assert data["company_id"] == 7
    assert "user_id" not in data


def test_setup_logging_creates_files(tmp_path: Path):
    logs = tmp_path / "logs"
    root = logging.getLogger()
    before = list(root.handlers)
    try:
        setup_logging(logs)
        assert (logs / "app.log").exists()
        assert (logs / "sales.log").exists()
    finally:
        for h in root.handlers[:]:
            if h not in before:
                root.removeHandler(h)
                h.close()
        for name in DOMAIN_LOGGERS:
            logger = logging.getLogger(name)
            for h in logger.handlers[:]:
                logger.removeHandler(h)
                h.close()
