from datetime import date
from types import SimpleNamespace

import pytest

from conftest import FakeRepository
from payshia_erp.domain.errors import ForecastUnavailableError, ValidationError
from payshia_erp.domain.models import Account, Expense
from payshia_erp.services.accounting_service import AccountingService
from payshia_erp.services.currency_service import CurrencyService, format_money, symbol_for
from payshia_erp.services.forecast_service import ForecastService, parse_forecast

TODAY = date(2026, 10, 19)


def _accounting():
    repo = FakeRepository()
    repo.accounts = [
        Account(code=1010, name="Cash", type="Asset"),
        Account(code=1020, name="Bank", type="Asset"),
        Account(code=5010, name="Rent", type="Expense"),
    ]
    return repo, AccountingService(repo, today=lambda: TODAY)


def test_account_filters():
    _repo, accounting = _accounting()
    assert [a.code for a in accounting.payment_accounts()] == [1010, 1020]
    assert [a.code for a in accounting.expense_accounts()] == [5010]


def test_balanced_journal_is_posted():
    repo, accounting = _accounting()
    repo.responses["create_journal_entry"] = {"data": {"id": 17}}

    entry = accounting.post_journal_entry("October rent", [
        {"account_code": 5010, "debit": "25000"},
        {"account_code": "1020", "credit": 25000},
    ])

    assert entry.id == "17"
    assert entry.date == "2026-10-19"
    assert entry.lines[0].account_name == "Rent"
    assert repo.payloads("create_journal_entry")[0]["lines"] == [
        {"account_code": 5010, "debit": 25000.0, "credit": 0.0},
        {"account_code": 1020, "debit": 0.0, "credit": 25000.0},
    ]


@pytest.mark.parametrize("lines,message", [
    ([{"account_code": 5010, "debit": 10}, {"account_code": 1010, "credit": 9}], "must equal"),
    ([{"account_code": 5010, "debit": 10, "credit": 10}, {"account_code": 1010, "credit": 10}], "not both"),
    ([{"account_code": 5010}, {"account_code": 1010, "credit": 10}], "debit or a credit"),
    ([{"account_code": 5010, "debit": 10}], "at least two lines"),
    ([{"debit": 10}, {"account_code": 1010, "credit": 10}], "Account is required"),
    ([{"account_code": "Cash", "debit": 10}, {"account_code": 1010, "credit": 10}], "Account code must be a number"),
    ([{"account_code": 5010, "debit": -5}, {"account_code": 1010, "credit": -5}], "negative"),
])
def test_journal_rules(lines, message):
    repo, accounting = _accounting()
    with pytest.raises(ValidationError, match=message):
        accounting.post_journal_entry("Adjustment", lines)
    assert repo.payloads("create_journal_entry") == []


def test_expense_accounts_must_differ():
    repo, accounting = _accounting()
    with pytest.raises(ValidationError, match="must be different"):
        accounting.record_expense("Landlord", 100, 1010, "1010")
    accounting.record_expense("Landlord", "100", 5010, 1010)
    assert repo.payloads("create_expense")[0]["expense_account_id"] == 5010


def test_list_expenses():
    repo, accounting = _accounting()
    repo.expenses = [Expense.from_api({
        "id": 4, "date": "2026-10-01", "payee": "Landlord", "amount": "45000",
        "expenseAccountId": "5010", "paymentAccountId": 1010,
    })]
    [expense] = accounting.list_expenses()
    assert expense.amount == 45000.0
    assert (expense.expense_account_id, expense.payment_account_id) == (5010, 1010)


def test_expense_account_ids_must_be_numbers():
    repo, accounting = _accounting()
    with pytest.raises(ValidationError, match="Expense account is invalid"):
        accounting.record_expense("Landlord", 100, "Rent", 1010)
    assert repo.payloads("create_expense") == []


def test_fixed_asset_net_book_value():
    repo, accounting = _accounting()
    repo.responses["create_fixed_asset"] = {"id": 2}
    asset = accounting.register_fixed_asset("Delivery van", "Vehicle", TODAY, "4500000", accumulated_depreciation=500000)
    assert asset.id == "2"
    assert asset.net_book_value == 4000000.0
    with pytest.raises(ValidationError, match="Depreciation method"):
        accounting.register_fixed_asset("Delivery van", "Vehicle", TODAY, 10, depreciation_method="Sum of digits")


class StubCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _client(completions):
    return SimpleNamespace(chat=SimpleNamespace(completions=completions))


def test_forecast_parses_model_reply():
    completions = StubCompletions('{"reorderPoint": 40, "reorderQuantity": 120.5, "forecastExplanation": "Steady demand."}')
    service = ForecastService(client=_client(completions), model="test-model")

    result = service.forecast("Tea Cup", "Jan 30, Feb 42", "Peaks in December")

    assert result.reorder_point == 40.0
    assert result.reorder_quantity == 120.5
    assert result.forecast_explanation == "Steady demand."
    call = completions.calls[0]
    assert call["model"] == "test-model"
    assert "Product Name: Tea Cup" in call["messages"][1]["content"]


def test_forecast_accepts_fenced_json():
    reply = 'Here you go:\n```json\n{"reorderPoint": 1, "reorderQuantity": 2, "forecastExplanation": "ok"}\n```'
    assert parse_forecast(reply).reorder_quantity == 2.0


def test_forecast_rejects_wrong_shape():
    service = ForecastService(client=_client(StubCompletions('{"reorderPoint": "many"}')))
    with pytest.raises(ForecastUnavailableError, match="Failed to generate forecast"):
        service.forecast("Tea Cup", "some data", "none")


def test_forecast_wraps_client_errors():
    service = ForecastService(client=_client(StubCompletions(error=ValueError("bad gateway"))))
    with pytest.raises(ForecastUnavailableError):
        service.forecast("Tea Cup", "some data", "none")


def test_forecast_input_required():
    completions = StubCompletions("{}")
    with pytest.raises(ValidationError, match="Invalid input"):
        ForecastService(client=_client(completions)).forecast("Tea Cup", "  ", "none")
    assert completions.calls == []


def test_currency_labels_without_converting():
    currency = CurrencyService("usd")
    assert currency.code == "USD"
    assert currency.format(1234.5) == "$1,234.50"

    currency.set_currency("lkr")
    assert currency.format(10) == "Rs10.00"
    with pytest.raises(ValidationError, match="Unsupported currency"):
        currency.set_currency("BTC")

    assert symbol_for("XYZ") == "LKR"
    assert format_money(None) == "0.00"
