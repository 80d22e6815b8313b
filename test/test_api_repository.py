import json

import pytest
import requests

from payshia_erp.domain.errors import ApiError, NotFoundError
from payshia_erp.repositories.api_repo import ApiRepository


class FakeResponse:
    def __init__(self, status_code=200, body=None):
        self.status_code = status_code
        self._body = body
        self.content = b"" if body is None else json.dumps(body).encode("utf-8")

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def request(self, method, url, params=None, json=None, timeout=None):
        self.calls.append({"method": method, "url": url, "params": params, "json": json, "timeout": timeout})
        r = self.responses.pop(0)
        if isinstance(r, Exception):
            raise r
        return r


def _repo(*responses):
    session = FakeSession(*responses)
    return ApiRepository("https://erp.example.com/", company_id=7, timeout=3, session=session), session


def test_list_products_scopes_to_company_and_parses_variants():
    repo, session = _repo(FakeResponse(200, [
        {"id": 3, "name": "Tea Cup", "price": "120.5", "variants": [{"id": 31, "sku": "TC-1"}]},
    ]))

    products = repo.list_products()

    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://erp.example.com/products/with-variants"
    assert call["params"] == {"company_id": 7}
    assert call["timeout"] == 3.0
    assert products[0].id == "3"
    assert products[0].price == 120.5
    assert products[0].variant_by_sku("TC-1").id == "31"


def test_list_unwraps_data_envelope():
    repo, _ = _repo(FakeResponse(200, {"status": "success", "data": [{"location_id": 1, "location_name": "Main"}]}))
    locations = repo.list_locations()
    assert [l.location_name for l in locations] == ["Main"]


def test_unexpected_list_shape_is_empty():
    repo, _ = _repo(FakeResponse(200, {"status": "success"}))
    assert repo.list_suppliers() == []


def test_404_raises_not_found_with_server_message():
    repo, _ = _repo(FakeResponse(404, {"message": "No such PO"}))
    with pytest.raises(NotFoundError, match="No such PO"):
        repo.get_purchase_order("9")


def test_server_error_carries_status():
    repo, _ = _repo(FakeResponse(500, {"error": "boom"}))
    with pytest.raises(ApiError, match="Failed to create invoice") as exc:
        repo.create_invoice({"items": []})
    assert exc.value.status == 500


def test_network_failure_becomes_api_error():
    repo, _ = _repo(requests.ConnectionError("refused"))
    with pytest.raises(ApiError, match="Invalid credentials"):
        repo.login("a@b.co", "secret")


def test_save_entity_posts_new_and_puts_existing():
    repo, session = _repo(FakeResponse(201, {"id": 5}), FakeResponse(200, {"id": 5}))

    repo.save_entity("brands", {"name": "Acme"})
    repo.save_entity("brands", {"name": "Acme 2"}, "5")

    assert [(c["method"], c["url"]) for c in session.calls] == [
        ("POST", "https://erp.example.com/brands"),
        ("PUT", "https://erp.example.com/brands/5"),
    ]


def test_empty_body_on_delete_is_fine():
    repo, session = _repo(FakeResponse(204))
    repo.delete_product_variant("12")
    assert session.calls[0]["method"] == "DELETE"


def test_received_qty_defaults_to_zero():
    repo, session = _repo(FakeResponse(200, {"total_received_qty": None}))
    assert repo.total_received_qty("1", "11", "PO-1") == 0.0
    assert session.calls[0]["params"]["po_number"] == "PO-1"


def test_stock_batches_read_grouped_rows():
    repo, _ = _repo(FakeResponse(200, {"grouped_by_expire_date": [
        {"expire_date": "2027-01-01", "patch_code": "B1", "stock_balance": "4"},
    ]}))
    batches = repo.stock_batches("1", "11", "2")
    assert batches[0].patch_code == "B1"
    assert batches[0].stock_balance == 4.0
