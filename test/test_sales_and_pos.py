from dataclasses import replace
from datetime import datetime

import pytest

from conftest import FakeRepository, make_product
from payshia_erp.domain.errors import NotFoundError, ValidationError
from payshia_erp.domain.models import Invoice, ProductVariant, Receipt
from payshia_erp.services.pos_service import WALK_IN_CUSTOMER_ID, PosService
from payshia_erp.services.sales_service import SalesService, invoice_totals

NOW = datetime(2026, 10, 19, 14, 30, 0)


def _sales(location_id=2):
    repo = FakeRepository(company_id=5)
    repo.responses["create_invoice"] = {"invoice_number": "INV-100"}
    return repo, SalesService(repo, location_id=location_id, user_id=9, now=lambda: NOW)


def test_invoice_totals():
    totals = invoice_totals(
        [
            {"quantity": 2, "unit_price": 100, "cost_price": 60, "discount": 10},
            {"quantity": 1, "unit_price": 50, "cost_price": 20},
        ],
        bill_discount=15,
        service_charge=5,
        status="Paid",
    )
    assert totals.subtotal == 250.0
    assert totals.discount == 25.0
    assert totals.grand_total == 230.0
    assert totals.discount_percentage == pytest.approx(10.0)
    assert totals.cost_value == 140.0
    assert totals.tendered == 230.0
    assert invoice_totals([], status="Draft").discount_percentage == 0.0


def test_create_invoice_payload():
    repo, sales = _sales()

    number = sales.create_invoice("12", [
        {"product_id": "1", "quantity": 2, "unit_price": 100, "cost_price": 60, "batch": "B1"},
    ])

    assert number == "INV-100"
    payload = repo.payloads("create_invoice")[0]
    assert payload["invoice_date"] == "2026-10-19"
    assert payload["current_time"] == "2026-10-19 14:30:00"
    assert payload["location_id"] == 2
    assert payload["company_id"] == "5"
    assert payload["tendered_amount"] == 0.0
    assert payload["items"][0]["customer_id"] == 12
    assert payload["items"][0]["user_id"] == 9


@pytest.mark.parametrize("kw,message", [
    ({"customer_id": ""}, "Customer is required"),
    ({"customer_id": "walk-in"}, "Customer is invalid"),
    ({"status": "Void"}, "Draft, Sent or Paid"),
    ({"bill_discount": -1}, "Discount must be positive"),
    ({"service_charge": -1}, "Service charge must be positive"),
    ({"items": []}, "At least one item"),
    ({"items": [{"product_id": "1", "quantity": 0, "unit_price": 1, "batch": "B"}]}, "at least 1"),
    ({"items": [{"product_id": "1", "quantity": 1, "unit_price": 1}]}, "Batch is required"),
    ({"items": [{"product_id": "TC-1", "quantity": 1, "unit_price": 1, "batch": "B"}]}, "Product is invalid"),
])
def test_invoice_validation(kw, message):
    _repo, sales = _sales()
    args = {"customer_id": "12", "items": [{"product_id": "1", "quantity": 1, "unit_price": 1, "batch": "B"}]}
    args.update(kw)
    with pytest.raises(ValidationError, match=message):
        sales.create_invoice(**args)


def test_invoice_needs_location():
    _repo, sales = _sales(location_id=None)
    with pytest.raises(ValidationError, match="No location"):
        sales.create_invoice("12", [{"product_id": "1", "quantity": 1, "unit_price": 1, "batch": "B"}])


def test_receipt_payload_and_rules():
    repo, sales = _sales()
    repo.responses["create_receipt"] = {"data": {"id": 31, "rec_number": "REC-31"}}
    receipt = sales.create_receipt("12", "INV-100", "75.5", method="Card")

    assert receipt.payment_method == "Card"
    assert receipt.rec_number == "REC-31"

    payload = repo.payloads("create_receipt")[0]
    assert payload["type"] == "1"
    assert payload["amount"] == 75.5
    assert payload["ref_id"] == "INV-100"
    assert payload["created_by"] == 9

    with pytest.raises(ValidationError, match="greater than zero"):
        sales.create_receipt("12", "INV-100", 0)
    with pytest.raises(ValidationError, match="Payment method"):
        sales.create_receipt("12", "INV-100", 10, method="Cheque")
    with pytest.raises(ValidationError, match="Customer is invalid"):
        sales.create_receipt("Walk-in", "INV-100", 10)


def test_pending_invoices_and_receipts_list():
    repo, sales = _sales()
    repo.invoices = [
        Invoice(id="1", invoice_number="INV-1", invoice_date="2026-10-18", customer_code="12", grand_total=300.0),
        Invoice(id="2", invoice_number="INV-2", invoice_date="2026-10-18", customer_code="12", payment_status="Paid"),
        Invoice(id="3", invoice_number="INV-3", invoice_date="2026-10-19", customer_code="14"),
    ]
    repo.receipts = [Receipt(id="7", ref_id="INV-2", customer_id="12", date="2026-10-18", amount=150.0, rec_number="REC-7")]

    assert [i.invoice_number for i in sales.pending_invoices("12")] == ["INV-1"]
    assert [r.rec_number for r in sales.list_receipts()] == ["REC-7"]


def _pos():
    repo, sales = _sales()
    return repo, PosService(sales)


def test_pos_cart_merges_same_variant():
    _repo, pos = _pos()
    cup = make_product(pid="1", price=100.0, skus=("TC-1",))
    order = pos.open_order()

    pos.add_to_cart(order.id, cup, "11", quantity=1)
    pos.add_to_cart(order.id, cup, "11", quantity=2, discount=5)

    assert order.customer_id == WALK_IN_CUSTOMER_ID
    assert len(order.cart) == 1
    assert order.cart[0].quantity == 3
    assert order.cart[0].item_discount == 5


def test_pos_totals_with_service_charge():
    _repo, pos = _pos()
    order = pos.open_order("Dine-In", table_name="Table 4")
    pos.add_to_cart(order.id, make_product(pid="1", price=100.0), "11", quantity=2, discount=10)
    pos.toggle_service_charge(order.id, True)
    pos.set_discount(order.id, 5)

    totals = pos.totals(order.id)
    assert totals.subtotal == 200.0
    assert totals.service_charge == pytest.approx(20.0)
    assert totals.total == pytest.approx(205.0)
    assert order.name == "Table 4"


def test_pos_quantity_zero_removes_line():
    _repo, pos = _pos()
    order = pos.open_order()
    pos.add_to_cart(order.id, make_product(pid="1"), "11")
    pos.update_quantity(order.id, "11", 0)
    assert order.cart == []


def test_pos_hold_and_resume():
    _repo, pos = _pos()
    order = pos.open_order()
    with pytest.raises(ValidationError, match="Cannot Hold Empty Order"):
        pos.hold(order.id)

    pos.add_to_cart(order.id, make_product(pid="1"), "11")
    pos.hold(order.id)
    assert pos.held_orders() == [order]
    assert pos.open_orders() == []

    pos.resume(order.id)
    assert pos.open_orders() == [order]


def test_pos_checkout_creates_paid_invoice_and_closes_order():
    repo, pos = _pos()
    order = pos.open_order()
    pos.add_to_cart(order.id, make_product(pid="1", price=100.0, cost=60.0), "11", quantity=2)
    pos.toggle_service_charge(order.id, True)
    pos.set_customer(order.id, "12")

    assert pos.checkout(order.id) == "INV-100"

    payload = repo.payloads("create_invoice")[0]
    assert payload["invoice_status"] == "Paid"
    assert payload["remark"] == order.name
    assert payload["service_charge"] == pytest.approx(20.0)
    assert payload["grand_total"] == pytest.approx(220.0)
    assert payload["cost_value"] == 120.0
    with pytest.raises(NotFoundError):
        pos.get_order(order.id)


def test_pos_checkout_empty_cart():
    _repo, pos = _pos()
    order = pos.open_order()
    with pytest.raises(ValidationError, match="Cart is empty"):
        pos.checkout(order.id)


def test_cart_label_shows_variant_options():
    _repo, pos = _pos()
    shirt = make_product(pid="3", name="Shirt")
    shirt = replace(shirt, variants=(ProductVariant(id="31", sku="SH-R-M", color="Red", size="M"),))
    order = pos.open_order()
    pos.add_to_cart(order.id, shirt, "31")
    assert order.cart[0].label == "Shirt (Red / M)"
