from dataclasses import replace
from datetime import date

import pytest

from conftest import FakeRepository, make_product
from payshia_erp.domain.errors import ValidationError
from payshia_erp.domain.models import (
    GoodsReceivedNote,
    GrnBatch,
    PurchaseOrder,
    PurchaseOrderItem,
    Supplier,
)
from payshia_erp.services.purchase_service import PurchaseService, grn_totals, po_totals

TODAY = date(2026, 10, 19)


def _setup(location_id=1):
    repo = FakeRepository()
    repo.products = [make_product(pid="1", cost=50.0, skus=("TC-1",))]
    repo.suppliers = [Supplier(supplier_id="8", supplier_name="Lanka Ceramics")]
    repo.purchase_orders["30"] = PurchaseOrder(
        id="30",
        po_number="PO-030",
        supplier_id="8",
        location_id="1",
        po_status="approved",
        items=(PurchaseOrderItem(product_id="1", product_variant_id="11", quantity=10, order_rate=50.0),),
    )
    return repo, PurchaseService(repo, location_id=location_id, today=lambda: TODAY)


def test_po_totals_add_vat():
    assert po_totals([{"quantity": 2, "order_rate": 50}]) == pytest.approx((100.0, 15.0, 115.0))


def test_create_purchase_order_payload():
    repo, purchases = _setup()
    repo.responses["create_purchase_order"] = {"po_number": "PO-031"}

    po_number = purchases.create_purchase_order("8", [{"product_id": "1", "quantity": "4", "order_rate": "50"}])

    assert po_number == "PO-031"
    payload = repo.payloads("create_purchase_order")[0]
    assert payload["sub_total"] == 200.0
    assert payload["total_amount"] == pytest.approx(230.0)
    assert payload["delivery_date"] == "2026-11-02"
    assert payload["items"][0]["product_variant_id"] == 11
    assert payload["items"][0]["order_unit"] == "PCS"


@pytest.mark.parametrize("supplier,items,message", [
    ("", [{"product_id": "1", "quantity": 1, "order_rate": 1}], "Supplier is required"),
    ("8", [], "At least one item"),
    ("8", [{"product_id": "1", "quantity": 0, "order_rate": 1}], "Quantity must be at least 1"),
    ("8", [{"product_id": "1", "quantity": 1, "order_rate": -2}], "Cost must be a positive"),
])
def test_purchase_order_validation(supplier, items, message):
    _repo, purchases = _setup()
    with pytest.raises(ValidationError, match=message):
        purchases.create_purchase_order(supplier, items)


def test_purchase_order_needs_location():
    _repo, purchases = _setup(location_id=None)
    with pytest.raises(ValidationError, match="No Location Selected"):
        purchases.create_purchase_order("8", [{"product_id": "1", "quantity": 1, "order_rate": 1}])


def test_grn_draft_subtracts_already_received():
    repo, purchases = _setup()
    repo.received[("1", "11")] = 3.0

    draft = purchases.build_grn_draft("30")

    line = draft.lines[0]
    assert draft.supplier_name == "Lanka Ceramics"
    assert line.sku == "TC-1"
    assert line.receivable == 7.0
    assert line.batches[0].received_qty == 7.0


def test_receivable_purchase_orders_are_approved_and_active():
    repo, purchases = _setup()
    repo.purchase_orders["31"] = PurchaseOrder(id="31", po_number="PO-031", supplier_id="8", location_id="1")
    repo.purchase_orders["32"] = PurchaseOrder(
        id="32", po_number="PO-032", supplier_id="8", location_id="1", po_status="approved", is_active=False,
    )
    assert [po.id for po in purchases.receivable_purchase_orders()] == ["30"]


@pytest.mark.parametrize("code,status", [
    ("0", "pending"), ("1", "approved"), ("2", "rejected"), ("3", "cancelled"), ("approved", "approved"),
])
def test_purchase_order_status_codes_are_decoded(code, status):
    po = PurchaseOrder.from_api({"id": 1, "po_number": "PO-1", "po_status": code, "is_active": "1"})
    assert po.po_status == status


def test_coded_approved_order_is_receivable():
    repo, purchases = _setup()
    repo.purchase_orders = {
        "1": PurchaseOrder.from_api({"id": 1, "po_number": "PO-1", "supplier_id": 8, "po_status": "1", "is_active": "1"}),
        "2": PurchaseOrder.from_api({"id": 2, "po_number": "PO-2", "supplier_id": 8, "po_status": "0", "is_active": "1"}),
    }
    assert [po.po_number for po in purchases.receivable_purchase_orders()] == ["PO-1"]


def test_grn_draft_refuses_unapproved_order():
    repo, purchases = _setup()
    repo.purchase_orders["31"] = PurchaseOrder(id="31", po_number="PO-031", supplier_id="8", location_id="1")
    with pytest.raises(ValidationError, match="only approved orders"):
        purchases.build_grn_draft("31")
    repo.purchase_orders["32"] = PurchaseOrder.from_api(
        {"id": 32, "po_number": "PO-032", "supplier_id": 8, "location_id": 1, "po_status": "2", "is_active": "1"}
    )
    with pytest.raises(ValidationError, match="rejected"):
        purchases.build_grn_draft("32")


def test_grn_draft_tolerates_received_qty_failure():
    repo, purchases = _setup()
    repo.failing.add("total_received_qty")
    assert purchases.build_grn_draft("30").lines[0].already_received == 0.0


def test_grn_cannot_exceed_receivable():
    repo, purchases = _setup()
    repo.received[("1", "11")] = 6.0
    draft = purchases.build_grn_draft("30")
    draft = purchases.set_batches(draft, 0, [GrnBatch("B1", 3), GrnBatch("B2", 2)])

    with pytest.raises(ValidationError, match="cannot exceed"):
        purchases.create_grn(draft)
    assert repo.payloads("create_grn") == []


def test_grn_batches_need_number_and_quantity():
    _repo, purchases = _setup()
    draft = purchases.build_grn_draft("30")
    with pytest.raises(ValidationError, match="Batch number"):
        purchases.validate_grn(draft)
    with pytest.raises(ValidationError, match="greater than 0"):
        purchases.validate_grn(purchases.set_batches(draft, 0, [GrnBatch("B1", 0)]))


def test_create_grn_posts_one_item_per_batch():
    repo, purchases = _setup()
    repo.responses["create_grn"] = {"grn_number": "GRN-9"}
    draft = purchases.set_batches(purchases.build_grn_draft("30"), 0, [
        GrnBatch("B1", 6, exp_date=date(2027, 1, 31)),
        GrnBatch("B2", 4),
    ])

    assert purchases.create_grn(draft) == "GRN-9"

    payload = repo.payloads("create_grn")[0]
    assert [(i["patch_code"], i["received_qty"]) for i in payload["items"]] == [("B1", 6), ("B2", 4)]
    assert payload["items"][0]["expire_date"] == "2027-01-31"
    assert payload["items"][1]["expire_date"] == ""
    assert payload["sub_total"] == 500.0
    assert payload["tax_value"] == pytest.approx(75.0)
    assert payload["grn_date"] == "2026-10-19"


def test_grn_without_vat_has_no_tax():
    _repo, purchases = _setup()
    draft = purchases.set_batches(purchases.build_grn_draft("30"), 0, [GrnBatch("B1", 2)])
    assert grn_totals(replace(draft, tax_type="None")) == pytest.approx((100.0, 0.0, 100.0))


def _grn_repo():
    repo, purchases = _setup()
    repo.grns["5"] = GoodsReceivedNote(id="5", grn_number="GRN-5", supplier_id="8", location_id="1", grand_total=575.0)
    repo.grns["6"] = GoodsReceivedNote(id="6", grn_number="GRN-6", supplier_id="8", location_id="1", payment_status="Paid")
    return repo, purchases


def test_supplier_return_keeps_only_returned_lines():
    repo, purchases = _grn_repo()
    repo.responses["create_supplier_return"] = {"data": {"id": 71}}

    ret = purchases.create_supplier_return("5", [
        {"product_id": "1", "product_variant_id": "11", "product_name": "Tea Cup",
         "received_qty": 10, "unit_price": 50, "return_qty": 2, "reason": "Damaged"},
        {"product_id": "2", "received_qty": 5, "unit_price": 10, "return_qty": 0, "reason": "Not returned"},
    ], notes="Chipped rims")

    assert ret.id == "71"
    assert ret.total_value == 100.0
    assert len(ret.items) == 1
    assert repo.payloads("create_supplier_return")[0]["supplier_id"] == "8"


def test_supplier_return_rules():
    _repo, purchases = _grn_repo()
    with pytest.raises(ValidationError, match="exceed received"):
        purchases.create_supplier_return("5", [{"received_qty": 1, "return_qty": 2, "reason": "x"}])
    with pytest.raises(ValidationError, match="Reason is required"):
        purchases.create_supplier_return("5", [{"received_qty": 3, "return_qty": 2, "reason": " "}])
    with pytest.raises(ValidationError, match="Reason is required"):
        purchases.create_supplier_return("5", [
            {"received_qty": 3, "return_qty": 2, "reason": "Damaged"},
            {"received_qty": 3, "return_qty": 0, "reason": ""},
        ])
    with pytest.raises(ValidationError, match="greater than 0"):
        purchases.create_supplier_return("5", [{"received_qty": 3, "return_qty": 0, "reason": "x"}])


def test_due_grns_and_payment():
    repo, purchases = _grn_repo()
    repo.responses["create_payment"] = {"id": 3}

    due = purchases.due_grns("8")
    assert [g.id for g in due] == ["5"]

    payment = purchases.record_payment("8", "575", "1010", [g.id for g in due], payment_date=TODAY)
    assert payment.id == "3"
    assert payment.amount == 575.0
    assert repo.payloads("create_payment")[0]["grn_ids"] == ["5"]


def test_payment_validation():
    _repo, purchases = _grn_repo()
    with pytest.raises(ValidationError, match="date"):
        purchases.record_payment("8", 10, "1010", ["5"])
    with pytest.raises(ValidationError, match="greater than zero"):
        purchases.record_payment("8", 0, "1010", ["5"], payment_date=TODAY)
    with pytest.raises(ValidationError, match="at least one GRN"):
        purchases.record_payment("8", 10, "1010", [], payment_date=TODAY)
