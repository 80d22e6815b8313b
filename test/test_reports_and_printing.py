from datetime import date, datetime
from pathlib import Path

from openpyxl import load_workbook

from conftest import FakeRepository, make_product
from payshia_erp.config import CompanyProfile
from payshia_erp.domain.models import (
    Customer,
    GoodsReceivedNote,
    GrnItem,
    InventoryLevel,
    Invoice,
    InvoiceItem,
    PurchaseOrder,
    PurchaseOrderItem,
    Receipt,
    Supplier,
    SupplierPayment,
    SupplierReturn,
    SupplierReturnItem,
)
from payshia_erp.services.pos_service import PosService
from payshia_erp.services.print_service import PrintService
from payshia_erp.services.reporting_service import WALK_IN, ReportingService
from payshia_erp.services.sales_service import SalesService

TODAY = date(2026, 10, 19)


def _invoice(number, day, total, customer="12", location="2", **kw):
    return Invoice(
        id=number,
        invoice_number=number,
        invoice_date=day,
        customer_code=customer,
        inv_amount=total,
        grand_total=total,
        invoice_status="Paid",
        location_id=location,
        **kw,
    )


def _reporting():
    repo = FakeRepository()
    repo.customers = [Customer(customer_id="12", first_name="Saman", last_name="Silva")]
    repo.completed = [
        _invoice("INV-1", "2026-10-18", 100.0),
        _invoice("INV-2", "2026-10-19 09:15:00", 250.0, customer="4", discount_amount=10.0, service_charge=5.0),
        _invoice("INV-3", "2026-10-10", 80.0),
        _invoice("INV-4", "2026-10-19", 40.0, location="3"),
        _invoice("INV-5", "", 999.0),
    ]
    return repo, ReportingService(repo, today=lambda: TODAY)


def test_sales_summary_filters_window_and_location():
    _repo, reporting = _reporting()

    rows, totals = reporting.sales_summary(date(2026, 10, 12), TODAY, "2")

    assert [r.invoice.invoice_number for r in rows] == ["INV-1", "INV-2"]
    assert [r.customer_name for r in rows] == ["Saman Silva", WALK_IN]
    assert totals.grand_total == 350.0
    assert totals.discount == 10.0
    assert totals.charge == 5.0


def test_sales_summary_without_window_keeps_everything():
    _repo, reporting = _reporting()
    rows, _totals = reporting.sales_summary()
    assert len(rows) == 5


def test_supplier_balances():
    repo = FakeRepository()
    repo.suppliers = [
        Supplier(supplier_id="8", supplier_name="Lanka Ceramics", opening_balance=1000.0),
        Supplier(supplier_id="9", supplier_name="Hill Tea"),
    ]
    repo.grns = {
        "1": GoodsReceivedNote(id="1", grn_number="G1", supplier_id="8", location_id="2", grand_total=5000.0),
        "2": GoodsReceivedNote(id="2", grn_number="G2", supplier_id="9", location_id="2", grand_total=300.0),
    }
    repo.payments = [SupplierPayment(id="1", date="2026-10-01", supplier_id="8", amount=2500.0)]
    repo.supplier_returns = [SupplierReturn(id="1", grn_id="1", supplier_id="8", return_date="2026-10-02", total_value=500.0)]

    balances = {b.supplier_id: b for b in ReportingService(repo).supplier_balances()}

    assert balances["8"].balance == 3000.0
    assert balances["9"].balance == 300.0


def test_dashboard_kpis():
    repo, reporting = _reporting()
    repo.products = [make_product(pid="1"), make_product(pid="2")]
    repo.locations = ["Main"]
    repo.purchase_orders = {
        "1": PurchaseOrder(id="1", po_number="PO-1", supplier_id="8", location_id="2"),
        "2": PurchaseOrder(id="2", po_number="PO-2", supplier_id="8", location_id="2", po_status="approved"),
        "3": PurchaseOrder.from_api({"id": 3, "po_number": "PO-3", "po_status": "0", "is_active": "1"}),
        "4": PurchaseOrder.from_api({"id": 4, "po_number": "PO-4", "po_status": "3", "is_active": "1"}),
    }
    repo.invoices = list(repo.completed)

    kpis = reporting.dashboard_kpis()

    assert kpis.products == 2
    assert kpis.locations == 1
    assert kpis.open_purchase_orders == 2
    assert kpis.invoices_today == 2
    assert kpis.sales_today == 290.0


def test_export_sales_summary_workbook(tmp_path: Path):
    _repo, reporting = _reporting()
    out = tmp_path / "summary.xlsx"

    n = reporting.export_sales_summary_excel(str(out), date(2026, 10, 12), TODAY, "2")

    assert n == 2
    wb = load_workbook(out)
    assert wb.sheetnames == ["Summary", "Invoices"]
    assert wb["Summary"]["B10"].value == 350.0
    invoices = wb["Invoices"]
    assert invoices["C3"].value == WALK_IN
    assert "SalesSummary" in invoices.tables


def test_export_empty_stock_balance_has_no_table(tmp_path: Path):
    repo = FakeRepository()
    out = tmp_path / "stock.xlsx"
    assert ReportingService(repo).export_stock_balance_excel(str(out), "2") == 0
    ws = load_workbook(out)["Stock Balance"]
    assert ws["A1"].value == "SKU"
    assert len(ws.tables) == 0


def test_export_stock_balance_marks_low(tmp_path: Path):
    repo = FakeRepository()
    repo.levels = [InventoryLevel(product_id="1", product_variant_id="11", sku="TC-1", location_id="2", stock=1, reorder_level=3)]
    out = tmp_path / "stock.xlsx"
    ReportingService(repo).export_stock_balance_excel(str(out), "2")
    assert load_workbook(out)["Stock Balance"]["F2"].value == "YES"


def _printer():
    return PrintService(CompanyProfile(name="Nimal Stores", address_lines=("1 Main St",)), symbol="Rs",
                        now=lambda: datetime(2026, 10, 19, 14, 5))


def test_invoice_document():
    inv = _invoice("INV-7", "2026-10-19", 190.0, items=(
        InvoiceItem(product_id="1", item_price=100.0, quantity=2, item_discount=10.0, product_name="Tea Cup"),
    ))
    text = _printer().invoice(inv, show_bank_details=True)

    assert "Nimal Stores" in text
    assert "INVOICE" in text
    assert "19 Oct, 2026" in text
    assert "Walk-in Customer" in text
    assert "190.00" in text
    assert "Rs190.00" in text
    assert "PAYMENT DETAILS" in text
    assert "Thank you for your business!" in text


def test_dispatch_note_and_gate_pass_have_no_prices():
    inv = _invoice("INV-8", "2026-10-19", 500.0, items=(
        InvoiceItem(product_id="1", item_price=250.0, quantity=2, product_name="Tea Cup"),
    ))
    customer = Customer(customer_id="12", first_name="Saman", last_name="Silva", city="Galle")
    printer = _printer()

    note = printer.dispatch_note(inv, customer, vehicle_no="CAB-1234")
    gate = printer.gate_pass(inv, customer)

    assert "DISPATCH NOTE" in note and "CAB-1234" in note and "Received by" in note
    assert "GATE PASS" in gate and "Security Officer" in gate
    assert "250.00" not in note
    assert "500.00" not in gate


def test_receipt_document():
    rec = Receipt(id="5", ref_id="INV-7", customer_id="12", date="2026-10-19", amount=75.5, payment_method="Card", rec_number="REC-5")
    text = _printer().receipt(rec)
    assert "PAYMENT RECEIPT" in text
    assert "REC-5" in text
    assert "Customer 12" in text
    assert "Rs75.50" in text


def test_kot_fits_ticket_width():
    pos = PosService(SalesService(FakeRepository(), location_id=2))
    order = pos.open_order("Dine-In", table_name="Table 4", steward="Ruwan")
    pos.add_to_cart(order.id, make_product(pid="1", name="Chicken Kottu"), "11", quantity=2)

    text = _printer().kot(order, cashier_name="Dilani")

    assert "K.O.T" in text
    assert "14:05" in text
    assert "   2 x Chicken Kottu" in text
    assert max(len(line) for line in text.splitlines()) <= 40


def test_purchasing_documents():
    supplier = Supplier(supplier_id="8", supplier_name="Lanka Ceramics", city="Kandy")
    printer = _printer()

    po = PurchaseOrder(id="1", po_number="PO-1", supplier_id="8", location_id="2", sub_total=200.0, total_amount=230.0,
                       created_at="2026-10-01", items=(PurchaseOrderItem("1", "11", 4, 50.0, product_name="Tea Cup"),))
    grn = GoodsReceivedNote(id="3", grn_number="GRN-3", supplier_id="8", location_id="2", po_number="PO-1",
                            sub_total=200.0, tax_value=30.0, grand_total=230.0,
                            items=(GrnItem("1", "11", 4, 50.0, patch_code="B1", product_name="Tea Cup"),))
    ret = SupplierReturn(id="9", grn_id="3", supplier_id="8", return_date="2026-10-05", total_value=50.0,
                         items=(SupplierReturnItem("1", "11", "Tea Cup", 4, 50.0, 1, "Damaged"),))

    assert "PURCHASE ORDER" in printer.purchase_order(po, supplier)
    assert "Rs230.00" in printer.purchase_order(po, supplier)
    assert "Goods received in good condition." in printer.grn(grn, supplier)
    assert "B1" in printer.grn(grn, supplier)
    returned = printer.supplier_return(ret, supplier, grn_number="GRN-3")
    assert "SUPPLIER RETURN NOTE" in returned
    assert "GRN-3" in returned and "Damaged" in returned


def test_sales_summary_document_and_save(tmp_path: Path):
    _repo, reporting = _reporting()
    rows, totals = reporting.sales_summary(date(2026, 10, 12), TODAY, "2")
    printer = _printer()

    path = printer.save(printer.sales_summary(rows, totals, date(2026, 10, 12), TODAY), tmp_path / "out" / "summary.txt")

    text = path.read_text(encoding="utf-8")
    assert "GRAND TOTAL" in text
    assert "Rs350.00" in text
    assert "12 Oct, 2026 - 19 Oct, 2026" in text
