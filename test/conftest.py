import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


def make_product(pid="1", name="Tea Cup", price=100.0, cost=60.0, skus=("TC-1",), status="active"):
    from payshia_erp.domain.models import Product, ProductVariant

    variants = tuple(
        ProductVariant(id=f"{pid}{i}", sku=sku, product_id=pid)
        for i, sku in enumerate(skus, start=1)
    )
    return Product(id=pid, name=name, category="Kitchen", price=price, status=status, cost_price=cost, variants=variants)


class FakeRepository:
    """In-memory stand-in for ApiRepository. Writes are recorded in `posted`."""

    def __init__(self, company_id: int = 1):
        self.company_id = company_id
        self.products = []
        self.categories = []
        self.colors = []
        self.sizes = []
        self.locations = []
        self.suppliers = []
        self.customers = []
        self.orders = []
        self.purchase_orders = {}
        self.received = {}
        self.grns = {}
        self.supplier_returns = []
        self.payments = []
        self.batches = []
        self.levels = []
        self.invoices = []
        self.completed = []
        self.accounts = []
        self.receipts = []
        self.expenses = []
        self.posted: list[tuple[str, dict]] = []
        self.responses: dict[str, dict] = {}
        self.failing: set[str] = set()

    def _fail(self, name):
        if name in self.failing:
            from payshia_erp.domain.errors import ApiError

            raise ApiError(f"{name} failed", 500)

    def _record(self, name, payload):
        self._fail(name)
        self.posted.append((name, payload))
        return self.responses.get(name, {})

    def payloads(self, name):
        return [p for n, p in self.posted if n == name]

    # auth
    def login(self, email, password):
        return self._record("login", {"email": email, "password": password})

    def company_association(self, user_id):
        return self.responses.get("company_association", {"status": "success", "has_company": False, "data": []})

    def get_company(self, company_id):
        return self.responses.get("get_company", {})

    def create_user(self, payload):
        return self._record("create_user", payload)

    def create_company(self, payload):
        return self._record("create_company", payload)

    def link_company_user(self, payload):
        return self._record("link_company_user", payload)

    # catalog
    def list_products(self):
        self._fail("list_products")
        return list(self.products)

    def get_product(self, product_id):
        return next(p for p in self.products if p.id == str(product_id))

    def products_by_supplier(self, supplier_id):
        return [p for p in self.products if p.supplier == str(supplier_id)]

    def save_product(self, payload, product_id=None):
        return self._record("save_product", payload)

    def delete_product_variant(self, variant_id):
        self._record("delete_product_variant", {"id": variant_id})

    def add_custom_field_value(self, payload):
        return self._record("add_custom_field_value", payload)

    def list_categories(self):
        return list(self.categories)

    def list_colors(self):
        return list(self.colors)

    def list_sizes(self):
        return list(self.sizes)

    def save_entity(self, resource, payload, entity_id=None):
        return self._record(f"save_{resource}", payload)

    def delete_entity(self, resource, entity_id):
        self._record(f"delete_{resource}", {"id": entity_id})

    def add_collection_product(self, collection_id, product_id):
        return self._record("add_collection_product", {"collection_id": collection_id, "product_id": product_id})

    # parties
    def list_locations(self):
        self._fail("list_locations")
        return list(self.locations)

    def save_location(self, payload, location_id=None):
        return self._record("save_location", payload)

    def list_suppliers(self):
        return list(self.suppliers)

    def save_supplier(self, payload, supplier_id=None):
        return self._record("save_supplier", payload)

    def list_customers(self):
        return list(self.customers)

    def save_customer(self, payload, customer_id=None):
        return self._record("save_customer", payload)

    def delete_customer(self, customer_id):
        self._record("delete_customer", {"id": customer_id})

    def list_orders(self):
        self._fail("list_orders")
        return list(self.orders)

    # purchasing
    def list_purchase_orders(self):
        return list(self.purchase_orders.values())

    def get_purchase_order(self, po_id):
        return self.purchase_orders[str(po_id)]

    def create_purchase_order(self, payload):
        return self._record("create_purchase_order", payload)

    def total_received_qty(self, product_id, product_variant_id, po_number):
        self._fail("total_received_qty")
        return self.received.get((str(product_id), str(product_variant_id)), 0.0)

    def create_grn(self, payload):
        return self._record("create_grn", payload)

    def list_grns(self):
        return list(self.grns.values())

    def get_grn(self, grn_id):
        return self.grns[str(grn_id)]

    def create_supplier_return(self, payload):
        return self._record("create_supplier_return", payload)

    def list_supplier_returns(self):
        return list(self.supplier_returns)

    def create_payment(self, payload):
        return self._record("create_payment", payload)

    def list_payments(self):
        return list(self.payments)

    # stock
    def stock_batches(self, product_id, product_variant_id, location_id=None):
        return list(self.batches)

    def post_stock_entries(self, entries):
        return self._record("post_stock_entries", {"entries": entries})

    def location_stock(self, location_id):
        return [lvl for lvl in self.levels if lvl.location_id == str(location_id)]

    def create_stock_transfer(self, payload):
        return self._record("create_stock_transfer", payload)

    def list_stock_transfers(self):
        return []

    # sales
    def create_invoice(self, payload):
        return self._record("create_invoice", payload)

    def list_invoices(self):
        return list(self.invoices)

    def completed_invoices(self):
        return list(self.completed)

    def pending_invoices(self, customer_code):
        return [i for i in self.invoices if i.customer_code == customer_code and i.payment_status != "Paid"]

    def list_receipts(self):
        return list(self.receipts)

    def create_receipt(self, payload):
        return self._record("create_receipt", payload)

    # accounting
    def list_accounts(self):
        return list(self.accounts)

    def create_journal_entry(self, payload):
        return self._record("create_journal_entry", payload)

    def list_expenses(self):
        return list(self.expenses)

    def create_expense(self, payload):
        return self._record("create_expense", payload)

    def create_fixed_asset(self, payload):
        return self._record("create_fixed_asset", payload)
