from __future__ import annotations

import logging
from typing import Any, Optional

import requests

from payshia_erp.config import DEFAULT_API_BASE_URL
from payshia_erp.domain.errors import ApiError, NotFoundError
from payshia_erp.domain.models import (
    Account,
    Brand,
    Category,
    Collection,
    Color,
    CustomField,
    Customer,
    Expense,
    GoodsReceivedNote,
    InventoryLevel,
    Invoice,
    Location,
    Order,
    Product,
    PurchaseOrder,
    Receipt,
    Size,
    StockBatch,
    StockTransfer,
    Supplier,
    SupplierPayment,
    SupplierReturn,
)

log = logging.getLogger("payshia_erp.api")


class ApiRepository:
    """All reads and writes against the Payshia ERP REST server go through here."""

    def __init__(
        self,
        base_url: str = DEFAULT_API_BASE_URL,
        company_id: int = 1,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.company_id = int(company_id)
        self.timeout = float(timeout)
        self.session = session or requests.Session()

    # ---------- transport ----------
    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    @staticmethod
    def _message(response, default: str) -> str:
        try:
            body = response.json()
        except ValueError:
            return default
        if isinstance(body, dict) and body.get("message"):
            return str(body["message"])
        return default

    def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        payload: Any = None,
        error: str = "Request failed.",
    ) -> Any:
        try:
            r = self.session.request(method, self._url(path), params=params, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            log.warning("api_unreachable method=%s path=%s error=%s", method, path, e)
            raise ApiError(error) from e

        if r.status_code == 404:
            log.info("api_not_found method=%s path=%s", method, path)
            raise NotFoundError(self._message(r, "Not found."))
        if not 200 <= r.status_code < 300:
            msg = self._message(r, error)
            log.warning("api_error method=%s path=%s status=%s message=%s", method, path, r.status_code, msg)
            raise ApiError(msg, status=r.status_code)

        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise ApiError(f"{error} Invalid response from server.", status=r.status_code) from e

    def _get(self, path: str, params: Optional[dict] = None, error: str = "Failed to fetch data.") -> Any:
        return self._request("GET", path, params=params, error=error)

    def _list(self, path: str, params: Optional[dict] = None, error: str = "Failed to fetch data.") -> list[dict]:
        return self._unwrap(self._get(path, params=params, error=error))

    @staticmethod
    def _unwrap(data: Any) -> list[dict]:
        if data is None:
            return []
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and isinstance(data.get("data"), list):
            return data["data"]
        return []

    def _company(self, **extra) -> dict:
        params = {"company_id": self.company_id}
        params.update({k: v for k, v in extra.items() if v is not None})
        return params

    # ---------- auth / companies ----------
    def login(self, email: str, password: str) -> dict:
        return self._request("POST", "users/login", payload={"email": email, "password": password}, error="Invalid credentials. Please try again.") or {}

    def company_association(self, user_id: int) -> dict:
        return self._get("company-users/filter/by-user", {"user_id": user_id}, error="Failed to check for company association.") or {}

    def get_company(self, company_id: int) -> dict:
        return self._get(f"companies/{company_id}", error="Found company association, but failed to fetch company details.") or {}

    def create_user(self, payload: dict) -> dict:
        return self._request("POST", "users", payload=payload, error="Failed to create account. Please try again.") or {}

    def create_company(self, payload: dict) -> dict:
        return self._request("POST", "companies", payload=payload, error="Failed to create company.") or {}

    def link_company_user(self, payload: dict) -> dict:
        return self._request("POST", "company-users", payload=payload, error="Company created, but failed to associate user.") or {}

    # ---------- catalog ----------
    def list_products(self) -> list[Product]:
        return [Product.from_api(p) for p in self._list("products/with-variants", self._company(), error="Failed to fetch products.")]

    def get_product(self, product_id: str) -> Product:
        data = self._get(f"products/{product_id}", error="Failed to fetch product.") or {}
        return Product.from_api(data.get("product", data) if isinstance(data, dict) else {})

    def products_by_supplier(self, supplier_id: str) -> list[Product]:
        rows = self._list("products/filter/by-supplier", {"supplier_id": supplier_id}, error="Failed to fetch products.")
        return [Product.from_api(p) for p in rows]

    def save_product(self, payload: dict, product_id: Optional[str] = None) -> dict:
        if product_id:
            return self._request("PUT", f"products/{product_id}", payload=payload, error="Failed to save product.") or {}
        return self._request("POST", "products", payload=payload, error="Failed to save product.") or {}

    def delete_product_variant(self, variant_id: str) -> None:
        self._request("DELETE", f"product-variants/{variant_id}", error="Failed to delete variant.")

    def add_custom_field_value(self, payload: dict) -> dict:
        return self._request("POST", "custom-field-products", payload=payload, error="Failed to save custom field value.") or {}

    def list_brands(self) -> list[Brand]:
        return [Brand.from_api(b) for b in self._list("brands/company", self._company(), error="Failed to fetch brands.")]

    def list_colors(self) -> list[Color]:
        return [Color.from_api(c) for c in self._list("colors", self._company(), error="Failed to fetch colors.")]

    def list_sizes(self) -> list[Size]:
        return [Size.from_api(s) for s in self._list("sizes", self._company(), error="Failed to fetch sizes.")]

    def list_categories(self) -> list[Category]:
        rows = self._list("master-categories/company", self._company(), error="Failed to fetch categories.")
        return [Category.from_api(c) for c in rows]

    def list_collections(self) -> list[Collection]:
        rows = self._list("collections/company", self._company(), error="Failed to fetch collections.")
        return [Collection.from_api(c) for c in rows]

    def list_custom_fields(self) -> list[CustomField]:
        rows = self._list("custom-fields/filter/by-company", self._company(), error="Failed to fetch custom fields.")
        return [CustomField.from_api(c) for c in rows]

    def save_entity(self, resource: str, payload: dict, entity_id: Optional[str] = None) -> dict:
        """POST a new brand/color/size/category/collection/custom field, or PUT when `entity_id` is given."""
        if entity_id:
            return self._request("PUT", f"{resource}/{entity_id}", payload=payload, error=f"Failed to save {resource}.") or {}
        return self._request("POST", resource, payload=payload, error=f"Failed to save {resource}.") or {}

    def delete_entity(self, resource: str, entity_id: str) -> None:
        self._request("DELETE", f"{resource}/{entity_id}", error=f"Failed to delete {resource}.")

    def add_collection_product(self, collection_id: str, product_id: str) -> dict:
        payload = {"collection_id": collection_id, "product_id": product_id, "company_id": self.company_id}
        return self._request("POST", "collection-products", payload=payload, error="Failed to add product to collection.") or {}

    # ---------- parties / locations ----------
    def list_locations(self) -> list[Location]:
        return [Location.from_api(l) for l in self._list("locations/company", self._company(), error="Failed to fetch locations.")]

    def save_location(self, payload: dict, location_id: Optional[str] = None) -> dict:
        return self.save_entity("locations", payload, location_id)

    def list_suppliers(self) -> list[Supplier]:
        rows = self._list("suppliers/filter/by-company", self._company(), error="Failed to fetch suppliers.")
        return [Supplier.from_api(s) for s in rows]

    def save_supplier(self, payload: dict, supplier_id: Optional[str] = None) -> dict:
        return self.save_entity("suppliers", payload, supplier_id)

    def list_customers(self) -> list[Customer]:
        rows = self._list("customers/company/filter/", self._company(), error="Failed to fetch customers.")
        return [Customer.from_api(c) for c in rows]

    def save_customer(self, payload: dict, customer_id: Optional[str] = None) -> dict:
        return self.save_entity("customers", payload, customer_id)

    def delete_customer(self, customer_id: str) -> None:
        self.delete_entity("customers", customer_id)

    # ---------- purchasing ----------
    def list_purchase_orders(self) -> list[PurchaseOrder]:
        rows = self._list("purchase-orders/filter/company", self._company(), error="Failed to fetch purchase orders.")
        return [PurchaseOrder.from_api(p) for p in rows]

    def get_purchase_order(self, po_id: str) -> PurchaseOrder:
        return PurchaseOrder.from_api(self._get(f"purchase-orders/{po_id}", error="Failed to fetch purchase order.") or {})

    def create_purchase_order(self, payload: dict) -> dict:
        return self._request("POST", "purchase-orders", payload=payload, error="Failed to create purchase order.") or {}

    def total_received_qty(self, product_id: str, product_variant_id: str, po_number: str) -> float:
        params = self._company(product_id=product_id, product_variant_id=product_variant_id, po_number=po_number)
        data = self._get("purchase-order-items/total-received-qty/", params, error="Failed to fetch received quantity.") or {}
        return float(data.get("total_received_qty") or 0)

    def create_grn(self, payload: dict) -> dict:
        return self._request("POST", "grn", payload=payload, error="Failed to create GRN.") or {}

    def list_grns(self) -> list[GoodsReceivedNote]:
        rows = self._list(f"grn/company/{self.company_id}", error="Failed to fetch GRNs.")
        return [GoodsReceivedNote.from_api(g) for g in rows]

    def get_grn(self, grn_id: str) -> GoodsReceivedNote:
        return GoodsReceivedNote.from_api(self._get(f"grn/{grn_id}", error="Failed to fetch GRN.") or {})

    def create_supplier_return(self, payload: dict) -> dict:
        return self._request("POST", "supplier-returns", payload=payload, error="Failed to create supplier return.") or {}

    def list_supplier_returns(self) -> list[SupplierReturn]:
        rows = self._list("supplier-returns", self._company(), error="Failed to fetch supplier returns.")
        return [SupplierReturn.from_api(r) for r in rows]

    def create_payment(self, payload: dict) -> dict:
        return self._request("POST", "payments", payload=payload, error="Failed to record payment.") or {}

    def list_payments(self) -> list[SupplierPayment]:
        rows = self._list("payments/company", self._company(), error="Failed to fetch payments.")
        return [SupplierPayment.from_api(p) for p in rows]

    # ---------- stock ----------
    def stock_batches(self, product_id: str, product_variant_id: str, location_id: Optional[str] = None) -> list[StockBatch]:
        params = self._company(product_id=product_id, product_variant_id=product_variant_id, location_id=location_id)
        data = self._get("stock-entries/summary", params, error="Failed to fetch stock batches.") or {}
        rows = (data.get("grouped_by_expire_date") or []) if isinstance(data, dict) else []
        return [StockBatch.from_api(b) for b in rows]

    def post_stock_entries(self, entries: list[dict]) -> dict:
        return self._request("POST", "stock-entries/bulk", payload={"entries": entries}, error="Failed to save opening stock.") or {}

    def location_stock(self, location_id: str) -> list[InventoryLevel]:
        rows = self._list(f"inventory/location/{location_id}", self._company(), error="Failed to fetch stock levels.")
        return [InventoryLevel.from_api(r) for r in rows]

    def create_stock_transfer(self, payload: dict) -> dict:
        return self._request("POST", "stock-transfers", payload=payload, error="Failed to create stock transfer.") or {}

    def list_stock_transfers(self) -> list[StockTransfer]:
        rows = self._list("stock-transfers/filter/by-company", self._company(), error="Failed to fetch transfers.")
        return [StockTransfer.from_api(t) for t in rows]

    # ---------- sales ----------
    def create_invoice(self, payload: dict) -> dict:
        return self._request("POST", "invoices", payload=payload, error="Failed to create invoice.") or {}

    def get_invoice(self, invoice_id: str) -> Invoice:
        return Invoice.from_api(self._get(f"invoices/full/{invoice_id}", error="Failed to fetch invoice.") or {})

    def list_invoices(self) -> list[Invoice]:
        return [Invoice.from_api(i) for i in self._list("invoices", self._company(), error="Failed to fetch invoices.")]

    def pending_invoices(self, customer_code: str) -> list[Invoice]:
        rows = self._list("invoices/filter/pending", self._company(customer_code=customer_code), error="Failed to fetch pending invoices.")
        return [Invoice.from_api(i) for i in rows]

    def completed_invoices(self) -> list[Invoice]:
        rows = self._list("invoices/filter/hold/by-company-status", self._company(invoice_status=1), error="Failed to fetch invoices.")
        return [Invoice.from_api(i) for i in rows]

    def invoice_balance(self, customer_id: str, ref_id: str) -> float:
        params = self._company(customer_id=customer_id, ref_id=ref_id)
        data = self._get("invoices/balance", params, error="Failed to fetch invoice balance.") or {}
        return float(data.get("balance") or 0)

    def create_receipt(self, payload: dict) -> dict:
        return self._request("POST", "receipts", payload=payload, error="Failed to create receipt.") or {}

    def list_receipts(self) -> list[Receipt]:
        return [Receipt.from_api(r) for r in self._list(f"receipts/company/{self.company_id}", error="Failed to fetch receipts.")]

    def list_orders(self) -> list[Order]:
        return [Order.from_api(o) for o in self._list("orders/company", self._company(), error="Failed to fetch orders.")]

    # ---------- accounting ----------
    def list_accounts(self) -> list[Account]:
        rows = self._list("chart-of-accounts/company", self._company(), error="Failed to fetch accounts.")
        return [Account.from_api(a) for a in rows]

    def create_journal_entry(self, payload: dict) -> dict:
        return self._request("POST", "journal-entries", payload=payload, error="Failed to post journal entry.") or {}

    def list_expenses(self) -> list[Expense]:
        return [Expense.from_api(e) for e in self._list("expenses/company", self._company(), error="Failed to fetch expenses.")]

    def create_expense(self, payload: dict) -> dict:
        return self._request("POST", "expenses", payload=payload, error="Failed to record expense.") or {}

    def create_fixed_asset(self, payload: dict) -> dict:
        return self._request("POST", "fixed-assets", payload=payload, error="Failed to save fixed asset.") or {}
