from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional


def _num(value: object, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _str(value: object, default: str = "") -> str:
    if value is None:
        return default
    return str(value)


def _opt_str(value: object) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


# ---------- catalog ----------

@dataclass(frozen=True)
class ProductVariant:
    id: str
    sku: str
    product_id: Optional[str] = None
    color: Optional[str] = None
    size: Optional[str] = None
    color_id: Optional[str] = None
    size_id: Optional[str] = None
    barcode: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "ProductVariant":
        return cls(
            id=_str(data.get("id")),
            sku=_str(data.get("sku")),
            product_id=_opt_str(data.get("product_id")),
            color=_opt_str(data.get("color")),
            size=_opt_str(data.get("size")),
            color_id=_opt_str(data.get("color_id")),
            size_id=_opt_str(data.get("size_id")),
            barcode=_opt_str(data.get("barcode")),
        )


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: str
    price: float
    status: str = "active"
    category_id: Optional[str] = None
    brand_id: Optional[str] = None
    cost_price: float = 0.0
    min_price: float = 0.0
    wholesale_price: float = 0.0
    stock_unit: str = "PCS"
    print_name: Optional[str] = None
    display_name: Optional[str] = None
    supplier: Optional[str] = None
    variants: tuple[ProductVariant, ...] = ()

    @classmethod
    def from_api(cls, data: dict) -> "Product":
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            category=_str(data.get("category")),
            price=_num(data.get("price")),
            status=_str(data.get("status"), "active"),
            category_id=_opt_str(data.get("category_id")),
            brand_id=_opt_str(data.get("brand_id")),
            cost_price=_num(data.get("cost_price", data.get("costPrice"))),
            min_price=_num(data.get("min_price")),
            wholesale_price=_num(data.get("wholesale_price")),
            stock_unit=_str(data.get("stock_unit"), "PCS") or "PCS",
            print_name=_opt_str(data.get("print_name")),
            display_name=_opt_str(data.get("display_name")),
            supplier=_opt_str(data.get("supplier")),
            variants=tuple(ProductVariant.from_api(v) for v in data.get("variants") or []),
        )

    def variant_by_sku(self, sku: str) -> Optional[ProductVariant]:
        for v in self.variants:
            if v.sku == sku:
                return v
        return None


@dataclass(frozen=True)
class Brand:
    id: str
    name: str
    description: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "Brand":
        return cls(id=_str(data.get("id")), name=_str(data.get("name")), description=_opt_str(data.get("description")))


@dataclass(frozen=True)
class Color:
    id: str
    name: str
    hex_code: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "Color":
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            hex_code=_opt_str(data.get("hex_code") or data.get("hexCode")),
        )


@dataclass(frozen=True)
class Size:
    id: str
    value: str
    abbreviation: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "Size":
        return cls(
            id=_str(data.get("id")),
            value=_str(data.get("value") or data.get("name")),
            abbreviation=_opt_str(data.get("abbreviation")),
        )


@dataclass(frozen=True)
class Category:
    id: str
    name: str
    description: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "Category":
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name") or data.get("category_name")),
            description=_opt_str(data.get("description")),
        )


@dataclass(frozen=True)
class Collection:
    id: str
    title: str
    status: str = "active"
    description: Optional[str] = None
    product_count: int = 0

    @classmethod
    def from_api(cls, data: dict) -> "Collection":
        return cls(
            id=_str(data.get("id")),
            title=_str(data.get("title")),
            status=_str(data.get("status"), "active"),
            description=_opt_str(data.get("description")),
            product_count=int(_num(data.get("productCount", data.get("product_count")))),
        )


@dataclass(frozen=True)
class CustomField:
    id: str
    field_name: str
    description: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "CustomField":
        return cls(id=_str(data.get("id")), field_name=_str(data.get("field_name")), description=_opt_str(data.get("description")))


# ---------- parties / locations ----------

@dataclass(frozen=True)
class Location:
    location_id: str
    location_name: str
    location_type: str = "Retail"
    location_code: Optional[str] = None
    address_line1: str = ""
    address_line2: Optional[str] = None
    city: str = ""
    phone_1: str = ""
    phone_2: Optional[str] = None
    pos_status: bool = False
    is_active: bool = True

    @classmethod
    def from_api(cls, data: dict) -> "Location":
        return cls(
            location_id=_str(data.get("location_id")),
            location_name=_str(data.get("location_name")),
            location_type=_str(data.get("location_type"), "Retail"),
            location_code=_opt_str(data.get("location_code")),
            address_line1=_str(data.get("address_line1")),
            address_line2=_opt_str(data.get("address_line2")),
            city=_str(data.get("city")),
            phone_1=_str(data.get("phone_1")),
            phone_2=_opt_str(data.get("phone_2")),
            pos_status=_str(data.get("pos_status")) == "1",
            is_active=_str(data.get("is_active"), "1") == "1",
        )


@dataclass(frozen=True)
class Supplier:
    supplier_id: str
    supplier_name: str
    contact_person: str = ""
    email: str = ""
    telephone: str = ""
    street_name: str = ""
    city: str = ""
    zip_code: str = ""
    fax: str = ""
    opening_balance: float = 0.0

    @classmethod
    def from_api(cls, data: dict) -> "Supplier":
        return cls(
            supplier_id=_str(data.get("supplier_id") or data.get("id")),
            supplier_name=_str(data.get("supplier_name")),
            contact_person=_str(data.get("contact_person")),
            email=_str(data.get("email")),
            telephone=_str(data.get("telephone")),
            street_name=_str(data.get("street_name")),
            city=_str(data.get("city")),
            zip_code=_str(data.get("zip_code")),
            fax=_str(data.get("fax")),
            opening_balance=_num(data.get("opening_balance")),
        )


@dataclass(frozen=True)
class Customer:
    customer_id: str
    first_name: str
    last_name: str
    phone_number: str = ""
    email_address: str = ""
    address_line1: str = ""
    address_line2: str = ""
    city: str = ""
    opening_balance: float = 0.0
    credit_limit: float = 0.0
    loyalty_points: int = 0

    @property
    def name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_api(cls, data: dict) -> "Customer":
        return cls(
            customer_id=_str(data.get("customer_id") or data.get("id")),
            first_name=_str(data.get("customer_first_name")),
            last_name=_str(data.get("customer_last_name")),
            phone_number=_str(data.get("phone_number") or data.get("phone")),
            email_address=_str(data.get("email_address")),
            address_line1=_str(data.get("address_line1")),
            address_line2=_str(data.get("address_line2")),
            city=_str(data.get("city") or data.get("city_id")),
            opening_balance=_num(data.get("opening_balance")),
            credit_limit=_num(data.get("credit_limit")),
            loyalty_points=int(_num(data.get("loyalty_points", data.get("loyaltyPoints")))),
        )


# ---------- purchasing ----------

@dataclass(frozen=True)
class PurchaseOrderItem:
    product_id: str
    product_variant_id: str
    quantity: float
    order_rate: float
    order_unit: str = "Nos"
    product_name: Optional[str] = None
    variant_sku: Optional[str] = None

    @property
    def total_cost(self) -> float:
        return self.quantity * self.order_rate

    @classmethod
    def from_api(cls, data: dict) -> "PurchaseOrderItem":
        return cls(
            product_id=_str(data.get("product_id")),
            product_variant_id=_str(data.get("product_variant_id")),
            quantity=_num(data.get("quantity")),
            order_rate=_num(data.get("order_rate")),
            order_unit=_str(data.get("order_unit"), "Nos") or "Nos",
            product_name=_opt_str(data.get("product_name")),
            variant_sku=_opt_str(data.get("variant_sku")),
        )


# server sends po_status as a numeric code
PO_STATUS_CODES = {"0": "pending", "1": "approved", "2": "rejected", "3": "cancelled"}


@dataclass(frozen=True)
class PurchaseOrder:
    id: str
    po_number: str
    supplier_id: str
    location_id: str
    po_status: str = "pending"
    currency: str = "LKR"
    tax_type: str = "VAT"
    sub_total: float = 0.0
    total_amount: float = 0.0
    remarks: str = ""
    created_at: str = ""
    delivery_date: Optional[str] = None
    is_active: bool = True
    items: tuple[PurchaseOrderItem, ...] = ()

    @classmethod
    def from_api(cls, data: dict) -> "PurchaseOrder":
        return cls(
            id=_str(data.get("id")),
            po_number=_str(data.get("po_number")),
            supplier_id=_str(data.get("supplier_id")),
            location_id=_str(data.get("location_id")),
            po_status=PO_STATUS_CODES.get(_str(data.get("po_status")), _str(data.get("po_status"), "pending")),
            currency=_str(data.get("currency"), "LKR"),
            tax_type=_str(data.get("tax_type"), "VAT"),
            sub_total=_num(data.get("sub_total")),
            total_amount=_num(data.get("total_amount")),
            remarks=_str(data.get("remarks")),
            created_at=_str(data.get("created_at")),
            delivery_date=_opt_str(data.get("delivery_date")),
            is_active=_str(data.get("is_active"), "1") == "1",
            items=tuple(PurchaseOrderItem.from_api(i) for i in data.get("items") or []),
        )


@dataclass(frozen=True)
class GrnBatch:
    batch_number: str
    received_qty: float
    mfg_date: Optional[date] = None
    exp_date: Optional[date] = None


@dataclass(frozen=True)
class GrnLine:
    """One PO line being received; `receivable` is the balance still open on the PO."""

    product_id: str
    product_variant_id: str
    sku: str
    product_name: str
    order_qty: float
    already_received: float
    unit_rate: float
    order_unit: str = "Nos"
    batches: tuple[GrnBatch, ...] = ()

    @property
    def receivable(self) -> float:
        return self.order_qty - self.already_received

    @property
    def received_total(self) -> float:
        return sum(b.received_qty for b in self.batches)


@dataclass(frozen=True)
class GrnDraft:
    po_id: str
    po_number: str
    supplier_id: str
    supplier_name: str
    location_id: str
    grn_date: date
    currency: str = "LKR"
    tax_type: str = "VAT"
    payment_status: str = "Unpaid"
    remark: str = ""
    lines: tuple[GrnLine, ...] = ()


@dataclass(frozen=True)
class GrnItem:
    product_id: str
    product_variant_id: str
    received_qty: float
    order_rate: float
    order_unit: str = "Nos"
    patch_code: str = ""
    expire_date: str = ""
    manufacture_date: str = ""
    po_number: str = ""
    product_name: Optional[str] = None
    variant_sku: Optional[str] = None

    @property
    def total_cost(self) -> float:
        return self.received_qty * self.order_rate

    @classmethod
    def from_api(cls, data: dict) -> "GrnItem":
        return cls(
            product_id=_str(data.get("product_id")),
            product_variant_id=_str(data.get("product_variant_id")),
            received_qty=_num(data.get("received_qty")),
            order_rate=_num(data.get("order_rate")),
            order_unit=_str(data.get("order_unit"), "Nos") or "Nos",
            patch_code=_str(data.get("patch_code")),
            expire_date=_str(data.get("expire_date")),
            manufacture_date=_str(data.get("manufacture_date")),
            po_number=_str(data.get("po_number")),
            product_name=_opt_str(data.get("product_name")),
            variant_sku=_opt_str(data.get("variant_sku")),
        )


@dataclass(frozen=True)
class GoodsReceivedNote:
    id: str
    grn_number: str
    supplier_id: str
    location_id: str
    po_number: str = ""
    currency: str = "LKR"
    tax_type: str = "VAT"
    sub_total: float = 0.0
    tax_value: float = 0.0
    grand_total: float = 0.0
    grn_status: str = ""
    payment_status: str = "Unpaid"
    remarks: str = ""
    created_at: str = ""
    items: tuple[GrnItem, ...] = ()

    @classmethod
    def from_api(cls, data: dict) -> "GoodsReceivedNote":
        return cls(
            id=_str(data.get("id")),
            grn_number=_str(data.get("grn_number")),
            supplier_id=_str(data.get("supplier_id")),
            location_id=_str(data.get("location_id")),
            po_number=_str(data.get("po_number")),
            currency=_str(data.get("currency"), "LKR"),
            tax_type=_str(data.get("tax_type"), "VAT"),
            sub_total=_num(data.get("sub_total")),
            tax_value=_num(data.get("tax_value")),
            grand_total=_num(data.get("grand_total")),
            grn_status=_str(data.get("grn_status")),
            payment_status=_str(data.get("payment_status"), "Unpaid"),
            remarks=_str(data.get("remarks")),
            created_at=_str(data.get("created_at")),
            items=tuple(GrnItem.from_api(i) for i in data.get("items") or []),
        )


@dataclass(frozen=True)
class SupplierReturnItem:
    product_id: str
    product_variant_id: str
    product_name: str
    received_qty: float
    unit_price: float
    return_qty: float
    reason: str


@dataclass(frozen=True)
class SupplierReturn:
    id: str
    grn_id: str
    supplier_id: str
    return_date: str
    total_value: float
    notes: str = ""
    items: tuple[SupplierReturnItem, ...] = ()

    @classmethod
    def from_api(cls, data: dict) -> "SupplierReturn":
        items = tuple(
            SupplierReturnItem(
                product_id=_str(i.get("product_id")),
                product_variant_id=_str(i.get("product_variant_id")),
                product_name=_str(i.get("product_name")),
                received_qty=_num(i.get("received_qty")),
                unit_price=_num(i.get("unit_price")),
                return_qty=_num(i.get("return_qty")),
                reason=_str(i.get("reason")),
            )
            for i in data.get("items") or []
        )
        return cls(
            id=_str(data.get("id")),
            grn_id=_str(data.get("grn_id")),
            supplier_id=_str(data.get("supplier_id")),
            return_date=_str(data.get("return_date")),
            total_value=_num(data.get("total_value")),
            notes=_str(data.get("notes")),
            items=items,
        )


@dataclass(frozen=True)
class SupplierPayment:
    id: str
    date: str
    supplier_id: str
    amount: float
    payment_account_id: str = ""
    notes: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "SupplierPayment":
        return cls(
            id=_str(data.get("id")),
            date=_str(data.get("date")),
            supplier_id=_str(data.get("supplier_id")),
            amount=_num(data.get("amount")),
            payment_account_id=_str(data.get("payment_account_id")),
            notes=_str(data.get("notes")),
        )


# ---------- stock ----------

@dataclass(frozen=True)
class StockBatch:
    expire_date: str
    patch_code: str
    stock_balance: float

    @classmethod
    def from_api(cls, data: dict) -> "StockBatch":
        return cls(
            expire_date=_str(data.get("expire_date")),
            patch_code=_str(data.get("patch_code")),
            stock_balance=_num(data.get("stock_balance")),
        )


@dataclass(frozen=True)
class InventoryLevel:
    product_id: str
    product_variant_id: str
    sku: str
    location_id: str
    stock: float
    reorder_level: float = 0.0
    product_name: str = ""

    @property
    def is_low(self) -> bool:
        return self.stock <= self.reorder_level

    @classmethod
    def from_api(cls, data: dict) -> "InventoryLevel":
        return cls(
            product_id=_str(data.get("product_id") or data.get("productId")),
            product_variant_id=_str(data.get("product_variant_id")),
            sku=_str(data.get("sku")),
            location_id=_str(data.get("location_id") or data.get("locationId")),
            stock=_num(data.get("stock", data.get("stock_balance"))),
            reorder_level=_num(data.get("reorder_level", data.get("reorderLevel"))),
            product_name=_str(data.get("product_name") or data.get("name")),
        )


@dataclass(frozen=True)
class StockTransferItem:
    product_id: str
    product_variant_id: str
    quantity: float
    patch_code: Optional[str] = None
    expire_date: Optional[str] = None

    @classmethod
    def from_api(cls, data: dict) -> "StockTransferItem":
        return cls(
            product_id=_str(data.get("product_id")),
            product_variant_id=_str(data.get("product_variant_id")),
            quantity=_num(data.get("quantity")),
            patch_code=_opt_str(data.get("patch_code")),
            expire_date=_opt_str(data.get("expire_date")),
        )


@dataclass(frozen=True)
class StockTransfer:
    id: str
    stock_transfer_number: str
    from_location: str
    to_location: str
    transfer_date: str
    status: str = "pending"
    items: tuple[StockTransferItem, ...] = ()

    @classmethod
    def from_api(cls, data: dict) -> "StockTransfer":
        return cls(
            id=_str(data.get("id")),
            stock_transfer_number=_str(data.get("stock_transfer_number")),
            from_location=_str(data.get("from_location")),
            to_location=_str(data.get("to_location")),
            transfer_date=_str(data.get("transfer_date")),
            status=_str(data.get("status"), "pending"),
            items=tuple(StockTransferItem.from_api(i) for i in data.get("items") or []),
        )


# ---------- sales ----------

@dataclass(frozen=True)
class InvoiceItem:
    product_id: str
    item_price: float
    quantity: float
    item_discount: float = 0.0
    cost_price: float = 0.0
    product_name: Optional[str] = None

    @property
    def line_total(self) -> float:
        return self.item_price * self.quantity - self.item_discount

    @classmethod
    def from_api(cls, data: dict) -> "InvoiceItem":
        return cls(
            product_id=_str(data.get("product_id")),
            item_price=_num(data.get("item_price")),
            quantity=_num(data.get("quantity")),
            item_discount=_num(data.get("item_discount")),
            cost_price=_num(data.get("cost_price")),
            product_name=_opt_str(data.get("productName") or data.get("product_name")),
        )


@dataclass(frozen=True)
class Invoice:
    id: str
    invoice_number: str
    invoice_date: str
    customer_code: str
    inv_amount: float = 0.0
    discount_amount: float = 0.0
    discount_percentage: float = 0.0
    service_charge: float = 0.0
    grand_total: float = 0.0
    tendered_amount: float = 0.0
    cost_value: float = 0.0
    close_type: str = "Cash"
    invoice_status: str = "Draft"
    payment_status: str = "Pending"
    location_id: str = ""
    remark: Optional[str] = None
    items: tuple[InvoiceItem, ...] = ()
    customer: Optional[Customer] = None

    @classmethod
    def from_api(cls, data: dict) -> "Invoice":
        customer = data.get("customer")
        return cls(
            id=_str(data.get("id")),
            invoice_number=_str(data.get("invoice_number")),
            invoice_date=_str(data.get("invoice_date")),
            customer_code=_str(data.get("customer_code")),
            inv_amount=_num(data.get("inv_amount")),
            discount_amount=_num(data.get("discount_amount")),
            discount_percentage=_num(data.get("discount_percentage")),
            service_charge=_num(data.get("service_charge")),
            grand_total=_num(data.get("grand_total")),
            tendered_amount=_num(data.get("tendered_amount")),
            cost_value=_num(data.get("cost_value")),
            close_type=_str(data.get("close_type"), "Cash"),
            invoice_status=_str(data.get("invoice_status"), "Draft"),
            payment_status=_str(data.get("payment_status"), "Pending"),
            location_id=_str(data.get("location_id")),
            remark=_opt_str(data.get("remark")),
            items=tuple(InvoiceItem.from_api(i) for i in data.get("items") or []),
            customer=Customer.from_api(customer) if isinstance(customer, dict) else None,
        )


@dataclass(frozen=True)
class Receipt:
    id: str
    ref_id: str
    customer_id: str
    date: str
    amount: float
    payment_method: str = "Cash"
    rec_number: str = ""
    location_id: str = ""

    @classmethod
    def from_api(cls, data: dict) -> "Receipt":
        methods = {"0": "Cash", "1": "Card", "2": "Bank Transfer"}
        return cls(
            id=_str(data.get("id")),
            ref_id=_str(data.get("ref_id")),
            customer_id=_str(data.get("customer_id")),
            date=_str(data.get("date")),
            amount=_num(data.get("amount")),
            payment_method=methods.get(_str(data.get("type")), _str(data.get("type"), "Cash")),
            rec_number=_str(data.get("rec_number")),
            location_id=_str(data.get("location_id")),
        )


@dataclass(frozen=True)
class Order:
    id: str
    customer_name: str
    channel: str
    date: str
    status: str
    total: float

    @classmethod
    def from_api(cls, data: dict) -> "Order":
        return cls(
            id=_str(data.get("id")),
            customer_name=_str(data.get("customerName") or data.get("customer_name")),
            channel=_str(data.get("channel")),
            date=_str(data.get("date")),
            status=_str(data.get("status")),
            total=_num(data.get("total")),
        )


# ---------- accounting ----------

@dataclass(frozen=True)
class Account:
    code: int
    name: str
    type: str
    sub_type: str = ""
    balance: float = 0.0

    @classmethod
    def from_api(cls, data: dict) -> "Account":
        return cls(
            code=int(_num(data.get("code"))),
            name=_str(data.get("name")),
            type=_str(data.get("type")),
            sub_type=_str(data.get("subType") or data.get("sub_type")),
            balance=_num(data.get("balance")),
        )


@dataclass(frozen=True)
class JournalLine:
    account_code: int
    account_name: str = ""
    debit: float = 0.0
    credit: float = 0.0


@dataclass(frozen=True)
class JournalEntry:
    id: str
    date: str
    narration: str
    lines: tuple[JournalLine, ...] = ()

    @property
    def total_debit(self) -> float:
        return sum(l.debit for l in self.lines)

    @property
    def total_credit(self) -> float:
        return sum(l.credit for l in self.lines)


@dataclass(frozen=True)
class Expense:
    id: str
    date: str
    payee: str
    amount: float
    expense_account_id: int
    payment_account_id: int

    @classmethod
    def from_api(cls, data: dict) -> "Expense":
        return cls(
            id=_str(data.get("id")),
            date=_str(data.get("date")),
            payee=_str(data.get("payee")),
            amount=_num(data.get("amount")),
            expense_account_id=int(_num(data.get("expense_account_id", data.get("expenseAccountId")))),
            payment_account_id=int(_num(data.get("payment_account_id", data.get("paymentAccountId")))),
        )


@dataclass(frozen=True)
class FixedAsset:
    id: str
    name: str
    asset_type: str
    purchase_date: str
    purchase_cost: float
    accumulated_depreciation: float = 0.0
    status: str = "In Use"
    depreciation_method: str = "Straight-Line"

    @property
    def net_book_value(self) -> float:
        return self.purchase_cost - self.accumulated_depreciation


# ---------- plans / auth / CRM ----------

@dataclass(frozen=True)
class PlanLimits:
    orders: float
    products: float
    locations: float


@dataclass(frozen=True)
class Plan:
    id: str
    name: str
    description: str
    price: float
    limits: PlanLimits
    features: tuple[str, ...] = ()
    cta_label: str = ""


@dataclass(frozen=True)
class PlanLimitStatus:
    has_access: bool
    limit: float
    usage: int
    name: str


@dataclass(frozen=True)
class UserSession:
    user_id: int
    user_name: str
    role: str = "Admin"
    company_id: Optional[int] = None
    company_name: Optional[str] = None

    @property
    def needs_company(self) -> bool:
        return self.company_id is None


@dataclass(frozen=True)
class LoyaltySchema:
    silver: int = 100
    gold: int = 250
    platinum: int = 500


@dataclass(frozen=True)
class SmsCampaign:
    name: str
    target_audience: str
    content: str
    status: str = "Draft"
    recipients: tuple[Customer, ...] = ()

    @property
    def recipient_count(self) -> int:
        return len(self.recipients)


@dataclass(frozen=True)
class EmailCampaign:
    name: str
    subject: str
    target_audience: str
    content: str
    status: str = "Draft"
    recipients: tuple[Customer, ...] = ()

    @property
    def recipient_count(self) -> int:
        return len(self.recipients)


# ---------- forecasting ----------

@dataclass(frozen=True)
class ForecastRequest:
    product_name: str
    past_sales_data: str
    seasonal_trends: str


@dataclass(frozen=True)
class InventoryForecast:
    reorder_point: float
    reorder_quantity: float
    forecast_explanation: str


@dataclass
class PosCartLine:
    product: Product
    variant_id: str
    quantity: int
    item_discount: float = 0.0
    batch: Optional[str] = None

    @property
    def unit_price(self) -> float:
        return float(self.product.price)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity - self.item_discount

    @property
    def label(self) -> str:
        variant = next((v for v in self.product.variants if v.id == self.variant_id), None)
        if variant is None or not (variant.color or variant.size):
            return self.product.name
        extras = " / ".join(x for x in (variant.color, variant.size) if x)
        return f"{self.product.name} ({extras})"


@dataclass
class PosOrder:
    id: str
    name: str
    customer_id: str = ""
    cart: list[PosCartLine] = field(default_factory=list)
    discount: float = 0.0
    service_charge_enabled: bool = False
    held: bool = False
    order_type: str = "Take Away"
    table_name: Optional[str] = None
    steward: Optional[str] = None
