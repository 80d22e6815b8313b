from .models import (
    Customer,
    Invoice,
    InvoiceItem,
    Location,
    Product,
    ProductVariant,
    PurchaseOrder,
    PurchaseOrderItem,
    Supplier,
    UserSession,
)
from .errors import (
    ApiError,
    AppError,
    AuthorizationError,
    ForecastUnavailableError,
    NotFoundError,
    PlanLimitError,
    ValidationError,
)

__all__ = [
    "Customer",
    "Invoice",
    "InvoiceItem",
    "Location",
    "Product",
    "ProductVariant",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "Supplier",
    "UserSession",
    "AppError",
    "ApiError",
    "AuthorizationError",
    "ForecastUnavailableError",
    "NotFoundError",
    "PlanLimitError",
    "ValidationError",
]
