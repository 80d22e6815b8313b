from .auth_service import AuthService
from .plan_service import PlanService
from .catalog_service import CatalogService
from .location_service import LocationService
from .supplier_service import SupplierService
from .customer_service import CustomerService
from .purchase_service import PurchaseService
from .inventory_service import InventoryService
from .sales_service import SalesService
from .pos_service import PosService
from .accounting_service import AccountingService
from .forecast_service import ForecastService
from .currency_service import CurrencyService
from .excel_service import ExcelService
from .reporting_service import ReportingService
from .print_service import PrintService

__all__ = [
    "AuthService",
    "PlanService",
    "CatalogService",
    "LocationService",
    "SupplierService",
    "CustomerService",
    "PurchaseService",
    "InventoryService",
    "SalesService",
    "PosService",
    "AccountingService",
    "ForecastService",
    "CurrencyService",
    "ExcelService",
    "ReportingService",
    "PrintService",
]
