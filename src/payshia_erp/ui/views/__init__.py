from .products_view import ProductsView
from .pos_view import PosView
from .sales_view import SalesView
from .purchasing_view import PurchasingView
from .stock_view import StockView
from .customers_view import CustomersView
from .accounting_view import AccountingView
from .setup_view import SetupView
from .reports_view import ReportsView
from .forecast_view import ForecastView

__all__ = [
    "ProductsView", "PosView", "SalesView", "PurchasingView", "StockView",
    "CustomersView", "AccountingView", "SetupView", "ReportsView", "ForecastView",
]
