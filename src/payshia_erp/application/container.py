from __future__ import annotations

from dataclasses import dataclass

import requests

from payshia_erp.config import CompanyProfile, ErpSettings
from payshia_erp.domain.models import UserSession
from payshia_erp.logging_config import SESSION_CONTEXT
from payshia_erp.repositories.api_repo import ApiRepository
from payshia_erp.services.accounting_service import AccountingService
from payshia_erp.services.auth_service import AuthService
from payshia_erp.services.catalog_service import CatalogService
from payshia_erp.services.currency_service import CurrencyService
from payshia_erp.services.customer_service import CustomerService
from payshia_erp.services.excel_service import ExcelService
from payshia_erp.services.forecast_service import ForecastService
from payshia_erp.services.inventory_service import InventoryService
from payshia_erp.services.location_service import LocationService
from payshia_erp.services.plan_service import PlanService
from payshia_erp.services.pos_service import PosService
from payshia_erp.services.print_service import PrintService
from payshia_erp.services.purchase_service import PurchaseService
from payshia_erp.services.reporting_service import ReportingService
from payshia_erp.services.sales_service import SalesService
from payshia_erp.services.supplier_service import SupplierService


@dataclass(frozen=True)
class AppContainer:
    settings: ErpSettings
    repo: ApiRepository
    auth: AuthService
    plans: PlanService
    catalog: CatalogService
    locations: LocationService
    suppliers: SupplierService
    customers: CustomerService
    purchases: PurchaseService
    inventory: InventoryService
    sales: SalesService
    pos: PosService
    accounting: AccountingService
    forecast: ForecastService
    currency: CurrencyService
    excel: ExcelService
    reporting: ReportingService
    printing: PrintService


def build_container(
    settings: ErpSettings,
    session: requests.Session | None = None,
    openai_client=None,
    company: CompanyProfile | None = None,
) -> AppContainer:
    repo = ApiRepository(
        settings.api_base_url,
        company_id=settings.company_id,
        timeout=settings.http_timeout,
        session=session,
    )

    auth = AuthService(repo)
    plans = PlanService(repo, plan_id=settings.plan_id)
    catalog = CatalogService(repo, plans)
    locations = LocationService(repo, plans)
    suppliers = SupplierService(repo)
    customers = CustomerService(repo, location_id=settings.location_id)
    purchases = PurchaseService(repo, location_id=settings.location_id)
    inventory = InventoryService(repo, location_id=settings.location_id)
    sales = SalesService(repo, location_id=settings.location_id)
    pos = PosService(sales, inventory)
    accounting = AccountingService(repo)
    forecast = ForecastService(client=openai_client, api_key=settings.openai_api_key, model=settings.forecast_model)
    currency = CurrencyService(settings.currency)
    excel = ExcelService(catalog, inventory)
    reporting = ReportingService(repo)
    printing = PrintService(company, symbol=currency.symbol)

    return AppContainer(
        settings=settings,
        repo=repo,
        auth=auth,
        plans=plans,
        catalog=catalog,
        locations=locations,
        suppliers=suppliers,
        customers=customers,
        purchases=purchases,
        inventory=inventory,
        sales=sales,
        pos=pos,
        accounting=accounting,
        forecast=forecast,
        currency=currency,
        excel=excel,
        reporting=reporting,
        printing=printing,
    )


def bind_session(container: AppContainer, session: UserSession) -> None:
    """Scope the repository to the company the signed-in user belongs to."""
    if session.company_id is not None:
        container.repo.company_id = int(session.company_id)
    container.sales.user_id = session.user_id
    SESSION_CONTEXT.bind(container.repo.company_id, session.user_id)


def set_location(container: AppContainer, location_id: int | None) -> None:
    """Point every location-scoped service at the till/warehouse picked in the UI."""
    for svc in (container.customers, container.purchases, container.inventory, container.sales):
        svc.location_id = location_id
