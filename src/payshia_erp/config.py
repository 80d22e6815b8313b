from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
import os
import sys

from dotenv import load_dotenv


DEFAULT_API_BASE_URL = "https://server-erp.payshia.com"


@dataclass(frozen=True)
class AppPaths:
    base_dir: Path
    logs_dir: Path
    exports_dir: Path


@dataclass(frozen=True)
class ErpSettings:
    api_base_url: str = DEFAULT_API_BASE_URL
    company_id: int = 1
    location_id: int | None = None
    plan_id: str = "plan-basic"
    currency: str = "LKR"
    http_timeout: float = 10.0
    openai_api_key: str | None = None
    forecast_model: str = "gpt-4o-mini"


@dataclass(frozen=True)
class CompanyProfile:
    name: str = "Payshia ERP"
    address_lines: tuple[str, ...] = ("#455, 533A3, Pelmadulla", "Rathnapura, 70070")
    email: str = "info@payshia.com"
    website: str = "www.payshia.com"
    bank_account_name: str = "Payshia ERP Solutions"
    bank_account_no: str = "123-456-7890"
    bank_branch: str = "Colombo"


def _windows_appdata() -> Path:
    return Path(os.environ.get("APPDATA", str(Path.home() / "AppData" / "Roaming")))


def _mac_app_support() -> Path:
    return Path.home() / "Library" / "Application Support"


def get_app_paths(app_name: str = "PayshiaERP") -> AppPaths:
    if sys.platform.startswith("win"):
        base = _windows_appdata() / app_name
    elif sys.platform == "darwin":
        base = _mac_app_support() / app_name
    else:
        base = Path.home() / f".{app_name.lower()}"

    logs = base / "logs"
    exports = base / "exports"

    base.mkdir(parents=True, exist_ok=True)
    logs.mkdir(parents=True, exist_ok=True)
    exports.mkdir(parents=True, exist_ok=True)

    return AppPaths(base_dir=base, logs_dir=logs, exports_dir=exports)


def _optional_int(value: str | None) -> int | None:
    if value is None or value.strip() == "":
        return None
    return int(value)


def load_settings(env: dict[str, str] | None = None) -> ErpSettings:
    """Build settings from the process environment (after reading `.env`) or an explicit mapping."""
    if env is None:
        load_dotenv()
        env = dict(os.environ)

    defaults = ErpSettings()
    return ErpSettings(
        api_base_url=env.get("PAYSHIA_API_BASE_URL", defaults.api_base_url).rstrip("/"),
        company_id=int(env.get("PAYSHIA_COMPANY_ID", defaults.company_id)),
        location_id=_optional_int(env.get("PAYSHIA_LOCATION_ID")),
        plan_id=env.get("PAYSHIA_PLAN_ID", defaults.plan_id),
        currency=env.get("PAYSHIA_CURRENCY", defaults.currency).upper(),
        http_timeout=float(env.get("PAYSHIA_HTTP_TIMEOUT", defaults.http_timeout)),
        openai_api_key=env.get("OPENAI_API_KEY") or None,
        forecast_model=env.get("PAYSHIA_FORECAST_MODEL", defaults.forecast_model),
    )
