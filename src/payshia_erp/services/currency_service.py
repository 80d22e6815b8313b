from __future__ import annotations

import logging
from dataclasses import dataclass

from payshia_erp.domain.errors import ValidationError

log = logging.getLogger("payshia_erp.currency")

FALLBACK_SYMBOL = "LKR"


@dataclass(frozen=True)
class Currency:
    code: str
    name: str
    symbol: str


CURRENCIES: tuple[Currency, ...] = (
    Currency("LKR", "Sri Lankan Rupee", "Rs"),
    Currency("USD", "US Dollar", "$"),
    Currency("EUR", "Euro", "€"),
    Currency("GBP", "British Pound", "£"),
    Currency("JPY", "Japanese Yen", "¥"),
)


def symbol_for(code: str) -> str:
    for c in CURRENCIES:
        if c.code == (code or "").upper():
            return c.symbol
    return FALLBACK_SYMBOL


def format_money(amount: float, symbol: str = "") -> str:
    text = f"{float(amount or 0):,.2f}"
    return f"{symbol}{text}" if symbol else text


class CurrencyService:
    """Display currency for the session. Amounts are never converted, only labelled."""

    def __init__(self, code: str = "LKR"):
        self.code = (code or "LKR").upper()

    @property
    def symbol(self) -> str:
        return symbol_for(self.code)

    def set_currency(self, code: str) -> None:
        code = (code or "").upper()
        if code not in {c.code for c in CURRENCIES}:
            raise ValidationError(f"Unsupported currency: {code}")
        self.code = code
        log.info("currency_changed code=%s", code)

    def format(self, amount: float) -> str:
        return format_money(amount, self.symbol)
