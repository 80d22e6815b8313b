from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable, Optional

from payshia_erp.domain.errors import ValidationError
from payshia_erp.domain.models import Account, Expense, FixedAsset, JournalEntry, JournalLine
from payshia_erp.services import validation as v

log = logging.getLogger("payshia_erp.accounting")

ASSET_STATUSES = ("In Use", "Under Maintenance", "Disposed")
DEPRECIATION_METHODS = ("Straight-Line", "Double Declining Balance")


class AccountingService:
    def __init__(self, repo, today: Callable[[], date] = date.today):
        self.repo = repo
        self.today = today

    def list_accounts(self) -> list[Account]:
        return self.repo.list_accounts()

    def expense_accounts(self) -> list[Account]:
        return [a for a in self.repo.list_accounts() if a.type == "Expense"]

    def payment_accounts(self) -> list[Account]:
        return [a for a in self.repo.list_accounts() if a.type == "Asset"]

    # ---------- journal ----------
    def build_journal_entry(self, narration: str, lines: Iterable[dict], entry_date: Optional[date] = None) -> JournalEntry:
        """lines: [{account_code, debit?, credit?}]"""
        narration_clean = v.text(narration, 1, "Narration is required.")
        accounts = {a.code: a.name for a in self.repo.list_accounts()}

        out = []
        for line in lines:
            if line.get("account_code") in (None, ""):
                raise ValidationError("Account is required.")
            code = v.integer(line.get("account_code"), "Account code must be a number.")
            debit = v.at_least(line.get("debit"), 0, "Debit cannot be negative.", 0.0)
            credit = v.at_least(line.get("credit"), 0, "Credit cannot be negative.", 0.0)
            if debit > 0 and credit > 0:
                raise ValidationError("A line can have either a debit or a credit, not both.")
            if debit == 0 and credit == 0:
                raise ValidationError("Each line needs a debit or a credit amount.")
            out.append(JournalLine(account_code=code, account_name=accounts.get(code, ""), debit=debit, credit=credit))

        if len(out) < 2:
            raise ValidationError("A journal entry needs at least two lines.")
        entry = JournalEntry(id="", date=(entry_date or self.today()).strftime("%Y-%m-%d"), narration=narration_clean, lines=tuple(out))
        if round(entry.total_debit, 2) != round(entry.total_credit, 2):
            raise ValidationError("Total debits must equal total credits.")
        if entry.total_debit <= 0:
            raise ValidationError("Journal entry total must be greater than zero.")
        return entry

    def post_journal_entry(self, narration: str, lines: Iterable[dict], entry_date: Optional[date] = None) -> JournalEntry:
        entry = self.build_journal_entry(narration, lines, entry_date)
        payload = {
            "date": entry.date,
            "narration": entry.narration,
            "company_id": self.repo.company_id,
            "created_by": "admin",
            "lines": [
                {"account_code": l.account_code, "debit": l.debit, "credit": l.credit}
                for l in entry.lines
            ],
        }
        result = self.repo.create_journal_entry(payload)
        entry_id = str((result.get("data") or result).get("id") or "")
        log.info("journal_posted id=%s lines=%s total=%.2f", entry_id, len(entry.lines), entry.total_debit)
        return JournalEntry(id=entry_id, date=entry.date, narration=entry.narration, lines=entry.lines)

    # ---------- expenses ----------
    def list_expenses(self) -> list[Expense]:
        return self.repo.list_expenses()

    def record_expense(
        self,
        payee: str,
        amount: object,
        expense_account_id: object,
        payment_account_id: object,
        expense_date: Optional[date] = None,
        notes: str = "",
    ) -> dict:
        payee_clean = v.text(payee, 1, "Payee is required.")
        value = v.number(amount, "Amount must be greater than zero.")
        if value <= 0:
            raise ValidationError("Amount must be greater than zero.")
        if expense_account_id in (None, ""):
            raise ValidationError("Expense account is required.")
        if payment_account_id in (None, ""):
            raise ValidationError("Payment account is required.")
        if str(expense_account_id) == str(payment_account_id):
            raise ValidationError("Expense and payment accounts must be different.")

        payload = {
            "date": (expense_date or self.today()).strftime("%Y-%m-%d"),
            "payee": payee_clean,
            "amount": value,
            "expense_account_id": v.integer(expense_account_id, "Expense account is invalid."),
            "payment_account_id": v.integer(payment_account_id, "Payment account is invalid."),
            "notes": notes or "",
            "company_id": self.repo.company_id,
            "created_by": "admin",
        }
        result = self.repo.create_expense(payload)
        log.info("expense_recorded payee=%s amount=%.2f", payee_clean, value)
        return result

    # ---------- fixed assets ----------
    def register_fixed_asset(
        self,
        name: str,
        asset_type: str,
        purchase_date: Optional[date],
        purchase_cost: object,
        status: str = "In Use",
        depreciation_method: str = "Straight-Line",
        accumulated_depreciation: object = 0.0,
    ) -> FixedAsset:
        name_clean = v.text(name, 3, "Asset name is required.")
        type_clean = v.text(asset_type, 1, "Asset type is required.")
        if purchase_date is None:
            raise ValidationError("A date is required.")
        cost = v.at_least(purchase_cost, 0.01, "Cost must be greater than zero.")
        if status not in ASSET_STATUSES:
            raise ValidationError("Status must be In Use, Under Maintenance or Disposed.")
        if depreciation_method not in DEPRECIATION_METHODS:
            raise ValidationError("Depreciation method must be Straight-Line or Double Declining Balance.")
        accumulated = v.at_least(accumulated_depreciation, 0, "Accumulated depreciation cannot be negative.", 0.0)

        payload = {
            "name": name_clean,
            "asset_type": type_clean,
            "purchase_date": purchase_date.strftime("%Y-%m-%d"),
            "purchase_cost": cost,
            "accumulated_depreciation": accumulated,
            "status": status,
            "depreciation_method": depreciation_method,
            "company_id": self.repo.company_id,
            "created_by": "admin",
        }
        result = self.repo.create_fixed_asset(payload)
        asset = FixedAsset(
            id=str((result.get("data") or result).get("id") or ""),
            name=name_clean,
            asset_type=type_clean,
            purchase_date=payload["purchase_date"],
            purchase_cost=cost,
            accumulated_depreciation=accumulated,
            status=status,
            depreciation_method=depreciation_method,
        )
        log.info("fixed_asset_registered id=%s cost=%.2f nbv=%.2f", asset.id, cost, asset.net_book_value)
        return asset
