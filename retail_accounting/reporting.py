"""
Reporting Module

Pure presentation-data builders over the derivation engine's output:
chart of accounts, final accounts (trial balance and income statement),
per-account statements, treasury view, opening balances and the sales
summary. Nothing here mutates state, so every builder is safe to call
repeatedly and concurrently.
"""

from decimal import Decimal
from datetime import date, timedelta
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
from enum import Enum
import csv
import io
import json

from .accounts import Account, AccountType, CASH, BANK
from .currency import ZERO
from .ledger import (
    LedgerLine, Posting, TrialBalanceRow, account_ledger, closing_balance, trial_balance
)
from .sources import Expense, Invoice, InvoiceType


class ReportFormat(Enum):
    """Output formats for exported reports"""
    CSV = "csv"
    JSON = "json"


@dataclass
class TrialBalance:
    """Trial balance rows with their column totals"""
    rows: List[TrialBalanceRow]
    total_debit: Decimal
    total_credit: Decimal

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit

    @property
    def opening_difference(self) -> Decimal:
        """
        Debits minus credits across the book. Only unbalanced opening
        balances (which post a single leg) can make this non-zero.
        """
        return self.total_debit - self.total_credit


@dataclass
class IncomeStatement:
    revenue: Decimal
    expense: Decimal

    @property
    def net_income(self) -> Decimal:
        return self.revenue - self.expense

    @property
    def is_profit(self) -> bool:
        return self.net_income >= ZERO


@dataclass
class FinalAccounts:
    trial_balance: TrialBalance
    income_statement: IncomeStatement

    def to_dict(self) -> Dict[str, Any]:
        return {
            'trial_balance': {
                'rows': [row.to_dict() for row in self.trial_balance.rows],
                'total_debit': str(self.trial_balance.total_debit),
                'total_credit': str(self.trial_balance.total_credit),
                'is_balanced': self.trial_balance.is_balanced,
                'opening_difference': str(self.trial_balance.opening_difference),
            },
            'income_statement': {
                'revenue': str(self.income_statement.revenue),
                'expense': str(self.income_statement.expense),
                'net_income': str(self.income_statement.net_income),
            },
        }


@dataclass
class AccountStatement:
    """Ledger of one account with its summary line"""
    account: Account
    lines: List[LedgerLine]
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'account': {
                'id': self.account.id,
                'code': self.account.code,
                'name': self.account.name,
                'account_type': self.account.account_type.value,
            },
            'lines': [line.to_dict() for line in self.lines],
            'total_debit': str(self.total_debit),
            'total_credit': str(self.total_credit),
            'closing_balance': str(self.closing_balance),
        }


@dataclass
class SalesSummary:
    """Headline figures of the reports screen"""
    total_sales: Decimal
    total_purchases: Decimal
    total_expenses: Decimal

    @property
    def net(self) -> Decimal:
        return self.total_sales - self.total_purchases - self.total_expenses

    def to_dict(self) -> Dict[str, str]:
        return {
            'total_sales': str(self.total_sales),
            'total_purchases': str(self.total_purchases),
            'total_expenses': str(self.total_expenses),
            'net': str(self.net),
        }


@dataclass
class DailyActivity:
    day: date
    sales: Decimal = ZERO
    purchases: Decimal = ZERO


def chart_of_accounts(accounts: Sequence[Account]) -> List[Account]:
    """
    Accounts sorted by code using plain string comparison.

    Codes are expected to be same-length; "10" sorts before "9".
    """
    return sorted(accounts, key=lambda account: account.code)


def _sum(values) -> Decimal:
    return sum(values, ZERO)


def build_trial_balance(rows: List[TrialBalanceRow]) -> TrialBalance:
    return TrialBalance(
        rows=rows,
        total_debit=_sum(row.total_debit for row in rows),
        total_credit=_sum(row.total_credit for row in rows),
    )


def income_statement(rows: Sequence[TrialBalanceRow]) -> IncomeStatement:
    """
    Revenue and expense totals. Absolute values are taken because revenue
    accounts carry negative net balances under the uniform sign convention.
    """
    return IncomeStatement(
        revenue=_sum(abs(row.net_balance) for row in rows if row.account_type == AccountType.REVENUE),
        expense=_sum(abs(row.net_balance) for row in rows if row.account_type == AccountType.EXPENSE),
    )


def final_accounts(accounts: Sequence[Account], postings: Sequence[Posting],
                   include_inactive: bool = False) -> FinalAccounts:
    """
    Trial balance plus income statement.

    Args:
        accounts: Chart of accounts
        postings: Derived postings
        include_inactive: Keep accounts with no debits and no credits in
            the trial balance rows (totals are unaffected)
    """
    rows = trial_balance(accounts, postings)
    statement = income_statement(rows)
    if not include_inactive:
        rows = [row for row in rows if row.has_activity]
    return FinalAccounts(trial_balance=build_trial_balance(rows), income_statement=statement)


def account_statement(account: Account, postings: Sequence[Posting]) -> AccountStatement:
    lines = account_ledger(account.code, postings)
    return AccountStatement(
        account=account,
        lines=lines,
        total_debit=_sum(line.debit for line in lines),
        total_credit=_sum(line.credit for line in lines),
        closing_balance=closing_balance(lines),
    )


def treasury(accounts: Sequence[Account], postings: Sequence[Posting]) -> Dict[str, Optional[AccountStatement]]:
    """Statements of the cash box and the bank; None where the account is missing"""
    by_code = {account.code: account for account in accounts}
    result = {}
    for key, code in (('cash', CASH), ('bank', BANK)):
        account = by_code.get(code)
        result[key] = account_statement(account, postings) if account else None
    return result


def opening_balances(accounts: Sequence[Account]) -> List[Dict[str, Any]]:
    """Code, name and opening balance of every account in registry order"""
    return [
        {
            'account_id': account.id,
            'code': account.code,
            'name': account.name,
            'account_type': account.account_type.value,
            'opening_balance': account.opening_balance,
        }
        for account in accounts
    ]


def sales_summary(invoices: Sequence[Invoice], expenses: Sequence[Expense]) -> SalesSummary:
    """Sales, purchases and expenses totals; cancelled invoices excluded"""
    live = [invoice for invoice in invoices if not invoice.is_cancelled]
    return SalesSummary(
        total_sales=_sum(i.total for i in live if i.invoice_type == InvoiceType.SALE),
        total_purchases=_sum(i.total for i in live if i.invoice_type == InvoiceType.PURCHASE),
        total_expenses=_sum(e.amount for e in expenses),
    )


def daily_activity(invoices: Sequence[Invoice], days: int = 7,
                   today: Optional[date] = None) -> List[DailyActivity]:
    """
    Per-day sale and purchase invoice totals for the last N days, oldest first.
    Cancelled invoices are excluded.
    """
    today = today or date.today()
    buckets = {
        today - timedelta(days=offset): DailyActivity(day=today - timedelta(days=offset))
        for offset in range(days - 1, -1, -1)
    }
    for invoice in invoices:
        bucket = buckets.get(invoice.date)
        if bucket is None or invoice.is_cancelled:
            continue
        if invoice.invoice_type == InvoiceType.SALE:
            bucket.sales += invoice.total
        else:
            bucket.purchases += invoice.total
    return sorted(buckets.values(), key=lambda bucket: bucket.day)


def export_trial_balance(final: FinalAccounts, fmt: ReportFormat = ReportFormat.CSV) -> str:
    """Trial balance as CSV (with a totals row) or JSON text"""
    if fmt == ReportFormat.JSON:
        return json.dumps(final.to_dict(), ensure_ascii=False, indent=2)

    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(['code', 'name', 'type', 'total_debit', 'total_credit', 'net_balance'])
    for row in final.trial_balance.rows:
        writer.writerow([row.code, row.name, row.account_type.value,
                         row.total_debit, row.total_credit, row.net_balance])
    writer.writerow(['', 'TOTAL', '', final.trial_balance.total_debit,
                     final.trial_balance.total_credit, final.trial_balance.opening_difference])
    return output.getvalue()
