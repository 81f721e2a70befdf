"""
Reporting endpoints
"""

from fastapi import APIRouter, Depends, Query
from fastapi.responses import PlainTextResponse

from .dependencies import get_book
from ..reporting import (
    ReportFormat, chart_of_accounts, daily_activity, export_trial_balance, sales_summary
)
from ..tenancy import Bookkeeping


router = APIRouter()


@router.get("/trial-balance")
async def get_trial_balance(
    fmt: ReportFormat = Query(ReportFormat.JSON, alias="format"),
    book: Bookkeeping = Depends(get_book)
):
    """Trial balance of every account, zero-activity rows included"""
    final = book.final_accounts(include_inactive=True)
    if fmt == ReportFormat.CSV:
        return PlainTextResponse(export_trial_balance(final, ReportFormat.CSV), media_type="text/csv")
    return final.to_dict()["trial_balance"]


@router.get("/final-accounts")
async def get_final_accounts(book: Bookkeeping = Depends(get_book)):
    """Trial balance of active accounts plus the income statement"""
    return book.final_accounts().to_dict()


@router.get("/chart-of-accounts")
async def get_chart_of_accounts(book: Bookkeeping = Depends(get_book)):
    return {
        "accounts": [
            {
                "code": account.code,
                "name": account.name,
                "account_type": account.account_type.value,
                "system_account": account.system_account,
            }
            for account in chart_of_accounts(book.accounts.list_accounts())
        ]
    }


@router.get("/summary")
async def get_summary(days: int = Query(7, ge=1, le=366), book: Bookkeeping = Depends(get_book)):
    """Sales, purchases and expenses totals with per-day activity"""
    invoices = book.invoices.list()
    summary = sales_summary(invoices, book.expenses.list())
    return {
        **summary.to_dict(),
        "daily": [
            {"day": item.day.isoformat(), "sales": str(item.sales), "purchases": str(item.purchases)}
            for item in daily_activity(invoices, days=days)
        ],
    }
