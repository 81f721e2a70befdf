"""
Printable HTML endpoints
"""

from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import HTMLResponse

from .dependencies import get_book
from ..printing import render_account_statement, render_chart_of_accounts, render_final_accounts
from ..tenancy import Bookkeeping


router = APIRouter()


@router.get("/statement/{account_code}", response_class=HTMLResponse)
async def print_statement(account_code: str, auto_print: bool = True,
                          book: Bookkeeping = Depends(get_book)):
    try:
        statement = book.statement(account_code)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return HTMLResponse(render_account_statement(statement, book.context, auto_print=auto_print))


@router.get("/chart-of-accounts", response_class=HTMLResponse)
async def print_chart_of_accounts(auto_print: bool = True, book: Bookkeeping = Depends(get_book)):
    return HTMLResponse(render_chart_of_accounts(book.accounts.list_accounts(), book.context,
                                                 auto_print=auto_print))


@router.get("/final-accounts", response_class=HTMLResponse)
async def print_final_accounts(auto_print: bool = True, book: Bookkeeping = Depends(get_book)):
    return HTMLResponse(render_final_accounts(book.final_accounts(), book.context,
                                              auto_print=auto_print))
