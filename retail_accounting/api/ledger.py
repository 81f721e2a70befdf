"""
Derived ledger endpoints
"""

from fastapi import APIRouter, HTTPException, Depends

from .dependencies import get_book
from ..tenancy import Bookkeeping


router = APIRouter()


@router.get("/postings")
async def list_postings(book: Bookkeeping = Depends(get_book)):
    """All derived postings, opening balances first then by date"""
    result = book.derive()
    return {
        "postings": [posting.to_dict() for posting in result.postings],
        "unassigned_legs": result.unassigned_legs,
    }


@router.get("/accounts/{account_code}")
async def get_account_ledger(account_code: str, book: Bookkeeping = Depends(get_book)):
    """Ledger lines of one account with running balance"""
    try:
        statement = book.statement(account_code)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return statement.to_dict()
