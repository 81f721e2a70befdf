"""
Chart of accounts endpoints
"""

from fastapi import APIRouter, HTTPException, Depends, status

from .dependencies import get_book
from .schemas import CreateAccountRequest, UpdateAccountRequest
from ..accounts import AccountMutationResult, AccountType
from ..reporting import chart_of_accounts
from ..tenancy import Bookkeeping


router = APIRouter()


def _account_dict(account) -> dict:
    return {
        "id": account.id,
        "code": account.code,
        "name": account.name,
        "account_type": account.account_type.value,
        "opening_balance": str(account.opening_balance),
        "description": account.description,
        "system_account": account.system_account,
    }


def _refusal_or_account(result: AccountMutationResult) -> dict:
    if not result:
        raise HTTPException(status_code=409, detail=result.reason)
    return _account_dict(result.account)


@router.get("")
async def list_accounts(book: Bookkeeping = Depends(get_book)):
    """Chart of accounts sorted by code"""
    return {"accounts": [_account_dict(a) for a in chart_of_accounts(book.accounts.list_accounts())]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_account(
    request: CreateAccountRequest,
    book: Bookkeeping = Depends(get_book)
):
    """Add a user-defined account"""
    try:
        account = book.accounts.create_account(
            code=request.code,
            name=request.name,
            account_type=AccountType(request.account_type),
            opening_balance=request.opening_balance,
            description=request.description,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _account_dict(account)


@router.get("/{account_id}")
async def get_account(account_id: str, book: Bookkeeping = Depends(get_book)):
    """Get account details"""
    account = book.accounts.get_account(account_id)
    if not account:
        raise HTTPException(status_code=404, detail="Account not found")
    return _account_dict(account)


@router.patch("/{account_id}")
async def update_account(
    account_id: str,
    request: UpdateAccountRequest,
    book: Bookkeeping = Depends(get_book)
):
    """Edit an account; code and type of system accounts are refused with 409"""
    if not book.accounts.get_account(account_id):
        raise HTTPException(status_code=404, detail="Account not found")
    try:
        changes = {k: v for k, v in request.model_dump(exclude_unset=True).items() if v is not None}
        result = book.accounts.update_account(account_id, **changes)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _refusal_or_account(result)


@router.delete("/{account_id}")
async def delete_account(account_id: str, book: Bookkeeping = Depends(get_book)):
    """Delete a user-defined account; system accounts are refused with 409"""
    try:
        result = book.accounts.delete_account(account_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    _refusal_or_account(result)
    return {"message": "Account deleted successfully"}
