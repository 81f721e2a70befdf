"""
Invoice, bond and expense endpoints

The three source collections share one shape: raw documents (snake_case or
camelCase keys) go through the strict parse boundary before storage.
"""

from typing import Any, Callable, Dict
import uuid

from fastapi import APIRouter, Body, HTTPException, Depends, status

from .dependencies import get_book
from ..errors import SourceValidationError
from ..schemas import parse_bond, parse_expense, parse_invoice
from ..tenancy import Bookkeeping


def _source_router(book_attr: str, parser: Callable[[Dict[str, Any]], Any], label: str) -> APIRouter:
    router = APIRouter()

    @router.post("", status_code=status.HTTP_201_CREATED)
    async def create_document(
        document: Dict[str, Any] = Body(...),
        book: Bookkeeping = Depends(get_book)
    ):
        document = dict(document)
        document.setdefault("id", str(uuid.uuid4()))
        try:
            record = parser(document)
        except SourceValidationError as e:
            raise HTTPException(status_code=422, detail=e.errors)
        getattr(book, book_attr).add_record(record)
        return record.to_dict()

    @router.get("")
    async def list_documents(book: Bookkeeping = Depends(get_book)):
        return {book_attr: [record.to_dict() for record in getattr(book, book_attr).list()]}

    @router.get("/{record_id}")
    async def get_document(record_id: str, book: Bookkeeping = Depends(get_book)):
        record = getattr(book, book_attr).get(record_id)
        if not record:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return record.to_dict()

    @router.delete("/{record_id}")
    async def delete_document(record_id: str, book: Bookkeeping = Depends(get_book)):
        if not getattr(book, book_attr).delete(record_id):
            raise HTTPException(status_code=404, detail=f"{label} not found")
        return {"message": f"{label} deleted successfully"}

    return router


invoices_router = _source_router("invoices", parse_invoice, "Invoice")
bonds_router = _source_router("bonds", parse_bond, "Bond")
expenses_router = _source_router("expenses", parse_expense, "Expense")
