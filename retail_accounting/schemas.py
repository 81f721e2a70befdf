"""
Source document schemas

Strict parse/validate boundary between loosely shaped source documents
(camelCase keys, numbers sent as strings, timestamps where dates are
expected) and the typed records the derivation engine consumes. The
engine never sees an unvalidated document.
"""

from decimal import Decimal
import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .accounts import Account, AccountType
from .currency import Currency
from .errors import SourceValidationError
from .sources import (
    Bond, BondType, EntityType, Expense, Invoice, InvoiceStatus, InvoiceType, PaymentMethod
)


logger = logging.getLogger(__name__)

T = TypeVar('T')


def _to_camel(name: str) -> str:
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)


class SourceDocument(BaseModel):
    """Accepts both snake_case and camelCase keys; ignores unknown keys"""
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
        extra='ignore',
        str_strip_whitespace=True,
        coerce_numbers_to_str=True,
    )

    @field_validator('*', mode='before')
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and value.strip() == "":
            return None
        return value


def _date_only(value: Any) -> Any:
    # Firestore-style documents often carry full timestamps
    if isinstance(value, str) and len(value) > 10:
        return value[:10]
    return value


class AccountDocument(SourceDocument):
    id: str = Field(..., min_length=1)
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    type: AccountType
    opening_balance: Decimal = Decimal('0')
    description: Optional[str] = None
    system_account: bool = False

    def to_record(self) -> Account:
        return Account(
            id=self.id,
            code=self.code,
            name=self.name,
            account_type=self.type,
            opening_balance=self.opening_balance,
            description=self.description,
            system_account=self.system_account,
        )


class InvoiceDocument(SourceDocument):
    id: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1)
    date: datetime.date
    type: InvoiceType
    status: InvoiceStatus
    total: Decimal
    contact_name: Optional[str] = None
    contact_id: Optional[str] = None
    tax: Decimal = Decimal('0')
    paid_amount: Decimal = Decimal('0')
    remaining_amount: Decimal = Decimal('0')
    due_date: Optional[datetime.date] = None
    notes: Optional[str] = None

    normalize_dates = field_validator('date', 'due_date', mode='before')(_date_only)

    def to_record(self) -> Invoice:
        return Invoice(
            id=self.id,
            number=self.number,
            date=self.date,
            invoice_type=self.type,
            status=self.status,
            total=self.total,
            contact_name=self.contact_name or "",
            contact_id=self.contact_id,
            tax=self.tax,
            paid_amount=self.paid_amount,
            remaining_amount=self.remaining_amount,
            due_date=self.due_date,
            notes=self.notes,
        )


class BondDocument(SourceDocument):
    id: str = Field(..., min_length=1)
    number: str = Field(..., min_length=1)
    type: BondType
    date: datetime.date
    amount: Decimal
    payment_method: Optional[PaymentMethod] = None
    entity_type: Optional[EntityType] = None
    entity_id: Optional[str] = None
    entity_name: Optional[str] = None
    currency: Optional[str] = None
    notes: Optional[str] = None

    normalize_dates = field_validator('date', mode='before')(_date_only)

    @field_validator('currency')
    @classmethod
    def known_currency(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return Currency.from_code(value).code

    def to_record(self) -> Bond:
        entity_type = self.entity_type
        if entity_type is None:
            entity_type = EntityType.CUSTOMER if self.type == BondType.RECEIPT else EntityType.SUPPLIER
        return Bond(
            id=self.id,
            number=self.number,
            date=self.date,
            bond_type=self.type,
            amount=self.amount,
            payment_method=self.payment_method or PaymentMethod.CASH,
            entity_type=entity_type,
            entity_name=self.entity_name or "",
            entity_id=self.entity_id,
            currency=Currency.from_code(self.currency or "YER"),
            notes=self.notes,
        )


class ExpenseDocument(SourceDocument):
    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    amount: Decimal
    date: datetime.date
    category: Optional[str] = None
    description: Optional[str] = None

    normalize_dates = field_validator('date', mode='before')(_date_only)

    def to_record(self) -> Expense:
        return Expense(
            id=self.id,
            title=self.title,
            amount=self.amount,
            date=self.date,
            category=self.category or "",
            description=self.description,
        )


def _format_errors(exc: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
        for error in exc.errors()
    ]


def _parse(model: type, source: str, raw: Dict[str, Any]):
    try:
        return model.model_validate(raw).to_record()
    except ValidationError as exc:
        raise SourceValidationError(source, _format_errors(exc)) from exc


def parse_account(raw: Dict[str, Any]) -> Account:
    return _parse(AccountDocument, "account", raw)


def parse_invoice(raw: Dict[str, Any]) -> Invoice:
    return _parse(InvoiceDocument, "invoice", raw)


def parse_bond(raw: Dict[str, Any]) -> Bond:
    return _parse(BondDocument, "bond", raw)


def parse_expense(raw: Dict[str, Any]) -> Expense:
    return _parse(ExpenseDocument, "expense", raw)


def parse_many(parser: Callable[[Dict[str, Any]], T], documents: Iterable[Dict[str, Any]],
               skip_invalid: bool = False) -> List[T]:
    """
    Parse a batch of documents.

    Args:
        parser: One of the parse_* functions
        documents: Raw documents
        skip_invalid: Drop invalid documents (logged at WARNING) instead of raising

    Raises:
        SourceValidationError: On the first invalid document unless skip_invalid
    """
    records = []
    for raw in documents:
        try:
            records.append(parser(raw))
        except SourceValidationError as exc:
            if not skip_invalid:
                raise
            logger.warning(f"Skipping invalid {exc.source} document",
                           extra={'action': 'document_skipped',
                                  'resource': str(raw.get('id')) if isinstance(raw, dict) else None,
                                  'extra': {'errors': exc.errors}})
    return records
