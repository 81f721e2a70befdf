"""
Transaction Sources Module

The three independently managed collections the ledger is derived from:
sale/purchase invoices, cash/bank bonds (receipt and payment vouchers) and
expenses. Each book is plain CRUD; the derivation engine only reads them,
so editing or deleting a record is reflected on the next derivation.
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass
from typing import Dict, List, Optional, Any, Type
from enum import Enum
import logging
import uuid

from .currency import Currency, to_decimal, ZERO
from .storage import StorageInterface, StorageRecord


logger = logging.getLogger(__name__)


class InvoiceType(Enum):
    SALE = "sale"
    PURCHASE = "purchase"


class InvoiceStatus(Enum):
    PAID = "paid"
    PENDING = "pending"
    CANCELLED = "cancelled"
    CREDIT = "credit"  # Sold on account


class BondType(Enum):
    RECEIPT = "receipt"  # Money received from a customer
    PAYMENT = "payment"  # Money paid to a supplier


class PaymentMethod(Enum):
    CASH = "cash"
    BANK = "bank"


class EntityType(Enum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


def _parse_date(value: Any) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


@dataclass
class Invoice(StorageRecord):
    """Sale or purchase invoice"""
    number: str
    date: date
    invoice_type: InvoiceType
    status: InvoiceStatus
    total: Decimal
    contact_name: str = ""
    contact_id: Optional[str] = None
    tax: Decimal = ZERO
    paid_amount: Decimal = ZERO
    remaining_amount: Decimal = ZERO
    due_date: Optional[date] = None
    notes: Optional[str] = None

    @property
    def is_cancelled(self) -> bool:
        return self.status == InvoiceStatus.CANCELLED

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Invoice':
        return cls(
            id=data['id'],
            number=data['number'],
            date=_parse_date(data['date']),
            invoice_type=InvoiceType(data['invoice_type']),
            status=InvoiceStatus(data['status']),
            total=Decimal(data['total']),
            contact_name=data.get('contact_name') or "",
            contact_id=data.get('contact_id'),
            tax=Decimal(data.get('tax') or '0'),
            paid_amount=Decimal(data.get('paid_amount') or '0'),
            remaining_amount=Decimal(data.get('remaining_amount') or '0'),
            due_date=_parse_date(data['due_date']) if data.get('due_date') else None,
            notes=data.get('notes'),
        )


@dataclass
class Bond(StorageRecord):
    """Receipt or payment voucher settled in cash or through the bank"""
    number: str
    date: date
    bond_type: BondType
    amount: Decimal
    payment_method: PaymentMethod = PaymentMethod.CASH
    entity_type: EntityType = EntityType.CUSTOMER
    entity_name: str = ""
    entity_id: Optional[str] = None
    currency: Currency = Currency.YER
    notes: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Bond':
        return cls(
            id=data['id'],
            number=data['number'],
            date=_parse_date(data['date']),
            bond_type=BondType(data['bond_type']),
            amount=Decimal(data['amount']),
            payment_method=PaymentMethod(data.get('payment_method') or 'cash'),
            entity_type=EntityType(data.get('entity_type') or 'customer'),
            entity_name=data.get('entity_name') or "",
            entity_id=data.get('entity_id'),
            currency=Currency.from_code(data.get('currency') or 'YER'),
            notes=data.get('notes'),
        )

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['currency'] = self.currency.code
        return result


@dataclass
class Expense(StorageRecord):
    """Operating expense paid from the cash box"""
    title: str
    amount: Decimal
    date: date
    category: str = ""
    description: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Expense':
        return cls(
            id=data['id'],
            title=data['title'],
            amount=Decimal(data['amount']),
            date=_parse_date(data['date']),
            category=data.get('category') or "",
            description=data.get('description'),
        )


class _SourceBook:
    """Shared CRUD plumbing for a source collection"""

    table_name: str = ""
    record_type: Type[StorageRecord] = StorageRecord

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def get(self, record_id: str):
        data = self.storage.load(self.table_name, record_id)
        return self.record_type.from_dict(data) if data else None

    def list(self) -> list:
        """Current snapshot of the collection in insertion order"""
        return [self.record_type.from_dict(data) for data in self.storage.load_all(self.table_name)]

    def delete(self, record_id: str) -> bool:
        """Delete a record; returns False if it did not exist"""
        deleted = self.storage.delete(self.table_name, record_id)
        if deleted:
            logger.info(f"{self.table_name} record deleted",
                        extra={'action': 'source_deleted', 'resource': record_id})
        return deleted

    def _require(self, record_id: str):
        record = self.get(record_id)
        if not record:
            raise ValueError(f"{self.record_type.__name__} {record_id} not found")
        return record

    def _save(self, record: StorageRecord) -> None:
        self.storage.save(self.table_name, record.id, record.to_dict())


class InvoiceBook(_SourceBook):
    """Sale and purchase invoices"""

    table_name = "invoices"
    record_type = Invoice

    def add(
        self,
        number: str,
        invoice_date: date,
        invoice_type: InvoiceType,
        total: Decimal,
        status: InvoiceStatus = InvoiceStatus.PAID,
        contact_name: str = "",
        contact_id: Optional[str] = None,
        tax: Decimal = ZERO,
        paid_amount: Optional[Decimal] = None,
        due_date: Optional[date] = None,
        notes: Optional[str] = None,
        invoice_id: Optional[str] = None
    ) -> Invoice:
        """
        Record a new invoice.

        When paid_amount is omitted a paid invoice is fully settled and any
        other status leaves the whole total outstanding.

        Raises:
            ValueError: If the number is empty or the total is negative
        """
        if not (number or "").strip():
            raise ValueError("Invoice number is required")
        total = to_decimal(total)
        if total < ZERO:
            raise ValueError("Invoice total cannot be negative")

        status = InvoiceStatus(status)
        if paid_amount is None:
            paid_amount = total if status == InvoiceStatus.PAID else ZERO
        paid_amount = to_decimal(paid_amount)

        invoice = Invoice(
            id=invoice_id or str(uuid.uuid4()),
            number=number.strip(),
            date=_parse_date(invoice_date),
            invoice_type=InvoiceType(invoice_type),
            status=status,
            total=total,
            contact_name=contact_name,
            contact_id=contact_id,
            tax=to_decimal(tax),
            paid_amount=paid_amount,
            remaining_amount=total - paid_amount,
            due_date=_parse_date(due_date) if due_date else None,
            notes=notes,
        )
        self._save(invoice)
        return invoice

    def add_record(self, invoice: Invoice) -> Invoice:
        """Store an already-validated invoice as is"""
        self._save(invoice)
        return invoice

    def set_status(self, invoice_id: str, status: InvoiceStatus) -> Invoice:
        """Change the status (e.g. cancel); cancelled invoices leave the ledger"""
        invoice = self._require(invoice_id)
        invoice.status = InvoiceStatus(status)
        if invoice.status == InvoiceStatus.PAID:
            invoice.paid_amount = invoice.total
            invoice.remaining_amount = ZERO
        self._save(invoice)
        return invoice

    def cancel(self, invoice_id: str) -> Invoice:
        return self.set_status(invoice_id, InvoiceStatus.CANCELLED)

    def list_by_type(self, invoice_type: InvoiceType) -> List[Invoice]:
        return [inv for inv in self.list() if inv.invoice_type == InvoiceType(invoice_type)]


class BondBook(_SourceBook):
    """Cash and bank receipt/payment vouchers"""

    table_name = "bonds"
    record_type = Bond

    def add(
        self,
        number: str,
        bond_date: date,
        bond_type: BondType,
        amount: Decimal,
        payment_method: PaymentMethod = PaymentMethod.CASH,
        entity_name: str = "",
        entity_type: Optional[EntityType] = None,
        entity_id: Optional[str] = None,
        currency: Currency = Currency.YER,
        notes: Optional[str] = None,
        bond_id: Optional[str] = None
    ) -> Bond:
        """
        Record a receipt or payment.

        The counterparty defaults to a customer for receipts and a supplier
        for payments.

        Raises:
            ValueError: If the number is empty or the amount is not positive
        """
        if not (number or "").strip():
            raise ValueError("Bond number is required")
        amount = to_decimal(amount)
        if amount <= ZERO:
            raise ValueError("Bond amount must be positive")

        bond_type = BondType(bond_type)
        if entity_type is None:
            entity_type = EntityType.CUSTOMER if bond_type == BondType.RECEIPT else EntityType.SUPPLIER

        bond = Bond(
            id=bond_id or str(uuid.uuid4()),
            number=number.strip(),
            date=_parse_date(bond_date),
            bond_type=bond_type,
            amount=amount,
            payment_method=PaymentMethod(payment_method),
            entity_type=EntityType(entity_type),
            entity_name=entity_name,
            entity_id=entity_id,
            currency=currency,
            notes=notes,
        )
        self._save(bond)
        return bond

    def add_record(self, bond: Bond) -> Bond:
        """Store an already-validated bond as is"""
        self._save(bond)
        return bond


class ExpenseBook(_SourceBook):
    """Operating expenses"""

    table_name = "expenses"
    record_type = Expense

    def add(
        self,
        title: str,
        amount: Decimal,
        expense_date: date,
        category: str = "",
        description: Optional[str] = None,
        expense_id: Optional[str] = None
    ) -> Expense:
        """
        Record an expense.

        Raises:
            ValueError: If the title is empty or the amount is not positive
        """
        if not (title or "").strip():
            raise ValueError("Expense title is required")
        amount = to_decimal(amount)
        if amount <= ZERO:
            raise ValueError("Expense amount must be positive")

        expense = Expense(
            id=expense_id or str(uuid.uuid4()),
            title=title.strip(),
            amount=amount,
            date=_parse_date(expense_date),
            category=category,
            description=description,
        )
        self._save(expense)
        return expense

    def add_record(self, expense: Expense) -> Expense:
        """Store an already-validated expense as is"""
        self._save(expense)
        return expense

    def update(self, expense_id: str, **changes: Any) -> Expense:
        """
        Edit an expense in place.

        Raises:
            ValueError: If the expense does not exist or a field is unknown
        """
        expense = self._require(expense_id)
        allowed = {'title', 'amount', 'date', 'category', 'description'}
        unknown = set(changes) - allowed
        if unknown:
            raise ValueError(f"Unknown expense field(s): {', '.join(sorted(unknown))}")
        if 'amount' in changes:
            changes['amount'] = to_decimal(changes['amount'])
        if 'date' in changes:
            changes['date'] = _parse_date(changes['date'])
        for field_name, value in changes.items():
            setattr(expense, field_name, value)
        self._save(expense)
        return expense
