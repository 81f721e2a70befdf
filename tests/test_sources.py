"""
Tests for the invoice, bond and expense books
"""

import pytest
from decimal import Decimal
from datetime import date

from retail_accounting.currency import Currency
from retail_accounting.sources import (
    Bond, BondBook, BondType, EntityType, ExpenseBook, Invoice, InvoiceBook,
    InvoiceStatus, InvoiceType, PaymentMethod
)
from retail_accounting.storage import InMemoryStorage


class TestInvoiceBook:
    """Test invoice CRUD"""

    def setup_method(self):
        self.book = InvoiceBook(InMemoryStorage())

    def test_add_paid_invoice_is_fully_settled(self):
        """Test paid invoices default to fully paid"""
        invoice = self.book.add("S-1", date(2024, 3, 1), InvoiceType.SALE, Decimal('100'),
                                contact_name="Ali")

        assert invoice.status == InvoiceStatus.PAID
        assert invoice.paid_amount == Decimal('100')
        assert invoice.remaining_amount == Decimal('0')
        assert self.book.get(invoice.id) == invoice

    def test_pending_invoice_leaves_total_outstanding(self):
        """Test unpaid statuses default to nothing paid"""
        invoice = self.book.add("S-1", "2024-03-01", "sale", "80", status="pending")

        assert invoice.invoice_type == InvoiceType.SALE
        assert invoice.date == date(2024, 3, 1)
        assert invoice.paid_amount == Decimal('0')
        assert invoice.remaining_amount == Decimal('80')

    def test_validation(self):
        """Test number and total checks"""
        with pytest.raises(ValueError, match="number is required"):
            self.book.add("", date(2024, 3, 1), InvoiceType.SALE, Decimal('1'))
        with pytest.raises(ValueError, match="cannot be negative"):
            self.book.add("S-1", date(2024, 3, 1), InvoiceType.SALE, Decimal('-1'))

    def test_cancel(self):
        """Test cancelling an invoice"""
        invoice = self.book.add("S-1", date(2024, 3, 1), InvoiceType.SALE, Decimal('100'))

        cancelled = self.book.cancel(invoice.id)

        assert cancelled.is_cancelled
        assert self.book.get(invoice.id).status == InvoiceStatus.CANCELLED

    def test_marking_paid_settles_balance(self):
        """Test paid status clears the remaining amount"""
        invoice = self.book.add("S-1", date(2024, 3, 1), InvoiceType.SALE, Decimal('100'),
                                status=InvoiceStatus.CREDIT)

        paid = self.book.set_status(invoice.id, InvoiceStatus.PAID)

        assert paid.paid_amount == Decimal('100')
        assert paid.remaining_amount == Decimal('0')

    def test_list_by_type_and_delete(self):
        """Test filtering and deletion"""
        sale = self.book.add("S-1", date(2024, 3, 1), InvoiceType.SALE, Decimal('10'))
        self.book.add("P-1", date(2024, 3, 1), InvoiceType.PURCHASE, Decimal('5'))

        assert [i.number for i in self.book.list_by_type(InvoiceType.PURCHASE)] == ["P-1"]
        assert self.book.delete(sale.id)
        assert not self.book.delete(sale.id)
        assert len(self.book.list()) == 1

    def test_missing_invoice(self):
        """Test not-found on status change"""
        with pytest.raises(ValueError, match="Invoice nope not found"):
            self.book.cancel("nope")

    def test_record_round_trip(self):
        """Test stored dict converts back to the same invoice"""
        invoice = Invoice(id="i1", number="S-9", date=date(2024, 1, 5),
                          invoice_type=InvoiceType.PURCHASE, status=InvoiceStatus.PENDING,
                          total=Decimal('9.99'), due_date=date(2024, 2, 5))
        assert Invoice.from_dict(invoice.to_dict()) == invoice


class TestBondBook:
    """Test bond CRUD"""

    def setup_method(self):
        self.book = BondBook(InMemoryStorage())

    def test_counterparty_defaults(self):
        """Test entity type follows bond type"""
        receipt = self.book.add("R-1", date(2024, 3, 1), BondType.RECEIPT, Decimal('10'))
        payment = self.book.add("PV-1", date(2024, 3, 1), BondType.PAYMENT, Decimal('10'))

        assert receipt.entity_type == EntityType.CUSTOMER
        assert payment.entity_type == EntityType.SUPPLIER
        assert receipt.payment_method == PaymentMethod.CASH

    def test_amount_must_be_positive(self):
        """Test zero and negative bonds are rejected"""
        with pytest.raises(ValueError, match="must be positive"):
            self.book.add("R-1", date(2024, 3, 1), BondType.RECEIPT, Decimal('0'))

    def test_currency_stored_by_code(self):
        """Test currency tag persistence"""
        bond = self.book.add("R-1", date(2024, 3, 1), BondType.RECEIPT, Decimal('10'),
                             currency=Currency.SAR)

        assert bond.to_dict()['currency'] == "SAR"
        assert self.book.get(bond.id).currency == Currency.SAR

    def test_record_round_trip(self):
        """Test stored dict converts back to the same bond"""
        bond = Bond(id="b1", number="R-1", date=date(2024, 1, 5), bond_type=BondType.RECEIPT,
                    amount=Decimal('50'), payment_method=PaymentMethod.BANK, entity_name="Ali")
        assert Bond.from_dict(bond.to_dict()) == bond


class TestExpenseBook:
    """Test expense CRUD"""

    def setup_method(self):
        self.book = ExpenseBook(InMemoryStorage())

    def test_add_and_update(self):
        """Test expense edits"""
        expense = self.book.add("Rent", Decimal('100'), date(2024, 3, 1), category="premises")

        updated = self.book.update(expense.id, amount="120", date="2024-03-02")

        assert updated.amount == Decimal('120')
        assert updated.date == date(2024, 3, 2)
        assert self.book.get(expense.id).category == "premises"

    def test_validation(self):
        """Test title and amount checks"""
        with pytest.raises(ValueError, match="title is required"):
            self.book.add(" ", Decimal('1'), date(2024, 3, 1))
        with pytest.raises(ValueError, match="must be positive"):
            self.book.add("Rent", Decimal('-5'), date(2024, 3, 1))

    def test_unknown_field_rejected(self):
        """Test update field whitelist"""
        expense = self.book.add("Rent", Decimal('100'), date(2024, 3, 1))
        with pytest.raises(ValueError, match="Unknown expense field"):
            self.book.update(expense.id, vendor="Landlord")
