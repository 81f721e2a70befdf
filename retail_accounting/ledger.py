"""
Ledger Derivation Engine

Synthesizes the general ledger from four independent, mutable sources
(opening balances, invoices, bonds, expenses). Nothing here is persisted:
postings are a pure function of the current source snapshot and are
recomputed in full on every read, so editing or deleting any source record
needs no reversal entries.

Sign convention is uniform for every account type: debit increases the
running balance and credit decreases it. Revenue, liability and equity
accounts therefore show negative balances under normal activity.
"""

from decimal import Decimal
from datetime import date
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence
from enum import Enum
import hashlib
import json
import logging

from .accounts import (
    Account, AccountType,
    CASH, BANK, ACCOUNTS_RECEIVABLE, ACCOUNTS_PAYABLE,
    SALES_REVENUE, PURCHASES, GENERAL_EXPENSES,
)
from .context import BookContext, DEFAULT_OPENING_DATE
from .currency import ZERO
from .errors import MissingWellKnownAccountError
from .sources import Bond, BondType, Expense, Invoice, InvoiceType, PaymentMethod


logger = logging.getLogger(__name__)


class PostingKind(Enum):
    """What produced a posting"""
    OPENING = "opening"
    SALE = "sale"
    PURCHASE = "purchase"
    RECEIPT = "receipt"
    PAYMENT = "payment"
    EXPENSE = "expense"


@dataclass(frozen=True)
class Posting:
    """
    One derived double-entry record: a single debit leg and a single credit
    leg for the same amount. A leg is None when it has no account, either
    by construction (opening balances) or because a well-known account is
    missing from the registry.
    """
    id: str
    date: date
    kind: PostingKind
    ref: str
    description: str
    debit_account_code: Optional[str]
    credit_account_code: Optional[str]
    amount: Decimal
    source_id: str = ""

    def touches(self, account_code: str) -> bool:
        return account_code in (self.debit_account_code, self.credit_account_code)

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'date': self.date.isoformat(),
            'kind': self.kind.value,
            'ref': self.ref,
            'description': self.description,
            'debit_account_code': self.debit_account_code,
            'credit_account_code': self.credit_account_code,
            'amount': str(self.amount),
        }


@dataclass(frozen=True)
class LedgerLine:
    """A posting as seen from one account, with the running balance"""
    posting_id: str
    date: date
    kind: PostingKind
    ref: str
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal

    def to_dict(self) -> Dict:
        return {
            'posting_id': self.posting_id,
            'date': self.date.isoformat(),
            'kind': self.kind.value,
            'ref': self.ref,
            'description': self.description,
            'debit': str(self.debit),
            'credit': str(self.credit),
            'balance': str(self.balance),
        }


@dataclass(frozen=True)
class TrialBalanceRow:
    """Aggregate debits and credits of one account"""
    account_id: str
    code: str
    name: str
    account_type: AccountType
    total_debit: Decimal
    total_credit: Decimal

    @property
    def net_balance(self) -> Decimal:
        return self.total_debit - self.total_credit

    @property
    def has_activity(self) -> bool:
        return self.total_debit != ZERO or self.total_credit != ZERO

    def to_dict(self) -> Dict:
        return {
            'account_id': self.account_id,
            'code': self.code,
            'name': self.name,
            'account_type': self.account_type.value,
            'total_debit': str(self.total_debit),
            'total_credit': str(self.total_credit),
            'net_balance': str(self.net_balance),
        }


@dataclass(frozen=True)
class WellKnownAccounts:
    """
    Typed lookup of the account codes the derivation rules address.

    A role is None when the registry lacks its code; postings then carry an
    unassigned leg for that role.
    """
    cash: Optional[str]
    bank: Optional[str]
    receivable: Optional[str]
    payable: Optional[str]
    sales: Optional[str]
    purchases: Optional[str]
    general_expenses: Optional[str]

    ROLE_CODES = {
        'cash': CASH,
        'bank': BANK,
        'receivable': ACCOUNTS_RECEIVABLE,
        'payable': ACCOUNTS_PAYABLE,
        'sales': SALES_REVENUE,
        'purchases': PURCHASES,
        'general_expenses': GENERAL_EXPENSES,
    }

    @classmethod
    def resolve(cls, accounts: Iterable[Account], strict: bool = True) -> 'WellKnownAccounts':
        """
        Build the lookup from a registry snapshot.

        Args:
            accounts: The tenant's chart of accounts
            strict: Raise when any well-known code is missing (provisioning
                and startup); otherwise map missing roles to None

        Raises:
            MissingWellKnownAccountError: In strict mode, listing missing codes
        """
        present = {account.code for account in accounts}
        missing = [code for code in cls.ROLE_CODES.values() if code not in present]
        if missing and strict:
            raise MissingWellKnownAccountError(missing)
        return cls(**{
            role: (code if code in present else None)
            for role, code in cls.ROLE_CODES.items()
        })

    @property
    def missing_roles(self) -> List[str]:
        return [role for role in self.ROLE_CODES if getattr(self, role) is None]

    def settlement_account(self, method: PaymentMethod) -> Optional[str]:
        """Cash box or bank account a bond settles through"""
        return self.bank if method == PaymentMethod.BANK else self.cash


@dataclass
class DerivationResult:
    """Postings plus data-integrity observations from one derivation"""
    postings: List[Posting]
    well_known: WellKnownAccounts
    unassigned_posting_ids: List[str] = field(default_factory=list)

    @property
    def unassigned_legs(self) -> int:
        return len(self.unassigned_posting_ids)

    @property
    def is_complete(self) -> bool:
        return not self.unassigned_posting_ids


_LABELS = {
    'en': {
        'opening': "Opening Balance",
        'sale': "Sale Invoice",
        'purchase': "Purchase Invoice",
        'receipt': "Receipt from",
        'payment': "Payment to",
        'expense': "Expense",
    },
    'ar': {
        'opening': "رصيد افتتاحي",
        'sale': "فاتورة مبيعات",
        'purchase': "فاتورة مشتريات",
        'receipt': "سند قبض من",
        'payment': "سند صرف لـ",
        'expense': "مصروف",
    },
}

OPENING_REF = "OPENING"
NO_REF = "-"


def _labels(language: str) -> Dict[str, str]:
    return _LABELS.get(language, _LABELS['en'])


def _posting_id(prefix: str, source_id: str, **fields) -> str:
    """
    Synthetic posting id: stable while the source fields are unchanged,
    different as soon as any of them changes.
    """
    payload = json.dumps(fields, sort_keys=True, separators=(",", ":"), default=str).encode()
    digest = hashlib.sha256(payload).hexdigest()[:8]
    return f"{prefix}-{source_id}-{digest}"


def _make_posting(prefix: str, source_id: str, posting_date: date, kind: PostingKind,
                  ref: str, description: str, debit: Optional[str],
                  credit: Optional[str], amount: Decimal) -> Posting:
    posting_id = _posting_id(
        prefix, source_id,
        date=posting_date.isoformat(), kind=kind.value, ref=ref, description=description,
        debit=debit, credit=credit, amount=str(amount),
    )
    return Posting(
        id=posting_id,
        date=posting_date,
        kind=kind,
        ref=ref,
        description=description,
        debit_account_code=debit,
        credit_account_code=credit,
        amount=amount,
        source_id=source_id,
    )


def _opening_postings(accounts: Sequence[Account], opening_date: date,
                      labels: Dict[str, str]) -> List[Posting]:
    postings = []
    for account in accounts:
        if account.opening_balance <= ZERO:
            continue
        debit_side = account.account_type.is_debit_normal
        postings.append(_make_posting(
            "OPEN", account.id, opening_date, PostingKind.OPENING,
            OPENING_REF, labels['opening'],
            debit=account.code if debit_side else None,
            credit=None if debit_side else account.code,
            amount=account.opening_balance,
        ))
    return postings


def _invoice_postings(invoices: Sequence[Invoice], well_known: WellKnownAccounts,
                      labels: Dict[str, str]) -> List[Posting]:
    postings = []
    for invoice in invoices:
        if invoice.is_cancelled:
            continue
        if invoice.invoice_type == InvoiceType.SALE:
            postings.append(_make_posting(
                "INV", invoice.id, invoice.date, PostingKind.SALE, invoice.number,
                f"{labels['sale']} - {invoice.contact_name}",
                debit=well_known.receivable, credit=well_known.sales,
                amount=invoice.total,
            ))
        else:
            postings.append(_make_posting(
                "PUR", invoice.id, invoice.date, PostingKind.PURCHASE, invoice.number,
                f"{labels['purchase']} - {invoice.contact_name}",
                debit=well_known.purchases, credit=well_known.payable,
                amount=invoice.total,
            ))
    return postings


def _bond_postings(bonds: Sequence[Bond], well_known: WellKnownAccounts,
                   labels: Dict[str, str]) -> List[Posting]:
    postings = []
    for bond in bonds:
        settlement = well_known.settlement_account(bond.payment_method)
        if bond.bond_type == BondType.RECEIPT:
            postings.append(_make_posting(
                "BOND", bond.id, bond.date, PostingKind.RECEIPT, bond.number,
                f"{labels['receipt']} {bond.entity_name}",
                debit=settlement, credit=well_known.receivable,
                amount=bond.amount,
            ))
        else:
            postings.append(_make_posting(
                "BOND", bond.id, bond.date, PostingKind.PAYMENT, bond.number,
                f"{labels['payment']} {bond.entity_name}",
                debit=well_known.payable, credit=settlement,
                amount=bond.amount,
            ))
    return postings


def _expense_postings(expenses: Sequence[Expense], well_known: WellKnownAccounts,
                      labels: Dict[str, str]) -> List[Posting]:
    return [
        _make_posting(
            "EXP", expense.id, expense.date, PostingKind.EXPENSE, NO_REF,
            f"{labels['expense']}: {expense.title}",
            debit=well_known.general_expenses, credit=well_known.cash,
            amount=expense.amount,
        )
        for expense in expenses
    ]


def _ordering_key(posting: Posting):
    # Opening balances precede everything regardless of their nominal date
    return (posting.kind != PostingKind.OPENING, posting.date)


def _has_unassigned_leg(posting: Posting) -> bool:
    if posting.kind == PostingKind.OPENING:
        return False  # one-legged by construction
    return posting.debit_account_code is None or posting.credit_account_code is None


def derive(
    accounts: Sequence[Account],
    invoices: Sequence[Invoice],
    bonds: Sequence[Bond],
    expenses: Sequence[Expense],
    well_known: Optional[WellKnownAccounts] = None,
    opening_date: Optional[date] = None,
    language: str = "en"
) -> DerivationResult:
    """
    Derive every posting and report unassigned legs.

    Args:
        accounts: Chart of accounts (opening balances and well-known codes)
        invoices: Invoices; cancelled ones contribute nothing
        bonds: Receipt and payment bonds
        expenses: Expenses
        well_known: Pre-resolved lookup; resolved non-strictly from
            accounts when omitted
        opening_date: Nominal date printed on opening postings
        language: "en" or "ar" for posting descriptions

    Returns:
        DerivationResult with postings sorted by (opening first, date),
        source order breaking ties
    """
    if well_known is None:
        well_known = WellKnownAccounts.resolve(accounts, strict=False)
    labels = _labels(language)

    postings = (
        _opening_postings(accounts, opening_date or DEFAULT_OPENING_DATE, labels)
        + _invoice_postings(invoices, well_known, labels)
        + _bond_postings(bonds, well_known, labels)
        + _expense_postings(expenses, well_known, labels)
    )
    # list.sort is stable: equal keys keep source order
    postings.sort(key=_ordering_key)

    unassigned = [p.id for p in postings if _has_unassigned_leg(p)]
    if unassigned:
        logger.warning(
            f"{len(unassigned)} posting(s) have an unassigned leg; "
            f"missing account role(s): {', '.join(well_known.missing_roles)}",
            extra={'action': 'unassigned_legs',
                   'extra': {'posting_ids': unassigned, 'missing_roles': well_known.missing_roles}}
        )

    return DerivationResult(postings=postings, well_known=well_known,
                            unassigned_posting_ids=unassigned)


def derive_postings(
    accounts: Sequence[Account],
    invoices: Sequence[Invoice],
    bonds: Sequence[Bond],
    expenses: Sequence[Expense],
    well_known: Optional[WellKnownAccounts] = None,
    opening_date: Optional[date] = None,
    language: str = "en"
) -> List[Posting]:
    """Flat posting list; see derive() for arguments"""
    return derive(accounts, invoices, bonds, expenses,
                  well_known=well_known, opening_date=opening_date,
                  language=language).postings


def derive_for(
    context: BookContext,
    accounts: Sequence[Account],
    invoices: Sequence[Invoice],
    bonds: Sequence[Bond],
    expenses: Sequence[Expense]
) -> DerivationResult:
    """Derive a tenant book with its context passed explicitly"""
    result = derive(accounts, invoices, bonds, expenses,
                    opening_date=context.opening_date, language=context.language)
    logger.debug(
        f"Derived {len(result.postings)} posting(s)",
        extra={'tenant_id': context.tenant_id, 'action': 'derive'}
    )
    return result


def account_ledger(account_code: str, postings: Iterable[Posting]) -> List[LedgerLine]:
    """
    Postings touching one account with a running balance.

    Returns an empty list when the account has no postings.
    """
    touching = sorted((p for p in postings if p.touches(account_code)), key=_ordering_key)

    lines = []
    balance = ZERO
    for posting in touching:
        debit = posting.amount if posting.debit_account_code == account_code else ZERO
        credit = posting.amount if posting.credit_account_code == account_code else ZERO
        balance = balance + debit - credit
        lines.append(LedgerLine(
            posting_id=posting.id,
            date=posting.date,
            kind=posting.kind,
            ref=posting.ref,
            description=posting.description,
            debit=debit,
            credit=credit,
            balance=balance,
        ))
    return lines


def closing_balance(lines: Sequence[LedgerLine]) -> Decimal:
    """Balance of the last ledger line, zero for an empty ledger"""
    return lines[-1].balance if lines else ZERO


def trial_balance(accounts: Sequence[Account], postings: Iterable[Posting]) -> List[TrialBalanceRow]:
    """
    One row per account in registry order, zero-activity accounts included.

    Legs without an account (or with a code outside the registry) are not
    attributed to any row.
    """
    debits: Dict[str, Decimal] = {}
    credits: Dict[str, Decimal] = {}
    for posting in postings:
        if posting.debit_account_code is not None:
            debits[posting.debit_account_code] = debits.get(posting.debit_account_code, ZERO) + posting.amount
        if posting.credit_account_code is not None:
            credits[posting.credit_account_code] = credits.get(posting.credit_account_code, ZERO) + posting.amount

    return [
        TrialBalanceRow(
            account_id=account.id,
            code=account.code,
            name=account.name,
            account_type=account.account_type,
            total_debit=debits.get(account.code, ZERO),
            total_credit=credits.get(account.code, ZERO),
        )
        for account in accounts
    ]
