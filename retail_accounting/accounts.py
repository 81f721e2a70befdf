"""
Account Registry Module

Chart of accounts for one tenant book. The nine system accounts seeded at
provisioning are the addressing constants of the ledger derivation engine:
they can never be deleted and their code and type are frozen. Only name,
description and opening balance stay editable.
"""

from decimal import Decimal
from dataclasses import dataclass
from typing import Dict, List, Optional, Any
from enum import Enum
import logging
import uuid

from .currency import to_decimal, ZERO
from .errors import ProtectedAccountError
from .storage import StorageInterface, StorageRecord


logger = logging.getLogger(__name__)


class AccountType(Enum):
    """Standard accounting account types"""
    ASSET = "asset"           # Debit normal balance
    LIABILITY = "liability"   # Credit normal balance
    EQUITY = "equity"         # Credit normal balance
    REVENUE = "revenue"       # Credit normal balance
    EXPENSE = "expense"       # Debit normal balance

    @property
    def is_debit_normal(self) -> bool:
        return self in (AccountType.ASSET, AccountType.EXPENSE)


@dataclass
class Account(StorageRecord):
    """Chart-of-accounts entry"""
    code: str
    name: str
    account_type: AccountType
    opening_balance: Decimal = ZERO
    description: Optional[str] = None
    system_account: bool = False

    def __post_init__(self):
        if not isinstance(self.opening_balance, Decimal):
            self.opening_balance = to_decimal(self.opening_balance)
        if isinstance(self.account_type, str):
            self.account_type = AccountType(self.account_type)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Account':
        return cls(
            id=data['id'],
            code=data['code'],
            name=data['name'],
            account_type=AccountType(data['account_type']),
            opening_balance=Decimal(data.get('opening_balance') or '0'),
            description=data.get('description'),
            system_account=bool(data.get('system_account', False)),
        )


@dataclass(frozen=True)
class DefaultAccount:
    """Seed definition for a system account"""
    code: str
    name: str
    arabic_name: str
    account_type: AccountType


CASH = "1001"
BANK = "1002"
ACCOUNTS_RECEIVABLE = "1100"
INVENTORY = "1200"
ACCOUNTS_PAYABLE = "2000"
CAPITAL = "3000"
SALES_REVENUE = "4000"
PURCHASES = "5000"
GENERAL_EXPENSES = "5100"

DEFAULT_ACCOUNTS: List[DefaultAccount] = [
    DefaultAccount(CASH, "Cash", "الصندوق", AccountType.ASSET),
    DefaultAccount(BANK, "Bank", "البنك", AccountType.ASSET),
    DefaultAccount(ACCOUNTS_RECEIVABLE, "Accounts Receivable", "العملاء", AccountType.ASSET),
    DefaultAccount(INVENTORY, "Inventory", "المخزون", AccountType.ASSET),
    DefaultAccount(ACCOUNTS_PAYABLE, "Accounts Payable", "الموردين", AccountType.LIABILITY),
    DefaultAccount(CAPITAL, "Owner's Capital", "رأس المال", AccountType.EQUITY),
    DefaultAccount(SALES_REVENUE, "Sales Revenue", "المبيعات", AccountType.REVENUE),
    DefaultAccount(PURCHASES, "Purchases", "المشتريات", AccountType.EXPENSE),
    DefaultAccount(GENERAL_EXPENSES, "General Expenses", "مصروفات عامة", AccountType.EXPENSE),
]

# Fields that may never change on a system account
FROZEN_SYSTEM_FIELDS = ("code", "account_type")
EDITABLE_FIELDS = ("code", "name", "account_type", "opening_balance", "description")


class AccountMutationResult:
    """
    Outcome of a registry mutation.

    Refusals are returned rather than raised so callers can show the
    reason without try/except scaffolding:

        result = registry.delete_account(account_id)
        if not result.success:
            show(result.error)
    """

    def __init__(self, success: bool, account: Optional[Account] = None,
                 error: Optional[ProtectedAccountError] = None):
        self.success = success
        self.account = account
        self.error = error

    @classmethod
    def ok(cls, account: Optional[Account] = None) -> 'AccountMutationResult':
        return cls(success=True, account=account)

    @classmethod
    def refused(cls, error: ProtectedAccountError,
                account: Optional[Account] = None) -> 'AccountMutationResult':
        return cls(success=False, account=account, error=error)

    @property
    def reason(self) -> Optional[str]:
        return str(self.error) if self.error else None

    def raise_for_error(self) -> Optional[Account]:
        """Raise the refusal, or return the account on success"""
        if self.error:
            raise self.error
        return self.account

    def __bool__(self) -> bool:
        return self.success


class AccountRegistry:
    """CRUD over one tenant's chart of accounts"""

    table_name = "accounts"

    def __init__(self, storage: StorageInterface):
        self.storage = storage

    def create_account(
        self,
        code: str,
        name: str,
        account_type: AccountType,
        opening_balance: Decimal = ZERO,
        description: Optional[str] = None,
        system_account: bool = False,
        account_id: Optional[str] = None
    ) -> Account:
        """
        Add an account to the chart.

        Raises:
            ValueError: If code or name is empty, or the code already exists
        """
        code = (code or "").strip()
        if not code:
            raise ValueError("Account code is required")
        if not (name or "").strip():
            raise ValueError("Account name is required")
        if self.get_account_by_code(code):
            raise ValueError(f"Account code '{code}' already exists")

        account = Account(
            id=account_id or str(uuid.uuid4()),
            code=code,
            name=name.strip(),
            account_type=AccountType(account_type),
            opening_balance=to_decimal(opening_balance),
            description=description,
            system_account=system_account,
        )
        self._save(account)
        logger.info("Account created", extra={'action': 'account_created', 'resource': code})
        return account

    def seed_defaults(self, language: str = "en") -> List[Account]:
        """
        Create the nine system accounts; codes already present are skipped.

        Args:
            language: "ar" names the accounts in Arabic, anything else in English

        Returns:
            The accounts created by this call
        """
        created = []
        for default in DEFAULT_ACCOUNTS:
            if self.get_account_by_code(default.code):
                continue
            created.append(self.create_account(
                code=default.code,
                name=default.arabic_name if language == "ar" else default.name,
                account_type=default.account_type,
                system_account=True,
            ))
        return created

    def get_account(self, account_id: str) -> Optional[Account]:
        data = self.storage.load(self.table_name, account_id)
        return Account.from_dict(data) if data else None

    def get_account_by_code(self, code: str) -> Optional[Account]:
        matches = self.storage.find(self.table_name, {'code': code})
        return Account.from_dict(matches[0]) if matches else None

    def list_accounts(self) -> List[Account]:
        """All accounts in registry (insertion) order"""
        return [Account.from_dict(data) for data in self.storage.load_all(self.table_name)]

    def update_account(self, account_id: str, **changes: Any) -> AccountMutationResult:
        """
        Apply field changes to an account.

        Args:
            account_id: Account to update
            **changes: Any of code, name, account_type, opening_balance, description

        Returns:
            AccountMutationResult; refused when a system account's code or
            type would change (the registry is left untouched)

        Raises:
            ValueError: If the account does not exist, a field is unknown,
                or the new code is already taken
        """
        account = self._require(account_id)

        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown account field(s): {', '.join(sorted(unknown))}")

        if 'account_type' in changes:
            changes['account_type'] = AccountType(changes['account_type'])
        if 'opening_balance' in changes:
            changes['opening_balance'] = to_decimal(changes['opening_balance'])
        if changes.get('code') is not None:
            changes['code'] = changes['code'].strip()

        if account.system_account:
            for field_name in FROZEN_SYSTEM_FIELDS:
                if field_name in changes and changes[field_name] != getattr(account, field_name):
                    label = "code" if field_name == "code" else "type"
                    error = ProtectedAccountError(
                        f"Cannot change the {label} of system account {account.code}",
                        account_code=account.code,
                    )
                    logger.info(str(error), extra={'action': 'account_update_refused',
                                                   'resource': account.code})
                    return AccountMutationResult.refused(error, account)

        new_code = changes.get('code')
        if new_code is not None and new_code != account.code:
            if not new_code:
                raise ValueError("Account code is required")
            if self.get_account_by_code(new_code):
                raise ValueError(f"Account code '{new_code}' already exists")

        for field_name, value in changes.items():
            setattr(account, field_name, value)

        self._save(account)
        return AccountMutationResult.ok(account)

    def set_opening_balance(self, account_id: str, amount: Decimal) -> AccountMutationResult:
        """Opening balances stay editable on every account"""
        return self.update_account(account_id, opening_balance=amount)

    def delete_account(self, account_id: str) -> AccountMutationResult:
        """
        Remove a user-defined account.

        System accounts are refused with ProtectedAccountError and left in place.

        Raises:
            ValueError: If the account does not exist
        """
        account = self._require(account_id)
        if account.system_account:
            error = ProtectedAccountError(
                f"Cannot delete system account {account.code} ({account.name})",
                account_code=account.code,
            )
            logger.info(str(error), extra={'action': 'account_delete_refused',
                                           'resource': account.code})
            return AccountMutationResult.refused(error, account)

        self.storage.delete(self.table_name, account_id)
        logger.info("Account deleted", extra={'action': 'account_deleted', 'resource': account.code})
        return AccountMutationResult.ok(account)

    def _require(self, account_id: str) -> Account:
        account = self.get_account(account_id)
        if not account:
            raise ValueError(f"Account {account_id} not found")
        return account

    def _save(self, account: Account) -> None:
        self.storage.save(self.table_name, account.id, account.to_dict())
