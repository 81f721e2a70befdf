"""
Multi-Tenancy Support Module

Each store is a tenant with one isolated accounting book inside a shared
deployment. Tenant scope is bound explicitly: a TenantScopedStorage is
created for one tenant id and a BookContext travels with every read, so
there is no process-wide "current tenant" or "current currency".
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone, date
from typing import Dict, List, Optional, Any, Tuple
import logging
import uuid

from .accounts import Account, AccountRegistry
from .context import BookContext, DEFAULT_OPENING_DATE
from .currency import Currency
from .errors import MissingWellKnownAccountError
from .ledger import (
    DerivationResult, LedgerLine, Posting, WellKnownAccounts, account_ledger, derive_for
)
from .logging_config import log_action
from .reporting import AccountStatement, FinalAccounts, account_statement, final_accounts
from .sources import BondBook, ExpenseBook, InvoiceBook
from .storage import StorageInterface


logger = logging.getLogger(__name__)


@dataclass
class Tenant:
    """A store owning one accounting book"""
    id: str
    name: str
    code: str  # Unique short code, e.g. "MILANO"
    display_name: str = ""
    currency: Currency = Currency.YER
    language: str = "ar"
    opening_date: date = DEFAULT_OPENING_DATE
    is_active: bool = True
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'display_name': self.display_name,
            'currency': self.currency.code,
            'language': self.language,
            'opening_date': self.opening_date.isoformat(),
            'is_active': self.is_active,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Tenant':
        return cls(
            id=data['id'],
            name=data['name'],
            code=data['code'],
            display_name=data.get('display_name') or "",
            currency=Currency.from_code(data.get('currency') or "YER"),
            language=data.get('language') or "ar",
            opening_date=date.fromisoformat(data['opening_date']) if data.get('opening_date') else DEFAULT_OPENING_DATE,
            is_active=data.get('is_active', True),
            created_at=datetime.fromisoformat(data['created_at']),
            updated_at=datetime.fromisoformat(data['updated_at']),
        )

    def book_context(self) -> BookContext:
        return BookContext(
            tenant_id=self.id,
            currency=self.currency,
            language=self.language,
            opening_date=self.opening_date,
            store_name=self.display_name or self.name,
        )


class TenantScopedStorage(StorageInterface):
    """
    Storage wrapper bound to one tenant.

    Records are stored in the shared backend tagged with ``_tenant_id``;
    reads only ever return records carrying this wrapper's tenant id.
    """

    TENANT_KEY = '_tenant_id'

    def __init__(self, inner: StorageInterface, tenant_id: str):
        if not tenant_id:
            raise ValueError("tenant_id is required")
        self.inner = inner
        self.tenant_id = tenant_id

    def _key(self, record_id: str) -> str:
        # Shared tables: ids are namespaced so tenants cannot collide
        return f"{self.tenant_id}:{record_id}"

    def _owned(self, data: Optional[Dict[str, Any]]) -> bool:
        return bool(data) and data.get(self.TENANT_KEY) == self.tenant_id

    @classmethod
    def _strip(cls, data: Dict[str, Any]) -> Dict[str, Any]:
        data = dict(data)
        data.pop(cls.TENANT_KEY, None)
        return data

    def save(self, table: str, record_id: str, data: Dict[str, Any]) -> None:
        tagged = dict(data)
        tagged[self.TENANT_KEY] = self.tenant_id
        self.inner.save(table, self._key(record_id), tagged)

    def load(self, table: str, record_id: str) -> Optional[Dict[str, Any]]:
        data = self.inner.load(table, self._key(record_id))
        return self._strip(data) if self._owned(data) else None

    def load_all(self, table: str) -> List[Dict[str, Any]]:
        return [self._strip(data) for data in self.inner.load_all(table) if self._owned(data)]

    def delete(self, table: str, record_id: str) -> bool:
        if not self._owned(self.inner.load(table, self._key(record_id))):
            return False
        return self.inner.delete(table, self._key(record_id))

    def clear_table(self, table: str) -> None:
        for data in self.load_all(table):
            self.inner.delete(table, self._key(data['id']))

    def close(self) -> None:
        self.inner.close()

    def begin_transaction(self) -> None:
        self.inner.begin_transaction()

    def commit(self) -> None:
        self.inner.commit()

    def rollback(self) -> None:
        self.inner.rollback()


class Bookkeeping:
    """
    One tenant's book: the account registry, the three source books and
    read-side derivation. Every read re-derives from current source state.
    """

    def __init__(self, storage: StorageInterface, context: BookContext):
        self.storage = storage
        self.context = context
        self.accounts = AccountRegistry(storage)
        self.invoices = InvoiceBook(storage)
        self.bonds = BondBook(storage)
        self.expenses = ExpenseBook(storage)

    def snapshot(self) -> Tuple[List[Account], DerivationResult]:
        """Read the chart once and derive from that same list"""
        accounts = self.accounts.list_accounts()
        result = derive_for(
            self.context,
            accounts,
            self.invoices.list(),
            self.bonds.list(),
            self.expenses.list(),
        )
        return accounts, result

    def derive(self) -> DerivationResult:
        return self.snapshot()[1]

    def postings(self) -> List[Posting]:
        return self.derive().postings

    def ledger(self, account_code: str) -> List[LedgerLine]:
        return account_ledger(account_code, self.postings())

    def final_accounts(self, include_inactive: bool = False) -> FinalAccounts:
        accounts, result = self.snapshot()
        return final_accounts(accounts, result.postings, include_inactive=include_inactive)

    def statement(self, account_code: str) -> AccountStatement:
        """
        Raises:
            ValueError: If no account has this code
        """
        accounts, result = self.snapshot()
        account = next((a for a in accounts if a.code == account_code), None)
        if not account:
            raise ValueError(f"Account code {account_code} not found")
        return account_statement(account, result.postings)


class TenantManager:
    """Tenant directory and book provisioning"""

    TENANT_TABLE = "tenants"

    def __init__(self, storage: StorageInterface, strict_well_known: bool = True):
        # Raw storage: the tenant directory itself is not tenant-scoped
        self.storage = storage
        self.strict_well_known = strict_well_known

    def create_tenant(self, name: str, code: str, display_name: str = "",
                      currency: Currency = Currency.YER, language: str = "ar",
                      opening_date: date = DEFAULT_OPENING_DATE,
                      tenant_id: Optional[str] = None) -> Tenant:
        """
        Register a store and provision its book with the nine system accounts.

        Raises:
            ValueError: If the tenant code already exists
            MissingWellKnownAccountError: If strict and provisioning left a
                well-known account code missing
        """
        if self.get_tenant_by_code(code):
            raise ValueError(f"Tenant code '{code}' already exists")

        tenant = Tenant(
            id=tenant_id or str(uuid.uuid4()),
            name=name,
            code=code,
            display_name=display_name,
            currency=currency,
            language=language,
            opening_date=opening_date,
        )
        try:
            with self.storage.atomic():
                self.provision(tenant)
                self.storage.save(self.TENANT_TABLE, tenant.id, tenant.to_dict())
        except MissingWellKnownAccountError:
            # Backends without rollback keep the seeded rows
            self.scoped_storage(tenant.id).clear_table(AccountRegistry.table_name)
            raise
        log_action(logger, "info", "Tenant provisioned", tenant_id=tenant.id,
                   action="tenant_created", resource=tenant.code)
        return tenant

    def provision(self, tenant: Tenant) -> WellKnownAccounts:
        """Seed default accounts (idempotent) and check well-known codes"""
        registry = AccountRegistry(self.scoped_storage(tenant.id))
        registry.seed_defaults(language=tenant.language)
        return WellKnownAccounts.resolve(registry.list_accounts(), strict=self.strict_well_known)

    def scoped_storage(self, tenant_id: str) -> TenantScopedStorage:
        return TenantScopedStorage(self.storage, tenant_id)

    def book(self, tenant_id: str) -> Bookkeeping:
        """
        Raises:
            ValueError: If the tenant does not exist or is inactive
        """
        tenant = self.get_tenant(tenant_id)
        if not tenant:
            raise ValueError(f"Tenant {tenant_id} not found")
        if not tenant.is_active:
            raise ValueError(f"Tenant {tenant_id} is inactive")
        return Bookkeeping(self.scoped_storage(tenant.id), tenant.book_context())

    def get_tenant(self, tenant_id: str) -> Optional[Tenant]:
        data = self.storage.load(self.TENANT_TABLE, tenant_id)
        return Tenant.from_dict(data) if data else None

    def get_tenant_by_code(self, code: str) -> Optional[Tenant]:
        matches = self.storage.find(self.TENANT_TABLE, {'code': code})
        return Tenant.from_dict(matches[0]) if matches else None

    def list_tenants(self, is_active: Optional[bool] = None) -> List[Tenant]:
        filters = {} if is_active is None else {'is_active': is_active}
        return [Tenant.from_dict(data) for data in self.storage.find(self.TENANT_TABLE, filters)]

    def deactivate_tenant(self, tenant_id: str) -> bool:
        tenant = self.get_tenant(tenant_id)
        if not tenant:
            return False
        tenant.is_active = False
        tenant.updated_at = datetime.now(timezone.utc)
        self.storage.save(self.TENANT_TABLE, tenant.id, tenant.to_dict())
        return True
