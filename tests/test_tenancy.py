"""
Tests for Multi-Tenancy Support Module

Covers tenant CRUD, book provisioning, tenant-scoped storage isolation and
the per-tenant bookkeeping facade.
"""

import pytest
from decimal import Decimal
from datetime import date

from retail_accounting import accounts as accounts_module
from retail_accounting.accounts import AccountRegistry
from retail_accounting.currency import Currency
from retail_accounting.errors import MissingWellKnownAccountError
from retail_accounting.sources import BondType, InvoiceType
from retail_accounting.storage import InMemoryStorage, SQLiteStorage
from retail_accounting.tenancy import Tenant, TenantManager, TenantScopedStorage


class TestTenant:
    """Test Tenant dataclass functionality"""

    def test_round_trip(self):
        """Test to_dict/from_dict"""
        tenant = Tenant(id="t1", name="Milano Store", code="MILANO", currency=Currency.SAR,
                        language="en", opening_date=date(2024, 7, 1))

        data = tenant.to_dict()
        assert data['currency'] == "SAR"
        assert Tenant.from_dict(data) == tenant

    def test_book_context(self):
        """Test context carries presentation settings"""
        tenant = Tenant(id="t1", name="Milano Store", code="MILANO", display_name="Milano")
        context = tenant.book_context()

        assert context.tenant_id == "t1"
        assert context.currency == Currency.YER
        assert context.is_rtl
        assert context.store_name == "Milano"


class TestTenantScopedStorage:
    """Test tenant isolation on shared storage"""

    def setup_method(self):
        self.inner = InMemoryStorage()
        self.store_a = TenantScopedStorage(self.inner, "a")
        self.store_b = TenantScopedStorage(self.inner, "b")

    def test_records_invisible_to_other_tenants(self):
        """Test reads are filtered by tenant"""
        self.store_a.save("accounts", "1", {"id": "1", "code": "1001"})

        assert self.store_a.load("accounts", "1") == {"id": "1", "code": "1001"}
        assert self.store_b.load("accounts", "1") is None
        assert self.store_b.load_all("accounts") == []
        assert self.store_b.find("accounts", {"code": "1001"}) == []

    def test_same_record_id_in_two_tenants(self):
        """Test ids do not collide across tenants"""
        self.store_a.save("accounts", "1", {"id": "1", "name": "A"})
        self.store_b.save("accounts", "1", {"id": "1", "name": "B"})

        assert self.store_a.load("accounts", "1")["name"] == "A"
        assert self.store_b.load("accounts", "1")["name"] == "B"

    def test_delete_and_clear_are_scoped(self):
        """Test one tenant cannot remove another's records"""
        self.store_a.save("t", "1", {"id": "1"})
        self.store_b.save("t", "2", {"id": "2"})

        assert not self.store_b.delete("t", "1")
        self.store_b.clear_table("t")

        assert self.store_a.exists("t", "1")
        assert self.store_b.load_all("t") == []

    def test_tenant_id_required(self):
        """Test explicit binding"""
        with pytest.raises(ValueError):
            TenantScopedStorage(self.inner, "")


class TestTenantManager:
    """Test tenant directory and provisioning"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.manager = TenantManager(self.storage)

    def test_create_tenant_provisions_system_accounts(self):
        """Test nine system accounts in the tenant's book"""
        tenant = self.manager.create_tenant("Milano Store", "MILANO", language="en")

        accounts = AccountRegistry(self.manager.scoped_storage(tenant.id)).list_accounts()
        assert len(accounts) == 9
        assert all(a.system_account for a in accounts)
        assert self.manager.get_tenant(tenant.id) == tenant
        assert self.manager.get_tenant_by_code("MILANO") == tenant

    def test_books_are_isolated(self):
        """Test two stores each get their own chart"""
        first = self.manager.create_tenant("First", "FIRST")
        second = self.manager.create_tenant("Second", "SECOND")

        book = self.manager.book(first.id)
        book.accounts.create_account("1300", "Prepaid", "asset")

        assert len(self.manager.book(first.id).accounts.list_accounts()) == 10
        assert len(self.manager.book(second.id).accounts.list_accounts()) == 9

    def test_duplicate_code_rejected(self):
        """Test tenant codes are unique"""
        self.manager.create_tenant("Milano", "MILANO")
        with pytest.raises(ValueError, match="already exists"):
            self.manager.create_tenant("Other", "MILANO")

    def test_strict_provisioning_fails_on_missing_well_known(self, monkeypatch):
        """Test provisioning raises when seeding leaves a required code out"""
        partial = [d for d in accounts_module.DEFAULT_ACCOUNTS if d.code != "1100"]
        monkeypatch.setattr(accounts_module, "DEFAULT_ACCOUNTS", partial)

        with pytest.raises(MissingWellKnownAccountError) as exc_info:
            self.manager.create_tenant("Broken", "BROKEN")
        assert exc_info.value.missing_codes == ["1100"]

    def test_failed_provisioning_rolls_back_on_sqlite(self, monkeypatch):
        """Test neither the tenant nor its seeded accounts survive a failure"""
        partial = [d for d in accounts_module.DEFAULT_ACCOUNTS if d.code != "1100"]
        monkeypatch.setattr(accounts_module, "DEFAULT_ACCOUNTS", partial)
        storage = SQLiteStorage(":memory:")
        manager = TenantManager(storage)

        with pytest.raises(MissingWellKnownAccountError):
            manager.create_tenant("Broken", "BROKEN", tenant_id="broken")

        assert manager.list_tenants() == []
        assert manager.get_tenant_by_code("BROKEN") is None
        assert storage.load_all(AccountRegistry.table_name) == []

        monkeypatch.undo()
        tenant = manager.create_tenant("Fixed", "FIXED")
        assert len(manager.book(tenant.id).accounts.list_accounts()) == 9
        storage.close()

    def test_failed_provisioning_cleans_up_in_memory(self, monkeypatch):
        """Test the seeded accounts are removed when the backend cannot roll back"""
        partial = [d for d in accounts_module.DEFAULT_ACCOUNTS if d.code != "1100"]
        monkeypatch.setattr(accounts_module, "DEFAULT_ACCOUNTS", partial)

        with pytest.raises(MissingWellKnownAccountError):
            self.manager.create_tenant("Broken", "BROKEN")

        assert self.manager.list_tenants() == []
        assert self.storage.load_all(AccountRegistry.table_name) == []

    def test_list_and_deactivate(self):
        """Test active filter and book access after deactivation"""
        tenant = self.manager.create_tenant("Milano", "MILANO")
        self.manager.create_tenant("Other", "OTHER")

        assert self.manager.deactivate_tenant(tenant.id)
        assert not self.manager.deactivate_tenant("missing")
        assert [t.code for t in self.manager.list_tenants(is_active=True)] == ["OTHER"]
        assert len(self.manager.list_tenants()) == 2
        with pytest.raises(ValueError, match="inactive"):
            self.manager.book(tenant.id)

    def test_unknown_tenant_book(self):
        """Test not-found"""
        with pytest.raises(ValueError, match="not found"):
            self.manager.book("missing")


class TestBookkeeping:
    """Test the per-tenant facade"""

    def setup_method(self):
        self.manager = TenantManager(InMemoryStorage())
        tenant = self.manager.create_tenant("Milano", "MILANO", language="en")
        self.book = self.manager.book(tenant.id)

    def test_reads_reflect_current_sources(self):
        """Test postings, ledger and final accounts recompute on read"""
        invoice = self.book.invoices.add("S-1", date(2024, 3, 1), InvoiceType.SALE, Decimal('500'))
        self.book.bonds.add("R-1", date(2024, 3, 2), BondType.RECEIPT, Decimal('200'))

        assert len(self.book.postings()) == 2
        assert [line.balance for line in self.book.ledger("1100")] == [Decimal('500'), Decimal('300')]
        assert self.book.final_accounts().income_statement.revenue == Decimal('500')

        self.book.invoices.cancel(invoice.id)
        assert len(self.book.postings()) == 1
        assert self.book.final_accounts().income_statement.revenue == Decimal('0')

    def test_statement(self):
        """Test statement by code"""
        self.book.expenses.add("Rent", Decimal('40'), date(2024, 3, 2))

        statement = self.book.statement("1001")
        assert statement.closing_balance == Decimal('-40')
        with pytest.raises(ValueError, match="not found"):
            self.book.statement("9999")

    def test_derive_uses_tenant_context(self):
        """Test opening date comes from the tenant"""
        tenant = self.manager.create_tenant("Dated", "DATED", opening_date=date(2023, 1, 1))
        book = self.manager.book(tenant.id)
        cash = book.accounts.get_account_by_code("1001")
        book.accounts.set_opening_balance(cash.id, Decimal('10'))

        [posting] = book.postings()
        assert posting.date == date(2023, 1, 1)
        assert posting.description == "رصيد افتتاحي"

    def test_final_accounts_reads_chart_once(self):
        """Test the chart used for reporting is the one the postings came from"""
        calls = []
        list_accounts = self.book.accounts.list_accounts

        def counting_list_accounts():
            calls.append(1)
            return list_accounts()

        self.book.accounts.list_accounts = counting_list_accounts
        self.book.invoices.add("S-1", date(2024, 3, 1), InvoiceType.SALE, Decimal('500'))

        assert self.book.final_accounts().income_statement.revenue == Decimal('500')
        assert len(calls) == 1

        calls.clear()
        assert self.book.statement("1100").closing_balance == Decimal('500')
        assert len(calls) == 1

    def test_snapshot_pairs_accounts_with_postings(self):
        """Test the snapshot returns the chart alongside its derivation"""
        self.book.expenses.add("Rent", Decimal('40'), date(2024, 3, 2))

        accounts, result = self.book.snapshot()
        assert len(accounts) == 9
        assert {code for p in result.postings for code in (p.debit_account_code, p.credit_account_code)} \
            <= {a.code for a in accounts}
