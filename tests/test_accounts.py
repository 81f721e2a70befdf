"""
Test suite for the account registry

Tests default seeding, CRUD and the protection of system accounts.
"""

import pytest
from decimal import Decimal

from retail_accounting.accounts import (
    Account, AccountMutationResult, AccountRegistry, AccountType, DEFAULT_ACCOUNTS
)
from retail_accounting.errors import ProtectedAccountError
from retail_accounting.storage import InMemoryStorage


class TestAccount:
    """Test Account record conversion"""

    def test_round_trip_through_dict(self):
        """Test to_dict/from_dict keep every field"""
        account = Account(id="a1", code="1300", name="Prepaid", account_type=AccountType.ASSET,
                          opening_balance=Decimal('12.50'), description="Rent paid ahead",
                          system_account=False)

        data = account.to_dict()
        assert data['opening_balance'] == "12.50"
        assert data['account_type'] == "asset"
        assert Account.from_dict(data) == account

    def test_coerces_loose_values(self):
        """Test string type and numeric balance are normalized"""
        account = Account(id="a1", code="1300", name="Prepaid", account_type="asset",
                          opening_balance=5)
        assert account.account_type == AccountType.ASSET
        assert account.opening_balance == Decimal('5')


class TestSeeding:
    """Test provisioning of the nine system accounts"""

    def setup_method(self):
        self.registry = AccountRegistry(InMemoryStorage())

    def test_seeds_nine_system_accounts(self):
        """Test default chart"""
        created = self.registry.seed_defaults()

        assert len(created) == 9
        accounts = self.registry.list_accounts()
        assert [a.code for a in accounts] == [d.code for d in DEFAULT_ACCOUNTS]
        assert all(a.system_account for a in accounts)
        assert all(a.opening_balance == Decimal('0') for a in accounts)
        assert self.registry.get_account_by_code("4000").account_type == AccountType.REVENUE
        assert self.registry.get_account_by_code("2000").name == "Accounts Payable"

    def test_seeding_is_idempotent(self):
        """Test re-seeding creates nothing new"""
        self.registry.seed_defaults()
        assert self.registry.seed_defaults() == []
        assert len(self.registry.list_accounts()) == 9

    def test_arabic_names(self):
        """Test Arabic seeding"""
        self.registry.seed_defaults(language="ar")
        assert self.registry.get_account_by_code("1001").name == "الصندوق"


class TestAccountRegistry:
    """Test registry CRUD"""

    def setup_method(self):
        self.storage = InMemoryStorage()
        self.registry = AccountRegistry(self.storage)
        self.registry.seed_defaults()

    def test_create_user_account(self):
        """Test creating a non-system account"""
        account = self.registry.create_account("1300", "Prepaid Rent", AccountType.ASSET,
                                               opening_balance="250")

        assert not account.system_account
        assert account.opening_balance == Decimal('250')
        assert self.registry.get_account(account.id) == account

    def test_duplicate_code_rejected(self):
        """Test codes are unique"""
        with pytest.raises(ValueError, match="already exists"):
            self.registry.create_account("1001", "Second Cash", AccountType.ASSET)

    def test_empty_code_rejected(self):
        """Test code is required"""
        with pytest.raises(ValueError, match="code is required"):
            self.registry.create_account("  ", "Nameless", AccountType.ASSET)

    def test_update_user_account(self):
        """Test any field of a user account may change"""
        account = self.registry.create_account("1300", "Prepaid", AccountType.ASSET)

        result = self.registry.update_account(account.id, code="1310",
                                              account_type=AccountType.EXPENSE, name="Prepaid Rent")

        assert result.success
        assert result.account.code == "1310"
        assert self.registry.get_account(account.id).account_type == AccountType.EXPENSE

    def test_system_account_name_and_opening_balance_editable(self):
        """Test editable fields of system accounts"""
        cash = self.registry.get_account_by_code("1001")

        assert self.registry.update_account(cash.id, name="Main Cash Box")
        assert self.registry.set_opening_balance(cash.id, Decimal('1000'))

        stored = self.registry.get_account(cash.id)
        assert stored.name == "Main Cash Box"
        assert stored.opening_balance == Decimal('1000')

    def test_system_account_code_change_refused(self):
        """Test code of a system account is frozen"""
        cash = self.registry.get_account_by_code("1001")

        result = self.registry.update_account(cash.id, code="1009")

        assert not result
        assert isinstance(result.error, ProtectedAccountError)
        assert result.reason == "Cannot change the code of system account 1001"
        assert self.registry.get_account(cash.id).code == "1001"

    def test_system_account_type_change_refused(self):
        """Test type of a system account is frozen"""
        sales = self.registry.get_account_by_code("4000")

        result = self.registry.update_account(sales.id, account_type="expense")

        assert not result.success
        assert "type" in result.reason
        assert self.registry.get_account(sales.id).account_type == AccountType.REVENUE

    def test_unchanged_code_on_system_account_allowed(self):
        """Test resubmitting the same code is not a change"""
        cash = self.registry.get_account_by_code("1001")
        assert self.registry.update_account(cash.id, code="1001", name="Cash").success

    def test_padded_code_matches_current_code(self):
        """Test surrounding whitespace is trimmed before comparing codes"""
        account = self.registry.create_account("1300", "Prepaid", AccountType.ASSET)
        cash = self.registry.get_account_by_code("1001")

        result = self.registry.update_account(account.id, code=" 1300 ")
        assert result.success
        assert self.registry.get_account(account.id).code == "1300"
        assert self.registry.update_account(cash.id, code=" 1001 ").success
        assert self.registry.get_account(cash.id).code == "1001"

    def test_padded_duplicate_code_rejected(self):
        """Test a trimmed code still collides with another account"""
        account = self.registry.create_account("1300", "Prepaid", AccountType.ASSET)
        with pytest.raises(ValueError, match="already exists"):
            self.registry.update_account(account.id, code=" 1002 ")

    def test_unknown_field_rejected(self):
        """Test update field whitelist"""
        cash = self.registry.get_account_by_code("1001")
        with pytest.raises(ValueError, match="Unknown account field"):
            self.registry.update_account(cash.id, system_account=False)

    def test_delete_user_account(self):
        """Test user accounts can be deleted"""
        account = self.registry.create_account("1300", "Prepaid", AccountType.ASSET)

        result = self.registry.delete_account(account.id)

        assert result.success
        assert self.registry.get_account(account.id) is None

    def test_protected_deletion_leaves_registry_unchanged(self):
        """Test deleting a system account is refused"""
        before = self.registry.list_accounts()
        cash = self.registry.get_account_by_code("1001")

        result = self.registry.delete_account(cash.id)

        assert not result
        assert result.reason == "Cannot delete system account 1001 (Cash)"
        assert result.error.account_code == "1001"
        assert self.registry.list_accounts() == before

    def test_raise_for_error(self):
        """Test refusals can be raised explicitly"""
        cash = self.registry.get_account_by_code("1001")
        with pytest.raises(ProtectedAccountError):
            self.registry.delete_account(cash.id).raise_for_error()

    def test_missing_account(self):
        """Test not-found is a ValueError"""
        with pytest.raises(ValueError, match="not found"):
            self.registry.delete_account("nope")
        assert self.registry.get_account("nope") is None


class TestAccountMutationResult:
    """Test the result type"""

    def test_ok_result(self):
        """Test successful result"""
        result = AccountMutationResult.ok()
        assert result
        assert result.reason is None
        assert result.raise_for_error() is None
