"""
System wiring and request dependencies
"""

from typing import Optional

from fastapi import Header, HTTPException, Depends

from ..config import get_config
from ..storage import StorageInterface, create_storage
from ..tenancy import Bookkeeping, TenantManager


class AccountingSystem:
    """Storage plus tenant directory shared by every request"""

    def __init__(self, storage: Optional[StorageInterface] = None):
        config = get_config()
        self.storage = storage or create_storage(config.database_url)
        self.tenant_manager = TenantManager(self.storage, strict_well_known=config.strict_well_known)


# Global system instance, created on first request
accounting_system: Optional[AccountingSystem] = None


def get_accounting_system() -> AccountingSystem:
    global accounting_system
    if accounting_system is None:
        accounting_system = AccountingSystem()
    return accounting_system


def get_book(
    x_tenant_id: str = Header(..., alias="X-Tenant-ID"),
    system: AccountingSystem = Depends(get_accounting_system)
) -> Bookkeeping:
    """Book of the tenant named by the X-Tenant-ID header"""
    try:
        return system.tenant_manager.book(x_tenant_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
