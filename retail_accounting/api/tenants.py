"""
Tenant provisioning endpoints
"""

from fastapi import APIRouter, HTTPException, Depends, status

from .dependencies import AccountingSystem, get_accounting_system
from .schemas import CreateTenantRequest
from ..config import get_config
from ..currency import Currency
from ..errors import ConfigurationError


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_tenant(
    request: CreateTenantRequest,
    system: AccountingSystem = Depends(get_accounting_system)
):
    """Register a store and seed its chart of accounts"""
    config = get_config()
    try:
        tenant = system.tenant_manager.create_tenant(
            name=request.name or config.store_name,
            code=request.code,
            display_name=request.display_name,
            currency=Currency.from_code(request.currency or config.default_currency),
            language=request.language or config.default_language,
            opening_date=request.opening_date or config.opening_balance_date,
        )
    except ConfigurationError as e:
        raise HTTPException(status_code=500, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return tenant.to_dict()


@router.get("")
async def list_tenants(system: AccountingSystem = Depends(get_accounting_system)):
    """List registered stores"""
    return {"tenants": [tenant.to_dict() for tenant in system.tenant_manager.list_tenants()]}
