"""
Pydantic schemas for API requests
"""

from datetime import date
from typing import Optional
from pydantic import BaseModel, Field


class CreateTenantRequest(BaseModel):
    code: str = Field(..., min_length=1)
    name: Optional[str] = Field(None, description="Store name; configured store_name when omitted")
    display_name: str = ""
    currency: Optional[str] = Field(None, description="Currency code (YER, SAR, USD)")
    language: Optional[str] = Field(None, description="UI language, ar or en")
    opening_date: Optional[date] = None


# Account schemas
class CreateAccountRequest(BaseModel):
    code: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    account_type: str = Field(..., description="asset, liability, equity, revenue or expense")
    opening_balance: str = Field("0", description="Decimal amount as string")
    description: Optional[str] = None


class UpdateAccountRequest(BaseModel):
    code: Optional[str] = None
    name: Optional[str] = None
    account_type: Optional[str] = None
    opening_balance: Optional[str] = None
    description: Optional[str] = None
