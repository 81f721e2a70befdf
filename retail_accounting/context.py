"""
Book context

Explicit per-request description of which tenant book is being read and
how it is presented. Threaded into the engine and print entry points
instead of process-wide "current store" / "current currency" state.
"""

from dataclasses import dataclass
from datetime import date

from .currency import Currency


DEFAULT_OPENING_DATE = date(2024, 1, 1)


@dataclass(frozen=True)
class BookContext:
    """Tenant book plus its presentation settings"""
    tenant_id: str
    currency: Currency = Currency.YER
    language: str = "en"
    opening_date: date = DEFAULT_OPENING_DATE
    store_name: str = ""

    @property
    def is_rtl(self) -> bool:
        return self.language == "ar"
