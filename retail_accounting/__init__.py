"""
Retail Accounting

Multi-store retail bookkeeping: invoices, cash/bank bonds and expenses are
turned into a derived double-entry ledger with running balances, a trial
balance and an income statement. All amounts use Decimal.
"""

__version__ = "1.0.0"
