"""
Print Layer

Renders standalone printable HTML documents (account statement, chart of
accounts, final accounts) from reporting output. Layout direction and
labels follow the book language: Arabic renders right-to-left.
"""

from datetime import date
from typing import Any, Dict, Optional, Sequence

from jinja2 import Environment, PackageLoader, select_autoescape

from .accounts import Account
from .context import BookContext
from .currency import format_amount
from .reporting import AccountStatement, FinalAccounts, chart_of_accounts


LABELS: Dict[str, Dict[str, str]] = {
    'en': {
        'statement': "Account Statement",
        'statement_heading': "General Ledger Statement",
        'print_date': "Print Date",
        'date': "Date",
        'ref': "Ref",
        'description': "Description",
        'debit': "Debit",
        'credit': "Credit",
        'balance': "Balance",
        'no_transactions': "No transactions",
        'closing_balance': "Closing Balance",
        'chart': "Chart of Accounts",
        'code': "Code",
        'account_name': "Account Name",
        'type': "Type",
        'final_accounts': "Final Accounts",
        'total_revenue': "Total Revenue",
        'total_expenses': "Total Expenses",
        'net_income': "Net Profit/Loss",
        'trial_balance': "Trial Balance",
        'account': "Account",
        'total_debit': "Total Debit",
        'total_credit': "Total Credit",
        'net_balance': "Net Balance",
        'total': "Total",
    },
    'ar': {
        'statement': "كشف حساب",
        'statement_heading': "كشف حساب (دفتر الأستاذ)",
        'print_date': "تاريخ الطباعة",
        'date': "التاريخ",
        'ref': "المرجع",
        'description': "البيان",
        'debit': "مدين",
        'credit': "دائن",
        'balance': "الرصيد",
        'no_transactions': "لا توجد حركات",
        'closing_balance': "الرصيد النهائي",
        'chart': "دليل الحسابات",
        'code': "الكود",
        'account_name': "اسم الحساب",
        'type': "النوع",
        'final_accounts': "الحسابات الختامية",
        'total_revenue': "الإيرادات",
        'total_expenses': "المصروفات",
        'net_income': "صافي الربح/الخسارة",
        'trial_balance': "ميزان المراجعة",
        'account': "الحساب",
        'total_debit': "إجمالي مدين",
        'total_credit': "إجمالي دائن",
        'net_balance': "صافي الرصيد",
        'total': "الإجمالي",
    },
}


def _amount(value: Any) -> str:
    return format_amount(value)


def _amount_or_dash(value: Any) -> str:
    return format_amount(value) if value else "-"


_environment: Optional[Environment] = None


def get_environment() -> Environment:
    """Template environment, created on first use"""
    global _environment
    if _environment is None:
        env = Environment(
            loader=PackageLoader("retail_accounting", "templates"),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )
        env.filters['amount'] = _amount
        env.filters['amount_or_dash'] = _amount_or_dash
        _environment = env
    return _environment


def _layout(context: BookContext, auto_print: bool, printed_on: Optional[date]) -> Dict[str, Any]:
    language = context.language if context.language in LABELS else 'en'
    rtl = language == 'ar'
    return {
        'language': language,
        'direction': 'rtl' if rtl else 'ltr',
        'text_align': 'right' if rtl else 'left',
        'totals_align': 'left' if rtl else 'right',
        't': LABELS[language],
        'store_name': context.store_name,
        'currency_label': context.currency.label(language),
        'auto_print': auto_print,
        'printed_on': (printed_on or date.today()).isoformat(),
    }


def render_account_statement(statement: AccountStatement, context: BookContext,
                             auto_print: bool = True, printed_on: Optional[date] = None) -> str:
    template = get_environment().get_template("account_statement.html")
    return template.render(statement=statement, **_layout(context, auto_print, printed_on))


def render_chart_of_accounts(accounts: Sequence[Account], context: BookContext,
                             auto_print: bool = True) -> str:
    template = get_environment().get_template("chart_of_accounts.html")
    return template.render(accounts=chart_of_accounts(accounts),
                           **_layout(context, auto_print, None))


def render_final_accounts(final: FinalAccounts, context: BookContext,
                          auto_print: bool = True) -> str:
    template = get_environment().get_template("final_accounts.html")
    return template.render(final=final, **_layout(context, auto_print, None))
