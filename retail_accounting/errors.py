"""
Error types shared across the retail accounting package.
"""


class RetailAccountingError(Exception):
    """Base class for domain errors"""


class ProtectedAccountError(RetailAccountingError):
    """Refusal to delete or re-code/re-type a system account"""

    def __init__(self, message: str, account_code: str = None):
        super().__init__(message)
        self.account_code = account_code


class ConfigurationError(RetailAccountingError):
    """A tenant book is not set up the way the engine requires"""


class MissingWellKnownAccountError(ConfigurationError):
    """One or more well-known account codes are absent from a registry"""

    def __init__(self, missing_codes):
        self.missing_codes = list(missing_codes)
        super().__init__(
            "Chart of accounts is missing required account code(s): "
            + ", ".join(self.missing_codes)
        )


class SourceValidationError(RetailAccountingError):
    """A source document failed strict validation at the parse boundary"""

    def __init__(self, source: str, errors):
        self.source = source
        self.errors = list(errors)
        details = "; ".join(self.errors)
        super().__init__(f"Invalid {source} document: {details}")
