"""
أخطاء المحرك - Engine errors

Aggregation tolerates missing fields; these are raised only when a caller
breaks a function's contract or supplies an unusable period.
"""


class LedgerError(Exception):
    """Base class for engine errors."""


class ContractError(LedgerError, TypeError):
    """A caller passed arguments of the wrong shape (e.g. not a list of records)."""


class InvalidPeriodError(LedgerError, ValueError):
    """Unknown period token or malformed custom bounds."""


class NotFoundError(LedgerError, LookupError):
    """The requested representative or clinic is not in the snapshot."""
