"""
Processors package initialization
"""

from .exceptions import LedgerError, ContractError, InvalidPeriodError, NotFoundError
from .file_transformer import FileTransformer
from .period import resolve_period, filter_by_period
from .indexer import index_by_owner, EventIndex
from .calculator import Calculator
from .credit import classify_credit, would_exceed, credit_utilization, check_pending_order
from .ranker import top_products, merge_leaderboards
from .reports import ReportBuilder

__all__ = [
    'LedgerError',
    'ContractError',
    'InvalidPeriodError',
    'NotFoundError',
    'FileTransformer',
    'resolve_period',
    'filter_by_period',
    'index_by_owner',
    'EventIndex',
    'Calculator',
    'classify_credit',
    'would_exceed',
    'credit_utilization',
    'check_pending_order',
    'top_products',
    'merge_leaderboards',
    'ReportBuilder'
]
