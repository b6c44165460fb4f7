"""
Snapshot package initialization
"""

from .models import (
    Order, LineItem, Collection, Visit, Clinic, Representative,
    DateRange, AggregatedRow, ProductRow, Leaderboard, OrderTotals,
    CreditCheck, CreditStatus, PerformanceScore, Period
)

__all__ = [
    'Order',
    'LineItem',
    'Collection',
    'Visit',
    'Clinic',
    'Representative',
    'DateRange',
    'AggregatedRow',
    'ProductRow',
    'Leaderboard',
    'OrderTotals',
    'CreditCheck',
    'CreditStatus',
    'PerformanceScore',
    'Period'
]
