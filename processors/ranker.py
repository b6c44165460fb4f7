"""
ترتيب أفضل المنتجات - Top-N Product Ranker
"""

from typing import Dict, List, Optional

import config
from snapshot.models import Leaderboard, ProductRow
from .exceptions import ContractError


def _ranked(totals: Dict[str, float], names: Dict[str, str], n: int) -> List[ProductRow]:
    rows = [ProductRow(product_key=key, product_name=names[key], value=value)
            for key, value in totals.items()]
    # sorted() is stable: ties keep first-insertion order
    rows = sorted(rows, key=lambda row: row.value, reverse=True)
    return rows[:n]


def top_products(orders, n: Optional[int] = None) -> Leaderboard:
    """
    أفضل المنتجات حسب القيمة والكمية

    Revenue is unit price x quantity of each line item (not the order
    total). The display name comes from the first line item seen for a
    product key.

    Args:
        orders: طلبات المجموعة (بعد تطبيق الفترة)
        n: عدد المنتجات في كل قائمة

    Returns:
        Leaderboard (by_revenue, by_quantity)
    """
    if n is None:
        n = config.TOP_N_DEFAULT
    if not isinstance(orders, (list, tuple)):
        raise ContractError(f"orders must be a list, got {type(orders).__name__}")
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        raise ContractError(f"n must be a non-negative integer, got {n!r}")

    revenue: Dict[str, float] = {}
    quantity: Dict[str, float] = {}
    names: Dict[str, str] = {}
    for order in orders:
        for item in order.items:
            key = item.product_key
            names.setdefault(key, item.product_name)
            revenue[key] = revenue.get(key, 0.0) + item.unit_price * item.quantity
            quantity[key] = quantity.get(key, 0.0) + item.quantity

    return Leaderboard(
        by_revenue=_ranked(revenue, names, n),
        by_quantity=_ranked(quantity, names, n),
    )


def merge_leaderboards(leaderboard: Leaderboard) -> List[Dict]:
    """
    دمج القائمتين في صفوف (المنتج، القيمة، الكمية) للتصدير

    Products are matched by display name, revenue board first.
    """
    revenue_by_name: Dict[str, float] = {}
    for row in leaderboard.by_revenue:
        revenue_by_name.setdefault(row.product_name, row.value)
    quantity_by_name: Dict[str, float] = {}
    for row in leaderboard.by_quantity:
        quantity_by_name.setdefault(row.product_name, row.value)

    merged = []
    for name in dict.fromkeys(list(revenue_by_name) + list(quantity_by_name)):
        merged.append({
            'product': name,
            'revenue': revenue_by_name.get(name, 0),
            'quantity': quantity_by_name.get(name, 0),
        })
    return merged
