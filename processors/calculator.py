"""
محرك الحسابات - Calculator Engine
يقوم بحساب المبيعات والتحصيل والمديونية وأداء المندوبين

All sums are plain float accumulation. Precision loss at these magnitudes
is accepted; no Decimal arithmetic is used.
"""

import math
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional

import config
from snapshot.models import (
    AggregatedRow, Clinic, DateRange, LineItem, OrderTotals, PerformanceScore, Representative
)
from .exceptions import ContractError
from .period import filter_by_period


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _require_list(value, name: str) -> None:
    if not isinstance(value, (list, tuple)):
        raise ContractError(f"{name} must be a list, got {type(value).__name__}")


class Calculator:
    """محرك الحسابات المالية"""

    @staticmethod
    def current_debt(sales: float, collected: float) -> float:
        """المديونية الحالية (لا تكون سالبة أبداً)"""
        return max(0.0, sales - collected)

    @staticmethod
    def calculate_collection_rate(total_collected: float, total_sales: float) -> float:
        """
        حساب نسبة التحصيل

        Args:
            total_collected: إجمالي المحصل
            total_sales: إجمالي المبيعات

        Returns:
            نسبة التحصيل (%)
        """
        if total_sales == 0:
            return 0.0
        return (total_collected / total_sales) * 100

    @staticmethod
    def aggregate(
        orders,
        collections,
        visits,
        date_range: Optional[DateRange] = None
    ) -> AggregatedRow:
        """
        الملخص المالي لمجموعة واحدة داخل فترة

        Args:
            orders: طلبات المجموعة
            collections: تحصيلات المجموعة
            visits: زيارات المجموعة
            date_range: النطاق الزمني (None = كل الفترات)

        Returns:
            AggregatedRow
        """
        _require_list(orders, 'orders')
        _require_list(collections, 'collections')
        _require_list(visits, 'visits')

        period_orders = filter_by_period(orders, date_range)
        period_collections = filter_by_period(collections, date_range)
        period_visits = filter_by_period(visits, date_range)

        sales = 0.0
        for order in period_orders:
            sales += order.total
        collected = 0.0
        for collection in period_collections:
            collected += collection.amount

        return AggregatedRow(
            visits=len(period_visits),
            invoice_count=len(period_orders),
            sales=sales,
            collected=collected,
            current_debt=Calculator.current_debt(sales, collected),
        )

    @staticmethod
    def calculate_order_totals(items: Iterable[LineItem], order_discount: float = 0.0) -> OrderTotals:
        """
        إجماليات طلب جديد قبل الحفظ

        Formula: total = (subtotal - item discounts) * (1 - order discount %)
        The order-level discount is clamped to [0, 100].
        """
        items = list(items)
        subtotal = sum(item.line_total for item in items)
        item_discount = sum(item.discount_amount for item in items)
        clamped = max(0.0, min(100.0, order_discount or 0.0))

        items_total = subtotal - item_discount
        order_discount_amount = items_total * (clamped / 100)
        return OrderTotals(
            subtotal=subtotal,
            item_discount=item_discount,
            order_discount=order_discount_amount,
            total=items_total - order_discount_amount,
        )

    @staticmethod
    def due_date(order_date: datetime, payment_terms_days: Optional[int]) -> Optional[datetime]:
        """تاريخ الاستحقاق للدفع الآجل"""
        if not payment_terms_days or payment_terms_days <= 0:
            return None
        return order_date + timedelta(days=payment_terms_days)

    @staticmethod
    def performance(row: AggregatedRow, representative: Representative) -> PerformanceScore:
        """
        الأداء مقابل الأهداف الشهرية

        Score is the rounded mean of sales % and visits %; a missing target
        counts as 0 %.
        """
        sales_target = representative.sales_target or 0
        visits_target = representative.visits_target or 0
        sales_pct = _round_half_up(row.sales / sales_target * 100) if sales_target > 0 else 0
        visits_pct = _round_half_up(row.visits / visits_target * 100) if visits_target > 0 else 0
        score = _round_half_up((sales_pct + visits_pct) / 2)

        if score >= 100:
            label = 'excellent'
        elif score >= 70:
            label = 'good'
        elif score >= 40:
            label = 'improving'
        elif score > 0:
            label = 'needs_improvement'
        else:
            label = 'acceptable'

        return PerformanceScore(sales_pct=sales_pct, visits_pct=visits_pct, score=score, label=label)

    @staticmethod
    def best_clinic(orders, clinics: Iterable[Clinic]) -> Optional[Dict]:
        """العيادة الأعلى مبيعاً"""
        _require_list(orders, 'orders')
        names = {clinic.clinic_id: clinic.name for clinic in clinics}

        sales_by_clinic: Dict[str, float] = {}
        for order in orders:
            key = order.clinic_id or config.UNKNOWN_CLINIC_KEY
            sales_by_clinic[key] = sales_by_clinic.get(key, 0.0) + order.total

        if not sales_by_clinic:
            return None
        clinic_id, value = sorted(sales_by_clinic.items(), key=lambda kv: kv[1], reverse=True)[0]
        return {
            'clinic_id': clinic_id,
            'name': names.get(clinic_id, config.UNSPECIFIED_NAME),
            'value': value,
        }

    @staticmethod
    def last_activity(records) -> Optional[datetime]:
        """آخر تاريخ نشاط (زيارة / فاتورة / تحصيل)"""
        dates = [record.event_date for record in records if record.event_date is not None]
        return max(dates) if dates else None

    @staticmethod
    def calculate_summary_stats(rows: List[AggregatedRow]) -> Dict:
        """
        حساب الإحصائيات الملخصة لمجموعة صفوف

        Args:
            rows: صفوف مجمعة (مندوبين أو عيادات)

        Returns:
            قاموس يحتوي على الإحصائيات
        """
        if not rows:
            return {
                'total_invoices': 0,
                'total_visits': 0,
                'total_sales': 0.0,
                'total_collected': 0.0,
                'total_debt': 0.0,
                'collection_rate': 0.0,
                'avg_invoice_value': 0.0,
            }

        total_invoices = sum(row.invoice_count for row in rows)
        total_sales = sum(row.sales for row in rows)
        total_collected = sum(row.collected for row in rows)
        total_debt = sum(row.current_debt for row in rows)

        collection_rate = Calculator.calculate_collection_rate(total_collected, total_sales)
        avg_invoice_value = total_sales / total_invoices if total_invoices > 0 else 0.0

        return {
            'total_invoices': total_invoices,
            'total_visits': sum(row.visits for row in rows),
            'total_sales': round(total_sales, 2),
            'total_collected': round(total_collected, 2),
            'total_debt': round(total_debt, 2),
            'collection_rate': round(collection_rate, 2),
            'avg_invoice_value': round(avg_invoice_value, 2),
        }
