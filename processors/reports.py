"""
مولّد التقارير - Report Builder

Wires the resolver, indexer, calculator, credit classifier and ranker
together over one snapshot. Every call recomputes from the snapshot; no
results are cached between calls.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from typing import Dict, List, Optional

import config
from snapshot.models import AggregatedRow, CreditCheck, DateRange, Leaderboard, Representative
from .calculator import Calculator
from .credit import check_pending_order, classify_credit, credit_utilization
from .exceptions import ContractError, NotFoundError
from .indexer import EventIndex
from .period import filter_by_period
from .ranker import top_products

logger = logging.getLogger(__name__)

ROLLUP_FIELDS = ('area', 'line', 'manager')
AGGREGATE_FIELDS = ('visits', 'invoice_count', 'sales', 'collected', 'current_debt')


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


class ReportBuilder:
    """بناء تقارير المندوبين والعيادات من لقطة واحدة"""

    ROSTER_COLUMNS = [
        'name', 'username', 'role', 'visits', 'invoice_count',
        'sales', 'collected', 'current_debt'
    ]

    ROSTER_HEADERS_AR = [
        'الاسم', 'اسم المستخدم', 'الدور', 'الزيارات', 'عدد الفواتير',
        'المبيعات', 'المحصل', 'المديونية الحالية'
    ]

    CLINIC_COLUMNS = [
        'name', 'area', 'line', 'invoice_count', 'sales', 'collected',
        'current_debt', 'balance', 'credit_limit', 'utilization', 'credit_status'
    ]

    CLINIC_HEADERS_AR = [
        'العيادة', 'المنطقة', 'الخط', 'عدد الفواتير', 'المبيعات', 'المحصل',
        'مديونية الفترة', 'الرصيد', 'الحد الائتماني', 'نسبة الاستخدام', 'حالة الائتمان'
    ]

    TOP_PRODUCTS_COLUMNS = ['product', 'revenue', 'quantity']
    TOP_PRODUCTS_HEADERS_AR = ['المنتج', 'القيمة', 'الكمية']

    def __init__(self, snapshot, date_range: Optional[DateRange] = None):
        self.snapshot = snapshot
        self.date_range = date_range

    # ==================== المندوبين ====================

    def _roster_row(self, index: EventIndex, user: Representative) -> Dict:
        orders, collections, visits = index.cohort(user.user_id)
        row = Calculator.aggregate(orders, collections, visits, self.date_range)
        data = {
            'user_id': user.user_id,
            'name': user.full_name,
            'username': user.username,
            'role': user.role,
            'area': user.area,
            'line': user.line,
            'manager': user.manager,
        }
        data.update(row.as_dict())
        data['collection_rate'] = round(row.collection_rate, 2)
        return data

    def representative_roster(self, users=None, workers: Optional[int] = None) -> List[Dict]:
        """
        صف لكل مندوب: الزيارات، الفواتير، المبيعات، المحصل، المديونية

        Args:
            users: subset of representatives (defaults to every user)
            workers: thread count for the per-representative fan-out;
                output order always follows ``users``
        """
        if users is None:
            users = self.snapshot.users
        if not isinstance(users, (list, tuple)):
            raise ContractError(f"users must be a list, got {type(users).__name__}")
        workers = workers or config.ROSTER_WORKERS

        index = EventIndex.build(
            list(self.snapshot.orders),
            list(self.snapshot.collections),
            list(self.snapshot.visits),
        )
        if workers > 1 and len(users) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                rows = list(pool.map(lambda user: self._roster_row(index, user), users))
        else:
            rows = [self._roster_row(index, user) for user in users]

        logger.info("Roster built for %d representative(s)", len(rows))
        return rows

    def representative_scorecard(self, user_id: str) -> Dict:
        """بطاقة أداء مندوب واحد"""
        user = self.snapshot.representative(user_id)
        if user is None:
            raise NotFoundError(f"representative not found: {user_id}")

        index = EventIndex.build(
            list(self.snapshot.orders),
            list(self.snapshot.collections),
            list(self.snapshot.visits),
        )
        orders, collections, visits = index.cohort(user_id)
        orders = filter_by_period(orders, self.date_range)
        visits = filter_by_period(visits, self.date_range)
        row = Calculator.aggregate(orders, filter_by_period(collections, self.date_range), visits)

        leaderboard = top_products(orders, 1)
        best_product = leaderboard.by_quantity[0].as_dict() if leaderboard.by_quantity else None

        return {
            'user_id': user.user_id,
            'name': user.full_name,
            'summary': row.as_dict(),
            'performance': Calculator.performance(row, user).as_dict(),
            'best_clinic': Calculator.best_clinic(orders, self.snapshot.clinics),
            'best_product': best_product,
            'last_visit': _iso(Calculator.last_activity(visits)),
            'last_invoice': _iso(Calculator.last_activity(orders)),
        }

    @staticmethod
    def summarize(rows: List[Dict]) -> Dict:
        """إجماليات صفوف التقرير"""
        return Calculator.calculate_summary_stats([
            AggregatedRow(**{key: row[key] for key in AGGREGATE_FIELDS}) for row in rows
        ])

    # ==================== العيادات ====================

    def clinic_ledger(self, clinics=None) -> List[Dict]:
        """
        صف لكل عيادة مع حالة الائتمان

        Sales/collected/current_debt follow the report window. ``balance``
        and the credit tier use the clinic's all-time debt, since exposure
        is a running balance rather than a per-period flow.
        """
        if clinics is None:
            clinics = self.snapshot.clinics
        index = EventIndex.build(
            list(self.snapshot.orders),
            list(self.snapshot.collections),
            list(self.snapshot.visits),
            key='clinic_id',
        )

        rows = []
        for clinic in clinics:
            orders, collections, visits = index.cohort(clinic.clinic_id)
            period_row = Calculator.aggregate(orders, collections, visits, self.date_range)
            balance_row = Calculator.aggregate(orders, collections, visits)
            utilization = credit_utilization(balance_row.current_debt, clinic.credit_limit)
            rows.append({
                'clinic_id': clinic.clinic_id,
                'name': clinic.name,
                'area': clinic.area,
                'line': clinic.line,
                'invoice_count': period_row.invoice_count,
                'sales': period_row.sales,
                'collected': period_row.collected,
                'current_debt': period_row.current_debt,
                'balance': balance_row.current_debt,
                'credit_limit': clinic.credit_limit,
                'utilization': None if utilization is None else round(utilization, 2),
                'credit_status': classify_credit(balance_row.current_debt, clinic.credit_limit).value,
                'last_order_date': _iso(Calculator.last_activity(orders)),
                'last_collection_date': _iso(Calculator.last_activity(collections)),
            })
        return rows

    def clinic_balance(self, clinic_id: str) -> float:
        """المديونية الحالية للعيادة (كل الفترات)"""
        orders = [order for order in self.snapshot.orders if order.clinic_id == clinic_id]
        collections = [c for c in self.snapshot.collections if c.clinic_id == clinic_id]
        return Calculator.aggregate(orders, collections, []).current_debt

    def credit_check(self, clinic_id: str, order_total: float) -> CreditCheck:
        """فحص الائتمان لطلب جديد قبل الإرسال"""
        clinic = self.snapshot.clinic(clinic_id)
        if clinic is None:
            raise NotFoundError(f"clinic not found: {clinic_id}")
        return check_pending_order(self.clinic_balance(clinic_id), order_total, clinic.credit_limit)

    # ==================== المنتجات ====================

    def top_products(self, n: Optional[int] = None) -> Leaderboard:
        """أفضل المنتجات عبر كل الطلبات داخل الفترة"""
        return top_products(filter_by_period(self.snapshot.orders, self.date_range), n)

    def group_members(self, by: str, value: str) -> List[Representative]:
        """المندوبون في منطقة / خط / مدير معين"""
        if by not in ROLLUP_FIELDS:
            raise ContractError(f"rollup must be one of {', '.join(ROLLUP_FIELDS)}, got {by!r}")
        return [user for user in self.snapshot.users if getattr(user, by) == value]

    def rollup_top_products(self, by: str, value: str, n: Optional[int] = None) -> Leaderboard:
        """
        أفضل المنتجات لمجموعة مندوبين (منطقة / خط / مدير)

        Args:
            by: 'area', 'line' or 'manager'
            value: قيمة المجموعة
            n: عدد المنتجات
        """
        member_ids = {user.user_id for user in self.group_members(by, value)}
        orders = [order for order in self.snapshot.orders if order.representative_id in member_ids]
        return top_products(filter_by_period(orders, self.date_range), n)
