"""
نماذج البيانات لمحرك الحسابات
Data Models for the Sales Ledger Engine

Input records (orders, collections, visits, clinics, representatives) are
frozen: the engine reads them and never mutates them. Derived values
(AggregatedRow, Leaderboard, CreditCheck ...) are created fresh per call.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple


class Period(str, Enum):
    """رموز الفترات الزمنية - Period tokens"""
    ALL = "all"
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    LAST_3_MONTHS = "last_3_months"
    YTD = "ytd"
    CUSTOM = "custom"


class CreditStatus(str, Enum):
    """حالة الائتمان - Credit risk tier"""
    NONE = "none"
    GOOD = "good"
    CAUTION = "caution"
    WARNING = "warning"
    DANGER = "danger"

    @property
    def severity(self) -> int:
        return _CREDIT_SEVERITY[self]

    @property
    def label_ar(self) -> str:
        return _CREDIT_LABELS_AR[self]


_CREDIT_SEVERITY = {
    CreditStatus.NONE: 0,
    CreditStatus.GOOD: 1,
    CreditStatus.CAUTION: 2,
    CreditStatus.WARNING: 3,
    CreditStatus.DANGER: 4,
}

_CREDIT_LABELS_AR = {
    CreditStatus.NONE: "بدون حد ائتماني",
    CreditStatus.GOOD: "جيد",
    CreditStatus.CAUTION: "انتباه",
    CreditStatus.WARNING: "تحذير",
    CreditStatus.DANGER: "خطر",
}


# ==================== السجلات - Records ====================

def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """naive = UTC"""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class LineItem:
    """بند الطلب - Order line item"""
    product_key: str
    product_name: str
    unit_price: float = 0.0
    quantity: float = 0.0
    discount_pct: float = 0.0
    product_id: Optional[str] = None

    @property
    def line_total(self) -> float:
        """قيمة البند قبل الخصم"""
        return self.unit_price * self.quantity

    @property
    def discount_amount(self) -> float:
        return self.line_total * (self.discount_pct / 100)


@dataclass(frozen=True)
class Order:
    """نموذج الطلب - Order Model"""
    order_id: str
    representative_id: Optional[str]
    clinic_id: Optional[str]
    order_date: Optional[datetime]
    items: Tuple[LineItem, ...] = ()
    total: float = 0.0

    @property
    def event_date(self) -> Optional[datetime]:
        return _as_utc(self.order_date)


@dataclass(frozen=True)
class Collection:
    """نموذج التحصيل - Collection (payment receipt) Model"""
    collection_id: str
    representative_id: Optional[str]
    clinic_id: Optional[str]
    collection_date: Optional[datetime]
    amount: float = 0.0

    @property
    def event_date(self) -> Optional[datetime]:
        return _as_utc(self.collection_date)


@dataclass(frozen=True)
class Visit:
    """نموذج الزيارة - Visit Model"""
    visit_id: str
    representative_id: Optional[str]
    visit_date: Optional[datetime]
    clinic_id: Optional[str] = None

    @property
    def event_date(self) -> Optional[datetime]:
        return _as_utc(self.visit_date)


@dataclass(frozen=True)
class Clinic:
    """نموذج العيادة - Clinic Model"""
    clinic_id: str
    name: str
    credit_limit: Optional[float] = None
    payment_terms_days: Optional[int] = None
    area: Optional[str] = None
    line: Optional[str] = None


@dataclass(frozen=True)
class Representative:
    """نموذج المندوب / المستخدم - Representative (user) Model"""
    user_id: str
    full_name: str
    username: str = ""
    role: str = ""
    sales_target: Optional[float] = None
    visits_target: Optional[int] = None
    area: Optional[str] = None
    line: Optional[str] = None
    manager: Optional[str] = None


# ==================== القيم المشتقة - Derived values ====================

def _iso_z(value: datetime) -> str:
    """تنسيق ISO بالمللي ثانية ولاحقة Z"""
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


@dataclass(frozen=True)
class DateRange:
    """نطاق زمني مغلق من الطرفين - Inclusive [start, end] window"""
    start: datetime
    end: datetime

    def contains(self, value: Optional[datetime]) -> bool:
        if value is None:
            return False
        return self.start <= _as_utc(value) <= self.end

    def to_dict(self) -> Dict[str, str]:
        return {"start": _iso_z(self.start), "end": _iso_z(self.end)}


@dataclass
class AggregatedRow:
    """الملخص المالي لمجموعة - Financial summary of one cohort"""
    visits: int = 0
    invoice_count: int = 0
    sales: float = 0.0
    collected: float = 0.0
    current_debt: float = 0.0

    @property
    def collection_rate(self) -> float:
        """نسبة التحصيل (%)"""
        if self.sales == 0:
            return 0.0
        return (self.collected / self.sales) * 100

    def as_dict(self) -> Dict:
        return asdict(self)


@dataclass
class ProductRow:
    """صف في قائمة أفضل المنتجات - Leaderboard row"""
    product_key: str
    product_name: str
    value: float

    def as_dict(self) -> Dict:
        return asdict(self)


@dataclass
class Leaderboard:
    """أفضل المنتجات حسب القيمة والكمية"""
    by_revenue: List[ProductRow] = field(default_factory=list)
    by_quantity: List[ProductRow] = field(default_factory=list)

    def as_dict(self) -> Dict:
        return {
            "by_revenue": [row.as_dict() for row in self.by_revenue],
            "by_quantity": [row.as_dict() for row in self.by_quantity],
        }


@dataclass
class OrderTotals:
    """إجماليات الطلب قبل الحفظ - Totals of a pending order"""
    subtotal: float = 0.0
    item_discount: float = 0.0
    order_discount: float = 0.0
    total: float = 0.0

    @property
    def discount_amount(self) -> float:
        """إجمالي الخصومات"""
        return self.item_discount + self.order_discount


@dataclass
class CreditCheck:
    """نتيجة فحص الائتمان لطلب جديد - Pre-submission credit check"""
    projected_debt: float
    utilization: Optional[float]
    status: CreditStatus
    blocking: bool = False
    level: str = "none"  # 'none', 'warning', 'error'
    message: str = ""

    def as_dict(self) -> Dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data


_PERFORMANCE_LABELS_AR = {
    "excellent": "ممتاز",
    "good": "جيد",
    "improving": "قيد التحسن",
    "needs_improvement": "يحتاج تحسين",
    "acceptable": "مقبول",
}


@dataclass
class PerformanceScore:
    """الأداء مقابل الأهداف الشهرية - Progress against monthly targets"""
    sales_pct: int = 0
    visits_pct: int = 0
    score: int = 0
    label: str = "acceptable"

    @property
    def label_ar(self) -> str:
        return _PERFORMANCE_LABELS_AR[self.label]

    def as_dict(self) -> Dict:
        data = asdict(self)
        data["label_ar"] = self.label_ar
        return data
