"""
مصنّف المخاطر الائتمانية - Credit Risk Classifier
"""

from typing import Optional

import config
from snapshot.models import CreditCheck, CreditStatus


def credit_utilization(debt: float, credit_limit: Optional[float]) -> Optional[float]:
    """نسبة استخدام الحد الائتماني (%)، أو None بدون حد صالح"""
    if credit_limit is None or not credit_limit > 0:
        return None
    return (debt / credit_limit) * 100


def classify_credit(debt: float, credit_limit: Optional[float] = None) -> CreditStatus:
    """
    تصنيف حالة الائتمان للعيادة

    Args:
        debt: المديونية الحالية أو المتوقعة
        credit_limit: الحد الائتماني (None أو 0 = بدون تصنيف)

    Returns:
        none / good / caution / warning / danger
    """
    utilization = credit_utilization(debt, credit_limit)
    if utilization is None:
        return CreditStatus.NONE
    if utilization >= config.CREDIT_DANGER_PCT:
        return CreditStatus.DANGER
    if utilization >= config.CREDIT_WARNING_PCT:
        return CreditStatus.WARNING
    if utilization >= config.CREDIT_CAUTION_PCT:
        return CreditStatus.CAUTION
    return CreditStatus.GOOD


def would_exceed(projected_debt: float, credit_limit: Optional[float]) -> bool:
    """هل يتجاوز الطلب الحد الائتماني؟ (يمنع الإرسال)"""
    utilization = credit_utilization(projected_debt, credit_limit)
    return utilization is not None and utilization >= config.CREDIT_BLOCKING_PCT


def check_pending_order(current_debt: float,
                        order_total: float,
                        credit_limit: Optional[float]) -> CreditCheck:
    """
    فحص الائتمان قبل حفظ طلب جديد

    The tier is computed on the projected debt. ``blocking`` is reported
    alongside the tier, never instead of it.
    """
    projected = max(0.0, current_debt + order_total)
    utilization = credit_utilization(projected, credit_limit)
    status = classify_credit(projected, credit_limit)
    blocking = would_exceed(projected, credit_limit)

    level = 'none'
    message = ''
    if utilization is not None and order_total != 0:
        if blocking:
            level = 'error'
            message = (f"سيتجاوز هذا الطلب الحد الائتماني "
                       f"({projected:.0f} من {credit_limit:.0f} ج.م)")
        elif utilization >= config.CREDIT_PREVIEW_WARNING_PCT:
            level = 'warning'
            message = f"تحذير: سيصل الاستخدام إلى {utilization:.0f}% من الحد الائتماني"

    return CreditCheck(
        projected_debt=projected,
        utilization=utilization,
        status=status,
        blocking=blocking,
        level=level,
        message=message,
    )
