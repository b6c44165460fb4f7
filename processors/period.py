"""
محلّل الفترات - Period Resolver

Turns a period token into an inclusive [start, end] window on UTC calendar
boundaries. ``None`` means "no filter".
"""

import calendar
import logging
from datetime import date, datetime, time, timezone
from typing import Iterable, List, Mapping, Optional, Tuple, Union

from snapshot.models import DateRange, Period
from .exceptions import InvalidPeriodError
from .file_transformer import FileTransformer

logger = logging.getLogger(__name__)

END_OF_DAY = time(23, 59, 59, 999000)

CustomRange = Union[Mapping, Tuple, List, None]


def _shift_month(year: int, month: int, delta: int) -> Tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1


def _month_start(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)


def _month_end(year: int, month: int) -> datetime:
    last_day = calendar.monthrange(year, month)[1]
    return datetime.combine(date(year, month, last_day), END_OF_DAY, tzinfo=timezone.utc)


def _day_end(value: datetime) -> datetime:
    return datetime.combine(value.date(), END_OF_DAY, tzinfo=timezone.utc)


def _custom_bounds(custom_range: CustomRange):
    if custom_range is None:
        return None, None
    if isinstance(custom_range, Mapping):
        start = custom_range.get('from', custom_range.get('start'))
        end = custom_range.get('to', custom_range.get('end'))
        return start, end
    if isinstance(custom_range, (tuple, list)) and len(custom_range) == 2:
        return custom_range[0], custom_range[1]
    raise InvalidPeriodError(f"custom range must be a mapping or a (from, to) pair, got {custom_range!r}")


def _has_time(value) -> bool:
    if isinstance(value, datetime):
        return True
    return isinstance(value, str) and ':' in value


def _parse_bound(value, name: str) -> datetime:
    parsed = FileTransformer.parse_date(value)
    if parsed is None:
        raise InvalidPeriodError(f"invalid '{name}' date: {value!r}")
    return parsed


def resolve_period(token: Union[Period, str, None],
                   custom_range: CustomRange = None,
                   now: Optional[datetime] = None) -> Optional[DateRange]:
    """
    تحويل رمز الفترة إلى نطاق زمني

    Args:
        token: all / this_month / last_month / last_3_months / ytd / custom
        custom_range: {'from': ..., 'to': ...} (custom only)
        now: the caller's current instant (defaults to utcnow)

    Returns:
        DateRange, or None when no filtering applies

    Raises:
        InvalidPeriodError: unknown token, malformed custom bound, or a
            custom range whose start is after its end
    """
    if token is None:
        token = Period.ALL
    try:
        period = Period(token)
    except ValueError:
        raise InvalidPeriodError(f"unknown period token: {token!r}") from None

    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    else:
        now = now.astimezone(timezone.utc)

    year, month = now.year, now.month

    if period is Period.ALL:
        return None

    if period is Period.THIS_MONTH:
        return DateRange(_month_start(year, month), _month_end(year, month))

    if period is Period.LAST_MONTH:
        prev_year, prev_month = _shift_month(year, month, -1)
        return DateRange(_month_start(prev_year, prev_month), _month_end(prev_year, prev_month))

    if period is Period.LAST_3_MONTHS:
        start_year, start_month = _shift_month(year, month, -2)
        return DateRange(_month_start(start_year, start_month), _month_end(year, month))

    if period is Period.YTD:
        return DateRange(datetime(year, 1, 1, tzinfo=timezone.utc), _day_end(now))

    # custom: a missing bound means no filter
    raw_start, raw_end = _custom_bounds(custom_range)
    if FileTransformer.is_missing(raw_start) or FileTransformer.is_missing(raw_end):
        logger.debug("Custom period without both bounds, not filtering")
        return None

    start = _parse_bound(raw_start, 'from')
    end = _parse_bound(raw_end, 'to')
    # date-only bounds cover whole days; a bound with a time keeps its instant
    if not _has_time(raw_start):
        start = datetime.combine(start.date(), time(0, 0), tzinfo=timezone.utc)
    if not _has_time(raw_end):
        end = _day_end(end)
    if start > end:
        raise InvalidPeriodError(f"custom range starts after it ends: {raw_start!r} > {raw_end!r}")
    return DateRange(start, end)


def filter_by_period(records: Iterable, date_range: Optional[DateRange]) -> List:
    """
    السجلات التي يقع تاريخها داخل النطاق

    Works on any record exposing ``event_date``. Records without a usable
    date fall outside every window but are kept when there is no window.
    """
    records = list(records)
    if date_range is None:
        return records
    return [record for record in records if date_range.contains(record.event_date)]
