"""
محوّل السجلات - Record Transformer
يحوّل السجلات الخام (JSON / CSV / Excel / DataFrame) إلى نماذج موحدة

Every fallback chain (``totalAmount ?? total ?? 0``, ``productId ?? productName``
...) is resolved here, once, at ingestion. Nothing downstream looks at raw keys.
"""

import json
import logging
import math
import os
import re
from datetime import date, datetime, timezone
from typing import Dict, List, Mapping, Optional

import pandas as pd

import config
from snapshot.models import Clinic, Collection, LineItem, Order, Representative, Visit
from .exceptions import ContractError

logger = logging.getLogger(__name__)


class FileTransformer:
    """محوّل السجلات إلى صيغة موحدة"""

    # خرائط الحقول (الاسم الموحد -> الأسماء المحتملة بالترتيب)
    ORDER_FIELDS = {
        'order_id': ['id', 'orderId', 'order_id'],
        'representative_id': ['representativeId', 'representative_id', 'repId', 'rep_id'],
        'clinic_id': ['clinicId', 'clinic_id'],
        'order_date': ['orderDate', 'order_date', 'date'],
        'total': ['totalAmount', 'total_amount', 'total'],
        'items': ['items', 'lineItems', 'line_items'],
    }

    ITEM_FIELDS = {
        'product_id': ['productId', 'product_id'],
        'product_name': ['productName', 'product_name', 'name'],
        'unit_price': ['unitPrice', 'unit_price', 'price'],
        'quantity': ['quantity', 'qty'],
        'discount_pct': ['discount', 'discountPct', 'discount_pct'],
    }

    COLLECTION_FIELDS = {
        'collection_id': ['id', 'collectionId', 'collection_id'],
        'representative_id': ['representativeId', 'representative_id', 'repId', 'rep_id'],
        'clinic_id': ['clinicId', 'clinic_id'],
        'collection_date': ['collectionDate', 'collection_date', 'date'],
        'amount': ['amount', 'collectedAmount', 'collected_amount'],
    }

    VISIT_FIELDS = {
        'visit_id': ['id', 'visitId', 'visit_id'],
        'representative_id': ['representativeId', 'representative_id', 'repId', 'rep_id'],
        'visit_date': ['visitDate', 'visit_date', 'date'],
        'clinic_id': ['clinicId', 'clinic_id'],
    }

    CLINIC_FIELDS = {
        'clinic_id': ['id', 'clinicId', 'clinic_id'],
        'name': ['name', 'clinicName', 'clinic_name'],
        'credit_limit': ['creditLimit', 'credit_limit'],
        'payment_terms_days': ['paymentTermsDays', 'payment_terms_days'],
        'area': ['area'],
        'line': ['line'],
    }

    USER_FIELDS = {
        'user_id': ['id', 'userId', 'user_id'],
        'full_name': ['fullName', 'full_name', 'name'],
        'username': ['username'],
        'role': ['role'],
        'sales_target': ['salesTarget', 'sales_target'],
        'visits_target': ['visitsTarget', 'visits_target'],
        'area': ['area'],
        'line': ['line'],
        'manager': ['manager', 'managerId', 'manager_id'],
    }

    DATE_FORMATS = [
        '%Y-%m-%d',
        '%Y-%m-%d %H:%M:%S',
        '%Y-%m-%d %H:%M',
        '%d/%m/%Y',
        '%d-%m-%Y',
        '%Y/%m/%d',
        '%d/%m/%Y %H:%M:%S',
    ]

    # ==================== قيم مفردة ====================

    @staticmethod
    def is_missing(value) -> bool:
        """قيمة غائبة: None أو NaN أو نص فارغ"""
        if value is None:
            return True
        if isinstance(value, str):
            return not value.strip()
        if isinstance(value, (list, tuple, dict)):
            return False
        try:
            return bool(pd.isna(value))
        except (TypeError, ValueError):
            return False

    @classmethod
    def pick(cls, raw: Mapping, names: List[str]):
        """أول حقل موجود من قائمة الأسماء المحتملة"""
        for name in names:
            value = raw.get(name)
            if not cls.is_missing(value):
                return value
        return None

    @classmethod
    def clean_id(cls, value) -> Optional[str]:
        if cls.is_missing(value):
            return None
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value).strip()

    @classmethod
    def parse_number(cls, value) -> float:
        """تحويل قيمة إلى رقم (0 عند الفشل)"""
        number = cls.parse_optional_number(value)
        return 0.0 if number is None else number

    @classmethod
    def parse_optional_number(cls, value) -> Optional[float]:
        if cls.is_missing(value) or isinstance(value, bool):
            return None

        # إزالة الفواصل والرموز
        if isinstance(value, str):
            value = (value.replace(',', '').replace('SAR', '').replace('ر.س', '')
                     .replace('EGP', '').replace('ج.م', '').strip())

        try:
            number = float(value)
        except (TypeError, ValueError):
            logger.debug("Unparsable number %r", value)
            return None
        if not math.isfinite(number):
            logger.debug("Non-finite number %r", value)
            return None
        return number

    @classmethod
    def parse_date(cls, value) -> Optional[datetime]:
        """
        تحويل قيمة التاريخ إلى datetime بتوقيت UTC

        Naive values are taken as UTC. Returns None for missing or
        unparsable input.
        """
        if cls.is_missing(value):
            return None

        if isinstance(value, datetime):
            return cls._to_utc(value)
        if isinstance(value, date):
            return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
        if not isinstance(value, str):
            logger.debug("Unsupported date value %r", value)
            return None

        text = value.strip()
        try:
            return cls._to_utc(datetime.fromisoformat(text.replace('Z', '+00:00')))
        except ValueError:
            pass

        for fmt in cls.DATE_FORMATS:
            try:
                return cls._to_utc(datetime.strptime(text, fmt))
            except ValueError:
                continue

        # محاولة استخدام pandas
        try:
            parsed = pd.to_datetime(text, utc=True)
        except (ValueError, TypeError, OverflowError):
            logger.debug("Unparsable date %r", value)
            return None
        if pd.isna(parsed):
            return None
        return parsed.to_pydatetime()

    @staticmethod
    def _to_utc(value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    # ==================== مجموعات السجلات ====================

    @staticmethod
    def as_records(data, what: str = 'records') -> List:
        """قائمة سجلات من list / tuple / DataFrame"""
        if isinstance(data, pd.DataFrame):
            return data.to_dict('records')
        if isinstance(data, (list, tuple)):
            return list(data)
        raise ContractError(f"{what} must be a list of records, got {type(data).__name__}")

    @classmethod
    def _mapped(cls, raw, fields: Dict[str, List[str]], what: str) -> Dict:
        if not isinstance(raw, Mapping):
            raise ContractError(f"each {what} record must be a mapping, got {type(raw).__name__}")
        return {name: cls.pick(raw, aliases) for name, aliases in fields.items()}

    @classmethod
    def transform_item(cls, raw) -> LineItem:
        values = cls._mapped(raw, cls.ITEM_FIELDS, 'line item')
        product_id = cls.clean_id(values['product_id'])
        product_name = None if values['product_name'] is None else str(values['product_name'])
        return LineItem(
            product_key=product_id or product_name or config.UNKNOWN_PRODUCT_KEY,
            product_name=product_name or config.UNSPECIFIED_NAME,
            unit_price=cls.parse_number(values['unit_price']),
            quantity=cls.parse_number(values['quantity']),
            discount_pct=cls.parse_number(values['discount_pct']),
            product_id=product_id,
        )

    @classmethod
    def _items(cls, raw_items) -> tuple:
        if raw_items is None:
            return ()
        if isinstance(raw_items, str):
            # ملفات CSV / Excel تحمل البنود كنص JSON
            try:
                raw_items = json.loads(raw_items)
            except ValueError:
                logger.debug("Unparsable items payload %r", raw_items[:80])
                return ()
        if not isinstance(raw_items, (list, tuple)):
            return ()
        return tuple(cls.transform_item(item) for item in raw_items if isinstance(item, Mapping))

    @classmethod
    def transform_orders(cls, data) -> List[Order]:
        """تحويل الطلبات إلى صيغة موحدة"""
        orders = []
        for raw in cls.as_records(data, 'orders'):
            if isinstance(raw, Order):
                orders.append(raw)
                continue
            values = cls._mapped(raw, cls.ORDER_FIELDS, 'order')
            orders.append(Order(
                order_id=cls.clean_id(values['order_id']) or '',
                representative_id=cls.clean_id(values['representative_id']),
                clinic_id=cls.clean_id(values['clinic_id']),
                order_date=cls.parse_date(values['order_date']),
                items=cls._items(values['items']),
                total=cls.parse_number(values['total']),
            ))
        return orders

    @classmethod
    def transform_collections(cls, data) -> List[Collection]:
        """تحويل التحصيلات إلى صيغة موحدة"""
        collections = []
        for raw in cls.as_records(data, 'collections'):
            if isinstance(raw, Collection):
                collections.append(raw)
                continue
            values = cls._mapped(raw, cls.COLLECTION_FIELDS, 'collection')
            collections.append(Collection(
                collection_id=cls.clean_id(values['collection_id']) or '',
                representative_id=cls.clean_id(values['representative_id']),
                clinic_id=cls.clean_id(values['clinic_id']),
                collection_date=cls.parse_date(values['collection_date']),
                amount=cls.parse_number(values['amount']),
            ))
        return collections

    @classmethod
    def transform_visits(cls, data) -> List[Visit]:
        visits = []
        for raw in cls.as_records(data, 'visits'):
            if isinstance(raw, Visit):
                visits.append(raw)
                continue
            values = cls._mapped(raw, cls.VISIT_FIELDS, 'visit')
            visits.append(Visit(
                visit_id=cls.clean_id(values['visit_id']) or '',
                representative_id=cls.clean_id(values['representative_id']),
                visit_date=cls.parse_date(values['visit_date']),
                clinic_id=cls.clean_id(values['clinic_id']),
            ))
        return visits

    @classmethod
    def transform_clinics(cls, data) -> List[Clinic]:
        clinics = []
        for raw in cls.as_records(data, 'clinics'):
            if isinstance(raw, Clinic):
                clinics.append(raw)
                continue
            values = cls._mapped(raw, cls.CLINIC_FIELDS, 'clinic')
            clinic_id = cls.clean_id(values['clinic_id'])
            if clinic_id is None:
                logger.debug("Skipping clinic without id: %r", raw)
                continue
            terms = cls.parse_optional_number(values['payment_terms_days'])
            clinics.append(Clinic(
                clinic_id=clinic_id,
                name=str(values['name'] or config.UNSPECIFIED_NAME),
                credit_limit=cls.parse_optional_number(values['credit_limit']),
                payment_terms_days=None if terms is None else int(terms),
                area=cls.clean_id(values['area']),
                line=cls.clean_id(values['line']),
            ))
        return clinics

    @classmethod
    def transform_users(cls, data) -> List[Representative]:
        users = []
        for raw in cls.as_records(data, 'users'):
            if isinstance(raw, Representative):
                users.append(raw)
                continue
            values = cls._mapped(raw, cls.USER_FIELDS, 'user')
            user_id = cls.clean_id(values['user_id'])
            if user_id is None:
                logger.debug("Skipping user without id: %r", raw)
                continue
            visits_target = cls.parse_optional_number(values['visits_target'])
            users.append(Representative(
                user_id=user_id,
                full_name=str(values['full_name'] or ''),
                username=str(values['username'] or ''),
                role=str(values['role'] or ''),
                sales_target=cls.parse_optional_number(values['sales_target']),
                visits_target=None if visits_target is None else int(visits_target),
                area=cls.clean_id(values['area']),
                line=cls.clean_id(values['line']),
                manager=cls.clean_id(values['manager']),
            ))
        return users

    # ==================== الملفات ====================

    @staticmethod
    def normalize_column_name(col) -> str:
        """تطبيع اسم العمود (إزالة المسافات الزائدة والأحرف الخاصة)"""
        cleaned = re.sub(r'[^\w\s\u0600-\u06FF]', '', str(col).strip())
        return '_'.join(cleaned.split())

    @classmethod
    def read_table(cls, file_path: str) -> pd.DataFrame:
        """
        قراءة ملف CSV أو Excel إلى DataFrame

        Raises:
            ValueError: الامتداد غير مدعوم أو تعذرت قراءة الملف
        """
        ext = os.path.splitext(file_path)[1].lower()
        if ext in ['.xls', '.xlsx']:
            df = pd.read_excel(file_path)
        elif ext in ['.csv', '.txt']:
            df = None
            for enc in ['utf-8-sig', 'utf-8', 'cp1256', 'latin1']:
                try:
                    df = pd.read_csv(file_path, encoding=enc, sep=None, engine='python')
                    break
                except (UnicodeDecodeError, pd.errors.ParserError):
                    continue
            if df is None:
                raise ValueError(f"تعذرت قراءة الملف: {file_path}")
        else:
            raise ValueError(f"امتداد غير مدعوم: {ext}")

        df.columns = [cls.normalize_column_name(c) for c in df.columns]
        return df

    @classmethod
    def read_records(cls, file_path: str) -> List[Dict]:
        """قراءة سجلات من ملف JSON أو CSV أو Excel"""
        if file_path.lower().endswith('.json'):
            with open(file_path, encoding='utf-8') as fh:
                data = json.load(fh)
            return cls.as_records(data, file_path)
        return cls.read_table(file_path).to_dict('records')
