"""
فهرسة السجلات حسب المالك - Event Indexer

One pass per array, so roster-sized reports avoid filtering the whole
table once per representative or clinic.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Tuple, Union

from .exceptions import ContractError

logger = logging.getLogger(__name__)

OwnerKey = Union[str, Callable]


def _key_getter(key: OwnerKey) -> Callable:
    if callable(key):
        return key
    if isinstance(key, str):
        return lambda record: getattr(record, key, None)
    raise ContractError(f"key must be an attribute name or a callable, got {type(key).__name__}")


def index_by_owner(records, key: OwnerKey = 'representative_id') -> Dict[str, List]:
    """
    تجميع السجلات حسب معرّف المالك

    Records whose owner id is missing or blank are skipped rather than
    bucketed, so they never aggregate into a shared "unknown" owner.
    """
    if not isinstance(records, (list, tuple)):
        raise ContractError(f"records must be a list, got {type(records).__name__}")

    get_owner = _key_getter(key)
    index: Dict[str, List] = {}
    skipped = 0
    for record in records:
        owner = get_owner(record)
        if owner is None or owner == '':
            skipped += 1
            continue
        index.setdefault(owner, []).append(record)

    if skipped:
        logger.debug("index_by_owner skipped %d record(s) without an owner", skipped)
    return index


@dataclass
class EventIndex:
    """فهارس الطلبات والتحصيلات والزيارات لنفس المفتاح"""
    orders: Dict[str, List] = field(default_factory=dict)
    collections: Dict[str, List] = field(default_factory=dict)
    visits: Dict[str, List] = field(default_factory=dict)

    @classmethod
    def build(cls, orders, collections, visits, key: OwnerKey = 'representative_id') -> 'EventIndex':
        return cls(
            orders=index_by_owner(orders, key),
            collections=index_by_owner(collections, key),
            visits=index_by_owner(visits, key),
        )

    def cohort(self, owner_id) -> Tuple[List, List, List]:
        """(الطلبات، التحصيلات، الزيارات) لمالك واحد"""
        return (
            self.orders.get(owner_id, []),
            self.collections.get(owner_id, []),
            self.visits.get(owner_id, []),
        )
