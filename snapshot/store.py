"""
لقطة البيانات - In-memory data snapshot

The engine never talks to a database. A caller hands it one immutable
snapshot of orders, collections, visits, clinics and users per request;
concurrent readers may share it freely.
"""

import json
import logging
from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Tuple

from processors.exceptions import ContractError
from processors.file_transformer import FileTransformer
from .models import Clinic, Collection, Order, Representative, Visit

logger = logging.getLogger(__name__)


def _section(data: Mapping, name: str):
    value = data.get(name)
    return [] if value is None else value


@dataclass(frozen=True)
class Snapshot:
    """لقطة ثابتة من السجلات"""
    orders: Tuple[Order, ...] = ()
    collections: Tuple[Collection, ...] = ()
    visits: Tuple[Visit, ...] = ()
    clinics: Tuple[Clinic, ...] = ()
    users: Tuple[Representative, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping) -> 'Snapshot':
        """
        بناء اللقطة من قاموس خام

        Args:
            data: {'orders': [...], 'collections': [...], 'visits': [...],
                   'clinics': [...], 'users': [...]}; every key is optional
        """
        if not isinstance(data, Mapping):
            raise ContractError(f"snapshot must be a mapping, got {type(data).__name__}")

        users = data.get('users')
        if users is None:
            users = data.get('representatives', [])

        snapshot = cls(
            orders=tuple(FileTransformer.transform_orders(_section(data, 'orders'))),
            collections=tuple(FileTransformer.transform_collections(_section(data, 'collections'))),
            visits=tuple(FileTransformer.transform_visits(_section(data, 'visits'))),
            clinics=tuple(FileTransformer.transform_clinics(_section(data, 'clinics'))),
            users=tuple(FileTransformer.transform_users([] if users is None else users)),
        )
        logger.debug(
            "Snapshot loaded: %d orders, %d collections, %d visits, %d clinics, %d users",
            len(snapshot.orders), len(snapshot.collections), len(snapshot.visits),
            len(snapshot.clinics), len(snapshot.users),
        )
        return snapshot

    @classmethod
    def from_json_file(cls, file_path: str) -> 'Snapshot':
        """قراءة لقطة كاملة من ملف JSON"""
        with open(file_path, encoding='utf-8') as fh:
            return cls.from_dict(json.load(fh))

    @classmethod
    def from_files(cls, **paths: Optional[str]) -> 'Snapshot':
        """
        بناء اللقطة من ملف لكل نوع سجلات (JSON / CSV / Excel)

        Example:
            Snapshot.from_files(orders='orders.xlsx', collections='collections.csv')
        """
        unknown = set(paths) - {'orders', 'collections', 'visits', 'clinics', 'users'}
        if unknown:
            raise ContractError(f"unknown record types: {', '.join(sorted(unknown))}")
        data = {name: FileTransformer.read_records(path) for name, path in paths.items() if path}
        return cls.from_dict(data)

    # ==================== الاستعلامات ====================

    @property
    def clinics_by_id(self) -> Dict[str, Clinic]:
        return {clinic.clinic_id: clinic for clinic in self.clinics}

    @property
    def users_by_id(self) -> Dict[str, Representative]:
        return {user.user_id: user for user in self.users}

    def clinic(self, clinic_id: str) -> Optional[Clinic]:
        return self.clinics_by_id.get(clinic_id)

    def representative(self, user_id: str) -> Optional[Representative]:
        return self.users_by_id.get(user_id)
