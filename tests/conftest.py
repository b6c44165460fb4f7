from datetime import datetime, timezone

import pytest

from snapshot.store import Snapshot


@pytest.fixture
def now():
    return datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def raw_snapshot():
    """Snapshot as the hosted backend returns it (camelCase keys)."""
    return {
        "users": [
            {
                "id": "u1", "fullName": "أحمد علي", "username": "ahmed", "role": "medical_rep",
                "salesTarget": 2000, "visitsTarget": 4,
                "area": "Cairo", "line": "Line A", "manager": "m1",
            },
            {
                "id": "u2", "fullName": 'Sara, "Top" Rep', "username": "sara", "role": "medical_rep",
                "area": "Giza", "line": "Line A", "manager": "m1",
            },
            {
                "id": "u3", "fullName": "Omar", "username": "omar", "role": "medical_rep",
                "area": "Cairo", "line": "Line B", "manager": "m2",
            },
        ],
        "clinics": [
            {"id": "c1", "name": "عيادة النور", "creditLimit": 1000, "paymentTermsDays": 30, "area": "Cairo"},
            {"id": "c2", "name": "Smile Clinic", "area": "Giza"},
        ],
        "orders": [
            {
                "id": "o1", "representativeId": "u1", "clinicId": "c1",
                "orderDate": "2024-03-02T10:00:00Z", "totalAmount": 600,
                "items": [
                    {"productId": "p1", "productName": "Amoxicillin", "price": 10, "quantity": 30},
                    {"productId": "p2", "productName": "Panadol", "price": 100, "quantity": 3},
                ],
            },
            {
                "id": "o2", "representativeId": "u1", "clinicId": "c1",
                "orderDate": "2024-02-20T09:00:00Z", "total": 400,
                "items": [
                    {"productId": "p1", "productName": "Amoxicillin", "unitPrice": 10, "quantity": 40},
                ],
            },
            {
                "id": "o3", "representativeId": "u2", "clinicId": "c2",
                "orderDate": "2024-03-10T00:00:00Z", "totalAmount": 250,
                "items": [
                    {"productName": "Vitamin C", "price": 25, "quantity": 10},
                ],
            },
            {
                "id": "o4", "representativeId": None, "clinicId": "c2",
                "orderDate": "2024-03-11", "total": 999, "items": [],
            },
        ],
        "collections": [
            {"id": "k1", "representativeId": "u1", "clinicId": "c1", "collectionDate": "2024-03-05", "amount": 300},
            {"id": "k2", "representativeId": "u2", "clinicId": "c2", "collectionDate": "2024-03-12", "amount": 400},
        ],
        "visits": [
            {"id": "v1", "representativeId": "u1", "visitDate": "2024-03-01"},
            {"id": "v2", "representativeId": "u1", "visitDate": "2024-03-03"},
            {"id": "v3", "representativeId": "u1", "visitDate": "2024-02-10"},
            {"id": "v4", "representativeId": "u2", "visitDate": "2024-03-09"},
        ],
    }


@pytest.fixture
def snapshot(raw_snapshot):
    return Snapshot.from_dict(raw_snapshot)
