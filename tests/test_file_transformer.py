"""Tests for record normalization and snapshot loading."""
import json
from datetime import date, datetime, timezone

import pandas as pd
import pytest

from processors import ContractError, FileTransformer
from snapshot.models import Order
from snapshot.store import Snapshot


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestScalars:
    @pytest.mark.parametrize("raw,expected", [
        ("1,250.50 ج.م", 1250.5),
        ("300 SAR", 300.0),
        (42, 42.0),
        ("abc", 0.0),
        (None, 0.0),
        (float("nan"), 0.0),
        (True, 0.0),
        ("NaN", 0.0),
        ("inf", 0.0),
        ("-Infinity", 0.0),
        (float("inf"), 0.0),
    ])
    def test_parse_number(self, raw, expected):
        assert FileTransformer.parse_number(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        (12.0, "12"),
        (" c1 ", "c1"),
        ("", None),
        (None, None),
    ])
    def test_clean_id(self, raw, expected):
        assert FileTransformer.clean_id(raw) == expected

    @pytest.mark.parametrize("raw,expected", [
        ("2024-03-02T10:00:00Z", utc(2024, 3, 2, 10)),
        ("2024-03-02T12:00:00+02:00", utc(2024, 3, 2, 10)),
        ("2024-03-02", utc(2024, 3, 2)),
        ("15/03/2024", utc(2024, 3, 15)),
        (date(2024, 3, 2), utc(2024, 3, 2)),
        (datetime(2024, 3, 2, 9), utc(2024, 3, 2, 9)),
    ])
    def test_parse_date(self, raw, expected):
        assert FileTransformer.parse_date(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "garbage", 12345])
    def test_parse_date_unusable(self, raw):
        assert FileTransformer.parse_date(raw) is None

    def test_normalize_column_name(self):
        assert FileTransformer.normalize_column_name("  Total (EGP) ") == "Total_EGP"
        assert FileTransformer.normalize_column_name("اسم العيادة") == "اسم_العيادة"


class TestTransformOrders:
    def test_total_fallbacks(self):
        orders = FileTransformer.transform_orders([
            {"id": "1", "totalAmount": 120, "total": 999},
            {"id": "2", "total": "80"},
            {"id": "3"},
            {"id": "4", "totalAmount": 0, "total": 50},
            {"id": "5", "totalAmount": None, "total": 50},
        ])
        assert [o.total for o in orders] == [120.0, 80.0, 0.0, 0.0, 50.0]

    def test_missing_owner_and_date(self):
        order = FileTransformer.transform_orders([{"id": "1", "representativeId": "  ", "orderDate": "soon"}])[0]
        assert order.representative_id is None
        assert order.order_date is None

    def test_line_items(self):
        order = FileTransformer.transform_orders([{
            "id": "1",
            "items": [
                {"productId": "p1", "productName": "Panadol", "unitPrice": 12.5, "quantity": 2, "discount": 10},
                {"productName": "Vitamin C", "price": 5, "qty": 3},
                {"price": 1, "quantity": 1},
            ],
        }])[0]
        first, second, third = order.items
        assert (first.product_key, first.product_name, first.unit_price) == ("p1", "Panadol", 12.5)
        assert first.line_total == pytest.approx(25)
        assert first.discount_amount == pytest.approx(2.5)
        assert (second.product_key, second.quantity) == ("Vitamin C", 3.0)
        assert (third.product_key, third.product_name) == ("unknown", "غير محدد")

    def test_items_as_json_text(self):
        raw = {"id": "1", "items": json.dumps([{"productId": "p1", "price": 2, "quantity": 5}])}
        assert FileTransformer.transform_orders([raw])[0].items[0].line_total == pytest.approx(10)
        assert FileTransformer.transform_orders([{"id": "2", "items": "not json"}])[0].items == ()

    def test_dataframe_input(self):
        df = pd.DataFrame([
            {"id": 1, "representativeId": "u1", "orderDate": "2024-03-02", "total": 100.0},
            {"id": 2, "representativeId": "u2", "orderDate": "2024-03-03", "total": float("nan")},
        ])
        orders = FileTransformer.transform_orders(df)
        assert [o.order_id for o in orders] == ["1", "2"]
        assert [o.total for o in orders] == [100.0, 0.0]

    def test_model_instances_pass_through(self):
        order = Order("o1", "u1", "c1", None, total=5)
        assert FileTransformer.transform_orders([order]) == [order]

    def test_rejects_non_list(self):
        with pytest.raises(ContractError):
            FileTransformer.transform_orders({"id": "1"})
        with pytest.raises(ContractError):
            FileTransformer.transform_orders(["not a record"])


class TestReferenceRecords:
    def test_clinics_skip_missing_id(self):
        clinics = FileTransformer.transform_clinics([
            {"id": "c1", "name": "Alpha", "creditLimit": "5,000", "paymentTermsDays": 30.0},
            {"name": "No id"},
        ])
        assert len(clinics) == 1
        assert clinics[0].credit_limit == 5000.0
        assert clinics[0].payment_terms_days == 30

    def test_non_finite_numbers_are_missing(self):
        clinic = FileTransformer.transform_clinics([
            {"id": "c1", "name": "Alpha", "creditLimit": "NaN", "paymentTermsDays": "Infinity"},
        ])[0]
        assert clinic.credit_limit is None
        assert clinic.payment_terms_days is None
        user = FileTransformer.transform_users([{"id": "u1", "visitsTarget": "inf"}])[0]
        assert user.visits_target is None

    def test_users(self):
        user = FileTransformer.transform_users([
            {"id": "u1", "fullName": "Rep", "salesTarget": "2000", "visitsTarget": 20.0, "managerId": "m1"},
        ])[0]
        assert user.sales_target == 2000.0
        assert user.visits_target == 20
        assert user.manager == "m1"


class TestFiles:
    def test_read_csv(self, tmp_path):
        path = tmp_path / "collections.csv"
        path.write_text(
            "id,representativeId,amount,collectionDate\n"
            "1,u1,250.5,2024-03-05\n"
            "2,u2,100,2024-03-06\n",
            encoding="utf-8-sig",
        )
        collections = FileTransformer.transform_collections(FileTransformer.read_records(str(path)))
        assert [c.collection_id for c in collections] == ["1", "2"]
        assert collections[0].amount == pytest.approx(250.5)
        assert collections[1].collection_date == utc(2024, 3, 6)

    def test_unsupported_extension(self, tmp_path):
        with pytest.raises(ValueError):
            FileTransformer.read_table(str(tmp_path / "orders.pdf"))


class TestSnapshot:
    def test_from_dict(self, snapshot):
        assert len(snapshot.orders) == 4
        assert len(snapshot.users) == 3
        assert snapshot.clinic("c1").credit_limit == 1000.0
        assert snapshot.clinic("missing") is None
        assert snapshot.representative("u1").full_name == "أحمد علي"

    def test_representatives_alias(self):
        snap = Snapshot.from_dict({"representatives": [{"id": "u9", "fullName": "X"}]})
        assert [u.user_id for u in snap.users] == ["u9"]
        assert snap.orders == ()

    def test_rejects_non_mapping(self):
        with pytest.raises(ContractError):
            Snapshot.from_dict([1, 2])

    def test_from_json_file(self, tmp_path, raw_snapshot):
        path = tmp_path / "snapshot.json"
        path.write_text(json.dumps(raw_snapshot, ensure_ascii=False), encoding="utf-8")
        assert Snapshot.from_json_file(str(path)) == Snapshot.from_dict(raw_snapshot)

    def test_from_files(self, tmp_path, raw_snapshot):
        path = tmp_path / "visits.json"
        path.write_text(json.dumps(raw_snapshot["visits"]), encoding="utf-8")
        snap = Snapshot.from_files(visits=str(path), orders=None)
        assert len(snap.visits) == 4
        with pytest.raises(ContractError):
            Snapshot.from_files(invoices=str(path))
