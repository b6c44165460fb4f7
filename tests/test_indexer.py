"""Tests for owner indexing."""
import pytest

from processors import ContractError, EventIndex, index_by_owner
from snapshot.models import Collection, Order, Visit


def order(order_id, rep, clinic="c1", total=0.0):
    return Order(order_id, rep, clinic, None, total=total)


class TestIndexByOwner:
    def test_groups_in_input_order(self):
        orders = [order("1", "u1"), order("2", "u2"), order("3", "u1")]
        index = index_by_owner(orders)
        assert list(index) == ["u1", "u2"]
        assert [o.order_id for o in index["u1"]] == ["1", "3"]

    def test_skips_missing_owner(self):
        orders = [order("1", None), order("2", ""), order("3", "u1")]
        index = index_by_owner(orders)
        assert list(index) == ["u1"]
        assert sum(len(bucket) for bucket in index.values()) == 1

    def test_custom_key(self):
        orders = [order("1", "u1", "c1"), order("2", "u2", "c1"), order("3", "u1", None)]
        assert [o.order_id for o in index_by_owner(orders, "clinic_id")["c1"]] == ["1", "2"]
        by_callable = index_by_owner(orders, lambda o: o.order_id)
        assert set(by_callable) == {"1", "2", "3"}

    def test_empty_input(self):
        assert index_by_owner([]) == {}

    @pytest.mark.parametrize("bad", [None, {"u1": []}, "orders", (o for o in [])])
    def test_rejects_non_list(self, bad):
        with pytest.raises(ContractError):
            index_by_owner(bad)

    def test_rejects_bad_key(self):
        with pytest.raises(ContractError):
            index_by_owner([order("1", "u1")], key=42)


class TestEventIndex:
    def test_cohort(self):
        index = EventIndex.build(
            [order("1", "u1", total=100)],
            [Collection("k1", "u1", "c1", None, 50)],
            [Visit("v1", "u2", None)],
        )
        orders, collections, visits = index.cohort("u1")
        assert [o.order_id for o in orders] == ["1"]
        assert [c.collection_id for c in collections] == ["k1"]
        assert visits == []

    def test_unknown_owner_is_empty(self):
        index = EventIndex.build([], [], [])
        assert index.cohort("nobody") == ([], [], [])
