"""
Tests for the transformer and typed instances.
"""

import pytest

from vetta import (
    Field,
    Schema,
    TypedInstance,
    is_int,
    is_present,
    is_string,
    mismatches_of,
    schema_of,
    to_plain,
    transform,
)
from vetta.exceptions import ShapeMismatch
from vetta.faults import FaultDomain
from vetta.instance import mismatch_for


class Item(Schema):
    sku = Field(str, is_string())
    qty = Field(int, is_int())


class Provider(Schema):
    name = Field(str, is_string())


class Store(Schema):
    id = Field(str, is_string())
    tags = Field([str], optional=True)
    provider = Field(Provider, optional=True)
    items = Field([Item])


class TestTransform:

    def test_returns_schema_instance(self):
        store = transform({"id": "s1", "items": []}, Store)
        assert isinstance(store, Store)
        assert isinstance(store, TypedInstance)
        assert schema_of(store) is Store.__schema__

    def test_scalars_not_coerced(self):
        item = transform({"sku": 42, "qty": "1"}, Item)
        assert item.sku == 42
        assert item.qty == "1"

    def test_missing_and_null_are_absent(self):
        store = transform({"id": None}, Store)
        assert store.id is None
        assert "id" not in store
        assert not is_present(store, "items")

    def test_nested(self):
        store = transform({"provider": {"name": "acme"}}, Store)
        assert isinstance(store.provider, Provider)
        assert store.provider.name == "acme"

    def test_array_of_nested_keeps_order(self):
        store = transform({"items": [{"sku": "a"}, {"sku": "b"}, {"sku": "c"}]}, Store)
        assert [item.sku for item in store.items] == ["a", "b", "c"]
        assert all(isinstance(item, Item) for item in store.items)

    def test_array_of_scalars(self):
        store = transform({"tags": ("x", "y")}, Store)
        assert store.tags == ["x", "y"]

    def test_unknown_keys_ignored(self):
        store = transform({"id": "s1", "extra": True}, Store)
        assert to_plain(store) == {"id": "s1"}

    def test_raw_not_mutated(self):
        raw = {"items": [{"sku": "a", "qty": 1}]}
        transform(raw, Store)
        assert raw == {"items": [{"sku": "a", "qty": 1}]}

    def test_accepts_descriptor(self):
        item = transform({"sku": "a"}, Item.__schema__)
        assert isinstance(item, Item)


class TestShapeMismatch:

    def test_root_must_be_mapping(self):
        with pytest.raises(ShapeMismatch) as exc_info:
            transform(["not", "a", "mapping"], Store)
        assert exc_info.value.expected == "object"
        assert exc_info.value.domain == FaultDomain.TRANSFORM

    def test_nested_mismatch_recorded(self):
        store = transform({"id": "s1", "provider": "acme"}, Store)
        assert store.provider == "acme"
        mismatch = mismatch_for(store, "provider")
        assert mismatch.expected == "object"
        assert mismatch.field == "provider"
        # the rest of the payload is still shaped
        assert store.id == "s1"

    def test_array_mismatch_recorded(self):
        store = transform({"items": "abc"}, Store)
        assert mismatch_for(store, "items").expected == "array"

    def test_string_is_not_a_sequence(self):
        store = transform({"tags": "abc"}, Store)
        assert mismatch_for(store, "tags") is not None

    def test_element_mismatch_keeps_position(self):
        store = transform({"items": [{"sku": "a"}, 7, {"sku": "c"}]}, Store)
        assert len(store.items) == 3
        assert store.items[1] == 7
        assert isinstance(store.items[2], Item)
        assert set(mismatches_of(store)) == {("items", 1)}
        assert mismatch_for(store, "items", 1).index == 1

    def test_nested_mismatch_stays_on_owner(self):
        class Outer(Schema):
            store = Field(Store)

        outer = transform({"store": {"provider": 1}}, Outer)
        assert mismatches_of(outer) == {}
        assert mismatch_for(outer.store, "provider") is not None


class TestTypedInstance:

    def test_getitem(self):
        item = transform({"sku": "a"}, Item)
        assert item["sku"] == "a"
        assert item["qty"] is None
        with pytest.raises(KeyError):
            item["color"]

    def test_iter_present_fields(self):
        item = transform({"qty": 1, "sku": "a"}, Item)
        assert list(item) == ["sku", "qty"]

    def test_equality(self):
        assert transform({"sku": "a"}, Item) == transform({"sku": "a"}, Item)
        assert transform({"sku": "a"}, Item) != transform({"sku": "b"}, Item)

    def test_repr(self):
        assert repr(transform({"sku": "a"}, Item)) == "Item(sku='a')"

    def test_to_plain_nested(self):
        raw = {"id": "s1", "items": [{"sku": "a", "qty": 1}], "provider": {"name": "p"}}
        assert to_plain(transform(raw, Store)) == {
            "id": "s1",
            "provider": {"name": "p"},
            "items": [{"sku": "a", "qty": 1}],
        }

    def test_field_named_like_mapping_method(self):
        class Cart(Schema):
            items = Field([str])
            keys = Field(str, optional=True)

        cart = transform({"items": ["a"], "keys": "k"}, Cart)
        assert cart.items == ["a"]
        assert cart.keys == "k"
