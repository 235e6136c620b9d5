"""
Tests for the error tree: building, sealing and rendering.
"""

import pytest

from vetta import ErrorNode, Field, Schema, ValidationError, array_min_size, is_int, is_string, min_value, transform


def _tree():
    item = ErrorNode()
    item.add("qty", "min", "qty must not be less than 1", 0)

    root = ErrorNode()
    root.add("id", "required", "id is required")
    root.add("currency", "isIn", "currency must be one of TWD, HKD", "USD")
    root.attach_items("items", {2: item, 0: ErrorNode()})
    return root.seal()


class TestErrorNodeBuilding:

    def test_empty_node(self):
        node = ErrorNode()
        assert node.is_empty
        assert not node
        assert repr(node) == "<ErrorNode valid>"

    def test_add_keeps_order(self):
        node = ErrorNode()
        node.add("qty", "isInt", "first")
        node.add("qty", "min", "second")
        assert node.field_errors["qty"] == ["first", "second"]

    def test_attach_skips_empty(self):
        node = ErrorNode()
        node.attach("provider", ErrorNode())
        node.attach_items("items", {0: ErrorNode()})
        assert node.is_empty

    def test_attach_items_sorted_and_sparse(self):
        tree = _tree()
        assert list(tree.children["items"]) == [2]

    def test_sealed_is_read_only(self):
        tree = _tree()
        with pytest.raises(RuntimeError, match="sealed"):
            tree.add("x", "k", "m")
        with pytest.raises(TypeError):
            tree.field_errors["x"] = ("m",)
        assert tree.field_errors["id"] == ("id is required",)

    def test_seal_is_recursive(self):
        tree = _tree()
        with pytest.raises(RuntimeError):
            tree.child("items", 2).add("sku", "k", "m")


class TestErrorNodeRendering:

    def test_child_lookup(self):
        tree = _tree()
        assert tree.child("items", 2).field_errors["qty"] == ("qty must not be less than 1",)
        assert tree.child("items", 0) is None
        assert tree.child("items") is None
        assert tree.child("missing") is None

    def test_messages_depth_first(self):
        assert _tree().messages() == [
            "id is required",
            "currency must be one of TWD, HKD",
            "qty must not be less than 1",
        ]

    def test_flatten_paths(self):
        assert _tree().flatten() == {
            "id": ["id is required"],
            "currency": ["currency must be one of TWD, HKD"],
            "items[2].qty": ["qty must not be less than 1"],
        }

    def test_to_dict(self):
        assert _tree().to_dict() == {
            "field_errors": {
                "id": ["id is required"],
                "currency": ["currency must be one of TWD, HKD"],
            },
            "children": {
                "items": {
                    2: {"field_errors": {"qty": ["qty must not be less than 1"]}, "children": {}},
                },
            },
        }

    def test_as_validation_errors(self):
        errors = _tree().as_validation_errors()
        assert [e.property for e in errors] == ["id", "currency", "items"]
        currency = errors[1]
        assert currency.value == "USD"
        assert currency.constraints == {"isIn": "currency must be one of TWD, HKD"}

        items = errors[2]
        assert items.constraints == {}
        assert len(items.children) == 1
        element = items.children[0]
        assert isinstance(element, ValidationError)
        assert element.property == "2"
        assert element.children[0].to_dict() == {
            "property": "qty",
            "value": 0,
            "constraints": {"min": "qty must not be less than 1"},
            "children": [],
        }


class Item(Schema):
    sku = Field(str, is_string())
    qty = Field(int, is_int(), min_value(1))


class Store(Schema):
    id = Field(str, is_string())
    items = Field([Item], array_min_size(1))


class TestValidatorOutput:

    def test_constraint_kinds_recorded(self, validator):
        errors = validator.validate(transform({"items": [{"sku": "a", "qty": "0"}]}, Store))
        records = errors.as_validation_errors()
        assert records[0].property == "id"
        assert records[0].constraints == {"required": "id is required"}
        qty = records[1].children[0].children[0]
        assert qty.constraints == {
            "isInt": "qty must be an integer number",
            "min": "qty must not be less than 1",
        }
        assert qty.value == "0"

    def test_result_is_sealed(self, validator):
        errors = validator.validate(transform({}, Store))
        with pytest.raises(RuntimeError):
            errors.add("id", "x", "y")
