"""
Tests for the synchronous validator: the Store / Order scenarios,
inheritance ordering, optional and conditional fields, array alignment
and shape mismatches.
"""

import pytest

from vetta import (
    NON_FIELD_ERRORS,
    ConstraintResult,
    Field,
    FieldSpec,
    Schema,
    ValidationConfig,
    Validator,
    array_min_size,
    build,
    check,
    constraint,
    is_defined,
    is_in,
    is_int,
    is_not_empty,
    is_string,
    min_value,
    transform,
    validate,
)
from vetta.exceptions import UnknownConstraintKind


class Item(Schema):
    sku = Field(str, is_string())
    qty = Field(int, is_int(), min_value(1))


class Store(Schema):
    id = Field(str, is_string())
    currency = Field(str, is_in(["TWD", "HKD"]))
    items = Field([Item], array_min_size(1))


def _is_pickup(order):
    return order.deliveryOption == "pickup"


def _is_delivery(order):
    return order.deliveryOption == "delivery"


class Order(Schema):
    deliveryOption = Field(str, is_in(["pickup", "delivery"]))
    pickupLocation = Field(str, is_not_empty(applies_if=_is_pickup))
    deliveryAddress = Field(str, is_not_empty(applies_if=_is_delivery))


# ============================================================================
# Scenarios
# ============================================================================

class TestStoreScenario:

    def test_top_level_failures(self, validator):
        errors = validator.validate(transform({"currency": "USD", "items": []}, Store))
        assert errors.flatten() == {
            "id": ["id is required"],
            "currency": ["currency must be one of TWD, HKD"],
            "items": ["items must contain at least 1 elements"],
        }
        assert not errors.children

    def test_nested_item_failure(self, validator):
        raw = {"id": "s1", "currency": "TWD", "items": [{"sku": "x", "qty": 0}]}
        errors = validator.validate(transform(raw, Store))
        assert errors.flatten() == {"items[0].qty": ["qty must not be less than 1"]}
        assert not errors.field_errors
        assert list(errors.child("items", 0).field_errors["qty"]) == ["qty must not be less than 1"]

    def test_valid_store(self, validator):
        raw = {"id": "s1", "currency": "HKD", "items": [{"sku": "x", "qty": 2}]}
        errors = validator.validate(transform(raw, Store))
        assert errors.is_empty
        assert not errors

    def test_module_level_validate(self):
        errors = validate(transform({"currency": "TWD", "items": []}, Store))
        assert "id" in errors.field_errors


class TestOrderScenario:

    def test_pickup_without_location(self, validator):
        raw = {"deliveryOption": "pickup", "deliveryAddress": "123 Main"}
        errors = validator.validate(transform(raw, Order))
        assert errors.flatten() == {"pickupLocation": ["pickupLocation should not be empty"]}

    def test_delivery_without_pickup_location(self, validator):
        raw = {"deliveryOption": "delivery", "deliveryAddress": "123 Main"}
        assert not validator.validate(transform(raw, Order))

    def test_irrelevant_field_not_validated(self, validator):
        raw = {"deliveryOption": "pickup", "pickupLocation": "Store 1", "deliveryAddress": ""}
        assert not validator.validate(transform(raw, Order))

    def test_empty_location(self, validator):
        raw = {"deliveryOption": "pickup", "pickupLocation": ""}
        errors = validator.validate(transform(raw, Order))
        assert errors.flatten() == {"pickupLocation": ["pickupLocation should not be empty"]}


# ============================================================================
# Algorithm
# ============================================================================

class TestRequiredAndOptional:

    def test_required_message_once(self, validator):
        class Named(Schema):
            name = Field(str, is_string(), min_value(3))

        errors = validator.validate(transform({}, Named))
        assert errors.flatten() == {"name": ["name is required"]}

    def test_required_without_constraints(self, validator):
        class Bare(Schema):
            note = Field(str)

        assert validator.validate(transform({}, Bare)).flatten() == {"note": ["note is required"]}

    def test_presence_check_replaces_required(self, validator):
        class Named(Schema):
            name = Field(str, is_string(), is_defined())

        errors = validator.validate(transform({"name": None}, Named))
        assert errors.flatten() == {"name": ["name should not be null or undefined"]}

    def test_optional_null_nested_passes(self, validator):
        class Provider(Schema):
            name = Field(str, is_string(), is_not_empty())

        class Shop(Schema):
            provider = Field(Provider, optional=True)

        assert not validator.validate(transform({"provider": None}, Shop))
        assert not validator.validate(transform({}, Shop))

        errors = validator.validate(transform({"provider": {}}, Shop))
        assert errors.flatten() == {"provider.name": ["name should not be empty"]}

    def test_required_nested_not_recursed(self, validator):
        class Shop(Schema):
            store = Field(Store)

        errors = validator.validate(transform({}, Shop))
        assert errors.flatten() == {"store": ["store is required"]}
        assert not errors.children

    def test_custom_required_message(self, validator):
        class Named(Schema):
            name = Field(str, is_string(), error_messages={"required": "please give {{ property }}"})

        errors = validator.validate(transform({}, Named))
        assert errors.flatten() == {"name": ["please give name"]}

    def test_skip_missing_properties(self, registry):
        validator = Validator(registry, ValidationConfig(skip_missing_properties=True))
        errors = validator.validate(transform({"currency": "USD"}, Store))
        assert errors.flatten() == {"currency": ["currency must be one of TWD, HKD"]}

    def test_config_required_message(self, registry):
        validator = Validator(registry, ValidationConfig(required_message="{{ property }} missing"))
        errors = validator.validate(transform({"currency": "TWD", "items": [{"sku": "a", "qty": 1}]}, Store))
        assert errors.flatten() == {"id": ["id missing"]}


class TestConstraintEvaluation:

    def test_no_short_circuit(self, validator):
        errors = validator.validate(transform({"sku": 1, "qty": "0"}, Item))
        assert errors.flatten() == {
            "sku": ["sku must be a string"],
            "qty": ["qty must be an integer number", "qty must not be less than 1"],
        }

    def test_inherited_before_own(self, validator):
        class Base(Schema):
            code = Field(str, is_string())

        class Derived(Base):
            code = Field(None, constraint("min", 5))

        errors = validator.validate(transform({"code": 3}, Derived))
        assert errors.flatten() == {"code": ["code must be a string", "code must not be less than 5"]}

    def test_conditional_false_contributes_nothing(self, validator):
        class Flagged(Schema):
            strict = Field(bool)
            value = Field(int, is_int(applies_if=lambda o: o.strict))

        assert not validator.validate(transform({"strict": False, "value": "bad"}, Flagged))
        errors = validator.validate(transform({"strict": True, "value": "bad"}, Flagged))
        assert errors.flatten() == {"value": ["value must be an integer number"]}

    def test_predicate_sees_transformed_siblings(self, validator):
        seen = []

        def record(siblings):
            seen.append(siblings.item)
            return True

        class Holder(Schema):
            item = Field(Item)
            tag = Field(str, is_string(applies_if=record))

        validator.validate(transform({"item": {"sku": "a", "qty": 1}, "tag": "t"}, Holder))
        assert isinstance(seen[0], Item)

    def test_validate_if_skips_field(self, validator):
        class Gift(Schema):
            wrapped = Field(bool)
            note = Field(str, is_string(), validate_if=lambda o: o.wrapped)

        assert not validator.validate(transform({"wrapped": False}, Gift))
        assert not validator.validate(transform({"wrapped": False, "note": 5}, Gift))
        errors = validator.validate(transform({"wrapped": True, "note": 5}, Gift))
        assert errors.flatten() == {"note": ["note must be a string"]}

    def test_constraint_message_override(self, validator):
        class Priced(Schema):
            price = Field(int, min_value(1, message="{{ property }} is {{ value }}, too low"))

        errors = validator.validate(transform({"price": 0}, Priced))
        assert errors.flatten() == {"price": ["price is 0, too low"]}

    def test_evaluator_result_message(self, registry):
        registry.register(
            "isEven",
            lambda value, params, siblings: ConstraintResult.ok() if value % 2 == 0
            else ConstraintResult.fail(f"{value} is odd"),
        )

        class Even(Schema):
            n = Field(int, constraint("isEven"))

        errors = Validator(registry).validate(transform({"n": 3}, Even))
        assert errors.flatten() == {"n": ["3 is odd"]}

    def test_evaluator_value_error_is_failure(self, registry):
        def strict(value, params, siblings):
            raise ValueError("not acceptable")

        registry.register("strict", strict)

        class Thing(Schema):
            v = Field(int, constraint("strict"), is_int())

        errors = Validator(registry).validate(transform({"v": "x"}, Thing))
        assert errors.flatten() == {"v": ["not acceptable", "v must be an integer number"]}

    def test_evaluator_bad_return_type_propagates(self, registry):
        registry.register("sloppy", lambda value, params, siblings: "yes")

        class Thing(Schema):
            v = Field(int, constraint("sloppy"))

        with pytest.raises(TypeError, match="must return bool"):
            Validator(registry).validate(transform({"v": 1}, Thing))

    def test_siblings_available_to_evaluator(self, registry):
        registry.register(
            "matchesField",
            lambda value, params, siblings: value == getattr(siblings, params[0]),
            message="{{ property }} must match {{ constraints[0] }}",
        )

        class Signup(Schema):
            password = Field(str, is_string())
            confirm = Field(str, constraint("matchesField", "password"))

        validator = Validator(registry)
        assert not validator.validate(transform({"password": "a", "confirm": "a"}, Signup))
        errors = validator.validate(transform({"password": "a", "confirm": "b"}, Signup))
        assert errors.flatten() == {"confirm": ["confirm must match password"]}

    def test_instance_not_mutated(self, validator):
        store = transform({"currency": "USD", "items": [{"sku": "a", "qty": 0}]}, Store)
        before = repr(store)
        validator.validate(store)
        assert repr(store) == before


class TestArrays:

    def test_positional_alignment(self, validator):
        raw = {
            "id": "s1",
            "currency": "TWD",
            "items": [
                {"sku": "a", "qty": 1},
                {"sku": "b", "qty": 0},
                {"sku": 3, "qty": 2},
            ],
        }
        errors = validator.validate(transform(raw, Store))
        assert list(errors.children["items"]) == [1, 2]
        assert errors.child("items", 0) is None
        assert errors.flatten() == {
            "items[1].qty": ["qty must not be less than 1"],
            "items[2].sku": ["sku must be a string"],
        }

    def test_array_of_scalars_not_recursed(self, validator):
        class Tagged(Schema):
            tags = Field([str], array_min_size(2))

        errors = validator.validate(transform({"tags": ["a"]}, Tagged))
        assert errors.flatten() == {"tags": ["tags must contain at least 2 elements"]}
        assert not errors.children


class TestShapeMismatches:

    def test_array_field_given_string(self, validator):
        raw = {"id": "s1", "currency": "TWD", "items": "abc"}
        errors = validator.validate(transform(raw, Store))
        assert errors.flatten() == {
            "items": ["items must be an array", "items must contain at least 1 elements"],
        }
        assert not errors.children

    def test_nested_field_given_scalar(self, validator):
        class Shop(Schema):
            store = Field(Store)

        errors = validator.validate(transform({"store": "acme"}, Shop))
        assert errors.flatten() == {"store": ["store must be an object"]}

    def test_non_object_elements(self, validator):
        raw = {"id": "s1", "currency": "TWD", "items": ["x", {"sku": "a", "qty": 0}, 5]}
        errors = validator.validate(transform(raw, Store))
        assert errors.flatten() == {
            "items": ["each value in items must be an object"],
            "items[1].qty": ["qty must not be less than 1"],
        }

    def test_directly_built_instances(self, validator):
        store = Store(id="s1", currency="TWD", items=[Item(sku="a", qty=0)])
        assert validator.validate(store).flatten() == {"items[0].qty": ["qty must not be less than 1"]}

        raw_items = Store(id="s1", currency="TWD", items=[{"sku": "a", "qty": 1}])
        assert validator.validate(raw_items).flatten() == {
            "items": ["each value in items must be an object"],
        }

    def test_custom_mismatch_message(self, validator):
        class Shop(Schema):
            store = Field(Store, error_messages={"nested": "{{ property }} is malformed"})

        errors = validator.validate(transform({"store": 1}, Shop))
        assert errors.flatten() == {"store": ["store is malformed"]}


class TestConfigurationErrors:

    def test_unknown_kind_raises(self, validator):
        class Strange(Schema):
            v = Field(int, constraint("isStrongPassword"))

        with pytest.raises(UnknownConstraintKind):
            validator.validate(transform({}, Strange))

    def test_unknown_kind_in_nested_schema_raises_even_when_absent(self, validator):
        inner = build("Inner", [FieldSpec("v", int, (constraint("mystery"),))])
        outer = build("Outer", [FieldSpec("inner", inner, optional=True)])
        with pytest.raises(UnknownConstraintKind):
            validator.validate(transform({}, outer))

    def test_requires_typed_instance(self, validator):
        with pytest.raises(TypeError, match="typed instance"):
            validator.validate({"id": "s1"}, Store)

    def test_freeze_registry_option(self, registry):
        Validator(registry, ValidationConfig(freeze_registry=True))
        assert registry.frozen


class TestCheck:

    def test_check_returns_instance_and_errors(self, validator):
        instance, errors = validator.check({"id": "s1", "currency": "HKD", "items": [{"sku": "a", "qty": 1}]}, Store)
        assert isinstance(instance, Store)
        assert not errors

    def test_check_non_mapping_root(self):
        instance, errors = check("nope", Store)
        assert instance is None
        assert errors.flatten() == {NON_FIELD_ERRORS: ["payload must be an object"]}

    def test_validate_with_explicit_descriptor(self, validator):
        store = transform({"currency": "TWD", "items": []}, Store.__schema__)
        errors = validator.validate(store, Store.__schema__)
        assert set(errors.field_errors) == {"id", "items"}
