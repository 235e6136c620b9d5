"""
Tests for the built-in constraint kinds: evaluators, factories and default
messages.
"""

import re
import uuid
from decimal import Decimal

import pytest

from vetta import (
    Field,
    Schema,
    array_max_size,
    array_min_size,
    is_boolean,
    is_defined,
    is_in,
    is_int,
    is_not_empty,
    is_number,
    is_string,
    is_uuid,
    matches,
    max_length,
    max_value,
    min_length,
    min_value,
    transform,
)
from vetta.constraints import builtins


class TestTypeChecks:

    def test_is_string(self):
        assert builtins.eval_is_string("x", (), None)
        assert not builtins.eval_is_string(1, (), None)

    def test_is_int_rejects_bool_and_strings(self):
        assert builtins.eval_is_int(3, (), None)
        assert not builtins.eval_is_int(True, (), None)
        assert not builtins.eval_is_int("1", (), None)
        assert not builtins.eval_is_int(1.0, (), None)

    def test_is_number(self):
        assert builtins.eval_is_number(1, (), None)
        assert builtins.eval_is_number(1.5, (), None)
        assert builtins.eval_is_number(Decimal("2.5"), (), None)
        assert not builtins.eval_is_number(float("nan"), (), None)
        assert not builtins.eval_is_number(float("inf"), (), None)
        assert not builtins.eval_is_number(False, (), None)

    def test_is_boolean(self):
        assert builtins.eval_is_boolean(False, (), None)
        assert not builtins.eval_is_boolean(0, (), None)


class TestRanges:

    def test_min(self):
        assert builtins.eval_min(1, (1,), None)
        assert not builtins.eval_min(0, (1,), None)
        assert not builtins.eval_min("5", (1,), None)

    def test_max(self):
        assert builtins.eval_max(10, (10,), None)
        assert not builtins.eval_max(11, (10,), None)

    def test_lengths(self):
        assert builtins.eval_min_length("abc", (3,), None)
        assert not builtins.eval_min_length("ab", (3,), None)
        assert builtins.eval_max_length("ab", (3,), None)
        assert not builtins.eval_max_length(["a"], (3,), None)

    def test_array_sizes(self):
        assert builtins.eval_array_min_size([1], (1,), None)
        assert not builtins.eval_array_min_size([], (1,), None)
        assert not builtins.eval_array_min_size("abc", (1,), None)
        assert builtins.eval_array_max_size((1, 2), (2,), None)
        assert not builtins.eval_array_max_size([1, 2, 3], (2,), None)


class TestMembership:

    def test_is_in(self):
        assert builtins.eval_is_in("TWD", (("TWD", "HKD"),), None)
        assert not builtins.eval_is_in("USD", (("TWD", "HKD"),), None)

    def test_is_in_keeps_bool_and_int_apart(self):
        assert not builtins.eval_is_in(True, ((1, 2),), None)
        assert not builtins.eval_is_in(1, ((True,),), None)
        assert builtins.eval_is_in(True, ((True,),), None)

    def test_factory_stores_tuple(self):
        c = is_in(["TWD", "HKD"])
        assert c.parameters == (("TWD", "HKD"),)


class TestUUID:

    def test_any_version(self):
        assert builtins.eval_is_uuid(str(uuid.uuid4()), (), None)
        assert builtins.eval_is_uuid(str(uuid.uuid1()).upper(), (), None)
        assert not builtins.eval_is_uuid("not-a-uuid", (), None)
        assert not builtins.eval_is_uuid(uuid.uuid4(), (), None)

    def test_version_4(self):
        c = is_uuid(4)
        assert c.parameters == ("4",)
        assert builtins.eval_is_uuid(str(uuid.uuid4()), c.parameters, None)
        assert not builtins.eval_is_uuid(str(uuid.uuid1()), c.parameters, None)

    def test_unsupported_version(self):
        with pytest.raises(ValueError, match="Unsupported UUID version"):
            is_uuid(7)


class TestPresence:

    def test_is_not_empty(self):
        assert builtins.eval_is_not_empty("x", (), None)
        assert builtins.eval_is_not_empty(0, (), None)
        assert not builtins.eval_is_not_empty("", (), None)
        assert not builtins.eval_is_not_empty(None, (), None)

    def test_is_defined(self):
        assert builtins.eval_is_defined("", (), None)
        assert not builtins.eval_is_defined(None, (), None)

    def test_presence_flags(self, registry):
        assert registry.get("isNotEmpty").checks_presence
        assert registry.get("isDefined").checks_presence
        assert not registry.get("isString").checks_presence


class TestMatches:

    def test_factory_compiles(self):
        c = matches(r"^[A-Z]{3}$")
        assert isinstance(c.parameters[0], re.Pattern)

    def test_evaluate(self):
        pattern = re.compile(r"^[A-Z]{3}$")
        assert builtins.eval_matches("TWD", (pattern,), None)
        assert not builtins.eval_matches("twd", (pattern,), None)
        assert builtins.eval_matches("abc", ("b",), None)


# ============================================================================
# Default messages, end to end
# ============================================================================

class Sample(Schema):
    name = Field(str, is_string(), min_length(2), max_length(4), optional=True)
    count = Field(int, is_int(), min_value(1), max_value(9), optional=True)
    ratio = Field(float, is_number(), optional=True)
    active = Field(bool, is_boolean(), optional=True)
    ref = Field(str, is_uuid(), optional=True)
    tags = Field([str], array_min_size(1), array_max_size(2), optional=True)
    code = Field(str, matches(r"^[A-Z]+$"), optional=True)
    note = Field(str, is_defined(), is_not_empty(), optional=True)


class TestDefaultMessages:

    def _errors(self, validator, payload):
        return validator.validate(transform(payload, Sample)).flatten()

    def test_type_messages(self, validator):
        errors = self._errors(validator, {"name": 5, "count": "3", "ratio": "x", "active": "yes"})
        assert errors["name"] == [
            "name must be a string",
            "name must be longer than or equal to 2 characters",
            "name must be shorter than or equal to 4 characters",
        ]
        assert errors["count"] == [
            "count must be an integer number",
            "count must not be less than 1",
            "count must not be greater than 9",
        ]
        assert errors["ratio"] == ["ratio must be a number conforming to the specified constraints"]
        assert errors["active"] == ["active must be a boolean value"]

    def test_range_messages(self, validator):
        errors = self._errors(validator, {"count": 10, "tags": ["a", "b", "c"]})
        assert errors == {
            "count": ["count must not be greater than 9"],
            "tags": ["tags must contain no more than 2 elements"],
        }

    def test_uuid_and_matches(self, validator):
        errors = self._errors(validator, {"ref": "123", "code": "abc"})
        assert errors == {
            "ref": ["ref must be a UUID"],
            "code": ["code must match ^[A-Z]+$ regular expression"],
        }

    def test_empty_string(self, validator):
        errors = self._errors(validator, {"note": ""})
        assert errors == {"note": ["note should not be empty"]}

    def test_valid_sample(self, validator):
        payload = {
            "name": "abc",
            "count": 5,
            "ratio": 0.5,
            "active": True,
            "ref": str(uuid.uuid4()),
            "tags": ["a"],
            "code": "TWD",
            "note": "hi",
        }
        assert not validator.validate(transform(payload, Sample))
