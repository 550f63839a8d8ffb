"""
Tests for the structural validator (domains/label_hub/core/typecheck.py)
"""

import pytest

from domains.label_hub.core.typecheck import (
    MISSING,
    RArray,
    RBoolean,
    RNull,
    RNumber,
    RObject,
    RString,
    ValidationFailure,
    Validator,
    get_basic_type,
)


# ---------------------------------------------------------------------------
# Basic types
# ---------------------------------------------------------------------------

class TestBasicType:
    @pytest.mark.parametrize("value,expected", [
        (None, "null"),
        (True, "boolean"),
        (0, "number"),
        (1.5, "number"),
        ("x", "string"),
        ([], "array"),
        ({}, "object"),
        (MISSING, "undefined"),
    ])
    def test_json_values(self, value, expected):
        assert get_basic_type(value) == expected

    def test_non_json_value_raises(self):
        with pytest.raises(TypeError):
            get_basic_type(object())


class TestPrimitives:
    def test_boolean(self):
        assert RBoolean().validate(False) is None
        assert RBoolean().validate(0) == ValidationFailure([], "boolean", 0)

    def test_null(self):
        assert RNull().validate(None) is None
        assert RNull().validate("") == ValidationFailure([], "null", "")

    def test_number_rejects_bool(self):
        assert RNumber().validate(True) == ValidationFailure([], "number", True)
        assert RNumber().validate(3) is None

    def test_number_refinement(self):
        positive = RNumber(lambda n: None if n > 0 else "a positive number")
        assert positive.validate(2) is None
        assert positive.validate(-1) == ValidationFailure([], "a positive number", -1)

    def test_string_refinement(self):
        short = RString(lambda s: None if len(s) < 3 else "a short string")
        assert short.validate("ab") is None
        assert short.validate("abcd") == ValidationFailure([], "a short string", "abcd")
        assert short.validate(5) == ValidationFailure([], "string", 5)


# ---------------------------------------------------------------------------
# Objects and arrays
# ---------------------------------------------------------------------------

class TestObject:
    shape = RObject({"a": RString(), "b": RNumber()})

    def test_accepts_exact_shape(self):
        assert self.shape.validate({"a": "x", "b": 1}) is None

    def test_non_object_reports_basic_type(self):
        assert self.shape.validate([1]) == ValidationFailure([], "object", "array")

    def test_unknown_key_rejected_even_when_declared_keys_valid(self):
        failure = self.shape.validate({"a": "x", "b": 1, "c": [1]})
        assert failure == ValidationFailure(["c"], "undefined", "array")

    def test_unknown_key_checked_before_declared_keys(self):
        failure = self.shape.validate({"a": 5, "zzz": None})
        assert failure == ValidationFailure(["zzz"], "undefined", "null")

    def test_missing_key(self):
        failure = self.shape.validate({"a": "x"})
        assert failure.path == ["b"]
        assert failure.expected == "number"
        assert failure.got is MISSING

    def test_declaration_order_wins(self):
        failure = self.shape.validate({"b": "wrong", "a": 1})
        assert failure.path == ["a"]

    def test_nested_path(self):
        shape = RObject({"outer": RObject({"inner": RArray(RNumber())})})
        failure = shape.validate({"outer": {"inner": [1, 2, "three"]}})
        assert failure == ValidationFailure(["outer", "inner", 2], "number", "three")
        assert str(failure) == "In outer.inner.2, expected number, but got three."


class TestArray:
    def test_non_array_reports_basic_type(self):
        assert RArray(RNumber()).validate({"x": 1}) == ValidationFailure([], "array", "object")

    def test_first_failing_index_prefixed(self):
        failure = RArray(RString()).validate(["a", 1, 2])
        assert failure == ValidationFailure([1], "string", 1)

    def test_whole_array_refinement_runs_after_elements(self):
        pair = RArray(RNumber(), lambda items: None if len(items) == 2 else "a pair")
        assert pair.validate([1, 2]) is None
        assert pair.validate([1]) == ValidationFailure([], "a pair", [1])
        assert pair.validate(["x"]).expected == "number"

    def test_empty_array(self):
        assert RArray(RBoolean()).validate([]) is None


# ---------------------------------------------------------------------------
# Failure and registry
# ---------------------------------------------------------------------------

class TestValidationFailure:
    def test_unpathed_rendering(self):
        failure = ValidationFailure(None, "valid JSON", "garbage")
        assert str(failure) == "Expected valid JSON, but got garbage."

    def test_shift_on_unpathed_raises(self):
        with pytest.raises(ValueError):
            ValidationFailure(None, "x", 1).shift("a")

    def test_to_dict_renders_missing(self):
        data = ValidationFailure(["k"], "string", MISSING).to_dict()
        assert data["got"] == "undefined"
        assert data["path"] == ["k"]


class TestValidator:
    validator = Validator({"point": RObject({"x": RNumber(), "y": RNumber()})})

    def test_returns_value_on_success(self):
        value = {"x": 1, "y": 2}
        assert self.validator.validate(value, "point") is value

    def test_returns_failure(self):
        result = self.validator.validate({"x": 1}, "point")
        assert isinstance(result, ValidationFailure)
        assert result.path == ["y"]
