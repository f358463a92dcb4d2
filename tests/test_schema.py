"""
Tests for schema validation.
"""

import pytest
from jobsync.schema import (
    ARRAY,
    NUMBER,
    STRING,
    STRING_OR_NUMBER,
    FieldRule,
    validate,
)

RULES = {
    "version": FieldRule(STRING_OR_NUMBER),
    "description": FieldRule(STRING),
    "author": FieldRule(STRING, required=False),
    "count": FieldRule(NUMBER, required=False),
    "tags": FieldRule(ARRAY, required=False, items=STRING),
}


class TestValidate:
    """Test the non-fail-fast validator."""

    def test_valid_document_has_no_errors(self):
        result = validate({"version": 1, "description": "Math", "tags": ["a", "b"]}, RULES)
        assert result.is_valid
        assert result.errors == []

    @pytest.mark.parametrize("missing", ["version", "description"])
    def test_missing_required_field_is_named(self, missing):
        data = {"version": "1", "description": "Math"}
        del data[missing]
        result = validate(data, RULES)
        assert not result.is_valid
        assert result.errors == [f"Missing required field: {missing}"]

    def test_reports_every_missing_field(self):
        """Validation never stops at the first problem."""
        result = validate({}, RULES)
        assert len(result.errors) >= 2
        assert any("version" in e for e in result.errors)
        assert any("description" in e for e in result.errors)

    def test_non_object_short_circuits(self):
        for data in (None, [], "text", 3):
            result = validate(data, RULES)
            assert not result.is_valid
            assert result.errors == ["Data must be an object"]

    def test_optional_fields_can_be_omitted(self):
        result = validate({"version": 1, "description": "Math"}, RULES)
        assert result.is_valid

    def test_optional_field_with_wrong_type(self):
        result = validate({"version": 1, "description": "Math", "author": 42}, RULES)
        assert result.errors == ["Field 'author' must be a string"]

    def test_null_counts_as_missing(self):
        result = validate({"version": 1, "description": None, "author": None}, RULES)
        assert result.errors == ["Missing required field: description"]

    def test_bool_is_not_a_number(self):
        result = validate({"version": True, "description": "x", "count": False}, RULES)
        assert "Field 'version' must be a string or number" in result.errors
        assert "Field 'count' must be a number" in result.errors

    def test_array_elements_are_checked(self):
        result = validate({"version": 1, "description": "x", "tags": ["ok", 3, None]}, RULES)
        assert result.errors == [
            "Field 'tags[1]' must be a string",
            "Field 'tags[2]' must be a string",
        ]

    def test_array_type_checked_before_elements(self):
        result = validate({"version": 1, "description": "x", "tags": "ok"}, RULES)
        assert result.errors == ["Field 'tags' must be an array"]

    def test_prefix_qualifies_field_names(self):
        result = validate({"tags": [1]}, {"tags": FieldRule(ARRAY, items=STRING)}, prefix="Homeworks[2].")
        assert result.errors == ["Field 'Homeworks[2].tags[0]' must be a string"]

    def test_prefix_in_non_object_message(self):
        result = validate("oops", RULES, prefix="Homeworks[0].")
        assert result.errors == ["Homeworks[0] must be an object"]
