"""Tests for tool argument validation and LLM-friendly coercion."""

import pytest
from pydantic import BaseModel, Field, ValidationError, field_validator

from compass_bridge.core.mcp.exceptions import ErrorKind, InvalidArgumentsError
from compass_bridge.core.mcp.validation import (
    coerce_bool,
    coerce_float,
    coerce_int,
    format_validation_errors,
    parse_json_object,
    validate_arguments,
)


class SampleParams(BaseModel):
    """Test model with various field types."""

    name: str = Field(description="Name field")
    age: int = Field(description="Age field", ge=0, le=150)
    active: bool = Field(description="Active status")
    score: float | None = Field(None, description="Optional score")
    metadata: dict | None = Field(None, description="Optional object")

    @field_validator("active", mode="before")
    @classmethod
    def coerce_active(cls, v):
        return coerce_bool(v)

    @field_validator("age", mode="before")
    @classmethod
    def coerce_age(cls, v):
        return coerce_int(v)

    @field_validator("score", mode="before")
    @classmethod
    def coerce_score(cls, v):
        if v is None:
            return None
        return coerce_float(v)

    @field_validator("metadata", mode="before")
    @classmethod
    def parse_metadata(cls, v):
        return parse_json_object(v)


class TestFormatValidationErrors:
    """Test comprehensive error formatting."""

    @pytest.mark.unit
    def test_single_error_formatting(self):
        """Test formatting when there's only one validation error."""
        # Arrange
        with pytest.raises(ValidationError) as exc_info:
            SampleParams(name=123, age=25, active=True)

        # Act
        result = format_validation_errors(exc_info.value, "test parameters")

        # Assert
        assert "Invalid test parameters:" in result
        assert "name" in result
        assert "received: 123" in result

    @pytest.mark.unit
    def test_multiple_errors_formatting(self):
        """Test every error is listed at once."""
        # Arrange
        with pytest.raises(ValidationError) as exc_info:
            SampleParams(name=123, age=-5, active="maybe")

        # Act
        result = format_validation_errors(exc_info.value, "tool arguments")

        # Assert
        assert "Invalid tool arguments - 3 errors:" in result
        assert "name" in result
        assert "age" in result
        assert "active" in result
        assert "Please fix all errors" in result

    @pytest.mark.unit
    def test_missing_required_fields(self):
        """Test missing fields are reported by name."""
        # Arrange
        with pytest.raises(ValidationError) as exc_info:
            SampleParams()

        # Act
        result = format_validation_errors(exc_info.value)

        # Assert
        assert "name" in result
        assert "age" in result
        assert "active" in result


class TestValidateArguments:
    """Test validation of raw tool arguments."""

    @pytest.mark.unit
    def test_returns_validated_model(self):
        """Test valid arguments produce a model instance."""
        # Act
        params = validate_arguments(
            SampleParams, "sample", {"name": "a", "age": "30", "active": "yes"}
        )

        # Assert
        assert params.name == "a"
        assert params.age == 30
        assert params.active is True

    @pytest.mark.unit
    def test_invalid_arguments_raise_with_kind(self):
        """Test validation failures become InvalidArgumentsError."""
        # Act & Assert
        with pytest.raises(InvalidArgumentsError) as exc_info:
            validate_arguments(SampleParams, "sample", {"name": "a"})

        error = exc_info.value
        assert error.kind == ErrorKind.INVALID_ARGUMENTS
        assert error.tool_name == "sample"
        assert "sample arguments" in error.message
        assert error.details["errors"] == 2

    @pytest.mark.unit
    def test_none_arguments_treated_as_empty(self):
        """Test missing argument object validates as an empty one."""
        # Act & Assert
        with pytest.raises(InvalidArgumentsError) as exc_info:
            validate_arguments(SampleParams, "sample", None)

        assert "name" in exc_info.value.message

    @pytest.mark.unit
    def test_non_object_arguments_rejected(self):
        """Test a list in place of an object is rejected before validation."""
        # Act & Assert
        with pytest.raises(InvalidArgumentsError, match="expected an object"):
            validate_arguments(SampleParams, "sample", ["name"])  # type: ignore[arg-type]


class TestTypeCoercion:
    """Test type coercion helpers."""

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["true", "True", "1", "yes", "on"])
    def test_coerce_bool_true_values(self, value):
        assert coerce_bool(value) is True

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["false", "FALSE", "0", "no", "off", ""])
    def test_coerce_bool_false_values(self, value):
        assert coerce_bool(value) is False

    @pytest.mark.unit
    def test_coerce_bool_passthrough(self):
        """Test unrecognized values are left for Pydantic."""
        assert coerce_bool("maybe") == "maybe"
        assert coerce_bool(True) is True

    @pytest.mark.unit
    def test_coerce_int_and_float(self):
        assert coerce_int("42") == 42
        assert coerce_int("4.2") == "4.2"
        assert coerce_float("3.5") == 3.5
        assert coerce_float("abc") == "abc"
        assert coerce_float(7) == 7

    @pytest.mark.unit
    def test_parse_json_object_from_string(self):
        assert parse_json_object('{"a": 1}') == {"a": 1}
        assert parse_json_object({"a": 1}) == {"a": 1}
        assert parse_json_object(None) is None

    @pytest.mark.unit
    def test_parse_json_object_rejects_invalid(self):
        with pytest.raises(ValueError, match="Invalid JSON"):
            parse_json_object("{not json")
        with pytest.raises(ValueError, match="Must be a JSON object"):
            parse_json_object("[1, 2]")

    @pytest.mark.unit
    def test_model_accepts_llm_style_strings(self):
        """Test a model with coercers accepts stringly-typed input."""
        # Act
        params = SampleParams(
            name="x", age="7", active="off", score="0.5", metadata='{"k": "v"}'
        )

        # Assert
        assert params.age == 7
        assert params.active is False
        assert params.score == 0.5
        assert params.metadata == {"k": "v"}
