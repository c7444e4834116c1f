"""Tests for ga4_foundry/lib/errors.py - structured exception hierarchy."""

import pytest

from ga4_foundry.lib.errors import ConfigurationError, GeneratorError, ValidationError


class TestGeneratorError:
    """Tests for base GeneratorError class."""

    def test_basic_message(self):
        """Test error with just a message."""
        error = GeneratorError("Something went wrong")
        assert str(error) == "Something went wrong"

    def test_with_property_and_array(self):
        """Test error with property and array context."""
        error = GeneratorError("Bad declaration", property_name="main", array="web_params")
        assert "[main.web_params]" in str(error)
        assert "Bad declaration" in str(error)

    def test_with_details_and_suggestion(self):
        error = GeneratorError(
            "Bad window",
            details={"rolling_refresh_days": 0},
            suggestion="Use a positive number of days",
        )
        assert "rolling_refresh_days: 0" in str(error)
        assert "Suggestion: Use a positive number of days" in str(error)

    def test_to_dict(self):
        """Test conversion to dictionary."""
        error = GeneratorError(
            "Test error",
            property_name="main",
            array="core_params",
            details={"key": "value"},
            suggestion="Fix it",
        )
        d = error.to_dict()
        assert d["error_type"] == "GeneratorError"
        assert d["message"] == "Test error"
        assert d["property_name"] == "main"
        assert d["array"] == "core_params"
        assert d["details"] == {"key": "value"}
        assert d["suggestion"] == "Fix it"


class TestConfigurationError:
    """Tests for ConfigurationError."""

    def test_field_and_value(self):
        error = ConfigurationError("Invalid value", field="data_stream_type", value="tv")
        assert error.field == "data_stream_type"
        assert "field: data_stream_type" in str(error)
        assert "value: tv" in str(error)

    def test_is_generator_error(self):
        with pytest.raises(GeneratorError):
            raise ConfigurationError("boom")

    def test_to_dict_type(self):
        assert ConfigurationError("boom").to_dict()["error_type"] == "ConfigurationError"


class TestValidationError:
    """Tests for ValidationError."""

    def test_issues_listed(self):
        error = ValidationError("Invalid layer", issues=["a: missing", "b: wrong type"])
        assert "Issues found:" in str(error)
        assert "  - a: missing" in str(error)
        assert error.details["issue_count"] == 2

    def test_is_configuration_error(self):
        assert isinstance(ValidationError("x"), ConfigurationError)
