"""
Unit tests for the row conversion pipeline.
"""

import logging
import types
from unittest.mock import patch

import pytest

from conversion.converters import (
    AnonymizeEmail,
    AnonymizeText,
    Conditional,
    ConverterFactory,
    SetNull,
    SetValue,
)
from conversion.errors import ConfigurationError, EvaluationError
from conversion.pipeline import ConverterPipeline, create_pipeline


class TestConverterPipeline:
    """Test pipeline functionality."""

    def setup_method(self):
        """Set up test fixtures."""
        self.pipeline = ConverterPipeline()

    def test_add_converter(self):
        """Test registering converters."""
        self.pipeline.add_converter("email", AnonymizeEmail())
        self.pipeline.add_converter("email", SetNull())
        self.pipeline.add_converter("name", AnonymizeText())

        assert self.pipeline.get_converter_count() == 3
        assert self.pipeline.get_columns() == ["email", "name"]

    def test_add_converter_rejects_non_converters(self):
        """Test invalid converter."""
        with pytest.raises(ConfigurationError):
            self.pipeline.add_converter("email", "anonymizeEmail")

    def test_convert_row(self, customer_row):
        """Test converting configured columns only."""
        self.pipeline.add_converter("email", AnonymizeEmail())
        self.pipeline.add_converter("name", AnonymizeText())

        result = self.pipeline.convert_row(customer_row)

        assert result["email"] == "j***.d**@company.com"
        assert result["name"] == "J*** D**"
        assert result["status"] == "active"
        assert result["id"] == "42"

    def test_input_row_not_modified(self, customer_row):
        """Test that a new row is returned."""
        original = dict(customer_row)
        self.pipeline.add_converter("email", SetNull())

        result = self.pipeline.convert_row(customer_row)

        assert customer_row == original
        assert result is not customer_row

    def test_converters_applied_in_order(self):
        """Test several converters on one column."""
        self.pipeline.add_converter("name", SetValue({"value": "Jane Roe"}))
        self.pipeline.add_converter("name", AnonymizeText())

        assert self.pipeline.convert_row({"name": "John"}) == {"name": "J*** R**"}

    def test_missing_column_skipped(self):
        """Test that configured columns absent from the row are ignored."""
        self.pipeline.add_converter("email", SetNull())
        assert self.pipeline.convert_row({"id": 1}) == {"id": 1}

    def test_conditions_see_original_row(self):
        """Test that the context holds values before conversion."""
        self.pipeline.add_converter("name", SetValue({"value": "X"}))
        self.pipeline.add_converter(
            "flag",
            Conditional({
                "condition": "{name} == 'John'",
                "if_true_converter": SetValue({"value": "yes"}),
            }),
        )

        assert self.pipeline.convert_row({"name": "John", "flag": "no"}) == {
            "name": "X",
            "flag": "yes",
        }

    def test_variables(self):
        """Test that session variables reach conditions."""
        self.pipeline.add_converter(
            "email",
            Conditional({"condition": "@env == 'prod'", "if_true_converter": SetNull()}),
        )

        assert self.pipeline.convert_row({"email": "a@b.c"}, {"env": "prod"}) == {"email": None}
        assert self.pipeline.convert_row({"email": "a@b.c"}, {"env": "dev"}) == {"email": "a@b.c"}

    def test_evaluation_error_propagates(self, caplog):
        """Test that a failing condition aborts the row."""
        self.pipeline.add_converter(
            "email",
            Conditional({"condition": "{is_admin} == 0", "if_true_converter": SetNull()}),
        )

        with caplog.at_level(logging.ERROR, logger="conversion.pipeline"):
            with pytest.raises(EvaluationError):
                self.pipeline.convert_row({"email": "a@b.c"})

        assert "Failed to convert column 'email'" in caplog.text

    def test_convert_rows_is_lazy(self):
        """Test the row generator."""
        self.pipeline.add_converter("id", SetValue({"value": 0}))

        rows = self.pipeline.convert_rows([{"id": 1}, {"id": 2}])

        assert isinstance(rows, types.GeneratorType)
        assert list(rows) == [{"id": 0}, {"id": 0}]

    def test_convert_rows_stops_on_error(self):
        """Test that rows after a failure are not converted."""
        self.pipeline.add_converter(
            "a", Conditional({"condition": "{b} == 1", "if_true_converter": SetNull()})
        )
        rows = self.pipeline.convert_rows([{"a": 1, "b": 1}, {"a": 1}])

        assert next(rows) == {"a": None, "b": 1}
        with pytest.raises(EvaluationError):
            next(rows)

    def test_convert_row_is_traced(self):
        """Test that rows are converted inside a span."""
        with patch("conversion.pipeline.trace_operation") as mock_trace:
            self.pipeline.convert_row({"a": 1, "b": 2})

        mock_trace.assert_called_once()
        assert mock_trace.call_args[0][0] == "convert_row"
        assert mock_trace.call_args[1]["column_count"] == 2


class TestCreatePipeline:
    """Test pipeline creation from configuration."""

    def test_create_pipeline(self, customer_row):
        """Test single and multiple definitions per column."""
        pipeline = create_pipeline({
            "email": {"converter": "anonymizeEmail"},
            "name": [
                {"converter": "setValue", "parameters": {"value": "Jane Roe"}},
                "anonymizeText",
            ],
            "deleted_at": {
                "converter": "setValue",
                "parameters": {"value": "2000-01-01"},
                "condition": "is_null({deleted_at})",
            },
        })

        assert pipeline.get_converter_count() == 4
        result = pipeline.convert_row(customer_row)
        assert result["email"] == "j***.d**@company.com"
        assert result["name"] == "J*** R**"
        assert result["deleted_at"] == "2000-01-01"

    def test_create_pipeline_with_factory(self):
        """Test a custom factory."""
        factory = ConverterFactory({"blank": SetNull})
        pipeline = create_pipeline({"a": "blank"}, factory)

        assert pipeline.convert_row({"a": 1}) == {"a": None}

    def test_invalid_configuration(self):
        """Test that invalid definitions abort pipeline creation."""
        with pytest.raises(ConfigurationError):
            create_pipeline({"a": {"converter": "setValue"}})
