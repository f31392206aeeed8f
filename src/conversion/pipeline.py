"""
Row conversion pipeline.

Applies the converters configured per column to each dumped row. Every
converter of a row sees the same RowContext, built from the original
(unconverted) row and the session variables.
"""

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from opentelemetry import trace

from utils.tracing import add_span_attributes, add_span_event, trace_operation

from .converters.base import Converter, RowContext
from .converters.factory import ConverterFactory
from .errors import ConfigurationError, ConversionError

logger = logging.getLogger(__name__)


class ConverterPipeline:
    """
    Pipeline of column converters.

    Converters registered for the same column are applied in order.
    """

    def __init__(self):
        self.column_converters: dict[str, list[Converter]] = {}

    def add_converter(self, column: str, converter: Converter) -> None:
        """
        Add converter for a column.

        Args:
            column: Column name
            converter: Converter to apply to the column values
        """
        if not isinstance(converter, Converter):
            raise ConfigurationError(
                f'The converter of column "{column}" must be a Converter, '
                f"got {type(converter).__name__}."
            )

        self.column_converters.setdefault(column, []).append(converter)
        logger.debug(f"Added {converter.get_type()} for column '{column}'")

    def convert_row(
        self,
        row: Mapping[str, Any],
        variables: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Convert all configured columns of a row.

        Args:
            row: Dictionary of column name -> value
            variables: Session variables visible to conditions as @name

        Returns:
            New row dictionary with converted values

        Raises:
            EvaluationError: If a condition cannot be evaluated for this row
        """
        with trace_operation(
            "convert_row",
            kind=trace.SpanKind.INTERNAL,
            column_count=len(row),
        ):
            context = RowContext.build(row, variables)
            converted = dict(row)
            converted_columns = 0

            for column, converters in self.column_converters.items():
                if column not in row:
                    continue

                value = row[column]
                for converter in converters:
                    try:
                        value = converter.convert(value, context)
                    except ConversionError as e:
                        add_span_event(
                            "column_failed",
                            column=column,
                            converter=converter.get_type(),
                            error_type=type(e).__name__,
                        )
                        logger.error(
                            f"Failed to convert column '{column}'",
                            extra={"column": column, "converter": converter.get_type()},
                        )
                        raise

                converted[column] = value
                converted_columns += 1

            add_span_attributes(converted_columns=converted_columns)
            return converted

    def convert_rows(
        self,
        rows: Iterable[Mapping[str, Any]],
        variables: Mapping[str, Any] | None = None,
    ) -> Iterator[dict[str, Any]]:
        """
        Convert rows lazily.

        Args:
            rows: Iterable of row dictionaries
            variables: Session variables shared by all rows

        Yields:
            Converted row dictionaries
        """
        for row in rows:
            yield self.convert_row(row, variables)

    def get_converter_count(self) -> int:
        """Get total number of registered converters."""
        return sum(len(converters) for converters in self.column_converters.values())

    def get_columns(self) -> list[str]:
        """Get list of columns with converters."""
        return list(self.column_converters.keys())


def create_pipeline(
    config: Mapping[str, Any],
    factory: ConverterFactory | None = None,
) -> ConverterPipeline:
    """
    Create a pipeline from a column -> converter definition mapping.

    Example:
        >>> pipeline = create_pipeline({
        ...     "email": {"converter": "anonymizeEmail"},
        ...     "password": {"converter": "setValue", "parameters": {"value": ""}},
        ... })

    Args:
        config: Column name -> converter definition, or list of definitions
        factory: Factory used to build converters (default converters if None)

    Returns:
        Configured ConverterPipeline
    """
    factory = factory or ConverterFactory()
    pipeline = ConverterPipeline()

    for column, definitions in config.items():
        if not isinstance(definitions, (list, tuple)):
            definitions = [definitions]
        for definition in definitions:
            pipeline.add_converter(column, factory.create(definition))

    logger.info(
        f"Created conversion pipeline with {pipeline.get_converter_count()} converters "
        f"for {len(pipeline.get_columns())} columns"
    )
    return pipeline
