"""
Converter factory.

Builds converters from already-parsed configuration mappings:

    {
        "converter": "conditional",
        "parameters": {
            "condition": "{is_admin} == 0",
            "if_true_converter": {"converter": "anonymizeEmail"},
        },
    }

Nested definitions are built recursively. A "condition" key next to
"converter" wraps the built converter in a Conditional converter.
"""

import logging
from collections.abc import Mapping
from typing import Any

from conversion.errors import ConfigurationError

from .anonymizers import AnonymizeEmail, AnonymizeText, Hash
from .base import Converter
from .generators import SetNull, SetValue
from .proxy import Chain, Conditional

logger = logging.getLogger(__name__)

CONVERTER_PARAMETERS = ("if_true_converter", "if_false_converter")
CONVERTER_LIST_PARAMETERS = ("converters",)


class ConverterFactory:
    """Registry of converter classes by configuration name."""

    DEFAULT_CONVERTERS: dict[str, type[Converter]] = {
        "setValue": SetValue,
        "setNull": SetNull,
        "anonymizeText": AnonymizeText,
        "anonymizeEmail": AnonymizeEmail,
        "hash": Hash,
        "conditional": Conditional,
        "chain": Chain,
    }

    def __init__(self, converters: Mapping[str, type[Converter]] | None = None):
        """
        Initialize factory.

        Args:
            converters: Extra converter classes by name, added to the defaults
        """
        self.converters: dict[str, type[Converter]] = dict(self.DEFAULT_CONVERTERS)
        for name, converter_class in (converters or {}).items():
            self.register(name, converter_class)

    def register(self, name: str, converter_class: type[Converter]) -> None:
        """
        Register a converter class.

        Raises:
            ConfigurationError: If the class is not a Converter subclass
        """
        if not isinstance(converter_class, type) or not issubclass(converter_class, Converter):
            raise ConfigurationError(f'The converter "{name}" must be a Converter subclass.')

        if name in self.converters:
            logger.debug(f"Overriding converter '{name}' with {converter_class.__name__}")

        self.converters[name] = converter_class

    def create(self, definition: Mapping[str, Any] | str | Converter) -> Converter:
        """
        Build a converter from its definition.

        Args:
            definition: Mapping with "converter" (name), optional "parameters"
                and optional "condition"; a bare name; or a converter
                instance, returned as is

        Returns:
            Converter instance

        Raises:
            ConfigurationError: If the definition is invalid or the
                converter name is unknown
        """
        if isinstance(definition, Converter):
            return definition

        if isinstance(definition, str):
            definition = {"converter": definition}

        if not isinstance(definition, Mapping):
            raise ConfigurationError(
                f"Converter definition must be a mapping, got {type(definition).__name__}."
            )

        name = definition.get("converter")
        if not name:
            raise ConfigurationError('The converter definition requires a "converter" key.')

        converter_class = self.converters.get(name)
        if converter_class is None:
            raise ConfigurationError(
                f'The converter "{name}" is not defined. '
                f"Available converters: {', '.join(sorted(self.converters))}"
            )

        parameters = definition.get("parameters")
        if parameters is not None and not isinstance(parameters, Mapping):
            raise ConfigurationError(f'The parameters of converter "{name}" must be a mapping.')

        converter = converter_class(self._build_parameters(parameters))

        condition = definition.get("condition")
        if condition:
            converter = Conditional({"condition": condition, "if_true_converter": converter})

        logger.debug(f"Created {converter.get_type()} converter from '{name}'")
        return converter

    def _build_parameters(self, parameters: Mapping[str, Any] | None) -> dict[str, Any] | None:
        """Build nested converter definitions found in parameters."""
        if parameters is None:
            return None

        built = dict(parameters)

        for key in CONVERTER_PARAMETERS:
            if built.get(key) is not None:
                built[key] = self.create(built[key])

        for key in CONVERTER_LIST_PARAMETERS:
            if isinstance(built.get(key), (list, tuple)):
                built[key] = [self.create(item) for item in built[key]]

        return built
