"""
Anonymizing and hashing converters.

Provides converters for masking text and email addresses and one-way
hashing for pseudonymization.
"""

import hashlib
import json
import logging
import random
import secrets
from collections.abc import Mapping
from typing import Any

from conversion.errors import ConfigurationError

from .base import CONVERSION_TIME, CONVERSIONS_APPLIED, Converter, get_parameter

logger = logging.getLogger(__name__)


class AnonymizeText(Converter):
    """
    Mask every word of a text, keeping its first character.

    Examples:
        John Doe -> J*** D**
        john.doe -> j***.d**
    """

    DEFAULT_DELIMITERS = (" ", "_", "-", ".")

    def __init__(self, parameters: Mapping[str, Any] | None = None):
        """
        Initialize text anonymizer.

        Args:
            parameters: Optional "replacement" (mask character, default "*"),
                "delimiters" (word separators) and "min_word_length"
                (words shorter than this are fully masked)
        """
        self.replacement = get_parameter(parameters, "replacement", "*")
        self.delimiters = tuple(get_parameter(parameters, "delimiters", self.DEFAULT_DELIMITERS))
        self.min_word_length = get_parameter(parameters, "min_word_length", 1)

        if not isinstance(self.replacement, str) or len(self.replacement) != 1:
            raise ConfigurationError('The parameter "replacement" must be a single character.')
        if not isinstance(self.min_word_length, int) or self.min_word_length < 0:
            raise ConfigurationError('The parameter "min_word_length" must be a positive integer.')

    def convert(self, value: Any, context: Mapping[str, Any] | None = None) -> Any:
        """Convert value by masking each word."""
        with CONVERSION_TIME.labels(converter_type=self.get_type()).time():
            if not isinstance(value, str) or not value:
                return value

            result = self._mask_words(value)
            if result != value:
                CONVERSIONS_APPLIED.labels(converter_type=self.get_type()).inc()
            return result

    def _mask_words(self, text: str) -> str:
        chars = []
        word = []

        for char in text:
            if char in self.delimiters:
                chars.append(self._mask_word("".join(word)))
                chars.append(char)
                word = []
            else:
                word.append(char)

        chars.append(self._mask_word("".join(word)))
        return "".join(chars)

    def _mask_word(self, word: str) -> str:
        if not word:
            return word
        if len(word) < self.min_word_length:
            return self.replacement * len(word)
        return word[0] + self.replacement * (len(word) - 1)


class AnonymizeEmail(AnonymizeText):
    """
    Mask the local part of an email address.

    The domain is kept unless a list of replacement domains is configured.

    Examples:
        john.doe@company.com -> j***.d**@company.com
    """

    def __init__(self, parameters: Mapping[str, Any] | None = None):
        """
        Initialize email anonymizer.

        Args:
            parameters: Same as AnonymizeText, plus optional "domains"
                (replacement domains picked at random)
        """
        super().__init__(parameters)
        self.domains = list(get_parameter(parameters, "domains", []) or [])

        if any(not isinstance(domain, str) or not domain for domain in self.domains):
            raise ConfigurationError('The parameter "domains" must be a list of domain names.')

    def convert(self, value: Any, context: Mapping[str, Any] | None = None) -> Any:
        """Convert value by masking the email local part."""
        with CONVERSION_TIME.labels(converter_type=self.get_type()).time():
            if not isinstance(value, str) or not value:
                return value

            local, separator, domain = value.rpartition("@")

            # Not an email address, mask it as plain text
            if not separator or not local:
                result = self._mask_words(value)
            else:
                if self.domains:
                    domain = random.choice(self.domains)
                result = f"{self._mask_words(local)}@{domain}"

            if result != value:
                CONVERSIONS_APPLIED.labels(converter_type=self.get_type()).inc()
            return result


class Hash(Converter):
    """
    One-way hash conversion.

    Useful for pseudonymization where you need consistent but irreversible
    conversion of identifiers.
    """

    # Only allow cryptographically secure hash algorithms
    ALLOWED_ALGORITHMS = frozenset({"sha256", "sha384", "sha512", "blake2b", "blake2s"})
    MIN_SALT_LENGTH = 8

    def __init__(self, parameters: Mapping[str, Any] | None = None):
        """
        Initialize hashing converter.

        Args:
            parameters: Optional "algorithm" (default sha256), "salt" (random
                when missing) and "truncate" (length of the hex digest kept)

        Raises:
            ConfigurationError: If algorithm is insecure, salt is too short
                or truncate is not a positive integer
        """
        algorithm = str(get_parameter(parameters, "algorithm", "sha256")).lower()
        salt = get_parameter(parameters, "salt")
        truncate = get_parameter(parameters, "truncate")

        if algorithm not in self.ALLOWED_ALGORITHMS:
            raise ConfigurationError(
                f"Insecure hash algorithm: {algorithm}. "
                f"Allowed algorithms: {', '.join(sorted(self.ALLOWED_ALGORITHMS))}"
            )

        if salt is None:
            salt = secrets.token_hex(16)
            logger.warning(
                "No salt provided to Hash converter. Generated random salt. "
                "For consistent hashing across dumps, provide an explicit salt."
            )
        elif not isinstance(salt, str) or len(salt) < self.MIN_SALT_LENGTH:
            raise ConfigurationError(
                f"Salt must be a string of at least {self.MIN_SALT_LENGTH} characters"
            )

        if truncate is not None and (not isinstance(truncate, int) or truncate <= 0):
            raise ConfigurationError('The parameter "truncate" must be a positive integer.')

        self.algorithm = algorithm
        self.salt = salt
        self.truncate = truncate

    def convert(self, value: Any, context: Mapping[str, Any] | None = None) -> Any:
        """Convert value by hashing."""
        with CONVERSION_TIME.labels(converter_type=self.get_type()).time():
            if value is None:
                return None

            if isinstance(value, float):
                str_value = repr(value)
            elif isinstance(value, (dict, list)):
                str_value = json.dumps(value, sort_keys=True)
            else:
                str_value = str(value)

            hasher = hashlib.new(self.algorithm)
            hasher.update(f"{self.salt}{str_value}".encode())
            hash_value = hasher.hexdigest()

            if self.truncate:
                hash_value = hash_value[: self.truncate]

            CONVERSIONS_APPLIED.labels(converter_type=self.get_type()).inc()
            return hash_value
