"""
String Response Validator

Built-in validation strategies comparing the decoded probe body with an
expected string: contains, equals, or regular expression search.
"""

import re
from typing import Optional

from connectivity.constants import ValidationMode
from connectivity.interfaces.errors import ConfigurationError
from connectivity.interfaces.transport_interface import ProbeResponse
from connectivity.interfaces.validator_interface import ResponseValidator


def decode_body(body: Optional[bytes]) -> str:
    """
    Decode a probe body as UTF-8.

    Missing bodies and bytes that are not valid UTF-8 decode to "" -
    validation then fails instead of raising.
    """
    if not body:
        return ""
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError:
        return ""


class StringValidator(ResponseValidator):
    """
    Validates probe bodies against an expected string.

    Usage:
        validator = StringValidator(ValidationMode.CONTAINS, "Success")
        validator.is_response_valid(url, response, b"<html>Success</html>")
    """

    def __init__(self, validation_mode: ValidationMode, expected_response: str):
        """
        Initialize validator.

        Args:
            validation_mode: CONTAINS, EQUALS or MATCHES_REGEX
            expected_response: Substring, exact text or regex pattern

        Raises:
            ConfigurationError: If the mode is CUSTOM or the pattern is invalid
        """
        if validation_mode == ValidationMode.CUSTOM:
            raise ConfigurationError(
                "StringValidator does not handle CUSTOM mode; "
                "pass a ResponseValidator implementation instead",
            )

        self.validation_mode = validation_mode
        self.expected_response = expected_response
        self._pattern = None

        if validation_mode == ValidationMode.MATCHES_REGEX:
            try:
                self._pattern = re.compile(expected_response)
            except re.error as e:
                raise ConfigurationError(
                    f"Invalid regular expression {expected_response!r}: {e}",
                ) from e

    def is_response_valid(
        self,
        url: str,
        response: Optional[ProbeResponse],
        body: Optional[bytes],
    ) -> bool:
        text = decode_body(body)

        # An empty body only matches an empty expectation
        if not text:
            return self.expected_response == ""

        if self.validation_mode == ValidationMode.CONTAINS:
            return self.expected_response in text

        if self.validation_mode == ValidationMode.EQUALS:
            return text == self.expected_response

        return self._pattern.search(text) is not None

    def __repr__(self) -> str:
        return (
            f"StringValidator(mode={self.validation_mode.value}, "
            f"expected={self.expected_response!r})"
        )
