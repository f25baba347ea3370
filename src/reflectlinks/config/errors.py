"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when configuration values are invalid."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank."""


class InvalidConfigurationValueError(ConfigurationError):
    """Raised when an environment variable holds a value of the wrong shape."""

    def __init__(self, name: str, value: str, *, expected: str) -> None:
        super().__init__(f"Invalid {expected} for {name}: {value}")
        self.name = name
        self.value = value
        self.expected = expected
