"""Errors raised while loading the connector configuration.

Every error is fatal to connector startup.  ``InvalidPropertyError`` covers a
single raw value that cannot become its typed field; ``InconsistentConfigError``
covers otherwise-valid fields that contradict each other.
"""


class ConfigurationError(Exception):
    """Base class carrying one or more human-readable messages."""

    def __init__(self, messages: list[str]) -> None:
        self.messages = list(messages)
        super().__init__("\n".join(self.messages))


class InvalidPropertyError(ConfigurationError):
    """A raw property value could not be converted to its field."""


class InconsistentConfigError(ConfigurationError):
    """A combination of fields violates a cross-field invariant."""
