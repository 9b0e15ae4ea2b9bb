"""Exceptions raised while resolving configs and building table options."""

from __future__ import annotations


class TablegenError(Exception):
    """Base class for all tablegen errors."""


class ConfigError(TablegenError, ValueError):
    """The config is malformed or refers to something that does not exist."""


class UnknownTypeError(ConfigError):
    """A field type is neither an ABI type, an enum, nor a known user type."""

    def __init__(self, type_name: str) -> None:
        super().__init__(
            f"Invalid schema type. Expected an ABI type, user type or enum, received `{type_name}`"
        )
        self.type_name = type_name


class InvalidKeyError(ConfigError):
    """A key field is missing from the schema or is dynamically sized."""
