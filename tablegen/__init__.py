"""Generate Solidity table libraries from declarative store/world configs."""

from .codegen import render_table, tablegen
from .config import Store, Table, UserType, World, define_store, define_world
from .errors import ConfigError, InvalidKeyError, TablegenError, UnknownTypeError
from .table_options import (
    RenderField,
    RenderTableOptions,
    StaticResourceData,
    TableOptions,
    build_table_options,
)

__all__ = [
    "ConfigError",
    "InvalidKeyError",
    "RenderField",
    "RenderTableOptions",
    "StaticResourceData",
    "Store",
    "Table",
    "TableOptions",
    "TablegenError",
    "UnknownTypeError",
    "UserType",
    "World",
    "build_table_options",
    "define_store",
    "define_world",
    "render_table",
    "tablegen",
]
