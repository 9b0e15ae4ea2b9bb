"""ABI schema types and resolution of user-declared field types.

Handles:
- Static ABI types (uintN, intN, bytesN, bool, address)
- Dynamic ABI types (bytes, string, arrays of static types)
- Enums declared in the config (stored as uint8)
- User-defined value types backed by a Solidity file
- Import descriptors for enums and user types
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Mapping

from .errors import UnknownTypeError

if TYPE_CHECKING:
    from .config import Store, UserType


def _build_static_types() -> dict[str, int]:
    types: dict[str, int] = {}
    for size in range(1, 33):
        types[f"uint{size * 8}"] = size
    for size in range(1, 33):
        types[f"int{size * 8}"] = size
    for size in range(1, 33):
        types[f"bytes{size}"] = size
    types["bool"] = 1
    types["address"] = 20
    return types


# Static ABI type -> byte length
STATIC_ABI_TYPES: dict[str, int] = _build_static_types()

DYNAMIC_ABI_TYPES: tuple[str, ...] = tuple(
    [f"{t}[]" for t in STATIC_ABI_TYPES] + ["bytes", "string"]
)

_DYNAMIC_SET = frozenset(DYNAMIC_ABI_TYPES)


def is_static_abi_type(name: str) -> bool:
    return name in STATIC_ABI_TYPES


def is_dynamic_abi_type(name: str) -> bool:
    return name in _DYNAMIC_SET


def is_schema_abi_type(name: str) -> bool:
    return is_static_abi_type(name) or is_dynamic_abi_type(name)


def static_byte_length(name: str) -> int:
    """Return the packed byte length of a static type, 0 for dynamic types."""
    return STATIC_ABI_TYPES.get(name, 0)


def array_element_type(name: str) -> str | None:
    """Return the element type of an array type like 'uint8[]'."""
    if name.endswith("[]"):
        element = name[:-2]
        if is_static_abi_type(element):
            return element
    return None


def schema_type_enum_name(name: str) -> str:
    """Return the SchemaType enum member for an ABI type ('uint8[]' -> 'UINT8_ARRAY')."""
    element = array_element_type(name)
    if element is not None:
        return f"{element.upper()}_ARRAY"
    return name.upper()


@dataclass(frozen=True)
class RenderType:
    """How a single ABI or user type is spelled in generated code."""

    type_id: str
    type_with_location: str
    enum_name: str
    static_byte_length: int
    is_dynamic: bool
    type_wrap: str
    type_unwrap: str
    internal_type_id: str


@dataclass(frozen=True)
class ImportDatum:
    """A symbol the generated file must import."""

    symbol: str
    from_path: str
    used_in_path: str

    @property
    def dedup_key(self) -> tuple[str, str]:
        return (self.symbol, self.from_path)

    @property
    def import_path(self) -> str:
        """Path of `from_path` as seen from a file in `used_in_path`."""
        if not self.from_path.startswith(".") and "@" in self.from_path:
            return self.from_path
        rel = posixpath.relpath(
            posixpath.normpath(self.from_path),
            posixpath.normpath(self.used_in_path),
        )
        if not rel.startswith("."):
            rel = "./" + rel
        return rel


def get_schema_type_info(schema_type: str) -> RenderType:
    """Build the render info for a plain ABI type."""
    if not is_schema_abi_type(schema_type):
        raise UnknownTypeError(schema_type)
    dynamic = is_dynamic_abi_type(schema_type)
    return RenderType(
        type_id=schema_type,
        type_with_location=f"{schema_type} memory" if dynamic else schema_type,
        enum_name=schema_type_enum_name(schema_type),
        static_byte_length=static_byte_length(schema_type),
        is_dynamic=dynamic,
        type_wrap="",
        type_unwrap="",
        internal_type_id=schema_type,
    )


def resolve_abi_or_user_type(
    type_name: str,
    config: Store,
    user_types: Mapping[str, UserType],
) -> tuple[str, RenderType]:
    """Resolve a field type to (schema_type, render_type).

    ABI types pass through, enums become uint8 and user types become
    their underlying ABI type wrapped by the alias.
    """
    if is_schema_abi_type(type_name):
        return type_name, get_schema_type_info(type_name)

    if type_name in config.enums:
        base = get_schema_type_info("uint8")
        return "uint8", RenderType(
            type_id=type_name,
            type_with_location=type_name,
            enum_name=base.enum_name,
            static_byte_length=base.static_byte_length,
            is_dynamic=False,
            type_wrap=type_name,
            type_unwrap="uint8",
            internal_type_id="uint8",
        )

    user_type = user_types.get(type_name)
    if user_type is None:
        raise UnknownTypeError(type_name)

    base = get_schema_type_info(user_type.type)
    return user_type.type, RenderType(
        type_id=type_name,
        type_with_location=f"{type_name} memory" if base.is_dynamic else type_name,
        enum_name=base.enum_name,
        static_byte_length=base.static_byte_length,
        is_dynamic=base.is_dynamic,
        type_wrap=f"{type_name}.wrap",
        type_unwrap=f"{type_name}.unwrap",
        internal_type_id=user_type.type,
    )


def import_for_abi_or_user_type(
    type_name: str,
    used_in_path: str,
    config: Store,
    user_types: Mapping[str, UserType],
) -> ImportDatum | None:
    """Return the import needed to use `type_name`, or None for ABI types."""
    if is_schema_abi_type(type_name):
        return None

    if type_name in config.enums:
        return ImportDatum(
            symbol=type_name,
            from_path=posixpath.join(
                config.codegen.output_directory, config.codegen.user_types_filename
            ),
            used_in_path=used_in_path,
        )

    user_type = user_types.get(type_name)
    if user_type is None:
        raise UnknownTypeError(type_name)
    if not user_type.file_path:
        return None

    return ImportDatum(
        symbol=type_name,
        from_path=user_type.file_path,
        used_in_path=used_in_path,
    )


def resolve_schema_type(
    type_name: str,
    enums: Mapping[str, Any],
    user_types: Mapping[str, UserType],
) -> str:
    """Resolve a declared field type to its underlying ABI type name."""
    if is_schema_abi_type(type_name):
        return type_name
    if type_name in enums:
        return "uint8"
    if type_name in user_types:
        return user_types[type_name].type
    raise UnknownTypeError(type_name)
