"""Names and identifiers derived from table and resource definitions.

Pattern for table keys: {namespace}__{label}, or just {label} in the root
namespace.

Resource ids are 32 bytes: 2-byte type id, 14-byte namespace, 16-byte name,
each right-padded with zeros.

Examples:
  table_key("", "Example")              -> "Example"
  table_key("app", "Example")           -> "app__Example"
  resource_to_hex("table", "", "Tasks") -> "0x7462000...5461736b73000..."
  field_accessor_suffix("value")        -> "Value"
"""

from __future__ import annotations

import re
from typing import Iterable

from .errors import ConfigError

NAMESPACE_SEPARATOR = "__"

NAMESPACE_MAX_BYTES = 14
NAME_MAX_BYTES = 16

MAX_TOTAL_FIELDS = 28
MAX_DYNAMIC_FIELDS = 5

# Resource type -> 2-byte type id
_RESOURCE_TYPE_IDS: dict[str, str] = {
    "table": "tb",
    "offchainTable": "ot",
    "namespace": "ns",
    "system": "sy",
}

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


def table_key(namespace: str, label: str) -> str:
    """Build the key a table is stored under in a resolved config."""
    if namespace:
        return f"{namespace}{NAMESPACE_SEPARATOR}{label}"
    return label


def _pad(text: str, size: int) -> bytes:
    """Encode, truncate and right-pad a string to exactly `size` bytes."""
    raw = text.encode("utf-8")[:size]
    return raw.ljust(size, b"\x00")


def resource_to_hex(resource_type: str, namespace: str, name: str) -> str:
    """Encode a resource id as a 0x-prefixed 32-byte hex string."""
    type_id = _RESOURCE_TYPE_IDS.get(resource_type)
    if type_id is None:
        raise ConfigError(f"Unknown resource type `{resource_type}`")
    data = _pad(type_id, 2) + _pad(namespace, NAMESPACE_MAX_BYTES) + _pad(name, NAME_MAX_BYTES)
    return "0x" + data.hex()


def default_resource_name(label: str) -> str:
    """Truncate a label to the longest name that fits a resource id."""
    return label.encode("utf-8")[:NAME_MAX_BYTES].decode("utf-8", errors="ignore")


def check_namespace(namespace: str) -> None:
    if len(namespace.encode("utf-8")) > NAMESPACE_MAX_BYTES:
        raise ConfigError(f"Namespaces must fit into `bytes14`, received `{namespace}`")


def check_resource_name(name: str) -> None:
    if len(name.encode("utf-8")) > NAME_MAX_BYTES:
        raise ConfigError(f"Table names must fit into `bytes16`, received `{name}`")


def check_field_counts(num_value_fields: int, num_dynamic_fields: int) -> None:
    if num_value_fields > MAX_TOTAL_FIELDS:
        raise ConfigError(f"Tables can have at most {MAX_TOTAL_FIELDS} value fields")
    if num_dynamic_fields > MAX_DYNAMIC_FIELDS:
        raise ConfigError(f"Tables can have at most {MAX_DYNAMIC_FIELDS} dynamic fields")


def is_valid_identifier(name: str) -> bool:
    """Check whether a name can be used as a Solidity identifier."""
    return bool(_IDENTIFIER_RE.match(name))


def field_accessor_suffix(name: str) -> str:
    """Capitalize a field name for use in get{Name}/set{Name} accessors."""
    return name[:1].upper() + name[1:]


def encode_field_layout(static_lengths: Iterable[int], num_dynamic_fields: int) -> str:
    """Encode a FieldLayout word.

    Layout: 2 bytes total static length, 1 byte static field count,
    1 byte dynamic field count, then 1 byte per static field length.
    """
    lengths = list(static_lengths)
    check_field_counts(len(lengths) + num_dynamic_fields, num_dynamic_fields)
    data = (
        sum(lengths).to_bytes(2, "big")
        + len(lengths).to_bytes(1, "big")
        + num_dynamic_fields.to_bytes(1, "big")
        + bytes(lengths)
    )
    return "0x" + data.ljust(32, b"\x00").hex()
