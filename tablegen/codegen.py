"""Render table templates and write generated Solidity files.

Takes the per-table options from table_options and produces one library
per table, plus the shared user types file and the index file.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

import jinja2

from .config import Store, UserType
from .naming import encode_field_layout, field_accessor_suffix, resource_to_hex
from .schema_types import RenderType
from .table_options import RenderField, RenderTableOptions, TableOptions, build_table_options

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


def unwrap_value(field: RenderType, expr: str) -> str:
    """Strip a user type or enum wrapper down to its ABI value."""
    if field.type_unwrap:
        return f"{field.type_unwrap}({expr})"
    return expr


def wrap_value(field: RenderType, expr: str) -> str:
    if field.type_wrap:
        return f"{field.type_wrap}({expr})"
    return expr


def key_to_bytes32(field: RenderType, expr: str) -> str:
    """Solidity expression converting a static key value to bytes32."""
    value = unwrap_value(field, expr)
    internal = field.internal_type_id
    if internal.startswith("uint"):
        return f"bytes32(uint256({value}))"
    if internal.startswith("int"):
        return f"bytes32(uint256(int256({value})))"
    if internal.startswith("bytes"):
        return f"bytes32({value})"
    if internal == "address":
        return f"bytes32(uint256(uint160({value})))"
    if internal == "bool":
        return f"_boolToBytes32({value})"
    raise ValueError(f"Cannot use `{field.type_id}` as a key")


def encode_field(field: RenderType, expr: str) -> str:
    """Solidity expression packing a field value to bytes."""
    value = unwrap_value(field, expr)
    if not field.is_dynamic:
        return f"abi.encodePacked(({value}))"
    if field.internal_type_id in ("string", "bytes"):
        return f"bytes(({value}))"
    return f"EncodeArray.encode(({value}))"


def decode_static(field: RenderType, expr: str) -> str:
    """Solidity expression reading a static field out of a bytes32 word."""
    internal = field.internal_type_id
    size = field.static_byte_length
    if internal.startswith("uint"):
        value = f"{internal}(bytes{size}({expr}))"
    elif internal.startswith("int"):
        value = f"{internal}(u{internal}(bytes{size}({expr})))"
    elif internal == "address":
        value = f"address(bytes20({expr}))"
    elif internal == "bool":
        value = f"_toBool(uint8(bytes1({expr})))"
    else:
        value = f"bytes{size}({expr})"
    return wrap_value(field, value)


def decode_dynamic(field: RenderField, expr: str) -> str:
    """Solidity expression decoding a dynamic field from a bytes blob."""
    internal = field.internal_type_id
    if internal in ("string", "bytes"):
        value = f"{internal}({expr})"
    else:
        element = field.array_element.type_id if field.array_element else internal[:-2]
        value = f"SliceLib.getSubslice({expr}, 0, {expr}.length).decodeArray_{element}()"
    return wrap_value(field, value)


def element_byte_length(field: RenderField) -> int:
    """Bytes per element of a dynamic field (1 for string/bytes)."""
    if field.array_element is not None:
        return field.array_element.static_byte_length
    return 1


def byte_length(field: RenderField, expr: str) -> str:
    """Solidity expression for the packed byte length of a dynamic value."""
    value = unwrap_value(field, expr)
    if field.array_element is None:
        return f"bytes({value}).length"
    return f"{value}.length * {field.array_element.static_byte_length}"


def arglist(*parts: str) -> str:
    """Join non-empty parameter or argument fragments with commas."""
    return ", ".join(p for p in parts if p)


def accessor_name(options: RenderTableOptions, verb: str, field: RenderField) -> str:
    """get/set for suffixless tables, get{Field}/set{Field} otherwise."""
    if options.with_suffixless_field_methods:
        return verb
    return f"{verb}{field_accessor_suffix(field.name)}"


def table_id_hex(options: RenderTableOptions) -> str | None:
    data = options.static_resource_data
    if data is None:
        return None
    resource_type = "offchainTable" if data.offchain_only else "table"
    return resource_to_hex(resource_type, data.namespace, data.name)


def field_layout_hex(options: RenderTableOptions) -> str:
    return encode_field_layout(
        (f.static_byte_length for f in options.static_fields),
        len(options.dynamic_fields),
    )


def _make_env() -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )
    env.filters["key_to_bytes32"] = key_to_bytes32
    env.filters["encode_field"] = encode_field
    env.filters["decode_static"] = decode_static
    env.filters["decode_dynamic"] = decode_dynamic
    env.filters["unwrap"] = unwrap_value
    env.filters["byte_length"] = byte_length
    env.filters["element_byte_length"] = element_byte_length
    env.globals["accessor_name"] = accessor_name
    env.globals["arglist"] = arglist
    return env


def _store_variants(options: RenderTableOptions) -> list[dict[str, str]]:
    """Method variants: StoreSwitch always, plus an explicit IStore argument if enabled."""
    variants = [{"param": "", "arg": "", "store": "StoreSwitch"}]
    if options.store_argument:
        variants.append({"param": "IStore _store", "arg": "_store", "store": "_store"})
    return variants


def render_table(options: RenderTableOptions, env: jinja2.Environment | None = None) -> str:
    """Render a single table library."""
    env = env or _make_env()
    template = env.get_template("table.sol.j2")
    table_id_is_arg = options.static_resource_data is None
    return template.render(
        o=options,
        table_id=table_id_hex(options),
        field_layout=field_layout_hex(options),
        variants=_store_variants(options),
        table_id_param="ResourceId _tableId" if table_id_is_arg else "",
        table_id_arg="_tableId" if table_id_is_arg else "",
        key_params=arglist(*(f"{k.type_with_location} {k.name}" for k in options.key_tuple)),
        key_args=arglist(*(k.name for k in options.key_tuple)),
        field_params=arglist(*(f"{f.type_with_location} {f.name}" for f in options.fields)),
    )


def render_user_types(config: Store, env: jinja2.Environment | None = None) -> str:
    """Render the shared file declaring all config enums."""
    env = env or _make_env()
    return env.get_template("common.sol.j2").render(enums=config.enums)


def render_index(
    table_options: list[TableOptions],
    env: jinja2.Environment | None = None,
) -> str:
    """Render the index file re-exporting every table library and struct."""
    env = env or _make_env()
    entries = []
    for table in table_options:
        symbols = [table.render_options.library_name]
        if table.render_options.struct_name:
            symbols.append(table.render_options.struct_name)
        entries.append({"symbols": symbols, "path": "./" + table.output_path})
    return env.get_template("index.sol.j2").render(entries=entries)


def tablegen(
    config: Store,
    root_dir: Path,
    user_types: Mapping[str, UserType] | None = None,
) -> list[Path]:
    """Render every table of `config` and write the files under `root_dir`."""
    env = _make_env()
    table_options = build_table_options(config, user_types)
    output_root = Path(root_dir) / config.codegen.output_directory
    written: list[Path] = []

    for table in table_options:
        output_path = output_root / table.output_path
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(render_table(table.render_options, env))
        logger.info("Generated %s", output_path)
        written.append(output_path)

    if config.enums:
        output_path = output_root / config.codegen.user_types_filename
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(render_user_types(config, env))
        written.append(output_path)

    if table_options:
        output_path = output_root / config.codegen.index_filename
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(render_index(table_options, env))
        written.append(output_path)

    print(f"Generated {len(table_options)} tables in {output_root}")
    return written
