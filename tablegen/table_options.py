"""Build render options for every table in a resolved store config.

Takes the resolved config plus the available user types and works out,
per table, the field layout, key tuple, imports and which accessor
families the table template should emit.
"""

from __future__ import annotations

import logging
import posixpath
from dataclasses import dataclass
from typing import Mapping, Optional

from .config import Store, Table, UserType
from .errors import InvalidKeyError
from .schema_types import (
    ImportDatum,
    RenderType,
    array_element_type,
    get_schema_type_info,
    import_for_abi_or_user_type,
    resolve_abi_or_user_type,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderField(RenderType):
    """A key or value field as seen by the table template."""

    name: str = ""
    array_element: Optional[RenderType] = None


@dataclass(frozen=True)
class StaticResourceData:
    """Table id parts, rendered as a file-level constant."""

    namespace: str
    name: str
    offchain_only: bool


@dataclass(frozen=True)
class RenderTableOptions:
    imports: list[ImportDatum]
    library_name: str
    struct_name: Optional[str]
    static_resource_data: Optional[StaticResourceData]
    store_import_path: str
    key_tuple: list[RenderField]
    fields: list[RenderField]
    static_fields: list[RenderField]
    dynamic_fields: list[RenderField]
    with_getters: bool
    with_record_methods: bool
    with_dynamic_field_methods: bool
    with_suffixless_field_methods: bool
    store_argument: bool


@dataclass(frozen=True)
class TableOptions:
    output_path: str
    table_name: str
    render_options: RenderTableOptions


def _render_field(render_type: RenderType, **extra) -> RenderField:
    return RenderField(**{**vars(render_type), **extra})


def _add_import(imports: list[ImportDatum], datum: ImportDatum | None) -> None:
    """Append an import unless an equal (symbol, path) one is already listed."""
    if datum is None:
        return
    if any(existing.dedup_key == datum.dedup_key for existing in imports):
        return
    imports.append(datum)


def _build_one(
    table: Table,
    config: Store,
    user_types: Mapping[str, UserType],
) -> TableOptions:
    key_schema = table.key_schema
    value_schema = table.value_schema

    # Struct adds methods to get/set all values at once
    with_struct = table.codegen.data_struct
    # Record methods are always needed for offchain tables and multi-field tables
    with_record_methods = (
        with_struct or table.type == "offchainTable" or len(value_schema) > 1
    )
    # Plain get/set only when there is a single field and no record methods
    with_suffixless_field_methods = not with_record_methods and len(value_schema) == 1

    used_in_path = posixpath.join(
        config.codegen.output_directory, table.codegen.output_directory
    )
    imports: list[ImportDatum] = []

    key_tuple: list[RenderField] = []
    for name, field in key_schema.items():
        _, render_type = resolve_abi_or_user_type(field.internal_type, config, user_types)
        if render_type.is_dynamic:
            raise InvalidKeyError(
                f"Key field `{name}` of `{table.label}` has dynamic type `{field.internal_type}`"
            )
        _add_import(
            imports,
            import_for_abi_or_user_type(field.internal_type, used_in_path, config, user_types),
        )
        key_tuple.append(_render_field(render_type, name=name, is_dynamic=False))

    fields: list[RenderField] = []
    for name, field in value_schema.items():
        schema_type, render_type = resolve_abi_or_user_type(
            field.internal_type, config, user_types
        )
        _add_import(
            imports,
            import_for_abi_or_user_type(field.internal_type, used_in_path, config, user_types),
        )
        element = array_element_type(schema_type)
        fields.append(
            _render_field(
                render_type,
                name=name,
                array_element=get_schema_type_info(element) if element else None,
            )
        )

    static_fields = [f for f in fields if not f.is_dynamic]
    dynamic_fields = [f for f in fields if f.is_dynamic]

    # Without tableIdArgument the table id becomes a file-level constant
    if table.codegen.table_id_argument:
        static_resource_data = None
    else:
        static_resource_data = StaticResourceData(
            namespace=table.namespace,
            name=table.name,
            offchain_only=table.type == "offchainTable",
        )

    logger.debug(
        "Table %s: %d key, %d static, %d dynamic fields",
        table.label, len(key_tuple), len(static_fields), len(dynamic_fields),
    )

    return TableOptions(
        output_path=posixpath.join(table.codegen.output_directory, f"{table.label}.sol"),
        table_name=table.label,
        render_options=RenderTableOptions(
            imports=imports,
            library_name=table.label,
            struct_name=f"{table.label}Data" if with_struct else None,
            static_resource_data=static_resource_data,
            store_import_path=config.codegen.store_import_path,
            key_tuple=key_tuple,
            fields=fields,
            static_fields=static_fields,
            dynamic_fields=dynamic_fields,
            with_getters=table.type == "table",
            with_record_methods=with_record_methods,
            with_dynamic_field_methods=table.type == "table",
            with_suffixless_field_methods=with_suffixless_field_methods,
            store_argument=table.codegen.store_argument,
        ),
    )


def build_table_options(
    config: Store,
    user_types: Mapping[str, UserType] | None = None,
) -> list[TableOptions]:
    """Transform a resolved config and its user types into per-table render options."""
    if user_types is None:
        user_types = config.user_types
    return [_build_one(table, config, user_types) for table in config.tables.values()]
