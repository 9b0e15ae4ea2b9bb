"""Store and world config: validation, defaults and table resolution.

Raw configs (as read from mud.config.json) are validated with pydantic
models, then resolved into frozen `Store` / `World` models where every
table carries its label, namespace, resource id, typed schema, key and
fully-defaulted codegen options.
"""

from __future__ import annotations

import logging
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from .errors import ConfigError, InvalidKeyError
from .naming import (
    check_field_counts,
    check_namespace,
    check_resource_name,
    default_resource_name,
    is_valid_identifier,
    resource_to_hex,
    table_key,
)
from .schema_types import is_dynamic_abi_type, is_schema_abi_type, is_static_abi_type, resolve_schema_type

logger = logging.getLogger(__name__)

TableType = Literal["table", "offchainTable"]

_INPUT_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
)

_RESOLVED_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    extra="forbid",
    frozen=True,
)

_STORE_KEYS = frozenset({"namespace", "tables", "userTypes", "enums", "codegen"})
_WORLD_KEYS = _STORE_KEYS | {"systems", "excludeSystems", "modules", "deploy"}

_TABLE_OVERRIDE_ERROR = (
    "Overrides of `label` and `namespace` are not allowed for tables in a store config"
)


# ---------------------------------------------------------------------------
# Shared building blocks (used as both input and resolved output)
# ---------------------------------------------------------------------------


class UserType(BaseModel):
    """A Solidity user-defined value type aliasing an ABI type."""

    model_config = _RESOLVED_CONFIG

    type: str = Field(..., description="Underlying ABI type, e.g. 'address'.")
    file_path: str = Field(default="", description="Solidity file declaring the type.")

    @field_validator("type")
    @classmethod
    def _abi_type(cls, v: str) -> str:
        if not is_schema_abi_type(v):
            raise ValueError(f"User types must alias an ABI type, received `{v}`")
        return v


class StoreCodegen(BaseModel):
    model_config = _RESOLVED_CONFIG

    store_import_path: str = "@latticexyz/store/src/"
    user_types_filename: str = "common.sol"
    output_directory: str = "codegen"
    index_filename: str = "index.sol"


class WorldCodegen(StoreCodegen):
    world_interface_name: str = "IWorld"
    worldgen_directory: str = "world"
    world_import_path: str = "@latticexyz/world/src/"


class TableDeploy(BaseModel):
    model_config = _RESOLVED_CONFIG

    disabled: bool = False


class WorldDeploy(BaseModel):
    model_config = _RESOLVED_CONFIG

    custom_world_contract: Optional[str] = None
    post_deploy_script: str = "PostDeploy"
    deploys_directory: str = "./deploys"
    worlds_file: str = "./worlds.json"
    upgradeable_world_implementation: bool = False


# ---------------------------------------------------------------------------
# Input models
# ---------------------------------------------------------------------------


class TableCodegenInput(BaseModel):
    model_config = _INPUT_CONFIG

    output_directory: str = "tables"
    table_id_argument: bool = False
    store_argument: bool = False
    data_struct: Optional[bool] = None


class TableInput(BaseModel):
    model_config = _INPUT_CONFIG

    table_schema: dict[str, str] = Field(..., alias="schema")
    key: list[str] = Field(default_factory=list)
    type: TableType = "table"
    name: Optional[str] = None
    codegen: TableCodegenInput = Field(default_factory=TableCodegenInput)
    deploy: TableDeploy = Field(default_factory=TableDeploy)


class StoreInput(BaseModel):
    model_config = _INPUT_CONFIG

    namespace: str = ""
    tables: dict[str, TableInput] = Field(default_factory=dict)
    user_types: dict[str, UserType] = Field(default_factory=dict)
    enums: dict[str, list[str]] = Field(default_factory=dict)
    codegen: StoreCodegen = Field(default_factory=StoreCodegen)

    @field_validator("enums")
    @classmethod
    def _valid_enums(cls, v: dict[str, list[str]]) -> dict[str, list[str]]:
        for name, members in v.items():
            if not members:
                raise ValueError(f"Enum `{name}` must have at least one member")
            if len(members) > 256:
                raise ValueError(f"Enum `{name}` has more than 256 members")
            if len(members) != len(set(members)):
                dupes = sorted({m for m in members if members.count(m) > 1})
                raise ValueError(f"Enum `{name}` has duplicate members: {dupes}")
        return v


class SystemInput(BaseModel):
    model_config = _INPUT_CONFIG

    name: Optional[str] = None
    open_access: bool = True
    access_list: list[str] = Field(default_factory=list)
    register_function_selectors: bool = True


class WorldInput(StoreInput):
    codegen: WorldCodegen = Field(default_factory=WorldCodegen)
    deploy: WorldDeploy = Field(default_factory=WorldDeploy)
    systems: dict[str, SystemInput] = Field(default_factory=dict)
    exclude_systems: list[str] = Field(default_factory=list)
    modules: list[dict[str, Any]] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Resolved models
# ---------------------------------------------------------------------------


class SchemaField(BaseModel):
    model_config = _RESOLVED_CONFIG

    type: str
    internal_type: str


class TableCodegen(BaseModel):
    model_config = _RESOLVED_CONFIG

    output_directory: str
    table_id_argument: bool
    store_argument: bool
    data_struct: bool


class Table(BaseModel):
    """A fully resolved table definition."""

    model_config = _RESOLVED_CONFIG

    label: str
    type: TableType
    namespace: str
    name: str
    table_id: str
    table_schema: dict[str, SchemaField] = Field(..., alias="schema")
    key: list[str]
    codegen: TableCodegen
    deploy: TableDeploy

    @property
    def key_schema(self) -> dict[str, SchemaField]:
        return {name: self.table_schema[name] for name in self.key}

    @property
    def value_schema(self) -> dict[str, SchemaField]:
        return {
            name: field
            for name, field in self.table_schema.items()
            if name not in self.key
        }


class System(BaseModel):
    model_config = _RESOLVED_CONFIG

    label: str
    namespace: str
    name: str
    system_id: str
    open_access: bool
    access_list: list[str]
    register_function_selectors: bool


class Store(BaseModel):
    """Resolved store config."""

    model_config = _RESOLVED_CONFIG

    namespace: str
    tables: dict[str, Table]
    user_types: dict[str, UserType]
    enums: dict[str, list[str]]
    enum_values: dict[str, dict[str, int]]
    codegen: StoreCodegen


class World(Store):
    """Resolved world config: a store plus systems and deploy settings."""

    codegen: WorldCodegen
    deploy: WorldDeploy
    systems: dict[str, System]
    exclude_systems: list[str]
    modules: list[dict[str, Any]]


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def _check_keys(raw: dict[str, Any], allowed: frozenset[str], kind: str) -> None:
    """Reject top-level keys that are not part of the config shape."""
    for key in raw:
        if key not in allowed and to_camel(key) not in allowed:
            raise ConfigError(f"`{key}` is not a valid {kind} config option.")


def _check_table_overrides(raw: dict[str, Any]) -> None:
    tables = raw.get("tables") or {}
    if not isinstance(tables, dict):
        return
    for table in tables.values():
        if isinstance(table, dict) and ("label" in table or "namespace" in table):
            raise ConfigError(_TABLE_OVERRIDE_ERROR)


def _validate(model: type[BaseModel], raw: dict[str, Any], kind: str) -> Any:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"Invalid {kind} config: {exc}") from exc


def _format_names(names: list[str]) -> str:
    return ", ".join(f'"{n}"' for n in names)


def _resolve_table(
    label: str,
    table: TableInput,
    namespace: str,
    enums: dict[str, list[str]],
    user_types: dict[str, UserType],
) -> Table:
    """Resolve one table input against the config's enums and user types."""
    schema = {
        field_name: SchemaField(
            type=resolve_schema_type(type_name, enums, user_types),
            internal_type=type_name,
        )
        for field_name, type_name in table.table_schema.items()
    }

    static_names = [n for n, f in schema.items() if is_static_abi_type(f.type)]
    if any(k not in static_names for k in table.key):
        expected = " | ".join(f'"{n}"' for n in static_names)
        raise InvalidKeyError(
            f"Invalid key. Expected `({expected})[]`, received `[{_format_names(table.key)}]`"
        )
    if len(set(table.key)) != len(table.key):
        raise InvalidKeyError(f"Duplicate key fields in `{label}`: [{_format_names(table.key)}]")

    value_fields = [f for n, f in schema.items() if n not in table.key]
    check_field_counts(
        len(value_fields), sum(1 for f in value_fields if is_dynamic_abi_type(f.type))
    )

    name = table.name if table.name is not None else default_resource_name(label)
    check_resource_name(name)

    data_struct = table.codegen.data_struct
    if data_struct is None:
        data_struct = len(value_fields) > 1

    return Table(
        label=label,
        type=table.type,
        namespace=namespace,
        name=name,
        table_id=resource_to_hex(table.type, namespace, name),
        schema=schema,
        key=list(table.key),
        codegen=TableCodegen(
            output_directory=table.codegen.output_directory,
            table_id_argument=table.codegen.table_id_argument,
            store_argument=table.codegen.store_argument,
            data_struct=data_struct,
        ),
        deploy=table.deploy,
    )


def _resolve_store_fields(store: StoreInput) -> dict[str, Any]:
    check_namespace(store.namespace)

    collisions = sorted(set(store.enums) & set(store.user_types))
    if collisions:
        raise ConfigError(f"Names used for both enums and user types: {collisions}")
    for type_name in list(store.enums) + list(store.user_types):
        if is_schema_abi_type(type_name) or not is_valid_identifier(type_name):
            raise ConfigError(f"`{type_name}` cannot be used as a user type or enum name")

    tables: dict[str, Table] = {}
    for label, table_input in store.tables.items():
        table = _resolve_table(
            label, table_input, store.namespace, store.enums, store.user_types
        )
        tables[table_key(store.namespace, label)] = table
        logger.debug("Resolved table %s (%s)", label, table.table_id)

    return {
        "namespace": store.namespace,
        "tables": tables,
        "user_types": dict(store.user_types),
        "enums": {name: list(members) for name, members in store.enums.items()},
        "enum_values": {
            name: {member: index for index, member in enumerate(members)}
            for name, members in store.enums.items()
        },
    }


def define_store(raw: dict[str, Any]) -> Store:
    """Validate a raw store config and resolve it with defaults applied."""
    _check_keys(raw, _STORE_KEYS, "Store")
    _check_table_overrides(raw)
    store = _validate(StoreInput, raw, "Store")
    return Store(codegen=store.codegen, **_resolve_store_fields(store))


def define_world(raw: dict[str, Any]) -> World:
    """Validate a raw world config and resolve it with defaults applied."""
    if "namespaces" in raw:
        raise ConfigError("Namespaces config will be enabled soon.")
    _check_keys(raw, _WORLD_KEYS, "World")
    _check_table_overrides(raw)
    world = _validate(WorldInput, raw, "World")

    systems: dict[str, System] = {}
    for label, system in world.systems.items():
        name = system.name if system.name is not None else default_resource_name(label)
        check_resource_name(name)
        systems[label] = System(
            label=label,
            namespace=world.namespace,
            name=name,
            system_id=resource_to_hex("system", world.namespace, name),
            open_access=system.open_access,
            access_list=list(system.access_list),
            register_function_selectors=system.register_function_selectors,
        )

    return World(
        codegen=world.codegen,
        deploy=world.deploy,
        systems=systems,
        exclude_systems=list(world.exclude_systems),
        modules=list(world.modules),
        **_resolve_store_fields(world),
    )
