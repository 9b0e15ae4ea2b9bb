"""Tests for the table_options module."""

import pytest

from tablegen.config import UserType, define_store
from tablegen.errors import InvalidKeyError, UnknownTypeError
from tablegen.table_options import build_table_options


class TestScenarios:
    """End-to-end shapes of single tables."""

    def test_single_field_table(self, single_table):
        """One key, one value, defaults: suffixless field methods only."""
        options = single_table({"id": "address", "value": "uint256"}, ["id"])
        render = options.render_options
        assert render.with_record_methods is False
        assert render.with_suffixless_field_methods is True
        assert render.with_getters is True
        assert render.struct_name is None

    def test_two_field_table(self, single_table):
        """Two values, one dynamic: record methods and a static/dynamic split."""
        options = single_table(
            {"id": "address", "value": "uint256", "extra": "string"}, ["id"]
        )
        render = options.render_options
        assert render.with_record_methods is True
        assert render.with_suffixless_field_methods is False
        assert [f.name for f in render.static_fields] == ["value"]
        assert [f.name for f in render.dynamic_fields] == ["extra"]

    def test_offchain_table(self, single_table):
        options = single_table(
            {"id": "address", "value": "uint256"}, ["id"], type="offchainTable"
        )
        render = options.render_options
        assert render.with_getters is False
        assert render.with_dynamic_field_methods is False
        assert render.with_record_methods is True
        assert render.with_suffixless_field_methods is False

    def test_user_type_import(self):
        """A file-backed user type yields exactly one import for that file."""
        config = define_store({
            "userTypes": {"Amount": {"type": "uint128", "filePath": "src/Amount.sol"}},
            "tables": {
                "Balances": {
                    "schema": {"id": "address", "free": "Amount", "locked": "Amount"},
                    "key": ["id"],
                },
            },
        })
        (options,) = build_table_options(config)
        imports = options.render_options.imports
        assert len(imports) == 1
        assert imports[0].symbol == "Amount"
        assert imports[0].from_path == "src/Amount.sol"


class TestFlags:
    """Feature flags derived from table shape and codegen options."""

    def test_data_struct_forces_record_methods(self, single_table):
        options = single_table(
            {"id": "address", "value": "uint256"}, ["id"], codegen={"dataStruct": True}
        )
        render = options.render_options
        assert render.struct_name == "ExampleData"
        assert render.with_record_methods is True
        assert render.with_suffixless_field_methods is False

    def test_multi_field_without_struct(self, single_table):
        """More than one value field means record methods even without a struct."""
        options = single_table(
            {"id": "address", "a": "uint8", "b": "bool"}, ["id"], codegen={"dataStruct": False}
        )
        render = options.render_options
        assert render.struct_name is None
        assert render.with_record_methods is True

    def test_multi_field_defaults_to_struct(self, single_table):
        options = single_table({"id": "address", "a": "uint8", "b": "bool"}, ["id"])
        assert options.render_options.struct_name == "ExampleData"

    def test_no_value_fields(self, single_table):
        """A key-only table gets neither record nor suffixless methods."""
        options = single_table({"id": "address"}, ["id"])
        render = options.render_options
        assert render.fields == []
        assert render.with_record_methods is False
        assert render.with_suffixless_field_methods is False

    def test_flags_mutually_exclusive(self, options_by_name):
        for options in options_by_name.values():
            render = options.render_options
            assert not (render.with_record_methods and render.with_suffixless_field_methods)

    def test_store_argument_passthrough(self, single_table):
        options = single_table(
            {"id": "address", "value": "uint256"}, ["id"], codegen={"storeArgument": True}
        )
        assert options.render_options.store_argument is True


class TestStaticResourceData:

    def test_present_by_default(self, options_by_name):
        data = options_by_name["Counter"].render_options.static_resource_data
        assert data is not None
        assert data.namespace == "app"
        assert data.name == "Counter"
        assert data.offchain_only is False

    def test_offchain_flag(self, options_by_name):
        data = options_by_name["Moves"].render_options.static_resource_data
        assert data.offchain_only is True

    def test_absent_with_table_id_argument(self, single_table):
        options = single_table(
            {"id": "address", "value": "uint256"}, ["id"], codegen={"tableIdArgument": True}
        )
        assert options.render_options.static_resource_data is None


class TestFields:

    def test_partition_preserves_order(self, options_by_name):
        for options in options_by_name.values():
            render = options.render_options
            static_names = [f.name for f in render.static_fields]
            dynamic_names = [f.name for f in render.dynamic_fields]
            assert not set(static_names) & set(dynamic_names)
            assert sorted(static_names + dynamic_names) == sorted(f.name for f in render.fields)
            assert static_names == [f.name for f in render.fields if not f.is_dynamic]
            assert dynamic_names == [f.name for f in render.fields if f.is_dynamic]

    def test_player_fields(self, options_by_name):
        render = options_by_name["Player"].render_options
        assert [f.name for f in render.fields] == ["heading", "position", "name", "inventory"]
        assert [f.name for f in render.static_fields] == ["heading", "position"]
        assert [f.name for f in render.dynamic_fields] == ["name", "inventory"]

    def test_key_tuple(self, options_by_name):
        render = options_by_name["Player"].render_options
        assert [k.name for k in render.key_tuple] == ["id"]
        assert render.key_tuple[0].is_dynamic is False
        assert render.key_tuple[0].type_id == "bytes32"

    def test_array_element_attached(self, options_by_name):
        render = options_by_name["Player"].render_options
        inventory = render.fields[3]
        assert inventory.array_element is not None
        assert inventory.array_element.type_id == "uint32"
        assert inventory.array_element.static_byte_length == 4
        assert render.fields[2].array_element is None

    def test_enum_field(self, options_by_name):
        heading = options_by_name["Player"].render_options.fields[0]
        assert heading.type_id == "Direction"
        assert heading.internal_type_id == "uint8"
        assert heading.type_wrap == "Direction"
        assert heading.type_unwrap == "uint8"

    def test_user_type_field(self, options_by_name):
        position = options_by_name["Player"].render_options.fields[1]
        assert position.type_id == "Position"
        assert position.internal_type_id == "uint64"
        assert position.type_wrap == "Position.wrap"
        assert position.static_byte_length == 8


class TestImports:

    def test_imports_collected(self, options_by_name):
        imports = options_by_name["Player"].render_options.imports
        assert {(i.symbol, i.from_path) for i in imports} == {
            ("Direction", "codegen/common.sol"),
            ("Position", "src/types/Position.sol"),
        }

    def test_no_imports_for_abi_types(self, options_by_name):
        assert options_by_name["Counter"].render_options.imports == []

    def test_imports_used_in_table_directory(self, options_by_name):
        for datum in options_by_name["Player"].render_options.imports:
            assert datum.used_in_path == "codegen/tables"


class TestBuildTableOptions:

    def test_one_entry_per_table_in_order(self, store):
        options = build_table_options(store)
        assert [o.table_name for o in options] == ["Counter", "Player", "Moves"]

    def test_empty_tables(self):
        assert build_table_options(define_store({})) == []

    def test_output_path(self, options_by_name):
        """Output path ignores the namespace."""
        assert options_by_name["Counter"].output_path == "tables/Counter.sol"

    def test_custom_output_directory(self, single_table):
        options = single_table(
            {"id": "address", "value": "uint256"}, ["id"], codegen={"outputDirectory": "store/tables"}
        )
        assert options.output_path == "store/tables/Example.sol"

    def test_library_name_and_store_import_path(self, options_by_name):
        render = options_by_name["Counter"].render_options
        assert render.library_name == "Counter"
        assert render.store_import_path == "@latticexyz/store/src/"

    def test_deterministic(self, store):
        assert build_table_options(store) == build_table_options(store)

    def test_unknown_user_type(self, store):
        """Resolution fails when the given user types lack an alias the config uses."""
        with pytest.raises(UnknownTypeError, match="Position"):
            build_table_options(store, user_types={})

    def test_explicit_user_types_override(self, store):
        user_types = {
            "Position": UserType(type="uint64", file_path="lib/Position.sol"),
            "Label": UserType(type="string", file_path="lib/Label.sol"),
        }
        options = {o.table_name: o for o in build_table_options(store, user_types)}
        paths = {i.from_path for i in options["Player"].render_options.imports}
        assert "lib/Position.sol" in paths

    def test_dynamic_user_type_key_rejected(self):
        """A key that resolves to a dynamic type fails fast."""
        config = define_store({
            "userTypes": {"Id": {"type": "uint256", "filePath": "src/Id.sol"}},
            "tables": {"Example": {"schema": {"id": "Id", "value": "bool"}, "key": ["id"]}},
        })
        with pytest.raises(InvalidKeyError):
            build_table_options(config, {"Id": UserType(type="string", file_path="src/Id.sol")})
