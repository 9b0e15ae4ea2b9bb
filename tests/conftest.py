"""Shared fixtures for tablegen tests.

Raw configs are plain dicts shaped like mud.config.json; each test gets a
fresh copy so it can mutate freely.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any, Callable

import pytest

from tablegen.config import Store, define_store
from tablegen.table_options import TableOptions, build_table_options


_RAW_STORE: dict[str, Any] = {
    "namespace": "app",
    "enums": {
        "Direction": ["North", "East", "South", "West"],
    },
    "userTypes": {
        "Position": {"type": "uint64", "filePath": "src/types/Position.sol"},
        "Label": {"type": "string", "filePath": "src/types/Label.sol"},
    },
    "tables": {
        "Counter": {
            "schema": {"id": "address", "value": "uint256"},
            "key": ["id"],
        },
        "Player": {
            "schema": {
                "id": "bytes32",
                "heading": "Direction",
                "position": "Position",
                "name": "string",
                "inventory": "uint32[]",
            },
            "key": ["id"],
        },
        "Moves": {
            "type": "offchainTable",
            "schema": {"id": "bytes32", "at": "Position"},
            "key": ["id"],
        },
    },
}


@pytest.fixture()
def raw_store() -> dict[str, Any]:
    """A store config exercising enums, user types and offchain tables."""
    return copy.deepcopy(_RAW_STORE)


@pytest.fixture()
def store(raw_store: dict[str, Any]) -> Store:
    return define_store(raw_store)


@pytest.fixture()
def options_by_name(store: Store) -> dict[str, TableOptions]:
    return {o.table_name: o for o in build_table_options(store)}


@pytest.fixture()
def single_table() -> Callable[..., TableOptions]:
    """Build options for a one-table store from a schema, key and table overrides."""
    def _build(schema: dict[str, str], key: list[str], **table: Any) -> TableOptions:
        raw = {"tables": {"Example": {"schema": schema, "key": key, **table}}}
        (options,) = build_table_options(define_store(raw))
        return options
    return _build


@pytest.fixture()
def config_file(raw_store: dict[str, Any], tmp_path: Path) -> Path:
    path = tmp_path / "mud.config.json"
    path.write_text(json.dumps(raw_store))
    return path
