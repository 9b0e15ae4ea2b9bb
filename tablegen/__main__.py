"""Entry point: python -m tablegen [config.json] [--root DIR] [--world]

Reads mud.config.json, generates table libraries under <root>/<outputDirectory>.
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from .codegen import tablegen
from .loader import DEFAULT_CONFIG_PATH, load_store_config, load_world_config


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="tablegen")
    parser.add_argument("config", nargs="?", type=Path, default=DEFAULT_CONFIG_PATH)
    parser.add_argument("--root", type=Path, default=Path("src"))
    parser.add_argument("--world", action="store_true", help="Treat the config as a world config")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    load = load_world_config if args.world else load_store_config
    config = load(args.config)
    tablegen(config, args.root)


if __name__ == "__main__":
    main()
