"""Command-line interface: ormrepogen -t T[,T...] [directory | files...]"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Sequence

from . import __version__
from .codegen import emit
from .errors import GeneratorError, InvalidIdentifierError
from .loader import load_package
from .log import configure_logging
from .naming import validate_type_name

logger = logging.getLogger(__name__)

_USAGE = """\
%(prog)s [flags] -t T [directory]
       %(prog)s [flags] -t T files...  # must be a single package"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ormrepogen",
        usage=_USAGE,
        description="Generate SQLAlchemy base repositories for declared classes.",
    )
    parser.add_argument(
        "-t",
        "--type",
        dest="types",
        required=True,
        help="comma-separated list of type names; must be set",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Enable debug logging.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "paths",
        nargs="*",
        default=["."],
        help="One package directory or several files of one package (default: .).",
    )
    return parser


def _split_types(parser: argparse.ArgumentParser, value: str) -> list[str]:
    names = [name.strip() for name in value.split(",")]
    if not any(names):
        parser.error("-t: at least one type name is required")
    for name in names:
        try:
            validate_type_name(name)
        except InvalidIdentifierError as exc:
            parser.error(str(exc))
    return names


def main(argv: Sequence[str] | None = None) -> int:
    """Run the generator; returns the process exit code."""
    argv = list(sys.argv[1:] if argv is None else argv)
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(verbose=args.verbose)

    type_names = _split_types(parser, args.types)

    try:
        package = load_package(args.paths)
    except GeneratorError as exc:
        logger.error("%s", exc)
        return 1

    for type_name in type_names:
        decl = package.resolve(type_name)
        if decl is None:
            print(f"Type {type_name} is not found")
            continue

        units = package.declaring_units(type_name)
        if len(units) > 1:
            others = ", ".join(str(u.path) for u in units[1:])
            logger.warning(
                "type %s is declared more than once; using %s (also in %s)",
                type_name, decl.unit.path, others,
            )

        try:
            artifact = emit(type_name, decl.unit, invocation=argv)
        except GeneratorError as exc:
            logger.error("%s", exc)
            return 1
        print(f"Type {type_name} repository is generated: {artifact.output_path}")

    return 0
