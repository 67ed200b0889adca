"""Parse a package's modules and find where a type is declared.

Two input modes:
  - one directory      -> every buildable module in it (sorted by name)
  - explicit files     -> exactly those files, which must share a directory

Only top-level declarations count: ``class`` statements and PEP 695
``type`` aliases. Lookup is exact and case-sensitive; the first unit in
parse order that declares the name wins.
"""

from __future__ import annotations

import ast
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from .errors import ResolveError

SOURCE_EXTENSION = ".py"

logger = logging.getLogger(__name__)

# ast.TypeAlias only exists on Python 3.12+
_TYPE_ALIAS = getattr(ast, "TypeAlias", None)


@dataclass(frozen=True)
class Declaration:
    name: str
    kind: str
    lineno: int


@dataclass(frozen=True)
class SourceUnit:
    """One parsed module."""

    path: Path
    module: str
    declarations: tuple[Declaration, ...]
    is_package: bool = False

    def declares(self, name: str) -> bool:
        return any(d.name == name for d in self.declarations)


@dataclass(frozen=True)
class TypeDeclaration:
    name: str
    unit: SourceUnit


@dataclass(frozen=True)
class Package:
    """The parsed units of one invocation, in parse order."""

    directory: Path
    units: tuple[SourceUnit, ...]

    def resolve(self, type_name: str) -> TypeDeclaration | None:
        """Return the first declaration named ``type_name``, or None."""
        for unit in self.units:
            for decl in unit.declarations:
                if decl.name == type_name:
                    return TypeDeclaration(name=type_name, unit=unit)
        return None

    def declaring_units(self, type_name: str) -> list[SourceUnit]:
        """Every unit declaring ``type_name``, in parse order."""
        return [u for u in self.units if u.declares(type_name)]


def _top_level_declarations(tree: ast.Module) -> tuple[Declaration, ...]:
    decls: list[Declaration] = []
    for node in tree.body:
        if isinstance(node, ast.ClassDef):
            decls.append(Declaration(node.name, "class", node.lineno))
        elif _TYPE_ALIAS is not None and isinstance(node, _TYPE_ALIAS):
            decls.append(Declaration(node.name.id, "alias", node.lineno))
    return tuple(decls)


def parse_source(path: Path, text: str | None = None) -> SourceUnit:
    """Parse one module into a SourceUnit. Raises ResolveError on failure."""
    path = Path(path).absolute()
    if text is None:
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise ResolveError(f"parsing package: {path}: {exc}") from exc
    try:
        tree = ast.parse(text, filename=str(path))
    except (SyntaxError, ValueError) as exc:
        raise ResolveError(f"parsing package: {path}: {exc}") from exc

    return SourceUnit(
        path=path,
        module=path.stem,
        declarations=_top_level_declarations(tree),
        is_package=(path.parent / "__init__.py").is_file(),
    )


def is_buildable(name: str) -> bool:
    """Whether a file name is a normal (non-test, non-hidden) module."""
    if not name.endswith(SOURCE_EXTENSION) or name.startswith("."):
        return False
    stem = name[: -len(SOURCE_EXTENSION)]
    return not (stem.startswith("test_") or stem.endswith("_test"))


def _parse_all(directory: Path, paths: Iterable[Path]) -> Package:
    units = []
    for path in paths:
        if path.suffix != SOURCE_EXTENSION:
            logger.debug("skipping %s: not a %s file", path, SOURCE_EXTENSION)
            continue
        units.append(parse_source(path))
        logger.debug("parsed %s (%d declarations)", path, len(units[-1].declarations))

    if not units:
        raise ResolveError(f"{directory}: no buildable Python files")
    return Package(directory=directory, units=tuple(units))


def parse_package_dir(directory: str | Path) -> Package:
    """Parse every buildable module in ``directory``."""
    directory = Path(directory)
    try:
        names = sorted(
            entry.name for entry in directory.iterdir()
            if entry.is_file() and is_buildable(entry.name)
        )
    except OSError as exc:
        raise ResolveError(f"cannot process directory {directory}: {exc}") from exc
    return _parse_all(directory, (directory / name for name in names))


def parse_package_files(paths: Sequence[str | Path]) -> Package:
    """Parse exactly ``paths`` as one package."""
    files = [Path(p) for p in paths]
    parents = {f.absolute().parent for f in files if f.suffix == SOURCE_EXTENSION}
    if len(parents) > 1:
        listed = ", ".join(sorted(str(p) for p in parents))
        raise ResolveError(f"files must belong to a single package, got directories: {listed}")
    directory = parents.pop() if parents else Path(".")
    return _parse_all(directory, files)


def load_package(args: Sequence[str | Path]) -> Package:
    """Pick directory or file mode from the positional arguments."""
    if not args:
        args = ["."]
    if len(args) == 1:
        target = Path(args[0])
        if not target.exists():
            raise ResolveError(f"{target}: no such file or directory")
        if target.is_dir():
            return parse_package_dir(target)
    missing = [str(a) for a in args if not Path(a).exists()]
    if missing:
        raise ResolveError(f"{missing[0]}: no such file or directory")
    return parse_package_files(args)
