"""Render repository templates and write the generated module.

Takes a resolved type and its SourceUnit and produces
<dir>/<type>_base_repo.py beside the declaring module.
"""

from __future__ import annotations

import logging
import os
import shlex
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

import black

from .errors import EmitError
from .loader import SourceUnit
from .naming import Identifiers, derive_identifiers, output_path
from .templates import REPOSITORY_TEMPLATES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedArtifact:
    identifiers: Identifiers
    source: str
    output_path: Path
    formatted: bool = True


def type_import(type_name: str, unit: SourceUnit) -> str:
    """Import line bringing ``type_name`` into the generated module."""
    if not unit.is_package:
        return f"from {unit.module} import {type_name}"
    if unit.module == "__init__":
        return f"from . import {type_name}"
    return f"from .{unit.module} import {type_name}"


def build_context(
    ids: Identifiers, unit: SourceUnit, invocation: Sequence[str] = (),
) -> dict[str, Any]:
    """Build the substitution values shared by every template."""
    return {
        "invocation": shlex.join(invocation),
        "type_name": ids.type_name,
        "type_pointer": ids.type_pointer,
        "repo_name": ids.repo_name,
        "repo_receiver": ids.repo_receiver,
        "type_import": type_import(ids.type_name, unit),
    }


def render(context: dict[str, Any]) -> str:
    """Concatenate every template block in order."""
    return "".join(t.render(context) for t in REPOSITORY_TEMPLATES)


def format_source(src: str) -> tuple[str, bool]:
    """Run black over ``src``; fall back to the raw text if it isn't valid Python."""
    try:
        return black.format_str(src, mode=black.Mode()), True
    except black.InvalidInput as exc:
        # Only reachable through a template bug; the raw text is still written.
        logger.warning("warning: internal error: invalid Python generated: %s", exc)
        logger.warning("warning: import the module to analyze the error")
        return src, False


def write_atomic(path: Path, content: str) -> None:
    """Write via a temp file in the same directory, then rename over ``path``."""
    try:
        fd, tmp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}_", suffix=".tmp")
        os.close(fd)
        tmp = Path(tmp_path)
        try:
            tmp.write_text(content, encoding="utf-8")
            tmp.chmod(0o644)
            tmp.replace(path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise EmitError(f"writing output: {path}: {exc}") from exc
    logger.debug("wrote %s (%d bytes)", path, len(content))


def emit(
    type_name: str, unit: SourceUnit, *, invocation: Sequence[str] = (),
) -> GeneratedArtifact:
    """Generate and write the base repository for ``type_name``."""
    ids = derive_identifiers(type_name)
    context = build_context(ids, unit, invocation)
    src, formatted = format_source(render(context))
    path = output_path(type_name, unit.path)
    write_atomic(path, src)
    return GeneratedArtifact(
        identifiers=ids, source=src, output_path=path, formatted=formatted,
    )
