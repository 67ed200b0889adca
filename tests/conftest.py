"""Shared fixtures: throwaway packages on disk and a clean logger per test."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable

import pytest


@pytest.fixture(autouse=True)
def _reset_ormrepogen_logger():
    """Undo configure_logging() so caplog sees records in every test."""
    yield
    logger = logging.getLogger("ormrepogen")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def write_package(tmp_path: Path) -> Callable[..., Path]:
    """Write ``{filename: source}`` into a directory and return it."""
    def _write(files: dict[str, str], name: str = "pkg") -> Path:
        directory = tmp_path / name
        directory.mkdir(exist_ok=True)
        for filename, source in files.items():
            (directory / filename).write_text(source, encoding="utf-8")
        return directory
    return _write


@pytest.fixture
def import_path(monkeypatch):
    """Put a directory on sys.path and forget any modules imported from it."""
    added: list[str] = []

    def _add(directory: Path) -> None:
        added.append(str(directory))
        monkeypatch.syspath_prepend(str(directory))

    yield _add
    for name, module in list(sys.modules.items()):
        file = getattr(module, "__file__", None) or ""
        if any(file.startswith(d) for d in added):
            del sys.modules[name]
