"""Derive repository identifiers and output paths from a type name.

Pattern: {lower_first(T)}BaseRepo
  - User      -> userBaseRepo, written to user_base_repo.py
  - OrderItem -> orderItemBaseRepo, written to orderitem_base_repo.py
  - HTTPLog   -> hTTPLogBaseRepo, written to httplog_base_repo.py

The pointer forms (*User, *userBaseRepo) have no Python meaning; they only
appear in the generated module docstring.
"""

from __future__ import annotations

import string
from dataclasses import dataclass
from pathlib import Path

from .errors import InvalidIdentifierError
from .loader import SOURCE_EXTENSION

REPO_SUFFIX = "BaseRepo"
OUTPUT_SUFFIX = "_base_repo"

_ASCII_LETTERS = frozenset(string.ascii_letters)

# Unprefixed names the generated methods read: parameters, locals, builtins.
RESERVED_NAMES = frozenset({
    "claim", "columns", "criteria", "dest", "entity", "field", "fields", "id",
    "list", "name", "on_delete", "on_update", "related", "self", "session", "stmt",
    "str", "target", "tuple",
})


def validate_type_name(name: str) -> str:
    """Reject names the casing helpers cannot handle."""
    if not name:
        raise InvalidIdentifierError("type name is empty")
    if name[0] not in _ASCII_LETTERS:
        raise InvalidIdentifierError(
            f"type name {name!r} must start with an ASCII letter"
        )
    if not name.isidentifier():
        raise InvalidIdentifierError(f"type name {name!r} is not a valid identifier")
    if name in RESERVED_NAMES:
        raise InvalidIdentifierError(
            f"type name {name!r} is used by the generated repository"
        )
    return name


def lower_first(name: str) -> str:
    """Lowercase the first character only."""
    validate_type_name(name)
    return name[0].lower() + name[1:]


@dataclass(frozen=True)
class Identifiers:
    type_name: str
    repo_name: str
    repo_receiver: str
    type_pointer: str


def derive_identifiers(type_name: str) -> Identifiers:
    """Build every name the templates substitute for ``type_name``."""
    repo_name = lower_first(type_name) + REPO_SUFFIX
    return Identifiers(
        type_name=type_name,
        repo_name=repo_name,
        repo_receiver="*" + repo_name,
        type_pointer="*" + type_name,
    )


def output_filename(type_name: str) -> str:
    """Return e.g. 'user_base_repo.py' for 'User'."""
    validate_type_name(type_name)
    return f"{type_name}{OUTPUT_SUFFIX}{SOURCE_EXTENSION}".lower()


def output_path(type_name: str, source_path: Path) -> Path:
    """Place the generated module beside the file that declared the type."""
    directory = Path(source_path).absolute().parent
    return directory / output_filename(type_name)
