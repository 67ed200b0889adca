"""Schema helpers: table creation, indexes and foreign keys."""

from __future__ import annotations

import re
from typing import Any, Callable, Sequence

from sqlalchemy import Column, Index, MetaData, Table, inspect, text
from sqlalchemy.orm import Session

from .errors import RepoError

_REFERENTIAL_ACTIONS = frozenset({"CASCADE", "RESTRICT", "SET NULL", "SET DEFAULT", "NO ACTION"})
_DEST = re.compile(r"^(\w+)\((\w+)\)$")


def auto_migrate(session: Session, entity_cls: type) -> None:
    """Create the entity's table if it does not exist yet."""
    inspect(entity_cls).local_table.create(session.connection(), checkfirst=True)


def add_index(
    session: Session,
    entity_cls: type,
    name: str,
    columns: Sequence[str],
    unique: bool = False,
) -> None:
    table = inspect(entity_cls).local_table
    if not columns:
        raise RepoError(f"index {name!r} needs at least one column")
    unknown = [c for c in columns if c not in table.c]
    if unknown:
        raise RepoError(f"table {table.name} has no column {unknown[0]!r}")
    # Built on a detached copy so the mapped Table never collects the index.
    detached = Table(
        table.name, MetaData(), *(Column(c, table.c[c].type) for c in columns), schema=table.schema,
    )
    index = Index(name, *(detached.c[c] for c in columns), unique=unique)
    index.create(session.connection(), checkfirst=True)


def _referential_action(value: str) -> str:
    action = " ".join(value.upper().split())
    if action not in _REFERENTIAL_ACTIONS:
        raise RepoError(f"unknown referential action {value!r}")
    return action


def foreign_key_ddl(
    table: str,
    field: str,
    dest: str,
    on_delete: str,
    on_update: str,
    quote: Callable[[str], str] = lambda name: name,
) -> str:
    """ALTER TABLE statement adding a foreign key from ``field`` to ``dest``.

    ``dest`` takes the form ``table(column)``, e.g. ``users(id)``.
    """
    match = _DEST.match(dest.replace(" ", ""))
    if match is None:
        raise RepoError(f"foreign key destination {dest!r} must look like table(column)")
    dest_table, dest_column = match.groups()
    key_name = re.sub(r"[^a-zA-Z0-9]+", "_", f"{table}_{field}_{dest}_foreign")
    return (
        f"ALTER TABLE {quote(table)} ADD CONSTRAINT {quote(key_name)} "
        f"FOREIGN KEY ({quote(field)}) REFERENCES {quote(dest_table)} ({quote(dest_column)}) "
        f"ON DELETE {_referential_action(on_delete)} ON UPDATE {_referential_action(on_update)}"
    )


def add_foreign_key(
    session: Session,
    entity_cls: type,
    field: str,
    dest: str,
    on_delete: str,
    on_update: str,
) -> None:
    table = inspect(entity_cls).local_table
    connection = session.connection()
    preparer: Any = connection.dialect.identifier_preparer
    ddl = foreign_key_ddl(table.name, field, dest, on_delete, on_update, quote=preparer.quote)
    connection.execute(text(ddl))
