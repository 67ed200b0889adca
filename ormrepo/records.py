"""Primary-key and lookup helpers used by generated repositories."""

from __future__ import annotations

from typing import Any

from sqlalchemy import Column, Select, inspect, select
from sqlalchemy.orm import Session, with_parent

from .errors import RecordNotFoundError, RepoError


def primary_key_columns(entity_cls: type) -> tuple[Column, ...]:
    return tuple(inspect(entity_cls).primary_key)


def primary_key_column(entity_cls: type) -> Column:
    """The single primary-key column of ``entity_cls``."""
    columns = primary_key_columns(entity_cls)
    if len(columns) != 1:
        raise RepoError(
            f"{entity_cls.__name__} has a composite primary key; get() needs exactly one column"
        )
    return columns[0]


def _is_blank(value: Any) -> bool:
    if value is None or value == "":
        return True
    return isinstance(value, int) and not isinstance(value, bool) and value == 0


def primary_key_values(entity: Any) -> tuple[Any, ...]:
    mapper = inspect(type(entity))
    return tuple(
        getattr(entity, mapper.get_property_by_column(column).key)
        for column in mapper.primary_key
    )


def is_new_record(entity: Any) -> bool:
    """True while every primary-key value is blank (None, "" or 0)."""
    return all(_is_blank(value) for value in primary_key_values(entity))


def identity_select(entity: Any) -> Select:
    """SELECT the row ``entity`` maps to, by primary key."""
    cls = type(entity)
    values = primary_key_values(entity)
    if any(_is_blank(value) for value in values):
        raise RepoError(f"{cls.__name__} entity has a blank primary key")
    return select(cls).where(
        *(column == value for column, value in zip(primary_key_columns(cls), values))
    )


def assign_fields(entity: Any, fields: dict[str, Any]) -> None:
    """Set column attributes on ``entity``; unknown names change nothing."""
    cls = type(entity)
    columns = inspect(cls).column_attrs
    unknown = [name for name in fields if name not in columns]
    if unknown:
        raise RepoError(f"{cls.__name__} has no column {unknown[0]!r}")
    for name, value in fields.items():
        setattr(entity, name, value)


def first(stmt: Select, entity_cls: type) -> Select:
    """First row in primary-key order."""
    return stmt.order_by(*(c.asc() for c in primary_key_columns(entity_cls))).limit(1)


def last(stmt: Select, entity_cls: type) -> Select:
    """Last row in primary-key order."""
    return stmt.order_by(*(c.desc() for c in primary_key_columns(entity_cls))).limit(1)


def one_or_raise(session: Session, stmt: Select) -> Any:
    entity = session.scalars(stmt).first()
    if entity is None:
        raise RecordNotFoundError()
    return entity


def related_select(claim: Any, related: str) -> Select:
    """SELECT the objects reached from ``claim`` through relationship ``related``."""
    cls = type(claim)
    relationships = inspect(cls).relationships
    if related not in relationships:
        raise RepoError(f"{cls.__name__} has no relationship {related!r}")
    relationship = relationships[related]
    return select(relationship.mapper.class_).where(
        with_parent(claim, getattr(cls, related))
    )
