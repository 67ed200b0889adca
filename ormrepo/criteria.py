"""Composable query criteria for generated repositories.

A criteria option maps a ``Select`` to a new ``Select``. Options are folded
left to right by :func:`apply_criteria`, so their order can matter:

  - ``where`` / ``or_where`` / ``where_not`` accumulate (AND-ed together)
  - ``limit`` and ``offset`` overwrite; the last one of each kind wins,
    and limit/offset commute with each other
  - ``order_by(..., reorder=True)`` drops every ordering added before it
"""

from __future__ import annotations

from functools import reduce
from typing import Any, Callable, Iterable

from sqlalchemy import ColumnElement, Select, literal_column, not_, or_, text
from sqlalchemy.orm import load_only, selectinload

from .errors import RepoError

CriteriaOption = Callable[[Select], Select]
Fields = dict[str, Any]


def _entity(stmt: Select) -> Any:
    """The mapped class a statement selects from."""
    descriptions = stmt.column_descriptions
    entity = descriptions[0].get("entity") if descriptions else None
    if entity is None:
        raise RepoError("criteria require a statement selecting a mapped class")
    return entity


def _clause(query: ColumnElement | str, params: dict[str, Any]) -> ColumnElement:
    if isinstance(query, str):
        clause = text(query)
        return clause.bindparams(**params) if params else clause
    if params:
        raise RepoError("bind parameters are only accepted with textual criteria")
    return query


def _attribute(entity: Any, name: str) -> Any:
    try:
        return getattr(entity, name)
    except AttributeError:
        raise RepoError(f"{entity.__name__} has no attribute {name!r}") from None


def where(query: ColumnElement | str, **params: Any) -> CriteriaOption:
    """AND a condition onto the statement."""
    clause = _clause(query, params)

    def option(stmt: Select) -> Select:
        return stmt.where(clause)
    return option


def or_where(*queries: ColumnElement | str) -> CriteriaOption:
    """AND a group of alternatives: ``(q1 OR q2 ...)``."""
    clauses = [_clause(q, {}) for q in queries]

    def option(stmt: Select) -> Select:
        return stmt.where(or_(*clauses))
    return option


def where_not(query: ColumnElement | str, **params: Any) -> CriteriaOption:
    if isinstance(query, str):
        clause = _clause(f"NOT ({query})", params)
    else:
        clause = not_(_clause(query, params))

    def option(stmt: Select) -> Select:
        return stmt.where(clause)
    return option


def only(*names: str) -> CriteriaOption:
    """Load only the named columns of the entity."""
    def option(stmt: Select) -> Select:
        entity = _entity(stmt)
        return stmt.options(load_only(*(_attribute(entity, n) for n in names)))
    return option


def order_by(name: str, orientation: str = "asc", reorder: bool = False) -> CriteriaOption:
    direction = orientation.lower()
    if direction not in ("asc", "desc"):
        raise RepoError(f"unknown ordering {orientation!r}")

    def option(stmt: Select) -> Select:
        if reorder:
            stmt = stmt.order_by(None)
        entity = _entity(stmt)
        column = getattr(entity, name, None)
        if column is None:
            column = literal_column(name)
        return stmt.order_by(column.desc() if direction == "desc" else column.asc())
    return option


def limit(count: int) -> CriteriaOption:
    def option(stmt: Select) -> Select:
        return stmt.limit(count)
    return option


def offset(count: int) -> CriteriaOption:
    def option(stmt: Select) -> Select:
        return stmt.offset(count)
    return option


def preload(field: str) -> CriteriaOption:
    """Eager-load a relationship in a second SELECT."""
    def option(stmt: Select) -> Select:
        entity = _entity(stmt)
        return stmt.options(selectinload(_attribute(entity, field)))
    return option


def apply_criteria(stmt: Select, criteria: Iterable[CriteriaOption]) -> Select:
    """Fold ``criteria`` over ``stmt`` left to right."""
    return reduce(lambda acc, option: option(acc), criteria, stmt)
