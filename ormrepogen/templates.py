"""Template records for the generated repository module.

Each record names the block, the substitution keys it needs and its Jinja2
skeleton. Every skeleton is checked against its declared keys when this
module is imported, so a misspelled placeholder fails at import time instead
of producing a broken repository.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import jinja2
from jinja2 import meta

from .errors import TemplateError

ENV = jinja2.Environment(
    undefined=jinja2.StrictUndefined,
    keep_trailing_newline=True,
    trim_blocks=True,
    lstrip_blocks=True,
    autoescape=False,
)


@dataclass(frozen=True)
class TemplateRecord:
    name: str
    params: frozenset[str]
    body: str
    _template: jinja2.Template = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        used = meta.find_undeclared_variables(ENV.parse(self.body))
        if used != self.params:
            missing = sorted(used - self.params)
            unused = sorted(self.params - used)
            raise TemplateError(
                f"template {self.name!r}: undeclared {missing}, unused {unused}"
            )
        object.__setattr__(self, "_template", ENV.from_string(self.body))

    def render(self, context: Mapping[str, Any]) -> str:
        """Render with just this record's keys taken from ``context``."""
        missing = sorted(self.params - context.keys())
        if missing:
            raise TemplateError(f"template {self.name!r}: no value for {missing}")
        return self._template.render({key: context[key] for key in self.params})


def _record(name: str, body: str, *params: str) -> TemplateRecord:
    return TemplateRecord(name=name, params=frozenset(params), body=body)


HEADER = _record("header", '''\
# Code generated by "ormrepogen {{ invocation }}"; DO NOT EDIT.
"""Base repository for {{ type_name }}.

Entity {{ type_pointer }}, receiver {{ repo_receiver }}.
"""

from __future__ import annotations

from typing import Any as _Any

from sqlalchemy import Select as _Select, select as _select
from sqlalchemy.orm import Session as _Session

import ormrepo as _ormrepo
from ormrepo import CriteriaOption as _CriteriaOption, Fields as _Fields

{{ type_import }}
''', "invocation", "type_name", "type_pointer", "repo_receiver", "type_import")

BASE_REPO = _record("base_repo", '''

class {{ repo_name }}:
    def __init__(self, session: _Session) -> None:
        self.session = session
''', "repo_name")

APPLY_CRITERIA = _record("apply_criteria", '''
    def _apply_criteria(self, criteria: tuple[_CriteriaOption, ...]) -> _Select:
        return _ormrepo.apply_criteria(_select({{ type_name }}), criteria)
''', "type_name")

RELATED = _record("related", '''
    def related(
        self, claim: {{ type_name }}, related: str, *criteria: _CriteriaOption
    ) -> list[_Any]:
        stmt = _ormrepo.apply_criteria(_ormrepo.related_select(claim, related), criteria)
        return list(self.session.scalars(stmt).all())
''', "type_name")

GET = _record("get", '''
    def get(self, id: _Any) -> {{ type_name }}:
        stmt = _select({{ type_name }}).where(
            _ormrepo.primary_key_column({{ type_name }}) == id
        )
        return _ormrepo.one_or_raise(self.session, stmt)
''', "type_name")

GET_ALL = _record("get_all", '''
    def get_all(self) -> list[{{ type_name }}]:
        return self.get_by()
''', "type_name")

GET_BY = _record("get_by", '''
    def get_by(self, *criteria: _CriteriaOption) -> list[{{ type_name }}]:
        return list(self.session.scalars(self._apply_criteria(criteria)).all())
''', "type_name")

GET_BY_FIRST = _record("get_by_first", '''
    def get_by_first(self, *criteria: _CriteriaOption) -> {{ type_name }}:
        stmt = _ormrepo.first(self._apply_criteria(criteria), {{ type_name }})
        return _ormrepo.one_or_raise(self.session, stmt)
''', "type_name")

GET_BY_LAST = _record("get_by_last", '''
    def get_by_last(self, *criteria: _CriteriaOption) -> {{ type_name }}:
        stmt = _ormrepo.last(self._apply_criteria(criteria), {{ type_name }})
        return _ormrepo.one_or_raise(self.session, stmt)
''', "type_name")

CREATE = _record("create", '''
    def create(self, entity: {{ type_name }}) -> {{ type_name }}:
        if not _ormrepo.is_new_record(entity):
            raise _ormrepo.PrimaryKeyNotBlankError()
        self.session.add(entity)
        self.session.flush()
        return entity
''', "type_name")

UPDATE = _record("update", '''
    def update(
        self, entity: {{ type_name }}, fields: _Fields, *criteria: _CriteriaOption
    ) -> None:
        stmt = _ormrepo.apply_criteria(_ormrepo.identity_select(entity), criteria)
        target = self.session.scalars(stmt).first()
        if target is None:
            return
        _ormrepo.assign_fields(target, fields)
        self.session.flush()
''', "type_name")

DELETE = _record("delete", '''
    def delete(self, entity: {{ type_name }}, *criteria: _CriteriaOption) -> None:
        stmt = _ormrepo.apply_criteria(_ormrepo.identity_select(entity), criteria)
        target = self.session.scalars(stmt).first()
        if target is None:
            return
        self.session.delete(target)
        self.session.flush()
''', "type_name")

AUTO_MIGRATE = _record("auto_migrate", '''
    def auto_migrate(self) -> None:
        _ormrepo.auto_migrate(self.session, {{ type_name }})
''', "type_name")

ADD_UNIQUE_INDEX = _record("add_unique_index", '''
    def add_unique_index(self, name: str, *columns: str) -> None:
        _ormrepo.add_index(self.session, {{ type_name }}, name, columns, unique=True)
''', "type_name")

ADD_FOREIGN_KEY = _record("add_foreign_key", '''
    def add_foreign_key(
        self, field: str, dest: str, on_delete: str, on_update: str
    ) -> None:
        _ormrepo.add_foreign_key(
            self.session, {{ type_name }}, field, dest, on_delete, on_update
        )
''', "type_name")

ADD_INDEX = _record("add_index", '''
    def add_index(self, name: str, *columns: str) -> None:
        _ormrepo.add_index(self.session, {{ type_name }}, name, columns)
''', "type_name")

# Render order. Only readability depends on it.
REPOSITORY_TEMPLATES: tuple[TemplateRecord, ...] = (
    HEADER,
    BASE_REPO,
    APPLY_CRITERIA,
    RELATED,
    GET,
    GET_ALL,
    GET_BY,
    GET_BY_FIRST,
    GET_BY_LAST,
    CREATE,
    UPDATE,
    DELETE,
    AUTO_MIGRATE,
    ADD_UNIQUE_INDEX,
    ADD_FOREIGN_KEY,
    ADD_INDEX,
)

# Methods every generated repository defines (apply_criteria included).
METHOD_NAMES: tuple[str, ...] = tuple(
    "_apply_criteria" if t is APPLY_CRITERIA else t.name
    for t in REPOSITORY_TEMPLATES
    if t not in (HEADER, BASE_REPO)
)
