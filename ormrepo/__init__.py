"""ormrepo: runtime support for repositories generated by ormrepogen."""

from .criteria import (
    CriteriaOption,
    Fields,
    apply_criteria,
    limit,
    offset,
    only,
    or_where,
    order_by,
    preload,
    where,
    where_not,
)
from .errors import PrimaryKeyNotBlankError, RecordNotFoundError, RepoError
from .records import (
    assign_fields,
    first,
    identity_select,
    is_new_record,
    last,
    one_or_raise,
    primary_key_column,
    related_select,
)
from .schema import add_foreign_key, add_index, auto_migrate

__all__ = [
    "CriteriaOption",
    "Fields",
    "PrimaryKeyNotBlankError",
    "RecordNotFoundError",
    "RepoError",
    "add_foreign_key",
    "add_index",
    "apply_criteria",
    "assign_fields",
    "auto_migrate",
    "first",
    "identity_select",
    "is_new_record",
    "last",
    "limit",
    "offset",
    "one_or_raise",
    "only",
    "or_where",
    "order_by",
    "preload",
    "primary_key_column",
    "related_select",
    "where",
    "where_not",
]
