"""Automatic tenant scoping for ORM statements.

Every statement executed through a ``TenantAwareSession`` passes through
``apply_tenant_scope``. When a hotel id is established in the request
context (see hotelops.core.context) and the statement carries no
``hotel_id`` condition of its own, the hook restricts it to that hotel:

- SELECT (including ``Session.get``, counts and grouped aggregates):
  ``with_loader_criteria`` on every tenant-scoped entity, joins included.
- ORM-enabled UPDATE / DELETE: an extra ``WHERE hotel_id = :ctx``.

An explicit hotel filter, meaning ``hotel_id`` compared for equality or
membership against literal values anywhere in the WHERE clause (including
inside ``and_``/``or_`` groupings), is left untouched. If it names a
different hotel than the context, a ``tenant_filter_mismatch`` warning is
logged. Any other ``hotel_id`` condition (``!=``, ``IS NOT NULL``, a join
between two ``hotel_id`` columns) names no hotel, so the scope is still
applied on top of it.

Without a context hotel id the statement runs unscoped; only
platform-admin code paths reach the database that way.

Plain Core statements against ``Table`` objects are not ORM statements and
are not scoped.
"""

from collections.abc import Iterable, Mapping
from typing import Any, TypeVar
from uuid import UUID

import structlog
from sqlalchemy import Select, event, select
from sqlalchemy.orm import ORMExecuteState, Session, with_loader_criteria
from sqlalchemy.sql import operators
from sqlalchemy.sql.elements import (
    BinaryExpression,
    BindParameter,
    ClauseElement,
    ColumnClause,
    ColumnElement,
)
from sqlalchemy.sql.selectable import SelectBase

from hotelops.core.context import get_tenant_from_context, parse_tenant_id
from hotelops.core.exceptions import InvalidTenantIdError, ResourceNotFoundError
from hotelops.db.models.base import TenantScopedMixin

logger = structlog.get_logger(__name__)

TENANT_COLUMN = "hotel_id"
TENANT_FILTER_ALIASES = frozenset({"hotel_id", "hotelId"})
_EXPLICIT_OPERATORS = (operators.eq, operators.in_op)

# Execution option that opts a statement out of automatic scoping
SKIP_TENANT_SCOPE = "skip_tenant_scope"

M = TypeVar("M", bound=TenantScopedMixin)


def _is_tenant_column(element: Any) -> bool:
    return isinstance(element, ColumnClause) and element.name == TENANT_COLUMN


def _tenant_operand(clause: ClauseElement) -> BindParameter | None:
    """Bound value compared to ``hotel_id`` by ``==`` or ``IN``, if any."""
    if not isinstance(clause, BinaryExpression) or clause.operator not in _EXPLICIT_OPERATORS:
        return None
    if _is_tenant_column(clause.left):
        other = clause.right
    elif _is_tenant_column(clause.right):
        other = clause.left
    else:
        return None
    return other if isinstance(other, BindParameter) else None


def has_tenant_condition(clause: ClauseElement | None) -> bool:
    """Whether a boolean expression names the hotel(s) it reads.

    Only equality or membership against bound values counts. Walks
    ``and_``/``or_`` groupings recursively. Subqueries are not descended
    into: a tenant condition inside a nested SELECT does not scope the
    outer statement.
    """
    if clause is None or isinstance(clause, SelectBase):
        return False
    if _tenant_operand(clause) is not None:
        return True
    return any(has_tenant_condition(child) for child in clause.get_children())


def tenant_values_in(clause: ClauseElement | None) -> set[UUID]:
    """Literal hotel ids compared for equality or membership in a clause."""
    found: set[UUID] = set()
    if clause is None or isinstance(clause, SelectBase):
        return found

    operand = _tenant_operand(clause)
    if operand is not None:
        raw = operand.effective_value
        for value in raw if isinstance(raw, (list, tuple, set)) else [raw]:
            try:
                found.add(parse_tenant_id(value))
            except InvalidTenantIdError:
                continue
        return found

    for child in clause.get_children():
        found |= tenant_values_in(child)
    return found


def _report_mismatch(clause: ClauseElement | None, hotel_id: UUID, statement_kind: str) -> None:
    explicit = tenant_values_in(clause)
    if explicit and explicit != {hotel_id}:
        logger.warning(
            "tenant_filter_mismatch",
            context_hotel_id=str(hotel_id),
            filter_hotel_ids=sorted(str(v) for v in explicit),
            statement=statement_kind,
        )


def apply_tenant_scope(orm_execute_state: ORMExecuteState) -> None:
    """``do_orm_execute`` hook injecting the context hotel id."""
    if orm_execute_state.execution_options.get(SKIP_TENANT_SCOPE, False):
        return

    hotel_id = get_tenant_from_context()
    if hotel_id is None:
        return

    statement = orm_execute_state.statement

    if orm_execute_state.is_select and isinstance(statement, Select):
        # Relationship and deferred column loads inherit criteria from the parent query
        if orm_execute_state.is_column_load or orm_execute_state.is_relationship_load:
            return
        where = getattr(statement, "whereclause", None)
        if has_tenant_condition(where):
            _report_mismatch(where, hotel_id, "select")
            return
        orm_execute_state.statement = statement.options(
            with_loader_criteria(
                TenantScopedMixin,
                lambda cls: cls.hotel_id == hotel_id,
                include_aliases=True,
            )
        )
        return

    if orm_execute_state.is_update or orm_execute_state.is_delete:
        mapper = orm_execute_state.bind_mapper
        if mapper is None or not issubclass(mapper.class_, TenantScopedMixin):
            return
        where = statement.whereclause
        if has_tenant_condition(where):
            _report_mismatch(where, hotel_id, "update" if orm_execute_state.is_update else "delete")
            return
        orm_execute_state.statement = statement.where(mapper.class_.hotel_id == hotel_id)


class TenantAwareSession(Session):
    """Session whose ORM statements pass through the tenant isolation hook."""

    pass


event.listen(TenantAwareSession, "do_orm_execute", apply_tenant_scope)


class TenantQuery:
    """Explicit scoping helper for handlers that prefer not to rely on context.

    Example:
        scoped = TenantQuery(hotel_id)
        stmt = scoped.select(Room, Room.status == "available")
    """

    def __init__(self, hotel_id: UUID | str):
        self.hotel_id = parse_tenant_id(hotel_id)

    def filter(self, model: type[M], *criteria: ColumnElement[bool]) -> list[ColumnElement[bool]]:
        """Merge the hotel id into a list of criteria for ``model``."""
        return [model.hotel_id == self.hotel_id, *criteria]

    def select(self, model: type[M], *criteria: ColumnElement[bool]) -> Select[tuple[M]]:
        return select(model).where(*self.filter(model, *criteria))

    def validate(self, document: Any) -> bool:
        return validate_tenant_access(document, self.hotel_id)


def scoped_filter(
    hotel_id: UUID | str, model: type[M], *criteria: ColumnElement[bool]
) -> list[ColumnElement[bool]]:
    """Shorthand for ``TenantQuery(hotel_id).filter(model, *criteria)``."""
    return TenantQuery(hotel_id).filter(model, *criteria)


def validate_tenant_access(document: Any, hotel_id: UUID | str | None) -> bool:
    """Whether a loaded document belongs to ``hotel_id``."""
    if document is None or hotel_id is None:
        return False
    try:
        expected = parse_tenant_id(hotel_id)
    except InvalidTenantIdError:
        return False
    return getattr(document, TENANT_COLUMN, None) == expected


def assert_tenant_access(document: M | None, hotel_id: UUID | str, resource: str) -> M:
    """Return the document, or raise as if it did not exist.

    Raises:
        ResourceNotFoundError: Missing, or owned by another hotel
    """
    if document is None or not validate_tenant_access(document, hotel_id):
        raise ResourceNotFoundError(resource)
    return document


def sanitize_filters(params: Mapping[str, Any], allowed_fields: Iterable[str]) -> dict[str, Any]:
    """Keep user-supplied filter keys that are allowed, never the hotel id."""
    allowed = set(allowed_fields) - TENANT_FILTER_ALIASES
    return {
        key: value
        for key, value in params.items()
        if key in allowed and value is not None and value != ""
    }
